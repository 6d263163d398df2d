# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

WHY: Every admin action must be attributable to an account. Uses bcrypt for
password hashing and issues signed session tokens (see session_service).

BOOTSTRAP CREDENTIAL:
The configured ADMIN_EMAIL / ADMIN_PASSWORD pair always logs in as a
synthetic ADMIN user ("bootstrap-admin") without touching the store. This
is how an operator gets into a fresh or degraded installation. It is a
standing override: turn it off with BOOTSTRAP_ADMIN_ENABLED=false once real
admin accounts exist.

SECURITY NOTES:
- Login failures are uniform (401 errors.auth.invalid_credentials) whether
  the email is unknown or the password is wrong
- Unknown emails still pay for one bcrypt check so timing does not reveal
  which accounts exist
- Permissions are re-resolved from the user's current role on every call
"""

from __future__ import annotations

import hmac
from dataclasses import dataclass, field

import bcrypt
from flask import current_app

from ..database import is_store_available
from ..errors import (
    ConflictError,
    InvalidCredentialsError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from ..extensions import db
from ..models import User
from ..permissions import ROLE_STATUS_ACTIVE, STAFF_ROLE_KEY, SUPER_ADMIN_ROLE_KEY
from ..time_utils import utcnow
from ..validation import is_valid_email, normalize_email
from . import permission_service, role_service, session_service


BOOTSTRAP_USER_ID = "bootstrap-admin"

# Filled lazily per bcrypt cost; a concurrent miss just hashes twice
_dummy_hashes: dict[int, bytes] = {}


@dataclass
class SessionUser:
    id: int | str
    name: str
    email: str
    role: str
    permissions: list[str] = field(default_factory=list)
    is_bootstrap: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "permissions": self.permissions,
            "is_bootstrap": self.is_bootstrap,
        }


@dataclass
class AuthResult:
    token: str
    user: SessionUser


# =============================================================================
# PASSWORDS
# =============================================================================

def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=current_app.config["BCRYPT_ROUNDS"])
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt check; malformed hashes verify as False."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def _dummy_hash() -> str:
    rounds = current_app.config["BCRYPT_ROUNDS"]
    if rounds not in _dummy_hashes:
        _dummy_hashes[rounds] = bcrypt.hashpw(b"not-a-real-password", bcrypt.gensalt(rounds=rounds))
    return _dummy_hashes[rounds].decode("utf-8")


# =============================================================================
# PROFILES
# =============================================================================

def _is_bootstrap_credential(email: str, password: str) -> bool:
    config = current_app.config
    if not config["BOOTSTRAP_ADMIN_ENABLED"]:
        return False
    # Evaluate both comparisons so timing does not reveal which one matched
    email_ok = hmac.compare_digest(email.encode("utf-8"), normalize_email(config["ADMIN_EMAIL"]).encode("utf-8"))
    password_ok = hmac.compare_digest(password.encode("utf-8"), config["ADMIN_PASSWORD"].encode("utf-8"))
    return email_ok and password_ok


def bootstrap_profile() -> SessionUser:
    config = current_app.config
    return SessionUser(
        id=BOOTSTRAP_USER_ID,
        name=config["ADMIN_NAME"],
        email=normalize_email(config["ADMIN_EMAIL"]),
        role=SUPER_ADMIN_ROLE_KEY,
        permissions=sorted(permission_service.resolve_permissions(SUPER_ADMIN_ROLE_KEY)),
        is_bootstrap=True,
    )


def _profile(user: User) -> SessionUser:
    return SessionUser(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        permissions=sorted(permission_service.resolve_permissions(user.role)),
    )


def get_user_for_claims(claims: session_service.SessionClaims) -> User | None:
    if claims.user_id == BOOTSTRAP_USER_ID:
        return None
    try:
        user_id = int(claims.user_id)
    except ValueError:
        return None
    return db.session.get(User, user_id)


def current_role_key(claims: session_service.SessionClaims) -> str | None:
    """
    Role used for authorization: the user's CURRENT role, so role changes
    apply to live sessions. The token's role is only trusted for the
    bootstrap admin and while the store is unreachable.

    Returns None for a session whose user no longer exists.
    """
    if claims.user_id == BOOTSTRAP_USER_ID:
        return claims.role or None
    if not is_store_available():
        return claims.role or None
    user = get_user_for_claims(claims)
    if user is None:
        return None
    return user.role


def get_session_user(claims: session_service.SessionClaims) -> SessionUser | None:
    if claims.user_id == BOOTSTRAP_USER_ID:
        return bootstrap_profile()
    if not is_store_available():
        raise StoreUnavailableError()
    user = get_user_for_claims(claims)
    if user is None:
        return None
    return _profile(user)


# =============================================================================
# LOGIN / REGISTER
# =============================================================================

def login(email, password) -> AuthResult:
    if not isinstance(email, str) or not isinstance(password, str) or not email.strip() or not password:
        raise ValidationError("email and password are required")
    email = normalize_email(email)

    if _is_bootstrap_credential(email, password):
        current_app.logger.info("Bootstrap admin login")
        token = session_service.issue_token(BOOTSTRAP_USER_ID, SUPER_ADMIN_ROLE_KEY)
        return AuthResult(token=token, user=bootstrap_profile())

    if not is_store_available():
        raise InvalidCredentialsError()

    user = db.session.query(User).filter_by(email=email).first()
    if user is None:
        verify_password(password, _dummy_hash())
        raise InvalidCredentialsError()
    if not verify_password(password, user.password_hash):
        raise InvalidCredentialsError()

    user.last_login_at = utcnow()
    db.session.commit()

    token = session_service.issue_token(user.id, user.role)
    return AuthResult(token=token, user=_profile(user))


def create_user(name: str, email: str, password: str, role_key: str = STAFF_ROLE_KEY) -> User:
    """Validate and persist a new account."""
    if not isinstance(name, str) or len(name.strip()) < 2:
        raise ValidationError("name must be at least 2 characters", details={"field": "name"})
    if not is_valid_email(email):
        raise ValidationError("A valid email is required", details={"field": "email"})
    min_length = current_app.config["PASSWORD_MIN_LENGTH"]
    if not isinstance(password, str) or len(password) < min_length:
        raise ValidationError(
            f"password must be at least {min_length} characters", details={"field": "password"}
        )
    if not is_store_available():
        raise StoreUnavailableError()

    email = normalize_email(email)
    if db.session.query(User).filter_by(email=email).first() is not None:
        raise ConflictError("An account with this email already exists", code="errors.auth.user_exists")

    user = User(name=name.strip(), email=email, password_hash=hash_password(password), role=role_key)
    db.session.add(user)
    db.session.commit()
    return user


def register(name, email, password) -> AuthResult:
    """Self-registration; new accounts always get the USER role."""
    user = create_user(name, email, password, STAFF_ROLE_KEY)
    token = session_service.issue_token(user.id, user.role)
    return AuthResult(token=token, user=_profile(user))


# =============================================================================
# USER ADMINISTRATION
# =============================================================================

def list_users(page: int = 1, limit: int = 20) -> tuple[list[User], int]:
    query = db.session.query(User).order_by(User.created_at.desc(), User.id.desc())
    total = query.count()
    users = query.offset((page - 1) * limit).limit(limit).all()
    return users, total


def assign_role(user_id: int, role_key: str) -> User:
    """Point a user at another role; the role must exist and be ACTIVE."""
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found", code="errors.users.not_found")

    role = role_service.get_role_by_key(role_key) if isinstance(role_key, str) else None
    if role is None:
        raise ValidationError(f"Role '{role_key}' does not exist", code="errors.roles.not_found", details={"field": "role"})
    if role.status != ROLE_STATUS_ACTIVE:
        raise ValidationError(f"Role '{role_key}' is inactive", code="errors.roles.inactive", details={"field": "role"})

    user.role = role.key
    db.session.commit()
    return user
