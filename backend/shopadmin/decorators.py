# Overview: Request, permission and store-state decorators for API routes.

from functools import wraps

from flask import current_app, g, jsonify, request

from .database import is_store_available
from .errors import ForbiddenError, StoreUnavailableError, UnauthorizedError
from .services import auth_service, permission_service, session_service
from .services.idempotency import IDEMPOTENCY_HEADER, with_idempotency

IDEMPOTENCY_STORE_KEY = "shopadmin.idempotency"


def _is_authenticated() -> bool:
    return getattr(g, "session_claims", None) is not None


def current_user_record():
    """The User row behind the session, or None (guest / bootstrap admin)."""
    if not _is_authenticated() or not is_store_available():
        return None
    return auth_service.get_user_for_claims(g.session_claims)


def current_permissions() -> set[str]:
    """Live-resolved permissions of the caller (empty for guests)."""
    if not _is_authenticated():
        return set()
    return permission_service.resolve_permissions(auth_service.current_role_key(g.session_claims))


def require_auth(f):
    """
    Require a valid session token (Bearer header or auth cookie).

    Sets g.session_claims. Returns 401 when the token is missing,
    malformed, badly signed or expired.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = session_service.extract_token(request)
        if not token:
            raise UnauthorizedError()
        g.session_claims = session_service.decode_token(token)
        return f(*args, **kwargs)

    return decorated_function


def optional_auth(f):
    """Attach g.session_claims when a valid token is present; never fails."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        g.session_claims = None
        token = session_service.extract_token(request)
        if token:
            try:
                g.session_claims = session_service.decode_token(token)
            except UnauthorizedError:
                g.session_claims = None
        return f(*args, **kwargs)

    return decorated_function


def require_permission(*permission_keys):
    """
    Require ANY of the given permissions.

    Resolution uses the user's current role, so grants edited by an admin
    apply to live sessions. Fails closed: unknown role, deleted user or no
    matching grant -> 403. The only exception is the ADMIN fallback in
    permission_service.apply_bootstrap_fallback.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_auth was called first
            if not _is_authenticated():
                raise UnauthorizedError()

            role_key = auth_service.current_role_key(g.session_claims)
            permissions = permission_service.resolve_permissions(role_key)

            if not permissions.intersection(permission_keys):
                current_app.logger.info(
                    "Permission denied for user %s (role %s) on %s %s",
                    g.session_claims.user_id,
                    role_key,
                    request.method,
                    request.path,
                )
                raise ForbiddenError(details={"required_permissions": list(permission_keys)})

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_role(*role_keys):
    """Coarse guard on role identity (current role, see require_permission)."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                raise UnauthorizedError()
            if auth_service.current_role_key(g.session_claims) not in role_keys:
                raise ForbiddenError(details={"required_roles": list(role_keys)})
            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_store(f):
    """Fail fast with 503 when the store is unreachable (write endpoints)."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not is_store_available():
            raise StoreUnavailableError()
        return f(*args, **kwargs)

    return decorated_function


def degrade_when_unavailable(fallback):
    """
    Answer `fallback` (a payload, or a callable producing one) instead of
    running the view while the store is unreachable (read endpoints).
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not is_store_available():
                payload = fallback() if callable(fallback) else fallback
                return jsonify(payload), 200
            return f(*args, **kwargs)

        return decorated_function
    return decorator


def idempotent(f):
    """
    Replay the stored response for a repeated Idempotency-Key.

    The wrapped view must return (dict, status_code).
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        store = current_app.extensions[IDEMPOTENCY_STORE_KEY]
        outcome = with_idempotency(
            store,
            request.headers.get(IDEMPOTENCY_HEADER),
            lambda: f(*args, **kwargs),
        )
        response = jsonify(outcome.body)
        response.status_code = outcome.status_code
        if outcome.replayed:
            response.headers["Idempotent-Replayed"] = "true"
        return response

    return decorated_function
