from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class User(db.Model):
    """
    Customer and staff accounts.

    `role` holds a role key (e.g. "ADMIN", "USER") rather than a foreign key:
    permissions are looked up through the key on every request, so changing a
    user's role or a role's grants takes effect without re-login.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.UniqueConstraint("email", name="uq_users_email"),
        db.Index("ix_users_role", "role"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), nullable=False)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    role = db.Column(db.String(50), nullable=False, default="USER")

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    last_login_at = db.Column(db.DateTime, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "created_at": to_utc_z(self.created_at),
            "last_login_at": to_utc_z(self.last_login_at),
        }


class Role(db.Model):
    """
    Named permission bundle.

    Built-in roles ADMIN and USER are re-ensured on every boot. INACTIVE roles
    keep their grants but cannot be assigned to users.
    """
    __tablename__ = "roles"
    __table_args__ = (
        db.UniqueConstraint("key", name="uq_roles_key"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(50), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.String(500), nullable=True)
    status = db.Column(db.String(16), nullable=False, default="ACTIVE")

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    grants = db.relationship(
        "RolePermission",
        backref="role",
        lazy="selectin",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def permission_keys(self) -> list[str]:
        return sorted(grant.permission.key for grant in self.grants if grant.permission)

    def to_dict(self, include_permissions: bool = True) -> dict:
        data = {
            "id": self.id,
            "key": self.key,
            "name": self.name,
            "description": self.description,
            "status": self.status,
            "permission_count": len(self.grants),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_permissions:
            data["permissions"] = self.permission_keys
        return data


class Permission(db.Model):
    """
    Persisted copy of a catalog entry.

    Rows are reconciled from the static catalog at boot: created when missing,
    label/group/description refreshed when present, never deleted.
    """
    __tablename__ = "permissions"
    __table_args__ = (
        db.UniqueConstraint("key", name="uq_permissions_key"),
        db.Index("ix_permissions_group", "group"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(64), nullable=False)
    group = db.Column(db.String(64), nullable=False)
    label = db.Column(db.String(120), nullable=False)
    description = db.Column(db.String(255), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "key": self.key,
            "group": self.group,
            "label": self.label,
            "description": self.description,
        }


class RolePermission(db.Model):
    __tablename__ = "role_permissions"
    __table_args__ = (
        db.UniqueConstraint("role_id", "permission_id", name="uq_role_permissions_role_permission"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    role_id = db.Column(db.Integer, db.ForeignKey("roles.id", ondelete="CASCADE"), nullable=False, index=True)
    permission_id = db.Column(db.Integer, db.ForeignKey("permissions.id", ondelete="CASCADE"), nullable=False, index=True)

    permission = db.relationship("Permission", lazy="joined")
