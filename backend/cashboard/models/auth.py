from __future__ import annotations

from ..extensions import db
from cashboard.time_utils import to_utc_z


class User(db.Model):
    """
    User accounts for authentication and attribution.

    Authorization comes from `role` (see cashboard.permissions.roles) plus
    the additive `extra_permissions` overlay. `assigned_store_id` only
    matters for store-scoped roles (gerente_tienda, cajero).

    WHY: Every income, expense and closure must be attributable.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.UniqueConstraint("email", name="uq_users_email"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, index=True)
    full_name = db.Column(db.String(255), nullable=False, default="")
    phone = db.Column(db.String(32), nullable=True)

    role = db.Column(db.String(32), nullable=False, index=True)
    assigned_store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=True, index=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True, onupdate=db.func.now())
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    assigned_store = db.relationship("Store", backref=db.backref("users", lazy=True))

    @property
    def extra_permissions(self) -> list[str]:
        return sorted(grant.permission_code for grant in self.permission_grants)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "phone": self.phone,
            "role": self.role,
            "assigned_store_id": self.assigned_store_id,
            "permissions": self.extra_permissions,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at) if self.updated_at else None,
            "last_login_at": to_utc_z(self.last_login_at) if self.last_login_at else None,
        }


class UserPermissionGrant(db.Model):
    """
    Extra permission granted to one user on top of the role.

    DESIGN:
    - Additive only: there is no DENY, a grant never removes a role permission
    - Protected permissions (settings:edit, all_stores:access) are refused
    - Tracks who granted it and when
    """
    __tablename__ = "user_permission_grants"
    __table_args__ = (
        db.UniqueConstraint("user_id", "permission_code", name="uq_user_permission_grant"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    permission_code = db.Column(db.String(64), nullable=False, index=True)

    granted_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    granted_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    reason = db.Column(db.String(255), nullable=True)

    user = db.relationship(
        "User",
        foreign_keys=[user_id],
        backref=db.backref("permission_grants", lazy=True, cascade="all, delete-orphan"),
    )
    granted_by = db.relationship("User", foreign_keys=[granted_by_user_id])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "permission_code": self.permission_code,
            "granted_by_user_id": self.granted_by_user_id,
            "granted_at": to_utc_z(self.granted_at),
            "reason": self.reason,
        }


class SessionToken(db.Model):
    """
    Bearer session token.

    SECURITY NOTES:
    - Tokens stored hashed in database (SHA-256)
    - Absolute timeout plus an idle timeout taken from system settings
    - Revocable on logout
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.Index("ix_session_tokens_user_active", "user_id", "is_revoked"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    # Token hash (never store plaintext tokens!)
    token_hash = db.Column(db.String(255), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False, index=True)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_reason = db.Column(db.String(255), nullable=True)

    user_agent = db.Column(db.String(512), nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)

    user = db.relationship("User", backref=db.backref("sessions", lazy=True, cascade="all, delete-orphan"))
