from __future__ import annotations

from ..extensions import db
from dealerops.time_utils import to_utc_z, utcnow


class Role(db.Model):
    """
    Named bundle of permission flags.

    WHY JSON permissions: the permission table is a fixed shape
    (module -> flag -> bool) that is always read whole. The stored object is
    normalized over the all-false template on every write, so it always
    carries all eight modules.
    """
    __tablename__ = "roles"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False, unique=True, index=True)
    description = db.Column(db.String(255), nullable=True)
    is_system_role = db.Column(db.Boolean, nullable=False, default=False)
    permissions = db.Column(db.JSON, nullable=False, default=dict)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now(), onupdate=utcnow)

    profiles = db.relationship("Profile", back_populates="role_data", lazy="dynamic")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "is_system_role": self.is_system_role,
            "permissions": self.permissions,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Profile(db.Model):
    """
    User identity.

    LEGACY ROLE: `role` is the original coarse role string
    (admin / seller / transporter). `role_id` points at a Role carrying
    fine-grained permission flags. Either one can make a profile an admin.

    SECURITY NOTES:
    - Passwords hashed with bcrypt (see auth_service.py)
    - Inactive profiles cannot log in and lose their sessions on next use
    """
    __tablename__ = "profiles"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    username = db.Column(db.String(64), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(255), nullable=False)

    role = db.Column(db.String(32), nullable=False, default="seller")  # admin, seller, transporter
    role_id = db.Column(db.Integer, db.ForeignKey("roles.id"), nullable=True, index=True)
    status = db.Column(db.String(16), nullable=False, default="active", index=True)  # active, inactive

    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now(), onupdate=utcnow)

    role_data = db.relationship("Role", back_populates="profiles")

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    def to_dict(self, include_role: bool = True):
        data = {
            "id": self.id,
            "email": self.email,
            "username": self.username,
            "role": self.role,
            "role_id": self.role_id,
            "status": self.status,
            "last_login_at": to_utc_z(self.last_login_at),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_role:
            data["role_data"] = self.role_data.to_dict() if self.role_data else None
        return data

    def to_summary(self):
        return {"id": self.id, "username": self.username, "email": self.email}


class SessionToken(db.Model):
    """
    Secure session token management.

    WHY: Stateless auth tokens with timeout and revocation support.
    Tokens are cryptographically secure random strings (32 bytes = 64 hex chars).

    IMPERSONATION: a session opened by an admin on behalf of another profile
    records the admin in impersonator_profile_id. Restoring the admin revokes
    this session and issues a new one for the admin.

    SECURITY NOTES:
    - Tokens stored hashed in database (SHA-256)
    - Absolute and idle timeouts (see session_service.py)
    - Revocable on logout, deactivation or password reset
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.Index("ix_session_tokens_profile_active", "profile_id", "is_revoked"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    profile_id = db.Column(db.Integer, db.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    impersonator_profile_id = db.Column(db.Integer, db.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)

    # Token hash (never store plaintext tokens!)
    token_hash = db.Column(db.String(255), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    # Revocation support
    is_revoked = db.Column(db.Boolean, nullable=False, default=False, index=True)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_reason = db.Column(db.String(255), nullable=True)

    # Client metadata
    user_agent = db.Column(db.String(512), nullable=True)
    ip_address = db.Column(db.String(64), nullable=True)

    profile = db.relationship("Profile", foreign_keys=[profile_id])
    impersonator = db.relationship("Profile", foreign_keys=[impersonator_profile_id])

    def to_dict(self):
        return {
            "id": self.id,
            "profile_id": self.profile_id,
            "impersonator_profile_id": self.impersonator_profile_id,
            "created_at": to_utc_z(self.created_at),
            "last_used_at": to_utc_z(self.last_used_at),
            "expires_at": to_utc_z(self.expires_at),
        }


class AuditLog(db.Model):
    """
    Append-only record of administrative actions.

    Written for user edits, status changes, impersonation and password resets.
    """
    __tablename__ = "audit_logs"
    __table_args__ = (
        db.Index("ix_audit_logs_actor_created", "actor_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    actor_id = db.Column(db.Integer, db.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True, index=True)
    action = db.Column(db.String(64), nullable=False, index=True)
    target_type = db.Column(db.String(64), nullable=True)
    target_id = db.Column(db.Integer, nullable=True)
    details = db.Column(db.JSON, nullable=True)
    ip_address = db.Column(db.String(64), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())

    actor = db.relationship("Profile", foreign_keys=[actor_id])

    def to_dict(self):
        return {
            "id": self.id,
            "actor_id": self.actor_id,
            "actor": self.actor.to_summary() if self.actor else None,
            "action": self.action,
            "target_type": self.target_type,
            "target_id": self.target_id,
            "details": self.details,
            "ip_address": self.ip_address,
            "created_at": to_utc_z(self.created_at),
        }
