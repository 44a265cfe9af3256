from __future__ import annotations

from ..extensions import db
from backoffice.time_utils import to_utc_z


class AdminSession(db.Model):
    """
    Admin panel session.

    WHY: There is a single admin account. At most one session is active at
    a time; a successful login deactivates every other active session.
    Expiry slides forward on every verify call.
    """
    __tablename__ = "admin_sessions"
    __table_args__ = (
        db.Index("ix_admin_sessions_active_expires", "is_active", "expires_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # 64 hex chars (32 random bytes)
    session_token = db.Column(db.String(64), nullable=False, unique=True, index=True)

    ip_address = db.Column(db.String(45), nullable=True)
    user_agent = db.Column(db.String(512), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "created_at": to_utc_z(self.created_at),
            "expires_at": to_utc_z(self.expires_at),
            "is_active": self.is_active,
        }


class LoginAttempt(db.Model):
    """
    Login attempt per client IP, used for lockout counting.

    IMMUTABLE: Append-only.
    """
    __tablename__ = "login_attempts"
    __table_args__ = (
        db.Index("ix_login_attempts_ip_attempted", "ip_address", "attempted_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    ip_address = db.Column(db.String(45), nullable=False)
    was_successful = db.Column(db.Boolean, nullable=False, index=True)
    username_attempted = db.Column(db.String(128), nullable=True)
    attempted_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "ip_address": self.ip_address,
            "was_successful": self.was_successful,
            "username_attempted": self.username_attempted,
            "attempted_at": to_utc_z(self.attempted_at),
        }


class AuditLog(db.Model):
    """
    Admin audit trail (login_success, login_failed, logout, product_created, ...).

    IMMUTABLE: Never update or delete. Append-only for forensics.
    """
    __tablename__ = "audit_logs"
    __table_args__ = (
        db.Index("ix_audit_logs_created", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    action = db.Column(db.String(64), nullable=False, index=True)
    details = db.Column(db.JSON, nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "action": self.action,
            "details": self.details,
            "ip_address": self.ip_address,
            "created_at": to_utc_z(self.created_at),
        }
