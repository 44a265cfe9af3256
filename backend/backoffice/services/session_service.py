# Overview: Service-layer operations for admin sessions; encapsulates business logic and database work.

"""
Admin Session Management Service

WHY: The back office has one admin account and allows one active session
at a time. A new login deactivates every other session. Sessions expire
after SESSION_DURATION_MINUTES; each successful verify call slides the
expiry forward by the same amount.

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes, hex encoded)
- Expired sessions are deactivated when they are next presented
- Route guards validate without extending expiry; only verify slides it
- Tracks client IP and user agent for security monitoring
"""

from __future__ import annotations

import secrets
from datetime import timedelta
from enum import Enum

from flask import current_app

from ..extensions import db
from ..models import AdminSession
from backoffice.time_utils import utcnow


class SessionCheck(str, Enum):
    VALID = "valid"
    MISSING = "missing"
    INVALID = "invalid"
    EXPIRED = "expired"


def session_duration() -> timedelta:
    return timedelta(minutes=int(current_app.config.get("SESSION_DURATION_MINUTES", 30)))


def generate_token() -> str:
    """
    Generate cryptographically secure random token.

    Returns 64-character hex string (32 bytes of entropy).

    WHY secrets.token_hex: Cryptographically secure PRNG.
    DO NOT use random.random() or uuid4() for auth tokens!
    """
    return secrets.token_hex(32)


def deactivate_all_sessions() -> int:
    """Mark every active session inactive. The caller commits."""
    return (
        db.session.query(AdminSession)
        .filter(AdminSession.is_active.is_(True))
        .update({AdminSession.is_active: False}, synchronize_session=False)
    )


def create_session(ip_address: str | None = None, user_agent: str | None = None) -> AdminSession:
    """
    Add a new active session to the db session. The caller commits.

    Does not touch other sessions; see deactivate_all_sessions.
    """
    now = utcnow()
    session = AdminSession(
        session_token=generate_token(),
        ip_address=ip_address,
        user_agent=(user_agent or "")[:512] or None,
        created_at=now,
        expires_at=now + session_duration(),
        is_active=True,
    )
    db.session.add(session)
    return session


def _lookup(token: str | None) -> tuple[SessionCheck, AdminSession | None]:
    if not token:
        return SessionCheck.MISSING, None

    session = db.session.query(AdminSession).filter_by(
        session_token=token,
        is_active=True,
    ).first()
    if not session:
        return SessionCheck.INVALID, None

    if session.expires_at < utcnow():
        session.is_active = False
        db.session.commit()
        return SessionCheck.EXPIRED, session

    return SessionCheck.VALID, session


def find_valid_session(token: str | None) -> AdminSession | None:
    """
    Active, unexpired session for this token, or None.

    Does not extend expiry. Used by route guards and the audit log action.
    """
    check, session = _lookup(token)
    return session if check is SessionCheck.VALID else None


def verify_session(token: str | None) -> tuple[SessionCheck, AdminSession | None]:
    """
    Validate a session token and slide its expiry forward on success.

    Expired sessions are marked inactive.
    """
    check, session = _lookup(token)
    if check is SessionCheck.VALID:
        session.expires_at = utcnow() + session_duration()
        db.session.commit()
    return check, session


def end_session(token: str) -> bool:
    """
    Deactivate a session (logout).

    Returns True if an active session was found.
    """
    updated = (
        db.session.query(AdminSession)
        .filter(AdminSession.session_token == token, AdminSession.is_active.is_(True))
        .update({AdminSession.is_active: False}, synchronize_session=False)
    )
    db.session.commit()
    return bool(updated)


def cleanup_expired_sessions(older_than_days: int = 30) -> int:
    """
    Delete inactive or expired sessions created more than `older_than_days` ago.

    Returns count of sessions deleted.

    WHY: Database cleanup. Sessions accumulate over time.
    Run this periodically (flask maintenance cleanup-sessions).
    """
    now = utcnow()
    cutoff = now - timedelta(days=older_than_days)

    deleted = db.session.query(AdminSession).filter(
        db.or_(
            AdminSession.expires_at < now,
            AdminSession.is_active.is_(False),
        ),
        AdminSession.created_at < cutoff,
    ).delete(synchronize_session=False)

    db.session.commit()
    return deleted
