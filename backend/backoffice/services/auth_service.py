# Overview: Service-layer operations for admin authentication; encapsulates business logic and database work.

"""
Admin Authentication Service

WHY: There is exactly one admin credential, configured as ADMIN_USERNAME
plus a bcrypt ADMIN_PASSWORD_HASH. Plaintext passwords are never stored
or configured.

SECURITY NOTES:
- Passwords verified with bcrypt through an injectable verifier
  (app.extensions["credential_verifier"]) so tests can swap it
- Username compared in constant time
- Lockout is checked before credentials; a locked-out IP learns nothing
- A successful login deactivates every other session, creates the new
  one, records the attempt and writes the audit row in one locked
  transaction, retried on lock contention
"""

from __future__ import annotations

import hmac
from dataclasses import dataclass

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import AdminSession
from . import audit_service, login_throttle_service, session_service
from .concurrency import ADMIN_SESSIONS_LOCK, begin_write_lock, run_with_retry


BCRYPT_ROUNDS = 12


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with cost factor 12.

    WHY: Cost factor 12 provides good security/performance balance.
    """
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Returns True if password matches hash, False otherwise (including a
    missing or malformed hash).
    """
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        current_app.logger.warning("ADMIN_PASSWORD_HASH is not a valid bcrypt hash")
        return False


def check_credentials(username: str, password: str) -> bool:
    expected_username = current_app.config.get("ADMIN_USERNAME", "")
    username_ok = hmac.compare_digest(username.encode("utf-8"), expected_username.encode("utf-8"))

    verifier = current_app.extensions.get("credential_verifier", verify_password)
    # Always run the verifier so a wrong username costs the same as a wrong password
    password_ok = verifier(password, current_app.config.get("ADMIN_PASSWORD_HASH", ""))
    return username_ok and password_ok


@dataclass
class LoginOutcome:
    success: bool
    session: AdminSession | None = None
    locked: bool = False
    lockout_minutes: int | None = None
    attempts_remaining: int | None = None


def login(username: str, password: str, ip_address: str, user_agent: str | None = None) -> LoginOutcome:
    """
    Authenticate the admin and open the single active session.

    Inputs are assumed validated (non-empty strings, max 128 chars).
    """
    is_locked, minutes_remaining = login_throttle_service.is_locked_out(ip_address)
    if is_locked:
        audit_service.log_action(
            "login_failed",
            {"reason": "Account locked due to too many attempts", "username_attempted": username},
            ip_address=ip_address,
        )
        return LoginOutcome(success=False, locked=True, lockout_minutes=minutes_remaining)

    failed_count = login_throttle_service.get_recent_failed_attempts(ip_address)

    if not check_credentials(username, password):
        remaining = login_throttle_service.max_attempts() - failed_count - 1
        login_throttle_service.record_attempt(ip_address, username, was_successful=False)
        audit_service.log_action(
            "login_failed",
            {
                "reason": "Invalid credentials",
                "username_attempted": username,
                "attempts_remaining": remaining,
            },
            ip_address=ip_address,
            commit=False,
        )
        db.session.commit()
        return LoginOutcome(success=False, attempts_remaining=remaining)

    def _op() -> AdminSession:
        begin_write_lock(ADMIN_SESSIONS_LOCK)
        session_service.deactivate_all_sessions()
        session = session_service.create_session(ip_address=ip_address, user_agent=user_agent)
        login_throttle_service.record_attempt(ip_address, username, was_successful=True)
        audit_service.log_action(
            "login_success",
            {"user_agent": user_agent},
            ip_address=ip_address,
            commit=False,
        )
        db.session.commit()
        return session

    return LoginOutcome(success=True, session=run_with_retry(_op))


def logout(token: str | None, ip_address: str | None = None) -> None:
    """Deactivate the session if a token was given. Always succeeds."""
    if not token:
        return
    session_service.end_session(token)
    audit_service.log_action("logout", {}, ip_address=ip_address)
