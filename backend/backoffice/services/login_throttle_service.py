"""
Login Throttling Service

WHY: Prevent brute-force password attacks against the single admin
account by limiting failed login attempts per client IP.

SECURITY FEATURES:
- Tracks every attempt (failed and successful) in login_attempts
- Lockout after MAX_LOGIN_ATTEMPTS failures within LOCKOUT_WINDOW_MINUTES
- While locked out, credentials are not even checked
- The lockout ends when the oldest counted failure leaves the window
"""

from __future__ import annotations

import math
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import LoginAttempt
from backoffice.time_utils import utcnow


def max_attempts() -> int:
    return int(current_app.config.get("MAX_LOGIN_ATTEMPTS", 5))


def lockout_window() -> timedelta:
    return timedelta(minutes=int(current_app.config.get("LOCKOUT_WINDOW_MINUTES", 15)))


def _recent_failures_query(ip_address: str):
    cutoff = utcnow() - lockout_window()
    return db.session.query(LoginAttempt).filter(
        LoginAttempt.ip_address == ip_address,
        LoginAttempt.was_successful.is_(False),
        LoginAttempt.attempted_at >= cutoff,
    )


def get_recent_failed_attempts(ip_address: str) -> int:
    """Count failed login attempts from this IP within the lockout window."""
    return _recent_failures_query(ip_address).count()


def is_locked_out(ip_address: str) -> tuple[bool, int | None]:
    """
    Check whether this IP is currently locked out.

    Returns:
    - (True, minutes_remaining) if locked; minutes rounded up, at least 1
    - (False, None) if not locked
    """
    failures = (
        _recent_failures_query(ip_address)
        .order_by(LoginAttempt.attempted_at.asc())
        .all()
    )
    if len(failures) < max_attempts():
        return False, None

    # The window must shed enough failures to drop below the limit.
    release_at = failures[len(failures) - max_attempts()].attempted_at + lockout_window()
    seconds_remaining = (release_at - utcnow()).total_seconds()
    return True, max(1, math.ceil(seconds_remaining / 60))


def record_attempt(ip_address: str, username: str | None, was_successful: bool) -> LoginAttempt:
    """Add an attempt row to the session. The caller commits."""
    attempt = LoginAttempt(
        ip_address=ip_address,
        was_successful=was_successful,
        username_attempted=(username or "")[:128] or None,
        attempted_at=utcnow(),
    )
    db.session.add(attempt)
    return attempt
