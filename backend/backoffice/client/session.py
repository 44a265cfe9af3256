# Overview: Client-side admin session state (verification polling, inactivity logout).

"""
Admin Session Manager

STATES:
- Unknown        before the first verification (is_loading is True)
- Anonymous      no usable session
- Authenticated  token stored and confirmed by the server

TIMERS:
- Poll: re-verifies the stored token every 5 minutes while started.
- Inactivity: while Authenticated, any of pointerdown / keydown / scroll /
  touchstart restarts a 30-minute countdown. When it elapses the session is
  cleared locally and on_force_logout("inactivity") is called, regardless of
  the server-side expiry.

FAIL-CLOSED: Any error while verifying clears the stored token, unless a
login or logout replaced it while the check was in flight. login(),
logout() and log_activity() never raise.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional

from backoffice.time_utils import parse_iso_datetime, utcnow
from .api import AuthApiClient, AuthApiError
from .storage import SESSION_EXPIRY_KEY, SESSION_KEY, TokenStorage


logger = logging.getLogger(__name__)

VERIFY_INTERVAL_SECONDS = 5 * 60
INACTIVITY_TIMEOUT_SECONDS = 30 * 60
ACTIVITY_EVENTS = frozenset({"pointerdown", "keydown", "scroll", "touchstart"})

CONNECTION_ERROR = "Connection error. Please try again."
LOGIN_FAILED = "Login failed. Please try again."


class SessionState(str, Enum):
    UNKNOWN = "Unknown"
    ANONYMOUS = "Anonymous"
    AUTHENTICATED = "Authenticated"


@dataclass
class LoginResult:
    success: bool
    error: Optional[str] = None
    attempts_remaining: Optional[int] = None
    locked: bool = False


class AdminSessionManager:
    def __init__(
        self,
        api: AuthApiClient,
        storage: Optional[TokenStorage] = None,
        clock: Callable[[], datetime] = utcnow,
        timer_factory: Callable[..., Any] = threading.Timer,
        on_force_logout: Optional[Callable[[str], None]] = None,
        verify_interval: float = VERIFY_INTERVAL_SECONDS,
        inactivity_timeout: float = INACTIVITY_TIMEOUT_SECONDS,
    ):
        self.api = api
        self.storage = storage or TokenStorage()
        self.clock = clock
        self.timer_factory = timer_factory
        self.on_force_logout = on_force_logout
        self.verify_interval = verify_interval
        self.inactivity_timeout = inactivity_timeout

        self.state = SessionState.UNKNOWN
        self._lock = threading.RLock()
        self._running = False
        self._poll_timer = None
        self._inactivity_timer = None

    @property
    def is_loading(self) -> bool:
        return self.state is SessionState.UNKNOWN

    @property
    def is_authenticated(self) -> bool:
        return self.state is SessionState.AUTHENTICATED

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Verify the stored token now, then keep re-verifying on the poll interval."""
        with self._lock:
            if self._running:
                return
            self._running = True
        self.verify_session()
        with self._lock:
            if self._running:
                self._schedule_poll()

    def stop(self) -> None:
        with self._lock:
            self._running = False
            self._cancel_poll()
            self._cancel_inactivity()

    def _start_timer(self, interval: float, callback: Callable[[], None]):
        timer = self.timer_factory(interval, callback)
        timer.daemon = True
        timer.start()
        return timer

    def _schedule_poll(self) -> None:
        self._cancel_poll()
        self._poll_timer = self._start_timer(self.verify_interval, self._poll)

    def _cancel_poll(self) -> None:
        if self._poll_timer is not None:
            self._poll_timer.cancel()
            self._poll_timer = None

    def _poll(self) -> None:
        with self._lock:
            if not self._running:
                return
        self.verify_session()
        with self._lock:
            if self._running:
                self._schedule_poll()

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------

    def _cached_expiry_passed(self) -> bool:
        raw = self.storage.get(SESSION_EXPIRY_KEY)
        if not raw:
            return False
        try:
            expiry = parse_iso_datetime(raw)
        except ValueError:
            logger.warning("Discarding unparseable session expiry %r", raw)
            return True
        return expiry < self.clock()

    def verify_session(self) -> bool:
        """
        Check the stored token with the server. Returns True if the session is valid.

        The outcome only applies to the token that was checked: if a login or
        logout replaced the stored token meanwhile, that newer state is kept.
        """
        token = self.storage.get(SESSION_KEY)
        if not token:
            self._clear_if_current(token)
            return False

        if self._cached_expiry_passed():
            self._clear_if_current(token)
            return False

        try:
            response = self.api.verify(token)
        except AuthApiError:
            logger.exception("Session verification failed")
            self._clear_if_current(token)
            return False

        if response.ok and response.data.get("valid"):
            with self._lock:
                if self.storage.get(SESSION_KEY) != token:
                    return False
                expires_at = response.data.get("expiresAt")
                if expires_at:
                    self.storage.set(SESSION_EXPIRY_KEY, expires_at)
                self._set_authenticated()
            return True

        self._clear_if_current(token)
        return False

    # ------------------------------------------------------------------
    # State changes
    # ------------------------------------------------------------------

    def _set_authenticated(self) -> None:
        with self._lock:
            was_authenticated = self.state is SessionState.AUTHENTICATED
            self.state = SessionState.AUTHENTICATED
            if not was_authenticated:
                self._restart_inactivity()

    def _clear_session(self) -> None:
        with self._lock:
            self.storage.clear_session()
            self.state = SessionState.ANONYMOUS
            self._cancel_inactivity()

    def _clear_if_current(self, token: Optional[str]) -> None:
        with self._lock:
            if self.storage.get(SESSION_KEY) != token:
                logger.info("Session token replaced during verification; keeping the new one")
                return
            self._clear_session()

    def _restart_inactivity(self) -> None:
        self._cancel_inactivity()
        self._inactivity_timer = self._start_timer(self.inactivity_timeout, self._on_inactivity)

    def _cancel_inactivity(self) -> None:
        if self._inactivity_timer is not None:
            self._inactivity_timer.cancel()
            self._inactivity_timer = None

    def _on_inactivity(self) -> None:
        with self._lock:
            if self.state is not SessionState.AUTHENTICATED:
                return
            self._inactivity_timer = None
            self._clear_session()
        logger.info("Admin session cleared after %s seconds of inactivity", self.inactivity_timeout)
        if self.on_force_logout is not None:
            self.on_force_logout("inactivity")

    def record_activity(self, event: str) -> None:
        """Restart the inactivity countdown for a user-input event while Authenticated."""
        if event not in ACTIVITY_EVENTS:
            return
        with self._lock:
            if self.state is SessionState.AUTHENTICATED:
                self._restart_inactivity()

    # ------------------------------------------------------------------
    # Login / logout / audit
    # ------------------------------------------------------------------

    def login(self, username: str, password: str) -> LoginResult:
        try:
            response = self.api.login(username, password)
        except AuthApiError:
            logger.exception("Login request failed")
            return LoginResult(success=False, error=CONNECTION_ERROR)

        # 5xx carries no reason the user can act on
        if response.status_code >= 500:
            return LoginResult(success=False, error=CONNECTION_ERROR)

        data = response.data
        if data.get("locked"):
            return LoginResult(
                success=False,
                error=f"Account locked. Try again in {data.get('lockoutMinutes')} minutes.",
                locked=True,
            )

        if data.get("error"):
            return LoginResult(
                success=False,
                error=data["error"],
                attempts_remaining=data.get("attemptsRemaining"),
            )

        if data.get("success") and data.get("sessionToken"):
            with self._lock:
                self.storage.set(SESSION_KEY, data["sessionToken"])
                if data.get("expiresAt"):
                    self.storage.set(SESSION_EXPIRY_KEY, data["expiresAt"])
                self._set_authenticated()
            return LoginResult(success=True)

        return LoginResult(success=False, error=LOGIN_FAILED)

    def logout(self) -> None:
        """Best-effort server logout; the local session is always cleared."""
        token = self.storage.get(SESSION_KEY)
        try:
            self.api.logout(token)
        except AuthApiError:
            logger.warning("Logout request failed; clearing local session anyway", exc_info=True)
        finally:
            self._clear_session()

    def log_activity(self, action: str, details: Optional[dict[str, Any]] = None) -> None:
        """Fire-and-forget audit entry. Ignored without a session; failures are only logged."""
        token = self.storage.get(SESSION_KEY)
        if not token:
            return
        try:
            response = self.api.log(token, action, details)
        except AuthApiError:
            logger.warning("Audit log request failed for %s", action, exc_info=True)
            return
        if not response.ok:
            logger.warning("Audit log for %s rejected (HTTP %s)", action, response.status_code)
