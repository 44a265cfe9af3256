"""
Client session manager tests.

Timers are replaced with a fake that records its callback so tests fire
polls and inactivity timeouts by hand. The HTTP client runs over
httpx.MockTransport.
"""

from datetime import datetime

import httpx
import pytest

from backoffice.client import (
    AdminSessionManager,
    AuthApiClient,
    AuthApiError,
    AuthResponse,
    SessionState,
    TokenStorage,
)
from backoffice.client.session import CONNECTION_ERROR, INACTIVITY_TIMEOUT_SECONDS, VERIFY_INTERVAL_SECONDS
from backoffice.client.storage import SESSION_EXPIRY_KEY, SESSION_KEY


NOW = datetime(2026, 3, 5, 10, 0, 0)
TOKEN = "a" * 64


class FakeTimer:
    def __init__(self, interval, callback):
        self.interval = interval
        self.callback = callback
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.callback()


class FakeAuthApi:
    """Scripted stand-in for AuthApiClient."""

    def __init__(self):
        self.calls = []
        self.verify_response = AuthResponse(200, {"valid": True, "expiresAt": "2026-03-05T10:30:00.000Z"})
        self.login_response = AuthResponse(200, {
            "success": True,
            "sessionToken": TOKEN,
            "expiresAt": "2026-03-05T10:30:00.000Z",
            "sessionDurationMinutes": 30,
        })
        self.raise_on = set()

    def _call(self, name, *args):
        self.calls.append((name,) + args)
        if name in self.raise_on:
            raise AuthApiError(f"{name} failed")

    def verify(self, token):
        self._call("verify", token)
        return self.verify_response

    def login(self, username, password):
        self._call("login", username, password)
        return self.login_response

    def logout(self, token):
        self._call("logout", token)
        return AuthResponse(200, {"success": True})

    def log(self, token, action, details=None):
        self._call("log", token, action, details)
        return AuthResponse(200, {"success": True})


@pytest.fixture
def api():
    return FakeAuthApi()


@pytest.fixture
def storage():
    return TokenStorage()


@pytest.fixture
def timers():
    return []


@pytest.fixture
def forced():
    return []


@pytest.fixture
def manager(api, storage, timers, forced):
    def timer_factory(interval, callback):
        timer = FakeTimer(interval, callback)
        timers.append(timer)
        return timer

    return AdminSessionManager(
        api,
        storage=storage,
        clock=lambda: NOW,
        timer_factory=timer_factory,
        on_force_logout=forced.append,
    )


def _live(timers, interval):
    return [t for t in timers if t.interval == interval and not t.cancelled]


class TestVerification:
    def test_starts_loading(self, manager):
        assert manager.state is SessionState.UNKNOWN
        assert manager.is_loading

    def test_start_without_token_is_anonymous(self, manager, api, timers):
        manager.start()
        assert manager.state is SessionState.ANONYMOUS
        assert not manager.is_loading
        assert api.calls == []
        assert len(_live(timers, VERIFY_INTERVAL_SECONDS)) == 1

    def test_start_with_valid_token(self, manager, api, storage, timers):
        storage.set(SESSION_KEY, TOKEN)
        manager.start()

        assert manager.is_authenticated
        assert api.calls == [("verify", TOKEN)]
        assert storage.get(SESSION_EXPIRY_KEY) == "2026-03-05T10:30:00.000Z"
        inactivity = _live(timers, INACTIVITY_TIMEOUT_SECONDS)
        assert len(inactivity) == 1
        assert inactivity[0].daemon and inactivity[0].started

    def test_cached_expiry_skips_server(self, manager, api, storage):
        storage.set(SESSION_KEY, TOKEN)
        storage.set(SESSION_EXPIRY_KEY, "2026-03-05T09:59:59Z")

        assert manager.verify_session() is False
        assert api.calls == []
        assert storage.get(SESSION_KEY) is None
        assert manager.state is SessionState.ANONYMOUS

    def test_unparseable_expiry_clears(self, manager, api, storage):
        storage.set(SESSION_KEY, TOKEN)
        storage.set(SESSION_EXPIRY_KEY, "soon")
        assert manager.verify_session() is False
        assert api.calls == []

    def test_rejected_token_clears(self, manager, api, storage):
        storage.set(SESSION_KEY, TOKEN)
        api.verify_response = AuthResponse(401, {"valid": False, "error": "Session expired"})

        assert manager.verify_session() is False
        assert storage.get(SESSION_KEY) is None

    def test_network_error_clears(self, manager, api, storage):
        storage.set(SESSION_KEY, TOKEN)
        api.raise_on.add("verify")

        assert manager.verify_session() is False
        assert manager.state is SessionState.ANONYMOUS
        assert storage.get(SESSION_KEY) is None

    def test_login_during_rejected_check_keeps_new_session(self, manager, api, storage):
        fresh = "b" * 64
        storage.set(SESSION_KEY, TOKEN)
        api.login_response = AuthResponse(200, {
            "success": True,
            "sessionToken": fresh,
            "expiresAt": "2026-03-05T10:30:00.000Z",
        })

        def verify_while_logging_in(token):
            assert manager.login("SaiSiddha333", "secret").success
            return AuthResponse(401, {"valid": False, "error": "Session expired"})

        api.verify = verify_while_logging_in

        assert manager.verify_session() is False
        assert storage.get(SESSION_KEY) == fresh
        assert manager.state is SessionState.AUTHENTICATED

    def test_login_during_failed_check_keeps_new_session(self, manager, api, storage):
        fresh = "b" * 64
        storage.set(SESSION_KEY, TOKEN)
        api.login_response = AuthResponse(200, {"success": True, "sessionToken": fresh})

        def verify_while_logging_in(token):
            manager.login("SaiSiddha333", "secret")
            raise AuthApiError("connection reset")

        api.verify = verify_while_logging_in

        assert manager.verify_session() is False
        assert storage.get(SESSION_KEY) == fresh
        assert manager.is_authenticated

    def test_logout_during_valid_check_stays_logged_out(self, manager, api, storage):
        storage.set(SESSION_KEY, TOKEN)

        def verify_while_logging_out(token):
            manager.logout()
            return AuthResponse(200, {"valid": True, "expiresAt": "2026-03-05T10:30:00.000Z"})

        api.verify = verify_while_logging_out

        assert manager.verify_session() is False
        assert storage.get(SESSION_KEY) is None
        assert storage.get(SESSION_EXPIRY_KEY) is None
        assert manager.state is SessionState.ANONYMOUS

    def test_poll_reverifies_and_reschedules(self, manager, api, storage, timers):
        storage.set(SESSION_KEY, TOKEN)
        manager.start()
        first = _live(timers, VERIFY_INTERVAL_SECONDS)[0]

        api.verify_response = AuthResponse(401, {"valid": False, "error": "Invalid session"})
        first.fire()

        assert manager.state is SessionState.ANONYMOUS
        assert [c[0] for c in api.calls] == ["verify", "verify"]
        polls = _live(timers, VERIFY_INTERVAL_SECONDS)
        assert len(polls) == 1 and polls[0] is not first

    def test_stop_cancels_timers(self, manager, storage, timers):
        storage.set(SESSION_KEY, TOKEN)
        manager.start()
        manager.stop()
        assert all(t.cancelled for t in timers)


class TestLogin:
    def test_success_stores_token(self, manager, storage):
        result = manager.login("SaiSiddha333", "secret")
        assert result.success
        assert storage.get(SESSION_KEY) == TOKEN
        assert storage.get(SESSION_EXPIRY_KEY) == "2026-03-05T10:30:00.000Z"
        assert manager.is_authenticated

    def test_invalid_credentials(self, manager, api, storage):
        api.login_response = AuthResponse(401, {"error": "Invalid credentials", "attemptsRemaining": 2})
        result = manager.login("SaiSiddha333", "wrong")
        assert not result.success
        assert result.error == "Invalid credentials"
        assert result.attempts_remaining == 2
        assert storage.get(SESSION_KEY) is None

    def test_locked(self, manager, api):
        api.login_response = AuthResponse(429, {"error": "Too many", "locked": True, "lockoutMinutes": 12})
        result = manager.login("SaiSiddha333", "secret")
        assert result.locked
        assert result.error == "Account locked. Try again in 12 minutes."

    def test_network_error(self, manager, api):
        api.raise_on.add("login")
        result = manager.login("SaiSiddha333", "secret")
        assert result == type(result)(success=False, error=CONNECTION_ERROR)

    def test_server_error_is_connection_error(self, manager, api):
        api.login_response = AuthResponse(500, {"error": "Internal server error"})
        assert manager.login("SaiSiddha333", "secret").error == CONNECTION_ERROR


class TestLogoutAndActivity:
    def test_logout_clears_even_on_error(self, manager, api, storage):
        manager.login("SaiSiddha333", "secret")
        api.raise_on.add("logout")

        manager.logout()

        assert ("logout", TOKEN) in api.calls
        assert storage.get(SESSION_KEY) is None
        assert manager.state is SessionState.ANONYMOUS

    def test_inactivity_forces_logout(self, manager, storage, timers, forced):
        manager.login("SaiSiddha333", "secret")
        _live(timers, INACTIVITY_TIMEOUT_SECONDS)[0].fire()

        assert forced == ["inactivity"]
        assert storage.get(SESSION_KEY) is None
        assert manager.state is SessionState.ANONYMOUS

    def test_activity_restarts_countdown(self, manager, timers):
        manager.login("SaiSiddha333", "secret")
        first = _live(timers, INACTIVITY_TIMEOUT_SECONDS)[0]

        manager.record_activity("keydown")

        assert first.cancelled
        assert len(_live(timers, INACTIVITY_TIMEOUT_SECONDS)) == 1

    def test_other_events_ignored(self, manager, timers):
        manager.login("SaiSiddha333", "secret")
        first = _live(timers, INACTIVITY_TIMEOUT_SECONDS)[0]
        manager.record_activity("mousemove")
        assert not first.cancelled

    def test_activity_while_anonymous_starts_nothing(self, manager, timers):
        manager.record_activity("scroll")
        assert timers == []

    def test_log_activity(self, manager, api):
        manager.log_activity("invoice_printed")
        assert api.calls == []

        manager.login("SaiSiddha333", "secret")
        manager.log_activity("invoice_printed", {"invoice": "SSF26030001"})
        assert api.calls[-1] == ("log", TOKEN, "invoice_printed", {"invoice": "SSF26030001"})

    def test_log_activity_never_raises(self, manager, api):
        manager.login("SaiSiddha333", "secret")
        api.raise_on.add("log")
        manager.log_activity("invoice_printed")


class TestAuthApiClient:
    def _client(self, handler):
        return AuthApiClient("https://api.example.test/", client=httpx.Client(transport=httpx.MockTransport(handler)))

    def test_posts_json_and_returns_non_2xx(self):
        seen = []

        def handler(request):
            seen.append((request.url.path, request.read()))
            return httpx.Response(401, json={"error": "Invalid credentials", "attemptsRemaining": 4})

        response = self._client(handler).login("SaiSiddha333", "wrong")

        assert seen[0][0] == "/api/admin-auth/login"
        assert b'"username"' in seen[0][1]
        assert response.status_code == 401
        assert not response.ok
        assert response.data["attemptsRemaining"] == 4

    def test_non_json_body(self):
        response = self._client(lambda request: httpx.Response(502, text="Bad Gateway")).verify(TOKEN)
        assert response.status_code == 502
        assert response.data == {}

    def test_log_omits_missing_details(self):
        bodies = []

        def handler(request):
            bodies.append(request.read())
            return httpx.Response(200, json={"success": True})

        self._client(handler).log(TOKEN, "note")
        assert b"details" not in bodies[0]

    def test_transport_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(AuthApiError):
            self._client(handler).logout(TOKEN)
