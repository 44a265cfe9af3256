# Overview: HTTP client for the admin auth API (login / verify / logout / log).

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx


logger = logging.getLogger(__name__)

AUTH_PATH = "/api/admin-auth"


class AuthApiError(Exception):
    """The auth API could not be reached (connection failure, timeout)."""


@dataclass
class AuthResponse:
    status_code: int
    data: dict = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class AuthApiClient:
    """
    Thin wrapper over httpx.Client.

    Non-2xx responses are returned, not raised: the auth API answers 401/429
    with a structured body the session manager needs to read. Only transport
    failures raise AuthApiError.
    """

    def __init__(self, base_url: str, timeout: float = 10.0, client: Optional[httpx.Client] = None):
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.Client(timeout=timeout)

    def _post(self, action: str, body: dict) -> AuthResponse:
        url = f"{self.base_url}{AUTH_PATH}/{action}"
        try:
            response = self.client.post(url, json=body)
        except httpx.HTTPError as exc:
            raise AuthApiError(f"{action} request failed: {exc}") from exc

        try:
            data = response.json()
        except ValueError:
            logger.warning("Auth API %s returned a non-JSON body (HTTP %s)", action, response.status_code)
            data = {}
        return AuthResponse(response.status_code, data if isinstance(data, dict) else {})

    def login(self, username: str, password: str) -> AuthResponse:
        return self._post("login", {"username": username, "password": password})

    def verify(self, session_token: str) -> AuthResponse:
        return self._post("verify", {"sessionToken": session_token})

    def logout(self, session_token: Optional[str]) -> AuthResponse:
        return self._post("logout", {"sessionToken": session_token})

    def log(self, session_token: str, action: str, details: Optional[dict[str, Any]] = None) -> AuthResponse:
        body: dict[str, Any] = {"sessionToken": session_token, "auditAction": action}
        if details is not None:
            body["details"] = details
        return self._post("log", body)

    def close(self) -> None:
        self.client.close()
