# Overview: Ephemeral key-value storage for the admin session token.

from __future__ import annotations

import threading
from typing import Optional


SESSION_KEY = "admin_session_token"
SESSION_EXPIRY_KEY = "admin_session_expiry"


class TokenStorage:
    """
    Process-local string store. Nothing is written to disk, so a restart
    always begins logged out.
    """

    def __init__(self):
        self._values: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._values[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._values.pop(key, None)

    def clear_session(self) -> None:
        with self._lock:
            self._values.pop(SESSION_KEY, None)
            self._values.pop(SESSION_EXPIRY_KEY, None)
