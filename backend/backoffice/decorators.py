# Overview: Request decorators for back-office API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import session_service


def extract_session_token() -> str | None:
    """Token from `Authorization: Bearer <token>` or the X-Session-Token header."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header.split(" ", 1)[1].strip()
        if token:
            return token
    token = request.headers.get("X-Session-Token", "").strip()
    return token or None


def require_admin_session(f):
    """
    Require an active, unexpired admin session.

    Sets g.admin_session. Does NOT extend the session's expiry; only the
    verify action slides it forward.

    SECURITY: Returns 401 if:
    - No token in Authorization or X-Session-Token
    - Token unknown or session deactivated
    - Session expired (it is also marked inactive)
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = extract_session_token()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        session = session_service.find_valid_session(token)
        if not session:
            return jsonify({"error": "Invalid or expired session"}), 401

        g.admin_session = session
        return f(*args, **kwargs)

    return decorated_function
