# Overview: Flask API routes for admin authentication; parses input and returns JSON responses.

"""
Admin Authentication API

One POST endpoint per action under /api/admin-auth:
- login   {username, password}            -> session token
- verify  {sessionToken}                  -> slides expiry forward
- logout  {sessionToken?}                 -> always succeeds
- log     {sessionToken, auditAction, details?} -> appends an audit row

SECURITY FEATURES:
- Lockout per client IP after repeated failures (checked before credentials)
- Single active session; a new login ends every other session
- Every login outcome and logout is written to the audit trail
- Unexpected errors return a generic 500, never a stack trace
"""

from flask import Blueprint, request, jsonify, current_app

from ..extensions import db
from ..services import audit_service, auth_service, session_service
from ..services.session_service import SessionCheck
from ..decorators import require_admin_session
from backoffice.time_utils import to_utc_z


admin_auth_bp = Blueprint("admin_auth", __name__, url_prefix="/api/admin-auth")

MAX_CREDENTIAL_LENGTH = 128
MAX_AUDIT_ACTION_LENGTH = 64


def get_client_ip() -> str:
    """First X-Forwarded-For hop, then X-Real-IP, then the socket peer."""
    forwarded = request.headers.get("X-Forwarded-For", "")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    real_ip = request.headers.get("X-Real-IP", "").strip()
    if real_ip:
        return real_ip
    return request.remote_addr or "unknown"


def _read_json() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _valid_credential(value) -> bool:
    return isinstance(value, str) and 1 <= len(value) <= MAX_CREDENTIAL_LENGTH


def _login(data: dict):
    username = data.get("username")
    password = data.get("password")
    if not (_valid_credential(username) and _valid_credential(password)):
        return jsonify({"error": "Username and password are required (max 128 characters)"}), 400

    ip_address = get_client_ip()
    user_agent = request.headers.get("User-Agent") or "unknown"

    outcome = auth_service.login(username, password, ip_address, user_agent)

    if outcome.locked:
        return jsonify({
            "error": "Too many failed attempts. Please try again later.",
            "locked": True,
            "lockoutMinutes": outcome.lockout_minutes,
        }), 429

    if not outcome.success:
        return jsonify({
            "error": "Invalid credentials",
            "attemptsRemaining": outcome.attempts_remaining,
        }), 401

    minutes = int(current_app.config.get("SESSION_DURATION_MINUTES", 30))
    return jsonify({
        "success": True,
        "sessionToken": outcome.session.session_token,
        "expiresAt": to_utc_z(outcome.session.expires_at, timespec="milliseconds"),
        "sessionDurationMinutes": minutes,
    }), 200


def _verify(data: dict):
    check, session = session_service.verify_session(data.get("sessionToken"))

    if check is SessionCheck.MISSING:
        return jsonify({"valid": False, "error": "No session token provided"}), 401
    if check is SessionCheck.INVALID:
        return jsonify({"valid": False, "error": "Invalid session"}), 401
    if check is SessionCheck.EXPIRED:
        return jsonify({"valid": False, "error": "Session expired"}), 401

    return jsonify({
        "valid": True,
        "expiresAt": to_utc_z(session.expires_at, timespec="milliseconds"),
    }), 200


def _logout(data: dict):
    token = data.get("sessionToken")
    auth_service.logout(token if isinstance(token, str) else None, ip_address=get_client_ip())
    return jsonify({"success": True}), 200


def _log(data: dict):
    token = data.get("sessionToken")
    session = session_service.find_valid_session(token if isinstance(token, str) else None)
    if not session:
        return jsonify({"error": "Unauthorized"}), 401

    action = data.get("auditAction")
    if not isinstance(action, str) or not (1 <= len(action) <= MAX_AUDIT_ACTION_LENGTH):
        return jsonify({"error": "auditAction is required (max 64 characters)"}), 400

    details = data.get("details")
    if details is not None and not isinstance(details, dict):
        details = {"value": details}

    audit_service.log_action(action, details, ip_address=get_client_ip())
    return jsonify({"success": True}), 200


_ACTIONS = {
    "login": _login,
    "verify": _verify,
    "logout": _logout,
    "log": _log,
}


@admin_auth_bp.post("/<action>")
def admin_auth_action(action: str):
    handler = _ACTIONS.get(action)
    if handler is None:
        return jsonify({"error": "Invalid action"}), 400

    try:
        return handler(_read_json())
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Admin auth action %s failed", action)
        return jsonify({"error": "Internal server error"}), 500


@admin_auth_bp.get("/audit-logs")
@require_admin_session
def list_audit_logs_route():
    """
    Recent audit entries, newest first.

    Query params:
    - limit: int (optional, default 100, max 500)
    - action: str (optional) - filter by action name
    """
    limit = request.args.get("limit", default=100, type=int) or 100
    limit = max(1, min(limit, 500))
    action = request.args.get("action") or None

    try:
        entries = audit_service.list_audit_logs(limit=limit, action=action)
    except Exception:
        current_app.logger.exception("Failed to list audit logs")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"items": [entry.to_dict() for entry in entries]}), 200
