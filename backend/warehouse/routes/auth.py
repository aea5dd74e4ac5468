# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/warehouse/routes/auth.py
"""
Authentication API routes

SECURITY FEATURES:
- Login issues a server-side session token (bearer)
- Every protected route re-validates the token and reads the role from
  the user row, so the client cannot grant itself a role
- Logout revokes the token immediately
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services import session_service
from ..services import user_service
from ..models.auth import ROLE_ADMIN
from ..permissions import get_role_permissions
from ..decorators import require_auth, bearer_token
from warehouse.time_utils import to_utc_z


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _session_payload(user, session) -> dict:
    return {
        "user": user.to_dict(),
        "permissions": sorted(get_role_permissions(user.role)),
        "expiresAt": to_utc_z(session.expires_at),
    }


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Returns user info and session token on success.
    Token must be included in Authorization header for protected routes.
    """
    data = request.get_json(silent=True) or {}
    username = (data.get("username") or "").strip()
    password = data.get("password")

    if not username or not password:
        return jsonify({"success": False, "message": "اسم المستخدم وكلمة المرور مطلوبان"}), 400

    try:
        user = auth_service.authenticate(username, password)

        if not user:
            current_app.logger.info("Failed login attempt for '%s' from %s", username, request.remote_addr)
            return jsonify({"success": False, "message": "اسم المستخدم أو كلمة المرور غير صحيحة"}), 401

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
    except Exception as e:
        current_app.logger.exception("Login failed")
        message = "حدث خطأ أثناء تسجيل الدخول"
        return jsonify({"success": False, "message": message, "error": message, "details": str(e)}), 500

    current_app.logger.info("User '%s' logged in", user.username)
    return jsonify({
        "success": True,
        "message": "تم تسجيل الدخول بنجاح",
        "token": token,
        **_session_payload(user, session),
    })


@auth_bp.post("/logout")
def logout_route():
    """Revoke the caller's session token. Unknown tokens are not an error."""
    token = bearer_token()
    if not token:
        return jsonify({"success": False, "message": "Authentication required"}), 401

    revoked = session_service.revoke_session(token, reason="User logout")
    return jsonify({"success": True, "revoked": revoked})


@auth_bp.post("/validate")
@require_auth
def validate_route():
    """Confirm the token is still valid and return the current user."""
    return jsonify({"success": True, **_session_payload(g.current_user, g.session_context.session)})


@auth_bp.post("/update-login")
@require_auth
def update_login_route():
    """
    Stamp last_login for a user.

    Defaults to the caller; only an admin may stamp another account.
    """
    data = request.get_json(silent=True) or {}
    try:
        user_id = int(data.get("userId") or g.current_user.id)
    except (TypeError, ValueError):
        return jsonify({"success": False, "message": "معرف المستخدم مطلوب"}), 400

    if user_id != g.current_user.id and g.current_user.role != ROLE_ADMIN:
        return jsonify({"success": False, "message": "Permission denied"}), 403

    try:
        user_service.update_last_login(user_id)
    except LookupError as e:
        return jsonify({"success": False, "message": str(e)}), 404

    return jsonify({"success": True})
