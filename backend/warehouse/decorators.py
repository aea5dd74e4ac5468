# Overview: Request and permission decorators for API routes.

from functools import wraps
from flask import request, jsonify, g, current_app

from .services import session_service
from .permissions import get_role_permissions


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user') and hasattr(g, 'session_context')


def bearer_token() -> str | None:
    """Plaintext bearer token from the Authorization header, if any."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    token = auth_header.split(" ", 1)[1].strip()
    return token or None


def _deny(required, message: str):
    current_app.logger.warning(
        "Permission denied: user=%s role=%s path=%s required=%s",
        g.current_user.username, g.current_user.role, request.path, required,
    )
    body = {"error": "Permission denied", "message": message}
    if isinstance(required, str):
        body["required_permission"] = required
    else:
        body["required_permissions"] = list(required)
    return jsonify(body), 403


def require_auth(f):
    """
    Require a valid session token.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.session_context: The full SessionContext object

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid, expired, idle or revoked token
    - User account deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        context = session_service.validate_session(token)
        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """Require a specific permission; the user's role decides."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_auth was called first
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if permission_code not in get_role_permissions(g.current_user.role):
                return _deny(permission_code, f"Missing permission: {permission_code}")

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_any_permission(*permission_codes):
    """Require any of the specified permissions."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            user_permissions = get_role_permissions(g.current_user.role)
            if not any(code in user_permissions for code in permission_codes):
                return _deny(permission_codes, f"Requires any of: {', '.join(permission_codes)}")

            return f(*args, **kwargs)

        return decorated_function
    return decorator
