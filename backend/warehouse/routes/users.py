# Overview: Flask API routes for user administration; admin only.

"""
User management routes.

Password hashes never leave the server: every response goes through
User.to_dict(), which omits password_hash. Users are deactivated rather
than deleted.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import user_service
from ..services.auth_service import PasswordValidationError
from ..validation import ValidationError, ConflictError, NotFoundError
from ..decorators import require_auth, require_permission


users_bp = Blueprint("users", __name__, url_prefix="/api/users")

PROFILE_KEYS = {"fullName": "full_name", "email": "email", "phone": "phone"}


def _error(message: str, status: int, details: str | None = None):
    body = {"success": False, "message": message}
    if details is not None:
        body.update(error=message, details=details)
    return jsonify(body), status


@users_bp.get("")
@require_auth
@require_permission("MANAGE_USERS")
def list_users_route():
    include_inactive = request.args.get("includeInactive", "").lower() in {"1", "true", "yes"}
    users = user_service.list_users(include_inactive=include_inactive)
    return jsonify([u.to_dict() for u in users])


@users_bp.get("/<int:user_id>")
@require_auth
@require_permission("MANAGE_USERS")
def get_user_route(user_id: int):
    user = user_service.get_user_by_id(user_id)
    if user is None:
        return _error("المستخدم غير موجود", 404)
    return jsonify(user.to_dict())


@users_bp.post("")
@require_auth
@require_permission("MANAGE_USERS")
def create_user_route():
    """
    Create a user account.

    Request body: {username, password, role?, fullName?, email?, phone?}
    """
    data = request.get_json(silent=True) or {}
    if not data.get("username") or not data.get("password"):
        return _error("Username and password are required", 400)

    try:
        user = user_service.create_user(
            username=data["username"],
            password=data["password"],
            role=data.get("role") or "user",
            full_name=data.get("fullName"),
            email=data.get("email"),
            phone=data.get("phone"),
        )
    except (ValidationError, PasswordValidationError) as e:
        return _error(str(e), 400)
    except ConflictError as e:
        return _error(str(e), 409)
    except Exception as e:
        current_app.logger.exception("Failed to create user")
        return _error("Failure to create user", 500, str(e))

    current_app.logger.info("User '%s' (%s) created by %s", user.username, user.role, g.current_user.username)
    return jsonify({
        "success": True,
        "message": "تم إنشاء المستخدم بنجاح",
        "user": user.to_dict(),
    }), 201


@users_bp.put("/<int:user_id>")
@require_auth
@require_permission("MANAGE_USERS")
def update_user_route(user_id: int):
    """
    Update a user's profile, role and/or password.

    A password change revokes every open session of that user.
    """
    data = request.get_json(silent=True) or {}
    profile = {column: data[key] for key, column in PROFILE_KEYS.items() if key in data}

    try:
        user = user_service.update_user(user_id, role=data.get("role"), **profile)
        if data.get("password"):
            user = user_service.change_password(user_id, data["password"])
    except NotFoundError as e:
        return _error(str(e), 404)
    except (ValidationError, PasswordValidationError) as e:
        return _error(str(e), 400)
    except ConflictError as e:
        return _error(str(e), 409)
    except Exception as e:
        current_app.logger.exception("Failed to update user %s", user_id)
        return _error("Failure to update user", 500, str(e))

    return jsonify({
        "success": True,
        "message": "تم تحديث المستخدم بنجاح",
        "user": user.to_dict(),
    })


@users_bp.delete("/<int:user_id>")
@require_auth
@require_permission("MANAGE_USERS")
def delete_user_route(user_id: int):
    if user_id == g.current_user.id:
        return _error("Cannot deactivate your own account", 400)

    try:
        deleted = user_service.delete_user(user_id)
    except ConflictError as e:
        return _error(str(e), 409)
    except Exception as e:
        current_app.logger.exception("Failed to delete user %s", user_id)
        return _error("Failure to delete user", 500, str(e))

    if not deleted:
        return _error("المستخدم غير موجود", 404)

    current_app.logger.info("User %s deactivated by %s", user_id, g.current_user.username)
    return jsonify({"success": True, "message": "User deleted successfully"})
