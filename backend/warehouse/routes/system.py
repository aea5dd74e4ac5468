# backend/warehouse/routes/system.py
"""
System endpoints: health, first-run setup, schema migration and
database maintenance (info, backup, export, clear).
"""

import time
from flask import Blueprint, current_app, jsonify, g

from ..extensions import db
from ..models import Product, User, SessionToken
from ..services import maintenance_service, migration_service, user_service
from ..services.maintenance_service import MaintenanceError
from ..decorators import require_auth, require_permission
from warehouse.time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """Check database connectivity with a couple of cheap counts."""
    start_time = time.time()
    try:
        product_count = db.session.query(Product).count()
        user_count = db.session.query(User).count()
        active_sessions = db.session.query(SessionToken).filter(
            SessionToken.is_revoked.is_(False),
            SessionToken.expires_at > utcnow(),
        ).count()

        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "products": product_count,
                "users": user_count,
                "active_sessions": active_sessions,
            }
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


@system_bp.get("/api/health")
def health():
    database = check_database_health()
    status_code = 200 if database["status"] == "healthy" else 503
    return {
        "status": database["status"],
        "timestamp": to_utc_z(utcnow()),
        "checks": {"database": database},
    }, status_code


# =============================================================================
# FIRST-RUN SETUP
# =============================================================================

@system_bp.get("/api/setup")
def setup_status():
    return {"success": True, "message": "النظام جاهز"}


@system_bp.post("/api/setup")
def setup_route():
    """
    Prepare a fresh installation.

    1. Create the data, backup and export directories
    2. Bring the database schema up to date
    3. Create the default admin account if there are no users
    """
    try:
        maintenance_service.ensure_data_directories()
        migration_service.apply_migrations()
        admin = user_service.create_default_admin_if_needed()
    except Exception as e:
        current_app.logger.exception("First-run setup failed")
        return jsonify({
            "success": False,
            "message": f"فشل في تهيئة النظام: {e}",
            "error": str(e),
        }), 500

    body = {
        "success": True,
        "adminCreated": admin is not None,
        "message": "تم التحقق من إعدادات النظام بنجاح",
    }
    if admin is not None:
        body["message"] = "تم تهيئة النظام بنجاح! تم إنشاء حساب المدير الافتراضي"
        body["credentials"] = {
            "username": current_app.config["DEFAULT_ADMIN_USERNAME"],
            "password": current_app.config["DEFAULT_ADMIN_PASSWORD"],
        }
    current_app.logger.info("First-run setup complete (admin created: %s)", admin is not None)
    return jsonify(body)


# =============================================================================
# MIGRATIONS
# =============================================================================

@system_bp.post("/api/migrate")
@require_auth
@require_permission("SYSTEM_ADMIN")
def migrate_route():
    try:
        result = migration_service.apply_migrations()
    except Exception as e:
        current_app.logger.exception("Migration failed")
        return jsonify({
            "success": False,
            "message": "فشل تحديث قاعدة البيانات",
            "error": str(e),
        }), 500
    return jsonify(result)


# =============================================================================
# DATABASE MAINTENANCE
# =============================================================================

@system_bp.get("/api/database/info")
@require_auth
@require_permission("SYSTEM_ADMIN")
def database_info_route():
    try:
        return jsonify({"success": True, **maintenance_service.get_database_info()})
    except Exception as e:
        current_app.logger.exception("Failed to read database info")
        return jsonify({"success": False, "error": "Failed to read database info", "details": str(e)}), 500


@system_bp.post("/api/database/backup")
@require_auth
@require_permission("SYSTEM_ADMIN")
def database_backup_route():
    try:
        return jsonify(maintenance_service.create_backup())
    except MaintenanceError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    except Exception as e:
        current_app.logger.exception("Database backup failed")
        return jsonify({"success": False, "error": "Database backup failed", "details": str(e)}), 500


@system_bp.route("/api/database/export", methods=["GET", "POST"])
@require_auth
@require_permission("SYSTEM_ADMIN")
def database_export_route():
    try:
        return jsonify(maintenance_service.export_data())
    except Exception as e:
        current_app.logger.exception("Data export failed")
        return jsonify({"success": False, "error": "Data export failed", "details": str(e)}), 500


@system_bp.post("/api/database/clear")
@require_auth
@require_permission("SYSTEM_ADMIN")
def database_clear_route():
    try:
        result = maintenance_service.clear_data()
    except Exception as e:
        current_app.logger.exception("Failed to clear data")
        return jsonify({"success": False, "error": "Failed to clear data", "details": str(e)}), 500
    current_app.logger.warning("Business data cleared by %s", g.current_user.username)
    return jsonify(result)
