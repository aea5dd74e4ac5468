# backend/warehouse/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # Root of the data tree: database file, backups/ and exports/
    WAREHOUSE_DATA_DIR = os.path.abspath(
        os.environ.get("WAREHOUSE_DATA_DIR", os.path.join("instance", "warehouse-data"))
    )

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",  # optional alternative location
        "sqlite:///" + os.path.join(WAREHOUSE_DATA_DIR, "warehouse.db"),
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    BACKUP_DIR = os.path.join(WAREHOUSE_DATA_DIR, "backups")
    EXPORT_DIR = os.path.join(WAREHOUSE_DATA_DIR, "exports")

    # Apply pending schema migrations before the first request is served
    AUTO_MIGRATE = _env_flag("AUTO_MIGRATE", True)

    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    SESSION_ABSOLUTE_TIMEOUT_HOURS = int(os.environ.get("SESSION_ABSOLUTE_TIMEOUT_HOURS", "24"))
    SESSION_IDLE_TIMEOUT_HOURS = int(os.environ.get("SESSION_IDLE_TIMEOUT_HOURS", "8"))

    # First-run administrator, created only when the users table is empty
    DEFAULT_ADMIN_USERNAME = os.environ.get("DEFAULT_ADMIN_USERNAME", "super")
    DEFAULT_ADMIN_PASSWORD = os.environ.get("DEFAULT_ADMIN_PASSWORD", "Password123!")
    DEFAULT_ADMIN_FULL_NAME = os.environ.get("DEFAULT_ADMIN_FULL_NAME", "مدير النظام")

    CORS_ALLOWED_ORIGINS = tuple(
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:3000,http://127.0.0.1:3000",
        ).split(",")
        if origin.strip()
    )
