# Overview: Service-layer operations for maintenance; backups, JSON export, database info and data reset.

from __future__ import annotations

import json
import os
import sqlite3

from flask import current_app

from ..extensions import db
from ..models import (
    Product, Category, Subcategory, Sale, Return,
    DebtCustomer, Debt, DebtPayment, User, SessionToken,
)
from warehouse.time_utils import timestamp_slug, to_utc_z, utcnow


# Deletion order respects foreign keys (children first)
CLEARABLE_MODELS = (Return, DebtPayment, Debt, Sale, Product, Subcategory, Category)

COUNTED_MODELS = {
    "products": Product,
    "categories": Category,
    "subcategories": Subcategory,
    "sales": Sale,
    "returns": Return,
    "debt_customers": DebtCustomer,
    "debts": Debt,
    "debt_payments": DebtPayment,
    "users": User,
    "session_tokens": SessionToken,
}


class MaintenanceError(Exception):
    """Raised when a maintenance operation cannot run in this deployment."""


def ensure_data_directories() -> dict:
    """Create the data, backup and export directories if missing."""
    config = current_app.config
    paths = {
        "dataDir": config["WAREHOUSE_DATA_DIR"],
        "backupDir": config["BACKUP_DIR"],
        "exportDir": config["EXPORT_DIR"],
    }
    for path in paths.values():
        os.makedirs(path, exist_ok=True)
    return paths


def get_database_path() -> str | None:
    """Filesystem path of the SQLite database, None for in-memory or non-SQLite."""
    url = db.engine.url
    if url.get_backend_name() != "sqlite":
        return None
    if not url.database or url.database == ":memory:":
        return None
    return os.path.abspath(url.database)


def create_backup() -> dict:
    """
    Copy the live SQLite database into BACKUP_DIR.

    Uses SQLite's online backup API so a consistent snapshot is taken even
    while the app holds open connections.
    """
    db_path = get_database_path()
    if db_path is None:
        raise MaintenanceError("Backups are only supported for file-based SQLite databases")

    backup_dir = ensure_data_directories()["backupDir"]
    filename = f"warehouse-backup-{timestamp_slug()}.db"
    target_path = os.path.join(backup_dir, filename)

    source = db.engine.raw_connection()
    try:
        target = sqlite3.connect(target_path)
        try:
            source.driver_connection.backup(target)
        finally:
            target.close()
    finally:
        source.close()

    size = os.path.getsize(target_path)
    current_app.logger.info("Database backup written to %s (%d bytes)", target_path, size)
    return {"success": True, "path": target_path, "filename": filename, "size": size}


def build_export_payload() -> dict:
    return {
        "products": [p.to_dict() for p in db.session.query(Product).order_by(Product.id).all()],
        "categories": [c.to_dict() for c in db.session.query(Category).order_by(Category.id).all()],
        "sales": [s.to_dict(include_product=False) for s in db.session.query(Sale).order_by(Sale.id).all()],
        "exportDate": to_utc_z(utcnow()),
    }


def export_data() -> dict:
    """Write {products, categories, sales, exportDate} as JSON into EXPORT_DIR."""
    export_dir = ensure_data_directories()["exportDir"]
    payload = build_export_payload()

    filename = f"warehouse-export-{timestamp_slug()}.json"
    target_path = os.path.join(export_dir, filename)
    with open(target_path, "w", encoding="utf-8") as fh:
        json.dump(payload, fh, ensure_ascii=False, indent=2)

    current_app.logger.info(
        "Exported %d products, %d categories, %d sales to %s",
        len(payload["products"]), len(payload["categories"]), len(payload["sales"]), target_path,
    )
    return {
        "success": True,
        "path": target_path,
        "filename": filename,
        "counts": {key: len(payload[key]) for key in ("products", "categories", "sales")},
    }


def get_database_info() -> dict:
    db_path = get_database_path()
    size = os.path.getsize(db_path) if db_path and os.path.exists(db_path) else None
    return {
        "dialect": db.engine.dialect.name,
        "path": db_path,
        "size": size,
        "tables": {name: db.session.query(model).count() for name, model in COUNTED_MODELS.items()},
    }


def clear_data() -> dict:
    """
    Delete all business data. Users, sessions and debt customers are kept.

    Returns per-table deleted counts.
    """
    deleted = {}
    try:
        for model in CLEARABLE_MODELS:
            deleted[model.__tablename__] = db.session.query(model).delete(synchronize_session=False)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info("Cleared business data: %s", deleted)
    return {"success": True, "deleted": deleted}
