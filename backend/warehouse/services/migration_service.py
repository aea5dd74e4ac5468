# Overview: Service-layer wrapper around Alembic; applies pending schema revisions and reports them.

"""
Migration Service

WHY: The app must be able to open a database written by any earlier
release and bring it to the current schema before serving queries.

DESIGN:
- Revisions live in warehouse/migrations/versions as an ordered chain.
- Alembic's alembic_version table records what has been applied, so a
  revision runs once per database. Each revision also guards its own
  steps by inspecting the live schema, so re-running is harmless.
- A database created directly from the models (no alembic_version, but
  already holding the newest tables) is stamped at head instead of
  replaying the legacy data conversions against current data.
"""

from __future__ import annotations

from alembic import command
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from flask import current_app
import sqlalchemy as sa

from ..extensions import db


# Table that only exists once the newest revision has been applied
HEAD_MARKER_TABLE = "session_tokens"


def _alembic_config():
    return current_app.extensions["migrate"].migrate.get_config()


def get_current_revision() -> str | None:
    with db.engine.connect() as connection:
        return MigrationContext.configure(connection).get_current_revision()


def get_pending_revisions() -> list:
    """Scripts not yet applied, oldest first."""
    script = ScriptDirectory.from_config(_alembic_config())
    current = get_current_revision()
    pending = list(script.iterate_revisions("heads", current or "base"))
    pending.reverse()
    return pending


def _is_unversioned_current_schema() -> bool:
    inspector = sa.inspect(db.engine)
    return not inspector.has_table("alembic_version") and inspector.has_table(HEAD_MARKER_TABLE)


def apply_migrations() -> dict:
    """
    Upgrade the database to the newest revision.

    Returns {"success": True, "changes": [...], "alreadyMigrated": bool}
    where changes describes each revision applied by this call.
    """
    config = _alembic_config()

    if _is_unversioned_current_schema():
        command.stamp(config, "head")
        current_app.logger.info("Schema already current; stamped alembic_version at head")
        return {
            "success": True,
            "message": "قاعدة البيانات محدثة بالفعل",
            "changes": [],
            "alreadyMigrated": True,
        }

    pending = get_pending_revisions()
    if not pending:
        return {
            "success": True,
            "message": "قاعدة البيانات محدثة بالفعل",
            "changes": [],
            "alreadyMigrated": True,
        }

    # Release pooled session connections before Alembic takes its own
    db.session.remove()
    command.upgrade(config, "head")

    changes = [f"{script.revision}: {script.doc}" for script in pending]
    for change in changes:
        current_app.logger.info("Applied migration %s", change)

    return {
        "success": True,
        "message": f"تم تطبيق {len(changes)} تحديث على قاعدة البيانات",
        "changes": changes,
        "alreadyMigrated": False,
    }
