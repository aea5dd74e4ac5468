# Overview: Transaction helpers shared by the multi-statement write workflows.

from __future__ import annotations

from sqlalchemy import text

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def begin_write_transaction() -> None:
    """
    Take the database write lock before reading rows that will be updated.

    On SQLite this issues BEGIN IMMEDIATE so a second writer waits (up to the
    driver's busy timeout) instead of reading the same pre-update stock.
    Other dialects rely on lock_for_update at row level.

    Must be called with no pending writes in the session.
    """
    if db.engine.dialect.name == "sqlite":
        db.session.execute(text("BEGIN IMMEDIATE"))
