"""Allow the assistant-admin role on users

Revision ID: 0002_assistant_admin
Revises: 0001_baseline
Create Date: 2025-07-14 10:30:00.000000

SQLite cannot alter a CHECK constraint in place, so the users table is
rebuilt under a temporary name, rows copied, and the new table swapped in.
Skipped when the constraint already accepts 'assistant-admin'.
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0002_assistant_admin"
down_revision = "0001_baseline"
branch_labels = None
depends_on = None


NOW = sa.text("(CURRENT_TIMESTAMP)")


def _users_columns(role_check: str):
    return [
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("username", sa.String(length=64), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=32), nullable=False, server_default="user"),
        sa.Column("full_name", sa.String(length=128), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=NOW),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=NOW),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(role_check, name=op.f("ck_users_role")),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_users")),
    ]


def _check_sql(inspector, table: str) -> str:
    return " ".join(ck.get("sqltext") or "" for ck in inspector.get_check_constraints(table))


def _rebuild_users(inspector, role_check: str):
    old_columns = {c["name"] for c in inspector.get_columns("users")}
    columns = _users_columns(role_check)
    shared = ", ".join(c.name for c in columns if isinstance(c, sa.Column) and c.name in old_columns)

    op.create_table("_users_rebuild", *columns, sqlite_autoincrement=True)
    op.execute(f"INSERT INTO _users_rebuild ({shared}) SELECT {shared} FROM users")
    op.drop_table("users")
    op.rename_table("_users_rebuild", "users")
    op.create_index("ix_users_username", "users", ["username"], unique=True)


def upgrade():
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not inspector.has_table("users"):
        return
    if "assistant-admin" in _check_sql(inspector, "users"):
        return

    _rebuild_users(inspector, "role IN ('admin', 'assistant-admin', 'user')")


def downgrade():
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    if not inspector.has_table("users"):
        return
    op.execute("UPDATE users SET role = 'user' WHERE role = 'assistant-admin'")
    _rebuild_users(inspector, "role IN ('admin', 'user')")
