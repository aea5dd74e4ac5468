"""Server-side session tokens

Revision ID: 0006_session_tokens
Revises: 0005_fixed_discounts
Create Date: 2025-11-20 13:40:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0006_session_tokens"
down_revision = "0005_fixed_discounts"
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not inspector.has_table("session_tokens"):
        op.create_table(
            "session_tokens",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("user_id", sa.Integer(), nullable=False),
            sa.Column("token_hash", sa.String(length=64), nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("is_revoked", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("revoked_reason", sa.String(length=128), nullable=True),
            sa.Column("ip_address", sa.String(length=45), nullable=True),
            sa.Column("user_agent", sa.String(length=512), nullable=True),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"], name=op.f("fk_session_tokens_user_id_users")),
            sa.PrimaryKeyConstraint("id", name=op.f("pk_session_tokens")),
            sa.UniqueConstraint("token_hash", name=op.f("uq_session_tokens_token_hash")),
            sqlite_autoincrement=True,
        )

    inspector = sa.inspect(bind)
    indexes = {ix["name"] for ix in inspector.get_indexes("session_tokens")}
    with op.batch_alter_table("session_tokens", schema=None) as batch_op:
        if "ix_session_tokens_user_id" not in indexes:
            batch_op.create_index("ix_session_tokens_user_id", ["user_id"], unique=False)
        if "ix_session_tokens_user_revoked" not in indexes:
            batch_op.create_index("ix_session_tokens_user_revoked", ["user_id", "is_revoked"], unique=False)


def downgrade():
    # Safety: only drop if present.
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    if inspector.has_table("session_tokens"):
        op.drop_table("session_tokens")
