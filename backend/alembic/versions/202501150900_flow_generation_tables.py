"""Flow generation cache and usage log tables."""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "202501150900"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "flow_generation_cache",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("input_hash", sa.String(length=64), nullable=False),
        sa.Column("user_prompt", sa.Text(), nullable=True),
        sa.Column("model_used", sa.Text(), nullable=True),
        sa.Column("response_json", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index(
        "ix_flow_generation_cache_input_hash_created_at",
        "flow_generation_cache",
        ["input_hash", "created_at"],
        unique=False,
    )

    op.create_table(
        "flow_generation_logs",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column("flow_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("input_hash", sa.String(length=64), nullable=False),
        sa.Column("user_prompt_raw", sa.Text(), nullable=True),
        sa.Column("model_used", sa.Text(), nullable=True),
        sa.Column("tokens_in", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("tokens_out", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("cost_cents", sa.Numeric(12, 4), nullable=False, server_default=sa.text("0")),
        sa.Column("duration_ms", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("llm_status", sa.String(length=32), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_flow_generation_logs_user_id", "flow_generation_logs", ["user_id"], unique=False)
    op.create_index("ix_flow_generation_logs_input_hash", "flow_generation_logs", ["input_hash"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_flow_generation_logs_input_hash", table_name="flow_generation_logs")
    op.drop_index("ix_flow_generation_logs_user_id", table_name="flow_generation_logs")
    op.drop_table("flow_generation_logs")
    op.drop_index("ix_flow_generation_cache_input_hash_created_at", table_name="flow_generation_cache")
    op.drop_table("flow_generation_cache")
