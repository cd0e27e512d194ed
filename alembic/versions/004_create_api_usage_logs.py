"""create api_usage_logs (append-only call log for quotas and cost)

Revision ID: 004
Revises: 003
Create Date: 2026-09-15

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "api_usage_logs",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("account_id", sa.String(36), sa.ForeignKey("accounts.id"), nullable=False, index=True),
        sa.Column("generation_id", sa.String(36), sa.ForeignKey("content_generations.id"), nullable=True, index=True),
        sa.Column("model", sa.String(100), nullable=False),
        sa.Column("operation", sa.String(64), nullable=False, server_default="unknown"),
        sa.Column("content_type", sa.String(32), nullable=True),
        sa.Column("input_tokens", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("output_tokens", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("cache_creation_input_tokens", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("cache_read_input_tokens", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("estimated_cost", sa.Numeric(18, 10), nullable=False, server_default="0"),
        sa.Column("request_time_ms", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(16), nullable=False, server_default="success"),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    # Quota windows count per account by created_at
    op.create_index(
        "ix_api_usage_logs_account_created",
        "api_usage_logs",
        ["account_id", "created_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_api_usage_logs_account_created", table_name="api_usage_logs")
    op.drop_table("api_usage_logs")
