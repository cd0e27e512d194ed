"""create content_sources, content_generations, generated_content

Revision ID: 003
Revises: 002
Create Date: 2026-09-15

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "content_sources",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("account_id", sa.String(36), sa.ForeignKey("accounts.id"), nullable=False, index=True),
        sa.Column("title", sa.String(255), nullable=False, server_default=""),
        sa.Column("original_filename", sa.String(255), nullable=True),
        sa.Column("transcript_text", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_table(
        "content_generations",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("content_source_id", sa.String(36), sa.ForeignKey("content_sources.id"), nullable=False, index=True),
        sa.Column("account_id", sa.String(36), sa.ForeignKey("accounts.id"), nullable=False, index=True),
        sa.Column("selected_types", sa.JSON(), nullable=False),
        sa.Column("tone_override", sa.String(20), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="processing"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now(), index=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
    )
    op.create_table(
        "generated_content",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("generation_id", sa.String(36), sa.ForeignKey("content_generations.id"), nullable=False, index=True),
        sa.Column("content_source_id", sa.String(36), sa.ForeignKey("content_sources.id"), nullable=False, index=True),
        sa.Column("account_id", sa.String(36), sa.ForeignKey("accounts.id"), nullable=False, index=True),
        sa.Column("content_type", sa.String(32), nullable=False, index=True),
        sa.Column("content_text", sa.Text(), nullable=False),
        sa.Column("content_metadata", sa.JSON(), nullable=True),
        sa.Column("revision_of", sa.String(36), sa.ForeignKey("generated_content.id"), nullable=True, index=True),
        sa.Column("revision_number", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_archived", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("archived_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        # Two revisions of one lineage can never share a number
        sa.UniqueConstraint("revision_of", "revision_number", name="uq_generated_content_lineage_revision"),
    )


def downgrade() -> None:
    op.drop_table("generated_content")
    op.drop_table("content_generations")
    op.drop_table("content_sources")
