"""add_photography_jobs

Revision ID: add_photography_jobs
Revises: normalize_product_status
Create Date: 2026-10-20 09:30:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "add_photography_jobs"
down_revision: Union[str, None] = "normalize_product_status"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "photography_jobs",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("location", sa.String(length=255), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("booking_id", sa.Uuid(), nullable=True),
        sa.Column("assignee_ids", sa.JSON(), nullable=False),
        sa.Column("assignee_names", sa.JSON(), nullable=False),
        sa.Column("requester_id", sa.String(length=128), nullable=False),
        sa.Column("requester_name", sa.String(length=255), nullable=False),
        sa.Column("is_manual_entry", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("status", sa.String(length=9), nullable=False),
        sa.Column("drive_link", sa.String(length=1000), nullable=True),
        sa.Column("cover_image", sa.String(length=1000), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.ForeignKeyConstraint(["booking_id"], ["bookings.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_photography_jobs_start_time"), "photography_jobs", ["start_time"])


def downgrade() -> None:
    op.drop_index(op.f("ix_photography_jobs_start_time"), table_name="photography_jobs")
    op.drop_table("photography_jobs")
