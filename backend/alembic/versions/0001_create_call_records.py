"""create call_records

Revision ID: 0001
Revises:
Create Date: 2025-04-22
"""

from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "call_records",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("caller_id", sa.String(length=20), nullable=False),
        sa.Column("recipient", sa.String(length=20), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("cost", sa.Numeric(10, 3), nullable=False),
        sa.Column("reference", sa.String(length=255), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("inserted", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("last_updated", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_call_records_caller_id", "call_records", ["caller_id"])
    op.create_index("ix_call_records_recipient", "call_records", ["recipient"])
    op.create_index("ix_call_records_start_time", "call_records", ["start_time"])
    op.create_index("ix_call_records_reference", "call_records", ["reference"])


def downgrade() -> None:
    op.drop_index("ix_call_records_reference", table_name="call_records")
    op.drop_index("ix_call_records_start_time", table_name="call_records")
    op.drop_index("ix_call_records_recipient", table_name="call_records")
    op.drop_index("ix_call_records_caller_id", table_name="call_records")
    op.drop_table("call_records")
