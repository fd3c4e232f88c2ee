"""Create drum, drum_usage and setting tables

Revision ID: 20260105_create_drum_tables
Revises:
Create Date: 2026-01-05
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20260105_create_drum_tables"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "drum",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("drum_number", sa.String(), nullable=False),
        sa.Column("item_name", sa.String(), nullable=True),
        sa.Column("initial_quantity", sa.Float(), nullable=False),
        sa.Column("current_quantity", sa.Float(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="active"),
        sa.Column("calculation_method", sa.String(), nullable=False, server_default="smart_segments"),
        sa.Column("manual_wastage_override", sa.Float(), nullable=True),
        sa.Column("received_date", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_drum_drum_number", "drum", ["drum_number"], unique=True)

    op.create_table(
        "drum_usage",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("drum_id", sa.String(), sa.ForeignKey("drum.id"), nullable=False),
        sa.Column("start_point", sa.Float(), nullable=True),
        sa.Column("end_point", sa.Float(), nullable=True),
        sa.Column("usage_date", sa.DateTime(), nullable=True),
        sa.Column("quantity_used", sa.Float(), nullable=True),
        sa.Column("line_reference", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_drum_usage_drum_id", "drum_usage", ["drum_id"])

    op.create_table(
        "setting",
        sa.Column("key", sa.String(), primary_key=True),
        sa.Column("value", sa.String(), nullable=True),
    )

    # remove defaults after creation
    with op.batch_alter_table("drum") as batch_op:
        batch_op.alter_column("status", server_default=None)
        batch_op.alter_column("calculation_method", server_default=None)


def downgrade():
    op.drop_table("setting")
    op.drop_index("ix_drum_usage_drum_id", table_name="drum_usage")
    op.drop_table("drum_usage")
    op.drop_index("ix_drum_drum_number", table_name="drum")
    op.drop_table("drum")
