"""create promotion codes table

Revision ID: b2d3f4a5c6e7
Revises: a1c2e3f4b5d6
Create Date: 2026-10-05 00:00:01.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "b2d3f4a5c6e7"
down_revision = "a1c2e3f4b5d6"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "promotion_codes",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("code", sa.String(length=255), nullable=False),
        sa.Column("discount_percentage", sa.Integer(), nullable=False),
        sa.Column("max_usage_count", sa.Integer(), nullable=True),
        sa.Column("current_usage_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("active", sa.Boolean(), nullable=False, server_default="1"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by_id", sa.String(length=36), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code"),
        sa.ForeignKeyConstraint(["created_by_id"], ["accounts.id"], ondelete="SET NULL"),
        sa.CheckConstraint(
            "discount_percentage >= 1 AND discount_percentage <= 100",
            name="ck_promotion_codes_discount_percentage",
        ),
        sa.CheckConstraint(
            "max_usage_count IS NULL OR max_usage_count > 0",
            name="ck_promotion_codes_max_usage_count",
        ),
        sa.CheckConstraint(
            "current_usage_count >= 0",
            name="ck_promotion_codes_current_usage_count",
        ),
        sa.CheckConstraint(
            "max_usage_count IS NULL OR current_usage_count <= max_usage_count",
            name="ck_promotion_codes_usage_within_limit",
        ),
    )
    op.create_index("ix_promotion_codes_code", "promotion_codes", ["code"])
    op.create_index("ix_promotion_codes_active", "promotion_codes", ["active"])


def downgrade() -> None:
    op.drop_index("ix_promotion_codes_active", table_name="promotion_codes")
    op.drop_index("ix_promotion_codes_code", table_name="promotion_codes")
    op.drop_table("promotion_codes")
