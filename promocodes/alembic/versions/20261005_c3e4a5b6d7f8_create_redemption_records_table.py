"""create redemption records table

Revision ID: c3e4a5b6d7f8
Revises: b2d3f4a5c6e7
Create Date: 2026-10-05 00:00:02.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "c3e4a5b6d7f8"
down_revision = "b2d3f4a5c6e7"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "redemption_records",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("promotion_code_id", sa.String(length=36), nullable=False),
        sa.Column("account_id", sa.String(length=36), nullable=False),
        sa.Column("transaction_id", sa.String(length=255), nullable=False),
        sa.Column("discount_percentage", sa.Integer(), nullable=False),
        sa.Column("original_amount", sa.Integer(), nullable=False),
        sa.Column("discount_amount", sa.Integer(), nullable=False),
        sa.Column("final_amount", sa.Integer(), nullable=False),
        sa.Column(
            "redeemed_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["promotion_code_id"], ["promotion_codes.id"], ondelete="RESTRICT"
        ),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"], ondelete="RESTRICT"),
        sa.UniqueConstraint("account_id", name="uq_redemption_records_account_id"),
        sa.UniqueConstraint("transaction_id", name="uq_redemption_records_transaction_id"),
        sa.CheckConstraint("original_amount >= 0", name="ck_redemption_records_original_amount"),
        sa.CheckConstraint("discount_amount >= 0", name="ck_redemption_records_discount_amount"),
        sa.CheckConstraint("final_amount >= 0", name="ck_redemption_records_final_amount"),
        sa.CheckConstraint(
            "discount_amount + final_amount = original_amount",
            name="ck_redemption_records_amounts_balance",
        ),
    )
    op.create_index(
        "ix_redemption_records_promotion_code_id", "redemption_records", ["promotion_code_id"]
    )
    op.create_index("ix_redemption_records_redeemed_at", "redemption_records", ["redeemed_at"])


def downgrade() -> None:
    op.drop_index("ix_redemption_records_redeemed_at", table_name="redemption_records")
    op.drop_index("ix_redemption_records_promotion_code_id", table_name="redemption_records")
    op.drop_table("redemption_records")
