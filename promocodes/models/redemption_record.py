"""RedemptionRecord model: the append-only redemption ledger."""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, func

from promocodes.core.database import Base
from promocodes.models.shared import UUIDType, generate_uuid


class RedemptionRecord(Base):
    """One row per successful redemption. Never updated or deleted.

    ``account_id`` is unique: an account redeems at most one code in its lifetime.
    ``transaction_id`` is unique so gateway retries resolve to the same row.
    """

    __tablename__ = "redemption_records"
    __table_args__ = (
        CheckConstraint("original_amount >= 0", name="ck_redemption_records_original_amount"),
        CheckConstraint("discount_amount >= 0", name="ck_redemption_records_discount_amount"),
        CheckConstraint("final_amount >= 0", name="ck_redemption_records_final_amount"),
        CheckConstraint(
            "discount_amount + final_amount = original_amount",
            name="ck_redemption_records_amounts_balance",
        ),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    promotion_code_id = Column(
        UUIDType,
        ForeignKey("promotion_codes.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    account_id = Column(
        UUIDType,
        ForeignKey("accounts.id", ondelete="RESTRICT"),
        nullable=False,
        unique=True,
    )
    transaction_id = Column(String(255), nullable=False, unique=True)

    discount_percentage = Column(Integer, nullable=False)
    original_amount = Column(Integer, nullable=False)
    discount_amount = Column(Integer, nullable=False)
    final_amount = Column(Integer, nullable=False)

    redeemed_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), index=True)
