"""Redemption ledger and checkout event schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class RedemptionRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    promotion_code_id: UUID
    account_id: UUID
    transaction_id: str
    discount_percentage: int
    original_amount: int
    discount_amount: int
    final_amount: int
    redeemed_at: datetime


class CheckoutCompletedEvent(BaseModel):
    """Checkout completion reported by the payment gateway."""

    account_id: UUID
    transaction_id: str = Field(min_length=1, max_length=255)
    applied_code: str | None = Field(default=None, max_length=255)
    original_amount: int = Field(ge=0)
    discount_amount: int = Field(default=0, ge=0)
    final_amount: int = Field(ge=0)


class CheckoutOutcomeResponse(BaseModel):
    status: str
    record: RedemptionRecordResponse | None = None
    error: str | None = None
    message: str | None = None
