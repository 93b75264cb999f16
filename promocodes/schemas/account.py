"""Account schemas."""

from pydantic import BaseModel, Field

from promocodes.models.account import SubscriptionTier


class AccountCreate(BaseModel):
    email: str = Field(max_length=255)
    discount_redeemed: bool = False
    suspended: bool = False
    subscription_tier: SubscriptionTier = SubscriptionTier.FREE


class EligibilityResponse(BaseModel):
    eligible: bool
    reasons: list[str] = []
