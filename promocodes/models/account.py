"""Account model holding the discount eligibility flags."""

from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, String, func

from promocodes.core.database import Base
from promocodes.models.shared import UUIDType, generate_uuid


class SubscriptionTier(str, Enum):
    FREE = "free"
    BASIC = "basic"
    PREMIUM = "premium"


class Account(Base):
    """Account model.

    Owned by the account/subscription system; the redemption engine only reads
    the flags and sets ``discount_redeemed`` when a redemption commits.
    """

    __tablename__ = "accounts"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, index=True, nullable=False)
    discount_redeemed = Column(Boolean, nullable=False, default=False)
    suspended = Column(Boolean, nullable=False, default=False)
    subscription_tier = Column(String(20), nullable=False, default=SubscriptionTier.FREE.value)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
