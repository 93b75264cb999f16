"""PromotionCode schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from promocodes.models.promotion_code import normalize_code
from promocodes.models.shared import as_utc


class PromotionCodeCreate(BaseModel):
    code: str = Field(min_length=1, max_length=255)
    discount_percentage: int = Field(ge=1, le=100)
    max_usage_count: int | None = Field(default=None, gt=0)
    expires_at: datetime | None = None
    active: bool = True
    created_by_id: UUID | None = None

    @field_validator("code")
    @classmethod
    def _normalize(cls, value: str) -> str:
        normalized = normalize_code(value)
        if not normalized:
            raise ValueError("code cannot be blank")
        return normalized

    @field_validator("expires_at")
    @classmethod
    def _expires_at_utc(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)


class PromotionCodeUpdate(BaseModel):
    discount_percentage: int | None = Field(default=None, ge=1, le=100)
    max_usage_count: int | None = Field(default=None, gt=0)
    expires_at: datetime | None = None
    active: bool | None = None

    @field_validator("expires_at")
    @classmethod
    def _expires_at_utc(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)


class ValidateCodeRequest(BaseModel):
    code: str = Field(max_length=255)
    original_amount: int | None = Field(default=None, ge=0)


class ApplyDiscountRequest(BaseModel):
    code: str = Field(max_length=255)
    original_amount: int


class DiscountResultResponse(BaseModel):
    original_amount: int
    discount_amount: int
    final_amount: int
    percentage: int
    savings_percentage: Decimal


class ValidateCodeResponse(BaseModel):
    valid: bool
    code: str
    discount_percentage: int
    pricing: DiscountResultResponse | None = None


class AvailabilityResponse(BaseModel):
    code: str
    active: bool
    expired: bool
    usage_limit_reached: bool
    available: bool
    discount_percentage: int
    remaining_uses: int | None = None
    expires_at: datetime | None = None

