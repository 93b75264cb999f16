"""Reporting and statistics schemas."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from promocodes.schemas.redemption import RedemptionRecordResponse


class UsageStatisticsResponse(BaseModel):
    code: str
    total_uses: int
    max_uses: int | None = None
    remaining_uses: int | None = None
    usage_percentage: Decimal
    revenue_impact: int
    average_discount_amount: int
    total_original_amount: int
    active: bool
    expired: bool
    created_at: datetime | None = None
    expires_at: datetime | None = None
    recent_redemptions: list[RedemptionRecordResponse] = []


class TopCodeResponse(BaseModel):
    code: str
    uses: int
    revenue_impact: int


class UsageReportPeriod(BaseModel):
    start_date: datetime
    end_date: datetime


class UsageReportResponse(BaseModel):
    period: UsageReportPeriod
    total_codes: int
    active_codes: int
    total_usages: int
    total_revenue_impact: int
    top_codes: list[TopCodeResponse] = []
    usage_by_day: dict[date, int] = {}


class UsageSummaryResponse(BaseModel):
    total_codes: int
    active_codes: int
    expired_codes: int
    total_usage: int
    total_revenue_impact: int
    average_discount_percentage: Decimal


class RemainingUsesProjectionResponse(BaseModel):
    code: str
    remaining_uses: int | None = None
    window_days: int
    daily_rate: Decimal
    projected_exhaustion_at: datetime | None = None


class BulkValidateRequest(BaseModel):
    codes: list[str] = Field(max_length=500)


class BulkValidateEntry(BaseModel):
    valid: bool
    error: str | None = None
    message: str | None = None


class BulkValidateResponse(BaseModel):
    results: dict[str, BulkValidateEntry]


class DeactivationSweepResponse(BaseModel):
    deactivated_count: int


class MostUsedCodeResponse(BaseModel):
    code: str
    current_usage_count: int
    max_usage_count: int | None = None
    remaining_uses: int | None = None
    active: bool


class MonthlyUsageResponse(BaseModel):
    code: str
    usage_by_month: dict[str, int]


class UsageTrendResponse(BaseModel):
    code: str
    window_days: int
    current_period_uses: int
    previous_period_uses: int
    percent_change: Decimal
