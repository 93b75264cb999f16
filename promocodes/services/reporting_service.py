"""Read-only redemption statistics and the deactivation sweep."""

import logging
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from promocodes.core.config import settings
from promocodes.models.promotion_code import CodeSnapshot
from promocodes.models.redemption_record import RedemptionRecord
from promocodes.models.shared import as_utc, utc_now
from promocodes.repositories.promotion_code_repository import PromotionCodeRepository
from promocodes.repositories.redemption_repository import CodeUsage, RedemptionRepository
from promocodes.services.audit_service import AuditService
from promocodes.services.results import (
    CODE_NOT_FOUND_MESSAGE,
    ErrorCode,
    Result,
    StorageError,
)

logger = logging.getLogger(__name__)

ONE_DECIMAL = Decimal("0.1")
TWO_DECIMALS = Decimal("0.01")
USAGE_MONTHS = 12
TREND_WINDOW_DAYS = 30


@dataclass
class UsageStatistics:
    code: str
    total_uses: int
    max_uses: int | None
    remaining_uses: int | None
    usage_percentage: Decimal
    revenue_impact: int
    average_discount_amount: int
    total_original_amount: int
    active: bool
    expired: bool
    created_at: datetime | None
    expires_at: datetime | None
    recent_redemptions: list[RedemptionRecord] = field(default_factory=list)


@dataclass
class UsageReport:
    start_date: datetime
    end_date: datetime
    total_codes: int
    active_codes: int
    total_usages: int
    total_revenue_impact: int
    top_codes: list[CodeUsage] = field(default_factory=list)
    usage_by_day: dict[date, int] = field(default_factory=dict)


@dataclass
class UsageSummary:
    total_codes: int
    active_codes: int
    expired_codes: int
    total_usage: int
    total_revenue_impact: int
    average_discount_percentage: Decimal


@dataclass
class RemainingUsesProjection:
    code: str
    remaining_uses: int | None
    window_days: int
    daily_rate: Decimal
    projected_exhaustion_at: datetime | None


@dataclass
class MonthlyUsage:
    code: str
    usage_by_month: dict[str, int]


@dataclass
class UsageTrend:
    code: str
    window_days: int
    current_period_uses: int
    previous_period_uses: int
    percent_change: Decimal


def _percentage(part: int, whole: int) -> Decimal:
    return (Decimal(part) / Decimal(whole) * 100).quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP)


def _recent_months(now: datetime, count: int) -> list[tuple[int, int]]:
    """(year, month) pairs ending with the month of ``now``, oldest first."""
    current = now.year * 12 + now.month - 1
    return [
        (year, month + 1)
        for year, month in (divmod(index, 12) for index in range(current - count + 1, current + 1))
    ]


class ReportingService:
    """Aggregates over the catalog and ledger for dashboards."""

    def __init__(self, db: Session):
        self.db = db
        self.catalog = PromotionCodeRepository(db)
        self.ledger = RedemptionRepository(db)
        self.audit = AuditService(db)

    def total_redemptions(self, start: datetime | None = None, end: datetime | None = None) -> int:
        return self.ledger.count(start=start, end=end)

    def revenue_impact(self, start: datetime | None = None, end: datetime | None = None) -> int:
        """Total discount granted over a period, in minor units."""
        return self.ledger.sum_discount(start=start, end=end)

    def top_codes(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int | None = None,
    ) -> list[CodeUsage]:
        return self.ledger.top_codes(start=start, end=end, limit=limit or settings.TOP_CODES_LIMIT)

    def highest_revenue_impact(self, limit: int | None = None) -> list[CodeUsage]:
        """Codes ranked by total discount granted. Codes never redeemed are left out."""
        return self.ledger.top_codes(limit=limit or settings.TOP_CODES_LIMIT, by_revenue=True)

    def most_used_codes(self, limit: int | None = None) -> list[CodeSnapshot]:
        return [
            CodeSnapshot.from_model(promotion_code)
            for promotion_code in self.catalog.most_used(limit=limit or settings.TOP_CODES_LIMIT)
        ]

    def usage_by_month(self, code: str, now: datetime | None = None) -> Result[MonthlyUsage]:
        """Redemptions of a code in each of the last twelve calendar months (UTC).

        Keys are ``YYYY-MM``, oldest first, and months without redemptions are
        reported as zero.
        """
        snapshot = self.catalog.get_snapshot(code)
        if snapshot is None:
            return Result.failure(ErrorCode.CODE_NOT_FOUND, CODE_NOT_FOUND_MESSAGE)

        now = as_utc(now) or utc_now()
        months = _recent_months(now, USAGE_MONTHS)
        first_year, first_month = months[0]
        counts = self.ledger.monthly_counts(
            datetime(first_year, first_month, 1, tzinfo=UTC), now, promotion_code_id=snapshot.id
        )
        return Result.success(
            MonthlyUsage(
                code=snapshot.code,
                usage_by_month={
                    f"{year:04d}-{month:02d}": counts.get(f"{year:04d}-{month:02d}", 0)
                    for year, month in months
                },
            )
        )

    def recent_usage_trend(
        self,
        code: str,
        window_days: int | None = None,
        now: datetime | None = None,
    ) -> Result[UsageTrend]:
        """Percent change in redemptions over the last window against the one before it.

        The change is zero when the earlier window had no redemptions.
        """
        snapshot = self.catalog.get_snapshot(code)
        if snapshot is None:
            return Result.failure(ErrorCode.CODE_NOT_FOUND, CODE_NOT_FOUND_MESSAGE)

        window_days = window_days or TREND_WINDOW_DAYS
        now = as_utc(now) or utc_now()
        boundary = now - timedelta(days=window_days)
        current = self.ledger.count(start=boundary, end=now, promotion_code_id=snapshot.id)
        # Bounds are inclusive; keep a redemption at the boundary out of the earlier window.
        previous = self.ledger.count(
            start=boundary - timedelta(days=window_days),
            end=boundary - timedelta(microseconds=1),
            promotion_code_id=snapshot.id,
        )

        return Result.success(
            UsageTrend(
                code=snapshot.code,
                window_days=window_days,
                current_period_uses=current,
                previous_period_uses=previous,
                percent_change=_percentage(current - previous, previous) if previous else Decimal("0"),
            )
        )

    def get_usage_statistics(self, code: str) -> Result[UsageStatistics]:
        promotion_code = self.catalog.get_by_code(code)
        if promotion_code is None:
            return Result.failure(ErrorCode.CODE_NOT_FOUND, CODE_NOT_FOUND_MESSAGE)

        snapshot = CodeSnapshot.from_model(promotion_code)
        revenue = self.ledger.sum_discount(promotion_code_id=snapshot.id)
        if snapshot.max_usage_count is None:
            usage_percentage = Decimal("0")
        else:
            usage_percentage = _percentage(snapshot.current_usage_count, snapshot.max_usage_count)

        return Result.success(
            UsageStatistics(
                code=snapshot.code,
                total_uses=snapshot.current_usage_count,
                max_uses=snapshot.max_usage_count,
                remaining_uses=snapshot.remaining_uses,
                usage_percentage=usage_percentage,
                revenue_impact=revenue,
                average_discount_amount=(
                    revenue // snapshot.current_usage_count if snapshot.current_usage_count else 0
                ),
                total_original_amount=self.ledger.sum_original(promotion_code_id=snapshot.id),
                active=snapshot.active,
                expired=snapshot.is_expired(),
                created_at=snapshot.created_at,
                expires_at=snapshot.expires_at,
                recent_redemptions=self.ledger.recent_by_code(
                    snapshot.id, limit=settings.RECENT_REDEMPTIONS_LIMIT
                ),
            )
        )

    def remaining_uses_projection(
        self,
        code: str,
        window_days: int | None = None,
        now: datetime | None = None,
    ) -> Result[RemainingUsesProjection]:
        """Project when a code runs out from its redemption rate over a recent window."""
        snapshot = self.catalog.get_snapshot(code)
        if snapshot is None:
            return Result.failure(ErrorCode.CODE_NOT_FOUND, CODE_NOT_FOUND_MESSAGE)

        window_days = window_days or settings.PROJECTION_WINDOW_DAYS
        now = now or utc_now()
        recent = self.ledger.count(
            start=now - timedelta(days=window_days), end=now, promotion_code_id=snapshot.id
        )
        daily_rate = (Decimal(recent) / Decimal(window_days)).quantize(
            TWO_DECIMALS, rounding=ROUND_HALF_UP
        )

        remaining = snapshot.remaining_uses
        projected: datetime | None = None
        if remaining == 0:
            projected = now
        elif remaining is not None and recent > 0:
            projected = now + timedelta(days=remaining * window_days / recent)

        return Result.success(
            RemainingUsesProjection(
                code=snapshot.code,
                remaining_uses=remaining,
                window_days=window_days,
                daily_rate=daily_rate,
                projected_exhaustion_at=projected,
            )
        )

    def generate_usage_report(self, start: datetime, end: datetime) -> Result[UsageReport]:
        start, end = as_utc(start), as_utc(end)  # type: ignore[assignment]
        if start >= end:
            return Result.failure(
                ErrorCode.VALIDATION_INPUT, "Start date must be before end date"
            )

        return Result.success(
            UsageReport(
                start_date=start,
                end_date=end,
                total_codes=self.catalog.count(),
                active_codes=self.catalog.count(active=True),
                total_usages=self.ledger.count(start=start, end=end),
                total_revenue_impact=self.ledger.sum_discount(start=start, end=end),
                top_codes=self.top_codes(start=start, end=end),
                usage_by_day=self.ledger.daily_counts(start, end),
            )
        )

    def usage_stats_summary(self) -> UsageSummary:
        return UsageSummary(
            total_codes=self.catalog.count(),
            active_codes=self.catalog.count(active=True),
            expired_codes=self.catalog.count_expired(),
            total_usage=self.catalog.total_usage(),
            total_revenue_impact=self.ledger.sum_discount(),
            average_discount_percentage=Decimal(
                str(self.catalog.average_discount_percentage())
            ).quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP),
        )

    def deactivate_expired_or_exhausted(self, now: datetime | None = None) -> int:
        """Deactivate every active code that is expired or has reached its limit.

        Safe to run repeatedly: already inactive codes are not touched.

        Raises:
            StorageError: If the durable store fails.
        """
        try:
            expired_count = self.catalog.deactivate_expired(now)
            exhausted_count = self.catalog.deactivate_exhausted()
            if expired_count or exhausted_count:
                self.audit.log_sweep(expired_count, exhausted_count, commit=False)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Discount code deactivation sweep failed")
            raise StorageError(f"Deactivation sweep failed: {exc}") from exc

        if expired_count:
            logger.info("Deactivated %d expired discount codes", expired_count)
        if exhausted_count:
            logger.info("Deactivated %d exhausted discount codes", exhausted_count)
        return expired_count + exhausted_count
