"""Administrative discount code statistics and maintenance endpoints."""

from dataclasses import asdict, fields
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from promocodes.core.database import get_db
from promocodes.routers.errors import failure_exception
from promocodes.schemas.redemption import RedemptionRecordResponse
from promocodes.schemas.report import (
    BulkValidateEntry,
    BulkValidateRequest,
    BulkValidateResponse,
    DeactivationSweepResponse,
    MonthlyUsageResponse,
    MostUsedCodeResponse,
    RemainingUsesProjectionResponse,
    TopCodeResponse,
    UsageReportPeriod,
    UsageReportResponse,
    UsageStatisticsResponse,
    UsageSummaryResponse,
    UsageTrendResponse,
)
from promocodes.services.redemption_coordinator import RedemptionCoordinator
from promocodes.services.reporting_service import ReportingService

router = APIRouter()


@router.get(
    "/summary",
    response_model=UsageSummaryResponse,
    summary="Discount code dashboard summary",
)
async def get_summary(db: Session = Depends(get_db)) -> UsageSummaryResponse:
    """Catalog-wide totals for the admin dashboard."""
    summary = ReportingService(db).usage_stats_summary()
    return UsageSummaryResponse(**asdict(summary))


@router.get(
    "/report",
    response_model=UsageReportResponse,
    summary="Discount code usage report",
    responses={422: {"description": "Start date must be before end date"}},
)
async def get_report(
    start: datetime = Query(..., description="Period start"),
    end: datetime = Query(..., description="Period end"),
    db: Session = Depends(get_db),
) -> UsageReportResponse:
    """Redemption totals, top codes and daily usage over a period."""
    result = ReportingService(db).generate_usage_report(start, end)
    if not result.ok:
        raise failure_exception(result.error)  # type: ignore[arg-type]

    report = result.value
    return UsageReportResponse(
        period=UsageReportPeriod(start_date=report.start_date, end_date=report.end_date),  # type: ignore[union-attr]
        total_codes=report.total_codes,  # type: ignore[union-attr]
        active_codes=report.active_codes,  # type: ignore[union-attr]
        total_usages=report.total_usages,  # type: ignore[union-attr]
        total_revenue_impact=report.total_revenue_impact,  # type: ignore[union-attr]
        top_codes=[TopCodeResponse(**asdict(row)) for row in report.top_codes],  # type: ignore[union-attr]
        usage_by_day=report.usage_by_day,  # type: ignore[union-attr]
    )


@router.get(
    "/top_revenue",
    response_model=list[TopCodeResponse],
    summary="Codes with the highest revenue impact",
)
async def get_top_revenue(
    limit: int | None = Query(default=None, ge=1, le=100),
    db: Session = Depends(get_db),
) -> list[TopCodeResponse]:
    """Codes ranked by total discount granted."""
    rows = ReportingService(db).highest_revenue_impact(limit=limit)
    return [TopCodeResponse(**asdict(row)) for row in rows]


@router.get(
    "/most_used",
    response_model=list[MostUsedCodeResponse],
    summary="Most used discount codes",
)
async def get_most_used(
    limit: int | None = Query(default=None, ge=1, le=100),
    db: Session = Depends(get_db),
) -> list[MostUsedCodeResponse]:
    snapshots = ReportingService(db).most_used_codes(limit=limit)
    return [
        MostUsedCodeResponse(
            code=snapshot.code,
            current_usage_count=snapshot.current_usage_count,
            max_usage_count=snapshot.max_usage_count,
            remaining_uses=snapshot.remaining_uses,
            active=snapshot.active,
        )
        for snapshot in snapshots
    ]


@router.post(
    "/bulk_validate",
    response_model=BulkValidateResponse,
    summary="Validate several discount codes",
)
async def bulk_validate(
    data: BulkValidateRequest,
    db: Session = Depends(get_db),
) -> BulkValidateResponse:
    """Validate a batch of codes; one entry per distinct normalized code."""
    results = RedemptionCoordinator(db).bulk_validate_codes(data.codes)
    return BulkValidateResponse(
        results={
            code: BulkValidateEntry(
                valid=result.ok,
                error=result.error.code.value if result.error else None,
                message=result.error.message if result.error else None,
            )
            for code, result in results.items()
        }
    )


@router.post(
    "/deactivate_expired",
    response_model=DeactivationSweepResponse,
    summary="Deactivate expired and exhausted discount codes",
)
async def deactivate_expired(db: Session = Depends(get_db)) -> DeactivationSweepResponse:
    """Run the deactivation sweep now."""
    count = ReportingService(db).deactivate_expired_or_exhausted()
    return DeactivationSweepResponse(deactivated_count=count)


@router.get(
    "/{code}/statistics",
    response_model=UsageStatisticsResponse,
    summary="Discount code usage statistics",
    responses={404: {"description": "Discount code not found"}},
)
async def get_statistics(code: str, db: Session = Depends(get_db)) -> UsageStatisticsResponse:
    """Usage, revenue impact and recent redemptions of a code."""
    result = ReportingService(db).get_usage_statistics(code)
    if not result.ok:
        raise failure_exception(result.error)  # type: ignore[arg-type]

    stats = result.value
    data = {f.name: getattr(stats, f.name) for f in fields(stats)}  # type: ignore[arg-type]
    data["recent_redemptions"] = [
        RedemptionRecordResponse.model_validate(record)
        for record in stats.recent_redemptions  # type: ignore[union-attr]
    ]
    return UsageStatisticsResponse(**data)


@router.get(
    "/{code}/projection",
    response_model=RemainingUsesProjectionResponse,
    summary="Remaining uses projection",
    responses={404: {"description": "Discount code not found"}},
)
async def get_projection(
    code: str,
    window_days: int | None = Query(default=None, ge=1, le=365),
    db: Session = Depends(get_db),
) -> RemainingUsesProjectionResponse:
    """Project when a code will run out at its recent redemption rate."""
    result = ReportingService(db).remaining_uses_projection(code, window_days=window_days)
    if not result.ok:
        raise failure_exception(result.error)  # type: ignore[arg-type]
    return RemainingUsesProjectionResponse(**asdict(result.value))  # type: ignore[arg-type]


@router.get(
    "/{code}/usage_by_month",
    response_model=MonthlyUsageResponse,
    summary="Monthly redemptions of a code",
    responses={404: {"description": "Discount code not found"}},
)
async def get_usage_by_month(code: str, db: Session = Depends(get_db)) -> MonthlyUsageResponse:
    """Redemptions in each of the last twelve months, oldest first."""
    result = ReportingService(db).usage_by_month(code)
    if not result.ok:
        raise failure_exception(result.error)  # type: ignore[arg-type]
    return MonthlyUsageResponse(**asdict(result.value))  # type: ignore[arg-type]


@router.get(
    "/{code}/usage_trend",
    response_model=UsageTrendResponse,
    summary="Recent usage trend of a code",
    responses={404: {"description": "Discount code not found"}},
)
async def get_usage_trend(
    code: str,
    window_days: int | None = Query(default=None, ge=1, le=365),
    db: Session = Depends(get_db),
) -> UsageTrendResponse:
    """Percent change in redemptions over the last window against the one before it."""
    result = ReportingService(db).recent_usage_trend(code, window_days=window_days)
    if not result.ok:
        raise failure_exception(result.error)  # type: ignore[arg-type]
    return UsageTrendResponse(**asdict(result.value))  # type: ignore[arg-type]
