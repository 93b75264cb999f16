"""Discount code preview endpoints used before checkout. None of these write."""

from dataclasses import asdict
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from promocodes.core.database import get_db
from promocodes.repositories.account_repository import AccountRepository
from promocodes.routers.errors import failure_exception
from promocodes.schemas.account import EligibilityResponse
from promocodes.schemas.promotion_code import (
    ApplyDiscountRequest,
    AvailabilityResponse,
    DiscountResultResponse,
    ValidateCodeRequest,
    ValidateCodeResponse,
)
from promocodes.services.redemption_coordinator import RedemptionCoordinator

router = APIRouter()
accounts_router = APIRouter()


@router.post(
    "/validate",
    response_model=ValidateCodeResponse,
    summary="Validate discount code",
    responses={
        404: {"description": "Discount code not found"},
        422: {"description": "Discount code cannot be used"},
    },
)
async def validate_code(
    data: ValidateCodeRequest,
    db: Session = Depends(get_db),
) -> ValidateCodeResponse:
    """Validate a code and optionally price it against an amount."""
    coordinator = RedemptionCoordinator(db)
    result = coordinator.validate_code(data.code)
    if not result.ok:
        raise failure_exception(result.error)  # type: ignore[arg-type]

    snapshot = result.value
    pricing = None
    if data.original_amount is not None:
        calculation = coordinator.apply_discount(snapshot, data.original_amount)  # type: ignore[arg-type]
        if not calculation.ok:
            raise failure_exception(calculation.error)  # type: ignore[arg-type]
        pricing = DiscountResultResponse(**asdict(calculation.value))  # type: ignore[arg-type]

    return ValidateCodeResponse(
        valid=True,
        code=snapshot.code,  # type: ignore[union-attr]
        discount_percentage=snapshot.discount_percentage,  # type: ignore[union-attr]
        pricing=pricing,
    )


@router.post(
    "/apply",
    response_model=DiscountResultResponse,
    summary="Preview discount",
    responses={
        404: {"description": "Discount code not found"},
        422: {"description": "Discount code cannot be used or amount is invalid"},
    },
)
async def apply_discount(
    data: ApplyDiscountRequest,
    db: Session = Depends(get_db),
) -> DiscountResultResponse:
    """Compute the discounted price for an amount in cents."""
    coordinator = RedemptionCoordinator(db)
    validation = coordinator.validate_code(data.code)
    if not validation.ok:
        raise failure_exception(validation.error)  # type: ignore[arg-type]

    calculation = coordinator.apply_discount(validation.value, data.original_amount)  # type: ignore[arg-type]
    if not calculation.ok:
        raise failure_exception(calculation.error)  # type: ignore[arg-type]
    return DiscountResultResponse(**asdict(calculation.value))  # type: ignore[arg-type]


@router.get(
    "/{code}/availability",
    response_model=AvailabilityResponse,
    summary="Get discount code availability",
    responses={404: {"description": "Discount code not found"}},
)
async def get_availability(
    code: str,
    db: Session = Depends(get_db),
) -> AvailabilityResponse:
    """Describe whether a code is currently usable."""
    result = RedemptionCoordinator(db).check_availability(code)
    if not result.ok:
        raise failure_exception(result.error)  # type: ignore[arg-type]
    return AvailabilityResponse(**asdict(result.value))  # type: ignore[arg-type]


@accounts_router.get(
    "/{account_id}/eligibility",
    response_model=EligibilityResponse,
    summary="Check account eligibility",
    responses={404: {"description": "Account not found"}},
)
async def get_eligibility(
    account_id: UUID,
    db: Session = Depends(get_db),
) -> EligibilityResponse:
    """Report whether an account may redeem a discount code, with every reason it may not."""
    account = AccountRepository(db).get_by_id(account_id)
    if not account:
        raise HTTPException(status_code=404, detail="Account not found")

    result = RedemptionCoordinator(db).check_eligibility(account)
    if result.ok:
        return EligibilityResponse(eligible=True, reasons=[])
    return EligibilityResponse(eligible=False, reasons=result.error.reasons)  # type: ignore[union-attr]
