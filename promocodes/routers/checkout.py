"""Payment gateway checkout event endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from promocodes.core.database import get_db
from promocodes.schemas.redemption import (
    CheckoutCompletedEvent,
    CheckoutOutcomeResponse,
    RedemptionRecordResponse,
)
from promocodes.services.checkout_events import CheckoutEventHandler

router = APIRouter()


@router.post(
    "/completed",
    response_model=CheckoutOutcomeResponse,
    summary="Record checkout completion",
    responses={503: {"description": "Storage failure; the event should be redelivered"}},
)
async def checkout_completed(
    event: CheckoutCompletedEvent,
    db: Session = Depends(get_db),
) -> CheckoutOutcomeResponse:
    """Record discount code usage for a completed checkout.

    Always answers 200 for discount problems so the gateway does not retry a
    purchase that already succeeded; the outcome describes what was recorded.
    """
    outcome = CheckoutEventHandler(db).handle(event)
    return CheckoutOutcomeResponse(
        status=outcome.status.value,
        record=(
            RedemptionRecordResponse.model_validate(outcome.record)
            if outcome.record is not None
            else None
        ),
        error=outcome.failure.code.value if outcome.failure else None,
        message=outcome.failure.message if outcome.failure else None,
    )
