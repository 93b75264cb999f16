"""Handling of checkout-completed events from the payment gateway."""

import logging
from dataclasses import dataclass
from enum import Enum

from sqlalchemy.orm import Session

from promocodes.models.promotion_code import normalize_code
from promocodes.models.redemption_record import RedemptionRecord
from promocodes.repositories.account_repository import AccountRepository
from promocodes.schemas.redemption import CheckoutCompletedEvent
from promocodes.services.redemption_coordinator import RedemptionCoordinator
from promocodes.services.results import ErrorCode, Failure

logger = logging.getLogger(__name__)


class CheckoutStatus(str, Enum):
    NO_CODE = "no_code"
    RECORDED = "recorded"
    REPLAYED = "replayed"
    REJECTED = "rejected"


@dataclass
class CheckoutOutcome:
    status: CheckoutStatus
    record: RedemptionRecord | None = None
    failure: Failure | None = None


class CheckoutEventHandler:
    """Records discount code usage for completed checkouts.

    The purchase itself has already succeeded at the gateway, so discount
    bookkeeping problems are reported in the outcome and never raised. Only
    ``StorageError`` propagates, letting the gateway redeliver the event.
    """

    def __init__(self, db: Session):
        self.db = db
        self.coordinator = RedemptionCoordinator(db)
        self.account_repo = AccountRepository(db)

    def handle(self, event: CheckoutCompletedEvent) -> CheckoutOutcome:
        if not event.applied_code or not normalize_code(event.applied_code):
            logger.info("Checkout %s completed without a discount code", event.transaction_id)
            return CheckoutOutcome(status=CheckoutStatus.NO_CODE)

        existing = self.coordinator.get_redemption_for_transaction(event.transaction_id)
        if existing is not None and existing.account_id == event.account_id:
            logger.info("Checkout %s already recorded, replaying", event.transaction_id)
            return CheckoutOutcome(status=CheckoutStatus.REPLAYED, record=existing)

        account = self.account_repo.get_by_id(event.account_id)
        if account is None:
            return self._rejected(
                event,
                Failure(ErrorCode.VALIDATION_INPUT, f"Account {event.account_id} not found"),
            )

        validation = self.coordinator.validate_code(event.applied_code)
        if not validation.ok:
            return self._rejected(event, validation.error)  # type: ignore[arg-type]

        calculation = self.coordinator.apply_discount(validation.value, event.original_amount)  # type: ignore[arg-type]
        if not calculation.ok:
            return self._rejected(event, calculation.error)  # type: ignore[arg-type]

        discount = calculation.value
        if (discount.discount_amount, discount.final_amount) != (  # type: ignore[union-attr]
            event.discount_amount,
            event.final_amount,
        ):
            logger.error(
                "Checkout %s charged %d-%d=%d but code %s yields %d-%d=%d",
                event.transaction_id,
                event.original_amount,
                event.discount_amount,
                event.final_amount,
                validation.value.code,  # type: ignore[union-attr]
                discount.original_amount,  # type: ignore[union-attr]
                discount.discount_amount,  # type: ignore[union-attr]
                discount.final_amount,  # type: ignore[union-attr]
            )
            return self._rejected(
                event,
                Failure(
                    ErrorCode.CALCULATION_ERROR,
                    "Charged amounts do not match the discount code",
                ),
            )

        result = self.coordinator.record_redemption(
            validation.value,  # type: ignore[arg-type]
            account,
            event.transaction_id,
            discount,  # type: ignore[arg-type]
        )
        if not result.ok:
            return self._rejected(event, result.error)  # type: ignore[arg-type]
        return CheckoutOutcome(status=CheckoutStatus.RECORDED, record=result.value)

    @staticmethod
    def _rejected(event: CheckoutCompletedEvent, failure: Failure) -> CheckoutOutcome:
        logger.info(
            "Discount code %r not recorded for checkout %s: %s",
            event.applied_code,
            event.transaction_id,
            failure.message,
        )
        return CheckoutOutcome(status=CheckoutStatus.REJECTED, failure=failure)
