"""Redemption coordinator: validate, compute and atomically record discount code use."""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, TypeVar
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from promocodes.models.account import Account
from promocodes.models.promotion_code import CodeSnapshot, normalize_code
from promocodes.models.redemption_record import RedemptionRecord
from promocodes.models.shared import utc_now
from promocodes.repositories.account_repository import AccountRepository
from promocodes.repositories.promotion_code_repository import PromotionCodeRepository
from promocodes.repositories.redemption_repository import RedemptionRepository
from promocodes.services import discount_calculator
from promocodes.services.audit_service import AuditService
from promocodes.services.discount_calculator import DiscountResult
from promocodes.services.eligibility import ALREADY_REDEEMED, REASON_HINTS, Eligibility, eligible
from promocodes.services.results import (
    CODE_BLANK_MESSAGE,
    CODE_EXPIRED_MESSAGE,
    CODE_INACTIVE_MESSAGE,
    CODE_LIMIT_MESSAGE,
    CODE_NOT_FOUND_MESSAGE,
    INELIGIBLE_MESSAGE,
    LOST_RACE_MESSAGE,
    ErrorCode,
    Result,
    StorageError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Availability:
    """Availability status of a code, for display."""

    code: str
    active: bool
    expired: bool
    usage_limit_reached: bool
    available: bool
    discount_percentage: int
    remaining_uses: int | None
    expires_at: datetime | None


class RedemptionCoordinator:
    """Service that owns every mutation of usage counters and the redemption ledger.

    Query operations (``validate_code``, ``check_eligibility``, ``apply_discount``,
    ``check_availability``, ``bulk_validate_codes``) never write. Idempotent reads
    are retried once on a storage failure. ``record_redemption`` commits a single
    transaction and is never retried here; callers retry with the same
    ``transaction_id``.
    """

    def __init__(self, db: Session):
        self.db = db
        self.catalog = PromotionCodeRepository(db)
        self.ledger = RedemptionRepository(db)
        self.account_repo = AccountRepository(db)
        self.audit = AuditService(db)

    # --- Queries ---

    def validate_code(self, code_string: Any) -> Result[CodeSnapshot]:
        """Validate a code string against the catalog.

        Gates, first failure wins: blank input, unknown code, inactive, expired,
        usage limit reached.
        """
        logger.info("Discount code validation attempt for %r", code_string)
        if not isinstance(code_string, str) or not normalize_code(code_string):
            return Result.failure(
                ErrorCode.VALIDATION_INPUT,
                CODE_BLANK_MESSAGE,
                hint="Enter the discount code exactly as you received it.",
            )

        snapshot = self._read(lambda: self.catalog.get_snapshot(code_string))
        result = self._gate(snapshot)
        if not result.ok:
            logger.info(
                "Discount code %r rejected: %s",
                normalize_code(code_string),
                result.error.code.value,  # type: ignore[union-attr]
            )
        return result

    def check_eligibility(self, account: Account) -> Result[Eligibility]:
        """Check account-level preconditions, reporting every disqualifying reason."""
        status = eligible(account)
        if status.eligible:
            return Result.success(status)
        return Result.failure(
            ErrorCode.ACCOUNT_INELIGIBLE,
            INELIGIBLE_MESSAGE,
            hint=REASON_HINTS.get(status.reasons[0]),
            reasons=status.reasons,
        )

    def apply_discount(self, code_snapshot: CodeSnapshot, original_amount: Any) -> Result[DiscountResult]:
        """Compute the discount a code grants on an amount."""
        result = discount_calculator.apply(code_snapshot, original_amount)
        if not result.ok:
            logger.error(
                "Discount calculation rejected for code %s amount %r: %s",
                code_snapshot.code,
                original_amount,
                result.error.message,  # type: ignore[union-attr]
            )
        return result

    def calculate_potential_savings(
        self, code_snapshot: CodeSnapshot, amounts: Iterable[Any]
    ) -> Result[list[DiscountResult]]:
        """Compute discounts for several amounts at once, e.g. monthly and yearly prices."""
        calculations: list[DiscountResult] = []
        for amount in amounts:
            result = self.apply_discount(code_snapshot, amount)
            if not result.ok:
                return Result(error=result.error)
            calculations.append(result.value)  # type: ignore[arg-type]
        return Result.success(calculations)

    def check_availability(self, code_string: Any) -> Result[Availability]:
        """Describe whether a code is usable without rejecting unusable ones."""
        if not isinstance(code_string, str) or not normalize_code(code_string):
            return Result.failure(ErrorCode.VALIDATION_INPUT, CODE_BLANK_MESSAGE)

        snapshot = self._read(lambda: self.catalog.get_snapshot(code_string))
        if snapshot is None:
            return Result.failure(ErrorCode.CODE_NOT_FOUND, CODE_NOT_FOUND_MESSAGE)

        now = utc_now()
        return Result.success(
            Availability(
                code=snapshot.code,
                active=snapshot.active,
                expired=snapshot.is_expired(now),
                usage_limit_reached=snapshot.usage_limit_reached,
                available=snapshot.is_available(now),
                discount_percentage=snapshot.discount_percentage,
                remaining_uses=snapshot.remaining_uses,
                expires_at=snapshot.expires_at,
            )
        )

    def bulk_validate_codes(self, codes: Iterable[Any]) -> dict[str, Result[CodeSnapshot]]:
        """Validate many codes with a single catalog query.

        Results are keyed by normalized code; duplicates collapse into one entry.
        """
        codes = list(codes)
        rows = self._read(
            lambda: self.catalog.get_many_by_codes(c for c in codes if isinstance(c, str))
        )
        now = utc_now()
        results: dict[str, Result[CodeSnapshot]] = {}
        for raw in codes:
            normalized = normalize_code(raw) if isinstance(raw, str) else ""
            key = normalized or str(raw)
            if key in results:
                continue
            if not normalized:
                results[key] = Result.failure(ErrorCode.VALIDATION_INPUT, CODE_BLANK_MESSAGE)
                continue
            row = rows.get(normalized)
            snapshot = CodeSnapshot.from_model(row) if row is not None else None
            results[key] = self._gate(snapshot, now)
        return results

    def get_redemption_for_transaction(self, transaction_id: str) -> RedemptionRecord | None:
        return self._read(lambda: self.ledger.get_by_transaction_id(transaction_id))

    # --- Command ---

    def record_redemption(
        self,
        code: str | CodeSnapshot,
        account: Account | UUID,
        transaction_id: str,
        discount_result: DiscountResult,
    ) -> Result[RedemptionRecord]:
        """Record a redemption for a completed transaction.

        Re-checks eligibility and code usability against fresh state, then in one
        transaction claims the account, takes one use of the code (deactivating it
        when the limit is reached) and appends the ledger record. A retried call
        with the same ``transaction_id`` returns the existing record.

        Raises:
            StorageError: If the durable store fails during the commit.
        """
        account_id = account.id if isinstance(account, Account) else account
        code_string = code.code if isinstance(code, CodeSnapshot) else code

        if not isinstance(transaction_id, str) or not transaction_id.strip():
            return Result.failure(ErrorCode.VALIDATION_INPUT, "Transaction id cannot be blank")

        problem = discount_calculator.check_consistency(discount_result)
        if problem:
            logger.error(
                "Inconsistent discount result for transaction %s: %s", transaction_id, problem
            )
            return Result.failure(ErrorCode.CALCULATION_ERROR, problem)

        existing = self.get_redemption_for_transaction(transaction_id)
        if existing is not None:
            return self._replay(existing, account_id)  # type: ignore[arg-type]

        fresh_account = self._read(lambda: self.account_repo.reload(account_id))  # type: ignore[arg-type]
        if fresh_account is None:
            return Result.failure(ErrorCode.VALIDATION_INPUT, f"Account {account_id} not found")

        eligibility = self.check_eligibility(fresh_account)
        if not eligibility.ok:
            return Result(error=eligibility.error)

        validation = self.validate_code(code_string)
        if not validation.ok:
            return Result(error=validation.error)
        snapshot: CodeSnapshot = validation.value  # type: ignore[assignment]

        if snapshot.discount_percentage != discount_result.percentage:
            logger.warning(
                "Code %s is now %d%% but transaction %s was charged at %d%%; recording the charged amounts",
                snapshot.code,
                snapshot.discount_percentage,
                transaction_id,
                discount_result.percentage,
            )

        return self._commit(snapshot, account_id, transaction_id, discount_result)  # type: ignore[arg-type]

    # --- Internals ---

    def _gate(self, snapshot: CodeSnapshot | None, now: datetime | None = None) -> Result[CodeSnapshot]:
        if snapshot is None:
            return Result.failure(
                ErrorCode.CODE_NOT_FOUND,
                CODE_NOT_FOUND_MESSAGE,
                hint="Check the code for typos.",
            )
        now = now or utc_now()
        expired = snapshot.is_expired(now)
        # Codes switched off by expiry or exhaustion report that cause.
        if not snapshot.active and not expired and not snapshot.usage_limit_reached:
            return Result.failure(ErrorCode.CODE_INACTIVE, CODE_INACTIVE_MESSAGE)
        if expired:
            return Result.failure(ErrorCode.CODE_EXPIRED, CODE_EXPIRED_MESSAGE)
        if snapshot.usage_limit_reached:
            return Result.failure(
                ErrorCode.CODE_LIMIT_REACHED,
                CODE_LIMIT_MESSAGE,
                hint="Try a different discount code.",
            )
        return Result.success(snapshot)

    def _commit(
        self,
        snapshot: CodeSnapshot,
        account_id: UUID,
        transaction_id: str,
        discount_result: DiscountResult,
    ) -> Result[RedemptionRecord]:
        try:
            if not self.account_repo.claim_discount(account_id):
                self.db.rollback()
                return self._resolve_account_claim(account_id, transaction_id)

            updated = self.catalog.increment_usage(snapshot.id)
            if updated is None:
                self.db.rollback()
                logger.warning(
                    "Transaction %s lost the race for code %s", transaction_id, snapshot.code
                )
                return self._lost_race()

            record = self.ledger.append(
                promotion_code_id=snapshot.id,
                account_id=account_id,
                transaction_id=transaction_id,
                discount_percentage=discount_result.percentage,
                original_amount=discount_result.original_amount,
                discount_amount=discount_result.discount_amount,
                final_amount=discount_result.final_amount,
            )
            self.audit.log_create(
                "redemption_record",
                record.id,  # type: ignore[arg-type]
                data={
                    "code": snapshot.code,
                    "account_id": str(account_id),
                    "transaction_id": transaction_id,
                    "discount_amount": discount_result.discount_amount,
                },
                commit=False,
            )
            if not updated.active:
                self.audit.log_status_change(
                    "promotion_code",
                    updated.id,
                    old_status="active",
                    new_status="inactive",
                    commit=False,
                )
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            return self._resolve_conflict(account_id, transaction_id)
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Failed to record redemption for transaction %s", transaction_id)
            raise StorageError(f"Failed to record redemption: {exc}") from exc

        if not updated.active:
            logger.info(
                "Discount code %s deactivated due to usage limit reached (%d/%s)",
                updated.code,
                updated.current_usage_count,
                updated.max_usage_count,
            )
        logger.info(
            "Recorded redemption of %s for account %s (transaction %s)",
            snapshot.code,
            account_id,
            transaction_id,
        )
        self.db.refresh(record)
        return Result.success(record)

    def _resolve_conflict(self, account_id: UUID, transaction_id: str) -> Result[RedemptionRecord]:
        existing = self.get_redemption_for_transaction(transaction_id)
        if existing is not None:
            return self._replay(existing, account_id)
        logger.warning(
            "Transaction %s for account %s lost a concurrent redemption race",
            transaction_id,
            account_id,
        )
        return self._lost_race()

    def _resolve_account_claim(self, account_id: UUID, transaction_id: str) -> Result[RedemptionRecord]:
        existing = self.get_redemption_for_transaction(transaction_id)
        if existing is not None:
            return self._replay(existing, account_id)

        account = self._read(lambda: self.account_repo.reload(account_id))
        if account is None:
            return Result.failure(ErrorCode.VALIDATION_INPUT, f"Account {account_id} not found")
        status = eligible(account)
        # Eligible a moment ago and now only marked as redeemed: a competing
        # redemption for the same account committed first.
        if status.eligible or status.reasons == [ALREADY_REDEEMED]:
            logger.warning(
                "Transaction %s lost a concurrent redemption race for account %s",
                transaction_id,
                account_id,
            )
            return self._lost_race()
        eligibility = self.check_eligibility(account)
        return Result(error=eligibility.error)

    def _replay(self, existing: RedemptionRecord, account_id: UUID) -> Result[RedemptionRecord]:
        if existing.account_id != account_id:
            logger.error(
                "Transaction %s is already recorded for account %s, not %s",
                existing.transaction_id,
                existing.account_id,
                account_id,
            )
            return Result.failure(
                ErrorCode.VALIDATION_INPUT,
                "This transaction is already recorded for a different account",
            )
        logger.info("Replayed redemption for transaction %s", existing.transaction_id)
        return Result.success(existing)

    @staticmethod
    def _lost_race() -> Result[RedemptionRecord]:
        return Result.failure(
            ErrorCode.LOST_RACE,
            LOST_RACE_MESSAGE,
            hint="It was just used by another customer. Please try a different code.",
        )

    def _read(self, operation: Callable[[], T]) -> T:
        """Run an idempotent read, retrying once after a storage failure."""
        try:
            return operation()
        except SQLAlchemyError as exc:
            logger.warning("Storage read failed, retrying once: %s", exc)
            self.db.rollback()
        try:
            return operation()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Storage read failed after retry")
            raise StorageError(f"Storage read failed: {exc}") from exc
