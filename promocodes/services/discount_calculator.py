"""Discount calculation in minor currency units."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from promocodes.models.promotion_code import CodeSnapshot
from promocodes.services.results import ErrorCode, Result

ONE_DECIMAL = Decimal("0.1")


@dataclass(frozen=True)
class DiscountResult:
    """Result of a discount calculation."""

    original_amount: int
    discount_amount: int
    final_amount: int
    percentage: int
    savings_percentage: Decimal


def _is_amount(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def discount_amount_for(original_amount: int, percentage: int) -> int:
    """Round ``original_amount * percentage / 100`` to the nearest unit, halves up."""
    raw = Decimal(original_amount) * Decimal(percentage) / Decimal(100)
    return int(raw.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def calculate(percentage: int, original_amount: Any) -> Result[DiscountResult]:
    if not _is_amount(original_amount):
        return Result.failure(
            ErrorCode.CALCULATION_ERROR,
            "original_amount must be a non-negative integer (amount in cents)",
        )
    if not _is_amount(percentage) or not 1 <= percentage <= 100:
        return Result.failure(
            ErrorCode.CALCULATION_ERROR,
            "discount percentage must be an integer between 1 and 100",
        )

    discount_amount = discount_amount_for(original_amount, percentage)
    final_amount = max(original_amount - discount_amount, 0)
    if original_amount > 0:
        savings = (Decimal(discount_amount) / Decimal(original_amount) * 100).quantize(
            ONE_DECIMAL, rounding=ROUND_HALF_UP
        )
    else:
        savings = Decimal("0")

    return Result.success(
        DiscountResult(
            original_amount=original_amount,
            discount_amount=discount_amount,
            final_amount=final_amount,
            percentage=percentage,
            savings_percentage=savings,
        )
    )


def apply(code_snapshot: CodeSnapshot, original_amount: Any) -> Result[DiscountResult]:
    """Compute discount and final amounts for a code. Returns a failure, never raises."""
    return calculate(code_snapshot.discount_percentage, original_amount)


def check_consistency(result: DiscountResult) -> str | None:
    """Return a description of the first inconsistency in a supplied result, if any."""
    for name in ("original_amount", "discount_amount", "final_amount"):
        if not _is_amount(getattr(result, name)):
            return f"{name} must be a non-negative integer"
    if not 1 <= result.percentage <= 100:
        return "discount percentage must be between 1 and 100"
    if result.discount_amount > result.original_amount:
        return "discount_amount cannot be greater than original_amount"
    if result.discount_amount + result.final_amount != result.original_amount:
        return "final_amount must equal original_amount minus discount_amount"
    if result.discount_amount != discount_amount_for(result.original_amount, result.percentage):
        return "discount_amount does not match the discount percentage"
    return None
