"""Tests for discount calculation in minor currency units."""

from decimal import Decimal
from uuid import uuid4

import pytest

from promocodes.models.promotion_code import CodeSnapshot
from promocodes.services.discount_calculator import (
    DiscountResult,
    apply,
    calculate,
    check_consistency,
    discount_amount_for,
)
from promocodes.services.results import ErrorCode


def _snapshot(percentage: int) -> CodeSnapshot:
    return CodeSnapshot(
        id=uuid4(),
        code=f"PCT{percentage}",
        discount_percentage=percentage,
        max_usage_count=None,
        current_usage_count=0,
        active=True,
        expires_at=None,
    )


class TestCalculate:
    def test_twenty_percent_of_one_hundred_dollars(self):
        result = apply(_snapshot(20), 10000)
        assert result.ok
        assert result.value == DiscountResult(
            original_amount=10000,
            discount_amount=2000,
            final_amount=8000,
            percentage=20,
            savings_percentage=Decimal("20.0"),
        )

    def test_rounds_half_up(self):
        """15% of 1010 is 151.5, which rounds to 152."""
        result = calculate(15, 1010)
        assert result.value.discount_amount == 152
        assert result.value.final_amount == 858

    def test_rounds_down_below_half(self):
        """33% of 1001 is 330.33, which rounds to 330."""
        assert calculate(33, 1001).value.discount_amount == 330

    def test_full_discount(self):
        result = calculate(100, 4999)
        assert result.value.discount_amount == 4999
        assert result.value.final_amount == 0

    def test_zero_amount(self):
        result = calculate(50, 0)
        assert result.ok
        assert result.value.discount_amount == 0
        assert result.value.final_amount == 0
        assert result.value.savings_percentage == Decimal("0")

    def test_savings_percentage_reflects_rounding(self):
        """1% of 50 rounds to 1 cent, i.e. 2.0% actual savings."""
        assert calculate(1, 50).value.savings_percentage == Decimal("2.0")

    @pytest.mark.parametrize("percentage", [1, 7, 15, 33, 50, 99, 100])
    @pytest.mark.parametrize("amount", [0, 1, 99, 1010, 4999, 123457])
    def test_amounts_always_balance(self, percentage, amount):
        value = calculate(percentage, amount).value
        assert value.discount_amount + value.final_amount == amount
        assert 0 <= value.discount_amount <= amount
        assert value.final_amount >= 0
        assert check_consistency(value) is None

    @pytest.mark.parametrize("amount", [10.5, "1000", -1, True, None])
    def test_rejects_invalid_amounts(self, amount):
        result = calculate(20, amount)
        assert not result.ok
        assert result.error.code == ErrorCode.CALCULATION_ERROR

    @pytest.mark.parametrize("percentage", [0, 101, -5])
    def test_rejects_out_of_range_percentage(self, percentage):
        result = calculate(percentage, 1000)
        assert not result.ok
        assert result.error.code == ErrorCode.CALCULATION_ERROR


class TestDiscountAmountFor:
    def test_exact(self):
        assert discount_amount_for(10000, 25) == 2500

    def test_half_cent_rounds_up(self):
        assert discount_amount_for(5, 10) == 1


class TestCheckConsistency:
    def _result(self, **overrides) -> DiscountResult:
        values = {
            "original_amount": 10000,
            "discount_amount": 2000,
            "final_amount": 8000,
            "percentage": 20,
            "savings_percentage": Decimal("20.0"),
        }
        values.update(overrides)
        return DiscountResult(**values)

    def test_consistent(self):
        assert check_consistency(self._result()) is None

    def test_unbalanced(self):
        assert check_consistency(self._result(final_amount=8001)) is not None

    def test_discount_exceeds_original(self):
        problem = check_consistency(
            self._result(original_amount=100, discount_amount=200, final_amount=0)
        )
        assert problem == "discount_amount cannot be greater than original_amount"

    def test_negative_amount(self):
        assert check_consistency(self._result(final_amount=-1)) is not None

    def test_discount_does_not_match_percentage(self):
        problem = check_consistency(self._result(discount_amount=1000, final_amount=9000))
        assert problem == "discount_amount does not match the discount percentage"

    def test_percentage_out_of_range(self):
        assert check_consistency(self._result(percentage=0)) is not None
