"""Tests for account eligibility rules."""

from promocodes.models.account import Account, SubscriptionTier
from promocodes.services.eligibility import (
    ALREADY_PREMIUM,
    ALREADY_REDEEMED,
    SUSPENDED,
    eligible,
)


def _account(**overrides) -> Account:
    values = {
        "email": "eligibility@test.com",
        "discount_redeemed": False,
        "suspended": False,
        "subscription_tier": SubscriptionTier.FREE.value,
    }
    values.update(overrides)
    return Account(**values)


class TestEligible:
    def test_fresh_free_account_is_eligible(self):
        status = eligible(_account())
        assert status.eligible is True
        assert status.reasons == []

    def test_basic_tier_is_eligible(self):
        assert eligible(_account(subscription_tier=SubscriptionTier.BASIC.value)).eligible

    def test_already_redeemed(self):
        status = eligible(_account(discount_redeemed=True))
        assert status.eligible is False
        assert status.reasons == [ALREADY_REDEEMED]

    def test_suspended(self):
        status = eligible(_account(suspended=True))
        assert status.eligible is False
        assert status.reasons == [SUSPENDED]

    def test_premium(self):
        status = eligible(_account(subscription_tier=SubscriptionTier.PREMIUM.value))
        assert status.eligible is False
        assert status.reasons == [ALREADY_PREMIUM]

    def test_reports_every_reason(self):
        """All disqualifying conditions are listed, not only the first."""
        status = eligible(
            _account(
                discount_redeemed=True,
                suspended=True,
                subscription_tier=SubscriptionTier.PREMIUM.value,
            )
        )
        assert status.eligible is False
        assert status.reasons == [ALREADY_REDEEMED, SUSPENDED, ALREADY_PREMIUM]
