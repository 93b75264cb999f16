"""Account eligibility for discount codes."""

from dataclasses import dataclass, field

from promocodes.models.account import Account, SubscriptionTier

ALREADY_REDEEMED = "already used a discount code"
SUSPENDED = "account suspended"
ALREADY_PREMIUM = "already premium"

REASON_HINTS = {
    ALREADY_REDEEMED: "This account has already used a discount code. "
    "Each account can only use one discount code.",
    SUSPENDED: "This account is suspended and cannot use discount codes. Please contact support.",
    ALREADY_PREMIUM: "Premium accounts cannot use discount codes on additional subscriptions.",
}


@dataclass
class Eligibility:
    eligible: bool
    reasons: list[str] = field(default_factory=list)


def eligible(account: Account) -> Eligibility:
    """Evaluate every disqualifying condition for an account.

    All reasons are collected, not only the first. Never raises.
    """
    reasons: list[str] = []
    if account.discount_redeemed:
        reasons.append(ALREADY_REDEEMED)
    if account.suspended:
        reasons.append(SUSPENDED)
    if account.subscription_tier == SubscriptionTier.PREMIUM.value:
        reasons.append(ALREADY_PREMIUM)
    return Eligibility(eligible=not reasons, reasons=reasons)
