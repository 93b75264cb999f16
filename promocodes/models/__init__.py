from promocodes.models.account import Account, SubscriptionTier
from promocodes.models.audit_log import AuditLog
from promocodes.models.promotion_code import CodeSnapshot, PromotionCode, normalize_code
from promocodes.models.redemption_record import RedemptionRecord

__all__ = [
    "Account",
    "AuditLog",
    "CodeSnapshot",
    "PromotionCode",
    "RedemptionRecord",
    "SubscriptionTier",
    "normalize_code",
]
