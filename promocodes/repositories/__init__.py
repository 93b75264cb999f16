from promocodes.repositories.account_repository import AccountRepository
from promocodes.repositories.audit_log_repository import AuditLogRepository
from promocodes.repositories.promotion_code_repository import PromotionCodeRepository
from promocodes.repositories.redemption_repository import RedemptionRepository

__all__ = [
    "AccountRepository",
    "AuditLogRepository",
    "PromotionCodeRepository",
    "RedemptionRepository",
]
