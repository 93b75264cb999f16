"""PromotionCode model for percentage discount codes."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    func,
)

from promocodes.core.database import Base
from promocodes.models.shared import UUIDType, as_utc, generate_uuid, utc_now


def normalize_code(code: str | None) -> str:
    """Normalize a code string for lookup and storage: trimmed and uppercased."""
    if code is None:
        return ""
    return code.strip().upper()


class PromotionCode(Base):
    """PromotionCode model for percentage discount codes."""

    __tablename__ = "promotion_codes"
    __table_args__ = (
        CheckConstraint(
            "discount_percentage >= 1 AND discount_percentage <= 100",
            name="ck_promotion_codes_discount_percentage",
        ),
        CheckConstraint(
            "max_usage_count IS NULL OR max_usage_count > 0",
            name="ck_promotion_codes_max_usage_count",
        ),
        CheckConstraint(
            "current_usage_count >= 0",
            name="ck_promotion_codes_current_usage_count",
        ),
        CheckConstraint(
            "max_usage_count IS NULL OR current_usage_count <= max_usage_count",
            name="ck_promotion_codes_usage_within_limit",
        ),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    code = Column(String(255), unique=True, index=True, nullable=False)
    discount_percentage = Column(Integer, nullable=False)
    max_usage_count = Column(Integer, nullable=True)
    current_usage_count = Column(Integer, nullable=False, default=0)
    active = Column(Boolean, nullable=False, default=True, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    created_by_id = Column(
        UUIDType, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


@dataclass(frozen=True)
class CodeSnapshot:
    """Immutable view of a PromotionCode row at the moment it was read."""

    id: UUID
    code: str
    discount_percentage: int
    max_usage_count: int | None
    current_usage_count: int
    active: bool
    expires_at: datetime | None
    created_at: datetime | None = None

    @classmethod
    def from_model(cls, promotion_code: "PromotionCode") -> "CodeSnapshot":
        return cls(
            id=promotion_code.id,  # type: ignore[arg-type]
            code=str(promotion_code.code),
            discount_percentage=int(promotion_code.discount_percentage),
            max_usage_count=(
                int(promotion_code.max_usage_count)
                if promotion_code.max_usage_count is not None
                else None
            ),
            current_usage_count=int(promotion_code.current_usage_count or 0),
            active=bool(promotion_code.active),
            expires_at=as_utc(promotion_code.expires_at),  # type: ignore[arg-type]
            created_at=as_utc(promotion_code.created_at),  # type: ignore[arg-type]
        )

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return self.expires_at < (now or utc_now())

    @property
    def usage_limit_reached(self) -> bool:
        return self.max_usage_count is not None and self.current_usage_count >= self.max_usage_count

    @property
    def remaining_uses(self) -> int | None:
        if self.max_usage_count is None:
            return None
        return max(self.max_usage_count - self.current_usage_count, 0)

    def is_available(self, now: datetime | None = None) -> bool:
        return self.active and not self.is_expired(now) and not self.usage_limit_reached
