"""PromotionCode repository: the code catalog."""

from collections.abc import Iterable
from datetime import datetime
from uuid import UUID

from sqlalchemy import and_, case, or_, update
from sqlalchemy import func as sa_func
from sqlalchemy.orm import Session

from promocodes.models.promotion_code import CodeSnapshot, PromotionCode, normalize_code
from promocodes.models.shared import utc_now
from promocodes.schemas.promotion_code import PromotionCodeCreate, PromotionCodeUpdate


class PromotionCodeRepository:
    """Repository for PromotionCode model.

    Read access plus the mutations the redemption coordinator needs. The
    coordinator-facing mutations (``increment_usage``, ``deactivate_*``) flush
    only; the caller owns the transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_by_code(self, code: str) -> PromotionCode | None:
        """Get a promotion code by code, ignoring case and surrounding whitespace."""
        normalized = normalize_code(code)
        if not normalized:
            return None
        return (
            self.db.query(PromotionCode)
            .filter(PromotionCode.code == normalized)
            .populate_existing()
            .first()
        )

    def get_snapshot(self, code: str) -> CodeSnapshot | None:
        """Get a fresh immutable snapshot of a promotion code."""
        promotion_code = self.get_by_code(code)
        if not promotion_code:
            return None
        return CodeSnapshot.from_model(promotion_code)

    def get_many_by_codes(self, codes: Iterable[str]) -> dict[str, PromotionCode]:
        """Fetch several codes in a single query, keyed by normalized code."""
        normalized = {normalize_code(code) for code in codes} - {""}
        if not normalized:
            return {}
        rows = self.db.query(PromotionCode).filter(PromotionCode.code.in_(normalized)).all()
        return {str(row.code): row for row in rows}

    def count(self, active: bool | None = None) -> int:
        """Count promotion codes."""
        query = self.db.query(sa_func.count(PromotionCode.id))
        if active is not None:
            query = query.filter(PromotionCode.active.is_(active))
        return int(query.scalar() or 0)

    def count_expired(self, now: datetime | None = None) -> int:
        """Count codes whose expiry lies in the past, active or not."""
        now = now or utc_now()
        return int(
            self.db.query(sa_func.count(PromotionCode.id))
            .filter(PromotionCode.expires_at.isnot(None), PromotionCode.expires_at < now)
            .scalar()
            or 0
        )

    def total_usage(self) -> int:
        """Sum of usage counters across all codes."""
        return int(
            self.db.query(sa_func.coalesce(sa_func.sum(PromotionCode.current_usage_count), 0))
            .scalar()
        )

    def average_discount_percentage(self) -> float:
        """Mean discount percentage across all codes."""
        result = self.db.query(sa_func.avg(PromotionCode.discount_percentage)).scalar()
        return float(result or 0)

    def most_used(self, limit: int = 10) -> list[PromotionCode]:
        """Codes ordered by usage counter, highest first."""
        return (
            self.db.query(PromotionCode)
            .order_by(PromotionCode.current_usage_count.desc(), PromotionCode.code.asc())
            .limit(limit)
            .all()
        )

    def create(self, data: PromotionCodeCreate) -> PromotionCode:
        """Create a new promotion code."""
        promotion_code = PromotionCode(
            code=normalize_code(data.code),
            discount_percentage=data.discount_percentage,
            max_usage_count=data.max_usage_count,
            current_usage_count=0,
            active=data.active,
            expires_at=data.expires_at,
            created_by_id=data.created_by_id,
        )
        self.db.add(promotion_code)
        self.db.commit()
        self.db.refresh(promotion_code)
        return promotion_code

    def update(self, code: str, data: PromotionCodeUpdate) -> PromotionCode | None:
        """Update a promotion code definition by code."""
        promotion_code = self.get_by_code(code)
        if not promotion_code:
            return None

        update_data = data.model_dump(exclude_unset=True)
        for key, value in update_data.items():
            setattr(promotion_code, key, value)

        self.db.commit()
        self.db.refresh(promotion_code)
        return promotion_code

    def deactivate(self, code: str) -> PromotionCode | None:
        """Deactivate a promotion code by code (administrative action)."""
        promotion_code = self.get_by_code(code)
        if not promotion_code:
            return None

        promotion_code.active = False  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(promotion_code)
        return promotion_code

    def increment_usage(self, promotion_code_id: UUID, now: datetime | None = None) -> CodeSnapshot | None:
        """Atomically take one use of a code.

        A single conditional UPDATE increments ``current_usage_count`` only while
        the code is active, unexpired and under its limit, and flips ``active``
        off in the same statement when the increment reaches the limit. Returns
        the post-increment snapshot, or None when no usable row matched.
        Does not commit.
        """
        now = now or utc_now()
        reaches_limit = and_(
            PromotionCode.max_usage_count.isnot(None),
            PromotionCode.current_usage_count + 1 >= PromotionCode.max_usage_count,
        )
        result = self.db.execute(
            update(PromotionCode)
            .where(
                PromotionCode.id == promotion_code_id,
                PromotionCode.active.is_(True),
                or_(PromotionCode.expires_at.is_(None), PromotionCode.expires_at >= now),
                or_(
                    PromotionCode.max_usage_count.is_(None),
                    PromotionCode.current_usage_count < PromotionCode.max_usage_count,
                ),
            )
            .values(
                current_usage_count=PromotionCode.current_usage_count + 1,
                active=case((reaches_limit, False), else_=PromotionCode.active),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:  # type: ignore[attr-defined]
            return None

        promotion_code = (
            self.db.query(PromotionCode)
            .filter(PromotionCode.id == promotion_code_id)
            .populate_existing()
            .one()
        )
        return CodeSnapshot.from_model(promotion_code)

    def deactivate_expired(self, now: datetime | None = None) -> int:
        """Deactivate active codes whose expiry has passed. Does not commit."""
        now = now or utc_now()
        result = self.db.execute(
            update(PromotionCode)
            .where(
                PromotionCode.active.is_(True),
                PromotionCode.expires_at.isnot(None),
                PromotionCode.expires_at < now,
            )
            .values(active=False)
            .execution_options(synchronize_session=False)
        )
        return int(result.rowcount or 0)  # type: ignore[attr-defined]

    def deactivate_exhausted(self) -> int:
        """Deactivate active codes that have reached their usage limit. Does not commit."""
        result = self.db.execute(
            update(PromotionCode)
            .where(
                PromotionCode.active.is_(True),
                PromotionCode.max_usage_count.isnot(None),
                PromotionCode.current_usage_count >= PromotionCode.max_usage_count,
            )
            .values(active=False)
            .execution_options(synchronize_session=False)
        )
        return int(result.rowcount or 0)  # type: ignore[attr-defined]
