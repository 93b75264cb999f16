"""RedemptionRecord repository: the append-only redemption ledger."""

from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

from sqlalchemy import func as sa_func
from sqlalchemy.orm import Session

from promocodes.models.promotion_code import PromotionCode
from promocodes.models.redemption_record import RedemptionRecord


@dataclass
class CodeUsage:
    code: str
    uses: int
    revenue_impact: int


class RedemptionRepository:
    """Repository for RedemptionRecord model.

    There is no update or delete; records are immutable once written.
    """

    def __init__(self, db: Session):
        self.db = db

    def append(
        self,
        *,
        promotion_code_id: UUID,
        account_id: UUID,
        transaction_id: str,
        discount_percentage: int,
        original_amount: int,
        discount_amount: int,
        final_amount: int,
    ) -> RedemptionRecord:
        """Append a record inside the caller's transaction.

        Flushes so the per-account and per-transaction unique constraints are
        checked immediately; a violation raises ``sqlalchemy.exc.IntegrityError``.
        Does not commit.
        """
        record = RedemptionRecord(
            promotion_code_id=promotion_code_id,
            account_id=account_id,
            transaction_id=transaction_id,
            discount_percentage=discount_percentage,
            original_amount=original_amount,
            discount_amount=discount_amount,
            final_amount=final_amount,
        )
        self.db.add(record)
        self.db.flush()
        return record

    def get_by_id(self, record_id: UUID) -> RedemptionRecord | None:
        return self.db.query(RedemptionRecord).filter(RedemptionRecord.id == record_id).first()

    def get_by_transaction_id(self, transaction_id: str) -> RedemptionRecord | None:
        return (
            self.db.query(RedemptionRecord)
            .filter(RedemptionRecord.transaction_id == transaction_id)
            .first()
        )

    def get_by_account_id(self, account_id: UUID) -> RedemptionRecord | None:
        return (
            self.db.query(RedemptionRecord)
            .filter(RedemptionRecord.account_id == account_id)
            .first()
        )

    def uses_by_code(self, promotion_code_id: UUID) -> int:
        return int(
            self.db.query(sa_func.count(RedemptionRecord.id))
            .filter(RedemptionRecord.promotion_code_id == promotion_code_id)
            .scalar()
            or 0
        )

    def uses_by_account(self, account_id: UUID) -> int:
        return int(
            self.db.query(sa_func.count(RedemptionRecord.id))
            .filter(RedemptionRecord.account_id == account_id)
            .scalar()
            or 0
        )

    def recent_by_code(self, promotion_code_id: UUID, limit: int = 10) -> list[RedemptionRecord]:
        """Most recent redemptions of a code, newest first."""
        return (
            self.db.query(RedemptionRecord)
            .filter(RedemptionRecord.promotion_code_id == promotion_code_id)
            .order_by(RedemptionRecord.redeemed_at.desc())
            .limit(limit)
            .all()
        )

    def count(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
        promotion_code_id: UUID | None = None,
    ) -> int:
        query = self._filtered(
            self.db.query(sa_func.count(RedemptionRecord.id)), start, end, promotion_code_id
        )
        return int(query.scalar() or 0)

    def sum_discount(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
        promotion_code_id: UUID | None = None,
    ) -> int:
        """Revenue impact: total discount granted."""
        query = self._filtered(
            self.db.query(sa_func.coalesce(sa_func.sum(RedemptionRecord.discount_amount), 0)),
            start,
            end,
            promotion_code_id,
        )
        return int(query.scalar() or 0)

    def sum_original(self, promotion_code_id: UUID | None = None) -> int:
        query = self._filtered(
            self.db.query(sa_func.coalesce(sa_func.sum(RedemptionRecord.original_amount), 0)),
            None,
            None,
            promotion_code_id,
        )
        return int(query.scalar() or 0)

    def top_codes(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int = 10,
        by_revenue: bool = False,
    ) -> list[CodeUsage]:
        """Codes ranked by number of redemptions in the period.

        With ``by_revenue`` the ranking is by total discount granted instead.
        """
        uses = sa_func.count(RedemptionRecord.id)
        revenue = sa_func.coalesce(sa_func.sum(RedemptionRecord.discount_amount), 0)
        query = (
            self.db.query(
                PromotionCode.code.label("code"),
                uses.label("uses"),
                revenue.label("revenue"),
            )
            .select_from(RedemptionRecord)
            .join(PromotionCode, PromotionCode.id == RedemptionRecord.promotion_code_id)
        )
        query = self._filtered(query, start, end, None)
        ranking = (revenue.desc(), uses.desc()) if by_revenue else (uses.desc(),)
        rows = (
            query.group_by(PromotionCode.code)
            .order_by(*ranking, PromotionCode.code.asc())
            .limit(limit)
            .all()
        )
        return [
            CodeUsage(code=str(row.code), uses=int(row.uses), revenue_impact=int(row.revenue))
            for row in rows
        ]

    def daily_counts(self, start: datetime, end: datetime) -> dict[date, int]:
        """Redemptions per calendar day (UTC) in the period, oldest first."""
        day_expr = period_label(self._dialect(), "YYYY-MM-DD", "%Y-%m-%d")
        query = self.db.query(day_expr.label("day"), sa_func.count(RedemptionRecord.id).label("uses"))
        rows = self._filtered(query, start, end, None).group_by(day_expr).order_by(day_expr).all()
        return {date.fromisoformat(str(row.day)): int(row.uses) for row in rows}

    def monthly_counts(
        self,
        start: datetime,
        end: datetime,
        promotion_code_id: UUID | None = None,
    ) -> dict[str, int]:
        """Redemptions per calendar month (UTC), keyed ``YYYY-MM``. Empty months are absent."""
        month_expr = period_label(self._dialect(), "YYYY-MM", "%Y-%m")
        query = self.db.query(
            month_expr.label("month"), sa_func.count(RedemptionRecord.id).label("uses")
        )
        rows = (
            self._filtered(query, start, end, promotion_code_id)
            .group_by(month_expr)
            .order_by(month_expr)
            .all()
        )
        return {str(row.month): int(row.uses) for row in rows}

    def _dialect(self) -> str:
        return self.db.bind.dialect.name if self.db.bind else ""

    @staticmethod
    def _filtered(query, start, end, promotion_code_id):  # type: ignore[no-untyped-def]
        if start is not None:
            query = query.filter(RedemptionRecord.redeemed_at >= start)
        if end is not None:
            query = query.filter(RedemptionRecord.redeemed_at <= end)
        if promotion_code_id is not None:
            query = query.filter(RedemptionRecord.promotion_code_id == promotion_code_id)
        return query


def period_label(dialect: str, postgres_format: str, sqlite_format: str):  # type: ignore[no-untyped-def]
    """Format ``redeemed_at`` as a UTC period label on either supported dialect.

    PostgreSQL's ``to_char`` on a timestamptz follows the session time zone, so the
    value is shifted to UTC first. SQLite stores the UTC wall-clock time already.
    """
    if dialect == "postgresql":
        return sa_func.to_char(sa_func.timezone("UTC", RedemptionRecord.redeemed_at), postgres_format)
    return sa_func.strftime(sqlite_format, RedemptionRecord.redeemed_at)
