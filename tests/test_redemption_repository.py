"""Tests for the redemption ledger repository."""

from datetime import UTC, date, datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from promocodes.core.database import Base, enable_sqlite_foreign_keys
from promocodes.repositories.redemption_repository import (
    CodeUsage,
    RedemptionRepository,
    period_label,
)
from tests.conftest import make_account, make_code, make_record


def _append(repo, code, account, transaction_id="txn_1"):
    return repo.append(
        promotion_code_id=code.id,
        account_id=account.id,
        transaction_id=transaction_id,
        discount_percentage=20,
        original_amount=10000,
        discount_amount=2000,
        final_amount=8000,
    )


class TestAppend:
    def test_append_and_lookup(self, db_session, save20, account):
        repo = RedemptionRepository(db_session)
        record = _append(repo, save20, account)
        db_session.commit()

        assert repo.get_by_id(record.id).transaction_id == "txn_1"
        assert repo.get_by_transaction_id("txn_1").id == record.id
        assert repo.get_by_account_id(account.id).id == record.id
        assert repo.get_by_transaction_id("txn_missing") is None
        assert record.redeemed_at is not None

    def test_second_record_for_account_violates_unique(self, db_session, save20, account):
        repo = RedemptionRepository(db_session)
        _append(repo, save20, account, "txn_1")
        db_session.commit()

        with pytest.raises(IntegrityError):
            _append(repo, save20, account, "txn_2")
        db_session.rollback()
        assert repo.uses_by_account(account.id) == 1

    def test_duplicate_transaction_violates_unique(self, db_session, save20, account):
        other = make_account(db_session)
        repo = RedemptionRepository(db_session)
        _append(repo, save20, account, "txn_1")
        db_session.commit()

        with pytest.raises(IntegrityError):
            _append(repo, save20, other, "txn_1")
        db_session.rollback()
        assert repo.count() == 1


class TestAggregates:
    @pytest.fixture
    def ledger(self, db_session):
        """Four redemptions across two codes over three days."""
        save20 = make_code(db_session, "SAVE20", 20)
        welcome = make_code(db_session, "WELCOME10", 10)
        day1 = datetime(2026, 10, 1, 10, 0, tzinfo=UTC)
        day2 = datetime(2026, 10, 2, 15, 30, tzinfo=UTC)
        day3 = datetime(2026, 10, 3, 9, 0, tzinfo=UTC)
        make_record(db_session, save20, make_account(db_session), 10000, day1)
        make_record(db_session, save20, make_account(db_session), 5000, day2)
        make_record(db_session, save20, make_account(db_session), 2000, day2)
        make_record(db_session, welcome, make_account(db_session), 10000, day3)
        return save20, welcome

    def test_count_and_sums(self, db_session, ledger):
        save20, welcome = ledger
        repo = RedemptionRepository(db_session)

        assert repo.count() == 4
        assert repo.count(promotion_code_id=save20.id) == 3
        assert repo.uses_by_code(welcome.id) == 1
        assert repo.sum_discount() == 2000 + 1000 + 400 + 1000
        assert repo.sum_discount(promotion_code_id=save20.id) == 3400
        assert repo.sum_original(promotion_code_id=save20.id) == 17000

    def test_period_filters(self, db_session, ledger):
        repo = RedemptionRepository(db_session)
        start = datetime(2026, 10, 2, 0, 0, tzinfo=UTC)
        end = datetime(2026, 10, 2, 23, 59, tzinfo=UTC)

        assert repo.count(start=start, end=end) == 2
        assert repo.sum_discount(start=start, end=end) == 1400
        assert repo.count(start=datetime(2026, 11, 1, tzinfo=UTC)) == 0

    def test_top_codes(self, db_session, ledger):
        top = RedemptionRepository(db_session).top_codes()
        assert top == [
            CodeUsage(code="SAVE20", uses=3, revenue_impact=3400),
            CodeUsage(code="WELCOME10", uses=1, revenue_impact=1000),
        ]

    def test_top_codes_in_period(self, db_session, ledger):
        top = RedemptionRepository(db_session).top_codes(
            start=datetime(2026, 10, 3, tzinfo=UTC),
            end=datetime(2026, 10, 4, tzinfo=UTC),
        )
        assert top == [CodeUsage(code="WELCOME10", uses=1, revenue_impact=1000)]

    def test_top_codes_by_revenue(self, db_session, ledger):
        big = make_code(db_session, "BIG50", 50)
        make_record(
            db_session, big, make_account(db_session), 10000, datetime(2026, 10, 3, tzinfo=UTC)
        )
        top = RedemptionRepository(db_session).top_codes(by_revenue=True)
        assert [(c.code, c.revenue_impact) for c in top] == [
            ("BIG50", 5000),
            ("SAVE20", 3400),
            ("WELCOME10", 1000),
        ]

    def test_top_codes_limit(self, db_session, ledger):
        assert len(RedemptionRepository(db_session).top_codes(limit=1)) == 1

    def test_daily_counts(self, db_session, ledger):
        counts = RedemptionRepository(db_session).daily_counts(
            datetime(2026, 9, 30, tzinfo=UTC),
            datetime(2026, 10, 31, tzinfo=UTC),
        )
        assert counts == {
            date(2026, 10, 1): 1,
            date(2026, 10, 2): 2,
            date(2026, 10, 3): 1,
        }

    def test_monthly_counts(self, db_session, ledger):
        save20, welcome = ledger
        make_record(
            db_session, save20, make_account(db_session), 10000,
            datetime(2026, 8, 31, 23, 59, tzinfo=UTC),
        )
        repo = RedemptionRepository(db_session)
        start = datetime(2026, 1, 1, tzinfo=UTC)
        end = datetime(2026, 12, 31, tzinfo=UTC)

        assert repo.monthly_counts(start, end) == {"2026-08": 1, "2026-10": 4}
        assert repo.monthly_counts(start, end, promotion_code_id=welcome.id) == {"2026-10": 1}

    def test_recent_by_code_newest_first(self, db_session, ledger):
        save20, _ = ledger
        recent = RedemptionRepository(db_session).recent_by_code(save20.id, limit=2)
        assert [r.original_amount for r in recent] in ([5000, 2000], [2000, 5000])
        assert all(r.redeemed_at.day == 2 for r in recent)

    def test_empty_ledger(self, db_session):
        repo = RedemptionRepository(db_session)
        now = datetime.now(UTC)
        assert repo.count() == 0
        assert repo.sum_discount() == 0
        assert repo.top_codes() == []
        assert repo.daily_counts(now - timedelta(days=1), now) == {}
        assert repo.monthly_counts(now - timedelta(days=1), now) == {}


class TestPeriodLabel:
    def test_postgres_converts_to_utc_before_formatting(self):
        expression = period_label("postgresql", "YYYY-MM-DD", "%Y-%m-%d")
        sql = str(expression.compile(dialect=postgresql.dialect()))
        assert sql.startswith("to_char(timezone(")
        assert "redemption_records.redeemed_at" in sql

    def test_sqlite_formats_stored_value(self):
        expression = period_label("sqlite", "YYYY-MM", "%Y-%m")
        sql = str(expression.compile(dialect=sqlite.dialect()))
        assert sql.startswith("strftime(")


class TestForeignKeys:
    def test_code_with_redemptions_cannot_be_deleted(self, tmp_path):
        engine = create_engine(f"sqlite:///{tmp_path / 'fk.db'}")
        enable_sqlite_foreign_keys(engine)
        Base.metadata.create_all(bind=engine)
        db = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
        try:
            code = make_code(db, "SAVE20")
            make_record(db, code, make_account(db))

            db.delete(code)
            with pytest.raises(IntegrityError):
                db.commit()
        finally:
            db.close()
            engine.dispose()
