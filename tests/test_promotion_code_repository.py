"""Tests for the promotion code catalog repository."""

from datetime import UTC, datetime, timedelta, timezone

from promocodes.repositories.promotion_code_repository import PromotionCodeRepository
from promocodes.schemas.promotion_code import PromotionCodeUpdate
from tests.conftest import make_code


class TestLookup:
    def test_get_by_code_ignores_case_and_whitespace(self, db_session):
        created = make_code(db_session, "SAVE20")
        repo = PromotionCodeRepository(db_session)

        assert repo.get_by_code("save20").id == created.id
        assert repo.get_by_code("  Save20 \n").id == created.id

    def test_get_by_code_blank_or_unknown(self, db_session):
        make_code(db_session, "SAVE20")
        repo = PromotionCodeRepository(db_session)

        assert repo.get_by_code("") is None
        assert repo.get_by_code("   ") is None
        assert repo.get_by_code("NOPE") is None

    def test_codes_are_stored_normalized(self, db_session):
        created = make_code(db_session, "  welcome10 ", 10)
        assert created.code == "WELCOME10"

    def test_get_snapshot(self, db_session):
        make_code(db_session, "SAVE20", 20, max_usage_count=100, current_usage_count=10)
        snapshot = PromotionCodeRepository(db_session).get_snapshot("save20")

        assert snapshot.code == "SAVE20"
        assert snapshot.discount_percentage == 20
        assert snapshot.current_usage_count == 10
        assert snapshot.remaining_uses == 90
        assert snapshot.is_available()

    def test_get_many_by_codes(self, db_session):
        make_code(db_session, "SAVE20")
        make_code(db_session, "WELCOME10", 10)
        rows = PromotionCodeRepository(db_session).get_many_by_codes(
            ["save20", "WELCOME10", "missing", "  "]
        )
        assert set(rows) == {"SAVE20", "WELCOME10"}

    def test_get_many_by_codes_empty(self, db_session):
        assert PromotionCodeRepository(db_session).get_many_by_codes(["", " "]) == {}


class TestIncrementUsage:
    def test_increments_counter(self, db_session):
        code = make_code(db_session, "SAVE20", max_usage_count=100, current_usage_count=10)
        repo = PromotionCodeRepository(db_session)

        updated = repo.increment_usage(code.id)
        db_session.commit()

        assert updated.current_usage_count == 11
        assert updated.active is True

    def test_reaching_limit_deactivates_in_same_update(self, db_session):
        code = make_code(db_session, "LAST1", max_usage_count=11, current_usage_count=10)
        repo = PromotionCodeRepository(db_session)

        updated = repo.increment_usage(code.id)
        db_session.commit()

        assert updated.current_usage_count == 11
        assert updated.active is False
        assert repo.get_snapshot("LAST1").active is False

    def test_unlimited_code_never_deactivates(self, db_session):
        code = make_code(db_session, "FOREVER", max_usage_count=None, current_usage_count=500)
        updated = PromotionCodeRepository(db_session).increment_usage(code.id)
        assert updated.current_usage_count == 501
        assert updated.active is True

    def test_exhausted_code_does_not_match(self, db_session):
        code = make_code(db_session, "FULL", max_usage_count=5, current_usage_count=5)
        repo = PromotionCodeRepository(db_session)

        assert repo.increment_usage(code.id) is None
        db_session.rollback()
        assert repo.get_snapshot("FULL").current_usage_count == 5

    def test_inactive_code_does_not_match(self, db_session):
        code = make_code(db_session, "OFF", active=False)
        assert PromotionCodeRepository(db_session).increment_usage(code.id) is None

    def test_expired_code_does_not_match(self, db_session):
        code = make_code(
            db_session, "OLD", expires_at=datetime.now(UTC) - timedelta(days=1)
        )
        assert PromotionCodeRepository(db_session).increment_usage(code.id) is None

    def test_expiry_with_utc_offset_does_not_match_once_past(self, db_session):
        expired_at = datetime.now(UTC) - timedelta(minutes=30)
        code = make_code(
            db_session, "OLD", expires_at=expired_at.astimezone(timezone(timedelta(hours=7)))
        )
        assert PromotionCodeRepository(db_session).increment_usage(code.id) is None


class TestDeactivation:
    def test_deactivate(self, db_session):
        make_code(db_session, "SAVE20")
        repo = PromotionCodeRepository(db_session)

        deactivated = repo.deactivate("save20")

        assert deactivated.active is False
        assert repo.deactivate("missing") is None

    def test_update(self, db_session):
        make_code(db_session, "SAVE20", 20)
        updated = PromotionCodeRepository(db_session).update(
            "SAVE20", PromotionCodeUpdate(discount_percentage=30)
        )
        assert updated.discount_percentage == 30

    def test_update_expiry_is_stored_in_utc(self, db_session):
        make_code(db_session, "SAVE20", 20)
        repo = PromotionCodeRepository(db_session)

        repo.update(
            "SAVE20",
            PromotionCodeUpdate(
                expires_at=datetime(2026, 12, 31, 23, 0, tzinfo=timezone(timedelta(hours=-5)))
            ),
        )

        assert repo.get_snapshot("SAVE20").expires_at == datetime(2027, 1, 1, 4, 0, tzinfo=UTC)

    def test_deactivate_expired(self, db_session):
        now = datetime.now(UTC)
        make_code(db_session, "OLD1", expires_at=now - timedelta(days=2))
        make_code(db_session, "OLD2", expires_at=now - timedelta(minutes=1))
        make_code(db_session, "FRESH", expires_at=now + timedelta(days=2))
        make_code(db_session, "NOEXPIRY")
        repo = PromotionCodeRepository(db_session)

        assert repo.deactivate_expired(now) == 2
        db_session.commit()
        assert repo.count(active=True) == 2
        # Already inactive codes are not counted again
        assert repo.deactivate_expired(now) == 0

    def test_deactivate_exhausted(self, db_session):
        make_code(db_session, "FULL", max_usage_count=3, current_usage_count=3)
        make_code(db_session, "ROOM", max_usage_count=3, current_usage_count=2)
        make_code(db_session, "FOREVER", max_usage_count=None, current_usage_count=50)
        repo = PromotionCodeRepository(db_session)

        assert repo.deactivate_exhausted() == 1
        db_session.commit()
        assert repo.get_snapshot("FULL").active is False
        assert repo.get_snapshot("ROOM").active is True


class TestAggregates:
    def test_counts_and_totals(self, db_session):
        now = datetime.now(UTC)
        make_code(db_session, "A10", 10, current_usage_count=4)
        make_code(db_session, "B20", 20, current_usage_count=6, active=False)
        make_code(db_session, "C30", 30, expires_at=now - timedelta(days=1))
        repo = PromotionCodeRepository(db_session)

        assert repo.count() == 3
        assert repo.count(active=True) == 2
        assert repo.count(active=False) == 1
        assert repo.count_expired(now) == 1
        assert repo.total_usage() == 10
        assert repo.average_discount_percentage() == 20.0

    def test_most_used(self, db_session):
        make_code(db_session, "LOW", current_usage_count=1)
        make_code(db_session, "HIGH", current_usage_count=9)
        make_code(db_session, "MID", current_usage_count=5)

        most_used = PromotionCodeRepository(db_session).most_used(limit=2)
        assert [c.code for c in most_used] == ["HIGH", "MID"]
