"""Shared test fixtures for all test modules."""

import contextlib
from datetime import datetime
from uuid import uuid4

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import promocodes.models  # noqa: F401
from promocodes.core import database as db_module
from promocodes.core.database import Base, get_db
from promocodes.models.account import Account, SubscriptionTier
from promocodes.models.promotion_code import PromotionCode
from promocodes.models.redemption_record import RedemptionRecord
from promocodes.repositories.account_repository import AccountRepository
from promocodes.repositories.promotion_code_repository import PromotionCodeRepository
from promocodes.schemas.account import AccountCreate
from promocodes.schemas.promotion_code import PromotionCodeCreate

# Create an in-memory SQLite engine with StaticPool so all connections
# share the same database state and there are no file-locking issues.
_test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_test_engine)


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test and truncate all data after.

    Patches the module-level engine and SessionLocal so all application code
    uses the in-memory test database. Clears data after each test.
    """
    original_engine = db_module.engine
    original_session = db_module.SessionLocal
    db_module.engine = _test_engine
    db_module.SessionLocal = _TestSessionLocal

    Base.metadata.create_all(bind=_test_engine)

    yield
    with _test_engine.connect() as conn:
        conn.execute(text("PRAGMA foreign_keys = OFF"))
        for table in reversed(Base.metadata.sorted_tables):
            with contextlib.suppress(OperationalError):
                conn.execute(table.delete())
        conn.execute(text("PRAGMA foreign_keys = ON"))
        conn.commit()

    db_module.engine = original_engine
    db_module.SessionLocal = original_session


@pytest.fixture
def db_session():
    """Create a database session for direct repository testing."""
    gen = get_db()
    db = next(gen)
    try:
        yield db
    finally:
        for _ in gen:
            pass


def make_account(
    db: Session,
    discount_redeemed: bool = False,
    suspended: bool = False,
    subscription_tier: SubscriptionTier = SubscriptionTier.FREE,
) -> Account:
    """Create an account with a unique email."""
    return AccountRepository(db).create(
        AccountCreate(
            email=f"account_{uuid4().hex[:12]}@test.com",
            discount_redeemed=discount_redeemed,
            suspended=suspended,
            subscription_tier=subscription_tier,
        )
    )


def make_code(
    db: Session,
    code: str = "SAVE20",
    discount_percentage: int = 20,
    max_usage_count: int | None = 100,
    current_usage_count: int = 0,
    active: bool = True,
    expires_at: datetime | None = None,
) -> PromotionCode:
    """Create a promotion code, optionally with usage already counted."""
    promotion_code = PromotionCodeRepository(db).create(
        PromotionCodeCreate(
            code=code,
            discount_percentage=discount_percentage,
            max_usage_count=max_usage_count,
            expires_at=expires_at,
            active=active,
        )
    )
    if current_usage_count:
        promotion_code.current_usage_count = current_usage_count  # type: ignore[assignment]
        db.commit()
        db.refresh(promotion_code)
    return promotion_code


def make_record(
    db: Session,
    promotion_code: PromotionCode,
    account: Account,
    original_amount: int = 10000,
    redeemed_at: datetime | None = None,
    transaction_id: str | None = None,
) -> RedemptionRecord:
    """Insert a ledger record directly, bypassing the usage counter."""
    percentage = int(promotion_code.discount_percentage)
    discount_amount = original_amount * percentage // 100
    record = RedemptionRecord(
        promotion_code_id=promotion_code.id,
        account_id=account.id,
        transaction_id=transaction_id or f"txn_{uuid4().hex}",
        discount_percentage=percentage,
        original_amount=original_amount,
        discount_amount=discount_amount,
        final_amount=original_amount - discount_amount,
    )
    if redeemed_at is not None:
        record.redeemed_at = redeemed_at  # type: ignore[assignment]
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


@pytest.fixture
def account(db_session):
    """An account that has never used a discount code."""
    return make_account(db_session)


@pytest.fixture
def save20(db_session):
    """SAVE20: 20% off, 100 uses, 10 already used."""
    return make_code(db_session, "SAVE20", 20, max_usage_count=100, current_usage_count=10)
