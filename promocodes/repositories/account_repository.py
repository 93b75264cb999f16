"""Account repository for data access."""

from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session

from promocodes.models.account import Account, SubscriptionTier
from promocodes.schemas.account import AccountCreate


class AccountRepository:
    """Repository for Account model."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, account_id: UUID) -> Account | None:
        """Get an account by ID."""
        return self.db.query(Account).filter(Account.id == account_id).first()

    def reload(self, account_id: UUID) -> Account | None:
        """Get an account by ID, discarding any state cached in the session."""
        return (
            self.db.query(Account)
            .filter(Account.id == account_id)
            .populate_existing()
            .first()
        )

    def create(self, data: AccountCreate) -> Account:
        """Create a new account."""
        account = Account(
            email=data.email,
            discount_redeemed=data.discount_redeemed,
            suspended=data.suspended,
            subscription_tier=data.subscription_tier.value,
        )
        self.db.add(account)
        self.db.commit()
        self.db.refresh(account)
        return account

    def claim_discount(self, account_id: UUID) -> bool:
        """Set ``discount_redeemed`` if the account is still eligible.

        Runs inside the caller's transaction and does not commit. Returns False
        when no eligible row matched.
        """
        result = self.db.execute(
            update(Account)
            .where(
                Account.id == account_id,
                Account.discount_redeemed.is_(False),
                Account.suspended.is_(False),
                Account.subscription_tier != SubscriptionTier.PREMIUM.value,
            )
            .values(discount_redeemed=True)
            .execution_options(synchronize_session=False)
        )
        return bool(result.rowcount == 1)  # type: ignore[attr-defined]
