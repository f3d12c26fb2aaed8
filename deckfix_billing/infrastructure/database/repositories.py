"""Data access layer for tiers, subscriptions and credits"""

from decimal import Decimal
from typing import Any, Dict, List, Optional
from sqlalchemy import or_, update
from sqlalchemy.orm import Session
from deckfix_billing.infrastructure.database.models import (
    BillingCustomer,
    BillingSubscription,
    CreditTransaction,
    ProCreditTier,
    TierUpgradeCost,
    UserCredits,
)
from deckfix_billing.domain.models import BillingPeriod, CreditBalance, SubscriptionTier


class TierRepository:
    """Tier catalog backed by the pricing tables"""

    def __init__(self, db: Session):
        self.db = db

    def get_tier_by_price_id(self, price_id: str) -> Optional[SubscriptionTier]:
        """Find a tier by either its monthly or annual provider price id"""
        row = (
            self.db.query(ProCreditTier)
            .filter(
                or_(
                    ProCreditTier.stripe_price_id_monthly == price_id,
                    ProCreditTier.stripe_price_id_annual == price_id,
                )
            )
            .first()
        )
        if row is None:
            return None
        return SubscriptionTier(
            credits=row.credits,
            price_monthly=Decimal(row.price_monthly),
            price_annual=Decimal(row.price_annual),
            price_id_monthly=row.stripe_price_id_monthly,
            price_id_annual=row.stripe_price_id_annual,
        )

    def get_upgrade_cost(
        self,
        from_credits: int,
        to_credits: int,
        billing_period: BillingPeriod,
    ) -> Optional[Decimal]:
        row = (
            self.db.query(TierUpgradeCost)
            .filter(
                TierUpgradeCost.from_credits == from_credits,
                TierUpgradeCost.to_credits == to_credits,
                TierUpgradeCost.billing_period == billing_period.value,
            )
            .first()
        )
        return Decimal(row.upgrade_cost) if row else None


class SubscriptionRepository:
    """Repository for the mirrored billing provider state"""

    def __init__(self, db: Session):
        self.db = db

    def get_customer_id(self, user_id: str) -> Optional[str]:
        customer = self.db.query(BillingCustomer).filter(BillingCustomer.user_id == user_id).first()
        return customer.customer_id if customer else None

    def get_active_subscription(self, customer_id: str) -> Optional[BillingSubscription]:
        return (
            self.db.query(BillingSubscription)
            .filter(
                BillingSubscription.customer_id == customer_id,
                BillingSubscription.status == "active",
            )
            .first()
        )


class CreditRepository:
    """Repository for credit balances and their transaction log"""

    def __init__(self, db: Session):
        self.db = db

    def get_balance(self, user_id: str) -> Optional[CreditBalance]:
        # populate_existing: never return the identity map's cached copy
        row = self.db.query(UserCredits).filter(UserCredits.user_id == user_id).populate_existing().first()
        if row is None:
            return None
        return CreditBalance(
            user_id=row.user_id,
            subscription_credits=row.subscription_credits,
            purchased_credits=row.purchased_credits,
        )

    def create_balance(self, balance: CreditBalance) -> None:
        self.db.add(
            UserCredits(
                user_id=balance.user_id,
                subscription_credits=balance.subscription_credits,
                purchased_credits=balance.purchased_credits,
            )
        )
        self.db.flush()

    def compare_and_set_balance(self, current: CreditBalance, updated: CreditBalance) -> bool:
        """
        Write updated only if the stored balance still equals current.

        Returns False when another transaction changed the balance after it was read.
        """
        result = self.db.execute(
            update(UserCredits)
            .where(
                UserCredits.user_id == current.user_id,
                UserCredits.subscription_credits == current.subscription_credits,
                UserCredits.purchased_credits == current.purchased_credits,
            )
            .values(
                subscription_credits=updated.subscription_credits,
                purchased_credits=updated.purchased_credits,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def record_transaction(
        self,
        user_id: str,
        amount: int,
        transaction_type: str,
        description: str,
        balance_after: int,
        complexity_score: Optional[int] = None,
        credits_cost: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> CreditTransaction:
        """Append a ledger entry; amount is negative for deductions"""
        transaction = CreditTransaction(
            user_id=user_id,
            amount=amount,
            transaction_type=transaction_type,
            description=description,
            complexity_score=complexity_score,
            credits_cost=credits_cost,
            balance_after=balance_after,
            details=details or {},
        )
        self.db.add(transaction)
        self.db.flush()  # Get ID without committing
        return transaction

    def get_transactions_by_user(self, user_id: str, limit: int = 50, offset: int = 0) -> List[CreditTransaction]:
        """Fetch a page of transactions for a user, newest first"""
        return (
            self.db.query(CreditTransaction)
            .filter(CreditTransaction.user_id == user_id)
            .order_by(CreditTransaction.created_at.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
