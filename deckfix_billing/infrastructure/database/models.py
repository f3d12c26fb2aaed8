"""SQLAlchemy ORM models for tiers, subscriptions and the credit ledger"""

import uuid
from sqlalchemy import (
    Column,
    String,
    Integer,
    Numeric,
    DateTime,
    ForeignKey,
    Text,
    JSON,
    Uuid,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

from deckfix_billing.utils.date_utils import utc_now

Base = declarative_base()


class ProCreditTier(Base):
    """Credit tier with its provider price ids"""

    __tablename__ = "pro_credit_tiers"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    credits = Column(Integer, nullable=False, unique=True)
    price_monthly = Column(Numeric(10, 2), nullable=False)
    price_annual = Column(Numeric(10, 2), nullable=False)
    stripe_price_id_monthly = Column(String(255), nullable=True, unique=True)
    stripe_price_id_annual = Column(String(255), nullable=True, unique=True)


class TierUpgradeCost(Base):
    """Full-period price of moving from one tier to another"""

    __tablename__ = "tier_upgrade_costs"
    __table_args__ = (UniqueConstraint("from_credits", "to_credits", "billing_period"),)

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    from_credits = Column(Integer, nullable=False)
    to_credits = Column(Integer, nullable=False)
    billing_period = Column(Text, nullable=False)  # "monthly" or "annual"
    upgrade_cost = Column(Numeric(10, 2), nullable=False)


class BillingCustomer(Base):
    """Mapping from user to billing provider customer"""

    __tablename__ = "billing_customers"

    user_id = Column(Text, primary_key=True)
    customer_id = Column(Text, nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class BillingSubscription(Base):
    """Mirror of the provider subscription state (written by webhooks)"""

    __tablename__ = "billing_subscriptions"

    subscription_id = Column(Text, primary_key=True)
    customer_id = Column(Text, ForeignKey("billing_customers.customer_id"), nullable=False, index=True)
    price_id = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default="active")
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class UserCredits(Base):
    """Current credit balance per user"""

    __tablename__ = "user_credits"

    user_id = Column(Text, primary_key=True)
    subscription_credits = Column(Integer, nullable=False, default=0)
    purchased_credits = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class CreditTransaction(Base):
    """Append-only log of credit movements"""

    __tablename__ = "credit_transactions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    amount = Column(Integer, nullable=False)  # negative for deductions
    transaction_type = Column(Text, nullable=False)
    description = Column(Text, nullable=False, default="")
    complexity_score = Column(Integer, nullable=True)
    credits_cost = Column(Integer, nullable=True)
    balance_after = Column(Integer, nullable=False)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, index=True)
