"""Pytest fixtures for testing"""

import os

# Keep the app's default engine off Postgres while tests import it
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Dict, Generator, List, Optional, Tuple
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from deckfix_billing.api.main import create_app
from deckfix_billing.api.dependencies import get_clock
from deckfix_billing.infrastructure.database.models import (
    Base,
    BillingCustomer,
    BillingSubscription,
    ProCreditTier,
    TierUpgradeCost,
    UserCredits,
)
from deckfix_billing.infrastructure.database.session import get_db
from deckfix_billing.domain.models import BillingCycle, BillingPeriod, SubscriptionTier


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

FIXED_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class FakeTierCatalog:
    """In-memory tier catalog that records upgrade cost lookups"""

    def __init__(
        self,
        tiers: List[SubscriptionTier],
        upgrade_costs: Dict[Tuple[int, int, BillingPeriod], Decimal],
    ):
        self.tiers = tiers
        self.upgrade_costs = upgrade_costs
        self.cost_lookups: List[Tuple[int, int, BillingPeriod]] = []

    def get_tier_by_price_id(self, price_id: str) -> Optional[SubscriptionTier]:
        for tier in self.tiers:
            if price_id in (tier.price_id_monthly, tier.price_id_annual):
                return tier
        return None

    def get_upgrade_cost(self, from_credits: int, to_credits: int, billing_period: BillingPeriod) -> Optional[Decimal]:
        self.cost_lookups.append((from_credits, to_credits, billing_period))
        return self.upgrade_costs.get((from_credits, to_credits, billing_period))


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def tier_500() -> SubscriptionTier:
    return SubscriptionTier(
        credits=500,
        price_monthly=Decimal("49.00"),
        price_annual=Decimal("490.00"),
        price_id_monthly="price_500_m",
        price_id_annual="price_500_a",
    )


@pytest.fixture
def tier_1000() -> SubscriptionTier:
    return SubscriptionTier(
        credits=1000,
        price_monthly=Decimal("89.00"),
        price_annual=Decimal("890.00"),
        price_id_monthly="price_1000_m",
        price_id_annual="price_1000_a",
    )


@pytest.fixture
def catalog(tier_500: SubscriptionTier, tier_1000: SubscriptionTier) -> FakeTierCatalog:
    return FakeTierCatalog(
        tiers=[tier_500, tier_1000],
        upgrade_costs={
            (500, 1000, BillingPeriod.ANNUAL): Decimal("80.00"),
            (500, 1000, BillingPeriod.MONTHLY): Decimal("40.00"),
        },
    )


@pytest.fixture
def make_catalog() -> Callable[..., FakeTierCatalog]:
    return FakeTierCatalog


@pytest.fixture
def annual_cycle() -> BillingCycle:
    """365-day annual period with 182 days left at FIXED_NOW"""
    return BillingCycle(
        period_start=FIXED_NOW - timedelta(days=183),
        period_end=FIXED_NOW + timedelta(days=182),
        billing_period=BillingPeriod.ANNUAL,
    )


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory(db: Session) -> sessionmaker:
    """Opens extra sessions on the test database, e.g. to interleave transactions"""
    return TestingSessionLocal


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database and a frozen clock"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: (lambda: FIXED_NOW)
    return TestClient(app)


@pytest.fixture
def seeded_db(db: Session) -> Session:
    """
    Pricing tables plus one annual 500-credit subscriber (user_pro) with
    5 subscription and 10 purchased credits.
    """
    db.add_all(
        [
            ProCreditTier(
                credits=250,
                price_monthly=Decimal("29.00"),
                price_annual=Decimal("290.00"),
                stripe_price_id_monthly="price_250_m",
                stripe_price_id_annual="price_250_a",
            ),
            ProCreditTier(
                credits=500,
                price_monthly=Decimal("49.00"),
                price_annual=Decimal("490.00"),
                stripe_price_id_monthly="price_500_m",
                stripe_price_id_annual="price_500_a",
            ),
            ProCreditTier(
                credits=1000,
                price_monthly=Decimal("89.00"),
                price_annual=Decimal("890.00"),
                stripe_price_id_monthly="price_1000_m",
                stripe_price_id_annual="price_1000_a",
            ),
            ProCreditTier(
                credits=2000,
                price_monthly=Decimal("159.00"),
                price_annual=Decimal("1590.00"),
                stripe_price_id_monthly="price_2000_m",
                stripe_price_id_annual="price_2000_a",
            ),
            TierUpgradeCost(from_credits=500, to_credits=1000, billing_period="annual", upgrade_cost=Decimal("80.00")),
            TierUpgradeCost(from_credits=500, to_credits=1000, billing_period="monthly", upgrade_cost=Decimal("40.00")),
            BillingCustomer(user_id="user_pro", customer_id="cus_pro"),
            BillingCustomer(user_id="user_lapsed", customer_id="cus_lapsed"),
            UserCredits(user_id="user_pro", subscription_credits=5, purchased_credits=10),
        ]
    )
    db.flush()
    db.add_all(
        [
            BillingSubscription(subscription_id="sub_pro", customer_id="cus_pro", price_id="price_500_a", status="active"),
            BillingSubscription(
                subscription_id="sub_lapsed", customer_id="cus_lapsed", price_id="price_500_m", status="canceled"
            ),
        ]
    )
    db.commit()
    return db
