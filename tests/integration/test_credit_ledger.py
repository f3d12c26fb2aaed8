"""Integration tests for concurrent credit balance updates"""

import pytest
from sqlalchemy.orm import Session, sessionmaker
from deckfix_billing.api.v1.credits import change_balance
from deckfix_billing.domain.credits import PURCHASE, deduct_credits, grant_credits
from deckfix_billing.domain.exceptions import CreditBalanceConflictError, InsufficientCreditsError
from deckfix_billing.domain.models import CreditBalance
from deckfix_billing.infrastructure.database.models import UserCredits
from deckfix_billing.infrastructure.database.repositories import CreditRepository


@pytest.fixture
def ten_credits(db: Session) -> Session:
    db.add(UserCredits(user_id="user_race", subscription_credits=0, purchased_credits=10))
    db.commit()
    return db


def test_stale_balance_write_is_rejected(ten_credits: Session, session_factory: sessionmaker):
    """Two requests read 10 credits; only the first 8-credit spend may land"""
    first, second = session_factory(), session_factory()
    try:
        first_credits, second_credits = CreditRepository(first), CreditRepository(second)
        first_seen = first_credits.get_balance("user_race")
        second_seen = second_credits.get_balance("user_race")

        assert first_credits.compare_and_set_balance(first_seen, deduct_credits(first_seen, 8))
        first.commit()

        assert not second_credits.compare_and_set_balance(second_seen, deduct_credits(second_seen, 8))
        second.rollback()
    finally:
        first.close()
        second.close()

    assert CreditRepository(ten_credits).get_balance("user_race").credits_balance == 2


def test_retry_sees_concurrent_spend(ten_credits: Session, session_factory: sessionmaker):
    """The losing request re-reads the balance and fails on the real remainder"""
    other = session_factory()
    try:
        other_credits = CreditRepository(other)
        seen = other_credits.get_balance("user_race")
        # this session already holds the row with 10 credits
        CreditRepository(ten_credits).get_balance("user_race")
        assert other_credits.compare_and_set_balance(seen, deduct_credits(seen, 8))
        other.commit()
    finally:
        other.close()

    with pytest.raises(InsufficientCreditsError):
        change_balance(CreditRepository(ten_credits), "user_race", lambda b: deduct_credits(b, 8))


class LosingCreditRepository:
    """Balance store where the first N writes lose to a concurrent update"""

    def __init__(self, balance: CreditBalance, losses: int):
        self.balance = balance
        self.losses = losses
        self.reads = 0

    def get_balance(self, user_id: str):
        self.reads += 1
        return self.balance

    def compare_and_set_balance(self, current: CreditBalance, updated: CreditBalance) -> bool:
        if self.losses:
            self.losses -= 1
            return False
        self.balance = updated
        return True


def test_change_balance_retries_after_lost_write():
    credits = LosingCreditRepository(CreditBalance("user_race", 0, 10), losses=1)

    updated = change_balance(credits, "user_race", lambda b: grant_credits(b, 5, PURCHASE), attempts=3)

    assert updated.credits_balance == 15
    assert credits.reads == 2


def test_change_balance_gives_up_after_repeated_conflicts():
    credits = LosingCreditRepository(CreditBalance("user_race", 0, 10), losses=5)

    with pytest.raises(CreditBalanceConflictError):
        change_balance(credits, "user_race", lambda b: deduct_credits(b, 1), attempts=3)

    assert credits.reads == 3
