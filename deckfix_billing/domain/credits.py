"""Credit balance arithmetic for spending and granting credits"""

from dataclasses import replace

from deckfix_billing.domain.exceptions import InsufficientCreditsError, InvalidCreditAmountError
from deckfix_billing.domain.models import CreditBalance

DEDUCTION = "deduction"
PURCHASE = "purchase"
SUBSCRIPTION_RENEWAL = "subscription_renewal"
REFUND = "refund"

GRANT_TYPES = (PURCHASE, SUBSCRIPTION_RENEWAL, REFUND)


def deduct_credits(balance: CreditBalance, cost: int) -> CreditBalance:
    """
    Spend credits: subscription credits first, the remainder from purchased credits.

    Raises:
        InvalidCreditAmountError: cost is not positive
        InsufficientCreditsError: balance does not cover cost
    """
    if cost <= 0:
        raise InvalidCreditAmountError(f"Credit cost must be positive, got {cost}")
    if balance.credits_balance < cost:
        raise InsufficientCreditsError()

    if balance.subscription_credits >= cost:
        return replace(balance, subscription_credits=balance.subscription_credits - cost)

    remaining = cost - balance.subscription_credits
    return replace(
        balance,
        subscription_credits=0,
        purchased_credits=balance.purchased_credits - remaining,
    )


def grant_credits(balance: CreditBalance, amount: int, transaction_type: str) -> CreditBalance:
    """Add credits to the bucket matching how they were obtained"""
    if amount <= 0:
        raise InvalidCreditAmountError(f"Credit amount must be positive, got {amount}")

    if transaction_type == SUBSCRIPTION_RENEWAL:
        return replace(balance, subscription_credits=balance.subscription_credits + amount)
    elif transaction_type in (PURCHASE, REFUND):
        return replace(balance, purchased_credits=balance.purchased_credits + amount)

    raise InvalidCreditAmountError(f"Unknown credit transaction type: {transaction_type}")
