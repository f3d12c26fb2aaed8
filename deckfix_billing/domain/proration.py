"""Subscription tier change classification and mid-cycle upgrade proration"""

import logging
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Protocol, Tuple, Union

from deckfix_billing.domain.exceptions import (
    InvalidBillingCycleError,
    SameTierError,
    UpgradePricingNotConfiguredError,
)
from deckfix_billing.domain.models import (
    BillingCycle,
    BillingPeriod,
    DowngradePreview,
    SubscriptionTier,
    TierChange,
    UpgradePreview,
)
from deckfix_billing.utils.date_utils import ceil_days_between, ensure_utc

DOWNGRADE_MESSAGE = "Downgrade will take effect at the end of your current billing period"

CENTS = Decimal("0.01")


class TierCatalog(Protocol):
    """Read-only tier and upgrade price lookups"""

    def get_tier_by_price_id(self, price_id: str) -> Optional[SubscriptionTier]:
        ...

    def get_upgrade_cost(
        self,
        from_credits: int,
        to_credits: int,
        billing_period: BillingPeriod,
    ) -> Optional[Decimal]:
        ...


def classify_tier_change(current_tier: SubscriptionTier, target_tier: SubscriptionTier) -> TierChange:
    """
    Compare tiers by credit allocation.

    Raises:
        SameTierError: Both tiers grant the same credits
    """
    if target_tier.credits == current_tier.credits:
        raise SameTierError()
    if target_tier.credits < current_tier.credits:
        return TierChange.DOWNGRADE
    return TierChange.UPGRADE


def billing_cycle_days(cycle: BillingCycle, now: datetime) -> Tuple[int, int]:
    """
    Days left in the cycle and the cycle length, both rounded up.

    Returns: (days_remaining, total_days)
    """
    start = ensure_utc(cycle.period_start)
    end = ensure_utc(cycle.period_end)
    if end <= start:
        raise InvalidBillingCycleError(
            f"Billing period ends ({end.isoformat()}) before it starts ({start.isoformat()})"
        )

    days_remaining = ceil_days_between(ensure_utc(now), end)
    total_days = ceil_days_between(start, end)
    return days_remaining, total_days


def lookup_upgrade_cost(
    catalog: TierCatalog,
    from_credits: int,
    to_credits: int,
    billing_period: BillingPeriod,
) -> Decimal:
    """
    Full-period price of moving between two tiers.

    A zero amount counts as missing: an unpriced upgrade must never be free.
    """
    cost = catalog.get_upgrade_cost(from_credits, to_credits, billing_period)
    if cost is None or Decimal(cost) == 0:
        raise UpgradePricingNotConfiguredError(
            f"Upgrade pricing not configured for {from_credits} -> {to_credits} credits ({billing_period.value})"
        )
    return Decimal(cost)


def clamp_days_remaining(days_remaining: int, total_days: int) -> int:
    if days_remaining > total_days:
        logging.warning(
            "Days remaining exceeds billing period length, clamping",
            extra={"days_remaining": days_remaining, "total_days": total_days},
        )
        return total_days
    return max(days_remaining, 0)


def prorate_upgrade_cost(base_cost: Decimal, days_remaining: int, total_days: int) -> Decimal:
    """
    Scale the full-period upgrade cost by the unused share of the period.

    The subscriber pays only for the days they will have the larger tier.
    Result is rounded half up to cents and lies in [0, base_cost].
    """
    if total_days <= 0:
        raise InvalidBillingCycleError(f"Billing period length must be positive, got {total_days} days")

    days = clamp_days_remaining(days_remaining, total_days)
    prorated = Decimal(base_cost) * Decimal(days) / Decimal(total_days)
    return prorated.quantize(CENTS, rounding=ROUND_HALF_UP)


def prorated_percentage(days_remaining: int, total_days: int) -> int:
    share = Decimal(days_remaining) / Decimal(total_days) * 100
    return int(share.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def upgrade_savings(current_price: Decimal, target_price: Decimal, prorated_cost: Decimal) -> Decimal:
    """What proration saves compared to paying the full price difference"""
    full_difference = Decimal(target_price) - Decimal(current_price)
    return max(Decimal("0"), full_difference - Decimal(prorated_cost))


def build_downgrade_preview(current_tier: SubscriptionTier, target_tier: SubscriptionTier) -> DowngradePreview:
    """Downgrades are deferred to period end, so nothing is charged now"""
    return DowngradePreview(
        current_tier=current_tier,
        target_tier=target_tier,
        message=DOWNGRADE_MESSAGE,
    )


def calculate_upgrade_preview(
    current_tier: SubscriptionTier,
    target_tier: SubscriptionTier,
    cycle: BillingCycle,
    catalog: TierCatalog,
    now: datetime,
) -> UpgradePreview:
    """
    Price an upgrade for the rest of the current billing cycle.

    Raises:
        UpgradePricingNotConfiguredError: No upgrade price for this combination
        InvalidBillingCycleError: Unusable period boundaries
    """
    days_remaining, total_days = billing_cycle_days(cycle, now)
    base_cost = lookup_upgrade_cost(catalog, current_tier.credits, target_tier.credits, cycle.billing_period)

    effective_days = clamp_days_remaining(days_remaining, total_days)
    prorated_cost = prorate_upgrade_cost(base_cost, effective_days, total_days)

    return UpgradePreview(
        current_tier=current_tier,
        target_tier=target_tier,
        billing_period=cycle.billing_period,
        base_upgrade_cost=base_cost,
        prorated_upgrade_cost=prorated_cost,
        days_remaining=effective_days,
        total_days=total_days,
        next_billing_date=ensure_utc(cycle.period_end),
        prorated_percentage=prorated_percentage(effective_days, total_days),
        savings=upgrade_savings(
            current_tier.price_for(cycle.billing_period),
            target_tier.price_for(cycle.billing_period),
            prorated_cost,
        ),
        days_remaining_clamped=days_remaining > total_days,
    )


def preview_tier_change(
    current_tier: SubscriptionTier,
    target_tier: SubscriptionTier,
    cycle: BillingCycle,
    catalog: TierCatalog,
    now: datetime,
) -> Union[UpgradePreview, DowngradePreview]:
    """
    Classify a tier change and price it if it is an upgrade.

    For callers that already hold the billing cycle. The HTTP route classifies
    first and only fetches the cycle for upgrades.
    """
    if classify_tier_change(current_tier, target_tier) == TierChange.DOWNGRADE:
        return build_downgrade_preview(current_tier, target_tier)
    return calculate_upgrade_preview(current_tier, target_tier, cycle, catalog, now)
