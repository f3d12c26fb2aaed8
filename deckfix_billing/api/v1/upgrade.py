"""POST /v1/subscription/upgrade-preview - price a subscription tier change"""

import logging
from typing import Union
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from deckfix_billing.api.v1.schemas import (
    DowngradePreviewResponse,
    TierSchema,
    UpgradePreviewRequest,
    UpgradePreviewResponse,
)
from deckfix_billing.api.dependencies import Clock, get_billing_client, get_clock, get_request_id
from deckfix_billing.infrastructure.database.session import get_db
from deckfix_billing.infrastructure.database.repositories import SubscriptionRepository, TierRepository
from deckfix_billing.infrastructure.clients.billing import BillingClient
from deckfix_billing.domain.models import SubscriptionTier, TierChange
from deckfix_billing.domain.proration import (
    build_downgrade_preview,
    calculate_upgrade_preview,
    classify_tier_change,
)
from deckfix_billing.domain.exceptions import (
    BillingProviderError,
    CustomerNotFoundError,
    InvalidBillingCycleError,
    SameTierError,
    SubscriptionNotFoundError,
    TierNotFoundError,
    UpgradePricingNotConfiguredError,
)
from deckfix_billing.infrastructure.observability.metrics import billing_fetch_failures_counter, record_tier_change
from deckfix_billing.infrastructure.observability.logging import log_tier_change

router = APIRouter()


def to_tier_schema(tier: SubscriptionTier) -> TierSchema:
    return TierSchema(
        credits=tier.credits,
        price_monthly=float(tier.price_monthly),
        price_annual=float(tier.price_annual),
    )


def load_tier(tiers: TierRepository, price_id: str, label: str) -> SubscriptionTier:
    tier = tiers.get_tier_by_price_id(price_id)
    if tier is None:
        raise TierNotFoundError(f"No {label} tier configured for price {price_id}")
    return tier


@router.post(
    "/subscription/upgrade-preview",
    response_model=Union[UpgradePreviewResponse, DowngradePreviewResponse],
)
async def preview_upgrade(
    request_body: UpgradePreviewRequest,
    request: Request,
    db: Session = Depends(get_db),
    billing_client: BillingClient = Depends(get_billing_client),
    clock: Clock = Depends(get_clock),
):
    """
    Preview the charge for switching the user's subscription to another tier.

    Flow:
    1. Resolve billing customer and active subscription
    2. Load current and target tiers by provider price id
    3. Downgrades: return the deferred-change notice, no charge
    4. Upgrades: fetch the billing cycle from the provider and prorate the upgrade cost

    Classification happens before the cycle fetch so downgrades never call the
    billing provider; preview_tier_change needs the cycle up front.
    """
    request_id = get_request_id(request)
    user_id = request_body.user_id

    try:
        subscriptions = SubscriptionRepository(db)
        customer_id = subscriptions.get_customer_id(user_id)
        if not customer_id:
            raise CustomerNotFoundError("No billing customer found")

        subscription = subscriptions.get_active_subscription(customer_id)
        if subscription is None:
            raise SubscriptionNotFoundError("No active subscription found")

        tiers = TierRepository(db)
        current_tier = load_tier(tiers, subscription.price_id, "current")
        target_tier = load_tier(tiers, request_body.target_price_id, "target")

        if classify_tier_change(current_tier, target_tier) == TierChange.DOWNGRADE:
            downgrade = build_downgrade_preview(current_tier, target_tier)
            record_tier_change(TierChange.DOWNGRADE.value)
            log_tier_change(request_id, user_id, TierChange.DOWNGRADE.value, current_tier.credits, target_tier.credits)
            return DowngradePreviewResponse(
                current_tier=to_tier_schema(downgrade.current_tier),
                target_tier=to_tier_schema(downgrade.target_tier),
                message=downgrade.message,
            )

        cycle = await billing_client.get_billing_cycle(subscription.subscription_id)
        preview = calculate_upgrade_preview(current_tier, target_tier, cycle, tiers, clock())

    except SameTierError as e:
        record_tier_change("rejected")
        logging.warning(f"Same tier requested: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=400, detail=str(e))

    except (CustomerNotFoundError, SubscriptionNotFoundError) as e:
        logging.warning(f"Missing subscriber context: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=404, detail=str(e))

    except (TierNotFoundError, UpgradePricingNotConfiguredError) as e:
        logging.error(f"Pricing configuration gap: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail=str(e))

    except InvalidBillingCycleError as e:
        logging.error(f"Invalid billing cycle: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=502, detail=str(e))

    except BillingProviderError as e:
        billing_fetch_failures_counter.inc()
        logging.error(f"Billing provider error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Billing service unavailable")

    record_tier_change(TierChange.UPGRADE.value, clamped=preview.days_remaining_clamped)
    log_tier_change(
        request_id,
        user_id,
        TierChange.UPGRADE.value,
        current_tier.credits,
        target_tier.credits,
        float(preview.prorated_upgrade_cost),
    )

    return UpgradePreviewResponse(
        current_tier=to_tier_schema(preview.current_tier),
        target_tier=to_tier_schema(preview.target_tier),
        billing_period=preview.billing_period.value,
        base_upgrade_cost=float(preview.base_upgrade_cost),
        prorated_upgrade_cost=float(preview.prorated_upgrade_cost),
        days_remaining=preview.days_remaining,
        total_days=preview.total_days,
        next_billing_date=preview.next_billing_date.isoformat(),
        prorated_percentage=preview.prorated_percentage,
        savings=float(preview.savings),
    )
