"""Domain models - pure Python dataclasses representing billing entities"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Union


class Severity(str, Enum):
    """How serious a single flagged slide issue is"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ComplexityLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class BillingPeriod(str, Enum):
    MONTHLY = "monthly"
    ANNUAL = "annual"


class TierChange(str, Enum):
    UPGRADE = "upgrade"
    DOWNGRADE = "downgrade"


@dataclass(frozen=True)
class Issue:
    """One flagged problem on a slide"""

    category: str  # e.g. "feedback", "recommendation", "structure"
    severity: Severity
    description: str = ""


@dataclass
class ComplexityBreakdown:
    """Weighted sub-scores behind a complexity score, kept for audit"""

    issue_count_score: int
    severity_score: Union[int, float]
    content_length_score: int
    fix_scope_score: int
    total_score: int


@dataclass
class ComplexityResult:
    """Output of fix complexity estimation"""

    complexity_score: int
    credit_cost: int
    complexity_level: ComplexityLevel
    breakdown: ComplexityBreakdown
    explanation: str
    issue_count: int


@dataclass(frozen=True)
class SubscriptionTier:
    """Priced monthly credit allocation"""

    credits: int
    price_monthly: Decimal
    price_annual: Decimal
    price_id_monthly: Optional[str] = None
    price_id_annual: Optional[str] = None

    def price_for(self, billing_period: BillingPeriod) -> Decimal:
        if billing_period == BillingPeriod.ANNUAL:
            return self.price_annual
        return self.price_monthly


@dataclass(frozen=True)
class BillingCycle:
    """Current billing period of a subscription, as reported by the billing provider"""

    period_start: datetime
    period_end: datetime
    billing_period: BillingPeriod


@dataclass
class UpgradePreview:
    """Prorated charge for moving to a larger tier mid-cycle"""

    current_tier: SubscriptionTier
    target_tier: SubscriptionTier
    billing_period: BillingPeriod
    base_upgrade_cost: Decimal
    prorated_upgrade_cost: Decimal
    days_remaining: int
    total_days: int
    next_billing_date: datetime
    prorated_percentage: int
    savings: Decimal
    days_remaining_clamped: bool = False


@dataclass
class DowngradePreview:
    """Deferred tier reduction; never carries a charge"""

    current_tier: SubscriptionTier
    target_tier: SubscriptionTier
    message: str


@dataclass
class CreditBalance:
    """Spendable credits split by origin"""

    user_id: str
    subscription_credits: int
    purchased_credits: int

    @property
    def credits_balance(self) -> int:
        return self.subscription_credits + self.purchased_credits
