"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Any, Dict, List, Literal, Optional, Union


class CamelModel(BaseModel):
    """Serializes to camelCase for the web client; accepts either casing"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FixCostRequest(CamelModel):
    """Request body for POST /v1/fix-cost/estimate"""

    slide_content: Optional[str] = ""
    slide_feedback: Optional[str] = None
    slide_recommendations: Optional[List[str]] = None


class ComplexityBreakdownSchema(CamelModel):
    issue_count_score: int
    severity_score: Union[int, float]
    content_length_score: int
    fix_scope_score: int
    total_score: int


class FixCostResponse(CamelModel):
    """Response for POST /v1/fix-cost/estimate"""

    success: bool = True
    complexity_score: int
    credit_cost: int
    complexity_level: Literal["low", "medium", "high"]
    breakdown: ComplexityBreakdownSchema
    explanation: str


class UpgradePreviewRequest(BaseModel):
    """Request body for POST /v1/subscription/upgrade-preview"""

    user_id: str = Field(..., min_length=1, description="User identifier")
    target_price_id: str = Field(..., min_length=1, description="Billing provider price id of the target tier")


class TierSchema(BaseModel):
    credits: int
    price_monthly: float
    price_annual: float


class UpgradePreviewResponse(CamelModel):
    """Upgrade branch of POST /v1/subscription/upgrade-preview"""

    is_upgrade: bool = True
    current_tier: TierSchema
    target_tier: TierSchema
    billing_period: Literal["monthly", "annual"]
    base_upgrade_cost: float
    prorated_upgrade_cost: float
    days_remaining: int
    total_days: int
    next_billing_date: str
    prorated_percentage: int
    savings: float


class DowngradePreviewResponse(CamelModel):
    """Downgrade branch of POST /v1/subscription/upgrade-preview"""

    is_downgrade: bool = True
    current_tier: TierSchema
    target_tier: TierSchema
    message: str


class CreditBalanceResponse(CamelModel):
    """Response for GET /v1/credits/{user_id}"""

    user_id: str
    credits_balance: int
    subscription_credits: int
    purchased_credits: int


class DeductCreditsRequest(BaseModel):
    """Request body for POST /v1/credits/deduct"""

    user_id: str = Field(..., min_length=1)
    credit_cost: int = Field(..., gt=0, description="Credits to spend, usually an estimate's creditCost")
    description: str = Field(..., min_length=1)
    complexity_score: Optional[int] = Field(None, ge=0, le=100)
    details: Dict[str, Any] = Field(default_factory=dict)


class GrantCreditsRequest(BaseModel):
    """Request body for POST /v1/credits/grant"""

    user_id: str = Field(..., min_length=1)
    amount: int = Field(..., gt=0)
    transaction_type: Literal["purchase", "subscription_renewal", "refund"]
    description: str = Field(..., min_length=1)


class CreditChangeResponse(CamelModel):
    success: bool = True
    new_balance: int


class CreditTransactionItem(CamelModel):
    """Single entry in credit history"""

    transaction_id: str
    amount: int
    transaction_type: str
    description: str
    complexity_score: Optional[int] = None
    credits_cost: Optional[int] = None
    balance_after: int
    created_at: str


class CreditHistoryResponse(CamelModel):
    """Response for GET /v1/credits/{user_id}/history"""

    user_id: str
    transactions: List[CreditTransactionItem]
