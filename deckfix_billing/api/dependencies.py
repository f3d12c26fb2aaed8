"""Dependency injection for FastAPI endpoints"""

from datetime import datetime
from typing import Callable
from fastapi import Request
from deckfix_billing.domain.complexity import DEFAULT_SCORING_CONFIG, ScoringConfig
from deckfix_billing.infrastructure.clients.billing import BillingClient
from deckfix_billing.utils.date_utils import utc_now

Clock = Callable[[], datetime]


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_billing_client() -> BillingClient:
    """Provide billing provider client instance"""
    return BillingClient()


def get_clock() -> Clock:
    """Provide the wall clock used for proration; overridden in tests"""
    return utc_now


def get_scoring_config() -> ScoringConfig:
    return DEFAULT_SCORING_CONFIG
