"""Prometheus metrics for fix pricing, tier changes and credit movements"""

from prometheus_client import Counter, Histogram

# Fix pricing metrics
fix_estimate_counter = Counter(
    "deckfix_fix_estimate_total",
    "Total fix cost estimates",
    ["complexity_level"],  # low | medium | high
)

credit_cost_counter = Counter(
    "deckfix_fix_credit_cost",
    "Fix estimates by credit cost",
    ["credits"],  # 2 | 3 | 4 | 6 | 8 | 10
)

# Tier change metrics
tier_change_counter = Counter(
    "deckfix_tier_change_total",
    "Tier change previews",
    ["outcome"],  # upgrade | downgrade | rejected
)

days_remaining_clamped_counter = Counter(
    "deckfix_days_remaining_clamped_total",
    "Upgrade previews where days remaining exceeded the billing period",
)

# Billing provider metrics
billing_fetch_failures_counter = Counter(
    "billing_fetch_failures_total",
    "Failed billing provider calls",
)

# Credit ledger metrics
credits_moved_counter = Counter(
    "deckfix_credits_moved_total",
    "Credits deducted or granted",
    ["transaction_type"],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_fix_estimate(complexity_level: str, credit_cost: int) -> None:
    """Record estimate metrics for monitoring the price distribution"""
    fix_estimate_counter.labels(complexity_level=complexity_level).inc()
    credit_cost_counter.labels(credits=str(credit_cost)).inc()


def record_tier_change(outcome: str, clamped: bool = False) -> None:
    tier_change_counter.labels(outcome=outcome).inc()
    if clamped:
        days_remaining_clamped_counter.inc()


def record_credit_movement(transaction_type: str, amount: int) -> None:
    credits_moved_counter.labels(transaction_type=transaction_type).inc(abs(amount))
