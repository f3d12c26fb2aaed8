"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from deckfix_billing.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s"))
    logger.addHandler(handler)


def log_fix_estimate(
    request_id: str,
    complexity_score: int,
    credit_cost: int,
    complexity_level: str,
    issue_count: int,
    duration_ms: float,
) -> None:
    """Log structured fix-cost estimate for pricing analysis"""
    logging.info(
        "Fix cost estimated",
        extra={
            "request_id": request_id,
            "step": "fix_estimate_complete",
            "complexity_score": complexity_score,
            "credit_cost": credit_cost,
            "complexity_level": complexity_level,
            "issue_count": issue_count,
            "duration_ms": duration_ms,
        },
    )


def log_tier_change(
    request_id: str,
    user_id: str,
    change: str,
    from_credits: int,
    to_credits: int,
    prorated_cost: float | None = None,
) -> None:
    """Log the outcome of an upgrade/downgrade preview"""
    logging.info(
        "Tier change previewed",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "step": "tier_change_preview",
            "change": change,
            "from_credits": from_credits,
            "to_credits": to_credits,
            "prorated_cost": prorated_cost,
        },
    )
