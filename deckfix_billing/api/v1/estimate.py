"""POST /v1/fix-cost/estimate - credit price of fixing a slide"""

import time
import logging
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from deckfix_billing.api.v1.schemas import ComplexityBreakdownSchema, FixCostRequest, FixCostResponse
from deckfix_billing.api.dependencies import get_request_id, get_scoring_config
from deckfix_billing.domain.complexity import ScoringConfig
from deckfix_billing.domain.issues import estimate_fix_cost
from deckfix_billing.infrastructure.observability.metrics import record_fix_estimate
from deckfix_billing.infrastructure.observability.logging import log_fix_estimate

router = APIRouter()


@router.post("/fix-cost/estimate", response_model=FixCostResponse)
def create_fix_estimate(
    request_body: FixCostRequest,
    request: Request,
    config: ScoringConfig = Depends(get_scoring_config),
):
    """
    Estimate fix complexity and credit cost for one slide.

    Feedback lines and recommendations become issues; a slide with neither
    is priced as a single low-severity improvement.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        result = estimate_fix_cost(
            request_body.slide_content,
            request_body.slide_feedback,
            request_body.slide_recommendations,
            config,
        )
    except Exception as e:
        logging.exception(f"Error estimating fix cost: {e}", extra={"request_id": request_id})
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": str(e) or "Failed to estimate fix cost"},
        )

    duration_ms = (time.time() - start_time) * 1000
    record_fix_estimate(result.complexity_level.value, result.credit_cost)
    log_fix_estimate(
        request_id,
        result.complexity_score,
        result.credit_cost,
        result.complexity_level.value,
        result.issue_count,
        duration_ms,
    )

    breakdown = result.breakdown
    return FixCostResponse(
        complexity_score=result.complexity_score,
        credit_cost=result.credit_cost,
        complexity_level=result.complexity_level.value,
        breakdown=ComplexityBreakdownSchema(
            issue_count_score=breakdown.issue_count_score,
            severity_score=breakdown.severity_score,
            content_length_score=breakdown.content_length_score,
            fix_scope_score=breakdown.fix_scope_score,
            total_score=breakdown.total_score,
        ),
        explanation=result.explanation,
    )
