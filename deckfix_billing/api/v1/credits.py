"""Credit balance, spending, grants and history endpoints"""

import logging
from functools import partial
from typing import Callable
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from deckfix_billing.api.v1.schemas import (
    CreditBalanceResponse,
    CreditChangeResponse,
    CreditHistoryResponse,
    CreditTransactionItem,
    DeductCreditsRequest,
    GrantCreditsRequest,
)
from deckfix_billing.api.dependencies import get_request_id
from deckfix_billing.config import settings
from deckfix_billing.infrastructure.database.session import get_db
from deckfix_billing.infrastructure.database.repositories import CreditRepository
from deckfix_billing.domain.credits import DEDUCTION, deduct_credits, grant_credits
from deckfix_billing.domain.models import CreditBalance
from deckfix_billing.domain.exceptions import (
    CreditAccountNotFoundError,
    CreditBalanceConflictError,
    InsufficientCreditsError,
    InvalidCreditAmountError,
)
from deckfix_billing.infrastructure.observability.metrics import record_credit_movement

router = APIRouter()


def change_balance(
    credits: CreditRepository,
    user_id: str,
    change: Callable[[CreditBalance], CreditBalance],
    create_missing: bool = False,
    attempts: int = settings.credit_update_attempts,
) -> CreditBalance:
    """
    Read, change and write back a balance without losing concurrent updates.

    The write only lands if the stored balance is still the one that was read;
    otherwise the balance is re-read and change is applied again.

    Raises:
        CreditAccountNotFoundError: No balance and create_missing is False
        CreditBalanceConflictError: Every attempt lost to a concurrent update
        InsufficientCreditsError, InvalidCreditAmountError: From change
    """
    for _ in range(attempts):
        current = credits.get_balance(user_id)
        if current is None:
            if not create_missing:
                raise CreditAccountNotFoundError(f"No credit balance for user {user_id}")
            updated = change(CreditBalance(user_id=user_id, subscription_credits=0, purchased_credits=0))
            credits.create_balance(updated)
            return updated

        updated = change(current)
        if credits.compare_and_set_balance(current, updated):
            return updated
        logging.warning("Credit balance changed during update, retrying", extra={"user_id": user_id})

    raise CreditBalanceConflictError(f"Credit balance for user {user_id} is being updated concurrently")


@router.get("/credits/{user_id}", response_model=CreditBalanceResponse)
def get_credit_balance(user_id: str, db: Session = Depends(get_db)):
    balance = CreditRepository(db).get_balance(user_id)
    if balance is None:
        raise HTTPException(status_code=404, detail="Credit balance not found")

    return CreditBalanceResponse(
        user_id=balance.user_id,
        credits_balance=balance.credits_balance,
        subscription_credits=balance.subscription_credits,
        purchased_credits=balance.purchased_credits,
    )


@router.post("/credits/deduct", response_model=CreditChangeResponse)
def spend_credits(
    request_body: DeductCreditsRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Spend credits on a fix and log the deduction.

    Balance update and ledger entry are committed together.
    """
    request_id = get_request_id(request)

    try:
        credits = CreditRepository(db)
        updated = change_balance(
            credits,
            request_body.user_id,
            partial(deduct_credits, cost=request_body.credit_cost),
        )
        credits.record_transaction(
            user_id=request_body.user_id,
            amount=-request_body.credit_cost,
            transaction_type=DEDUCTION,
            description=request_body.description,
            balance_after=updated.credits_balance,
            complexity_score=request_body.complexity_score,
            credits_cost=request_body.credit_cost,
            details=request_body.details,
        )
        db.commit()

    except CreditAccountNotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))

    except InsufficientCreditsError as e:
        db.rollback()
        logging.warning(f"Insufficient credits: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=402, detail=str(e))

    except InvalidCreditAmountError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))

    except CreditBalanceConflictError as e:
        db.rollback()
        logging.error(f"Credit deduction conflict: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail=str(e))

    record_credit_movement(DEDUCTION, request_body.credit_cost)
    logging.info(
        "Credits deducted",
        extra={
            "request_id": request_id,
            "user_id": request_body.user_id,
            "credits_cost": request_body.credit_cost,
            "balance_after": updated.credits_balance,
        },
    )
    return CreditChangeResponse(new_balance=updated.credits_balance)


@router.post("/credits/grant", response_model=CreditChangeResponse)
def add_credits(
    request_body: GrantCreditsRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """Add purchased, renewed or refunded credits; creates the balance on first grant"""
    request_id = get_request_id(request)

    try:
        credits = CreditRepository(db)
        updated = change_balance(
            credits,
            request_body.user_id,
            partial(grant_credits, amount=request_body.amount, transaction_type=request_body.transaction_type),
            create_missing=True,
        )
        credits.record_transaction(
            user_id=request_body.user_id,
            amount=request_body.amount,
            transaction_type=request_body.transaction_type,
            description=request_body.description,
            balance_after=updated.credits_balance,
        )
        db.commit()

    except InvalidCreditAmountError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))

    except CreditBalanceConflictError as e:
        db.rollback()
        logging.error(f"Credit grant conflict: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail=str(e))

    record_credit_movement(request_body.transaction_type, request_body.amount)
    logging.info(
        "Credits granted",
        extra={
            "request_id": request_id,
            "user_id": request_body.user_id,
            "transaction_type": request_body.transaction_type,
            "amount": request_body.amount,
        },
    )
    return CreditChangeResponse(new_balance=updated.credits_balance)


@router.get("/credits/{user_id}/history", response_model=CreditHistoryResponse)
def get_credit_history(
    user_id: str,
    limit: int = Query(settings.credit_history_limit, ge=1, le=settings.credit_history_max_limit),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    """
    Retrieve a page of credit movements for a user, newest first.
    """
    transactions = CreditRepository(db).get_transactions_by_user(user_id, limit=limit, offset=offset)

    items = [
        CreditTransactionItem(
            transaction_id=str(t.id),
            amount=t.amount,
            transaction_type=t.transaction_type,
            description=t.description,
            complexity_score=t.complexity_score,
            credits_cost=t.credits_cost,
            balance_after=t.balance_after,
            created_at=t.created_at.isoformat(),
        )
        for t in transactions
    ]

    return CreditHistoryResponse(user_id=user_id, transactions=items)
