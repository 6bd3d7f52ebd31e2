"""Payment routes."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from waterusage.api.dependencies import Caller, get_caller
from waterusage.core.clock import Clock, get_clock
from waterusage.core.database import get_db
from waterusage.schemas.billing import (
    PaymentDetail,
    PaymentGenerateRequest,
    PaymentGenerationResult,
    PaymentList,
    PaymentResponse,
    PaymentStatistics,
)
from waterusage.services import payments as payment_service
from waterusage.services.billing import generate_monthly_payment, payment_to_response

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("/generate", response_model=PaymentGenerationResult)
def generate_payment(
    request: PaymentGenerateRequest | None = None,
    caller: Caller = Depends(get_caller),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Generate the monthly payment for the caller's apartment.

    Safe to repeat: an existing payment for the month is returned unchanged
    with ``existed`` set.
    """
    request = request or PaymentGenerateRequest()
    return generate_monthly_payment(
        db,
        caller.apartment_id,
        caller.user_id,
        clock(),
        year=request.year,
        month=request.month,
    )


@router.get("/", response_model=PaymentList)
def list_payments(
    caller: Caller = Depends(get_caller),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """List the apartment's payments with paid and outstanding totals."""
    return payment_service.list_payments(db, caller.apartment_id, clock().date())


@router.get("/statistics", response_model=PaymentStatistics)
def get_payment_statistics(
    year: int | None = Query(None, ge=2000),
    caller: Caller = Depends(get_caller),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Get per-month billed amounts and payment counts (the current year by default)."""
    now = clock()
    return payment_service.get_payment_statistics(
        db, caller.apartment_id, year or now.year, now.date()
    )


@router.get("/{payment_id}", response_model=PaymentDetail)
def get_payment(
    payment_id: int,
    caller: Caller = Depends(get_caller),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Get a payment with its usage and cost breakdown."""
    return payment_service.get_payment_detail(
        db, caller.apartment_id, payment_id, clock().date()
    )


@router.post(
    "/{payment_id}/pay",
    response_model=PaymentResponse,
    status_code=status.HTTP_200_OK,
)
def pay(
    payment_id: int,
    caller: Caller = Depends(get_caller),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Mark a payment as paid."""
    now = clock()
    payment = payment_service.mark_payment_paid(db, caller.apartment_id, payment_id, now)
    return payment_to_response(payment, now.date())
