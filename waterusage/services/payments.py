"""Payment queries and payment processing for an apartment."""

import logging
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import and_
from sqlalchemy.orm import Session

from waterusage.core.errors import PaymentNotFound, PaymentNotPayable
from waterusage.models.enums import DerivedPaymentStatus, PaymentStatus
from waterusage.models.payment import Payment
from waterusage.schemas.billing import (
    MonthlyPaymentStats,
    PaymentDetail,
    PaymentList,
    PaymentStatistics,
    PaymentSummary,
    TariffResponse,
)
from waterusage.services.apartment import get_apartment
from waterusage.services.billing import calculate_costs, payment_to_response
from waterusage.services.meter_slots import expected_slots
from waterusage.services.payment_status import derive_status
from waterusage.services.usage import get_monthly_usage

logger = logging.getLogger(__name__)


def get_payment(db: Session, apartment_id: int, payment_id: int) -> Payment:
    """Get a payment that belongs to the given apartment."""
    payment = (
        db.query(Payment)
        .filter(and_(Payment.id == payment_id, Payment.apartment_id == apartment_id))
        .first()
    )
    if not payment:
        raise PaymentNotFound(f"Payment {payment_id} not found", payment_id=payment_id)
    return payment


def list_payments(db: Session, apartment_id: int, today: date) -> PaymentList:
    """Get all payments of an apartment, newest billing month first."""
    get_apartment(db, apartment_id)
    payments = (
        db.query(Payment)
        .filter(Payment.apartment_id == apartment_id)
        .order_by(Payment.billing_year.desc(), Payment.billing_month.desc())
        .all()
    )

    total = Decimal("0")
    paid = Decimal("0")
    for payment in payments:
        if payment.status == PaymentStatus.CANCELLED:
            continue
        total += payment.amount
        if payment.status == PaymentStatus.PAID:
            paid += payment.amount

    return PaymentList(
        apartment_id=apartment_id,
        payments=[payment_to_response(p, today) for p in payments],
        summary=PaymentSummary(total=total, paid=paid, outstanding=total - paid),
    )


def get_payment_detail(
    db: Session,
    apartment_id: int,
    payment_id: int,
    today: date,
) -> PaymentDetail:
    """Get a payment with the usage and costs behind it.

    Costs are recomputed against the tariff stamped on the payment, not the
    tariff active today.
    """
    apartment = get_apartment(db, apartment_id)
    payment = get_payment(db, apartment_id, payment_id)

    usage = get_monthly_usage(
        db,
        apartment_id,
        payment.billing_year,
        payment.billing_month,
        expected_slots(apartment.meter_count),
    )
    tariff = payment.tariff
    costs = calculate_costs(usage, tariff) if tariff else None

    return PaymentDetail(
        payment=payment_to_response(payment, today),
        usage=usage,
        costs=costs,
        tariff=TariffResponse.model_validate(tariff) if tariff else None,
    )


def mark_payment_paid(
    db: Session,
    apartment_id: int,
    payment_id: int,
    now: datetime,
) -> Payment:
    """Settle an open payment and stamp when it was paid."""
    payment = get_payment(db, apartment_id, payment_id)
    if payment.status in (PaymentStatus.PAID, PaymentStatus.CANCELLED):
        raise PaymentNotPayable(
            f"Payment {payment_id} is {PaymentStatus(payment.status).value}",
            payment_id=payment_id,
            status=payment.status,
        )

    payment.status = PaymentStatus.PAID
    payment.paid_date = now
    db.commit()
    db.refresh(payment)
    logger.info("Payment %d for apartment %d marked paid", payment.id, apartment_id)
    return payment


def get_payment_statistics(
    db: Session,
    apartment_id: int,
    year: int,
    today: date,
) -> PaymentStatistics:
    """Summarize an apartment's payments for each billing month of a year.

    Cancelled payments are left out of amounts and counts.
    """
    get_apartment(db, apartment_id)
    payments = (
        db.query(Payment)
        .filter(and_(Payment.apartment_id == apartment_id, Payment.billing_year == year))
        .all()
    )

    months = {
        month: MonthlyPaymentStats(
            month=month,
            total_amount=Decimal("0"),
            paid_count=0,
            pending_count=0,
            overdue_count=0,
        )
        for month in range(1, 13)
    }
    for payment in payments:
        display_status = derive_status(payment.status, payment.pay_date, today)
        if display_status == DerivedPaymentStatus.CANCELLED:
            continue
        stats = months[payment.billing_month]
        stats.total_amount += payment.amount
        if display_status == DerivedPaymentStatus.PAID:
            stats.paid_count += 1
        elif display_status == DerivedPaymentStatus.OVERDUE:
            stats.overdue_count += 1
        else:
            stats.pending_count += 1

    return PaymentStatistics(
        apartment_id=apartment_id,
        year=year,
        months=list(months.values()),
        yearly_total=sum((m.total_amount for m in months.values()), Decimal("0")),
    )
