"""Billing calculation and monthly payment generation."""

import logging
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from waterusage.core.clock import last_day_of_month, month_index, shift_month
from waterusage.core.config import settings
from waterusage.core.errors import NoTariffConfigured
from waterusage.models.enums import PaymentStatus
from waterusage.models.payment import Payment
from waterusage.models.tariff import Tariff
from waterusage.schemas.billing import CostBreakdown, PaymentGenerationResult, PaymentResponse
from waterusage.schemas.usage import UsageSummary
from waterusage.services.apartment import get_apartment
from waterusage.services.meter_slots import expected_slots
from waterusage.services.payment_status import derive_status
from waterusage.services.tariff import get_active_tariff, get_tariff_for_date
from waterusage.services.usage import get_monthly_usage

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def calculate_costs(usage: UsageSummary, tariff: Tariff) -> CostBreakdown:
    """Apply tariff rates to a month's usage.

    All water drawn, hot or cold, pays the cold-water intake rate and the
    sewage rate. Hot water additionally pays the heating rate.
    """
    intake = usage.cold + usage.hot
    cold_water_cost = intake * Decimal(str(tariff.cold_water_rate))
    hot_water_cost = usage.hot * Decimal(str(tariff.hot_water_rate))
    dirty_water_cost = intake * Decimal(str(tariff.dirty_water_rate))

    return CostBreakdown(
        cold_water_cost=cold_water_cost,
        hot_water_cost=hot_water_cost,
        dirty_water_cost=dirty_water_cost,
        total=cold_water_cost + hot_water_cost + dirty_water_cost,
    )


def due_date_for(year: int, month: int) -> date:
    """Due date of the bill for a month: end of the following month."""
    due_year, due_month = shift_month(year, month, settings.PAYMENT_DUE_MONTHS)
    return last_day_of_month(due_year, due_month)


def resolve_billing_tariff(db: Session, year: int, month: int, today: date) -> Tariff:
    """Pick the tariff a month is billed with.

    The current (or a future) month uses the active tariff. A back-dated
    month uses the tariff that was in force at its end, or the active tariff
    when no stored tariff covers that date.
    """
    if month_index(year, month) >= month_index(today.year, today.month):
        return get_active_tariff(db)
    try:
        return get_tariff_for_date(db, last_day_of_month(year, month))
    except NoTariffConfigured:
        tariff = get_active_tariff(db)
        logger.info(
            "No tariff covered %d-%02d, billing with active tariff %d",
            year,
            month,
            tariff.id,
        )
        return tariff


def get_payment_for_month(
    db: Session,
    apartment_id: int,
    year: int,
    month: int,
) -> Payment | None:
    """Get the payment of an apartment for a billing month."""
    return (
        db.query(Payment)
        .filter(
            and_(
                Payment.apartment_id == apartment_id,
                Payment.billing_year == year,
                Payment.billing_month == month,
            )
        )
        .first()
    )


def payment_to_response(payment: Payment, today: date) -> PaymentResponse:
    """Convert a Payment model to a response schema with its derived status."""
    return PaymentResponse(
        id=payment.id,
        apartment_id=payment.apartment_id,
        user_id=payment.user_id,
        tariff_id=payment.tariff_id,
        billing_year=payment.billing_year,
        billing_month=payment.billing_month,
        amount=payment.amount,
        pay_date=payment.pay_date,
        paid_date=payment.paid_date,
        status=payment.status,
        display_status=derive_status(payment.status, payment.pay_date, today),
    )


def generate_monthly_payment(
    db: Session,
    apartment_id: int,
    user_id: int | None,
    now: datetime,
    year: int | None = None,
    month: int | None = None,
) -> PaymentGenerationResult:
    """Create the payment for an apartment's billing month, or return the existing one.

    Idempotent: an existing payment is returned untouched with
    ``existed=True``. A concurrent call that inserts first is detected through
    the (apartment, year, month) unique constraint and its row is returned
    instead. Commits its own transaction.
    """
    if year is None or month is None:
        year, month = now.year, now.month
    today = now.date()

    apartment = get_apartment(db, apartment_id)

    existing = get_payment_for_month(db, apartment_id, year, month)
    if existing:
        logger.debug("Payment %d already exists for apartment %d", existing.id, apartment_id)
        return PaymentGenerationResult(existed=True, payment=payment_to_response(existing, today))

    usage = get_monthly_usage(
        db, apartment_id, year, month, expected_slots(apartment.meter_count)
    )
    tariff = resolve_billing_tariff(db, year, month, today)
    costs = calculate_costs(usage, tariff)

    payment = Payment(
        apartment_id=apartment_id,
        user_id=user_id,
        tariff_id=tariff.id,
        billing_year=year,
        billing_month=month,
        amount=costs.total.quantize(CENT),
        pay_date=due_date_for(year, month),
        paid_date=None,
        status=PaymentStatus.UNPAID,
    )
    db.add(payment)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        existing = get_payment_for_month(db, apartment_id, year, month)
        if existing is None:
            raise
        logger.info(
            "Concurrent generation for apartment %d %d-%02d, using payment %d",
            apartment_id,
            year,
            month,
            existing.id,
        )
        return PaymentGenerationResult(existed=True, payment=payment_to_response(existing, today))

    db.refresh(payment)
    logger.info(
        "Created payment %d for apartment %d %d-%02d: %s (tariff %d)",
        payment.id,
        apartment_id,
        year,
        month,
        payment.amount,
        tariff.id,
    )
    return PaymentGenerationResult(
        existed=False,
        payment=payment_to_response(payment, today),
        usage=usage,
        costs=costs,
    )
