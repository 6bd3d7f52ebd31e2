"""Presentation status of a stored payment."""

from datetime import date, timedelta

from waterusage.core.config import settings
from waterusage.models.enums import DerivedPaymentStatus, PaymentStatus


def derive_status(
    status: PaymentStatus | str,
    pay_date: date,
    today: date,
    grace_days: int | None = None,
) -> DerivedPaymentStatus:
    """Map a persisted status and due date to what the tenant should see.

    Paid and cancelled are terminal. Anything still open becomes overdue once
    ``today`` is more than ``grace_days`` past the due date. Never writes.
    """
    if grace_days is None:
        grace_days = settings.OVERDUE_GRACE_DAYS

    status = PaymentStatus(status)
    if status == PaymentStatus.CANCELLED:
        return DerivedPaymentStatus.CANCELLED
    if status == PaymentStatus.PAID:
        return DerivedPaymentStatus.PAID
    if today > pay_date + timedelta(days=grace_days):
        return DerivedPaymentStatus.OVERDUE
    return DerivedPaymentStatus.PENDING
