"""Tests for payment listing, detail and settlement."""

from datetime import UTC, date, datetime
from decimal import Decimal

import pytest

from tests.conftest import KITCHEN_COLD, KITCHEN_HOT
from waterusage.core.errors import ApartmentNotFound, PaymentNotFound, PaymentNotPayable
from waterusage.models import Payment
from waterusage.models.enums import DerivedPaymentStatus, PaymentStatus
from waterusage.services.billing import generate_monthly_payment
from waterusage.services.payments import (
    get_payment,
    get_payment_detail,
    get_payment_statistics,
    list_payments,
    mark_payment_paid,
)

NOW = datetime(2026, 3, 15, 10, 0, tzinfo=UTC)


@pytest.fixture
def make_payment(test_db, apartment, tariff):
    """Factory for stored payments of the default apartment."""

    def _make(year: int, month: int, amount: str, status: PaymentStatus = PaymentStatus.UNPAID) -> Payment:
        payment = Payment(
            apartment_id=apartment.id,
            tariff_id=tariff.id,
            billing_year=year,
            billing_month=month,
            amount=Decimal(amount),
            pay_date=date(year, month, 28),
            status=status,
        )
        test_db.add(payment)
        test_db.commit()
        test_db.refresh(payment)
        return payment

    return _make


class TestListPayments:
    """Tests for list_payments."""

    def test_newest_first_with_summary(self, test_db, apartment, make_payment) -> None:
        """Payments are ordered by billing month and summarized."""
        make_payment(2025, 12, "100", PaymentStatus.PAID)
        make_payment(2026, 2, "300")
        make_payment(2026, 1, "200")
        make_payment(2025, 11, "999", PaymentStatus.CANCELLED)

        result = list_payments(test_db, apartment.id, NOW.date())

        assert [(p.billing_year, p.billing_month) for p in result.payments] == [
            (2026, 2),
            (2026, 1),
            (2025, 12),
            (2025, 11),
        ]
        assert result.summary.total == Decimal("600")
        assert result.summary.paid == Decimal("100")
        assert result.summary.outstanding == Decimal("500")

    def test_display_status(self, test_db, apartment, make_payment) -> None:
        """Old unpaid bills show as overdue."""
        make_payment(2025, 10, "50")

        result = list_payments(test_db, apartment.id, NOW.date())

        assert result.payments[0].status == PaymentStatus.UNPAID
        assert result.payments[0].display_status == DerivedPaymentStatus.OVERDUE

    def test_empty(self, test_db, apartment) -> None:
        """An apartment without bills has an empty list."""
        result = list_payments(test_db, apartment.id, NOW.date())
        assert result.payments == []
        assert result.summary.outstanding == Decimal("0")


class TestPaymentDetail:
    """Tests for get_payment_detail."""

    def test_detail_uses_stamped_tariff(
        self, test_db, apartment, user, tariff, make_tariff, add_readings
    ) -> None:
        """Costs are shown at the rates the bill was created with."""
        add_readings(apartment.id, 2026, 3, {KITCHEN_COLD: 10, KITCHEN_HOT: 5})
        created = generate_monthly_payment(test_db, apartment.id, user.id, NOW)

        tariff.is_active = False
        test_db.commit()
        make_tariff(cold="500", hot="500", dirty="500", effective_from=date(2026, 3, 20))

        detail = get_payment_detail(test_db, apartment.id, created.payment.id, NOW.date())

        assert detail.tariff.id == tariff.id
        assert detail.costs.total == Decimal("2625")
        assert detail.usage.cold == Decimal("10")

    def test_other_apartments_payment(self, test_db, make_apartment, make_payment) -> None:
        """A payment is only visible to its own apartment."""
        payment = make_payment(2026, 2, "300")
        other = make_apartment()

        with pytest.raises(PaymentNotFound):
            get_payment(test_db, other.id, payment.id)


class TestMarkPaymentPaid:
    """Tests for mark_payment_paid."""

    def test_mark_paid(self, test_db, apartment, make_payment) -> None:
        """An open payment becomes paid with a timestamp."""
        payment = make_payment(2026, 2, "300")

        paid = mark_payment_paid(test_db, apartment.id, payment.id, NOW)

        assert paid.status == PaymentStatus.PAID
        assert paid.paid_date is not None

    def test_overdue_can_be_paid(self, test_db, apartment, make_payment) -> None:
        """A stored overdue payment can still be settled."""
        payment = make_payment(2025, 6, "300", PaymentStatus.OVERDUE)

        assert mark_payment_paid(test_db, apartment.id, payment.id, NOW).status == PaymentStatus.PAID

    @pytest.mark.parametrize("status", [PaymentStatus.PAID, PaymentStatus.CANCELLED])
    def test_closed_payment_not_payable(self, test_db, apartment, make_payment, status) -> None:
        """Paid and cancelled payments cannot be paid again."""
        payment = make_payment(2026, 2, "300", status)

        with pytest.raises(PaymentNotPayable) as exc_info:
            mark_payment_paid(test_db, apartment.id, payment.id, NOW)
        assert exc_info.value.status_code == 409

    def test_unknown_payment(self, test_db, apartment) -> None:
        """Paying a missing payment fails."""
        with pytest.raises(PaymentNotFound):
            mark_payment_paid(test_db, apartment.id, 12345, NOW)


class TestPaymentStatistics:
    """Tests for get_payment_statistics."""

    def test_monthly_amounts_and_counts(self, test_db, apartment, make_payment) -> None:
        """Each billing month reports its amount and counts by derived status."""
        make_payment(2026, 1, "200")
        make_payment(2026, 2, "300", PaymentStatus.PAID)
        make_payment(2026, 3, "50", PaymentStatus.CANCELLED)
        make_payment(2026, 4, "75")
        make_payment(2025, 12, "999")

        stats = get_payment_statistics(test_db, apartment.id, 2026, NOW.date())

        assert stats.year == 2026
        assert [m.month for m in stats.months] == list(range(1, 13))
        january, february, march, april = stats.months[:4]
        assert (january.total_amount, january.overdue_count, january.pending_count) == (
            Decimal("200"),
            1,
            0,
        )
        assert (february.total_amount, february.paid_count) == (Decimal("300"), 1)
        assert march.total_amount == Decimal("0")
        assert march.paid_count + march.pending_count + march.overdue_count == 0
        assert (april.total_amount, april.pending_count) == (Decimal("75"), 1)
        assert stats.yearly_total == Decimal("575")

    def test_year_without_payments(self, test_db, apartment) -> None:
        """A year with no bills has twelve empty months."""
        stats = get_payment_statistics(test_db, apartment.id, 2024, NOW.date())

        assert len(stats.months) == 12
        assert stats.yearly_total == Decimal("0")

    def test_unknown_apartment(self, test_db) -> None:
        """Statistics for a missing apartment fail."""
        with pytest.raises(ApartmentNotFound):
            get_payment_statistics(test_db, 999, 2026, NOW.date())
