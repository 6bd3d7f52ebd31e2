"""Tests for the reading submission flow."""

from datetime import UTC, datetime
from decimal import Decimal

import pytest

from tests.conftest import BATHROOM_COLD, KITCHEN_COLD, KITCHEN_HOT
from waterusage.core.config import settings
from waterusage.core.errors import (
    AlreadySubmittedThisMonth,
    ApartmentNotFound,
    IncompleteSubmission,
    InvalidReading,
    NoTariffConfigured,
    SubmissionWindowClosed,
)
from waterusage.models import MeterReading, Payment
from waterusage.models.enums import Location, WaterType
from waterusage.schemas.readings import ReadingEntry, ReadingEntryIn
from waterusage.services.readings import (
    compare_with_baseline,
    get_expected_slots,
    get_readings_history,
    submit_readings,
)

NOW = datetime(2026, 3, 15, 10, 0, tzinfo=UTC)


def batch(cold, hot) -> list[ReadingEntryIn]:
    return [
        ReadingEntryIn(location="kitchen", type=0, indication=cold),
        ReadingEntryIn(location="kitchen", type=1, indication=hot),
    ]


class TestCompareWithBaseline:
    """Tests for submission warnings."""

    def test_decrease_and_jump(self) -> None:
        """Backwards readings and large jumps are flagged."""
        entries = [
            ReadingEntry(location=Location.KITCHEN, type=WaterType.COLD, indication=Decimal("8")),
            ReadingEntry(location=Location.KITCHEN, type=WaterType.HOT, indication=Decimal("90")),
            ReadingEntry(location=Location.BATHROOM, type=WaterType.COLD, indication=Decimal("12")),
        ]
        baseline = {KITCHEN_COLD: Decimal("10"), KITCHEN_HOT: Decimal("20"), BATHROOM_COLD: Decimal("10")}

        warnings = compare_with_baseline(entries, baseline, jump_volume=Decimal("30"))

        assert [(w.location, w.type, w.reason) for w in warnings] == [
            (Location.KITCHEN, WaterType.COLD, "decreased"),
            (Location.KITCHEN, WaterType.HOT, "large_increase"),
        ]
        assert warnings[0].change == Decimal("-2")

    def test_first_reading_not_a_jump(self) -> None:
        """A first reading against a zero baseline is not flagged."""
        entries = [ReadingEntry(location=Location.KITCHEN, type=WaterType.COLD, indication=Decimal("500"))]
        assert compare_with_baseline(entries, {}, jump_volume=Decimal("30")) == []


class TestSubmitReadings:
    """Tests for submit_readings."""

    def test_first_submission(self, test_db, apartment, user, tariff) -> None:
        """Readings are stored and the month is billed."""
        result = submit_readings(test_db, apartment.id, user.id, batch(10, 5), NOW)

        assert result.success
        assert (result.year, result.month) == (2026, 3)
        assert len(result.readings) == 2
        assert all(r.created_by_user_id == user.id for r in result.readings)
        assert result.payment.existed is False
        assert result.payment.payment.amount == Decimal("2625")
        assert test_db.query(MeterReading).count() == 2
        assert test_db.query(Payment).count() == 1

    def test_warnings_returned(self, test_db, apartment, user, tariff, add_readings) -> None:
        """A reading below last month's is accepted with a warning."""
        add_readings(apartment.id, 2026, 2, {KITCHEN_COLD: 20, KITCHEN_HOT: 5})

        result = submit_readings(test_db, apartment.id, user.id, batch(15, 8), NOW)

        assert [w.reason for w in result.warnings] == ["decreased"]
        assert result.payment.usage.cold == Decimal("0")
        assert result.payment.usage.hot == Decimal("3")

    def test_second_submission_same_month(self, test_db, apartment, user, tariff) -> None:
        """Only one batch per apartment per month is accepted."""
        submit_readings(test_db, apartment.id, user.id, batch(10, 5), NOW)
        later = datetime(2026, 3, 28, tzinfo=UTC)

        with pytest.raises(AlreadySubmittedThisMonth):
            submit_readings(test_db, apartment.id, user.id, batch(12, 6), later)
        assert test_db.query(MeterReading).count() == 2

    def test_next_month_allowed(self, test_db, apartment, user, tariff) -> None:
        """A new month opens a new submission."""
        submit_readings(test_db, apartment.id, user.id, batch(10, 5), NOW)
        result = submit_readings(
            test_db, apartment.id, user.id, batch(14, 7), datetime(2026, 4, 2, tzinfo=UTC)
        )

        assert result.payment.usage.cold == Decimal("4")
        assert result.payment.usage.hot == Decimal("2")
        assert test_db.query(Payment).count() == 2

    def test_incomplete_persists_nothing(self, test_db, make_apartment, user, tariff) -> None:
        """A batch missing a slot stores no readings at all."""
        apartment = make_apartment(3)

        with pytest.raises(IncompleteSubmission):
            submit_readings(test_db, apartment.id, user.id, batch(10, 5), NOW)
        assert test_db.query(MeterReading).count() == 0
        assert test_db.query(Payment).count() == 0

    def test_invalid_persists_nothing(self, test_db, apartment, user, tariff) -> None:
        """A malformed batch stores nothing."""
        with pytest.raises(InvalidReading):
            submit_readings(test_db, apartment.id, user.id, batch(10, -1), NOW)
        assert test_db.query(MeterReading).count() == 0

    def test_no_tariff_persists_nothing(self, test_db, apartment, user) -> None:
        """Readings are not stored when the month cannot be billed."""
        with pytest.raises(NoTariffConfigured):
            submit_readings(test_db, apartment.id, user.id, batch(10, 5), NOW)
        assert test_db.query(MeterReading).count() == 0

    def test_window_closed(self, test_db, apartment, user, tariff, monkeypatch) -> None:
        """Submissions outside the window are refused."""
        monkeypatch.setattr(settings, "SUBMISSION_OPEN_DAY", 20)

        with pytest.raises(SubmissionWindowClosed):
            submit_readings(test_db, apartment.id, user.id, batch(10, 5), NOW)
        assert test_db.query(MeterReading).count() == 0

    def test_unknown_apartment(self, test_db, user, tariff) -> None:
        """Submitting for a missing apartment fails."""
        with pytest.raises(ApartmentNotFound):
            submit_readings(test_db, 999, user.id, batch(10, 5), NOW)


class TestQueries:
    """Tests for slot and history queries."""

    def test_expected_slots(self, test_db, make_apartment) -> None:
        """The response lists the apartment's slots."""
        apartment = make_apartment(3)

        response = get_expected_slots(test_db, apartment.id)

        assert response.meter_count == 3
        assert [(s.location, s.type) for s in response.slots] == [
            KITCHEN_COLD,
            KITCHEN_HOT,
            BATHROOM_COLD,
        ]

    def test_history_newest_month_first(self, test_db, apartment, add_readings) -> None:
        """History is paginated, newest month first."""
        add_readings(apartment.id, 2026, 1, {KITCHEN_COLD: 1, KITCHEN_HOT: 1})
        add_readings(apartment.id, 2026, 2, {KITCHEN_COLD: 2, KITCHEN_HOT: 2})

        readings, total = get_readings_history(test_db, apartment.id, limit=2)

        assert total == 4
        assert len(readings) == 2
        assert {r.period_month for r in readings} == {2}
