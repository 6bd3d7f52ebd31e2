"""Submission window gate for monthly readings."""

from datetime import date, datetime

from sqlalchemy import and_
from sqlalchemy.orm import Session

from waterusage.core.clock import last_day_of_month
from waterusage.core.config import settings
from waterusage.core.errors import AlreadySubmittedThisMonth, SubmissionWindowClosed
from waterusage.models.meter_reading import MeterReading
from waterusage.schemas.readings import SubmissionWindowStatus


def is_within_window(today: date, open_day: int, close_day: int) -> bool:
    """Check whether ``today`` falls inside the monthly submission window.

    A close day beyond the end of a short month is capped to its last day,
    so ``close_day=31`` always means "until the end of the month".
    """
    effective_close = min(close_day, last_day_of_month(today.year, today.month).day)
    return open_day <= today.day <= effective_close


def has_submitted_for_month(db: Session, apartment_id: int, year: int, month: int) -> bool:
    """Check if the apartment already has any reading for the given month."""
    reading = (
        db.query(MeterReading.id)
        .filter(
            and_(
                MeterReading.apartment_id == apartment_id,
                MeterReading.period_year == year,
                MeterReading.period_month == month,
            )
        )
        .first()
    )
    return reading is not None


def check_submission_window(
    db: Session,
    apartment_id: int,
    now: datetime,
    open_day: int | None = None,
    close_day: int | None = None,
) -> SubmissionWindowStatus:
    """Evaluate both gate conditions without side effects."""
    open_day = settings.SUBMISSION_OPEN_DAY if open_day is None else open_day
    close_day = settings.SUBMISSION_CLOSE_DAY if close_day is None else close_day

    window_open = is_within_window(now.date(), open_day, close_day)
    already_submitted = has_submitted_for_month(db, apartment_id, now.year, now.month)

    return SubmissionWindowStatus(
        apartment_id=apartment_id,
        year=now.year,
        month=now.month,
        is_open=window_open and not already_submitted,
        window_open=window_open,
        already_submitted=already_submitted,
        open_day=open_day,
        close_day=close_day,
    )


def ensure_submission_allowed(
    db: Session,
    apartment_id: int,
    now: datetime,
) -> SubmissionWindowStatus:
    """Raise if new readings may not be accepted right now."""
    window = check_submission_window(db, apartment_id, now)
    if not window.window_open:
        raise SubmissionWindowClosed(
            f"Readings are accepted from day {window.open_day} to day {window.close_day} "
            "of each month",
            open_day=window.open_day,
            close_day=window.close_day,
        )
    if window.already_submitted:
        raise AlreadySubmittedThisMonth(
            f"Readings for {window.year}-{window.month:02d} have already been submitted",
            year=window.year,
            month=window.month,
        )
    return window
