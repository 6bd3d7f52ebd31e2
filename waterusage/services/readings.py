"""Monthly reading submission - the tenant-facing entry point of the engine."""

import logging
from collections.abc import Mapping, Sequence
from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from waterusage.core.config import settings
from waterusage.models.meter_reading import MeterReading
from waterusage.schemas.readings import (
    ExpectedSlotsResponse,
    MeterReadingResponse,
    ReadingEntry,
    ReadingEntryIn,
    ReadingWarning,
    SlotResponse,
    SubmissionResult,
)
from waterusage.services.apartment import get_apartment
from waterusage.services.billing import generate_monthly_payment
from waterusage.services.meter_slots import Slot, expected_slots
from waterusage.services.reading_validator import validate_readings
from waterusage.services.submission_window import ensure_submission_allowed
from waterusage.services.tariff import get_active_tariff
from waterusage.services.usage import get_baseline

logger = logging.getLogger(__name__)


def get_expected_slots(db: Session, apartment_id: int) -> ExpectedSlotsResponse:
    """Get the slots an apartment must report."""
    apartment = get_apartment(db, apartment_id)
    return ExpectedSlotsResponse(
        apartment_id=apartment.id,
        meter_count=apartment.meter_count,
        slots=[
            SlotResponse(location=location, type=water_type)
            for location, water_type in expected_slots(apartment.meter_count)
        ],
    )


def compare_with_baseline(
    entries: Sequence[ReadingEntry],
    baseline: Mapping[Slot, Decimal],
    jump_volume: Decimal | None = None,
) -> list[ReadingWarning]:
    """Flag readings that went backwards or jumped unusually far.

    Warnings are informational only; they never block a submission.
    """
    if jump_volume is None:
        jump_volume = settings.READING_JUMP_WARNING_VOLUME

    warnings: list[ReadingWarning] = []
    for entry in entries:
        previous = baseline.get((entry.location, entry.type), Decimal("0"))
        change = entry.indication - previous

        reason = None
        if change < 0:
            reason = "decreased"
        elif previous > 0 and change > jump_volume:
            reason = "large_increase"

        if reason:
            warnings.append(
                ReadingWarning(
                    location=entry.location,
                    type=entry.type,
                    previous=previous,
                    current=entry.indication,
                    change=change,
                    reason=reason,
                )
            )
    return warnings


def submit_readings(
    db: Session,
    apartment_id: int,
    user_id: int | None,
    entries: Sequence[ReadingEntryIn],
    now: datetime,
) -> SubmissionResult:
    """Accept a month's readings for an apartment and bill the month.

    The gate check, validation and insert of every slot run in one
    transaction with the apartment row locked, so a batch is stored whole or
    not at all. Payment generation follows in its own transaction.
    """
    try:
        apartment = get_apartment(db, apartment_id, lock=True)
        ensure_submission_allowed(db, apartment_id, now)

        slots = expected_slots(apartment.meter_count)
        validated = validate_readings(entries, slots)

        # Fail before writing anything if the month cannot be billed
        get_active_tariff(db)

        baseline = get_baseline(db, apartment_id, now.year, now.month, slots)
        warnings = compare_with_baseline(validated, baseline)

        readings = [
            MeterReading(
                apartment_id=apartment_id,
                location=entry.location,
                water_type=entry.type,
                indication=entry.indication,
                recorded_at=now,
                period_year=now.year,
                period_month=now.month,
                created_by_user_id=user_id,
            )
            for entry in validated
        ]
        db.add_all(readings)
        db.commit()
    except Exception:
        db.rollback()
        raise

    for reading in readings:
        db.refresh(reading)
    logger.info(
        "Apartment %d submitted %d readings for %d-%02d (%d warnings)",
        apartment_id,
        len(readings),
        now.year,
        now.month,
        len(warnings),
    )

    payment = generate_monthly_payment(db, apartment_id, user_id, now)

    return SubmissionResult(
        apartment_id=apartment_id,
        year=now.year,
        month=now.month,
        readings=[MeterReadingResponse.model_validate(r) for r in readings],
        warnings=warnings,
        payment=payment,
    )


def get_readings_history(
    db: Session,
    apartment_id: int,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[MeterReading], int]:
    """Get reading history for an apartment with pagination."""
    get_apartment(db, apartment_id)
    query = db.query(MeterReading).filter(MeterReading.apartment_id == apartment_id)
    total = query.count()
    readings = (
        query.order_by(
            MeterReading.period_year.desc(),
            MeterReading.period_month.desc(),
            MeterReading.id,
        )
        .offset(offset)
        .limit(limit)
        .all()
    )
    return readings, total
