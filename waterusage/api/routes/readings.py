"""Meter reading routes."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from waterusage.api.dependencies import Caller, get_caller
from waterusage.core.clock import Clock, get_clock
from waterusage.core.database import get_db
from waterusage.schemas.readings import (
    ExpectedSlotsResponse,
    MeterReadingHistory,
    MeterReadingResponse,
    ReadingSubmission,
    SubmissionResult,
    SubmissionWindowStatus,
)
from waterusage.schemas.usage import UsageSummary, YearlyUsage
from waterusage.services import readings as reading_service
from waterusage.services import usage as usage_service
from waterusage.services.apartment import get_apartment
from waterusage.services.meter_slots import expected_slots
from waterusage.services.submission_window import check_submission_window

router = APIRouter(prefix="/readings", tags=["meter-readings"])


@router.get("/expected-slots", response_model=ExpectedSlotsResponse)
def get_expected_slots(
    caller: Caller = Depends(get_caller),
    db: Session = Depends(get_db),
):
    """List the meters the caller's apartment must report every month."""
    return reading_service.get_expected_slots(db, caller.apartment_id)


@router.get("/window", response_model=SubmissionWindowStatus)
def get_submission_window(
    caller: Caller = Depends(get_caller),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Tell whether readings can be submitted now, and if not, why."""
    get_apartment(db, caller.apartment_id)
    return check_submission_window(db, caller.apartment_id, clock())


@router.post(
    "/",
    response_model=SubmissionResult,
    status_code=status.HTTP_201_CREATED,
)
def submit_readings(
    submission: ReadingSubmission,
    caller: Caller = Depends(get_caller),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Submit this month's readings.

    Every expected slot must be present exactly once. On success the month's
    payment is generated (or the existing one returned).
    """
    return reading_service.submit_readings(
        db, caller.apartment_id, caller.user_id, submission.entries, clock()
    )


@router.get("/history", response_model=MeterReadingHistory)
def get_reading_history(
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    caller: Caller = Depends(get_caller),
    db: Session = Depends(get_db),
):
    """Get the apartment's reading history with pagination."""
    readings, total = reading_service.get_readings_history(
        db, caller.apartment_id, limit, offset
    )
    return MeterReadingHistory(
        apartment_id=caller.apartment_id,
        readings=[MeterReadingResponse.model_validate(r) for r in readings],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/usage", response_model=UsageSummary)
def get_monthly_usage(
    year: int | None = Query(None, ge=2000),
    month: int | None = Query(None, ge=1, le=12),
    caller: Caller = Depends(get_caller),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Get consumption for one month (the current month by default)."""
    now = clock()
    apartment = get_apartment(db, caller.apartment_id)
    return usage_service.get_monthly_usage(
        db,
        apartment.id,
        year or now.year,
        month or now.month,
        expected_slots(apartment.meter_count),
    )


@router.get("/usage/yearly", response_model=YearlyUsage)
def get_yearly_usage(
    year: int | None = Query(None, ge=2000),
    caller: Caller = Depends(get_caller),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Get consumption for every month of a year (the current year by default)."""
    apartment = get_apartment(db, caller.apartment_id)
    return usage_service.get_yearly_usage(
        db,
        apartment.id,
        year or clock().year,
        expected_slots(apartment.meter_count),
    )
