"""Meter reading schemas for submission, validation and usage reporting."""

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel

from waterusage.models.enums import Location, WaterType
from waterusage.schemas.billing import PaymentGenerationResult


class ReadingEntryIn(BaseModel):
    """One submitted reading as received from the client.

    Fields are loosely typed so that the reading validator can report
    every malformed entry at once instead of failing on the first one.
    """

    location: Any = None
    type: Any = None
    indication: Any = None


class ReadingSubmission(BaseModel):
    """Schema for submitting a month's readings for an apartment."""

    entries: list[ReadingEntryIn]


class ReadingEntry(BaseModel):
    """A reading that passed validation."""

    location: Location
    type: WaterType
    indication: Decimal


class SlotResponse(BaseModel):
    """Schema for an expected (location, water type) slot."""

    location: Location
    type: WaterType


class ExpectedSlotsResponse(BaseModel):
    """Slots an apartment must report each month."""

    apartment_id: int
    meter_count: int
    slots: list[SlotResponse]


class SubmissionWindowStatus(BaseModel):
    """Whether new readings are accepted, with the reasons broken out."""

    apartment_id: int
    year: int
    month: int
    is_open: bool
    window_open: bool
    already_submitted: bool
    open_day: int
    close_day: int


class MeterReadingResponse(BaseModel):
    """Schema for meter reading response."""

    id: int
    apartment_id: int
    location: Location
    water_type: WaterType
    indication: Decimal
    recorded_at: datetime
    period_year: int
    period_month: int
    created_by_user_id: int | None

    model_config = {"from_attributes": True}


class MeterReadingHistory(BaseModel):
    """Schema for paginated reading history."""

    apartment_id: int
    readings: list[MeterReadingResponse]
    total: int
    limit: int
    offset: int


class ReadingWarning(BaseModel):
    """Non-fatal notice that a reading moved unusually against its baseline."""

    location: Location
    type: WaterType
    previous: Decimal
    current: Decimal
    change: Decimal
    reason: str


class SubmissionResult(BaseModel):
    """Outcome of a successful reading submission."""

    success: bool = True
    apartment_id: int
    year: int
    month: int
    readings: list[MeterReadingResponse]
    warnings: list[ReadingWarning]
    payment: PaymentGenerationResult
