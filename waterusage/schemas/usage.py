"""Consumption schemas shared by readings and billing."""

from decimal import Decimal

from pydantic import BaseModel, computed_field

from waterusage.models.enums import Location, WaterType


class SlotUsage(BaseModel):
    """Consumption of a single slot in a billing month."""

    location: Location
    type: WaterType
    baseline: Decimal
    current: Decimal | None
    consumption: Decimal
    clamped: bool = False


class UsageSummary(BaseModel):
    """Cold and hot consumption of an apartment for one month."""

    year: int
    month: int
    cold: Decimal
    hot: Decimal
    slots: list[SlotUsage] = []

    @computed_field
    @property
    def total(self) -> Decimal:
        return self.cold + self.hot


class MonthlyUsage(BaseModel):
    month: int
    cold: Decimal
    hot: Decimal
    has_readings: bool


class YearlyUsage(BaseModel):
    """Per-month usage for a calendar year."""

    apartment_id: int
    year: int
    months: list[MonthlyUsage]
    total_cold: Decimal
    total_hot: Decimal
