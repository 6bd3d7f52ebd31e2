"""Historical baselines and monthly consumption.

Meter indications are cumulative, so consumption for a month is the current
indication minus the last known indication before that month (the baseline).
Within any single month the maximum indication per slot is used, which keeps
accidental duplicate rows from skewing the result.
"""

import logging
from collections.abc import Iterable, Mapping
from decimal import Decimal

from sqlalchemy import and_, func
from sqlalchemy.orm import Session

from waterusage.core.clock import month_index
from waterusage.core.config import settings
from waterusage.models.enums import Location, WaterType
from waterusage.models.meter_reading import MeterReading
from waterusage.schemas.usage import MonthlyUsage, SlotUsage, UsageSummary, YearlyUsage
from waterusage.services.meter_slots import Slot

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

_PERIOD_INDEX = MeterReading.period_year * 12 + (MeterReading.period_month - 1)


def get_month_maxima(
    db: Session,
    apartment_id: int,
    year: int,
    month: int,
) -> dict[Slot, Decimal]:
    """Get the highest indication per slot recorded for the given month."""
    rows = (
        db.query(
            MeterReading.location,
            MeterReading.water_type,
            func.max(MeterReading.indication),
        )
        .filter(
            and_(
                MeterReading.apartment_id == apartment_id,
                MeterReading.period_year == year,
                MeterReading.period_month == month,
            )
        )
        .group_by(MeterReading.location, MeterReading.water_type)
        .all()
    )
    return {
        (Location(location), WaterType(water_type)): Decimal(str(value))
        for location, water_type, value in rows
    }


def get_baseline(
    db: Session,
    apartment_id: int,
    year: int,
    month: int,
    slots: Iterable[Slot],
    lookback_months: int | None = None,
) -> dict[Slot, Decimal]:
    """Find the last known indication of each slot before the target month.

    The month immediately preceding the target (December of the previous
    year for January) is preferred. A slot with no reading there falls back
    to the most recent earlier month that has one, at most
    ``lookback_months`` back when that limit is set. Slots with no history at
    all get a zero baseline.
    """
    if lookback_months is None:
        lookback_months = settings.BASELINE_LOOKBACK_MONTHS

    wanted = list(dict.fromkeys(slots))
    baseline: dict[Slot, Decimal] = dict.fromkeys(wanted, ZERO)
    if not wanted:
        return baseline

    target = month_index(year, month)
    conditions = [
        MeterReading.apartment_id == apartment_id,
        _PERIOD_INDEX < target,
    ]
    if lookback_months is not None:
        conditions.append(_PERIOD_INDEX >= target - lookback_months)

    rows = (
        db.query(
            MeterReading.location,
            MeterReading.water_type,
            MeterReading.period_year,
            MeterReading.period_month,
            func.max(MeterReading.indication),
        )
        .filter(and_(*conditions))
        .group_by(
            MeterReading.location,
            MeterReading.water_type,
            MeterReading.period_year,
            MeterReading.period_month,
        )
        .order_by(MeterReading.period_year.desc(), MeterReading.period_month.desc())
        .all()
    )

    found: set[Slot] = set()
    for location, water_type, _, _, value in rows:
        slot = (Location(location), WaterType(water_type))
        # Rows are newest first, so the first hit per slot is its baseline
        if slot in baseline and slot not in found:
            baseline[slot] = Decimal(str(value))
            found.add(slot)

    return baseline


def calculate_usage(
    year: int,
    month: int,
    current: Mapping[Slot, Decimal],
    baseline: Mapping[Slot, Decimal],
    slots: Iterable[Slot] = (),
) -> UsageSummary:
    """Turn current readings and baselines into cold/hot consumption.

    A reading below its baseline (meter replaced or mistyped) is billed as
    zero rather than refunded. Slots listed in ``slots`` without a current
    reading are reported with no consumption.
    """
    ordered = list(dict.fromkeys([*slots, *current]))

    cold = ZERO
    hot = ZERO
    slot_usages: list[SlotUsage] = []
    for slot in ordered:
        location, water_type = slot
        base = baseline.get(slot, ZERO)
        value = current.get(slot)

        clamped = False
        if value is None:
            consumption = ZERO
        else:
            consumption = value - base
            if consumption < 0:
                logger.warning(
                    "Negative consumption clamped to zero for %s/%s in %d-%02d "
                    "(baseline %s, current %s)",
                    location.value,
                    water_type.name.lower(),
                    year,
                    month,
                    base,
                    value,
                )
                consumption = ZERO
                clamped = True

        if water_type == WaterType.COLD:
            cold += consumption
        else:
            hot += consumption

        slot_usages.append(
            SlotUsage(
                location=location,
                type=water_type,
                baseline=base,
                current=value,
                consumption=consumption,
                clamped=clamped,
            )
        )

    return UsageSummary(year=year, month=month, cold=cold, hot=hot, slots=slot_usages)


def get_monthly_usage(
    db: Session,
    apartment_id: int,
    year: int,
    month: int,
    slots: Iterable[Slot] = (),
) -> UsageSummary:
    """Compute an apartment's consumption for one month from stored readings."""
    current = get_month_maxima(db, apartment_id, year, month)
    wanted = list(dict.fromkeys([*slots, *current]))
    baseline = get_baseline(db, apartment_id, year, month, wanted)
    return calculate_usage(year, month, current, baseline, wanted)


def get_yearly_usage(
    db: Session,
    apartment_id: int,
    year: int,
    slots: Iterable[Slot] = (),
) -> YearlyUsage:
    """Compute per-month consumption for every month of a year."""
    slots = list(slots)
    months: list[MonthlyUsage] = []
    for month in range(1, 13):
        usage = get_monthly_usage(db, apartment_id, year, month, slots)
        months.append(
            MonthlyUsage(
                month=month,
                cold=usage.cold,
                hot=usage.hot,
                has_readings=any(s.current is not None for s in usage.slots),
            )
        )

    return YearlyUsage(
        apartment_id=apartment_id,
        year=year,
        months=months,
        total_cold=sum((m.cold for m in months), ZERO),
        total_hot=sum((m.hot for m in months), ZERO),
    )
