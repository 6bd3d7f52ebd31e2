"""Validation of a submitted reading batch against an apartment's slots.

Validation is all-or-nothing and runs in three passes, each reporting every
offending entry it finds:

1. shape: known location, water type 0/1, numeric non-negative indication
2. membership: every entry targets one of the expected slots, once
3. completeness: every expected slot is present
"""

from collections.abc import Sequence
from decimal import Decimal, InvalidOperation
from typing import Any

from waterusage.core.errors import IncompleteSubmission, InvalidReading, UnexpectedSlot
from waterusage.models.enums import Location, WaterType
from waterusage.schemas.readings import ReadingEntry, ReadingEntryIn
from waterusage.services.meter_slots import Slot, slot_label


def parse_location(value: Any) -> Location | None:
    """Parse a location name, case-insensitively."""
    if isinstance(value, Location):
        return value
    if not isinstance(value, str):
        return None
    try:
        return Location(value.strip().lower())
    except ValueError:
        return None


def parse_water_type(value: Any) -> WaterType | None:
    """Parse a water type given as 0/1 (int or digit string) or 'cold'/'hot'."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("cold", "hot"):
            return WaterType[text.upper()]
        if not text.isdigit():
            return None
        value = int(text)
    if not isinstance(value, int):
        return None
    try:
        return WaterType(value)
    except ValueError:
        return None


def parse_indication(value: Any) -> Decimal | None:
    """Parse a meter indication; must be a finite, non-negative number."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, float):
        value = repr(value)
    try:
        number = Decimal(str(value).strip()) if isinstance(value, str) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        return None
    if not number.is_finite() or number < 0:
        return None
    return number


def _entry_label(index: int, entry: ReadingEntryIn) -> dict[str, Any]:
    return {
        "index": index,
        "location": entry.location,
        "type": entry.type,
        "indication": entry.indication,
    }


def validate_readings(
    entries: Sequence[ReadingEntryIn],
    slots: Sequence[Slot],
) -> list[ReadingEntry]:
    """Validate a batch and return it parsed, in the order of ``slots``.

    Raises InvalidReading, UnexpectedSlot or IncompleteSubmission. Nothing is
    returned for a partially valid batch.
    """
    expected = [slot_label(slot) for slot in slots]

    # Pass 1: shape of every entry
    parsed: list[tuple[int, ReadingEntry]] = []
    invalid: list[dict[str, Any]] = []
    for index, entry in enumerate(entries):
        location = parse_location(entry.location)
        water_type = parse_water_type(entry.type)
        indication = parse_indication(entry.indication)

        errors = []
        if location is None:
            errors.append("unknown location")
        if water_type is None:
            errors.append("unknown water type")
        if indication is None:
            errors.append("indication must be a non-negative number")
        if errors:
            invalid.append({**_entry_label(index, entry), "errors": errors})
            continue

        parsed.append(
            (index, ReadingEntry(location=location, type=water_type, indication=indication))
        )

    if invalid:
        raise InvalidReading("Some readings are malformed", entries=invalid)

    # Pass 2: each entry must target an expected slot, at most once
    expected_set = set(slots)
    seen: set[Slot] = set()
    unexpected: list[dict[str, Any]] = []
    for index, reading in parsed:
        slot = (reading.location, reading.type)
        if slot not in expected_set:
            unexpected.append({**_entry_label(index, entries[index]), "reason": "not expected"})
        elif slot in seen:
            unexpected.append({**_entry_label(index, entries[index]), "reason": "duplicate"})
        seen.add(slot)

    if unexpected:
        raise UnexpectedSlot(
            "Some readings do not match this apartment's meters",
            entries=unexpected,
            expected=expected,
        )

    # Pass 3: every expected slot must be covered
    missing = [slot_label(slot) for slot in slots if slot not in seen]
    if missing:
        raise IncompleteSubmission(
            "Readings are missing for some meters",
            missing=missing,
            expected=expected,
        )

    by_slot = {(reading.location, reading.type): reading for _, reading in parsed}
    return [by_slot[slot] for slot in slots]
