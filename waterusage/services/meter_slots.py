"""Expected meter slots per apartment configuration."""

from waterusage.models.enums import Location, WaterType

Slot = tuple[Location, WaterType]

MIN_METER_COUNT = 2
MAX_METER_COUNT = 5

# Each extra meter adds one slot on top of the previous configuration.
# There is no hot-water meter in the toilet.
_SLOT_ORDER: tuple[Slot, ...] = (
    (Location.KITCHEN, WaterType.COLD),
    (Location.KITCHEN, WaterType.HOT),
    (Location.BATHROOM, WaterType.COLD),
    (Location.BATHROOM, WaterType.HOT),
    (Location.TOILET, WaterType.COLD),
)

EXPECTED_SLOTS: dict[int, tuple[Slot, ...]] = {
    count: _SLOT_ORDER[:count] for count in range(MIN_METER_COUNT, MAX_METER_COUNT + 1)
}


def expected_slots(meter_count: int) -> tuple[Slot, ...]:
    """Return the ordered slots an apartment with ``meter_count`` meters must report."""
    try:
        return EXPECTED_SLOTS[meter_count]
    except KeyError:
        raise ValueError(
            f"Meter count must be between {MIN_METER_COUNT} and {MAX_METER_COUNT}, "
            f"got {meter_count}"
        ) from None


def slot_label(slot: Slot) -> dict[str, object]:
    """Serializable form of a slot for error details and responses."""
    location, water_type = slot
    return {"location": location.value, "type": int(water_type)}
