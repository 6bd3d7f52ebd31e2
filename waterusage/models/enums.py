"""Enum definitions for meter slots and payments."""

from enum import Enum, IntEnum


class Location(str, Enum):
    """Where in the apartment a meter is installed."""

    KITCHEN = "kitchen"
    TOILET = "toilet"
    BATHROOM = "bathroom"


class WaterType(IntEnum):
    """Water type, stored as 0/1."""

    COLD = 0
    HOT = 1


class PaymentStatus(str, Enum):
    """Persisted payment status."""

    UNPAID = "unpaid"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class DerivedPaymentStatus(str, Enum):
    """Presentation status computed from the stored row and the clock."""

    PAID = "paid"
    PENDING = "pending"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"
