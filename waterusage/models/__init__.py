"""Database models."""

from waterusage.models.apartment import Apartment
from waterusage.models.meter_reading import MeterReading
from waterusage.models.payment import Payment
from waterusage.models.tariff import Tariff
from waterusage.models.user import User

__all__ = ["Apartment", "MeterReading", "Payment", "Tariff", "User"]
