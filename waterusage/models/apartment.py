"""Apartment database model."""

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from waterusage.core.database import Base

if TYPE_CHECKING:
    from waterusage.models.meter_reading import MeterReading
    from waterusage.models.payment import Payment


class Apartment(Base):
    """Apartment whose meter count decides which readings are mandatory."""

    __tablename__ = "apartments"
    __table_args__ = (
        CheckConstraint("meter_count BETWEEN 2 AND 5", name="ck_apartment_meter_count"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    apartment_code: Mapped[int] = mapped_column(unique=True, index=True)

    # Address
    city_name: Mapped[str] = mapped_column(String(100))
    district_name: Mapped[str] = mapped_column(String(100))
    sub_district: Mapped[int] = mapped_column()
    apartment_name: Mapped[str] = mapped_column(String(255))
    block_number: Mapped[int] = mapped_column()
    unit_number: Mapped[int] = mapped_column()

    meter_count: Mapped[int] = mapped_column(default=2)
    created_at: Mapped[datetime] = mapped_column(default=lambda: datetime.now(UTC))

    # Relationships
    readings: Mapped[list["MeterReading"]] = relationship(back_populates="apartment")
    payments: Mapped[list["Payment"]] = relationship(back_populates="apartment")

    @property
    def display_name(self) -> str:
        """Human-readable address line."""
        return f"{self.apartment_name}, block {self.block_number}, unit {self.unit_number}"
