"""MeterReading database model - the reading ledger."""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from waterusage.core.database import Base
from waterusage.models.enums import Location, WaterType

if TYPE_CHECKING:
    from waterusage.models.apartment import Apartment
    from waterusage.models.user import User


class MeterReading(Base):
    """One reading for one (location, water type) slot of an apartment.

    Readings are grouped by calendar month through ``period_year`` and
    ``period_month``. There is no uniqueness constraint per slot
    and month: imported history may contain duplicates, and every consumer
    takes the maximum indication per slot.
    """

    __tablename__ = "meter_readings"
    __table_args__ = (
        CheckConstraint("water_type IN (0, 1)", name="ck_meter_reading_water_type"),
        CheckConstraint("indication >= 0", name="ck_meter_reading_indication"),
        Index("ix_meter_readings_apartment_period", "apartment_id", "period_year", "period_month"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    apartment_id: Mapped[int] = mapped_column(ForeignKey("apartments.id"), index=True)

    location: Mapped[Location] = mapped_column(String(20))
    water_type: Mapped[WaterType] = mapped_column(Integer)
    indication: Mapped[Decimal] = mapped_column(Numeric(precision=12, scale=3))

    # When the reading was submitted, and the month it is billed in
    recorded_at: Mapped[datetime] = mapped_column(default=lambda: datetime.now(UTC))
    period_year: Mapped[int] = mapped_column()
    period_month: Mapped[int] = mapped_column()

    created_by_user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
    )

    # Relationships
    apartment: Mapped["Apartment"] = relationship(back_populates="readings")
    created_by: Mapped["User | None"] = relationship()
