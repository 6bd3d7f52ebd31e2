"""Tariff database model."""

from datetime import UTC, date, datetime
from decimal import Decimal

from sqlalchemy import Numeric
from sqlalchemy.orm import Mapped, mapped_column

from waterusage.core.database import Base


class Tariff(Base):
    """Versioned per-cubic-metre water prices.

    At most one tariff is active at a time. Replaced tariffs are closed
    (``effective_to`` set, ``is_active`` cleared) and kept so that past
    months can still be billed against the prices that applied then.
    """

    __tablename__ = "tariffs"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    cold_water_rate: Mapped[Decimal] = mapped_column(Numeric(precision=12, scale=2))
    hot_water_rate: Mapped[Decimal] = mapped_column(Numeric(precision=12, scale=2))
    dirty_water_rate: Mapped[Decimal] = mapped_column(Numeric(precision=12, scale=2))
    effective_from: Mapped[date] = mapped_column(index=True)
    effective_to: Mapped[date | None] = mapped_column(nullable=True)
    is_active: Mapped[bool] = mapped_column(default=True, index=True)
    created_at: Mapped[datetime] = mapped_column(default=lambda: datetime.now(UTC))
