"""Payment database model."""

from datetime import UTC, date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from waterusage.core.database import Base
from waterusage.models.enums import PaymentStatus

if TYPE_CHECKING:
    from waterusage.models.apartment import Apartment
    from waterusage.models.tariff import Tariff
    from waterusage.models.user import User


class Payment(Base):
    """Monthly water bill for an apartment.

    The unique constraint on (apartment, billing month) is what makes
    payment generation safe to call concurrently.
    """

    __tablename__ = "payments"
    __table_args__ = (
        UniqueConstraint(
            "apartment_id",
            "billing_year",
            "billing_month",
            name="uq_payment_apartment_month",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    apartment_id: Mapped[int] = mapped_column(ForeignKey("apartments.id"), index=True)
    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    tariff_id: Mapped[int | None] = mapped_column(ForeignKey("tariffs.id"), nullable=True)

    billing_year: Mapped[int] = mapped_column()
    billing_month: Mapped[int] = mapped_column()

    amount: Mapped[Decimal] = mapped_column(Numeric(precision=12, scale=2))
    pay_date: Mapped[date] = mapped_column()  # Due date
    paid_date: Mapped[datetime | None] = mapped_column(nullable=True)
    status: Mapped[PaymentStatus] = mapped_column(String(20), default=PaymentStatus.UNPAID)
    created_at: Mapped[datetime] = mapped_column(default=lambda: datetime.now(UTC))

    # Relationships
    apartment: Mapped["Apartment"] = relationship(back_populates="payments")
    user: Mapped["User | None"] = relationship()
    tariff: Mapped["Tariff | None"] = relationship()
