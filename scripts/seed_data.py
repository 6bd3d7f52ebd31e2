"""Seed script to populate the database with sample data."""

from datetime import UTC, date, datetime
from decimal import Decimal

from waterusage.core.clock import shift_month
from waterusage.core.database import Base, SessionLocal, engine
from waterusage.models import Apartment, MeterReading, Tariff, User
from waterusage.services.meter_slots import expected_slots

DEFAULT_TARIFF = {
    "cold_water_rate": Decimal("50"),
    "hot_water_rate": Decimal("75"),
    "dirty_water_rate": Decimal("100"),
    "effective_from": date(2025, 1, 1),
}

HISTORY_MONTHS = 3


def seed_database() -> None:
    """Seed the database with sample data."""
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        # Check if data already exists
        if db.query(Apartment).first():
            print("Database already has data. Skipping seed.")
            return

        print("Seeding database...")

        if not db.query(Tariff).filter(Tariff.is_active.is_(True)).first():
            db.add(Tariff(is_active=True, effective_to=None, **DEFAULT_TARIFF))
            print("Created default tariff: cold 50, hot 75, dirty 100")

        apartment = Apartment(
            apartment_code=1001,
            city_name="Ulaanbaatar",
            district_name="Khan-Uul",
            sub_district=3,
            apartment_name="River Garden",
            block_number=12,
            unit_number=45,
            meter_count=4,
        )
        user = User(username="tenant1")
        db.add_all([apartment, user])
        db.flush()

        print(f"Created apartment: {apartment.display_name} (ID: {apartment.id})")
        print(f"Created user: {user.username} (ID: {user.id})")

        # Readings for the months before the current one, so that a
        # submission this month has a baseline to compare against
        now = datetime.now(UTC)
        slots = expected_slots(apartment.meter_count)
        for months_back in range(HISTORY_MONTHS, 0, -1):
            year, month = shift_month(now.year, now.month, -months_back)
            step = HISTORY_MONTHS - months_back + 1
            for index, (location, water_type) in enumerate(slots):
                db.add(
                    MeterReading(
                        apartment_id=apartment.id,
                        location=location,
                        water_type=water_type,
                        indication=Decimal(100 * (index + 1) + 4 * step),
                        recorded_at=datetime(year, month, 15, tzinfo=UTC),
                        period_year=year,
                        period_month=month,
                        created_by_user_id=user.id,
                    )
                )

        db.commit()

        print(f"Created {HISTORY_MONTHS * len(slots)} readings ({HISTORY_MONTHS} months x {len(slots)} meters)")
        print("\nSeed data created successfully!")
        print(f"\nSubmit readings with headers X-User-Id: {user.id}, X-Apartment-Id: {apartment.id}")
    finally:
        db.close()


if __name__ == "__main__":
    seed_database()
