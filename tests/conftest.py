"""Shared fixtures: in-memory database, frozen clock and data factories."""

from datetime import UTC, date, datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from waterusage.core.clock import get_clock
from waterusage.core.database import Base, get_db
from waterusage.main import app
from waterusage.models import Apartment, MeterReading, Tariff, User
from waterusage.models.enums import Location, WaterType

KITCHEN_COLD = (Location.KITCHEN, WaterType.COLD)
KITCHEN_HOT = (Location.KITCHEN, WaterType.HOT)
BATHROOM_COLD = (Location.BATHROOM, WaterType.COLD)
BATHROOM_HOT = (Location.BATHROOM, WaterType.HOT)
TOILET_COLD = (Location.TOILET, WaterType.COLD)

FROZEN_NOW = datetime(2026, 3, 15, 10, 0, tzinfo=UTC)


class FrozenClock:
    """Clock returning a fixed, adjustable instant."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def test_db():
    """Create an in-memory test database."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


@pytest.fixture
def clock():
    """A frozen clock set to mid-March 2026."""
    return FrozenClock(FROZEN_NOW)


@pytest.fixture
def app_overrides(test_db, clock):
    """Point the app at the test database and the frozen clock."""

    def override_get_db():
        try:
            yield test_db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app_overrides):
    """Create a test client with database and clock overrides."""
    return TestClient(app_overrides)


@pytest.fixture
def user(test_db):
    """Create a tenant."""
    db_user = User(username="tenant")
    test_db.add(db_user)
    test_db.commit()
    test_db.refresh(db_user)
    return db_user


@pytest.fixture
def make_apartment(test_db):
    """Factory for apartments with a given meter count."""
    counter = {"code": 1000}

    def _make(meter_count: int = 2) -> Apartment:
        counter["code"] += 1
        apartment = Apartment(
            apartment_code=counter["code"],
            city_name="Ulaanbaatar",
            district_name="Bayanzurkh",
            sub_district=4,
            apartment_name="Sunrise",
            block_number=7,
            unit_number=counter["code"] % 100,
            meter_count=meter_count,
        )
        test_db.add(apartment)
        test_db.commit()
        test_db.refresh(apartment)
        return apartment

    return _make


@pytest.fixture
def apartment(make_apartment):
    """An apartment with the minimum two kitchen meters."""
    return make_apartment(2)


@pytest.fixture
def make_tariff(test_db):
    """Factory for tariffs; defaults to the 50 / 75 / 100 rates."""

    def _make(
        cold: str = "50",
        hot: str = "75",
        dirty: str = "100",
        effective_from: date = date(2025, 1, 1),
        effective_to: date | None = None,
        is_active: bool = True,
    ) -> Tariff:
        tariff = Tariff(
            cold_water_rate=Decimal(cold),
            hot_water_rate=Decimal(hot),
            dirty_water_rate=Decimal(dirty),
            effective_from=effective_from,
            effective_to=effective_to,
            is_active=is_active,
        )
        test_db.add(tariff)
        test_db.commit()
        test_db.refresh(tariff)
        return tariff

    return _make


@pytest.fixture
def tariff(make_tariff):
    """The default active tariff."""
    return make_tariff()


@pytest.fixture
def add_readings(test_db):
    """Factory storing readings for an apartment and month directly."""

    def _add(apartment_id: int, year: int, month: int, values: dict) -> list[MeterReading]:
        readings = [
            MeterReading(
                apartment_id=apartment_id,
                location=location,
                water_type=water_type,
                indication=Decimal(str(value)),
                recorded_at=datetime(year, month, 10, tzinfo=UTC),
                period_year=year,
                period_month=month,
            )
            for (location, water_type), value in values.items()
        ]
        test_db.add_all(readings)
        test_db.commit()
        return readings

    return _add
