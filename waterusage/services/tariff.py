"""Tariff resolution and administration."""

import logging
from datetime import date, datetime, timedelta

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from waterusage.core.errors import InvalidTariffPeriod, NoTariffConfigured
from waterusage.models.tariff import Tariff
from waterusage.schemas.billing import TariffCreate

logger = logging.getLogger(__name__)


def get_active_tariff(db: Session) -> Tariff:
    """Get the tariff currently in force.

    If more than one row is marked active the newest one wins.
    """
    tariff = (
        db.query(Tariff)
        .filter(Tariff.is_active.is_(True))
        .order_by(Tariff.id.desc())
        .first()
    )
    if not tariff:
        raise NoTariffConfigured("No active tariff is configured")
    return tariff


def get_tariff_for_date(db: Session, on_date: date) -> Tariff:
    """Get the tariff whose effective range contains ``on_date``."""
    tariff = (
        db.query(Tariff)
        .filter(
            and_(
                Tariff.effective_from <= on_date,
                or_(Tariff.effective_to.is_(None), Tariff.effective_to >= on_date),
            )
        )
        .order_by(Tariff.effective_from.desc(), Tariff.id.desc())
        .first()
    )
    if not tariff:
        raise NoTariffConfigured(
            f"No tariff was in effect on {on_date.isoformat()}",
            on_date=on_date,
        )
    return tariff


def get_tariff(db: Session, tariff_id: int) -> Tariff | None:
    """Get a tariff by ID."""
    return db.query(Tariff).filter(Tariff.id == tariff_id).first()


def list_tariffs(db: Session) -> list[Tariff]:
    """Get all tariffs, newest first."""
    return db.query(Tariff).order_by(Tariff.effective_from.desc(), Tariff.id.desc()).all()


def create_tariff(db: Session, data: TariffCreate, now: datetime) -> Tariff:
    """Replace the active tariff with a new one in a single transaction.

    Every currently active tariff is closed the day before the new one takes
    effect. A replacement starting on the same day as the active tariff closes
    it on that day; the newer row then wins date lookups. A start date before
    the active tariff's own start is rejected.
    """
    effective_from = data.effective_from or now.date()

    try:
        current = db.query(Tariff).filter(Tariff.is_active.is_(True)).with_for_update().all()
        latest_start = max((t.effective_from for t in current), default=None)
        if latest_start is not None and effective_from < latest_start:
            raise InvalidTariffPeriod(
                f"New tariff cannot start before the active tariff (from {latest_start.isoformat()})",
                effective_from=effective_from,
                active_from=latest_start,
            )

        for tariff in current:
            tariff.is_active = False
            tariff.effective_to = max(tariff.effective_from, effective_from - timedelta(days=1))

        new_tariff = Tariff(
            cold_water_rate=data.cold_water_rate,
            hot_water_rate=data.hot_water_rate,
            dirty_water_rate=data.dirty_water_rate,
            effective_from=effective_from,
            effective_to=None,
            is_active=True,
        )
        db.add(new_tariff)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(new_tariff)
    logger.info(
        "Tariff %d active from %s (closed %s)",
        new_tariff.id,
        effective_from.isoformat(),
        ", ".join(str(t.id) for t in current) or "none",
    )
    return new_tariff
