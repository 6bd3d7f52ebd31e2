"""Tariff routes."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from waterusage.core.clock import Clock, get_clock
from waterusage.core.database import get_db
from waterusage.schemas.billing import TariffCreate, TariffResponse
from waterusage.services import tariff as tariff_service

router = APIRouter(prefix="/tariffs", tags=["tariffs"])


@router.get("/active", response_model=TariffResponse)
def get_active_tariff(db: Session = Depends(get_db)):
    """Get the tariff currently in force."""
    return tariff_service.get_active_tariff(db)


@router.get("/", response_model=list[TariffResponse])
def list_tariffs(db: Session = Depends(get_db)):
    """List every tariff, including closed ones."""
    return tariff_service.list_tariffs(db)


@router.post("/", response_model=TariffResponse, status_code=status.HTTP_201_CREATED)
def create_tariff(
    data: TariffCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Replace the active tariff. The previous one is closed, not deleted."""
    return tariff_service.create_tariff(db, data, clock())
