"""Apartment lookups used by the engine."""

from sqlalchemy.orm import Session

from waterusage.core.errors import ApartmentNotFound
from waterusage.models.apartment import Apartment


def get_apartment(db: Session, apartment_id: int, lock: bool = False) -> Apartment:
    """Get an apartment by ID.

    With ``lock=True`` the row is selected FOR UPDATE, which serializes
    concurrent submissions for the same apartment on databases that support
    row locks.
    """
    query = db.query(Apartment).filter(Apartment.id == apartment_id)
    if lock:
        query = query.with_for_update()
    apartment = query.first()
    if not apartment:
        raise ApartmentNotFound(f"Apartment {apartment_id} not found", apartment_id=apartment_id)
    return apartment
