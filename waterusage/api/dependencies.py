"""Request dependencies shared by the API routes."""

from dataclasses import dataclass

from fastapi import Header


@dataclass(frozen=True)
class Caller:
    """Authenticated (user, apartment) pair supplied by the gateway."""

    user_id: int
    apartment_id: int


def get_caller(
    x_user_id: int = Header(..., description="Authenticated user ID"),
    x_apartment_id: int = Header(..., description="Apartment the user acts for"),
) -> Caller:
    """Read the caller identity set by the upstream authentication layer.

    The pairing is trusted as-is; no further authorization happens here.
    """
    return Caller(user_id=x_user_id, apartment_id=x_apartment_id)
