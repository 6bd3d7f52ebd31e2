"""Engine error taxonomy.

Every error is an HTTPException so the API layer can let FastAPI render it
directly. ``detail`` is always a dict with a stable ``code`` and a human
message, plus whatever structured context the caller needs to correct and
retry (offending entries, expected slots, ...).
"""

from typing import Any

from fastapi import HTTPException, status
from fastapi.encoders import jsonable_encoder


class EngineError(HTTPException):
    """Base class for metering and billing errors."""

    code = "engine_error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, **context: Any) -> None:
        self.message = message
        self.context = context
        super().__init__(
            status_code=type(self).status_code,
            detail=jsonable_encoder({"code": self.code, "message": message, **context}),
        )


class InvalidReading(EngineError):
    """An entry has an unknown location, unknown type or non-numeric value."""

    code = "invalid_reading"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class UnexpectedSlot(EngineError):
    """An entry targets a slot the apartment does not have (or repeats one)."""

    code = "unexpected_slot"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class IncompleteSubmission(EngineError):
    """The batch is missing one or more expected slots."""

    code = "incomplete_submission"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class SubmissionWindowClosed(EngineError):
    code = "submission_window_closed"
    status_code = status.HTTP_403_FORBIDDEN


class AlreadySubmittedThisMonth(EngineError):
    code = "already_submitted_this_month"
    status_code = status.HTTP_409_CONFLICT


class NoTariffConfigured(EngineError):
    """No tariff applies; billing must not continue with zero rates."""

    code = "no_tariff_configured"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class ApartmentNotFound(EngineError):
    code = "apartment_not_found"
    status_code = status.HTTP_404_NOT_FOUND


class PaymentNotFound(EngineError):
    code = "payment_not_found"
    status_code = status.HTTP_404_NOT_FOUND


class PaymentNotPayable(EngineError):
    """The payment is already settled or was cancelled."""

    code = "payment_not_payable"
    status_code = status.HTTP_409_CONFLICT


class InvalidTariffPeriod(EngineError):
    """A new tariff would start before the tariff it replaces."""

    code = "invalid_tariff_period"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
