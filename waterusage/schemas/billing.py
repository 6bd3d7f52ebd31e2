"""Billing schemas for tariffs, cost breakdowns and payments."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, field_validator

from waterusage.models.enums import DerivedPaymentStatus, PaymentStatus
from waterusage.schemas.usage import UsageSummary


class TariffCreate(BaseModel):
    """Schema for creating a new tariff that replaces the active one."""

    cold_water_rate: Decimal
    hot_water_rate: Decimal
    dirty_water_rate: Decimal
    effective_from: date | None = None

    @field_validator("cold_water_rate", "hot_water_rate", "dirty_water_rate")
    @classmethod
    def validate_rate(cls, v: Decimal) -> Decimal:
        """Rates must be positive."""
        if v <= 0:
            raise ValueError("Tariff rates must be greater than zero")
        return v


class TariffResponse(BaseModel):
    """Schema for tariff response."""

    id: int
    cold_water_rate: Decimal
    hot_water_rate: Decimal
    dirty_water_rate: Decimal
    effective_from: date
    effective_to: date | None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class CostBreakdown(BaseModel):
    """Itemized cost of a month's usage under a tariff."""

    cold_water_cost: Decimal
    hot_water_cost: Decimal
    dirty_water_cost: Decimal
    total: Decimal


class PaymentResponse(BaseModel):
    """Schema for a stored payment with its derived status."""

    id: int
    apartment_id: int
    user_id: int | None
    tariff_id: int | None
    billing_year: int
    billing_month: int
    amount: Decimal
    pay_date: date
    paid_date: datetime | None
    status: PaymentStatus
    display_status: DerivedPaymentStatus


class PaymentGenerationResult(BaseModel):
    """Outcome of payment generation.

    ``usage`` and ``costs`` are only filled in when the payment was created
    by this call; an existing payment is returned as stored.
    """

    existed: bool
    payment: PaymentResponse
    usage: UsageSummary | None = None
    costs: CostBreakdown | None = None


class PaymentGenerateRequest(BaseModel):
    """Optional target month for payment generation."""

    year: int | None = None
    month: int | None = None

    @field_validator("month")
    @classmethod
    def validate_month(cls, v: int | None) -> int | None:
        if v is not None and not 1 <= v <= 12:
            raise ValueError("Month must be between 1 and 12")
        return v


class PaymentDetail(BaseModel):
    """A payment with the usage and costs it was billed for."""

    payment: PaymentResponse
    usage: UsageSummary
    costs: CostBreakdown | None
    tariff: TariffResponse | None


class PaymentSummary(BaseModel):
    total: Decimal
    paid: Decimal
    outstanding: Decimal


class PaymentList(BaseModel):
    """Payments of an apartment, newest first, with totals."""

    apartment_id: int
    payments: list[PaymentResponse]
    summary: PaymentSummary


class MonthlyPaymentStats(BaseModel):
    """Billed amount and payment counts for one billing month."""

    month: int
    total_amount: Decimal
    paid_count: int
    pending_count: int
    overdue_count: int


class PaymentStatistics(BaseModel):
    """Per-month payment statistics for a calendar year."""

    apartment_id: int
    year: int
    months: list[MonthlyPaymentStats]
    yearly_total: Decimal
