from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from .installments import InstallmentOut


class LoanOut(BaseModel):
    id: int
    loan_request_id: int
    principal: Decimal
    total_interest: Decimal
    installment_amount: Decimal
    installments_count: int
    next_due_date: date
    outstanding_balance: Decimal
    status: str
    effective_status: Optional[str] = None
    created_at: datetime

    customer_id: Optional[int] = None
    customer_name: Optional[str] = None
    cedula: Optional[str] = None

    class Config:
        from_attributes = True


class LoanDetailOut(LoanOut):
    installments: List[InstallmentOut] = []


class SchedulePreviewRequest(BaseModel):
    principal: Decimal = Field(..., gt=0)
    # Si no viene, se sugiere SUGGESTED_INTEREST_RATE × capital
    target_interest: Optional[Decimal] = Field(None, ge=0)
    duration_months: Optional[int] = Field(None, ge=1, le=120)
    period_count: Optional[int] = Field(None, ge=1, le=240)  # 120 meses × 2
    start_date: Optional[date] = None
    first_due_date: Optional[date] = None

    @model_validator(mode="after")
    def _check(self):
        if self.duration_months is None and self.period_count is None:
            raise ValueError("Indicá duration_months o period_count")
        if self.start_date is None and self.first_due_date is None:
            raise ValueError("Indicá start_date o first_due_date")
        return self


class ScheduleRowOut(BaseModel):
    number: int
    due_date: date
    installment_amount: Decimal
    interest: Decimal
    capital: Decimal
    opening_balance: Decimal
    closing_balance: Decimal


class SchedulePreviewOut(BaseModel):
    principal: Decimal
    target_interest: Decimal
    suggested_interest: Decimal
    period_count: int
    installment_amount: Decimal
    implied_rate: float
    total_interest: Decimal
    rows: List[ScheduleRowOut] = []


class NextPaymentOut(BaseModel):
    next_installment_number: int
    installment_amount: Decimal
