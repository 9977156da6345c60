from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from .customers import CustomerCreate, CustomerOut


class LoanRequestBase(BaseModel):
    requested_amount: Decimal = Field(..., gt=0, decimal_places=2)
    duration_months: int = Field(..., ge=1, le=120)
    bank_account_type: Optional[str] = None
    account_number: Optional[str] = None
    bank: Optional[str] = None
    employer: Optional[str] = None
    id_photos: Optional[List[str]] = None


class LoanRequestCreate(LoanRequestBase):
    customer: CustomerCreate


class LoanRequestOut(LoanRequestBase):
    id: int
    customer_id: int
    customer: CustomerOut
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


class LoanRequestPage(BaseModel):
    data: List[LoanRequestOut] = []
    page: int
    limit: int
    total: int


class ApproveLoanRequest(BaseModel):
    target_interest: Decimal = Field(..., ge=0, description="Interés total a cobrar (monto, no tasa)")
    # Una de las dos: fecha de inicio (se lleva a la primera quincena) o primera fecha de cobro
    start_date: Optional[date] = None
    first_due_date: Optional[date] = None
    company_id: Optional[int] = None

    @model_validator(mode="after")
    def _needs_a_date(self):
        if self.start_date is None and self.first_due_date is None:
            raise ValueError("Indicá start_date o first_due_date")
        return self
