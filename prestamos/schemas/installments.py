from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class InstallmentOut(BaseModel):
    id: int
    loan_id: int
    number: int
    due_date: date
    installment_amount: Decimal
    interest: Decimal
    capital: Decimal
    opening_balance: Decimal
    closing_balance: Decimal
    status: str
    effective_status: Optional[str] = None  # incluye 'overdue' calculado

    class Config:
        from_attributes = True


class AvailableInstallmentOut(BaseModel):
    number: int
    installment_amount: Decimal
    due_date: date
    status: str
    effective_status: str
