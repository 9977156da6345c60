from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional


class PaymentBase(BaseModel):
    loan_id: int
    installment_number: int = Field(..., ge=1)
    amount: Decimal = Field(..., gt=0)


class PaymentCreate(PaymentBase):
    # Si no viene: hoy (fecha local)
    payment_date: Optional[date] = None


class PaymentOut(PaymentBase):
    id: int
    payment_date: date
    created_at: datetime
    is_voided: bool = False
    voided_at: Optional[datetime] = None
    void_reason: Optional[str] = None

    class Config:
        from_attributes = True  # pydantic v2 (equiv. orm_mode=True)


class PaymentResult(BaseModel):
    payment: PaymentOut
    loan_id: int
    outstanding_balance: Decimal
    next_due_date: date
    loan_status: str


class VoidPaymentRequest(BaseModel):
    reason: Optional[str] = None


class VoidPaymentResult(BaseModel):
    message: str
    payment_id: int
    loan_id: int
    outstanding_balance: Decimal
    loan_status: str
