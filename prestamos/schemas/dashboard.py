# prestamos/schemas/dashboard.py
from __future__ import annotations

from datetime import date
from decimal import Decimal
from pydantic import BaseModel
from typing import List, Optional


class DashboardSummaryResponse(BaseModel):
    pending_requests: int
    active_loans: int
    outstanding_balance: Decimal
    interest_earned: Decimal
    overdue_installments: int
    collected_amount: Decimal
    payments_count: int
    date_from: Optional[date] = None
    date_to: Optional[date] = None


class UpcomingPaymentItem(BaseModel):
    loan_id: int
    customer_name: str
    due_date: date
    total_due: Decimal
    capital_due: Decimal
    interest_due: Decimal
    is_overdue: bool


class UpcomingPaymentsResponse(BaseModel):
    items: List[UpcomingPaymentItem] = []
    total_due: Decimal
    total_capital: Decimal
    total_interest: Decimal


class UpcomingQuincenaAggregate(BaseModel):
    due_date: date
    total: Decimal
    capital: Decimal
    interest: Decimal
    installments: int
