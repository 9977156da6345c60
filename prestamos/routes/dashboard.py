# prestamos/routes/dashboard.py
from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func
from sqlalchemy.orm import Session

from prestamos.constants import (
    UNPAID_INSTALLMENT_STATUSES, InstallmentStatus, LoanRequestStatus, LoanStatus,
)
from prestamos.database.db import get_db
from prestamos.models.models import Installment, Loan, LoanRequest, Payment
from prestamos.schemas.dashboard import (
    DashboardSummaryResponse,
    UpcomingPaymentItem,
    UpcomingPaymentsResponse,
    UpcomingQuincenaAggregate,
)
from prestamos.utils.money import ZERO, money
from prestamos.utils.status import effective_installment_status
from prestamos.utils.time_windows import today_local


router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/summary", response_model=DashboardSummaryResponse)
def dashboard_summary(
    date_from: Optional[date] = Query(None, description="Fecha local (YYYY-MM-DD) inclusive"),
    date_to: Optional[date] = Query(None, description="Fecha local (YYYY-MM-DD) inclusive"),
    db: Session = Depends(get_db),
):
    if date_from and date_to and date_from > date_to:
        raise HTTPException(status_code=422, detail="date_from no puede ser posterior a date_to")

    today = today_local()

    pending_requests = (
        db.query(func.count(LoanRequest.id))
        .filter(LoanRequest.status == LoanRequestStatus.NEW.value)
        .scalar() or 0
    )

    active_q = db.query(Loan).filter(Loan.status == LoanStatus.ACTIVE.value)
    active_loans = active_q.with_entities(func.count(Loan.id)).scalar() or 0
    outstanding = active_q.with_entities(func.coalesce(func.sum(Loan.outstanding_balance), 0)).scalar()

    # Interés ganado = interés de las cuotas ya pagadas
    interest_earned = (
        db.query(func.coalesce(func.sum(Installment.interest), 0))
        .filter(Installment.status == InstallmentStatus.PAID.value)
        .scalar()
    )

    overdue = (
        db.query(func.count(Installment.id))
        .join(Loan, Installment.loan_id == Loan.id)
        .filter(
            Loan.status == LoanStatus.ACTIVE.value,
            Installment.status.in_(UNPAID_INSTALLMENT_STATUSES),
            Installment.due_date < today,
        )
        .scalar() or 0
    )

    # -------------------------
    # COBRADO en período (pagos vigentes)
    # -------------------------
    payments_q = db.query(Payment).filter(Payment.is_voided.is_(False))
    if date_from:
        payments_q = payments_q.filter(Payment.payment_date >= date_from)
    if date_to:
        payments_q = payments_q.filter(Payment.payment_date <= date_to)
    collected = payments_q.with_entities(func.coalesce(func.sum(Payment.amount), 0)).scalar()
    payments_count = payments_q.with_entities(func.count(Payment.id)).scalar() or 0

    return DashboardSummaryResponse(
        pending_requests=int(pending_requests),
        active_loans=int(active_loans),
        outstanding_balance=money(outstanding),
        interest_earned=money(interest_earned),
        overdue_installments=int(overdue),
        collected_amount=money(collected),
        payments_count=int(payments_count),
        date_from=date_from,
        date_to=date_to,
    )


@router.get("/upcoming-payments", response_model=UpcomingPaymentsResponse)
def upcoming_payments(
    limit: int = Query(5, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """
    Próximo cobro por préstamo activo: la primera cuota impaga (por número).
    Se devuelven las `limit` más próximas; los totales son sobre todas.
    """
    today = today_local()
    loans = db.query(Loan).filter(Loan.status == LoanStatus.ACTIVE.value).all()

    items: List[UpcomingPaymentItem] = []
    for loan in loans:
        nxt = (
            db.query(Installment)
            .filter(Installment.loan_id == loan.id, Installment.status.in_(UNPAID_INSTALLMENT_STATUSES))
            .order_by(Installment.number.asc())
            .first()
        )
        if not nxt:
            continue
        customer = loan.customer
        items.append(UpcomingPaymentItem(
            loan_id=loan.id,
            customer_name=customer.full_name if customer else "-",
            due_date=nxt.due_date,
            total_due=money(nxt.installment_amount),
            capital_due=money(nxt.capital),
            interest_due=money(nxt.interest),
            is_overdue=effective_installment_status(nxt.status, nxt.due_date, today) == InstallmentStatus.OVERDUE.value,
        ))

    items.sort(key=lambda i: (i.due_date, i.loan_id))

    return UpcomingPaymentsResponse(
        items=items[:limit],
        total_due=sum((i.total_due for i in items), ZERO),
        total_capital=sum((i.capital_due for i in items), ZERO),
        total_interest=sum((i.interest_due for i in items), ZERO),
    )


@router.get("/upcoming-quincenas", response_model=List[UpcomingQuincenaAggregate])
def upcoming_quincenas(
    limit: int = Query(3, ge=1, le=24),
    db: Session = Depends(get_db),
):
    """Cuotas impagas de préstamos activos agrupadas por fecha de quincena."""
    rows = (
        db.query(Installment)
        .join(Loan, Installment.loan_id == Loan.id)
        .filter(
            Loan.status == LoanStatus.ACTIVE.value,
            Installment.status.in_(UNPAID_INSTALLMENT_STATUSES),
        )
        .order_by(Installment.due_date.asc())
        .all()
    )

    groups = defaultdict(lambda: {"total": ZERO, "capital": ZERO, "interest": ZERO, "installments": 0})
    for r in rows:
        g = groups[r.due_date]
        g["total"] += money(r.installment_amount)
        g["capital"] += money(r.capital)
        g["interest"] += money(r.interest)
        g["installments"] += 1

    return [
        UpcomingQuincenaAggregate(due_date=d, **groups[d])
        for d in sorted(groups)[:limit]
    ]
