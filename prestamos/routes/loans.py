import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session, selectinload

from prestamos.config import SUGGESTED_INTEREST_RATE
from prestamos.constants import InstallmentStatus, LoanStatus
from prestamos.database.db import get_db
from prestamos.models.models import Installment, Loan, Payment
from prestamos.schemas.installments import AvailableInstallmentOut, InstallmentOut
from prestamos.schemas.loans import (
    LoanDetailOut, LoanOut, NextPaymentOut, SchedulePreviewOut, SchedulePreviewRequest, ScheduleRowOut,
)
from prestamos.services.amortization import AmortizationError, generate_schedule
from prestamos.utils.money import ZERO, money
from prestamos.utils.normalize import norm_installment_status, norm_loan_status
from prestamos.utils.status import effective_installment_status, effective_loan_status
from prestamos.utils.time_windows import today_local

logger = logging.getLogger("uvicorn.error")

router = APIRouter()


# ---------- serialización ----------
def serialize_installment(ins: Installment, today: Optional[date] = None) -> InstallmentOut:
    out = InstallmentOut.model_validate(ins)
    out.effective_status = effective_installment_status(ins.status, ins.due_date, today)
    return out


def serialize_loan(loan: Loan, today: Optional[date] = None) -> LoanOut:
    today = today or today_local()
    customer = loan.customer
    out = LoanOut.model_validate(loan)
    out.effective_status = effective_loan_status(loan.status, loan.installments, today)
    if customer:
        out.customer_id = customer.id
        out.customer_name = customer.full_name
        out.cedula = customer.cedula
    return out


def serialize_loan_detail(loan: Loan, today: Optional[date] = None) -> LoanDetailOut:
    today = today or today_local()
    base = serialize_loan(loan, today)
    return LoanDetailOut(
        **base.model_dump(),
        installments=[serialize_installment(i, today) for i in loan.installments],
    )


def _get_loan_or_404(db: Session, loan_id: int) -> Loan:
    loan = db.get(Loan, loan_id)
    if not loan:
        raise HTTPException(status_code=404, detail="Préstamo no encontrado")
    return loan


# ============== PREVIEW ==============
@router.post("/schedule-preview", response_model=SchedulePreviewOut)
def schedule_preview(body: SchedulePreviewRequest):
    """Calcula la tabla de amortización sin guardar nada (para el modal de aprobación)."""
    principal = money(body.principal)
    suggested = money(principal * SUGGESTED_INTEREST_RATE)
    target = money(body.target_interest) if body.target_interest is not None else suggested
    period_count = body.period_count or body.duration_months * 2

    try:
        plan = generate_schedule(principal, target, period_count, body.first_due_date or body.start_date)
    except AmortizationError as e:
        logger.warning("Preview rechazado por el motor: %s", e)
        raise HTTPException(status_code=422, detail=str(e))

    return SchedulePreviewOut(
        principal=principal,
        target_interest=target,
        suggested_interest=suggested,
        period_count=period_count,
        installment_amount=plan.installment_amount,
        implied_rate=plan.implied_rate,
        total_interest=plan.total_interest,
        rows=[
            ScheduleRowOut(
                number=r.period_index,
                due_date=r.due_date,
                installment_amount=r.installment_amount,
                interest=r.interest_portion,
                capital=r.capital_portion,
                opening_balance=r.opening_balance,
                closing_balance=r.closing_balance,
            )
            for r in plan
        ],
    )


# ============== LIST ==============
@router.get("/", response_model=List[LoanOut])
def list_loans(
    status: Optional[str] = Query(None, description="active | completed | late | rejected (ES o EN)"),
    db: Session = Depends(get_db),
):
    wanted = None
    if status:
        wanted = norm_loan_status(status)
        if wanted is None:
            raise HTTPException(status_code=422, detail=f"Estado inválido: {status}")

    loans = (
        db.query(Loan)
        .options(selectinload(Loan.installments))
        .order_by(Loan.created_at.desc(), Loan.id.desc())
        .all()
    )
    today = today_local()
    out = [serialize_loan(loan, today) for loan in loans]
    if wanted is not None:
        # el filtro va sobre el estado efectivo ('late' no se guarda)
        out = [o for o in out if o.effective_status == wanted.value]
    return out


@router.get("/active", response_model=List[LoanOut])
def list_active_loans(db: Session = Depends(get_db)):
    # 'late' es calculado: en la base siguen como 'active'
    loans = (
        db.query(Loan)
        .options(selectinload(Loan.installments))
        .filter(Loan.status == LoanStatus.ACTIVE.value)
        .order_by(Loan.next_due_date.asc(), Loan.id.asc())
        .all()
    )
    today = today_local()
    return [serialize_loan(loan, today) for loan in loans]


# ============== GET ONE ==============
@router.get("/{loan_id}", response_model=LoanDetailOut)
def get_loan(loan_id: int, db: Session = Depends(get_db)):
    return serialize_loan_detail(_get_loan_or_404(db, loan_id))


@router.get("/{loan_id}/installments", response_model=List[InstallmentOut])
def get_installments_for_loan(
    loan_id: int,
    status: Optional[str] = Query(None, description="pending | paid | overdue (ES o EN)"),
    db: Session = Depends(get_db),
):
    wanted = None
    if status:
        wanted = norm_installment_status(status)
        if wanted is None:
            raise HTTPException(status_code=422, detail=f"Estado inválido: {status}")

    loan = _get_loan_or_404(db, loan_id)
    today = today_local()
    out = [serialize_installment(i, today) for i in loan.installments]
    if wanted is not None:
        out = [o for o in out if o.effective_status == wanted.value]
    return out


@router.get("/{loan_id}/available-installments", response_model=List[AvailableInstallmentOut])
def get_available_installments(loan_id: int, db: Session = Depends(get_db)):
    """Cuotas que todavía se pueden cobrar (no pagadas), en orden."""
    _get_loan_or_404(db, loan_id)
    rows = (
        db.query(Installment)
        .filter(Installment.loan_id == loan_id, Installment.status != InstallmentStatus.PAID.value)
        .order_by(Installment.number.asc())
        .all()
    )
    today = today_local()
    return [
        AvailableInstallmentOut(
            number=r.number,
            installment_amount=r.installment_amount,
            due_date=r.due_date,
            status=r.status,
            effective_status=effective_installment_status(r.status, r.due_date, today),
        )
        for r in rows
    ]


@router.get("/{loan_id}/next-payment", response_model=NextPaymentOut)
def get_next_payment(loan_id: int, db: Session = Depends(get_db)):
    """Número de la próxima cuota (última pagada + 1) y su monto."""
    _get_loan_or_404(db, loan_id)
    last = (
        db.query(Payment)
        .filter(
            Payment.loan_id == loan_id,
            Payment.is_voided.is_(False),
            Payment.installment_number.isnot(None),
        )
        .order_by(Payment.installment_number.desc())
        .first()
    )
    next_number = last.installment_number + 1 if last else 1

    row = (
        db.query(Installment)
        .filter(Installment.loan_id == loan_id, Installment.number == next_number)
        .first()
    )
    return NextPaymentOut(
        next_installment_number=next_number,
        installment_amount=money(row.installment_amount) if row else ZERO,
    )


# ============== DELETE ==============
@router.delete("/{loan_id}", status_code=200)
def delete_loan(loan_id: int, db: Session = Depends(get_db)):
    loan = _get_loan_or_404(db, loan_id)
    db.delete(loan)  # cascade: cuotas y pagos
    db.commit()
    logger.info("Préstamo %s eliminado", loan_id)
    return {"message": "Préstamo eliminado", "loan_id": loan_id}
