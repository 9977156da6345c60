import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from prestamos.constants import InstallmentStatus, LoanStatus
from prestamos.database.db import get_db
from prestamos.models.models import Installment, Loan, Payment
from prestamos.schemas.payments import (
    PaymentCreate, PaymentOut, PaymentResult, VoidPaymentRequest, VoidPaymentResult,
)
from prestamos.utils.ledger import installment_is_covered, recompute_loan_state, unpaid_status_for
from prestamos.utils.money import money
from prestamos.utils.time_windows import parse_local_date, today_local

logger = logging.getLogger("uvicorn.error")

router = APIRouter()


def _lock_loan(db: Session, loan_id: int) -> Loan:
    # Serializa leer saldo → calcular → escribir saldo por préstamo
    loan = (
        db.query(Loan)
        .filter(Loan.id == loan_id)
        .with_for_update()
        .one_or_none()
    )
    if not loan:
        raise HTTPException(status_code=404, detail="Préstamo no encontrado")
    return loan


# ============== REGISTER ==============
@router.post("/", response_model=PaymentResult, status_code=status.HTTP_201_CREATED)
def create_payment(body: PaymentCreate, db: Session = Depends(get_db)):
    """
    Registra el pago de una quincena:
      - guarda el pago
      - marca la cuota como 'paid'
      - descuenta el CAPITAL de la cuota (no el monto total) del saldo pendiente
      - mueve el próximo pago a la primera cuota impaga; si no queda ninguna → 'completed'
    """
    try:
        loan = _lock_loan(db, body.loan_id)
        if loan.status != LoanStatus.ACTIVE.value:
            raise HTTPException(status_code=409, detail=f"El préstamo no está activo (estado: {loan.status})")

        ins = (
            db.query(Installment)
            .filter(Installment.loan_id == loan.id, Installment.number == body.installment_number)
            .with_for_update()
            .one_or_none()
        )
        if not ins:
            raise HTTPException(status_code=404, detail="Cuota no encontrada")
        if ins.status == InstallmentStatus.PAID.value:
            raise HTTPException(status_code=409, detail=f"La quincena {ins.number} ya está pagada")

        payment = Payment(
            loan_id=loan.id,
            installment_number=ins.number,
            payment_date=body.payment_date or today_local(),
            amount=money(body.amount),
        )
        db.add(payment)

        ins.status = InstallmentStatus.PAID.value
        db.add(ins)
        db.flush()

        recompute_loan_state(db, loan)
        db.commit()
    except HTTPException:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Error registrando pago del préstamo %s", body.loan_id)
        raise HTTPException(status_code=500, detail=f"Error de base de datos al registrar el pago: {e}")

    db.refresh(payment)
    db.refresh(loan)
    logger.info(
        "Pago %s registrado: préstamo %s quincena %s monto %s (saldo %s)",
        payment.id, loan.id, payment.installment_number, payment.amount, loan.outstanding_balance,
    )
    return PaymentResult(
        payment=PaymentOut.model_validate(payment),
        loan_id=loan.id,
        outstanding_balance=money(loan.outstanding_balance),
        next_due_date=loan.next_due_date,
        loan_status=loan.status,
    )


# ============== LIST ==============
@router.get("/", response_model=List[PaymentOut])
def list_payments(
    loan_id: Optional[int] = Query(None),
    date_from: Optional[str] = Query(None),
    date_to: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    dfrom = parse_local_date(date_from)
    dto = parse_local_date(date_to)
    if (date_from and not dfrom) or (date_to and not dto):
        raise HTTPException(status_code=422, detail="Formato de fecha inválido. Use 'YYYY-MM-DD'.")

    q = db.query(Payment).filter(Payment.is_voided.is_(False))
    if loan_id is not None:
        q = q.filter(Payment.loan_id == loan_id)
    if dfrom:
        q = q.filter(Payment.payment_date >= dfrom)
    if dto:
        q = q.filter(Payment.payment_date <= dto)

    return q.order_by(Payment.payment_date.desc(), Payment.id.desc()).all()


# ============== VOID (reversa) ==============
@router.post("/void/{payment_id}", response_model=VoidPaymentResult, status_code=200)
def void_payment(
    payment_id: int,
    body: VoidPaymentRequest | None = Body(None),
    db: Session = Depends(get_db),
):
    """
    Anula un pago:
      - marca el Payment como anulado (motivo/fecha)
      - la cuota vuelve a quedar impaga (pending u overdue según la fecha),
        salvo que otro pago vigente la cubra
      - recalcula saldo, próximo pago y estado del préstamo
    Repetir la anulación no cambia nada.
    """
    try:
        # 1) Bloqueo de la fila (evita doble anulación por doble tap)
        pay = (
            db.query(Payment)
              .filter(Payment.id == payment_id)
              .with_for_update()
              .one_or_none()
        )
        if not pay:
            raise HTTPException(status_code=404, detail="Pago no encontrado")

        loan = _lock_loan(db, pay.loan_id)

        # 2) Idempotencia
        if pay.is_voided:
            return VoidPaymentResult(
                message="El pago ya estaba anulado",
                payment_id=pay.id,
                loan_id=loan.id,
                outstanding_balance=money(loan.outstanding_balance),
                loan_status=loan.status,
            )

        # 3) Marcar como anulado
        pay.is_voided = True
        pay.voided_at = datetime.now(timezone.utc)
        pay.void_reason = (body.reason if body else None)
        db.add(pay)
        db.flush()

        # 4) Reabrir la cuota
        if pay.installment_number is not None and not installment_is_covered(
            db, loan.id, pay.installment_number, exclude_payment_id=pay.id
        ):
            ins = (
                db.query(Installment)
                .filter(Installment.loan_id == loan.id, Installment.number == pay.installment_number)
                .one_or_none()
            )
            if ins:
                ins.status = unpaid_status_for(ins.due_date)
                db.add(ins)
                db.flush()

        # 5) Recalcular el préstamo
        recompute_loan_state(db, loan)
        db.commit()
    except HTTPException:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Error de base de datos al anular el pago: {e}")

    db.refresh(loan)
    logger.info("Pago %s anulado (préstamo %s, saldo %s)", payment_id, loan.id, loan.outstanding_balance)
    return VoidPaymentResult(
        message="Pago anulado",
        payment_id=payment_id,
        loan_id=loan.id,
        outstanding_balance=money(loan.outstanding_balance),
        loan_status=loan.status,
    )
