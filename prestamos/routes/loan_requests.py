import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from prestamos.constants import InstallmentStatus, LoanRequestStatus, LoanStatus
from prestamos.database.db import get_db
from prestamos.models.models import Company, Customer, Installment, Loan, LoanRequest
from prestamos.routes.loans import serialize_loan_detail
from prestamos.schemas.loan_requests import (
    ApproveLoanRequest, LoanRequestCreate, LoanRequestOut, LoanRequestPage,
)
from prestamos.schemas.loans import LoanDetailOut
from prestamos.services.amortization import AmortizationError, generate_schedule
from prestamos.utils.money import ZERO, money
from prestamos.utils.normalize import norm_loan_request_status
from prestamos.utils.time_windows import local_dates_to_utc_window, parse_local_date, today_local

logger = logging.getLogger("uvicorn.error")

router = APIRouter()


def _get_request_for_update(db: Session, request_id: int) -> LoanRequest:
    req = (
        db.query(LoanRequest)
        .filter(LoanRequest.id == request_id)
        .with_for_update()
        .one_or_none()
    )
    if not req:
        raise HTTPException(status_code=404, detail="Solicitud no encontrada")
    if req.status != LoanRequestStatus.NEW.value:
        raise HTTPException(status_code=409, detail=f"La solicitud ya fue procesada (estado: {req.status})")
    return req


# ============== INTAKE ==============
@router.post("/", response_model=LoanRequestOut, status_code=status.HTTP_201_CREATED)
def create_loan_request(body: LoanRequestCreate, db: Session = Depends(get_db)):
    data = body.customer
    if data.company_id is not None and not db.get(Company, data.company_id):
        raise HTTPException(status_code=404, detail="Empresa no encontrada")

    # La cédula identifica a la persona: si ya existe, se actualizan sus datos
    customer = db.query(Customer).filter(Customer.cedula == data.cedula).first()
    if customer:
        for field, value in data.model_dump(exclude={"cedula"}, exclude_none=True).items():
            setattr(customer, field, value)
    else:
        customer = Customer(**data.model_dump())
        db.add(customer)
    db.flush()

    req = LoanRequest(
        customer_id=customer.id,
        requested_amount=money(body.requested_amount),
        **body.model_dump(exclude={"customer", "requested_amount"}),
    )
    db.add(req)
    db.commit()
    db.refresh(req)
    return req


# ============== LIST ==============
@router.get("/", response_model=LoanRequestPage)
def list_loan_requests(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status_filter: Optional[str] = Query(None, alias="status"),
    cedula: Optional[str] = Query(None),
    date_from: Optional[str] = Query(None),
    date_to: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    q = db.query(LoanRequest)

    if status_filter:
        st = norm_loan_request_status(status_filter)
        if st is None:
            raise HTTPException(status_code=422, detail=f"Estado inválido: {status_filter}")
        q = q.filter(LoanRequest.status == st.value)

    if cedula:
        q = q.join(Customer, LoanRequest.customer_id == Customer.id)\
             .filter(Customer.cedula.ilike(f"%{cedula.strip()}%"))

    dfrom = parse_local_date(date_from)
    dto = parse_local_date(date_to)
    if (date_from and not dfrom) or (date_to and not dto):
        raise HTTPException(status_code=422, detail="Formato de fecha inválido. Use 'YYYY-MM-DD'.")
    if dfrom:
        start_utc, _ = local_dates_to_utc_window(dfrom, dfrom)
        q = q.filter(LoanRequest.created_at >= start_utc)
    if dto:
        _, end_utc_excl = local_dates_to_utc_window(dto, dto)
        q = q.filter(LoanRequest.created_at < end_utc_excl)

    total = q.with_entities(func.count(LoanRequest.id)).scalar() or 0
    rows = (
        q.order_by(LoanRequest.created_at.desc(), LoanRequest.id.desc())
         .offset((page - 1) * limit)
         .limit(limit)
         .all()
    )
    return LoanRequestPage(
        data=[LoanRequestOut.model_validate(r) for r in rows],
        page=page,
        limit=limit,
        total=int(total),
    )


@router.get("/{request_id}", response_model=LoanRequestOut)
def get_loan_request(request_id: int, db: Session = Depends(get_db)):
    req = db.get(LoanRequest, request_id)
    if not req:
        raise HTTPException(status_code=404, detail="Solicitud no encontrada")
    return req


# ============== APPROVE ==============
@router.post("/{request_id}/approve", response_model=LoanDetailOut, status_code=status.HTTP_201_CREATED)
def approve_loan_request(request_id: int, body: ApproveLoanRequest, db: Session = Depends(get_db)):
    """
    Aprueba una solicitud:
      - genera la tabla de amortización quincenal (meses × 2 cuotas)
      - crea el préstamo con saldo = capital y próximo pago = cuota 1
      - guarda todas las cuotas como 'pending'
      - marca la solicitud como 'approved'
    Todo en una sola transacción.
    """
    req = _get_request_for_update(db, request_id)

    if body.company_id is not None:
        company = db.get(Company, body.company_id)
        if not company:
            raise HTTPException(status_code=404, detail="Empresa no encontrada")
        req.customer.company_id = company.id

    period_count = req.duration_months * 2
    first_due = body.first_due_date or body.start_date

    try:
        plan = generate_schedule(req.requested_amount, body.target_interest, period_count, first_due)
    except AmortizationError as e:
        db.rollback()
        logger.warning("Solicitud %s: plan rechazado por el motor: %s", request_id, e)
        raise HTTPException(status_code=422, detail=str(e))

    try:
        loan = Loan(
            loan_request_id=req.id,
            principal=money(req.requested_amount),
            total_interest=money(body.target_interest),
            installment_amount=plan.installment_amount,
            installments_count=period_count,
            next_due_date=plan[0].due_date,
            outstanding_balance=money(req.requested_amount),
            status=LoanStatus.ACTIVE.value,
        )
        db.add(loan)
        db.flush()

        for row in plan:
            db.add(Installment(
                loan_id=loan.id,
                number=row.period_index,
                due_date=row.due_date,
                installment_amount=row.installment_amount,
                interest=row.interest_portion,
                capital=row.capital_portion,
                opening_balance=row.opening_balance,
                closing_balance=row.closing_balance,
                status=InstallmentStatus.PENDING.value,
            ))

        req.status = LoanRequestStatus.APPROVED.value
        db.add(req)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Error guardando el préstamo de la solicitud %s", request_id)
        raise HTTPException(status_code=500, detail=f"Error de base de datos al aprobar: {e}")

    db.refresh(loan)
    logger.info(
        "Solicitud %s aprobada → préstamo %s (%s quincenas de %s)",
        request_id, loan.id, period_count, plan.installment_amount,
    )
    return serialize_loan_detail(loan)


# ============== DECLINE ==============
@router.post("/{request_id}/decline", status_code=200)
def decline_loan_request(request_id: int, db: Session = Depends(get_db)):
    """
    Rechaza una solicitud y deja un préstamo 'rejected' (sin cuotas)
    para que quede en el historial.
    """
    req = _get_request_for_update(db, request_id)

    req.status = LoanRequestStatus.REJECTED.value
    loan = Loan(
        loan_request_id=req.id,
        principal=money(req.requested_amount),
        total_interest=ZERO,
        installment_amount=ZERO,
        installments_count=0,
        next_due_date=today_local(),
        outstanding_balance=ZERO,
        status=LoanStatus.REJECTED.value,
    )
    db.add(req)
    db.add(loan)
    db.commit()

    logger.info("Solicitud %s rechazada", request_id)
    return {"message": "Solicitud rechazada", "loan_request_id": req.id, "loan_id": loan.id}
