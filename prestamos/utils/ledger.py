from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from prestamos.constants import InstallmentStatus, LoanStatus
from prestamos.models.models import Installment, Loan, Payment
from prestamos.utils.money import ZERO, money
from prestamos.utils.time_windows import today_local


def unpaid_status_for(due: date, today: Optional[date] = None) -> str:
    """Estado de una cuota que vuelve a quedar impaga (p.ej. por anulación)."""
    today = today or today_local()
    return InstallmentStatus.OVERDUE.value if due < today else InstallmentStatus.PENDING.value


def installment_is_covered(db: Session, loan_id: int, number: int, exclude_payment_id: Optional[int] = None) -> bool:
    """True si queda algún pago NO anulado imputado a esa quincena."""
    q = db.query(Payment.id).filter(
        Payment.loan_id == loan_id,
        Payment.installment_number == number,
        Payment.is_voided.is_(False),
    )
    if exclude_payment_id is not None:
        q = q.filter(Payment.id != exclude_payment_id)
    return db.query(q.exists()).scalar()


def recompute_loan_state(db: Session, loan: Loan) -> Loan:
    """
    Recalcula el estado derivado del préstamo a partir de sus cuotas:
      - saldo pendiente = capital - Σ capital de cuotas pagadas (nunca negativo)
      - próximo pago   = fecha de la primera cuota impaga (si no hay, se conserva)
      - estado         = 'completed' si todas están pagas, si no 'active'
    Se asume que el caller ya bloqueó la fila del préstamo.
    """
    if loan.status == LoanStatus.REJECTED.value:
        return loan

    installments = (
        db.query(Installment)
        .filter(Installment.loan_id == loan.id)
        .order_by(Installment.number.asc())
        .all()
    )

    paid_capital = sum(
        (money(ins.capital) for ins in installments if ins.status == InstallmentStatus.PAID.value),
        ZERO,
    )
    loan.outstanding_balance = max(money(loan.principal) - paid_capital, ZERO)

    unpaid = [ins for ins in installments if ins.status != InstallmentStatus.PAID.value]
    if unpaid:
        loan.next_due_date = unpaid[0].due_date
        loan.status = LoanStatus.ACTIVE.value
    else:
        loan.status = LoanStatus.COMPLETED.value

    db.add(loan)
    db.flush()
    return loan
