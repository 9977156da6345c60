from datetime import date
from typing import Iterable, Optional

from prestamos.constants import InstallmentStatus, LoanStatus
from prestamos.utils.time_windows import today_local


def is_unpaid(status: str) -> bool:
    return status != InstallmentStatus.PAID.value


def effective_installment_status(status: str, due_date: date, today: Optional[date] = None) -> str:
    """
    Estado "efectivo" de una cuota: si sigue impaga y la fecha ya pasó,
    se informa como 'overdue' aunque en la base diga 'pending'.
    """
    today = today or today_local()
    if is_unpaid(status) and due_date < today:
        return InstallmentStatus.OVERDUE.value
    return status


def effective_loan_status(loan_status: str, installments: Iterable, today: Optional[date] = None) -> str:
    """
    Un préstamo 'active' con alguna cuota impaga vencida se informa como 'late'.
    Los demás estados se devuelven tal cual.
    """
    if loan_status != LoanStatus.ACTIVE.value:
        return loan_status
    today = today or today_local()
    for ins in installments:
        if is_unpaid(ins.status) and ins.due_date < today:
            return LoanStatus.LATE.value
    return loan_status
