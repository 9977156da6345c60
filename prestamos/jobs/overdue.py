# prestamos/jobs/overdue.py
import logging

from sqlalchemy.orm import Session

from prestamos.constants import InstallmentStatus
from prestamos.database.db import SessionLocal
from prestamos.models.models import Installment
from prestamos.utils.time_windows import today_local

logger = logging.getLogger("uvicorn.error")

def mark_overdue_installments(db: Session) -> int:
    """
    Marca como 'overdue' todas las cuotas 'pending' cuya fecha de quincena
    (local) ya pasó. Las pagadas no se tocan.
    """
    today = today_local()

    # UPDATE en bloque (idempotente)
    updated = (
        db.query(Installment)
          .filter(
              Installment.status == InstallmentStatus.PENDING.value,
              Installment.due_date < today,
          )
          .update(
              {Installment.status: InstallmentStatus.OVERDUE.value},
              synchronize_session=False,
          )
    )
    db.commit()
    logger.info("Cuotas marcadas como vencidas: %s", updated)
    return int(updated or 0)


def mark_overdue_installments_job() -> int:
    """
    Wrapper para correr sin dependencia externa de FastAPI:
    - lo usa el scheduler (si lo habilitás)
    - o un script CLI
    """
    db = SessionLocal()
    try:
        return mark_overdue_installments(db)
    finally:
        db.close()
