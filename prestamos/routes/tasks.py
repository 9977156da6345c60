# prestamos/routes/tasks.py
from datetime import datetime

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from prestamos.database.db import get_db
from prestamos.jobs.overdue import mark_overdue_installments
from prestamos.utils.time_windows import LOCAL_TZ

router = APIRouter(prefix="/tasks", tags=["Tasks"])

@router.post("/mark-overdue", status_code=status.HTTP_200_OK)
def run_mark_overdue(db: Session = Depends(get_db)):
    """Ejecuta el marcaje de cuotas vencidas."""
    updated = mark_overdue_installments(db)
    return {
        "updated": updated,
        "ran_at": datetime.now(LOCAL_TZ).isoformat(),
    }
