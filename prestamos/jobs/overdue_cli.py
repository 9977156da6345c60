# python -m prestamos.jobs.overdue_cli
import logging

from prestamos.jobs.overdue import mark_overdue_installments_job

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(asctime)s %(message)s")
log = logging.getLogger("overdue_cli")

if __name__ == "__main__":
    updated = mark_overdue_installments_job()
    log.info("Cuotas vencidas marcadas: %s", updated)
