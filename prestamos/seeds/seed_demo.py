# prestamos/seeds/seed_demo.py
# python -m prestamos.seeds.seed_demo
import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from prestamos.constants import LoanRequestStatus
from prestamos.database.db import SessionLocal
from prestamos.models.models import Company, Customer, LoanRequest

log = logging.getLogger("seed_demo")


def ensure_seed(db: Session) -> LoanRequest:
    """
    Deja una empresa, un cliente y una solicitud 'new' para probar el flujo
    de aprobación. Re-ejecutarlo no duplica nada.
    """
    company = db.query(Company).filter(Company.name == "Demo S.A.").first()
    if not company:
        company = Company(name="Demo S.A.")
        db.add(company)
        db.flush()

    customer = db.query(Customer).filter(Customer.cedula == "8-000-001").first()
    if not customer:
        customer = Customer(
            cedula="8-000-001",
            first_name="Ana",
            last_name="Pérez",
            phone="6000-0001",
            company_id=company.id,
            monthly_salary=Decimal("900.00"),
            months_at_company=18,
        )
        db.add(customer)
        db.flush()

    req = (
        db.query(LoanRequest)
        .filter(LoanRequest.customer_id == customer.id, LoanRequest.status == LoanRequestStatus.NEW.value)
        .first()
    )
    if not req:
        req = LoanRequest(
            customer_id=customer.id,
            requested_amount=Decimal("1000.00"),
            duration_months=6,
            bank="Banco General",
            bank_account_type="ahorros",
            account_number="04-00-00-000000-0",
            employer=company.name,
        )
        db.add(req)

    db.commit()
    db.refresh(req)
    log.info("Seed OK ✅ empresa=%s cliente=%s solicitud=%s", company.id, customer.id, req.id)
    return req


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(asctime)s %(message)s")
    session = SessionLocal()
    try:
        ensure_seed(session)
    finally:
        session.close()
