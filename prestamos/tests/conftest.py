# prestamos/tests/conftest.py
import os
from datetime import date, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from prestamos.main import app
from prestamos.database.db import Base, get_db
from prestamos.models.models import Company
from prestamos.utils.time_windows import today_local

# Usá SQLite en archivo para evitar problemas de conexión en memoria
TEST_DB_URL = os.getenv("TEST_DATABASE_URL", "sqlite:///./test_unit.db")

# ---------- ENGINE (session-scoped) ----------
@pytest.fixture(scope="session")
def engine():
    connect_args = {"check_same_thread": False} if TEST_DB_URL.startswith("sqlite") else {}
    eng = create_engine(TEST_DB_URL, connect_args=connect_args, future=True, echo=False)
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)

# ---------- DB (function-scoped) ----------
@pytest.fixture
def db(engine):
    """
    Base limpia por test: dropea y crea tablas antes de cada test para
    evitar colisiones de UNIQUE entre casos (cédula, nombre de empresa).
    """
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)

    SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()

# ---------- Override de get_db ----------
@pytest.fixture(autouse=True)
def _override_db(db):
    def _get_db():
        try:
            yield db
        finally:
            pass
    app.dependency_overrides[get_db] = _get_db
    yield
    app.dependency_overrides.pop(get_db, None)

# ---------- Cliente FastAPI ----------
@pytest.fixture
def client():
    return TestClient(app)

# ---------- Seed: Company ----------
@pytest.fixture
def company(db):
    row = Company(name="Test Co")
    db.add(row)
    db.commit()
    db.refresh(row)
    return row

# ---------- Fábricas vía API ----------
@pytest.fixture
def make_request(client):
    """Crea una solicitud de préstamo y devuelve el JSON de respuesta."""
    counter = {"n": 0}

    def _make(amount="1000.00", months=6, cedula=None, company_id=None):
        counter["n"] += 1
        r = client.post("/loan-requests/", json={
            "requested_amount": amount,
            "duration_months": months,
            "bank": "Banco General",
            "bank_account_type": "ahorros",
            "account_number": "04-00-00-123456-7",
            "customer": {
                "cedula": cedula or f"8-100-{counter['n']:03d}",
                "first_name": "Carlos",
                "last_name": "Luna",
                "phone": "6000-0000",
                "company_id": company_id,
            },
        })
        assert r.status_code == 201, r.text
        return r.json()

    return _make


@pytest.fixture
def make_loan(client, make_request):
    """
    Crea y aprueba una solicitud. Por defecto el primer cobro queda en el futuro
    (ninguna cuota vencida).
    """
    def _make(amount="1000.00", months=6, target_interest="120.00", first_due_date=None):
        req = make_request(amount=amount, months=months)
        first_due = first_due_date or (today_local() + timedelta(days=40))
        r = client.post(f"/loan-requests/{req['id']}/approve", json={
            "target_interest": target_interest,
            "first_due_date": first_due.isoformat() if isinstance(first_due, date) else first_due,
        })
        assert r.status_code == 201, r.text
        return r.json()

    return _make
