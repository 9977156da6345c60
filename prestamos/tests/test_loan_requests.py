# prestamos/tests/test_loan_requests.py
from datetime import date
from decimal import Decimal

from prestamos.routes import loan_requests
from prestamos.services.amortization import InvalidScheduleError


def test_create_request_reuses_customer_by_cedula(client, make_request):
    a = make_request(cedula="8-123-456")
    b = make_request(cedula=" 8-123-456 ", amount="500.00")

    assert a["status"] == "new"
    assert a["customer"]["cedula"] == "8-123-456"
    assert b["customer_id"] == a["customer_id"]
    assert Decimal(b["requested_amount"]) == Decimal("500.00")


def test_create_request_unknown_company_404(client):
    r = client.post("/loan-requests/", json={
        "requested_amount": "300.00",
        "duration_months": 2,
        "customer": {"cedula": "PE-1-2", "first_name": "A", "last_name": "B", "company_id": 999},
    })
    assert r.status_code == 404


def test_create_request_rejects_bad_cedula(client):
    r = client.post("/loan-requests/", json={
        "requested_amount": "300.00",
        "duration_months": 2,
        "customer": {"cedula": "8/123", "first_name": "A", "last_name": "B"},
    })
    assert r.status_code == 422


def test_list_paginates_and_filters(client, make_request):
    make_request(cedula="8-1-1")
    make_request(cedula="8-1-2")
    make_request(cedula="9-9-9")

    r = client.get("/loan-requests/", params={"limit": 2})
    assert r.status_code == 200
    body = r.json()
    assert body["total"] == 3
    assert len(body["data"]) == 2
    # más nuevas primero
    assert body["data"][0]["customer"]["cedula"] == "9-9-9"

    r = client.get("/loan-requests/", params={"limit": 2, "page": 2})
    assert len(r.json()["data"]) == 1

    r = client.get("/loan-requests/", params={"cedula": "8-1"})
    assert r.json()["total"] == 2

    r = client.get("/loan-requests/", params={"status": "nueva"})
    assert r.json()["total"] == 3
    r = client.get("/loan-requests/", params={"status": "approved"})
    assert r.json()["total"] == 0


def test_list_rejects_bad_filters(client):
    assert client.get("/loan-requests/", params={"status": "whatever"}).status_code == 422
    assert client.get("/loan-requests/", params={"date_from": "31/12/2024"}).status_code == 422


def test_approve_creates_loan_and_schedule(client, make_request):
    req = make_request(amount="1000.00", months=6)
    r = client.post(f"/loan-requests/{req['id']}/approve", json={
        "target_interest": "120.00",
        "start_date": "2024-01-10",
    })
    assert r.status_code == 201, r.text
    loan = r.json()

    assert loan["loan_request_id"] == req["id"]
    assert loan["status"] == "active"
    assert loan["installments_count"] == 12
    assert Decimal(loan["installment_amount"]) == Decimal("93.33")
    assert Decimal(loan["principal"]) == Decimal("1000.00")
    assert Decimal(loan["total_interest"]) == Decimal("120.00")
    assert Decimal(loan["outstanding_balance"]) == Decimal("1000.00")
    assert loan["cedula"] == req["customer"]["cedula"]

    rows = loan["installments"]
    assert len(rows) == 12
    assert rows[0]["due_date"] == "2024-01-15"
    assert rows[-1]["due_date"] == "2024-06-30"
    assert loan["next_due_date"] == rows[0]["due_date"]
    assert all(row["status"] == "pending" for row in rows)
    assert Decimal(rows[-1]["closing_balance"]) == Decimal("0.00")
    assert sum(Decimal(row["capital"]) for row in rows) == Decimal("1000.00")
    # fechas pasadas → se informa atrasado sin tocar lo guardado
    assert rows[0]["effective_status"] == "overdue"
    assert loan["effective_status"] == "late"

    got = client.get(f"/loan-requests/{req['id']}").json()
    assert got["status"] == "approved"


def test_approve_twice_conflicts(client, make_request):
    req = make_request()
    body = {"target_interest": "50.00", "first_due_date": date(2030, 1, 15).isoformat()}
    assert client.post(f"/loan-requests/{req['id']}/approve", json=body).status_code == 201
    assert client.post(f"/loan-requests/{req['id']}/approve", json=body).status_code == 409


def test_approve_assigns_company(client, make_request, company):
    req = make_request()
    r = client.post(f"/loan-requests/{req['id']}/approve", json={
        "target_interest": "0", "first_due_date": "2030-02-01", "company_id": company.id,
    })
    assert r.status_code == 201, r.text
    got = client.get(f"/loan-requests/{req['id']}").json()
    assert got["customer"]["company_id"] == company.id


def test_approve_engine_error_422_keeps_request_new(client, make_request, monkeypatch):
    def _reject(*args, **kwargs):
        raise InvalidScheduleError("no alcanza")

    monkeypatch.setattr(loan_requests, "generate_schedule", _reject)
    req = make_request(amount="100.00", months=1)
    r = client.post(f"/loan-requests/{req['id']}/approve", json={
        "target_interest": "1000.00", "first_due_date": "2030-01-01",
    })
    assert r.status_code == 422
    assert client.get(f"/loan-requests/{req['id']}").json()["status"] == "new"
    assert client.get("/loans/").json() == []


def test_approve_needs_a_date(client, make_request):
    req = make_request()
    r = client.post(f"/loan-requests/{req['id']}/approve", json={"target_interest": "10"})
    assert r.status_code == 422


def test_approve_unknown_request_404(client):
    r = client.post("/loan-requests/999/approve", json={"target_interest": "10", "start_date": "2030-01-01"})
    assert r.status_code == 404


def test_decline_leaves_rejected_loan(client, make_request):
    req = make_request()
    r = client.post(f"/loan-requests/{req['id']}/decline")
    assert r.status_code == 200, r.text
    loan_id = r.json()["loan_id"]

    assert client.get(f"/loan-requests/{req['id']}").json()["status"] == "rejected"
    assert client.post(f"/loan-requests/{req['id']}/decline").status_code == 409

    loan = client.get(f"/loans/{loan_id}").json()
    assert loan["status"] == "rejected"
    assert loan["installments"] == []
    assert Decimal(loan["outstanding_balance"]) == Decimal("0.00")

    rejected = client.get("/loans/", params={"status": "rechazada"}).json()
    assert [x["id"] for x in rejected] == [loan_id]


def test_approve_with_interest_above_principal(client, make_request):
    req = make_request(amount="100.00", months=1)
    r = client.post(f"/loan-requests/{req['id']}/approve", json={
        "target_interest": "1000.00", "first_due_date": "2030-01-01",
    })
    assert r.status_code == 201, r.text
    rows = r.json()["installments"]
    assert [Decimal(x["capital"]) for x in rows] == [Decimal("100.00"), Decimal("0.00")]
    assert sum(Decimal(x["interest"]) for x in rows) == Decimal("1000.00")
    assert Decimal(rows[-1]["closing_balance"]) == Decimal("0.00")


def test_invalid_body_returns_422_with_error_list(client, make_request):
    req = make_request()
    r = client.post(f"/loan-requests/{req['id']}/approve", json={"target_interest": "-1", "start_date": "2030-01-01"})
    assert r.status_code == 422
    detail = r.json()["detail"]
    assert isinstance(detail, list)
    assert detail[0]["loc"][-1] == "target_interest"
