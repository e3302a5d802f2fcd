import pytest
from fastapi.testclient import TestClient
from decimal import Decimal

pytestmark = pytest.mark.api

def _create_sale(client: TestClient, headers: dict, seller_id: int, external_id: str = "HOT-1") -> dict:
    response = client.post("/api/v1/sales/", json={
        "external_id": external_id,
        "client_name": "Cliente",
        "total_value": "300.00",
        "installments_count": 3,
        "sale_date": "2024-01-10",
        "seller_id": seller_id,
    }, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()

def test_claim_approve_flow(client: TestClient, superuser_token_headers: tuple, sdr_token_headers: tuple, seller):
    admin_headers, admin = superuser_token_headers
    sdr_headers, sdr = sdr_token_headers
    sale = _create_sale(client, admin_headers, seller.id)

    pending_sales = client.get("/api/v1/sdr/sales-without-sdr", headers=sdr_headers).json()
    assert [s["id"] for s in pending_sales] == [sale["id"]]

    claim = client.post("/api/v1/sdr/assignments", json={
        "sale_id": sale["id"], "sdr_id": sdr.id, "proof_link": "https://example.com/print.png",
    }, headers=sdr_headers)
    assert claim.status_code == 201, claim.text
    assignment = claim.json()
    assert assignment["status"] == "pending"
    assert Decimal(assignment["commission_percent"]) == Decimal("1")
    assert client.get("/api/v1/sdr/sales-without-sdr", headers=sdr_headers).json() == []

    # SDRs cannot approve their own claims
    assert client.post(f"/api/v1/sdr/assignments/{assignment['id']}/approve", headers=sdr_headers).status_code == 403

    approved = client.post(f"/api/v1/sdr/assignments/{assignment['id']}/approve", headers=admin_headers)
    assert approved.status_code == 200
    body = approved.json()
    assert body["commissions_created"] == 3
    assert body["assignment"]["status"] == "approved"
    assert body["assignment"]["approved_by"] == admin.id

    again = client.post(f"/api/v1/sdr/assignments/{assignment['id']}/approve", headers=admin_headers)
    assert again.status_code == 409

    commissions = client.get("/api/v1/sdr/commissions", headers=sdr_headers).json()
    assert len(commissions) == 3
    summary = client.get("/api/v1/sdr/commissions/summary", headers=sdr_headers).json()
    assert summary["count"] == 3
    assert Decimal(summary["total_pending"]) == Decimal("3.00")

    # Approved claims are kept
    assert client.delete(f"/api/v1/sdr/assignments/{assignment['id']}", headers=admin_headers).json() == {"deleted": 0}

def test_duplicate_claim_conflicts(client: TestClient, superuser_token_headers: tuple, sdr_token_headers: tuple, seller):
    admin_headers, _ = superuser_token_headers
    sdr_headers, sdr = sdr_token_headers
    sale = _create_sale(client, admin_headers, seller.id)
    payload = {"sale_id": sale["id"], "sdr_id": sdr.id, "proof_link": "https://example.com/print.png"}

    assert client.post("/api/v1/sdr/assignments", json=payload, headers=sdr_headers).status_code == 201
    response = client.post("/api/v1/sdr/assignments", json=payload, headers=sdr_headers)
    assert response.status_code == 409
    assert response.json()["detail"] == "This sale already has an SDR assigned."

    by_sale = client.get(f"/api/v1/sdr/assignments/by-sale/{sale['id']}", headers=sdr_headers)
    assert by_sale.json()["sale_id"] == sale["id"]

def test_reject_and_delete(client: TestClient, superuser_token_headers: tuple, sdr_token_headers: tuple, seller):
    admin_headers, _ = superuser_token_headers
    sdr_headers, sdr = sdr_token_headers
    first = _create_sale(client, admin_headers, seller.id, "HOT-1")
    second = _create_sale(client, admin_headers, seller.id, "HOT-2")
    to_reject = client.post("/api/v1/sdr/assignments", json={"sale_id": first["id"], "sdr_id": sdr.id, "proof_link": "https://a"}, headers=sdr_headers).json()
    to_delete = client.post("/api/v1/sdr/assignments", json={"sale_id": second["id"], "sdr_id": sdr.id, "proof_link": "https://b"}, headers=sdr_headers).json()

    blank = client.post(f"/api/v1/sdr/assignments/{to_reject['id']}/reject", json={"rejection_reason": "  "}, headers=admin_headers)
    assert blank.status_code == 422
    rejected = client.post(f"/api/v1/sdr/assignments/{to_reject['id']}/reject", json={"rejection_reason": "Comprovante ilegível"}, headers=admin_headers)
    assert rejected.status_code == 200
    assert rejected.json()["status"] == "rejected"

    assert client.delete(f"/api/v1/sdr/assignments/{to_delete['id']}", headers=sdr_headers).json() == {"deleted": 1}

    pending = client.get("/api/v1/sdr/assignments?status=pending", headers=admin_headers).json()
    assert pending == []

def test_claim_for_unknown_sale(client: TestClient, sdr_token_headers: tuple):
    headers, sdr = sdr_token_headers
    response = client.post("/api/v1/sdr/assignments", json={"sale_id": 999, "sdr_id": sdr.id, "proof_link": "https://a"}, headers=headers)
    assert response.status_code == 404
