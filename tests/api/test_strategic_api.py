import pytest
from fastapi.testclient import TestClient

pytestmark = pytest.mark.api

def test_strategic_session_flow(client: TestClient, superuser_token_headers: tuple):
    headers, _ = superuser_token_headers
    session = client.post("/api/v1/strategic/sessions", json={"name": "Sessão Abril"}, headers=headers)
    assert session.status_code == 201
    session_id = session.json()["id"]

    for criterion in (
        {"field_name": "faturamento", "operator": "greater_than", "value": "15000", "weight": "2"},
        {"field_name": "lucro", "operator": "greater_than", "value": "10000", "weight": "1"},
    ):
        assert client.post(f"/api/v1/strategic/sessions/{session_id}/criteria", json=criterion, headers=headers).status_code == 201

    sync = client.post(f"/api/v1/strategic/sessions/{session_id}/sync", json={
        "spreadsheet_id": "abc123",
        "values": [["Nome", "Email", "Faturamento", "Lucro"], ["Bruno", "bruno@example.com", "20000", "5000"]],
    }, headers=headers)
    assert sync.status_code == 200
    assert sync.json() == {"created": 1, "updated": 0, "total": 1}

    leads = client.get(f"/api/v1/strategic/sessions/{session_id}/leads", headers=headers).json()
    assert leads[0]["qualification_score"] == 67
    assert leads[0]["is_qualified"] is True
    assert leads[0]["source_row_id"] == "abc123_row_1"

    recalc = client.post(f"/api/v1/strategic/sessions/{session_id}/recalculate", headers=headers)
    assert recalc.json() == {"updated": 1, "qualified": 1}

def test_unknown_operator_is_rejected(client: TestClient, superuser_token_headers: tuple):
    headers, _ = superuser_token_headers
    session_id = client.post("/api/v1/strategic/sessions", json={"name": "S"}, headers=headers).json()["id"]
    response = client.post(f"/api/v1/strategic/sessions/{session_id}/criteria", json={
        "field_name": "cargo", "operator": "starts_with", "value": "C",
    }, headers=headers)
    assert response.status_code == 422

def test_sync_unknown_session(client: TestClient, superuser_token_headers: tuple):
    headers, _ = superuser_token_headers
    response = client.post("/api/v1/strategic/sessions/999/sync", json={"spreadsheet_id": "x", "values": []}, headers=headers)
    assert response.status_code == 404
