from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from sanitrack.main import app
from sanitrack.models.user import UserRole
from sanitrack.storage import get_store
from sanitrack.storage.memory_store import InMemoryStore
from sanitrack.utils.timestamps import utcnow

from conftest import ADMIN_ID, CITIZEN_ID, OFFICER_ID, OTHER_CITIZEN_ID, OTHER_OFFICER_ID, headers

CITIZEN = headers(CITIZEN_ID, UserRole.CITIZEN)
ADMIN = headers(ADMIN_ID, UserRole.ASSEMBLY_ADMIN)
OFFICER = headers(OFFICER_ID, UserRole.ENFORCEMENT_OFFICER)

REPORT_BODY = {
    "category": "plastic_dumping",
    "latitude": 5.6037,
    "longitude": -0.187,
    "gps_accuracy": 15,
    "captured_at": "2024-01-15T10:30:00Z",
    "photo_urls": ["https://example.com/photo.jpg"],
    "description": "Plastic dumping near market",
}


@pytest.fixture
def report_id(client, users):
    response = client.post("/reports", json=REPORT_BODY, headers=CITIZEN)
    assert response.status_code == 201
    return response.json()["id"]


def test_submit_report(client, users):
    response = client.post("/reports", json=REPORT_BODY, headers=CITIZEN)

    assert response.status_code == 201
    body = response.json()
    assert body["case_id"] == body["id"]
    assert body["case_status"] == "submitted"
    assert body["points_earned"] == 0
    assert body["anonymous"] is False


def test_approved_report_earns_points_through_completion(client, report_id):
    response = client.post(
        f"/cases/{report_id}/approve",
        json={"notes": "Verified at site", "assigned_to": OFFICER_ID},
        headers=ADMIN,
    )
    assert response.status_code == 200
    assert response.json()["status"] == "approved"
    assert response.json()["message"] == "Case approved and officer assigned"

    report = client.get(f"/reports/{report_id}", headers=CITIZEN).json()
    assert report["case_status"] == "approved"
    assert report["points_earned"] == 10

    assert client.post(f"/cases/{report_id}/accept", headers=OFFICER).json()["status"] == "assigned"
    completed = client.post(
        f"/cases/{report_id}/complete",
        json={"completion_evidence_url": "https://example.com/after.jpg"},
        headers=OFFICER,
    )
    assert completed.status_code == 200
    assert [h["status"] for h in completed.json()["status_history"]] == ["approved", "assigned", "completed"]

    report = client.get(f"/reports/{report_id}", headers=CITIZEN).json()
    assert report["case_status"] == "completed"
    assert report["points_earned"] == 10


def test_rejected_report_earns_nothing(client, report_id):
    response = client.post(f"/cases/{report_id}/reject", json={"reason": "Photo unclear"}, headers=ADMIN)
    assert response.status_code == 200
    assert response.json()["status"] == "rejected"

    report = client.get(f"/reports/{report_id}", headers=CITIZEN).json()
    assert report["case_status"] == "rejected"
    assert report["points_earned"] == 0

    again = client.post(f"/cases/{report_id}/approve", json={"assigned_to": OFFICER_ID}, headers=ADMIN)
    assert again.status_code == 400
    assert again.json()["error"] == "validation_error"


def test_double_approval_is_rejected(client, report_id):
    client.post(f"/cases/{report_id}/approve", json={"assigned_to": OFFICER_ID}, headers=ADMIN)
    response = client.post(f"/cases/{report_id}/approve", json={"assigned_to": OTHER_OFFICER_ID}, headers=ADMIN)

    assert response.status_code == 400
    assert client.get(f"/reports/{report_id}", headers=CITIZEN).json()["points_earned"] == 10


def test_missing_identity_headers(client):
    response = client.post("/reports", json=REPORT_BODY)
    assert response.status_code == 401
    assert response.json()["error"] == "authentication_error"


def test_unknown_role_header(client):
    response = client.get("/reports", headers={"X-User-ID": CITIZEN_ID, "X-User-Role": "mayor"})
    assert response.status_code == 401


@pytest.mark.parametrize("overrides", [
    {"category": "graffiti"},
    {"latitude": "north"},
    {"captured_at": "yesterday"},
    {"gps_accuracy": 0},
])
def test_malformed_body_is_422(client, overrides):
    response = client.post("/reports", json={**REPORT_BODY, **overrides}, headers=CITIZEN)
    assert response.status_code == 422
    assert response.json()["error"] == "request_validation_error"


def test_out_of_range_latitude_is_400(client):
    response = client.post("/reports", json={**REPORT_BODY, "latitude": 91}, headers=CITIZEN)
    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


def test_future_capture_is_400(client):
    future = (utcnow() + timedelta(hours=1)).isoformat()
    response = client.post("/reports", json={**REPORT_BODY, "captured_at": future}, headers=CITIZEN)
    assert response.status_code == 400


def test_citizen_cannot_approve(client, report_id):
    response = client.post(f"/cases/{report_id}/approve", json={"assigned_to": OFFICER_ID}, headers=CITIZEN)
    assert response.status_code == 403
    assert response.json()["error"] == "authorization_error"


def test_unassigned_officer_cannot_complete(client, report_id):
    client.post(f"/cases/{report_id}/approve", json={"assigned_to": OFFICER_ID}, headers=ADMIN)
    client.post(f"/cases/{report_id}/accept", headers=OFFICER)

    other = headers(OTHER_OFFICER_ID, UserRole.ENFORCEMENT_OFFICER)
    response = client.post(
        f"/cases/{report_id}/complete",
        json={"completion_evidence_url": "https://example.com/after.jpg"},
        headers=other,
    )
    assert response.status_code == 403


def test_unknown_ids_are_404(client, users):
    assert client.get("/reports/nope", headers=CITIZEN).status_code == 404

    response = client.post("/cases/nope/approve", json={"assigned_to": OFFICER_ID}, headers=ADMIN)
    assert response.status_code == 404
    assert response.json() == {"error": "not_found", "detail": "Case with id nope not found"}


def test_other_citizen_cannot_read_report(client, report_id):
    response = client.get(f"/reports/{report_id}", headers=headers(OTHER_CITIZEN_ID, UserRole.CITIZEN))
    assert response.status_code == 403


def test_list_endpoints(client, report_id):
    reports = client.get("/reports", headers=CITIZEN).json()
    assert reports["total"] == 1
    assert reports["reports"][0]["id"] == report_id

    cases = client.get("/cases", headers=ADMIN).json()
    assert cases["total"] == 1
    assert cases["cases"][0]["report"]["category"] == "plastic_dumping"

    assert client.get("/cases", headers=CITIZEN).status_code == 403
    assert client.get("/reports", params={"limit": 0}, headers=CITIZEN).status_code == 422


def test_heatmap_endpoint(client, report_id):
    response = client.get(
        "/reports/analytics/heatmap",
        params={"min_lat": 5.0, "max_lat": 6.0, "min_lon": -1.0, "max_lon": 0.0},
    )
    assert response.status_code == 200
    assert response.json() == {"violations_by_location": [[5.6037, -0.187, 1]]}


def test_health_endpoints(client):
    assert client.get("/health").json()["status"] == "healthy"

    db = client.get("/health/db").json()
    assert db["connected"] is True
    assert db["database"] == "memory"


class BrokenStore(InMemoryStore):
    def run_in_transaction(self, fn):
        raise RuntimeError("datastore offline")


def test_unexpected_failure_renders_internal_error():
    app.dependency_overrides[get_store] = lambda: BrokenStore()
    try:
        client = TestClient(app, raise_server_exceptions=False)
        response = client.post("/reports", json=REPORT_BODY, headers=CITIZEN)
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json() == {"error": "internal_error", "detail": "Internal server error"}
