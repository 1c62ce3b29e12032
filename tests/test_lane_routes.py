import json
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api.lane_routes import get_lane_sink, router
from app.services.batch_importer import MemoryLaneSink

# Initialize the app and attach routes to mock a real server and client.
app = FastAPI()
app.include_router(router)

client = TestClient(app)

AUTH = {"Authorization": "Bearer test-token"}

CSV = b"Lane,Dest,Truck,KM\nA1,Nairobi,10T,480\nA2,,10T,100\nA3,Arusha,20T,650\n"

# --- Fixtures for Mocking ---

@pytest.fixture
def sink():
    # Replaces the lane store with a fresh in-memory list for each test.
    memory = MemoryLaneSink()
    app.dependency_overrides[get_lane_sink] = lambda: memory
    yield memory
    app.dependency_overrides.clear()

# --- Preview ---

def test_preview_success():
    """
    Goal: The preview response uses the camelCase wire names.
    """
    response = client.post("/routes/preview", files={"file": ("lanes.csv", CSV, "text/csv")}, headers=AUTH)

    assert response.status_code == 200
    data = response.json()
    assert data["columns"] == ["Lane", "Dest", "Truck", "KM"]
    assert data["totalRows"] == 3
    assert data["preview"][1]["Dest"] is None

def test_preview_requires_bearer_token():
    response = client.post("/routes/preview", files={"file": ("lanes.csv", CSV, "text/csv")})

    assert response.status_code == 401

def test_preview_unreadable_file():
    response = client.post("/routes/preview", files={"file": ("lanes.csv", b"", "text/csv")}, headers=AUTH)

    assert response.status_code == 400
    assert "error" in response.json()

# --- Import ---

def test_import_partial_failure(sink):
    """
    Goal: One blank destination fails its row; the other rows are imported.
    """
    # 1. Action
    response = client.post(
        "/routes/import",
        files={"file": ("lanes.csv", CSV, "text/csv")},
        data={
            "clientId": "12",
            "mapping": json.dumps({"destination": "Dest", "truckSize": "Truck", "distanceKm": "KM"}),
            "defaultOrigin": "Mombasa Depot",
        },
        headers=AUTH,
    )

    # 2. Check
    assert response.status_code == 200
    data = response.json()
    assert data == {
        "total": 3,
        "successful": 2,
        "failed": 1,
        "errors": [{"row": 3, "error": "Destination is required"}],
        "hasMoreErrors": False,
    }

    # 3. Verify: stored lanes got the client's default origin
    assert [lane["origin"] for lane in sink.lanes] == ["Mombasa Depot", "Mombasa Depot"]
    assert all(lane["clientId"] == 12 for lane in sink.lanes)

def test_import_invalid_mapping_json(sink):
    response = client.post(
        "/routes/import",
        files={"file": ("lanes.csv", CSV, "text/csv")},
        data={"clientId": "12", "mapping": "{not json"},
        headers=AUTH,
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid mapping payload"

def test_import_rejects_missing_required_mapping(sink):
    """
    Goal: Server-side check of the required mapping rejects the whole request.
    """
    response = client.post(
        "/routes/import",
        files={"file": ("lanes.csv", CSV, "text/csv")},
        data={"clientId": "12", "mapping": json.dumps({"destination": "Dest"})},
        headers=AUTH,
    )

    assert response.status_code == 400
    assert "truckSize" in response.json()["error"]
    assert sink.lanes == []
