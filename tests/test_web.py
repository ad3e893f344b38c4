"""
Tests for the FastAPI surface.

Engine failures must come back as 4xx JSON with the error code.
"""

import pytest
from datetime import datetime, timedelta
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from fastapi.testclient import TestClient

import web.app as web_app
from property_engine.api import AppointmentStorage


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(web_app, "_storage", AppointmentStorage())
    return TestClient(web_app.app)


@pytest.fixture
def dates():
    base = datetime.now().replace(hour=10, minute=0, second=0, microsecond=0)
    return [(base + timedelta(days=d)).isoformat() for d in (14, 16, 21)]


SNAPSHOT = {
    "property_id": "MUC-1",
    "city": "Munich",
    "living_area": 70,
    "energy": {
        "energy_class": "A",
        "consumption": 40,
        "heating_type": "Heat Pump",
        "construction_year": 2023,
    },
    "financial": {"purchase_price": 420_000},
    "rental": {"planned_rent": 2_200},
    "hoa": {"landlord": 90, "tenant": 160, "reserve": 70},
    "as_of": "2026-01-01",
}


class TestMetaEndpoints:
    """Test health and enum endpoints."""

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_enums(self, client):
        data = client.get("/api/enums").json()
        assert "A+" in data["energy_classes"]
        assert data["scoring_modes"] == ["full", "preview"]
        assert len(data["trades"]) == 11


class TestAssessmentEndpoints:
    """Test assessment endpoints."""

    def test_assessment(self, client):
        response = client.post("/api/assessment", json=SNAPSHOT)

        assert response.status_code == 200
        data = response.json()
        assert data["scores"][0]["weighted_score"] == pytest.approx(9.7)
        assert data["summary"]["overall"] == "good"
        assert data["gross_yield"] == pytest.approx(6.29)

    def test_preview_mode(self, client):
        response = client.post("/api/assessment?mode=preview", json=SNAPSHOT)

        assert response.status_code == 200
        energy = response.json()["scores"][0]
        assert [f["name"] for f in energy["factors"]] == ["energy_class", "building_age"]

    def test_insufficient_data(self, client):
        response = client.post("/api/assessment", json={"city": "Munich"})

        assert response.status_code == 422
        assert response.json()["error"] == "insufficient_data"

    def test_invalid_energy_class(self, client):
        payload = {**SNAPSHOT, "energy": {"energy_class": "Z"}}
        response = client.post("/api/assessment", json=payload)

        assert response.status_code == 400
        assert response.json()["field"] == "energy.energy_class"

    def test_numeric_string_amount(self, client):
        payload = {**SNAPSHOT, "financial": {"purchase_price": "420000"}}
        response = client.post("/api/assessment", json=payload)

        assert response.status_code == 200
        assert response.json()["gross_yield"] == pytest.approx(6.29)

    def test_non_numeric_amount(self, client):
        payload = {**SNAPSHOT, "financial": {"purchase_price": "four hundred thousand"}}
        response = client.post("/api/assessment", json=payload)
        assert response.status_code == 422

    def test_incomplete_location(self, client):
        payload = {**SNAPSHOT, "location": {"public_transport": 8}}
        response = client.post("/api/assessment", json=payload)
        assert response.status_code == 422

    def test_default_city(self, client):
        payload = {k: v for k, v in SNAPSHOT.items() if k != "city"}
        data = client.post("/api/assessment", json=payload).json()

        location = data["scores"][3]
        assert location["weighted_score"] == pytest.approx(8.1)

    def test_building(self, client):
        unit_b = {**SNAPSHOT, "financial": {"purchase_price": 140_000}, "rental": {"planned_rent": 700}}
        response = client.post("/api/buildings/assessment", json={
            "units": [{**SNAPSHOT, "unit_id": "WE-1"}, {**unit_b, "unit_id": "WE-2"}],
            "as_of": "2026-01-01",
        })

        assert response.status_code == 200
        data = response.json()
        assert data["unit_count"] == 2
        assert data["aggregate_yield"] == pytest.approx(6.21)

    def test_building_without_units(self, client):
        response = client.post("/api/buildings/assessment", json={"units": []})
        assert response.status_code == 400


class TestLifecycleEndpoints:
    """Test phase and budget endpoints."""

    def test_phase_state(self, client):
        data = client.get("/api/phases/3").json()
        assert data["current_phase_name"] == "Documentation"
        assert [p["status"] for p in data["phases"]] == [
            "completed", "completed", "active", "pending", "pending", "pending",
        ]

    def test_phase_schedule(self, client):
        data = client.get("/api/phases/2?lifecycle_start=2026-01-01T00:00:00").json()
        assert data["schedule"]["total_days"] == 180

    def test_phase_started_in_future(self, client):
        started = (datetime.now() + timedelta(days=3)).isoformat()
        response = client.get(f"/api/phases/3?phase_started_at={started}")

        assert response.status_code == 400
        assert response.json()["field"] == "phase_started_at"

    def test_invalid_phase(self, client):
        response = client.get("/api/phases/7")
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_phase"

    def test_renovation(self, client):
        response = client.post("/api/renovation", json={"trades": ["painting"], "living_area": 50})

        data = response.json()
        assert data["total"] == 1250
        assert data["reliable"] is True
        assert "Painting" in data["description"]

    def test_unknown_trade(self, client):
        response = client.post("/api/renovation", json={"trades": ["roofing"], "living_area": 50})
        assert response.status_code == 400

    def test_furnishing(self, client):
        response = client.post("/api/furnishing", json={"quality": "basic"})
        assert response.json()["total"] == 2820


class TestNotaryEndpoints:
    """Test the notary workflow over HTTP."""

    def test_two_dates_rejected(self, client, dates):
        response = client.post("/api/notary/P-1/propose", json={"dates": dates[:2]})

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_date_proposal"

    def test_workflow(self, client, dates):
        response = client.post("/api/notary/P-1/propose", json={
            "dates": dates,
            "notary_name": "Dr. Huber",
            "expected_version": 0,
        })
        assert response.status_code == 200
        assert response.json()["version"] == 1

        response = client.post("/api/notary/P-1/select", json={
            "date": (datetime.fromisoformat(dates[0]) + timedelta(hours=1)).isoformat(),
        })
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_selection"

        response = client.post("/api/notary/P-1/select", json={"date": dates[1], "expected_version": 1})
        assert response.status_code == 200

        response = client.post("/api/notary/P-1/confirm", json={"expected_version": 1})
        assert response.status_code == 409
        assert response.json()["error"] == "concurrent_modification"

        for step in ("confirm", "documents", "complete"):
            response = client.post(f"/api/notary/P-1/{step}", json={})
            assert response.status_code == 200

        data = client.get("/api/notary/P-1").json()
        assert data["status"] == "completed"
        assert data["confirmed_date"] == dates[1]
        assert all(step["completed"] for step in data["timeline"])

        response = client.post("/api/notary/P-1/confirm", json={})
        assert response.status_code == 409
        assert response.json()["error"] == "invalid_transition"

    def test_missing_appointment(self, client):
        response = client.get("/api/notary/P-404")
        assert response.status_code == 404

    def test_partner_managed(self, client, dates):
        response = client.post("/api/notary/P-2/sync", json={
            "payload": {
                "status": "customer_confirmed",
                "proposed_dates": dates,
                "selected_date": dates[2],
                "customer_confirmed": True,
            },
            "synced_at": datetime.now().isoformat(),
        })
        assert response.status_code == 200
        assert response.json()["management"]["managed_by"] == "partner"

        response = client.post("/api/notary/P-2/confirm", json={})
        assert response.status_code == 409
        assert response.json()["error"] == "partner_managed"

    def test_invalid_sync(self, client, dates):
        response = client.post("/api/notary/P-3/sync", json={
            "payload": {"status": "customer_confirmed", "proposed_dates": dates},
            "synced_at": datetime.now().isoformat(),
        })
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
