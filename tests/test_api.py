"""Endpoint tests for the studio analytics API with a stubbed sheet fetcher."""

import dataclasses

import pytest
from fastapi.testclient import TestClient

from studio_api import main
from studio_core.data import SnapshotStore
from studio_core.fetch import SheetFetchError


GRIDS = {
    "discounts": [
        ["Payment Date", "Payment Value", "Payment Method", "Calculated Location", "Cleaned Product",
         "Cleaned Category", "Mrp - Pre Tax", "Discount Amount -Mrp- Payment Value",
         "Discount Percentage - discount amount/mrp*100"],
        ["05/01/2024", "900", "UPI", "Bandra", "Pack 10", "Packs", "1000", "100", "10"],
        ["10/01/2024", "800", "Card", "Kemps", "Pack 10", "Packs", "1000", "200", "20"],
        ["12/02/2024", "1000", "UPI", "Bandra", "Unlimited", "Memberships", "1000", "0", "0"],
    ],
    "sessions": [
        ["Date", "Location", "Cleaned Class", "Trainer Name", "Capacity", "Booked", "Checked In"],
        ["01/03/2024", "Bandra", "PowerCycle 45", "Anisha", "20", "18", "15"],
        ["02/03/2024", "Kemps", "Barre 57", "Rohan", "15", "10", "12"],
    ],
    "late_cancellations": [
        ["Late Cancellations"],
        ["Location", "Jun-2025", "Grand Total"],
        ["Bandra", "4", "4"],
    ],
}


async def _fake_fetch(source_id):
    if source_id not in GRIDS:
        raise SheetFetchError(f"Failed to fetch {source_id} data (HTTP 503)", status_code=503)
    return GRIDS[source_id]


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(main, "store", SnapshotStore(_fake_fetch))
    monkeypatch.setattr(main, "settings", dataclasses.replace(main.settings, use_fallback_data=False))
    return TestClient(main.app)


class TestDiscountEndpoints:
    def test_discounts_with_filters(self, client):
        resp = client.post("/discounts", json={"payment_methods": ["UPI"]})
        assert resp.status_code == 200
        body = resp.json()

        assert body["hero"]["total_transactions"] == 1
        assert body["metrics"]["total_discount_amount"] == 100.0
        assert body["metrics"]["product_breakdown"][0]["product"] == "Pack 10"
        assert body["records"][0]["payment_date"] == "2024-01-05"

    def test_discount_options(self, client):
        resp = client.get("/meta/discount-options")
        assert resp.status_code == 200
        assert resp.json()["payment_methods"] == ["Card", "UPI"]
        assert resp.json()["locations"] == ["Bandra", "Kemps"]

    def test_export_csv(self, client):
        resp = client.post("/export/discounts", json={"min_discount": 150})
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        lines = resp.text.strip().splitlines()
        assert len(lines) == 2
        assert "Kemps" in lines[1]


class TestOtherEndpoints:
    def test_class_comparison(self, client):
        resp = client.post("/sessions/class-comparison", json={})
        assert resp.status_code == 200
        body = resp.json()
        assert body["formats"]["powercycle"]["metrics"]["no_shows"] == 3.0
        assert body["formats"]["barre"]["metrics"]["total_sessions"] == 1

    def test_late_cancellations(self, client):
        resp = client.post("/late-cancellations")
        assert resp.status_code == 200
        assert resp.json()["location_totals"] == [{"location": "Bandra", "late_cancellations": 4.0}]

    def test_export_late_cancellations(self, client):
        resp = client.post("/export/late-cancellations", json={})
        assert resp.status_code == 200
        assert resp.text.splitlines()[0] == "table_type,location,label,Jun-2025,Grand Total"

    def test_meta_sources(self, client):
        body = client.get("/meta/sources").json()
        assert body["sources"] == ["discounts", "sessions", "late_cancellations", "new_clients"]


class TestFetchFailures:
    def test_fetch_error_is_reported(self, client):
        resp = client.post("/new-clients", json={})
        assert resp.status_code == 502
        assert resp.json()["type"] == "SheetFetchError"
        assert "HTTP 503" in resp.json()["error"]

    def test_fallback_data_when_enabled(self, client, monkeypatch):
        monkeypatch.setattr(main, "settings", dataclasses.replace(main.settings, use_fallback_data=True))
        resp = client.post("/new-clients", json={})
        assert resp.status_code == 200
        assert resp.json()["metrics"]["total_clients"] == 5
        # fallback data is never stored as the current snapshot
        assert main.store.get("new_clients") is None

    def test_refresh(self, client):
        assert client.post("/refresh/sessions").json() == {"source": "sessions", "rows": 3}
        assert client.post("/refresh/new_clients").status_code == 502
        assert client.post("/refresh/unknown").status_code == 404
