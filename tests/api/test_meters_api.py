"""HTTP tests for meter readings and utility invoices."""

from datetime import timedelta

import pytest


@pytest.fixture
def reading(client, unit, tenant, today) -> dict:
    response = client.post("/api/meters", json={
        "unit_id": str(unit.id),
        "type": "electricity",
        "billing_month": "2025-01",
        "previous_reading": "1200",
        "current_reading": "1350",
        "reading_date": str(today),
    })
    assert response.status_code == 200, response.text
    return response.json()["data"]


class TestMeters:

    def test_record_computes_amount(self, reading):
        assert reading["usage"] == "150"
        assert reading["rate_satang"] == 800
        assert reading["amount_satang"] == 120_000

    def test_next_month_chains(self, client, unit, reading, today):
        response = client.post("/api/meters", json={
            "unit_id": str(unit.id), "type": "electricity", "billing_month": "2025-02",
            "current_reading": "1400", "reading_date": str(today),
        })

        data = response.json()["data"]
        assert data["previous_reading"] == "1350"
        assert data["amount_satang"] == 40_000

    def test_previous_lookup(self, client, unit, reading):
        response = client.get("/api/meters/previous", params={
            "unit_id": str(unit.id), "type": "electricity", "billing_month": "2025-03",
        })

        assert response.json()["data"]["id"] == reading["id"]

    def test_previous_lookup_empty(self, client, unit, tenant):
        response = client.get("/api/meters/previous", params={
            "unit_id": str(unit.id), "type": "water", "billing_month": "2025-03",
        })

        assert response.json()["data"] is None

    def test_vacant_unit_rejected(self, client, project, today):
        unit = client.post("/api/units", json={"project_id": str(project.id), "unit_number": "999"}).json()["data"]

        response = client.post("/api/meters", json={
            "unit_id": unit["id"], "type": "water", "billing_month": "2025-01",
            "current_reading": "5", "reading_date": str(today),
        })

        assert response.status_code == 400

    def test_correct_reading(self, client, reading):
        response = client.put(f"/api/meters/{reading['id']}", json={"current_reading": "1300"})

        assert response.json()["data"]["amount_satang"] == 80_000

    def test_list_and_delete(self, client, reading):
        listed = client.get("/api/meters", params={"billing_month": "2025-01"}).json()["data"]
        assert [r["id"] for r in listed] == [reading["id"]]

        client.delete(f"/api/meters/{reading['id']}")

        assert client.get(f"/api/meters/{reading['id']}").status_code == 404


class TestUtilityInvoice:

    def test_bills_recorded_readings(self, client, unit, reading, today):
        response = client.post("/api/invoices", json={
            "unit_id": str(unit.id),
            "type": "utility",
            "billing_month": "2025-01",
            "due_date": str(today + timedelta(days=7)),
        })

        invoice = response.json()["data"]
        assert invoice["total_amount_satang"] == 120_000
        assert [item["amount_satang"] for item in invoice["line_items"]] == [120_000]
