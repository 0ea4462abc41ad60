"""HTTP tests for maintenance requests."""

from uuid import uuid4

import pytest


@pytest.fixture
def request_id(client, unit) -> str:
    response = client.post("/api/maintenance", json={
        "unit_id": str(unit.id), "title": "Leaking sink", "category": "plumbing",
    })
    assert response.status_code == 200, response.text
    return response.json()["data"]["id"]


class TestMaintenance:

    def test_create(self, client, unit, project):
        response = client.post("/api/maintenance", json={"unit_id": str(unit.id), "title": "Door hinge"})

        data = response.json()["data"]
        assert data["project_id"] == str(project.id)
        assert data["status"] == "pending"
        assert data["priority"] == "medium"

    def test_unknown_category(self, client, unit):
        response = client.post("/api/maintenance", json={
            "unit_id": str(unit.id), "title": "x", "category": "garden",
        })

        assert response.status_code == 422

    def test_list_with_names(self, client, request_id):
        data = client.get("/api/maintenance").json()["data"]

        assert [r["id"] for r in data] == [request_id]
        assert data[0]["unit_number"] == "101"
        assert data[0]["project_name"] == "Sukhumvit Place"
        assert client.get("/api/maintenance", params={"status": "completed"}).json()["data"] == []

    def test_get(self, client, request_id, tenant):
        data = client.get(f"/api/maintenance/{request_id}").json()["data"]

        assert data["title"] == "Leaking sink"
        assert data["tenant"]["name"] == "Somchai Jaidee"

    def test_complete(self, client, request_id):
        response = client.put(f"/api/maintenance/{request_id}", json={"status": "completed"})

        data = response.json()["data"]
        assert data["status"] == "completed"
        assert data["resolved_at"] is not None

    def test_delete(self, client, request_id):
        assert client.delete(f"/api/maintenance/{request_id}").json()["data"] == {"deleted": True}
        assert client.get(f"/api/maintenance/{request_id}").status_code == 404

    def test_missing(self, client):
        response = client.get(f"/api/maintenance/{uuid4()}")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_requires_session(self, unauthed_client):
        assert unauthed_client.get("/api/maintenance").status_code == 401
