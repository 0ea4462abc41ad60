"""HTTP tests for projects, units and tenants."""

from uuid import uuid4


class TestAuth:

    def test_requires_session(self, unauthed_client):
        response = unauthed_client.get("/api/projects")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "NOT_AUTHENTICATED"

    def test_health_is_public(self, unauthed_client):
        assert unauthed_client.get("/health").json() == {"status": "ok"}


class TestProjects:

    def test_create_and_list(self, client, test_user_id):
        created = client.post("/api/projects", json={
            "name": "Riverside",
            "water_rate_satang": 1800,
            "line_access_token": "token",
            "line_channel_secret": "secret",
        })

        assert created.status_code == 200
        body = created.json()
        assert body["success"] is True
        assert body["data"]["owner_id"] == str(test_user_id)
        assert body["data"]["line_enabled"] is True
        assert "line_channel_secret" not in body["data"]
        assert "line_access_token" not in body["data"]
        assert created.headers["X-Request-ID"] == body["meta"]["request_id"]

        listed = client.get("/api/projects").json()["data"]
        assert [p["name"] for p in listed] == ["Riverside"]

    def test_validation_error(self, client):
        response = client.post("/api/projects", json={"name": ""})

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_foreign_project_is_not_found(self, client, other_project):
        response = client.get(f"/api/projects/{other_project.id}")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_update(self, client, project):
        response = client.put(f"/api/projects/{project.id}", json={"electricity_rate_satang": 900})

        assert response.json()["data"]["electricity_rate_satang"] == 900

    def test_delete_with_units_rejected(self, client, project, unit):
        response = client.delete(f"/api/projects/{project.id}")

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_REQUEST"

    def test_logo_upload(self, client, project, storage, png_data_url):
        response = client.post(f"/api/projects/{project.id}/logo", json={"base64_image": png_data_url})

        assert response.status_code == 200
        assert response.json()["data"]["logo_key"].startswith(f"logo/{project.id}/")
        storage.put.assert_called_once()


class TestUnits:

    def test_create_and_filter(self, client, project, unit):
        created = client.post("/api/units", json={"project_id": str(project.id), "unit_number": "102"})
        assert created.json()["data"]["status"] == "vacant"

        occupied = client.get("/api/units", params={"status": "occupied"}).json()["data"]
        assert [u["unit_number"] for u in occupied] == ["101"]

    def test_missing_unit(self, client):
        assert client.get(f"/api/units/{uuid4()}").status_code == 404

    def test_bad_uuid(self, client):
        assert client.get("/api/units/not-a-uuid").status_code == 422


class TestTenants:

    def test_create_occupies_unit(self, client, project):
        unit = client.post("/api/units", json={"project_id": str(project.id), "unit_number": "305"}).json()["data"]

        response = client.post("/api/tenants", json={
            "unit_id": unit["id"],
            "name": "Acme Co., Ltd.",
            "tenant_type": "company",
            "withholding_tax_bps": 500,
            "base_rent_satang": 2_500_000,
        })

        assert response.status_code == 200
        assert client.get(f"/api/units/{unit['id']}").json()["data"]["status"] == "occupied"

    def test_end_contract(self, client, tenant, unit, today):
        response = client.post(f"/api/tenants/{tenant.id}/end-contract")

        assert response.json()["data"]["contract_end"] == str(today)
        assert client.get(f"/api/units/{unit.id}").json()["data"]["status"] == "vacant"

    def test_list_by_project(self, client, project, tenant):
        data = client.get("/api/tenants", params={"project_id": str(project.id), "status": "active"}).json()["data"]

        assert [t["name"] for t in data] == ["Somchai Jaidee"]
