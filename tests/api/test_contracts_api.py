"""HTTP tests for lease contracts and the public signing link."""

from datetime import timedelta
from uuid import UUID

import pytest

from utils.timezone import now_utc


@pytest.fixture
def contract(client, tenant) -> dict:
    response = client.post("/api/contracts", json={"tenant_id": str(tenant.id), "title": "Residential lease"})
    assert response.status_code == 200, response.text
    return response.json()["data"]


@pytest.fixture
def signing_link(client, contract, png_data_url) -> str:
    response = client.post(f"/api/contracts/{contract['id']}/sign", json={"signature": png_data_url})
    assert response.status_code == 200, response.text
    return f"/api/sign/{contract['signing_token']}"


class TestContracts:

    def test_draft_takes_tenant_terms(self, contract, today):
        assert contract["contract_no"] == f"LC{today.year}00001"
        assert contract["status"] == "draft"
        assert contract["base_rent_satang"] == 1_000_000
        assert contract["common_fee_satang"] == 50_000

    def test_foreign_tenant_is_forbidden(self, client, stores, other_project):
        unit = stores.units.insert({"project_id": other_project.id, "unit_number": "9"})
        tenant = stores.tenants.insert({"unit_id": unit.id, "name": "Someone Else", "base_rent_satang": 1})

        response = client.post("/api/contracts", json={"tenant_id": str(tenant.id)})

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "AUTHORIZATION_DENIED"

    def test_edit_draft(self, client, contract):
        response = client.put(f"/api/contracts/{contract['id']}", json={"deposit_satang": 2_000_000})

        assert response.json()["data"]["deposit_satang"] == 2_000_000

    def test_landlord_signature_locks_draft(self, client, contract, signing_link):
        current = client.get(f"/api/contracts/{contract['id']}").json()["data"]
        assert current["status"] == "pending_tenant"
        assert current["landlord_signature"].startswith(f"contracts/{contract['id']}/landlord-signature-")

        response = client.put(f"/api/contracts/{contract['id']}", json={"title": "Changed"})
        assert response.status_code == 400

    def test_list_by_status(self, client, contract):
        assert len(client.get("/api/contracts", params={"status": "draft"}).json()["data"]) == 1
        assert client.get("/api/contracts", params={"status": "signed"}).json()["data"] == []


class TestSendOverLine:

    @pytest.fixture
    def tenant_contact(self, stores, project, tenant):
        return stores.line_contacts.insert({
            "project_id": project.id, "line_user_id": "U-somchai", "display_name": "Somchai", "tenant_id": tenant.id,
        })

    def test_pushes_signing_link(self, client, line_client, contract, signing_link, tenant_contact):
        response = client.post(f"/api/contracts/{contract['id']}/send-line", json={"base_url": "https://rent.example"})

        assert response.status_code == 200, response.text
        assert response.json()["data"]["message"] == "Signing link sent via LINE"
        user_id, messages = line_client.push.call_args.args
        assert user_id == "U-somchai"
        assert messages[0]["contents"]["footer"]["contents"][0]["action"]["uri"] == (
            f"https://rent.example/sign/{contract['signing_token']}"
        )

    def test_body_is_optional(self, client, line_client, contract, signing_link, tenant_contact):
        response = client.post(f"/api/contracts/{contract['id']}/send-line")

        assert response.status_code == 200, response.text
        line_client.push.assert_called_once()

    def test_draft_is_rejected(self, client, line_client, contract, tenant_contact):
        response = client.post(f"/api/contracts/{contract['id']}/send-line", json={})

        assert response.status_code == 400
        assert "pending tenant signature" in response.json()["error"]["message"]
        line_client.push.assert_not_called()

    def test_tenant_without_contact(self, client, contract, signing_link):
        response = client.post(f"/api/contracts/{contract['id']}/send-line", json={})

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Tenant has no LINE contact linked"


class TestPublicSigning:

    def test_view_without_session(self, unauthed_client, contract, signing_link):
        response = unauthed_client.get(signing_link)

        assert response.status_code == 200
        view = response.json()["data"]
        assert view["contract_no"] == contract["contract_no"]
        assert view["tenant_name"] == "Somchai Jaidee"
        assert view["unit_number"] == "101"
        assert "signing_token" not in view

    def test_draft_not_ready(self, unauthed_client, contract):
        response = unauthed_client.get(f"/api/sign/{contract['signing_token']}")

        assert response.status_code == 400

    def test_unknown_token(self, unauthed_client):
        response = unauthed_client.get("/api/sign/nope")

        assert response.status_code == 404

    def test_tenant_signs_once(self, unauthed_client, client, contract, signing_link, png_data_url):
        signed = unauthed_client.post(signing_link, json={"signature": png_data_url})

        assert signed.status_code == 200
        data = signed.json()["data"]
        assert data["status"] == "signed"
        assert data["tenant_signed_at"] is not None

        again = unauthed_client.post(signing_link, json={"signature": png_data_url})
        assert again.status_code == 400

        assert client.delete(f"/api/contracts/{contract['id']}").status_code == 400

    def test_expired_link(self, unauthed_client, stores, contract, signing_link):
        stores.contracts.update(UUID(contract["id"]), {"token_expires_at": now_utc() - timedelta(minutes=1)})

        response = unauthed_client.get(signing_link)

        assert response.status_code == 410
        assert response.json()["error"]["code"] == "LINK_EXPIRED"
