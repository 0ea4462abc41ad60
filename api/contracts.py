"""Lease contracts and the public signing page."""

from uuid import UUID

from fastapi import APIRouter, Query, Request

from api.base import current_owner, ok
from core.models import ContractCreate, ContractLinkSend, ContractStatus, ContractUpdate, SignatureSubmit


def create_contracts_router(services: dict) -> APIRouter:
    router = APIRouter()

    contract_svc = services["contract"]
    line_svc = services["line"]

    @router.get("/contracts")
    async def list_contracts(
        request: Request,
        project_id: UUID | None = Query(None),
        status: ContractStatus | None = Query(None),
    ):
        contracts = contract_svc.list_all(current_owner(request), project_id, status)
        return ok(request, [c.model_dump(mode="json") for c in contracts])

    @router.post("/contracts")
    async def create_contract(request: Request, body: ContractCreate):
        contract = contract_svc.create(current_owner(request), body)
        return ok(request, contract.model_dump(mode="json"))

    @router.get("/contracts/{contract_id}")
    async def get_contract(request: Request, contract_id: UUID):
        contract = contract_svc.get(current_owner(request), contract_id)
        return ok(request, contract.model_dump(mode="json"))

    @router.put("/contracts/{contract_id}")
    async def update_contract(request: Request, contract_id: UUID, body: ContractUpdate):
        contract = contract_svc.update(current_owner(request), contract_id, body)
        return ok(request, contract.model_dump(mode="json"))

    @router.delete("/contracts/{contract_id}")
    async def delete_contract(request: Request, contract_id: UUID):
        contract_svc.delete(current_owner(request), contract_id)
        return ok(request, {"deleted": True})

    @router.post("/contracts/{contract_id}/sign")
    async def sign_as_landlord(request: Request, contract_id: UUID, body: SignatureSubmit):
        contract = contract_svc.sign_as_landlord(current_owner(request), contract_id, body.signature)
        return ok(request, contract.model_dump(mode="json"))

    @router.post("/contracts/{contract_id}/send-line")
    async def send_signing_link(request: Request, contract_id: UUID, body: ContractLinkSend | None = None):
        sent = line_svc.send_signing_link(current_owner(request), contract_id, body.base_url if body else None)
        return ok(request, {"message": "Signing link sent via LINE", "line_message_id": str(sent.id)})

    # -------------------------------------------------------------------------
    # Public signing page (token in the path, no session)
    # -------------------------------------------------------------------------

    @router.get("/sign/{token}")
    async def view_for_signing(request: Request, token: str):
        view = contract_svc.public_view(token)
        return ok(request, view.model_dump(mode="json"))

    @router.post("/sign/{token}")
    async def sign_as_tenant(request: Request, token: str, body: SignatureSubmit):
        contract = contract_svc.sign_as_tenant(token, body.signature)
        return ok(request, {
            "contract_no": contract.contract_no,
            "status": contract.status.value,
            "tenant_signed_at": contract.tenant_signed_at.isoformat() if contract.tenant_signed_at else None,
        })

    return router
