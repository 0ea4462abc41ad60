"""Maintenance requests."""

from uuid import UUID

from fastapi import APIRouter, Query, Request

from api.base import current_owner, ok
from core.models import MaintenanceRequestCreate, MaintenanceRequestUpdate, MaintenanceStatus


def create_maintenance_router(services: dict) -> APIRouter:
    router = APIRouter()

    maintenance_svc = services["maintenance"]

    @router.get("/maintenance")
    async def list_requests(
        request: Request,
        project_id: UUID | None = Query(None),
        status: MaintenanceStatus | None = Query(None),
    ):
        return ok(request, maintenance_svc.list_all(current_owner(request), project_id, status))

    @router.post("/maintenance")
    async def create_request(request: Request, body: MaintenanceRequestCreate):
        created = maintenance_svc.create(current_owner(request), body)
        return ok(request, created.model_dump(mode="json"))

    @router.get("/maintenance/{request_id}")
    async def get_request(request: Request, request_id: UUID):
        return ok(request, maintenance_svc.get(current_owner(request), request_id))

    @router.put("/maintenance/{request_id}")
    async def update_request(request: Request, request_id: UUID, body: MaintenanceRequestUpdate):
        updated = maintenance_svc.update(current_owner(request), request_id, body)
        return ok(request, updated.model_dump(mode="json"))

    @router.delete("/maintenance/{request_id}")
    async def delete_request(request: Request, request_id: UUID):
        maintenance_svc.delete(current_owner(request), request_id)
        return ok(request, {"deleted": True})

    return router
