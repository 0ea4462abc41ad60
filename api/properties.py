"""Projects, units and tenants."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Query, Request

from api.base import current_owner, ok
from core.models import (
    ImageUpload,
    ProjectCreate, ProjectUpdate,
    UnitCreate, UnitUpdate, UnitStatus,
    TenantCreate, TenantUpdate, TenantStatus,
)


LINE_SECRETS = {"line_access_token", "line_channel_secret"}


def project_json(project) -> dict:
    """Project as returned to the owner. Channel credentials are write-only."""
    data = project.model_dump(mode="json", exclude=LINE_SECRETS)
    data["line_enabled"] = project.line_enabled
    return data


def create_properties_router(services: dict) -> APIRouter:
    router = APIRouter()

    project_svc = services["project"]
    tenant_svc = services["tenant"]
    upload_svc = services["upload"]

    # -------------------------------------------------------------------------
    # Projects
    # -------------------------------------------------------------------------

    @router.get("/projects")
    async def list_projects(request: Request):
        projects = project_svc.list_all(current_owner(request))
        return ok(request, [project_json(p) for p in projects])

    @router.post("/projects")
    async def create_project(request: Request, body: ProjectCreate):
        project = project_svc.create(current_owner(request), body)
        return ok(request, project_json(project))

    @router.get("/projects/{project_id}")
    async def get_project(request: Request, project_id: UUID):
        project = project_svc.get(current_owner(request), project_id)
        return ok(request, project_json(project))

    @router.put("/projects/{project_id}")
    async def update_project(request: Request, project_id: UUID, body: ProjectUpdate):
        project = project_svc.update(current_owner(request), project_id, body)
        return ok(request, project_json(project))

    @router.delete("/projects/{project_id}")
    async def delete_project(request: Request, project_id: UUID):
        project_svc.delete(current_owner(request), project_id)
        return ok(request, {"deleted": True})

    @router.post("/projects/{project_id}/logo")
    async def upload_logo(request: Request, project_id: UUID, body: ImageUpload):
        project = upload_svc.upload_logo(current_owner(request), project_id, body)
        return ok(request, project_json(project))

    # -------------------------------------------------------------------------
    # Units
    # -------------------------------------------------------------------------

    @router.get("/units")
    async def list_units(
        request: Request,
        project_id: UUID | None = Query(None),
        status: UnitStatus | None = Query(None),
    ):
        units = project_svc.list_units(current_owner(request), project_id, status)
        return ok(request, [u.model_dump(mode="json") for u in units])

    @router.post("/units")
    async def create_unit(request: Request, body: UnitCreate):
        unit = project_svc.create_unit(current_owner(request), body)
        return ok(request, unit.model_dump(mode="json"))

    @router.get("/units/{unit_id}")
    async def get_unit(request: Request, unit_id: UUID):
        unit = project_svc.get_unit(current_owner(request), unit_id)
        return ok(request, unit.model_dump(mode="json"))

    @router.put("/units/{unit_id}")
    async def update_unit(request: Request, unit_id: UUID, body: UnitUpdate):
        unit = project_svc.update_unit(current_owner(request), unit_id, body)
        return ok(request, unit.model_dump(mode="json"))

    @router.delete("/units/{unit_id}")
    async def delete_unit(request: Request, unit_id: UUID):
        project_svc.delete_unit(current_owner(request), unit_id)
        return ok(request, {"deleted": True})

    # -------------------------------------------------------------------------
    # Tenants
    # -------------------------------------------------------------------------

    @router.get("/tenants")
    async def list_tenants(
        request: Request,
        project_id: UUID | None = Query(None),
        status: TenantStatus | None = Query(None),
    ):
        tenants = tenant_svc.list_all(current_owner(request), project_id, status)
        return ok(request, [t.model_dump(mode="json") for t in tenants])

    @router.post("/tenants")
    async def create_tenant(request: Request, body: TenantCreate):
        tenant = tenant_svc.create(current_owner(request), body)
        return ok(request, tenant.model_dump(mode="json"))

    @router.get("/tenants/{tenant_id}")
    async def get_tenant(request: Request, tenant_id: UUID):
        tenant = tenant_svc.get(current_owner(request), tenant_id)
        return ok(request, tenant.model_dump(mode="json"))

    @router.put("/tenants/{tenant_id}")
    async def update_tenant(request: Request, tenant_id: UUID, body: TenantUpdate):
        tenant = tenant_svc.update(current_owner(request), tenant_id, body)
        return ok(request, tenant.model_dump(mode="json"))

    @router.post("/tenants/{tenant_id}/end-contract")
    async def end_contract(request: Request, tenant_id: UUID, end_date: date | None = Query(None)):
        tenant = tenant_svc.end_contract(current_owner(request), tenant_id, end_date)
        return ok(request, tenant.model_dump(mode="json"))

    @router.delete("/tenants/{tenant_id}")
    async def delete_tenant(request: Request, tenant_id: UUID):
        tenant_svc.delete(current_owner(request), tenant_id)
        return ok(request, {"deleted": True})

    return router
