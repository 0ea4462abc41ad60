"""Uploads, reporting and maintenance."""

from uuid import UUID

from fastapi import APIRouter, Query, Request

from api.base import current_owner, ok
from api.meters import MONTH
from core.models import ImageUpload


def create_admin_router(services: dict) -> APIRouter:
    router = APIRouter()

    upload_svc = services["upload"]
    summary_svc = services["summary"]
    project_svc = services["project"]
    backfill = services["backfill"]

    @router.post("/upload")
    async def upload_image(request: Request, body: ImageUpload):
        return ok(request, upload_svc.upload(current_owner(request), body))

    @router.get("/summary")
    async def monthly_summary(
        request: Request,
        project_id: UUID | None = Query(None),
        start_month: str | None = Query(None, pattern=MONTH),
        end_month: str | None = Query(None, pattern=MONTH),
    ):
        summary = summary_svc.monthly(current_owner(request), project_id, start_month, end_month)
        return ok(request, summary)

    @router.post("/admin/backfill-snapshots")
    async def backfill_snapshots(request: Request):
        projects = project_svc.list_all(current_owner(request))
        result = backfill.run([p.id for p in projects])
        return ok(request, result.to_dict())

    return router
