"""Meter readings."""

from uuid import UUID

from fastapi import APIRouter, Query, Request

from api.base import current_owner, ok
from core.models import MeterReadingCreate, MeterReadingUpdate, MeterType
from core.models.meter import BILLING_MONTH_PATTERN

MONTH = BILLING_MONTH_PATTERN.pattern


def create_meters_router(services: dict) -> APIRouter:
    router = APIRouter()

    meter_svc = services["meter"]

    @router.get("/meters")
    async def list_readings(
        request: Request,
        project_id: UUID | None = Query(None),
        unit_id: UUID | None = Query(None),
        billing_month: str | None = Query(None, pattern=MONTH),
        type: MeterType | None = Query(None),
    ):
        readings = meter_svc.list_all(current_owner(request), project_id, unit_id, billing_month, type)
        return ok(request, [r.model_dump(mode="json") for r in readings])

    @router.post("/meters")
    async def record_reading(request: Request, body: MeterReadingCreate):
        reading = meter_svc.record(current_owner(request), body)
        return ok(request, reading.model_dump(mode="json"))

    # Registered before /meters/{reading_id}
    @router.get("/meters/previous")
    async def previous_reading(
        request: Request,
        unit_id: UUID = Query(...),
        type: MeterType = Query(...),
        billing_month: str = Query(..., pattern=MONTH),
    ):
        reading = meter_svc.previous_reading(current_owner(request), unit_id, type, billing_month)
        return ok(request, reading.model_dump(mode="json") if reading else None)

    @router.get("/meters/{reading_id}")
    async def get_reading(request: Request, reading_id: UUID):
        reading = meter_svc.get(current_owner(request), reading_id)
        return ok(request, reading.model_dump(mode="json"))

    @router.put("/meters/{reading_id}")
    async def update_reading(request: Request, reading_id: UUID, body: MeterReadingUpdate):
        reading = meter_svc.update(current_owner(request), reading_id, body)
        return ok(request, reading.model_dump(mode="json"))

    @router.delete("/meters/{reading_id}")
    async def delete_reading(request: Request, reading_id: UUID):
        meter_svc.delete(current_owner(request), reading_id)
        return ok(request, {"deleted": True})

    return router
