"""Payments, verification and slips."""

from uuid import UUID

from fastapi import APIRouter, Query, Request

from api.base import current_owner, ok
from core.models import PaymentCreate, PaymentStatus, PaymentUpdate, PaymentVerify, SlipUpload


def create_payments_router(services: dict) -> APIRouter:
    router = APIRouter()

    payment_svc = services["payment"]
    slip_svc = services["slip"]

    @router.get("/payments")
    async def list_payments(
        request: Request,
        project_id: UUID | None = Query(None),
        status: PaymentStatus | None = Query(None),
    ):
        payments = payment_svc.list_all(current_owner(request), project_id, status)
        return ok(request, [p.model_dump(mode="json") for p in payments])

    @router.post("/payments")
    async def create_payment(request: Request, body: PaymentCreate):
        payment = payment_svc.create(current_owner(request), body)
        return ok(request, payment.model_dump(mode="json"))

    @router.get("/payments/{payment_id}")
    async def get_payment(request: Request, payment_id: UUID):
        payment = payment_svc.get(current_owner(request), payment_id)
        return ok(request, payment.model_dump(mode="json"))

    @router.patch("/payments/{payment_id}")
    async def update_payment(request: Request, payment_id: UUID, body: PaymentUpdate):
        payment = payment_svc.update(current_owner(request), payment_id, body)
        return ok(request, payment.model_dump(mode="json"))

    @router.delete("/payments/{payment_id}")
    async def delete_payment(request: Request, payment_id: UUID):
        payment_svc.delete(current_owner(request), payment_id)
        return ok(request, {"deleted": True})

    @router.post("/payments/{payment_id}/verify")
    async def verify_payment(request: Request, payment_id: UUID, body: PaymentVerify):
        payment = payment_svc.verify(current_owner(request), payment_id, body.approved)
        return ok(request, payment.model_dump(mode="json"))

    # -------------------------------------------------------------------------
    # Slips
    # -------------------------------------------------------------------------

    @router.get("/payments/{payment_id}/slips")
    async def list_slips(request: Request, payment_id: UUID):
        slips = slip_svc.list_for_payment(current_owner(request), payment_id)
        return ok(request, slips)

    @router.post("/payments/{payment_id}/slips")
    async def attach_slip(request: Request, payment_id: UUID, body: SlipUpload):
        slip = slip_svc.attach(current_owner(request), payment_id, body)
        return ok(request, slip.model_dump(mode="json"))

    @router.delete("/payments/{payment_id}/slips/{slip_id}")
    async def delete_slip(request: Request, payment_id: UUID, slip_id: UUID):
        slip_svc.delete(current_owner(request), payment_id, slip_id)
        return ok(request, {"deleted": True})

    return router
