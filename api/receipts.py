"""Receipts and their rendered cards."""

from uuid import UUID

from fastapi import APIRouter, Query, Request
from starlette.responses import Response

from api.base import current_owner, ok
from api.invoices import LANG
from core.models import ReceiptCreate, ReceiptUpdate
from core.rendering import receipt_card, render_png


def create_receipts_router(services: dict) -> APIRouter:
    router = APIRouter()

    receipt_svc = services["receipt"]
    config = services["config"]

    @router.get("/receipts")
    async def list_receipts(request: Request, project_id: UUID | None = Query(None)):
        receipts = receipt_svc.list_all(current_owner(request), project_id)
        return ok(request, [r.model_dump(mode="json") for r in receipts])

    @router.post("/receipts")
    async def create_receipt(request: Request, body: ReceiptCreate):
        receipt = receipt_svc.create(current_owner(request), body)
        return ok(request, receipt.model_dump(mode="json"))

    @router.get("/receipts/{receipt_id}")
    async def get_receipt(request: Request, receipt_id: UUID):
        receipt = receipt_svc.get(current_owner(request), receipt_id)
        return ok(request, receipt.model_dump(mode="json"))

    @router.patch("/receipts/{receipt_id}")
    async def update_receipt(request: Request, receipt_id: UUID, body: ReceiptUpdate):
        receipt = receipt_svc.update(current_owner(request), receipt_id, body)
        return ok(request, receipt.model_dump(mode="json"))

    @router.delete("/receipts/{receipt_id}")
    async def delete_receipt(request: Request, receipt_id: UUID):
        invoice = receipt_svc.delete(current_owner(request), receipt_id)
        return ok(request, {"deleted": True, "invoice": invoice.model_dump(mode="json")})

    @router.get("/receipts/{receipt_id}/image")
    async def receipt_image(request: Request, receipt_id: UUID, lang: str = Query("th", pattern=LANG)):
        receipt, invoice, project, unit, tenant = receipt_svc.document_context(current_owner(request), receipt_id)
        png = render_png(receipt_card(receipt, invoice, project, unit, lang, tenant), config.font_path)
        return Response(
            content=png,
            media_type="image/png",
            headers={"Content-Disposition": f'inline; filename="receipt-{receipt.receipt_no}.png"'},
        )

    return router
