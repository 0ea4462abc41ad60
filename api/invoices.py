"""Invoices and their rendered cards."""

from uuid import UUID

from fastapi import APIRouter, Query, Request
from starlette.responses import Response

from api.base import current_owner, ok
from api.meters import MONTH
from core.models import BulkInvoiceIssue, InvoiceIssue, InvoiceStatus, InvoiceUpdate
from core.rendering import invoice_card, render_png

LANG = "^(th|en)$"


def create_invoices_router(services: dict) -> APIRouter:
    router = APIRouter()

    invoice_svc = services["invoice"]
    config = services["config"]

    @router.get("/invoices")
    async def list_invoices(
        request: Request,
        project_id: UUID | None = Query(None),
        status: InvoiceStatus | None = Query(None),
        billing_month: str | None = Query(None, pattern=MONTH),
    ):
        invoices = invoice_svc.list_all(current_owner(request), project_id, status, billing_month)
        return ok(request, [i.model_dump(mode="json") for i in invoices])

    @router.post("/invoices")
    async def create_invoice(request: Request, body: InvoiceIssue):
        invoice = invoice_svc.create_for_unit(current_owner(request), body)
        return ok(request, invoice.model_dump(mode="json"))

    @router.post("/invoices/bulk")
    async def create_bulk(request: Request, body: BulkInvoiceIssue):
        result = invoice_svc.create_bulk(current_owner(request), body)
        return ok(request, {
            "created": result["created"],
            "skipped": result["skipped"],
            "invoices": [i.model_dump(mode="json") for i in result["invoices"]],
        })

    @router.get("/invoices/{invoice_id}")
    async def get_invoice(request: Request, invoice_id: UUID):
        invoice = invoice_svc.get(current_owner(request), invoice_id)
        return ok(request, invoice.model_dump(mode="json"))

    @router.put("/invoices/{invoice_id}")
    async def update_invoice(request: Request, invoice_id: UUID, body: InvoiceUpdate):
        invoice = invoice_svc.update(current_owner(request), invoice_id, body)
        return ok(request, invoice.model_dump(mode="json"))

    @router.delete("/invoices/{invoice_id}")
    async def delete_invoice(request: Request, invoice_id: UUID):
        invoice_svc.delete(current_owner(request), invoice_id)
        return ok(request, {"deleted": True})

    @router.get("/invoices/{invoice_id}/image")
    async def invoice_image(request: Request, invoice_id: UUID, lang: str = Query("th", pattern=LANG)):
        invoice, project, unit, tenant = invoice_svc.document_context(current_owner(request), invoice_id)
        png = render_png(invoice_card(invoice, project, unit, lang, tenant), config.font_path)
        return Response(
            content=png,
            media_type="image/png",
            headers={"Content-Disposition": f'inline; filename="invoice-{invoice.invoice_no}.png"'},
        )

    return router
