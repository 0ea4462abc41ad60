"""LINE webhook, contacts, outgoing messages and the LIFF page."""

from uuid import UUID

from fastapi import APIRouter, Query, Request
from starlette.responses import Response

from api.base import current_owner, ok
from core.models import LineContactLink, LineSendRequest, LineSlipSave, LiffSlipSubmit


def create_line_router(services: dict) -> APIRouter:
    router = APIRouter()

    line_svc = services["line"]
    slip_svc = services["slip"]

    # -------------------------------------------------------------------------
    # Webhook (public, authenticated by signature)
    # -------------------------------------------------------------------------

    @router.post("/line/webhook")
    async def webhook(request: Request):
        body = await request.body()
        handled = line_svc.handle_webhook(body, request.headers.get("x-line-signature"))
        return ok(request, {"handled": handled})

    # -------------------------------------------------------------------------
    # Owner chat tools
    # -------------------------------------------------------------------------

    @router.get("/line/contacts")
    async def list_contacts(request: Request, project_id: UUID | None = Query(None)):
        return ok(request, line_svc.list_contacts(current_owner(request), project_id))

    @router.patch("/line/contacts/{contact_id}")
    async def link_tenant(request: Request, contact_id: UUID, body: LineContactLink):
        contact = line_svc.link_tenant(current_owner(request), contact_id, body)
        return ok(request, contact.model_dump(mode="json"))

    @router.get("/line/contacts/{contact_id}/messages")
    async def list_messages(request: Request, contact_id: UUID, limit: int = Query(100, ge=1, le=500)):
        messages = line_svc.messages(current_owner(request), contact_id, limit)
        return ok(request, [m.model_dump(mode="json") for m in messages])

    @router.post("/line/send")
    async def send_message(request: Request, body: LineSendRequest):
        message = line_svc.send(current_owner(request), body)
        return ok(request, message.model_dump(mode="json"))

    @router.post("/line/save-slip")
    async def save_slip(request: Request, body: LineSlipSave):
        return ok(request, slip_svc.save_from_line_chat(current_owner(request), body))

    @router.get("/line/image/{message_id}")
    async def chat_image(request: Request, message_id: str, project_id: UUID = Query(...)):
        content = line_svc.fetch_image(current_owner(request), project_id, message_id)
        return Response(
            content=content.data,
            media_type=content.content_type,
            headers={"Cache-Control": "private, max-age=3600"},
        )

    # -------------------------------------------------------------------------
    # LIFF page (public, identified by LINE user id)
    # -------------------------------------------------------------------------

    @router.get("/liff/invoices")
    async def liff_invoices(request: Request, line_user_id: str = Query(..., min_length=1)):
        return ok(request, line_svc.liff_invoices(line_user_id))

    @router.post("/liff/submit-slip")
    async def liff_submit_slip(request: Request, body: LiffSlipSubmit):
        return ok(request, slip_svc.submit_from_liff(body))

    return router
