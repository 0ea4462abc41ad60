"""
LINE Official Account integration.

Each project may connect its own Official Account (access token + channel
secret). Webhook deliveries do not say which project they are for, so the
project is the one whose channel secret produces the delivery's signature.
Contacts are per project: the same LINE user following two projects' accounts
is two contacts.
"""

import json
import logging
from typing import Any, Callable
from uuid import UUID

from clients.line_client import LineClient, MessageContent, text_message, verify_signature
from core.access import AccessGate
from core.audit import AuditLogger, AuditAction
from core.billing import format_baht
from core.config import BillingConfig
from core.exceptions import BusinessRuleError, NotFoundError, UpstreamError
from core.models import (
    ContractStatus, Invoice, LeaseContract, LineContact, LineContactLink, LineMessage,
    LineSendRequest, MessageDirection, Project, Receipt, Unit,
)
from core.services.invoice_service import InvoiceService
from core.services.maintenance_service import MaintenanceService
from core.services.receipt_service import ReceiptService
from core.stores import Stores
from utils.timezone import format_thai_date

logger = logging.getLogger(__name__)

PAYMENT_KEYWORDS = ("ส่งสลิป", "ชำระเงิน", "pay", "payment", "slip")
MAINTENANCE_KEYWORDS = ("แจ้งซ่อม", "ซ่อม", "repair", "maintenance", "broken")
LIFF_BASE = "https://liff.line.me"
BRAND_COLOR = "#1DB446"
CONTRACT_COLOR = "#1e40af"

NOT_REGISTERED_TEXT = (
    "กรุณาติดต่อเจ้าหน้าที่เพื่อลงทะเบียนห้องของท่านก่อนค่ะ\n"
    "Please contact staff to register your unit first."
)
NO_UNPAID_TEXT = "ไม่พบใบแจ้งหนี้ค้างชำระค่ะ\nNo unpaid invoices found."


# =============================================================================
# Message builders
# =============================================================================


def welcome_text(display_name: str, project_name: str) -> str:
    return f"สวัสดีค่ะ {display_name} ยินดีต้อนรับสู่ {project_name}\nHello! Welcome to {project_name}"


def unpaid_text(count: int) -> str:
    return f"คุณมี {count} รายการค้างชำระ\nกรุณาส่งรูปสลิปมาในแชทนี้ เจ้าหน้าที่จะตรวจสอบให้ค่ะ"


def liff_flex_message(count: int, liff_id: str) -> dict:
    """Bubble with the unpaid count and a button opening the slip upload page."""
    return {
        "type": "flex",
        "altText": "ส่งสลิปชำระเงิน",
        "contents": {
            "type": "bubble",
            "body": {
                "type": "box",
                "layout": "vertical",
                "contents": [
                    {"type": "text", "text": "ส่งสลิปชำระเงิน", "weight": "bold", "size": "xl", "color": BRAND_COLOR},
                    {"type": "text", "text": f"คุณมี {count} รายการค้างชำระ", "margin": "md", "color": "#666666"},
                    {"type": "text", "text": "กดปุ่มด้านล่างเพื่อส่งสลิป", "margin": "sm", "size": "sm", "color": "#999999"},
                ],
            },
            "footer": {
                "type": "box",
                "layout": "vertical",
                "contents": [
                    {
                        "type": "button",
                        "action": {"type": "uri", "label": "ส่งสลิป", "uri": f"{LIFF_BASE}/{liff_id}"},
                        "style": "primary",
                        "color": BRAND_COLOR,
                    },
                ],
            },
        },
    }


def signing_flex_message(contract: LeaseContract, project: Project, unit: Unit | None, signing_url: str) -> dict:
    """Bubble naming the contract and unit, with a button opening the signing page."""
    return {
        "type": "flex",
        "altText": f"สัญญาเช่า {contract.contract_no} รอลายเซ็นของคุณ",
        "contents": {
            "type": "bubble",
            "header": {
                "type": "box",
                "layout": "vertical",
                "contents": [
                    {"type": "text", "text": "สัญญาเช่า", "weight": "bold", "size": "xl", "color": CONTRACT_COLOR},
                    {"type": "text", "text": contract.contract_no, "size": "sm", "color": "#666666"},
                ],
                "backgroundColor": "#f0f9ff",
                "paddingAll": "lg",
            },
            "body": {
                "type": "box",
                "layout": "vertical",
                "contents": [
                    {"type": "text", "text": project.name_th or project.name, "weight": "bold", "size": "md"},
                    {"type": "text", "text": f"ห้อง {unit.unit_number if unit else '-'}",
                     "size": "sm", "color": "#666666", "margin": "sm"},
                    {"type": "separator", "margin": "lg"},
                    {"type": "text", "text": "กรุณาเซ็นสัญญาเช่าของคุณ", "size": "sm", "color": "#333333",
                     "margin": "lg", "wrap": True},
                    {"type": "text", "text": "คลิกปุ่มด้านล่างเพื่อดำเนินการ", "size": "xs", "color": "#888888",
                     "margin": "sm"},
                ],
                "paddingAll": "lg",
            },
            "footer": {
                "type": "box",
                "layout": "vertical",
                "contents": [
                    {
                        "type": "button",
                        "action": {"type": "uri", "label": "เซ็นสัญญา", "uri": signing_url},
                        "style": "primary",
                        "color": CONTRACT_COLOR,
                    },
                ],
                "paddingAll": "lg",
            },
        },
    }


def invoice_text(invoice: Invoice, unit: Unit | None) -> str:
    return "\n".join([
        "📄 ใบแจ้งหนี้ / Invoice",
        f"เลขที่: {invoice.invoice_no}",
        f"ห้อง: {unit.unit_number if unit else '-'}",
        f"รอบบิล: {invoice.billing_month}",
        f"ยอดชำระ: ฿{format_baht(invoice.total_amount_satang)}",
        f"กำหนดชำระ: {format_thai_date(invoice.due_date)}",
        "",
        "กรุณาชำระภายในกำหนด",
        "Please pay by the due date.",
    ])


def receipt_text(receipt: Receipt, unit: Unit | None) -> str:
    return "\n".join([
        "🧾 ใบเสร็จรับเงิน / Receipt",
        f"เลขที่: {receipt.receipt_no}",
        f"ห้อง: {unit.unit_number if unit else '-'}",
        f"จำนวนเงิน: ฿{format_baht(receipt.amount_satang)}",
        f"วันที่: {format_thai_date(receipt.issued_at)}",
        "",
        "ขอบคุณที่ชำระเงิน",
        "Thank you for your payment.",
    ])


def is_payment_request(text: str) -> bool:
    lowered = text.lower()
    return any(keyword in lowered for keyword in PAYMENT_KEYWORDS)


def is_maintenance_report(text: str) -> bool:
    lowered = text.lower()
    return any(keyword in lowered for keyword in MAINTENANCE_KEYWORDS)


def maintenance_received_text(unit_number: str) -> str:
    return f"รับแจ้งซ่อมเรียบร้อยแล้วค่ะ ห้อง {unit_number}\nMaintenance request received for unit {unit_number}. Thank you!"


class LineService:
    """Service for LINE webhook, contacts and outgoing messages."""

    def __init__(
        self,
        stores: Stores,
        audit: AuditLogger,
        invoices: InvoiceService,
        receipts: ReceiptService,
        line_client_factory: Callable[[str], LineClient] = LineClient,
        config: BillingConfig | None = None,
        maintenance: MaintenanceService | None = None,
    ):
        self.stores = stores
        self.gate = AccessGate(stores)
        self.audit = audit
        self.invoices = invoices
        self.receipts = receipts
        self.line_client_factory = line_client_factory
        self.config = config or BillingConfig()
        self.maintenance = maintenance or MaintenanceService(stores, audit, self.config.timezone)

    # =========================================================================
    # Webhook
    # =========================================================================

    def identify_project(self, body: bytes, signature: str | None) -> Project:
        """
        Project whose channel secret signed this delivery.

        Raises:
            BusinessRuleError: Signature missing or matching no project
        """
        if not signature:
            raise BusinessRuleError("Missing signature", code="INVALID_SIGNATURE")

        for project in self.stores.projects.list_line_enabled():
            if verify_signature(body, signature, project.line_channel_secret):
                return project

        logger.warning("LINE webhook signature matched no project")
        raise BusinessRuleError("Invalid signature", code="INVALID_SIGNATURE")

    def handle_webhook(self, body: bytes, signature: str | None) -> int:
        """
        Verify and process a webhook delivery.

        Returns:
            Number of events handled

        Raises:
            BusinessRuleError: Bad signature or malformed body
        """
        project = self.identify_project(body, signature)

        try:
            payload = json.loads(body)
        except ValueError:
            raise BusinessRuleError("Invalid webhook payload")

        client = self.line_client_factory(project.line_access_token)
        handled = 0
        for event in payload.get("events") or []:
            if self._handle_event(project, client, event):
                handled += 1
        return handled

    def _handle_event(self, project: Project, client: LineClient, event: dict[str, Any]) -> bool:
        user_id = (event.get("source") or {}).get("userId")
        if not user_id:
            return False

        event_type = event.get("type")
        reply_token = event.get("replyToken")
        contact = self.stores.line_contacts.find(project.id, user_id)

        if event_type == "follow":
            profile = client.get_profile(user_id)
            if contact is None:
                contact = self._create_contact(project, user_id, profile)
                self._reply(client, reply_token, [
                    text_message(welcome_text(profile.display_name if profile else "", project.name)),
                ])
            elif profile is not None:
                self.stores.line_contacts.update(contact.id, {
                    "display_name": profile.display_name,
                    "picture_url": profile.picture_url,
                    "status_message": profile.status_message,
                })
            return True

        if contact is None:
            contact = self._create_contact(project, user_id, client.get_profile(user_id))

        message = event.get("message")
        if event_type != "message" or not message:
            return True

        message_type = message.get("type", "unknown")
        self.stores.line_messages.insert({
            "line_contact_id": contact.id,
            "direction": MessageDirection.INCOMING,
            "message_type": message_type,
            "content": message.get("text"),
            "media_ref": message.get("id") if message_type == "image" else None,
        })

        text = (message.get("text") or "") if message_type == "text" else ""
        if is_maintenance_report(text):
            self._reply(client, reply_token, self._maintenance_reply(project, contact, text, message.get("id")))
        elif is_payment_request(text):
            self._reply(client, reply_token, self._payment_reply(project, contact))
        return True

    def _create_contact(self, project: Project, user_id: str, profile) -> LineContact:
        contact = self.stores.line_contacts.insert({
            "project_id": project.id,
            "line_user_id": user_id,
            "display_name": profile.display_name if profile else "Unknown User",
            "picture_url": profile.picture_url if profile else None,
            "status_message": profile.status_message if profile else None,
        })
        logger.info(f"New LINE contact {contact.id} for project {project.id}")
        return contact

    def _maintenance_reply(self, project: Project, contact: LineContact, text: str, message_id: str | None) -> list[dict]:
        tenant = self.stores.tenants.get(contact.tenant_id) if contact.tenant_id else None
        if tenant is None:
            return [text_message(NOT_REGISTERED_TEXT)]

        self.maintenance.create_from_line(tenant, project.id, text, message_id)
        unit = self.stores.units.get(tenant.unit_id)
        return [text_message(maintenance_received_text(unit.unit_number if unit else "-"))]

    def _payment_reply(self, project: Project, contact: LineContact) -> list[dict]:
        if contact.tenant_id is None:
            return [text_message(NOT_REGISTERED_TEXT)]

        unpaid = self.stores.invoices.list_payable_for_tenant(contact.tenant_id)
        if not unpaid:
            return [text_message(NO_UNPAID_TEXT)]
        if project.liff_id:
            return [liff_flex_message(len(unpaid), project.liff_id)]
        return [text_message(unpaid_text(len(unpaid)))]

    def _reply(self, client: LineClient, reply_token: str | None, messages: list[dict]) -> None:
        if not reply_token:
            return
        try:
            client.reply(reply_token, messages)
        except UpstreamError as e:
            # Reply tokens are single-use, so a failed reply is dropped
            logger.warning(f"LINE reply failed: {e}")

    # =========================================================================
    # Contacts
    # =========================================================================

    def list_contacts(self, owner_id: UUID, project_id: UUID | None = None) -> list[dict]:
        """Contacts with their linked tenant and latest message."""
        if project_id is not None:
            project_ids = [self.gate.project(owner_id, project_id).id]
        else:
            project_ids = self.gate.project_ids(owner_id)

        result = []
        for contact in self.stores.line_contacts.list_for_projects(project_ids):
            tenant = self.stores.tenants.get(contact.tenant_id) if contact.tenant_id else None
            latest = self.stores.line_messages.list_for_contact(contact.id, limit=1)
            result.append({
                **contact.model_dump(mode="json"),
                "tenant": {"id": str(tenant.id), "name": tenant.name, "name_th": tenant.name_th} if tenant else None,
                "last_message": latest[0].model_dump(mode="json") if latest else None,
            })
        return result

    def link_tenant(self, owner_id: UUID, contact_id: UUID, data: LineContactLink) -> LineContact:
        """
        Link a contact to a tenant of the same project, or unlink with None.

        Raises:
            NotFoundError: Contact missing/foreign, or tenant not in the contact's project
        """
        contact, _ = self.gate.line_contact(owner_id, contact_id)

        if data.tenant_id is not None:
            tenant = self.stores.tenants.get(data.tenant_id)
            unit = self.stores.units.get(tenant.unit_id) if tenant else None
            if unit is None or unit.project_id != contact.project_id:
                raise NotFoundError("Tenant", data.tenant_id, message="Tenant not found in this project")

        updated = self.stores.line_contacts.update(contact_id, {"tenant_id": data.tenant_id})
        self.audit.log_change(
            "line_contact", contact_id, AuditAction.UPDATE,
            {"tenant_id": {
                "old": str(contact.tenant_id) if contact.tenant_id else None,
                "new": str(data.tenant_id) if data.tenant_id else None,
            }},
            user_id=owner_id,
        )
        return updated

    def messages(self, owner_id: UUID, contact_id: UUID, limit: int = 100) -> list[LineMessage]:
        self.gate.line_contact(owner_id, contact_id)
        return self.stores.line_messages.list_for_contact(contact_id, limit=limit)

    # =========================================================================
    # Outgoing
    # =========================================================================

    def _tenant_contact(self, tenant_id: UUID) -> LineContact:
        contact = self.stores.line_contacts.find_for_tenant(tenant_id)
        if contact is None:
            raise NotFoundError("LINE contact", message="No LINE contact linked to this tenant")
        return contact

    def _push_text(self, contact: LineContact, text: str) -> LineMessage:
        """
        Raises:
            NotFoundError: The contact's project has no LINE access token
            UpstreamError: LINE rejected the push
        """
        project = self.stores.projects.get(contact.project_id)
        if project is None or not project.line_access_token:
            raise NotFoundError("LINE contact", message="LINE contact or access token not found")

        self.line_client_factory(project.line_access_token).push(contact.line_user_id, [text_message(text)])

        return self.stores.line_messages.insert({
            "line_contact_id": contact.id,
            "direction": MessageDirection.OUTGOING,
            "message_type": "text",
            "content": text,
        })

    def send(self, owner_id: UUID, data: LineSendRequest) -> LineMessage:
        """
        Push a free-text message, an invoice summary or a receipt summary.

        Documents go to the tenant's linked contact and are marked as sent.

        Raises:
            NotFoundError: Document or contact missing/foreign, or no linked contact
            BusinessRuleError: Neither a document nor a contact and message given
        """
        if data.invoice_id is not None:
            invoice, _ = self.gate.invoice(owner_id, data.invoice_id)
            contact = self._tenant_contact(invoice.tenant_id)
            sent = self._push_text(contact, invoice_text(invoice, self.stores.units.get(invoice.unit_id)))
            self.invoices.mark_sent_via_line(invoice.id)
            return sent

        if data.receipt_id is not None:
            receipt, invoice, _ = self.gate.receipt(owner_id, data.receipt_id)
            if data.line_contact_id is not None:
                contact, _ = self.gate.line_contact(owner_id, data.line_contact_id)
            else:
                contact = self._tenant_contact(invoice.tenant_id)
            sent = self._push_text(contact, receipt_text(receipt, self.stores.units.get(invoice.unit_id)))
            self.receipts.mark_sent_via_line(receipt.id)
            return sent

        if data.line_contact_id is None or not data.message:
            raise BusinessRuleError("line_contact_id and message are required")

        contact, _ = self.gate.line_contact(owner_id, data.line_contact_id)
        return self._push_text(contact, data.message)

    def push_receipt(self, receipt: Receipt, invoice: Invoice) -> bool:
        """
        Push a new receipt to the tenant, if the tenant has a linked contact.

        Returns:
            Whether the receipt was sent
        """
        contact = self.stores.line_contacts.find_for_tenant(invoice.tenant_id)
        if contact is None:
            return False

        self._push_text(contact, receipt_text(receipt, self.stores.units.get(invoice.unit_id)))
        self.receipts.mark_sent_via_line(receipt.id)
        return True

    def send_signing_link(self, owner_id: UUID, contract_id: UUID, base_url: str | None = None) -> LineMessage:
        """
        Push a contract's signing link to the tenant's linked contact.

        The link points at the public signing page under base_url, or under
        the configured public origin when none is given.

        Raises:
            NotFoundError: Contract missing
            ForbiddenError: Contract belongs to another owner
            BusinessRuleError: Contract not awaiting the tenant, tenant has no
                linked contact, or the project has no LINE access token
            UpstreamError: LINE rejected the push
        """
        contract, project = self.gate.contract(owner_id, contract_id)
        if contract.status != ContractStatus.PENDING_TENANT:
            raise BusinessRuleError("Contract must be pending tenant signature")

        contact = self.stores.line_contacts.find_for_tenant(contract.tenant_id)
        if contact is None:
            raise BusinessRuleError("Tenant has no LINE contact linked")
        if not project.line_access_token:
            raise BusinessRuleError("LINE OA not configured for this project")

        origin = (base_url or self.config.public_base_url).rstrip("/")
        signing_url = f"{origin}/sign/{contract.signing_token}"
        message = signing_flex_message(contract, project, self.stores.units.get(contract.unit_id), signing_url)

        self.line_client_factory(project.line_access_token).push(contact.line_user_id, [message])
        logger.info(f"Sent signing link for contract {contract.contract_no} to contact {contact.id}")

        return self.stores.line_messages.insert({
            "line_contact_id": contact.id,
            "direction": MessageDirection.OUTGOING,
            "message_type": "flex",
            "content": f"Contract signing link sent: {contract.contract_no}",
        })

    def fetch_image(self, owner_id: UUID, project_id: UUID, message_id: str) -> MessageContent:
        """
        Image content of an incoming message, proxied from LINE.

        Raises:
            NotFoundError: Project missing, foreign or without LINE
            UpstreamError: LINE content expired or unavailable
        """
        project = self.stores.projects.get(project_id)
        if project is None or project.owner_id != owner_id or not project.line_access_token:
            raise NotFoundError("Project", project_id, message="Project not found or LINE not configured")
        return self.line_client_factory(project.line_access_token).get_content(message_id)

    # =========================================================================
    # LIFF
    # =========================================================================

    def liff_invoices(self, line_user_id: str) -> dict:
        """
        Payable invoices of the tenant linked to a LINE user.

        Raises:
            NotFoundError: LINE user is not linked to a tenant
        """
        contact = self.stores.line_contacts.find_linked_by_line_user(line_user_id)
        tenant = self.stores.tenants.get(contact.tenant_id) if contact else None
        if tenant is None:
            raise NotFoundError("Tenant", message="Tenant not linked")

        project = self.stores.projects.get(contact.project_id)
        invoices = self.stores.invoices.list_payable_for_tenant(tenant.id)
        units = {}
        for invoice in invoices:
            if invoice.unit_id not in units:
                units[invoice.unit_id] = self.stores.units.get(invoice.unit_id)

        return {
            "tenant": {"id": tenant.id, "name": tenant.name, "name_th": tenant.name_th},
            "project": {"id": project.id, "name": project.name, "name_th": project.name_th},
            "invoices": [
                {
                    "id": invoice.id,
                    "invoice_no": invoice.invoice_no,
                    "total_amount_satang": invoice.total_amount_satang,
                    "paid_amount_satang": invoice.paid_amount_satang,
                    "billing_month": invoice.billing_month,
                    "due_date": invoice.due_date,
                    "status": invoice.status,
                    "unit_number": units[invoice.unit_id].unit_number if units[invoice.unit_id] else None,
                }
                for invoice in invoices
            ],
        }
