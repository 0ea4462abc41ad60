"""
Payment slip service.

Slips are images of bank transfer confirmations. They arrive three ways:
attached by the owner to a payment, submitted by the tenant from the LIFF
page, or saved by the owner from an image the tenant sent in LINE chat.
The two tenant channels attach to the invoice's pending payment, creating
one for the outstanding balance when there is none.
"""

import logging
from typing import Callable
from uuid import UUID

from clients.line_client import LineClient
from clients.storage_client import StorageClient, decode_data_url, image_extension, slip_key
from core.access import AccessGate
from core.audit import AuditLogger, AuditAction
from core.config import BillingConfig
from core.exceptions import BusinessRuleError, NotFoundError, UpstreamError
from core.models import (
    Invoice, LiffSlipSubmit, LineSlipSave, Payment, PaymentMethod,
    PaymentSlip, PaymentStatus, SlipSource, SlipUpload,
)
from core.stores import Stores
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


class SlipService:
    """Service for payment slip operations."""

    def __init__(
        self,
        stores: Stores,
        audit: AuditLogger,
        storage: StorageClient,
        line_client_factory: Callable[[str], LineClient] = LineClient,
        config: BillingConfig | None = None,
    ):
        self.stores = stores
        self.gate = AccessGate(stores)
        self.audit = audit
        self.storage = storage
        self.line_client_factory = line_client_factory
        self.config = config or BillingConfig()

    def _store(
        self,
        payment: Payment,
        invoice_id: UUID,
        data: bytes,
        content_type: str,
        uploaded_by: str,
        source: SlipSource,
        file_name: str | None = None,
    ) -> PaymentSlip:
        key = slip_key(invoice_id, image_extension(content_type))
        self.storage.put(key, data, content_type)

        slip = self.stores.slips.insert({
            "payment_id": payment.id,
            "storage_key": key,
            "file_name": file_name or f"slip-{key.rsplit('/', 1)[-1]}",
            "content_type": content_type,
            "uploaded_by": uploaded_by,
            "source": source,
        })
        logger.info(f"Stored {source.value} slip {slip.id} for payment {payment.id}")
        return slip

    def _pending_payment(self, invoice: Invoice) -> Payment:
        """The invoice's pending payment, created for the outstanding balance if missing."""
        payment = self.stores.payments.find_pending_for_invoice(invoice.id)
        if payment is not None:
            return payment

        if invoice.balance_due_satang <= 0:
            raise BusinessRuleError(f"Invoice {invoice.invoice_no} has no outstanding balance")

        tenant = self.stores.tenants.get(invoice.tenant_id)
        return self.stores.payments.insert({
            "invoice_id": invoice.id,
            "tenant_id": invoice.tenant_id,
            "amount_satang": invoice.balance_due_satang,
            "method": PaymentMethod.TRANSFER,
            "status": PaymentStatus.PENDING,
            "paid_at": now_utc(),
            "invoice_snapshot": invoice.snapshot(),
            "tenant_snapshot": invoice.tenant_snapshot or (tenant.snapshot() if tenant else None),
        })

    def attach(self, owner_id: UUID, payment_id: UUID, data: SlipUpload) -> PaymentSlip:
        """
        Attach an uploaded slip image to a payment.

        Raises:
            NotFoundError: Payment missing or foreign
            BusinessRuleError: Not an image data URL, or too large
        """
        payment, invoice, _ = self.gate.payment(owner_id, payment_id)
        image = decode_data_url(data.base64_image, self.config.max_upload_bytes)

        slip = self._store(
            payment, invoice.id, image.data, image.content_type,
            uploaded_by=str(owner_id), source=SlipSource.MANUAL, file_name=data.file_name,
        )
        self.audit.log_change(
            "payment_slip", slip.id, AuditAction.CREATE,
            {"created": {"payment_id": str(payment.id), "storage_key": slip.storage_key}},
            user_id=owner_id,
        )
        return slip

    def list_for_payment(self, owner_id: UUID, payment_id: UUID) -> list[dict]:
        """Slips with presigned download URLs."""
        self.gate.payment(owner_id, payment_id)
        return [
            {
                **slip.model_dump(mode="json"),
                "url": self.storage.presigned_url(
                    slip.storage_key, self.config.presigned_url_expiry_seconds,
                ),
            }
            for slip in self.stores.slips.list_for_payment(payment_id)
        ]

    def delete(self, owner_id: UUID, payment_id: UUID, slip_id: UUID) -> None:
        """
        Delete a slip. A storage failure is logged and the record is removed anyway.

        Raises:
            NotFoundError: Payment or slip missing, foreign, or not related
        """
        self.gate.payment(owner_id, payment_id)
        slip = self.stores.slips.get(slip_id)
        if slip is None or slip.payment_id != payment_id:
            raise NotFoundError("Slip", slip_id)

        try:
            self.storage.delete(slip.storage_key)
        except UpstreamError as e:
            logger.warning(f"Could not delete slip object {slip.storage_key}: {e}")

        self.stores.slips.delete(slip_id)
        self.audit.log_change(
            "payment_slip", slip_id, AuditAction.DELETE,
            {"deleted": slip.model_dump(mode="json")}, user_id=owner_id,
        )

    def submit_from_liff(self, data: LiffSlipSubmit) -> dict:
        """
        Tenant-submitted slip from the LIFF page.

        The LINE user must be linked to a tenant and the invoice must be one
        of that tenant's payable invoices.

        Returns:
            {"payment_id", "slip_id", "message"}

        Raises:
            NotFoundError: Tenant not linked, or invoice not payable
            BusinessRuleError: Not an image data URL, or too large
        """
        contact = self.stores.line_contacts.find_linked_by_line_user(data.line_user_id)
        tenant = self.stores.tenants.get(contact.tenant_id) if contact else None
        if tenant is None:
            raise NotFoundError("Tenant", message="Tenant not linked")

        invoice = self.stores.invoices.get(data.invoice_id)
        if invoice is None or invoice.tenant_id != tenant.id or not invoice.is_payable:
            raise NotFoundError("Invoice", data.invoice_id, message="Invoice not found or not payable")

        image = decode_data_url(data.base64_image, self.config.max_upload_bytes)
        payment = self._pending_payment(invoice)
        slip = self._store(
            payment, invoice.id, image.data, image.content_type,
            uploaded_by=str(tenant.id), source=SlipSource.LIFF,
        )
        self.audit.log_change(
            "payment_slip", slip.id, AuditAction.CREATE,
            {"created": {"payment_id": str(payment.id), "source": SlipSource.LIFF.value}},
        )
        return {
            "payment_id": payment.id,
            "slip_id": slip.id,
            "message": "สลิปถูกส่งเรียบร้อยแล้ว รอการตรวจสอบ",
        }

    def save_from_line_chat(self, owner_id: UUID, data: LineSlipSave) -> dict:
        """
        Save an image the tenant sent in chat as a slip for an invoice.

        Returns:
            {"payment_id", "slip_id"}

        Raises:
            NotFoundError: Project missing, foreign or without LINE, or the
                invoice is not in the project
            BusinessRuleError: Invoice is paid or cancelled
            UpstreamError: LINE content expired (404), token rejected (401),
                or any other LINE failure (502)
        """
        project = self.stores.projects.get(data.project_id)
        if project is None or project.owner_id != owner_id or not project.line_access_token:
            raise NotFoundError("Project", data.project_id, message="Project not found or LINE not configured")

        invoice = self.stores.invoices.get(data.invoice_id)
        if invoice is None or invoice.project_id != project.id:
            raise NotFoundError("Invoice", data.invoice_id)
        if not invoice.is_payable:
            raise BusinessRuleError(f"Invoice {invoice.invoice_no} is {invoice.status.value} and cannot take a slip")

        content = self.line_client_factory(project.line_access_token).get_content(data.message_id)

        payment = self._pending_payment(invoice)
        slip = self._store(
            payment, invoice.id, content.data, content.content_type,
            uploaded_by=str(owner_id), source=SlipSource.LINE_CHAT,
        )
        self.audit.log_change(
            "payment_slip", slip.id, AuditAction.CREATE,
            {"created": {"payment_id": str(payment.id), "source": SlipSource.LINE_CHAT.value}},
            user_id=owner_id,
        )
        return {"payment_id": payment.id, "slip_id": slip.id}
