"""
Snapshot backfill.

Records created before snapshots existed carry none. This fills them in
from the live records: invoices get a tenant snapshot, payments and receipts
get invoice and tenant snapshots. A record counts as migrated once its
snapshots are non-null, so running the backfill again only touches what is
still missing.
"""

import logging
from dataclasses import dataclass, asdict
from uuid import UUID

from core.models import Invoice
from core.stores import Stores

logger = logging.getLogger(__name__)


@dataclass
class BackfillResult:
    invoices_updated: int = 0
    payments_updated: int = 0
    receipts_updated: int = 0
    total_invoices: int = 0
    total_payments: int = 0
    total_receipts: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


class SnapshotBackfill:
    """Idempotent migration filling missing snapshots."""

    def __init__(self, stores: Stores):
        self.stores = stores

    def _tenant_snapshot(self, invoice: Invoice):
        if invoice.tenant_snapshot is not None:
            return invoice.tenant_snapshot
        tenant = self.stores.tenants.get(invoice.tenant_id)
        return tenant.snapshot() if tenant else None

    def run(self, project_ids: list[UUID] | None = None) -> BackfillResult:
        """
        Fill missing snapshots.

        Args:
            project_ids: Limit to these projects. None means every project.

        Returns:
            Counts of records found and updated per kind
        """
        result = BackfillResult()

        # Invoices first so payments and receipts can copy their snapshot
        invoices = self.stores.invoices.list_missing_tenant_snapshot(project_ids)
        result.total_invoices = len(invoices)
        for invoice in invoices:
            snapshot = self._tenant_snapshot(invoice)
            if snapshot is None:
                logger.info(f"Skipping invoice {invoice.id} - tenant not found")
                continue
            self.stores.invoices.update(invoice.id, {"tenant_snapshot": snapshot})
            result.invoices_updated += 1

        payments = self.stores.payments.list_missing_snapshots(project_ids)
        result.total_payments = len(payments)
        for payment in payments:
            invoice = self.stores.invoices.get(payment.invoice_id)
            if invoice is None:
                logger.info(f"Skipping payment {payment.id} - invoice not found")
                continue
            self.stores.payments.update(payment.id, {
                "invoice_snapshot": payment.invoice_snapshot or invoice.snapshot(),
                "tenant_snapshot": payment.tenant_snapshot or self._tenant_snapshot(invoice),
            })
            result.payments_updated += 1

        receipts = self.stores.receipts.list_missing_snapshots(project_ids)
        result.total_receipts = len(receipts)
        for receipt in receipts:
            invoice = self.stores.invoices.get(receipt.invoice_id)
            if invoice is None:
                logger.info(f"Skipping receipt {receipt.id} - invoice not found")
                continue
            self.stores.receipts.update(receipt.id, {
                "invoice_snapshot": receipt.invoice_snapshot or invoice.snapshot(),
                "tenant_snapshot": receipt.tenant_snapshot or self._tenant_snapshot(invoice),
            })
            result.receipts_updated += 1

        logger.info(
            f"Snapshot backfill complete: {result.invoices_updated} invoices, "
            f"{result.payments_updated} payments, {result.receipts_updated} receipts"
        )
        return result
