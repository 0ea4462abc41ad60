"""
Monthly billing and collection summary.

Aggregates an owner's invoices by billing month and flags two kinds of
problems for follow-up:
- missing payments: a non-cancelled invoice without any verified payment
- potential duplicates: an invoice whose paid amount exceeds its total
"""

from collections import defaultdict
from decimal import Decimal, ROUND_HALF_UP
from uuid import UUID

from core.access import AccessGate
from core.models import Invoice, InvoiceStatus, InvoiceType, PaymentStatus
from core.stores import Stores

_STATUS_COUNTERS = {
    InvoiceStatus.PAID: "paid_count",
    InvoiceStatus.PARTIAL: "partial_count",
    InvoiceStatus.OVERDUE: "overdue_count",
    InvoiceStatus.PENDING: "pending_count",
}


def collection_rate(paid_satang: int, invoiced_satang: int) -> float:
    """Percent collected, one decimal, half-up. Zero when nothing was invoiced."""
    if invoiced_satang <= 0:
        return 0.0
    rate = Decimal(paid_satang) * 100 / Decimal(invoiced_satang)
    return float(rate.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _empty_month(billing_month: str) -> dict:
    return {
        "billing_month": billing_month,
        "total_invoiced": 0,
        "total_paid": 0,
        "total_outstanding": 0,
        "invoice_count": 0,
        "paid_count": 0,
        "partial_count": 0,
        "overdue_count": 0,
        "pending_count": 0,
        "receipts_count": 0,
        "missing_payments": [],
        "potential_duplicates": [],
        "by_type": {t.value: {"invoiced": 0, "paid": 0} for t in InvoiceType},
        "by_project": {},
    }


class SummaryService:
    """Read-only reporting over invoices, payments and receipts."""

    def __init__(self, stores: Stores):
        self.stores = stores
        self.gate = AccessGate(stores)

    def monthly(
        self,
        owner_id: UUID,
        project_id: UUID | None = None,
        start_month: str | None = None,
        end_month: str | None = None,
    ) -> dict:
        """
        Summary per billing month, newest first, plus overall totals.

        Month bounds are inclusive and compare as YYYY-MM strings.
        """
        if project_id is not None:
            projects = [self.gate.project(owner_id, project_id)]
        else:
            projects = self.stores.projects.list_for_owner(owner_id)
        project_names = {p.id: p.name for p in projects}
        project_ids = list(project_names)

        invoices = [
            inv for inv in self.stores.invoices.list_for_projects(project_ids)
            if (start_month is None or inv.billing_month >= start_month)
            and (end_month is None or inv.billing_month <= end_month)
        ]
        invoices.sort(key=lambda inv: inv.billing_month, reverse=True)

        verified = defaultdict(list)
        for payment in self.stores.payments.list_for_projects(project_ids, status=PaymentStatus.VERIFIED):
            verified[payment.invoice_id].append(payment)
        with_receipt = {r.invoice_id for r in self.stores.receipts.list_for_projects(project_ids)}
        units = {u.id: u.unit_number for u in self.stores.units.list_for_projects(project_ids)}

        months: dict[str, dict] = {}
        for invoice in invoices:
            data = months.setdefault(invoice.billing_month, _empty_month(invoice.billing_month))
            self._add_invoice(
                data, invoice, project_names.get(invoice.project_id, ""),
                units.get(invoice.unit_id, ""), verified[invoice.id], invoice.id in with_receipt,
            )

        summary_by_month = []
        for data in months.values():
            data["collection_rate"] = collection_rate(data["total_paid"], data["total_invoiced"])
            data["by_project"] = [
                {
                    "project_id": str(project_id),
                    "project_name": values["name"],
                    "total_invoiced": values["invoiced"],
                    "total_paid": values["paid"],
                    "collection_rate": collection_rate(values["paid"], values["invoiced"]),
                }
                for project_id, values in data["by_project"].items()
            ]
            summary_by_month.append(data)

        overdue = [inv for inv in invoices if inv.status == InvoiceStatus.OVERDUE]
        average_rate = 0.0
        if summary_by_month:
            total_rate = sum(Decimal(str(m["collection_rate"])) for m in summary_by_month)
            average_rate = float(
                (total_rate / len(summary_by_month)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
            )

        overall_stats = {
            "total_revenue": sum(inv.paid_amount_satang for inv in invoices),
            "total_invoiced": sum(inv.total_amount_satang for inv in invoices),
            "total_outstanding": sum(inv.balance_due_satang for inv in invoices),
            "total_invoices": len(invoices),
            "paid_invoices": sum(1 for inv in invoices if inv.status == InvoiceStatus.PAID),
            "overdue_invoices": len(overdue),
            "overdue_amount": sum(inv.balance_due_satang for inv in overdue),
            "average_collection_rate": average_rate,
            "total_missing_payments": sum(len(m["missing_payments"]) for m in summary_by_month),
            "total_potential_duplicates": sum(len(m["potential_duplicates"]) for m in summary_by_month),
        }

        return {"summary_by_month": summary_by_month, "overall_stats": overall_stats}

    def _add_invoice(
        self,
        data: dict,
        invoice: Invoice,
        project_name: str,
        unit_number: str,
        verified_payments: list,
        has_receipt: bool,
    ) -> None:
        data["total_invoiced"] += invoice.total_amount_satang
        data["total_paid"] += invoice.paid_amount_satang
        data["total_outstanding"] += invoice.balance_due_satang
        data["invoice_count"] += 1

        counter = _STATUS_COUNTERS.get(invoice.status)
        if counter:
            data[counter] += 1
        if has_receipt:
            data["receipts_count"] += 1

        data["by_type"][invoice.type.value]["invoiced"] += invoice.total_amount_satang
        data["by_type"][invoice.type.value]["paid"] += invoice.paid_amount_satang

        per_project = data["by_project"].setdefault(
            invoice.project_id, {"name": project_name, "invoiced": 0, "paid": 0},
        )
        per_project["invoiced"] += invoice.total_amount_satang
        per_project["paid"] += invoice.paid_amount_satang

        tenant_name = invoice.tenant_snapshot.name if invoice.tenant_snapshot else None

        if not verified_payments and invoice.status != InvoiceStatus.CANCELLED:
            data["missing_payments"].append({
                "invoice_no": invoice.invoice_no,
                "tenant": tenant_name,
                "unit": unit_number,
                "amount": invoice.total_amount_satang,
                "due_date": invoice.due_date.isoformat(),
                "status": invoice.status.value,
            })

        if invoice.paid_amount_satang > invoice.total_amount_satang:
            data["potential_duplicates"].append({
                "invoice_no": invoice.invoice_no,
                "tenant": tenant_name,
                "unit": unit_number,
                "total_amount": invoice.total_amount_satang,
                "paid_amount": invoice.paid_amount_satang,
                "payments_count": len(verified_payments),
                "overpaid_by": invoice.paid_amount_satang - invoice.total_amount_satang,
            })
