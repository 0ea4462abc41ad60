"""Per-aggregate persistence."""

from dataclasses import dataclass

from clients.postgres_client import PostgresClient
from core.stores.contract_store import ContractStore
from core.stores.invoice_store import InvoiceStore
from core.stores.line_store import LineContactStore, LineMessageStore
from core.stores.maintenance_store import MaintenanceStore
from core.stores.meter_store import MeterStore
from core.stores.payment_store import PaymentStore, SlipStore
from core.stores.property_store import ProjectStore, TenantStore, UnitStore
from core.stores.receipt_store import ReceiptStore


@dataclass
class Stores:
    """Every store a service may need, built once at startup."""

    projects: ProjectStore
    units: UnitStore
    tenants: TenantStore
    meters: MeterStore
    invoices: InvoiceStore
    payments: PaymentStore
    slips: SlipStore
    receipts: ReceiptStore
    contracts: ContractStore
    line_contacts: LineContactStore
    line_messages: LineMessageStore
    maintenance: MaintenanceStore

    @classmethod
    def from_postgres(cls, postgres: PostgresClient) -> "Stores":
        return cls(
            projects=ProjectStore(postgres),
            units=UnitStore(postgres),
            tenants=TenantStore(postgres),
            meters=MeterStore(postgres),
            invoices=InvoiceStore(postgres),
            payments=PaymentStore(postgres),
            slips=SlipStore(postgres),
            receipts=ReceiptStore(postgres),
            contracts=ContractStore(postgres),
            line_contacts=LineContactStore(postgres),
            line_messages=LineMessageStore(postgres),
            maintenance=MaintenanceStore(postgres),
        )


__all__ = [
    "Stores",
    "ProjectStore", "UnitStore", "TenantStore",
    "MeterStore", "InvoiceStore", "PaymentStore", "SlipStore",
    "ReceiptStore", "ContractStore", "LineContactStore", "LineMessageStore",
    "MaintenanceStore",
]
