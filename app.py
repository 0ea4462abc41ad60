"""
Application assembly.

``build_services`` wires the services over a set of stores and clients, and
``create_app`` mounts them behind the middleware stack. ``production_app``
does both with infrastructure resolved from Vault:

    uvicorn app:production_app --factory
"""

import logging
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI

from api.admin import create_admin_router
from api.contracts import create_contracts_router
from api.errors import register_error_handlers
from api.invoices import create_invoices_router
from api.line import create_line_router
from api.maintenance import create_maintenance_router
from api.meters import create_meters_router
from api.middleware import RequestIDMiddleware
from api.payments import create_payments_router
from api.properties import create_properties_router
from api.receipts import create_receipts_router
from auth.config import AuthConfig
from auth.security_middleware import AuthMiddleware
from auth.session import SessionManager
from clients.storage_client import StorageClient
from core.audit import AuditLogger
from core.config import BillingConfig
from core.event_bus import EventBus
from core.handlers.receipt_issued_handler import handle_receipt_issued
from core.services.contract_service import ContractService
from core.services.invoice_service import InvoiceService
from core.services.line_service import LineService
from core.services.maintenance_service import MaintenanceService
from core.services.meter_service import MeterService
from core.services.payment_service import PaymentService
from core.services.project_service import ProjectService
from core.services.receipt_service import ReceiptService
from core.services.slip_service import SlipService
from core.services.snapshot_backfill import SnapshotBackfill
from core.services.summary_service import SummaryService
from core.services.tenant_service import TenantService
from core.services.upload_service import UploadService
from core.stores import Stores

logger = logging.getLogger(__name__)


def build_services(
    stores: Stores,
    audit: AuditLogger,
    storage: StorageClient,
    config: BillingConfig | None = None,
    line_client_factory=None,
) -> dict:
    """Construct every service and subscribe the event handlers."""
    config = config or BillingConfig()
    event_bus = EventBus()
    line_kwargs = {"line_client_factory": line_client_factory} if line_client_factory else {}

    project = ProjectService(stores, audit)
    invoice = InvoiceService(stores, audit, event_bus, config)
    receipt = ReceiptService(stores, audit, config)
    maintenance = MaintenanceService(stores, audit, config.timezone)
    line = LineService(stores, audit, invoice, receipt, config=config, maintenance=maintenance, **line_kwargs)

    event_bus.subscribe("ReceiptIssued", handle_receipt_issued(line))

    return {
        "config": config,
        "event_bus": event_bus,
        "project": project,
        "tenant": TenantService(stores, audit, config.timezone),
        "meter": MeterService(stores, audit, config.timezone),
        "invoice": invoice,
        "receipt": receipt,
        "payment": PaymentService(stores, audit, event_bus, storage, config),
        "slip": SlipService(stores, audit, storage, config=config, **line_kwargs),
        "contract": ContractService(stores, audit, storage, config),
        "line": line,
        "maintenance": maintenance,
        "summary": SummaryService(stores),
        "upload": UploadService(storage, project, config),
        "backfill": SnapshotBackfill(stores),
    }


def create_app(services: dict, session_manager: SessionManager) -> FastAPI:
    """FastAPI app with auth middleware, error handlers and every router."""
    app = FastAPI(title="Leasehold")
    app.add_middleware(AuthMiddleware, session_manager=session_manager)
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)

    for factory in (
        create_properties_router,
        create_meters_router,
        create_invoices_router,
        create_payments_router,
        create_receipts_router,
        create_contracts_router,
        create_line_router,
        create_maintenance_router,
        create_admin_router,
    ):
        app.include_router(factory(services), prefix="/api")

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


def production_app() -> FastAPI:
    """App wired to Postgres, Valkey and object storage from Vault."""
    from clients.postgres_client import PostgresClient
    from clients.valkey_client import ValkeyClient
    from clients.vault_client import get_database_url, get_storage_config, get_valkey_url

    load_dotenv(Path(__file__).parent / ".env")
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    postgres = PostgresClient(get_database_url())
    stores = Stores.from_postgres(postgres)
    storage = StorageClient(**get_storage_config())
    services = build_services(stores, AuditLogger(postgres), storage)

    session_manager = SessionManager(ValkeyClient(get_valkey_url()), AuthConfig())
    logger.info("Leasehold app assembled")
    return create_app(services, session_manager)
