"""Service fixtures over the in-memory stores."""

from datetime import timedelta
from decimal import Decimal
from unittest.mock import Mock

import pytest

from clients.line_client import LineClient
from core.models import InvoiceIssue, InvoiceType, MeterReadingCreate, MeterType
from core.services.contract_service import ContractService
from core.services.invoice_service import InvoiceService
from core.services.line_service import LineService
from core.services.maintenance_service import MaintenanceService
from core.services.meter_service import MeterService
from core.services.payment_service import PaymentService
from core.services.project_service import ProjectService
from core.services.receipt_service import ReceiptService
from core.services.slip_service import SlipService
from core.services.tenant_service import TenantService


@pytest.fixture
def billing_month(today) -> str:
    return f"{today:%Y-%m}"


@pytest.fixture
def project_service(stores, audit):
    return ProjectService(stores, audit)


@pytest.fixture
def tenant_service(stores, audit, config):
    return TenantService(stores, audit, config.timezone)


@pytest.fixture
def meter_service(stores, audit, config):
    return MeterService(stores, audit, config.timezone)


@pytest.fixture
def invoice_service(stores, audit, event_bus, config):
    return InvoiceService(stores, audit, event_bus, config)


@pytest.fixture
def receipt_service(stores, audit, config):
    return ReceiptService(stores, audit, config)


@pytest.fixture
def payment_service(stores, audit, event_bus, storage, config):
    return PaymentService(stores, audit, event_bus, storage, config)


@pytest.fixture
def line_client():
    """LINE client handed out by the factory for every project."""
    return Mock(spec=LineClient)


@pytest.fixture
def line_client_factory(line_client):
    return Mock(return_value=line_client)


@pytest.fixture
def slip_service(stores, audit, storage, line_client_factory, config):
    return SlipService(stores, audit, storage, line_client_factory=line_client_factory, config=config)


@pytest.fixture
def contract_service(stores, audit, storage, config):
    return ContractService(stores, audit, storage, config)


@pytest.fixture
def line_service(stores, audit, invoice_service, receipt_service, line_client_factory, config):
    return LineService(stores, audit, invoice_service, receipt_service, line_client_factory, config)


@pytest.fixture
def maintenance_service(stores, audit, config):
    return MaintenanceService(stores, audit, config.timezone)


@pytest.fixture
def rent_invoice(invoice_service, test_user_id, unit, tenant, billing_month, today):
    """A PENDING rent invoice of ฿10,500.00 for the seeded tenant."""
    return invoice_service.create_for_unit(test_user_id, InvoiceIssue(
        unit_id=unit.id,
        type=InvoiceType.RENT,
        billing_month=billing_month,
        due_date=today + timedelta(days=7),
    ))


@pytest.fixture
def electricity_reading(meter_service, test_user_id, unit, tenant, billing_month, today):
    """150 units at the project's ฿8.00 rate."""
    return meter_service.record(test_user_id, MeterReadingCreate(
        unit_id=unit.id,
        type=MeterType.ELECTRICITY,
        billing_month=billing_month,
        previous_reading=Decimal("1000"),
        current_reading=Decimal("1150"),
        reading_date=today,
    ))
