"""Billing arithmetic.

Pure functions over domain models: rent and utility line items, withholding
tax, meter usage, settlement status and the active-tenant rules. Nothing here
touches the database, so the invoice and payment services share one
definition of every amount.

Money is integer satang. Percentages are basis points (10000 = 100%).
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Iterable

from core.models.invoice import InvoiceStatus, InvoiceType, LineItem
from core.models.meter import MeterReading, MeterType
from core.models.tenant import Tenant, TenantStatus

BPS_SCALE = 10000

RENT_DESCRIPTION = "ค่าเช่า / Rent"
COMMON_FEE_DESCRIPTION = "ค่าส่วนกลาง / Common Fee"
UTILITY_DESCRIPTIONS = {
    MeterType.ELECTRICITY: "ค่าไฟฟ้า / Electricity",
    MeterType.WATER: "ค่าน้ำ / Water",
}


def _round_satang(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def apply_bps(amount_satang: int, bps: int) -> int:
    """Portion of an amount given in basis points, rounded half-up to satang."""
    return _round_satang(Decimal(amount_satang) * bps / BPS_SCALE)


def format_baht(amount_satang: int) -> str:
    """Plain baht string with two decimals, e.g. 950000 -> '9,500.00'."""
    return f"{Decimal(amount_satang) / 100:,.2f}"


# =============================================================================
# Meter
# =============================================================================


def meter_usage(previous: Decimal, current: Decimal) -> Decimal:
    """Consumption between two readings. A meter rollback yields zero, not a credit."""
    return max(Decimal("0"), Decimal(current) - Decimal(previous))


def meter_amount(usage: Decimal, rate_satang: int) -> int:
    """Charge for metered usage, rounded half-up to whole satang."""
    return _round_satang(Decimal(usage) * rate_satang)


# =============================================================================
# Line items
# =============================================================================


def rent_amount(tenant: Tenant) -> int:
    """Base rent minus the fixed discount and the percentage discount."""
    percent_discount = apply_bps(tenant.base_rent_satang, tenant.discount_bps)
    return tenant.base_rent_satang - tenant.discount_amount_satang - percent_discount


def rent_line_items(tenant: Tenant) -> list[LineItem]:
    items = [LineItem(description=RENT_DESCRIPTION, amount_satang=rent_amount(tenant))]
    if tenant.common_fee_satang > 0:
        items.append(LineItem(
            description=COMMON_FEE_DESCRIPTION,
            amount_satang=tenant.common_fee_satang,
        ))
    return items


def utility_line_items(readings: Iterable[MeterReading]) -> list[LineItem]:
    """One line per reading, carrying usage and rate for display."""
    items = []
    for reading in readings:
        label = UTILITY_DESCRIPTIONS[reading.type]
        items.append(LineItem(
            description=(
                f"{label} ({reading.usage.normalize():f} units x "
                f"฿{format_baht(reading.rate_satang)})"
            ),
            amount_satang=reading.amount_satang,
            usage=reading.usage,
            rate_satang=reading.rate_satang,
        ))
    return items


def withholding_tax(subtotal_satang: int, tenant: Tenant) -> int:
    """Tax the tenant withholds. Only companies withhold."""
    if not tenant.is_company:
        return 0
    return apply_bps(subtotal_satang, tenant.withholding_tax_bps)


@dataclass
class InvoiceAmounts:
    """Computed content of an invoice before it is numbered and stored."""

    line_items: list[LineItem] = field(default_factory=list)
    subtotal_satang: int = 0
    withholding_tax_bps: int = 0
    withholding_tax_satang: int = 0
    total_amount_satang: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.line_items


def compute_invoice(
    tenant: Tenant,
    readings: Iterable[MeterReading],
    invoice_type: InvoiceType,
) -> InvoiceAmounts:
    """
    Compute line items and totals for one tenant and billing month.

    Args:
        tenant: Tenant being billed (rent terms and tax status)
        readings: Meter readings of the tenant's unit for the month
        invoice_type: Which charges to include

    Returns:
        InvoiceAmounts. total = subtotal - withholding tax, not clamped.
    """
    items: list[LineItem] = []
    if invoice_type.includes_rent:
        items.extend(rent_line_items(tenant))
    if invoice_type.includes_utilities:
        items.extend(utility_line_items(readings))

    subtotal = sum(item.amount_satang for item in items)
    tax = withholding_tax(subtotal, tenant)

    return InvoiceAmounts(
        line_items=items,
        subtotal_satang=subtotal,
        withholding_tax_bps=tenant.withholding_tax_bps if tenant.is_company else 0,
        withholding_tax_satang=tax,
        total_amount_satang=subtotal - tax,
    )


# =============================================================================
# Settlement
# =============================================================================


def settlement_status(paid_satang: int, total_satang: int) -> InvoiceStatus:
    """Status implied by the verified amount paid against the total."""
    if paid_satang >= total_satang:
        return InvoiceStatus.PAID
    if paid_satang > 0:
        return InvoiceStatus.PARTIAL
    return InvoiceStatus.PENDING


# =============================================================================
# Active tenant rules
# =============================================================================


class ActiveTenantRule(str, Enum):
    """
    Which tenants count as billable on a given day.

    CONTRACT_END is used for bulk issuance: any tenant whose contract has not
    ended yet, including ones that have not started. CONTRACT_WINDOW is used
    for single issuance and meter recording: the contract must be running.
    Both rules require status ACTIVE. A missing start date counts as started,
    a missing end date as open-ended.
    """

    CONTRACT_END = "contract_end"
    CONTRACT_WINDOW = "contract_window"


def is_active_tenant(tenant: Tenant, today: date, rule: ActiveTenantRule) -> bool:
    if tenant.status != TenantStatus.ACTIVE:
        return False
    if tenant.contract_end is not None and tenant.contract_end < today:
        return False
    if rule == ActiveTenantRule.CONTRACT_WINDOW:
        if tenant.contract_start is not None and tenant.contract_start > today:
            return False
    return True


def select_active_tenant(
    tenants: Iterable[Tenant],
    today: date,
    rule: ActiveTenantRule = ActiveTenantRule.CONTRACT_WINDOW,
) -> Tenant | None:
    """First tenant satisfying the rule, in the order given."""
    for tenant in tenants:
        if is_active_tenant(tenant, today, rule):
            return tenant
    return None
