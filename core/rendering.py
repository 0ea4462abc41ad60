"""
Invoice and receipt cards.

Rendering is split in two steps. A card function projects the records into
a DocumentCard holding only display strings in the requested language. The
renderer draws any card onto a fixed 600x700 canvas with Pillow, so layout
and content can be tested separately.

Thai text needs a font with Thai glyphs (BillingConfig.font_path). Without
one, Pillow's built-in font is used and Thai characters will not show.
"""

import io
import logging
from dataclasses import dataclass, field

from PIL import Image, ImageDraw, ImageFont

from core.billing import format_baht
from core.models import Invoice, Project, Receipt, Tenant, TenantSnapshot, Unit
from utils.timezone import format_thai_date, to_local

logger = logging.getLogger(__name__)

CARD_SIZE = (600, 700)
INVOICE_COLOR = "#1E40AF"
RECEIPT_COLOR = "#1DB446"

LABELS = {
    "th": {
        "invoice": "ใบแจ้งหนี้",
        "receipt": "ใบเสร็จรับเงิน",
        "number": "เลขที่",
        "room": "ห้อง",
        "billing_month": "รอบบิล",
        "due_date": "กำหนดชำระ",
        "date": "วันที่",
        "reference": "อ้างอิง",
        "tenant": "ผู้เช่า",
        "amount_due": "ยอดชำระ",
        "grand_total": "จำนวนเงินทั้งสิ้น",
    },
    "en": {
        "invoice": "INVOICE",
        "receipt": "RECEIPT",
        "number": "No.",
        "room": "Room",
        "billing_month": "Billing month",
        "due_date": "Due date",
        "date": "Date",
        "reference": "Reference",
        "tenant": "Tenant",
        "amount_due": "Amount due",
        "grand_total": "Grand Total",
    },
}


@dataclass
class DocumentCard:
    """Display-ready content of a rendered document."""

    company_name: str
    title: str
    info_rows: list[tuple[str, str]] = field(default_factory=list)
    tenant_label: str = ""
    tenant_name: str = ""
    total_label: str = ""
    total_amount: str = ""
    accent_color: str = INVOICE_COLOR


def _labels(lang: str) -> dict:
    return LABELS.get(lang, LABELS["th"])


def _date(value, lang: str) -> str:
    if lang == "th":
        return format_thai_date(value)
    if hasattr(value, "tzinfo") and value.tzinfo is not None:
        value = to_local(value).date()
    return f"{value:%Y-%m-%d}"


def tenant_display_name(snapshot: TenantSnapshot | None, tenant: Tenant | None, lang: str) -> str:
    """Snapshot name first, then the live tenant."""
    if snapshot is not None:
        return snapshot.display_name(lang)
    if tenant is not None:
        if lang == "th" and tenant.name_th:
            return tenant.name_th
        return tenant.name
    return "-"


def invoice_card(
    invoice: Invoice,
    project: Project,
    unit: Unit | None,
    lang: str = "th",
    tenant: Tenant | None = None,
) -> DocumentCard:
    t = _labels(lang)
    return DocumentCard(
        company_name=project.display_company(lang),
        title=t["invoice"],
        info_rows=[
            (t["number"], invoice.invoice_no),
            (t["room"], unit.unit_number if unit else "-"),
            (t["billing_month"], invoice.billing_month),
            (t["due_date"], _date(invoice.due_date, lang)),
        ],
        tenant_label=t["tenant"],
        tenant_name=tenant_display_name(invoice.tenant_snapshot, tenant, lang),
        total_label=t["amount_due"],
        total_amount=f"฿{format_baht(invoice.total_amount_satang)}",
        accent_color=INVOICE_COLOR,
    )


def receipt_card(
    receipt: Receipt,
    invoice: Invoice,
    project: Project,
    unit: Unit | None,
    lang: str = "th",
    tenant: Tenant | None = None,
) -> DocumentCard:
    t = _labels(lang)
    snapshot = receipt.tenant_snapshot or invoice.tenant_snapshot
    return DocumentCard(
        company_name=project.display_company(lang),
        title=t["receipt"],
        info_rows=[
            (t["number"], receipt.receipt_no),
            (t["date"], _date(receipt.issued_at, lang)),
            (t["reference"], invoice.invoice_no),
            (t["room"], unit.unit_number if unit else "-"),
        ],
        tenant_label=t["tenant"],
        tenant_name=tenant_display_name(snapshot, tenant, lang),
        total_label=t["grand_total"],
        total_amount=f"฿{format_baht(receipt.amount_satang)}",
        accent_color=RECEIPT_COLOR,
    )


def _font(font_path: str | None, size: int):
    if font_path:
        try:
            return ImageFont.truetype(font_path, size)
        except OSError:
            logger.warning(f"Could not load font {font_path}, using the default font")
    return ImageFont.load_default(size=size)


def render_png(card: DocumentCard, font_path: str | None = None) -> bytes:
    """Draw a card and return PNG bytes."""
    width, height = CARD_SIZE
    image = Image.new("RGB", CARD_SIZE, "white")
    draw = ImageDraw.Draw(image)

    title_font = _font(font_path, 36)
    heading_font = _font(font_path, 24)
    body_font = _font(font_path, 20)
    total_font = _font(font_path, 40)

    margin = 40

    # Company name
    draw.text((margin, 40), card.company_name, fill="#111827", font=heading_font)

    # Title banner
    draw.rectangle([(0, 100), (width, 170)], fill=card.accent_color)
    draw.text((width // 2, 135), card.title, fill="white", font=title_font, anchor="mm")

    # Info rows
    y = 200
    for label, value in card.info_rows:
        draw.text((margin, y), label, fill="#6B7280", font=body_font)
        draw.text((width - margin, y), value, fill="#111827", font=body_font, anchor="ra")
        y += 40

    # Tenant
    y += 10
    draw.line([(margin, y), (width - margin, y)], fill="#E5E7EB", width=2)
    y += 20
    draw.text((margin, y), card.tenant_label, fill="#6B7280", font=body_font)
    draw.text((margin, y + 30), card.tenant_name, fill="#111827", font=heading_font)

    # Total
    top = height - 190
    draw.rounded_rectangle([(margin, top), (width - margin, height - 50)], radius=16, fill="#F3F4F6")
    draw.text((width // 2, top + 40), card.total_label, fill="#6B7280", font=body_font, anchor="mm")
    draw.text((width // 2, top + 95), card.total_amount, fill=card.accent_color, font=total_font, anchor="mm")

    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()
