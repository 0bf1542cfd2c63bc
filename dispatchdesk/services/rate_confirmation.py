"""
Carrier rate confirmation PDF.

Produces the one-page document a dispatcher sends a carrier before a load
moves: broker header, carrier block, flat rate, pickup/drop, notes and two
signature lines.
"""
import io
from datetime import datetime
from typing import Any, List, Optional, Tuple

from reportlab.lib import colors
from reportlab.lib.enums import TA_RIGHT
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from dispatchdesk.core.config import settings
from dispatchdesk.models.fleet import Load
from dispatchdesk.schemas.document import RateConfirmationIn
from dispatchdesk.utils.timeutils import utcnow

RATE_TERMS = "Rate includes all fuel surcharges. Detention and lumper fees only with written approval."

_base = getSampleStyleSheet()

STYLE_BROKER = ParagraphStyle(
    "RCBroker",
    parent=_base["Heading1"],
    fontSize=18,
    spaceAfter=2,
    fontName="Helvetica-Bold",
)
STYLE_TITLE = ParagraphStyle(
    "RCTitle",
    parent=_base["Heading2"],
    fontSize=14,
    alignment=TA_RIGHT,
    fontName="Helvetica-Bold",
)
STYLE_SECTION = ParagraphStyle(
    "RCSection",
    parent=_base["Heading3"],
    fontSize=10,
    spaceBefore=12,
    spaceAfter=4,
    fontName="Helvetica-Bold",
)
STYLE_LABEL = ParagraphStyle(
    "RCLabel",
    parent=_base["Normal"],
    fontSize=8,
    textColor=colors.HexColor("#555555"),
    fontName="Helvetica-Bold",
)
STYLE_VALUE = ParagraphStyle(
    "RCValue",
    parent=_base["Normal"],
    fontSize=9,
    fontName="Helvetica",
)
STYLE_SMALL = ParagraphStyle(
    "RCSmall",
    parent=_base["Normal"],
    fontSize=8,
    textColor=colors.gray,
)


def order_number(load_id: Optional[int], when: datetime) -> str:
    return f"RC-{when.year}-{(load_id or 0):05d}"


def _fmt_time(value: Optional[datetime]) -> str:
    return value.strftime("%b %d, %Y %H:%M") if value else "TBD"


def _fmt_money(value: Optional[float]) -> str:
    return f"${value:,.2f}" if value is not None else "$0.00"


def _kv_table(rows: List[Tuple[str, Any]]) -> Table:
    data = [
        [Paragraph(label, STYLE_LABEL), Paragraph(str(value or "-"), STYLE_VALUE)]
        for label, value in rows
    ]
    t = Table(data, colWidths=[1.6 * inch, 5.4 * inch])
    t.setStyle(TableStyle([
        ("GRID", (0, 0), (-1, -1), 0.25, colors.HexColor("#cccccc")),
        ("TOPPADDING", (0, 0), (-1, -1), 4),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
    ]))
    return t


def _stop_table(tag: str, when: Optional[datetime], name: Optional[str], address: Optional[str]) -> Table:
    body = [
        Paragraph(_fmt_time(when), STYLE_VALUE),
        Paragraph(f"<b>{name or '-'}</b>", STYLE_VALUE),
        Paragraph(address or "-", STYLE_VALUE),
    ]
    t = Table([[Paragraph(f"<b>{tag}</b>", STYLE_VALUE), body]], colWidths=[0.8 * inch, 6.2 * inch])
    t.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (0, 0), colors.black),
        ("TEXTCOLOR", (0, 0), (0, 0), colors.white),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("BOX", (0, 0), (-1, -1), 0.5, colors.black),
    ]))
    return t


def merge_load(data: RateConfirmationIn, load: Optional[Load]) -> RateConfirmationIn:
    """Fill blanks in the request from the load record."""
    if load is None:
        return data
    defaults = {
        "flat_rate": load.rate,
        "pickup_time": load.pickup_date,
        "delivery_time": load.delivery_date,
        "shipper_name": load.customer_name,
        "notes": load.notes or load.commodity,
    }
    updates = {k: v for k, v in defaults.items() if getattr(data, k) is None and v is not None}
    return data.model_copy(update=updates)


def render_rate_confirmation(data: RateConfirmationIn, issued_at: Optional[datetime] = None) -> bytes:
    issued_at = issued_at or utcnow()
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=letter,
        leftMargin=0.75 * inch,
        rightMargin=0.75 * inch,
        topMargin=0.6 * inch,
        bottomMargin=0.6 * inch,
        title="Rate Confirmation",
    )

    header = Table(
        [[
            Paragraph(settings.COMPANY_NAME.upper(), STYLE_BROKER),
            [
                Paragraph("RATE CONFIRMATION", STYLE_TITLE),
                Paragraph(f"Order #: {order_number(data.load_id, issued_at)}", STYLE_SMALL),
                Paragraph(f"Date: {issued_at.strftime('%m/%d/%Y')}", STYLE_SMALL),
            ],
        ]],
        colWidths=[4.0 * inch, 3.0 * inch],
    )
    header.setStyle(TableStyle([
        ("LINEBELOW", (0, 0), (-1, 0), 1.5, colors.black),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
    ]))

    story = [
        header,
        Paragraph("Carrier Information", STYLE_SECTION),
        _kv_table([
            ("Carrier", data.carrier_name),
            ("MC #", data.carrier_mc),
            ("DOT #", data.carrier_dot),
            ("Driver", data.driver_contact),
        ]),
        Paragraph("Rate Details", STYLE_SECTION),
        _kv_table([("Flat Rate", _fmt_money(data.flat_rate))]),
        Paragraph(f"* {RATE_TERMS}", STYLE_SMALL),
        Paragraph("Load Details", STYLE_SECTION),
        _stop_table("PICK", data.pickup_time, data.shipper_name, data.pickup_address),
        Spacer(1, 6),
        _stop_table("DROP", data.delivery_time, data.consignee_name, data.delivery_address),
        Paragraph("Dispatch Notes / Commodities", STYLE_SECTION),
        _kv_table([("Notes", data.notes)]),
        Spacer(1, 0.6 * inch),
    ]

    signatures = Table(
        [["", "", ""], [
            Paragraph("DISPATCHER SIGNATURE", STYLE_LABEL),
            "",
            Paragraph("CARRIER SIGNATURE", STYLE_LABEL),
        ]],
        colWidths=[3.2 * inch, 0.6 * inch, 3.2 * inch],
        rowHeights=[0.5 * inch, None],
    )
    signatures.setStyle(TableStyle([
        ("LINEBELOW", (0, 0), (0, 0), 0.75, colors.black),
        ("LINEBELOW", (2, 0), (2, 0), 0.75, colors.black),
    ]))
    story.append(signatures)

    doc.build(story)
    return buffer.getvalue()
