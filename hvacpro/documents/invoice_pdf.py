"""
Render an invoice to PDF: company header, bill-to block, line items, totals.
"""
import io
from decimal import Decimal
from typing import Optional

from reportlab.lib import colors
from reportlab.lib.pagesizes import LETTER
from reportlab.pdfgen import canvas

from ..models.models import Company, Invoice


MARGIN = 54
ROW_HEIGHT = 16
FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"


def _money(value: Optional[Decimal]) -> str:
    return f"${Decimal(value or 0):,.2f}"


def _date(value) -> str:
    return value.strftime("%b %d, %Y") if value else "-"


def _header(c: canvas.Canvas, company: Company, invoice: Invoice, page_height: float) -> float:
    y = page_height - MARGIN
    c.setFont(FONT_BOLD, 18)
    c.drawString(MARGIN, y, company.name)
    c.setFont(FONT, 9)
    for line in filter(None, [
        company.address,
        ", ".join(p for p in [company.city, company.state, company.zip_code] if p),
        company.phone,
        company.email,
    ]):
        y -= 12
        c.drawString(MARGIN, y, line)

    right = LETTER[0] - MARGIN
    top = page_height - MARGIN
    c.setFont(FONT_BOLD, 16)
    c.drawRightString(right, top, "INVOICE")
    c.setFont(FONT, 9)
    c.drawRightString(right, top - 16, f"No. {invoice.invoice_number}")
    c.drawRightString(right, top - 28, f"Issued {_date(invoice.created_at)}")
    c.drawRightString(right, top - 40, f"Due {_date(invoice.due_date)}")
    c.drawRightString(right, top - 52, f"Status: {invoice.status.upper()}")
    return min(y, top - 52) - 24


def _bill_to(c: canvas.Canvas, invoice: Invoice, y: float) -> float:
    customer = invoice.customer
    c.setFont(FONT_BOLD, 10)
    c.drawString(MARGIN, y, "Bill to")
    c.setFont(FONT, 9)
    for line in filter(None, [
        customer.name,
        customer.address,
        ", ".join(p for p in [customer.city, customer.state, customer.zip_code] if p),
        customer.email,
    ]):
        y -= 12
        c.drawString(MARGIN, y, line)
    return y - 24


def build_invoice_pdf(company: Company, invoice: Invoice) -> bytes:
    """Generate PDF bytes for an invoice and its items."""
    buf = io.BytesIO()
    page_width, page_height = LETTER
    c = canvas.Canvas(buf, pagesize=LETTER)
    c.setTitle(f"Invoice {invoice.invoice_number}")

    y = _header(c, company, invoice, page_height)
    y = _bill_to(c, invoice, y)

    cols = (MARGIN, page_width - MARGIN - 220, page_width - MARGIN - 120, page_width - MARGIN)

    def table_header(y: float) -> float:
        c.setFillColor(colors.HexColor("#1f3b57"))
        c.rect(MARGIN, y - 4, page_width - 2 * MARGIN, ROW_HEIGHT, fill=1, stroke=0)
        c.setFillColor(colors.white)
        c.setFont(FONT_BOLD, 9)
        c.drawString(cols[0] + 4, y, "Description")
        c.drawRightString(cols[1], y, "Qty")
        c.drawRightString(cols[2], y, "Unit price")
        c.drawRightString(cols[3] - 4, y, "Amount")
        c.setFillColor(colors.black)
        c.setFont(FONT, 9)
        return y - ROW_HEIGHT - 2

    y = table_header(y)
    for item in invoice.items:
        if y < MARGIN + 100:
            c.showPage()
            y = table_header(page_height - MARGIN)
        c.drawString(cols[0] + 4, y, item.description[:70])
        c.drawRightString(cols[1], y, str(item.quantity))
        c.drawRightString(cols[2], y, _money(item.unit_price))
        c.drawRightString(cols[3] - 4, y, _money(item.total))
        y -= ROW_HEIGHT
    if not invoice.items:
        c.drawString(cols[0] + 4, y, "Service")
        c.drawRightString(cols[3] - 4, y, _money(invoice.subtotal))
        y -= ROW_HEIGHT

    y -= 8
    c.line(cols[2] - 60, y + 10, cols[3], y + 10)
    for label, value, bold in (
        ("Subtotal", invoice.subtotal, False),
        ("Tax", invoice.tax, False),
        ("Total", invoice.total, True),
    ):
        c.setFont(FONT_BOLD if bold else FONT, 10 if bold else 9)
        c.drawRightString(cols[2], y, label)
        c.drawRightString(cols[3] - 4, y, _money(value))
        y -= ROW_HEIGHT
    if invoice.paid_date:
        c.setFont(FONT_BOLD, 9)
        c.setFillColor(colors.HexColor("#2e7d32"))
        c.drawRightString(cols[3] - 4, y - 4, f"Paid {_date(invoice.paid_date)}")
        c.setFillColor(colors.black)

    c.showPage()
    c.save()
    return buf.getvalue()
