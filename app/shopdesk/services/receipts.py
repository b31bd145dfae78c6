from __future__ import annotations

import io
from dataclasses import dataclass
from html import escape
from typing import Iterable

from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

RECEIPT_FORMATS = ("professional", "simple")
RECEIPT_WIDTH = 80 * mm
PDF_MARGIN = 6 * mm
PDF_LINE_HEIGHT = 11


@dataclass(frozen=True)
class ReceiptStore:
    name: str
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    gst: str | None = None
    terms: str | None = None

    @classmethod
    def for_sale(cls, sale, settings_row=None) -> "ReceiptStore":
        def pick(sale_value, attr):
            if sale_value:
                return sale_value
            return getattr(settings_row, attr, None) if settings_row is not None else None

        return cls(
            name=pick(sale.store_name, "store_name") or "Store",
            address=pick(sale.store_address, "address"),
            phone=pick(sale.store_phone, "phone"),
            email=getattr(settings_row, "email", None) if settings_row is not None else None,
            gst=pick(sale.store_gst, "gst"),
            terms=pick(sale.terms, "terms"),
        )


def _amount(value) -> str:
    return f"{float(value or 0):.2f}"


_RECEIPT_CSS = """
body { font-family: 'Courier New', monospace; max-width: 320px; margin: 0 auto; padding: 15px;
       font-size: 14px; line-height: 1.3; background: white; color: black; }
.center { text-align: center; }
.bold { font-weight: bold; }
.separator { border-bottom: 1px dashed #000; margin: 8px 0; }
.item-name { font-weight: bold; margin-bottom: 2px; }
.row { display: flex; justify-content: space-between; margin: 2px 0; }
.final-total { font-weight: bold; font-size: 16px; border-top: 1px solid #000;
               border-bottom: 1px solid #000; margin: 8px 0; padding: 8px 0; }
.terms { font-size: 12px; margin-top: 10px; text-align: justify; }
@media print { body { padding: 0; } }
"""


def _row(label: str, value: str, css: str = "row") -> str:
    return f'<div class="{css}"><span>{escape(label)}</span><span>{escape(value)}</span></div>'


def _item_blocks(items: Iterable, *, simple: bool) -> list[str]:
    blocks = []
    for item in items:
        if simple:
            blocks.append(_row(f"{item.name} x{item.quantity}", f"₹{_amount(item.total)}"))
            continue
        blocks.append(f'<div class="item-name">{escape(item.name)}</div>')
        blocks.append(_row(f"{item.quantity} x ₹{_amount(item.price)}", f"₹{_amount(item.total)}"))
    return blocks


def render_receipt_html(sale, store: ReceiptStore, *, receipt_format: str = "professional", auto_print: bool = True) -> str:
    """Render a print-ready thermal receipt; every dynamic value is HTML-escaped."""
    simple = receipt_format == "simple"
    created_at = sale.created_at
    parts = [f'<div class="center bold">{escape(store.name)}</div>']
    if not simple:
        for label, value in (("", store.address), ("Phone: ", store.phone), ("GST: ", store.gst), ("Email: ", store.email)):
            if value:
                parts.append(f'<div class="center">{escape(label + value)}</div>')
    parts.append('<div class="separator"></div>')
    parts.append(f"<div>Bill No: {escape(sale.bill_no)}</div>")
    parts.append(f"<div>Date: {created_at.strftime('%d/%m/%Y')}</div>")
    parts.append(f"<div>Time: {created_at.strftime('%I:%M %p')}</div>")
    if sale.cashier and not simple:
        parts.append(f"<div>Cashier: {escape(sale.cashier)}</div>")
    if sale.customer_name:
        parts.append(f"<div>Customer: {escape(sale.customer_name)}</div>")
    if sale.customer_phone:
        parts.append(f"<div>Phone: {escape(sale.customer_phone)}</div>")
    parts.append('<div class="separator"></div>')
    parts.extend(_item_blocks(sale.items, simple=simple))
    parts.append('<div class="separator"></div>')
    parts.append(_row("Subtotal:", f"₹{_amount(sale.subtotal)}"))
    if sale.discount_amount:
        parts.append(_row(f"Discount ({sale.discount:g}%):", f"-₹{_amount(sale.discount_amount)}"))
    if sale.tax:
        parts.append(_row(f"Tax ({sale.tax_rate:g}%):", f"₹{_amount(sale.tax)}"))
    parts.append(_row("TOTAL:", f"₹{_amount(sale.total)}", "row final-total"))
    parts.append(_row("Payment Mode:", (sale.payment_method or "cash").upper()))
    if store.terms and not simple:
        parts.append('<div class="separator"></div>')
        parts.append('<div class="bold">Terms &amp; Conditions:</div>')
        parts.append(f'<div class="terms">{escape(store.terms)}</div>')
    parts.append('<div class="separator"></div>')
    parts.append('<div class="center"><div class="bold">Thank you for shopping with us!</div><div>Visit again soon</div>')
    if store.phone:
        parts.append(f"<div>For support: {escape(store.phone)}</div>")
    parts.append("</div>")
    script = "<script>window.onload = function () { setTimeout(function () { window.print(); }, 500); };</script>"
    return (
        "<!DOCTYPE html>\n<html>\n<head>\n<meta charset=\"UTF-8\">\n"
        f"<title>Bill - {escape(sale.bill_no)}</title>\n<style>{_RECEIPT_CSS}</style>\n</head>\n<body>\n"
        + "\n".join(parts)
        + ("\n" + script if auto_print else "")
        + "\n</body>\n</html>\n"
    )


def _receipt_lines(sale, store: ReceiptStore) -> list[tuple[str, str, str]]:
    """(font, left, right) rows for the PDF layout."""
    lines = [("title", store.name, "")]
    for value in (store.address, f"Phone: {store.phone}" if store.phone else None, f"GST: {store.gst}" if store.gst else None):
        if value:
            lines.append(("center", value, ""))
    lines.append(("rule", "", ""))
    lines.append(("text", f"Bill No: {sale.bill_no}", ""))
    lines.append(("text", f"Date: {sale.created_at.strftime('%d/%m/%Y %I:%M %p')}", ""))
    if sale.customer_name:
        lines.append(("text", f"Customer: {sale.customer_name}", ""))
    if sale.customer_phone:
        lines.append(("text", f"Phone: {sale.customer_phone}", ""))
    lines.append(("rule", "", ""))
    for item in sale.items:
        lines.append(("bold", item.name, ""))
        lines.append(("text", f"{item.quantity} x Rs.{_amount(item.price)}", f"Rs.{_amount(item.total)}"))
    lines.append(("rule", "", ""))
    lines.append(("text", "Subtotal", f"Rs.{_amount(sale.subtotal)}"))
    if sale.discount_amount:
        lines.append(("text", f"Discount ({sale.discount:g}%)", f"-Rs.{_amount(sale.discount_amount)}"))
    if sale.tax:
        lines.append(("text", f"Tax ({sale.tax_rate:g}%)", f"Rs.{_amount(sale.tax)}"))
    lines.append(("bold", "TOTAL", f"Rs.{_amount(sale.total)}"))
    lines.append(("text", "Payment Mode", (sale.payment_method or "cash").upper()))
    if store.terms:
        lines.append(("rule", "", ""))
        lines.append(("text", store.terms, ""))
    lines.append(("rule", "", ""))
    lines.append(("center", "Thank you for shopping with us!", ""))
    return lines


_FONTS = {
    "title": ("Helvetica-Bold", 12),
    "bold": ("Helvetica-Bold", 9),
    "center": ("Helvetica", 8),
    "text": ("Helvetica", 9),
    "rule": ("Helvetica", 9),
}


def _wrap(lines: list[tuple[str, str, str]]) -> list[tuple[str, str, str]]:
    width = RECEIPT_WIDTH - 2 * PDF_MARGIN
    wrapped = []
    for style, left, right in lines:
        font, size = _FONTS[style]
        if right or not left:
            wrapped.append((style, left, right))
            continue
        wrapped.extend((style, chunk, "") for chunk in simpleSplit(left, font, size, width) or [""])
    return wrapped


def render_receipt_pdf(sale, store: ReceiptStore) -> bytes:
    lines = _wrap(_receipt_lines(sale, store))
    page_height = max(120 * mm, (len(lines) + 6) * PDF_LINE_HEIGHT + 2 * PDF_MARGIN)
    output = io.BytesIO()
    pdf = canvas.Canvas(output, pagesize=(RECEIPT_WIDTH, page_height))
    pdf.setTitle(f"Bill {sale.bill_no}")
    y = page_height - PDF_MARGIN - PDF_LINE_HEIGHT
    right_edge = RECEIPT_WIDTH - PDF_MARGIN
    for style, left, right in lines:
        font, size = _FONTS[style]
        pdf.setFont(font, size)
        if style == "rule":
            pdf.setDash(2, 2)
            pdf.line(PDF_MARGIN, y + 4, right_edge, y + 4)
            pdf.setDash()
        elif style in ("title", "center"):
            pdf.drawCentredString(RECEIPT_WIDTH / 2, y, left)
        else:
            pdf.drawString(PDF_MARGIN, y, left)
            if right:
                pdf.drawRightString(right_edge, y, right)
        y -= PDF_LINE_HEIGHT
    pdf.showPage()
    pdf.save()
    return output.getvalue()


def public_receipt_url(base_url: str, sale_id) -> str:
    return f"{base_url.rstrip('/')}/api/public-receipt/{sale_id}"


def pdf_filename(sale) -> str:
    safe = "".join(char if char.isalnum() or char in "-_" else "_" for char in sale.bill_no)
    return f"Bill-{safe}.pdf"
