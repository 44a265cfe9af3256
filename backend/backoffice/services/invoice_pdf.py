# Overview: Draws an InvoiceLayout onto an A4 PDF with reportlab.

"""
Invoice PDF Renderer

Section order: header, seller/buyer boxes, item table, totals box,
amount in words, payment and bank details, GST declaration, terms and
quote, then the signature/stamp footer.

DETERMINISM: The canvas is created with invariant=1, so the same sale
and business profile always produce byte-identical output.

FONTS: Helvetica has no rupee glyph. When a TTF with the glyph is
configured (INVOICE_FONT_PATH / INVOICE_FONT_BOLD_PATH) it is registered
and amounts use the rupee sign; otherwise amounts are prefixed "Rs. ".
"""

from __future__ import annotations

import io
import logging
import os
from dataclasses import dataclass

from flask import current_app
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas

from ..schemas import Sale
from .business_profile import BusinessInfo
from .invoice_layout import InvoiceLayout, build_invoice_layout


logger = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = A4
PAGE_W_MM = PAGE_WIDTH / mm
PAGE_H_MM = PAGE_HEIGHT / mm
MARGIN = 14
TOP = 14
BOTTOM = 14

# Footer block: rule 8mm above footer_y, stamp box down to footer_y + 26
FOOTER_Y = PAGE_H_MM - 35
FOOTER_CLEARANCE = 10

MIN_FONT_SIZE = 5.5
FONT_STEP = 0.3
TOTALS_ROW_STEP = 6.5


@dataclass(frozen=True)
class InvoiceFonts:
    regular: str = "Helvetica"
    bold: str = "Helvetica-Bold"
    italic: str = "Helvetica-Oblique"
    currency_symbol: str = "Rs. "


def load_invoice_fonts(regular_path: str | None = None, bold_path: str | None = None) -> InvoiceFonts:
    """Register the configured TTFs, falling back to Helvetica when absent."""
    if not regular_path:
        return InvoiceFonts()
    if not os.path.exists(regular_path):
        logger.warning("Invoice font not found at %s; using Helvetica", regular_path)
        return InvoiceFonts()

    pdfmetrics.registerFont(TTFont("InvoiceSans", regular_path))
    bold_name = "InvoiceSans"
    if bold_path and os.path.exists(bold_path):
        pdfmetrics.registerFont(TTFont("InvoiceSans-Bold", bold_path))
        bold_name = "InvoiceSans-Bold"
    return InvoiceFonts(regular="InvoiceSans", bold=bold_name, italic="InvoiceSans", currency_symbol="₹")


def fit_text_right(
    c,
    text: str,
    x_right: float,
    y: float,
    max_width: float,
    font: str,
    base_size: float,
    min_size: float = MIN_FONT_SIZE,
) -> float:
    """
    Draw right-aligned text, shrinking the font until it fits max_width.

    Stops at min_size even if the text still overflows. Returns the size used.
    """
    size = base_size
    while size > min_size and pdfmetrics.stringWidth(text, font, size) > max_width:
        size = max(min_size, size - FONT_STEP)
    c.setFont(font, size)
    c.drawRightString(x_right, y, text)
    return size


class _Page:
    """Canvas wrapper that works in top-down millimetres."""

    def __init__(self, c, fonts: InvoiceFonts):
        self.c = c
        self.fonts = fonts
        self.y = TOP

    def _py(self, y_mm: float) -> float:
        return PAGE_HEIGHT - y_mm * mm

    def new_page(self) -> None:
        self.c.showPage()
        self.y = TOP

    def ensure_space(self, needed_mm: float, limit_mm: float = PAGE_H_MM - BOTTOM) -> bool:
        """Start a new page unless `needed_mm` fits above `limit_mm`. True if a page was added."""
        if self.y + needed_mm > limit_mm:
            self.new_page()
            return True
        return False

    def text(self, x: float, y: float, value: str, font: str, size: float, align: str = "left") -> None:
        self.c.setFont(font, size)
        if align == "center":
            self.c.drawCentredString(x * mm, self._py(y), value)
        elif align == "right":
            self.c.drawRightString(x * mm, self._py(y), value)
        else:
            self.c.drawString(x * mm, self._py(y), value)

    def text_right_fit(self, x_right: float, y: float, value: str, max_width: float, font: str, size: float) -> None:
        fit_text_right(self.c, value, x_right * mm, self._py(y), max_width * mm, font, size)

    def line(self, x1: float, y1: float, x2: float, y2: float, width: float = 0.3) -> None:
        self.c.setLineWidth(width)
        self.c.line(x1 * mm, self._py(y1), x2 * mm, self._py(y2))

    def rect(self, x: float, y: float, w: float, h: float, fill_gray: float | None = None) -> None:
        self.c.setLineWidth(0.3)
        if fill_gray is not None:
            self.c.setFillGray(fill_gray)
            self.c.rect(x * mm, self._py(y + h), w * mm, h * mm, stroke=1, fill=1)
            self.c.setFillGray(0)
        else:
            self.c.rect(x * mm, self._py(y + h), w * mm, h * mm, stroke=1, fill=0)

    def wrap(self, value: str, font: str, size: float, width_mm: float) -> list[str]:
        return simpleSplit(value, font, size, width_mm * mm) or [""]


# =============================================================================
# SECTIONS
# =============================================================================

def _draw_header(page: _Page, layout: InvoiceLayout) -> None:
    f = page.fonts
    page.text(PAGE_W_MM / 2, 18, layout.title, f.bold, 20, align="center")
    page.text(MARGIN, 28, layout.invoice_number_text, f.regular, 9)
    page.text(PAGE_W_MM / 2, 28, layout.date_text, f.regular, 9, align="center")
    page.text(PAGE_W_MM - MARGIN, 28, layout.header_right_text, f.regular, 9, align="right")
    page.line(MARGIN, 32, PAGE_W_MM - MARGIN, 32, width=0.5)
    page.y = 38


def _draw_parties(page: _Page, layout: InvoiceLayout) -> None:
    f = page.fonts
    top = page.y
    half = (PAGE_W_MM - MARGIN * 3) / 2
    buyer_x = MARGIN + half + MARGIN

    address = page.wrap(layout.buyer_address, f.regular, 8, half - 8)
    buyer_bottom = 19 + len(address) * 4 + len(layout.buyer_lines) * 5
    seller_bottom = 19 + len(layout.seller_lines) * 6
    height = max(45, buyer_bottom, seller_bottom)

    page.rect(MARGIN, top, half, height)
    page.text(MARGIN + 3, top + 6, layout.seller_heading, f.bold, 9)
    page.text(MARGIN + 3, top + 13, layout.seller_name, f.bold, 10)
    y = top + 19
    for line in layout.seller_lines:
        page.text(MARGIN + 3, y, line, f.regular, 8)
        y += 6

    page.rect(buyer_x, top, half, height)
    page.text(buyer_x + 3, top + 6, layout.buyer_heading, f.bold, 9)
    page.text(buyer_x + 3, top + 13, layout.buyer_name, f.bold, 10)
    y = top + 19
    for line in address:
        page.text(buyer_x + 3, y, line, f.regular, 8)
        y += 4
    y += 1
    for line in layout.buyer_lines:
        page.text(buyer_x + 3, y, line, f.regular, 8)
        y += 5

    page.y = top + height + 7


def _column_edges(layout: InvoiceLayout) -> list[float]:
    edges = [MARGIN]
    for width in layout.column_widths:
        edges.append(edges[-1] + width)
    return edges


def _draw_table_header(page: _Page, layout: InvoiceLayout, edges: list[float]) -> None:
    f = page.fonts
    height = 7
    page.rect(MARGIN, page.y, edges[-1] - MARGIN, height, fill_gray=0.94)
    for i, label in enumerate(layout.table_header):
        page.line(edges[i], page.y, edges[i], page.y + height, width=0.3)
        _draw_cell(page, label, edges[i], edges[i + 1], page.y + 4.8, layout.column_align[i], f.bold, 8)
    page.line(edges[-1], page.y, edges[-1], page.y + height, width=0.3)
    page.y += height


def _draw_cell(page: _Page, value: str, left: float, right: float, y: float, align: str, font: str, size: float) -> None:
    pad = 1.5
    if align == "right":
        page.text_right_fit(right - pad, y, value, right - left - pad * 2, font, size)
    elif align == "center":
        page.text((left + right) / 2, y, value, font, size, align="center")
    else:
        page.text(left + pad, y, value, font, size)


def _draw_table(page: _Page, layout: InvoiceLayout) -> None:
    f = page.fonts
    edges = _column_edges(layout)
    # Header plus at least one row, or the header starts the next page
    page.ensure_space(13)
    _draw_table_header(page, layout, edges)

    for row in layout.rows:
        wrapped = []
        for i, value in enumerate(row):
            if layout.column_align[i] == "left":
                wrapped.append(page.wrap(value, f.regular, 8, layout.column_widths[i] - 3))
            else:
                wrapped.append([value])
        height = max(6, 2.5 + 3.5 * max(len(lines) for lines in wrapped))

        if page.ensure_space(height):
            _draw_table_header(page, layout, edges)

        top = page.y
        page.rect(MARGIN, top, edges[-1] - MARGIN, height)
        for i, lines in enumerate(wrapped):
            page.line(edges[i], top, edges[i], top + height, width=0.2)
            y = top + 4.2
            for line in lines:
                _draw_cell(page, line, edges[i], edges[i + 1], y, layout.column_align[i], f.regular, 8)
                y += 3.5
        page.y = top + height


def _draw_totals(page: _Page, layout: InvoiceLayout) -> None:
    f = page.fonts
    page.y += 8
    box_w = 85
    box_x = PAGE_W_MM - MARGIN - box_w
    height = 5 + TOTALS_ROW_STEP * len(layout.totals) + 2
    page.ensure_space(height)

    top = page.y
    page.rect(box_x, top, box_w, height)
    label_x = box_x + 3
    value_x = box_x + box_w - 3
    y = top + 6.5
    for row in layout.totals:
        if row.rule_above:
            page.line(label_x, y - 4.5, value_x, y - 4.5, width=0.2)
        font = f.bold if row.bold else f.regular
        page.text(label_x, y, row.label, font, 9)
        page.text_right_fit(value_x, y, row.value, 34, font, 9)
        y += TOTALS_ROW_STEP
    page.y = top + height


def _draw_amount_in_words(page: _Page, layout: InvoiceLayout) -> None:
    f = page.fonts
    page.y += 8
    lines = page.wrap(layout.amount_in_words, f.regular, 9, PAGE_W_MM - MARGIN * 2)
    page.ensure_space(6 + len(lines) * 5)
    page.text(MARGIN, page.y, layout.amount_in_words_heading, f.bold, 9)
    y = page.y + 6
    for line in lines:
        page.text(MARGIN, y, line, f.regular, 9)
        y += 5
    page.y = y


def _draw_payment(page: _Page, layout: InvoiceLayout) -> None:
    f = page.fonts
    page.y += 6
    needed = 6 + len(layout.payment_lines) * 5
    if layout.bank_heading:
        needed += 10 + len(layout.bank_lines) * 5
    page.ensure_space(needed)

    page.text(MARGIN, page.y, layout.payment_heading, f.bold, 9)
    y = page.y + 6
    for line in layout.payment_lines:
        page.text(MARGIN, y, line, f.regular, 8)
        y += 5

    if layout.bank_heading:
        y += 5
        page.text(MARGIN, y, layout.bank_heading, f.bold, 9)
        y += 6
        for line in layout.bank_lines:
            page.text(MARGIN, y, line, f.regular, 8)
            y += 5
    page.y = y


def _draw_declaration(page: _Page, layout: InvoiceLayout) -> None:
    if not layout.declaration:
        return
    f = page.fonts
    page.y += 7
    lines = page.wrap(layout.declaration, f.italic, 7, PAGE_W_MM - MARGIN * 2)
    page.ensure_space(len(lines) * 3.5)
    y = page.y
    for line in lines:
        page.text(MARGIN, y, line, f.italic, 7)
        y += 3.5
    page.y = y


def _draw_terms(page: _Page, layout: InvoiceLayout) -> None:
    f = page.fonts
    page.y += 6
    page.ensure_space(5 + len(layout.terms) * 4 + 6)
    page.text(MARGIN, page.y, layout.terms_heading, f.bold, 8)
    y = page.y + 5
    for term in layout.terms:
        page.text(MARGIN, y, term, f.regular, 7)
        y += 4
    y += 2
    page.text(MARGIN, y, layout.quote, f.italic, 8)
    page.y = y


def _draw_footer(page: _Page, layout: InvoiceLayout) -> None:
    f = page.fonts
    if page.y > FOOTER_Y - FOOTER_CLEARANCE:
        page.new_page()

    page.line(MARGIN, FOOTER_Y - 8, PAGE_W_MM - MARGIN, FOOTER_Y - 8)
    if layout.pan_text:
        page.text(MARGIN, FOOTER_Y - 3, layout.pan_text, f.regular, 8)

    page.line(MARGIN, FOOTER_Y + 12, MARGIN + 55, FOOTER_Y + 12)
    page.text(MARGIN, FOOTER_Y + 18, layout.signatory_label, f.regular, 8)
    page.text(MARGIN, FOOTER_Y + 23, layout.signatory_for, f.regular, 7)

    page.rect(PAGE_W_MM - MARGIN - 55, FOOTER_Y - 2, 55, 28)
    page.text(PAGE_W_MM - MARGIN - 27.5, FOOTER_Y + 12, layout.stamp_label, f.regular, 8, align="center")


def render_layout(layout: InvoiceLayout, fonts: InvoiceFonts) -> bytes:
    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4, invariant=1)
    c.setTitle(layout.filename or layout.title)
    c.setAuthor(layout.signatory_for.removeprefix("For "))

    page = _Page(c, fonts)
    _draw_header(page, layout)
    _draw_parties(page, layout)
    _draw_table(page, layout)
    _draw_totals(page, layout)
    _draw_amount_in_words(page, layout)
    _draw_payment(page, layout)
    _draw_declaration(page, layout)
    _draw_terms(page, layout)
    _draw_footer(page, layout)

    c.showPage()
    c.save()
    return buffer.getvalue()


def render_invoice_pdf(sale: Sale, business: BusinessInfo, fonts: InvoiceFonts | None = None) -> bytes:
    """Build the layout for a sale and render it to PDF bytes."""
    fonts = fonts or InvoiceFonts()
    layout = build_invoice_layout(sale, business, currency_symbol=fonts.currency_symbol)
    return render_layout(layout, fonts)


def current_invoice_fonts() -> InvoiceFonts:
    """Fonts for the running app, registered once and cached on app.extensions."""
    fonts = current_app.extensions.get("invoice_fonts")
    if fonts is None:
        fonts = load_invoice_fonts(
            current_app.config.get("INVOICE_FONT_PATH"),
            current_app.config.get("INVOICE_FONT_BOLD_PATH"),
        )
        current_app.extensions["invoice_fonts"] = fonts
    return fonts
