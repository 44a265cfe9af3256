# Overview: Pure computation of every value printed on an invoice.

"""
Invoice Layout

WHY: Everything the invoice shows (labels, amounts, rows, wording) is
computed here as plain data, with no drawing involved. The PDF renderer
only places these strings on the page, so the content can be tested
without parsing PDF bytes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from ..schemas import Sale
from .business_profile import BusinessInfo
from .calculators import DEFAULT_HSN_CODE, format_currency, number_to_words


# Invoices are dated in Indian Standard Time
IST_OFFSET = timedelta(hours=5, minutes=30)

GST_TABLE_HEADER = ("Sr", "Product Name", "HSN", "Wood Type", "Qty", "CFT/Pc", "Total CFT", "Rate", "Taxable Value")
GST_COLUMN_WIDTHS = (10, 38, 14, 22, 12, 16, 18, 20, 28)
GST_COLUMN_ALIGN = ("center", "left", "center", "left", "center", "right", "right", "right", "right")

PLAIN_TABLE_HEADER = ("No", "Product Name", "Wood Type", "Dimensions", "Qty", "CFT/Pc", "Total CFT", "Rate", "Amount")
PLAIN_COLUMN_WIDTHS = (10, 32, 20, 28, 12, 16, 18, 20, 24)
PLAIN_COLUMN_ALIGN = ("center", "left", "left", "left", "center", "right", "right", "right", "right")

PAYMENT_MODE_LABELS = {
    "full": "Full Payment",
    "partial": "Partial Payment",
    "advance": "Advance Payment",
    "pending": "Payment Pending",
}

GST_DECLARATION = (
    "We hereby certify that the particulars given in this invoice are true and correct "
    "and that the amount indicated represents the price actually charged and that there "
    "is no flow of additional consideration directly or indirectly from the buyer."
)

TERMS = (
    "• Payment processing period: 20–30 days",
    "• Delivery schedule based on confirmed PO",
    "• Transport facility available if required",
    "• Goods once sold will not be taken back",
    "• Any disputes subject to Ratnagiri jurisdiction",
)

QUOTE = '"We believe that while price is forgotten, quality is remembered for a long time."'


@dataclass(frozen=True)
class TotalsRow:
    label: str
    value: str
    bold: bool = False
    rule_above: bool = False


@dataclass(frozen=True)
class InvoiceLayout:
    title: str
    is_gst_invoice: bool
    invoice_number_text: str
    date_text: str
    header_right_text: str
    seller_heading: str
    seller_name: str
    seller_lines: tuple[str, ...]
    buyer_heading: str
    buyer_name: str
    buyer_address: str
    buyer_lines: tuple[str, ...]
    table_header: tuple[str, ...]
    column_widths: tuple[int, ...]
    column_align: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...]
    totals: tuple[TotalsRow, ...]
    amount_in_words_heading: str
    amount_in_words: str
    payment_heading: str
    payment_lines: tuple[str, ...]
    bank_heading: str | None
    bank_lines: tuple[str, ...]
    declaration: str | None
    terms_heading: str
    terms: tuple[str, ...]
    quote: str
    pan_text: str | None
    signatory_label: str
    signatory_for: str
    stamp_label: str
    currency_symbol: str = "₹"
    filename: str = field(default="")


def invoice_filename(sale: Sale) -> str:
    return f"Invoice_{sale.invoice_number}.pdf"


def _display_date(value: datetime) -> str:
    return (value + IST_OFFSET).strftime("%d/%m/%Y")


def _rate_text(rate: float) -> str:
    return f"{rate:g}"


def _seller_lines(business: BusinessInfo, is_gst: bool) -> tuple[str, ...]:
    lines = [business.location]
    if is_gst and business.gstin:
        lines.append(f"GSTIN: {business.gstin}")
    lines.append(f"State: {business.state} ({business.state_code})")
    lines.append(f"Phone: {business.phone1} / {business.phone2}")
    lines.append(f"Email: {business.email}")
    return tuple(lines)


def _buyer_lines(sale: Sale, is_gst: bool) -> tuple[str, ...]:
    customer = sale.customer
    lines = []
    if is_gst and customer.gstin:
        lines.append(f"GSTIN: {customer.gstin}")
    if customer.state:
        lines.append(f"State: {customer.state} ({customer.state_code or ''})")
    lines.append(f"Phone: {customer.phone}")
    return tuple(lines)


def _table_rows(sale: Sale, is_gst: bool, money) -> tuple[tuple[str, ...], ...]:
    rows = []
    for index, item in enumerate(sale.items, start=1):
        if is_gst:
            rows.append((
                str(index),
                item.product_name,
                item.hsn_code or DEFAULT_HSN_CODE,
                item.wood_type,
                str(item.quantity),
                f"{item.cft_per_piece:.3f}",
                f"{item.total_cft:.3f}",
                money(item.price_per_piece),
                money(item.amount),
            ))
        else:
            rows.append((
                str(index),
                item.product_name,
                item.wood_type,
                item.dimensions,
                str(item.quantity),
                f"{item.cft_per_piece:.3f}",
                f"{item.total_cft:.3f}",
                money(item.price_per_piece),
                money(item.amount),
            ))
    return tuple(rows)


def _totals(sale: Sale, is_gst: bool, money) -> tuple[TotalsRow, ...]:
    rows = [TotalsRow("Total Taxable Value:", money(sale.subtotal))]

    if is_gst:
        rate = sale.gst_rate or 18
        if sale.is_inter_state:
            igst = sale.igst_amount if sale.igst_amount is not None else sale.gst_amount
            rows.append(TotalsRow(f"IGST @ {_rate_text(rate)}%:", money(igst)))
        else:
            half_rate = _rate_text(rate / 2)
            half = sale.gst_amount / 2
            cgst = sale.cgst_amount if sale.cgst_amount is not None else half
            sgst = sale.sgst_amount if sale.sgst_amount is not None else sale.gst_amount - cgst
            rows.append(TotalsRow(f"CGST @ {half_rate}%:", money(cgst)))
            rows.append(TotalsRow(f"SGST @ {half_rate}%:", money(sgst)))

    if sale.transport_enabled and sale.transport_amount > 0:
        rows.append(TotalsRow("Transport / Vehicle Charges:", money(sale.transport_amount)))

    rows.append(TotalsRow(
        "Gross Invoice Value:" if is_gst else "Gross Total:",
        money(sale.grand_total),
        bold=True,
        rule_above=True,
    ))

    if sale.advance_amount > 0:
        rows.append(TotalsRow("Advance Paid:", "- " + money(sale.advance_amount)))
    if sale.amount_paid > 0:
        rows.append(TotalsRow("Amount Paid:", "- " + money(sale.amount_paid)))
    if sale.balance_due > 0:
        rows.append(TotalsRow("Balance Payable:", money(sale.balance_due), bold=True))
    return tuple(rows)


def _payment_lines(sale: Sale) -> tuple[str, ...]:
    lines = [
        f"Payment Type: {PAYMENT_MODE_LABELS.get(sale.payment_mode, sale.payment_mode)}",
        f"Payment Method: {sale.payment_method}",
    ]
    if sale.expected_payment_date and sale.balance_due > 0:
        lines.append(f"Expected Payment Date: {_display_date(sale.expected_payment_date)}")
    if sale.vehicle_number:
        lines.append(f"Vehicle No: {sale.vehicle_number}")
    return tuple(lines)


def build_invoice_layout(sale: Sale, business: BusinessInfo, currency_symbol: str = "₹") -> InvoiceLayout:
    """
    Compute the full invoice content for a sale.

    Pure: the same sale, business and symbol always give an equal layout.
    """
    is_gst = sale.gst_enabled

    def money(value: float) -> str:
        return format_currency(value, symbol=currency_symbol)

    date_text = f"Date: {_display_date(sale.created_at)}"
    if is_gst and sale.place_of_supply:
        header_right = f"Place of Supply: {sale.place_of_supply}"
    else:
        header_right = date_text

    show_bank = is_gst and business.has_bank_details
    bank_lines: tuple[str, ...] = ()
    if show_bank:
        bank_lines = (
            f"Bank Name: {business.bank_name}",
            f"Account Holder: {business.account_holder_name}",
            f"Account No: {business.account_number}",
            f"IFSC Code: {business.ifsc_code}",
        )

    return InvoiceLayout(
        title="GST INVOICE" if is_gst else "INVOICE",
        is_gst_invoice=is_gst,
        invoice_number_text=f"Invoice No: {sale.invoice_number}",
        date_text=date_text,
        header_right_text=header_right,
        seller_heading="Seller Details:",
        seller_name=business.name,
        seller_lines=_seller_lines(business, is_gst),
        buyer_heading="Buyer Details:",
        buyer_name=sale.customer.display_name,
        buyer_address=sale.customer.address,
        buyer_lines=_buyer_lines(sale, is_gst),
        table_header=GST_TABLE_HEADER if is_gst else PLAIN_TABLE_HEADER,
        column_widths=GST_COLUMN_WIDTHS if is_gst else PLAIN_COLUMN_WIDTHS,
        column_align=GST_COLUMN_ALIGN if is_gst else PLAIN_COLUMN_ALIGN,
        rows=_table_rows(sale, is_gst, money),
        totals=_totals(sale, is_gst, money),
        amount_in_words_heading="Invoice Amount (in words):",
        amount_in_words=f"Rupees {number_to_words(sale.grand_total)}",
        payment_heading="Payment Information:",
        payment_lines=_payment_lines(sale),
        bank_heading="Bank Details:" if show_bank else None,
        bank_lines=bank_lines,
        declaration=GST_DECLARATION if is_gst else None,
        terms_heading="Terms & Conditions:",
        terms=TERMS,
        quote=QUOTE,
        pan_text=f"PAN: {business.pan}" if is_gst and business.pan else None,
        signatory_label="Authorized Signatory",
        signatory_for=f"For {business.name}",
        stamp_label="Company Stamp",
        currency_symbol=currency_symbol,
        filename=invoice_filename(sale),
    )
