from datetime import datetime
from unittest import mock

import pytest

from backoffice.services import products_service, sales_service
from backoffice.services.business_profile import BusinessInfo
from backoffice.services.invoice_layout import build_invoice_layout


BANKED = BusinessInfo(
    gstin="27ABCDE1234F1Z5",
    pan="ABCDE1234F",
    bank_name="Bank of Maharashtra",
    account_number="60123456789",
    ifsc_code="MAHB0000123",
)


@pytest.fixture
def make_sale(memory_store, pallet_data, customer_data):
    product = products_service.create_product(pallet_data, store=memory_store)

    def _make(when=datetime(2026, 3, 5, 10, 0, 0), **overrides):
        data = {
            "customer": dict(customer_data, gstin="27AAACK1234M1Z2"),
            "items": [{"productId": product.id, "quantity": 2}],
            "gstEnabled": True,
            "gstRate": 18,
            "paymentMode": "full",
            "paymentMethod": "NEFT",
        }
        data.update(overrides)
        with mock.patch("backoffice.services.sales_service.utcnow", return_value=when):
            return sales_service.create_sale(data, store=memory_store)
    return _make


def _totals(layout):
    return {row.label: row.value for row in layout.totals}


class TestGstInvoice:
    def test_intra_state_split(self, make_sale):
        layout = build_invoice_layout(make_sale(), BANKED, currency_symbol="Rs. ")

        assert layout.title == "GST INVOICE"
        assert layout.invoice_number_text == "Invoice No: SSF26030001"
        assert layout.header_right_text == "Place of Supply: Maharashtra"
        totals = _totals(layout)
        assert totals["Total Taxable Value:"] == "Rs. 1,000.00"
        assert totals["CGST @ 9%:"] == "Rs. 90.00"
        assert totals["SGST @ 9%:"] == "Rs. 90.00"
        assert totals["Gross Invoice Value:"] == "Rs. 1,180.00"
        assert totals["Amount Paid:"] == "- Rs. 1,180.00"
        assert "Balance Payable:" not in totals

    def test_inter_state_igst(self, make_sale):
        layout = build_invoice_layout(make_sale(isInterState=True), BANKED)
        totals = _totals(layout)
        assert totals["IGST @ 18%:"] == "₹180.00"
        assert not any(label.startswith("CGST") for label in totals)

    def test_table_and_parties(self, make_sale):
        layout = build_invoice_layout(make_sale(), BANKED)

        assert layout.table_header[2] == "HSN"
        assert layout.rows == (
            ("1", "Euro Pallet 48x40", "4415", "Pine Wood", "2", "10.000", "20.000", "₹500.00", "₹1,000.00"),
        )
        assert layout.buyer_name == "Konkan Exports Pvt Ltd"
        assert "GSTIN: 27AAACK1234M1Z2" in layout.buyer_lines
        assert "GSTIN: 27ABCDE1234F1Z5" in layout.seller_lines
        assert layout.pan_text == "PAN: ABCDE1234F"
        assert layout.declaration

    def test_bank_details_when_configured(self, make_sale):
        layout = build_invoice_layout(make_sale(), BANKED)
        assert layout.bank_heading == "Bank Details:"
        assert "IFSC Code: MAHB0000123" in layout.bank_lines

        without_bank = build_invoice_layout(make_sale(), BusinessInfo())
        assert without_bank.bank_heading is None
        assert without_bank.bank_lines == ()

    def test_amount_in_words(self, make_sale):
        layout = build_invoice_layout(make_sale(), BANKED)
        assert layout.amount_in_words == "Rupees One Thousand One Hundred Eighty Only"


class TestPlainInvoice:
    def test_plain_invoice_shows_dimensions(self, make_sale):
        layout = build_invoice_layout(make_sale(gstEnabled=False), BANKED)

        assert layout.title == "INVOICE"
        assert layout.table_header[3] == "Dimensions"
        assert layout.rows[0][3] == '48" × 40" × 9"'
        assert layout.header_right_text == layout.date_text
        assert layout.bank_heading is None
        assert layout.declaration is None
        assert layout.pan_text is None
        assert "GSTIN: 27ABCDE1234F1Z5" not in layout.seller_lines
        assert _totals(layout)["Gross Total:"] == "₹1,000.00"

    def test_pending_payment_lines(self, make_sale):
        sale = make_sale(
            gstEnabled=False,
            paymentMode="pending",
            expectedPaymentDate="2026-03-20",
            transportEnabled=True,
            transportAmount=150,
            vehicleNumber="MH08AB1234",
        )
        layout = build_invoice_layout(sale, BANKED)

        assert layout.payment_lines == (
            "Payment Type: Payment Pending",
            "Payment Method: NEFT",
            "Expected Payment Date: 20/03/2026",
            "Vehicle No: MH08AB1234",
        )
        totals = _totals(layout)
        assert totals["Transport / Vehicle Charges:"] == "₹150.00"
        assert totals["Balance Payable:"] == "₹1,150.00"

    def test_date_in_ist(self, make_sale):
        layout = build_invoice_layout(make_sale(when=datetime(2026, 3, 5, 20, 0, 0)), BANKED)
        assert layout.date_text == "Date: 06/03/2026"

    def test_filename(self, make_sale):
        assert build_invoice_layout(make_sale(), BANKED).filename == "Invoice_SSF26030001.pdf"

    def test_layout_is_pure(self, make_sale):
        sale = make_sale()
        assert build_invoice_layout(sale, BANKED) == build_invoice_layout(sale, BANKED)
