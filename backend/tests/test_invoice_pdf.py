import re
import unittest
from datetime import datetime
from unittest import mock

from reportlab.pdfbase import pdfmetrics

from backoffice.services import products_service, sales_service
from backoffice.services.blob_store import MemoryBlobStore
from backoffice.services.business_profile import BusinessInfo
from backoffice.services.invoice_pdf import (
    MIN_FONT_SIZE,
    InvoiceFonts,
    fit_text_right,
    load_invoice_fonts,
    render_invoice_pdf,
)


PAGE_MARKER = re.compile(rb"/Type /Page[^s]")


class RecordingCanvas:
    def __init__(self):
        self.font = None
        self.drawn = []

    def setFont(self, name, size):
        self.font = (name, size)

    def drawRightString(self, x, y, text):
        self.drawn.append((x, y, text))


class InvoicePdfTests(unittest.TestCase):
    def setUp(self):
        self.store = MemoryBlobStore()
        product = products_service.create_product(
            {
                "name": "Euro Pallet 48x40",
                "category": "Industrial Wooden Pallets",
                "woodType": "Pine Wood",
                "length": 48,
                "width": 40,
                "height": 9,
                "pricePerCft": 50,
                "quantity": 1000,
                "minOrderQuantity": 5,
            },
            store=self.store,
        )
        self.product_id = product.id

    def _sale(self, items=None, **overrides):
        data = {
            "customer": {"name": "Ravi Patil", "phone": "9800000001", "address": "Ratnagiri", "state": "Maharashtra"},
            "items": items or [{"productId": self.product_id, "quantity": 2}],
            "gstEnabled": True,
            "gstRate": 18,
            "paymentMode": "partial",
            "amountPaid": 500,
            "paymentMethod": "UPI",
        }
        data.update(overrides)
        with mock.patch("backoffice.services.sales_service.utcnow", return_value=datetime(2026, 3, 5, 10, 0)):
            return sales_service.create_sale(data, store=self.store)

    def test_renders_pdf(self):
        pdf = render_invoice_pdf(self._sale(), BusinessInfo())
        self.assertTrue(pdf.startswith(b"%PDF"))
        self.assertEqual(len(PAGE_MARKER.findall(pdf)), 1)

    def test_output_is_deterministic(self):
        sale = self._sale()
        first = render_invoice_pdf(sale, BusinessInfo(bank_name="Bank of Maharashtra"))
        second = render_invoice_pdf(sale, BusinessInfo(bank_name="Bank of Maharashtra"))
        self.assertEqual(first, second)

    def test_plain_invoice_renders(self):
        pdf = render_invoice_pdf(self._sale(gstEnabled=False), BusinessInfo(), InvoiceFonts())
        self.assertTrue(pdf.startswith(b"%PDF"))

    def test_long_item_list_spans_pages(self):
        # snapshot lines for deleted products keep the table long without stock checks
        items = [
            {"productId": f"gone-{i}", "quantity": 1, "productName": f"Crate {i}", "pricePerPiece": 100}
            for i in range(60)
        ]
        pdf = render_invoice_pdf(self._sale(items=items, paymentMode="full", amountPaid=0), BusinessInfo())
        self.assertGreaterEqual(len(PAGE_MARKER.findall(pdf)), 2)

    def test_missing_font_falls_back_to_helvetica(self):
        fonts = load_invoice_fonts("/nonexistent/NotoSans.ttf")
        self.assertEqual(fonts, InvoiceFonts())
        self.assertEqual(fonts.currency_symbol, "Rs. ")
        self.assertEqual(load_invoice_fonts(None), InvoiceFonts())


class FitTextRightTests(unittest.TestCase):
    def test_fits_at_base_size(self):
        c = RecordingCanvas()
        size = fit_text_right(c, "Rs. 90.00", 100, 50, 200, "Helvetica", 9)
        self.assertEqual(size, 9)
        self.assertEqual(c.drawn, [(100, 50, "Rs. 90.00")])

    def test_shrinks_until_it_fits(self):
        text = "Rs. 12,34,56,789.00"
        width = pdfmetrics.stringWidth(text, "Helvetica", 7)
        c = RecordingCanvas()

        size = fit_text_right(c, text, 100, 50, width, "Helvetica", 9)

        self.assertLess(size, 9)
        self.assertLessEqual(pdfmetrics.stringWidth(text, "Helvetica", size), width)
        self.assertEqual(c.font, ("Helvetica", size))

    def test_stops_at_minimum_size(self):
        c = RecordingCanvas()
        size = fit_text_right(c, "Rs. 99,99,99,999.99", 100, 50, 5, "Helvetica", 9)
        self.assertEqual(size, MIN_FONT_SIZE)
        self.assertEqual(len(c.drawn), 1)


if __name__ == "__main__":
    unittest.main()
