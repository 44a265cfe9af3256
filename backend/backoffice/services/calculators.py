# Overview: Pure domain calculators (volume, stock status, invoice numbers, GST, money text).

"""
Domain Calculators

WHY: Every derived value the back office shows or stores (CFT, price per
piece, stock status, GST split, amount in words) comes from one place so
that the services, the API and the invoice renderer can never disagree.

MONEY: Amounts travel as floats but every rounding step goes through
Decimal with ROUND_HALF_UP, to the paisa.

UNITS: Product dimensions are in inches. One cubic foot is 1728 cubic
inches.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP


CUBIC_INCHES_PER_CFT = 1728
INVOICE_PREFIX = "SSF"
INVOICE_COUNTER_MAX = 9999

PRODUCT_CATEGORIES = (
    "Industrial Wooden Pallets",
    "EURO 2-Way Pallets",
    "EURO 4-Way Pallets",
    "CP1 Pallets",
    "CP2 Pallets",
    "CP3 Pallets",
    "CP4 Pallets",
    "CP5 Pallets",
    "CP6 Pallets",
    "CP7 Pallets",
    "CP8 Pallets",
    "CP9 Pallets",
    "Wooden Boxes",
    "Wooden Tables",
    "Wooden Crates",
    "Custom Wooden Products",
    "Industrial Wood Packaging",
    "Jungle Wood Products",
    "Pine Wood Products",
)

WOOD_TYPES = ("Jungle Wood", "Pine Wood", "Custom")
STOCK_STATUSES = ("In Stock", "Low Stock", "Out of Stock")
PAYMENT_MODES = ("full", "partial", "advance", "pending")
PAYMENT_METHODS = ("Banking", "NEFT", "RTGS", "Cash", "UPI")
GST_RATES = (12, 18)

DEFAULT_HSN_CODE = "4415"
HSN_CODES = {
    "Wooden Tables": "9403",
    "Custom Wooden Products": "4421",
    "Jungle Wood Products": "4421",
    "Pine Wood Products": "4421",
}

INDIAN_STATES = (
    ("Andhra Pradesh", "37"),
    ("Arunachal Pradesh", "12"),
    ("Assam", "18"),
    ("Bihar", "10"),
    ("Chhattisgarh", "22"),
    ("Goa", "30"),
    ("Gujarat", "24"),
    ("Haryana", "06"),
    ("Himachal Pradesh", "02"),
    ("Jharkhand", "20"),
    ("Karnataka", "29"),
    ("Kerala", "32"),
    ("Madhya Pradesh", "23"),
    ("Maharashtra", "27"),
    ("Manipur", "14"),
    ("Meghalaya", "17"),
    ("Mizoram", "15"),
    ("Nagaland", "13"),
    ("Odisha", "21"),
    ("Punjab", "03"),
    ("Rajasthan", "08"),
    ("Sikkim", "11"),
    ("Tamil Nadu", "33"),
    ("Telangana", "36"),
    ("Tripura", "16"),
    ("Uttar Pradesh", "09"),
    ("Uttarakhand", "05"),
    ("West Bengal", "19"),
    ("Delhi", "07"),
)

_CENT = Decimal("0.01")


# =============================================================================
# MONEY
# =============================================================================

def _to_decimal(value) -> Decimal:
    # str() first so 0.1 + 0.2 style float noise is not carried into Decimal
    return Decimal(str(value))


def round_money(value) -> float:
    """Round to the paisa, half away from zero."""
    return float(_to_decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP))


# =============================================================================
# PRODUCT MATH
# =============================================================================

def calculate_volume(length: float, width: float, height: float) -> float:
    """
    Cubic feet per piece from inch dimensions.

    Raises ValueError if any dimension is not positive.
    """
    for name, value in (("length", length), ("width", width), ("height", height)):
        if value is None or value <= 0:
            raise ValueError(f"{name} must be > 0")
    return (length * width * height) / CUBIC_INCHES_PER_CFT


def classify_stock(quantity: int, min_order: int) -> str:
    if quantity <= 0:
        return "Out of Stock"
    if quantity <= min_order * 2:
        return "Low Stock"
    return "In Stock"


def hsn_code_for(category: str | None) -> str:
    return HSN_CODES.get(category or "", DEFAULT_HSN_CODE)


def state_code_for(state_name: str | None) -> str | None:
    if not state_name:
        return None
    wanted = state_name.strip().lower()
    for name, code in INDIAN_STATES:
        if name.lower() == wanted:
            return code
    return None


# =============================================================================
# INVOICE NUMBERS
# =============================================================================

class InvoiceNumbersExhausted(Exception):
    """Every counter value for the period has been issued."""
    def __init__(self, period: str):
        super().__init__(f"Invoice numbers exhausted for {period}")
        self.period = period


def invoice_period(now: datetime) -> str:
    """YYMM period key used by the invoice counter."""
    return now.strftime("%y%m")


def generate_invoice_number(existing: set[str] | list[str], sequences: dict[str, int], now: datetime) -> str:
    """
    Next invoice number for the month of `now`: SSF{YY}{MM}{NNNN}.

    `sequences` maps YYMM -> last issued counter and is advanced in place;
    the caller persists it together with the sale. Candidates colliding with
    an existing invoice number are skipped.

    Raises InvoiceNumbersExhausted when the month's counter is used up.
    """
    period = invoice_period(now)
    taken = set(existing)
    counter = sequences.get(period, 0)
    while True:
        counter += 1
        if counter > INVOICE_COUNTER_MAX:
            raise InvoiceNumbersExhausted(period)
        candidate = f"{INVOICE_PREFIX}{period}{counter:04d}"
        if candidate not in taken:
            sequences[period] = counter
            return candidate


# =============================================================================
# GST
# =============================================================================

@dataclass(frozen=True)
class GstSplit:
    rate: int
    total: float
    cgst: float | None
    sgst: float | None
    igst: float | None


def split_gst(subtotal: float, rate: int, is_inter_state: bool) -> GstSplit:
    """
    GST on a subtotal, split into CGST/SGST (intra-state) or IGST.

    The total is rounded first; SGST takes whatever CGST leaves so the
    halves always add back to the total exactly.
    """
    if rate not in GST_RATES:
        raise ValueError(f"GST rate must be one of {GST_RATES}")

    total = (_to_decimal(subtotal) * rate / 100).quantize(_CENT, rounding=ROUND_HALF_UP)
    if is_inter_state:
        return GstSplit(rate=rate, total=float(total), cgst=None, sgst=None, igst=float(total))

    cgst = (total / 2).quantize(_CENT, rounding=ROUND_HALF_UP)
    sgst = total - cgst
    return GstSplit(rate=rate, total=float(total), cgst=float(cgst), sgst=float(sgst), igst=None)


# =============================================================================
# AMOUNT TEXT
# =============================================================================

_ONES = (
    "", "One", "Two", "Three", "Four", "Five", "Six", "Seven", "Eight", "Nine",
    "Ten", "Eleven", "Twelve", "Thirteen", "Fourteen", "Fifteen", "Sixteen",
    "Seventeen", "Eighteen", "Nineteen",
)
_TENS = ("", "", "Twenty", "Thirty", "Forty", "Fifty", "Sixty", "Seventy", "Eighty", "Ninety")


def _below_thousand(n: int) -> str:
    if n == 0:
        return ""
    if n < 20:
        return _ONES[n]
    if n < 100:
        return _TENS[n // 10] + (" " + _ONES[n % 10] if n % 10 else "")
    rest = n % 100
    return _ONES[n // 100] + " Hundred" + (" " + _below_thousand(rest) if rest else "")


def _integer_words(n: int) -> str:
    crore, n = divmod(n, 10_000_000)
    lakh, n = divmod(n, 100_000)
    thousand, hundred = divmod(n, 1000)

    parts = []
    if crore:
        # Crore counts can exceed 99, so they get the full treatment too
        parts.append(_integer_words(crore) + " Crore")
    if lakh:
        parts.append(_below_thousand(lakh) + " Lakh")
    if thousand:
        parts.append(_below_thousand(thousand) + " Thousand")
    if hundred:
        parts.append(_below_thousand(hundred))
    return " ".join(parts)


def number_to_words(amount: float) -> str:
    """
    Indian-system amount in words: 1234.5 -> "One Thousand Two Hundred
    Thirty Four and Fifty Paise Only".
    """
    value = _to_decimal(amount).quantize(_CENT, rounding=ROUND_HALF_UP)
    if value < 0:
        raise ValueError("amount must be >= 0")
    if value == 0:
        return "Zero Only"

    rupees = int(value)
    paise = int((value - rupees) * 100)

    words = _integer_words(rupees) if rupees else "Zero"
    if paise:
        words += " and " + _below_thousand(paise) + " Paise"
    return words + " Only"


def _group_indian(digits: str) -> str:
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups) + "," + tail


def format_currency(amount: float, symbol: str = "₹") -> str:
    """12345678.9 -> '₹1,23,45,678.90'. Negative amounts get a leading '-'."""
    value = _to_decimal(amount).quantize(_CENT, rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    rupees, paise = f"{abs(value):.2f}".split(".")
    return f"{sign}{symbol}{_group_indian(rupees)}.{paise}"
