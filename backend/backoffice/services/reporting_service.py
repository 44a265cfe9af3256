# Overview: Service-layer operations for reporting; dashboard and revenue rollups over stored records.

from __future__ import annotations

from .blob_store import (
    ALL_KEYS,
    BlobStore,
    current_blob_store,
)
from .calculators import round_money
from .products_service import list_products
from .quotations_service import quotations_collection
from .sales_service import list_sales


def dashboard_stats(store: BlobStore | None = None) -> dict:
    store = store or current_blob_store()
    products = list_products(store)
    sales = list_sales(store)
    quotations = quotations_collection(store).load()

    low_stock = [p for p in products if p.status != "In Stock"]
    return {
        "totalProducts": len(products),
        "totalSales": len(sales),
        "pendingPayments": sum(1 for s in sales if s.status != "Paid"),
        "lowStockItems": len(low_stock),
        "totalRevenue": round_money(sum(s.amount_paid + s.advance_amount for s in sales)),
        "pendingAmount": round_money(sum(s.balance_due for s in sales)),
        "totalQuotations": len(quotations),
        "pendingQuotations": sum(1 for q in quotations if q.status == "Pending"),
        "lowStockProducts": [p.to_dict() for p in low_stock[:5]],
    }


def revenue_summary(store: BlobStore | None = None) -> dict:
    """
    Billed / received / pending totals plus per-month buckets.

    Buckets are keyed YYYY-MM of the sale's createdAt and sorted newest first.
    """
    sales = list_sales(store)

    months: dict[str, dict] = {}
    for sale in sales:
        key = sale.created_at.strftime("%Y-%m")
        bucket = months.setdefault(key, {"month": key, "total": 0.0, "received": 0.0, "count": 0})
        bucket["total"] += sale.grand_total
        bucket["received"] += sale.amount_paid + sale.advance_amount
        bucket["count"] += 1

    for bucket in months.values():
        bucket["total"] = round_money(bucket["total"])
        bucket["received"] = round_money(bucket["received"])

    return {
        "totalBilled": round_money(sum(s.grand_total for s in sales)),
        "totalReceived": round_money(sum(s.amount_paid + s.advance_amount for s in sales)),
        "totalPending": round_money(sum(s.balance_due for s in sales)),
        "months": [months[key] for key in sorted(months, reverse=True)],
    }


def reset_all(store: BlobStore | None = None) -> None:
    """Clear every collection, invoice counters included."""
    store = store or current_blob_store()
    with store.transaction():
        for key in ALL_KEYS:
            store.delete(key)
