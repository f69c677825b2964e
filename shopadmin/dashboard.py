"""Derived figures for the dashboard, order list and stock pages.

Everything here is computed from already-loaded products and orders; no
backend calls.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from shopadmin.config import (
    DEFAULT_LOCALE,
    LOW_STOCK_THRESHOLD,
    MEDIUM_STOCK_THRESHOLD,
    ORDER_STATUSES,
    RECENT_ORDERS_LIMIT,
)
from shopadmin.models import Order, Product, format_number, resolve

__all__ = [
    "DashboardSummary",
    "summarize",
    "order_status_counts",
    "filter_orders",
    "filter_products",
    "sort_products_for_stock",
    "stock_status",
    "format_amount",
    "format_vnd",
    "STOCK_SORT_KEYS",
]

STOCK_SORT_KEYS = ("name", "stock", "low_stock")


@dataclass
class DashboardSummary:
    total_products: int = 0
    total_orders: int = 0
    pending_orders: int = 0
    total_revenue: float = 0.0
    low_stock_products: List[Product] = field(default_factory=list)
    recent_orders: List[Order] = field(default_factory=list)


def summarize(products: Sequence[Product], orders: Sequence[Order]) -> DashboardSummary:
    counts = order_status_counts(orders)
    return DashboardSummary(
        total_products=len(products),
        total_orders=len(orders),
        pending_orders=counts.get("Pending", 0),
        total_revenue=sum(order.total for order in orders),
        low_stock_products=[product for product in products if product.is_low_stock],
        recent_orders=list(orders[:RECENT_ORDERS_LIMIT]),
    )


def order_status_counts(orders: Sequence[Order]) -> Dict[str, int]:
    """Count per known status; unknown labels are counted under their own name."""
    counts = {status: 0 for status in ORDER_STATUSES}
    for order in orders:
        counts[order.status] = counts.get(order.status, 0) + 1
    return counts


def filter_orders(
    orders: Sequence[Order], status: Optional[str] = None, search: str = ""
) -> List[Order]:
    """Filter by status ("All" or None for any) and by id, customer name or email."""
    needle = search.strip().lower()
    result = []
    for order in orders:
        if status and status != "All" and order.status != status:
            continue
        if needle and not any(
            needle in text.lower()
            for text in (order.id, order.customer_info.name, order.customer_info.email)
        ):
            continue
        result.append(order)
    return result


def filter_products(products: Sequence[Product], search: str = "") -> List[Product]:
    """Match the search text against names and short descriptions, both locales."""
    needle = search.strip().lower()
    if not needle:
        return list(products)

    def haystack(product: Product) -> List[str]:
        texts = [product.name.en, product.name.vi]
        if product.short_description is not None:
            texts += [product.short_description.en, product.short_description.vi]
        return texts

    return [p for p in products if any(needle in text.lower() for text in haystack(p))]


def sort_products_for_stock(
    products: Sequence[Product], sort_by: str = "name", locale: str = DEFAULT_LOCALE
) -> List[Product]:
    if sort_by == "name":
        return sorted(products, key=lambda p: resolve(p.name, locale).lower())
    if sort_by == "stock":
        return sorted(products, key=lambda p: p.total_stock)
    if sort_by == "low_stock":
        return sorted(products, key=lambda p: 0 if p.is_low_stock else 1)
    raise ValueError(f"Unknown sort key {sort_by!r}; expected one of {STOCK_SORT_KEYS}")


def stock_status(stock: int) -> str:
    if stock < LOW_STOCK_THRESHOLD:
        return "low"
    if stock < MEDIUM_STOCK_THRESHOLD:
        return "medium"
    return "in_stock"


def format_amount(value: float) -> str:
    return format_number(value)


def format_vnd(value: float) -> str:
    """Vietnamese grouping: 1234567 -> "1.234.567 VNĐ"."""
    return f"{round(float(value)):,}".replace(",", ".") + " VNĐ"
