"""CSV export of products and orders."""

import csv
from pathlib import Path
from typing import Dict, Iterable, List, Union

from shopadmin.config import DEFAULT_LOCALE
from shopadmin.models import Order, Product, format_number, resolve

__all__ = [
    "PRODUCT_FIELDS",
    "ORDER_FIELDS",
    "product_to_rows",
    "order_to_row",
    "export_products_to_csv",
    "export_orders_to_csv",
]

PRODUCT_FIELDS = [
    "id",
    "name",
    "color",
    "size",
    "price",
    "stock",
    "weight_kg",
    "in_stock",
    "image",
]

ORDER_FIELDS = [
    "id",
    "created_at",
    "status",
    "customer_name",
    "customer_email",
    "shipping_country",
    "items",
    "total_weight_kg",
    "shipping_fee",
    "total",
]


def product_to_rows(product: Product, locale: str = DEFAULT_LOCALE) -> List[Dict[str, str]]:
    """One row per size option; a product without variations gets a single row."""
    base = {
        "id": product.id or "",
        "name": resolve(product.name, locale),
        "weight_kg": format_number(product.weight),
        "in_stock": "yes" if product.in_stock else "no",
        "image": product.image,
    }
    rows = []
    for variation in product.variations:
        for option in variation.size_options:
            rows.append(
                {
                    **base,
                    "color": resolve(variation.color, locale),
                    "size": option.size.label,
                    "price": format_number(option.price),
                    "stock": str(option.stock),
                }
            )
    if not rows:
        rows.append({**base, "color": "", "size": "", "price": "", "stock": "0"})
    return rows


def order_to_row(order: Order) -> Dict[str, str]:
    items = "; ".join(
        f"{item.quantity} x {item.product_name}"
        + (f" ({item.selected_color}, {item.selected_size})" if item.selected_size else "")
        for item in order.products
    )
    return {
        "id": order.id,
        "created_at": order.created_at or "",
        "status": order.status,
        "customer_name": order.customer_info.name,
        "customer_email": order.customer_info.email,
        "shipping_country": order.shipping_country,
        "items": items,
        "total_weight_kg": format_number(order.total_weight),
        "shipping_fee": format_number(order.shipping_fee),
        "total": format_number(order.total),
    }


def _write_rows(path: Union[str, Path], fieldnames: List[str], rows: Iterable[Dict[str, str]]) -> int:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        for row in rows:
            writer.writerow(row)
            count += 1
    return count


def export_products_to_csv(
    products: Iterable[Product], path: Union[str, Path], locale: str = DEFAULT_LOCALE
) -> int:
    """Write products to CSV. Returns the number of rows written."""
    rows = (row for product in products for row in product_to_rows(product, locale))
    return _write_rows(path, PRODUCT_FIELDS, rows)


def export_orders_to_csv(orders: Iterable[Order], path: Union[str, Path]) -> int:
    return _write_rows(path, ORDER_FIELDS, (order_to_row(order) for order in orders))
