"""Command-line interface for the storefront admin."""

import argparse
import getpass
import json
import logging
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

from shopadmin.api import ApiClient
from shopadmin.config import API_BASE_URL, ORDER_STATUSES, TOKEN_PATH
from shopadmin.csv_utils import export_orders_to_csv, export_products_to_csv
from shopadmin.dashboard import (
    STOCK_SORT_KEYS,
    filter_orders,
    filter_products,
    format_vnd,
    order_status_counts,
    sort_products_for_stock,
    stock_status,
    summarize,
)
from shopadmin.errors import AdminError, NotAuthenticatedError, user_message
from shopadmin.forms import (
    ProductForm,
    ShippingFeeForm,
    SizeForm,
    parse_stock_value,
    product_to_form,
)
from shopadmin.logging_config import setup_logging
from shopadmin.models import Product, format_number, resolve
from shopadmin.size_selector import filter_sizes
from shopadmin.state import AdminState, ConfirmFn
from shopadmin.storage import FileTokenStore

__all__ = ["main", "parse_args", "build_state"]


def build_state(token_path: str = TOKEN_PATH, base_url: str = API_BASE_URL) -> AdminState:
    store = FileTokenStore(token_path)
    return AdminState(ApiClient(base_url=base_url, token_store=store), store)


def make_confirm(assume_yes: bool) -> ConfirmFn:
    """Blocking yes/no prompt; ``--yes`` answers for the operator."""

    def confirm(prompt: str) -> bool:
        if assume_yes:
            return True
        answer = input(f"{prompt} [y/N] ")
        return answer.strip().lower() in ("y", "yes")

    return confirm


def require_session(state: AdminState) -> None:
    if not state.restore_session(load=False):
        raise NotAuthenticatedError("Not logged in. Run: shopadmin login USERNAME")


def _read_form(path: str) -> ProductForm:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise AdminError(f"Could not read form file {path}: {e}") from e
    if not isinstance(data, dict):
        raise AdminError(f"Form file {path} must contain a JSON object")
    return ProductForm.from_dict(data)


def _print_product(product: Product, locale: str) -> None:
    print(f"\n{resolve(product.name, locale)}  [{product.id}]")
    if product.short_description is not None:
        print(f"  {resolve(product.short_description, locale)}")
    print(f"  Price: {product.price_range_label}   Stock: {product.total_stock}"
          f"   Weight: {format_number(product.weight)} kg"
          f"   {'In stock' if product.in_stock else 'Out of stock'}")
    for url in product.images:
        print(f"  Image: {url}")
    for spec in product.specifications:
        print(f"  {resolve(spec.key, locale)}: {resolve(spec.value, locale)}")
    for index, variation in enumerate(product.variations):
        print(f"  [{index}] {resolve(variation.color, locale)}")
        for size_index, option in enumerate(variation.size_options):
            flag = "  LOW" if option.is_low_stock else ""
            print(f"      [{size_index}] {option.size.label}: "
                  f"{format_number(option.price)} x {option.stock}{flag}")


# =============================================================================
# Command handlers
# =============================================================================


def cmd_login(state: AdminState, args: argparse.Namespace) -> int:
    password = args.password if args.password is not None else getpass.getpass("Password: ")
    if not state.session.login(args.username, password):
        print(f"Login failed: {state.session.last_error}", file=sys.stderr)
        return 1
    print(f"Logged in as {state.user.username} ({state.user.role})")
    return 0


def cmd_logout(state: AdminState, args: argparse.Namespace) -> int:
    state.logout()
    print("Logged out")
    return 0


def cmd_whoami(state: AdminState, args: argparse.Namespace) -> int:
    require_session(state)
    user = state.user
    print(f"{user.username} <{user.email}> role={user.role}")
    return 0


def cmd_ping(state: AdminState, args: argparse.Namespace) -> int:
    print(json.dumps(state.client.health(), ensure_ascii=False))
    return 0


def cmd_dashboard(state: AdminState, args: argparse.Namespace) -> int:
    require_session(state)
    state.refresh_products()
    state.refresh_orders()
    summary = summarize(state.products, state.orders)

    print(f"\nWelcome back, {state.user.username}!")
    print(f"  Total products: {summary.total_products}")
    print(f"  Total orders:   {summary.total_orders}")
    print(f"  Pending orders: {summary.pending_orders}")
    print(f"  Total revenue:  {format_vnd(summary.total_revenue)}")

    if summary.low_stock_products:
        print(f"\nLow stock ({len(summary.low_stock_products)} product(s)):")
        for product in summary.low_stock_products:
            print(f"  {resolve(product.name, args.locale)} - only {product.total_stock} left")

    if summary.recent_orders:
        print("\nRecent orders:")
        for order in summary.recent_orders:
            print(f"  #{order.id}  {order.customer_info.name:<24} "
                  f"{format_vnd(order.total):>16}  {order.status}")
    return 0


def cmd_products(state: AdminState, args: argparse.Namespace) -> int:
    require_session(state)
    products = state.refresh_products()
    shown = filter_products(products, args.search or "")
    for product in shown:
        print(f"{product.id:<26} {resolve(product.name, args.locale):<40} "
              f"{product.price_range_label:>14} {product.total_stock:>6}")
    print(f"\n{len(shown)} of {len(products)} products")
    return 0


def cmd_product(state: AdminState, args: argparse.Namespace) -> int:
    require_session(state)
    action = args.product_action

    if action == "show":
        _print_product(state.get_product(args.id), args.locale)
        return 0

    if action == "form":
        state.refresh_sizes()
        product = state.get_product(args.id)
        form = product_to_form(product, state.sizes)
        print(json.dumps(form.to_dict(), ensure_ascii=False, indent=2))
        return 0

    if action == "create":
        state.refresh_sizes()
        created = state.create_product(_read_form(args.form))
        print(f"Created product {created.id}")
        return 0

    if action == "edit":
        state.refresh_sizes()
        before = state.get_product(args.id)
        updated = state.update_product(args.id, _read_form(args.form))
        print("No changes" if updated is before else f"Updated product {updated.id}")
        return 0

    if action == "delete":
        state.refresh_products()
        if state.delete_product(args.id, make_confirm(args.yes)):
            print(f"Deleted product {args.id}")
        else:
            print("Cancelled")
        return 0

    raise AdminError(f"Unknown product action {action!r}")


def cmd_stock(state: AdminState, args: argparse.Namespace) -> int:
    require_session(state)
    state.refresh_products()

    if args.stock_action == "set":
        stock = parse_stock_value(args.value)
        product = state.set_stock(args.id, args.variation, args.size, stock)
        print(f"{resolve(product.name, args.locale)}: total stock {product.total_stock}")
        return 0

    if args.stock_action == "adjust":
        product = state.adjust_stock(args.id, args.variation, args.size, args.delta)
        print(f"{resolve(product.name, args.locale)}: total stock {product.total_stock}")
        return 0

    products = sort_products_for_stock(state.products, args.sort, args.locale)
    low = [p for p in products if p.is_low_stock]
    if low:
        print(f"Low stock alert: {len(low)} product(s) below threshold")
    for product in products:
        print(f"{product.id:<26} {resolve(product.name, args.locale):<40} "
              f"{product.total_stock:>6}  {stock_status(product.total_stock)}")
        for v_index, variation in enumerate(product.variations):
            for s_index, option in enumerate(variation.size_options):
                print(f"    [{v_index}.{s_index}] {resolve(variation.color, args.locale):<16} "
                      f"{option.size.label:<16} {option.stock:>5}  {stock_status(option.stock)}")
    print(f"\nTotal units: {sum(p.total_stock for p in products)}")
    return 0


def cmd_orders(state: AdminState, args: argparse.Namespace) -> int:
    require_session(state)
    orders = state.refresh_orders()
    counts = order_status_counts(orders)
    print("  ".join(f"{status}: {count}" for status, count in counts.items()))
    for order in filter_orders(orders, args.status, args.search or ""):
        print(f"#{order.id:<26} {order.customer_info.name:<24} {order.customer_info.email:<28} "
              f"{format_vnd(order.total):>16}  {order.status:<10} {order.created_at or ''}")
    return 0


def cmd_order(state: AdminState, args: argparse.Namespace) -> int:
    require_session(state)
    if args.order_action == "status":
        order = state.update_order_status(args.id, args.status)
        print(f"Order #{order.id} is now {order.status}")
        return 0

    if args.order_action == "delete":
        state.refresh_orders()
        if state.delete_order(args.id, make_confirm(args.yes)):
            print(f"Deleted order {args.id}")
        else:
            print("Cancelled")
        return 0

    raise AdminError(f"Unknown order action {args.order_action!r}")


def cmd_shipping(state: AdminState, args: argparse.Namespace) -> int:
    require_session(state)
    action = args.shipping_action or "list"

    if action == "add":
        fee = state.create_shipping_fee(
            ShippingFeeForm(args.country, args.base_fee, args.per_kg_rate, not args.inactive)
        )
        print(f"Added shipping fee for {fee.country}")
    elif action == "update":
        fee = state.update_shipping_fee(
            args.id, ShippingFeeForm(args.country, args.base_fee, args.per_kg_rate)
        )
        print(f"Updated shipping fee for {fee.country}")
    elif action == "toggle":
        state.refresh_shipping_fees()
        fee = state.toggle_shipping_fee(args.id, make_confirm(args.yes))
        print("Cancelled" if fee is None else
              f"{fee.country} is now {'active' if fee.is_active else 'inactive'}")
    elif action == "delete":
        if state.delete_shipping_fee(args.id, make_confirm(args.yes)):
            print(f"Deleted shipping fee {args.id}")
        else:
            print("Cancelled")
    else:
        for fee in state.refresh_shipping_fees():
            print(f"{fee.id or '':<26} {fee.country:<4} base={format_number(fee.base_fee):<10} "
                  f"per_kg={format_number(fee.per_kg_rate):<10} "
                  f"{'active' if fee.is_active else 'inactive'}")
    return 0


def cmd_sizes(state: AdminState, args: argparse.Namespace) -> int:
    require_session(state)
    action = args.sizes_action or "list"

    if action == "add":
        size = state.create_size(SizeForm(args.eu, args.us))
        print(f"Added {size.label}")
    elif action == "update":
        size = state.update_size(args.id, SizeForm(args.eu, args.us))
        print(f"Updated {size.label}")
    elif action == "delete":
        if state.delete_size(args.id, make_confirm(args.yes)):
            print(f"Deleted size {args.id}")
        else:
            print("Cancelled")
    else:
        sizes = state.refresh_sizes()
        if action == "search":
            sizes = filter_sizes(sizes, args.query)
        for size in sizes:
            print(f"{size.id or '':<26} {size.label}")
    return 0


def cmd_export(state: AdminState, args: argparse.Namespace) -> int:
    require_session(state)
    if args.what == "products":
        count = export_products_to_csv(state.refresh_products(), args.path, args.locale)
    else:
        count = export_orders_to_csv(state.refresh_orders(), args.path)
    print(f"Wrote {count} rows to {args.path}")
    return 0


HANDLERS: Dict[str, Callable[[AdminState, argparse.Namespace], int]] = {
    "login": cmd_login,
    "logout": cmd_logout,
    "whoami": cmd_whoami,
    "ping": cmd_ping,
    "dashboard": cmd_dashboard,
    "products": cmd_products,
    "product": cmd_product,
    "stock": cmd_stock,
    "orders": cmd_orders,
    "order": cmd_order,
    "shipping": cmd_shipping,
    "sizes": cmd_sizes,
    "export": cmd_export,
}


# =============================================================================
# Argument parsing
# =============================================================================


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="shopadmin",
        description="Storefront admin: products, stock, orders, shipping and sizes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Log in (token is kept in ~/.shopadmin/session.json)
  shopadmin login admin

  # Products with a price range and total stock
  shopadmin products --search sneaker

  # Dump a product as an editable form, change it, push the changes
  shopadmin product form 64f0c2 > form.json
  shopadmin product edit 64f0c2 form.json

  # Two more pairs of the first color, second size
  shopadmin stock adjust 64f0c2 0 1 2

  # Mark an order as shipped
  shopadmin order status 650a11 Shipped
        """,
    )
    parser.add_argument("--api", default=API_BASE_URL, help=f"Backend base URL (default: {API_BASE_URL})")
    parser.add_argument("--token-file", default=TOKEN_PATH, help=f"Session file (default: {TOKEN_PATH})")
    parser.add_argument("--locale", choices=["en", "vi"], default="en", help="Display language")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    commands = parser.add_subparsers(dest="command", required=True)

    login = commands.add_parser("login", help="Log in and store the session token")
    login.add_argument("username")
    login.add_argument("--password", help="Password (prompted if omitted)")

    commands.add_parser("logout", help="Forget the stored session")
    commands.add_parser("whoami", help="Show the logged-in admin")
    commands.add_parser("ping", help="Check the backend health endpoint")
    commands.add_parser("dashboard", help="Store overview")

    products = commands.add_parser("products", help="List products")
    products.add_argument("--search", help="Filter by name or short description")

    product = commands.add_parser("product", help="Show, create, edit or delete one product")
    product_actions = product.add_subparsers(dest="product_action", required=True)
    product_actions.add_parser("show").add_argument("id")
    product_actions.add_parser("form", help="Print the product as an editable JSON form").add_argument("id")
    create = product_actions.add_parser("create", help="Create a product from a JSON form file")
    create.add_argument("form")
    edit = product_actions.add_parser("edit", help="Update a product from a JSON form file")
    edit.add_argument("id")
    edit.add_argument("form")
    delete = product_actions.add_parser("delete")
    delete.add_argument("id")
    delete.add_argument("--yes", action="store_true", help="Do not ask for confirmation")

    stock = commands.add_parser("stock", help="Stock levels and adjustments")
    stock.add_argument("--sort", choices=STOCK_SORT_KEYS, default="name")
    stock_actions = stock.add_subparsers(dest="stock_action")
    stock_set = stock_actions.add_parser("set", help="Set stock of one size option")
    stock_adjust = stock_actions.add_parser("adjust", help="Add to (or subtract from) stock")
    for sub in (stock_set, stock_adjust):
        sub.add_argument("id")
        sub.add_argument("variation", type=int, help="Variation index")
        sub.add_argument("size", type=int, help="Size option index")
    stock_set.add_argument("value")
    stock_adjust.add_argument("delta", type=int)

    orders = commands.add_parser("orders", help="List orders")
    orders.add_argument("--status", choices=("All",) + ORDER_STATUSES, default="All")
    orders.add_argument("--search", help="Order id, customer name or email")

    order = commands.add_parser("order", help="Change or delete one order")
    order_actions = order.add_subparsers(dest="order_action", required=True)
    order_status = order_actions.add_parser("status")
    order_status.add_argument("id")
    order_status.add_argument("status", choices=ORDER_STATUSES)
    order_delete = order_actions.add_parser("delete")
    order_delete.add_argument("id")
    order_delete.add_argument("--yes", action="store_true")

    shipping = commands.add_parser("shipping", help="Shipping fee configuration")
    shipping_actions = shipping.add_subparsers(dest="shipping_action")
    shipping_actions.add_parser("list")
    shipping_add = shipping_actions.add_parser("add")
    shipping_update = shipping_actions.add_parser("update")
    shipping_update.add_argument("id")
    for sub in (shipping_add, shipping_update):
        sub.add_argument("country")
        sub.add_argument("base_fee")
        sub.add_argument("per_kg_rate")
    shipping_add.add_argument("--inactive", action="store_true")
    for name in ("toggle", "delete"):
        sub = shipping_actions.add_parser(name)
        sub.add_argument("id")
        sub.add_argument("--yes", action="store_true")

    sizes = commands.add_parser("sizes", help="Size catalog")
    sizes_actions = sizes.add_subparsers(dest="sizes_action")
    sizes_actions.add_parser("list")
    sizes_actions.add_parser("search").add_argument("query")
    sizes_add = sizes_actions.add_parser("add")
    sizes_update = sizes_actions.add_parser("update")
    sizes_update.add_argument("id")
    for sub in (sizes_add, sizes_update):
        sub.add_argument("eu")
        sub.add_argument("us")
    sizes_delete = sizes_actions.add_parser("delete")
    sizes_delete.add_argument("id")
    sizes_delete.add_argument("--yes", action="store_true")

    export = commands.add_parser("export", help="Export to CSV")
    export.add_argument("what", choices=["products", "orders"])
    export.add_argument("path", type=Path)

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    args = parse_args(argv)
    setup_logging(level=logging.DEBUG if args.verbose else logging.WARNING)

    state = build_state(args.token_file, args.api)
    try:
        return HANDLERS[args.command](state, args)
    except AdminError as e:
        print(f"Error: {user_message(e)}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
