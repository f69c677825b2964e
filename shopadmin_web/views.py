"""Admin pages: login, dashboard, products, stock, orders, shipping, sizes.

Each request builds its own ``AdminState`` around the token kept in the
session cookie. Destructive actions are POST-only; a POST without
``confirm=yes`` renders the confirmation page instead of calling the API.
"""

from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlsplit

from flask import (
    Blueprint,
    current_app,
    flash,
    g,
    jsonify,
    redirect,
    render_template,
    request,
    session,
    url_for,
)
from werkzeug.wrappers import Response

from shopadmin.api import ApiClient
from shopadmin.config import ORDER_STATUSES
from shopadmin.dashboard import (
    STOCK_SORT_KEYS,
    filter_orders,
    filter_products,
    order_status_counts,
    sort_products_for_stock,
    summarize,
)
from shopadmin.errors import (
    AdminError,
    FormValidationError,
    NetworkError,
    NotAuthenticatedError,
    SessionExpiredError,
)
from shopadmin.forms import ProductForm, ShippingFeeForm, parse_stock_value, product_to_form
from shopadmin.logging_config import get_logger
from shopadmin.models import format_number
from shopadmin.size_selector import SizeSelector, size_row_choices
from shopadmin.state import AdminState
from shopadmin.storage import TokenStore

from .config import EXTRA_SIZE_ROWS, EXTRA_SPECIFICATION_ROWS, EXTRA_VARIATION_ROWS
from .request_forms import (
    product_form_from_request,
    shipping_form_from_request,
    size_form_from_request,
    size_queries_from_request,
)
from .session_store import VERIFIED_KEY, FlaskSessionTokenStore

__all__ = ["admin", "get_state"]

logger = get_logger("web")

admin = Blueprint("admin", __name__)

PUBLIC_ENDPOINTS = {"admin.login", "static"}


def _default_client(store: TokenStore) -> ApiClient:
    return ApiClient(base_url=current_app.config["API_BASE_URL"], token_store=store)


def get_state() -> AdminState:
    """The request's AdminState, with the stored session restored."""
    if "admin_state" not in g:
        store = FlaskSessionTokenStore()
        factory = current_app.config.get("CLIENT_FACTORY") or _default_client
        state = AdminState(factory(store), store)
        if store.get_token():
            # Verify once per browser session, then trust the cookie
            if state.restore_session(load=False, verify=not session.get(VERIFIED_KEY)):
                session[VERIFIED_KEY] = True
        g.admin_state = state
    return g.admin_state


class FormConfirmation:
    """Confirmation answered by a ``confirm=yes`` form field."""

    def __init__(self, answer: bool):
        self.answer = answer
        self.prompt: Optional[str] = None

    def __call__(self, prompt: str) -> bool:
        self.prompt = prompt
        return self.answer

    @property
    def pending(self) -> bool:
        """Asked but not yet confirmed: nothing was sent to the backend."""
        return self.prompt is not None and not self.answer


def _confirmation() -> FormConfirmation:
    return FormConfirmation(request.form.get("confirm") == "yes")


def _confirm_page(confirmation: FormConfirmation, cancel_url: str) -> str:
    return render_template(
        "confirm.html",
        prompt=confirmation.prompt,
        action_url=request.path,
        cancel_url=cancel_url,
    )


def _locale() -> str:
    return session.get("locale", "en")


def _is_local_path(url: str) -> bool:
    """Same-site absolute path; rejects ``//host`` and ``/\\host`` forms."""
    parts = urlsplit(url)
    return (
        url.startswith("/")
        and not url.startswith("//")
        and "\\" not in url
        and not parts.scheme
        and not parts.netloc
    )


# =============================================================================
# Hooks and error handling
# =============================================================================


@admin.before_app_request
def _remember_locale() -> None:
    lang = request.args.get("lang")
    if lang in ("en", "vi"):
        session["locale"] = lang


@admin.before_request
def require_login() -> Optional[Response]:
    if request.endpoint in PUBLIC_ENDPOINTS:
        return None
    if not get_state().is_authenticated:
        return redirect(url_for("admin.login", next=request.path))
    return None


@admin.app_context_processor
def _template_globals() -> dict:
    state = g.get("admin_state")
    return {
        "current_user": state.user if state is not None else None,
        "locale": _locale(),
        "order_statuses": ORDER_STATUSES,
    }


@admin.errorhandler(SessionExpiredError)
@admin.errorhandler(NotAuthenticatedError)
def _session_lost(e: AdminError) -> Response:
    flash(e.message, "error")
    return redirect(url_for("admin.login"))


@admin.errorhandler(AdminError)
def _operation_failed(e: AdminError) -> Any:
    """Show the message inline; prior data is untouched."""
    flash(e.message, "error")
    if request.method == "POST":
        return redirect(request.referrer or url_for("admin.dashboard"))
    status = 502 if isinstance(e, NetworkError) or getattr(e, "status_code", None) else 400
    return render_template("error.html", message=e.message), status


# =============================================================================
# Session
# =============================================================================


@admin.route("/login", methods=["GET", "POST"])
def login() -> Any:
    state = get_state()
    if state.is_authenticated:
        return redirect(url_for("admin.dashboard"))

    if request.method == "POST":
        username = request.form.get("username", "").strip()
        password = request.form.get("password", "")
        if state.login(username, password):
            next_url = request.args.get("next") or ""
            return redirect(next_url if _is_local_path(next_url) else url_for("admin.dashboard"))
        flash(state.error or "Login failed", "error")
        return render_template("login.html", username=username), 401

    return render_template("login.html", username="")


@admin.route("/logout", methods=["POST"])
def logout() -> Response:
    get_state().logout()
    flash("Logged out", "info")
    return redirect(url_for("admin.login"))


# =============================================================================
# Dashboard and products
# =============================================================================


@admin.route("/")
def dashboard() -> Any:
    state = get_state()
    failures = state.load_all()
    if not state.is_authenticated:
        flash(failures[0] if failures else "Please log in", "error")
        return redirect(url_for("admin.login"))
    for message in failures:
        flash(message, "error")
    return render_template("dashboard.html", summary=summarize(state.products, state.orders))


@admin.route("/products")
def products() -> str:
    state = get_state()
    search = request.args.get("q", "")
    all_products = state.refresh_products()
    return render_template(
        "products.html",
        products=filter_products(all_products, search),
        total=len(all_products),
        search=search,
    )


def _render_product_form(
    form: ProductForm,
    product_id: Optional[str] = None,
    errors: Optional[List[str]] = None,
    queries: Optional[Dict[Tuple[int, int], str]] = None,
) -> str:
    catalog = get_state().sizes
    queries = queries or {}
    size_choices = [
        [
            size_row_choices(catalog, row.size_id, queries.get((i, j), ""))
            for j, row in enumerate(variation.sizes)
        ]
        for i, variation in enumerate(form.variations)
    ]
    return render_template(
        "product_form.html",
        form=form,
        product_id=product_id,
        size_choices=size_choices,
        errors=errors or [],
    )


def _filtering_sizes() -> bool:
    """The "Filter sizes" button re-renders the form without saving."""
    return request.form.get("action") == "filter_sizes"


def _padded(form: ProductForm) -> ProductForm:
    return form.padded(
        variations=EXTRA_VARIATION_ROWS,
        sizes=EXTRA_SIZE_ROWS,
        specifications=EXTRA_SPECIFICATION_ROWS,
    )


@admin.route("/products/new", methods=["GET", "POST"])
def product_new() -> Any:
    state = get_state()
    state.refresh_sizes()
    if request.method == "GET":
        return _render_product_form(_padded(ProductForm()))

    form = product_form_from_request(request.form)
    if _filtering_sizes():
        return _render_product_form(form, queries=size_queries_from_request(request.form))
    try:
        created = state.create_product(form)
    except FormValidationError as e:
        return _render_product_form(form, errors=e.errors), 400
    flash(f"Product {created.display_name(_locale())} added", "success")
    return redirect(url_for("admin.products"))


@admin.route("/products/<product_id>/edit", methods=["GET", "POST"])
def product_edit(product_id: str) -> Any:
    state = get_state()
    state.refresh_sizes()
    product = state.get_product(product_id)
    if request.method == "GET":
        return _render_product_form(_padded(product_to_form(product, state.sizes)), product_id)

    form = product_form_from_request(request.form)
    if _filtering_sizes():
        return _render_product_form(
            form, product_id, queries=size_queries_from_request(request.form)
        )
    try:
        updated = state.update_product(product_id, form)
    except FormValidationError as e:
        return _render_product_form(form, product_id, errors=e.errors), 400
    flash(f"Product {updated.display_name(_locale())} saved", "success")
    return redirect(url_for("admin.products"))


@admin.route("/products/<product_id>/delete", methods=["POST"])
def product_delete(product_id: str) -> Any:
    state = get_state()
    state.refresh_products()
    confirmation = _confirmation()
    deleted = state.delete_product(product_id, confirmation)
    if confirmation.pending:
        return _confirm_page(confirmation, url_for("admin.products"))
    if deleted:
        flash("Product deleted", "success")
    return redirect(url_for("admin.products"))


# =============================================================================
# Stock
# =============================================================================


@admin.route("/stock")
def stock() -> str:
    state = get_state()
    sort_by = request.args.get("sort", "name")
    if sort_by not in STOCK_SORT_KEYS:
        sort_by = "name"
    search = request.args.get("q", "")
    all_products = state.refresh_products()
    shown = sort_products_for_stock(filter_products(all_products, search), sort_by, _locale())
    return render_template(
        "stock.html",
        products=shown,
        low_stock=[p for p in all_products if p.is_low_stock],
        total_units=sum(p.total_stock for p in all_products),
        total=len(all_products),
        sort_by=sort_by,
        sort_keys=STOCK_SORT_KEYS,
        search=search,
    )


@admin.route("/stock/<product_id>/<int:variation_index>/<int:size_index>", methods=["POST"])
def stock_update(product_id: str, variation_index: int, size_index: int) -> Response:
    state = get_state()
    state.refresh_products()
    delta = request.form.get("delta")
    if delta is not None:
        try:
            amount = int(delta)
        except ValueError:
            raise FormValidationError([f"Invalid stock change: {delta!r}"]) from None
        state.adjust_stock(product_id, variation_index, size_index, amount)
    else:
        stock_value = parse_stock_value(request.form.get("stock", ""))
        state.set_stock(product_id, variation_index, size_index, stock_value)
    return redirect(url_for("admin.stock", sort=request.args.get("sort", "name")))


# =============================================================================
# Orders
# =============================================================================


@admin.route("/orders")
def orders() -> str:
    state = get_state()
    status = request.args.get("status", "All")
    search = request.args.get("q", "")
    all_orders = state.refresh_orders()
    return render_template(
        "orders.html",
        orders=filter_orders(all_orders, status, search),
        counts=order_status_counts(all_orders),
        total=len(all_orders),
        status=status,
        search=search,
    )


@admin.route("/orders/<order_id>/status", methods=["POST"])
def order_status(order_id: str) -> Response:
    order = get_state().update_order_status(order_id, request.form.get("status", ""))
    flash(f"Order #{order.id} marked {order.status}", "success")
    return redirect(request.referrer or url_for("admin.orders"))


@admin.route("/orders/<order_id>/delete", methods=["POST"])
def order_delete(order_id: str) -> Any:
    confirmation = _confirmation()
    deleted = get_state().delete_order(order_id, confirmation)
    if confirmation.pending:
        return _confirm_page(confirmation, url_for("admin.orders"))
    if deleted:
        flash("Order deleted", "success")
    return redirect(url_for("admin.orders"))


# =============================================================================
# Shipping fees
# =============================================================================


@admin.route("/shipping", methods=["GET", "POST"])
def shipping() -> Any:
    state = get_state()
    if request.method == "POST":
        fee = state.create_shipping_fee(shipping_form_from_request(request.form))
        flash(f"Shipping fee for {fee.country} added", "success")
        return redirect(url_for("admin.shipping"))

    fees = state.refresh_shipping_fees()
    editing = state.find_shipping_fee(request.args.get("edit", ""))
    form = (
        ShippingFeeForm(
            editing.country,
            format_number(editing.base_fee),
            format_number(editing.per_kg_rate),
            editing.is_active,
        )
        if editing is not None
        else ShippingFeeForm()
    )
    return render_template("shipping.html", fees=fees, form=form, editing=editing)


@admin.route("/shipping/<fee_id>", methods=["POST"])
def shipping_update(fee_id: str) -> Response:
    fee = get_state().update_shipping_fee(fee_id, shipping_form_from_request(request.form))
    flash(f"Shipping fee for {fee.country} saved", "success")
    return redirect(url_for("admin.shipping"))


@admin.route("/shipping/<fee_id>/toggle", methods=["POST"])
def shipping_toggle(fee_id: str) -> Any:
    state = get_state()
    state.refresh_shipping_fees()
    confirmation = _confirmation()
    toggled = state.toggle_shipping_fee(fee_id, confirmation)
    if confirmation.pending:
        return _confirm_page(confirmation, url_for("admin.shipping"))
    if toggled is not None:
        flash(f"{toggled.country} is now {'active' if toggled.is_active else 'inactive'}", "success")
    return redirect(url_for("admin.shipping"))


@admin.route("/shipping/<fee_id>/delete", methods=["POST"])
def shipping_delete(fee_id: str) -> Any:
    confirmation = _confirmation()
    deleted = get_state().delete_shipping_fee(fee_id, confirmation)
    if confirmation.pending:
        return _confirm_page(confirmation, url_for("admin.shipping"))
    if deleted:
        flash("Shipping fee deleted", "success")
    return redirect(url_for("admin.shipping"))


# =============================================================================
# Size catalog
# =============================================================================


@admin.route("/sizes", methods=["GET", "POST"])
def sizes() -> Any:
    state = get_state()
    if request.method == "POST":
        size = state.create_size(size_form_from_request(request.form))
        flash(f"{size.label} added", "success")
        return redirect(url_for("admin.sizes"))
    return render_template("sizes.html", sizes=state.refresh_sizes())


@admin.route("/sizes/search")
def sizes_search() -> Response:
    """Type-ahead options for the size picker of a variation row."""
    state = get_state()
    selector = SizeSelector(state.refresh_sizes())
    selected = request.args.get("selected", "")
    if selected:
        try:
            selector.select(selected)
        except KeyError:
            logger.debug(f"Size {selected!r} is not in the catalog; showing the list unselected")
    selector.type_text(request.args.get("q", ""))
    return jsonify(
        {
            "options": [{"id": size.id, "label": size.label} for size in selector.filtered_options()],
            "selected": selector.selected_id,
        }
    )


@admin.route("/sizes/<size_id>", methods=["POST"])
def size_update(size_id: str) -> Response:
    size = get_state().update_size(size_id, size_form_from_request(request.form))
    flash(f"{size.label} saved", "success")
    return redirect(url_for("admin.sizes"))


@admin.route("/sizes/<size_id>/delete", methods=["POST"])
def size_delete(size_id: str) -> Any:
    confirmation = _confirmation()
    deleted = get_state().delete_size(size_id, confirmation)
    if confirmation.pending:
        return _confirm_page(confirmation, url_for("admin.sizes"))
    if deleted:
        flash("Size deleted", "success")
    return redirect(url_for("admin.sizes"))
