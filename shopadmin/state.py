"""Application state for one admin front end.

``AdminState`` owns the session gate and the data loaded from the backend.
Front ends read through its properties and change things only through its
operations. Cached data is replaced only after the backend confirms a
change, so a failed request leaves everything as it was.
"""

from contextlib import contextmanager
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from shopadmin.api import ApiClient
from shopadmin.errors import (
    AdminError,
    FormValidationError,
    NotAuthenticatedError,
    SessionExpiredError,
)
from shopadmin.forms import (
    ProductForm,
    ShippingFeeForm,
    SizeForm,
    build_update_payload,
    form_to_product,
)
from shopadmin.logging_config import get_logger, log_admin_event
from shopadmin.models import (
    AdminUser,
    Order,
    OrderStatus,
    Product,
    ProductVariation,
    ProductVariationSizeOption,
    ShippingFee,
    SizeOption,
)
from shopadmin.session import SessionGate
from shopadmin.storage import TokenStore

__all__ = ["AdminState", "ConfirmFn"]

logger = get_logger("state")

# Asked before anything destructive; returning False cancels the request.
ConfirmFn = Callable[[str], bool]


class AdminState:
    """Session plus the products, orders, shipping fees and sizes loaded so far."""

    def __init__(self, client: ApiClient, store: Optional[TokenStore] = None):
        self.client = client
        self.session = SessionGate(client, store if store is not None else client.token_store)
        self._products: List[Product] = []
        self._orders: List[Order] = []
        self._shipping_fees: List[ShippingFee] = []
        self._sizes: List[SizeOption] = []
        self.error: Optional[str] = None

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def user(self) -> Optional[AdminUser]:
        return self.session.user

    @property
    def is_authenticated(self) -> bool:
        return self.session.is_authenticated

    @property
    def products(self) -> List[Product]:
        return list(self._products)

    @property
    def orders(self) -> List[Order]:
        return list(self._orders)

    @property
    def shipping_fees(self) -> List[ShippingFee]:
        return list(self._shipping_fees)

    @property
    def sizes(self) -> List[SizeOption]:
        return list(self._sizes)

    def find_product(self, product_id: str) -> Optional[Product]:
        return next((p for p in self._products if p.id == product_id), None)

    def find_order(self, order_id: str) -> Optional[Order]:
        return next((o for o in self._orders if o.id == order_id), None)

    def find_shipping_fee(self, fee_id: str) -> Optional[ShippingFee]:
        return next((f for f in self._shipping_fees if f.id == fee_id), None)

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _require_session(self) -> None:
        if not self.session.is_authenticated:
            raise NotAuthenticatedError()

    def _clear_data(self) -> None:
        self._products = []
        self._orders = []
        self._shipping_fees = []
        self._sizes = []

    @contextmanager
    def _operation(self, description: str) -> Iterator[None]:
        """Run one protected backend operation and record its failure message."""
        self._require_session()
        self.error = None
        try:
            yield
        except SessionExpiredError as e:
            self.error = e.message
            logger.info(f"{description}: session expired")
            self.session.expire()
            self._clear_data()
            raise
        except AdminError as e:
            self.error = e.message
            logger.warning(f"{description} failed: {e.message}")
            raise

    def _require_product(self, product_id: str) -> Product:
        product = self.find_product(product_id)
        if product is None:
            raise AdminError(f"Product {product_id} not found")
        return product

    def _replace_product(self, product: Product) -> None:
        self._products = [product if p.id == product.id else p for p in self._products]

    def _replace_order(self, order: Order) -> None:
        self._orders = [order if o.id == order.id else o for o in self._orders]

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def login(self, username: str, password: str) -> bool:
        """Log in and load products and orders. Never raises."""
        self.error = None
        if not self.session.login(username, password):
            self.error = self.session.last_error
            return False
        self.load_all()
        return True

    def logout(self) -> None:
        self.session.logout()
        self._clear_data()
        self.error = None

    def restore_session(self, load: bool = True, verify: bool = True) -> bool:
        """Resume a stored session after verifying it with the backend."""
        if not self.session.restore(verify=verify):
            return False
        if load:
            self.load_all()
        return True

    def load_all(self) -> List[str]:
        """Fetch products and orders; a failure of one does not stop the other.

        Returns the failure messages, if any.
        """
        failures = []
        for refresh in (self.refresh_products, self.refresh_orders):
            try:
                refresh()
            except SessionExpiredError as e:
                failures.append(e.message)
                break
            except AdminError as e:
                failures.append(e.message)
        if failures:
            self.error = failures[0]
        return failures

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    def refresh_products(self) -> List[Product]:
        with self._operation("Fetching products"):
            self._products = self.client.list_products()
        return self.products

    def get_product(self, product_id: str) -> Product:
        """Fetch one product and refresh it in the cache."""
        with self._operation("Fetching product"):
            product = self.client.get_product(product_id)
        if self.find_product(product_id) is None:
            self._products.append(product)
        else:
            self._replace_product(product)
        return product

    def create_product(self, form: ProductForm) -> Product:
        with self._operation("Creating product"):
            product = form_to_product(form, self._sizes)
            created = self.client.create_product(product.to_payload())
        self._products.append(created)
        log_admin_event(
            "product_created", {"product_id": created.id, "name": created.name.en}
        )
        return created

    def update_product(self, product_id: str, form: ProductForm) -> Product:
        """Send only the top-level fields that differ from the cached product."""
        with self._operation("Updating product"):
            original = self._require_product(product_id)
            changes = build_update_payload(original, form_to_product(form, self._sizes))
            if not changes:
                logger.info(f"No changes for product {product_id}")
                return original
            updated = self.client.update_product(product_id, changes)
        self._replace_product(updated)
        log_admin_event(
            "product_updated", {"product_id": product_id, "fields": sorted(changes)}
        )
        return updated

    def delete_product(self, product_id: str, confirm: ConfirmFn) -> bool:
        self._require_session()
        product = self.find_product(product_id)
        label = product.display_name() if product else product_id
        if not confirm(f'Are you sure you want to delete "{label}"?'):
            return False
        with self._operation("Deleting product"):
            self.client.delete_product(product_id)
        self._products = [p for p in self._products if p.id != product_id]
        log_admin_event("product_deleted", {"product_id": product_id})
        return True

    # ------------------------------------------------------------------
    # Stock
    # ------------------------------------------------------------------

    def _size_option(
        self, product: Product, variation_index: int, size_index: int
    ) -> Tuple[ProductVariation, ProductVariationSizeOption]:
        if variation_index < 0 or size_index < 0:
            raise AdminError(
                f"Product {product.id} has no size option at "
                f"variation {variation_index}, size {size_index}"
            )
        try:
            variation = product.variations[variation_index]
            return variation, variation.size_options[size_index]
        except IndexError:
            raise AdminError(
                f"Product {product.id} has no size option at "
                f"variation {variation_index}, size {size_index}"
            ) from None

    def set_stock(
        self, product_id: str, variation_index: int, size_index: int, stock: int
    ) -> Product:
        with self._operation("Updating stock"):
            if stock < 0:
                raise FormValidationError(["Stock must not be negative"])
            product = self._require_product(product_id)
            self._size_option(product, variation_index, size_index)
            variations = [variation.to_dict() for variation in product.variations]
            variations[variation_index]["sizeOptions"][size_index]["stock"] = stock
            updated = self.client.update_product_stock(product_id, variations)
        self._replace_product(updated)
        log_admin_event(
            "stock_updated",
            {
                "product_id": product_id,
                "variation_index": variation_index,
                "size_index": size_index,
                "stock": stock,
            },
        )
        return updated

    def adjust_stock(
        self, product_id: str, variation_index: int, size_index: int, delta: int
    ) -> Product:
        """Quick +/- adjustment; stock never goes below zero."""
        self._require_session()
        product = self._require_product(product_id)
        _, option = self._size_option(product, variation_index, size_index)
        return self.set_stock(
            product_id, variation_index, size_index, max(0, option.stock + delta)
        )

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def refresh_orders(self) -> List[Order]:
        with self._operation("Fetching orders"):
            self._orders = self.client.list_orders()
        return self.orders

    def update_order_status(self, order_id: str, status: str) -> Order:
        """Set any status label; transition rules, if any, are the backend's."""
        with self._operation("Updating order status"):
            try:
                parsed = OrderStatus.parse(status)
            except ValueError as e:
                raise FormValidationError([str(e)]) from None
            updated = self.client.update_order_status(order_id, parsed.value)
        self._replace_order(updated)
        log_admin_event("order_status_changed", {"order_id": order_id, "status": parsed.value})
        return updated

    def delete_order(self, order_id: str, confirm: ConfirmFn) -> bool:
        self._require_session()
        if not confirm(f"Are you sure you want to delete order #{order_id}?"):
            return False
        with self._operation("Deleting order"):
            self.client.delete_order(order_id)
        self._orders = [o for o in self._orders if o.id != order_id]
        log_admin_event("order_deleted", {"order_id": order_id})
        return True

    def order_stats(self) -> Dict[str, object]:
        with self._operation("Fetching order statistics"):
            return self.client.order_stats()

    # ------------------------------------------------------------------
    # Shipping fees
    # ------------------------------------------------------------------

    def refresh_shipping_fees(self) -> List[ShippingFee]:
        with self._operation("Fetching shipping fees"):
            self._shipping_fees = self.client.list_shipping_fees()
        return self.shipping_fees

    def create_shipping_fee(self, form: ShippingFeeForm) -> ShippingFee:
        with self._operation("Creating shipping fee"):
            created = self.client.create_shipping_fee(form.to_payload())
        log_admin_event("shipping_fee_created", {"country": created.country})
        self.refresh_shipping_fees()
        return created

    def update_shipping_fee(self, fee_id: str, form: ShippingFeeForm) -> ShippingFee:
        with self._operation("Updating shipping fee"):
            updated = self.client.update_shipping_fee(
                fee_id, form.to_payload(include_active=False)
            )
        log_admin_event("shipping_fee_updated", {"fee_id": fee_id, "country": updated.country})
        self.refresh_shipping_fees()
        return updated

    def toggle_shipping_fee(self, fee_id: str, confirm: ConfirmFn) -> Optional[ShippingFee]:
        """Flip a fee's active flag. Disabling asks for confirmation first."""
        self._require_session()
        fee = self.find_shipping_fee(fee_id)
        if fee is None:
            self.refresh_shipping_fees()
            fee = self.find_shipping_fee(fee_id)
        if fee is None:
            raise AdminError(f"Shipping fee {fee_id} not found")
        if fee.is_active:
            if not confirm(f"Disable shipping to {fee.country}?"):
                return None
        with self._operation("Toggling shipping fee"):
            toggled = self.client.toggle_shipping_fee(fee_id)
        log_admin_event(
            "shipping_fee_toggled", {"fee_id": fee_id, "is_active": toggled.is_active}
        )
        self.refresh_shipping_fees()
        return toggled

    def delete_shipping_fee(self, fee_id: str, confirm: ConfirmFn) -> bool:
        self._require_session()
        if not confirm("Are you sure you want to delete this shipping fee?"):
            return False
        with self._operation("Deleting shipping fee"):
            self.client.delete_shipping_fee(fee_id)
        log_admin_event("shipping_fee_deleted", {"fee_id": fee_id})
        self.refresh_shipping_fees()
        return True

    # ------------------------------------------------------------------
    # Size catalog
    # ------------------------------------------------------------------

    def refresh_sizes(self) -> List[SizeOption]:
        with self._operation("Fetching sizes"):
            sizes = self.client.list_sizes()
        self._sizes = sorted(sizes, key=lambda size: size.eu)
        return self.sizes

    def create_size(self, form: SizeForm) -> SizeOption:
        with self._operation("Creating size"):
            created = self.client.create_size(form.to_payload())
        log_admin_event("size_created", {"size": created.label})
        self.refresh_sizes()
        return created

    def update_size(self, size_id: str, form: SizeForm) -> SizeOption:
        with self._operation("Updating size"):
            updated = self.client.update_size(size_id, form.to_payload())
        log_admin_event("size_updated", {"size_id": size_id, "size": updated.label})
        self.refresh_sizes()
        return updated

    def delete_size(self, size_id: str, confirm: ConfirmFn) -> bool:
        self._require_session()
        if not confirm("Are you sure you want to delete this size?"):
            return False
        with self._operation("Deleting size"):
            self.client.delete_size(size_id)
        log_admin_event("size_deleted", {"size_id": size_id})
        self.refresh_sizes()
        return True
