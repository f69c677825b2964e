"""HTTP client for the storefront REST backend.

Every call is one request and one response: no retries, no caching. The
bearer token comes from the token store; a 401 clears the store before
``SessionExpiredError`` is raised. Response envelopes differ between
resource groups and are stripped here, so callers always get model objects.
"""

from typing import Any, Dict, List, Optional, Tuple

import requests

from shopadmin.config import API_BASE_URL, ENDPOINTS, HEADERS, REQUEST_TIMEOUT
from shopadmin.errors import (
    ApiError,
    NetworkError,
    NotAuthenticatedError,
    SessionExpiredError,
)
from shopadmin.logging_config import get_logger
from shopadmin.models import AdminUser, Order, Product, ShippingFee, SizeOption
from shopadmin.storage import MemoryTokenStore, TokenStore

__all__ = [
    "ApiClient",
    "LoginResult",
    "create_session",
    "extract_error_message",
    "unwrap",
]

logger = get_logger("api")

# Envelope keys per resource group, tried in order
_PRODUCT_LIST_KEYS = ("data", "products")
_PRODUCT_KEYS = ("data", "product")
_ORDER_LIST_KEYS = ("data", "orders")
_ORDER_KEYS = ("data", "order")
_SHIPPING_LIST_KEYS = ("data", "shippingFees")
_SHIPPING_KEYS = ("data", "shippingFee")
_SIZE_LIST_KEYS = ("data", "sizes")
_SIZE_KEYS = ("data", "size")
_AUTH_KEYS = ("data",)


def create_session() -> requests.Session:
    """Create a requests Session with JSON headers and connection reuse."""
    session = requests.Session()
    session.headers.update(HEADERS)
    return session


def unwrap(payload: Any, keys: Tuple[str, ...]) -> Any:
    """Strip ``{key: ...}`` envelopes, e.g. ``{"data": {"products": [...]}}``."""
    while isinstance(payload, dict):
        for key in keys:
            if key in payload:
                payload = payload[key]
                break
        else:
            return payload
    return payload


def extract_error_message(response: requests.Response) -> str:
    """Pick the most useful message out of an error response body."""
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        errors = body.get("errors")
        if isinstance(errors, list):
            messages = [
                str(item.get("msg")) for item in errors if isinstance(item, dict) and item.get("msg")
            ]
            if messages:
                return "; ".join(messages)
        for key in ("error", "message"):
            if isinstance(body.get(key), str) and body[key]:
                return body[key]

    return f"HTTP error! status: {response.status_code}"


class LoginResult:
    """Token plus the admin record returned by ``POST /auth/login``."""

    def __init__(self, token: str, user: AdminUser, message: str = ""):
        self.token = token
        self.user = user
        self.message = message


class ApiClient:
    """Thin wrapper over the backend's resource groups."""

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        token_store: Optional[TokenStore] = None,
        timeout: float = REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token_store = token_store if token_store is not None else MemoryTokenStore()
        self.timeout = timeout
        self.session = session or create_session()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def request(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
        auth: bool = True,
    ) -> Any:
        """Send one request and return the decoded JSON body (None if empty).

        Raises:
            NotAuthenticatedError: protected call without a stored token
            NetworkError: connection failure or timeout
            SessionExpiredError: HTTP 401 (token store already cleared)
            ApiError: any other non-2xx status
        """
        headers: Dict[str, str] = {}
        token = self.token_store.get_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        elif auth:
            raise NotAuthenticatedError()

        url = f"{self.base_url}{path}"
        logger.debug(f"{method} {url}")
        try:
            resp = self.session.request(
                method, url, json=payload, headers=headers, timeout=self.timeout
            )
        except requests.exceptions.Timeout as e:
            logger.warning(f"Timeout on {method} {url}: {e}")
            raise NetworkError(f"Request timed out: {method} {path}") from e
        except requests.exceptions.ConnectionError as e:
            logger.warning(f"Connection error on {method} {url}: {e}")
            raise NetworkError(f"Could not connect to {self.base_url}") from e
        except requests.exceptions.RequestException as e:
            logger.warning(f"Request error on {method} {url}: {e}")
            raise NetworkError(f"Request failed: {e}") from e

        if resp.status_code == 401:
            logger.info(f"401 from {method} {path}, clearing stored session")
            self.token_store.clear()
            if auth:
                raise SessionExpiredError()
            raise SessionExpiredError(extract_error_message(resp))

        if not 200 <= resp.status_code < 300:
            message = extract_error_message(resp)
            logger.warning(f"{method} {path} failed with {resp.status_code}: {message}")
            raise ApiError(message, resp.status_code)

        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise ApiError("Invalid JSON in backend response", resp.status_code) from e

    @staticmethod
    def _as_list(payload: Any, keys: Tuple[str, ...]) -> List[Dict[str, Any]]:
        items = unwrap(payload, keys)
        if not isinstance(items, list):
            raise ApiError("Unexpected response from backend: expected a list")
        return [item for item in items if isinstance(item, dict)]

    @staticmethod
    def _as_record(payload: Any, keys: Tuple[str, ...]) -> Dict[str, Any]:
        record = unwrap(payload, keys)
        if not isinstance(record, dict):
            raise ApiError("Unexpected response from backend: expected an object")
        return record

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    def login(self, username: str, password: str) -> LoginResult:
        body = self.request(
            "POST",
            f"{ENDPOINTS['auth']}/login",
            {"username": username, "password": password},
            auth=False,
        )
        record = self._as_record(body, _AUTH_KEYS)
        token = record.get("token")
        admin = record.get("admin") or record.get("user")
        if not token or not isinstance(admin, dict):
            raise ApiError("Login response did not contain a token")
        return LoginResult(str(token), AdminUser.from_dict(admin), str(record.get("message") or ""))

    def verify(self) -> Optional[AdminUser]:
        """Check the stored token. Returns the admin record if the backend sends one."""
        record = unwrap(self.request("GET", f"{ENDPOINTS['auth']}/verify"), _AUTH_KEYS)
        if isinstance(record, dict):
            admin = record.get("admin") or record.get("user")
            if isinstance(admin, dict):
                return AdminUser.from_dict(admin)
        return None

    def register(self, username: str, email: str, password: str) -> Dict[str, Any]:
        return self.request(
            "POST",
            f"{ENDPOINTS['auth']}/register",
            {"username": username, "email": email, "password": password},
        ) or {}

    def health(self) -> Dict[str, Any]:
        return self.request("GET", ENDPOINTS["health"], auth=False) or {}

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    def list_products(self) -> List[Product]:
        body = self.request("GET", ENDPOINTS["products"])
        return [Product.from_dict(item) for item in self._as_list(body, _PRODUCT_LIST_KEYS)]

    def get_product(self, product_id: str) -> Product:
        body = self.request("GET", f"{ENDPOINTS['products']}/{product_id}")
        return Product.from_dict(self._as_record(body, _PRODUCT_KEYS))

    def create_product(self, payload: Dict[str, Any]) -> Product:
        body = self.request("POST", ENDPOINTS["products"], payload)
        return Product.from_dict(self._as_record(body, _PRODUCT_KEYS))

    def update_product(self, product_id: str, changes: Dict[str, Any]) -> Product:
        body = self.request("PUT", f"{ENDPOINTS['products']}/{product_id}", changes)
        return Product.from_dict(self._as_record(body, _PRODUCT_KEYS))

    def update_product_stock(
        self, product_id: str, variations: List[Dict[str, Any]]
    ) -> Product:
        """Stock-only update: the variation tree with adjusted stock counts."""
        body = self.request(
            "PATCH",
            f"{ENDPOINTS['products']}/{product_id}/stock",
            {"variations": variations},
        )
        return Product.from_dict(self._as_record(body, _PRODUCT_KEYS))

    def delete_product(self, product_id: str) -> None:
        self.request("DELETE", f"{ENDPOINTS['products']}/{product_id}")

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def list_orders(self) -> List[Order]:
        body = self.request("GET", ENDPOINTS["orders"])
        return [Order.from_dict(item) for item in self._as_list(body, _ORDER_LIST_KEYS)]

    def get_order(self, order_id: str) -> Order:
        body = self.request("GET", f"{ENDPOINTS['orders']}/{order_id}")
        return Order.from_dict(self._as_record(body, _ORDER_KEYS))

    def update_order_status(self, order_id: str, status: str) -> Order:
        body = self.request("PUT", f"{ENDPOINTS['orders']}/{order_id}/status", {"status": status})
        return Order.from_dict(self._as_record(body, _ORDER_KEYS))

    def delete_order(self, order_id: str) -> None:
        self.request("DELETE", f"{ENDPOINTS['orders']}/{order_id}")

    def order_stats(self) -> Dict[str, Any]:
        body = self.request("GET", f"{ENDPOINTS['orders']}/stats/summary")
        return self._as_record(body, ("data", "stats"))

    # ------------------------------------------------------------------
    # Shipping fees
    # ------------------------------------------------------------------

    def list_shipping_fees(self) -> List[ShippingFee]:
        body = self.request("GET", ENDPOINTS["shipping"])
        return [ShippingFee.from_dict(item) for item in self._as_list(body, _SHIPPING_LIST_KEYS)]

    def create_shipping_fee(self, payload: Dict[str, Any]) -> ShippingFee:
        body = self.request("POST", ENDPOINTS["shipping"], payload)
        return ShippingFee.from_dict(self._as_record(body, _SHIPPING_KEYS))

    def update_shipping_fee(self, fee_id: str, payload: Dict[str, Any]) -> ShippingFee:
        body = self.request("PUT", f"{ENDPOINTS['shipping']}/{fee_id}", payload)
        return ShippingFee.from_dict(self._as_record(body, _SHIPPING_KEYS))

    def toggle_shipping_fee(self, fee_id: str) -> ShippingFee:
        body = self.request("PATCH", f"{ENDPOINTS['shipping']}/{fee_id}/toggle")
        return ShippingFee.from_dict(self._as_record(body, _SHIPPING_KEYS))

    def delete_shipping_fee(self, fee_id: str) -> None:
        self.request("DELETE", f"{ENDPOINTS['shipping']}/{fee_id}")

    # ------------------------------------------------------------------
    # Size catalog
    # ------------------------------------------------------------------

    def list_sizes(self) -> List[SizeOption]:
        body = self.request("GET", ENDPOINTS["sizes"])
        return [SizeOption.from_dict(item) for item in self._as_list(body, _SIZE_LIST_KEYS)]

    def create_size(self, payload: Dict[str, float]) -> SizeOption:
        body = self.request("POST", ENDPOINTS["sizes"], payload)
        return SizeOption.from_dict(self._as_record(body, _SIZE_KEYS))

    def update_size(self, size_id: str, payload: Dict[str, float]) -> SizeOption:
        body = self.request("PUT", f"{ENDPOINTS['sizes']}/{size_id}", payload)
        return SizeOption.from_dict(self._as_record(body, _SIZE_KEYS))

    def delete_size(self, size_id: str) -> None:
        self.request("DELETE", f"{ENDPOINTS['sizes']}/{size_id}")
