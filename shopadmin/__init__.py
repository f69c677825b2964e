"""Storefront admin client package."""

__version__ = "0.1.0"

# Re-export main components for convenient imports
from shopadmin.api import ApiClient
from shopadmin.config import API_BASE_URL, LOW_STOCK_THRESHOLD
from shopadmin.errors import (
    AdminError,
    ApiError,
    FormValidationError,
    NetworkError,
    NotAuthenticatedError,
    SessionExpiredError,
)
from shopadmin.forms import ProductForm, form_to_product, product_to_form
from shopadmin.models import (
    LocalizedString,
    Order,
    Product,
    ProductSpecification,
    ProductVariation,
    ProductVariationSizeOption,
    ShippingFee,
    SizeOption,
    create,
    resolve,
)
from shopadmin.session import SessionGate
from shopadmin.size_selector import SizeSelector
from shopadmin.state import AdminState
from shopadmin.storage import FileTokenStore, MemoryTokenStore, TokenStore

__all__ = [
    # Version
    "__version__",
    # Config
    "API_BASE_URL",
    "LOW_STOCK_THRESHOLD",
    # Models
    "LocalizedString",
    "create",
    "resolve",
    "SizeOption",
    "ProductVariationSizeOption",
    "ProductVariation",
    "ProductSpecification",
    "Product",
    "Order",
    "ShippingFee",
    # Forms
    "ProductForm",
    "form_to_product",
    "product_to_form",
    "SizeSelector",
    # Client and state
    "ApiClient",
    "TokenStore",
    "FileTokenStore",
    "MemoryTokenStore",
    "SessionGate",
    "AdminState",
    # Errors
    "AdminError",
    "ApiError",
    "FormValidationError",
    "NetworkError",
    "NotAuthenticatedError",
    "SessionExpiredError",
]
