"""Data models for the storefront admin.

Only the localized, variation-based product schema is modelled here. Prices
and stock live on the size options of each color variation; the product
itself only exposes derived aggregates.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from shopadmin.config import DEFAULT_LOCALE, LOW_STOCK_THRESHOLD

__all__ = [
    "LocalizedString",
    "create",
    "resolve",
    "format_number",
    "SizeOption",
    "ProductVariationSizeOption",
    "ProductVariation",
    "ProductSpecification",
    "Product",
    "OrderStatus",
    "OrderItem",
    "CustomerInfo",
    "Order",
    "ShippingFee",
    "AdminUser",
]

PRICE_RANGE_SEPARATOR = "–"  # en dash


def format_number(value: Any) -> str:
    """Render a number without a trailing ``.0`` (42.0 -> "42", 42.5 -> "42.5").

    Non-integral values use ``repr`` so parsing the text gives the same float.
    """
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return repr(number)


def _to_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _to_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _record_id(data: Dict[str, Any]) -> Optional[str]:
    """Backend records carry a MongoDB ``_id``; accept plain ``id`` too."""
    value = data.get("_id", data.get("id"))
    return str(value) if value is not None else None


# =============================================================================
# Localized values
# =============================================================================


@dataclass(frozen=True)
class LocalizedString:
    """One translatable field, English and Vietnamese."""

    en: str = ""
    vi: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> "LocalizedString":
        if not isinstance(data, dict):
            return cls()
        return cls(en=str(data.get("en") or ""), vi=str(data.get("vi") or ""))

    def to_dict(self) -> Dict[str, str]:
        return {"en": self.en, "vi": self.vi}

    def is_empty(self) -> bool:
        """True when neither locale has non-whitespace text."""
        return not self.en.strip() and not self.vi.strip()

    def with_fallback(self) -> "LocalizedString":
        """Fill an empty locale with the other locale's text."""
        return LocalizedString(en=self.en or self.vi, vi=self.vi or self.en)


def create(en: str, vi: str) -> LocalizedString:
    """Build a localized value. No validation is applied."""
    return LocalizedString(en=en, vi=vi)


def resolve(value: Optional[LocalizedString], locale: str = DEFAULT_LOCALE) -> str:
    """Return the text for ``locale``, falling back to English.

    Unknown locales and empty translations both fall back to ``value.en``.
    """
    if value is None:
        return ""
    if locale == "vi":
        text = value.vi
    elif locale == "en":
        text = value.en
    else:
        text = ""
    return text or value.en


# =============================================================================
# Size catalog and variations
# =============================================================================


@dataclass(frozen=True)
class SizeOption:
    """Entry of the shared EU/US size catalog."""

    eu: float
    us: float
    id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SizeOption":
        return cls(eu=_to_float(data.get("EU")), us=_to_float(data.get("US")), id=_record_id(data))

    def to_dict(self) -> Dict[str, float]:
        return {"EU": self.eu, "US": self.us}

    @property
    def label(self) -> str:
        return f"EU {format_number(self.eu)} / US {format_number(self.us)}"

    def same_size(self, other: "SizeOption") -> bool:
        return self.eu == other.eu and self.us == other.us


@dataclass
class ProductVariationSizeOption:
    """Price and stock of one size within a color variation."""

    size: SizeOption
    price: float = 0.0
    stock: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProductVariationSizeOption":
        size = data.get("size")
        return cls(
            size=SizeOption.from_dict(size if isinstance(size, dict) else {}),
            price=_to_float(data.get("price")),
            stock=_to_int(data.get("stock")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"size": self.size.to_dict(), "price": self.price, "stock": self.stock}

    @property
    def is_low_stock(self) -> bool:
        return self.stock < LOW_STOCK_THRESHOLD


@dataclass
class ProductVariation:
    """A color-specific version of a product."""

    color: LocalizedString
    image: str = ""
    size_options: List[ProductVariationSizeOption] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProductVariation":
        return cls(
            color=LocalizedString.from_dict(data.get("color")),
            image=str(data.get("image") or ""),
            size_options=[
                ProductVariationSizeOption.from_dict(item)
                for item in data.get("sizeOptions") or []
            ],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "color": self.color.to_dict(),
            "image": self.image,
            "sizeOptions": [option.to_dict() for option in self.size_options],
        }

    @property
    def total_stock(self) -> int:
        return sum(option.stock for option in self.size_options)


@dataclass
class ProductSpecification:
    """A localized key/value row, e.g. Material: Canvas."""

    key: LocalizedString
    value: LocalizedString

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProductSpecification":
        return cls(
            key=LocalizedString.from_dict(data.get("key")),
            value=LocalizedString.from_dict(data.get("value")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"key": self.key.to_dict(), "value": self.value.to_dict()}


# =============================================================================
# Product
# =============================================================================


@dataclass
class Product:
    """A catalog product as stored by the backend.

    ``image`` mirrors ``images[0]`` whenever ``images`` is non-empty. ``id``
    and the timestamps are assigned by the backend and are absent before
    creation.
    """

    name: LocalizedString = field(default_factory=LocalizedString)
    detail_description: LocalizedString = field(default_factory=LocalizedString)
    short_description: Optional[LocalizedString] = None
    image: str = ""
    images: List[str] = field(default_factory=list)
    in_stock: bool = True
    weight: float = 0.0  # kilograms
    specifications: List[ProductSpecification] = field(default_factory=list)
    variations: List[ProductVariation] = field(default_factory=list)

    id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Product":
        images = [str(url) for url in data.get("images") or [] if url]
        short = data.get("shortDescription")
        return cls(
            name=LocalizedString.from_dict(data.get("name")),
            detail_description=LocalizedString.from_dict(data.get("detailDescription")),
            short_description=LocalizedString.from_dict(short) if isinstance(short, dict) else None,
            image=images[0] if images else str(data.get("image") or ""),
            images=images,
            in_stock=bool(data.get("inStock", True)),
            weight=_to_float(data.get("weight")),
            specifications=[
                ProductSpecification.from_dict(item) for item in data.get("specifications") or []
            ],
            variations=[ProductVariation.from_dict(item) for item in data.get("variations") or []],
            id=_record_id(data),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
        )

    def to_payload(self) -> Dict[str, Any]:
        """Wire body for create/update requests (no id, no timestamps)."""
        payload: Dict[str, Any] = {
            "name": self.name.to_dict(),
            "detailDescription": self.detail_description.to_dict(),
            "image": self.image,
            "images": list(self.images),
            "inStock": self.in_stock,
            "weight": self.weight,
            "specifications": [spec.to_dict() for spec in self.specifications],
            "variations": [variation.to_dict() for variation in self.variations],
        }
        if self.short_description is not None:
            payload["shortDescription"] = self.short_description.to_dict()
        return payload

    def display_name(self, locale: str = DEFAULT_LOCALE) -> str:
        return resolve(self.name, locale)

    @property
    def total_stock(self) -> int:
        return sum(variation.total_stock for variation in self.variations)

    @property
    def prices(self) -> List[float]:
        return [
            option.price for variation in self.variations for option in variation.size_options
        ]

    @property
    def price_range(self) -> Optional[Tuple[float, float]]:
        prices = self.prices
        if not prices:
            return None
        return min(prices), max(prices)

    @property
    def price_range_label(self) -> str:
        """"10–20", or a single value when all prices are equal."""
        price_range = self.price_range
        if price_range is None:
            return "N/A"
        low, high = price_range
        if low == high:
            return format_number(low)
        return f"{format_number(low)}{PRICE_RANGE_SEPARATOR}{format_number(high)}"

    @property
    def is_low_stock(self) -> bool:
        return self.total_stock < LOW_STOCK_THRESHOLD

    def low_stock_options(self) -> List[Tuple[ProductVariation, ProductVariationSizeOption]]:
        """Size options below the low-stock threshold, in display order."""
        return [
            (variation, option)
            for variation in self.variations
            for option in variation.size_options
            if option.is_low_stock
        ]


# =============================================================================
# Orders
# =============================================================================


class OrderStatus(str, Enum):
    """Order status label. The backend owns any transition rules."""

    PENDING = "Pending"
    SHIPPED = "Shipped"
    COMPLETED = "Completed"

    @classmethod
    def parse(cls, value: str) -> "OrderStatus":
        """Case-insensitive lookup; raises ValueError for unknown labels."""
        for status in cls:
            if status.value.lower() == str(value).strip().lower():
                return status
        raise ValueError(f"Unknown order status: {value!r}")


@dataclass
class OrderItem:
    product_id: str
    product_name: str
    quantity: int = 1
    price: float = 0.0
    selected_size: str = ""
    selected_color: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OrderItem":
        name = data.get("productName")
        if isinstance(name, dict):
            name = resolve(LocalizedString.from_dict(name))
        size = data.get("selectedSize")
        if isinstance(size, dict):
            size = SizeOption.from_dict(size).label
        color = data.get("selectedColor")
        if isinstance(color, dict):
            color = resolve(LocalizedString.from_dict(color))
        return cls(
            product_id=str(data.get("productId") or ""),
            product_name=str(name or ""),
            quantity=_to_int(data.get("quantity")),
            price=_to_float(data.get("price")),
            selected_size=str(size if size is not None else ""),
            selected_color=str(color or ""),
        )

    @property
    def subtotal(self) -> float:
        return self.price * self.quantity


@dataclass
class CustomerInfo:
    name: str = ""
    email: str = ""
    address: str = ""
    phone: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "CustomerInfo":
        data = data or {}
        return cls(
            name=str(data.get("name") or ""),
            email=str(data.get("email") or ""),
            address=str(data.get("address") or ""),
            phone=data.get("phone") or None,
        )


@dataclass
class Order:
    """Customer order. Read-only here apart from its status label."""

    id: str
    products: List[OrderItem] = field(default_factory=list)
    total: float = 0.0
    shipping_fee: float = 0.0
    shipping_country: str = ""
    total_weight: float = 0.0  # kilograms
    customer_info: CustomerInfo = field(default_factory=CustomerInfo)
    status: str = OrderStatus.PENDING.value
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Order":
        return cls(
            id=_record_id(data) or "",
            products=[OrderItem.from_dict(item) for item in data.get("products") or []],
            total=_to_float(data.get("total")),
            shipping_fee=_to_float(data.get("shippingFee")),
            shipping_country=str(data.get("shippingCountry") or ""),
            total_weight=_to_float(data.get("totalWeight")),
            customer_info=CustomerInfo.from_dict(data.get("customerInfo")),
            status=str(data.get("status") or OrderStatus.PENDING.value),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
        )


# =============================================================================
# Shipping and accounts
# =============================================================================


@dataclass
class ShippingFee:
    """Per-country shipping configuration: baseFee + weight * perKgRate."""

    country: str
    base_fee: float = 0.0
    per_kg_rate: float = 0.0
    is_active: bool = True
    id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ShippingFee":
        return cls(
            country=str(data.get("country") or "").upper(),
            base_fee=_to_float(data.get("baseFee")),
            per_kg_rate=_to_float(data.get("perKgRate")),
            is_active=bool(data.get("isActive", True)),
            id=_record_id(data),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
        )


@dataclass
class AdminUser:
    id: str
    username: str
    email: str = ""
    role: str = "admin"
    is_authenticated: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AdminUser":
        return cls(
            id=_record_id(data) or "",
            username=str(data.get("username") or ""),
            email=str(data.get("email") or ""),
            role=str(data.get("role") or "admin"),
            is_authenticated=bool(data.get("isAuthenticated", True)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "role": self.role,
            "isAuthenticated": self.is_authenticated,
        }
