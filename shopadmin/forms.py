"""Mapping between flat, human-editable form state and the product model.

Form state is plain text, exactly what an operator typed: image URLs one
per line, numbers as strings, size selections as catalog ids. Parsing turns
it into a ``Product``; ``product_to_form`` is the inverse used to populate
edit forms, so that ``form_to_product(product_to_form(p)) == p`` for any
product produced by ``form_to_product``.
"""

import math
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from shopadmin.errors import FormValidationError
from shopadmin.logging_config import get_logger
from shopadmin.models import (
    LocalizedString,
    Product,
    ProductSpecification,
    ProductVariation,
    ProductVariationSizeOption,
    SizeOption,
    format_number,
)

__all__ = [
    "SizeRow",
    "VariationRow",
    "SpecificationRow",
    "ProductForm",
    "ShippingFeeForm",
    "SizeForm",
    "parse_images",
    "serialize_images",
    "resolve_primary_image",
    "parse_number",
    "parse_int",
    "parse_weight",
    "parse_stock_value",
    "parse_specifications",
    "parse_variations",
    "form_to_product",
    "product_to_form",
    "build_update_payload",
    "unlisted_size_id",
    "unlisted_size_label",
]

logger = get_logger("forms")

# Row value for a stored size the catalog no longer lists, e.g. "unlisted:47/12"
UNLISTED_SIZE_PREFIX = "unlisted:"


# =============================================================================
# Form state
# =============================================================================


@dataclass
class SizeRow:
    """One size line of a variation: catalog id, price and stock as typed."""

    size_id: str = ""
    price: str = ""
    stock: str = ""


@dataclass
class VariationRow:
    color_en: str = ""
    color_vi: str = ""
    image: str = ""
    sizes: List[SizeRow] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VariationRow":
        return cls(
            color_en=str(data.get("color_en", "")),
            color_vi=str(data.get("color_vi", "")),
            image=str(data.get("image", "")),
            sizes=[
                SizeRow(
                    size_id=str(row.get("size_id", "")),
                    price=str(row.get("price", "")),
                    stock=str(row.get("stock", "")),
                )
                for row in data.get("sizes") or []
            ],
        )


@dataclass
class SpecificationRow:
    key_en: str = ""
    key_vi: str = ""
    value_en: str = ""
    value_vi: str = ""


@dataclass
class ProductForm:
    """Everything the product create/edit form binds to, as text."""

    name_en: str = ""
    name_vi: str = ""
    short_description_en: str = ""
    short_description_vi: str = ""
    detail_description_en: str = ""
    detail_description_vi: str = ""
    image: str = ""
    images: str = ""  # one URL per line
    weight: str = ""  # kilograms
    in_stock: bool = True
    specifications: List[SpecificationRow] = field(default_factory=list)
    variations: List[VariationRow] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProductForm":
        """Build form state from a JSON-style dict (CLI form files)."""
        text_fields = {
            name: str(data.get(name, ""))
            for name in (
                "name_en",
                "name_vi",
                "short_description_en",
                "short_description_vi",
                "detail_description_en",
                "detail_description_vi",
                "image",
                "images",
                "weight",
            )
        }
        return cls(
            in_stock=bool(data.get("in_stock", True)),
            specifications=[
                SpecificationRow(**{k: str(row.get(k, "")) for k in asdict(SpecificationRow())})
                for row in data.get("specifications") or []
            ],
            variations=[VariationRow.from_dict(row) for row in data.get("variations") or []],
            **text_fields,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def padded(self, variations: int = 1, sizes: int = 1, specifications: int = 1) -> "ProductForm":
        """Copy with blank rows appended, for forms rendered without scripting."""
        return ProductForm(
            name_en=self.name_en,
            name_vi=self.name_vi,
            short_description_en=self.short_description_en,
            short_description_vi=self.short_description_vi,
            detail_description_en=self.detail_description_en,
            detail_description_vi=self.detail_description_vi,
            image=self.image,
            images=self.images,
            weight=self.weight,
            in_stock=self.in_stock,
            specifications=list(self.specifications)
            + [SpecificationRow() for _ in range(specifications)],
            variations=[
                VariationRow(
                    color_en=row.color_en,
                    color_vi=row.color_vi,
                    image=row.image,
                    sizes=list(row.sizes) + [SizeRow() for _ in range(sizes)],
                )
                for row in self.variations
            ]
            + [
                VariationRow(sizes=[SizeRow() for _ in range(max(sizes, 1))])
                for _ in range(variations)
            ],
        )


@dataclass
class ShippingFeeForm:
    country: str = ""
    base_fee: str = ""
    per_kg_rate: str = ""
    is_active: bool = True

    def to_payload(self, include_active: bool = True) -> Dict[str, Any]:
        """Create/update body. Updates leave ``isActive`` to the toggle endpoint."""
        country = self.country.strip().upper()
        if not country:
            raise FormValidationError(["Country is required"])
        base_fee = parse_number(self.base_fee)
        per_kg_rate = parse_number(self.per_kg_rate)
        errors = []
        if base_fee < 0:
            errors.append("Base fee must not be negative")
        if per_kg_rate < 0:
            errors.append("Per-kg rate must not be negative")
        if errors:
            raise FormValidationError(errors)

        payload: Dict[str, Any] = {
            "country": country,
            "baseFee": base_fee,
            "perKgRate": per_kg_rate,
        }
        if include_active:
            payload["isActive"] = self.is_active
        return payload


@dataclass
class SizeForm:
    eu: str = ""
    us: str = ""

    def to_payload(self) -> Dict[str, float]:
        if not self.eu.strip() or not self.us.strip():
            raise FormValidationError(["Both EU and US sizes are required"])
        try:
            eu, us = float(self.eu), float(self.us)
        except ValueError:
            raise FormValidationError(["EU and US sizes must be numbers"]) from None
        if math.isnan(eu) or math.isnan(us):
            raise FormValidationError(["EU and US sizes must be numbers"])
        return {"EU": eu, "US": us}


# =============================================================================
# Field parsers
# =============================================================================


def parse_images(text: str) -> List[str]:
    """Split a newline-delimited block of URLs, trimming and dropping blanks."""
    return [line.strip() for line in (text or "").splitlines() if line.strip()]


def serialize_images(images: Iterable[str]) -> str:
    return "\n".join(images)


def resolve_primary_image(images: List[str], fallback: str) -> Tuple[str, List[str]]:
    """Return ``(image, images)``: the first URL wins, else the single field."""
    if images:
        return images[0], images
    fallback = (fallback or "").strip()
    return fallback, [fallback] if fallback else []


def parse_number(text: Any) -> float:
    """Parse a numeric input; empty, unparsable or NaN input yields 0."""
    try:
        number = float(str(text).strip())
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def parse_int(text: Any) -> int:
    return int(parse_number(text))


def parse_weight(text: Any) -> float:
    """Weight in kilograms; failures default to 0."""
    return parse_number(text)


def parse_stock_value(text: Any) -> int:
    """Parse a stock edit. Unlike form rows, invalid input is rejected."""
    try:
        stock = int(str(text).strip())
    except (TypeError, ValueError):
        raise FormValidationError([f"Invalid stock value: {text!r}"]) from None
    if stock < 0:
        raise FormValidationError(["Stock must not be negative"])
    return stock


def _localized(en: str, vi: str) -> LocalizedString:
    return LocalizedString(en=(en or "").strip(), vi=(vi or "").strip())


def parse_specifications(rows: Iterable[SpecificationRow]) -> List[ProductSpecification]:
    """Keep rows with a key in either locale; a missing locale copies the other."""
    specifications = []
    for row in rows:
        key = _localized(row.key_en, row.key_vi)
        if key.is_empty():
            continue
        value = _localized(row.value_en, row.value_vi)
        specifications.append(
            ProductSpecification(key=key.with_fallback(), value=value.with_fallback())
        )
    return specifications


def _catalog_index(catalog: Iterable[SizeOption]) -> Dict[str, SizeOption]:
    return {size.id: size for size in catalog if size.id}


def unlisted_size_id(size: SizeOption) -> str:
    return f"{UNLISTED_SIZE_PREFIX}{format_number(size.eu)}/{format_number(size.us)}"


def unlisted_size_label(size_id: str) -> Optional[str]:
    """``"EU 47 / US 12"`` for an unlisted-size row value, else None."""
    if not size_id.startswith(UNLISTED_SIZE_PREFIX):
        return None
    eu, _, us = size_id[len(UNLISTED_SIZE_PREFIX):].partition("/")
    return f"EU {eu} / US {us}"


def _parse_variations(
    rows: Iterable[VariationRow],
    catalog: Sequence[SizeOption],
    errors: List[str],
) -> List[ProductVariation]:
    index = _catalog_index(catalog)
    variations = []
    for number, row in enumerate(rows, start=1):
        color = _localized(row.color_en, row.color_vi)
        selected = [size_row for size_row in row.sizes if size_row.size_id.strip()]
        if color.is_empty() or not selected:
            continue

        size_options = []
        for size_row in selected:
            size_id = size_row.size_id.strip()
            size = index.get(size_id)
            if size is None:
                unlisted = unlisted_size_label(size_id)
                if unlisted:
                    errors.append(
                        f"Variation {number}: {unlisted} is not in the size catalog; "
                        "add it to the catalog or pick another size"
                    )
                else:
                    errors.append(f"Variation {number}: size {size_id!r} is not in the size catalog")
                continue
            price = parse_number(size_row.price)
            stock = parse_int(size_row.stock)
            if price < 0:
                errors.append(f"Variation {number}: price for {size.label} must not be negative")
            if stock < 0:
                errors.append(f"Variation {number}: stock for {size.label} must not be negative")
            size_options.append(ProductVariationSizeOption(size=size, price=price, stock=stock))

        variations.append(
            ProductVariation(color=color, image=row.image.strip(), size_options=size_options)
        )
    return variations


def parse_variations(
    rows: Iterable[VariationRow], catalog: Sequence[SizeOption]
) -> List[ProductVariation]:
    """Build variations from form rows.

    A variation is kept only if its color is set in some locale and at least
    one of its size rows has a selection; unselected size rows are dropped.
    Raises FormValidationError if a selection is missing from ``catalog``.
    """
    errors: List[str] = []
    variations = _parse_variations(rows, catalog, errors)
    if errors:
        raise FormValidationError(errors)
    return variations


# =============================================================================
# Whole-product mapping
# =============================================================================


def form_to_product(form: ProductForm, catalog: Sequence[SizeOption]) -> Product:
    """Parse a product form. All validation errors are raised together."""
    errors: List[str] = []

    name = _localized(form.name_en, form.name_vi)
    if name.is_empty():
        errors.append("Product name is required")

    short = _localized(form.short_description_en, form.short_description_vi)
    image, images = resolve_primary_image(parse_images(form.images), form.image)

    weight = parse_weight(form.weight)
    if weight < 0:
        errors.append("Weight must not be negative")

    specifications = parse_specifications(form.specifications)
    variations = _parse_variations(form.variations, catalog, errors)

    if errors:
        raise FormValidationError(errors)

    return Product(
        name=name,
        short_description=None if short.is_empty() else short,
        detail_description=_localized(form.detail_description_en, form.detail_description_vi),
        image=image,
        images=images,
        in_stock=bool(form.in_stock),
        weight=weight,
        specifications=specifications,
        variations=variations,
    )


def _catalog_id_for(size: SizeOption, catalog: Sequence[SizeOption]) -> str:
    """Map a stored size back to a catalog id, by id first, then by EU/US pair.

    A size the catalog no longer lists keeps an unlisted marker, so saving
    the form fails validation instead of dropping the size option.
    """
    if size.id and any(entry.id == size.id for entry in catalog):
        return size.id
    for entry in catalog:
        if entry.id and entry.same_size(size):
            return entry.id
    logger.warning(f"Size {size.label} has no catalog entry")
    return unlisted_size_id(size)


def product_to_form(product: Product, catalog: Sequence[SizeOption]) -> ProductForm:
    """Decompose a stored product back into editable form state."""
    short = product.short_description or LocalizedString()
    return ProductForm(
        name_en=product.name.en,
        name_vi=product.name.vi,
        short_description_en=short.en,
        short_description_vi=short.vi,
        detail_description_en=product.detail_description.en,
        detail_description_vi=product.detail_description.vi,
        image=product.image,
        images=serialize_images(product.images),
        weight=format_number(product.weight),
        in_stock=product.in_stock,
        specifications=[
            SpecificationRow(
                key_en=spec.key.en,
                key_vi=spec.key.vi,
                value_en=spec.value.en,
                value_vi=spec.value.vi,
            )
            for spec in product.specifications
        ],
        variations=[
            VariationRow(
                color_en=variation.color.en,
                color_vi=variation.color.vi,
                image=variation.image,
                sizes=[
                    SizeRow(
                        size_id=_catalog_id_for(option.size, catalog),
                        price=format_number(option.price),
                        stock=str(option.stock),
                    )
                    for option in variation.size_options
                ],
            )
            for variation in product.variations
        ],
    )


def build_update_payload(original: Product, updated: Product) -> Dict[str, Optional[Any]]:
    """Partial-update body: only the top-level fields that changed."""
    before = original.to_payload()
    after = updated.to_payload()
    changes: Dict[str, Optional[Any]] = {
        key: value for key, value in after.items() if before.get(key) != value
    }
    if "shortDescription" in before and "shortDescription" not in after:
        changes["shortDescription"] = None
    return changes
