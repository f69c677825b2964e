"""Turn submitted HTML form fields into form-state objects.

Nested rows are flattened into indexed field names:
``specifications-0-key_en``, ``variations-1-color_vi``,
``variations-1-sizes-2-price``.
"""

import re
from collections import defaultdict
from typing import Dict, Mapping, Tuple

from shopadmin.forms import (
    ProductForm,
    ShippingFeeForm,
    SizeForm,
    SizeRow,
    SpecificationRow,
    VariationRow,
)

__all__ = [
    "product_form_from_request",
    "shipping_form_from_request",
    "size_form_from_request",
    "size_queries_from_request",
]

_SPEC_FIELD = re.compile(r"^specifications-(\d+)-(key_en|key_vi|value_en|value_vi)$")
_VARIATION_FIELD = re.compile(r"^variations-(\d+)-(color_en|color_vi|image)$")
_SIZE_FIELD = re.compile(r"^variations-(\d+)-sizes-(\d+)-(size_id|price|stock)$")
_SIZE_QUERY_FIELD = re.compile(r"^variations-(\d+)-sizes-(\d+)-size_query$")

_TEXT_FIELDS = (
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


def product_form_from_request(data: Mapping[str, str]) -> ProductForm:
    specs: Dict[int, Dict[str, str]] = defaultdict(dict)
    variations: Dict[int, Dict[str, str]] = defaultdict(dict)
    sizes: Dict[int, Dict[int, Dict[str, str]]] = defaultdict(lambda: defaultdict(dict))

    for name in data.keys():
        value = data.get(name, "")
        match = _SPEC_FIELD.match(name)
        if match:
            specs[int(match.group(1))][match.group(2)] = value
            continue
        match = _VARIATION_FIELD.match(name)
        if match:
            variations[int(match.group(1))][match.group(2)] = value
            continue
        match = _SIZE_FIELD.match(name)
        if match:
            variation_index = int(match.group(1))
            variations.setdefault(variation_index, {})
            sizes[variation_index][int(match.group(2))][match.group(3)] = value

    return ProductForm(
        in_stock=data.get("in_stock") is not None,
        specifications=[SpecificationRow(**specs[index]) for index in sorted(specs)],
        variations=[
            VariationRow(
                sizes=[
                    SizeRow(**sizes[index][size_index]) for size_index in sorted(sizes[index])
                ],
                **variations[index],
            )
            for index in sorted(variations)
        ],
        **{name: data.get(name, "") for name in _TEXT_FIELDS},
    )


def size_queries_from_request(data: Mapping[str, str]) -> Dict[Tuple[int, int], str]:
    """Search text typed into each size row, keyed by (variation, size) index."""
    queries = {}
    for name in data.keys():
        match = _SIZE_QUERY_FIELD.match(name)
        if match:
            queries[(int(match.group(1)), int(match.group(2)))] = data.get(name, "")
    return queries


def shipping_form_from_request(data: Mapping[str, str]) -> ShippingFeeForm:
    return ShippingFeeForm(
        country=data.get("country", ""),
        base_fee=data.get("base_fee", ""),
        per_kg_rate=data.get("per_kg_rate", ""),
        is_active=data.get("is_active") is not None,
    )


def size_form_from_request(data: Mapping[str, str]) -> SizeForm:
    return SizeForm(eu=data.get("eu", ""), us=data.get("us", ""))
