"""Shared test fixtures for the shopadmin test suite."""

import json
from unittest.mock import MagicMock

import pytest

from shopadmin.api import ApiClient
from shopadmin.forms import ProductForm, SizeRow, SpecificationRow, VariationRow
from shopadmin.models import AdminUser, Order, Product, ShippingFee, SizeOption
from shopadmin.state import AdminState
from shopadmin.storage import MemoryTokenStore

BASE_URL = "http://api.test/api"


class FakeResponse:
    """Minimal stand-in for ``requests.Response``."""

    def __init__(self, status_code=200, body=None, text=None):
        self.status_code = status_code
        self._body = body
        if text is not None:
            self.content = text.encode("utf-8")
        elif body is None:
            self.content = b""
        else:
            self.content = json.dumps(body).encode("utf-8")

    def json(self):
        if self._body is None:
            return json.loads(self.content.decode("utf-8"))
        return self._body


@pytest.fixture
def catalog():
    """Three catalog sizes, sorted by EU."""
    return [
        SizeOption(eu=40, us=7, id="s40"),
        SizeOption(eu=41, us=8, id="s41"),
        SizeOption(eu=42, us=8.5, id="s42"),
    ]


@pytest.fixture
def admin_user_dict():
    return {
        "_id": "u1",
        "username": "admin",
        "email": "admin@shop.test",
        "role": "admin",
        "isAuthenticated": True,
    }


@pytest.fixture
def product_dict():
    """A product as the backend returns it."""
    return {
        "_id": "p1",
        "name": {"en": "Canvas Sneaker", "vi": "Giày vải"},
        "shortDescription": {"en": "Light and breathable", "vi": "Nhẹ và thoáng"},
        "detailDescription": {"en": "Long text", "vi": "Văn bản dài"},
        "image": "https://img.test/old.jpg",
        "images": ["https://img.test/a.jpg", "https://img.test/b.jpg"],
        "inStock": True,
        "weight": 0.8,
        "specifications": [
            {"key": {"en": "Material", "vi": "Chất liệu"}, "value": {"en": "Canvas", "vi": "Vải"}}
        ],
        "variations": [
            {
                "color": {"en": "Red", "vi": "Đỏ"},
                "image": "https://img.test/red.jpg",
                "sizeOptions": [
                    {"size": {"EU": 40, "US": 7}, "price": 500000, "stock": 3},
                    {"size": {"EU": 41, "US": 8}, "price": 550000, "stock": 10},
                ],
            },
            {
                "color": {"en": "Blue", "vi": "Xanh"},
                "image": "",
                "sizeOptions": [{"size": {"EU": 42, "US": 8.5}, "price": 600000, "stock": 0}],
            },
        ],
        "createdAt": "2024-05-01T10:00:00Z",
        "updatedAt": "2024-05-02T10:00:00Z",
    }


@pytest.fixture
def product(product_dict):
    return Product.from_dict(product_dict)


@pytest.fixture
def order_dicts():
    return [
        {
            "_id": "o1",
            "products": [
                {
                    "productId": "p1",
                    "productName": "Canvas Sneaker",
                    "quantity": 2,
                    "price": 500000,
                    "selectedSize": "EU 40 / US 7",
                    "selectedColor": "Red",
                }
            ],
            "total": 1030000,
            "shippingFee": 30000,
            "shippingCountry": "VN",
            "totalWeight": 1.6,
            "customerInfo": {"name": "Lan Nguyen", "email": "lan@mail.test", "address": "Hanoi"},
            "status": "Pending",
            "createdAt": "2024-05-03T09:00:00Z",
        },
        {
            "_id": "o2",
            "products": [],
            "total": 200000,
            "customerInfo": {"name": "Minh Tran", "email": "minh@mail.test", "address": "HCMC"},
            "status": "Shipped",
        },
    ]


@pytest.fixture
def orders(order_dicts):
    return [Order.from_dict(item) for item in order_dicts]


@pytest.fixture
def shipping_fees():
    return [
        ShippingFee(country="VN", base_fee=30000, per_kg_rate=10000, is_active=True, id="f1"),
        ShippingFee(country="US", base_fee=200000, per_kg_rate=80000, is_active=False, id="f2"),
    ]


@pytest.fixture
def product_form():
    """A filled-in form using catalog ids s40 and s42."""
    return ProductForm(
        name_en="Canvas Sneaker",
        name_vi="Giày vải",
        short_description_en="Light",
        short_description_vi="",
        detail_description_en="Long text",
        detail_description_vi="Văn bản dài",
        image="",
        images="https://img.test/a.jpg\n\n  https://img.test/b.jpg  \n",
        weight="0.8",
        in_stock=True,
        specifications=[
            SpecificationRow(key_en="Material", key_vi="", value_en="Canvas", value_vi="Vải"),
            SpecificationRow(),
        ],
        variations=[
            VariationRow(
                color_en="Red",
                color_vi="Đỏ",
                image="https://img.test/red.jpg",
                sizes=[
                    SizeRow(size_id="s40", price="500000", stock="3"),
                    SizeRow(size_id="", price="999", stock="9"),
                    SizeRow(size_id="s42", price="600000.5", stock="1"),
                ],
            ),
            VariationRow(color_en="", color_vi="", sizes=[SizeRow(size_id="s41", price="1")]),
        ],
    )


@pytest.fixture
def store(admin_user_dict):
    """Token store holding a valid session."""
    return MemoryTokenStore("tok-123", admin_user_dict)


@pytest.fixture
def http():
    """Mock requests.Session; set ``http.request.return_value`` per test."""
    session = MagicMock()
    session.request.return_value = FakeResponse(200, {"success": True})
    return session


@pytest.fixture
def api(store, http):
    """Real ApiClient over the mocked HTTP session."""
    return ApiClient(base_url=BASE_URL, token_store=store, timeout=5, session=http)


@pytest.fixture
def client(catalog):
    """Mock ApiClient for state-level tests."""
    mock = MagicMock(spec=ApiClient)
    mock.list_products.return_value = []
    mock.list_orders.return_value = []
    mock.list_shipping_fees.return_value = []
    mock.list_sizes.return_value = list(catalog)
    mock.verify.return_value = None
    return mock


@pytest.fixture
def state(client, store):
    """AdminState with a restored (already verified) session."""
    admin_state = AdminState(client, store)
    assert admin_state.restore_session(load=False, verify=False)
    return admin_state


@pytest.fixture
def admin_user(admin_user_dict):
    return AdminUser.from_dict(admin_user_dict)


@pytest.fixture
def respond(http):
    """Queue one response: ``respond(status, body)``."""

    def _respond(status_code=200, body=None, text=None):
        response = FakeResponse(status_code, body, text)
        http.request.return_value = response
        return response

    return _respond
