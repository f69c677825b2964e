"""Shared fixtures for the web UI tests."""

from unittest.mock import MagicMock

import pytest

from shopadmin.api import ApiClient
from shopadmin.models import AdminUser, Order, Product, ShippingFee, SizeOption
from shopadmin_web import create_app
from shopadmin_web.session_store import TOKEN_KEY, USER_KEY, VERIFIED_KEY

ADMIN = {"_id": "u1", "username": "admin", "email": "admin@shop.test", "role": "admin"}


@pytest.fixture
def catalog():
    return [SizeOption(40, 7, "s40"), SizeOption(41, 8, "s41"), SizeOption(42, 8.5, "s42")]


@pytest.fixture
def product():
    return Product.from_dict(
        {
            "_id": "p1",
            "name": {"en": "Canvas Sneaker", "vi": "Giày vải"},
            "detailDescription": {"en": "Long text", "vi": ""},
            "images": ["https://img.test/a.jpg"],
            "weight": 0.8,
            "variations": [
                {
                    "color": {"en": "Red", "vi": "Đỏ"},
                    "image": "",
                    "sizeOptions": [
                        {"size": {"EU": 40, "US": 7}, "price": 500000, "stock": 3},
                        {"size": {"EU": 41, "US": 8}, "price": 550000, "stock": 10},
                    ],
                }
            ],
        }
    )


@pytest.fixture
def orders():
    return [
        Order.from_dict(
            {
                "_id": "o1",
                "total": 530000,
                "customerInfo": {"name": "Lan Nguyen", "email": "lan@mail.test"},
                "status": "Pending",
            }
        ),
        Order.from_dict(
            {
                "_id": "o2",
                "total": 200000,
                "customerInfo": {"name": "Minh Tran", "email": "minh@mail.test"},
                "status": "Completed",
            }
        ),
    ]


@pytest.fixture
def backend(catalog, product, orders):
    """Mock ApiClient shared by every request of a test."""
    mock = MagicMock(spec=ApiClient)
    mock.list_products.return_value = [product]
    mock.get_product.return_value = product
    mock.list_orders.return_value = orders
    mock.list_sizes.return_value = list(catalog)
    mock.list_shipping_fees.return_value = [
        ShippingFee(country="VN", base_fee=30000, per_kg_rate=10000, is_active=True, id="f1"),
        ShippingFee(country="US", base_fee=200000, per_kg_rate=80000, is_active=False, id="f2"),
    ]
    mock.verify.return_value = AdminUser.from_dict(ADMIN)
    return mock


@pytest.fixture
def app(backend):
    app = create_app(
        {
            "TESTING": True,
            "SECRET_KEY": "test-secret",
            "CLIENT_FACTORY": lambda store: backend,
        }
    )
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def logged_in(client):
    """Test client whose session cookie already holds a verified token."""
    with client.session_transaction() as sess:
        sess[TOKEN_KEY] = "tok-123"
        sess[USER_KEY] = dict(ADMIN, isAuthenticated=True)
        sess[VERIFIED_KEY] = True
    return client
