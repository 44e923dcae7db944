"""Pytest configuration and fixtures"""
import os
import pytest
from unittest.mock import Mock

# Keep tests away from real collaborators
os.environ.setdefault("UPSTASH_REDIS_REST_URL", "")
os.environ.setdefault("UPSTASH_REDIS_REST_TOKEN", "")
os.environ.setdefault("GA_MEASUREMENT_ID", "")
os.environ.setdefault("GA_API_SECRET", "")

from atelier.cart import CartEngine, InMemoryStore, Product, SelectedVariant


class FakeClock:
    """Settable millisecond clock."""

    def __init__(self, now: int = 1_750_000_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def tracker():
    """Mock analytics tracker"""
    return Mock()


@pytest.fixture
def engine(store, tracker, clock):
    """Cart engine over an in-memory store"""
    return CartEngine(store, tracker=tracker, clock=clock)


@pytest.fixture
def sample_product_data():
    """Sample product payload as returned by the storefront API"""
    return {
        "id": "prod-1",
        "name": "Vestido Lino",
        "description": "Vestido de lino",
        "images": ["https://cdn.test/vestido.jpg"],
        "basePrice": "40.00",
        "currency": "USD",
        "stock": 10,
        "sku": "VL-01",
        "category": "Vestidos",
        "attributes": [
            {
                "id": "attr-size",
                "name": "Talla",
                "type": "size",
                "required": True,
                "variants": [
                    {"id": "v-s", "name": "S", "value": "S", "stock": 3},
                    {"id": "v-xl", "name": "XL", "value": "XL", "price": "5", "stock": 2, "sku": "VL-01-XL"},
                ],
            },
            {
                "id": "attr-color",
                "name": "Color",
                "type": "color",
                "required": True,
                "variants": [
                    {"id": "v-red", "name": "Rojo", "value": "Rojo", "price": 2.5, "stock": 4,
                     "sku": "VL-01-R", "images": ["https://cdn.test/rojo.jpg"]},
                    {"id": "v-blue", "name": "Azul", "value": "Azul", "stock": 4},
                ],
            },
        ],
        "hidePrice": False,
        "storeId": "store-1",
        "storeName": "Mi Atelier",
        "storeLogo": "https://cdn.test/logo.png",
        "storeInstagram": "miatelier",
        "storePhoneNumber": "584140000000",
        "storeUsers": [
            {"id": "su-1", "userId": "u-1", "isCreator": True, "phoneNumber": "584141111111"},
            {"id": "su-2", "userId": "u-2", "isCreator": False, "phoneNumber": "  "},
        ],
    }


@pytest.fixture
def sample_product(sample_product_data):
    return Product.from_api(sample_product_data)


@pytest.fixture
def plain_product():
    """Product without attributes from a second store"""
    return Product.from_api({
        "id": "prod-2",
        "name": "Bolso",
        "images": [],
        "basePrice": 15,
        "currency": "USD",
        "sku": "BO-02",
        "attributes": [],
        "storeId": "store-2",
        "storeName": "Otra Tienda",
    })


@pytest.fixture
def hidden_price_product():
    return Product.from_api({
        "id": "prod-3",
        "name": "Pieza a pedido",
        "basePrice": 99,
        "hidePrice": True,
        "storeId": "store-1",
        "storeName": "Mi Atelier",
    })


@pytest.fixture
def xl_red():
    """Size XL + color red, modifiers resolved from the product"""
    return [
        SelectedVariant(attribute_id="attr-size", variant_id="v-xl", attribute_name="Talla", variant_value="XL"),
        SelectedVariant(attribute_id="attr-color", variant_id="v-red", attribute_name="Color", variant_value="Rojo"),
    ]
