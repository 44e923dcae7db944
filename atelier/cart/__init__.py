"""Cart package: models, reducer, storage, engine and stale cart guard."""
from .engine import CartEngine, create_cart_engine
from .grouping import StoreGroup, default_contact_phone, group_by_store
from .models import Cart, CartItem, SelectedVariant, generate_item_id, get_item_unit_price
from .products import Product, ProductAttribute, ProductVariant, StoreUser
from .reducer import cart_reducer, normalize_cart
from .staleness import RestoreState, StalenessGuard
from .storage import InMemoryStore, KeyValueStore, RedisStore, StorageKeys
from .whatsapp import build_store_order_message, build_whatsapp_url

__all__ = [
    "Cart",
    "CartItem",
    "SelectedVariant",
    "Product",
    "ProductAttribute",
    "ProductVariant",
    "StoreUser",
    "CartEngine",
    "create_cart_engine",
    "cart_reducer",
    "normalize_cart",
    "generate_item_id",
    "get_item_unit_price",
    "StalenessGuard",
    "RestoreState",
    "KeyValueStore",
    "InMemoryStore",
    "RedisStore",
    "StorageKeys",
    "StoreGroup",
    "group_by_store",
    "default_contact_phone",
    "build_store_order_message",
    "build_whatsapp_url",
]
