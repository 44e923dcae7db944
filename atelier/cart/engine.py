"""Cart engine: applies cart actions, persists snapshots and reports analytics."""
import json
import time
from typing import Callable, Optional, Sequence, Union

from pydantic import ValidationError

from atelier.analytics import CartEvent, CartEventTracker, NullTracker, get_tracker
from atelier.config import DEFAULT_CURRENCY, UPSTASH_REDIS_REST_TOKEN, UPSTASH_REDIS_REST_URL
from atelier.errors import (
    ERROR_ANALYTICS_FAILED,
    ERROR_PRODUCT_INVALID,
    ERROR_STORAGE_UNAVAILABLE,
    ERROR_STORAGE_WRITE,
)
from atelier.logging import describe_cart, get_logger, sanitize_id_for_logging
from atelier.money import ZERO, to_number
from .models import EMPTY_CART, Cart, CartItem, SelectedVariant, get_item_unit_price
from .products import Product
from .reducer import (
    AddItem,
    CartAction,
    ClearCart,
    RemoveItem,
    UpdateQuantity,
    cart_reducer,
    parse_stored_cart,
    resolve_variants,
)
from .storage import InMemoryStore, KeyValueStore, RedisStore, StorageKeys

logger = get_logger(__name__)

Clock = Callable[[], int]


def now_ms() -> int:
    """Current Unix time in milliseconds."""
    return int(time.time() * 1000)


class CartEngine:
    """
    Owns the shopper's cart.

    Every operation returns the new Cart snapshot and never raises: storage
    and analytics failures are logged and the in-memory cart stays
    authoritative. The "last added at" timestamp is written only by add_item.

    Concurrent writers to the same store (e.g. two browser tabs) are not
    reconciled; the last write wins.
    """

    def __init__(
        self,
        store: KeyValueStore,
        tracker: Optional[CartEventTracker] = None,
        clock: Clock = now_ms,
    ):
        self.store = store
        self.tracker = tracker or NullTracker()
        self.clock = clock
        self._cart: Cart = EMPTY_CART

    @property
    def cart(self) -> Cart:
        return self._cart

    def get_item_count(self) -> int:
        return self._cart.item_count

    def get_total(self):
        return self._cart.total

    def load(self) -> Cart:
        """Restore the cart from storage, repairing stringly-typed numbers."""
        try:
            serialized = self.store.get(StorageKeys.CART)
        except Exception as e:
            logger.error(f"{ERROR_STORAGE_UNAVAILABLE}: {e}")
            serialized = None

        self._cart = parse_stored_cart(serialized)
        logger.debug(f"Cart loaded: {_summary(self._cart)}")
        return self._cart

    def apply(self, action: CartAction) -> Cart:
        """Run an action through the reducer and persist the result."""
        self._cart = cart_reducer(self._cart, action)

        if isinstance(action, ClearCart):
            self._forget()
        else:
            self._persist(mark_added=isinstance(action, AddItem))
        logger.debug(f"{type(action).__name__}: {_summary(self._cart)}")
        return self._cart

    def add_item(
        self,
        product: Union[Product, dict],
        quantity: int,
        selected_variants: Sequence[SelectedVariant] = (),
    ) -> Cart:
        """
        Add a product with the chosen variants.

        Adding a product/variant combination already in the cart merges into
        the existing line. Non-positive quantities are ignored.
        """
        if isinstance(product, dict):
            try:
                product = Product.from_api(product)
            except ValidationError as e:
                logger.warning(f"{ERROR_PRODUCT_INVALID}: {e.error_count()} errors")
                return self._cart

        if quantity <= 0:
            logger.debug(f"Ignoring add of {quantity} units of {sanitize_id_for_logging(product.id)}")
            return self._cart

        cart = self.apply(AddItem(product, quantity, tuple(selected_variants)))

        variants = resolve_variants(product, selected_variants)
        modifiers = sum((to_number(v.price_modifier, 0) for v in variants), ZERO)
        self._track(
            "add",
            CartEvent(
                product_id=product.id,
                product_name=product.name,
                quantity=quantity,
                price=to_number(product.base_price, 0) + modifiers,
                currency=product.currency or DEFAULT_CURRENCY,
                category=product.category,
                store_id=product.store_id,
                store_name=product.store_name,
            ),
        )
        return cart

    def remove_item(self, item_id: str) -> Cart:
        """Remove a line; unknown ids leave the cart as is."""
        removed = self._cart.find(item_id)
        if removed is not None:
            self._track("remove", _event_for_item(removed))
        return self.apply(RemoveItem(item_id))

    def update_quantity(self, item_id: str, quantity: int) -> Cart:
        """Set a line's quantity; zero or less removes the line."""
        if quantity <= 0:
            return self.remove_item(item_id)
        return self.apply(UpdateQuantity(item_id, quantity))

    def clear_cart(self) -> Cart:
        return self.apply(ClearCart())

    def _persist(self, mark_added: bool = False) -> None:
        try:
            self.store.set(StorageKeys.CART, json.dumps(self._cart.to_dict()))
            if mark_added:
                self.store.set(StorageKeys.LAST_ADDED_AT, str(self.clock()))
        except Exception as e:
            logger.error(f"{ERROR_STORAGE_WRITE}: {e}")

    def _forget(self) -> None:
        try:
            self.store.remove(StorageKeys.CART)
            self.store.remove(StorageKeys.LAST_ADDED_AT)
        except Exception as e:
            logger.error(f"{ERROR_STORAGE_WRITE}: {e}")

    def _track(self, kind: str, event: CartEvent) -> None:
        try:
            if kind == "add":
                self.tracker.track_add_to_cart(event)
            else:
                self.tracker.track_remove_from_cart(event)
        except Exception as e:
            logger.warning(f"{ERROR_ANALYTICS_FAILED}: {kind} {sanitize_id_for_logging(event.product_id)}: {e}")


def _summary(cart: Cart) -> str:
    return describe_cart(cart.items, cart.item_count, cart.total)


def _event_for_item(item: CartItem) -> CartEvent:
    return CartEvent(
        product_id=item.product_id,
        product_name=item.product_name,
        quantity=item.quantity,
        price=get_item_unit_price(item),
        currency=item.currency or DEFAULT_CURRENCY,
        store_id=item.store_id,
        store_name=item.store_name,
    )


def create_cart_engine(session_id: Optional[str] = None) -> CartEngine:
    """
    Build an engine with the configured collaborators and load its cart.

    Uses Upstash Redis when credentials and a session id are available,
    otherwise an in-process store.
    """
    if session_id and UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN:
        store: KeyValueStore = RedisStore(session_id)
    else:
        store = InMemoryStore()
    engine = CartEngine(store, tracker=get_tracker())
    engine.load()
    return engine
