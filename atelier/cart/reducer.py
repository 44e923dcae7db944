"""
Cart reducer - pure state transitions.

`cart_reducer(cart, action)` returns a new Cart and has no side effects.
Persistence and analytics are handled by CartEngine around it.
"""

import json
from dataclasses import dataclass, replace
from typing import Any, Optional, Sequence, Tuple, Union

from atelier.config import DEFAULT_CURRENCY, DEFAULT_STORE_NAME
from atelier.errors import ERROR_CART_CORRUPTED, ERROR_CART_ITEM_CORRUPTED
from atelier.logging import get_logger
from atelier.money import to_number
from .models import (
    EMPTY_CART,
    Cart,
    CartItem,
    SelectedVariant,
    generate_item_id,
)
from .products import Product

logger = get_logger(__name__)


@dataclass(frozen=True)
class AddItem:
    product: Product
    quantity: int
    selected_variants: Tuple[SelectedVariant, ...] = ()


@dataclass(frozen=True)
class RemoveItem:
    item_id: str


@dataclass(frozen=True)
class UpdateQuantity:
    item_id: str
    quantity: int


@dataclass(frozen=True)
class ClearCart:
    pass


@dataclass(frozen=True)
class LoadCart:
    raw: Any  # Parsed JSON from storage, not yet validated


CartAction = Union[AddItem, RemoveItem, UpdateQuantity, ClearCart, LoadCart]


def resolve_variants(
    product: Product,
    selected_variants: Sequence[SelectedVariant],
) -> Tuple[SelectedVariant, ...]:
    """
    Resolve price modifiers and snapshot variant SKU/image from the product.

    An explicit price_modifier wins; otherwise the matching variant's declared
    price is used, falling back to 0.
    """
    resolved = []
    for variant in sorted(selected_variants, key=lambda v: v.attribute_id):
        variant_data = product.find_variant(variant.attribute_id, variant.variant_id)
        if variant.price_modifier is not None:
            modifier = to_number(variant.price_modifier, 0)
        else:
            modifier = to_number(variant_data.price if variant_data else None, 0)
        resolved.append(replace(
            variant,
            price_modifier=modifier,
            variant_sku=variant_data.sku if variant_data else None,
            variant_image=variant_data.images[0] if variant_data and variant_data.images else None,
        ))
    return tuple(resolved)


def build_cart_item(
    product: Product,
    quantity: int,
    selected_variants: Sequence[SelectedVariant],
) -> CartItem:
    """Create a new cart item from a product, coercing every numeric field."""
    variants = resolve_variants(product, selected_variants)
    item = CartItem(
        id=generate_item_id(product.id, variants),
        product_id=product.id,
        product_name=product.name,
        base_price=to_number(product.base_price, 0),
        quantity=max(0, quantity),
        selected_variants=variants,
        hide_price=product.hide_price is True,
        product_image=product.images[0] if product.images else "",
        product_sku=product.sku or "",
        currency=product.currency or DEFAULT_CURRENCY,
        store_id=product.store_id or "",
        store_name=product.store_name or DEFAULT_STORE_NAME,
        store_logo=product.store_logo,
        store_instagram=product.store_instagram,
        store_tiktok=product.store_tiktok,
        store_phone_number=product.store_phone_number,
        store_users=tuple(u for u in product.store_users if u.has_phone()),
    )
    return item.recalculated()


def _add_item(cart: Cart, action: AddItem) -> Cart:
    item_id = generate_item_id(action.product.id, action.selected_variants)
    existing = cart.find(item_id)

    if existing is not None:
        # Recompute from base + modifiers rather than incrementing the old total
        items = [
            item.with_quantity(item.quantity + action.quantity) if item.id == item_id else item
            for item in cart.items
        ]
    else:
        items = [*cart.items, build_cart_item(action.product, action.quantity, action.selected_variants)]

    return Cart.from_items(items)


def _remove_item(cart: Cart, action: RemoveItem) -> Cart:
    return Cart.from_items(item for item in cart.items if item.id != action.item_id)


def _update_quantity(cart: Cart, action: UpdateQuantity) -> Cart:
    if action.quantity <= 0:
        return _remove_item(cart, RemoveItem(action.item_id))

    items = [
        item.with_quantity(action.quantity) if item.id == action.item_id else item
        for item in cart.items
    ]
    return Cart.from_items(items)


def normalize_cart(raw: Any) -> Cart:
    """
    Rebuild a Cart from untrusted stored data.

    Anything that is not an object with an `items` list yields the empty
    cart. Every item has its numbers re-coerced and totals recomputed.
    """
    if not isinstance(raw, dict) or not isinstance(raw.get("items"), list):
        return EMPTY_CART

    items = []
    for entry in raw["items"]:
        if not isinstance(entry, dict):
            logger.warning(ERROR_CART_ITEM_CORRUPTED)
            continue
        items.append(CartItem.from_dict(entry))
    return Cart.from_items(items)


def parse_stored_cart(serialized: Optional[str]) -> Cart:
    """Decode the JSON string kept in storage; malformed values mean an empty cart."""
    if not serialized:
        return EMPTY_CART
    try:
        raw = json.loads(serialized)
    except (ValueError, TypeError) as e:
        logger.warning(f"{ERROR_CART_CORRUPTED}: {e}")
        return EMPTY_CART
    if not isinstance(raw, dict) or not isinstance(raw.get("items"), list):
        logger.warning(ERROR_CART_CORRUPTED)
        return EMPTY_CART
    return normalize_cart(raw)


def cart_reducer(cart: Cart, action: CartAction) -> Cart:
    """Apply one action to a cart snapshot and return the new snapshot."""
    if isinstance(action, AddItem):
        return _add_item(cart, action)
    if isinstance(action, RemoveItem):
        return _remove_item(cart, action)
    if isinstance(action, UpdateQuantity):
        return _update_quantity(cart, action)
    if isinstance(action, ClearCart):
        return EMPTY_CART
    if isinstance(action, LoadCart):
        return normalize_cart(action.raw)
    return cart
