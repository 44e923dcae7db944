"""Cart models with Decimal-based pricing."""
import sys
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, Optional, Sequence, Tuple

from pydantic import ValidationError

from atelier.config import DEFAULT_CURRENCY, DEFAULT_STORE_NAME
from atelier.money import ZERO, to_float, to_number
from .products import StoreUser

# Upper bound for a stored quantity
MAX_QUANTITY = sys.maxsize


@dataclass(frozen=True)
class SelectedVariant:
    """Attribute option chosen for a cart item, snapshotted at add time."""
    attribute_id: str
    variant_id: str
    attribute_name: str = ""
    variant_name: str = ""
    variant_value: str = ""
    price_modifier: Optional[Decimal] = None  # None = resolve from product
    variant_sku: Optional[str] = None
    variant_image: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            "attributeId": self.attribute_id,
            "attributeName": self.attribute_name,
            "variantId": self.variant_id,
            "variantName": self.variant_name,
            "variantValue": self.variant_value,
            "priceModifier": to_float(self.price_modifier or ZERO),
        }
        if self.variant_sku:
            data["variantSku"] = self.variant_sku
        if self.variant_image:
            data["variantImage"] = self.variant_image
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "SelectedVariant":
        """Create from a stored dict, coercing the modifier to a number."""
        return cls(
            attribute_id=str(data.get("attributeId", "")),
            variant_id=str(data.get("variantId", "")),
            attribute_name=str(data.get("attributeName") or ""),
            variant_name=str(data.get("variantName") or ""),
            variant_value=str(data.get("variantValue") or ""),
            price_modifier=to_number(data.get("priceModifier"), 0),
            variant_sku=data.get("variantSku") or None,
            variant_image=data.get("variantImage") or None,
        )


@dataclass(frozen=True)
class CartItem:
    """Single line in the cart: one product with one combination of variants."""
    id: str
    product_id: str
    product_name: str
    base_price: Decimal
    quantity: int
    selected_variants: Tuple[SelectedVariant, ...] = ()
    total_price: Decimal = ZERO
    hide_price: bool = False
    product_image: str = ""
    product_sku: str = ""
    currency: str = DEFAULT_CURRENCY

    # Denormalized store data for checkout and contact
    store_id: str = ""
    store_name: str = DEFAULT_STORE_NAME
    store_logo: Optional[str] = None
    store_instagram: Optional[str] = None
    store_tiktok: Optional[str] = None
    store_phone_number: Optional[str] = None
    store_users: Tuple[StoreUser, ...] = ()

    @property
    def unit_price(self) -> Decimal:
        return get_item_unit_price(self)

    def recalculated(self) -> "CartItem":
        """Copy with total_price derived from price, modifiers and quantity."""
        return replace(self, total_price=get_item_total_price(self))

    def with_quantity(self, quantity: int) -> "CartItem":
        return replace(self, quantity=quantity).recalculated()

    def to_dict(self) -> dict:
        """Convert to the storefront's camelCase storage shape."""
        return {
            "id": self.id,
            "productId": self.product_id,
            "productName": self.product_name,
            "productImage": self.product_image,
            "productSku": self.product_sku,
            "basePrice": to_float(self.base_price),
            "currency": self.currency,
            "quantity": self.quantity,
            "selectedVariants": [v.to_dict() for v in self.selected_variants],
            "totalPrice": to_float(self.total_price),
            "hidePrice": self.hide_price,
            "storeId": self.store_id,
            "storeName": self.store_name,
            "storeLogo": self.store_logo,
            "storeInstagram": self.store_instagram,
            "storeTiktok": self.store_tiktok,
            "storePhoneNumber": self.store_phone_number,
            "storeUsers": [u.model_dump(by_alias=True, exclude_none=True) for u in self.store_users],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CartItem":
        """
        Create from a stored dict.

        Numeric fields are re-coerced and total_price is recomputed; a stored
        totalPrice is never trusted.
        """
        quantity = min(max(0, int(to_number(data.get("quantity"), 0))), MAX_QUANTITY)
        variants = tuple(
            SelectedVariant.from_dict(v)
            for v in (data.get("selectedVariants") or [])
            if isinstance(v, dict)
        )
        item = cls(
            id=str(data.get("id", "")),
            product_id=str(data.get("productId", "")),
            product_name=str(data.get("productName") or ""),
            base_price=to_number(data.get("basePrice"), 0),
            quantity=quantity,
            selected_variants=variants,
            hide_price=data.get("hidePrice") is True,
            product_image=str(data.get("productImage") or ""),
            product_sku=str(data.get("productSku") or ""),
            currency=str(data.get("currency") or DEFAULT_CURRENCY),
            store_id=str(data.get("storeId") or ""),
            store_name=str(data.get("storeName") or DEFAULT_STORE_NAME),
            store_logo=data.get("storeLogo"),
            store_instagram=data.get("storeInstagram"),
            store_tiktok=data.get("storeTiktok"),
            store_phone_number=data.get("storePhoneNumber"),
            store_users=_parse_store_users(data.get("storeUsers")),
        )
        return item.recalculated()


@dataclass(frozen=True)
class Cart:
    """Immutable cart snapshot. total and item_count are always derived from items."""
    items: Tuple[CartItem, ...] = ()
    total: Decimal = ZERO
    item_count: int = 0

    @classmethod
    def from_items(cls, items: Sequence[CartItem]) -> "Cart":
        """Build a cart, recomputing both aggregates from scratch."""
        items = tuple(items)
        return cls(
            items=items,
            total=sum((item.total_price for item in items), ZERO),
            item_count=sum(item.quantity for item in items),
        )

    @property
    def is_empty(self) -> bool:
        return not self.items

    def find(self, item_id: str) -> Optional[CartItem]:
        return next((item for item in self.items if item.id == item_id), None)

    def to_dict(self) -> dict:
        """Convert to dictionary for storage."""
        return {
            "items": [item.to_dict() for item in self.items],
            "total": to_float(self.total),
            "itemCount": self.item_count,
        }


EMPTY_CART = Cart()


def generate_item_id(product_id: str, selected_variants: Sequence[SelectedVariant]) -> str:
    """Composite key: product id plus attribute:variant pairs sorted by attribute."""
    ordered = sorted(selected_variants, key=lambda v: v.attribute_id)
    variant_key = "|".join(f"{v.attribute_id}:{v.variant_id}" for v in ordered)
    return f"{product_id}_{variant_key}"


def get_item_unit_price(item: CartItem) -> Decimal:
    """Base price plus every variant modifier."""
    modifiers = sum(
        (to_number(v.price_modifier, 0) for v in item.selected_variants),
        ZERO,
    )
    return to_number(item.base_price, 0) + modifiers


def get_item_total_price(item: CartItem) -> Decimal:
    """Unit price times quantity; items with a hidden price count as zero."""
    if item.hide_price:
        return ZERO
    quantity = max(0, item.quantity)
    return get_item_unit_price(item) * quantity


def _parse_store_users(raw: Any) -> Tuple[StoreUser, ...]:
    if not isinstance(raw, list):
        return ()
    users = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        try:
            users.append(StoreUser.model_validate(entry))
        except ValidationError:
            continue
    return tuple(users)
