"""
Order messages for store checkout over WhatsApp.

The cart has no checkout of its own: each store's lines are sent to the store
as a text message through a wa.me link.
"""
from decimal import Decimal
from typing import Optional, Sequence
from urllib.parse import quote

from atelier.money import ZERO, format_amount, to_number
from .models import CartItem

WHATSAPP_URL = "https://wa.me/{phone}?text={text}"

# Characters encodeURIComponent leaves untouched
_URI_SAFE = "-_.!~*'()"

_LABELS = {
    "es": {
        "order": "Pedido",
        "sku": "Código",
        "quantity": "Cant.",
        "image": "Imagen",
        "total": "Total del pedido",
        "bs_rate": "tasa BCV USD",
        "closing": "Gracias!",
    },
    "en": {
        "order": "Order",
        "sku": "SKU",
        "quantity": "Qty",
        "image": "Image",
        "total": "Order total",
        "bs_rate": "BCV USD rate",
        "closing": "Thank you!",
    },
}


def _labels(locale: str) -> dict:
    return _LABELS["es"] if locale == "es" else _LABELS["en"]


def item_image(item: CartItem) -> str:
    """Variant image when one was captured, otherwise the product image."""
    for variant in item.selected_variants:
        if variant.variant_image:
            return variant.variant_image
    return item.product_image or ""


def item_sku(item: CartItem) -> str:
    """Product SKU followed by variant SKUs, joined with ' / '."""
    variant_skus = [v.variant_sku for v in item.selected_variants if v.variant_sku]
    if not variant_skus:
        return item.product_sku or ""
    return " / ".join([item.product_sku or "", *variant_skus])


def _item_block(index: int, item: CartItem, labels: dict) -> str:
    variants = ""
    if item.selected_variants:
        pairs = ", ".join(f"{v.attribute_name}: {v.variant_value}" for v in item.selected_variants)
        variants = f" ({pairs})"

    unit_price = item.total_price / item.quantity if item.quantity > 0 else ZERO
    lines = [
        f"{index}. {item.product_name}{variants}",
        f"   {labels['sku']}: {item_sku(item)}",
        f"   {labels['quantity']}: {item.quantity} x ${format_amount(unit_price)} = ${format_amount(item.total_price)}",
    ]
    image = item_image(item)
    if image:
        lines.append(f"   {labels['image']}: {image}")
    return "\n".join(lines)


def build_store_order_message(
    items: Sequence[CartItem],
    store_name: str,
    locale: str,
    usd_to_bs: Optional[Decimal] = None,
) -> str:
    """
    Build the order text for one store's cart lines.

    Args:
        items: Cart lines of a single store
        store_name: Shown in the heading when not empty
        locale: "es" for Spanish, anything else for English
        usd_to_bs: Optional USD -> Bs exchange rate; adds the total in Bs

    Returns:
        Plain-text order message
    """
    labels = _labels(locale)
    heading = f"{labels['order']} - {store_name}" if store_name else labels["order"]

    body = "\n\n".join(_item_block(i, item, labels) for i, item in enumerate(items, start=1))

    total = sum((item.total_price for item in items), ZERO)
    total_text = f"\n\n{labels['total']}: ${format_amount(total)}"
    rate = to_number(usd_to_bs, 0)
    if rate > 0:
        total_text += f"\n   Bs {format_amount(total * rate, thousands=True)} ({labels['bs_rate']})"

    return f"{heading}\n\n{body}{total_text}\n\n{labels['closing']}"


def build_whatsapp_url(phone_number: str, message: str, prefix: Optional[str] = None) -> str:
    """wa.me link for a phone number, with an optional note placed before the message."""
    note = (prefix or "").strip()
    text = f"{note}\n\n{message}" if note else message
    return WHATSAPP_URL.format(phone=phone_number, text=quote(text, safe=_URI_SAFE))
