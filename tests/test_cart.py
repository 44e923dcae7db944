"""
Tests for cart models and the cart reducer
"""

import json
import pytest
from decimal import Decimal

from atelier.cart import (
    Cart,
    CartItem,
    SelectedVariant,
    cart_reducer,
    generate_item_id,
    get_item_unit_price,
    normalize_cart,
)
from atelier.cart.reducer import AddItem, ClearCart, LoadCart, RemoveItem, UpdateQuantity
from atelier.cart.models import EMPTY_CART, MAX_QUANTITY


def _assert_derived_totals(cart: Cart):
    assert cart.total == sum((item.total_price for item in cart.items), Decimal("0"))
    assert cart.item_count == sum(item.quantity for item in cart.items)


class TestItemId:
    """Tests for the composite item key."""

    def test_no_variants(self):
        assert generate_item_id("prod-1", []) == "prod-1_"

    def test_sorted_by_attribute(self):
        variants = [
            SelectedVariant(attribute_id="b-size", variant_id="m"),
            SelectedVariant(attribute_id="a-color", variant_id="red"),
        ]
        assert generate_item_id("prod-1", variants) == "prod-1_a-color:red|b-size:m"

    def test_order_independent(self):
        a = SelectedVariant(attribute_id="a", variant_id="1")
        b = SelectedVariant(attribute_id="b", variant_id="2")
        assert generate_item_id("p", [a, b]) == generate_item_id("p", [b, a])


class TestCartItem:
    """Tests for CartItem pricing."""

    def _item(self, **overrides):
        data = dict(
            id="prod-1_",
            product_id="prod-1",
            product_name="Test",
            base_price=Decimal("10"),
            quantity=3,
            selected_variants=(
                SelectedVariant(attribute_id="a", variant_id="1", price_modifier=Decimal("2.5")),
            ),
        )
        data.update(overrides)
        return CartItem(**data).recalculated()

    def test_unit_price_includes_modifiers(self):
        assert get_item_unit_price(self._item()) == Decimal("12.5")

    def test_total_price(self):
        assert self._item().total_price == Decimal("37.5")

    def test_hidden_price_is_zero(self):
        item = self._item(hide_price=True)
        assert item.total_price == Decimal("0")

    def test_negative_quantity_counts_as_zero(self):
        assert self._item(quantity=-2).total_price == Decimal("0")

    def test_to_dict_uses_storefront_keys(self):
        data = self._item().to_dict()
        assert data["productId"] == "prod-1"
        assert data["basePrice"] == 10.0
        assert data["totalPrice"] == 37.5
        assert data["selectedVariants"][0]["priceModifier"] == 2.5
        json.dumps(data)


class TestReducer:
    """Tests for cart_reducer transitions."""

    def test_add_new_item(self, sample_product, xl_red):
        cart = cart_reducer(EMPTY_CART, AddItem(sample_product, 2, tuple(xl_red)))

        assert len(cart.items) == 1
        item = cart.items[0]
        assert item.id == "prod-1_attr-color:v-red|attr-size:v-xl"
        assert item.base_price == Decimal("40.00")
        # 40 + 5 (XL) + 2.5 (red)
        assert item.unit_price == Decimal("47.5")
        assert item.total_price == Decimal("95.0")
        assert cart.total == Decimal("95.0")
        assert cart.item_count == 2

    def test_add_snapshots_variant_sku_and_image(self, sample_product, xl_red):
        cart = cart_reducer(EMPTY_CART, AddItem(sample_product, 1, tuple(xl_red)))
        by_attr = {v.attribute_id: v for v in cart.items[0].selected_variants}

        assert by_attr["attr-size"].variant_sku == "VL-01-XL"
        assert by_attr["attr-size"].variant_image is None
        assert by_attr["attr-color"].variant_sku == "VL-01-R"
        assert by_attr["attr-color"].variant_image == "https://cdn.test/rojo.jpg"

    def test_explicit_modifier_wins(self, sample_product):
        variants = (SelectedVariant(attribute_id="attr-size", variant_id="v-xl", price_modifier="1.5"),)
        cart = cart_reducer(EMPTY_CART, AddItem(sample_product, 1, variants))
        assert cart.items[0].unit_price == Decimal("41.5")

    def test_unknown_variant_has_zero_modifier(self, sample_product):
        variants = (SelectedVariant(attribute_id="attr-size", variant_id="v-missing"),)
        cart = cart_reducer(EMPTY_CART, AddItem(sample_product, 1, variants))
        assert cart.items[0].unit_price == Decimal("40.00")

    def test_add_copies_store_data(self, sample_product):
        item = cart_reducer(EMPTY_CART, AddItem(sample_product, 1)).items[0]

        assert item.store_id == "store-1"
        assert item.store_name == "Mi Atelier"
        assert item.product_image == "https://cdn.test/vestido.jpg"
        assert item.product_sku == "VL-01"
        # Users without a phone number are dropped
        assert [u.id for u in item.store_users] == ["su-1"]

    def test_defaults_for_missing_product_fields(self, hidden_price_product):
        item = cart_reducer(EMPTY_CART, AddItem(hidden_price_product, 1)).items[0]
        assert item.currency == "USD"
        assert item.product_image == ""

    def test_same_key_merges(self, sample_product, xl_red):
        cart = cart_reducer(EMPTY_CART, AddItem(sample_product, 2, tuple(xl_red)))
        cart = cart_reducer(cart, AddItem(sample_product, 3, tuple(reversed(xl_red))))

        assert len(cart.items) == 1
        assert cart.items[0].quantity == 5
        assert cart.items[0].total_price == 5 * Decimal("47.5")
        _assert_derived_totals(cart)

    def test_merge_recomputes_from_unit_price(self, sample_product):
        cart = cart_reducer(EMPTY_CART, AddItem(sample_product, 1))
        # Simulate a drifted stored total
        stale = Cart.from_items([CartItem(**{**cart.items[0].__dict__, "total_price": Decimal("999")})])

        cart = cart_reducer(stale, AddItem(sample_product, 1))
        assert cart.items[0].total_price == Decimal("80.00")

    def test_different_variants_are_separate_lines(self, sample_product, xl_red):
        cart = cart_reducer(EMPTY_CART, AddItem(sample_product, 1, tuple(xl_red)))
        cart = cart_reducer(cart, AddItem(sample_product, 1))
        assert len(cart.items) == 2
        _assert_derived_totals(cart)

    def test_hidden_price_excluded_from_total(self, sample_product, hidden_price_product):
        cart = cart_reducer(EMPTY_CART, AddItem(sample_product, 1))
        cart = cart_reducer(cart, AddItem(hidden_price_product, 4))

        hidden = cart.find("prod-3_")
        assert hidden.total_price == Decimal("0")
        assert cart.total == Decimal("40.00")
        assert cart.item_count == 5

    def test_remove(self, sample_product, plain_product):
        cart = cart_reducer(EMPTY_CART, AddItem(sample_product, 1))
        cart = cart_reducer(cart, AddItem(plain_product, 2))
        cart = cart_reducer(cart, RemoveItem("prod-1_"))

        assert [i.id for i in cart.items] == ["prod-2_"]
        assert cart.total == Decimal("30")
        assert cart.item_count == 2

    def test_remove_unknown_is_noop(self, sample_product):
        cart = cart_reducer(EMPTY_CART, AddItem(sample_product, 1))
        assert cart_reducer(cart, RemoveItem("nope")) == cart

    def test_update_quantity(self, sample_product, xl_red):
        cart = cart_reducer(EMPTY_CART, AddItem(sample_product, 1, tuple(xl_red)))
        item_id = cart.items[0].id
        cart = cart_reducer(cart, UpdateQuantity(item_id, 4))

        assert cart.items[0].quantity == 4
        assert cart.items[0].total_price == Decimal("190.0")
        _assert_derived_totals(cart)

    @pytest.mark.parametrize("quantity", [0, -3])
    def test_update_to_non_positive_removes(self, sample_product, plain_product, quantity):
        cart = cart_reducer(EMPTY_CART, AddItem(sample_product, 1))
        cart = cart_reducer(cart, AddItem(plain_product, 1))

        updated = cart_reducer(cart, UpdateQuantity("prod-1_", quantity))
        removed = cart_reducer(cart, RemoveItem("prod-1_"))
        assert updated == removed

    def test_clear(self, sample_product):
        cart = cart_reducer(EMPTY_CART, AddItem(sample_product, 1))
        assert cart_reducer(cart, ClearCart()) == EMPTY_CART

    def test_derived_totals_hold_over_sequence(self, sample_product, plain_product, hidden_price_product, xl_red):
        cart = EMPTY_CART
        actions = [
            AddItem(sample_product, 2, tuple(xl_red)),
            AddItem(plain_product, 1),
            AddItem(hidden_price_product, 3),
            UpdateQuantity("prod-2_", 5),
            AddItem(sample_product, 1, tuple(xl_red)),
            RemoveItem("prod-3_"),
            UpdateQuantity("prod-2_", -1),
            AddItem(plain_product, 2),
        ]
        for action in actions:
            cart = cart_reducer(cart, action)
            _assert_derived_totals(cart)

        assert cart.item_count == 5
        assert cart.total == 3 * Decimal("47.5") + 2 * Decimal("15")


class TestNormalize:
    """Tests for loading stored carts."""

    @pytest.mark.parametrize("raw", [None, "cart", 42, [], {}, {"items": "x"}, {"items": None}])
    def test_malformed_is_empty(self, raw):
        cart = normalize_cart(raw)
        assert cart.items == ()
        assert cart.total == 0
        assert cart.item_count == 0

    def test_string_numbers_repaired(self, sample_product, xl_red):
        cart = cart_reducer(EMPTY_CART, AddItem(sample_product, 2, tuple(xl_red)))
        expected = cart.items[0].total_price

        stored = json.loads(json.dumps(cart.to_dict()))
        stored["items"][0]["basePrice"] = "40.00"
        stored["items"][0]["selectedVariants"][0]["priceModifier"] = "2.5"
        stored["items"][0]["quantity"] = "2"
        stored["items"][0]["totalPrice"] = "garbage"

        loaded = cart_reducer(EMPTY_CART, LoadCart(stored))
        assert loaded.items[0].total_price == expected
        assert loaded.total == expected
        assert loaded.item_count == 2

    def test_stored_totals_are_recomputed(self):
        raw = {
            "items": [
                {"id": "p_", "productId": "p", "productName": "P", "basePrice": 10, "quantity": 2,
                 "selectedVariants": [], "totalPrice": 5},
            ],
            "total": 1000,
            "itemCount": 99,
        }
        cart = normalize_cart(raw)
        assert cart.items[0].total_price == Decimal("20")
        assert cart.total == Decimal("20")
        assert cart.item_count == 2

    def test_bad_fields_fall_back_to_zero(self):
        raw = {
            "items": [
                {"id": "p_", "productId": "p", "basePrice": None, "quantity": "-4",
                 "selectedVariants": [{"attributeId": "a", "variantId": "1", "priceModifier": "abc"}]},
                "not-an-item",
            ],
        }
        cart = normalize_cart(raw)
        assert len(cart.items) == 1
        assert cart.items[0].quantity == 0
        assert cart.items[0].base_price == Decimal("0")
        assert cart.items[0].selected_variants[0].price_modifier == Decimal("0")
        assert cart.total == Decimal("0")

    def test_out_of_range_numbers_fall_back_to_zero(self):
        raw = {
            "items": [
                {"id": "p_a:1", "productId": "p", "basePrice": "1e9999999", "quantity": "1e999999",
                 "selectedVariants": [{"attributeId": "a", "variantId": "1", "priceModifier": "-1e400"}]},
                {"id": "q_", "productId": "q", "basePrice": "10", "quantity": 1},
            ],
        }
        cart = normalize_cart(raw)

        first = cart.items[0]
        assert first.base_price == Decimal("0")
        assert first.selected_variants[0].price_modifier == Decimal("0")
        assert first.quantity == 0
        assert cart.total == Decimal("10")
        _assert_derived_totals(cart)

    def test_quantity_is_capped(self):
        raw = {"items": [{"id": "p_", "productId": "p", "basePrice": 1, "quantity": "1e300"}]}
        cart = normalize_cart(raw)
        assert cart.items[0].quantity == MAX_QUANTITY
