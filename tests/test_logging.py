"""Tests for logging helpers"""
from decimal import Decimal

from atelier.logging import PACKAGE_LOGGER, describe_cart, get_logger, sanitize_id_for_logging


def test_loggers_share_package_namespace():
    assert get_logger("atelier.cart.engine").name == "atelier.cart.engine"
    assert get_logger("checkout_script").name == f"{PACKAGE_LOGGER}.checkout_script"
    assert get_logger(PACKAGE_LOGGER).name == PACKAGE_LOGGER


def test_describe_cart():
    assert describe_cart([], 0, Decimal("0")) == "0 lines, 0 units, 0.00"
    assert describe_cart(["a"], 1, Decimal("47.5")) == "1 line, 1 unit, 47.50"
    assert describe_cart(["a", "b"], 3, Decimal("95")) == "2 lines, 3 units, 95.00"


def test_sanitize_id_for_logging():
    assert sanitize_id_for_logging(None) == "N/A"
    assert sanitize_id_for_logging("prod-1_a:1\nFAKE") == "prod-1_a:1\\nFAKE"
    assert sanitize_id_for_logging("x" * 50, max_length=10) == "x" * 10 + "..."
