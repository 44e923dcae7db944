"""
Logging for the Atelier cart.

All loggers live under the ``atelier`` namespace so a host application can
tune cart output with one logger. Output is only attached when the host has
not configured logging itself.

Usage:
    from atelier.logging import get_logger
    logger = get_logger(__name__)

    logger.info("Cart loaded")
    logger.debug(f"Cart saved: {describe_cart(cart.items, cart.item_count, cart.total)}")
"""

import logging
import os
import sys
from functools import cache
from typing import Sized

from atelier.money import Numeric, format_amount

PACKAGE_LOGGER = "atelier"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FORMAT_SIMPLE = "%(levelname)s - %(name)s - %(message)s"


def _get_log_level() -> int:
    """ATELIER_LOG_LEVEL, then LOG_LEVEL, default INFO."""
    level_name = os.environ.get("ATELIER_LOG_LEVEL") or os.environ.get("LOG_LEVEL", "INFO")
    return getattr(logging, level_name.upper(), logging.INFO)


def _configure_package_logger() -> None:
    package = logging.getLogger(PACKAGE_LOGGER)
    package.setLevel(_get_log_level())

    # The host application owns output once it has handlers of its own
    if package.handlers or logging.getLogger().handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    is_production = os.environ.get("ATELIER_ENV") == "production"
    handler.setFormatter(logging.Formatter(LOG_FORMAT_SIMPLE if is_production else LOG_FORMAT))
    package.addHandler(handler)

    # Analytics and Redis REST calls go through httpx
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


_configure_package_logger()


@cache
def get_logger(name: str) -> logging.Logger:
    """
    Get a logger inside the ``atelier`` namespace.

    Names outside the namespace (scripts, ``__main__``) are nested under it.
    """
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)


def describe_cart(items: Sized, units: int, total: Numeric) -> str:
    """One-line cart summary for log messages, e.g. "2 lines, 3 units, 95.00"."""
    lines = len(items)
    return f"{lines} line{'' if lines == 1 else 's'}, {units} unit{'' if units == 1 else 's'}, {format_amount(total)}"


def _escape_control_chars(value: str) -> str:
    # Newlines in an id could forge extra log entries
    return (
        value.replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
        .replace("\x00", "")
    )


def sanitize_id_for_logging(id_value: str | None, max_length: int = 40) -> str:
    """
    Make a product or cart item id safe to log.

    Item ids embed attribute and variant ids from the product API, so they
    are escaped and truncated. Empty ids log as "N/A".
    """
    if not id_value:
        return "N/A"
    safe_value = _escape_control_chars(str(id_value))
    if len(safe_value) <= max_length:
        return safe_value
    return safe_value[:max_length] + "..."


__all__ = [
    "PACKAGE_LOGGER",
    "describe_cart",
    "get_logger",
    "sanitize_id_for_logging",
]
