"""
Stale cart guard.

When the storefront opens with a non-empty cart whose last addition is older
than the stale threshold, the shopper is offered to clear it. The decision is
taken once per mount, after a short settle delay so the cart has finished
loading from storage.
"""

import asyncio
import math
import re
from enum import Enum
from typing import Callable, Optional

from atelier.config import CART_RESTORE_SETTLE_DELAY, CART_STALE_AFTER_MS
from atelier.errors import ERROR_LAST_ADDED_INVALID, ERROR_STORAGE_UNAVAILABLE
from atelier.logging import get_logger
from .engine import CartEngine
from .storage import KeyValueStore, StorageKeys

logger = get_logger(__name__)

_LEADING_INT = re.compile(r"[+-]?\d+")


class RestoreState(str, Enum):
    """Restore prompt lifecycle."""
    UNCHECKED = "unchecked"
    SHOWN = "shown"  # Prompt visible
    DISMISSED = "dismissed"  # No prompt, or prompt resolved


def read_last_added_at(store: KeyValueStore) -> Optional[int]:
    """
    Read the last-added timestamp (epoch ms).

    Returns None when the key is absent or does not start with an integer.
    """
    try:
        raw = store.get(StorageKeys.LAST_ADDED_AT)
    except Exception as e:
        logger.error(f"{ERROR_STORAGE_UNAVAILABLE}: {e}")
        return None
    if raw is None:
        return None

    match = _LEADING_INT.match(str(raw).strip())
    if match is None:
        logger.warning(ERROR_LAST_ADDED_INVALID)
        return None
    return int(match.group(0))


class StalenessGuard:
    """
    One-shot stale cart check for a single mount of the storefront.

    Transitions: UNCHECKED -> SHOWN | DISMISSED, and SHOWN -> DISMISSED when
    the shopper clears the cart or keeps it. Never re-evaluates after the
    first decision.
    """

    def __init__(
        self,
        engine: CartEngine,
        clock: Optional[Callable[[], int]] = None,
        stale_after_ms: int = CART_STALE_AFTER_MS,
        settle_delay: float = CART_RESTORE_SETTLE_DELAY,
        on_change: Optional[Callable[[RestoreState], None]] = None,
    ):
        self.engine = engine
        self.clock = clock or engine.clock
        self.stale_after_ms = stale_after_ms
        self.settle_delay = settle_delay
        self.on_change = on_change
        self.state = RestoreState.UNCHECKED
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def visible(self) -> bool:
        return self.state is RestoreState.SHOWN

    @property
    def pending(self) -> bool:
        """True while the settle timer is scheduled."""
        return self._handle is not None

    def mount(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """
        Schedule the evaluation after the settle delay. Must run inside an event loop.

        The timer is armed once per mount; cart changes during the delay do
        not restart it, since evaluate() reads the cart as it is when it fires.
        """
        if self.state is not RestoreState.UNCHECKED or self._handle is not None:
            return
        loop = loop or asyncio.get_running_loop()
        self._handle = loop.call_later(self.settle_delay, self._on_settled)

    def unmount(self) -> None:
        """Cancel the pending evaluation, if it has not fired yet."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _on_settled(self) -> None:
        self._handle = None
        self.evaluate()

    def elapsed_since_last_add(self) -> float:
        """Milliseconds since the last addition; infinite when unknown."""
        last_added_at = read_last_added_at(self.engine.store)
        if last_added_at is None:
            return math.inf
        return self.clock() - last_added_at

    def evaluate(self) -> RestoreState:
        """Decide once whether to prompt. Later calls return the first decision."""
        if self.state is not RestoreState.UNCHECKED:
            return self.state

        if self.engine.cart.is_empty:
            self._transition(RestoreState.DISMISSED)
            return self.state

        elapsed = self.elapsed_since_last_add()
        if elapsed >= self.stale_after_ms:
            logger.info(f"Stale cart detected: {len(self.engine.cart.items)} items")
            self._transition(RestoreState.SHOWN)
        else:
            self._transition(RestoreState.DISMISSED)
        return self.state

    def clear(self) -> None:
        """Shopper chose to empty the cart."""
        self.engine.clear_cart()
        self._transition(RestoreState.DISMISSED)

    def keep(self) -> None:
        """Shopper chose to continue with the restored cart."""
        self._transition(RestoreState.DISMISSED)

    def dismiss_backdrop(self) -> None:
        # Clicking outside the prompt keeps the cart
        self.keep()

    def _transition(self, state: RestoreState) -> None:
        if state is self.state:
            return
        self.state = state
        if self.on_change is not None:
            self.on_change(state)
