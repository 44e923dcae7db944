"""
Cart analytics - add_to_cart / remove_from_cart events.

Events are fire-and-forget: trackers must never raise into the cart flow, and
CartEngine additionally guards every call.
"""

import asyncio
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Protocol, Set

import httpx

from atelier.config import (
    ANALYTICS_ENABLED,
    ANALYTICS_WORKERS,
    DEFAULT_CURRENCY,
    GA_API_SECRET,
    GA_ENDPOINT,
    GA_MEASUREMENT_ID,
    GA_TIMEOUT,
)
from atelier.errors import ERROR_ANALYTICS_FAILED
from atelier.logging import get_logger
from atelier.money import to_float

logger = get_logger(__name__)


@dataclass(frozen=True)
class CartEvent:
    """Parameters shared by add and remove events."""
    product_id: str
    product_name: str
    quantity: int
    price: Decimal  # Unit price
    currency: str = DEFAULT_CURRENCY
    category: Optional[str] = None
    store_id: Optional[str] = None
    store_name: Optional[str] = None

    @property
    def value(self) -> float:
        return to_float(self.price * self.quantity)


class CartEventTracker(Protocol):
    def track_add_to_cart(self, event: CartEvent) -> None: ...

    def track_remove_from_cart(self, event: CartEvent) -> None: ...


class NullTracker:
    """Tracker used when analytics is not configured."""

    def track_add_to_cart(self, event: CartEvent) -> None:
        logger.debug(f"add_to_cart {event.product_id} x{event.quantity}")

    def track_remove_from_cart(self, event: CartEvent) -> None:
        logger.debug(f"remove_from_cart {event.product_id} x{event.quantity}")


def build_event_payload(name: str, event: CartEvent) -> dict:
    """GA4 event body for an add/remove cart event."""
    item = {
        "item_id": event.product_id,
        "item_name": event.product_name,
        "price": to_float(event.price),
        "quantity": event.quantity,
    }
    if name == "add_to_cart" and event.category:
        item["item_category"] = event.category
    if event.store_name:
        item["item_brand"] = event.store_name

    params = {
        "currency": event.currency or DEFAULT_CURRENCY,
        "value": event.value,
        "items": [item],
    }
    if event.store_id:
        params["store_id"] = event.store_id
    if event.store_name:
        params["store_name"] = event.store_name
    return {"name": name, "params": params}


class MeasurementProtocolTracker:
    """
    Sends cart events to GA4 through the Measurement Protocol.

    Sends never run on the caller's thread: inside a running event loop the
    request is scheduled as a background task, otherwise it is handed to a
    small worker pool. Failures are logged and dropped.
    """

    def __init__(
        self,
        measurement_id: str = GA_MEASUREMENT_ID,
        api_secret: str = GA_API_SECRET,
        client_id: Optional[str] = None,
        endpoint: str = GA_ENDPOINT,
        timeout: float = GA_TIMEOUT,
    ):
        self.measurement_id = measurement_id
        self.api_secret = api_secret
        self.client_id = client_id or str(uuid.uuid4())
        self.endpoint = endpoint
        self.timeout = timeout
        # Keep references so pending tasks are not garbage collected
        self._pending: Set[asyncio.Task] = set()
        self._executor: Optional[ThreadPoolExecutor] = None

    def track_add_to_cart(self, event: CartEvent) -> None:
        self._dispatch(build_event_payload("add_to_cart", event))

    def track_remove_from_cart(self, event: CartEvent) -> None:
        self._dispatch(build_event_payload("remove_from_cart", event))

    def close(self, wait: bool = True) -> None:
        """Stop the worker pool, optionally waiting for queued sends."""
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None

    def _body(self, payload: dict) -> dict:
        return {"client_id": self.client_id, "events": [payload]}

    def _params(self) -> dict:
        return {"measurement_id": self.measurement_id, "api_secret": self.api_secret}

    def _dispatch(self, payload: dict) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=ANALYTICS_WORKERS, thread_name_prefix="ga4")
            self._executor.submit(self._send_sync, payload)
            return

        task = loop.create_task(self._send_async(payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _send_sync(self, payload: dict) -> None:
        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(self.endpoint, params=self._params(), json=self._body(payload))
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"{ERROR_ANALYTICS_FAILED}: {payload['name']}: {e}")
        except Exception as e:
            logger.error(f"{ERROR_ANALYTICS_FAILED}: {payload['name']}: {e}", exc_info=True)

    async def _send_async(self, payload: dict) -> None:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.endpoint, params=self._params(), json=self._body(payload))
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"{ERROR_ANALYTICS_FAILED}: {payload['name']}: {e}")
        except Exception as e:
            logger.error(f"{ERROR_ANALYTICS_FAILED}: {payload['name']}: {e}", exc_info=True)


def get_tracker() -> CartEventTracker:
    """GA4 tracker when credentials are configured, otherwise a no-op tracker."""
    if ANALYTICS_ENABLED:
        return MeasurementProtocolTracker()
    return NullTracker()
