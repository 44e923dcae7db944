"""
Key/value storage for the cart.

The engine only needs string get/set/remove. `InMemoryStore` backs tests and
single-process use; `RedisStore` keeps a shopper's cart in Upstash Redis.
"""

from typing import Dict, Optional, Protocol, runtime_checkable

from atelier.config import (
    CART_LAST_ADDED_KEY,
    CART_STORAGE_KEY,
    CART_TTL,
    UPSTASH_REDIS_REST_TOKEN,
    UPSTASH_REDIS_REST_URL,
)
from atelier.errors import ERROR_STORAGE_NOT_CONFIGURED

from upstash_redis import Redis


class StorageKeys:
    """Keys used by the cart in the shopper's store."""

    CART = CART_STORAGE_KEY  # JSON-serialized cart
    LAST_ADDED_AT = CART_LAST_ADDED_KEY  # Epoch milliseconds, decimal string


@runtime_checkable
class KeyValueStore(Protocol):
    """String-valued store that survives reloads."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class InMemoryStore:
    """Dict-backed store."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data


class RedisStore:
    """
    Upstash Redis-backed store.

    Each shopper session gets its own namespace, so `cart` becomes
    `cart:{session_id}:cart` on the server.
    """

    def __init__(self, session_id: str, client: Optional[Redis] = None, ttl: int = CART_TTL):
        self.session_id = session_id
        self.ttl = ttl
        self._redis = client  # Lazy initialization

    @property
    def redis(self) -> Redis:
        """Get Redis client (lazy initialization)."""
        if self._redis is None:
            if not UPSTASH_REDIS_REST_URL or not UPSTASH_REDIS_REST_TOKEN:
                raise ValueError(ERROR_STORAGE_NOT_CONFIGURED)
            self._redis = Redis(url=UPSTASH_REDIS_REST_URL, token=UPSTASH_REDIS_REST_TOKEN)
        return self._redis

    def _key(self, key: str) -> str:
        return f"cart:{self.session_id}:{key}"

    def get(self, key: str) -> Optional[str]:
        value = self.redis.get(self._key(key))
        if value is None:
            return None
        return value if isinstance(value, str) else str(value)

    def set(self, key: str, value: str) -> None:
        if self.ttl > 0:
            self.redis.set(self._key(key), value, ex=self.ttl)
        else:
            self.redis.set(self._key(key), value)

    def remove(self, key: str) -> None:
        self.redis.delete(self._key(key))
