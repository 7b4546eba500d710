"""
Session-local cart storage.

The cart slice lives under a single fixed key. Its value is a JSON
envelope:

    {"state": {"items": [...], "owner": "<user id>" | null}, "version": 0}

`owner` is the identity the mirrored state belonged to; a null owner
marks a guest cart.
"""
import json
from dataclasses import dataclass, field
from typing import Optional, Protocol

from upstash_redis.asyncio import Redis as AsyncRedis

from storefront.db import RedisKeys, TTL
from storefront.logging import get_logger, sanitize_id_for_logging

from .models import CartItem, items_from_dicts, items_to_dicts

logger = get_logger(__name__)

CART_STORAGE_KEY = "cart-storage"
STORAGE_VERSION = 0


class LocalStorage(Protocol):
    """Key/value storage scoped to one client session."""

    async def read(self, key: str) -> Optional[str]: ...

    async def write(self, key: str, value: str) -> None: ...

    async def delete(self, key: str) -> None: ...


class RedisLocalStorage:
    """Upstash Redis storage, namespaced by client session id."""

    def __init__(self, redis: AsyncRedis, session_id: str, ttl: int = TTL.CART_STORAGE):
        self.redis = redis
        self.session_id = session_id
        self.ttl = ttl

    def _key(self, key: str) -> str:
        return RedisKeys.session_key(self.session_id, key)

    async def read(self, key: str) -> Optional[str]:
        return await self.redis.get(self._key(key))

    async def write(self, key: str, value: str) -> None:
        await self.redis.set(self._key(key), value, ex=self.ttl)

    async def delete(self, key: str) -> None:
        await self.redis.delete(self._key(key))


class MemoryLocalStorage:
    """In-process storage for server-side rendering contexts and tests."""

    def __init__(self, data: Optional[dict[str, str]] = None):
        self.data: dict[str, str] = data if data is not None else {}

    async def read(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def write(self, key: str, value: str) -> None:
        self.data[key] = value

    async def delete(self, key: str) -> None:
        self.data.pop(key, None)


@dataclass
class PersistedCart:
    """Decoded cart envelope."""
    items: list[CartItem] = field(default_factory=list)
    owner: Optional[str] = None


def encode_cart(items: list[CartItem], owner: Optional[str]) -> str:
    return json.dumps({
        "state": {"items": items_to_dicts(items), "owner": owner},
        "version": STORAGE_VERSION,
    })


def decode_cart(raw: Optional[str]) -> Optional[PersistedCart]:
    """Decode an envelope. Returns None for a missing or malformed blob."""
    if not raw:
        return None
    try:
        state = json.loads(raw)["state"]
        return PersistedCart(
            items=items_from_dicts(state.get("items") or []),
            owner=state.get("owner"),
        )
    except (json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as e:
        logger.warning(f"Ignoring malformed cart storage: {e}")
        return None


class PersistedCartStorage:
    """Mirror of the store's state in session-local storage."""

    def __init__(self, storage: LocalStorage, key: str = CART_STORAGE_KEY):
        self.storage = storage
        self.key = key

    async def read(self) -> Optional[PersistedCart]:
        return decode_cart(await self.storage.read(self.key))

    async def write(self, items: list[CartItem], owner: Optional[str]) -> None:
        await self.storage.write(self.key, encode_cart(items, owner))

    async def delete(self) -> None:
        await self.storage.delete(self.key)


class GuestCartRepository:
    """
    Access to the guest cart kept in session-local storage.

    A mirrored state that belongs to a signed-in owner is not a guest
    cart and reads as empty, so an account cart is never merged into
    itself.
    """

    def __init__(self, storage: LocalStorage, key: str = CART_STORAGE_KEY):
        self._persisted = PersistedCartStorage(storage, key)

    async def read_guest_cart(self) -> list[CartItem]:
        persisted = await self._persisted.read()
        if persisted is None:
            return []
        if persisted.owner is not None:
            logger.debug(
                f"Stored cart belongs to {sanitize_id_for_logging(persisted.owner)}, not a guest cart"
            )
            return []
        return persisted.items

    async def clear_guest_cart(self) -> None:
        """Remove the storage entry entirely."""
        await self._persisted.delete()
