"""Cart package: models, storage, merge, and the per-session store."""
from .merge import merge_cart_items
from .models import CartItem, cart_count, cart_total
from .service import CartStore
from .sessions import CartSessions
from .storage import (
    CART_STORAGE_KEY,
    GuestCartRepository,
    MemoryLocalStorage,
    PersistedCartStorage,
    RedisLocalStorage,
)

__all__ = [
    "CART_STORAGE_KEY",
    "CartItem",
    "CartSessions",
    "CartStore",
    "GuestCartRepository",
    "MemoryLocalStorage",
    "PersistedCartStorage",
    "RedisLocalStorage",
    "cart_count",
    "cart_total",
    "merge_cart_items",
]
