"""Cart store: in-session cart with best-effort local and remote sync."""
import asyncio
from decimal import Decimal
from typing import Callable, Optional

from storefront.auth.identity import IdentityProvider
from storefront.logging import get_logger, sanitize_id_for_logging
from storefront.services.repositories import CartRepository

from .merge import merge_cart_items
from .models import CartItem, items_from_dicts, items_to_dicts
from .storage import GuestCartRepository, PersistedCartStorage

logger = get_logger(__name__)

CartListener = Callable[[list[CartItem]], None]


class CartStore:
    """
    Authoritative cart for one client session.

    Features:
    - Synchronous mutations; each schedules a background persistence pass
    - Local mirror in session storage, remote mirror in the carts table
    - Guest cart merged into the account cart at sign-in

    Sync failures are logged and swallowed: the in-memory items stay
    authoritative and the next mutation or reload tries again.
    """

    def __init__(
        self,
        identity: IdentityProvider,
        repository: CartRepository,
        persisted: PersistedCartStorage,
        guest_carts: GuestCartRepository,
    ):
        self.identity = identity
        self.repository = repository
        self.persisted = persisted
        self.guest_carts = guest_carts
        self._items: list[CartItem] = []
        self._listeners: list[CartListener] = []
        self._pending: set[asyncio.Task] = set()
        # Bumped on every local change; lets load() detect it raced a mutation
        self._version = 0
        self._dirty = False

    # ==================== READS ====================

    @property
    def items(self) -> list[CartItem]:
        return list(self._items)

    def subscribe(self, listener: CartListener) -> Callable[[], None]:
        """Call `listener` with the item list after every change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ==================== MUTATIONS ====================

    def add_item(
        self,
        id: str,
        name: str,
        price: Decimal | float | int | str,
        quantity: Optional[int] = None,
    ) -> None:
        """Add `quantity` units (missing or non-positive means 1)."""
        qty = quantity if quantity and quantity > 0 else 1
        existing = self._find(id)
        if existing is not None:
            existing.quantity += qty
        else:
            self._items.append(CartItem(id=id, name=name, price=price, quantity=qty))
        self._changed()

    def remove_item(self, id: str) -> None:
        """Drop the line for `id`. An absent id changes nothing but still syncs."""
        if self._find(id) is None:
            self._schedule_persist()
            return
        self._items = [item for item in self._items if item.id != id]
        self._changed()

    def update_quantity(self, id: str, quantity: int) -> None:
        """Set the quantity literally. Callers clamp to >= 1."""
        item = self._find(id)
        if item is None:
            self._schedule_persist()
            return
        if quantity < 1:
            logger.debug(f"Quantity {quantity} set for {sanitize_id_for_logging(id)}")
        item.quantity = quantity
        self._changed()

    def clear(self) -> None:
        self._items = []
        self._changed()

    # ==================== SYNC ====================

    async def restore(self) -> None:
        """Hydrate from the session-local mirror (last known state)."""
        try:
            persisted = await self.persisted.read()
        except Exception as e:
            logger.warning(f"Failed to restore cart from local storage: {e}")
            return
        if persisted is not None:
            self._set_items(persisted.items)

    async def load(self) -> None:
        """Replace items with the remote record for the current user, if any."""
        user_id = await self._current_user()
        if user_id is None:
            return

        version = self._version
        try:
            record = await self.repository.fetch(user_id)
            if record is None:
                return
            items = items_from_dicts(record.items)
        except Exception as e:
            logger.warning(f"Failed to load cart for user {sanitize_id_for_logging(user_id)}: {e}")
            return

        if self._version != version:
            logger.debug("Cart changed while loading; keeping in-memory state")
            return
        self._set_items(items)

    async def save(self) -> None:
        """Upsert the current items as the user's remote cart record."""
        user_id = await self._current_user()
        if user_id is None:
            return
        await self._save_remote(user_id)

    async def merge_guest_cart_into_user_cart(self) -> None:
        """Fold the guest cart into the signed-in user's account cart."""
        try:
            guest = await self.guest_carts.read_guest_cart()
        except Exception as e:
            logger.warning(f"Failed to read guest cart: {e}")
            return
        if not guest:
            return

        user_id = await self._current_user()
        if user_id is None:
            return

        try:
            record = await self.repository.fetch(user_id)
            remote = items_from_dicts(record.items) if record is not None else []
        except Exception as e:
            # Guest cart stays in storage; the next sign-in retries the merge
            logger.warning(
                f"Failed to fetch account cart for {sanitize_id_for_logging(user_id)}, merge skipped: {e}"
            )
            return

        merged = merge_cart_items(remote, guest)
        self._set_items(merged)
        await self._save_remote(user_id)

        try:
            await self.guest_carts.clear_guest_cart()
        except Exception as e:
            logger.warning(f"Failed to clear guest cart: {e}")

        logger.info(
            f"Merged {len(guest)} guest lines into cart of {sanitize_id_for_logging(user_id)} "
            f"({len(merged)} lines)"
        )

    async def sync_after_sign_in(self) -> None:
        """Run once after a successful sign-in."""
        await self.merge_guest_cart_into_user_cart()
        await self.load()

    async def handle_sign_out(self) -> None:
        """Drop session state; the account's remote record is kept."""
        await self.wait_for_pending()
        self._set_items([])
        try:
            await self.persisted.delete()
        except Exception as e:
            logger.warning(f"Failed to delete local cart storage: {e}")

    async def wait_for_pending(self) -> None:
        """Await every scheduled persistence pass (tests, shutdown)."""
        if self._dirty:
            self._dirty = False
            await self._persist()
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # ==================== INTERNALS ====================

    def _find(self, id: str) -> Optional[CartItem]:
        return next((item for item in self._items if item.id == id), None)

    def _set_items(self, items: list[CartItem]) -> None:
        self._items = list(items)
        self._version += 1
        self._notify()

    def _changed(self) -> None:
        self._version += 1
        self._notify()
        self._schedule_persist()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self.items)
            except Exception as e:
                logger.warning(f"Cart listener failed: {e}", exc_info=True)

    def _schedule_persist(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop to run on; the next wait_for_pending() persists
            self._dirty = True
            return
        task = loop.create_task(self._persist())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _persist(self) -> None:
        """Mirror the items as they are when the pass runs, not when it was scheduled."""
        user_id = await self._current_user()
        try:
            await self.persisted.write(self._items, owner=user_id)
        except Exception as e:
            logger.warning(f"Failed to write cart to local storage: {e}")
        if user_id is not None:
            await self._save_remote(user_id)

    async def _save_remote(self, user_id: str) -> None:
        try:
            await self.repository.upsert(user_id, items_to_dicts(self._items))
        except Exception as e:
            logger.warning(f"Failed to save cart for user {sanitize_id_for_logging(user_id)}: {e}")

    async def _current_user(self) -> Optional[str]:
        try:
            return await self.identity.current_user()
        except Exception as e:
            logger.warning(f"Failed to resolve current user: {e}")
            return None
