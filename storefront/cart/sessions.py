"""Per-session cart stores."""
import asyncio
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Callable, Optional

from storefront import config
from storefront.auth.identity import SessionIdentity
from storefront.logging import bind_session, get_logger, sanitize_id_for_logging
from storefront.services.repositories import CartRepository

from .service import CartStore
from .storage import GuestCartRepository, LocalStorage, PersistedCartStorage

logger = get_logger(__name__)

StorageFactory = Callable[[str], LocalStorage]


@dataclass
class CartSession:
    """A client session's store, identity and transition lock."""
    store: CartStore
    identity: SessionIdentity
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    last_used: float = 0.0


class CartSessions:
    """
    One CartStore per client session.

    Stores are created lazily and restored from the session's local
    storage on first use. Sessions idle for longer than `idle_ttl`
    seconds, and the least recently used ones beyond `max_sessions`,
    are dropped from memory once their pending persistence is done;
    the next request for them restores from storage again.
    """

    def __init__(
        self,
        repository: CartRepository,
        storage_factory: StorageFactory,
        idle_ttl: float = config.CART_SESSION_IDLE_TTL,
        max_sessions: int = config.CART_MAX_SESSIONS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.repository = repository
        self.storage_factory = storage_factory
        self.idle_ttl = idle_ttl
        self.max_sessions = max_sessions
        self.clock = clock
        # Least recently used first
        self._sessions: OrderedDict[str, CartSession] = OrderedDict()
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    async def get(self, session_id: str) -> CartStore:
        return (await self._session(session_id)).store

    def identity(self, session_id: str) -> Optional[SessionIdentity]:
        session = self._sessions.get(session_id)
        return session.identity if session is not None else None

    async def resolve(self, session_id: str, user_id: Optional[str]) -> CartStore:
        """
        Session's store after applying any identity transition.

        Transitions of one session are serialized, so concurrent requests
        that bring the same new identity merge the guest cart only once.
        """
        bind_session(sanitize_id_for_logging(session_id))
        session = await self._session(session_id)

        async with session.lock:
            if session.identity.user_id == user_id:
                return session.store

            # Passes scheduled under the old identity finish under it
            await session.store.wait_for_pending()
            current = session.identity.user_id

            if current is not None:
                # Signed out, or switched account
                session.identity.sign_out()
                await session.store.handle_sign_out()

            if user_id is not None:
                session.identity.sign_in(user_id)
                await session.store.sync_after_sign_in()
                logger.info(f"Cart session synced for {sanitize_id_for_logging(user_id)}")

        return session.store

    async def evict(self, reserve: int = 0) -> int:
        """
        Drop idle sessions, and the least recently used ones while more
        than `max_sessions - reserve` remain. Returns how many were dropped.
        """
        now = self.clock()
        excess = len(self._sessions) + reserve - self.max_sessions
        victims = []
        for session_id, session in self._sessions.items():
            if session.lock.locked():
                continue
            if excess > 0 or now - session.last_used > self.idle_ttl:
                victims.append((session_id, session, session.last_used))
                excess -= 1

        evicted = 0
        for session_id, session, last_used in victims:
            await session.store.wait_for_pending()
            # Skip sessions picked up again while persistence finished
            if (
                self._sessions.get(session_id) is not session
                or session.last_used != last_used
                or session.lock.locked()
            ):
                continue
            del self._sessions[session_id]
            evicted += 1

        if evicted:
            logger.debug(f"Evicted {evicted} cart sessions, {len(self._sessions)} left")
        return evicted

    async def drain(self) -> None:
        """Wait for pending persistence in every session."""
        await asyncio.gather(
            *(session.store.wait_for_pending() for session in list(self._sessions.values())),
            return_exceptions=True,
        )

    async def _session(self, session_id: str) -> CartSession:
        session = self._sessions.get(session_id)
        if session is None:
            async with self._lock:
                # Another request may have created it while we waited
                session = self._sessions.get(session_id)
                if session is None:
                    await self.evict(reserve=1)
                    session = self._create(session_id)
                    await session.store.restore()
                    self._sessions[session_id] = session
                    logger.debug(f"Created cart session {sanitize_id_for_logging(session_id)}")
        session.last_used = self.clock()
        if self._sessions.get(session_id) is session:
            self._sessions.move_to_end(session_id)
        return session

    def _create(self, session_id: str) -> CartSession:
        storage = self.storage_factory(session_id)
        identity = SessionIdentity()
        store = CartStore(
            identity=identity,
            repository=self.repository,
            persisted=PersistedCartStorage(storage),
            guest_carts=GuestCartRepository(storage),
        )
        return CartSession(store=store, identity=identity, last_used=self.clock())
