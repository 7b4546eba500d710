"""Cart Repository - remote per-user cart records.

One row per user in the carts table:
    user_id (primary key), items (jsonb), updated_at (timestamptz)
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from supabase._async.client import AsyncClient

from storefront import config
from storefront.logging import get_logger, sanitize_id_for_logging

from .base import BaseRepository

logger = get_logger(__name__)


@dataclass
class CartRecord:
    """Raw cart row as stored remotely."""
    user_id: str
    items: list[dict[str, Any]] = field(default_factory=list)
    updated_at: str | None = None


class CartRepository(BaseRepository):
    """Cart record operations.

    Errors from the client propagate; callers decide whether a failure
    is fatal (the cart store treats every failure as transient).
    """

    def __init__(self, client: AsyncClient, table: str | None = None) -> None:
        super().__init__(client)
        self.table = table or config.CARTS_TABLE

    async def fetch(self, user_id: str) -> CartRecord | None:
        """Get the cart record for a user, or None if the user has none."""
        result = await (
            self.client.table(self.table)
            .select("user_id, items, updated_at")
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        if not result.data:
            return None
        row = result.data[0]
        return CartRecord(
            user_id=row.get("user_id", user_id),
            items=row.get("items") or [],
            updated_at=row.get("updated_at"),
        )

    async def upsert(self, user_id: str, items: list[dict[str, Any]]) -> None:
        """Insert or replace the user's cart record (conflict target user_id)."""
        data = {
            "user_id": user_id,
            "items": items,
            "updated_at": datetime.now(UTC).isoformat(),
        }
        await self.client.table(self.table).upsert(data, on_conflict="user_id").execute()
        logger.debug(
            f"Upserted cart for user {sanitize_id_for_logging(user_id)} ({len(items)} lines)"
        )
