"""
Identity providers.

The cart only needs to know who the current user is, if anyone.
Sign-in and sign-out are events owned by the caller (the HTTP layer
or a UI shell), not by the cart.
"""

from typing import Optional, Protocol

from supabase._async.client import AsyncClient

from storefront.logging import get_logger, sanitize_id_for_logging

logger = get_logger(__name__)


class IdentityProvider(Protocol):
    async def current_user(self) -> Optional[str]:
        """Return the signed-in user's id, or None for a guest."""
        ...


class SessionIdentity:
    """Identity held by a single client session, driven by explicit events."""

    def __init__(self, user_id: Optional[str] = None):
        self.user_id = user_id

    async def current_user(self) -> Optional[str]:
        return self.user_id

    def sign_in(self, user_id: str) -> None:
        logger.info(f"Session signed in as {sanitize_id_for_logging(user_id)}")
        self.user_id = user_id

    def sign_out(self) -> None:
        logger.info(f"Session signed out from {sanitize_id_for_logging(self.user_id)}")
        self.user_id = None


class SupabaseIdentityProvider:
    """Resolves the current user from a Supabase access token."""

    def __init__(self, client: AsyncClient, access_token: Optional[str] = None):
        self.client = client
        self.access_token = access_token

    async def current_user(self) -> Optional[str]:
        if not self.access_token:
            return None
        response = await self.client.auth.get_user(self.access_token)
        if response is None or response.user is None:
            return None
        return response.user.id
