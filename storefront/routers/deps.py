"""
Shared Dependencies for Routers

Resolves the client session and the caller's identity, and keeps the
session's cart in step with sign-in / sign-out transitions.
"""

from fastapi import Depends, Header, HTTPException, Request

from storefront.auth import SupabaseIdentityProvider
from storefront.cart import CartSessions, CartStore
from storefront.db import get_supabase
from storefront.errors import ERROR_INVALID_TOKEN, ERROR_SESSION_REQUIRED
from storefront.logging import get_logger

logger = get_logger(__name__)


def get_cart_sessions(request: Request) -> CartSessions:
    return request.app.state.cart_sessions


def get_session_id(x_cart_session: str = Header(None, alias="X-Cart-Session")) -> str:
    if not x_cart_session:
        raise HTTPException(status_code=400, detail=ERROR_SESSION_REQUIRED)
    return x_cart_session


async def verify_supabase_auth(
    authorization: str = Header(None, alias="Authorization"),
) -> str | None:
    """
    Resolve the caller from `Authorization: Bearer <supabase access token>`.

    No header means a guest. A token Supabase rejects is a 401.
    """
    if not authorization:
        return None

    parts = authorization.split(" ")
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(status_code=401, detail=ERROR_INVALID_TOKEN)

    try:
        client = await get_supabase()
        user_id = await SupabaseIdentityProvider(client, parts[1]).current_user()
    except Exception as e:
        logger.warning(f"Supabase token verification failed: {e}")
        raise HTTPException(status_code=401, detail=ERROR_INVALID_TOKEN)

    if user_id is None:
        raise HTTPException(status_code=401, detail=ERROR_INVALID_TOKEN)
    return user_id


async def get_cart_store(
    session_id: str = Depends(get_session_id),
    user_id: str | None = Depends(verify_supabase_auth),
    sessions: CartSessions = Depends(get_cart_sessions),
) -> CartStore:
    """Session's cart, after applying any identity transition."""
    return await sessions.resolve(session_id, user_id)
