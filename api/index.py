"""
Storefront Cart API - Main FastAPI Application

Single entry point for the cart endpoints used by storefront pages.
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storefront import config
from storefront.cart import CartSessions, RedisLocalStorage
from storefront.db import get_redis, get_supabase
from storefront.logging import get_logger
from storefront.routers import cart_router
from storefront.services.repositories import CartRepository

logger = get_logger(__name__)


async def build_cart_sessions() -> CartSessions:
    """Default wiring: Supabase carts table + Upstash Redis session storage."""
    client = await get_supabase()
    redis = get_redis()
    return CartSessions(
        repository=CartRepository(client),
        storage_factory=lambda session_id: RedisLocalStorage(redis, session_id),
    )


def create_app(cart_sessions: Optional[CartSessions] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler"""
        if getattr(app.state, "cart_sessions", None) is None:
            app.state.cart_sessions = await build_cart_sessions()
        yield
        # Let in-flight cart syncs finish before the process goes away
        await app.state.cart_sessions.drain()
        logger.info("Cart sessions drained")

    app = FastAPI(
        title="Storefront Cart API",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.cart_sessions = cart_sessions

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/api/health")
    async def health_check():
        return {"status": "ok"}

    app.include_router(cart_router, prefix="/api")
    return app


app = create_app()
