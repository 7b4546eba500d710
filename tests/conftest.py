"""Pytest configuration and fixtures"""
import os
import pytest
from unittest.mock import Mock, AsyncMock

# Set test environment variables
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test_key")
os.environ.setdefault("UPSTASH_REDIS_REST_URL", "https://test.upstash.io")
os.environ.setdefault("UPSTASH_REDIS_REST_TOKEN", "test_token")

from storefront.auth import SessionIdentity
from storefront.cart import (
    CartStore,
    GuestCartRepository,
    MemoryLocalStorage,
    PersistedCartStorage,
)
from storefront.services.repositories import CartRecord


class FakeCartRepository:
    """In-memory carts table with call recording and failure switches."""

    def __init__(self):
        self.records: dict[str, list[dict]] = {}
        self.fetch = AsyncMock(side_effect=self._fetch)
        self.upsert = AsyncMock(side_effect=self._upsert)

    async def _fetch(self, user_id):
        if user_id not in self.records:
            return None
        return CartRecord(user_id=user_id, items=[dict(row) for row in self.records[user_id]])

    async def _upsert(self, user_id, items):
        self.records[user_id] = [dict(row) for row in items]


@pytest.fixture
def mock_supabase_client():
    """Mock Supabase client"""
    client = Mock()

    table_mock = Mock()
    table_mock.select.return_value = table_mock
    table_mock.upsert.return_value = table_mock
    table_mock.eq.return_value = table_mock
    table_mock.limit.return_value = table_mock
    table_mock.execute = AsyncMock(return_value=Mock(data=[]))

    client.table.return_value = table_mock
    client.auth.get_user = AsyncMock(return_value=None)

    return client


@pytest.fixture
def cart_repository():
    return FakeCartRepository()


@pytest.fixture
def local_storage():
    return MemoryLocalStorage()


@pytest.fixture
def identity():
    return SessionIdentity()


@pytest.fixture
def cart_store(identity, cart_repository, local_storage):
    """Fresh guest cart store backed by memory storage and the fake repository"""
    return CartStore(
        identity=identity,
        repository=cart_repository,
        persisted=PersistedCartStorage(local_storage),
        guest_carts=GuestCartRepository(local_storage),
    )


@pytest.fixture
def sample_items():
    """Two lines as stored remotely"""
    return [
        {"id": "p1", "name": "Paneer Tikka", "price": 100.0, "quantity": 2},
        {"id": "p2", "name": "Masala Dosa", "price": 50.0, "quantity": 1},
    ]
