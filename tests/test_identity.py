"""Tests for identity providers"""
import pytest
from unittest.mock import AsyncMock, Mock

from storefront.auth import SessionIdentity, SupabaseIdentityProvider


@pytest.mark.asyncio
async def test_session_identity_transitions():
    identity = SessionIdentity()
    assert await identity.current_user() is None

    identity.sign_in("user-1")
    assert await identity.current_user() == "user-1"

    identity.sign_out()
    assert await identity.current_user() is None


@pytest.mark.asyncio
async def test_supabase_identity_without_token(mock_supabase_client):
    provider = SupabaseIdentityProvider(mock_supabase_client)

    assert await provider.current_user() is None
    mock_supabase_client.auth.get_user.assert_not_called()


@pytest.mark.asyncio
async def test_supabase_identity_resolves_user(mock_supabase_client):
    mock_supabase_client.auth.get_user = AsyncMock(return_value=Mock(user=Mock(id="user-1")))
    provider = SupabaseIdentityProvider(mock_supabase_client, access_token="jwt")

    assert await provider.current_user() == "user-1"
    mock_supabase_client.auth.get_user.assert_awaited_once_with("jwt")


@pytest.mark.asyncio
async def test_supabase_identity_no_user(mock_supabase_client):
    mock_supabase_client.auth.get_user = AsyncMock(return_value=Mock(user=None))
    provider = SupabaseIdentityProvider(mock_supabase_client, access_token="jwt")

    assert await provider.current_user() is None
