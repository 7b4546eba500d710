"""Tests for API endpoints"""
import pytest
from unittest.mock import AsyncMock, Mock, patch
from fastapi.testclient import TestClient

from api.index import create_app
from storefront.cart import CartSessions, MemoryLocalStorage
from storefront.routers.deps import verify_supabase_auth

SESSION = {"X-Cart-Session": "sess-1"}


@pytest.fixture
def auth_state():
    """Mutable stand-in for the Supabase-verified user id"""
    return {"user_id": None}


@pytest.fixture
def app(cart_repository, auth_state):
    storages = {}
    sessions = CartSessions(
        repository=cart_repository,
        storage_factory=lambda session_id: storages.setdefault(session_id, MemoryLocalStorage()),
    )
    app = create_app(cart_sessions=sessions)
    app.dependency_overrides[verify_supabase_auth] = lambda: auth_state["user_id"]
    return app


@pytest.fixture
def client(app):
    """Test client"""
    with TestClient(app) as client:
        yield client


def test_health_check(client):
    """Test health check endpoint"""
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_session_header_required(client):
    response = client.get("/api/cart")
    assert response.status_code == 400


def test_empty_cart(client):
    response = client.get("/api/cart", headers=SESSION)

    assert response.status_code == 200
    data = response.json()
    assert data["items"] == []
    assert data["cart_count"] == 0
    assert data["total"] == 0.0
    assert data["signed_in"] is False


def test_add_and_totals(client):
    client.post("/api/cart/items", headers=SESSION, json={"product_id": "p1", "name": "Paneer Tikka", "price": 100, "quantity": 2})
    response = client.post("/api/cart/items", headers=SESSION, json={"product_id": "p2", "name": "Masala Dosa", "price": 50})

    data = response.json()
    assert [(i["id"], i["quantity"]) for i in data["items"]] == [("p1", 2), ("p2", 1)]
    assert data["items"][0]["subtotal"] == 200.0
    assert data["cart_count"] == 3
    assert data["total"] == 250.0
    assert data["total_display"] == "₹250.00"


def test_update_remove_clear(client):
    client.post("/api/cart/items", headers=SESSION, json={"product_id": "p1", "name": "Paneer Tikka", "price": 100})
    client.post("/api/cart/items", headers=SESSION, json={"product_id": "p2", "name": "Masala Dosa", "price": 50})

    response = client.patch("/api/cart/items/p1", headers=SESSION, json={"quantity": 4})
    assert response.json()["items"][0]["quantity"] == 4

    response = client.delete("/api/cart/items/p2", headers=SESSION)
    assert [i["id"] for i in response.json()["items"]] == ["p1"]

    response = client.delete("/api/cart", headers=SESSION)
    assert response.json()["items"] == []


def test_update_rejects_quantity_below_one(client):
    client.post("/api/cart/items", headers=SESSION, json={"product_id": "p1", "name": "Paneer Tikka", "price": 100})

    response = client.patch("/api/cart/items/p1", headers=SESSION, json={"quantity": 0})

    assert response.status_code == 422


def test_sign_in_merges_guest_cart(client, cart_repository, auth_state):
    cart_repository.records["user-1"] = [{"id": "p1", "name": "Paneer Tikka", "price": 100.0, "quantity": 1}]
    client.post("/api/cart/items", headers=SESSION, json={"product_id": "p1", "name": "Paneer Tikka", "price": 100, "quantity": 2})
    client.post("/api/cart/items", headers=SESSION, json={"product_id": "p2", "name": "Masala Dosa", "price": 50})

    auth_state["user_id"] = "user-1"
    response = client.get("/api/cart", headers=SESSION)

    data = response.json()
    assert data["signed_in"] is True
    assert [(i["id"], i["quantity"]) for i in data["items"]] == [("p1", 3), ("p2", 1)]
    assert [(r["id"], r["quantity"]) for r in cart_repository.records["user-1"]] == [("p1", 3), ("p2", 1)]


def test_sign_out_resets_session(client, cart_repository, auth_state):
    auth_state["user_id"] = "user-1"
    client.post("/api/cart/items", headers=SESSION, json={"product_id": "p1", "name": "Paneer Tikka", "price": 100})

    auth_state["user_id"] = None
    response = client.get("/api/cart", headers=SESSION)

    assert response.json()["items"] == []
    assert response.json()["signed_in"] is False
    assert cart_repository.records["user-1"][0]["id"] == "p1"


def test_sync_reloads_remote(client, cart_repository, auth_state):
    auth_state["user_id"] = "user-1"
    client.get("/api/cart", headers=SESSION)
    cart_repository.records["user-1"] = [{"id": "p7", "name": "Lassi", "price": 40.0, "quantity": 2}]

    response = client.post("/api/cart/sync", headers=SESSION)

    assert [(i["id"], i["quantity"]) for i in response.json()["items"]] == [("p7", 2)]


class TestSupabaseAuth:
    """Bearer token verification without the dependency override"""

    @pytest.fixture
    def raw_client(self, cart_repository):
        sessions = CartSessions(
            repository=cart_repository,
            storage_factory=lambda session_id: MemoryLocalStorage(),
        )
        with TestClient(create_app(cart_sessions=sessions)) as client:
            yield client

    def test_wrong_scheme_is_401(self, raw_client):
        response = raw_client.get("/api/cart", headers={**SESSION, "Authorization": "Basic abc"})
        assert response.status_code == 401

    def test_valid_token_signs_in(self, raw_client, mock_supabase_client):
        mock_supabase_client.auth.get_user = AsyncMock(return_value=Mock(user=Mock(id="user-1")))
        with patch("storefront.routers.deps.get_supabase", AsyncMock(return_value=mock_supabase_client)):
            response = raw_client.get("/api/cart", headers={**SESSION, "Authorization": "Bearer jwt"})

        assert response.status_code == 200
        assert response.json()["signed_in"] is True

    def test_rejected_token_is_401(self, raw_client, mock_supabase_client):
        mock_supabase_client.auth.get_user = AsyncMock(side_effect=RuntimeError("invalid JWT"))
        with patch("storefront.routers.deps.get_supabase", AsyncMock(return_value=mock_supabase_client)):
            response = raw_client.get("/api/cart", headers={**SESSION, "Authorization": "Bearer bad"})

        assert response.status_code == 401
