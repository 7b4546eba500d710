"""
Cart Router

Shopping cart endpoints for storefront pages. Mutations answer with the
updated cart right away; syncing to storage happens in the background.
"""
from fastapi import APIRouter, Depends

from storefront.cart import CartStore, cart_count, cart_total
from storefront.services.money import format_money, to_float

from .deps import get_cart_store
from .models import AddToCartRequest, CartItemResponse, CartResponse, UpdateCartItemRequest

router = APIRouter(prefix="/cart", tags=["cart"])


async def _cart_response(store: CartStore) -> CartResponse:
    items = store.items
    total = cart_total(items)
    return CartResponse(
        items=[
            CartItemResponse(
                id=item.id,
                name=item.name,
                price=to_float(item.price),
                quantity=item.quantity,
                subtotal=to_float(item.subtotal),
            )
            for item in items
        ],
        cart_count=cart_count(items),
        total=to_float(total),
        total_display=format_money(total),
        signed_in=await store.identity.current_user() is not None,
    )


@router.get("", response_model=CartResponse)
async def get_cart(store: CartStore = Depends(get_cart_store)):
    return await _cart_response(store)


@router.post("/items", response_model=CartResponse)
async def add_to_cart(request: AddToCartRequest, store: CartStore = Depends(get_cart_store)):
    store.add_item(request.product_id, request.name, request.price, request.quantity)
    return await _cart_response(store)


@router.patch("/items/{product_id}", response_model=CartResponse)
async def update_cart_item(
    product_id: str,
    request: UpdateCartItemRequest,
    store: CartStore = Depends(get_cart_store),
):
    store.update_quantity(product_id, request.quantity)
    return await _cart_response(store)


@router.delete("/items/{product_id}", response_model=CartResponse)
async def remove_cart_item(product_id: str, store: CartStore = Depends(get_cart_store)):
    store.remove_item(product_id)
    return await _cart_response(store)


@router.delete("", response_model=CartResponse)
async def clear_cart(store: CartStore = Depends(get_cart_store)):
    store.clear()
    return await _cart_response(store)


@router.post("/sync", response_model=CartResponse)
async def sync_cart(store: CartStore = Depends(get_cart_store)):
    """Reload the account cart from the remote record."""
    await store.load()
    return await _cart_response(store)
