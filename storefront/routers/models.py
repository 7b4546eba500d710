"""
Cart API Pydantic Models
"""
from pydantic import BaseModel, Field


class AddToCartRequest(BaseModel):
    product_id: str = Field(min_length=1)
    name: str
    price: float = Field(ge=0)
    quantity: int | None = None  # missing or non-positive means 1


class UpdateCartItemRequest(BaseModel):
    quantity: int = Field(ge=1)


class CartItemResponse(BaseModel):
    id: str
    name: str
    price: float
    quantity: int
    subtotal: float


class CartResponse(BaseModel):
    items: list[CartItemResponse]
    cart_count: int
    total: float
    total_display: str
    signed_in: bool
