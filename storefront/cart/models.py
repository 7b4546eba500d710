"""Cart models with Decimal-based pricing."""
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable

from storefront.services.money import multiply, round_money, to_decimal, to_float


@dataclass
class CartItem:
    """Single line in the cart.

    `name` and `price` are captured when the product is added and are
    not re-fetched afterwards.
    """
    id: str
    name: str
    price: Decimal
    quantity: int = 1

    def __post_init__(self):
        self.price = to_decimal(self.price)

    @property
    def subtotal(self) -> Decimal:
        """Price for all units of this line."""
        return round_money(multiply(self.price, self.quantity))

    def to_dict(self) -> dict[str, Any]:
        """JSON-serializable form, shared by local storage and the remote record."""
        return {
            "id": self.id,
            "name": self.name,
            "price": to_float(self.price),
            "quantity": self.quantity,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CartItem":
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            price=to_decimal(data.get("price")),
            quantity=int(data["quantity"]),
        )


def items_from_dicts(data: Iterable[dict[str, Any]]) -> list[CartItem]:
    """Parse a stored item list. Raises KeyError/TypeError/ValueError on bad rows."""
    return [CartItem.from_dict(row) for row in data]


def items_to_dicts(items: Iterable[CartItem]) -> list[dict[str, Any]]:
    return [item.to_dict() for item in items]


def cart_count(items: Iterable[CartItem]) -> int:
    """Total number of units (the navbar badge)."""
    return sum(item.quantity for item in items)


def cart_total(items: Iterable[CartItem]) -> Decimal:
    """Sum of line subtotals."""
    return round_money(sum((item.subtotal for item in items), Decimal("0")))
