"""Guest/account cart merge."""
from dataclasses import replace
from typing import Iterable

from .models import CartItem


def merge_cart_items(remote: Iterable[CartItem], guest: Iterable[CartItem]) -> list[CartItem]:
    """
    Combine the account cart with a guest cart.

    Remote lines keep their order and come first; guest-only lines are
    appended in guest order. When both carts hold the same id the
    quantities are summed and the guest copy's name/price are kept.

    Example: remote [a x2], guest [a x3, b x1] -> [a x5, b x1]
    """
    merged: dict[str, CartItem] = {}
    for item in [*remote, *guest]:
        existing = merged.get(item.id)
        if existing is None:
            merged[item.id] = replace(item)
        else:
            merged[item.id] = replace(item, quantity=existing.quantity + item.quantity)
    return list(merged.values())
