"""
Repository Pattern for Database Operations

- CartRepository: per-user cart records (fetch, upsert)
"""
from .cart_repo import CartRecord, CartRepository

__all__ = [
    "CartRecord",
    "CartRepository",
]
