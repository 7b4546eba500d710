"""Identity resolution for cart sessions."""
from .identity import IdentityProvider, SessionIdentity, SupabaseIdentityProvider

__all__ = [
    "IdentityProvider",
    "SessionIdentity",
    "SupabaseIdentityProvider",
]
