"""Identity resolution package."""

from src.services.identity.interface import (
    IdentityResolverInterface,
    StaticIdentityResolver,
)
from src.services.identity.supabase_auth import SupabaseIdentityResolver

__all__ = [
    "IdentityResolverInterface",
    "StaticIdentityResolver",
    "SupabaseIdentityResolver",
]
