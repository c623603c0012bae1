"""
Identity Resolver Interface

The auth provider does the actual credential verification.
This module only defines how the session manager asks for the
current principal, plus a static implementation for tests and
local development.

CONTRACT:
- resolve_current_principal never raises for a bad, expired or
  missing credential; it returns None ("unauthenticated")
- is_admin fails closed: any doubt means False
"""

from abc import ABC, abstractmethod
from typing import Mapping, Optional

from src.models.chat import Principal


class IdentityResolverInterface(ABC):
    """Resolves an opaque session credential to a Principal."""

    @abstractmethod
    async def resolve_current_principal(
        self,
        credential: Optional[str],
    ) -> Optional[Principal]:
        """
        Resolve the authenticated principal behind a credential.

        Returns:
            The Principal, or None if the credential does not resolve
        """
        pass

    @abstractmethod
    async def is_admin(self, principal: Principal) -> bool:
        """
        Check the elevated-privilege flag for a principal.

        Returns:
            True only if the provider positively confirms admin status
        """
        pass


class StaticIdentityResolver(IdentityResolverInterface):
    """
    Token -> Principal lookup held in memory.

    Usage:
        resolver = StaticIdentityResolver({"token-a": Principal(user_id="a")})
    """

    def __init__(self, principals: Optional[Mapping[str, Principal]] = None):
        self._principals = dict(principals or {})
        self.calls = 0

    async def resolve_current_principal(
        self,
        credential: Optional[str],
    ) -> Optional[Principal]:
        self.calls += 1
        if not credential:
            return None
        principal = self._principals.get(credential)
        if principal is None or not principal.is_authenticated:
            return None
        return principal

    async def is_admin(self, principal: Principal) -> bool:
        known = self._principals.values()
        return any(p.user_id == principal.user_id and p.is_admin for p in known)
