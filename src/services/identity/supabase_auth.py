"""
Supabase Auth Identity Resolver

Verifies an access token by asking the auth service who it belongs to
(`GET /auth/v1/user`), then reads the admin flag through the
`auth_user_is_admin` RPC executed as that user. The flag is carried on
the returned Principal, so nothing is cached between requests.

Every failure mode (network, 401, malformed body) resolves to
"unauthenticated" / "not admin"; details go to the operator log only.
"""

from typing import Optional

import requests
import structlog

from src.config import SupabaseSettings, get_settings
from src.models.chat import Principal
from src.services.identity.interface import IdentityResolverInterface


logger = structlog.get_logger(__name__)


class SupabaseIdentityResolver(IdentityResolverInterface):
    """Resolve principals against the Supabase auth REST API."""

    def __init__(
        self,
        settings: Optional[SupabaseSettings] = None,
        session: Optional[requests.Session] = None,
        check_admin: bool = True,
    ):
        self._settings = settings or get_settings().supabase
        self._session = session or requests.Session()
        self._check_admin = check_admin

    def _headers(self, access_token: str) -> dict[str, str]:
        return {
            "apikey": self._settings.anon_key,
            "Authorization": f"Bearer {access_token}",
        }

    async def resolve_current_principal(
        self,
        credential: Optional[str],
    ) -> Optional[Principal]:
        if not credential:
            return None

        try:
            response = self._session.get(
                f"{self._settings.url}/auth/v1/user",
                headers=self._headers(credential),
                timeout=self._settings.timeout_seconds,
            )
        except requests.RequestException as e:
            logger.warning("auth_lookup_failed", error=str(e))
            return None

        if response.status_code != 200:
            logger.info("auth_rejected", status_code=response.status_code)
            return None

        try:
            body = response.json()
            user_id = body["id"]
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("auth_response_malformed", error=str(e))
            return None

        if not user_id:
            return None

        is_admin = self._fetch_admin_flag(user_id, credential) if self._check_admin else False
        return Principal(user_id=user_id, email=body.get("email"), is_admin=is_admin)

    def _fetch_admin_flag(self, user_id: str, access_token: str) -> bool:
        url = f"{self._settings.url}/rest/v1/rpc/{self._settings.admin_check_function}"
        try:
            response = self._session.post(
                url,
                headers=self._headers(access_token),
                json={},
                timeout=self._settings.timeout_seconds,
            )
        except requests.RequestException as e:
            logger.error("admin_check_failed", user_id=user_id, error=str(e))
            return False

        if not response.ok:
            logger.error(
                "admin_check_failed",
                user_id=user_id,
                status_code=response.status_code,
            )
            return False

        try:
            return response.json() is True
        except ValueError:
            return False

    async def is_admin(self, principal: Principal) -> bool:
        return principal.is_authenticated and principal.is_admin
