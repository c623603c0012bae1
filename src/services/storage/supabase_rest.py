"""
Supabase (PostgREST) Storage Implementation

Talks to the managed Postgres service over its REST surface.
The `messages` table is:

    id uuid, user_id uuid, assistant_id text,
    role text check (role in ('user', 'assistant')),
    content text, metadata jsonb, created_at timestamptz, updated_at timestamptz

Ordering happens server-side (`order=created_at.asc`).
A bulk delete is a single DELETE statement, so Postgres applies it
atomically: either every matching row goes or none does.
"""

from typing import Any, Optional

import requests
from pydantic import ValidationError

from src.config import SupabaseSettings, get_settings
from src.models.chat import AssistantId, ChatMessage
from src.services.storage.interface import (
    ConnectionError,
    MessageStorageInterface,
    StorageError,
)


class SupabaseMessageStorage(MessageStorageInterface):
    """
    PostgREST-backed chat history storage.

    Requires the service key. Row-level security on `messages` checks
    `auth.uid() = user_id`, which is NULL under the anon key, so an anon
    client would read nothing and delete nothing while reporting success.
    With the service key RLS is bypassed and the user_id filter below is
    the only isolation guard.

    Raises:
        ValueError: If SUPABASE_SERVICE_ROLE_KEY is not configured
    """

    def __init__(
        self,
        settings: Optional[SupabaseSettings] = None,
        session: Optional[requests.Session] = None,
    ):
        self._settings = settings or get_settings().supabase
        self._session = session or requests.Session()
        key = self._settings.service_role_key
        if not key:
            raise ValueError(
                "SUPABASE_SERVICE_ROLE_KEY is required for the supabase history backend"
            )
        self._headers = {
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
        }

    @property
    def _table_url(self) -> str:
        return f"{self._settings.url}/rest/v1/{self._settings.messages_table}"

    @staticmethod
    def _conversation_filter(user_id: str, assistant_id: AssistantId) -> dict[str, str]:
        return {
            "user_id": f"eq.{user_id}",
            "assistant_id": f"eq.{assistant_id.value}",
        }

    def _request(
        self,
        method: str,
        params: Optional[dict[str, str]] = None,
        json_body: Optional[dict[str, Any]] = None,
        prefer: Optional[str] = None,
    ) -> Any:
        headers = dict(self._headers)
        if prefer:
            headers["Prefer"] = prefer

        try:
            response = self._session.request(
                method,
                self._table_url,
                params=params,
                json=json_body,
                headers=headers,
                timeout=self._settings.timeout_seconds,
            )
        except requests.ConnectionError as e:
            raise ConnectionError(f"Could not reach Supabase: {e}")
        except requests.RequestException as e:
            raise StorageError(f"Supabase request failed: {e}")

        if not response.ok:
            raise StorageError(
                f"Supabase {method} {self._settings.messages_table} "
                f"returned {response.status_code}: {response.text[:200]}"
            )

        if not response.content:
            return []
        return response.json()

    @staticmethod
    def _parse_rows(rows: Any) -> list[ChatMessage]:
        try:
            return [ChatMessage.model_validate(row) for row in rows]
        except (ValidationError, TypeError) as e:
            raise StorageError(f"Unexpected row shape from Supabase: {e}")

    async def append_message(self, message: ChatMessage) -> ChatMessage:
        payload = {
            "id": str(message.id),
            "user_id": message.user_id,
            "assistant_id": message.assistant_id.value,
            "role": message.role.value,
            "content": message.content,
            "metadata": message.metadata,
        }
        rows = self._request("POST", json_body=payload, prefer="return=representation")
        stored = self._parse_rows(rows)
        return stored[0] if stored else message

    async def list_messages(
        self,
        user_id: str,
        assistant_id: AssistantId,
    ) -> list[ChatMessage]:
        params = {
            "select": "*",
            **self._conversation_filter(user_id, assistant_id),
            "order": "created_at.asc",
        }
        return self._parse_rows(self._request("GET", params=params))

    async def delete_messages(
        self,
        user_id: str,
        assistant_id: AssistantId,
    ) -> int:
        rows = self._request(
            "DELETE",
            params=self._conversation_filter(user_id, assistant_id),
            prefer="return=representation",
        )
        return len(rows)
