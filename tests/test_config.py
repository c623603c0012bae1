"""Tests for settings loading and component wiring."""

import pytest
from pydantic import ValidationError

from src.config import ChatSettings, SupabaseSettings, get_settings
from src.models.chat import AssistantId
from src.orchestrator import create_app_components
from src.services.identity import StaticIdentityResolver
from src.services.storage import InMemoryMessageStorage
from src.services.views import PathViewInvalidator


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "SUPABASE_URL",
        "SUPABASE_ANON_KEY",
        "SUPABASE_SERVICE_ROLE_KEY",
        "CHAT_STORAGE_BACKEND",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:
    """Tests for the pydantic-settings models."""

    def test_chat_defaults(self):
        settings = ChatSettings()
        assert settings.storage_backend == "memory"
        assert settings.max_message_length == 4000
        assert settings.max_conversation_messages == 50

    def test_chat_settings_from_env(self, monkeypatch):
        monkeypatch.setenv("CHAT_MAX_MESSAGE_LENGTH", "120")
        assert ChatSettings().max_message_length == 120

    def test_unknown_backend_rejected(self):
        with pytest.raises(ValidationError):
            ChatSettings(storage_backend="postgres")

    def test_supabase_url_trailing_slash(self):
        settings = SupabaseSettings(url="https://proj.supabase.co///", anon_key="k")
        assert settings.url == "https://proj.supabase.co"

    def test_supabase_requires_url(self):
        with pytest.raises(ValidationError):
            SupabaseSettings(anon_key="k")


class TestViewInvalidator:
    """Tests for PathViewInvalidator."""

    def test_path_template(self):
        invalidator = PathViewInvalidator(ChatSettings(view_path_template="/chat/{assistant_id}/"))
        assert invalidator.invalidate("user-1", AssistantId.INCOME) == "/chat/income/"

    def test_evict_callback_receives_path(self):
        evicted = []
        invalidator = PathViewInvalidator(ChatSettings(), evict=evicted.append)

        invalidator.invalidate("user-1", AssistantId.EXPENDITURE)

        assert evicted == ["/dashboard/chat/expenditure"]


class TestCreateAppComponents:
    """Tests for the wiring factory."""

    def test_memory_backend_without_auth_config(self):
        manager = create_app_components("memory")

        assert isinstance(manager._storage, InMemoryMessageStorage)
        assert isinstance(manager._identity, StaticIdentityResolver)

    def test_supabase_auth_used_when_configured(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_URL", "https://proj.supabase.co")
        monkeypatch.setenv("SUPABASE_ANON_KEY", "anon-key")

        manager = create_app_components("memory")
        assert not isinstance(manager._identity, StaticIdentityResolver)

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            create_app_components("mongodb")

    def test_supabase_backend_requires_service_role_key(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_URL", "https://proj.supabase.co")
        monkeypatch.setenv("SUPABASE_ANON_KEY", "anon-key")

        with pytest.raises(ValueError, match="SUPABASE_SERVICE_ROLE_KEY"):
            create_app_components("supabase")
