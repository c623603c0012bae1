"""
Cached view invalidation.

After history changes, whatever renders the chat page for that
(user, assistant) pair must stop serving its cached copy. The session
manager only signals; the view layer decides what "stale" means.
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional

import structlog

from src.config import ChatSettings, get_settings
from src.models.chat import AssistantId


logger = structlog.get_logger(__name__)


class ViewInvalidatorInterface(ABC):
    """Receives "history changed" signals from the session manager."""

    @abstractmethod
    def invalidate(self, user_id: str, assistant_id: AssistantId) -> str:
        """
        Mark the chat view for a conversation as stale.

        Returns:
            The path that was invalidated
        """
        pass


class PathViewInvalidator(ViewInvalidatorInterface):
    """
    Renders the chat page path and hands it to an eviction callback.

    Without `evict` this is a log-only default: nothing is evicted and
    the "chat_view_invalidated" log line is the only effect. A web layer
    that caches pages passes its own eviction function.

    Usage:
        invalidator = PathViewInvalidator(evict=page_cache.pop_path)
    """

    def __init__(
        self,
        settings: Optional[ChatSettings] = None,
        evict: Optional[Callable[[str], None]] = None,
    ):
        self._template = (settings or get_settings().chat).view_path_template
        self._evict = evict

    def path_for(self, assistant_id: AssistantId) -> str:
        return self._template.format(assistant_id=assistant_id.value)

    def invalidate(self, user_id: str, assistant_id: AssistantId) -> str:
        path = self.path_for(assistant_id)
        if self._evict is not None:
            self._evict(path)
        logger.info("chat_view_invalidated", user_id=user_id, path=path)
        return path
