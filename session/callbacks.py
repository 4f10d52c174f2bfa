"""Session observer callbacks for UI refresh and logging."""

import logging
from typing import Protocol, runtime_checkable

from models.tab import Tab

logger = logging.getLogger(__name__)


@runtime_checkable
class SessionCallback(Protocol):
    """Protocol for document session observers.

    Implement this protocol to react to tab lifecycle and content changes.
    Callbacks run synchronously, after the session state has changed.
    """

    def on_tab_opened(self, tab: Tab) -> None:
        """Called when a tab is created or re-activated."""
        ...

    def on_tab_closed(self, tab_id: str, active_tab_id: str | None) -> None:
        """Called after a tab is discarded, with the new active tab id."""
        ...

    def on_content_changed(self, tab: Tab) -> None:
        """Called after any edit to a tab's content."""
        ...

    def on_saved(self, tab: Tab) -> None:
        """Called when a tab has been written and is clean again."""
        ...

    def on_error(self, operation: str, error: str) -> None:
        """Called when an operation fails and returns a failed result."""
        ...


class LoggingCallback:
    """Lightweight callback that logs session activity to the standard logger."""

    def on_tab_opened(self, tab: Tab) -> None:
        logger.debug("tab opened: %s (%s)", tab.id, tab.kind.value)

    def on_tab_closed(self, tab_id: str, active_tab_id: str | None) -> None:
        logger.debug("tab closed: %s, active=%s", tab_id, active_tab_id)

    def on_content_changed(self, tab: Tab) -> None:
        logger.debug("content changed: %s (modified=%s)", tab.id, tab.modified)

    def on_saved(self, tab: Tab) -> None:
        logger.info("Saved %s -> %s", tab.id, tab.storage_path)

    def on_error(self, operation: str, error: str) -> None:
        logger.error("Session error in '%s': %s", operation, error)
