"""Push channel dispatcher.

Interprets each latest push message:

- ``loading_progress`` updates the visible progress snapshot and, once the
  phase is complete, hides it after a short delay unless newer progress
  arrives first.
- ``projects_updated`` / ``projects_refresh`` schedule a quiet store refresh
  so changes made by other actors become visible.
- Anything else is ignored.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from texterm.adapters.events import (
    REFRESH_TYPES,
    LoadingProgress,
    dict_to_message,
)
from texterm.engine.progress import ProgressDebouncer
from texterm.engine.project_store import ProjectStore

logger = logging.getLogger(__name__)

ProgressListener = Callable[[LoadingProgress | None], None]


class PushChannelDispatcher:
    """Synchronous dispatch callback for the latest-message slot."""

    def __init__(
        self,
        store: ProjectStore,
        debouncer: ProgressDebouncer | None = None,
    ) -> None:
        self._store = store
        self._debouncer = debouncer or ProgressDebouncer()
        self._last_message: dict[str, Any] | None = None
        self._refresh_tasks: set[asyncio.Task] = set()
        self._progress_listeners: list[ProgressListener] = []
        self._closed = False
        self.loading_progress: LoadingProgress | None = None

    def add_progress_listener(self, listener: ProgressListener) -> None:
        self._progress_listeners.append(listener)

    def remove_progress_listener(self, listener: ProgressListener) -> None:
        if listener in self._progress_listeners:
            self._progress_listeners.remove(listener)

    def _set_progress(self, progress: LoadingProgress | None) -> None:
        self.loading_progress = progress
        for listener in list(self._progress_listeners):
            try:
                listener(progress)
            except Exception:
                logger.exception("Progress listener failed")

    def _hide_progress(self) -> None:
        logger.debug("Hiding completed loading progress")
        self._set_progress(None)

    def dispatch(self, message: dict[str, Any]) -> None:
        if self._closed or message is self._last_message:
            return
        self._last_message = message

        event = dict_to_message(message)
        if isinstance(event, LoadingProgress):
            self._debouncer.cancel()
            self._set_progress(event)
            if event.is_complete:
                self._debouncer.start(self._hide_progress)
            return

        if event.type in REFRESH_TYPES:
            logger.debug("Push %s: scheduling project refresh", event.type)
            self._schedule_refresh()
            return

        logger.debug("Ignoring push message type=%r", event.type)

    def _schedule_refresh(self) -> None:
        task = asyncio.get_running_loop().create_task(
            self._store.refresh(force_loading_indicator=False)
        )
        self._refresh_tasks.add(task)
        task.add_done_callback(self._refresh_tasks.discard)

    @property
    def pending_refreshes(self) -> set[asyncio.Task]:
        return set(self._refresh_tasks)

    def close(self) -> None:
        """Cancel the hide timer and any scheduled refreshes."""
        self._closed = True
        self._debouncer.cancel()
        for task in list(self._refresh_tasks):
            if not task.done():
                task.cancel()
