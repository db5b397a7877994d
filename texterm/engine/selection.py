"""Current selection shared by the sync components.

Only the session router, the workspace resolver and explicit user actions
write it.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum

from texterm.shared.models.project import Project, Session

logger = logging.getLogger(__name__)


class ActiveView(str, Enum):
    TERMINAL = "terminal"
    GIT = "git"


SelectionListener = Callable[["SelectionState"], None]


class SelectionState:
    """Selected project, selected session, and the active view."""

    def __init__(self) -> None:
        self.project: Project | None = None
        self.session: Session | None = None
        self.active_view: ActiveView = ActiveView.TERMINAL
        self._listeners: list[SelectionListener] = []

    def add_listener(self, listener: SelectionListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: SelectionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Selection listener failed")

    def select(
        self,
        project: Project | None,
        session: Session | None = None,
        view: ActiveView | None = None,
    ) -> None:
        self.project = project
        self.session = session
        if view is not None:
            self.active_view = view
        logger.debug(
            "Selection: project=%s session=%s view=%s",
            project.name if project else None,
            session.id if session else None,
            self.active_view.value,
        )
        self._notify()

    def set_view(self, view: ActiveView) -> None:
        if self.active_view is view:
            return
        self.active_view = view
        self._notify()

    def clear_session(self) -> None:
        if self.session is None:
            return
        self.session = None
        self._notify()

    def clear(self) -> None:
        if self.project is None and self.session is None:
            return
        self.project = None
        self.session = None
        self._notify()

    @property
    def project_name(self) -> str | None:
        return self.project.name if self.project else None

    @property
    def session_id(self) -> str | None:
        return self.session.id if self.session else None
