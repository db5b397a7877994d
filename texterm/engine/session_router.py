"""Routes a URL session id to its project and session."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from texterm.engine.selection import ActiveView, SelectionState
from texterm.shared.models.project import DEFAULT_PROVIDER, Project, Session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionMatch:
    project: Project
    session: Session


def locate(session_id: str | None, projects: list[Project]) -> SessionMatch | None:
    """First project (in list order) holding the session wins.

    Session ids are assumed globally unique but nothing enforces it, so a
    collision across projects resolves to the earlier project.
    """
    if not session_id:
        return None
    for project in projects:
        session = project.find_session(session_id)
        if session is not None:
            return SessionMatch(project=project, session=session)
    return None


class SessionRouter:
    def __init__(self, selection: SelectionState) -> None:
        self._selection = selection

    def route(self, session_id: str | None, projects: list[Project]) -> SessionMatch | None:
        """Select the routed session, or leave the selection alone if unknown.

        Unknown ids are expected while sessions are still loading; the router
        runs again when the project list changes.
        """
        match = locate(session_id, projects)
        if match is None:
            if session_id:
                logger.debug("Session %s not loaded yet; selection unchanged", session_id)
            return None
        tagged = match.session.with_provider(DEFAULT_PROVIDER)
        self._selection.select(match.project, tagged, ActiveView.TERMINAL)
        return SessionMatch(project=match.project, session=tagged)
