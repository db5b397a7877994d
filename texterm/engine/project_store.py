"""Project store — the client's canonical copy of ``GET /api/projects``.

A refresh either replaces the whole list or, when the server answer is
structurally identical, keeps the current list object. Optimistic deletes
are applied copy-on-write.

Overlapping refreshes are allowed: whichever fetch completes last decides
the final list.
"""
from __future__ import annotations

import logging
from collections.abc import Callable

from texterm.engine.api_client import ApiClient
from texterm.engine.errors import SyncError
from texterm.engine.launch_context import LaunchContext
from texterm.engine.selection import SelectionState
from texterm.shared.models.project import Project

logger = logging.getLogger(__name__)

ProjectsListener = Callable[[list[Project]], None]


def projects_changed(previous: list[Project], fresh: list[Project]) -> bool:
    """Key-based structural diff.

    Changed when the lengths or the order of names differ, or when any
    project differs from the same-named previous project in name,
    displayName, fullPath, sessionMeta or sessions.
    """
    if len(previous) != len(fresh):
        return True
    if [p.name for p in previous] != [p.name for p in fresh]:
        return True
    by_name = {p.name: p for p in previous}
    for project in fresh:
        old = by_name.get(project.name)
        if old is None or old.sync_signature() != project.sync_signature():
            return True
    return False


class ProjectStore:
    """Holds the project list and applies refreshes and optimistic deletes."""

    def __init__(
        self,
        api: ApiClient,
        selection: SelectionState,
        launch: LaunchContext | None = None,
    ) -> None:
        self._api = api
        self._selection = selection
        self._projects: list[Project] = []
        self._listeners: list[ProjectsListener] = []
        self.is_loading = False
        self.last_error: SyncError | None = None
        if launch is not None:
            launch.bind_refresh_hook(self.refresh)

    @property
    def projects(self) -> list[Project]:
        return self._projects

    def add_listener(self, listener: ProjectsListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: ProjectsListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _replace(self, projects: list[Project]) -> None:
        self._projects = projects
        for listener in list(self._listeners):
            try:
                listener(projects)
            except Exception:
                logger.exception("Project list listener failed")

    async def refresh(self, force_loading_indicator: bool = False) -> None:
        """Fetch the canonical list and replace local state if it changed.

        A failed fetch is logged and leaves the current list untouched.
        """
        if force_loading_indicator:
            self.is_loading = True
        try:
            fresh = await self._api.list_projects()
        except SyncError as exc:
            self.last_error = exc
            logger.error("Error fetching projects: %s", exc)
            return
        finally:
            self.is_loading = False

        self.last_error = None
        if projects_changed(self._projects, fresh):
            logger.debug(
                "Project list changed: %d -> %d projects",
                len(self._projects), len(fresh),
            )
            self._replace(fresh)
        else:
            logger.debug("Project list unchanged (%d projects)", len(fresh))

    def get(self, name: str) -> Project | None:
        for project in self._projects:
            if project.name == name:
                return project
        return None

    def find_by_path(self, path: str) -> Project | None:
        for project in self._projects:
            if project.matches_path(path):
                return project
        return None

    def apply_optimistic_session_delete(self, session_id: str) -> None:
        """Drop the session locally before the server confirms.

        Every project holding the session loses it and has its
        ``sessionMeta.total`` decremented by one, never below zero.
        """
        if self._selection.session_id == session_id:
            self._selection.clear_session()
        updated = [p.without_session(session_id) for p in self._projects]
        if any(new is not old for new, old in zip(updated, self._projects)):
            self._replace(updated)

    def apply_optimistic_project_delete(self, name: str) -> None:
        if self._selection.project_name == name:
            self._selection.clear()
        remaining = [p for p in self._projects if p.name != name]
        if len(remaining) != len(self._projects):
            self._replace(remaining)
