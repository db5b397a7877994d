"""Workspace resolver — Overleaf project id to tracked workspace.

Each external id moves through an explicit state machine:

    unresolved -> resolving -> resolved
                            -> failed -> resolving (next trigger)

``resolving`` and ``resolved`` ids are never attempted again, and nothing
runs once a project is selected. The selection is re-checked after every
network call, since a route or a user action may have selected a project
while the request was in flight.
"""
from __future__ import annotations

import asyncio
import logging
from enum import Enum

from texterm.engine.api_client import ApiClient
from texterm.engine.errors import SyncError
from texterm.engine.project_store import ProjectStore
from texterm.engine.selection import ActiveView, SelectionState
from texterm.shared.models.project import Project

logger = logging.getLogger(__name__)


class ResolutionState(str, Enum):
    UNRESOLVED = "unresolved"
    RESOLVING = "resolving"
    RESOLVED = "resolved"
    FAILED = "failed"


class WorkspaceResolver:
    def __init__(
        self,
        api: ApiClient,
        store: ProjectStore,
        selection: SelectionState,
    ) -> None:
        self._api = api
        self._store = store
        self._selection = selection
        self._states: dict[str, ResolutionState] = {}
        self._task: asyncio.Task | None = None

    def state_of(self, external_id: str) -> ResolutionState:
        return self._states.get(external_id, ResolutionState.UNRESOLVED)

    def _can_attempt(self, external_id: str) -> bool:
        if self._selection.project is not None:
            return False
        return self.state_of(external_id) in (
            ResolutionState.UNRESOLVED,
            ResolutionState.FAILED,
        )

    def maybe_resolve(self, external_id: str | None) -> asyncio.Task | None:
        """Schedule ``resolve`` when an attempt is allowed; used on list changes."""
        if not external_id or not self._can_attempt(external_id):
            return None
        self._task = asyncio.get_running_loop().create_task(self.resolve(external_id))
        return self._task

    @property
    def task(self) -> asyncio.Task | None:
        return self._task

    async def resolve(self, external_id: str) -> Project | None:
        if not self._can_attempt(external_id):
            return None
        self._states[external_id] = ResolutionState.RESOLVING

        try:
            resolved_path = await self._api.resolve_overleaf(external_id)
        except SyncError as exc:
            logger.warning("Could not resolve Overleaf project %s: %s", external_id, exc)
            self._states[external_id] = ResolutionState.FAILED
            return None

        if self._selection.project is not None:
            logger.debug("Selection appeared while resolving %s; skipping", external_id)
            self._states[external_id] = ResolutionState.RESOLVED
            return None

        match = self._store.find_by_path(resolved_path)
        if match is None:
            match = await self._provision(resolved_path)
            if self._selection.project is not None:
                logger.debug("Selection appeared while provisioning %s; skipping", resolved_path)
                self._states[external_id] = ResolutionState.RESOLVED
                return None

        if match is None:
            self._states[external_id] = ResolutionState.FAILED
            return None

        logger.info("Overleaf project %s -> workspace %s", external_id, match.name)
        self._selection.select(match, None, ActiveView.TERMINAL)
        self._states[external_id] = ResolutionState.RESOLVED
        return match

    async def _provision(self, path: str) -> Project | None:
        """Best-effort workspace creation; None on failure."""
        try:
            project = await self._api.create_workspace(path)
        except SyncError as exc:
            logger.warning("Could not create workspace for %s: %s", path, exc)
            return None
        logger.info("Created workspace %s for %s", project.name, path)
        await self._store.refresh()
        return project
