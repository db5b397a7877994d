"""Workspace — wires the sync components together and exposes user actions.

Owns one project store, one selection, the session router, the workspace
resolver and the push dispatcher. The router and the resolver both react to
project list changes; the resolver only until a project is selected.
"""
from __future__ import annotations

import asyncio
import logging

from texterm.adapters.events import LoadingProgress
from texterm.adapters.push_channel import LatestMessageSlot, PushChannelClient
from texterm.engine.api_client import ApiClient
from texterm.engine.dispatcher import PushChannelDispatcher
from texterm.engine.launch_context import LaunchContext, session_route
from texterm.engine.progress import ProgressDebouncer, Scheduler
from texterm.engine.project_store import ProjectStore
from texterm.engine.selection import ActiveView, SelectionState
from texterm.engine.session_router import SessionRouter
from texterm.engine.workspace_resolver import WorkspaceResolver
from texterm.shared.models.project import Project, Session

logger = logging.getLogger(__name__)


class Workspace:
    """Client-side workspace/session state for one launch."""

    def __init__(
        self,
        api: ApiClient,
        launch: LaunchContext | None = None,
        *,
        progress_hide_delay: float = 0.5,
        scheduler: Scheduler | None = None,
    ) -> None:
        self.api = api
        self.launch = launch or LaunchContext()
        self.selection = SelectionState()
        self.store = ProjectStore(api, self.selection, self.launch)
        self.router = SessionRouter(self.selection)
        self.resolver = WorkspaceResolver(api, self.store, self.selection)
        self.dispatcher = PushChannelDispatcher(
            self.store,
            ProgressDebouncer(progress_hide_delay, scheduler),
        )
        self.slot = LatestMessageSlot()
        self.slot.subscribe(self.dispatcher.dispatch)

        self._route_session_id: str | None = self.launch.initial_session_id
        self._started = False
        self.store.add_listener(self._on_projects_changed)

    # ── Lifecycle ──

    async def start(self) -> None:
        """Initial fetch, then one routing pass and one resolution attempt."""
        await self.store.refresh(force_loading_indicator=True)
        self._started = True
        self._sync_after_list_change()

    def close(self) -> None:
        self.slot.close()
        self.dispatcher.close()
        task = self.resolver.task
        if task is not None and not task.done():
            task.cancel()

    def _on_projects_changed(self, projects: list[Project]) -> None:
        if self._started:
            self._sync_after_list_change()

    def _sync_after_list_change(self) -> None:
        self.router.route(self._route_session_id, self.store.projects)
        self.resolver.maybe_resolve(self.launch.external_project_id)

    # ── Routing ──

    @property
    def route_session_id(self) -> str | None:
        return self._route_session_id

    @property
    def route_path(self) -> str:
        return session_route(self._route_session_id)

    def navigate(self, session_id: str | None) -> None:
        if session_id == self._route_session_id:
            return
        self._route_session_id = session_id
        if session_id and session_id != self.selection.session_id:
            self.router.route(session_id, self.store.projects)

    # ── User actions ──

    def select_project(self, project: Project) -> None:
        self.selection.select(project, None)
        self.navigate(None)

    def select_session(self, session: Session) -> None:
        view = None if self.selection.active_view is ActiveView.GIT else ActiveView.TERMINAL
        if session.provider is None:
            session = session.with_provider()
        self.selection.select(self._owner_of(session) or self.selection.project, session, view)
        self.navigate(session.id)

    def new_session(self, project: Project) -> None:
        self.selection.select(project, None, ActiveView.TERMINAL)
        self.navigate(None)

    def set_view(self, view: ActiveView) -> None:
        self.selection.set_view(view)

    def delete_session(self, session_id: str) -> None:
        if self.selection.session_id == session_id:
            self.navigate(None)
        self.store.apply_optimistic_session_delete(session_id)

    def delete_project(self, name: str) -> None:
        if self.selection.project_name == name:
            self.navigate(None)
        self.store.apply_optimistic_project_delete(name)

    async def refresh_sidebar(self) -> None:
        """Refresh and swap in refreshed copies of the selected project/session."""
        await self.store.refresh()
        if self.store.last_error is not None:
            return
        selected = self.selection.project
        if selected is None:
            return
        refreshed = self.store.get(selected.name)
        if refreshed is None:
            return
        session = self.selection.session
        if session is not None:
            fresh_session = refreshed.find_session(session.id)
            if fresh_session is not None and session.provider:
                fresh_session = fresh_session.with_provider(session.provider)
            if fresh_session is not None and fresh_session.to_dict() != session.to_dict():
                session = fresh_session
        if refreshed.to_dict() != selected.to_dict() or session is not self.selection.session:
            self.selection.select(refreshed, session)

    async def request_refresh(self) -> None:
        """Process-wide refresh entry point, via the launch context."""
        await self.launch.request_refresh()

    # ── Views ──

    def display_projects(self) -> list[Project]:
        """In Overleaf mode only the selected workspace is listed."""
        selected = self.selection.project
        if self.launch.is_overleaf_mode and selected is not None:
            return [p for p in self.store.projects if p.full_path == selected.full_path]
        return self.store.projects

    def _owner_of(self, session: Session) -> Project | None:
        for project in self.store.projects:
            if project.has_session(session.id):
                return project
        return None

    @property
    def loading_progress(self) -> LoadingProgress | None:
        return self.dispatcher.loading_progress

    @property
    def is_loading(self) -> bool:
        return self.store.is_loading


async def run_headless(
    workspace: Workspace,
    push_client: PushChannelClient | None = None,
) -> None:
    """Start the workspace and pump push messages until the channel closes."""
    await workspace.start()
    try:
        if push_client is not None:
            await push_client.run()
        else:
            await asyncio.Event().wait()
    finally:
        workspace.close()
