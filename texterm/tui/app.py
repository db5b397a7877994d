"""texterm TUI — Textual application class."""

from __future__ import annotations

import logging

from textual.app import App, ComposeResult
from textual.widgets import Header

from texterm.adapters.events import LoadingProgress
from texterm.adapters.push_channel import PushChannelClient
from texterm.engine.selection import ActiveView, SelectionState
from texterm.engine.workspace import Workspace
from texterm.shared.models.project import Project
from texterm.tui.widgets.project_tree import ProjectTree
from texterm.tui.widgets.status_bar import StatusBar

logger = logging.getLogger(__name__)


class TextermApp(App):
    """Workspace and session sidebar for the Overleaf terminal client."""

    TITLE = "texterm"
    SUB_TITLE = "Overleaf workspace"

    BINDINGS = [
        ("ctrl+q", "quit", "Quit"),
        ("r", "refresh", "Refresh"),
        ("t", "show_terminal", "Terminal"),
        ("g", "show_git", "Git"),
    ]

    def __init__(
        self,
        workspace: Workspace,
        push_client: PushChannelClient | None = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.workspace = workspace
        self.push_client = push_client

    def compose(self) -> ComposeResult:
        yield Header()
        yield ProjectTree(id="project-tree")
        yield StatusBar(id="status-bar")

    async def on_mount(self) -> None:
        ws = self.workspace
        ws.store.add_listener(self._on_projects_changed)
        ws.selection.add_listener(self._on_selection_changed)
        ws.dispatcher.add_progress_listener(self._on_progress)
        self.run_worker(self._start(), exclusive=True, group="sync")
        if self.push_client is not None:
            self.push_client.add_state_listener(self._on_push_state)
            self.run_worker(self._run_push_channel(), group="push")

    async def _start(self) -> None:
        self.query_one(StatusBar).status = "loading"
        await self.workspace.start()
        self._render_projects()
        self.query_one(StatusBar).status = (
            "error" if self.workspace.store.last_error else self._push_status()
        )

    def _push_status(self) -> str:
        if self.push_client is not None and self.push_client.connected:
            return "connected"
        return "disconnected"

    async def _run_push_channel(self) -> None:
        await self.push_client.run()
        # No reconnect: the sidebar keeps its last known state.
        logger.info("Push channel ended; live updates stopped")

    async def on_unmount(self) -> None:
        ws = self.workspace
        ws.store.remove_listener(self._on_projects_changed)
        ws.selection.remove_listener(self._on_selection_changed)
        ws.dispatcher.remove_progress_listener(self._on_progress)
        ws.close()
        if self.push_client is not None:
            self.push_client.remove_state_listener(self._on_push_state)
            await self.push_client.close()
        await self.workspace.api.close()

    # ── Workspace callbacks ──

    def _render_projects(self) -> None:
        self.query_one(ProjectTree).set_projects(self.workspace.display_projects())

    def _on_projects_changed(self, projects: list[Project]) -> None:
        self._render_projects()

    def _on_selection_changed(self, selection: SelectionState) -> None:
        bar = self.query_one(StatusBar)
        bar.project_name = (
            selection.project.display_name or selection.project.name
            if selection.project
            else "No project"
        )
        bar.session_id = selection.session_id or "—"
        bar.view = selection.active_view.value
        self._render_projects()

    def _on_progress(self, progress: LoadingProgress | None) -> None:
        self.query_one(StatusBar).set_progress(progress)

    def _on_push_state(self, connected: bool) -> None:
        bar = self.query_one(StatusBar)
        # The initial load owns the status until it settles.
        if bar.status not in ("loading", "error"):
            bar.status = self._push_status()

    # ── Tree messages ──

    def on_project_tree_project_chosen(self, message: ProjectTree.ProjectChosen) -> None:
        self.workspace.select_project(message.project)

    def on_project_tree_session_chosen(self, message: ProjectTree.SessionChosen) -> None:
        self.workspace.select_session(message.session)

    # ── Actions ──

    async def action_refresh(self) -> None:
        await self.workspace.refresh_sidebar()
        self._render_projects()

    def action_show_terminal(self) -> None:
        self.workspace.set_view(ActiveView.TERMINAL)

    def action_show_git(self) -> None:
        self.workspace.set_view(ActiveView.GIT)
