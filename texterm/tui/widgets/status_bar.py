"""Status bar — bottom bar showing selection, view and loading progress."""

from __future__ import annotations

from rich.text import Text
from textual.reactive import reactive
from textual.widget import Widget

from texterm.adapters.events import LoadingProgress


def _format_progress(progress: LoadingProgress) -> str:
    text = f"Loading: {progress.phase or 'working'}"
    if progress.current is not None and progress.total:
        text += f" {progress.current}/{progress.total}"
    if progress.current_project:
        text += f" ({progress.current_project})"
    return text


class StatusBar(Widget):
    """Single-line status bar with selection and connection state."""

    DEFAULT_CSS = """
    StatusBar {
        height: 1;
        dock: bottom;
        background: $panel;
    }
    """

    project_name: reactive[str] = reactive("No project")
    session_id: reactive[str] = reactive("—")
    view: reactive[str] = reactive("terminal")
    progress_text: reactive[str] = reactive("")
    status: reactive[str] = reactive("disconnected")

    def set_progress(self, progress: LoadingProgress | None) -> None:
        self.progress_text = _format_progress(progress) if progress else ""

    def render(self) -> Text:
        status_colors = {
            "connected": "green",
            "loading": "yellow",
            "disconnected": "red",
            "error": "red bold",
        }
        color = status_colors.get(self.status, "white")

        bar = Text()
        bar.append(f" {self.project_name} ", style="bold")
        bar.append(" │ ", style="dim")
        bar.append(self.session_id, style="cyan")
        bar.append(" │ ", style="dim")
        bar.append(self.view.capitalize(), style="dim")
        bar.append(" │ ", style="dim")
        bar.append(f"● {self.status}", style=color)
        if self.progress_text:
            bar.append("  ", style="dim")
            bar.append(self.progress_text, style="italic yellow")
        return bar
