"""Project tree widget — sidebar of workspaces and their sessions."""

from __future__ import annotations

from rich.text import Text
from textual.message import Message
from textual.widgets import Tree
from textual.widgets._tree import TreeNode

from texterm.shared.models.project import Project, Session


def _project_label(project: Project) -> Text:
    label = Text(project.display_name or project.name, style="bold")
    label.append(f"  {project.session_meta.total}", style="dim")
    return label


def _session_label(session: Session) -> Text:
    title = session.extra.get("summary") or session.extra.get("title") or session.id
    return Text(str(title))


class ProjectTree(Tree[Project | Session]):
    """Projects as branches, sessions as leaves."""

    class ProjectChosen(Message):
        """User picked a project row."""

        def __init__(self, project: Project) -> None:
            super().__init__()
            self.project = project

    class SessionChosen(Message):
        """User picked a session row."""

        def __init__(self, session: Session) -> None:
            super().__init__()
            self.session = session

    def __init__(self, **kwargs) -> None:
        super().__init__("Projects", **kwargs)
        self.show_root = False
        self._rendered: list[Project] | None = None

    def set_projects(self, projects: list[Project]) -> None:
        """Rebuild the tree. Skipped when handed the same list object again."""
        if projects is self._rendered:
            return
        self._rendered = projects
        expanded = {
            node.data.name
            for node in self.root.children
            if isinstance(node.data, Project) and node.is_expanded
        }
        self.clear()
        for project in projects:
            branch = self.root.add(
                _project_label(project),
                data=project,
                expand=project.name in expanded,
            )
            for session in project.sessions:
                branch.add_leaf(_session_label(session), data=session)

    def find_session_node(self, session_id: str) -> TreeNode | None:
        for branch in self.root.children:
            for leaf in branch.children:
                if isinstance(leaf.data, Session) and leaf.data.id == session_id:
                    return leaf
        return None

    def on_tree_node_selected(self, event: Tree.NodeSelected) -> None:
        data = event.node.data
        if isinstance(data, Project):
            self.post_message(self.ProjectChosen(data))
        elif isinstance(data, Session):
            self.post_message(self.SessionChosen(data))
