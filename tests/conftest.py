"""Shared fakes for the sync engine tests.

FakeApi stands in for ApiClient: projects are stored as wire dicts so every
``list_projects`` call returns fresh, deep-equal objects, like a real server.
FakeScheduler replaces ``loop.call_later`` with a manually advanced clock.
"""
from __future__ import annotations

import copy
from typing import Any, Callable

import pytest

from texterm.engine.errors import ApiError, InvalidResponseError, SyncError
from texterm.shared.models.project import Project


class FakeApi:
    def __init__(self, projects: list[dict[str, Any]] | None = None) -> None:
        self.projects: list[dict[str, Any]] = projects or []
        self.resolve_map: dict[str, str] = {}
        self.list_error: SyncError | None = None
        self.resolve_error: SyncError | None = None
        self.create_error: SyncError | None = None
        # Overrides the created record, e.g. to return a malformed one
        self.create_response: Any = None
        self.calls: list[tuple] = []

    @property
    def base_url(self) -> str:
        return "http://fake"

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)

    async def list_projects(self) -> list[Project]:
        self.calls.append(("list_projects",))
        if self.list_error is not None:
            raise self.list_error
        try:
            return [Project.from_dict(copy.deepcopy(p)) for p in self.projects]
        except ValueError as exc:
            raise InvalidResponseError("/api/projects", str(exc)) from exc

    async def resolve_overleaf(self, external_id: str) -> str:
        self.calls.append(("resolve_overleaf", external_id))
        if self.resolve_error is not None:
            raise self.resolve_error
        if external_id not in self.resolve_map:
            raise ApiError("GET", "/api/projects/resolve-overleaf", 404)
        return self.resolve_map[external_id]

    async def create_workspace(self, path: str) -> Project:
        self.calls.append(("create_workspace", {"workspaceType": "existing", "path": path}))
        if self.create_error is not None:
            raise self.create_error
        record = {
            "name": path.strip("/").replace("/", "-"),
            "displayName": path.rsplit("/", 1)[-1],
            "fullPath": path,
            "sessions": [],
            "sessionMeta": {"total": 0},
        }
        if self.create_response is not None:
            record = self.create_response
        else:
            self.projects.append(record)
        try:
            return Project.from_dict(copy.deepcopy(record))
        except ValueError as exc:
            raise InvalidResponseError("/api/projects/create-workspace", str(exc)) from exc

    async def close(self) -> None:
        self.calls.append(("close",))


class FakeTimer:
    def __init__(self, when: float, callback: Callable[[], None]) -> None:
        self.when = when
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    def __init__(self) -> None:
        self.now = 0.0
        self.timers: list[FakeTimer] = []

    def __call__(self, delay: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(self.now + delay, callback)
        self.timers.append(timer)
        return timer

    def advance(self, seconds: float) -> None:
        self.now += seconds
        for timer in list(self.timers):
            if not timer.cancelled and not timer.fired and timer.when <= self.now:
                timer.fired = True
                timer.callback()

    @property
    def live(self) -> list[FakeTimer]:
        return [t for t in self.timers if not t.cancelled and not t.fired]


def _project_dict(name: str, *session_ids: str, full_path: str | None = None, total: int | None = None) -> dict[str, Any]:
    return {
        "name": name,
        "displayName": name.upper(),
        "fullPath": full_path or f"/w/{name}",
        "sessions": [{"id": sid, "summary": f"session {sid}"} for sid in session_ids],
        "sessionMeta": {"total": len(session_ids) if total is None else total},
    }


@pytest.fixture
def make_api() -> Callable[..., FakeApi]:
    """Factory fixture: ``make_api([project_dict("p1", "s1")])``."""
    return FakeApi


@pytest.fixture(name="project_dict")
def project_dict_fixture() -> Callable[..., dict[str, Any]]:
    """Wire dict builder: ``project_dict(name, *session_ids, full_path=, total=)``."""
    return _project_dict


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()
