from __future__ import annotations

import asyncio

import pytest

from texterm.adapters.events import LoadingProgress
from texterm.engine.dispatcher import PushChannelDispatcher
from texterm.engine.progress import ProgressDebouncer
from texterm.engine.project_store import ProjectStore
from texterm.engine.selection import SelectionState


def _dispatcher(scheduler, api) -> tuple[PushChannelDispatcher, ProjectStore]:
    store = ProjectStore(api, SelectionState())
    return PushChannelDispatcher(store, ProgressDebouncer(0.5, scheduler)), store


# ── ProgressDebouncer ──


def test_debouncer_start_cancels_pending_timer(scheduler):
    fired: list[str] = []
    debouncer = ProgressDebouncer(0.5, scheduler)

    debouncer.start(lambda: fired.append("first"))
    debouncer.start(lambda: fired.append("second"))
    scheduler.advance(1.0)

    assert fired == ["second"]
    assert scheduler.timers[0].cancelled
    assert not debouncer.pending


def test_debouncer_cancel_is_idempotent(scheduler):
    debouncer = ProgressDebouncer(0.5, scheduler)
    debouncer.cancel()
    debouncer.start(lambda: None)
    debouncer.cancel()
    debouncer.cancel()

    assert not debouncer.pending
    assert scheduler.live == []


@pytest.mark.asyncio
async def test_debouncer_default_scheduler_uses_event_loop():
    fired = asyncio.Event()
    debouncer = ProgressDebouncer(0.01)

    debouncer.start(fired.set)
    assert debouncer.pending
    await asyncio.wait_for(fired.wait(), timeout=1.0)

    assert not debouncer.pending


# ── loading_progress ──


def test_running_then_complete_hides_once_from_complete_time(scheduler, make_api):
    dispatcher, _ = _dispatcher(scheduler, make_api())
    hides: list[float] = []
    dispatcher.add_progress_listener(
        lambda p: hides.append(scheduler.now) if p is None else None
    )

    dispatcher.dispatch({"type": "loading_progress", "phase": "scanning", "current": 1, "total": 3})
    scheduler.advance(0.2)
    dispatcher.dispatch({"type": "loading_progress", "phase": "complete", "current": 3, "total": 3})

    assert isinstance(dispatcher.loading_progress, LoadingProgress)
    assert dispatcher.loading_progress.is_complete

    scheduler.advance(0.4)
    assert hides == []
    scheduler.advance(0.1)

    assert hides == [pytest.approx(0.7)]
    assert dispatcher.loading_progress is None
    assert len(scheduler.timers) == 1


def test_newer_progress_cancels_pending_hide(scheduler, make_api):
    dispatcher, _ = _dispatcher(scheduler, make_api())

    dispatcher.dispatch({"type": "loading_progress", "phase": "complete"})
    scheduler.advance(0.3)
    dispatcher.dispatch({"type": "loading_progress", "phase": "scanning", "currentProject": "p2"})
    scheduler.advance(1.0)

    assert scheduler.timers[0].cancelled
    assert dispatcher.loading_progress is not None
    assert dispatcher.loading_progress.current_project == "p2"


def test_replaying_same_message_object_is_noop(scheduler, make_api):
    dispatcher, _ = _dispatcher(scheduler, make_api())
    message = {"type": "loading_progress", "phase": "complete"}

    dispatcher.dispatch(message)
    dispatcher.dispatch(message)

    assert len(scheduler.timers) == 1


def test_unknown_message_type_is_ignored(scheduler, make_api):
    dispatcher, _ = _dispatcher(scheduler, make_api())

    dispatcher.dispatch({"type": "session-created", "sessionId": "x"})
    dispatcher.dispatch({"no_type": True})

    assert dispatcher.loading_progress is None
    assert scheduler.timers == []


def test_close_cancels_outstanding_hide_timer(scheduler, make_api):
    dispatcher, _ = _dispatcher(scheduler, make_api())
    dispatcher.dispatch({"type": "loading_progress", "phase": "complete"})

    dispatcher.close()
    scheduler.advance(1.0)

    assert scheduler.timers[0].cancelled
    assert not scheduler.timers[0].fired
    dispatcher.dispatch({"type": "loading_progress", "phase": "complete"})
    assert len(scheduler.timers) == 1


# ── projects_updated / projects_refresh ──


@pytest.mark.asyncio
@pytest.mark.parametrize("msg_type", ["projects_updated", "projects_refresh"])
async def test_project_messages_trigger_quiet_refresh(scheduler, msg_type, make_api, project_dict):
    api = make_api([project_dict("p1", "s1")])
    dispatcher, store = _dispatcher(scheduler, api)
    loading_seen: list[bool] = []
    original = api.list_projects

    async def spying_list():
        loading_seen.append(store.is_loading)
        return await original()

    api.list_projects = spying_list

    dispatcher.dispatch({"type": msg_type})
    await asyncio.gather(*dispatcher.pending_refreshes)

    assert loading_seen == [False]
    assert [p.name for p in store.projects] == ["p1"]


@pytest.mark.asyncio
async def test_overlapping_refreshes_last_completed_wins(scheduler, make_api, project_dict):
    api = make_api()
    dispatcher, store = _dispatcher(scheduler, api)
    release_first = asyncio.Event()
    responses = [[project_dict("old")], [project_dict("new")]]
    calls = {"n": 0}

    async def staged_list():
        from texterm.shared.models.project import Project

        index = calls["n"]
        calls["n"] += 1
        if index == 0:
            await release_first.wait()
        return [Project.from_dict(p) for p in responses[index]]

    api.list_projects = staged_list

    dispatcher.dispatch({"type": "projects_updated"})
    dispatcher.dispatch({"type": "projects_refresh"})
    tasks = dispatcher.pending_refreshes
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    assert [p.name for p in store.projects] == ["new"]

    release_first.set()
    await asyncio.gather(*tasks)

    assert [p.name for p in store.projects] == ["old"]


@pytest.mark.asyncio
async def test_close_cancels_scheduled_refreshes(scheduler, make_api, project_dict):
    api = make_api([project_dict("p1")])
    dispatcher, store = _dispatcher(scheduler, api)

    dispatcher.dispatch({"type": "projects_updated"})
    tasks = dispatcher.pending_refreshes
    assert len(tasks) == 1

    dispatcher.close()
    await asyncio.gather(*tasks, return_exceptions=True)

    assert all(task.cancelled() for task in tasks)
    assert api.count("list_projects") == 0
    assert store.projects == []
    assert dispatcher.pending_refreshes == set()
