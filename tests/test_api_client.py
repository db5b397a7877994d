"""ApiClient and PushChannelClient against an in-process aiohttp backend."""
from __future__ import annotations

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from texterm.adapters.push_channel import LatestMessageSlot, PushChannelClient
from texterm.engine.api_client import ApiClient
from texterm.engine.config import ClientConfig
from texterm.engine.errors import ApiError, InvalidResponseError, TransportError


class FakeBackend:
    """Minimal stand-in for the workspace server."""

    def __init__(self) -> None:
        self.projects = [
            {
                "name": "thesis",
                "displayName": "Thesis",
                "fullPath": "/w/thesis",
                "sessions": [{"id": "s1", "summary": "intro", "lastActivity": "2026-01-01"}],
                "sessionMeta": {"total": 3, "hasMore": True},
            }
        ]
        self.created: list[dict] = []
        self.auth_headers: list[str | None] = []
        self.push_messages: list[dict] = []
        self.app = web.Application()
        self.app.router.add_get("/api/projects", self.list_projects)
        self.app.router.add_get("/api/projects/resolve-overleaf", self.resolve)
        self.app.router.add_post("/api/projects/create-workspace", self.create)
        self.app.router.add_get("/ws", self.websocket)

    async def list_projects(self, request: web.Request) -> web.Response:
        self.auth_headers.append(request.headers.get("Authorization"))
        return web.json_response(self.projects)

    async def resolve(self, request: web.Request) -> web.Response:
        if request.query.get("id") == "ext-1":
            return web.json_response({"path": "/w/thesis"})
        return web.json_response({"error": "not found"}, status=404)

    async def create(self, request: web.Request) -> web.Response:
        body = await request.json()
        self.created.append(body)
        if body.get("path") == "/broken":
            return web.json_response({"ok": True})
        if body.get("path") == "/malformed":
            return web.json_response({"project": {"name": "x", "sessionMeta": "bad"}})
        project = {"name": "new", "fullPath": body["path"], "sessions": []}
        return web.json_response({"project": project})

    async def websocket(self, request: web.Request) -> web.WebSocketResponse:
        ws = web.WebSocketResponse()
        await ws.prepare(request)
        for message in self.push_messages:
            await ws.send_json(message)
        await ws.send_str("not json")
        await ws.close()
        return ws


@pytest_asyncio.fixture
async def backend():
    fake = FakeBackend()
    server = TestServer(fake.app)
    await server.start_server()
    fake.base_url = f"http://{server.host}:{server.port}"
    yield fake
    await server.close()


def _client(base_url: str, **kwargs) -> ApiClient:
    config = ClientConfig(base_url=base_url, **kwargs)
    config.validate()
    return ApiClient(config)


@pytest.mark.asyncio
async def test_list_projects_parses_records_and_keeps_extra_fields(backend):
    api = _client(backend.base_url)
    try:
        projects = await api.list_projects()
    finally:
        await api.close()

    (project,) = projects
    assert project.name == "thesis"
    assert project.display_name == "Thesis"
    assert project.session_meta.total == 3
    assert project.sessions[0].extra["summary"] == "intro"
    assert project.to_dict()["sessionMeta"] == {"total": 3, "hasMore": True}


@pytest.mark.asyncio
async def test_bearer_token_is_forwarded_when_configured(backend):
    api = _client(backend.base_url, auth_token="secret")
    try:
        await api.list_projects()
    finally:
        await api.close()

    assert backend.auth_headers == ["Bearer secret"]


@pytest.mark.asyncio
async def test_resolve_overleaf_returns_path(backend):
    api = _client(backend.base_url)
    try:
        assert await api.resolve_overleaf("ext-1") == "/w/thesis"
        with pytest.raises(ApiError) as excinfo:
            await api.resolve_overleaf("unknown")
    finally:
        await api.close()

    assert excinfo.value.status == 404


@pytest.mark.asyncio
async def test_create_workspace_posts_existing_workspace_body(backend):
    api = _client(backend.base_url)
    try:
        project = await api.create_workspace("/w/x")
        with pytest.raises(InvalidResponseError):
            await api.create_workspace("/broken")
    finally:
        await api.close()

    assert backend.created[0] == {"workspaceType": "existing", "path": "/w/x"}
    assert project.full_path == "/w/x"


@pytest.mark.asyncio
async def test_malformed_nested_records_raise_invalid_response(backend):
    backend.projects = [{"name": "p", "sessionMeta": 3}]
    api = _client(backend.base_url)
    try:
        with pytest.raises(InvalidResponseError):
            await api.list_projects()
        with pytest.raises(InvalidResponseError):
            await api.create_workspace("/malformed")
    finally:
        await api.close()


@pytest.mark.asyncio
async def test_unreachable_server_raises_transport_error(unused_tcp_port):
    api = _client(f"http://127.0.0.1:{unused_tcp_port}")
    try:
        with pytest.raises(TransportError):
            await api.list_projects()
    finally:
        await api.close()


@pytest.mark.asyncio
async def test_push_channel_feeds_latest_message_slot(backend):
    backend.push_messages = [
        {"type": "loading_progress", "phase": "scanning"},
        {"type": "projects_updated"},
    ]
    config = ClientConfig(base_url=backend.base_url)
    slot = LatestMessageSlot()
    received: list[dict] = []
    slot.subscribe(received.append)

    client = PushChannelClient(config, slot)
    states: list[bool] = []
    client.add_state_listener(states.append)
    await client.run()

    assert [m["type"] for m in received] == ["loading_progress", "projects_updated"]
    assert slot.latest == {"type": "projects_updated"}
    assert client.connected is False
    assert states == [True, False]


@pytest.mark.asyncio
async def test_push_channel_returns_quietly_when_server_is_down(unused_tcp_port):
    config = ClientConfig(base_url=f"http://127.0.0.1:{unused_tcp_port}")
    slot = LatestMessageSlot()

    client = PushChannelClient(config, slot)
    states: list[bool] = []
    client.add_state_listener(states.append)
    await client.run()

    assert slot.latest is None
    assert states == []
