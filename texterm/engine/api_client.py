"""HTTP client for the workspace backend.

Thin wrapper over one shared ``aiohttp.ClientSession``. Every failure is
raised as a SyncError subclass so callers can apply their own failure policy.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp

from texterm.engine.config import ClientConfig
from texterm.engine.errors import ApiError, InvalidResponseError, TransportError
from texterm.shared.models.project import Project, projects_from_payload

logger = logging.getLogger(__name__)

PROJECTS_PATH = "/api/projects"
RESOLVE_OVERLEAF_PATH = "/api/projects/resolve-overleaf"
CREATE_WORKSPACE_PATH = "/api/projects/create-workspace"


class ApiClient:
    """Async client for ``/api/projects`` and friends."""

    def __init__(
        self,
        config: ClientConfig,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config
        self._session = session
        self._owns_session = session is None

    @property
    def base_url(self) -> str:
        return self._config.base_url

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._config.auth_token:
            headers["Authorization"] = f"Bearer {self._config.auth_token}"
        return headers

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(
                    total=self._config.request_timeout_seconds
                ),
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _request_json(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> Any:
        url = f"{self._config.base_url}{path}"
        session = self._get_session()
        try:
            async with session.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=self._headers(),
            ) as resp:
                if resp.status < 200 or resp.status >= 300:
                    body = await resp.text()
                    raise ApiError(method, url, resp.status, body[:500])
                try:
                    return await resp.json(content_type=None)
                except ValueError as exc:
                    raise InvalidResponseError(url, f"body is not JSON: {exc}") from exc
        except asyncio.TimeoutError as exc:
            raise TransportError(method, url, "timed out") from exc
        except aiohttp.ClientError as exc:
            raise TransportError(method, url, f"{type(exc).__name__}: {exc}") from exc

    async def list_projects(self) -> list[Project]:
        """``GET /api/projects``."""
        payload = await self._request_json("GET", PROJECTS_PATH)
        try:
            projects = projects_from_payload(payload)
        except ValueError as exc:
            raise InvalidResponseError(PROJECTS_PATH, str(exc)) from exc
        logger.debug("list_projects: %d projects", len(projects))
        return projects

    async def resolve_overleaf(self, external_id: str) -> str:
        """Map an Overleaf project id to a workspace path.

        Raises ApiError when the server cannot resolve the id.
        """
        payload = await self._request_json(
            "GET", RESOLVE_OVERLEAF_PATH, params={"id": external_id},
        )
        path = payload.get("path") if isinstance(payload, dict) else None
        if not isinstance(path, str) or not path:
            raise InvalidResponseError(RESOLVE_OVERLEAF_PATH, "missing 'path'")
        return path

    async def create_workspace(self, path: str) -> Project:
        """Register an existing directory as a workspace."""
        payload = await self._request_json(
            "POST",
            CREATE_WORKSPACE_PATH,
            json_body={"workspaceType": "existing", "path": path},
        )
        project = payload.get("project") if isinstance(payload, dict) else None
        if not isinstance(project, dict):
            raise InvalidResponseError(CREATE_WORKSPACE_PATH, "missing 'project'")
        try:
            return Project.from_dict(project)
        except ValueError as exc:
            raise InvalidResponseError(CREATE_WORKSPACE_PATH, str(exc)) from exc
