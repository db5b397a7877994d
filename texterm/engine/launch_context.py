"""Launch context: values captured once at startup and shared by components.

Holds the external identifiers from the initial URL (``?project=&user=``)
and the process-wide refresh hook. Both are written exactly once; later
navigation never re-reads the URL.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from urllib.parse import parse_qs, urlsplit

from texterm.engine.errors import LaunchContextError

logger = logging.getLogger(__name__)

RefreshHook = Callable[[], Awaitable[None]]

_SESSION_ROUTE = re.compile(r"(?:^|/)session/([^/?#]+)/?$")


def session_id_from_path(path: str) -> str | None:
    """Extract ``<id>`` from a ``.../session/<id>`` route path."""
    match = _SESSION_ROUTE.search(path or "")
    return match.group(1) if match else None


def session_route(session_id: str | None) -> str:
    return f"/session/{session_id}" if session_id else "/"


def _first(params: dict[str, list[str]], key: str) -> str | None:
    values = params.get(key) or []
    value = values[0].strip() if values else ""
    return value or None


@dataclass
class LaunchContext:
    """Init-once launch state injected into the components that need it."""

    external_project_id: str | None = None
    external_user_id: str | None = None
    initial_session_id: str | None = None
    _refresh_hook: RefreshHook | None = field(default=None, repr=False)

    @classmethod
    def from_url(cls, url: str | None) -> LaunchContext:
        """Capture launch values from the initial URL."""
        if not url:
            return cls()
        parts = urlsplit(url)
        params = parse_qs(parts.query)
        ctx = cls(
            external_project_id=_first(params, "project"),
            external_user_id=_first(params, "user"),
            initial_session_id=session_id_from_path(parts.path),
        )
        logger.info(
            "Launch context captured: project=%s user=%s session=%s",
            ctx.external_project_id, ctx.external_user_id, ctx.initial_session_id,
        )
        return ctx

    @property
    def is_overleaf_mode(self) -> bool:
        return bool(self.external_project_id)

    @property
    def has_refresh_hook(self) -> bool:
        return self._refresh_hook is not None

    def bind_refresh_hook(self, hook: RefreshHook) -> None:
        """Bind the process-wide re-fetch entry point.

        Rebinding the same hook is a no-op; binding a different one raises
        LaunchContextError.
        """
        if self._refresh_hook is not None:
            if self._refresh_hook == hook:
                return
            raise LaunchContextError("refresh hook is already bound")
        self._refresh_hook = hook

    async def request_refresh(self) -> None:
        """Force a project re-fetch from anywhere holding the context."""
        if self._refresh_hook is None:
            logger.debug("request_refresh: no refresh hook bound yet")
            return
        await self._refresh_hook()
