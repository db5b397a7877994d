"""Project and session records as served by ``GET /api/projects``.

Only the fields the sync engine reasons about are typed. Everything else the
server sends is kept in ``extra`` and written back unchanged by ``to_dict``,
so structural comparisons see the full record.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from typing import Any

# The only provider tag this client ever assigns to a session view.
DEFAULT_PROVIDER = "claude"


def _canonical(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)


@dataclass
class Session:
    """One persisted transcript tied to a backend provider."""

    id: str
    provider: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Session:
        extra = {k: v for k, v in data.items() if k not in ("id", "__provider")}
        return cls(
            id=str(data.get("id", "")),
            provider=data.get("__provider"),
            extra=extra,
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"id": self.id, **self.extra}
        if self.provider is not None:
            d["__provider"] = self.provider
        return d

    def with_provider(self, provider: str = DEFAULT_PROVIDER) -> Session:
        return replace(self, provider=provider)


@dataclass
class SessionMeta:
    """Session summary for a project. ``total`` may include unloaded sessions."""

    total: int = 0
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> SessionMeta:
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValueError(f"sessionMeta must be an object, got {type(data).__name__}")
        if not data:
            return cls()
        try:
            total = int(data.get("total") or 0)
        except (TypeError, ValueError):
            total = 0
        extra = {k: v for k, v in data.items() if k != "total"}
        return cls(total=max(0, total), extra=extra)

    def to_dict(self) -> dict[str, Any]:
        return {**self.extra, "total": self.total}

    def decremented(self) -> SessionMeta:
        return replace(self, total=max(0, self.total - 1))


@dataclass
class Project:
    """A tracked workspace directory and its sessions.

    ``path`` is the legacy alias for ``full_path``; older servers only send
    one of the two.
    """

    name: str
    display_name: str = ""
    full_path: str = ""
    path: str | None = None
    sessions: list[Session] = field(default_factory=list)
    session_meta: SessionMeta = field(default_factory=SessionMeta)
    extra: dict[str, Any] = field(default_factory=dict)

    _KNOWN_KEYS = ("name", "displayName", "fullPath", "path", "sessions", "sessionMeta")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Project:
        """Build a project from its wire dict.

        Raises ValueError when the record or one of its nested values has
        the wrong shape.
        """
        if not isinstance(data, dict):
            raise ValueError(f"project must be an object, got {type(data).__name__}")
        raw_sessions = data.get("sessions") or []
        if not isinstance(raw_sessions, list):
            raise ValueError(f"sessions must be a list, got {type(raw_sessions).__name__}")
        sessions = [Session.from_dict(s) for s in raw_sessions if isinstance(s, dict)]
        return cls(
            name=str(data.get("name", "")),
            display_name=str(data.get("displayName") or data.get("name") or ""),
            full_path=str(data.get("fullPath") or data.get("path") or ""),
            path=data.get("path"),
            sessions=sessions,
            session_meta=SessionMeta.from_dict(data.get("sessionMeta")),
            extra={k: v for k, v in data.items() if k not in cls._KNOWN_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            **self.extra,
            "name": self.name,
            "displayName": self.display_name,
            "fullPath": self.full_path,
            "sessions": [s.to_dict() for s in self.sessions],
            "sessionMeta": self.session_meta.to_dict(),
        }
        if self.path is not None:
            d["path"] = self.path
        return d

    def matches_path(self, path: str) -> bool:
        return self.full_path == path or (self.path is not None and self.path == path)

    def find_session(self, session_id: str) -> Session | None:
        for session in self.sessions:
            if session.id == session_id:
                return session
        return None

    def has_session(self, session_id: str) -> bool:
        return self.find_session(session_id) is not None

    def without_session(self, session_id: str) -> Project:
        """Copy with the session removed and the total decremented (floor 0)."""
        if not self.has_session(session_id):
            return self
        return replace(
            self,
            sessions=[s for s in self.sessions if s.id != session_id],
            session_meta=self.session_meta.decremented(),
        )

    def sync_signature(self) -> tuple[str, str, str, str, str]:
        """Fields compared when deciding whether a refresh changed anything."""
        return (
            self.name,
            self.display_name,
            self.full_path,
            _canonical(self.session_meta.to_dict()),
            _canonical([s.to_dict() for s in self.sessions]),
        )


def projects_from_payload(payload: Any) -> list[Project]:
    """Parse a ``GET /api/projects`` body. Accepts a bare list or ``{"projects": [...]}``."""
    if isinstance(payload, dict):
        payload = payload.get("projects")
    if not isinstance(payload, list):
        raise ValueError("expected a list of projects")
    return [Project.from_dict(p) for p in payload if isinstance(p, dict)]
