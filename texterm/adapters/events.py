"""Push messages delivered by the server over the push channel.

Each message is a JSON object with a ``type`` discriminator, parsed into a
typed dataclass for safe consumption by the dispatcher. The original dict is
kept on ``raw`` so payload fields this client does not model survive.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

PHASE_COMPLETE = "complete"


@dataclass
class PushMessage:
    """Base push message. Unknown types parse to this class."""
    type: str = ""
    raw: dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass
class LoadingProgress(PushMessage):
    """Server-side project scan progress."""
    type: str = "loading_progress"
    phase: str = ""
    current: int | None = None
    total: int | None = None
    current_project: str | None = None

    @property
    def is_complete(self) -> bool:
        return self.phase == PHASE_COMPLETE


@dataclass
class ProjectsUpdated(PushMessage):
    """Another actor changed the backing project store."""
    type: str = "projects_updated"


@dataclass
class ProjectsRefresh(PushMessage):
    """Server asks clients to re-fetch the project list."""
    type: str = "projects_refresh"


# Map of message type strings to dataclass constructors
_MESSAGE_MAP: dict[str, type[PushMessage]] = {
    "loading_progress": LoadingProgress,
    "projects_updated": ProjectsUpdated,
    "projects_refresh": ProjectsRefresh,
}

# Wire names that differ from the dataclass field names
_FIELD_ALIASES = {"currentProject": "current_project"}

REFRESH_TYPES = frozenset({"projects_updated", "projects_refresh"})


def message_to_dict(message: PushMessage) -> dict[str, Any]:
    """Convert a typed message back to its wire dict."""
    d: dict[str, Any] = dict(message.raw)
    reverse = {v: k for k, v in _FIELD_ALIASES.items()}
    for f in message.__dataclass_fields__:
        if f == "raw":
            continue
        val = getattr(message, f)
        if val is not None:
            d[reverse.get(f, f)] = val
    return d


def dict_to_message(data: dict[str, Any]) -> PushMessage:
    """Convert a decoded push payload to a typed message dataclass."""
    msg_type = data.get("type", "")
    if not isinstance(msg_type, str):
        msg_type = ""
    cls = _MESSAGE_MAP.get(msg_type, PushMessage)
    valid_fields = {f for f in cls.__dataclass_fields__ if f != "raw"}
    filtered: dict[str, Any] = {}
    for key, value in data.items():
        name = _FIELD_ALIASES.get(key, key)
        if name in valid_fields:
            filtered[name] = value
    filtered["type"] = msg_type
    return cls(raw=dict(data), **filtered)
