"""texterm engine — workspace/session synchronization for the Overleaf terminal client."""
from .config import ClientConfig
from .errors import (
    ApiError,
    InvalidResponseError,
    LaunchContextError,
    SyncError,
    TransportError,
)

__all__ = [
    # Core (lazy import to avoid circular deps)
    "Workspace",
    "ProjectStore",
    "WorkspaceResolver",
    "ResolutionState",
    "PushChannelDispatcher",
    "SessionRouter",
    "ProgressDebouncer",
    "LaunchContext",
    "SelectionState",
    "ActiveView",
    "ApiClient",
    # Config
    "ClientConfig",
    "load_yaml_config",
    # Errors
    "ApiError",
    "InvalidResponseError",
    "LaunchContextError",
    "SyncError",
    "TransportError",
]

_LAZY = {
    "Workspace": ".workspace",
    "ProjectStore": ".project_store",
    "WorkspaceResolver": ".workspace_resolver",
    "ResolutionState": ".workspace_resolver",
    "PushChannelDispatcher": ".dispatcher",
    "SessionRouter": ".session_router",
    "ProgressDebouncer": ".progress",
    "LaunchContext": ".launch_context",
    "SelectionState": ".selection",
    "ActiveView": ".selection",
    "ApiClient": ".api_client",
    "load_yaml_config": ".yaml_config",
}


def __getattr__(name: str):
    module_name = _LAZY.get(name)
    if module_name is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    from importlib import import_module
    return getattr(import_module(module_name, __name__), name)
