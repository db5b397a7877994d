"""Exception hierarchy for the workspace sync engine.

Network failures are raised by the API client and caught at component
boundaries, where they are logged and prior state is kept.
"""
from __future__ import annotations


class SyncError(Exception):
    """Base exception for all sync engine errors."""


class ApiError(SyncError):
    """Server answered with a non-success status."""
    def __init__(self, method: str, url: str, status: int, body: str = ""):
        self.method = method
        self.url = url
        self.status = status
        self.body = body
        super().__init__(f"{method} {url} failed with HTTP {status}")


class TransportError(SyncError):
    """Request never produced a response (connection, DNS, timeout)."""
    def __init__(self, method: str, url: str, reason: str):
        self.method = method
        self.url = url
        self.reason = reason
        super().__init__(f"{method} {url} failed: {reason}")


class InvalidResponseError(SyncError):
    """Response body could not be decoded into the expected shape."""
    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Invalid response from {url}: {reason}")


class LaunchContextError(SyncError):
    """Init-once launch state was initialized twice."""
