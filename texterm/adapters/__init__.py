"""Adapters package - push channel plumbing between the backend and the engine.

Contains the push message types and the latest-message channel that feeds
the engine's dispatcher.
"""
from __future__ import annotations

__all__ = [
    "PushMessage",
    "LoadingProgress",
    "dict_to_message",
    "LatestMessageSlot",
    "PushChannelClient",
]

from texterm.adapters.events import LoadingProgress, PushMessage, dict_to_message
from texterm.adapters.push_channel import LatestMessageSlot, PushChannelClient
