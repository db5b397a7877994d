"""Push channel — latest-message slot plus a WebSocket reader feeding it.

The slot holds only the most recent message. Sending overwrites it and
dispatches synchronously to the subscriber; there is no backlog. The reader
does not reconnect: when the socket closes, ``run()`` returns.
"""
from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from typing import Any

import aiohttp

from texterm.engine.config import ClientConfig

logger = logging.getLogger(__name__)

MessageHandler = Callable[[dict[str, Any]], None]
StateListener = Callable[[bool], None]


class LatestMessageSlot:
    """Single-slot channel with overwrite-on-send semantics."""

    def __init__(self) -> None:
        self._latest: dict[str, Any] | None = None
        self._handler: MessageHandler | None = None
        self._closed = False

    @property
    def latest(self) -> dict[str, Any] | None:
        return self._latest

    def subscribe(self, handler: MessageHandler) -> None:
        self._handler = handler

    def send(self, message: dict[str, Any]) -> None:
        """Overwrite the slot and dispatch. Re-sending the same object is a no-op."""
        if self._closed or message is self._latest:
            return
        self._latest = message
        if self._handler is not None:
            try:
                self._handler(message)
            except Exception:
                logger.exception(
                    "Push message handler failed for type=%s", message.get("type")
                )

    def close(self) -> None:
        self._closed = True
        self._handler = None


class PushChannelClient:
    """Reads JSON push messages from the backend WebSocket into a slot."""

    def __init__(
        self,
        config: ClientConfig,
        slot: LatestMessageSlot,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config
        self._slot = slot
        self._session = session
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._state_listeners: list[StateListener] = []
        self.connected = False

    def add_state_listener(self, listener: StateListener) -> None:
        """Called with True on connect and False when the socket ends."""
        self._state_listeners.append(listener)

    def remove_state_listener(self, listener: StateListener) -> None:
        if listener in self._state_listeners:
            self._state_listeners.remove(listener)

    def _set_connected(self, connected: bool) -> None:
        if self.connected == connected:
            return
        self.connected = connected
        for listener in list(self._state_listeners):
            try:
                listener(connected)
            except Exception:
                logger.exception("Push channel state listener failed")

    def _headers(self) -> dict[str, str]:
        if self._config.auth_token:
            return {"Authorization": f"Bearer {self._config.auth_token}"}
        return {}

    def _handle_text(self, text: str) -> None:
        try:
            data = json.loads(text)
        except ValueError:
            logger.warning("Push channel: dropping non-JSON frame (%d bytes)", len(text))
            return
        if not isinstance(data, dict):
            logger.debug("Push channel: dropping non-object frame")
            return
        self._slot.send(data)

    async def run(self) -> None:
        """Connect and feed messages until the socket closes or errors."""
        url = self._config.push_url
        owns_session = self._session is None
        session = self._session or aiohttp.ClientSession()
        try:
            async with session.ws_connect(url, headers=self._headers(), heartbeat=30.0) as ws:
                self._ws = ws
                self._set_connected(True)
                logger.info("Push channel connected url=%s", url)
                async for msg in ws:
                    if msg.type == aiohttp.WSMsgType.TEXT:
                        self._handle_text(msg.data)
                    elif msg.type == aiohttp.WSMsgType.ERROR:
                        logger.warning("Push channel error: %s", ws.exception())
                        break
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.warning("Push channel unavailable url=%s: %s", url, exc)
        finally:
            self._ws = None
            self._set_connected(False)
            if owns_session:
                await session.close()
            logger.info("Push channel closed url=%s", url)

    async def close(self) -> None:
        if self._ws is not None and not self._ws.closed:
            await self._ws.close()
