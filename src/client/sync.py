# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Client side of the status sync channel.

Subscribes to /status/stream for pushed status updates and falls back to
polling the status endpoint while the stream is unavailable.
"""

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import websockets

from src.core.config.settings import ClientSettings

logger = logging.getLogger(__name__)

PushHandler = Callable[[dict[str, Any]], None]
PollHandler = Callable[[], Awaitable[None]]


class StatusSubscriber:
    """Keeps local state fresh from pushes, or by polling.

    Attributes:
        connected: True while the WebSocket stream is joined.
    """

    RECONNECT_DELAY_SECONDS = 5.0

    def __init__(
        self,
        settings: ClientSettings,
        on_update: PushHandler,
        poll: PollHandler,
        on_connection_change: Callable[[bool], None] | None = None,
    ) -> None:
        self.settings = settings
        self._on_update = on_update
        self._poll = poll
        self._on_connection_change = on_connection_change
        self.connected = False
        self._tasks: list[asyncio.Task] = []

    def start(self) -> None:
        loop = asyncio.get_running_loop()
        self._tasks = [
            loop.create_task(self._stream_loop()),
            loop.create_task(self._poll_loop()),
        ]

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks = []
        self._set_connected(False)

    def handle_message(self, message: dict[str, Any]) -> None:
        """Dispatch one message received on the stream."""
        msg_type = message.get("type")
        if msg_type == "joined":
            self._set_connected(True)
        elif msg_type == "status_update":
            self._on_update(message)
        elif msg_type == "error":
            logger.warning("Status stream error: %s", message.get("message"))

    async def _stream_loop(self) -> None:
        while True:
            try:
                async with websockets.connect(self.settings.ws_url) as websocket:
                    await websocket.send(json.dumps({
                        "type": "join_student",
                        "student_id": self.settings.student_id,
                    }))
                    async for raw in websocket:
                        try:
                            message = json.loads(raw)
                        except json.JSONDecodeError:
                            logger.debug("Ignoring non-JSON stream message")
                            continue
                        if isinstance(message, dict):
                            self.handle_message(message)
            except (OSError, websockets.WebSocketException) as e:
                logger.info("Status stream unavailable: %s", str(e))

            self._set_connected(False)
            await asyncio.sleep(self.RECONNECT_DELAY_SECONDS)

    async def _poll_loop(self) -> None:
        while True:
            await asyncio.sleep(self.settings.poll_interval_seconds)
            if not self.connected:
                await self._poll()

    def _set_connected(self, connected: bool) -> None:
        if connected == self.connected:
            return
        self.connected = connected
        if self._on_connection_change is not None:
            self._on_connection_change(connected)
