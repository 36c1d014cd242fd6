# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Status stream WebSocket endpoint.

Pushes engagement state changes to the student client:
- WebSocket /status/stream - per-student status_update events

Protocol:
    client -> {"type": "join_student", "student_id": "s-1"}
    server -> {"type": "joined", "student_id": "s-1"}
    server -> {"type": "status_update", "status": "remedial", "intervention": {...}}
    client -> {"type": "ping"}
    server -> {"type": "pong", "timestamp": "..."}

The student can also be given as ?student_id= on connect. Delivery is
best-effort; clients poll GET /student/{id}/status when the stream is
unavailable.
"""

import asyncio
import json
import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from src.infrastructure.events import EventData, EventTypes, get_event_bus
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)

router = APIRouter()


class StreamConnection:
    """One WebSocket client and its outgoing message queue.

    Attributes:
        websocket: The WebSocket connection.
        student_id: Student whose updates are forwarded, once joined.
        message_queue: Async queue for outgoing messages.
    """

    def __init__(self, websocket: WebSocket) -> None:
        self.websocket = websocket
        self.student_id: str | None = None
        self.message_queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        self._closed = False

    async def send_message(self, message: dict[str, Any]) -> None:
        if not self._closed:
            await self.message_queue.put(message)

    def close(self) -> None:
        self._closed = True


class StatusStreamManager:
    """Routes status events from the event bus to joined connections."""

    def __init__(self) -> None:
        self._connections: dict[str, list[StreamConnection]] = {}
        self._subscribed = False

    def _ensure_event_subscription(self) -> None:
        if self._subscribed:
            return
        get_event_bus().subscribe(EventTypes.Engagement.STATUS_UPDATED, self._handle_event)
        self._subscribed = True
        logger.info("Status stream subscribed to EventBus")

    async def _handle_event(self, event: EventData) -> None:
        if not event.student_id:
            return
        connections = self._connections.get(event.student_id, [])
        if not connections:
            return

        message = {"type": "status_update", **event.payload}
        for conn in list(connections):
            await conn.send_message(message)

    def join(self, conn: StreamConnection, student_id: str) -> None:
        """Attach a connection to a student, leaving any previous one."""
        self._ensure_event_subscription()
        self.leave(conn)
        conn.student_id = student_id
        self._connections.setdefault(student_id, []).append(conn)
        logger.info("Status stream joined: student=%s", student_id)

    def leave(self, conn: StreamConnection) -> None:
        student_id = conn.student_id
        if student_id is None:
            return
        connections = self._connections.get(student_id, [])
        if conn in connections:
            connections.remove(conn)
        if not connections:
            self._connections.pop(student_id, None)
        conn.student_id = None

    def connection_count(self, student_id: str) -> int:
        return len(self._connections.get(student_id, []))

    def reset(self) -> None:
        """Drop all connections and the bus subscription. Used by tests."""
        if self._subscribed:
            get_event_bus().unsubscribe(EventTypes.Engagement.STATUS_UPDATED, self._handle_event)
        self._connections.clear()
        self._subscribed = False


# Singleton manager instance
_stream_manager: StatusStreamManager | None = None


def get_stream_manager() -> StatusStreamManager:
    """Get the singleton status stream manager."""
    global _stream_manager
    if _stream_manager is None:
        _stream_manager = StatusStreamManager()
    return _stream_manager


async def _join(conn: StreamConnection, student_id: Any) -> None:
    if not student_id or not str(student_id).strip():
        await conn.websocket.send_json({
            "type": "error",
            "code": "STUDENT_ID_REQUIRED",
            "message": "join_student requires student_id",
        })
        return
    student_id = str(student_id).strip()
    get_stream_manager().join(conn, student_id)
    await conn.websocket.send_json({"type": "joined", "student_id": student_id})


@router.websocket("/status/stream")
async def status_stream_websocket(websocket: WebSocket) -> None:
    """WebSocket endpoint streaming status updates for one student."""
    await websocket.accept()

    conn = StreamConnection(websocket)
    manager = get_stream_manager()
    sender_task = asyncio.create_task(_message_sender(websocket, conn))

    try:
        initial_student = websocket.query_params.get("student_id")
        if initial_student:
            await _join(conn, initial_student)

        while True:
            raw = await websocket.receive_text()
            try:
                data = json.loads(raw)
            except ValueError:
                await websocket.send_json({
                    "type": "error",
                    "code": "INVALID_JSON",
                    "message": "Messages must be JSON objects",
                })
                continue
            msg_type = data.get("type") if isinstance(data, dict) else None

            if msg_type == "join_student":
                await _join(conn, data.get("student_id"))

            elif msg_type == "ping":
                await websocket.send_json({
                    "type": "pong",
                    "timestamp": utc_now().isoformat(),
                })

            else:
                await websocket.send_json({
                    "type": "error",
                    "code": "UNKNOWN_MESSAGE_TYPE",
                    "message": f"Unknown message type: {msg_type}",
                })

    except WebSocketDisconnect:
        logger.debug("Status stream disconnected: student=%s", conn.student_id)

    finally:
        conn.close()
        manager.leave(conn)
        sender_task.cancel()
        try:
            await sender_task
        except asyncio.CancelledError:
            pass


async def _message_sender(websocket: WebSocket, conn: StreamConnection) -> None:
    """Send queued messages until the connection goes away."""
    while True:
        message = await conn.message_queue.get()
        try:
            await websocket.send_json(message)
        except (WebSocketDisconnect, RuntimeError) as e:
            logger.debug("Failed to send status update: %s", str(e))
            break
