"""WebSocket chat channel.

``/ws/v1/chat`` carries JSON frames in both directions:

- client → server: ``{"text": "..."}``
- server → client: ``{"event": "aiMessage", "data": {...}}`` and
  ``{"event": "apiStatus", "data": {...}}``
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from chat_backend.application.dtos import ApiStatusResponse, ChatReplyResponse
from chat_backend.application.services import EMERGENCY_REPLY, ChatReply, ChatService
from chat_backend.dependencies import ProviderStack
from chat_backend.domain.enums import ReplySource

logger = structlog.get_logger(__name__)

ws_router = APIRouter(tags=["WebSocket"])


def _status_frame(stack: ProviderStack) -> dict[str, Any]:
    status = ApiStatusResponse.from_status(
        stack.status_reporter.status(), datetime.now(timezone.utc)
    )
    return {"event": "apiStatus", "data": status.model_dump(mode="json", by_alias=True)}


def _reply_frame(reply: ChatReplyResponse) -> dict[str, Any]:
    return {"event": "aiMessage", "data": reply.model_dump(mode="json", by_alias=True)}


def _extract_text(raw: str | None) -> object:
    if raw is None:
        return None
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError:
        return None
    return payload.get("text") if isinstance(payload, dict) else None


@ws_router.websocket("/ws/v1/chat")
async def chat_stream(ws: WebSocket) -> None:
    """Answer each user message frame with an AI reply plus a status update."""
    stack: ProviderStack = ws.app.state.providers
    service = ChatService(stack.orchestrator)

    await ws.accept()
    client = ws.client.host if ws.client else "unknown"
    log = logger.bind(client=client)
    log.info("ws_chat_connected")

    status = _status_frame(stack)
    await ws.send_json(status)
    log.info(
        "ws_status_sent",
        active=status["data"]["activeProviders"],
        total=status["data"]["totalProviders"],
    )

    try:
        while True:
            message = await ws.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))

            # Binary frames carry no "text" key and count as invalid input
            status_update: dict[str, Any] | None = None
            try:
                reply = await service.reply_to(_extract_text(message.get("text")))
                status_update = _status_frame(stack)
            except Exception as exc:
                log.exception("ws_chat_frame_failed", error=str(exc))
                reply = ChatReply(text=EMERGENCY_REPLY, source=ReplySource.EMERGENCY)

            await ws.send_json(_reply_frame(ChatReplyResponse.from_reply(reply)))
            if status_update is not None:
                await ws.send_json(status_update)
    except WebSocketDisconnect:
        log.info("ws_chat_disconnected")
