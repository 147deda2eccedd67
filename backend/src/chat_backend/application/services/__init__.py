"""Chat service: turns one inbound user message into one AI reply.

Sits between the transports (REST, websocket) and the failover
orchestrator.  Validates the message, asks the orchestrator for a reply,
and guarantees a reply even if something unexpected breaks underneath.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

import structlog

from chat_backend.domain.enums import ReplySource
from chat_backend.domain.services.fallback import excerpt
from chat_backend.shared.providers.gateway import FailoverOrchestrator

logger = structlog.get_logger(__name__)

INVALID_MESSAGE_REPLY = (
    "I didn't receive your message properly. Could you please try again?"
)

EMERGENCY_REPLY = (
    "I apologize, but I'm experiencing some technical difficulties right now. "
    "I'm still here to help though! Could you please try asking your question again?"
)


@dataclass(frozen=True)
class ChatReply:
    text: str
    source: ReplySource
    sender: str = "ai"
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class ChatService:
    def __init__(self, orchestrator: FailoverOrchestrator) -> None:
        self._orchestrator = orchestrator

    async def reply_to(self, text: object) -> ChatReply:
        """Reply to a raw message payload; never raises."""
        if not isinstance(text, str) or not text.strip():
            logger.info("chat_message_invalid")
            return ChatReply(text=INVALID_MESSAGE_REPLY, source=ReplySource.ERROR)

        logger.info("chat_message_received", preview=excerpt(text, 100))
        try:
            reply = await self._orchestrator.generate_reply(text)
        except Exception as exc:
            logger.exception("chat_reply_failed", error=str(exc))
            return ChatReply(text=EMERGENCY_REPLY, source=ReplySource.EMERGENCY)

        logger.info("chat_reply_sent", source=reply.source.value, preview=excerpt(reply.text))
        return ChatReply(text=reply.text, source=reply.source)
