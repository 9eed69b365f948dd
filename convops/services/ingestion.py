"""Conversation log ingestion from the call engine and the chat widget."""

from datetime import datetime, timedelta
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field

from convops.models import (
    CallType,
    ChannelType,
    ConversationLog,
    HandledBy,
    MessageLogEntry,
    Sender,
    utcnow,
)
from convops.models.common import ensure_utc
from convops.services.duration import resolve_duration
from convops.services.tenancy import TenantResolver
from convops.storage.base import StorageBackend

logger = structlog.get_logger()


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class CallSummary(_Payload):
    direction: CallType = CallType.INBOUND
    attempted_at: datetime | None = None
    answered_at: datetime | None = None
    terminated_at: datetime | None = None
    answered: bool = False
    duration_minutes: str | float | None = None
    # Seconds, when the engine reports a number instead of a string
    duration: float | None = None
    from_number: str | None = Field(default=None, alias="from")
    to_number: str | None = Field(default=None, alias="to")


class CallEvent(_Payload):
    type: str = ""
    user_transcript: str | None = None
    agent_response: str | None = None
    timestamp: datetime | None = None


class VoiceSessionPayload(_Payload):
    """Session summary posted by the call engine when a call ends."""

    call_sid: str | None = None
    application_sid: str | None = None
    conversation_id: str | None = None
    account_sid: str | None = None
    summary: CallSummary = Field(default_factory=CallSummary)
    events: list[CallEvent] = Field(default_factory=list)
    audio_url: str | None = None


class ChatUserDetails(_Payload):
    name: str | None = None
    email: str | None = None
    phone: str | None = None


class ChatMessage(_Payload):
    sender: Sender = Sender.USER
    message: str = ""
    timestamp: datetime | None = None
    tags: list[str] = Field(default_factory=list)


class ChatSessionPayload(_Payload):
    """Transcript posted by the chat widget when a chat closes."""

    conversation_id: str | None = None
    bot_id: str | None = None
    started_at: datetime | None = None
    ended_at: datetime | None = None
    duration_minutes: str | float | None = None
    user_details: ChatUserDetails = Field(default_factory=ChatUserDetails)
    message_log: list[ChatMessage] = Field(default_factory=list)


def is_chat_payload(payload: dict[str, Any]) -> bool:
    return payload.get("channel_type") == ChannelType.CHAT.value or bool(payload.get("bot_id"))


def build_voice_log(payload: VoiceSessionPayload) -> ConversationLog:
    summary = payload.summary
    started_at = ensure_utc(summary.attempted_at) or utcnow()
    ended_at = ensure_utc(summary.terminated_at)
    minutes, raw = resolve_duration(summary.duration_minutes, summary.duration, started_at, ended_at)

    message_log = []
    for index, event in enumerate(payload.events):
        message_log.append(MessageLogEntry(
            sender=Sender.USER if event.type == "user_input" else Sender.AGENT,
            message=event.user_transcript or event.agent_response or "",
            timestamp=event.timestamp or started_at + timedelta(seconds=index),
        ))

    return ConversationLog(
        call_sid=payload.call_sid,
        application_sid=payload.application_sid,
        account_sid=payload.account_sid,
        channel_type=ChannelType.VOICE,
        call_type=summary.direction,
        started_at=started_at,
        answered_at=summary.answered_at,
        ended_at=ended_at,
        answered=summary.answered,
        duration_minutes=minutes,
        duration_raw=raw,
        from_number=summary.from_number,
        to_number=summary.to_number,
        calling_number=summary.from_number,
        ivr_number=summary.to_number,
        disposition="answered" if summary.answered else "no-answer",
        handled_by=HandledBy.AI,
        message_log=message_log,
        audio_url=payload.audio_url,
    )


def build_chat_log(payload: ChatSessionPayload) -> ConversationLog:
    started_at = ensure_utc(payload.started_at) or utcnow()
    ended_at = ensure_utc(payload.ended_at) or utcnow()
    minutes, raw = resolve_duration(payload.duration_minutes, None, started_at, ended_at)

    details = payload.user_details
    visitor = details.phone or details.email or "chat_user"
    bot_ref = payload.bot_id or "chat_bot"

    return ConversationLog(
        call_sid=payload.conversation_id,
        application_sid=payload.bot_id,
        account_sid=payload.bot_id,
        bot_id=payload.bot_id,
        channel_type=ChannelType.CHAT,
        call_type=CallType.INBOUND,
        started_at=started_at,
        answered_at=started_at,
        ended_at=ended_at,
        answered=True,
        duration_minutes=minutes,
        duration_raw=raw,
        from_number=visitor,
        to_number=bot_ref,
        calling_number=visitor,
        ivr_number=bot_ref,
        disposition="answered",
        handled_by=HandledBy.AI,
        message_log=[
            MessageLogEntry(
                sender=msg.sender,
                message=msg.message,
                timestamp=msg.timestamp,
                tags=msg.tags,
            )
            for msg in payload.message_log
        ],
    )


class ConversationIngestor:
    """Turns engine and widget payloads into stored, attributed logs."""

    def __init__(self, storage: StorageBackend) -> None:
        self.storage = storage
        self.tenants = TenantResolver(storage)

    async def ingest(self, payload: dict[str, Any]) -> ConversationLog:
        if is_chat_payload(payload):
            log = build_chat_log(ChatSessionPayload.model_validate(payload))
        else:
            log = build_voice_log(VoiceSessionPayload.model_validate(payload))

        await self.tenants.attribute(log)
        log.conversation_id = f"conv_{log.id}"
        await self.storage.save_conversation_log(log)

        logger.info(
            "Conversation log saved",
            log_id=log.id,
            channel_type=log.channel_type.value,
            client_id=log.client_id,
            duration_minutes=round(log.duration_minutes, 2),
            messages=len(log.message_log),
        )
        return log
