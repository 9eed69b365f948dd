"""Conversation log models."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import Field

from convops.models.common import TimestampedModel, UTCModel, utcnow


class ChannelType(str, Enum):
    """Channel a conversation took place on."""

    VOICE = "voice"
    TEXT = "text"
    CHAT = "chat"


# Channels counted as text-based sessions in reports
TEXT_CHANNELS = (ChannelType.TEXT, ChannelType.CHAT)


class CallType(str, Enum):
    INBOUND = "inbound"
    OUTBOUND = "outbound"
    TRANSFER = "transfer"


class HandledBy(str, Enum):
    AI = "AI"
    HUMAN = "Human"
    HYBRID = "Hybrid"


class Sender(str, Enum):
    USER = "user"
    AGENT = "agent"


class MessageLogEntry(UTCModel):
    """One transcript line."""

    sender: Sender
    message: str = ""
    timestamp: datetime | None = None
    sentiment: str = "neutral"
    tags: list[str] = Field(default_factory=list)


class SentimentPoint(UTCModel):
    timestamp: datetime | None = None
    sentiment: str


class ConversationLog(TimestampedModel):
    """Persisted record of one completed conversation session.

    Written once by the ingestion endpoint; afterwards only the summary and
    sentiment annotations change.
    """

    conversation_id: str | None = None
    call_sid: str | None = None
    application_sid: str | None = None
    account_sid: str | None = None

    # Tenant attribution: direct for chat, via application_sid for voice
    client_id: str | None = None
    bot_id: str | None = None
    avatar_id: str | None = None

    channel_type: ChannelType = ChannelType.VOICE
    call_type: CallType = CallType.INBOUND

    started_at: datetime | None = None
    answered_at: datetime | None = None
    ended_at: datetime | None = None
    answered: bool = False

    # Always minutes; normalised from the engine's duration string at write time
    duration_minutes: float = 0.0
    duration_raw: str | None = None
    token_count: int | None = None

    from_number: str | None = None
    to_number: str | None = None
    calling_number: str | None = None
    ivr_number: str | None = None
    disposition: str | None = None
    language: str = "en"

    agent_id: str | None = None
    agent_name: str | None = None
    agent_voice_name: str | None = None
    handled_by: HandledBy = HandledBy.AI

    message_log: list[MessageLogEntry] = Field(default_factory=list)
    sentiment_timeline: list[SentimentPoint] = Field(default_factory=list)

    audio_url: str | None = None
    summary: str | None = None
    follow_up_status: str | None = None
    follow_up_notes: str | None = None
    lead_source: str | None = None
    rag_confidence_score: str | None = None
    feedback_rating: float | None = None

    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def activity_at(self) -> datetime:
        """Timestamp used for day buckets and ordering."""
        return self.started_at or self.created_at

    def transcript(self) -> str:
        """Plain-text transcript for summarisation."""
        lines = []
        for entry in self.message_log:
            role = "user" if entry.sender == Sender.USER else "assistant"
            if entry.message:
                lines.append(f"{role}: {entry.message}")
        return "\n".join(lines)

    def to_public(self) -> dict[str, Any]:
        return self.model_dump(mode="json")
