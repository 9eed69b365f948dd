"""Bot and avatar models."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from convops.models.common import TimestampedModel, utcnow


class BotType(str, Enum):
    """Channel a bot is deployed on."""

    VOICE = "voice"
    CHAT = "chat"
    WHATSAPP = "whatsapp"
    SMS = "sms"


# Bot types routed by phone number (DNIS)
NUMBER_ROUTED_TYPES = (BotType.VOICE, BotType.SMS)


class BotCategory(str, Enum):
    CUSTOMER_SUPPORT = "customer_support"
    SALES = "sales"
    TECHNICAL = "technical"
    GENERAL = "general"
    MARKETING = "marketing"
    HR = "hr"
    FINANCE = "finance"


class PromptFieldType(str, Enum):
    TEXT = "text"
    EMAIL = "email"
    PHONE = "phone"


class UserPromptField(BaseModel):
    """A detail the chat widget asks the visitor for."""

    name: str
    label: str
    required: bool = False
    type: PromptFieldType = PromptFieldType.TEXT


class ChatSettings(BaseModel):
    require_user_details: bool = True
    auto_save_conversations: bool = True


DEFAULT_WELCOME_MESSAGE = "Welcome! How can I help you today?"


def default_prompt_fields() -> list[UserPromptField]:
    return [
        UserPromptField(name="name", label="Your Name", required=True, type=PromptFieldType.TEXT),
        UserPromptField(name="email", label="Email Address", required=True, type=PromptFieldType.EMAIL),
        UserPromptField(name="phone", label="Phone Number", required=False, type=PromptFieldType.PHONE),
    ]


class Bot(TimestampedModel):
    """A configured conversational agent bound to a client."""

    name: str
    type: BotType = BotType.VOICE
    dnis: list[str] = Field(default_factory=list)
    webhook_url: str | None = None
    asr_provider: Any = None
    tts_provider: Any = None
    channels: list[str] = Field(default_factory=list)
    client_id: str | None = None
    description: str | None = None
    category: BotCategory = BotCategory.GENERAL
    active: bool = True
    settings: dict[str, Any] = Field(default_factory=dict)

    # Chat-specific
    welcome_message: str = DEFAULT_WELCOME_MESSAGE
    user_prompt_fields: list[UserPromptField] = Field(default_factory=list)
    chat_settings: ChatSettings = Field(default_factory=ChatSettings)

    updated_at: datetime = Field(default_factory=utcnow)


class AvatarType(str, Enum):
    TEXT = "text"
    VOICE = "voice"


class AvatarStatus(str, Enum):
    LIVE = "live"
    DRAFT = "draft"


class Avatar(TimestampedModel):
    """A reusable voice/text persona assignable to clients."""

    name: str
    type: AvatarType = AvatarType.TEXT
    description: str | None = None
    assigned_language: str | None = None
    supports_text: bool = False
    supports_voice: bool = False
    status: AvatarStatus = AvatarStatus.DRAFT
    category: str | None = None
    image_url: str | None = None
    assigned_on: datetime | None = None
    created_by: str | None = None
