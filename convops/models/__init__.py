"""Data models for the application."""

from convops.models.bot import (
    Avatar,
    AvatarStatus,
    AvatarType,
    Bot,
    BotCategory,
    BotType,
    ChatSettings,
    UserPromptField,
)
from convops.models.common import Pagination, paginate, utcnow
from convops.models.conversation import (
    CallType,
    ChannelType,
    ConversationLog,
    HandledBy,
    MessageLogEntry,
    Sender,
    SentimentPoint,
)
from convops.models.scope import ConversationFilter, TenantScope
from convops.models.tenant import (
    ApplicationChannel,
    ApplicationStatus,
    Client,
    ClientApplication,
    ClientStatus,
)
from convops.models.user import (
    INTERNAL_ROLES,
    PROFILE_EDIT_ROLES,
    TENANT_ROLES,
    User,
    UserRole,
    UserStatus,
)

__all__ = [
    # Users
    "User",
    "UserRole",
    "UserStatus",
    "INTERNAL_ROLES",
    "TENANT_ROLES",
    "PROFILE_EDIT_ROLES",
    # Tenants
    "Client",
    "ClientStatus",
    "ClientApplication",
    "ApplicationStatus",
    "ApplicationChannel",
    # Bots & avatars
    "Bot",
    "BotType",
    "BotCategory",
    "ChatSettings",
    "UserPromptField",
    "Avatar",
    "AvatarStatus",
    "AvatarType",
    # Conversations
    "ConversationLog",
    "ChannelType",
    "CallType",
    "HandledBy",
    "MessageLogEntry",
    "Sender",
    "SentimentPoint",
    # Scoping
    "TenantScope",
    "ConversationFilter",
    # Helpers
    "Pagination",
    "paginate",
    "utcnow",
]
