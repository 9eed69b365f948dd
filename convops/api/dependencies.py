"""FastAPI dependencies for dependency injection."""

import hmac
from datetime import datetime
from typing import Annotated, Callable

import structlog
from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from convops.core.config import Settings, settings
from convops.core.exceptions import AccessDenied, AuthenticationFailed
from convops.core.security import decode_access_token
from convops.models import (
    INTERNAL_ROLES,
    TENANT_ROLES,
    ChannelType,
    ConversationFilter,
    TenantScope,
    User,
    UserRole,
)
from convops.models.common import split_identifiers
from convops.services.analytics import AnalyticsService
from convops.services.auth import AuthService, ensure_active
from convops.services.email import Mailer, get_mailer
from convops.services.ingestion import ConversationIngestor
from convops.services.llm.provider import LLMProvider, get_llm_provider
from convops.services.sentiment.analyzer import SentimentAnalyzer, get_sentiment_analyzer
from convops.services.summarizer import ConversationSummarizer
from convops.services.tenancy import TenantResolver
from convops.storage.base import StorageBackend
from convops.storage.memory import InMemoryStorage

logger = structlog.get_logger()

bearer_scheme = HTTPBearer(auto_error=False)


# Storage singleton
_storage: StorageBackend | None = None


def get_storage() -> StorageBackend:
    """Get the storage backend singleton.

    ``storage_backend`` selects Firestore; anything else keeps data in memory.
    """
    global _storage
    if _storage is None:
        if settings.storage_backend == "firestore":
            from convops.storage.firestore import FirestoreStorage
            _storage = FirestoreStorage(project_id=settings.gcp_project_id)
        else:
            _storage = InMemoryStorage()
    return _storage


# Type aliases for cleaner dependency injection
StorageDep = Annotated[StorageBackend, Depends(get_storage)]
SettingsDep = Annotated[Settings, Depends(lambda: settings)]
MailerDep = Annotated[Mailer, Depends(get_mailer)]
LLMDep = Annotated[LLMProvider, Depends(get_llm_provider)]
SentimentDep = Annotated[SentimentAnalyzer, Depends(get_sentiment_analyzer)]


def get_auth_service(storage: StorageDep, mailer: MailerDep) -> AuthService:
    return AuthService(storage, mailer)


def get_tenant_resolver(storage: StorageDep) -> TenantResolver:
    return TenantResolver(storage)


def get_analytics(storage: StorageDep) -> AnalyticsService:
    return AnalyticsService(storage)


def get_ingestor(storage: StorageDep) -> ConversationIngestor:
    return ConversationIngestor(storage)


def get_summarizer(storage: StorageDep, llm: LLMDep) -> ConversationSummarizer:
    return ConversationSummarizer(storage, llm)


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
TenantResolverDep = Annotated[TenantResolver, Depends(get_tenant_resolver)]
AnalyticsDep = Annotated[AnalyticsService, Depends(get_analytics)]
IngestorDep = Annotated[ConversationIngestor, Depends(get_ingestor)]
SummarizerDep = Annotated[ConversationSummarizer, Depends(get_summarizer)]


# ==================== Authentication ====================


async def get_current_user(
    storage: StorageDep,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> User:
    """Resolve the bearer token to an active user."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationFailed("Access denied. No token provided.")

    user_id = decode_access_token(credentials.credentials)
    user = await storage.get_user(user_id)
    return ensure_active(user)


CurrentUser = Annotated[User, Depends(get_current_user)]


def require_roles(*roles: UserRole) -> Callable:
    """Dependency factory admitting only the listed roles.

    With no roles any authenticated user passes.
    """

    async def checker(user: CurrentUser) -> User:
        if roles and user.role not in roles:
            logger.info("Role check failed", user_id=user.id, role=user.role.value)
            raise AccessDenied("Access denied. Insufficient role.")
        return user

    return checker


AdminUser = Annotated[User, Depends(require_roles(*INTERNAL_ROLES))]
TenantUser = Annotated[User, Depends(require_roles(*TENANT_ROLES))]


async def get_user_scope(user: CurrentUser, tenants: TenantResolverDep) -> TenantScope:
    return await tenants.scope_for_user(user)


UserScope = Annotated[TenantScope, Depends(get_user_scope)]


async def require_ingest_key(x_api_key: str | None = Header(default=None)) -> None:
    """Guard for endpoints called by the call engine and chat widget.

    Disabled when no ``ingest_api_key`` is configured.
    """
    if not settings.ingest_api_key:
        return
    if not x_api_key or not hmac.compare_digest(x_api_key, settings.ingest_api_key):
        logger.warning("Rejected ingest request with bad API key")
        raise AuthenticationFailed("Invalid API key.")


# ==================== Conversation filters ====================


async def get_conversation_filter(
    channel_type: ChannelType | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    avatar: str | None = None,
    application_sid: str | None = None,
) -> ConversationFilter:
    """Request filters shared by every conversation log listing."""
    return ConversationFilter(
        channel_type=channel_type,
        avatar_id=avatar or None,
        application_sids=frozenset(split_identifiers(application_sid)),
        date_from=date_from,
        date_to=date_to,
    )


LogFilterDep = Annotated[ConversationFilter, Depends(get_conversation_filter)]
