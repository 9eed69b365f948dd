"""Conversation log ingestion and retrieval.

The call engine and chat widget post finished sessions here; staff and
tenant users read them back through their scope.
"""

from typing import Any

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, status
from pydantic import BaseModel, ValidationError

from convops.api.dependencies import (
    AdminUser,
    CurrentUser,
    IngestorDep,
    SentimentDep,
    SettingsDep,
    StorageDep,
    SummarizerDep,
    TenantResolverDep,
    UserScope,
    require_ingest_key,
)
from convops.core.exceptions import ResourceNotFound, ValidationFailed
from convops.models import ChannelType, ConversationFilter, ConversationLog, TenantScope, paginate
from convops.models.common import split_identifiers
from convops.storage.base import StorageBackend

logger = structlog.get_logger()

router = APIRouter(prefix="/api/conversations", tags=["Conversations"])

# Legacy ingestion path used by older call-engine deployments
report_router = APIRouter(prefix="/report", tags=["Conversations"])


# ==================== Pydantic Schemas ====================


class SummaryUpdate(BaseModel):
    summary: str


# ==================== Helpers ====================


async def _get_scoped_log(storage: StorageBackend, log_id: str, scope: TenantScope) -> ConversationLog:
    log = await storage.get_conversation_log(log_id)
    if not log or not scope.matches(log):
        raise ResourceNotFound("Conversation", log_id)
    return log


async def _ingest(
    payload: dict[str, Any],
    ingestor: IngestorDep,
    summarizer: SummarizerDep,
    config: SettingsDep,
    background_tasks: BackgroundTasks,
) -> dict[str, str]:
    if not payload:
        raise ValidationFailed("Conversation payload must be a non-empty object")

    try:
        log = await ingestor.ingest(payload)
    except ValidationError as e:
        errors = [{"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]} for err in e.errors()]
        raise ValidationFailed("Invalid conversation payload", details={"errors": errors}) from e
    if config.auto_summarize_conversations and log.message_log:
        background_tasks.add_task(summarizer.summarize_and_store, log.id)

    message = (
        "Chat conversation saved successfully"
        if log.channel_type == ChannelType.CHAT
        else "Conversation saved to reports table successfully"
    )
    return {"message": message, "conversation_id": log.conversation_id or log.id}


# ==================== Ingestion ====================


@router.post("/save", status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_ingest_key)])
async def save_conversation(
    payload: dict[str, Any],
    ingestor: IngestorDep,
    summarizer: SummarizerDep,
    config: SettingsDep,
    background_tasks: BackgroundTasks,
) -> dict[str, str]:
    """Store a voice session summary or a chat session from the widget."""
    return await _ingest(payload, ingestor, summarizer, config, background_tasks)


@report_router.post("/entry", status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_ingest_key)])
async def report_entry(
    payload: dict[str, Any],
    ingestor: IngestorDep,
    summarizer: SummarizerDep,
    config: SettingsDep,
    background_tasks: BackgroundTasks,
) -> dict[str, str]:
    return await _ingest(payload, ingestor, summarizer, config, background_tasks)


# ==================== Retrieval ====================


@router.get("")
@router.get("/", include_in_schema=False)
async def list_conversations(
    user: CurrentUser,
    scope: UserScope,
    storage: StorageDep,
    tenants: TenantResolverDep,
    client_id: str | None = None,
    channel_type: ChannelType | None = None,
    application_sid: str | None = None,
    page: int = 1,
    limit: int = 10,
) -> dict[str, Any]:
    """Conversations visible to the caller.

    ``client_id`` narrows the listing for internal staff only; tenant users
    are always confined to their own client.
    """
    if client_id and user.is_internal:
        client = await storage.get_client(client_id)
        scope = await tenants.scope_for_client(client) if client else TenantScope.for_client(client_id)

    filters = ConversationFilter(
        channel_type=channel_type,
        application_sids=frozenset(split_identifiers(application_sid)),
    )
    logs = await tenants.visible_logs(scope, filters)

    page_items, pagination = paginate(logs, page, limit)
    return {
        "conversations": [log.to_public() for log in page_items],
        "pagination": pagination.model_dump(),
    }


@router.get("/{log_id}")
async def get_conversation(log_id: str, user: CurrentUser, scope: UserScope, storage: StorageDep) -> dict[str, Any]:
    return (await _get_scoped_log(storage, log_id, scope)).to_public()


@router.put("/{log_id}/summary", dependencies=[Depends(require_ingest_key)])
async def update_summary(log_id: str, data: SummaryUpdate, storage: StorageDep) -> dict[str, Any]:
    """Attach an externally generated summary to a log."""
    log = await storage.get_conversation_log(log_id)
    if not log:
        raise ResourceNotFound("Conversation", log_id)

    log.summary = data.summary.strip() or None
    await storage.save_conversation_log(log)

    logger.info("Conversation summary updated", log_id=log.id)
    return {"message": "Summary updated successfully", "conversation": log.to_public()}


@router.post("/{log_id}/summarize")
async def summarize_conversation(
    log_id: str,
    storage: StorageDep,
    summarizer: SummarizerDep,
    admin: AdminUser,
) -> dict[str, Any]:
    """Generate a summary now instead of waiting for the background task."""
    log = await storage.get_conversation_log(log_id)
    if not log:
        raise ResourceNotFound("Conversation", log_id)

    summary = await summarizer.summarize_and_store(log.id)
    return {"conversation_id": log.conversation_id or log.id, "summary": summary}


@router.post("/{log_id}/sentiment")
async def analyze_conversation_sentiment(
    log_id: str,
    user: CurrentUser,
    scope: UserScope,
    storage: StorageDep,
    analyzer: SentimentDep,
) -> dict[str, Any]:
    """Label each transcript line and store the sentiment timeline."""
    log = await _get_scoped_log(storage, log_id, scope)
    await analyzer.annotate_log(log)
    await storage.save_conversation_log(log)
    return {
        "conversation_id": log.conversation_id or log.id,
        "method": analyzer.method,
        "sentiment_timeline": [point.model_dump(mode="json") for point in log.sentiment_timeline],
    }
