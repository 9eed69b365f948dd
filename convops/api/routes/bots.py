"""Bot configuration endpoints."""

from typing import Any

import structlog
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from convops.api.dependencies import AdminUser, CurrentUser, StorageDep, require_ingest_key
from convops.core.exceptions import AccessDenied, ResourceNotFound, ValidationFailed
from convops.models import Bot, BotCategory, BotType, ChatSettings, UserPromptField, paginate
from convops.models.bot import DEFAULT_WELCOME_MESSAGE, NUMBER_ROUTED_TYPES, default_prompt_fields
from convops.storage.base import StorageBackend

logger = structlog.get_logger()

router = APIRouter(prefix="/api/admin/bots", tags=["Bots"])


# ==================== Pydantic Schemas ====================


class BotCreate(BaseModel):
    name: str = Field(..., min_length=1)
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
    welcome_message: str | None = None
    user_prompt_fields: list[UserPromptField] | None = None
    chat_settings: ChatSettings | None = None


class BotUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    type: BotType | None = None
    dnis: list[str] | None = None
    webhook_url: str | None = None
    asr_provider: Any = None
    tts_provider: Any = None
    channels: list[str] | None = None
    client_id: str | None = None
    description: str | None = None
    category: BotCategory | None = None
    active: bool | None = None
    settings: dict[str, Any] | None = None
    welcome_message: str | None = None
    user_prompt_fields: list[UserPromptField] | None = None
    chat_settings: ChatSettings | None = None


# ==================== Helpers ====================


async def _get_bot_or_404(storage: StorageBackend, bot_id: str) -> Bot:
    bot = await storage.get_bot(bot_id)
    if not bot:
        raise ResourceNotFound("Bot", bot_id)
    return bot


async def _validated(storage: StorageBackend, bot: Bot) -> Bot:
    """Apply the per-type rules to a bot about to be saved.

    Only voice and SMS bots keep phone numbers, and each number routes
    to a single bot. Chat bots get the widget defaults filled in.
    """
    if bot.type in NUMBER_ROUTED_TYPES:
        bot.dnis = [d.strip() for d in bot.dnis if d and d.strip()]
        if not bot.dnis:
            raise ValidationFailed("DNIS is required for Voice/SMS bots", field="dnis")
    else:
        bot.dnis = []

    if bot.type == BotType.VOICE and not (bot.asr_provider and bot.tts_provider):
        raise ValidationFailed("ASR and TTS providers are required for Voice bots")

    if bot.type == BotType.CHAT:
        if not bot.webhook_url or not bot.webhook_url.strip():
            raise ValidationFailed("Webhook URL is required for Chat bots", field="webhook_url")
        if not bot.welcome_message:
            bot.welcome_message = DEFAULT_WELCOME_MESSAGE
        if not bot.user_prompt_fields:
            bot.user_prompt_fields = default_prompt_fields()

    for number in bot.dnis:
        owner = await storage.get_bot_by_dnis(number)
        if owner and owner.id != bot.id:
            raise ValidationFailed(f"DNIS {number} is already assigned to another bot", field="dnis")

    if bot.client_id and not await storage.get_client(bot.client_id):
        raise ValidationFailed("Client not found", field="client_id")

    return bot


# ==================== Endpoints ====================


@router.post("", status_code=status.HTTP_201_CREATED)
@router.post("/", status_code=status.HTTP_201_CREATED, include_in_schema=False)
async def create_bot(data: BotCreate, storage: StorageDep, admin: AdminUser) -> dict[str, Any]:
    bot = await _validated(storage, Bot(**data.model_dump(exclude_none=True)))
    await storage.save_bot(bot)

    logger.info("Created bot", bot_id=bot.id, type=bot.type.value, client_id=bot.client_id)
    return bot.model_dump(mode="json")


@router.get("")
@router.get("/", include_in_schema=False)
async def list_bots(
    storage: StorageDep,
    admin: AdminUser,
    client_id: str | None = None,
    type: BotType | None = None,
    active: bool | None = None,
    category: BotCategory | None = None,
    page: int = 1,
    limit: int = 10,
) -> dict[str, Any]:
    bots = await storage.list_bots(
        client_id=client_id or None,
        bot_type=type.value if type else None,
        active=active,
        category=category.value if category else None,
    )
    page_items, pagination = paginate(bots, page, limit)
    return {
        "bots": [b.model_dump(mode="json") for b in page_items],
        "pagination": pagination.model_dump(),
    }


@router.get("/lookup/{dnis}", dependencies=[Depends(require_ingest_key)])
async def lookup_bot(dnis: str, storage: StorageDep) -> dict[str, Any]:
    """Resolve the bot answering a dialled number."""
    bot = await storage.get_bot_by_dnis(dnis.strip())
    if not bot:
        raise ResourceNotFound("Bot", dnis)
    return bot.model_dump(mode="json")


@router.get("/client/{client_id}")
async def list_client_bots(client_id: str, storage: StorageDep, user: CurrentUser) -> list[dict[str, Any]]:
    """Bots of one client, for staff or that client's own users."""
    if not user.is_internal and user.client_id != client_id:
        raise AccessDenied("Access denied. You can only view your own bots.")
    return [b.model_dump(mode="json") for b in await storage.list_bots(client_id=client_id)]


@router.get("/{bot_id}")
async def get_bot(bot_id: str, storage: StorageDep, admin: AdminUser) -> dict[str, Any]:
    return (await _get_bot_or_404(storage, bot_id)).model_dump(mode="json")


@router.put("/{bot_id}")
async def update_bot(bot_id: str, data: BotUpdate, storage: StorageDep, admin: AdminUser) -> dict[str, Any]:
    bot = await _get_bot_or_404(storage, bot_id)
    changes = {k: getattr(data, k) for k in data.model_fields_set if getattr(data, k) is not None}

    bot = await _validated(storage, bot.model_copy(update=changes))
    await storage.save_bot(bot)

    logger.info("Updated bot", bot_id=bot.id, fields=sorted(changes))
    return bot.model_dump(mode="json")


@router.patch("/{bot_id}/toggle")
async def toggle_bot(bot_id: str, storage: StorageDep, admin: AdminUser) -> dict[str, Any]:
    bot = await _get_bot_or_404(storage, bot_id)
    bot.active = not bot.active
    await storage.save_bot(bot)

    logger.info("Toggled bot", bot_id=bot.id, active=bot.active)
    return bot.model_dump(mode="json")


@router.delete("/{bot_id}")
async def delete_bot(bot_id: str, storage: StorageDep, admin: AdminUser) -> dict[str, str]:
    await _get_bot_or_404(storage, bot_id)
    await storage.delete_bot(bot_id)

    logger.info("Deleted bot", bot_id=bot_id, deleted_by=admin.id)
    return {"message": "Bot deleted"}
