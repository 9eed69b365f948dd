"""Avatar catalogue endpoints."""

from datetime import datetime
from typing import Any

import structlog
from fastapi import APIRouter, Query, status
from pydantic import BaseModel, Field

from convops.api.dependencies import AdminUser, StorageDep
from convops.core.exceptions import ResourceNotFound, ValidationFailed
from convops.models import Avatar, AvatarStatus, AvatarType, paginate
from convops.storage.base import StorageBackend

logger = structlog.get_logger()

router = APIRouter(prefix="/api/avatars", tags=["Avatars"])


# ==================== Pydantic Schemas ====================


class AvatarCreate(BaseModel):
    name: str = Field(..., min_length=1)
    type: AvatarType = AvatarType.TEXT
    description: str | None = None
    assigned_language: str | None = None
    supports_text: bool = False
    supports_voice: bool = False
    status: AvatarStatus = AvatarStatus.LIVE
    category: str | None = None
    image_url: str | None = None
    assigned_on: datetime | None = None


class AvatarUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    type: AvatarType | None = None
    description: str | None = None
    assigned_language: str | None = None
    supports_text: bool | None = None
    supports_voice: bool | None = None
    status: AvatarStatus | None = None
    category: str | None = None
    image_url: str | None = None
    assigned_on: datetime | None = None


# ==================== Helpers ====================


async def _get_avatar_or_404(storage: StorageBackend, avatar_id: str) -> Avatar:
    avatar = await storage.get_avatar(avatar_id)
    if not avatar:
        raise ResourceNotFound("Avatar", avatar_id)
    return avatar


async def _check_name_free(storage: StorageBackend, name: str, exclude_id: str | None = None) -> None:
    wanted = name.strip().lower()
    for other in await storage.list_avatars():
        if other.id != exclude_id and other.name.strip().lower() == wanted:
            raise ValidationFailed("Avatar with this name already exists", field="name")


# ==================== Endpoints ====================


@router.get("")
@router.get("/", include_in_schema=False)
async def list_avatars(
    storage: StorageDep,
    admin: AdminUser,
    search: str = "",
    page: int = 1,
    limit: int = 10,
    status_filter: AvatarStatus | None = Query(default=None, alias="status"),
    category: str | None = None,
) -> dict[str, Any]:
    avatars = await storage.list_avatars(
        status=status_filter.value if status_filter else None,
        category=category or None,
    )
    if search:
        needle = search.lower()
        avatars = [
            a for a in avatars
            if needle in a.name.lower() or needle in (a.description or "").lower()
        ]

    page_items, pagination = paginate(avatars, page, limit)
    return {
        "avatars": [a.model_dump(mode="json") for a in page_items],
        "pagination": pagination.model_dump(),
    }


@router.get("/{avatar_id}")
async def get_avatar(avatar_id: str, storage: StorageDep, admin: AdminUser) -> dict[str, Any]:
    return (await _get_avatar_or_404(storage, avatar_id)).model_dump(mode="json")


@router.post("", status_code=status.HTTP_201_CREATED)
@router.post("/", status_code=status.HTTP_201_CREATED, include_in_schema=False)
async def create_avatar(data: AvatarCreate, storage: StorageDep, admin: AdminUser) -> dict[str, Any]:
    await _check_name_free(storage, data.name)

    avatar = Avatar(**data.model_dump(exclude={"name"}), name=data.name.strip(), created_by=admin.id)
    await storage.save_avatar(avatar)

    logger.info("Created avatar", avatar_id=avatar.id, type=avatar.type.value)
    return {"message": "Avatar created successfully", "avatar": avatar.model_dump(mode="json")}


@router.put("/{avatar_id}")
async def update_avatar(avatar_id: str, data: AvatarUpdate, storage: StorageDep, admin: AdminUser) -> dict[str, Any]:
    avatar = await _get_avatar_or_404(storage, avatar_id)
    changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}

    if "name" in changes:
        await _check_name_free(storage, changes["name"], exclude_id=avatar.id)
        changes["name"] = changes["name"].strip()

    avatar = avatar.model_copy(update=changes)
    await storage.save_avatar(avatar)

    logger.info("Updated avatar", avatar_id=avatar.id, fields=sorted(changes))
    return {"message": "Avatar updated successfully", "avatar": avatar.model_dump(mode="json")}


@router.delete("/{avatar_id}")
async def delete_avatar(avatar_id: str, storage: StorageDep, admin: AdminUser) -> dict[str, str]:
    await _get_avatar_or_404(storage, avatar_id)
    await storage.delete_avatar(avatar_id)

    logger.info("Deleted avatar", avatar_id=avatar_id, deleted_by=admin.id)
    return {"message": "Avatar deleted successfully"}
