"""Response shaping shared by the conversation log listings."""

from typing import Any

from convops.models import Avatar, ConversationLog, paginate
from convops.storage.base import StorageBackend


async def avatar_lookup(storage: StorageBackend) -> dict[str, Avatar]:
    return {avatar.id: avatar for avatar in await storage.list_avatars()}


def log_with_avatar(log: ConversationLog, avatars: dict[str, Avatar]) -> dict[str, Any]:
    """Public log document with its avatar expanded."""
    data = log.to_public()
    avatar = avatars.get(log.avatar_id) if log.avatar_id else None
    data["avatar"] = {"id": avatar.id, "name": avatar.name, "type": avatar.type.value} if avatar else None
    return data


async def log_page(
    storage: StorageBackend,
    logs: list[ConversationLog],
    page: int,
    limit: int,
) -> dict[str, Any]:
    """One page of logs as ``{logs, total, page, total_pages}``."""
    page_items, pagination = paginate(logs, page, limit)
    avatars = await avatar_lookup(storage)
    return {
        "logs": [log_with_avatar(log, avatars) for log in page_items],
        "total": pagination.total,
        "page": pagination.page,
        "total_pages": pagination.total_pages,
    }
