"""Helpers shared by the document models."""

import math
import uuid
from datetime import datetime, timezone
from typing import Any, Sequence, TypeVar

from pydantic import BaseModel, Field, field_validator

T = TypeVar("T")


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Generate a document identifier."""
    return uuid.uuid4().hex


def ensure_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes as UTC so they compare with stored values."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def split_identifiers(value: Any) -> list[str]:
    """Normalize a comma-separated string or list of identifiers.

    Blank entries are dropped and surrounding whitespace is stripped.
    """
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple, set)):
        items = []
        for item in value:
            if item is None:
                continue
            items.extend(str(item).split(","))
    else:
        items = [str(value)]
    return [item.strip() for item in items if item and item.strip()]


class Pagination(BaseModel):
    """Pagination block returned by list endpoints."""

    page: int
    limit: int
    total: int
    total_pages: int


def paginate(items: Sequence[T], page: int = 1, limit: int = 10) -> tuple[list[T], Pagination]:
    """Slice an ordered sequence into one page."""
    page = max(page, 1)
    limit = max(limit, 1)
    total = len(items)
    start = (page - 1) * limit
    return list(items[start:start + limit]), Pagination(
        page=page,
        limit=limit,
        total=total,
        total_pages=math.ceil(total / limit) if total else 0,
    )


class UTCModel(BaseModel):
    """Model whose datetime fields are always timezone-aware UTC."""

    @field_validator("*", mode="after")
    @classmethod
    def _normalize_datetimes(cls, value: Any) -> Any:
        if isinstance(value, datetime):
            return ensure_utc(value)
        return value


class TimestampedModel(UTCModel):
    """Base for stored documents."""

    id: str = Field(default_factory=new_id, description="Document identifier")
    created_at: datetime = Field(default_factory=utcnow)
