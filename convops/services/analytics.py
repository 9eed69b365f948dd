"""Aggregation reporting over conversation logs.

Every aggregation runs over a list of logs that has already been narrowed
by a ``TenantScope``; nothing here decides visibility. Day buckets are the
UTC calendar date of ``activity_at``.
"""

import csv
import io
from collections import Counter, defaultdict
from datetime import date, datetime, timedelta
from typing import Any, Iterable

import structlog

from convops.core.exceptions import ValidationFailed
from convops.models import (
    Avatar,
    AvatarStatus,
    ChannelType,
    ClientStatus,
    ConversationLog,
    TenantScope,
    utcnow,
)
from convops.models.conversation import TEXT_CHANNELS
from convops.services.tenancy import TenantResolver
from convops.storage.base import StorageBackend

logger = structlog.get_logger()

FALLBACK_PHRASE = "sorry, i didn't understand"
EXPORT_SCOPES = ("client", "avatar")


# ==================== Pure helpers ====================


def day_key(log: ConversationLog) -> str:
    return log.activity_at.date().isoformat()


def since(logs: Iterable[ConversationLog], days: int, now: datetime | None = None) -> list[ConversationLog]:
    """Logs whose activity falls within the last ``days`` days."""
    start = (now or utcnow()) - timedelta(days=days)
    return [log for log in logs if log.activity_at >= start]


def count_by_day(logs: Iterable[ConversationLog], key: str = "count") -> list[dict[str, Any]]:
    counts = Counter(day_key(log) for log in logs)
    return [{"date": day, key: counts[day]} for day in sorted(counts)]


def minutes_by_day(logs: Iterable[ConversationLog]) -> list[dict[str, Any]]:
    totals: dict[str, float] = defaultdict(float)
    for log in logs:
        totals[day_key(log)] += log.duration_minutes
    return [{"date": day, "minutes": round(totals[day], 2)} for day in sorted(totals)]


def is_fallback(log: ConversationLog) -> bool:
    return any(FALLBACK_PHRASE in (entry.message or "").lower() for entry in log.message_log)


def _last_active(logs: list[ConversationLog]) -> str | None:
    if not logs:
        return None
    return max(log.activity_at for log in logs).isoformat()


def _avg_duration(logs: list[ConversationLog]) -> float:
    if not logs:
        return 0.0
    return round(sum(log.duration_minutes for log in logs) / len(logs), 2)


def usage_details(logs: Iterable[ConversationLog], days: int = 7, today: date | None = None) -> dict[str, list]:
    """Per-day voice minutes and text sessions for the last ``days`` days.

    One slot per day ending today; 7-day windows carry the weekday in the label.
    """
    days = max(days, 1)
    today = today or utcnow().date()
    slots = [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]
    index = {slot.isoformat(): i for i, slot in enumerate(slots)}

    minutes = [0.0] * days
    text = [0] * days
    for log in logs:
        i = index.get(day_key(log))
        if i is None:
            continue
        if log.channel_type == ChannelType.VOICE:
            minutes[i] += log.duration_minutes
        elif log.channel_type in TEXT_CHANNELS:
            text[i] += 1

    label_format = "%a, %b %d" if days == 7 else "%b %d"
    return {
        "labels": [slot.strftime(label_format) for slot in slots],
        "minutes": [round(m) for m in minutes],
        "text": text,
    }


def render_csv(rows: list[dict[str, Any]]) -> str:
    """Render rows as CSV with a header taken from the rows' keys."""
    if not rows:
        return ""
    buf = io.StringIO()
    fieldnames: list[str] = []
    for row in rows:
        for key in row:
            if key not in fieldnames:
                fieldnames.append(key)
    writer = csv.DictWriter(buf, fieldnames=fieldnames)
    writer.writeheader()
    for row in rows:
        writer.writerow({k: "" if v is None else v for k, v in row.items()})
    return buf.getvalue()


def client_dashboard(logs: list[ConversationLog], avatars: dict[str, Avatar]) -> dict[str, Any]:
    """Tenant dashboard: headline numbers, daily charts and per-avatar usage."""
    voice = [log for log in logs if log.channel_type == ChannelType.VOICE]
    text = [log for log in logs if log.channel_type == ChannelType.TEXT]
    chat = [log for log in logs if log.channel_type == ChannelType.CHAT]

    avatar_counts = Counter(log.avatar_id for log in logs if log.avatar_id in avatars)
    most_used = avatar_counts.most_common(1)

    usage = []
    for avatar_id, _ in avatar_counts.most_common():
        mine = [log for log in logs if log.avatar_id == avatar_id]
        usage.append({
            "avatar_id": avatar_id,
            "name": avatars[avatar_id].name,
            "voice_minutes": round(sum(l.duration_minutes for l in mine if l.channel_type == ChannelType.VOICE), 2),
            "text_sessions": sum(1 for l in mine if l.channel_type == ChannelType.TEXT),
            "chat_sessions": sum(1 for l in mine if l.channel_type == ChannelType.CHAT),
        })

    return {
        "kpis": {
            "total_conversations": len(logs),
            "total_voice_minutes": round(sum(log.duration_minutes for log in voice), 2),
            "total_text_sessions": len(text),
            "total_chat_sessions": len(chat),
            "most_used_avatar": avatars[most_used[0][0]].name if most_used else None,
            "last_session_date": _last_active(logs),
        },
        "charts": {
            "voice_minutes_over_time": minutes_by_day(voice),
            "text_sessions_over_time": count_by_day(text, key="sessions"),
            "chat_sessions_over_time": count_by_day(chat, key="sessions"),
        },
        "avatar_usage": usage,
    }


# ==================== Service ====================


class AnalyticsService:
    """Platform-wide reports for internal staff."""

    def __init__(self, storage: StorageBackend) -> None:
        self.storage = storage
        self.tenants = TenantResolver(storage)

    async def _scope(self, client_id: str | None) -> TenantScope:
        if not client_id:
            return TenantScope.everything()
        client = await self.storage.get_client(client_id)
        if not client:
            return TenantScope.for_client(client_id)
        return await self.tenants.scope_for_client(client)

    async def _avatars(self) -> dict[str, Avatar]:
        return {avatar.id: avatar for avatar in await self.storage.list_avatars()}

    async def kpis(self) -> dict[str, int]:
        return {
            "total_clients": len(await self.storage.list_clients(status=ClientStatus.ACTIVE.value)),
            "total_users": len(await self.storage.list_users()),
            "total_conversations": len(await self.storage.list_conversation_logs(TenantScope.everything())),
            "active_avatars": len(await self.storage.list_avatars(status=AvatarStatus.LIVE.value)),
        }

    async def conversations_over_time(
        self,
        days: int = 30,
        client_id: str | None = None,
        channel: ChannelType | None = None,
    ) -> list[dict[str, Any]]:
        logs = await self.storage.list_conversation_logs(await self._scope(client_id), channel_type=channel)
        return count_by_day(since(logs, days))

    async def voice_minutes_over_time(self, days: int = 30, client_id: str | None = None) -> list[dict[str, Any]]:
        logs = await self.storage.list_conversation_logs(await self._scope(client_id), channel_type=ChannelType.VOICE)
        return minutes_by_day(since(logs, days))

    async def top_avatars(self, channel: ChannelType = ChannelType.TEXT, limit: int = 5) -> list[dict[str, Any]]:
        logs = await self.storage.list_conversation_logs(TenantScope.everything(), channel_type=channel)
        avatars = await self._avatars()
        counts = Counter(log.avatar_id for log in logs if log.avatar_id in avatars)
        return [{"avatar": avatars[avatar_id].name, "count": count} for avatar_id, count in counts.most_common(limit)]

    async def usage_details(self, days: int = 7) -> dict[str, list]:
        logs = await self.storage.list_conversation_logs(TenantScope.everything())
        return usage_details(logs, days)

    async def fallback_rate(self, client_id: str | None = None) -> dict[str, Any]:
        logs = await self.storage.list_conversation_logs(await self._scope(client_id))
        text_logs = [log for log in logs if log.channel_type in TEXT_CHANNELS]
        fallback = sum(1 for log in text_logs if is_fallback(log))
        total = len(text_logs)
        return {"total": total, "fallback": fallback, "rate": round(fallback / total * 100, 2) if total else 0}

    async def clients_table(self) -> list[dict[str, Any]]:
        logs = await self.storage.list_conversation_logs(TenantScope.everything())
        sid_index = await self.tenants.client_index()

        grouped: dict[str, list[ConversationLog]] = defaultdict(list)
        for log in logs:
            client_id = log.client_id
            if not client_id and log.channel_type == ChannelType.VOICE and log.application_sid:
                client_id = sid_index.get(log.application_sid)
            if client_id:
                grouped[client_id].append(log)

        rows = []
        for client_id, client_logs in grouped.items():
            client = await self.storage.get_client(client_id)
            if not client:
                continue
            rows.append({
                "client_id": client_id,
                "client_name": client.name,
                "total_sessions": len(client_logs),
                "voice_minutes": round(
                    sum(log.duration_minutes for log in client_logs if log.channel_type == ChannelType.VOICE), 2
                ),
                "text_sessions": sum(1 for log in client_logs if log.channel_type in TEXT_CHANNELS),
                "avg_duration": _avg_duration(client_logs),
                "last_active": _last_active(client_logs),
            })
        rows.sort(key=lambda r: r["total_sessions"], reverse=True)
        return rows

    async def avatars_table(self, include_type: bool = False) -> list[dict[str, Any]]:
        logs = await self.storage.list_conversation_logs(TenantScope.everything())
        avatars = await self._avatars()

        grouped: dict[str, list[ConversationLog]] = defaultdict(list)
        for log in logs:
            if log.avatar_id in avatars:
                grouped[log.avatar_id].append(log)

        rows = []
        for avatar_id, avatar_logs in grouped.items():
            row: dict[str, Any] = {"avatar_name": avatars[avatar_id].name}
            if include_type:
                row["type"] = avatars[avatar_id].type.value
            row.update({
                "sessions": len(avatar_logs),
                "duration": round(sum(log.duration_minutes for log in avatar_logs), 2),
                "avg_duration": _avg_duration(avatar_logs),
                "last_active": _last_active(avatar_logs),
            })
            rows.append(row)
        rows.sort(key=lambda r: r["sessions"], reverse=True)
        return rows

    async def export_rows(self, scope: str) -> list[dict[str, Any]]:
        if scope == "client":
            rows = await self.clients_table()
        elif scope == "avatar":
            rows = await self.avatars_table(include_type=True)
        else:
            raise ValidationFailed("Invalid export scope", field="scope", details={"allowed": list(EXPORT_SCOPES)})
        logger.info("Built export rows", scope=scope, rows=len(rows))
        return rows

    async def client_dashboard(self, scope: TenantScope) -> dict[str, Any]:
        logs = await self.storage.list_conversation_logs(scope)
        return client_dashboard(logs, await self._avatars())
