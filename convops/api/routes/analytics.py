"""Platform analytics for internal staff."""

from typing import Any, Literal

from fastapi import APIRouter, Query
from fastapi.responses import Response

from convops.api.dependencies import AdminUser, AnalyticsDep
from convops.models import ChannelType
from convops.services.analytics import render_csv

router = APIRouter(prefix="/api/analytics", tags=["Analytics"])

# Longest window any time-bucketed report will allocate
MAX_DAYS = 366


@router.get("/kpis")
async def kpis(analytics: AnalyticsDep, admin: AdminUser) -> dict[str, int]:
    return await analytics.kpis()


@router.get("/conversations-over-time")
async def conversations_over_time(
    analytics: AnalyticsDep,
    admin: AdminUser,
    days: int = Query(default=30, ge=1, le=MAX_DAYS),
    client: str | None = None,
    channel: ChannelType | None = None,
) -> list[dict[str, Any]]:
    return await analytics.conversations_over_time(days=days, client_id=client or None, channel=channel)


@router.get("/voice-minutes-over-time")
async def voice_minutes_over_time(
    analytics: AnalyticsDep,
    admin: AdminUser,
    days: int = Query(default=30, ge=1, le=MAX_DAYS),
    client: str | None = None,
) -> list[dict[str, Any]]:
    return await analytics.voice_minutes_over_time(days=days, client_id=client or None)


@router.get("/top-avatars")
async def top_avatars(
    analytics: AnalyticsDep,
    admin: AdminUser,
    channel: ChannelType = ChannelType.TEXT,
    limit: int = Query(default=5, ge=1, le=100),
) -> list[dict[str, Any]]:
    return await analytics.top_avatars(channel=channel, limit=limit)


@router.get("/usage-details")
async def usage_details(
    analytics: AnalyticsDep,
    admin: AdminUser,
    days: int = Query(default=7, ge=1, le=MAX_DAYS),
) -> dict[str, list]:
    return await analytics.usage_details(days=days)


@router.get("/fallback-rate")
async def fallback_rate(analytics: AnalyticsDep, admin: AdminUser, client: str | None = None) -> dict[str, Any]:
    return await analytics.fallback_rate(client_id=client or None)


@router.get("/clients-table")
async def clients_table(analytics: AnalyticsDep, admin: AdminUser) -> list[dict[str, Any]]:
    return await analytics.clients_table()


@router.get("/avatars-table")
async def avatars_table(analytics: AnalyticsDep, admin: AdminUser) -> list[dict[str, Any]]:
    return await analytics.avatars_table()


@router.get("/export")
async def export(
    analytics: AnalyticsDep,
    admin: AdminUser,
    type: Literal["csv", "json"] = "csv",
    scope: str = "client",
) -> Any:
    """Export the client or avatar table as CSV (attachment) or JSON."""
    rows = await analytics.export_rows(scope)
    if type == "json":
        return rows
    return Response(
        content=render_csv(rows),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{scope}-export.csv"'},
    )
