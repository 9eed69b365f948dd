"""Tests for platform analytics and exports."""

import csv
import io
from datetime import date, datetime, timedelta, timezone

import pytest
import pytest_asyncio

from convops.models import Avatar, AvatarType, ChannelType, ConversationLog, MessageLogEntry, Sender, utcnow
from convops.services.analytics import render_csv, usage_details


def _log(channel: ChannelType, when: datetime, **fields) -> ConversationLog:
    return ConversationLog(channel_type=channel, started_at=when, **fields)


@pytest_asyncio.fixture
async def traffic(storage, acme, globex):
    """Recent traffic for both clients plus one old log."""
    now = utcnow()
    ava = await storage.save_avatar(Avatar(name="Ava", type=AvatarType.VOICE))
    bob = await storage.save_avatar(Avatar(name="Bob"))
    fallback = [MessageLogEntry(sender=Sender.AGENT, message="Sorry, I didn't understand that.")]

    logs = [
        _log(ChannelType.VOICE, now, application_sid="AP-acme", duration_minutes=3, avatar_id=ava.id),
        _log(ChannelType.VOICE, now - timedelta(days=1), application_sid="AP-acme", duration_minutes=1.5, avatar_id=ava.id),
        _log(ChannelType.CHAT, now, client_id=acme.id, avatar_id=bob.id, message_log=fallback),
        _log(ChannelType.TEXT, now, client_id=globex.id, avatar_id=bob.id),
        _log(ChannelType.VOICE, now - timedelta(days=90), application_sid="AP-globex", duration_minutes=10),
    ]
    for log in logs:
        await storage.save_conversation_log(log)
    return {"ava": ava, "bob": bob}


def test_usage_details_slots_end_today():
    today = date(2025, 3, 10)
    logs = [
        _log(ChannelType.VOICE, datetime(2025, 3, 10, 8, tzinfo=timezone.utc), duration_minutes=2.6),
        _log(ChannelType.CHAT, datetime(2025, 3, 4, 8, tzinfo=timezone.utc)),
        _log(ChannelType.TEXT, datetime(2025, 3, 1, 8, tzinfo=timezone.utc)),
    ]

    result = usage_details(logs, days=7, today=today)

    assert result["labels"][0] == "Tue, Mar 04"
    assert result["labels"][-1] == "Mon, Mar 10"
    assert result["minutes"][-1] == 3
    assert result["text"] == [1, 0, 0, 0, 0, 0, 0]


def test_render_csv_uses_union_of_keys():
    body = render_csv([{"a": 1}, {"a": 2, "b": None}])
    rows = list(csv.DictReader(io.StringIO(body)))
    assert rows == [{"a": "1", "b": ""}, {"a": "2", "b": ""}]
    assert render_csv([]) == ""


@pytest.mark.asyncio
async def test_kpis(client, admin_headers, traffic):
    response = await client.get("/api/analytics/kpis", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {
        "total_clients": 2,
        "total_users": 1,
        "total_conversations": 5,
        "active_avatars": 0,
    }


@pytest.mark.asyncio
async def test_conversations_over_time_for_one_client(client, admin_headers, acme, traffic):
    response = await client.get(
        "/api/analytics/conversations-over-time",
        params={"client": acme.id, "days": 30},
        headers=admin_headers,
    )
    assert sum(point["count"] for point in response.json()) == 3


@pytest.mark.asyncio
async def test_voice_minutes_over_time(client, admin_headers, traffic):
    response = await client.get("/api/analytics/voice-minutes-over-time", headers=admin_headers)
    assert sum(point["minutes"] for point in response.json()) == pytest.approx(4.5)


@pytest.mark.asyncio
async def test_top_avatars(client, admin_headers, traffic):
    response = await client.get("/api/analytics/top-avatars", params={"channel": "voice"}, headers=admin_headers)
    assert response.json() == [{"avatar": "Ava", "count": 2}]


@pytest.mark.asyncio
async def test_fallback_rate(client, admin_headers, acme, traffic):
    response = await client.get("/api/analytics/fallback-rate", headers=admin_headers)
    assert response.json() == {"total": 2, "fallback": 1, "rate": 50.0}

    response = await client.get("/api/analytics/fallback-rate", params={"client": acme.id}, headers=admin_headers)
    assert response.json()["rate"] == 100.0


@pytest.mark.asyncio
async def test_clients_table(client, admin_headers, traffic):
    response = await client.get("/api/analytics/clients-table", headers=admin_headers)
    rows = {row["client_name"]: row for row in response.json()}

    assert rows["Acme"]["total_sessions"] == 3
    assert rows["Acme"]["voice_minutes"] == 4.5
    assert rows["Acme"]["text_sessions"] == 1
    assert rows["Globex"]["total_sessions"] == 2


@pytest.mark.asyncio
async def test_export_csv(client, admin_headers, traffic):
    response = await client.get("/api/analytics/export", params={"scope": "avatar"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "avatar-export.csv" in response.headers["content-disposition"]

    rows = list(csv.DictReader(io.StringIO(response.text)))
    assert {row["avatar_name"] for row in rows} == {"Ava", "Bob"}
    assert "type" in rows[0]


@pytest.mark.asyncio
async def test_export_json_and_bad_scope(client, admin_headers, traffic):
    response = await client.get(
        "/api/analytics/export",
        params={"type": "json", "scope": "client"},
        headers=admin_headers,
    )
    assert len(response.json()) == 2

    response = await client.get("/api/analytics/export", params={"scope": "planet"}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid export scope"


@pytest.mark.asyncio
async def test_analytics_are_internal_only(client, viewer_headers):
    response = await client.get("/api/analytics/kpis", headers=viewer_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_report_windows_are_bounded(client, admin_headers):
    response = await client.get("/api/analytics/usage-details", params={"days": 100000000}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"

    response = await client.get("/api/analytics/conversations-over-time", params={"days": 367}, headers=admin_headers)
    assert response.status_code == 400

    response = await client.get("/api/analytics/usage-details", params={"days": 366}, headers=admin_headers)
    assert response.status_code == 200
    assert len(response.json()["labels"]) == 366
