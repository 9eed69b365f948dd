"""Tests for the tenant-facing client portal."""

from datetime import datetime, timezone

import pytest
import pytest_asyncio

from convops.models import Avatar, ChannelType, ConversationLog, UserRole
from tests.helpers import auth_headers, make_user


@pytest.fixture
def day():
    return datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def logs(storage, acme, globex, day):
    """Acme: one voice log by application id, one chat log by client id. Globex: one of each."""
    avatar = await storage.save_avatar(Avatar(name="Ava"))
    created = {
        "acme_voice": ConversationLog(application_sid="AP-acme", started_at=day, duration_minutes=2.5, avatar_id=avatar.id),
        "acme_chat": ConversationLog(channel_type=ChannelType.CHAT, client_id=acme.id, started_at=day),
        "globex_voice": ConversationLog(application_sid="AP-globex", started_at=day, duration_minutes=9),
        "globex_chat": ConversationLog(channel_type=ChannelType.CHAT, client_id=globex.id, started_at=day),
    }
    for log in created.values():
        await storage.save_conversation_log(log)
    return created


@pytest.mark.asyncio
async def test_logs_only_show_own_tenant(client, viewer_headers, logs):
    response = await client.get("/api/client/logs", headers=viewer_headers)
    assert response.status_code == 200

    data = response.json()
    assert data["total"] == 2
    assert {log["id"] for log in data["logs"]} == {logs["acme_voice"].id, logs["acme_chat"].id}


@pytest.mark.asyncio
async def test_logs_expand_avatar(client, viewer_headers, logs):
    response = await client.get("/api/client/logs", params={"channel_type": "voice"}, headers=viewer_headers)

    data = response.json()
    assert data["total"] == 1
    assert data["logs"][0]["avatar"]["name"] == "Ava"


@pytest.mark.asyncio
async def test_application_filter_cannot_widen_scope(client, viewer_headers, logs):
    response = await client.get(
        "/api/client/reports",
        params={"application_sid": "AP-globex"},
        headers=viewer_headers,
    )
    ids = {log["id"] for log in response.json()["logs"]}
    assert logs["globex_voice"].id not in ids
    # Chat logs are not narrowed by application id
    assert ids == {logs["acme_chat"].id}


@pytest.mark.asyncio
async def test_log_detail_outside_scope_is_not_found(client, viewer_headers, logs):
    response = await client.get(f"/api/client/logs/{logs['acme_voice'].id}", headers=viewer_headers)
    assert response.status_code == 200

    response = await client.get(f"/api/client/logs/{logs['globex_chat'].id}", headers=viewer_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_date_filters(client, viewer_headers, logs):
    response = await client.get(
        "/api/client/logs",
        params={"date_from": "2025-06-02T00:00:00"},
        headers=viewer_headers,
    )
    assert response.json()["total"] == 0


@pytest.mark.asyncio
async def test_dashboard(client, viewer_headers, logs):
    response = await client.get("/api/client/dashboard", headers=viewer_headers)
    assert response.status_code == 200

    data = response.json()
    assert data["kpis"]["total_conversations"] == 2
    assert data["kpis"]["total_voice_minutes"] == 2.5
    assert data["kpis"]["total_chat_sessions"] == 1
    assert data["kpis"]["most_used_avatar"] == "Ava"
    assert data["charts"]["voice_minutes_over_time"] == [{"date": "2025-06-01", "minutes": 2.5}]


@pytest.mark.asyncio
async def test_unlinked_tenant_sees_nothing(client, storage, logs):
    loner = await make_user(storage, "loner@example.com", UserRole.CLIENT_VIEWER)

    response = await client.get("/api/client/logs", headers=auth_headers(loner))
    assert response.status_code == 200
    assert response.json()["total"] == 0


@pytest.mark.asyncio
async def test_portal_is_for_tenant_roles(client, admin_headers):
    response = await client.get("/api/client/logs", headers=admin_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_voice_log_of_moved_application_stays_with_original_client(client, storage, acme, globex, acme_viewer, day):
    """Acme's historical call on a sid now listed by Globex is not shown to Globex."""
    await storage.save_conversation_log(
        ConversationLog(application_sid="AP-globex", client_id=acme.id, started_at=day)
    )
    globex_viewer = await make_user(storage, "viewer@globex.example.com", UserRole.CLIENT_VIEWER, client_id=globex.id)

    response = await client.get("/api/client/logs", headers=auth_headers(globex_viewer))
    assert response.status_code == 200
    assert response.json()["total"] == 0

    response = await client.get("/api/client/logs", headers=auth_headers(acme_viewer))
    assert [log["application_sid"] for log in response.json()["logs"]] == ["AP-globex"]
