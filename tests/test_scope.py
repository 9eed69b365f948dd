"""Tests for tenant scoping and log attribution."""

from datetime import datetime, timezone

import pytest

from convops.models import (
    ApplicationStatus,
    Bot,
    BotType,
    ChannelType,
    Client,
    ClientApplication,
    ConversationFilter,
    ConversationLog,
    TenantScope,
    User,
    UserRole,
)
from convops.services.tenancy import TenantResolver


def _voice(sid: str | None, client_id: str | None = None, **fields) -> ConversationLog:
    return ConversationLog(channel_type=ChannelType.VOICE, application_sid=sid, client_id=client_id, **fields)


def _chat(client_id: str | None, sid: str | None = None) -> ConversationLog:
    return ConversationLog(channel_type=ChannelType.CHAT, client_id=client_id, application_sid=sid)


def test_scope_matches_client_id_or_voice_application():
    scope = TenantScope.for_client("c1", {"AP-1"})

    assert scope.matches(_chat("c1"))
    assert scope.matches(_voice("AP-1"))
    assert scope.matches(_voice("AP-other", client_id="c1"))
    assert not scope.matches(_voice("AP-2"))
    assert not scope.matches(_chat("c2"))


def test_attributed_voice_log_belongs_to_its_client_only():
    """A log attributed to c2 stays with c2 even if c1 also lists its application id."""
    scope = TenantScope.for_client("c1", {"AP-1"})

    assert not scope.matches(_voice("AP-1", client_id="c2"))
    assert TenantScope.for_client("c2").matches(_voice("AP-1", client_id="c2"))


def test_application_id_never_grants_chat_logs():
    """Chat logs carry the bot id as application_sid; only client_id counts."""
    scope = TenantScope.for_client("c1", {"bot-1"})
    assert not scope.matches(_chat("c2", sid="bot-1"))


def test_everything_and_nothing():
    log = _voice("AP-1")
    assert TenantScope.everything().matches(log)
    assert not TenantScope.nothing().matches(log)
    assert TenantScope.nothing().is_empty


def test_filter_application_sid_narrows_voice_only():
    filters = ConversationFilter(application_sids=frozenset({"AP-1"}))

    assert filters.matches(_voice("AP-1"))
    assert not filters.matches(_voice("AP-2"))
    assert filters.matches(_chat("c1", sid="bot-9"))


def test_filter_date_range_accepts_naive_bounds():
    log = _voice("AP-1", started_at=datetime(2025, 5, 10, 12, 0, tzinfo=timezone.utc))

    assert ConversationFilter(date_from=datetime(2025, 5, 10)).matches(log)
    assert not ConversationFilter(date_from=datetime(2025, 5, 11)).matches(log)
    assert not ConversationFilter(date_to=datetime(2025, 5, 9)).matches(log)


@pytest.mark.asyncio
async def test_scope_for_user(storage, acme):
    resolver = TenantResolver(storage)
    await storage.save_client_application(ClientApplication(client_id=acme.id, app_sid="AP-extra"))
    await storage.save_client_application(
        ClientApplication(client_id=acme.id, app_sid="AP-old", status=ApplicationStatus.INACTIVE)
    )

    staff = User(first_name="A", last_name="B", email="a@b.c", hashed_password="x", role=UserRole.ADMIN)
    assert (await resolver.scope_for_user(staff)).unrestricted

    tenant = User(
        first_name="A", last_name="B", email="t@b.c", hashed_password="x",
        role=UserRole.CLIENT_ADMIN, client_id=acme.id,
    )
    scope = await resolver.scope_for_user(tenant)
    assert scope.client_id == acme.id
    assert scope.application_sids == frozenset({"AP-acme", "AP-extra"})

    orphan = User(first_name="A", last_name="B", email="o@b.c", hashed_password="x", role=UserRole.CLIENT_VIEWER)
    assert (await resolver.scope_for_user(orphan)).is_empty


@pytest.mark.asyncio
async def test_attribute_chat_log_through_bot(storage, acme):
    bot = Bot(name="Web", type=BotType.CHAT, webhook_url="https://hook.test", client_id=acme.id)
    await storage.save_bot(bot)

    log = await TenantResolver(storage).attribute(_chat(None, sid=bot.id).model_copy(update={"bot_id": bot.id}))
    assert log.client_id == acme.id


@pytest.mark.asyncio
async def test_attribute_voice_log_through_application(storage, acme, globex):
    resolver = TenantResolver(storage)
    await storage.save_client_application(ClientApplication(client_id=globex.id, app_sid="AP-linked"))

    assert (await resolver.attribute(_voice("AP-linked"))).client_id == globex.id
    # Falls back to the ids listed on the client document
    assert (await resolver.attribute(_voice("AP-acme"))).client_id == acme.id
    assert (await resolver.attribute(_voice("AP-unknown"))).client_id is None


@pytest.mark.asyncio
async def test_inactive_application_does_not_attribute(storage, acme):
    await storage.save_client_application(
        ClientApplication(client_id=acme.id, app_sid="AP-off", status=ApplicationStatus.INACTIVE)
    )
    log = await TenantResolver(storage).attribute(_voice("AP-off"))
    assert log.client_id is None


@pytest.mark.asyncio
async def test_visible_logs_applies_scope_and_filters(storage):
    await storage.save_conversation_log(_voice("AP-1"))
    await storage.save_conversation_log(_voice("AP-2"))
    await storage.save_conversation_log(_chat("c1"))
    resolver = TenantResolver(storage)

    scope = TenantScope.for_client("c1", {"AP-1"})
    assert len(await resolver.visible_logs(scope)) == 2
    voice_only = await resolver.visible_logs(scope, ConversationFilter(channel_type=ChannelType.VOICE))
    assert [log.application_sid for log in voice_only] == ["AP-1"]
    assert await resolver.visible_logs(TenantScope.nothing()) == []
