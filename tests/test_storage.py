"""Tests for storage backends."""

from datetime import timedelta

import pytest

from convops.models import (
    Avatar,
    AvatarStatus,
    Bot,
    BotType,
    ChannelType,
    Client,
    ClientStatus,
    ConversationLog,
    TenantScope,
    User,
    UserRole,
    utcnow,
)


@pytest.mark.asyncio
async def test_client_crud(storage):
    """Test client CRUD operations."""
    # Create
    client = Client(name="Test Client", country="US", application_sid="AP1, AP2")
    saved = await storage.save_client(client)
    assert saved.application_sid == ["AP1", "AP2"]

    # Read
    retrieved = await storage.get_client(client.id)
    assert retrieved is not None
    assert retrieved.name == "Test Client"

    # List with status filter
    assert len(await storage.list_clients(status=ClientStatus.ACTIVE.value)) == 1
    assert await storage.list_clients(status=ClientStatus.INACTIVE.value) == []

    # Delete
    assert await storage.delete_client(client.id) is True
    assert await storage.get_client(client.id) is None
    assert await storage.delete_client(client.id) is False


@pytest.mark.asyncio
async def test_user_lookup_by_email_ignores_case(storage):
    user = User(first_name="A", last_name="B", email="someone@test.com", hashed_password="x", role=UserRole.ADMIN)
    await storage.save_user(user)

    found = await storage.get_user_by_email("SomeOne@Test.com")
    assert found is not None
    assert found.id == user.id


@pytest.mark.asyncio
async def test_reads_are_detached_copies(storage):
    """Mutating a fetched document does not change what is stored."""
    client = await storage.save_client(Client(name="Original", country="US"))

    fetched = await storage.get_client(client.id)
    fetched.name = "Changed"

    assert (await storage.get_client(client.id)).name == "Original"


@pytest.mark.asyncio
async def test_bot_lookup_by_dnis(storage):
    bot = Bot(name="Line", type=BotType.VOICE, dnis=["+15550001", "+15550002"], asr_provider="a", tts_provider="t")
    await storage.save_bot(bot)

    assert (await storage.get_bot_by_dnis("+15550002")).id == bot.id
    assert await storage.get_bot_by_dnis("+19999999") is None


@pytest.mark.asyncio
async def test_list_avatars_filters(storage):
    await storage.save_avatar(Avatar(name="Ava", status=AvatarStatus.LIVE, category="support"))
    await storage.save_avatar(Avatar(name="Bob", status=AvatarStatus.DRAFT, category="sales"))

    assert [a.name for a in await storage.list_avatars(status="live")] == ["Ava"]
    assert [a.name for a in await storage.list_avatars(category="sales")] == ["Bob"]


@pytest.mark.asyncio
async def test_conversation_logs_newest_first_and_scoped(storage):
    now = utcnow()
    older = ConversationLog(application_sid="AP1", started_at=now - timedelta(hours=2))
    newer = ConversationLog(application_sid="AP1", started_at=now - timedelta(hours=1))
    other = ConversationLog(application_sid="AP9", started_at=now)
    for log in (older, newer, other):
        await storage.save_conversation_log(log)

    scoped = await storage.list_conversation_logs(TenantScope.for_client("c1", {"AP1"}))
    assert [log.id for log in scoped] == [newer.id, older.id]

    everything = await storage.list_conversation_logs(TenantScope.everything(), channel_type=ChannelType.VOICE)
    assert len(everything) == 3


@pytest.mark.asyncio
async def test_conversation_log_found_by_conversation_id(storage):
    log = ConversationLog(conversation_id="conv_abc")
    await storage.save_conversation_log(log)

    assert (await storage.get_conversation_log("conv_abc")).id == log.id
    assert (await storage.get_conversation_log(log.id)).id == log.id


@pytest.mark.asyncio
async def test_seed_demo_admin_is_idempotent(storage):
    first = await storage.seed_demo_admin()
    second = await storage.seed_demo_admin()

    assert first.id == second.id
    assert first.role == UserRole.SUPER_ADMIN
    assert await storage.health_check() is True
