"""Tests for the mailer without an SMTP relay."""

import pytest

from convops.core.config import Settings
from convops.services.email import OUTBOX_LIMIT, Mailer


@pytest.mark.asyncio
async def test_development_outbox_is_bounded():
    mailer = Mailer(Settings(app_env="development", smtp_host="", mail_from=""))

    for i in range(OUTBOX_LIMIT + 5):
        await mailer.send(f"user{i}@example.com", "Hello", "<p>hi</p>")

    assert len(mailer.outbox) == OUTBOX_LIMIT
    assert mailer.outbox[0]["to"] == "user5@example.com"


@pytest.mark.asyncio
async def test_production_keeps_no_unsent_messages():
    mailer = Mailer(Settings(app_env="production", smtp_host="", mail_from=""))

    await mailer.send_password_reset("user@example.com", "https://app.example.com/reset-password/abc")

    assert len(mailer.outbox) == 0
