"""Pytest configuration and fixtures."""

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from convops.api.dependencies import get_mailer, get_storage
from convops.api.main import create_app
from convops.core.config import Settings
from convops.models import Client, UserRole
from convops.services.email import Mailer
from convops.storage.memory import InMemoryStorage
from tests.helpers import auth_headers, make_user


@pytest.fixture
def storage():
    """Create in-memory storage for tests."""
    return InMemoryStorage()


@pytest.fixture
def mailer():
    """Mailer without a relay; messages land in ``outbox``."""
    return Mailer(Settings(app_env="development", smtp_host="", mail_from=""))


@pytest.fixture
def app(storage, mailer):
    """Create test application bound to the test storage."""
    application = create_app()
    application.dependency_overrides[get_storage] = lambda: storage
    application.dependency_overrides[get_mailer] = lambda: mailer
    return application


@pytest_asyncio.fixture
async def client(app):
    """Create test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def admin(storage):
    """An internal administrator."""
    return await make_user(storage, "admin@test.com", UserRole.SUPER_ADMIN)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest_asyncio.fixture
async def acme(storage):
    """A client reached by voice application ``AP-acme``."""
    client = Client(name="Acme", country="US", contact_email="ops@acme.example.com", application_sid=["AP-acme"])
    return await storage.save_client(client)


@pytest_asyncio.fixture
async def globex(storage):
    """A second client, ``AP-globex``."""
    client = Client(name="Globex", country="UK", application_sid="AP-globex")
    return await storage.save_client(client)


@pytest_asyncio.fixture
async def acme_viewer(storage, acme):
    """A tenant user of Acme."""
    return await make_user(
        storage,
        "viewer@acme.example.com",
        UserRole.CLIENT_VIEWER,
        client_id=acme.id,
        application_sid=list(acme.application_sid),
    )


@pytest.fixture
def viewer_headers(acme_viewer):
    return auth_headers(acme_viewer)
