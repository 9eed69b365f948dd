"""Tests for client administration."""

import pytest

from convops.models import ConversationLog


@pytest.mark.asyncio
async def test_create_client_splits_application_ids(client, admin_headers):
    response = await client.post(
        "/api/clients",
        json={"name": "Initech", "country": "US", "application_sid": "AP1, AP2 ,"},
        headers=admin_headers,
    )
    assert response.status_code == 201

    data = response.json()["client"]
    assert data["application_sid"] == ["AP1", "AP2"]
    assert data["service"] == "Standard"
    assert data["default_language"] == "en"


@pytest.mark.asyncio
async def test_duplicate_name_and_email_rejected(client, admin_headers, acme):
    response = await client.post("/api/clients", json={"name": "ACME", "country": "US"}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["message"] == "Client with this name already exists"

    response = await client.post(
        "/api/clients",
        json={"name": "Other", "country": "US", "contact_email": "OPS@acme.example.com"},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Client with this email already exists"


@pytest.mark.asyncio
async def test_update_client(client, admin_headers, acme, globex):
    response = await client.put(f"/api/clients/{acme.id}", json={"name": "Globex"}, headers=admin_headers)
    assert response.status_code == 400

    response = await client.put(
        f"/api/clients/{acme.id}",
        json={"industry": "Retail", "application_sid": "AP-acme,AP-new"},
        headers=admin_headers,
    )
    assert response.status_code == 200

    data = response.json()["client"]
    assert data["industry"] == "Retail"
    assert data["name"] == "Acme"
    assert data["application_sid"] == ["AP-acme", "AP-new"]


@pytest.mark.asyncio
async def test_list_clients_search_and_status(client, admin_headers, acme, globex):
    response = await client.get("/api/clients", params={"search": "acme"}, headers=admin_headers)
    assert [c["name"] for c in response.json()["clients"]] == ["Acme"]

    await client.patch(f"/api/clients/{globex.id}/status", json={"status": "inactive"}, headers=admin_headers)
    response = await client.get("/api/clients", params={"status": "inactive"}, headers=admin_headers)
    assert [c["name"] for c in response.json()["clients"]] == ["Globex"]


@pytest.mark.asyncio
async def test_delete_blocked_while_users_exist(client, admin_headers, acme, acme_viewer):
    response = await client.delete(f"/api/clients/{acme.id}", headers=admin_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_delete_blocked_while_voice_logs_exist(client, storage, admin_headers, acme):
    await storage.save_conversation_log(ConversationLog(application_sid="AP-acme"))

    response = await client.delete(f"/api/clients/{acme.id}", headers=admin_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_delete_client(client, admin_headers, globex):
    response = await client.delete(f"/api/clients/{globex.id}", headers=admin_headers)
    assert response.status_code == 200

    response = await client.get(f"/api/clients/{globex.id}", headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_client_conversations_use_dual_addressing(client, storage, admin_headers, acme):
    await storage.save_conversation_log(ConversationLog(application_sid="AP-acme"))
    await storage.save_conversation_log(ConversationLog(channel_type="chat", client_id=acme.id))
    await storage.save_conversation_log(ConversationLog(application_sid="AP-globex"))

    response = await client.get(f"/api/clients/{acme.id}/conversations", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["total"] == 2


@pytest.mark.asyncio
async def test_application_ids_cannot_be_shared_between_clients(client, admin_headers, acme, globex):
    response = await client.put(
        f"/api/clients/{globex.id}",
        json={"application_sid": "AP-globex,AP-acme"},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["details"]["sids"] == ["AP-acme"]

    response = await client.post(
        "/api/clients",
        json={"name": "Initech", "country": "US", "application_sid": "AP-new,AP-globex"},
        headers=admin_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_application_id_owned_through_directory_is_taken(client, admin_headers, acme, globex):
    await client.post(
        "/api/client-applications",
        json={"client_id": acme.id, "app_sid": "AP-linked"},
        headers=admin_headers,
    )

    response = await client.put(
        f"/api/clients/{globex.id}",
        json={"application_sid": ["AP-globex", "AP-linked"]},
        headers=admin_headers,
    )
    assert response.status_code == 400

    # Listing an id the same client already owns is fine
    response = await client.put(
        f"/api/clients/{acme.id}",
        json={"application_sid": ["AP-acme", "AP-linked"]},
        headers=admin_headers,
    )
    assert response.status_code == 200
