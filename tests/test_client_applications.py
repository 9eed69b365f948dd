"""Tests for the application id directory."""

import pytest


@pytest.mark.asyncio
async def test_link_application_to_client(client, admin_headers, acme):
    response = await client.post(
        "/api/client-applications",
        json={"client_id": acme.id, "app_sid": "AP-new", "channels": ["voice"]},
        headers=admin_headers,
    )
    assert response.status_code == 201
    assert response.json()["status"] == "active"

    response = await client.get("/api/client-applications", headers=admin_headers)
    assert [(a["app_sid"], a["client_name"]) for a in response.json()] == [("AP-new", "Acme")]


@pytest.mark.asyncio
async def test_app_sid_must_be_unique(client, admin_headers, acme):
    payload = {"client_id": acme.id, "app_sid": "AP-new"}
    await client.post("/api/client-applications", json=payload, headers=admin_headers)

    response = await client.post("/api/client-applications", json=payload, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["message"] == "App SID must be unique"


@pytest.mark.asyncio
async def test_client_must_exist(client, admin_headers):
    response = await client.post(
        "/api/client-applications",
        json={"client_id": "missing", "app_sid": "AP-x"},
        headers=admin_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_update_and_toggle_status(client, admin_headers, acme, globex):
    app = (await client.post(
        "/api/client-applications",
        json={"client_id": acme.id, "app_sid": "AP-new"},
        headers=admin_headers,
    )).json()

    response = await client.put(
        f"/api/client-applications/{app['id']}",
        json={"client_id": globex.id},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["client_id"] == globex.id

    response = await client.patch(f"/api/client-applications/{app['id']}/status", headers=admin_headers)
    assert response.json() == {"message": "Status updated", "status": "inactive"}

    response = await client.patch(f"/api/client-applications/{app['id']}/status", headers=admin_headers)
    assert response.json()["status"] == "active"


@pytest.mark.asyncio
async def test_unknown_application(client, admin_headers):
    response = await client.patch("/api/client-applications/missing/status", headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_app_sid_listed_by_another_client_is_rejected(client, admin_headers, acme, globex):
    response = await client.post(
        "/api/client-applications",
        json={"client_id": acme.id, "app_sid": "AP-globex"},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["details"]["field"] == "application_sid"

    # The client that lists the id may link it
    response = await client.post(
        "/api/client-applications",
        json={"client_id": globex.id, "app_sid": "AP-globex"},
        headers=admin_headers,
    )
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_moving_application_to_client_that_conflicts_is_rejected(client, admin_headers, acme, globex):
    app = (await client.post(
        "/api/client-applications",
        json={"client_id": globex.id, "app_sid": "AP-globex"},
        headers=admin_headers,
    )).json()

    # Globex still lists AP-globex on its client record
    response = await client.put(
        f"/api/client-applications/{app['id']}",
        json={"client_id": acme.id},
        headers=admin_headers,
    )
    assert response.status_code == 400
