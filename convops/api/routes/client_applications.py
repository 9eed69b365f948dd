"""Application id (App SID) directory endpoints."""

from typing import Any

import structlog
from fastapi import APIRouter, status
from pydantic import BaseModel, Field

from convops.api.dependencies import AdminUser, StorageDep, TenantResolverDep
from convops.core.exceptions import ResourceNotFound, ValidationFailed
from convops.models import ApplicationChannel, ApplicationStatus, ClientApplication
from convops.storage.base import StorageBackend

logger = structlog.get_logger()

router = APIRouter(prefix="/api/client-applications", tags=["Client Applications"])


# ==================== Pydantic Schemas ====================


class ApplicationCreate(BaseModel):
    client_id: str
    app_sid: str = Field(..., min_length=1)
    status: ApplicationStatus = ApplicationStatus.ACTIVE
    channels: list[ApplicationChannel] = Field(default_factory=list)


class ApplicationUpdate(BaseModel):
    client_id: str | None = None
    app_sid: str | None = Field(default=None, min_length=1)
    status: ApplicationStatus | None = None
    channels: list[ApplicationChannel] | None = None


# ==================== Helpers ====================


async def _get_application_or_404(storage: StorageBackend, application_id: str) -> ClientApplication:
    app = await storage.get_client_application(application_id)
    if not app:
        raise ResourceNotFound("App SID", application_id)
    return app


async def _check_sid_free(storage: StorageBackend, app_sid: str, exclude_id: str | None = None) -> None:
    existing = await storage.get_client_application_by_sid(app_sid)
    if existing and existing.id != exclude_id:
        raise ValidationFailed("App SID must be unique", field="app_sid")


async def _check_client(storage: StorageBackend, client_id: str) -> None:
    if not await storage.get_client(client_id):
        raise ValidationFailed("Client not found", field="client_id")


async def _with_client_name(storage: StorageBackend, app: ClientApplication) -> dict[str, Any]:
    data = app.model_dump(mode="json")
    client = await storage.get_client(app.client_id)
    data["client_name"] = client.name if client else None
    return data


# ==================== Endpoints ====================


@router.get("")
@router.get("/", include_in_schema=False)
async def list_applications(storage: StorageDep, admin: AdminUser) -> list[dict[str, Any]]:
    return [await _with_client_name(storage, app) for app in await storage.list_client_applications()]


@router.post("", status_code=status.HTTP_201_CREATED)
@router.post("/", status_code=status.HTTP_201_CREATED, include_in_schema=False)
async def create_application(
    data: ApplicationCreate,
    storage: StorageDep,
    tenants: TenantResolverDep,
    admin: AdminUser,
) -> dict[str, Any]:
    app_sid = data.app_sid.strip()
    await _check_sid_free(storage, app_sid)
    await _check_client(storage, data.client_id)
    await tenants.ensure_sids_available([app_sid], data.client_id)

    app = ClientApplication(
        client_id=data.client_id,
        app_sid=app_sid,
        status=data.status,
        channels=data.channels,
    )
    await storage.save_client_application(app)

    logger.info("Linked application", app_sid=app.app_sid, client_id=app.client_id)
    return app.model_dump(mode="json")


@router.put("/{application_id}")
async def update_application(
    application_id: str,
    data: ApplicationUpdate,
    storage: StorageDep,
    tenants: TenantResolverDep,
    admin: AdminUser,
) -> dict[str, Any]:
    app = await _get_application_or_404(storage, application_id)

    if data.app_sid:
        app_sid = data.app_sid.strip()
        await _check_sid_free(storage, app_sid, exclude_id=app.id)
        app.app_sid = app_sid
    if data.client_id:
        await _check_client(storage, data.client_id)
        app.client_id = data.client_id
    if data.status:
        app.status = data.status
    if data.channels is not None:
        app.channels = data.channels

    if data.app_sid or data.client_id:
        await tenants.ensure_sids_available([app.app_sid], app.client_id, exclude_application_id=app.id)
    await storage.save_client_application(app)
    logger.info("Updated application", app_sid=app.app_sid, client_id=app.client_id)
    return app.model_dump(mode="json")


@router.patch("/{application_id}/status")
async def toggle_application_status(application_id: str, storage: StorageDep, admin: AdminUser) -> dict[str, str]:
    app = await _get_application_or_404(storage, application_id)
    app.status = ApplicationStatus.INACTIVE if app.is_active else ApplicationStatus.ACTIVE
    await storage.save_client_application(app)

    logger.info("Toggled application", app_sid=app.app_sid, status=app.status.value)
    return {"message": "Status updated", "status": app.status.value}
