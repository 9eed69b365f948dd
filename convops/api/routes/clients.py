"""Client (tenant) administration endpoints."""

from typing import Any

import structlog
from fastapi import APIRouter, Query, status
from pydantic import BaseModel, EmailStr, Field

from convops.api.dependencies import AdminUser, LogFilterDep, StorageDep, TenantResolverDep
from convops.api.responses import log_page
from convops.core.exceptions import ResourceNotFound, ValidationFailed
from convops.models import Client, ClientStatus, TenantScope, paginate
from convops.storage.base import StorageBackend

logger = structlog.get_logger()

router = APIRouter(prefix="/api/clients", tags=["Clients"])


# ==================== Pydantic Schemas ====================


class ClientCreate(BaseModel):
    name: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)
    industry: str | None = None
    contact_email: EmailStr | None = None
    status: ClientStatus = ClientStatus.ACTIVE
    # Comma-separated string or list
    application_sid: str | list[str] | None = None
    assigned_avatar_ids: list[str] = Field(default_factory=list)
    supports_text: bool = False
    supports_voice: bool = False
    notes: str | None = None
    service: str | None = None
    default_language: str | None = None


class ClientUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    country: str | None = Field(default=None, min_length=1)
    industry: str | None = None
    contact_email: EmailStr | None = None
    status: ClientStatus | None = None
    application_sid: str | list[str] | None = None
    assigned_avatar_ids: list[str] | None = None
    supports_text: bool | None = None
    supports_voice: bool | None = None
    notes: str | None = None
    service: str | None = None
    default_language: str | None = None


class ClientStatusUpdate(BaseModel):
    status: ClientStatus


# ==================== Helpers ====================


async def _get_client_or_404(storage: StorageBackend, client_id: str) -> Client:
    client = await storage.get_client(client_id)
    if not client:
        raise ResourceNotFound("Client", client_id)
    return client


async def _check_duplicates(
    storage: StorageBackend,
    name: str | None,
    contact_email: str | None,
    exclude_id: str | None = None,
) -> None:
    """Names and contact e-mails are unique, ignoring case."""
    for other in await storage.list_clients():
        if other.id == exclude_id:
            continue
        if name and other.name.strip().lower() == name.strip().lower():
            raise ValidationFailed("Client with this name already exists", field="name")
        if contact_email and other.contact_email and other.contact_email.lower() == contact_email.lower():
            raise ValidationFailed("Client with this email already exists", field="contact_email")


def _matches_search(client: Client, search: str) -> bool:
    needle = search.lower()
    return needle in client.name.lower() or needle in (client.contact_email or "").lower()


# ==================== Endpoints ====================


@router.get("")
@router.get("/", include_in_schema=False)
async def list_clients(
    storage: StorageDep,
    admin: AdminUser,
    search: str = "",
    page: int = 1,
    limit: int = 10,
    status_filter: ClientStatus | None = Query(default=None, alias="status"),
) -> dict[str, Any]:
    clients = await storage.list_clients(status=status_filter.value if status_filter else None)
    if search:
        clients = [c for c in clients if _matches_search(c, search)]

    page_items, pagination = paginate(clients, page, limit)
    return {
        "clients": [c.model_dump(mode="json") for c in page_items],
        "pagination": pagination.model_dump(),
    }


@router.get("/{client_id}")
async def get_client(client_id: str, storage: StorageDep, admin: AdminUser) -> dict[str, Any]:
    return (await _get_client_or_404(storage, client_id)).model_dump(mode="json")


@router.post("", status_code=status.HTTP_201_CREATED)
@router.post("/", status_code=status.HTTP_201_CREATED, include_in_schema=False)
async def create_client(
    data: ClientCreate,
    storage: StorageDep,
    tenants: TenantResolverDep,
    admin: AdminUser,
) -> dict[str, Any]:
    contact_email = data.contact_email.lower() if data.contact_email else None
    await _check_duplicates(storage, data.name, contact_email)

    client = Client(
        name=data.name.strip(),
        country=data.country.strip(),
        industry=data.industry,
        contact_email=contact_email,
        status=data.status,
        application_sid=data.application_sid,
        assigned_avatar_ids=data.assigned_avatar_ids,
        supports_text=data.supports_text,
        supports_voice=data.supports_voice,
        notes=data.notes,
        service=data.service or "Standard",
        default_language=data.default_language or "en",
    )
    await tenants.ensure_sids_available(client.application_sid, client.id)
    await storage.save_client(client)

    logger.info("Created client", client_id=client.id, application_sid=client.application_sid)
    return {"message": "Client created successfully", "client": client.model_dump(mode="json")}


@router.put("/{client_id}")
async def update_client(
    client_id: str,
    data: ClientUpdate,
    storage: StorageDep,
    tenants: TenantResolverDep,
    admin: AdminUser,
) -> dict[str, Any]:
    client = await _get_client_or_404(storage, client_id)
    changes = data.model_dump(exclude_unset=True)

    if changes.get("contact_email"):
        changes["contact_email"] = changes["contact_email"].lower()
    await _check_duplicates(storage, changes.get("name"), changes.get("contact_email"), exclude_id=client.id)

    # Re-validate so application_sid strings are split like on create
    merged = client.model_dump()
    merged.update({k: v for k, v in changes.items() if v is not None})
    client = Client.model_validate(merged)
    if "application_sid" in changes:
        await tenants.ensure_sids_available(client.application_sid, client.id)
    await storage.save_client(client)

    logger.info("Updated client", client_id=client.id, fields=sorted(changes))
    return {"message": "Client updated successfully", "client": client.model_dump(mode="json")}


@router.patch("/{client_id}/status")
async def update_client_status(
    client_id: str,
    data: ClientStatusUpdate,
    storage: StorageDep,
    admin: AdminUser,
) -> dict[str, Any]:
    client = await _get_client_or_404(storage, client_id)
    client.status = data.status
    await storage.save_client(client)

    logger.info("Client status changed", client_id=client.id, status=client.status.value)
    return {"message": "Client status updated successfully", "client": client.model_dump(mode="json")}


@router.delete("/{client_id}")
async def delete_client(
    client_id: str,
    storage: StorageDep,
    tenants: TenantResolverDep,
    admin: AdminUser,
) -> dict[str, str]:
    """Delete a client that no longer has users or conversations."""
    client = await _get_client_or_404(storage, client_id)

    if await storage.list_users(client_id=client.id):
        raise ValidationFailed(
            "Cannot delete client. There are users associated with this client. "
            "Please remove or reassign users first."
        )
    if await storage.list_conversation_logs(await tenants.scope_for_client(client)):
        raise ValidationFailed(
            "Cannot delete client. There are conversations associated with this client. "
            "Please remove conversations first."
        )

    await storage.delete_client(client.id)
    logger.info("Deleted client", client_id=client.id, deleted_by=admin.id)
    return {"message": "Client deleted successfully"}


@router.get("/{client_id}/conversations")
async def list_client_conversations(
    client_id: str,
    storage: StorageDep,
    tenants: TenantResolverDep,
    filters: LogFilterDep,
    admin: AdminUser,
    page: int = 1,
    limit: int = 25,
) -> dict[str, Any]:
    """A client's conversation logs, as that client's own users would see them."""
    client = await _get_client_or_404(storage, client_id)
    scope: TenantScope = await tenants.scope_for_client(client)
    logs = await tenants.visible_logs(scope, filters)
    return await log_page(storage, logs, page, limit)
