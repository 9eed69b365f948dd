"""User administration endpoints (internal staff only)."""

from typing import Any

import structlog
from fastapi import APIRouter, Query, status
from pydantic import BaseModel, EmailStr, Field

from convops.api.dependencies import AdminUser, StorageDep
from convops.core.exceptions import ResourceNotFound, ValidationFailed
from convops.core.security import hash_password
from convops.models import TENANT_ROLES, User, UserRole, UserStatus, paginate
from convops.services.auth import check_password_strength, normalize_email
from convops.storage.base import StorageBackend

logger = structlog.get_logger()

router = APIRouter(prefix="/api/users", tags=["Users"])


# ==================== Pydantic Schemas ====================


class UserCreate(BaseModel):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: EmailStr
    password: str
    role: UserRole
    client_id: str | None = None
    status: UserStatus = UserStatus.ACTIVE


class UserUpdate(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    email: EmailStr | None = None
    role: UserRole | None = None
    # Explicit null unlinks the user from their client
    client_id: str | None = None
    status: UserStatus | None = None


class StatusUpdate(BaseModel):
    status: UserStatus


# ==================== Helpers ====================


async def _get_user_or_404(storage: StorageBackend, user_id: str) -> User:
    user = await storage.get_user(user_id)
    if not user:
        raise ResourceNotFound("User", user_id)
    return user


async def _client_application_sids(storage: StorageBackend, client_id: str | None) -> list[str]:
    """Application ids copied onto a user when linking them to a client."""
    if not client_id:
        return []
    client = await storage.get_client(client_id)
    if not client:
        raise ValidationFailed("Client not found", field="client_id")
    return list(client.application_sid)


def _matches_search(user: User, search: str) -> bool:
    needle = search.lower()
    return any(needle in value.lower() for value in (user.first_name, user.last_name, user.email))


async def _with_client_name(storage: StorageBackend, user: User) -> dict[str, Any]:
    data = user.to_public()
    client = await storage.get_client(user.client_id) if user.client_id else None
    data["client_name"] = client.name if client else None
    return data


# ==================== Endpoints ====================


@router.get("")
@router.get("/", include_in_schema=False)
async def list_users(
    storage: StorageDep,
    admin: AdminUser,
    search: str = "",
    page: int = 1,
    limit: int = 10,
    status_filter: UserStatus | None = Query(default=None, alias="status"),
    role: UserRole | None = None,
    client: str | None = None,
) -> dict[str, Any]:
    """List users with search, filters and pagination."""
    users = await storage.list_users(
        client_id=client or None,
        role=role.value if role else None,
        status=status_filter.value if status_filter else None,
    )
    if search:
        users = [u for u in users if _matches_search(u, search)]

    page_items, pagination = paginate(users, page, limit)
    return {
        "users": [await _with_client_name(storage, u) for u in page_items],
        "pagination": pagination.model_dump(),
    }


@router.get("/{user_id}")
async def get_user(user_id: str, storage: StorageDep, admin: AdminUser) -> dict[str, Any]:
    return await _with_client_name(storage, await _get_user_or_404(storage, user_id))


@router.post("", status_code=status.HTTP_201_CREATED)
@router.post("/", status_code=status.HTTP_201_CREATED, include_in_schema=False)
async def create_user(data: UserCreate, storage: StorageDep, admin: AdminUser) -> dict[str, Any]:
    """Create a user.

    Tenant roles must be linked to an existing client; the client's
    application ids are copied onto the user.
    """
    email = normalize_email(data.email)
    if await storage.get_user_by_email(email):
        raise ValidationFailed("User with this email already exists", field="email")
    check_password_strength(data.password)

    if data.role in TENANT_ROLES and not data.client_id:
        raise ValidationFailed("Client is required for client roles", field="client_id")

    user = User(
        first_name=data.first_name.strip(),
        last_name=data.last_name.strip(),
        email=email,
        hashed_password=hash_password(data.password),
        role=data.role,
        client_id=data.client_id,
        application_sid=await _client_application_sids(storage, data.client_id),
        status=data.status,
        created_by=admin.id,
    )
    await storage.save_user(user)

    logger.info("Created user", user_id=user.id, role=user.role.value, client_id=user.client_id)
    return {"message": "User created successfully", "user": user.to_public()}


@router.put("/{user_id}")
async def update_user(user_id: str, data: UserUpdate, storage: StorageDep, admin: AdminUser) -> dict[str, Any]:
    user = await _get_user_or_404(storage, user_id)
    fields = data.model_fields_set

    if data.first_name:
        user.first_name = data.first_name.strip()
    if data.last_name:
        user.last_name = data.last_name.strip()
    if data.email:
        email = normalize_email(data.email)
        existing = await storage.get_user_by_email(email)
        if existing and existing.id != user.id:
            raise ValidationFailed("User with this email already exists", field="email")
        user.email = email
    if data.role:
        user.role = data.role
    if data.status:
        user.status = data.status

    if "client_id" in fields:
        # Relinking refreshes the application id snapshot
        user.client_id = data.client_id or None
        user.application_sid = await _client_application_sids(storage, user.client_id)

    if user.role in TENANT_ROLES and not user.client_id:
        raise ValidationFailed("Client is required for client roles", field="client_id")

    await storage.save_user(user)
    logger.info("Updated user", user_id=user.id, fields=sorted(fields))
    return {"message": "User updated successfully", "user": user.to_public()}


@router.patch("/{user_id}/status")
async def update_user_status(user_id: str, data: StatusUpdate, storage: StorageDep, admin: AdminUser) -> dict[str, Any]:
    user = await _get_user_or_404(storage, user_id)
    user.status = data.status
    await storage.save_user(user)

    logger.info("User status changed", user_id=user.id, status=user.status.value)
    return {"message": "User status updated successfully", "user": user.to_public()}


@router.delete("/{user_id}")
async def delete_user(user_id: str, storage: StorageDep, admin: AdminUser) -> dict[str, str]:
    await _get_user_or_404(storage, user_id)
    if user_id == admin.id:
        raise ValidationFailed("You cannot delete your own account")

    await storage.delete_user(user_id)
    logger.info("Deleted user", user_id=user_id, deleted_by=admin.id)
    return {"message": "User deleted successfully"}
