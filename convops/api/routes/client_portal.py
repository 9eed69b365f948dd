"""Client portal: a tenant user's view of their own conversations."""

from typing import Any

from fastapi import APIRouter

from convops.api.dependencies import AnalyticsDep, LogFilterDep, StorageDep, TenantResolverDep, TenantUser, UserScope
from convops.api.responses import avatar_lookup, log_page, log_with_avatar
from convops.core.exceptions import ResourceNotFound

router = APIRouter(prefix="/api/client", tags=["Client Portal"])


@router.get("/dashboard")
async def dashboard(user: TenantUser, scope: UserScope, analytics: AnalyticsDep) -> dict[str, Any]:
    return await analytics.client_dashboard(scope)


@router.get("/logs")
async def list_logs(
    user: TenantUser,
    scope: UserScope,
    filters: LogFilterDep,
    storage: StorageDep,
    tenants: TenantResolverDep,
    page: int = 1,
    limit: int = 25,
) -> dict[str, Any]:
    logs = await tenants.visible_logs(scope, filters)
    return await log_page(storage, logs, page, limit)


@router.get("/logs/{log_id}")
async def get_log(log_id: str, user: TenantUser, scope: UserScope, storage: StorageDep) -> dict[str, Any]:
    log = await storage.get_conversation_log(log_id)
    # Out-of-scope logs are indistinguishable from missing ones
    if not log or not scope.matches(log):
        raise ResourceNotFound("Log", log_id)
    return log_with_avatar(log, await avatar_lookup(storage))


@router.get("/reports")
async def reports(
    user: TenantUser,
    scope: UserScope,
    filters: LogFilterDep,
    storage: StorageDep,
    tenants: TenantResolverDep,
    page: int = 1,
    limit: int = 25,
) -> dict[str, Any]:
    """Report listing: chat logs by client, voice logs by application id."""
    logs = await tenants.visible_logs(scope, filters)
    return await log_page(storage, logs, page, limit)
