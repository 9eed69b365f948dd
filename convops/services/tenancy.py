"""Tenant resolution: who may see which conversation logs."""

import structlog

from convops.core.exceptions import ValidationFailed
from convops.models import (
    ChannelType,
    Client,
    ConversationFilter,
    ConversationLog,
    TenantScope,
    User,
)
from convops.storage.base import StorageBackend

logger = structlog.get_logger()


class TenantResolver:
    """Builds tenant scopes and attributes logs to clients."""

    def __init__(self, storage: StorageBackend) -> None:
        self.storage = storage

    async def application_sids_for(self, client: Client) -> set[str]:
        """All application identifiers routing traffic to ``client``."""
        sids = set(client.application_sid)
        for app in await self.storage.list_client_applications(client_id=client.id):
            if app.is_active:
                sids.add(app.app_sid)
        return sids

    async def scope_for_client(self, client: Client) -> TenantScope:
        return TenantScope.for_client(client.id, await self.application_sids_for(client))

    async def scope_for_user(self, user: User) -> TenantScope:
        """Scope for an authenticated user.

        Internal roles see everything. Tenant roles see their client's logs;
        a tenant user without a client sees nothing.
        """
        if user.is_internal:
            return TenantScope.everything()
        if not user.client_id:
            logger.info("User has no client link", user_id=user.id)
            return TenantScope.nothing()

        client = await self.storage.get_client(user.client_id)
        if not client:
            logger.warning("User linked to missing client", user_id=user.id, client_id=user.client_id)
            # Logs may still carry the id even if the client document is gone
            return TenantScope.for_client(user.client_id, user.application_sid)
        return await self.scope_for_client(client)

    async def ensure_sids_available(
        self,
        sids: list[str] | set[str],
        client_id: str,
        exclude_application_id: str | None = None,
    ) -> None:
        """Reject application ids already routed to a different client.

        Raises:
            ValidationFailed: If another client lists one of ``sids`` or owns
                it through the application directory
        """
        wanted = {sid for sid in sids if sid}
        if not wanted:
            return

        owners: dict[str, str] = {}
        for client in await self.storage.list_clients():
            if client.id != client_id:
                for sid in wanted.intersection(client.application_sid):
                    owners.setdefault(sid, client.id)
        for app in await self.storage.list_client_applications():
            if app.id != exclude_application_id and app.client_id != client_id and app.app_sid in wanted:
                owners.setdefault(app.app_sid, app.client_id)

        if owners:
            taken = sorted(owners)
            logger.info("Application id already assigned", sids=taken, client_id=client_id, owners=owners)
            raise ValidationFailed(
                f"Application SID already assigned to another client: {', '.join(taken)}",
                field="application_sid",
                details={"sids": taken},
            )

    async def client_index(self) -> dict[str, str]:
        """Map every known application identifier to its client id."""
        index: dict[str, str] = {}
        for client in await self.storage.list_clients():
            for sid in client.application_sid:
                index.setdefault(sid, client.id)
        for app in await self.storage.list_client_applications():
            if app.is_active:
                index[app.app_sid] = app.client_id
        return index

    async def attribute(self, log: ConversationLog) -> ConversationLog:
        """Fill ``client_id`` on a log about to be stored.

        Chat logs are attributed through their bot, voice logs through the
        application identifier directory.
        """
        if log.client_id:
            return log

        if log.bot_id:
            bot = await self.storage.get_bot(log.bot_id)
            if bot and bot.client_id:
                log.client_id = bot.client_id

        if not log.client_id and log.channel_type == ChannelType.VOICE and log.application_sid:
            app = await self.storage.get_client_application_by_sid(log.application_sid)
            if app and app.is_active:
                log.client_id = app.client_id
            elif not app:
                log.client_id = (await self.client_index()).get(log.application_sid)

        if not log.client_id:
            logger.info(
                "Conversation log not attributed to a client",
                channel_type=log.channel_type.value,
                application_sid=log.application_sid,
                bot_id=log.bot_id,
            )
        return log

    async def visible_logs(
        self,
        scope: TenantScope,
        filters: ConversationFilter | None = None,
    ) -> list[ConversationLog]:
        """Logs inside ``scope`` that also pass the request filters."""
        if scope.is_empty:
            return []
        channel = filters.channel_type if filters else None
        logs = await self.storage.list_conversation_logs(scope, channel_type=channel)
        if filters:
            logs = [log for log in logs if filters.matches(log)]
        return logs
