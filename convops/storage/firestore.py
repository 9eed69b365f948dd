"""Firestore storage backend for production."""

import os

import structlog

from convops.models import (
    Avatar,
    Bot,
    ChannelType,
    Client,
    ClientApplication,
    ConversationLog,
    TenantScope,
    User,
    utcnow,
)
from convops.storage.base import StorageBackend

logger = structlog.get_logger()

# Firestore caps "in" filters at 30 values
_IN_QUERY_CHUNK = 30


class FirestoreStorage(StorageBackend):
    """Firestore storage implementation for production.

    Collection structure:
    - users/{user_id}
    - clients/{client_id}
    - client_applications/{application_id}
    - avatars/{avatar_id}
    - bots/{bot_id}
    - conversation_logs/{log_id}
    """

    def __init__(self, project_id: str | None = None) -> None:
        self._project_id = project_id
        self._db = None
        self._initialized = False

    async def _ensure_initialized(self) -> None:
        """Lazy initialization of Firestore client."""
        if self._initialized:
            return

        try:
            from google.cloud import firestore

            # Check if using emulator
            if os.environ.get("FIRESTORE_EMULATOR_HOST"):
                logger.info("Using Firestore emulator")

            self._db = firestore.AsyncClient(project=self._project_id or None)
            self._initialized = True
            logger.info("Firestore client initialized", project=self._project_id)
        except Exception as e:
            logger.error("Failed to initialize Firestore", error=str(e))
            raise

    async def _get(self, collection: str, doc_id: str) -> dict | None:
        await self._ensure_initialized()
        doc = await self._db.collection(collection).document(doc_id).get()
        if not doc.exists:
            return None
        return doc.to_dict()

    async def _set(self, collection: str, doc_id: str, data: dict) -> None:
        await self._ensure_initialized()
        await self._db.collection(collection).document(doc_id).set(data)

    async def _delete(self, collection: str, doc_id: str) -> bool:
        await self._ensure_initialized()
        ref = self._db.collection(collection).document(doc_id)
        doc = await ref.get()
        if not doc.exists:
            return False
        await ref.delete()
        return True

    async def _query(self, collection: str, **filters) -> list[dict]:
        """Run an equality query; ``None`` filters are skipped."""
        await self._ensure_initialized()
        query = self._db.collection(collection)
        for field_name, value in filters.items():
            if value is not None:
                query = query.where(field_name, "==", value)
        docs = await query.get()
        return [doc.to_dict() for doc in docs]

    # ==================== User Operations ====================

    async def get_user(self, user_id: str) -> User | None:
        data = await self._get("users", user_id)
        return User(**data) if data else None

    async def get_user_by_email(self, email: str) -> User | None:
        # E-mails are stored lower-cased
        docs = await self._query("users", email=email.strip().lower())
        return User(**docs[0]) if docs else None

    async def get_user_by_reset_token(self, token_hash: str) -> User | None:
        docs = await self._query("users", reset_token_hash=token_hash)
        return User(**docs[0]) if docs else None

    async def save_user(self, user: User) -> User:
        user.updated_at = utcnow()
        await self._set("users", user.id, user.model_dump(mode="json"))
        return user

    async def delete_user(self, user_id: str) -> bool:
        return await self._delete("users", user_id)

    async def list_users(
        self,
        client_id: str | None = None,
        role: str | None = None,
        status: str | None = None,
    ) -> list[User]:
        docs = await self._query("users", client_id=client_id, role=role, status=status)
        users = [User(**doc) for doc in docs]
        return sorted(users, key=lambda u: u.created_at, reverse=True)

    # ==================== Client Operations ====================

    async def get_client(self, client_id: str) -> Client | None:
        data = await self._get("clients", client_id)
        return Client(**data) if data else None

    async def save_client(self, client: Client) -> Client:
        client.updated_at = utcnow()
        await self._set("clients", client.id, client.model_dump(mode="json"))
        return client

    async def delete_client(self, client_id: str) -> bool:
        return await self._delete("clients", client_id)

    async def list_clients(self, status: str | None = None) -> list[Client]:
        docs = await self._query("clients", status=status)
        clients = [Client(**doc) for doc in docs]
        return sorted(clients, key=lambda c: c.created_at, reverse=True)

    # ==================== Client Application Operations ====================

    async def get_client_application(self, application_id: str) -> ClientApplication | None:
        data = await self._get("client_applications", application_id)
        return ClientApplication(**data) if data else None

    async def get_client_application_by_sid(self, app_sid: str) -> ClientApplication | None:
        docs = await self._query("client_applications", app_sid=app_sid)
        return ClientApplication(**docs[0]) if docs else None

    async def save_client_application(self, application: ClientApplication) -> ClientApplication:
        await self._set("client_applications", application.id, application.model_dump(mode="json"))
        return application

    async def list_client_applications(self, client_id: str | None = None) -> list[ClientApplication]:
        docs = await self._query("client_applications", client_id=client_id)
        apps = [ClientApplication(**doc) for doc in docs]
        return sorted(apps, key=lambda a: a.created_at, reverse=True)

    # ==================== Avatar Operations ====================

    async def get_avatar(self, avatar_id: str) -> Avatar | None:
        data = await self._get("avatars", avatar_id)
        return Avatar(**data) if data else None

    async def save_avatar(self, avatar: Avatar) -> Avatar:
        await self._set("avatars", avatar.id, avatar.model_dump(mode="json"))
        return avatar

    async def delete_avatar(self, avatar_id: str) -> bool:
        return await self._delete("avatars", avatar_id)

    async def list_avatars(self, status: str | None = None, category: str | None = None) -> list[Avatar]:
        docs = await self._query("avatars", status=status, category=category)
        avatars = [Avatar(**doc) for doc in docs]
        return sorted(avatars, key=lambda a: a.created_at, reverse=True)

    # ==================== Bot Operations ====================

    async def get_bot(self, bot_id: str) -> Bot | None:
        data = await self._get("bots", bot_id)
        return Bot(**data) if data else None

    async def get_bot_by_dnis(self, dnis: str) -> Bot | None:
        await self._ensure_initialized()
        query = self._db.collection("bots").where("dnis", "array_contains", dnis).limit(1)
        docs = await query.get()
        for doc in docs:
            return Bot(**doc.to_dict())
        return None

    async def save_bot(self, bot: Bot) -> Bot:
        bot.updated_at = utcnow()
        await self._set("bots", bot.id, bot.model_dump(mode="json"))
        return bot

    async def delete_bot(self, bot_id: str) -> bool:
        return await self._delete("bots", bot_id)

    async def list_bots(
        self,
        client_id: str | None = None,
        bot_type: str | None = None,
        active: bool | None = None,
        category: str | None = None,
    ) -> list[Bot]:
        docs = await self._query("bots", client_id=client_id, type=bot_type, active=active, category=category)
        bots = [Bot(**doc) for doc in docs]
        return sorted(bots, key=lambda b: b.created_at, reverse=True)

    # ==================== Conversation Log Operations ====================

    async def get_conversation_log(self, log_id: str) -> ConversationLog | None:
        data = await self._get("conversation_logs", log_id)
        if data:
            return ConversationLog(**data)
        docs = await self._query("conversation_logs", conversation_id=log_id)
        return ConversationLog(**docs[0]) if docs else None

    async def save_conversation_log(self, log: ConversationLog) -> ConversationLog:
        log.updated_at = utcnow()
        await self._set("conversation_logs", log.id, log.model_dump(mode="json"))
        return log

    async def list_conversation_logs(
        self,
        scope: TenantScope,
        channel_type: ChannelType | None = None,
    ) -> list[ConversationLog]:
        await self._ensure_initialized()
        channel = channel_type.value if channel_type else None

        if scope.unrestricted:
            docs = await self._query("conversation_logs", channel_type=channel)
        elif scope.is_empty:
            return []
        else:
            # Union of the direct client_id match and the voice app-sid match
            docs = []
            if scope.client_id:
                docs.extend(await self._query("conversation_logs", client_id=scope.client_id, channel_type=channel))
            if channel in (None, ChannelType.VOICE.value):
                sids = sorted(scope.application_sids)
                for start in range(0, len(sids), _IN_QUERY_CHUNK):
                    query = (
                        self._db.collection("conversation_logs")
                        .where("channel_type", "==", ChannelType.VOICE.value)
                        .where("application_sid", "in", sids[start:start + _IN_QUERY_CHUNK])
                    )
                    docs.extend(doc.to_dict() for doc in await query.get())

        seen: set[str] = set()
        logs = []
        for doc in docs:
            log = ConversationLog(**doc)
            if log.id in seen or not scope.matches(log):
                continue
            seen.add(log.id)
            logs.append(log)
        logs.sort(key=lambda x: x.activity_at, reverse=True)
        return logs

    # ==================== Health Check ====================

    async def health_check(self) -> bool:
        try:
            await self._ensure_initialized()
            # Simple health check - try to access a collection
            await self._db.collection("_health").document("check").get()
            return True
        except Exception as e:
            logger.error("Firestore health check failed", error=str(e))
            return False
