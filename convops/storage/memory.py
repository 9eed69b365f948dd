"""In-memory storage backend for development and testing."""

from convops.core.security import hash_password
from convops.models import (
    Avatar,
    Bot,
    ChannelType,
    Client,
    ClientApplication,
    ConversationLog,
    TenantScope,
    User,
    UserRole,
    utcnow,
)
from convops.storage.base import StorageBackend


def _copy(item):
    """Detached copy, so callers never mutate stored documents in place."""
    return item.model_copy(deep=True) if item is not None else None


def _newest_first(items: list) -> list:
    return sorted((_copy(x) for x in items), key=lambda x: x.created_at, reverse=True)


class InMemoryStorage(StorageBackend):
    """In-memory storage implementation for development."""

    def __init__(self) -> None:
        self._users: dict[str, User] = {}
        self._clients: dict[str, Client] = {}
        self._applications: dict[str, ClientApplication] = {}
        self._avatars: dict[str, Avatar] = {}
        self._bots: dict[str, Bot] = {}
        self._logs: dict[str, ConversationLog] = {}

    # ==================== User Operations ====================

    async def get_user(self, user_id: str) -> User | None:
        return _copy(self._users.get(user_id))

    async def get_user_by_email(self, email: str) -> User | None:
        wanted = email.strip().lower()
        for user in self._users.values():
            if user.email.lower() == wanted:
                return _copy(user)
        return None

    async def get_user_by_reset_token(self, token_hash: str) -> User | None:
        for user in self._users.values():
            if user.reset_token_hash and user.reset_token_hash == token_hash:
                return _copy(user)
        return None

    async def save_user(self, user: User) -> User:
        user.updated_at = utcnow()
        self._users[user.id] = _copy(user)
        return user

    async def delete_user(self, user_id: str) -> bool:
        return self._users.pop(user_id, None) is not None

    async def list_users(
        self,
        client_id: str | None = None,
        role: str | None = None,
        status: str | None = None,
    ) -> list[User]:
        users = list(self._users.values())
        if client_id:
            users = [u for u in users if u.client_id == client_id]
        if role:
            users = [u for u in users if u.role == role]
        if status:
            users = [u for u in users if u.status == status]
        return _newest_first(users)

    # ==================== Client Operations ====================

    async def get_client(self, client_id: str) -> Client | None:
        return _copy(self._clients.get(client_id))

    async def save_client(self, client: Client) -> Client:
        client.updated_at = utcnow()
        self._clients[client.id] = _copy(client)
        return client

    async def delete_client(self, client_id: str) -> bool:
        return self._clients.pop(client_id, None) is not None

    async def list_clients(self, status: str | None = None) -> list[Client]:
        clients = list(self._clients.values())
        if status:
            clients = [c for c in clients if c.status == status]
        return _newest_first(clients)

    # ==================== Client Application Operations ====================

    async def get_client_application(self, application_id: str) -> ClientApplication | None:
        return _copy(self._applications.get(application_id))

    async def get_client_application_by_sid(self, app_sid: str) -> ClientApplication | None:
        for app in self._applications.values():
            if app.app_sid == app_sid:
                return _copy(app)
        return None

    async def save_client_application(self, application: ClientApplication) -> ClientApplication:
        self._applications[application.id] = _copy(application)
        return application

    async def list_client_applications(self, client_id: str | None = None) -> list[ClientApplication]:
        apps = list(self._applications.values())
        if client_id:
            apps = [a for a in apps if a.client_id == client_id]
        return _newest_first(apps)

    # ==================== Avatar Operations ====================

    async def get_avatar(self, avatar_id: str) -> Avatar | None:
        return _copy(self._avatars.get(avatar_id))

    async def save_avatar(self, avatar: Avatar) -> Avatar:
        self._avatars[avatar.id] = _copy(avatar)
        return avatar

    async def delete_avatar(self, avatar_id: str) -> bool:
        return self._avatars.pop(avatar_id, None) is not None

    async def list_avatars(self, status: str | None = None, category: str | None = None) -> list[Avatar]:
        avatars = list(self._avatars.values())
        if status:
            avatars = [a for a in avatars if a.status == status]
        if category:
            avatars = [a for a in avatars if a.category == category]
        return _newest_first(avatars)

    # ==================== Bot Operations ====================

    async def get_bot(self, bot_id: str) -> Bot | None:
        return _copy(self._bots.get(bot_id))

    async def get_bot_by_dnis(self, dnis: str) -> Bot | None:
        for bot in self._bots.values():
            if dnis in bot.dnis:
                return _copy(bot)
        return None

    async def save_bot(self, bot: Bot) -> Bot:
        bot.updated_at = utcnow()
        self._bots[bot.id] = _copy(bot)
        return bot

    async def delete_bot(self, bot_id: str) -> bool:
        return self._bots.pop(bot_id, None) is not None

    async def list_bots(
        self,
        client_id: str | None = None,
        bot_type: str | None = None,
        active: bool | None = None,
        category: str | None = None,
    ) -> list[Bot]:
        bots = list(self._bots.values())
        if client_id:
            bots = [b for b in bots if b.client_id == client_id]
        if bot_type:
            bots = [b for b in bots if b.type == bot_type]
        if active is not None:
            bots = [b for b in bots if b.active == active]
        if category:
            bots = [b for b in bots if b.category == category]
        return _newest_first(bots)

    # ==================== Conversation Log Operations ====================

    async def get_conversation_log(self, log_id: str) -> ConversationLog | None:
        if log_id in self._logs:
            return _copy(self._logs[log_id])
        for log in self._logs.values():
            if log.conversation_id == log_id:
                return _copy(log)
        return None

    async def save_conversation_log(self, log: ConversationLog) -> ConversationLog:
        log.updated_at = utcnow()
        self._logs[log.id] = _copy(log)
        return log

    async def list_conversation_logs(
        self,
        scope: TenantScope,
        channel_type: ChannelType | None = None,
    ) -> list[ConversationLog]:
        logs = [_copy(log) for log in self._logs.values() if scope.matches(log)]
        if channel_type:
            logs = [log for log in logs if log.channel_type == channel_type]
        logs.sort(key=lambda x: x.activity_at, reverse=True)
        return logs

    # ==================== Health Check ====================

    async def health_check(self) -> bool:
        return True

    # ==================== Development Helpers ====================

    async def clear_all(self) -> None:
        """Clear all data (for testing)."""
        self._users.clear()
        self._clients.clear()
        self._applications.clear()
        self._avatars.clear()
        self._bots.clear()
        self._logs.clear()

    async def seed_demo_admin(self, email: str = "admin@example.com", password: str = "admin123") -> User:
        """Create an internal administrator for local development."""
        existing = await self.get_user_by_email(email)
        if existing:
            return existing
        admin = User(
            first_name="Demo",
            last_name="Admin",
            email=email,
            hashed_password=hash_password(password),
            role=UserRole.SUPER_ADMIN,
        )
        return await self.save_user(admin)
