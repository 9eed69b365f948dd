"""Abstract base class for storage backends."""

from abc import ABC, abstractmethod

from convops.models import (
    Avatar,
    Bot,
    ChannelType,
    Client,
    ClientApplication,
    ConversationLog,
    TenantScope,
    User,
)


class StorageBackend(ABC):
    """Abstract document storage interface.

    Lookups return ``None`` when a document does not exist. List operations
    accept only equality filters; free-text search, pagination and
    aggregation happen in the service layer.
    """

    # ==================== User Operations ====================

    @abstractmethod
    async def get_user(self, user_id: str) -> User | None:
        """Get a user by ID."""
        ...

    @abstractmethod
    async def get_user_by_email(self, email: str) -> User | None:
        """Get a user by e-mail (case-insensitive)."""
        ...

    @abstractmethod
    async def get_user_by_reset_token(self, token_hash: str) -> User | None:
        """Get the user holding a password-reset token hash."""
        ...

    @abstractmethod
    async def save_user(self, user: User) -> User:
        """Save or update a user."""
        ...

    @abstractmethod
    async def delete_user(self, user_id: str) -> bool:
        """Delete a user."""
        ...

    @abstractmethod
    async def list_users(
        self,
        client_id: str | None = None,
        role: str | None = None,
        status: str | None = None,
    ) -> list[User]:
        """List users, newest first."""
        ...

    # ==================== Client Operations ====================

    @abstractmethod
    async def get_client(self, client_id: str) -> Client | None:
        """Get a client by ID."""
        ...

    @abstractmethod
    async def save_client(self, client: Client) -> Client:
        """Save or update a client."""
        ...

    @abstractmethod
    async def delete_client(self, client_id: str) -> bool:
        """Delete a client."""
        ...

    @abstractmethod
    async def list_clients(self, status: str | None = None) -> list[Client]:
        """List clients, newest first."""
        ...

    # ==================== Client Application Operations ====================

    @abstractmethod
    async def get_client_application(self, application_id: str) -> ClientApplication | None:
        ...

    @abstractmethod
    async def get_client_application_by_sid(self, app_sid: str) -> ClientApplication | None:
        ...

    @abstractmethod
    async def save_client_application(self, application: ClientApplication) -> ClientApplication:
        ...

    @abstractmethod
    async def list_client_applications(self, client_id: str | None = None) -> list[ClientApplication]:
        ...

    # ==================== Avatar Operations ====================

    @abstractmethod
    async def get_avatar(self, avatar_id: str) -> Avatar | None:
        ...

    @abstractmethod
    async def save_avatar(self, avatar: Avatar) -> Avatar:
        ...

    @abstractmethod
    async def delete_avatar(self, avatar_id: str) -> bool:
        ...

    @abstractmethod
    async def list_avatars(self, status: str | None = None, category: str | None = None) -> list[Avatar]:
        """List avatars, newest first."""
        ...

    # ==================== Bot Operations ====================

    @abstractmethod
    async def get_bot(self, bot_id: str) -> Bot | None:
        ...

    @abstractmethod
    async def get_bot_by_dnis(self, dnis: str) -> Bot | None:
        """Find the bot routed to a dialled number."""
        ...

    @abstractmethod
    async def save_bot(self, bot: Bot) -> Bot:
        ...

    @abstractmethod
    async def delete_bot(self, bot_id: str) -> bool:
        ...

    @abstractmethod
    async def list_bots(
        self,
        client_id: str | None = None,
        bot_type: str | None = None,
        active: bool | None = None,
        category: str | None = None,
    ) -> list[Bot]:
        ...

    # ==================== Conversation Log Operations ====================

    @abstractmethod
    async def get_conversation_log(self, log_id: str) -> ConversationLog | None:
        """Get a conversation log by document ID or ``conv_<id>`` identifier."""
        ...

    @abstractmethod
    async def save_conversation_log(self, log: ConversationLog) -> ConversationLog:
        ...

    @abstractmethod
    async def list_conversation_logs(
        self,
        scope: TenantScope,
        channel_type: ChannelType | None = None,
    ) -> list[ConversationLog]:
        """List logs visible through ``scope``, most recent activity first."""
        ...

    # ==================== Health Check ====================

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if storage is healthy."""
        ...
