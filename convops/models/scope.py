"""Tenant scope predicate and conversation filters.

Conversation logs are attributed to a client in two ways: directly through
``client_id`` (chat widget traffic, and anything attributed at ingestion) or,
for voice traffic the call engine sent before its application id was
linked, through ``application_sid``. A log that carries a ``client_id``
belongs to that client only.
``TenantScope`` is the only place that rule lives; every scoped read goes
through it.
"""

from dataclasses import dataclass, field
from datetime import datetime

from convops.models.common import ensure_utc
from convops.models.conversation import ChannelType, ConversationLog


@dataclass(frozen=True)
class TenantScope:
    """Which conversation logs a caller may see."""

    client_id: str | None = None
    application_sids: frozenset[str] = field(default_factory=frozenset)
    unrestricted: bool = False

    @classmethod
    def everything(cls) -> "TenantScope":
        return cls(unrestricted=True)

    @classmethod
    def nothing(cls) -> "TenantScope":
        return cls()

    @classmethod
    def for_client(cls, client_id: str, application_sids: "set[str] | list[str] | frozenset[str]" = ()) -> "TenantScope":
        return cls(client_id=client_id, application_sids=frozenset(s for s in application_sids if s))

    @property
    def is_empty(self) -> bool:
        return not self.unrestricted and not self.client_id and not self.application_sids

    def matches(self, log: ConversationLog) -> bool:
        if self.unrestricted:
            return True
        if log.client_id:
            return log.client_id == self.client_id
        # Unattributed voice logs are addressed by their application id
        return (
            log.channel_type == ChannelType.VOICE
            and log.application_sid is not None
            and log.application_sid in self.application_sids
        )

    def allows_client(self, client_id: str | None) -> bool:
        """Whether records owned by ``client_id`` are visible."""
        return self.unrestricted or (client_id is not None and client_id == self.client_id)


@dataclass(frozen=True)
class ConversationFilter:
    """Request-level filters, always AND-ed with a scope."""

    channel_type: ChannelType | None = None
    avatar_id: str | None = None
    # Narrows voice records only; chat/text records are addressed by client_id
    application_sids: frozenset[str] = field(default_factory=frozenset)
    date_from: datetime | None = None
    date_to: datetime | None = None

    def matches(self, log: ConversationLog) -> bool:
        if self.channel_type and log.channel_type != self.channel_type:
            return False
        if self.avatar_id and log.avatar_id != self.avatar_id:
            return False
        if (
            self.application_sids
            and log.channel_type == ChannelType.VOICE
            and log.application_sid not in self.application_sids
        ):
            return False
        when = log.activity_at
        date_from = ensure_utc(self.date_from)
        date_to = ensure_utc(self.date_to)
        if date_from and when < date_from:
            return False
        if date_to and when > date_to:
            return False
        return True
