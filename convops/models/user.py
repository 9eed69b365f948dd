"""User accounts, roles and role groups."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import Field

from convops.models.common import TimestampedModel, utcnow


class UserRole(str, Enum):
    """Fixed role enumeration."""

    ADMIN = "admin"
    INTERNAL_ADMIN = "internal_admin"
    SUPER_ADMIN = "super_admin"
    CLIENT_ADMIN = "client_admin"
    CLIENT_MANAGER = "client_manager"
    CLIENT_VIEWER = "client_viewer"
    BUSINESS_MANAGER = "business_manager"
    CAMPAIGN_MANAGER = "campaign_manager"
    SUPPORT_AGENT = "support_agent"


class UserStatus(str, Enum):
    """User account lifecycle status."""

    ACTIVE = "active"
    DISABLED = "disabled"
    INVITED = "invited"


# Platform operators: unrestricted data scope
INTERNAL_ROLES: tuple[UserRole, ...] = (
    UserRole.ADMIN,
    UserRole.INTERNAL_ADMIN,
    UserRole.SUPER_ADMIN,
)

# Everyone else is confined to their own client
TENANT_ROLES: tuple[UserRole, ...] = tuple(r for r in UserRole if r not in INTERNAL_ROLES)

PROFILE_EDIT_ROLES: tuple[UserRole, ...] = INTERNAL_ROLES


class User(TimestampedModel):
    """Platform user with credentials and optional tenant linkage."""

    first_name: str
    last_name: str
    email: str
    hashed_password: str
    role: UserRole
    client_id: str | None = None
    # Snapshot of the client's application identifiers when the user was linked
    application_sid: list[str] = Field(default_factory=list)
    status: UserStatus = UserStatus.ACTIVE

    reset_token_hash: str | None = None
    reset_token_expiry: datetime | None = None

    last_login_at: datetime | None = None
    created_by: str | None = None
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_internal(self) -> bool:
        return self.role in INTERNAL_ROLES

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    def to_public(self) -> dict[str, Any]:
        """Representation safe to return from the API."""
        return self.model_dump(
            mode="json",
            exclude={"hashed_password", "reset_token_hash", "reset_token_expiry"},
        )

    def summary(self) -> dict[str, Any]:
        """Compact user block returned at login and from /me."""
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "name": self.full_name,
            "email": self.email,
            "role": self.role.value,
            "status": self.status.value,
            "client_id": self.client_id,
            "application_sid": list(self.application_sid),
            "last_login_at": self.last_login_at.isoformat() if self.last_login_at else None,
            "created_at": self.created_at.isoformat(),
        }
