"""Tenant models: client organizations and their application identifiers."""

from datetime import datetime
from enum import Enum

from pydantic import Field, field_validator

from convops.models.common import TimestampedModel, split_identifiers, utcnow


class ClientStatus(str, Enum):
    """Client account status."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class Client(TimestampedModel):
    """Tenant (customer organization) model."""

    name: str = Field(..., description="Client display name, unique")
    industry: str | None = None
    country: str
    contact_email: str | None = None
    assigned_avatar_ids: list[str] = Field(default_factory=list)

    # External application identifiers correlating inbound voice traffic
    application_sid: list[str] = Field(default_factory=list)

    supports_text: bool = False
    supports_voice: bool = False
    status: ClientStatus = ClientStatus.ACTIVE
    notes: str | None = None
    service: str = "Standard"
    default_language: str = "en"

    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("application_sid", mode="before")
    @classmethod
    def _split_application_sid(cls, value):
        return split_identifiers(value)


class ApplicationStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class ApplicationChannel(str, Enum):
    VOICE = "voice"
    TEXT = "text"


class ClientApplication(TimestampedModel):
    """Maps an external application identifier to a client."""

    client_id: str
    app_sid: str
    status: ApplicationStatus = ApplicationStatus.ACTIVE
    channels: list[ApplicationChannel] = Field(default_factory=list)
    date_linked: datetime = Field(default_factory=utcnow)

    @property
    def is_active(self) -> bool:
        return self.status == ApplicationStatus.ACTIVE
