"""Core module - configuration and utilities."""

from convops.core.config import settings
from convops.core.exceptions import (
    AccessDenied,
    AppException,
    AuthenticationFailed,
    ConfigurationError,
    DeliveryError,
    LLMError,
    ResourceNotFound,
    ValidationFailed,
)

__all__ = [
    "settings",
    "AppException",
    "AccessDenied",
    "AuthenticationFailed",
    "ConfigurationError",
    "DeliveryError",
    "LLMError",
    "ResourceNotFound",
    "ValidationFailed",
]
