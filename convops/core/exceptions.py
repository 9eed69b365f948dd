"""Custom exceptions for the application."""

from typing import Any


class AppException(Exception):
    """Base exception for application errors."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: dict[str, Any] | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to the API error body."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(AppException):
    """Raised when there's a configuration problem."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, code="CONFIGURATION_ERROR", details=details, status_code=500)


class ValidationFailed(AppException):
    """Raised when request data is rejected (bad input, duplicates)."""

    def __init__(self, message: str, field: str | None = None, details: dict[str, Any] | None = None) -> None:
        merged = {"field": field} if field else {}
        merged.update(details or {})
        super().__init__(message, code="VALIDATION_ERROR", details=merged, status_code=400)


class AuthenticationFailed(AppException):
    """Raised when the caller cannot be authenticated."""

    def __init__(self, message: str = "Invalid token.") -> None:
        super().__init__(message, code="AUTH_FAILED", status_code=401)


class AccessDenied(AppException):
    """Raised when an authenticated caller lacks permission."""

    def __init__(self, message: str = "Access denied. Insufficient role.", details: dict[str, Any] | None = None) -> None:
        super().__init__(message, code="ACCESS_DENIED", details=details, status_code=403)


class ResourceNotFound(AppException):
    """Raised when a requested document does not exist (or is out of scope)."""

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        super().__init__(
            f"{resource} not found",
            code="NOT_FOUND",
            details={"resource": resource, "id": resource_id} if resource_id else {"resource": resource},
            status_code=404,
        )


class LLMError(AppException):
    """Raised when LLM provider fails."""

    def __init__(self, message: str, provider: str | None = None) -> None:
        super().__init__(
            message,
            code="LLM_ERROR",
            details={"provider": provider} if provider else {},
            status_code=502,
        )


class DeliveryError(AppException):
    """Raised when outbound e-mail delivery fails."""

    def __init__(self, message: str, recipient: str | None = None) -> None:
        super().__init__(
            message,
            code="DELIVERY_ERROR",
            details={"recipient": recipient} if recipient else {},
            status_code=502,
        )
