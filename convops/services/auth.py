"""Account authentication: login, registration and password management."""

from datetime import timedelta
from typing import Any

import structlog

from convops.core.config import settings
from convops.core.exceptions import (
    AccessDenied,
    AuthenticationFailed,
    DeliveryError,
    ValidationFailed,
)
from convops.core.security import (
    create_access_token,
    generate_reset_token,
    hash_password,
    hash_reset_token,
    verify_password,
)
from convops.models import PROFILE_EDIT_ROLES, User, UserRole, UserStatus, utcnow
from convops.services.email import Mailer, get_mailer
from convops.storage.base import StorageBackend

logger = structlog.get_logger()

RESET_REQUESTED_MESSAGE = "If that email exists, a reset link has been sent."
MIN_PASSWORD_LENGTH = 6


def normalize_email(email: str) -> str:
    return email.strip().lower()


def check_password_strength(password: str) -> None:
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationFailed(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long",
            field="password",
        )


class AuthService:
    """Credential checks and self-service account operations."""

    def __init__(self, storage: StorageBackend, mailer: Mailer | None = None) -> None:
        self.storage = storage
        self.mailer = mailer or get_mailer()

    async def login(self, email: str, password: str) -> dict[str, Any]:
        """Verify credentials and issue a bearer token.

        Raises:
            AuthenticationFailed: Unknown e-mail, inactive account or wrong password
        """
        user = await self.storage.get_user_by_email(normalize_email(email))
        if not user:
            logger.info("Login failed: unknown e-mail")
            raise AuthenticationFailed("Invalid credentials")

        if not user.is_active:
            logger.info("Login refused for inactive account", user_id=user.id, status=user.status.value)
            raise AuthenticationFailed("Account is deactivated")

        if not verify_password(password, user.hashed_password):
            logger.info("Login failed: bad password", user_id=user.id)
            raise AuthenticationFailed("Invalid credentials")

        user.last_login_at = utcnow()
        await self.storage.save_user(user)
        logger.info("User logged in", user_id=user.id, role=user.role.value)

        return {
            "message": "Login successful",
            "token": create_access_token(user.id),
            "user": user.summary(),
        }

    async def register(self, first_name: str, last_name: str, email: str, password: str) -> dict[str, Any]:
        """Self-registration.

        Self-registered accounts get the least privileged tenant role and no
        client link; an administrator links them later.
        """
        email = normalize_email(email)
        if await self.storage.get_user_by_email(email):
            raise ValidationFailed("User with this email already exists", field="email")
        check_password_strength(password)

        user = User(
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            email=email,
            hashed_password=hash_password(password),
            role=UserRole.CLIENT_VIEWER,
        )
        await self.storage.save_user(user)
        logger.info("User registered", user_id=user.id)

        return {
            "message": "User registered successfully",
            "token": create_access_token(user.id),
            "user": user.to_public(),
        }

    async def request_password_reset(self, email: str) -> dict[str, str]:
        """Start a password reset.

        The response is identical whether or not the e-mail is known.
        """
        user = await self.storage.get_user_by_email(normalize_email(email))
        if not user:
            logger.info("Password reset requested for unknown e-mail")
            return {"message": RESET_REQUESTED_MESSAGE}

        token, token_hash = generate_reset_token()
        user.reset_token_hash = token_hash
        user.reset_token_expiry = utcnow() + timedelta(minutes=settings.password_reset_ttl_minutes)
        await self.storage.save_user(user)

        reset_url = f"{settings.frontend_url.rstrip('/')}/reset-password/{token}"
        try:
            await self.mailer.send_password_reset(user.email, reset_url)
        except DeliveryError:
            # The token stays valid; the user can ask again
            logger.warning("Password reset e-mail not delivered", user_id=user.id)

        logger.info("Password reset requested", user_id=user.id)
        return {"message": RESET_REQUESTED_MESSAGE}

    async def reset_password(self, token: str, password: str) -> dict[str, str]:
        """Complete a password reset with a single-use token."""
        user = await self.storage.get_user_by_reset_token(hash_reset_token(token))
        if not user or not user.reset_token_expiry or user.reset_token_expiry <= utcnow():
            raise ValidationFailed("Invalid or expired reset token.")
        check_password_strength(password)

        user.hashed_password = hash_password(password)
        user.reset_token_hash = None
        user.reset_token_expiry = None
        await self.storage.save_user(user)
        logger.info("Password reset completed", user_id=user.id)

        return {"message": "Password reset successful. You can now log in."}

    async def change_password(self, user: User, current_password: str, new_password: str) -> dict[str, str]:
        if not current_password or not new_password:
            raise ValidationFailed("Current password and new password are required")
        if not verify_password(current_password, user.hashed_password):
            raise ValidationFailed("Current password is incorrect", field="current_password")
        check_password_strength(new_password)

        user.hashed_password = hash_password(new_password)
        await self.storage.save_user(user)
        logger.info("Password changed", user_id=user.id)
        return {"message": "Password changed successfully"}

    async def update_profile(
        self,
        user: User,
        first_name: str | None = None,
        last_name: str | None = None,
        email: str | None = None,
    ) -> dict[str, Any]:
        """Edit the caller's own name and e-mail.

        Only administrators may edit their profile. Blank values are ignored.
        """
        if user.role not in PROFILE_EDIT_ROLES:
            raise AccessDenied("Only administrators can edit their profile")

        changes: dict[str, str] = {}
        if first_name and first_name.strip():
            changes["first_name"] = first_name.strip()
        if last_name and last_name.strip():
            changes["last_name"] = last_name.strip()
        if email and email.strip():
            new_email = normalize_email(email)
            if new_email != user.email:
                existing = await self.storage.get_user_by_email(new_email)
                if existing and existing.id != user.id:
                    raise ValidationFailed("Email is already taken", field="email")
                changes["email"] = new_email

        if not changes:
            raise ValidationFailed("No valid changes to update")

        for key, value in changes.items():
            setattr(user, key, value)
        await self.storage.save_user(user)
        logger.info("Profile updated", user_id=user.id, fields=sorted(changes))

        return {"message": "Profile updated successfully", "user": user.summary()}


def ensure_active(user: User | None) -> User:
    """Reject missing or non-active accounts presenting a token."""
    if not user:
        raise AuthenticationFailed("User not found.")
    if user.status != UserStatus.ACTIVE:
        raise AuthenticationFailed("Account is deactivated")
    return user
