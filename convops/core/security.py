"""Password hashing and bearer token helpers."""

import hashlib
import secrets
from datetime import datetime, timedelta, timezone

import jwt
import structlog
from passlib.hash import pbkdf2_sha256

from convops.core.config import settings
from convops.core.exceptions import AuthenticationFailed

logger = structlog.get_logger()


def hash_password(password: str) -> str:
    """Hash a plain-text password for storage."""
    return pbkdf2_sha256.hash(password)


def verify_password(password: str, hashed_password: str | None) -> bool:
    """Check a plain-text password against a stored hash."""
    if not password or not hashed_password:
        return False
    try:
        return pbkdf2_sha256.verify(password, hashed_password)
    except ValueError:
        # Malformed hash in storage
        logger.warning("Stored password hash could not be parsed")
        return False


def create_access_token(user_id: str, expires_delta: timedelta | None = None) -> str:
    """Issue a signed bearer token carrying the user identifier.

    Args:
        user_id: Identifier of the authenticated user
        expires_delta: Token lifetime, defaults to ``jwt_expiration_days``

    Returns:
        Encoded JWT string
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(days=settings.jwt_expiration_days))
    payload = {"sub": str(user_id), "iat": now, "exp": expire}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> str:
    """Validate a bearer token and return the user identifier it carries.

    Raises:
        AuthenticationFailed: If the token is expired, tampered with or malformed
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        logger.info("Expired token presented")
        raise AuthenticationFailed("Token has expired.")
    except jwt.InvalidTokenError as e:
        logger.info("Invalid token presented", error=str(e))
        raise AuthenticationFailed("Invalid token.")

    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationFailed("Invalid token.")
    return str(user_id)


def hash_reset_token(token: str) -> str:
    """Digest used to store and look up password-reset tokens."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def generate_reset_token() -> tuple[str, str]:
    """Create a password-reset token.

    Returns:
        Tuple of (raw token to e-mail, hash to persist)
    """
    token = secrets.token_hex(32)
    return token, hash_reset_token(token)
