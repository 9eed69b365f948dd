"""Shared builders for API tests."""

from convops.core.security import create_access_token, hash_password
from convops.models import User, UserRole

TEST_PASSWORD = "secret123"


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


async def make_user(storage, email: str, role: UserRole = UserRole.SUPER_ADMIN, **fields) -> User:
    user = User(
        first_name=fields.pop("first_name", "Test"),
        last_name=fields.pop("last_name", "User"),
        email=email,
        hashed_password=hash_password(fields.pop("password", TEST_PASSWORD)),
        role=role,
        **fields,
    )
    return await storage.save_user(user)
