"""Authentication and self-service account endpoints."""

from typing import Any

from fastapi import APIRouter, status
from pydantic import BaseModel, EmailStr, Field

from convops.api.dependencies import AuthServiceDep, CurrentUser

router = APIRouter(prefix="/api/auth", tags=["Auth"])


# ==================== Pydantic Schemas ====================


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RegisterRequest(BaseModel):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: EmailStr
    password: str


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    password: str


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str


class ProfileUpdate(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    email: EmailStr | None = None


# ==================== Endpoints ====================


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(data: RegisterRequest, auth: AuthServiceDep) -> dict[str, Any]:
    """Create an unlinked viewer account and sign it in."""
    return await auth.register(data.first_name, data.last_name, data.email, data.password)


@router.post("/login")
async def login(data: LoginRequest, auth: AuthServiceDep) -> dict[str, Any]:
    return await auth.login(data.email, data.password)


@router.post("/forgot-password")
async def forgot_password(data: ForgotPasswordRequest, auth: AuthServiceDep) -> dict[str, str]:
    return await auth.request_password_reset(data.email)


@router.post("/reset-password/{token}")
async def reset_password(token: str, data: ResetPasswordRequest, auth: AuthServiceDep) -> dict[str, str]:
    return await auth.reset_password(token, data.password)


@router.get("/me")
async def get_me(user: CurrentUser) -> dict[str, Any]:
    return {"user": user.summary()}


@router.put("/me")
async def update_me(data: ProfileUpdate, user: CurrentUser, auth: AuthServiceDep) -> dict[str, Any]:
    """Edit the caller's name or e-mail (administrators only)."""
    return await auth.update_profile(user, data.first_name, data.last_name, data.email)


@router.put("/change-password")
async def change_password(data: ChangePasswordRequest, user: CurrentUser, auth: AuthServiceDep) -> dict[str, str]:
    return await auth.change_password(user, data.current_password, data.new_password)
