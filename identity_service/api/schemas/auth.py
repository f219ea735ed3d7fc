from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from identity_service.api.schemas.profile import ProfileResponse


class RegisterRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=256)
    name: str = Field(..., max_length=120)
    lastname: str = Field(..., max_length=120)
    age: int | None = None


class RegisterResponse(BaseModel):
    identity_id: str
    profile_id: str


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=256)


class RefreshRequest(BaseModel):
    refresh_token: str | None = None


class ChangePasswordRequest(BaseModel):
    old_password: str = Field(..., min_length=1, max_length=256)
    new_password: str = Field(..., min_length=1, max_length=256)


class GoogleMobileLoginRequest(BaseModel):
    id_token: str = Field(..., min_length=1)


class IdentityResponse(BaseModel):
    id: str
    email: str
    roles: list[str]
    google_id: str | None
    last_authenticated_at: datetime | None


class AuthTokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    access_expires_at: datetime
    refresh_expires_at: datetime
    identity: IdentityResponse
    profile: ProfileResponse | None


class LogoutResponse(BaseModel):
    ok: bool


class DeleteAccountResponse(BaseModel):
    identity_id: str
    profile_id: str
