from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from identity_service.application.dto.profile import ProfileOutput


@dataclass(frozen=True)
class CreateIdentityCommand:
    email: str
    password: str | None
    identity_id: str
    profile_id: str
    google_id: str | None = None


@dataclass(frozen=True)
class CreateProfileCommand:
    identity_id: str
    profile_id: str
    name: str
    lastname: str
    age: int | None


@dataclass(frozen=True)
class DeleteIdentityCommand:
    identity_id: str
    profile_id: str


@dataclass(frozen=True)
class RegisterUserInput:
    email: str
    password: str
    name: str
    lastname: str
    age: int | None = None


@dataclass(frozen=True)
class RegisterUserOutput:
    identity_id: str
    profile_id: str


@dataclass(frozen=True)
class LoginLocalInput:
    email: str
    password: str


@dataclass(frozen=True)
class RefreshSessionInput:
    refresh_token: str


@dataclass(frozen=True)
class LogoutInput:
    identity_id: str


@dataclass(frozen=True)
class ChangePasswordInput:
    identity_id: str
    old_password: str
    new_password: str


@dataclass(frozen=True)
class GoogleRedirectInput:
    code: str
    state: str | None
    stored_state: str | None


@dataclass(frozen=True)
class LoginGoogleIdTokenInput:
    id_token: str


@dataclass(frozen=True)
class GoogleAuthorizationOutput:
    redirect_url: str
    state: str


@dataclass(frozen=True)
class TokenClaims:
    email: str
    subject_id: str
    roles: tuple[str, ...]


@dataclass(frozen=True)
class TokenPairOutput:
    access_token: str
    refresh_token: str
    access_expires_at: datetime
    refresh_expires_at: datetime


@dataclass(frozen=True)
class IdentityOutput:
    id: str
    email: str
    roles: tuple[str, ...]
    google_id: str | None
    last_authenticated_at: datetime | None


@dataclass(frozen=True)
class AuthSessionOutput:
    identity: IdentityOutput
    tokens: TokenPairOutput
    profile: ProfileOutput | None


@dataclass(frozen=True)
class DeleteAccountOutput:
    identity_id: str
    profile_id: str


@dataclass(frozen=True)
class GoogleIdentityInfo:
    subject: str
    email: str
    email_verified: bool
    given_name: str | None
    family_name: str | None
