from __future__ import annotations

import itertools
import threading
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping

import pytest

from identity_service.application.dto.auth import GoogleIdentityInfo, TokenClaims
from identity_service.application.use_cases.token_lifecycle import TokenLifecycleManager
from identity_service.domain.entities.identity import Identity
from identity_service.domain.entities.profile import Profile
from identity_service.domain.exceptions import AuthenticationError, ConflictError, NotFoundError


def _strip_secrets(identity: Identity) -> Identity:
    return replace(identity, password_hash=None, refresh_token_hash=None)


class FakeIdentityPort:
    def __init__(self):
        self.identities: dict[str, Identity] = {}
        self.delete_error: Exception | None = None
        self.ignore_deletes = False
        self.deleted_ids: list[str] = []
        self._lock = threading.Lock()

    def find_by_email(self, *, email: str, include_secrets: bool = False) -> Identity | None:
        email_l = email.strip().lower()
        for identity in self.identities.values():
            if identity.email.lower() == email_l:
                return identity if include_secrets else _strip_secrets(identity)
        return None

    def find_by_id(self, *, identity_id: str, include_secrets: bool = False) -> Identity | None:
        identity = self.identities.get(identity_id)
        if identity is None:
            return None
        return identity if include_secrets else _strip_secrets(identity)

    def find_by_external_provider_id(self, *, provider_id: str) -> Identity | None:
        for identity in self.identities.values():
            if identity.google_id == provider_id:
                return _strip_secrets(identity)
        return None

    def create(self, *, identity: Identity) -> Identity:
        # Mirrors the unique constraints on email and google_id.
        for existing in self.identities.values():
            if existing.email.lower() == identity.email.lower():
                raise ConflictError("Identity with this email or external id already exists.")
            if identity.google_id and existing.google_id == identity.google_id:
                raise ConflictError("Identity with this email or external id already exists.")
        self.identities[identity.id] = identity
        return _strip_secrets(identity)

    def update(self, *, identity_id: str, fields: Mapping[str, Any]) -> Identity:
        identity = self.identities.get(identity_id)
        if identity is None:
            raise NotFoundError("Identity not found.")
        updated = replace(identity, **dict(fields), updated_at=datetime.now(timezone.utc))
        self.identities[identity_id] = updated
        return _strip_secrets(updated)

    def delete(self, *, identity_id: str) -> None:
        if self.delete_error is not None:
            raise self.delete_error
        self.deleted_ids.append(identity_id)
        if self.ignore_deletes:
            return
        self.identities.pop(identity_id, None)

    def clear_refresh_credential(self, *, identity_id: str) -> None:
        identity = self.identities.get(identity_id)
        if identity is not None:
            self.identities[identity_id] = replace(identity, refresh_token_hash=None)

    def replace_refresh_credential(self, *, identity_id: str, expected_hash: str, new_hash: str) -> bool:
        # Single-row conditional update, atomic like the SQL statement.
        with self._lock:
            identity = self.identities.get(identity_id)
            if identity is None or identity.refresh_token_hash != expected_hash:
                return False
            self.identities[identity_id] = replace(
                identity,
                refresh_token_hash=new_hash,
                updated_at=datetime.now(timezone.utc),
            )
            return True


class FakeProfilePort:
    def __init__(self, identity_port: FakeIdentityPort | None = None):
        self.profiles: dict[str, Profile] = {}
        self.identity_port = identity_port
        self.create_error: Exception | None = None

    def find_by_identity_id(self, *, identity_id: str) -> Profile | None:
        for profile in self.profiles.values():
            if profile.identity_id == identity_id:
                return profile
        return None

    def find_by_id(self, *, profile_id: str) -> Profile | None:
        return self.profiles.get(profile_id)

    def create(self, *, profile: Profile) -> Profile:
        if self.create_error is not None:
            raise self.create_error
        if self.find_by_identity_id(identity_id=profile.identity_id) is not None:
            raise ConflictError("Profile already exists for this identity.")
        self.profiles[profile.id] = profile
        return profile

    def update(self, *, profile_id: str, fields: Mapping[str, Any]) -> Profile:
        profile = self.profiles.get(profile_id)
        if profile is None:
            raise NotFoundError("Profile not found.")
        updated = replace(profile, **dict(fields), updated_at=datetime.now(timezone.utc))
        self.profiles[profile_id] = updated
        return updated

    def delete(self, *, profile_id: str) -> None:
        self.profiles.pop(profile_id, None)

    def find_all(self) -> list[Profile]:
        return list(self.profiles.values())

    def find_by_role(self, *, role: str) -> list[Profile]:
        identities = self.identity_port.identities if self.identity_port is not None else {}
        return [
            profile
            for profile in self.profiles.values()
            if profile.identity_id in identities and role in identities[profile.identity_id].roles
        ]


class FakePasswordHasher:
    def hash(self, plain_password: str) -> str:
        return f"hashed::{plain_password}"

    def verify(self, plain_password: str, password_hash: str) -> bool:
        return password_hash == f"hashed::{plain_password}"


class FakeTokenPort:
    def __init__(self):
        self._counter = itertools.count(1)
        self._issued: dict[str, tuple[str, TokenClaims]] = {}

    def _mint(self, prefix: str, claims: TokenClaims) -> str:
        token = f"{prefix}-{next(self._counter)}"
        self._issued[token] = (prefix, claims)
        return token

    def create_access_token(self, *, claims: TokenClaims, now: datetime) -> tuple[str, datetime]:
        return self._mint("access", claims), now + timedelta(minutes=60)

    def create_refresh_token(self, *, claims: TokenClaims, now: datetime) -> tuple[str, datetime]:
        return self._mint("refresh", claims), now + timedelta(days=7)

    def decode_access_token(self, *, token: str) -> TokenClaims:
        return self._decode(token, "access")

    def decode_refresh_token(self, *, token: str) -> TokenClaims:
        return self._decode(token, "refresh")

    def _decode(self, token: str, token_type: str) -> TokenClaims:
        issued = self._issued.get(token)
        if issued is None or issued[0] != token_type:
            raise AuthenticationError(f"Invalid {token_type} token.")
        return issued[1]

    def hash_refresh_token(self, *, refresh_token: str) -> str:
        return f"sha::{refresh_token}"

    def verify_refresh_token_hash(self, *, refresh_token: str, refresh_token_hash: str) -> bool:
        return refresh_token_hash == f"sha::{refresh_token}"


class FakeGoogleOauthPort:
    def __init__(self, info: GoogleIdentityInfo | None = None):
        self.info = info
        self.exchange_error: Exception | None = None
        self.exchanged_codes: list[str] = []

    def build_authorization_url(self, *, state: str) -> str:
        return f"https://accounts.example.test/auth?state={state}"

    def exchange_code(self, *, code: str) -> str:
        self.exchanged_codes.append(code)
        if self.exchange_error is not None:
            raise self.exchange_error
        return "google-access-token"

    def fetch_userinfo(self, *, access_token: str) -> GoogleIdentityInfo:
        assert access_token == "google-access-token"
        assert self.info is not None
        return self.info


class FakeGoogleIdTokenPort:
    def __init__(self, info: GoogleIdentityInfo | None = None, error: Exception | None = None):
        self.info = info
        self.error = error

    def verify_id_token(self, *, id_token: str) -> GoogleIdentityInfo:
        if self.error is not None:
            raise self.error
        assert self.info is not None
        return self.info


@pytest.fixture
def identity_port() -> FakeIdentityPort:
    return FakeIdentityPort()


@pytest.fixture
def profile_port(identity_port: FakeIdentityPort) -> FakeProfilePort:
    return FakeProfilePort(identity_port)


@pytest.fixture
def password_hasher() -> FakePasswordHasher:
    return FakePasswordHasher()


@pytest.fixture
def token_port() -> FakeTokenPort:
    return FakeTokenPort()


@pytest.fixture
def token_lifecycle(identity_port: FakeIdentityPort, token_port: FakeTokenPort) -> TokenLifecycleManager:
    return TokenLifecycleManager(identity_port=identity_port, token_port=token_port)


@pytest.fixture
def google_info() -> GoogleIdentityInfo:
    return GoogleIdentityInfo(
        subject="google-sub-1",
        email="Alice@Example.com",
        email_verified=True,
        given_name="Alice",
        family_name="Liddell",
    )


@pytest.fixture
def make_identity(identity_port: FakeIdentityPort):
    def _make(
        *,
        identity_id: str = "identity-1",
        email: str = "alice@example.com",
        roles: tuple[str, ...] = ("user",),
        password: str | None = "Secret123",
        google_id: str | None = None,
    ) -> Identity:
        now = datetime.now(timezone.utc)
        identity = Identity(
            id=identity_id,
            email=email,
            roles=roles,
            password_hash=f"hashed::{password}" if password else None,
            google_id=google_id,
            refresh_token_hash=None,
            last_authenticated_at=None,
            created_at=now,
            updated_at=now,
        )
        identity_port.identities[identity.id] = identity
        return identity

    return _make


@pytest.fixture
def make_profile(profile_port: FakeProfilePort):
    def _make(
        *,
        profile_id: str = "profile-1",
        identity_id: str = "identity-1",
        name: str = "Alice",
        lastname: str = "Liddell",
        age: int | None = 30,
    ) -> Profile:
        now = datetime.now(timezone.utc)
        profile = Profile(
            id=profile_id,
            identity_id=identity_id,
            name=name,
            lastname=lastname,
            age=age,
            created_at=now,
            updated_at=now,
        )
        profile_port.profiles[profile.id] = profile
        return profile

    return _make
