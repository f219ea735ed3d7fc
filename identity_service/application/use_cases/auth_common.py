from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

from identity_service.application.dto.auth import AuthSessionOutput, IdentityOutput, TokenClaims
from identity_service.application.dto.profile import ProfileOutput
from identity_service.domain.entities.identity import Identity
from identity_service.domain.entities.profile import Profile
from identity_service.domain.services.profile_rules import is_profile_complete

if TYPE_CHECKING:
    from identity_service.application.ports.identity_port import IdentityPort
    from identity_service.application.ports.profile_port import ProfilePort

    from .token_lifecycle import TokenLifecycleManager


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def build_identity_output(identity: Identity) -> IdentityOutput:
    return IdentityOutput(
        id=identity.id,
        email=identity.email,
        roles=tuple(identity.roles),
        google_id=identity.google_id,
        last_authenticated_at=identity.last_authenticated_at,
    )


def build_profile_output(profile: Profile) -> ProfileOutput:
    return ProfileOutput(
        id=profile.id,
        identity_id=profile.identity_id,
        name=profile.name,
        lastname=profile.lastname,
        age=profile.age,
        is_complete=is_profile_complete(profile),
    )


def build_token_claims(identity: Identity) -> TokenClaims:
    return TokenClaims(
        email=identity.email,
        subject_id=identity.id,
        roles=tuple(identity.roles),
    )


def open_session(
    *,
    identity: Identity,
    identity_port: IdentityPort,
    profile_port: ProfilePort,
    token_lifecycle: TokenLifecycleManager,
) -> AuthSessionOutput:
    identity = identity_port.update(
        identity_id=identity.id,
        fields={"last_authenticated_at": utcnow()},
    )
    tokens = token_lifecycle.issue(identity)
    profile = profile_port.find_by_identity_id(identity_id=identity.id)
    return AuthSessionOutput(
        identity=build_identity_output(identity),
        tokens=tokens,
        profile=build_profile_output(profile) if profile is not None else None,
    )
