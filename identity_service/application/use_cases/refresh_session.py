from __future__ import annotations

from identity_service.application.dto.auth import AuthSessionOutput, RefreshSessionInput
from identity_service.application.ports.profile_port import ProfilePort

from .auth_common import build_identity_output, build_profile_output
from .token_lifecycle import TokenLifecycleManager


class RefreshSessionUseCase:
    def __init__(self, *, profile_port: ProfilePort, token_lifecycle: TokenLifecycleManager):
        self._profile_port = profile_port
        self._token_lifecycle = token_lifecycle

    def execute(self, command: RefreshSessionInput) -> AuthSessionOutput:
        identity, tokens = self._token_lifecycle.rotate(command.refresh_token)
        profile = self._profile_port.find_by_identity_id(identity_id=identity.id)
        return AuthSessionOutput(
            identity=build_identity_output(identity),
            tokens=tokens,
            profile=build_profile_output(profile) if profile is not None else None,
        )
