from __future__ import annotations

from identity_service.application.dto.profile import ProfileOutput
from identity_service.application.ports.profile_port import ProfilePort
from identity_service.domain.exceptions import NotFoundError

from .auth_common import build_profile_output


class GetProfileUseCase:
    def __init__(self, *, profile_port: ProfilePort):
        self._profile_port = profile_port

    def execute(self, *, profile_id: str | None = None, identity_id: str | None = None) -> ProfileOutput:
        if (profile_id is None) == (identity_id is None):
            raise ValueError("Exactly one of profile_id or identity_id is required.")

        if profile_id is not None:
            profile = self._profile_port.find_by_id(profile_id=profile_id)
        else:
            profile = self._profile_port.find_by_identity_id(identity_id=identity_id)
        if profile is None:
            raise NotFoundError("Profile not found.")
        return build_profile_output(profile)
