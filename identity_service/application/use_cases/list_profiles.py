from __future__ import annotations

from identity_service.application.dto.profile import ProfileOutput
from identity_service.application.ports.profile_port import ProfilePort
from identity_service.domain.entities.identity import Role

from .auth_common import build_profile_output


class ListProfilesUseCase:
    def __init__(self, *, profile_port: ProfilePort):
        self._profile_port = profile_port

    def execute(self, *, role: Role | None = None) -> list[ProfileOutput]:
        if role is None:
            profiles = self._profile_port.find_all()
        else:
            profiles = self._profile_port.find_by_role(role=role)
        return [build_profile_output(profile) for profile in profiles]
