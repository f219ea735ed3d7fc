from __future__ import annotations

import logging

from identity_service.application.dto.profile import ProfileOutput, UpdateProfileInput
from identity_service.application.ports.profile_port import ProfilePort
from identity_service.domain.exceptions import NotFoundError
from identity_service.domain.services.profile_rules import validate_profile_update

from .auth_common import build_profile_output


logger = logging.getLogger(__name__)


class UpdateMyProfileUseCase:
    def __init__(self, *, profile_port: ProfilePort):
        self._profile_port = profile_port

    def execute(self, command: UpdateProfileInput) -> ProfileOutput:
        profile = self._profile_port.find_by_identity_id(identity_id=command.identity_id)
        if profile is None:
            raise NotFoundError("Profile not found for current identity.")

        validate_profile_update(command.changes)
        if not command.changes:
            return build_profile_output(profile)

        changes = {
            key: value.strip() if isinstance(value, str) else value
            for key, value in command.changes.items()
        }
        updated = self._profile_port.update(profile_id=profile.id, fields=changes)
        logger.info(
            "update_my_profile: updated profile_id=%s fields=%s",
            updated.id,
            ",".join(sorted(changes)),
        )
        return build_profile_output(updated)
