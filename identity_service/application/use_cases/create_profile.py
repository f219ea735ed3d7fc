from __future__ import annotations

import logging

from identity_service.application.dto.auth import CreateProfileCommand
from identity_service.application.dto.profile import ProfileOutput
from identity_service.application.ports.profile_port import ProfilePort
from identity_service.domain.entities.profile import Profile
from identity_service.domain.exceptions import ProfileAlreadyExistsError
from identity_service.domain.services.profile_rules import can_create_profile, validate_profile_data

from .auth_common import build_profile_output, utcnow


logger = logging.getLogger(__name__)


class CreateProfileUseCase:
    def __init__(self, *, profile_port: ProfilePort):
        self._profile_port = profile_port

    def execute(self, command: CreateProfileCommand) -> ProfileOutput:
        validate_profile_data(name=command.name, lastname=command.lastname, age=command.age)

        if not can_create_profile(profile_port=self._profile_port, identity_id=command.identity_id):
            raise ProfileAlreadyExistsError("Profile already exists for this identity.")

        now = utcnow()
        profile = self._profile_port.create(
            profile=Profile(
                id=command.profile_id,
                identity_id=command.identity_id,
                name=command.name.strip(),
                lastname=command.lastname.strip(),
                age=command.age,
                created_at=now,
                updated_at=now,
            )
        )
        logger.info(
            "create_profile: created profile_id=%s identity_id=%s",
            profile.id,
            profile.identity_id,
        )
        return build_profile_output(profile)
