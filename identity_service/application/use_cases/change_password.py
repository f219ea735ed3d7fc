from __future__ import annotations

import logging

from identity_service.application.dto.auth import ChangePasswordInput
from identity_service.application.ports.identity_port import IdentityPort
from identity_service.application.ports.password_hasher_port import PasswordHasherPort
from identity_service.domain.exceptions import AuthenticationError, NotFoundError
from identity_service.domain.services.identity_rules import validate_password_change


logger = logging.getLogger(__name__)


class ChangePasswordUseCase:
    def __init__(self, *, identity_port: IdentityPort, password_hasher: PasswordHasherPort):
        self._identity_port = identity_port
        self._password_hasher = password_hasher

    def execute(self, command: ChangePasswordInput) -> None:
        validate_password_change(old_password=command.old_password, new_password=command.new_password)

        identity = self._identity_port.find_by_id(identity_id=command.identity_id, include_secrets=True)
        if identity is None:
            raise NotFoundError("Identity not found.")
        if not identity.password_hash or not self._password_hasher.verify(
            command.old_password,
            identity.password_hash,
        ):
            raise AuthenticationError("Old password is incorrect.")

        # Changing the password also ends the current session.
        self._identity_port.update(
            identity_id=identity.id,
            fields={
                "password_hash": self._password_hasher.hash(command.new_password),
                "refresh_token_hash": None,
            },
        )
        logger.info("change_password: changed identity_id=%s", identity.id)
