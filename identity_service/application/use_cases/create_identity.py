from __future__ import annotations

import logging

from identity_service.application.dto.auth import CreateIdentityCommand
from identity_service.application.ports.identity_port import IdentityPort
from identity_service.application.ports.password_hasher_port import PasswordHasherPort
from identity_service.domain.entities.identity import DEFAULT_ROLES, Identity
from identity_service.domain.exceptions import ConflictError
from identity_service.domain.services.identity_rules import can_create_identity, normalize_email

from .auth_common import utcnow


logger = logging.getLogger(__name__)


class CreateIdentityHandler:
    def __init__(self, *, identity_port: IdentityPort, password_hasher: PasswordHasherPort):
        self._identity_port = identity_port
        self._password_hasher = password_hasher

    def execute(self, command: CreateIdentityCommand) -> Identity:
        email = normalize_email(command.email)
        if not can_create_identity(identity_port=self._identity_port, email=email):
            raise ConflictError("Email already in use.")

        password_hash = self._password_hasher.hash(command.password) if command.password else None
        now = utcnow()
        identity = self._identity_port.create(
            identity=Identity(
                id=command.identity_id,
                email=email,
                roles=DEFAULT_ROLES,
                password_hash=password_hash,
                google_id=command.google_id,
                refresh_token_hash=None,
                last_authenticated_at=None,
                created_at=now,
                updated_at=now,
            )
        )
        logger.info("create_identity: created identity_id=%s", identity.id)
        return identity
