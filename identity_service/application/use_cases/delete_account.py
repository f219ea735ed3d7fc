from __future__ import annotations

import logging

from identity_service.application.dto.auth import DeleteAccountOutput, DeleteIdentityCommand
from identity_service.application.ports.identity_port import IdentityPort
from identity_service.application.ports.profile_port import ProfilePort
from identity_service.domain.exceptions import AuthorizationError, NotFoundError
from identity_service.domain.services.identity_rules import can_delete_identity


logger = logging.getLogger(__name__)


class DeleteIdentityHandler:
    def __init__(self, *, identity_port: IdentityPort, profile_port: ProfilePort):
        self._identity_port = identity_port
        self._profile_port = profile_port

    def execute(self, command: DeleteIdentityCommand) -> None:
        self._profile_port.delete(profile_id=command.profile_id)
        try:
            self._identity_port.delete(identity_id=command.identity_id)
        except Exception:
            # Deletion has no compensation; the identity is left without a profile.
            logger.error(
                "delete_account: identity_delete_failed identity_id=%s profile_id=%s",
                command.identity_id,
                command.profile_id,
            )
            raise
        logger.info(
            "delete_account: deleted identity_id=%s profile_id=%s",
            command.identity_id,
            command.profile_id,
        )


class DeleteAccountUseCase:
    def __init__(self, *, identity_port: IdentityPort, profile_port: ProfilePort):
        self._identity_port = identity_port
        self._profile_port = profile_port
        self._handler = DeleteIdentityHandler(identity_port=identity_port, profile_port=profile_port)

    def execute(
        self,
        *,
        identity_id: str,
        requesting_identity_id: str,
        is_admin: bool = False,
    ) -> DeleteAccountOutput:
        identity = self._identity_port.find_by_id(identity_id=identity_id)
        if identity is None:
            raise NotFoundError("Identity not found.")
        if not can_delete_identity(identity, requesting_identity_id=requesting_identity_id, is_admin=is_admin):
            raise AuthorizationError("Not allowed to delete this identity.")

        profile = self._profile_port.find_by_identity_id(identity_id=identity.id)
        if profile is None:
            logger.warning("delete_account: profile_missing identity_id=%s", identity.id)
            raise NotFoundError("Profile not found.")

        self._handler.execute(DeleteIdentityCommand(identity_id=identity.id, profile_id=profile.id))
        return DeleteAccountOutput(identity_id=identity.id, profile_id=profile.id)
