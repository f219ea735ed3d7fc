from __future__ import annotations

from identity_service.application.dto.auth import IdentityOutput
from identity_service.application.ports.identity_port import IdentityPort
from identity_service.domain.exceptions import NotFoundError

from .auth_common import build_identity_output


class GetIdentityUseCase:
    def __init__(self, *, identity_port: IdentityPort):
        self._identity_port = identity_port

    def execute(self, *, identity_id: str) -> IdentityOutput:
        identity = self._identity_port.find_by_id(identity_id=identity_id)
        if identity is None:
            raise NotFoundError("Identity not found.")
        return build_identity_output(identity)
