from __future__ import annotations

import logging

from identity_service.application.dto.auth import AuthSessionOutput, LoginLocalInput
from identity_service.application.ports.identity_port import IdentityPort
from identity_service.application.ports.password_hasher_port import PasswordHasherPort
from identity_service.application.ports.profile_port import ProfilePort
from identity_service.domain.exceptions import AuthenticationError
from identity_service.domain.services.identity_rules import is_email_valid, normalize_email

from .auth_common import open_session
from .token_lifecycle import TokenLifecycleManager


logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials."


class LoginLocalUseCase:
    def __init__(
        self,
        *,
        identity_port: IdentityPort,
        profile_port: ProfilePort,
        password_hasher: PasswordHasherPort,
        token_lifecycle: TokenLifecycleManager,
    ):
        self._identity_port = identity_port
        self._profile_port = profile_port
        self._password_hasher = password_hasher
        self._token_lifecycle = token_lifecycle

    def execute(self, command: LoginLocalInput) -> AuthSessionOutput:
        email = normalize_email(command.email)
        # Every failure below reads the same to the caller.
        if not is_email_valid(email) or not command.password:
            raise AuthenticationError(INVALID_CREDENTIALS)

        identity = self._identity_port.find_by_email(email=email, include_secrets=True)
        if identity is None or not identity.password_hash:
            logger.info("login_local: rejected reason=no_local_credential")
            raise AuthenticationError(INVALID_CREDENTIALS)

        if not self._password_hasher.verify(command.password, identity.password_hash):
            logger.warning("login_local: rejected reason=bad_password identity_id=%s", identity.id)
            raise AuthenticationError(INVALID_CREDENTIALS)

        output = open_session(
            identity=identity,
            identity_port=self._identity_port,
            profile_port=self._profile_port,
            token_lifecycle=self._token_lifecycle,
        )
        logger.info("login_local: authenticated identity_id=%s", identity.id)
        return output
