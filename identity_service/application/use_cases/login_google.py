from __future__ import annotations

import logging

from identity_service.application.dto.auth import (
    AuthSessionOutput,
    CreateIdentityCommand,
    CreateProfileCommand,
    GoogleIdentityInfo,
    GoogleRedirectInput,
    LoginGoogleIdTokenInput,
)
from identity_service.application.ports.google_oauth_port import GoogleIdTokenPort, GoogleOauthPort
from identity_service.application.ports.identity_port import IdentityPort
from identity_service.application.ports.password_hasher_port import PasswordHasherPort
from identity_service.application.ports.profile_port import ProfilePort
from identity_service.domain.entities.identity import Identity
from identity_service.domain.exceptions import AuthenticationError, ConflictError, ExternalServiceError
from identity_service.domain.services.identity_rules import (
    generate_identity_id,
    is_email_valid,
    normalize_email,
)
from identity_service.domain.services.profile_rules import MIN_NAME_LENGTH, generate_profile_id

from .auth_common import open_session
from .oauth_state import OAuthStateGuard
from .register_user import RegistrationSaga
from .token_lifecycle import TokenLifecycleManager


logger = logging.getLogger(__name__)

PLACEHOLDER_NAME = "User"
PLACEHOLDER_LASTNAME = "Google"


def _name_or_placeholder(value: str | None, placeholder: str) -> str:
    if value and len(value.strip()) >= MIN_NAME_LENGTH:
        return value.strip()
    return placeholder


class GoogleAccountResolver:
    """Finds the identity behind a Google account, linking or registering one if needed."""

    def __init__(
        self,
        *,
        identity_port: IdentityPort,
        profile_port: ProfilePort,
        password_hasher: PasswordHasherPort,
    ):
        self._identity_port = identity_port
        self._saga = RegistrationSaga(
            identity_port=identity_port,
            profile_port=profile_port,
            password_hasher=password_hasher,
        )

    def resolve(self, info: GoogleIdentityInfo) -> Identity:
        identity = self._identity_port.find_by_external_provider_id(provider_id=info.subject)
        if identity is not None:
            return identity

        email = normalize_email(info.email)
        if not is_email_valid(email):
            raise ExternalServiceError("Google returned an invalid email.")

        identity = self._identity_port.find_by_email(email=email)
        if identity is not None:
            if not info.email_verified:
                raise AuthenticationError("Google account email is not verified.")
            if identity.google_id and identity.google_id != info.subject:
                logger.warning("login_google: link_refused identity_id=%s reason=linked_elsewhere", identity.id)
                raise ConflictError("Identity is already linked to another Google account.")
            linked = self._identity_port.update(
                identity_id=identity.id,
                fields={"google_id": info.subject},
            )
            logger.info("login_google: linked identity_id=%s", linked.id)
            return linked

        identity_id = generate_identity_id()
        profile_id = generate_profile_id()
        result = self._saga.run(
            identity_command=CreateIdentityCommand(
                email=email,
                password=None,
                identity_id=identity_id,
                profile_id=profile_id,
                google_id=info.subject,
            ),
            profile_command=CreateProfileCommand(
                identity_id=identity_id,
                profile_id=profile_id,
                name=_name_or_placeholder(info.given_name, PLACEHOLDER_NAME),
                lastname=_name_or_placeholder(info.family_name, PLACEHOLDER_LASTNAME),
                age=None,
            ),
        )
        logger.info("login_google: registered identity_id=%s", result.identity.id)
        return result.identity


class GoogleRedirectUseCase:
    def __init__(
        self,
        *,
        identity_port: IdentityPort,
        profile_port: ProfilePort,
        password_hasher: PasswordHasherPort,
        google_oauth_port: GoogleOauthPort,
        state_guard: OAuthStateGuard,
        token_lifecycle: TokenLifecycleManager,
    ):
        self._identity_port = identity_port
        self._profile_port = profile_port
        self._google_oauth_port = google_oauth_port
        self._state_guard = state_guard
        self._token_lifecycle = token_lifecycle
        self._resolver = GoogleAccountResolver(
            identity_port=identity_port,
            profile_port=profile_port,
            password_hasher=password_hasher,
        )

    def execute(self, command: GoogleRedirectInput) -> AuthSessionOutput:
        self._state_guard.verify_state(received_state=command.state, stored_state=command.stored_state)
        if not command.code:
            raise AuthenticationError("Missing authorization code.")

        provider_access_token = self._google_oauth_port.exchange_code(code=command.code)
        info = self._google_oauth_port.fetch_userinfo(access_token=provider_access_token)
        identity = self._resolver.resolve(info)

        return open_session(
            identity=identity,
            identity_port=self._identity_port,
            profile_port=self._profile_port,
            token_lifecycle=self._token_lifecycle,
        )


class LoginGoogleIdTokenUseCase:
    def __init__(
        self,
        *,
        identity_port: IdentityPort,
        profile_port: ProfilePort,
        password_hasher: PasswordHasherPort,
        id_token_port: GoogleIdTokenPort,
        token_lifecycle: TokenLifecycleManager,
    ):
        self._identity_port = identity_port
        self._profile_port = profile_port
        self._id_token_port = id_token_port
        self._token_lifecycle = token_lifecycle
        self._resolver = GoogleAccountResolver(
            identity_port=identity_port,
            profile_port=profile_port,
            password_hasher=password_hasher,
        )

    def execute(self, command: LoginGoogleIdTokenInput) -> AuthSessionOutput:
        token = command.id_token.strip() if command.id_token else ""
        if not token:
            raise AuthenticationError("Missing Google id_token.")

        info = self._id_token_port.verify_id_token(id_token=token)
        identity = self._resolver.resolve(info)

        return open_session(
            identity=identity,
            identity_port=self._identity_port,
            profile_port=self._profile_port,
            token_lifecycle=self._token_lifecycle,
        )
