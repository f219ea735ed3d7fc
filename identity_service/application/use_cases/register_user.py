from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import logging

from identity_service.application.dto.auth import (
    CreateIdentityCommand,
    CreateProfileCommand,
    RegisterUserInput,
    RegisterUserOutput,
)
from identity_service.application.dto.profile import ProfileOutput
from identity_service.application.ports.identity_port import IdentityPort
from identity_service.application.ports.password_hasher_port import PasswordHasherPort
from identity_service.application.ports.profile_port import ProfilePort
from identity_service.domain.entities.identity import Identity
from identity_service.domain.exceptions import CompensationFailure
from identity_service.domain.services.identity_rules import (
    generate_identity_id,
    normalize_email,
    validate_identity_creation,
)
from identity_service.domain.services.profile_rules import generate_profile_id

from .create_identity import CreateIdentityHandler
from .create_profile import CreateProfileUseCase


logger = logging.getLogger(__name__)


class RegistrationState(str, Enum):
    PENDING = "PENDING"
    IDENTITY_CREATED = "IDENTITY_CREATED"
    PROFILE_CREATED = "PROFILE_CREATED"
    COMPENSATING = "COMPENSATING"
    ROLLED_BACK = "ROLLED_BACK"


_TRANSITIONS = {
    RegistrationState.PENDING: {RegistrationState.IDENTITY_CREATED},
    RegistrationState.IDENTITY_CREATED: {
        RegistrationState.PROFILE_CREATED,
        RegistrationState.COMPENSATING,
    },
    RegistrationState.COMPENSATING: {RegistrationState.ROLLED_BACK},
    RegistrationState.PROFILE_CREATED: set(),
    RegistrationState.ROLLED_BACK: set(),
}


@dataclass
class RegistrationSagaLog:
    """In-memory record of one registration attempt; never persisted."""

    identity_id: str
    profile_id: str
    state: RegistrationState = RegistrationState.PENDING
    completed_steps: list[RegistrationState] = field(default_factory=list)

    def advance(self, state: RegistrationState) -> None:
        if state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal registration transition {self.state.value} -> {state.value}.")
        logger.info(
            "registration_saga: %s -> %s identity_id=%s profile_id=%s",
            self.state.value,
            state.value,
            self.identity_id,
            self.profile_id,
        )
        self.state = state
        self.completed_steps.append(state)


@dataclass(frozen=True)
class RegistrationResult:
    identity: Identity
    profile: ProfileOutput
    log: RegistrationSagaLog


class RegistrationSaga:
    """Creates an identity and then its profile, undoing the identity if the profile fails.

    There is no transaction spanning both tables, so the only rollback is a
    compensating delete of the identity. A failed compensation is fatal and
    surfaces as CompensationFailure and is never retried here.
    """

    def __init__(
        self,
        *,
        identity_port: IdentityPort,
        profile_port: ProfilePort,
        password_hasher: PasswordHasherPort,
    ):
        self._identity_port = identity_port
        self._create_identity = CreateIdentityHandler(
            identity_port=identity_port,
            password_hasher=password_hasher,
        )
        self._create_profile = CreateProfileUseCase(profile_port=profile_port)

    def run(
        self,
        *,
        identity_command: CreateIdentityCommand,
        profile_command: CreateProfileCommand,
    ) -> RegistrationResult:
        if profile_command.identity_id != identity_command.identity_id:
            raise ValueError("Profile command must reference the identity being created.")

        log = RegistrationSagaLog(
            identity_id=identity_command.identity_id,
            profile_id=identity_command.profile_id,
        )

        # Storage conflicts propagate as-is: nothing has been written yet.
        identity = self._create_identity.execute(identity_command)
        log.advance(RegistrationState.IDENTITY_CREATED)

        try:
            profile = self._create_profile.execute(profile_command)
        except Exception as exc:
            logger.warning(
                "registration_saga: profile_step_failed identity_id=%s error=%s",
                log.identity_id,
                type(exc).__name__,
            )
            self._compensate(log, original_error=exc)
            raise

        log.advance(RegistrationState.PROFILE_CREATED)
        return RegistrationResult(identity=identity, profile=profile, log=log)

    def _compensate(self, log: RegistrationSagaLog, *, original_error: BaseException) -> None:
        log.advance(RegistrationState.COMPENSATING)
        try:
            self._identity_port.delete(identity_id=log.identity_id)
            still_there = self._identity_port.find_by_id(identity_id=log.identity_id) is not None
        except Exception as exc:
            logger.critical(
                "registration_saga: compensation_failed identity_id=%s profile_id=%s error=%s",
                log.identity_id,
                log.profile_id,
                type(exc).__name__,
            )
            raise CompensationFailure(
                f"Could not roll back identity {log.identity_id} after profile creation failed.",
                identity_id=log.identity_id,
                profile_id=log.profile_id,
                original_error=original_error,
            ) from exc

        if still_there:
            logger.critical(
                "registration_saga: compensation_failed identity_id=%s profile_id=%s error=identity_still_present",
                log.identity_id,
                log.profile_id,
            )
            raise CompensationFailure(
                f"Identity {log.identity_id} still exists after compensating delete.",
                identity_id=log.identity_id,
                profile_id=log.profile_id,
                original_error=original_error,
            ) from original_error

        log.advance(RegistrationState.ROLLED_BACK)


class RegisterUserUseCase:
    def __init__(
        self,
        *,
        identity_port: IdentityPort,
        profile_port: ProfilePort,
        password_hasher: PasswordHasherPort,
    ):
        self._saga = RegistrationSaga(
            identity_port=identity_port,
            profile_port=profile_port,
            password_hasher=password_hasher,
        )

    def execute(self, command: RegisterUserInput) -> RegisterUserOutput:
        email = normalize_email(command.email)
        validate_identity_creation(email=email, password=command.password)

        identity_id = generate_identity_id()
        profile_id = generate_profile_id()

        self._saga.run(
            identity_command=CreateIdentityCommand(
                email=email,
                password=command.password,
                identity_id=identity_id,
                profile_id=profile_id,
            ),
            profile_command=CreateProfileCommand(
                identity_id=identity_id,
                profile_id=profile_id,
                name=command.name,
                lastname=command.lastname,
                age=command.age,
            ),
        )
        return RegisterUserOutput(identity_id=identity_id, profile_id=profile_id)
