from __future__ import annotations

import pytest

from identity_service.application.dto.auth import (
    CreateIdentityCommand,
    CreateProfileCommand,
    RegisterUserInput,
)
from identity_service.application.use_cases.create_profile import CreateProfileUseCase
from identity_service.application.use_cases.register_user import (
    RegisterUserUseCase,
    RegistrationSaga,
    RegistrationSagaLog,
    RegistrationState,
)
from identity_service.domain.exceptions import (
    CompensationFailure,
    ConflictError,
    ProfileAlreadyExistsError,
    ValidationError,
)


def _use_case(identity_port, profile_port, password_hasher) -> RegisterUserUseCase:
    return RegisterUserUseCase(
        identity_port=identity_port,
        profile_port=profile_port,
        password_hasher=password_hasher,
    )


def _input(**overrides) -> RegisterUserInput:
    values = {
        "email": "Alice@Example.com",
        "password": "Secret123",
        "name": "Alice",
        "lastname": "Liddell",
        "age": 30,
    }
    values.update(overrides)
    return RegisterUserInput(**values)


def test_register_user_creates_identity_and_profile(identity_port, profile_port, password_hasher):
    output = _use_case(identity_port, profile_port, password_hasher).execute(_input())

    identity = identity_port.identities[output.identity_id]
    assert identity.email == "alice@example.com"
    assert identity.roles == ("user",)
    assert identity.password_hash == "hashed::Secret123"
    assert identity.refresh_token_hash is None

    profile = profile_port.profiles[output.profile_id]
    assert profile.identity_id == output.identity_id
    assert (profile.name, profile.lastname, profile.age) == ("Alice", "Liddell", 30)


def test_register_user_rejects_duplicate_email(identity_port, profile_port, password_hasher):
    use_case = _use_case(identity_port, profile_port, password_hasher)
    use_case.execute(_input())

    with pytest.raises(ConflictError):
        use_case.execute(_input(email="alice@example.com", name="Other"))

    assert len(identity_port.identities) == 1
    assert len(profile_port.profiles) == 1


def test_register_user_losing_race_gets_conflict_from_storage(
    identity_port, profile_port, password_hasher, make_identity, monkeypatch
):
    existing = make_identity(identity_id="identity-winner", email="alice@example.com")
    # The concurrent writer committed after this request's pre-check read.
    monkeypatch.setattr(identity_port, "find_by_email", lambda **kwargs: None)

    with pytest.raises(ConflictError):
        _use_case(identity_port, profile_port, password_hasher).execute(_input())

    assert list(identity_port.identities) == [existing.id]
    assert profile_port.profiles == {}
    assert identity_port.deleted_ids == []


def test_register_user_with_invalid_password_writes_nothing(identity_port, profile_port, password_hasher):
    with pytest.raises(ValidationError):
        _use_case(identity_port, profile_port, password_hasher).execute(_input(password="password"))

    assert identity_port.identities == {}
    assert profile_port.profiles == {}


def test_register_user_with_invalid_email_writes_nothing(identity_port, profile_port, password_hasher):
    with pytest.raises(ValidationError):
        _use_case(identity_port, profile_port, password_hasher).execute(_input(email="not-an-email"))

    assert identity_port.identities == {}


def test_register_user_rolls_back_identity_when_profile_is_invalid(identity_port, profile_port, password_hasher):
    with pytest.raises(ValidationError):
        _use_case(identity_port, profile_port, password_hasher).execute(_input(name="a"))

    assert identity_port.identities == {}
    assert profile_port.profiles == {}
    assert len(identity_port.deleted_ids) == 1


def test_register_user_rolls_back_identity_when_profile_store_fails(identity_port, profile_port, password_hasher):
    profile_port.create_error = RuntimeError("profiles table unavailable")

    with pytest.raises(RuntimeError, match="profiles table unavailable"):
        _use_case(identity_port, profile_port, password_hasher).execute(_input())

    assert identity_port.identities == {}


def test_register_user_raises_compensation_failure_when_delete_fails(identity_port, profile_port, password_hasher):
    identity_port.delete_error = RuntimeError("connection lost")

    with pytest.raises(CompensationFailure) as exc_info:
        _use_case(identity_port, profile_port, password_hasher).execute(_input(lastname="b"))

    failure = exc_info.value
    assert failure.identity_id in identity_port.identities
    assert failure.profile_id.startswith("profile-")
    assert isinstance(failure.original_error, ValidationError)
    assert profile_port.profiles == {}


def test_register_user_raises_compensation_failure_when_identity_survives_delete(
    identity_port, profile_port, password_hasher
):
    identity_port.ignore_deletes = True

    with pytest.raises(CompensationFailure) as exc_info:
        _use_case(identity_port, profile_port, password_hasher).execute(_input(age=151))

    assert exc_info.value.identity_id in identity_port.identities


def test_saga_log_tracks_successful_run(identity_port, profile_port, password_hasher):
    saga = RegistrationSaga(
        identity_port=identity_port,
        profile_port=profile_port,
        password_hasher=password_hasher,
    )

    result = saga.run(
        identity_command=CreateIdentityCommand(
            email="bob@example.com",
            password="Secret123",
            identity_id="identity-bob",
            profile_id="profile-bob",
        ),
        profile_command=CreateProfileCommand(
            identity_id="identity-bob",
            profile_id="profile-bob",
            name="Bob",
            lastname="Builder",
            age=None,
        ),
    )

    assert result.log.state is RegistrationState.PROFILE_CREATED
    assert result.log.completed_steps == [
        RegistrationState.IDENTITY_CREATED,
        RegistrationState.PROFILE_CREATED,
    ]
    assert result.identity.id == "identity-bob"
    assert result.profile.id == "profile-bob"
    assert result.profile.is_complete is False


def test_saga_rejects_profile_command_for_another_identity(identity_port, profile_port, password_hasher):
    saga = RegistrationSaga(
        identity_port=identity_port,
        profile_port=profile_port,
        password_hasher=password_hasher,
    )

    with pytest.raises(ValueError):
        saga.run(
            identity_command=CreateIdentityCommand(
                email="bob@example.com",
                password="Secret123",
                identity_id="identity-bob",
                profile_id="profile-bob",
            ),
            profile_command=CreateProfileCommand(
                identity_id="identity-other",
                profile_id="profile-bob",
                name="Bob",
                lastname="Builder",
                age=None,
            ),
        )

    assert identity_port.identities == {}


def test_saga_log_rejects_illegal_transition():
    log = RegistrationSagaLog(identity_id="identity-1", profile_id="profile-1")

    with pytest.raises(RuntimeError):
        log.advance(RegistrationState.PROFILE_CREATED)

    log.advance(RegistrationState.IDENTITY_CREATED)
    log.advance(RegistrationState.COMPENSATING)
    log.advance(RegistrationState.ROLLED_BACK)
    with pytest.raises(RuntimeError):
        log.advance(RegistrationState.IDENTITY_CREATED)


def test_create_profile_rejects_second_profile_for_identity(profile_port, make_profile):
    make_profile(identity_id="identity-1")
    use_case = CreateProfileUseCase(profile_port=profile_port)

    with pytest.raises(ProfileAlreadyExistsError):
        use_case.execute(
            CreateProfileCommand(
                identity_id="identity-1",
                profile_id="profile-2",
                name="Alice",
                lastname="Liddell",
                age=30,
            )
        )

    assert list(profile_port.profiles) == ["profile-1"]
