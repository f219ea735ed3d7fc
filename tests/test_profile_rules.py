from __future__ import annotations

from datetime import datetime, timezone

import pytest

from identity_service.domain.entities.profile import Profile
from identity_service.domain.exceptions import ValidationError
from identity_service.domain.services.profile_rules import (
    PROFILE_ID_PREFIX,
    can_create_profile,
    can_update_profile,
    generate_profile_id,
    is_profile_complete,
    validate_age,
    validate_profile_data,
    validate_profile_update,
)


def _profile(*, name: str = "Alice", lastname: str = "Liddell", age: int | None = 30) -> Profile:
    now = datetime.now(timezone.utc)
    return Profile(
        id="profile-1",
        identity_id="identity-1",
        name=name,
        lastname=lastname,
        age=age,
        created_at=now,
        updated_at=now,
    )


@pytest.mark.parametrize("age", [0, 150, 42, None])
def test_validate_age_accepts_bounds(age):
    validate_age(age)


@pytest.mark.parametrize("age", [-1, 151, True, "30", 3.5])
def test_validate_age_rejects_out_of_range_and_non_integers(age):
    with pytest.raises(ValidationError):
        validate_age(age)


def test_validate_profile_data_requires_two_character_names():
    with pytest.raises(ValidationError):
        validate_profile_data(name="a", lastname="Liddell", age=30)
    with pytest.raises(ValidationError):
        validate_profile_data(name="Alice", lastname=" b ", age=30)
    validate_profile_data(name="Al", lastname="Li", age=None)


def test_validate_profile_update_rejects_unknown_fields():
    with pytest.raises(ValidationError):
        validate_profile_update({"identity_id": "identity-2"})
    with pytest.raises(ValidationError):
        validate_profile_update({"age": 200})
    validate_profile_update({"name": "Alicia", "age": 31})


def test_can_create_profile_is_false_once_identity_has_one(profile_port, make_profile):
    assert can_create_profile(profile_port=profile_port, identity_id="identity-1") is True

    make_profile(identity_id="identity-1")

    assert can_create_profile(profile_port=profile_port, identity_id="identity-1") is False


def test_can_update_profile_allows_owner_or_admin():
    profile = _profile()

    assert can_update_profile(profile, requesting_identity_id="identity-1", is_admin=False) is True
    assert can_update_profile(profile, requesting_identity_id="identity-2", is_admin=True) is True
    assert can_update_profile(profile, requesting_identity_id="identity-2", is_admin=False) is False


def test_is_profile_complete():
    assert is_profile_complete(_profile()) is True
    assert is_profile_complete(_profile(age=None)) is False
    assert is_profile_complete(_profile(age=0)) is False


def test_generate_profile_id_is_prefixed():
    assert generate_profile_id().startswith(PROFILE_ID_PREFIX)
