from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping
from uuid import uuid4

from identity_service.domain.entities.profile import Profile
from identity_service.domain.exceptions import ValidationError

if TYPE_CHECKING:
    from identity_service.application.ports.profile_port import ProfilePort


PROFILE_ID_PREFIX = "profile-"

MIN_NAME_LENGTH = 2
MIN_AGE = 0
MAX_AGE = 150

UPDATABLE_FIELDS = frozenset({"name", "lastname", "age"})


def _validate_person_name(value: str | None, *, label: str) -> None:
    if not value or len(value.strip()) < MIN_NAME_LENGTH:
        raise ValidationError(f"{label} must be at least {MIN_NAME_LENGTH} characters long.")


def validate_name(name: str | None) -> None:
    _validate_person_name(name, label="Name")


def validate_lastname(lastname: str | None) -> None:
    _validate_person_name(lastname, label="Lastname")


def validate_age(age: int | None) -> None:
    if age is None:
        return
    # bool is an int subclass
    if isinstance(age, bool) or not isinstance(age, int):
        raise ValidationError("Age must be an integer.")
    if age < MIN_AGE or age > MAX_AGE:
        raise ValidationError(f"Age must be between {MIN_AGE} and {MAX_AGE}.")


def validate_profile_data(*, name: str, lastname: str, age: int | None) -> None:
    validate_name(name)
    validate_lastname(lastname)
    validate_age(age)


def validate_profile_update(changes: Mapping[str, Any]) -> None:
    unknown = set(changes) - UPDATABLE_FIELDS
    if unknown:
        raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}.")
    if "name" in changes:
        validate_name(changes["name"])
    if "lastname" in changes:
        validate_lastname(changes["lastname"])
    if "age" in changes:
        validate_age(changes["age"])


def can_create_profile(*, profile_port: ProfilePort, identity_id: str) -> bool:
    return profile_port.find_by_identity_id(identity_id=identity_id) is None


def can_update_profile(profile: Profile, *, requesting_identity_id: str, is_admin: bool) -> bool:
    return profile.identity_id == requesting_identity_id or is_admin


def is_profile_complete(profile: Profile) -> bool:
    return bool(profile.name and profile.lastname and profile.age is not None and profile.age > 0)


def generate_profile_id() -> str:
    return f"{PROFILE_ID_PREFIX}{uuid4()}"
