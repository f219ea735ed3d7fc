from __future__ import annotations

import re
from typing import TYPE_CHECKING
from uuid import uuid4

from identity_service.domain.entities.identity import Identity, Role
from identity_service.domain.exceptions import ValidationError

if TYPE_CHECKING:
    from identity_service.application.ports.identity_port import IdentityPort


IDENTITY_ID_PREFIX = "identity-"

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_PASSWORD_RE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)[a-zA-Z\d@$!%*?&]{8,}$")


def normalize_email(email: str) -> str:
    return email.strip().lower()


def is_email_valid(email: str | None) -> bool:
    if not email:
        return False
    return _EMAIL_RE.match(email) is not None


def is_password_valid(password: str | None) -> bool:
    if not password:
        return False
    return _PASSWORD_RE.match(password) is not None


def validate_identity_creation(*, email: str, password: str) -> None:
    if not is_email_valid(email):
        raise ValidationError("Invalid email format.")
    if not is_password_valid(password):
        raise ValidationError(
            "Password must have at least 8 characters, one lowercase, one uppercase and one digit."
        )


def validate_password_change(*, old_password: str, new_password: str) -> None:
    if not old_password:
        raise ValidationError("Old password is required.")
    if not is_password_valid(new_password):
        raise ValidationError(
            "Password must have at least 8 characters, one lowercase, one uppercase and one digit."
        )
    if old_password == new_password:
        raise ValidationError("New password must be different from the old password.")


def can_create_identity(*, identity_port: IdentityPort, email: str) -> bool:
    """Advisory pre-check; the unique constraint on email is what actually decides."""
    return identity_port.find_by_email(email=normalize_email(email)) is None


def generate_identity_id() -> str:
    return f"{IDENTITY_ID_PREFIX}{uuid4()}"


def has_role(identity: Identity, required_role: Role) -> bool:
    return required_role in identity.roles


def can_delete_identity(identity: Identity, *, requesting_identity_id: str, is_admin: bool) -> bool:
    return identity.id == requesting_identity_id or is_admin
