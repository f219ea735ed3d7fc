from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

from identity_service.domain.entities.identity import Identity
from identity_service.domain.entities.profile import Profile


def _as_str(value: Any) -> str:
    return str(value)


def _as_datetime(value: Any) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def parse_roles(value: Any) -> tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        return tuple(role.strip() for role in value.split(",") if role.strip())
    return tuple(value)


def format_roles(roles: Iterable[str]) -> str:
    return ",".join(roles)


def map_row_to_identity(row: Mapping[str, Any]) -> Identity:
    # Secret columns are only selected when explicitly requested.
    return Identity(
        id=_as_str(row["id"]),
        email=row["email"],
        roles=parse_roles(row["roles"]),
        password_hash=row.get("password_hash"),
        google_id=row.get("google_id"),
        refresh_token_hash=row.get("refresh_token_hash"),
        last_authenticated_at=_as_datetime(row.get("last_authenticated_at")),
        created_at=_as_datetime(row["created_at"]),
        updated_at=_as_datetime(row["updated_at"]),
    )


def map_row_to_profile(row: Mapping[str, Any]) -> Profile:
    return Profile(
        id=_as_str(row["id"]),
        identity_id=_as_str(row["identity_id"]),
        name=row["name"],
        lastname=row["lastname"],
        age=int(row["age"]) if row.get("age") is not None else None,
        created_at=_as_datetime(row["created_at"]),
        updated_at=_as_datetime(row["updated_at"]),
    )
