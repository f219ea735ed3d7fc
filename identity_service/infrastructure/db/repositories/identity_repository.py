from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from identity_service.application.ports.identity_port import IdentityPort
from identity_service.domain.entities.identity import Identity
from identity_service.domain.exceptions import ConflictError, NotFoundError
from identity_service.infrastructure.db.mappers.identity_mapper import format_roles, map_row_to_identity


PUBLIC_COLUMNS = "id, email, roles, google_id, last_authenticated_at, created_at, updated_at"
SECRET_COLUMNS = "password_hash, refresh_token_hash"

UPDATABLE_COLUMNS = frozenset(
    {
        "email",
        "roles",
        "password_hash",
        "google_id",
        "refresh_token_hash",
        "last_authenticated_at",
    }
)


def _columns(include_secrets: bool) -> str:
    if include_secrets:
        return f"{PUBLIC_COLUMNS}, {SECRET_COLUMNS}"
    return PUBLIC_COLUMNS


class SqlIdentityRepository(IdentityPort):
    def __init__(self, engine):
        self._engine = engine

    def find_by_email(self, *, email: str, include_secrets: bool = False) -> Identity | None:
        sql = f"""
            SELECT {_columns(include_secrets)}
            FROM identities
            WHERE lower(email) = :email
            LIMIT 1
        """
        return self._fetch_one(sql, {"email": email.strip().lower()})

    def find_by_id(self, *, identity_id: str, include_secrets: bool = False) -> Identity | None:
        sql = f"""
            SELECT {_columns(include_secrets)}
            FROM identities
            WHERE id = :identity_id
            LIMIT 1
        """
        return self._fetch_one(sql, {"identity_id": identity_id})

    def find_by_external_provider_id(self, *, provider_id: str) -> Identity | None:
        sql = f"""
            SELECT {PUBLIC_COLUMNS}
            FROM identities
            WHERE google_id = :google_id
            LIMIT 1
        """
        return self._fetch_one(sql, {"google_id": provider_id})

    def create(self, *, identity: Identity) -> Identity:
        sql = f"""
            INSERT INTO identities (
                id, email, roles, password_hash, google_id, refresh_token_hash,
                last_authenticated_at, created_at, updated_at
            ) VALUES (
                :id, :email, :roles, :password_hash, :google_id, :refresh_token_hash,
                :last_authenticated_at, :created_at, :updated_at
            )
            RETURNING {PUBLIC_COLUMNS}
        """
        params = {
            "id": identity.id,
            "email": identity.email,
            "roles": format_roles(identity.roles),
            "password_hash": identity.password_hash,
            "google_id": identity.google_id,
            "refresh_token_hash": identity.refresh_token_hash,
            "last_authenticated_at": identity.last_authenticated_at,
            "created_at": identity.created_at,
            "updated_at": identity.updated_at,
        }
        try:
            with self._engine.begin() as conn:
                row = conn.execute(text(sql), params).mappings().one()
        except IntegrityError as exc:
            raise ConflictError("Identity with this email or external id already exists.") from exc
        return map_row_to_identity(row)

    def update(self, *, identity_id: str, fields: Mapping[str, Any]) -> Identity:
        unknown = set(fields) - UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Unsupported identity fields: {sorted(unknown)}")

        params: dict[str, Any] = {
            "identity_id": identity_id,
            "updated_at": datetime.now(timezone.utc),
        }
        assignments = ["updated_at = :updated_at"]
        for column, value in fields.items():
            if column == "roles":
                value = format_roles(value)
            assignments.append(f"{column} = :{column}")
            params[column] = value

        sql = f"""
            UPDATE identities
            SET {", ".join(assignments)}
            WHERE id = :identity_id
            RETURNING {PUBLIC_COLUMNS}
        """
        try:
            with self._engine.begin() as conn:
                row = conn.execute(text(sql), params).mappings().first()
        except IntegrityError as exc:
            raise ConflictError("Identity with this email or external id already exists.") from exc
        if row is None:
            raise NotFoundError("Identity not found.")
        return map_row_to_identity(row)

    def delete(self, *, identity_id: str) -> None:
        sql = """
            DELETE FROM identities
            WHERE id = :identity_id
        """
        with self._engine.begin() as conn:
            conn.execute(text(sql), {"identity_id": identity_id})

    def clear_refresh_credential(self, *, identity_id: str) -> None:
        sql = """
            UPDATE identities
            SET refresh_token_hash = NULL,
                updated_at = :updated_at
            WHERE id = :identity_id
        """
        with self._engine.begin() as conn:
            conn.execute(
                text(sql),
                {"identity_id": identity_id, "updated_at": datetime.now(timezone.utc)},
            )

    def replace_refresh_credential(self, *, identity_id: str, expected_hash: str, new_hash: str) -> bool:
        sql = """
            UPDATE identities
            SET refresh_token_hash = :new_hash,
                updated_at = :updated_at
            WHERE id = :identity_id
              AND refresh_token_hash = :expected_hash
        """
        params = {
            "identity_id": identity_id,
            "expected_hash": expected_hash,
            "new_hash": new_hash,
            "updated_at": datetime.now(timezone.utc),
        }
        with self._engine.begin() as conn:
            result = conn.execute(text(sql), params)
        return result.rowcount == 1

    def _fetch_one(self, sql: str, params: dict[str, Any]) -> Identity | None:
        with self._engine.connect() as conn:
            row = conn.execute(text(sql), params).mappings().first()
        if row is None:
            return None
        return map_row_to_identity(row)
