from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from identity_service.application.ports.profile_port import ProfilePort
from identity_service.domain.entities.identity import Role
from identity_service.domain.entities.profile import Profile
from identity_service.domain.exceptions import ConflictError, NotFoundError
from identity_service.infrastructure.db.mappers.identity_mapper import map_row_to_profile


PROFILE_COLUMNS = "id, identity_id, name, lastname, age, created_at, updated_at"

UPDATABLE_COLUMNS = frozenset({"name", "lastname", "age"})


class SqlProfileRepository(ProfilePort):
    def __init__(self, engine):
        self._engine = engine

    def find_by_identity_id(self, *, identity_id: str) -> Profile | None:
        sql = f"""
            SELECT {PROFILE_COLUMNS}
            FROM profiles
            WHERE identity_id = :identity_id
            LIMIT 1
        """
        with self._engine.connect() as conn:
            row = conn.execute(text(sql), {"identity_id": identity_id}).mappings().first()
        if row is None:
            return None
        return map_row_to_profile(row)

    def find_by_id(self, *, profile_id: str) -> Profile | None:
        sql = f"""
            SELECT {PROFILE_COLUMNS}
            FROM profiles
            WHERE id = :profile_id
            LIMIT 1
        """
        with self._engine.connect() as conn:
            row = conn.execute(text(sql), {"profile_id": profile_id}).mappings().first()
        if row is None:
            return None
        return map_row_to_profile(row)

    def create(self, *, profile: Profile) -> Profile:
        sql = f"""
            INSERT INTO profiles (
                id, identity_id, name, lastname, age, created_at, updated_at
            ) VALUES (
                :id, :identity_id, :name, :lastname, :age, :created_at, :updated_at
            )
            RETURNING {PROFILE_COLUMNS}
        """
        params = {
            "id": profile.id,
            "identity_id": profile.identity_id,
            "name": profile.name,
            "lastname": profile.lastname,
            "age": profile.age,
            "created_at": profile.created_at,
            "updated_at": profile.updated_at,
        }
        try:
            with self._engine.begin() as conn:
                row = conn.execute(text(sql), params).mappings().one()
        except IntegrityError as exc:
            raise ConflictError("Profile already exists for this identity.") from exc
        return map_row_to_profile(row)

    def update(self, *, profile_id: str, fields: Mapping[str, Any]) -> Profile:
        unknown = set(fields) - UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Unsupported profile fields: {sorted(unknown)}")

        params: dict[str, Any] = {
            "profile_id": profile_id,
            "updated_at": datetime.now(timezone.utc),
        }
        assignments = ["updated_at = :updated_at"]
        for column, value in fields.items():
            assignments.append(f"{column} = :{column}")
            params[column] = value

        sql = f"""
            UPDATE profiles
            SET {", ".join(assignments)}
            WHERE id = :profile_id
            RETURNING {PROFILE_COLUMNS}
        """
        with self._engine.begin() as conn:
            row = conn.execute(text(sql), params).mappings().first()
        if row is None:
            raise NotFoundError("Profile not found.")
        return map_row_to_profile(row)

    def delete(self, *, profile_id: str) -> None:
        sql = """
            DELETE FROM profiles
            WHERE id = :profile_id
        """
        with self._engine.begin() as conn:
            conn.execute(text(sql), {"profile_id": profile_id})

    def find_all(self) -> list[Profile]:
        sql = f"""
            SELECT {PROFILE_COLUMNS}
            FROM profiles
            ORDER BY created_at, id
        """
        with self._engine.connect() as conn:
            rows = conn.execute(text(sql)).mappings().all()
        return [map_row_to_profile(row) for row in rows]

    def find_by_role(self, *, role: Role) -> list[Profile]:
        sql = """
            SELECT p.id, p.identity_id, p.name, p.lastname, p.age, p.created_at, p.updated_at
            FROM profiles p
            JOIN identities i ON i.id = p.identity_id
            WHERE (',' || i.roles || ',') LIKE :pattern
            ORDER BY p.created_at, p.id
        """
        with self._engine.connect() as conn:
            rows = conn.execute(text(sql), {"pattern": f"%,{role},%"}).mappings().all()
        return [map_row_to_profile(row) for row in rows]
