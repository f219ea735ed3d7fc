from __future__ import annotations

from typing import Any, Mapping, Protocol

from identity_service.domain.entities.identity import Role
from identity_service.domain.entities.profile import Profile


class ProfilePort(Protocol):
    def find_by_identity_id(self, *, identity_id: str) -> Profile | None:
        ...

    def find_by_id(self, *, profile_id: str) -> Profile | None:
        ...

    def create(self, *, profile: Profile) -> Profile:
        ...

    def update(self, *, profile_id: str, fields: Mapping[str, Any]) -> Profile:
        ...

    def delete(self, *, profile_id: str) -> None:
        ...

    def find_all(self) -> list[Profile]:
        ...

    def find_by_role(self, *, role: Role) -> list[Profile]:
        ...
