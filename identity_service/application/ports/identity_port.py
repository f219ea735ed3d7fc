from __future__ import annotations

from typing import Any, Mapping, Protocol

from identity_service.domain.entities.identity import Identity


class IdentityPort(Protocol):
    def find_by_email(self, *, email: str, include_secrets: bool = False) -> Identity | None:
        ...

    def find_by_id(self, *, identity_id: str, include_secrets: bool = False) -> Identity | None:
        ...

    def find_by_external_provider_id(self, *, provider_id: str) -> Identity | None:
        ...

    def create(self, *, identity: Identity) -> Identity:
        ...

    def update(self, *, identity_id: str, fields: Mapping[str, Any]) -> Identity:
        ...

    def delete(self, *, identity_id: str) -> None:
        ...

    def clear_refresh_credential(self, *, identity_id: str) -> None:
        ...

    def replace_refresh_credential(self, *, identity_id: str, expected_hash: str, new_hash: str) -> bool:
        ...
