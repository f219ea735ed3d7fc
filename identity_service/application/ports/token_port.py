from __future__ import annotations

from datetime import datetime
from typing import Protocol

from identity_service.application.dto.auth import TokenClaims


class TokenPort(Protocol):
    def create_access_token(self, *, claims: TokenClaims, now: datetime) -> tuple[str, datetime]:
        ...

    def create_refresh_token(self, *, claims: TokenClaims, now: datetime) -> tuple[str, datetime]:
        ...

    def decode_access_token(self, *, token: str) -> TokenClaims:
        ...

    def decode_refresh_token(self, *, token: str) -> TokenClaims:
        ...

    def hash_refresh_token(self, *, refresh_token: str) -> str:
        ...

    def verify_refresh_token_hash(self, *, refresh_token: str, refresh_token_hash: str) -> bool:
        ...
