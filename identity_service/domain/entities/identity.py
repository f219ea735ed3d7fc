from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal


Role = Literal["user", "admin"]

DEFAULT_ROLES: tuple[Role, ...] = ("user",)


@dataclass(frozen=True)
class Identity:
    id: str
    email: str
    roles: tuple[Role, ...]
    password_hash: str | None
    google_id: str | None
    refresh_token_hash: str | None
    last_authenticated_at: datetime | None
    created_at: datetime
    updated_at: datetime
