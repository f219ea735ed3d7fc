from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Profile:
    id: str
    identity_id: str
    name: str
    lastname: str
    age: int | None
    created_at: datetime
    updated_at: datetime
