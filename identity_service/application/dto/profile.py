from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ProfileOutput:
    id: str
    identity_id: str
    name: str
    lastname: str
    age: int | None
    is_complete: bool


@dataclass(frozen=True)
class UpdateProfileInput:
    identity_id: str
    changes: dict[str, Any] = field(default_factory=dict)
