from __future__ import annotations

from pydantic import BaseModel, Field


class ProfileResponse(BaseModel):
    id: str
    identity_id: str
    name: str
    lastname: str
    age: int | None
    is_complete: bool


class UpdateProfileRequest(BaseModel):
    name: str | None = Field(default=None, max_length=120)
    lastname: str | None = Field(default=None, max_length=120)
    age: int | None = None
