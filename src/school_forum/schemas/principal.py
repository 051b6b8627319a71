"""Identity of the acting user as supplied by the identity provider."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class Role(StrEnum):
    """Community roles recognised by the forum."""

    PARENT = "parent"
    TEACHER = "teacher"
    ADMIN = "admin"


class Principal(BaseModel):
    """The acting identity on whose behalf an operation runs."""

    id: str = Field(..., min_length=1, description="Opaque user identifier")
    role: Role
    display_name: str = Field(..., min_length=1)

    model_config = ConfigDict(frozen=True)
