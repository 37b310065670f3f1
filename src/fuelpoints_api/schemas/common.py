from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict


def _to_camel(value: str) -> str:
    parts = value.split("_")
    return parts[0] + "".join(word.capitalize() for word in parts[1:])


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=_to_camel, from_attributes=True)


class UserSummary(CamelModel):
    id: UUID
    email: str
    name: str | None = None
    role: str


class PumpSummary(CamelModel):
    id: UUID
    name: str
    status: str


class GiftSummary(CamelModel):
    id: UUID
    name: str
    points_required: int
    stock: int
