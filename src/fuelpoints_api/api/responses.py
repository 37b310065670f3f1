"""Uniform response envelope."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Optional

from fastapi import Query
from pydantic import BaseModel

from fuelpoints_api.core.settings import settings


@dataclass(frozen=True, slots=True)
class PageParams:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def describe(self, total: int) -> dict[str, int]:
        return {
            "total": total,
            "page": self.page,
            "limit": self.limit,
            "pages": math.ceil(total / self.limit) if total else 0,
        }


def page_params(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
) -> PageParams:
    return PageParams(page=page, limit=limit)


def dump(value: Any) -> Any:
    """Render schemas with their camelCase aliases."""

    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, (list, tuple)):
        return [dump(item) for item in value]
    if isinstance(value, dict):
        return {key: dump(item) for key, item in value.items()}
    return value


def envelope(
    data: Any = None,
    message: Optional[str] = None,
    pagination: Optional[dict[str, int]] = None,
) -> dict[str, Any]:
    body: dict[str, Any] = {"success": True, "data": dump(data)}
    if message is not None:
        body["message"] = message
    if pagination is not None:
        body["pagination"] = pagination
    return body


def failure(message: str, *, error: Any = None) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "message": message}
    if settings.expose_error_details:
        body["error"] = error if error is not None else message
    else:
        body["error"] = {}
    return body


__all__ = ["PageParams", "dump", "envelope", "failure", "page_params"]
