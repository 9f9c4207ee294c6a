"""Pydantic schemas for request/response validation in the URL shortener.

This module defines the wire shapes of the HTTP adapter. Field names follow the
public JSON contract (``full``, ``short``, ``clicks``, ``createdAt``); the
Python attribute names stay snake_case through aliases.

Schema Hierarchy
=================
::
    URLCreate (Input)
    └─ fullUrl: Any (shape-checked by the service, not here)

    CreateResult (Output)
    ├─ success: bool
    ├─ full: str
    ├─ short: str
    └─ created: bool

    URLStats (Output)
    ├─ short / full / clicks
    └─ createdAt: datetime

    MappingOut (Output, listing)
    ├─ id / short / full / clicks
    └─ createdAt / updatedAt

    DeleteResult, HealthResponse, ErrorResponse

How to Use
===========
**Step 1 — Build from a registry record**::
    mapping = await registry.resolve("abc123x")
    return MappingOut.from_mapping(mapping)

**Step 2 — Serialize**::
    MappingOut.from_mapping(mapping).model_dump(by_alias=True)
    # {"id": 1, "short": "abc123x", "full": "...", "clicks": 1, "createdAt": ..., ...}

Key Behaviours
===============
- URLCreate accepts any JSON value for fullUrl so that non-string input is
  reported as a 400 by the service instead of a framework-level 422.
- Creation responses carry the bare short code only; clients build the absolute link themselves.
- All models accept both the alias and the attribute name on input.
"""

import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from shortener.enums import HealthStatus
from shortener.models import URLMapping

__all__ = [
    "URLCreate",
    "CreateResult",
    "URLStats",
    "MappingOut",
    "DeleteResult",
    "HealthResponse",
    "ErrorResponse",
]


class URLCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    full_url: Any = Field(default=None, alias="fullUrl")


class CreateResult(BaseModel):
    success: bool = True
    full: str
    short: str
    created: bool = Field(..., description="False when the URL was already shortened and its code is reused.")


class URLStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    short: str
    full: str
    clicks: int
    created_at: datetime.datetime = Field(alias="createdAt")


class MappingOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    short: str
    full: str
    clicks: int
    created_at: datetime.datetime = Field(alias="createdAt")
    updated_at: datetime.datetime = Field(alias="updatedAt")

    @classmethod
    def from_mapping(cls, mapping: URLMapping) -> "MappingOut":
        return cls(
            id=mapping.id,
            short=mapping.short_code,
            full=mapping.full_url,
            clicks=mapping.clicks,
            created_at=mapping.created_at,
            updated_at=mapping.updated_at,
        )


class DeleteResult(BaseModel):
    success: bool = True
    message: str = "Short URL deleted"


class HealthResponse(BaseModel):
    status: HealthStatus
    timestamp: datetime.datetime


class ErrorResponse(BaseModel):
    error: str
