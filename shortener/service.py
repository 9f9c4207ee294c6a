"""Redirect/creation service - request orchestration over the code registry.

This module translates caller input into registry calls and registry outcomes
into caller-facing results. It keeps no state of its own; all durable state
lives in the registry.

Error Mapping
=============
::
    registry outcome              ──►  FailureKind      (HTTP)
    ─────────────────────────────────────────────────────────
    bad input shape / Validation  ──►  INVALID_INPUT    (400)
    NotFoundError                 ──►  NOT_FOUND        (404)
    StorageError / timeout        ──►  UNAVAILABLE      (503)
    anything else                 ──►  INTERNAL         (500, logged)

Flow Diagram — Resolve
======================
::
    ┌─────────────┐
    │ GET /:code  │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ registry.    │
    │ resolve()    │── NotFoundError ──► ServiceFailure(NOT_FOUND)
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ return target│──► caller issues 302
    └─────────────┘

How to Use
===========
**Step 1 — Build per request**::
    service = RedirectService(registry, ctx.logger)

**Step 2 — Call and let ServiceFailure propagate to the HTTP layer**::
    result = await service.handle_create(payload.full_url)
    target = await service.handle_resolve("abc123x")

Key Behaviours
===============
- Unexpected exceptions are logged with traceback and reported as a generic
  failure; their details never reach the caller.
- Creating an already-shortened URL succeeds and reports ``created=False``.
- Resolve retries after an ambiguous failure may count a visit twice.
"""

import logging
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from typing import Any, Optional, Union

from shortener.enums import FailureKind
from shortener.exceptions import NotFoundError, ServiceFailure, StorageError, ValidationError
from shortener.registry import CodeRegistry
from shortener.schemas import CreateResult, DeleteResult, MappingOut, URLStats

__all__ = ["RedirectService"]

MSG_URL_REQUIRED = "URL is required"
MSG_INVALID_URL = "Invalid URL format"
MSG_NOT_FOUND = "Short URL not found"
MSG_UNAVAILABLE = "Storage temporarily unavailable"
MSG_INTERNAL = "Internal server error"


class RedirectService:
    """Stateless request/response orchestration over :class:`CodeRegistry`.

    Example:
        >>> service = RedirectService(registry, logger)
        >>> result = await service.handle_create("https://example.com/a")
        >>> await service.handle_resolve(result.short)
        'https://example.com/a'
    """

    def __init__(
        self,
        registry: CodeRegistry,
        logger: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None,
    ) -> None:
        self._registry = registry
        self._logger = logger or logging.getLogger("shortener")

    async def handle_create(self, raw_input: Any) -> CreateResult:
        if not isinstance(raw_input, str) or not raw_input.strip():
            self._logger.warning(f"Rejected create request without a URL: {raw_input!r}")
            raise ServiceFailure(FailureKind.INVALID_INPUT, MSG_URL_REQUIRED)

        async with self._failure_mapping("create"):
            mapping, created = await self._registry.create_or_get(raw_input)

        if created:
            self._logger.info(f"Created short URL: {mapping.short_code} -> {mapping.full_url}")
        else:
            self._logger.info(f"Reusing short URL: {mapping.short_code} -> {mapping.full_url}")
        return CreateResult(full=mapping.full_url, short=mapping.short_code, created=created)

    async def handle_resolve(self, code: Any) -> str:
        """Count a visit and return the redirect target for ``code``."""
        async with self._failure_mapping("resolve"):
            mapping = await self._registry.resolve(code)

        self._logger.info(f"Redirect: {mapping.short_code} (Total clicks: {mapping.clicks})")
        return mapping.full_url

    async def handle_stats(self, code: Any) -> URLStats:
        async with self._failure_mapping("stats"):
            stats = await self._registry.get_stats(code)

        return URLStats(
            short=stats.short_code,
            full=stats.full_url,
            clicks=stats.visit_count,
            created_at=stats.created_at,
        )

    async def handle_delete(self, mapping_id: int) -> DeleteResult:
        async with self._failure_mapping("delete"):
            await self._registry.delete_by_id(mapping_id)

        self._logger.info(f"Deleted short URL id={mapping_id}")
        return DeleteResult()

    async def handle_list(self, ids: Optional[Iterable[int]] = None) -> list[MappingOut]:
        """All mappings newest first, or only those among ``ids`` when given."""
        async with self._failure_mapping("list"):
            if ids is None:
                mappings = await self._registry.list_all()
            else:
                mappings = await self._registry.get_many(ids)

        return [MappingOut.from_mapping(mapping) for mapping in mappings]

    @asynccontextmanager
    async def _failure_mapping(self, operation: str) -> AsyncIterator[None]:
        try:
            yield
        except ValidationError as exc:
            self._logger.warning(f"{operation} rejected: {exc}")
            raise ServiceFailure(FailureKind.INVALID_INPUT, MSG_INVALID_URL) from exc
        except NotFoundError as exc:
            self._logger.warning(f"{operation} not found: {exc}")
            raise ServiceFailure(FailureKind.NOT_FOUND, MSG_NOT_FOUND) from exc
        except StorageError as exc:
            self._logger.error(f"{operation} storage failure: {exc}")
            raise ServiceFailure(FailureKind.UNAVAILABLE, MSG_UNAVAILABLE) from exc
        except Exception as exc:
            self._logger.exception(f"{operation} failed unexpectedly")
            raise ServiceFailure(FailureKind.INTERNAL, MSG_INTERNAL) from exc
