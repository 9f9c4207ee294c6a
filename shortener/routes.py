"""FastAPI route definitions for the URL shortener API.

This module is the thin HTTP adapter over :class:`RedirectService`. Handlers
log, delegate and shape the response; failures travel as ``ServiceFailure``
and are rendered by the exception handler installed in ``shortener.main``.

Request Flow Diagram
====================
::
    ┌─────────────┐
    │ HTTP Request│
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Dependencies │
    │ (ctx,service)│
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ RedirectSvc  │── ServiceFailure ──► {"error": ...} + status
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ JSON / 302   │
    │ Response    │
    └─────────────┘

How to Use
===========
**Step 1 — Import and include router**::
    from shortener.routes import router
    app.include_router(router)

**Step 2 — Access endpoints**::
    # Health check
    GET http://localhost:8000/api/health

    # Shorten URL
    POST http://localhost:8000/shortUrls
    {"fullUrl": "https://example.com"}

    # Redirect
    GET http://localhost:8000/abc123x

    # Stats
    GET http://localhost:8000/api/stats/abc123x

    # Listing (optionally restricted to a caller's ids)
    GET http://localhost:8000/api/urls?ids=1&ids=4

    # Delete
    DELETE http://localhost:8000/shortUrls/1

Key Behaviours
===============
- A new URL answers 201; an already-shortened URL answers 200 with its code.
- Redirects are 302, matching a plain browser redirect.
- The health probe does not touch the registry.
- The catch-all redirect route is registered last.

Endpoints:
    /api/health:  Liveness probe.
    /shortUrls:  Create short URLs.
    /shortUrls/:id:  Delete a short URL.
    /api/stats/:code:  Get URL statistics.
    /api/urls:  List short URLs newest first.
    /:code:  Redirect to original URL.
"""

import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import RedirectResponse

from shortener.dependencies import RequestContext, get_redirect_service, get_request_context
from shortener.enums import HealthStatus
from shortener.schemas import (
    CreateResult,
    DeleteResult,
    ErrorResponse,
    HealthResponse,
    MappingOut,
    URLCreate,
    URLStats,
)
from shortener.service import RedirectService

__all__ = ["router"]

router = APIRouter()

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


@router.get("/api/health", response_model=HealthResponse, tags=["health"])
async def health_check() -> HealthResponse:
    return HealthResponse(status=HealthStatus.OK, timestamp=datetime.datetime.now(datetime.timezone.utc))


@router.post(
    "/shortUrls",
    response_model=CreateResult,
    status_code=status.HTTP_201_CREATED,
    responses=_ERROR_RESPONSES,
    tags=["urls"],
)
async def create_short_url(
    payload: URLCreate,
    response: Response,
    ctx: RequestContext = Depends(get_request_context),
    service: RedirectService = Depends(get_redirect_service),
) -> CreateResult:
    ctx.add_tag("url_creation")
    ctx.logger.info(f"URL shortening requested: {payload.full_url!r}")

    result = await service.handle_create(payload.full_url)
    if not result.created:
        response.status_code = status.HTTP_200_OK

    ctx.logger.info(f"URL shortening finished: {result.short} in {ctx.get_duration():.2f}ms")
    return result


@router.delete("/shortUrls/{mapping_id}", response_model=DeleteResult, responses=_ERROR_RESPONSES, tags=["urls"])
async def delete_short_url(
    mapping_id: int,
    ctx: RequestContext = Depends(get_request_context),
    service: RedirectService = Depends(get_redirect_service),
) -> DeleteResult:
    ctx.logger.info(f"Delete requested for id: {mapping_id}")
    return await service.handle_delete(mapping_id)


@router.get("/api/stats/{short_code}", response_model=URLStats, responses=_ERROR_RESPONSES, tags=["urls"])
async def get_stats(
    short_code: str,
    ctx: RequestContext = Depends(get_request_context),
    service: RedirectService = Depends(get_redirect_service),
) -> URLStats:
    ctx.logger.info(f"Stats requested for short code: {short_code}")
    return await service.handle_stats(short_code)


@router.get("/api/urls", response_model=list[MappingOut], responses=_ERROR_RESPONSES, tags=["urls"])
async def list_short_urls(
    ids: Optional[list[int]] = Query(default=None),
    service: RedirectService = Depends(get_redirect_service),
) -> list[MappingOut]:
    return await service.handle_list(ids)


@router.get("/{short_code}", responses=_ERROR_RESPONSES, tags=["redirect"])
async def redirect_to_url(
    short_code: str,
    ctx: RequestContext = Depends(get_request_context),
    service: RedirectService = Depends(get_redirect_service),
) -> RedirectResponse:
    ctx.add_tag("redirect")
    ctx.logger.info(f"Redirect requested for short code: {short_code}")

    target = await service.handle_resolve(short_code)
    return RedirectResponse(url=target, status_code=status.HTTP_302_FOUND)
