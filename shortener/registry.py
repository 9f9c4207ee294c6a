"""Code registry - sole owner and writer of URL mappings.

This module holds the short-code allocation and the redirect counter path, the
two places where concurrency and uniqueness matter. Every operation opens its
own session, runs one short transaction and is bounded by
``STORE_TIMEOUT_SECONDS``.

Architecture Overview
=====================
::
    ┌──────────────────────────────────────────────┐
    │                CodeRegistry                  │
    │  • create / create_or_get  (optimistic)      │
    │  • resolve                 (atomic +1)       │
    │  • get_stats / list_all / get_many (reads)   │
    │  • delete_by_id                              │
    └──────────────────────┬───────────────────────┘
                           ▼
    ┌──────────────────────────────────────────────┐
    │  url_mappings  (UNIQUE short_code,           │
    │                 UNIQUE full_url_hash)        │
    └──────────────────────────────────────────────┘

URL Creation Flow
-----------------
::
    ┌─────────────┐
    │ validate URL │──► ValidationError
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ lookup by    │──► found: return it (no write)
    │ URL hash     │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ generate code│◄───────────────┐
    │ INSERT       │                │
    └──────┬──────┘                │
    IntegrityError?                 │
    ┌─────┴──────┐                 │
    │ NO          │ YES             │
    ▼             ▼                 │
  return      re-fetch by hash      │
  (created)   found? ─► return winner
              not found ─► code collision, retry ─┘
              (after SHORT_CODE_MAX_ATTEMPTS ─► StorageError)

Resolve Flow
------------
::
    UPDATE url_mappings
       SET clicks = clicks + 1, updated_at = :now
     WHERE short_code = :code
    RETURNING *          ──► no row: NotFoundError

How to Use
===========
**Step 1 — Build**::
    registry = CodeRegistry(build_session_factory(engine), get_settings())

**Step 2 — Create and resolve**::
    mapping = await registry.create("https://example.com/a")
    mapping = await registry.resolve(mapping.short_code)
    assert mapping.clicks == 1

Key Behaviours
===============
- Creation is idempotent per URL; concurrent creators of the same new URL all
  get the winner's record.
- No existence pre-check for codes: the unique index decides, collisions retry.
- Short code lookups strip surrounding whitespace and lowercase the code.
- Store-specific errors are normalized into StorageError / StoreTimeoutError.
"""

import asyncio
import datetime
import logging
import time
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import urlsplit

import validators
from nanoid import generate
from prometheus_client import Counter, Histogram
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shortener.config import Settings, get_settings
from shortener.enums import RequestStatus
from shortener.exceptions import (
    ConflictError,
    NotFoundError,
    StorageError,
    StoreTimeoutError,
    ValidationError,
)
from shortener.models import URLMapping, hash_url, utcnow

__all__ = [
    "SHORT_CODE_ALPHABET",
    "CodeRegistry",
    "MappingStats",
    "generate_short_code",
    "normalize_short_code",
    "validate_full_url",
]

settings = get_settings()

# Lowercase only: stored codes are case-normalized.
SHORT_CODE_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
ALLOWED_URL_SCHEMES = frozenset({"http", "https"})
# Single-segment paths served by the app itself; a code equal to one would be shadowed.
RESERVED_SHORT_CODES = frozenset({"metrics", "docs", "redoc", "api", "shorturls"})


# ============================================================================
# PROMETHEUS METRICS
# ============================================================================

REGISTRY_OPERATIONS_TOTAL = Counter(
    "shortener_registry_operations_total",
    "Total code registry operations",
    ["operation", "status"],
)
REGISTRY_OPERATION_DURATION = Histogram(
    "shortener_registry_operation_duration_seconds",
    "Time taken by code registry operations",
    ["operation"],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)
SHORT_CODE_COLLISIONS_TOTAL = Counter(
    "shortener_short_code_collisions_total",
    "Generated short codes rejected by the unique index",
)
CREATE_RACES_LOST_TOTAL = Counter(
    "shortener_create_races_lost_total",
    "Inserts that lost a concurrent create for the same URL",
)


# ============================================================================
# HELPERS
# ============================================================================


@dataclass(frozen=True)
class MappingStats:
    """Read-only view of a mapping's counters."""

    short_code: str
    full_url: str
    visit_count: int
    created_at: datetime.datetime


def generate_short_code(length: int = settings.SHORT_CODE_LENGTH) -> str:
    assert isinstance(length, int) and length > 0, f"length must be a positive integer, got {length!r}"
    return generate(SHORT_CODE_ALPHABET, length)


def normalize_short_code(short_code: Any) -> str:
    """Return the canonical (trimmed, lowercase) form of a short code.

    Raises:
        NotFoundError: If the value cannot name any stored code.
    """
    if not isinstance(short_code, str):
        raise NotFoundError(f"No mapping for short code {short_code!r}")
    normalized = short_code.strip().lower()
    if not normalized:
        raise NotFoundError("No mapping for an empty short code")
    return normalized


def validate_full_url(full_url: Any) -> str:
    """Check that ``full_url`` is a well-formed absolute http(s) URL.

    Surrounding whitespace is trimmed; the trimmed value is what gets stored.

    Raises:
        ValidationError: If the value is missing, not a string, or malformed.
    """
    if full_url is None or not isinstance(full_url, str):
        raise ValidationError("URL is required")
    candidate = full_url.strip()
    if not candidate:
        raise ValidationError("URL is required")
    # simple_host admits single-label hosts such as localhost or intranet.
    if not validators.url(candidate, simple_host=True):
        raise ValidationError(f"Invalid URL format: {candidate!r}")
    parts = urlsplit(candidate)
    if not parts.hostname:
        raise ValidationError(f"Invalid URL format: {candidate!r}")
    if parts.scheme.lower() not in ALLOWED_URL_SCHEMES:
        raise ValidationError(f"Unsupported URL scheme: {candidate!r}")
    return candidate


# ============================================================================
# CODE REGISTRY
# ============================================================================


class CodeRegistry:
    """Owns the {short code <-> full URL} mapping and its visit counters.

    The registry is the single writer of the ``url_mappings`` table. It keeps
    no per-caller state and no cache; every call reflects the latest committed
    state of the store.

    Example:
        >>> registry = CodeRegistry(session_factory, settings)
        >>> mapping, created = await registry.create_or_get("https://example.com")
        >>> target = (await registry.resolve(mapping.short_code)).full_url
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        settings: Settings,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._session_factory = session_factory
        self._logger = logger or logging.getLogger("shortener.registry")
        self._timeout = settings.STORE_TIMEOUT_SECONDS
        self._code_length = settings.SHORT_CODE_LENGTH
        self._max_attempts = settings.SHORT_CODE_MAX_ATTEMPTS

    # ========================================================================
    # PUBLIC API METHODS
    # ========================================================================

    async def create(self, full_url: Any) -> URLMapping:
        """Return the mapping for ``full_url``, creating it if needed.

        Raises:
            ValidationError: If ``full_url`` is missing or malformed.
            StorageError: If the store fails or no unique code could be allocated.
        """
        mapping, _ = await self.create_or_get(full_url)
        return mapping

    async def create_or_get(self, full_url: Any) -> tuple[URLMapping, bool]:
        """Like :meth:`create`, also reporting whether a new record was written.

        Args:
            full_url: Candidate URL, validated before any store access.

        Returns:
            tuple[URLMapping, bool]: The canonical mapping for the URL and
            ``True`` when this call inserted it.

        Performance:
            - Existing URL: one read, zero writes.
            - New URL: one read plus one insert (more only on collisions).
        """
        async with self._instrumented("create"):
            candidate = validate_full_url(full_url)
            url_hash = hash_url(candidate)

            existing = await self._find_by_hash(url_hash)
            if existing is not None:
                self._logger.info(f"URL already shortened: {existing.short_code} -> {candidate}")
                return existing, False

            for attempt in range(1, self._max_attempts + 1):
                short_code = generate_short_code(self._code_length)
                if short_code in RESERVED_SHORT_CODES:
                    self._logger.debug(f"Skipping reserved short code {short_code}")
                    continue
                try:
                    mapping = await self._insert(candidate, url_hash, short_code)
                except ConflictError:
                    winner = await self._find_by_hash(url_hash)
                    if winner is not None:
                        CREATE_RACES_LOST_TOTAL.inc()
                        self._logger.info(f"Concurrent create won by {winner.short_code} for {candidate}")
                        return winner, False
                    SHORT_CODE_COLLISIONS_TOTAL.inc()
                    self._logger.warning(
                        f"Short code collision on {short_code} (attempt {attempt}/{self._max_attempts})"
                    )
                    continue

                self._logger.info(f"Created short URL: {mapping.short_code} -> {candidate}")
                return mapping, True

            raise StorageError(f"Could not allocate a unique short code after {self._max_attempts} attempts")

    async def resolve(self, short_code: Any) -> URLMapping:
        """Atomically count a visit and return the post-increment mapping.

        Raises:
            NotFoundError: If no mapping has this code. Nothing is changed.
        """
        async with self._instrumented("resolve"):
            code = normalize_short_code(short_code)
            stmt = (
                update(URLMapping)
                .where(URLMapping.short_code == code)
                .values(clicks=URLMapping.clicks + 1, updated_at=utcnow())
                .returning(URLMapping)
            )
            async with self._store_call("resolve") as session:
                mapping = (await session.scalars(stmt)).one_or_none()
                await session.commit()

            if mapping is None:
                raise NotFoundError(f"No mapping for short code {code!r}")
            self._logger.debug(f"Resolved {code} (total clicks: {mapping.clicks})")
            return mapping

    async def delete_by_id(self, mapping_id: int) -> None:
        """Permanently remove a mapping.

        Raises:
            NotFoundError: If no mapping has this id.
        """
        async with self._instrumented("delete"):
            if isinstance(mapping_id, bool) or not isinstance(mapping_id, int):
                raise NotFoundError(f"No mapping with id {mapping_id!r}")
            stmt = delete(URLMapping).where(URLMapping.id == mapping_id).returning(URLMapping.short_code)
            async with self._store_call("delete") as session:
                deleted_code = (await session.execute(stmt)).scalar_one_or_none()
                await session.commit()

            if deleted_code is None:
                raise NotFoundError(f"No mapping with id {mapping_id!r}")
            self._logger.info(f"Deleted short URL: {deleted_code} (id={mapping_id})")

    async def get_stats(self, short_code: Any) -> MappingStats:
        async with self._instrumented("stats"):
            code = normalize_short_code(short_code)
            async with self._store_call("stats") as session:
                mapping = (
                    await session.scalars(select(URLMapping).where(URLMapping.short_code == code))
                ).one_or_none()

            if mapping is None:
                raise NotFoundError(f"No mapping for short code {code!r}")
            return MappingStats(
                short_code=mapping.short_code,
                full_url=mapping.full_url,
                visit_count=mapping.clicks,
                created_at=mapping.created_at,
            )

    async def list_all(self) -> list[URLMapping]:
        """All mappings, newest first."""
        async with self._instrumented("list"):
            stmt = select(URLMapping).order_by(URLMapping.created_at.desc(), URLMapping.id.desc())
            async with self._store_call("list") as session:
                return list((await session.scalars(stmt)).all())

    async def get_many(self, ids: Iterable[int]) -> list[URLMapping]:
        """Mappings among ``ids``, newest first. Unknown ids are skipped."""
        async with self._instrumented("get_many"):
            wanted = {i for i in ids if isinstance(i, int) and not isinstance(i, bool)}
            if not wanted:
                return []
            stmt = (
                select(URLMapping)
                .where(URLMapping.id.in_(wanted))
                .order_by(URLMapping.created_at.desc(), URLMapping.id.desc())
            )
            async with self._store_call("get_many") as session:
                return list((await session.scalars(stmt)).all())

    # ========================================================================
    # PRIVATE HELPER METHODS
    # ========================================================================

    async def _find_by_hash(self, url_hash: str) -> Optional[URLMapping]:
        async with self._store_call("lookup") as session:
            result = await session.scalars(select(URLMapping).where(URLMapping.full_url_hash == url_hash))
            return result.one_or_none()

    async def _insert(self, full_url: str, url_hash: str, short_code: str) -> URLMapping:
        """Insert a new mapping with explicitly computed defaults.

        Raises:
            ConflictError: If the short code or the URL is already stored.
        """
        now = utcnow()
        mapping = URLMapping(
            short_code=short_code,
            full_url=full_url,
            full_url_hash=url_hash,
            clicks=0,
            created_at=now,
            updated_at=now,
        )
        async with self._store_call("insert") as session:
            session.add(mapping)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise ConflictError(f"Insert of {short_code!r} rejected by a unique constraint") from exc
            await session.refresh(mapping)
        return mapping

    @asynccontextmanager
    async def _store_call(self, operation: str) -> AsyncIterator[AsyncSession]:
        """Open a session bounded by the store timeout and normalize failures."""
        try:
            async with asyncio.timeout(self._timeout):
                async with self._session_factory() as session:
                    yield session
        except TimeoutError as exc:
            self._logger.error(f"Store {operation} timed out after {self._timeout}s")
            raise StoreTimeoutError(f"Store {operation} timed out after {self._timeout}s") from exc
        except (SQLAlchemyError, OSError) as exc:
            self._logger.error(f"Store {operation} failed: {exc}")
            raise StorageError(f"Store {operation} failed") from exc

    @asynccontextmanager
    async def _instrumented(self, operation: str) -> AsyncIterator[None]:
        start_time = time.perf_counter()
        status = RequestStatus.SUCCESS
        try:
            yield
        except ValidationError:
            status = RequestStatus.VALIDATION_ERROR
            raise
        except NotFoundError:
            status = RequestStatus.NOT_FOUND
            raise
        except Exception:
            status = RequestStatus.ERROR
            raise
        finally:
            REGISTRY_OPERATION_DURATION.labels(operation=operation).observe(time.perf_counter() - start_time)
            REGISTRY_OPERATIONS_TOTAL.labels(operation=operation, status=status.value).inc()
