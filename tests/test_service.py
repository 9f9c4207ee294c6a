"""Unit tests for the redirect/creation service error mapping."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from shortener.enums import FailureKind
from shortener.exceptions import NotFoundError, ServiceFailure, StorageError, StoreTimeoutError, ValidationError
from shortener.registry import CodeRegistry
from shortener.service import RedirectService


@pytest.fixture
def mock_registry() -> AsyncMock:
    return AsyncMock(spec=CodeRegistry)


@pytest.fixture
def mock_logger() -> MagicMock:
    return MagicMock()


@pytest.fixture
def service(mock_registry: AsyncMock, mock_logger: MagicMock) -> RedirectService:
    return RedirectService(mock_registry, mock_logger)


@pytest.mark.asyncio
@pytest.mark.parametrize("raw_input", [None, "", "   ", 7, {"url": "https://example.com"}])
async def test_create_rejects_bad_shape_before_registry(service, mock_registry, raw_input) -> None:
    with pytest.raises(ServiceFailure) as exc_info:
        await service.handle_create(raw_input)

    assert exc_info.value.kind is FailureKind.INVALID_INPUT
    assert exc_info.value.status_code == 400
    mock_registry.create_or_get.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("error", "kind", "status_code"),
    [
        (ValidationError("bad"), FailureKind.INVALID_INPUT, 400),
        (StorageError("down"), FailureKind.UNAVAILABLE, 503),
        (StoreTimeoutError("slow"), FailureKind.UNAVAILABLE, 503),
        (RuntimeError("secret detail"), FailureKind.INTERNAL, 500),
    ],
)
async def test_create_maps_registry_errors(service, mock_registry, error, kind, status_code) -> None:
    mock_registry.create_or_get.side_effect = error

    with pytest.raises(ServiceFailure) as exc_info:
        await service.handle_create("https://example.com")

    assert exc_info.value.kind is kind
    assert exc_info.value.status_code == status_code
    assert "secret detail" not in exc_info.value.message


@pytest.mark.asyncio
async def test_unexpected_error_is_logged(service, mock_registry, mock_logger) -> None:
    mock_registry.resolve.side_effect = RuntimeError("boom")

    with pytest.raises(ServiceFailure) as exc_info:
        await service.handle_resolve("abc123x")

    assert exc_info.value.message == "Internal server error"
    mock_logger.exception.assert_called_once()


@pytest.mark.asyncio
async def test_resolve_not_found(service, mock_registry) -> None:
    mock_registry.resolve.side_effect = NotFoundError("missing")

    with pytest.raises(ServiceFailure) as exc_info:
        await service.handle_resolve("doesnotexist")

    assert exc_info.value.kind is FailureKind.NOT_FOUND
    assert exc_info.value.message == "Short URL not found"


@pytest.mark.asyncio
async def test_stats_and_delete_not_found(service, mock_registry) -> None:
    mock_registry.get_stats.side_effect = NotFoundError("missing")
    mock_registry.delete_by_id.side_effect = NotFoundError("missing")

    with pytest.raises(ServiceFailure) as stats_exc:
        await service.handle_stats("doesnotexist")
    with pytest.raises(ServiceFailure) as delete_exc:
        await service.handle_delete(404)

    assert stats_exc.value.kind is FailureKind.NOT_FOUND
    assert delete_exc.value.kind is FailureKind.NOT_FOUND


@pytest.mark.asyncio
async def test_list_uses_get_many_when_ids_given(service, mock_registry) -> None:
    mock_registry.get_many.return_value = []

    assert await service.handle_list([1, 2]) == []

    mock_registry.get_many.assert_awaited_once_with([1, 2])
    mock_registry.list_all.assert_not_called()


@pytest.mark.asyncio
async def test_end_to_end_with_real_registry(registry: CodeRegistry) -> None:
    service = RedirectService(registry)

    created = await service.handle_create("https://example.com/a")
    assert created.success is True
    assert created.created is True
    assert created.full == "https://example.com/a"

    again = await service.handle_create("https://example.com/a")
    assert again.short == created.short
    assert again.created is False

    assert await service.handle_resolve(created.short) == "https://example.com/a"

    stats = await service.handle_stats(created.short)
    assert stats.full == "https://example.com/a"
    assert stats.clicks == 1
    assert set(stats.model_dump(by_alias=True)) == {"short", "full", "clicks", "createdAt"}

    listing = await service.handle_list()
    assert [item.short for item in listing] == [created.short]

    await service.handle_delete(listing[0].id)
    with pytest.raises(ServiceFailure) as exc_info:
        await service.handle_resolve(created.short)
    assert exc_info.value.kind is FailureKind.NOT_FOUND
