"""Listing and deletion endpoint tests."""

import pytest
from httpx import AsyncClient


async def _create(client: AsyncClient, url: str) -> str:
    response = await client.post("/shortUrls", json={"fullUrl": url})
    assert response.status_code == 201
    return response.json()["short"]


@pytest.mark.asyncio
async def test_list_newest_first(client: AsyncClient) -> None:
    first = await _create(client, "https://example.com/1")
    second = await _create(client, "https://example.com/2")

    response = await client.get("/api/urls")
    assert response.status_code == 200
    data = response.json()
    assert [item["short"] for item in data] == [second, first]
    assert set(data[0]) == {"id", "short", "full", "clicks", "createdAt", "updatedAt"}


@pytest.mark.asyncio
async def test_list_restricted_to_ids(client: AsyncClient) -> None:
    await _create(client, "https://example.com/1")
    wanted = await _create(client, "https://example.com/2")
    listing = (await client.get("/api/urls")).json()
    wanted_id = next(item["id"] for item in listing if item["short"] == wanted)

    response = await client.get("/api/urls", params={"ids": [wanted_id, 999]})
    assert response.status_code == 200
    assert [item["short"] for item in response.json()] == [wanted]


@pytest.mark.asyncio
async def test_list_empty(client: AsyncClient) -> None:
    response = await client.get("/api/urls")
    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_delete_then_redirect_is_not_found(client: AsyncClient) -> None:
    short_code = await _create(client, "https://example.com/a")
    mapping_id = (await client.get("/api/urls")).json()[0]["id"]

    response = await client.delete(f"/shortUrls/{mapping_id}")
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Short URL deleted"}

    response = await client.get(f"/{short_code}", follow_redirects=False)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_unknown_id(client: AsyncClient) -> None:
    response = await client.delete("/shortUrls/12345")
    assert response.status_code == 404
    assert response.json() == {"error": "Short URL not found"}


@pytest.mark.asyncio
async def test_delete_non_numeric_id(client: AsyncClient) -> None:
    response = await client.delete("/shortUrls/not-an-id")
    assert response.status_code == 400
