"""HTTP API tests: link CRUD, redirects, stats and error mapping."""

from datetime import timedelta

import pytest
from httpx import AsyncClient

from linkhop.services.click_dispatcher import ClickDispatcher
from linkhop.services.link import LinkService


async def create_link(client: AsyncClient, **payload) -> dict:
    payload.setdefault("url", "https://www.python.org")
    response = await client.post("/api/v1/links", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


# ============================================================================
# CREATE
# ============================================================================


@pytest.mark.asyncio
async def test_create_link(client: AsyncClient) -> None:
    data = await create_link(client)

    assert len(data["code"]) == 6
    assert data["target"] == "https://www.python.org"
    assert data["short_url"].endswith(f"/{data['code']}")
    assert data["active"] is True
    assert data["click_count"] == 0
    assert data["expires_at"] is None


@pytest.mark.asyncio
async def test_create_link_with_alias_and_expiry(client: AsyncClient) -> None:
    data = await create_link(client, custom_alias="py-docs", expires_in_hours=24)

    assert data["code"] == "py-docs"
    assert data["custom_alias"] == "py-docs"
    assert data["expires_at"] is not None


@pytest.mark.asyncio
async def test_create_duplicate_alias(client: AsyncClient) -> None:
    await create_link(client, custom_alias="taken")

    response = await client.post(
        "/api/v1/links", json={"url": "https://example.com", "custom_alias": "taken"}
    )

    assert response.status_code == 409
    assert response.json()["error"] == "alias_taken"


@pytest.mark.asyncio
@pytest.mark.parametrize("url", ["not-a-url", "ftp://example.com", "https://", ""])
async def test_create_invalid_url(client: AsyncClient, url: str) -> None:
    response = await client.post("/api/v1/links", json={"url": url})

    assert response.status_code == 400
    assert response.json()["error"] == "invalid_target"


@pytest.mark.asyncio
async def test_create_invalid_alias(client: AsyncClient) -> None:
    response = await client.post(
        "/api/v1/links", json={"url": "https://example.com", "custom_alias": "no spaces"}
    )

    assert response.status_code == 400
    assert response.json()["error"] == "invalid_alias"


@pytest.mark.asyncio
async def test_create_rejects_non_positive_expiry(client: AsyncClient) -> None:
    response = await client.post(
        "/api/v1/links", json={"url": "https://example.com", "expires_in_hours": 0}
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_create_rejects_expiry_beyond_ten_years(client: AsyncClient) -> None:
    response = await client.post(
        "/api/v1/links", json={"url": "https://example.com", "expires_in_hours": 10**9}
    )

    assert response.status_code == 422


# ============================================================================
# REDIRECT
# ============================================================================


@pytest.mark.asyncio
async def test_redirect_and_click_recorded(client: AsyncClient, dispatcher: ClickDispatcher) -> None:
    data = await create_link(client)

    response = await client.get(
        f"/{data['code']}",
        headers={"Referer": "https://news.example", "User-Agent": "pytest"},
    )
    assert response.status_code == 302
    assert response.headers["location"] == "https://www.python.org"

    await dispatcher.drain(timeout=1.0)
    stats = (await client.get(f"/api/v1/links/{data['code']}/stats")).json()
    assert stats["total_clicks"] == 1
    assert stats["recent_clicks"][0]["referer"] == "https://news.example"


@pytest.mark.asyncio
async def test_redirect_by_alias(client: AsyncClient) -> None:
    await create_link(client, url="https://github.com", custom_alias="ghub")

    response = await client.get("/ghub")

    assert response.status_code == 302
    assert response.headers["location"] == "https://github.com"


@pytest.mark.asyncio
async def test_redirect_unknown_code(client: AsyncClient) -> None:
    response = await client.get("/nonexistent")

    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


@pytest.mark.asyncio
async def test_redirect_expired_link(client: AsyncClient, service: LinkService) -> None:
    link = await service.create_short_link("https://example.com", ttl=timedelta(seconds=-1))

    response = await client.get(f"/{link.code}")

    assert response.status_code == 410
    assert response.json()["error"] == "expired"


@pytest.mark.asyncio
async def test_redirect_deleted_link(client: AsyncClient) -> None:
    data = await create_link(client)
    await client.delete(f"/api/v1/links/{data['id']}")

    response = await client.get(f"/{data['code']}")

    assert response.status_code == 404
    assert response.json()["error"] == "inactive"


# ============================================================================
# READ / UPDATE / DELETE
# ============================================================================


@pytest.mark.asyncio
async def test_get_link(client: AsyncClient) -> None:
    data = await create_link(client)

    response = await client.get(f"/api/v1/links/{data['code']}")

    assert response.status_code == 200
    assert response.json()["id"] == data["id"]


@pytest.mark.asyncio
async def test_stats_unknown_code(client: AsyncClient) -> None:
    response = await client.get("/api/v1/links/missing/stats")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_update_link(client: AsyncClient) -> None:
    data = await create_link(client, expires_in_hours=1)

    response = await client.patch(
        f"/api/v1/links/{data['id']}", json={"url": "https://docs.python.org"}
    )
    assert response.status_code == 200
    assert response.json()["target"] == "https://docs.python.org"
    assert response.json()["expires_at"] == data["expires_at"]

    redirect = await client.get(f"/{data['code']}")
    assert redirect.headers["location"] == "https://docs.python.org"


@pytest.mark.asyncio
async def test_update_clears_expiry(client: AsyncClient) -> None:
    data = await create_link(client, expires_in_hours=1)

    response = await client.patch(f"/api/v1/links/{data['id']}", json={"expires_at": None})

    assert response.status_code == 200
    assert response.json()["expires_at"] is None


@pytest.mark.asyncio
async def test_delete_link(client: AsyncClient) -> None:
    data = await create_link(client)

    response = await client.delete(f"/api/v1/links/{data['id']}")
    assert response.status_code == 204

    response = await client.delete("/api/v1/links/00000000-0000-0000-0000-000000000000")
    assert response.status_code == 404


# ============================================================================
# OPERATIONAL ENDPOINTS
# ============================================================================


@pytest.mark.asyncio
async def test_health(client: AsyncClient) -> None:
    response = await client.get("/api/v1/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["cache"]["enabled"] is True
    assert data["click_tasks"]["accepting"] is True


@pytest.mark.asyncio
async def test_metrics(client: AsyncClient) -> None:
    response = await client.get("/metrics")

    assert response.status_code == 200
    assert "linkhop_redirects_total" in response.text


@pytest.mark.asyncio
async def test_response_headers(client: AsyncClient) -> None:
    response = await client.get("/api/v1/health", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert "Content-Security-Policy" in response.headers
