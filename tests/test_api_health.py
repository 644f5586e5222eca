"""Tests for health check endpoints."""

import pytest
from httpx import ASGITransport, AsyncClient

from kamigallery.main import app
from kamigallery.services.gallery_store import GalleryStore, get_gallery_store


@pytest.fixture
async def client(loaded_store: GalleryStore):
    """Provide an async test client with a loaded store."""
    app.dependency_overrides[get_gallery_store] = lambda: loaded_store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


class TestHealthEndpoint:
    async def test_health_returns_healthy(self, client: AsyncClient) -> None:
        """Liveness probe returns healthy."""
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"

    async def test_health_no_corpus_check(self, client: AsyncClient) -> None:
        """Health endpoint does not include corpus status."""
        response = await client.get("/health")

        data = response.json()
        assert data.get("corpus") is None


class TestReadyEndpoint:
    async def test_ready_returns_ready(self, client: AsyncClient) -> None:
        """Readiness probe returns ready once the corpus is loaded."""
        response = await client.get("/ready")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert data["corpus"] == "loaded"
        assert data["items"] == 6

    async def test_ready_returns_503_before_load(self, static_source) -> None:
        """Readiness probe returns 503 until the first load succeeds."""
        store = GalleryStore(static_source)
        app.dependency_overrides[get_gallery_store] = lambda: store

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/ready")

        app.dependency_overrides.clear()

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "not ready"
        assert data["corpus"] == "not loaded"
