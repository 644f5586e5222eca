"""Tests for gallery API endpoints."""

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from kamigallery.main import app
from kamigallery.models.failure import CorpusLoadError
from kamigallery.services.gallery_store import GalleryStore, get_gallery_store


@pytest.fixture
async def client(loaded_store: GalleryStore):
    """Provide an async test client backed by the sample collection."""
    app.dependency_overrides[get_gallery_store] = lambda: loaded_store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
async def empty_client(static_source):
    """Client whose store has never loaded."""
    store = GalleryStore(static_source)
    app.dependency_overrides[get_gallery_store] = lambda: store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


class TestGetGallery:
    async def test_default_view(self, client: AsyncClient) -> None:
        """The default view lists everything newest first."""
        response = await client.get("/gallery")

        assert response.status_code == 200
        data = response.json()
        assert data["query"] == ""
        assert data["sort"] == "latest"
        assert data["mode"] == "unfiltered"
        assert data["header"]["title"] == "Showing all Kamigotchi"
        assert data["header"]["total"] == 6
        assert [card["id"] for card in data["cards"]] == ["10", "4", "3", "2", "1"]
        assert data["next_offset"] is None

    async def test_filtered_and_sorted(self, client: AsyncClient) -> None:
        """Filters and sort come from the query string."""
        response = await client.get("/gallery", params={"body": "Red|Blue", "sort": "rarity"})

        data = response.json()
        assert data["mode"] == "filtered"
        assert [card["id"] for card in data["cards"]] == ["3", "4", "1", "2", "10"]
        assert [chip["value"] for chip in data["header"]["chips"]] == ["Red", "Blue"]
        assert httpx.QueryParams(data["query"])["sort"] == "rarity"

    async def test_pagination(self, client: AsyncClient) -> None:
        """offset and limit page through the active ordering."""
        response = await client.get("/gallery", params={"sort": "oldest", "limit": 2})
        data = response.json()

        assert [card["id"] for card in data["cards"]] == ["1", "2"]
        assert data["next_offset"] == 2
        assert "limit" not in data["query"]

        response = await client.get(
            "/gallery", params={"sort": "oldest", "limit": 2, "offset": 4}
        )
        data = response.json()

        assert [card["id"] for card in data["cards"]] == ["10"]
        assert data["next_offset"] is None

    async def test_no_matches(self, client: AsyncClient) -> None:
        response = await client.get("/gallery", params={"body": "Green", "hand": "Claws"})

        data = response.json()
        assert data["mode"] == "no_matches"
        assert data["header"]["no_matches"] is True
        assert data["header"]["message"] == "No Kamigotchi match your selected traits"
        assert data["cards"] == []

    async def test_comparison_from_query(self, client: AsyncClient) -> None:
        """select restores the comparison tray, dropping unknown IDs."""
        response = await client.get("/gallery", params={"select": "10,3,999"})

        data = response.json()
        assert [card["id"] for card in data["comparison"]] == ["3", "10"]
        assert all(card["removable"] for card in data["comparison"])
        assert httpx.QueryParams(data["query"])["select"] == "3,10"

    async def test_not_ready(self, empty_client: AsyncClient) -> None:
        """Before the first load the gallery returns 503."""
        response = await empty_client.get("/gallery")

        assert response.status_code == 503
        assert response.json()["detail"]["kind"] == "not_ready"


class TestGetFilters:
    async def test_groups(self, client: AsyncClient) -> None:
        response = await client.get("/gallery/filters", params={"hand": "Paws"})

        assert response.status_code == 200
        groups = response.json()["groups"]
        assert [group["category"] for group in groups] == ["body", "face", "hand"]
        hand = groups[2]
        assert {option["value"]: option["selected"] for option in hand["options"]} == {
            "Claws": False,
            "Paws": True,
        }

    async def test_search(self, client: AsyncClient) -> None:
        """search narrows every group and is not part of the view state."""
        response = await client.get("/gallery/filters", params={"search": "re"})

        data = response.json()
        body = data["groups"][0]
        assert [option["value"] for option in body["options"]] == ["Green", "Red"]
        assert data["groups"][2]["message"] == "No matching traits found"
        assert data["query"] == ""


class TestGetItem:
    async def test_item(self, client: AsyncClient) -> None:
        response = await client.get("/items/3", params={"sort": "power"})

        assert response.status_code == 200
        data = response.json()
        assert data["rank"] == 1
        assert data["sort_stat"] == "power"
        assert data["sort_stat_value"] == 8

    async def test_unknown_item(self, client: AsyncClient) -> None:
        response = await client.get("/items/999")
        assert response.status_code == 404

    async def test_item_without_image(self, client: AsyncClient) -> None:
        response = await client.get("/items/5")
        assert response.status_code == 404


class TestCompare:
    async def test_add(self, client: AsyncClient) -> None:
        """Adding returns the new canonical query and tray."""
        response = await client.post(
            "/gallery/compare",
            json={"query": "body=Red&select=10", "item_id": "2"},
        )

        assert response.status_code == 200
        data = response.json()
        assert [card["id"] for card in data["comparison"]] == ["2", "10"]
        params = httpx.QueryParams(data["query"])
        assert params["body"] == "Red"
        assert params["select"] == "2,10"

    async def test_add_unknown(self, client: AsyncClient) -> None:
        response = await client.post("/gallery/compare", json={"item_id": "999"})

        assert response.status_code == 404
        assert response.json()["detail"]["kind"] == "not_found"

    async def test_add_duplicate(self, client: AsyncClient) -> None:
        response = await client.post(
            "/gallery/compare", json={"query": "select=3", "item_id": "3"}
        )

        assert response.status_code == 409
        assert response.json()["detail"]["message"] == "Kamigotchi #3 is already added!"

    async def test_remove(self, client: AsyncClient) -> None:
        response = await client.delete(
            "/gallery/compare", params={"query": "select=3,10", "item_id": "3"}
        )

        assert response.status_code == 200
        data = response.json()
        assert [card["id"] for card in data["comparison"]] == ["10"]
        assert data["query"] == "select=10"


class TestRefresh:
    async def test_refresh(self, client: AsyncClient, static_source) -> None:
        response = await client.post("/refresh")

        assert response.status_code == 200
        assert response.json() == {"refreshed": True, "items": 6}
        assert static_source.fetch_count == 2

    async def test_refresh_failure(self, client: AsyncClient, static_source) -> None:
        """A failed refresh returns 502 and keeps serving the old data."""
        static_source.error = CorpusLoadError("kamiTraits.json not found")

        response = await client.post("/refresh")

        assert response.status_code == 502
        assert response.json()["detail"]["kind"] == "load_failed"

        response = await client.get("/gallery")
        assert response.json()["header"]["total"] == 6
