"""Tests for the async CMS content client."""

import asyncio

import httpx
import pytest

from tosu_offline.api.client import (
    AsyncContentClient,
    ContentConnectionError,
    ContentError,
    ContentNotFoundError,
)
from tosu_offline.api.source import ContentSource

CONTENT_URL = "https://cms.example.com/api/content/app"
ASSETS = "https://cms.example.com/api/assets/app"


def make_client(handler) -> AsyncContentClient:
    return AsyncContentClient(CONTENT_URL, ASSETS, transport=httpx.MockTransport(handler))


def items(*entries) -> dict:
    return {"total": len(entries), "items": list(entries)}


class TestAsyncContentClient:
    """Test client setup."""

    def test_initialization(self):
        client = AsyncContentClient(f"{CONTENT_URL}/", ASSETS, max_concurrent_requests=3)

        assert client.content_url == CONTENT_URL
        assert client.assets_url == f"{ASSETS}/"
        assert client._semaphore._value == 3
        assert isinstance(client._rate_lock, asyncio.Lock)
        assert client._client is None

    def test_satisfies_content_source(self):
        assert isinstance(AsyncContentClient(CONTENT_URL, ASSETS), ContentSource)

    def test_asset_url(self):
        assert AsyncContentClient(CONTENT_URL, ASSETS).asset_url("img1") == f"{ASSETS}/img1"

    @pytest.mark.asyncio
    async def test_context_manager(self):
        async with make_client(lambda r: httpx.Response(200, json={})) as client:
            assert client._client is not None

        assert client._client is None


class TestAudioEndpoints:
    """Test audio fetches."""

    @pytest.mark.asyncio
    async def test_root_category_filter(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json=items(
                    {"id": "c1", "data": {"name": {"iv": "Kinh"}, "isCategory": {"iv": True}}},
                    {"id": "c2", "data": {"name": {"iv": "Pháp"}}},
                ),
            )

        async with make_client(handler) as client:
            collections = await client.fetch_audio_category(None)

        request = seen[0]
        assert request.url.path == "/api/content/app/audio"
        assert request.url.params["$filter"] == "data/category/iv eq null"
        assert "$orderby" not in request.url.params
        assert request.headers["User-Agent"] == "tosuthien-app"
        assert [(c.id, c.name, c.is_category) for c in collections] == [("c1", "Kinh", True), ("c2", "Pháp", None)]

    @pytest.mark.asyncio
    async def test_child_category_filter(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=items())

        async with make_client(handler) as client:
            assert await client.fetch_audio_category("c1") == []

        assert seen[0].url.params["$filter"] == "data/category/iv eq 'c1'"
        assert seen[0].url.params["$orderby"] == "created asc"

    @pytest.mark.asyncio
    async def test_audio_detail(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/content/app/audio/col1"
            return httpx.Response(
                200,
                json={
                    "id": "col1",
                    "data": {
                        "name": {"iv": "Kinh Tụng"},
                        "audios": {"iv": [{"audio": ["t1"], "title": "Track One"}]},
                    },
                },
            )

        async with make_client(handler) as client:
            detail = await client.fetch_audio_detail("col1")

        assert detail.name == "Kinh Tụng"
        assert detail.audios[0].track_id == "t1"
        assert detail.audios[0].path is None


class TestCatalogEndpoints:
    """Test book, center and video fetches."""

    @pytest.mark.asyncio
    async def test_books_flattened(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json=items(
                    {
                        "id": "b1",
                        "data": {
                            "title": {"iv": "Book One"},
                            "book": {"iv": ["ch1", "ch2"]},
                            "pageTotal": {"iv": 120},
                        },
                    },
                    {"id": "b2", "data": {"title": {"iv": "No chapters"}}},
                ),
            )

        async with make_client(handler) as client:
            books = await client.fetch_books()

        assert books[0].first_chapter_id == "ch1"
        assert books[0].page_total == 120
        assert books[0].is_download is False
        assert books[0].path is None
        assert books[0].page_current == 1
        assert books[1].first_chapter_id is None

    @pytest.mark.asyncio
    async def test_centers(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json=items(
                    {
                        "id": "ct1",
                        "created": "2023-01-01T00:00:00Z",
                        "lastModified": "2024-02-02T00:00:00Z",
                        "data": {
                            "name": {"iv": "Thiền viện"},
                            "address": {"iv": "Đà Lạt"},
                            "location": {"iv": {"latitude": 11.9, "longitude": 108.4}},
                            "image": {"iv": ["img1"]},
                        },
                    }
                ),
            )

        async with make_client(handler) as client:
            centers = await client.fetch_centers()

        center = centers[0]
        assert center.image == f"{ASSETS}/img1"
        assert (center.latitude, center.longitude) == (11.9, 108.4)
        assert center.created_at == "2023-01-01T00:00:00Z"
        assert center.updated_at == "2024-02-02T00:00:00Z"
        assert center.phone == ""

    @pytest.mark.asyncio
    async def test_videos(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/video"):
                return httpx.Response(200, json=items({"id": "v1", "data": {"name": {"iv": "Pháp thoại"}}}))
            return httpx.Response(
                200,
                json={"id": "v1", "data": {"videos": {"iv": [{"videoId": "yt1", "title": "Bài 1"}]}}},
            )

        async with make_client(handler) as client:
            categories = await client.fetch_video_categories()
            detail = await client.fetch_video_detail("v1")

        assert categories[0].name == "Pháp thoại"
        assert detail.videos[0].video_id == "yt1"


class TestErrorMapping:
    """Test HTTP and payload failures."""

    @pytest.mark.asyncio
    async def test_not_found(self):
        async with make_client(lambda r: httpx.Response(404)) as client:
            with pytest.raises(ContentNotFoundError) as exc_info:
                await client.fetch_audio_detail("missing")

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_server_error(self):
        async with make_client(lambda r: httpx.Response(500)) as client:
            with pytest.raises(ContentError) as exc_info:
                await client.fetch_books()

        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with make_client(handler) as client:
            with pytest.raises(ContentConnectionError):
                await client.fetch_centers()

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        async with make_client(handler) as client:
            with pytest.raises(ContentConnectionError):
                await client.fetch_video_categories()

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        async with make_client(lambda r: httpx.Response(200, content=b"<html>")) as client:
            with pytest.raises(ContentError):
                await client.fetch_books()

    @pytest.mark.asyncio
    async def test_unexpected_payload(self):
        async with make_client(lambda r: httpx.Response(200, json={"items": [{"data": {}}]})) as client:
            with pytest.raises(ContentError):
                await client.fetch_books()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "method,args",
        [
            ("fetch_audio_category", (None,)),
            ("fetch_audio_detail", ("col1",)),
            ("fetch_books", ()),
            ("fetch_centers", ()),
            ("fetch_video_categories", ()),
            ("fetch_video_detail", ("v1",)),
        ],
    )
    @pytest.mark.parametrize("body", [[{"id": "x"}], "text", {"items": "oops"}])
    async def test_non_object_body(self, method, args, body):
        """Test every endpoint maps a body of the wrong JSON type to ContentError."""
        async with make_client(lambda r: httpx.Response(200, json=body)) as client:
            with pytest.raises(ContentError):
                await getattr(client, method)(*args)

    @pytest.mark.asyncio
    async def test_detail_fields_not_an_object(self):
        body = {"id": "col1", "data": ["not", "a", "dict"]}
        async with make_client(lambda r: httpx.Response(200, json=body)) as client:
            with pytest.raises(ContentError):
                await client.fetch_audio_detail("col1")

    @pytest.mark.asyncio
    async def test_empty_body(self):
        async with make_client(lambda r: httpx.Response(200)) as client:
            assert await client.fetch_audio_category(None) == []
