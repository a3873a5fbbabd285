"""Tests for the Tavily web search client."""

import json

import httpx
import pytest
import respx
from httpx import Response

from nkv_common import WebSearchError
from nkv_research import TavilyClient

SEARCH_URL = "https://api.tavily.com/search"


@pytest.fixture
async def client():
    client = TavilyClient(api_key="tvly-test", timeout=15.0)
    yield client
    await client.close()


class TestTavilyClient:
    @respx.mock
    async def test_parses_results(self, client):
        route = respx.post(SEARCH_URL).mock(
            return_value=Response(
                200,
                json={
                    "query": "fusion",
                    "results": [
                        {"title": "ITER", "url": "https://iter.org", "content": " Tokamak. ", "score": 0.93},
                        {"title": "No body", "url": "https://x.org", "content": ""},
                        {"title": None, "url": "https://y.org", "content": "Stellarators twist plasma."},
                    ],
                },
            )
        )

        results = await client.search("fusion", max_results=5)

        assert [r.url for r in results] == ["https://iter.org", "https://y.org"]
        assert results[0].content == "Tokamak."
        assert results[0].score == 0.93
        assert results[1].title == "https://y.org"

        body = json.loads(route.calls.last.request.content)
        assert body["query"] == "fusion"
        assert body["max_results"] == 5
        assert body["api_key"] == "tvly-test"

    @respx.mock
    async def test_truncates_to_max_results(self, client):
        respx.post(SEARCH_URL).mock(
            return_value=Response(
                200,
                json={"results": [{"url": f"https://e.org/{n}", "content": "c"} for n in range(8)]},
            )
        )

        assert len(await client.search("q", max_results=3)) == 3

    @respx.mock
    async def test_timeout_raises_web_search_error(self, client):
        respx.post(SEARCH_URL).mock(side_effect=httpx.ReadTimeout("slow"))

        with pytest.raises(WebSearchError, match="timed out"):
            await client.search("fusion")

    @respx.mock
    async def test_http_error(self, client):
        respx.post(SEARCH_URL).mock(return_value=Response(401, json={"detail": "bad key"}))

        with pytest.raises(WebSearchError, match="401"):
            await client.search("fusion")

    @respx.mock
    async def test_connection_error(self, client):
        respx.post(SEARCH_URL).mock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(WebSearchError):
            await client.search("fusion")

    @respx.mock
    async def test_malformed_body(self, client):
        respx.post(SEARCH_URL).mock(return_value=Response(200, json={"answer": "?"}))

        with pytest.raises(WebSearchError, match="results"):
            await client.search("fusion")

    @respx.mock
    async def test_unreadable_score_skips_entry(self, client):
        respx.post(SEARCH_URL).mock(
            return_value=Response(
                200,
                json={
                    "results": [
                        {"title": "t", "url": "https://x.org", "content": "c", "score": "n/a"},
                        {"title": "ok", "url": "https://y.org", "content": "kept", "score": 0.4},
                    ]
                },
            )
        )

        results = await client.search("fusion")

        assert [r.url for r in results] == ["https://y.org"]

    @respx.mock
    async def test_non_string_fields_skip_entry(self, client):
        respx.post(SEARCH_URL).mock(
            return_value=Response(
                200,
                json={
                    "results": [
                        {"title": "t", "url": "https://x.org", "content": {"text": "c"}},
                        {"title": ["t"], "url": 42, "content": "c"},
                        "not an object",
                        {"title": 7, "url": "https://z.org", "content": "kept"},
                    ]
                },
            )
        )

        results = await client.search("fusion")

        assert [(r.title, r.url) for r in results] == [("https://z.org", "https://z.org")]

    def test_requires_api_key(self):
        with pytest.raises(ValueError):
            TavilyClient(api_key="")

    def test_timeout_is_bounded(self, client):
        assert client.timeout == 15.0
