"""External web search client (Tavily).

The only paid capability in the research path. Calls are bounded by a
single timeout and are not retried: a slow provider must not stall the
sufficiency-gate fallback. Every failure surfaces as WebSearchError.

API: https://docs.tavily.com/documentation/api-reference/endpoint/search
"""

from typing import Any, Optional

import httpx
from pydantic import ValidationError
from nkv_common import WebSearchError, get_logger
from nkv_contracts import WebSearchResult

logger = get_logger(__name__)

TAVILY_BASE_URL = "https://api.tavily.com"


def _to_result(raw: Any) -> Optional[WebSearchResult]:
    """One provider result as a WebSearchResult, or None when unusable."""
    if not isinstance(raw, dict):
        return None
    url, content, title = raw.get("url"), raw.get("content"), raw.get("title")
    if not isinstance(url, str) or not url.strip():
        return None
    if not isinstance(content, str) or not content.strip():
        return None
    if not isinstance(title, str) or not title.strip():
        title = url
    try:
        return WebSearchResult(
            title=title.strip(),
            content=content.strip(),
            url=url.strip(),
            score=max(0.0, float(raw.get("score") or 0.0)),
        )
    except (TypeError, ValueError, ValidationError) as e:
        logger.warning("web_search_result_skipped", url=url, error=str(e))
        return None


class TavilyClient:
    """Async Tavily search client.

    Example:
        >>> async with TavilyClient(api_key="tvly-...") as client:
        ...     results = await client.search("tokamak confinement", max_results=5)
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = TAVILY_BASE_URL,
        timeout: float = 15.0,
        search_depth: str = "basic",
    ):
        """Initialize client.

        Args:
            api_key: Tavily API key
            base_url: API base URL
            timeout: Upper bound in seconds for one search call
            search_depth: basic or advanced
        """
        if not api_key:
            raise ValueError("Tavily API key is required")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.search_depth = search_depth
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "TavilyClient":
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    async def search(self, query: str, max_results: int = 5) -> list[WebSearchResult]:
        """Search the web.

        Returns:
            Up to max_results results; entries without url or content, or with
            an unreadable score, are dropped

        Raises:
            WebSearchError: Timeout, transport failure, HTTP error or malformed body
        """
        payload: dict[str, Any] = {
            "api_key": self.api_key,
            "query": query,
            "search_depth": self.search_depth,
            "max_results": max_results,
            "include_answer": False,
        }

        try:
            client = await self._get_client()
            response = await client.post("/search", json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            logger.warning("web_search_timeout", timeout=self.timeout)
            raise WebSearchError(f"Web search timed out after {self.timeout}s") from e
        except httpx.HTTPStatusError as e:
            logger.warning("web_search_http_error", status=e.response.status_code)
            raise WebSearchError(f"Web search HTTP error: {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.warning("web_search_request_error", error=str(e))
            raise WebSearchError(f"Web search request failed: {e}") from e
        except ValueError as e:
            raise WebSearchError(f"Web search response is not JSON: {e}") from e

        raw_results = data.get("results") if isinstance(data, dict) else None
        if not isinstance(raw_results, list):
            raise WebSearchError("Web search response missing 'results'")

        results = [r for r in (_to_result(raw) for raw in raw_results) if r is not None]

        logger.info("web_search_complete", result_count=len(results))
        return results[:max_results]


def get_web_search() -> Optional[TavilyClient]:
    """TavilyClient from settings, or None when no API key is configured."""
    from nkv_common import get_settings

    settings = get_settings()
    if not settings.tavily_api_key:
        return None
    return TavilyClient(
        api_key=settings.tavily_api_key,
        timeout=settings.web_search_timeout_seconds,
    )
