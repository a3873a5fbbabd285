"""Async arXiv export API client.

Combines:
- Rate limiting (arXiv asks for one request every three seconds)
- Retry on transient network errors
- Atom feed parsing into ArxivEntry models

Base URL: https://export.arxiv.org
Docs: https://info.arxiv.org/help/api/user-manual.html
"""

from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Callable, Optional

import httpx
from lxml import etree
from nkv_common import get_logger, retry_on_exception

from arxiv_client.categories import HarvestCategory
from arxiv_client.errors import ArxivAPIError, ArxivParseError, ArxivRateLimitError
from arxiv_client.models import ArxivEntry
from arxiv_client.rate_limiter import RateLimiter

logger = get_logger(__name__)

ARXIV_BASE_URL = "https://export.arxiv.org"
QUERY_ENDPOINT = "/api/query"

NAMESPACES = {
    "atom": "http://www.w3.org/2005/Atom",
    "arxiv": "http://arxiv.org/schemas/atom",
}

SORT_OPTIONS = ("relevance", "lastUpdatedDate", "submittedDate")

# No DTDs, no external entities, no network lookups while parsing feeds
_PARSER = etree.XMLParser(resolve_entities=False, no_network=True, recover=False)


def _text(element: Optional[Any]) -> str:
    if element is None or element.text is None:
        return ""
    return element.text.strip()


def _parse_datetime(value: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Seconds to wait from a Retry-After header (delta-seconds or HTTP-date)."""
    if not value:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(0.0, (when - datetime.now(timezone.utc)).total_seconds())


def _arxiv_id(entry_url: str) -> str:
    # http://arxiv.org/abs/2401.01234v2 -> 2401.01234v2
    return entry_url.rstrip("/").rsplit("/abs/", 1)[-1]


def parse_feed(xml_text: str) -> list[ArxivEntry]:
    """Parse an arXiv Atom feed.

    Args:
        xml_text: Response body from /api/query

    Returns:
        Entries in feed order

    Raises:
        ArxivParseError: Body is not well-formed XML
        ArxivAPIError: Feed carries an arXiv error entry (bad query syntax etc.)
    """
    try:
        root = etree.fromstring(xml_text.encode("utf-8"), parser=_PARSER)
    except etree.XMLSyntaxError as e:
        raise ArxivParseError(f"Malformed arXiv feed: {e}") from e

    entries: list[ArxivEntry] = []
    for node in root.findall("atom:entry", NAMESPACES):
        entry_url = _text(node.find("atom:id", NAMESPACES))

        # arXiv reports query errors as a single entry whose id points at /api/errors
        if "/api/errors" in entry_url:
            raise ArxivAPIError(0, _text(node.find("atom:summary", NAMESPACES)), QUERY_ENDPOINT)

        title = _text(node.find("atom:title", NAMESPACES))
        if not entry_url or not title:
            logger.warning("arxiv_entry_skipped", reason="missing id or title")
            continue

        pdf_url = None
        abs_url = entry_url
        for link in node.findall("atom:link", NAMESPACES):
            if link.get("title") == "pdf":
                pdf_url = link.get("href")
            elif link.get("rel") == "alternate" and link.get("href"):
                abs_url = link.get("href")

        primary = node.find("arxiv:primary_category", NAMESPACES)

        entries.append(
            ArxivEntry(
                arxiv_id=_arxiv_id(entry_url),
                title=title,
                summary=_text(node.find("atom:summary", NAMESPACES)),
                url=abs_url,
                authors=[
                    _text(author.find("atom:name", NAMESPACES))
                    for author in node.findall("atom:author", NAMESPACES)
                ],
                categories=[
                    c.get("term") for c in node.findall("atom:category", NAMESPACES) if c.get("term")
                ],
                primary_category=primary.get("term") if primary is not None else None,
                published=_parse_datetime(_text(node.find("atom:published", NAMESPACES))),
                updated=_parse_datetime(_text(node.find("atom:updated", NAMESPACES))),
                pdf_url=pdf_url,
            )
        )

    return entries


class ArxivClient:
    """Async arXiv export API client.

    Example:
        >>> async with ArxivClient() as client:
        ...     papers = await client.search_category(HarvestCategory.QUANTUM_PHYSICS)
        ...     for paper in papers:
        ...         print(paper.title)

    Attributes:
        base_url: API base URL (default: https://export.arxiv.org)
        requests_per_second: Rate limit (default: 1/3)
    """

    def __init__(
        self,
        base_url: str = ARXIV_BASE_URL,
        requests_per_second: float = 1 / 3,
        timeout_seconds: float = 30.0,
        rate_limiter: Optional[RateLimiter] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._rate_limiter = rate_limiter or RateLimiter(requests_per_second=requests_per_second)
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "ArxivClient":
        if self._client is not None:
            raise ArxivAPIError(0, "Client already open; create one client per session", "")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"User-Agent": "nkv-harvester/1.0.0"},
            timeout=httpx.Timeout(self.timeout_seconds),
        )
        logger.info("arxiv_client_initialized", base_url=self.base_url)
        return self

    async def __aexit__(self, *args) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def search_category(
        self,
        category: HarvestCategory | str,
        max_results: int = 15,
        sort_by: str = "relevance",
    ) -> list[ArxivEntry]:
        """Fetch the top papers in one arXiv category.

        Args:
            category: Harvest category or raw arXiv subject class (e.g. "cs.AI")
            max_results: Number of entries to request
            sort_by: relevance, lastUpdatedDate or submittedDate

        Returns:
            Parsed entries (may be fewer than max_results)
        """
        if sort_by not in SORT_OPTIONS:
            raise ValueError(f"sort_by must be one of {SORT_OPTIONS}, got {sort_by!r}")

        if isinstance(category, HarvestCategory):
            query = category.search_query
        else:
            query = f"cat:{category}"

        params: dict[str, Any] = {
            "search_query": query,
            "start": 0,
            "max_results": max_results,
            "sortBy": sort_by,
            "sortOrder": "descending",
        }

        body = await self._request(QUERY_ENDPOINT, params=params)
        entries = parse_feed(body)
        logger.info("arxiv_category_fetched", query=query, count=len(entries))
        return entries

    @retry_on_exception(
        (httpx.TimeoutException, httpx.NetworkError),
        max_attempts=3,
        min_wait_seconds=1.0,
        max_wait_seconds=10.0,
    )
    async def _request(self, endpoint: str, params: dict[str, Any] | None = None) -> str:
        """Make a rate-limited GET request and return the body.

        Raises:
            ArxivRateLimitError: On 429/503 throttling
            ArxivAPIError: On any other HTTP error
        """
        client = self._client
        if client is None:
            raise ArxivAPIError(0, "Client not initialized. Use async context manager.", endpoint)

        await self._rate_limiter.acquire()

        logger.debug("arxiv_request", endpoint=endpoint)
        response = await client.get(endpoint, params=params)

        if response.status_code in (429, 503):
            raise ArxivRateLimitError(
                retry_after=parse_retry_after(response.headers.get("Retry-After")),
                endpoint=endpoint,
            )

        if response.status_code >= 400:
            raise ArxivAPIError(response.status_code, response.text[:500], endpoint)

        return response.text


def client_factory(
    base_url: str = ARXIV_BASE_URL,
    requests_per_second: float = 1 / 3,
    timeout_seconds: float = 30.0,
) -> Callable[[], ArxivClient]:
    """Build fresh ArxivClients that share one rate limiter.

    Each sweep enters its own client, so concurrent sweeps never close a
    connection another sweep is using, while the shared bucket keeps the
    process within arXiv's request rate.

    Example:
        >>> make_client = client_factory(base_url=settings.arxiv_base_url)
        >>> async with make_client() as client:
        ...     papers = await client.search_category(HarvestCategory.MACHINE_LEARNING)
    """
    limiter = RateLimiter(requests_per_second=requests_per_second)

    def make() -> ArxivClient:
        return ArxivClient(
            base_url=base_url,
            timeout_seconds=timeout_seconds,
            rate_limiter=limiter,
        )

    return make
