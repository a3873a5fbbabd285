"""arXiv client for the Pulse harvester.

Provides:
- ArxivClient: async export API client with rate limiting and retries
- client_factory: per-session clients sharing one rate limiter
- parse_feed: Atom feed to ArxivEntry models
- HarvestCategory / pick_category: the sweep taxonomy
"""

from arxiv_client.categories import HarvestCategory, pick_category
from arxiv_client.client import ArxivClient, client_factory, parse_feed, parse_retry_after
from arxiv_client.errors import (
    ArxivAPIError,
    ArxivError,
    ArxivParseError,
    ArxivRateLimitError,
)
from arxiv_client.models import ArxivEntry
from arxiv_client.rate_limiter import RateLimiter

__version__ = "1.0.0"

__all__ = [
    "ArxivClient",
    "client_factory",
    "parse_feed",
    "parse_retry_after",
    "ArxivEntry",
    "HarvestCategory",
    "pick_category",
    "RateLimiter",
    "ArxivError",
    "ArxivAPIError",
    "ArxivRateLimitError",
    "ArxivParseError",
]
