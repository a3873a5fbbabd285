"""arXiv client error types.

All errors inherit from ArxivError for easy catching.
"""

from nkv_common import NKVError


class ArxivError(NKVError):
    """Base exception for all arXiv client errors."""

    pass


class ArxivAPIError(ArxivError):
    """Error response from the arXiv export API.

    Attributes:
        status_code: HTTP status code (0 when the feed itself reports the error)
        message: Error message from the API or generated
        endpoint: The API endpoint that was called
    """

    def __init__(self, status_code: int, message: str, endpoint: str = ""):
        self.status_code = status_code
        self.message = message
        self.endpoint = endpoint
        super().__init__(f"arXiv API Error {status_code} at {endpoint}: {message}")


class ArxivRateLimitError(ArxivAPIError):
    """Rate limit exceeded (HTTP 429 or 503 with Retry-After)."""

    def __init__(self, retry_after: float | None = None, endpoint: str = ""):
        self.retry_after = retry_after
        message = "Rate limit exceeded"
        if retry_after:
            message += f" (retry after {retry_after}s)"
        super().__init__(429, message, endpoint)


class ArxivParseError(ArxivError):
    """Response body is not a readable Atom feed."""

    pass
