"""Embedding client for the knowledge vault.

Turns text into a fixed-dimension vector through an Ollama-compatible
/api/embed endpoint. Every component embeds through this client so the
vault, staging and DNA vectors share one space.
"""

from typing import Optional

import httpx
from nkv_common import EmbeddingError, get_logger, retry_on_exception
from nkv_contracts import EMBEDDING_DIM

logger = get_logger(__name__)


class EmbeddingClient:
    """Async client for an embedding endpoint.

    Example:
        >>> async with EmbeddingClient() as client:
        ...     vector = await client.embed("Tokamak plasma confinement")
        >>> len(vector)
        768
    """

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "nomic-embed-text",
        dimension: int = EMBEDDING_DIM,
        timeout: float = 30.0,
    ):
        """Initialize embedding client.

        Args:
            base_url: Embedding server URL
            model: Embedding model name
            dimension: Expected vector length (checked on every response)
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.dimension = dimension
        self.timeout = timeout
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "EmbeddingClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @retry_on_exception((httpx.TimeoutException, httpx.NetworkError), max_attempts=3)
    async def _post_embed(self, texts: list[str]) -> httpx.Response:
        client = await self._get_client()
        return await client.post("/api/embed", json={"model": self.model, "input": texts})

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed several texts in one request.

        Returns:
            One vector per input text, in input order

        Raises:
            EmbeddingError: On transport failure, HTTP error or malformed response
        """
        if not texts:
            return []

        try:
            response = await self._post_embed(texts)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error("embedding_http_error", status=e.response.status_code)
            raise EmbeddingError(f"Embedding HTTP error: {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.error("embedding_request_error", error=str(e))
            raise EmbeddingError(f"Embedding request failed: {e}") from e
        except ValueError as e:
            raise EmbeddingError(f"Embedding response is not JSON: {e}") from e

        embeddings = data.get("embeddings") if isinstance(data, dict) else None
        if not isinstance(embeddings, list) or len(embeddings) != len(texts):
            raise EmbeddingError("Embedding response missing 'embeddings' for every input")

        vectors = []
        for vector in embeddings:
            if not isinstance(vector, list) or len(vector) != self.dimension:
                got = len(vector) if isinstance(vector, list) else type(vector).__name__
                raise EmbeddingError(
                    f"Embedding must be {self.dimension} dimensions, got {got}"
                )
            vectors.append([float(x) for x in vector])

        return vectors

    async def embed(self, text: str) -> list[float]:
        """Embed a single text.

        Raises:
            EmbeddingError: If embedding fails
        """
        if not text or not text.strip():
            raise EmbeddingError("Cannot embed empty text")
        [vector] = await self.embed_batch([text])
        return vector

    async def is_available(self) -> bool:
        """Check the embedding server responds."""
        try:
            client = await self._get_client()
            response = await client.get("/api/tags")
            return response.status_code == 200
        except httpx.HTTPError:
            return False


def get_embedding_client() -> EmbeddingClient:
    """Build an EmbeddingClient from settings."""
    from nkv_common import get_settings

    settings = get_settings()
    return EmbeddingClient(
        base_url=settings.embedding_url,
        model=settings.embedding_model,
        dimension=settings.embedding_dim,
    )
