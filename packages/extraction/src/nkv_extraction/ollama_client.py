"""Ollama client for local LLM inference.

Provides structured JSON output using Ollama's native JSON mode for fact
distillation, and plain generation for profile refinement.
"""

from typing import Any, Optional

import httpx
from nkv_common import get_logger, retry_on_exception

from nkv_extraction.base_client import LLMClient, LLMError
from nkv_extraction.models import FactExtraction, parse_json_object
from nkv_extraction.prompts import (
    FACT_SYSTEM_PROMPT,
    PROFILE_SYSTEM_PROMPT,
    format_fact_prompt,
    format_refinement_prompt,
)

logger = get_logger(__name__)


class OllamaError(LLMError):
    """Error from Ollama API."""

    pass


class OllamaClient(LLMClient):
    """Client for an Ollama server.

    Example:
        >>> async with OllamaClient(model="llama3.1:8b") as client:
        ...     facts = await client.extract_facts("ITER is a tokamak in France...")
    """

    def __init__(
        self,
        model: str = "llama3.1:8b",
        base_url: str = "http://localhost:11434",
        timeout: float = 120.0,
        temperature: float = 0.2,
        num_ctx: int = 8192,
    ):
        """Initialize Ollama client.

        Args:
            model: Ollama model name (default: llama3.1:8b)
            base_url: Ollama server URL
            timeout: Request timeout in seconds
            temperature: Sampling temperature (lower = more deterministic)
            num_ctx: Context window size in tokens
        """
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.temperature = temperature
        self.num_ctx = num_ctx
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

    async def is_available(self) -> bool:
        """Check if Ollama server is available."""
        try:
            client = await self._get_client()
            response = await client.get("/api/tags")
            return response.status_code == 200
        except httpx.HTTPError:
            return False

    @property
    def extraction_method(self) -> str:
        return f"ollama:{self.model}"

    @retry_on_exception((httpx.TimeoutException, httpx.NetworkError), max_attempts=3)
    async def _post_generate(self, payload: dict[str, Any]) -> httpx.Response:
        client = await self._get_client()
        return await client.post("/api/generate", json=payload)

    async def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        json_mode: bool = True,
        temperature: Optional[float] = None,
    ) -> str:
        """Generate text completion from Ollama.

        Args:
            prompt: User prompt
            system: System prompt (optional)
            json_mode: If True, request JSON output format
            temperature: Override the client's sampling temperature

        Returns:
            Generated text response

        Raises:
            OllamaError: If generation fails
        """
        payload: dict[str, Any] = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": self.temperature if temperature is None else temperature,
                "num_ctx": self.num_ctx,
            },
        }

        if system:
            payload["system"] = system

        if json_mode:
            payload["format"] = "json"

        try:
            response = await self._post_generate(payload)
            response.raise_for_status()

            data = response.json()
            return data.get("response", "")

        except httpx.HTTPStatusError as e:
            logger.error("ollama_http_error", status=e.response.status_code)
            raise OllamaError(f"Ollama HTTP error: {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.error("ollama_request_error", error=str(e))
            raise OllamaError(f"Ollama request failed: {e}") from e

    async def extract_facts(self, text: str) -> list[str]:
        """Distill text into atomic facts.

        Returns:
            Fact strings; empty when the model produced nothing parseable

        Raises:
            OllamaError: If the request fails
        """
        logger.debug("extracting_facts", text_length=len(text), model=self.model)

        response = await self.generate(
            prompt=format_fact_prompt(text),
            system=FACT_SYSTEM_PROMPT,
            json_mode=True,
        )

        try:
            extraction = FactExtraction.model_validate(parse_json_object(response))
        except ValueError as e:
            logger.error("fact_parse_error", response=response[:200], error=str(e))
            return []

        logger.info("facts_extracted", facts=extraction.fact_count, model=self.model)
        return extraction.facts

    async def refine_profile(self, text: str) -> str:
        """Rewrite interests as a dense technical paragraph.

        Falls back to the stripped input when the model returns nothing.

        Raises:
            OllamaError: If the request fails
        """
        response = await self.generate(
            prompt=format_refinement_prompt(text),
            system=PROFILE_SYSTEM_PROMPT,
            json_mode=False,
            temperature=0.3,
        )
        refined = response.strip()
        if not refined:
            logger.warning("profile_refinement_empty", model=self.model)
            return text.strip()
        return refined
