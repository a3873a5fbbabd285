"""Anthropic Claude client for fact distillation and profile refinement.

Supports multiple Claude models with different speed/quality tradeoffs
through a short alias table.
"""

import asyncio
import os
from typing import Optional

import anthropic
from nkv_common import get_logger

from nkv_extraction.base_client import LLMClient, LLMError
from nkv_extraction.models import FactExtraction, parse_json_object
from nkv_extraction.prompts import (
    FACT_SYSTEM_PROMPT,
    PROFILE_SYSTEM_PROMPT,
    format_fact_prompt,
    format_refinement_prompt,
)

logger = get_logger(__name__)


class AnthropicError(LLMError):
    """Error from Anthropic API."""

    pass


class AnthropicClient(LLMClient):
    """Anthropic Claude API client.

    Example:
        >>> client = AnthropicClient(model="haiku")
        >>> facts = await client.extract_facts("ITER is a tokamak in France...")
    """

    # Model name -> API model ID mapping
    MODELS = {
        "haiku": "claude-3-5-haiku-20241022",
        "sonnet": "claude-sonnet-4-20250514",
        "opus": "claude-opus-4-5-20251101",
    }

    def __init__(
        self,
        model: str = "haiku",
        api_key: Optional[str] = None,
        temperature: float = 0.2,
        max_tokens: int = 4096,
    ):
        """Initialize Anthropic client.

        Args:
            model: Model alias (haiku, sonnet, opus) or full model ID
            api_key: Anthropic API key (default: from ANTHROPIC_API_KEY env)
            temperature: Sampling temperature (lower = more deterministic)
            max_tokens: Maximum tokens in response
        """
        self.model_name = model
        self.model_id = self.MODELS.get(model, model)
        self.temperature = temperature
        self.max_tokens = max_tokens

        raw_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        self._api_key = raw_key.strip() if raw_key else None
        if not self._api_key:
            raise ValueError(
                "ANTHROPIC_API_KEY environment variable not set and no api_key provided"
            )

        self._client = anthropic.Anthropic(api_key=self._api_key)
        logger.info(
            "anthropic_client_initialized",
            model=self.model_name,
            model_id=self.model_id,
        )

    def _call_api(self, system: str, prompt: str, temperature: float) -> str:
        """Synchronous API call (run in executor for async).

        Raises:
            AnthropicError: If API call fails
        """
        try:
            message = self._client.messages.create(
                model=self.model_id,
                max_tokens=self.max_tokens,
                temperature=temperature,
                system=system,
                messages=[{"role": "user", "content": prompt}],
            )
            return message.content[0].text
        except anthropic.APIError as e:
            logger.error("anthropic_api_error", error=str(e), model=self.model_id)
            raise AnthropicError(f"Anthropic API error: {e}") from e

    async def _complete(self, system: str, prompt: str, temperature: float) -> str:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, self._call_api, system, prompt, temperature
        )

    async def extract_facts(self, text: str) -> list[str]:
        """Distill text into atomic facts using Claude.

        Raises:
            AnthropicError: If the API call fails
        """
        logger.debug("extracting_facts", text_length=len(text), model=self.model_name)

        response = await self._complete(
            FACT_SYSTEM_PROMPT, format_fact_prompt(text), self.temperature
        )

        try:
            extraction = FactExtraction.model_validate(parse_json_object(response))
        except ValueError as e:
            logger.error(
                "fact_parse_error",
                response=response[:500],
                error=str(e),
                model=self.model_name,
            )
            return []

        logger.info("facts_extracted", facts=extraction.fact_count, model=self.model_name)
        return extraction.facts

    async def refine_profile(self, text: str) -> str:
        """Rewrite interests as a dense technical paragraph.

        Raises:
            AnthropicError: If the API call fails
        """
        response = await self._complete(
            PROFILE_SYSTEM_PROMPT, format_refinement_prompt(text), 0.3
        )
        refined = response.strip()
        return refined or text.strip()

    async def is_available(self) -> bool:
        """Check the API key works with a cheap token-count call."""
        try:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(
                None,
                lambda: self._client.messages.count_tokens(
                    model=self.model_id,
                    messages=[{"role": "user", "content": "test"}],
                ),
            )
            return True
        except anthropic.APIError as e:
            logger.warning("anthropic_availability_check_failed", error=str(e))
            return False

    async def close(self) -> None:
        """No cleanup needed for API client."""
        pass

    @property
    def extraction_method(self) -> str:
        return f"anthropic:{self.model_name}"
