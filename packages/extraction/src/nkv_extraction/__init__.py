"""NKV Extraction - LLM capabilities for the pipeline.

This package provides:
- LLMClient: Abstract base for LLM backends
- OllamaClient: Local LLM wrapper (JSON mode)
- AnthropicClient: Claude API backend
- FactExtraction: Parsed distillation output
- get_llm_client: Factory function for backend selection
"""

from typing import Optional

from nkv_extraction.base_client import LLMClient, LLMError
from nkv_extraction.models import FactExtraction, parse_json_object
from nkv_extraction.ollama_client import OllamaClient, OllamaError


def get_llm_client(
    backend: Optional[str] = None,
    model: Optional[str] = None,
    **kwargs,
) -> LLMClient:
    """Factory function to create LLM client.

    Args:
        backend: "ollama" or "anthropic" (default: LLM_BACKEND setting)
        model: Model name (default: LLM_MODEL setting for ollama, haiku for anthropic)
        **kwargs: Additional arguments passed to client constructor

    Returns:
        LLMClient instance for the specified backend

    Raises:
        ValueError: If backend is unknown
    """
    from nkv_common import get_settings

    settings = get_settings()
    backend = backend or settings.llm_backend

    if backend == "anthropic":
        from nkv_extraction.anthropic_client import AnthropicClient

        kwargs.setdefault("api_key", settings.anthropic_api_key)
        return AnthropicClient(model=model or "haiku", **kwargs)
    elif backend == "ollama":
        kwargs.setdefault("base_url", settings.ollama_url)
        return OllamaClient(model=model or settings.llm_model, **kwargs)
    else:
        raise ValueError(
            f"Unknown backend: {backend}. Supported: 'ollama', 'anthropic'"
        )


__all__ = [
    "FactExtraction",
    "parse_json_object",
    "LLMClient",
    "LLMError",
    "OllamaClient",
    "OllamaError",
    "get_llm_client",
]
