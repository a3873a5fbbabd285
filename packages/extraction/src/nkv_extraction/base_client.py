"""Abstract base class for LLM clients.

Provides a common interface for the LLM backends (Ollama, Anthropic)
behind the two text capabilities the pipeline consumes:
- extract_facts(text) -> list of atomic fact strings
- refine_profile(text) -> denser technical summary
"""

from abc import ABC, abstractmethod

from nkv_common import NKVError


class LLMError(NKVError):
    """Error from an LLM backend (transport or API)."""

    pass


class LLMClient(ABC):
    """Abstract base for LLM clients.

    Capability failures raise LLMError subclasses. A response that cannot
    be parsed yields an empty fact list rather than an exception; callers
    decide whether that is fatal.
    """

    @abstractmethod
    async def extract_facts(self, text: str) -> list[str]:
        """Distill text into atomic facts (may be empty)."""
        pass

    @abstractmethod
    async def refine_profile(self, text: str) -> str:
        """Rewrite free-text interests as a dense technical paragraph."""
        pass

    @abstractmethod
    async def is_available(self) -> bool:
        """Check if the backend is available and ready."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Clean up resources (HTTP clients etc.)."""
        pass

    @property
    @abstractmethod
    def extraction_method(self) -> str:
        """Identifier recorded in source metadata, e.g. "ollama:llama3.1:8b"."""
        pass

    async def __aenter__(self) -> "LLMClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
