"""DNA Synthesizer - turns a free-text interest statement into a vector.

The profile text is refined by the LLM into a denser technical summary
before embedding; the stored row is overwritten wholesale each time.
"""

from typing import Optional

from nkv_common import bind_correlation_id, get_logger, instrument_function
from nkv_contracts import DNAUpdateResult
from nkv_storage import DNAStore

logger = get_logger(__name__)


class DNASynthesizer:
    """Refines, embeds and stores a user's interest DNA."""

    def __init__(self, llm, embedder, dna_store=DNAStore):
        self.llm = llm
        self.embedder = embedder
        self.dna_store = dna_store

    @instrument_function("update_dna")
    async def update_dna(
        self,
        user_id: str,
        profile_text: str,
        expertise_level: int = 5,
        negative_interests: Optional[list[str]] = None,
        correlation_id: Optional[str] = None,
    ) -> DNAUpdateResult:
        """Resynchronize a user's DNA from their profile text.

        Raises:
            ValueError: Empty profile text or expertise outside 1-10
            EmbeddingError: The refined text could not be embedded
            PersistenceError: The upsert failed
        """
        bind_correlation_id(correlation_id)

        if not profile_text or not profile_text.strip():
            raise ValueError("profile_text must not be empty")
        if not 1 <= expertise_level <= 10:
            raise ValueError(f"expertise_level must be 1-10, got {expertise_level}")

        refined = (await self.llm.refine_profile(profile_text)).strip() or profile_text.strip()
        vector = await self.embedder.embed(refined)

        cleaned_negatives = [t.strip() for t in negative_interests or [] if t.strip()]

        await self.dna_store.upsert(
            user_id=user_id,
            dna_vector=vector,
            professional_profile=profile_text,
            negative_interests=cleaned_negatives,
            expertise_level=expertise_level,
        )

        logger.info(
            "dna_updated",
            user_id=user_id,
            negative_interests=len(cleaned_negatives),
            expertise_level=expertise_level,
        )
        return DNAUpdateResult(user_id=user_id, success=True, refined_profile=refined)
