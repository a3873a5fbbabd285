"""Ingestion Gateway - refines raw text into the knowledge vault.

Pipeline:
1. Reject text too short to distill
2. Hash the raw text; an existing source short-circuits (no LLM or embedding calls)
3. Distill atomic facts; zero facts is a hard failure
4. Embed each fact sequentially; a fact that fails to embed is dropped
5. Persist the source and its chunks in one transaction
"""

from typing import Any, Optional

from nkv_common import (
    ContentTooShortError,
    DistillationFailedError,
    DuplicateContentError,
    EmbeddingError,
    bind_correlation_id,
    compute_content_hash,
    get_logger,
    get_settings,
    instrument_function,
)
from nkv_contracts import IngestResult, SourceType
from nkv_storage import SourceStore

logger = get_logger(__name__)


def estimate_tokens(text: str) -> int:
    """Word-count estimate stored with each chunk."""
    return len(text.split())


class IngestionGateway:
    """Deduplicating, distilling, embedding writer for the vault.

    Example:
        >>> gateway = IngestionGateway(llm=get_llm_client(), embedder=get_embedding_client())
        >>> result = await gateway.ingest(title="ITER", text=article, source_type=SourceType.WEB)
        >>> result.facts_count
        12
    """

    def __init__(
        self,
        llm,
        embedder,
        source_store=SourceStore,
        min_content_length: Optional[int] = None,
    ):
        """Initialize the gateway.

        Args:
            llm: LLMClient providing extract_facts()
            embedder: Object providing async embed(text) -> vector
            source_store: Vault source store (SourceStore or a compatible fake)
            min_content_length: Minimum text length (default: MIN_CONTENT_LENGTH setting)
        """
        self.llm = llm
        self.embedder = embedder
        self.source_store = source_store
        self.min_content_length = (
            min_content_length
            if min_content_length is not None
            else get_settings().min_content_length
        )

    @instrument_function("ingest")
    async def ingest(
        self,
        title: str,
        text: str,
        url: Optional[str] = None,
        source_type: SourceType = SourceType.WEB,
        is_public: bool = False,
        metadata: Optional[dict[str, Any]] = None,
        correlation_id: Optional[str] = None,
    ) -> IngestResult:
        """Ingest raw text.

        Returns:
            IngestResult; duplicate=True with facts_count=0 when the text is already known

        Raises:
            ContentTooShortError: Text shorter than the minimum length
            DistillationFailedError: The LLM produced no facts
            EmbeddingError: No fact could be embedded
            PersistenceError: The vault write failed
        """
        correlation_id = bind_correlation_id(correlation_id)

        length = len(text.strip())
        if length < self.min_content_length:
            logger.warning("ingest_rejected_too_short", length=length)
            raise ContentTooShortError(length=length, minimum=self.min_content_length)

        content_hash = compute_content_hash(text)

        existing = await self.source_store.get_by_content_hash(content_hash)
        if existing is not None:
            logger.info("ingest_deduplicated", source_id=str(existing.id))
            return IngestResult(source_id=existing.id, facts_count=0, duplicate=True)

        logger.info("ingest_started", title=title, text_length=length)

        facts = await self.llm.extract_facts(text)
        if not facts:
            logger.error("distillation_failed", title=title)
            raise DistillationFailedError(f"No facts could be distilled from '{title}'")

        chunks = []
        for index, fact in enumerate(facts):
            try:
                embedding = await self.embedder.embed(fact)
            except EmbeddingError as e:
                logger.warning("fact_embedding_skipped", fact_index=index, error=str(e))
                continue
            chunks.append(
                {
                    "content": fact,
                    "embedding": embedding,
                    "token_count": estimate_tokens(fact),
                }
            )

        if not chunks:
            raise EmbeddingError(f"None of {len(facts)} facts could be embedded")

        source_metadata = {
            **(metadata or {}),
            "correlation_id": correlation_id,
            "distilled_facts": len(facts),
        }
        extraction_method = getattr(self.llm, "extraction_method", None)
        if extraction_method:
            source_metadata["extraction_method"] = extraction_method

        try:
            source, created = await self.source_store.create(
                title=title,
                content_hash=content_hash,
                source_type=source_type,
                url=url,
                is_public=is_public,
                metadata=source_metadata,
                chunks=chunks,
            )
        except DuplicateContentError:
            # Lost a race with a concurrent ingest of the same text
            winner = await self.source_store.get_by_content_hash(content_hash)
            if winner is None:
                raise
            logger.info("ingest_deduplicated_concurrent", source_id=str(winner.id))
            return IngestResult(source_id=winner.id, facts_count=0, duplicate=True)

        logger.info(
            "ingest_complete",
            source_id=str(source.id),
            facts_count=len(created),
            dropped=len(facts) - len(created),
        )
        return IngestResult(source_id=source.id, facts_count=len(created))
