"""Retrieval Orchestrator - tiered research with web fallback.

State machine for one research request:

    draft named but missing? ── yes ──> NotFoundError (before any paid lookup)
           │ no
           v
    selection ids given?  ── yes ──> staging rows as-is (relevance 1.0)
           │ no
           v
    embed topic ─> Tier 1 vault facts   (similarity >= 0.82, top 5)
               ─> Tier 2 staging items (similarity >= 0.80, top 5)
           │
    increment usage_count of every staging item used (one atomic UPDATE)
           │
    fewer than 3 sources? ── yes ──> record backlog gap, web search (bounded),
           │                          re-ingest each web result in the background
           v
    zero sources ─> NoSourcesFoundError
    otherwise    ─> write sources onto the draft, hand off in the background

Any fatal error marks the draft failed with the message and a trace id.
"""

from typing import Optional
from uuid import UUID

from nkv_common import (
    DetachedTaskRunner,
    NKVError,
    NoSourcesFoundError,
    NotFoundError,
    WebSearchError,
    bind_correlation_id,
    current_trace_id,
    get_logger,
    get_settings,
    get_task_runner,
    instrument_function,
)
from nkv_contracts import (
    DraftStatus,
    RequesterContext,
    ResearchResult,
    ResearchSource,
    SourceOrigin,
    SourceType,
    WebSearchResult,
)
from nkv_storage import BacklogStore, ChunkStore, DraftStore, StagingStore, VectorQuery

logger = get_logger(__name__)


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


class ResearchOrchestrator:
    """Serves research requests from the vault and staging tiers.

    Example:
        >>> orchestrator = ResearchOrchestrator(
        ...     embedder=get_embedding_client(),
        ...     gateway=IngestionGateway(llm, embedder),
        ...     web_search=get_web_search(),
        ...     handoff=get_handoff(),
        ... )
        >>> result = await orchestrator.research("tokamak confinement", RequesterContext(draft_id=d.id))
    """

    def __init__(
        self,
        embedder,
        gateway,
        web_search=None,
        handoff=None,
        chunk_store=ChunkStore,
        staging_store=StagingStore,
        backlog_store=BacklogStore,
        draft_store=DraftStore,
        task_runner: Optional[DetachedTaskRunner] = None,
    ):
        """Initialize the orchestrator.

        Args:
            embedder: Object providing async embed(text) -> vector
            gateway: IngestionGateway used for circular-economy re-ingestion
            web_search: Object providing async search(query, max_results); None disables fallback
            handoff: Object providing async notify(...); None skips the handoff
            chunk_store: Tier 1 store (ChunkStore or compatible)
            staging_store: Tier 2 store (StagingStore or compatible)
            backlog_store: Coverage-gap log
            draft_store: Requester records
            task_runner: Runner for fire-and-forget work (default: process-wide runner)
        """
        settings = get_settings()
        self.embedder = embedder
        self.gateway = gateway
        self.web_search = web_search
        self.handoff = handoff
        self.chunk_store = chunk_store
        self.staging_store = staging_store
        self.backlog_store = backlog_store
        self.draft_store = draft_store
        self.task_runner = task_runner or get_task_runner()

        self.vault_threshold = settings.vault_match_threshold
        self.staging_threshold = settings.staging_match_threshold
        self.tier_limit = settings.tier_match_count
        self.min_sources = settings.sufficiency_min_sources
        self.web_max_results = settings.web_search_max_results

    @instrument_function("research")
    async def research(
        self,
        topic: str,
        context: Optional[RequesterContext] = None,
        selection_ids: Optional[list[UUID]] = None,
    ) -> ResearchResult:
        """Gather grounding sources for a topic.

        Args:
            topic: Subject to research
            context: Requester record and correlation id
            selection_ids: Staging item ids picked explicitly by the user

        Returns:
            ResearchResult with consolidated sources

        Raises:
            NotFoundError: context names a draft that does not exist
            NoSourcesFoundError: No tier (web included) produced anything
            PersistenceError: A store write failed
        """
        context = context or RequesterContext()
        correlation_id = bind_correlation_id(context.correlation_id)

        if not topic or not topic.strip():
            raise ValueError("topic must not be empty")

        logger.info(
            "research_started",
            topic=topic,
            draft_id=str(context.draft_id) if context.draft_id else None,
            explicit_selection=bool(selection_ids),
        )

        try:
            result = await self._run(topic.strip(), context, correlation_id, selection_ids)
        except NKVError as e:
            await self._record_failure(context, correlation_id, e)
            raise

        logger.info(
            "research_complete",
            source_count=len(result.sources),
            used_web_search=result.used_web_search,
        )
        return result

    async def _run(
        self,
        topic: str,
        context: RequesterContext,
        correlation_id: str,
        selection_ids: Optional[list[UUID]],
    ) -> ResearchResult:
        if context.draft_id is not None:
            if await self.draft_store.get(context.draft_id) is None:
                raise NotFoundError(f"Draft {context.draft_id} does not exist")

        if selection_ids:
            sources = await self._selected_sources(selection_ids)
        else:
            sources = await self._discover(topic)

        used_ids = [s.staging_item_id for s in sources if s.staging_item_id is not None]
        if used_ids:
            await self.staging_store.increment_usage(used_ids)

        used_web_search = False
        if len(sources) < self.min_sources:
            logger.info(
                "research_insufficient", internal_count=len(sources), minimum=self.min_sources
            )
            await self.backlog_store.record(
                topic,
                {
                    "correlation_id": correlation_id,
                    "draft_id": str(context.draft_id) if context.draft_id else None,
                    "internal_count": len(sources),
                },
            )
            web_results = await self._search_web(topic)
            used_web_search = self.web_search is not None
            for web_result in web_results:
                sources.append(
                    ResearchSource(
                        title=web_result.title,
                        content=web_result.content,
                        url=web_result.url,
                        origin=SourceOrigin.WEB,
                        relevance=_clamp(web_result.score),
                    )
                )
                self.task_runner.spawn(
                    "reingest_web_result",
                    self._reingest(topic, web_result, correlation_id),
                )

        if not sources:
            logger.warning("research_no_sources", topic=topic)
            raise NoSourcesFoundError(topic)

        status = DraftStatus.WRITING
        if context.draft_id is not None:
            await self.draft_store.save_research(context.draft_id, sources, status=status)
            if self.handoff is not None:
                self.task_runner.spawn(
                    "research_handoff",
                    self.handoff.notify(context.draft_id, topic, sources, correlation_id),
                )

        return ResearchResult(
            topic=topic,
            sources=sources,
            status=status,
            used_web_search=used_web_search,
            draft_id=context.draft_id,
            correlation_id=correlation_id,
        )

    async def _selected_sources(self, selection_ids: list[UUID]) -> list[ResearchSource]:
        items = await self.staging_store.get_by_ids(selection_ids)
        if len(items) < len(set(selection_ids)):
            logger.warning(
                "research_selection_partial", requested=len(set(selection_ids)), found=len(items)
            )
        return [
            ResearchSource(
                title=item.title,
                content=item.summary or item.title,
                url=item.url,
                origin=SourceOrigin.FRESH_RESEARCH,
                relevance=1.0,
                staging_item_id=item.id,
            )
            for item in items
        ]

    async def _discover(self, topic: str) -> list[ResearchSource]:
        embedding = await self.embedder.embed(topic)

        vault_matches = await self.chunk_store.search(
            VectorQuery(embedding=embedding, threshold=self.vault_threshold, limit=self.tier_limit)
        )
        staging_matches = await self.staging_store.search(
            VectorQuery(
                embedding=embedding, threshold=self.staging_threshold, limit=self.tier_limit
            )
        )

        logger.info(
            "research_tiers_searched",
            vault_hits=len(vault_matches),
            staging_hits=len(staging_matches),
        )

        sources = [
            ResearchSource(
                title=match.title,
                content=match.content,
                url=match.url,
                origin=SourceOrigin.VAULT,
                relevance=match.similarity,
                source_id=match.source_id,
            )
            for match in vault_matches
        ]
        sources.extend(
            ResearchSource(
                title=match.item.title,
                content=match.item.summary or match.item.title,
                url=match.item.url,
                origin=SourceOrigin.FRESH_RESEARCH,
                relevance=match.similarity,
                staging_item_id=match.item.id,
            )
            for match in staging_matches
        )
        return sources

    async def _search_web(self, topic: str) -> list[WebSearchResult]:
        if self.web_search is None:
            logger.warning("web_search_unconfigured")
            return []
        try:
            return await self.web_search.search(topic, max_results=self.web_max_results)
        except WebSearchError as e:
            logger.warning("web_search_failed", error=str(e))
            return []

    async def _reingest(self, topic: str, web_result: WebSearchResult, correlation_id: str) -> None:
        """Feed one web result back into the vault; failures only log."""
        try:
            result = await self.gateway.ingest(
                title=web_result.title,
                text=web_result.content,
                url=web_result.url,
                source_type=SourceType.USER_CONTRIBUTION,
                is_public=True,
                metadata={"origin": "web_search", "topic": topic},
                correlation_id=correlation_id,
            )
        except NKVError as e:
            logger.warning("web_reingest_failed", url=web_result.url, error=str(e))
            return
        logger.info(
            "web_reingested",
            url=web_result.url,
            source_id=str(result.source_id),
            facts_count=result.facts_count,
        )

    async def _record_failure(
        self, context: RequesterContext, correlation_id: str, error: NKVError
    ) -> None:
        trace_id = current_trace_id() or correlation_id
        logger.error(
            "research_failed",
            error=str(error),
            error_type=type(error).__name__,
            trace_id=trace_id,
        )
        if context.draft_id is None:
            return
        try:
            await self.draft_store.mark_failed(context.draft_id, str(error), trace_id)
        except NKVError as e:
            logger.error("draft_mark_failed_failed", draft_id=str(context.draft_id), error=str(e))
