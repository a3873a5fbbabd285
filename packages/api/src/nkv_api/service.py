"""Service layer for the nkv API.

Owns the pipeline components (built once from settings) and exposes the
async operations the routes call. Tests swap the whole component set via
set_services().
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional
from uuid import UUID

from arxiv_client import client_factory
from nkv_common import DetachedTaskRunner, get_logger, get_settings, get_task_runner
from nkv_contracts import (
    DNAUpdateResult,
    Draft,
    IngestResult,
    KnowledgeChunk,
    KnowledgeSource,
    KnowledgeSourceSummary,
    MatchResult,
    RequesterContext,
    ResearchResult,
    SourceType,
    SweepResult,
    VaultMatch,
)
from nkv_extraction import get_llm_client
from nkv_pulse import DNASynthesizer, Harvester, PersonalizationMatcher
from nkv_refinery import IngestionGateway, get_embedding_client
from nkv_research import ResearchOrchestrator, get_handoff, get_web_search, search_vault
from nkv_storage import ChunkStore, DraftStore, SourceStore, check_connection_health

logger = get_logger(__name__)


@dataclass
class Services:
    """Pipeline components shared by every request."""

    embedder: Any
    gateway: IngestionGateway
    orchestrator: ResearchOrchestrator
    harvester: Harvester
    matcher: PersonalizationMatcher
    synthesizer: DNASynthesizer
    source_store: Any = SourceStore
    chunk_store: Any = ChunkStore
    draft_store: Any = DraftStore
    task_runner: DetachedTaskRunner = field(default_factory=get_task_runner)


def build_services() -> Services:
    """Wire the production components from settings."""
    settings = get_settings()
    embedder = get_embedding_client()
    llm = get_llm_client()
    runner = get_task_runner()
    gateway = IngestionGateway(llm=llm, embedder=embedder)

    return Services(
        embedder=embedder,
        gateway=gateway,
        orchestrator=ResearchOrchestrator(
            embedder=embedder,
            gateway=gateway,
            web_search=get_web_search(),
            handoff=get_handoff(),
            task_runner=runner,
        ),
        harvester=Harvester(
            catalog_factory=client_factory(base_url=settings.arxiv_base_url),
            embedder=embedder,
        ),
        matcher=PersonalizationMatcher(),
        synthesizer=DNASynthesizer(llm=llm, embedder=embedder),
        task_runner=runner,
    )


_services: Optional[Services] = None


def get_services() -> Services:
    global _services
    if _services is None:
        _services = build_services()
    return _services


def set_services(services: Optional[Services]) -> None:
    """Replace the component set (None resets to lazy production wiring)."""
    global _services
    _services = services


# === Vault ===


async def ingest(
    title: str,
    text: str,
    url: Optional[str],
    source_type: SourceType,
    is_public: bool,
    metadata: dict[str, Any],
    correlation_id: Optional[str] = None,
) -> IngestResult:
    return await get_services().gateway.ingest(
        title=title,
        text=text,
        url=url,
        source_type=source_type,
        is_public=is_public,
        metadata=metadata,
        correlation_id=correlation_id,
    )


async def list_sources(limit: int = 100, offset: int = 0) -> list[KnowledgeSourceSummary]:
    return await get_services().source_store.list_with_counts(limit=limit, offset=offset)


async def get_source(source_id: UUID) -> Optional[tuple[KnowledgeSource, list[KnowledgeChunk]]]:
    services = get_services()
    source = await services.source_store.get_by_id(source_id)
    if source is None:
        return None
    chunks = await services.chunk_store.list_by_source(source_id)
    return source, chunks


async def delete_source(source_id: UUID) -> bool:
    deleted = await get_services().source_store.delete(source_id)
    if deleted:
        logger.info("source_purged", source_id=str(source_id))
    return deleted


async def vault_search(query: str, threshold: float, limit: int) -> list[VaultMatch]:
    services = get_services()
    return await search_vault(
        services.embedder, query, threshold=threshold, limit=limit, chunk_store=services.chunk_store
    )


# === Research ===


async def create_draft(topic: str, user_id: Optional[str] = None) -> Draft:
    return await get_services().draft_store.create(topic, user_id=user_id)


async def get_draft(draft_id: UUID) -> Optional[Draft]:
    return await get_services().draft_store.get(draft_id)


async def research(
    topic: str,
    draft_id: Optional[UUID],
    user_id: Optional[str],
    selection_ids: Optional[list[UUID]],
    correlation_id: Optional[str] = None,
) -> ResearchResult:
    context = RequesterContext(draft_id=draft_id, user_id=user_id, correlation_id=correlation_id)
    return await get_services().orchestrator.research(topic, context, selection_ids=selection_ids)


# === Pulse ===


async def sweep(correlation_id: Optional[str] = None) -> SweepResult:
    return await get_services().harvester.sweep(correlation_id=correlation_id)


async def match_signals(user_id: str) -> MatchResult:
    return await get_services().matcher.match_signals(user_id)


async def update_dna(
    user_id: str,
    profile_text: str,
    expertise_level: int,
    negative_interests: list[str],
    correlation_id: Optional[str] = None,
) -> DNAUpdateResult:
    return await get_services().synthesizer.update_dna(
        user_id,
        profile_text,
        expertise_level=expertise_level,
        negative_interests=negative_interests,
        correlation_id=correlation_id,
    )


# === Health ===


async def check_database() -> bool:
    return await check_connection_health()
