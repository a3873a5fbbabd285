"""Fixtures for end-to-end tests.

Provides a fully wired pipeline (gateway, orchestrator, harvester,
matcher, synthesizer) over the in-memory stores from the root conftest.
"""

from dataclasses import dataclass

import pytest

from arxiv_client import ArxivEntry
from nkv_common import DetachedTaskRunner
from nkv_pulse import DNASynthesizer, Harvester, PersonalizationMatcher
from nkv_refinery import IngestionGateway
from nkv_research import ResearchOrchestrator


class RecordedCatalog:
    """Catalog replaying one unchanged arXiv response."""

    def __init__(self, entries: list[ArxivEntry]):
        self.entries = entries
        self.fetches = 0

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        pass

    async def search_category(self, category, max_results: int = 15, sort_by: str = "relevance"):
        self.fetches += 1
        return self.entries[:max_results]


@dataclass
class Pipeline:
    gateway: IngestionGateway
    orchestrator: ResearchOrchestrator
    harvester: Harvester
    matcher: PersonalizationMatcher
    synthesizer: DNASynthesizer
    runner: DetachedTaskRunner
    catalog: RecordedCatalog


@pytest.fixture
def arxiv_entries():
    subjects = ["Exoplanet", "Climate", "Robot", "Transformer", "Vaccine"]
    return [
        ArxivEntry(
            arxiv_id=f"2403.{n:05d}v1",
            title=f"{subject} study number {n}",
            summary=f"New {subject.lower()} results.",
            url=f"http://arxiv.org/abs/2403.{n:05d}v1",
        )
        for n, subject in enumerate(subjects * 3)
    ]


@pytest.fixture
async def pipeline(
    llm, embedder, vault, staging, dna_store, backlog, drafts, web_search, handoff, arxiv_entries
):
    runner = DetachedTaskRunner()
    catalog = RecordedCatalog(arxiv_entries)
    gateway = IngestionGateway(llm=llm, embedder=embedder, source_store=vault, min_content_length=50)
    yield Pipeline(
        gateway=gateway,
        orchestrator=ResearchOrchestrator(
            embedder=embedder,
            gateway=gateway,
            web_search=web_search,
            handoff=handoff,
            chunk_store=vault,
            staging_store=staging,
            backlog_store=backlog,
            draft_store=drafts,
            task_runner=runner,
        ),
        harvester=Harvester(
            catalog_factory=lambda: catalog, embedder=embedder, staging_store=staging, batch_size=15
        ),
        matcher=PersonalizationMatcher(dna_store=dna_store, staging_store=staging),
        synthesizer=DNASynthesizer(llm=llm, embedder=embedder, dna_store=dna_store),
        runner=runner,
        catalog=catalog,
    )
    await runner.drain()
