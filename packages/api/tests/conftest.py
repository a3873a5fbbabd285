"""Test configuration for API tests.

The app is wired to the in-memory stores and fakes from the root
conftest through service.set_services().
"""

from __future__ import annotations

from typing import AsyncGenerator
from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from arxiv_client import ArxivEntry
from nkv_api import service
from nkv_api.main import create_app
from nkv_common import DetachedTaskRunner
from nkv_pulse import DNASynthesizer, Harvester, PersonalizationMatcher
from nkv_refinery import IngestionGateway
from nkv_research import ResearchOrchestrator


class StaticCatalog:
    """ArxivClient stand-in serving a fixed feed."""

    def __init__(self, entries: list[ArxivEntry]):
        self.entries = entries

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        pass

    async def search_category(self, category, max_results: int = 15, sort_by: str = "relevance"):
        return self.entries[:max_results]


@pytest.fixture
def catalog():
    return StaticCatalog(
        [
            ArxivEntry(
                arxiv_id=f"2402.0000{n}v1",
                title=f"Quantum sensing advance {n}",
                summary="Nitrogen-vacancy centres as quantum sensors.",
                url=f"http://arxiv.org/abs/2402.0000{n}v1",
            )
            for n in range(3)
        ]
    )


@pytest.fixture
async def runner():
    runner = DetachedTaskRunner()
    yield runner
    await runner.drain()


@pytest.fixture
def services(
    llm, embedder, vault, staging, dna_store, backlog, drafts, web_search, handoff, catalog, runner
):
    gateway = IngestionGateway(llm=llm, embedder=embedder, source_store=vault, min_content_length=50)
    wired = service.Services(
        embedder=embedder,
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
        harvester=Harvester(catalog_factory=lambda: catalog, embedder=embedder, staging_store=staging),
        matcher=PersonalizationMatcher(dna_store=dna_store, staging_store=staging),
        synthesizer=DNASynthesizer(llm=llm, embedder=embedder, dna_store=dna_store),
        source_store=vault,
        chunk_store=vault,
        draft_store=drafts,
        task_runner=runner,
    )
    service.set_services(wired)
    yield wired
    service.set_services(None)


@pytest.fixture
def mock_pool():
    """Mock database connection pool."""
    pool = AsyncMock()
    pool.get_size.return_value = 5
    return pool


@pytest.fixture
async def app_client(mock_pool, services) -> AsyncGenerator[AsyncClient, None]:
    """Test client over the ASGI app with in-memory services."""
    with patch("nkv_api.main.get_connection_pool", AsyncMock(return_value=mock_pool)), \
         patch("nkv_api.main.close_connection_pool", AsyncMock()), \
         patch("nkv_api.service.check_connection_health", AsyncMock(return_value=True)):
        app = create_app()
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
