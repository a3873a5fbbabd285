"""Fixtures for CLI testing."""

from datetime import datetime, timezone
from uuid import uuid4

import pytest
from typer.testing import CliRunner

from nkv_contracts import (
    KnowledgeSource,
    KnowledgeSourceSummary,
    ResearchResult,
    ResearchSource,
    SourceOrigin,
    SourceType,
)


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def source_summaries():
    now = datetime.now(timezone.utc)
    return [
        KnowledgeSourceSummary(
            source=KnowledgeSource(
                id=uuid4(),
                title=f"Vault source {n}",
                content_hash=f"hash{n}",
                source_type=SourceType.USER_CONTRIBUTION if n else SourceType.WEB,
                is_public=bool(n),
                created_at=now,
            ),
            chunk_count=n + 2,
        )
        for n in range(2)
    ]


@pytest.fixture
def research_result():
    return ResearchResult(
        topic="fusion",
        sources=[
            ResearchSource(
                title="ITER milestone",
                content="First plasma is scheduled for the 2030s.",
                url="https://iter.org",
                origin=SourceOrigin.VAULT,
                relevance=0.91,
            ),
            ResearchSource(
                title="Web article",
                content="x" * 500,
                url="https://example.com/a",
                origin=SourceOrigin.WEB,
                relevance=0.4,
            ),
        ],
        used_web_search=True,
        correlation_id="c-1",
    )
