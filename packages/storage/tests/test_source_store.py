"""Tests for SourceStore and ChunkStore against live PostgreSQL.

Integration tests; skipped when the test database is unreachable.
"""

import asyncio
from uuid import uuid4

import pytest

from nkv_common import DuplicateContentError
from nkv_contracts import EMBEDDING_DIM, SourceType
from nkv_storage import ChunkStore, SourceStore, VectorQuery


def axis(i: int) -> list[float]:
    vector = [0.0] * EMBEDDING_DIM
    vector[i] = 1.0
    return vector


def fact(content: str, i: int) -> dict:
    return {"content": content, "embedding": axis(i), "token_count": len(content.split())}


class TestSourceStoreCreate:
    """Test SourceStore.create() operations."""

    async def test_create_source_with_chunks(self, db_pool):
        source, chunks = await SourceStore.create(
            title="Fusion primer",
            content_hash="hash-1",
            source_type=SourceType.WEB,
            url="https://example.com/fusion",
            is_public=True,
            metadata={"correlation_id": "c1"},
            chunks=[fact("Tokamaks confine plasma.", 0), fact("ITER is in France.", 1)],
        )

        assert source.title == "Fusion primer"
        assert source.metadata == {"correlation_id": "c1"}
        assert len(chunks) == 2
        assert await ChunkStore.count_by_source(source.id) == 2

    async def test_duplicate_hash_raises(self, db_pool):
        await SourceStore.create(
            title="A", content_hash="dup", source_type=SourceType.ADMIN
        )

        with pytest.raises(DuplicateContentError) as exc_info:
            await SourceStore.create(
                title="B", content_hash="dup", source_type=SourceType.ADMIN
            )

        assert exc_info.value.content_hash == "dup"

    async def test_concurrent_duplicates_leave_one_row(self, db_pool):
        async def attempt():
            try:
                await SourceStore.create(
                    title="Race", content_hash="race", source_type=SourceType.WEB
                )
                return True
            except DuplicateContentError:
                return False

        outcomes = await asyncio.gather(*(attempt() for _ in range(4)))

        assert outcomes.count(True) == 1
        summaries = await SourceStore.list_with_counts()
        assert len([s for s in summaries if s.source.content_hash == "race"]) == 1


class TestSourceStoreRead:
    async def test_get_by_content_hash(self, db_pool):
        created, _ = await SourceStore.create(
            title="A", content_hash="h-a", source_type=SourceType.WEB
        )

        found = await SourceStore.get_by_content_hash("h-a")

        assert found is not None
        assert found.id == created.id
        assert await SourceStore.get_by_content_hash("missing") is None

    async def test_get_by_id_missing(self, db_pool):
        assert await SourceStore.get_by_id(uuid4()) is None

    async def test_list_with_counts(self, db_pool):
        await SourceStore.create(
            title="Two facts",
            content_hash="h-2",
            source_type=SourceType.WEB,
            chunks=[fact("One.", 0), fact("Two.", 1)],
        )

        summaries = await SourceStore.list_with_counts()

        assert summaries[0].chunk_count == 2


class TestSourceStoreDelete:
    async def test_delete_cascades_to_chunks(self, db_pool):
        source, _ = await SourceStore.create(
            title="Gone",
            content_hash="h-del",
            source_type=SourceType.WEB,
            chunks=[fact("Fact.", 0)],
        )

        assert await SourceStore.delete(source.id) is True
        assert await ChunkStore.count_by_source(source.id) == 0
        assert await SourceStore.delete(source.id) is False


class TestChunkSearch:
    async def test_threshold_filters_and_orders(self, db_pool):
        await SourceStore.create(
            title="Vectors",
            content_hash="h-v",
            source_type=SourceType.WEB,
            chunks=[fact("Exact.", 0), fact("Orthogonal.", 1)],
        )

        matches = await ChunkStore.search(
            VectorQuery(embedding=axis(0), threshold=0.82, limit=5)
        )

        assert [m.content for m in matches] == ["Exact."]
        assert matches[0].similarity == pytest.approx(1.0)
        assert matches[0].title == "Vectors"
