"""Tests for DNAStore, BacklogStore and DraftStore against live PostgreSQL."""

from uuid import uuid4

import pytest

from nkv_common import NotFoundError, PersistenceError
from nkv_contracts import EMBEDDING_DIM, DraftStatus, ResearchSource, SourceOrigin
from nkv_storage import BacklogStore, DNAStore, DraftStore


class TestDNAStore:
    async def test_missing_user(self, db_pool):
        assert await DNAStore.get("nobody") is None
        with pytest.raises(NotFoundError):
            await DNAStore.require("nobody")

    async def test_upsert_overwrites_everything(self, db_pool):
        await DNAStore.upsert("u1", [0.1] * EMBEDDING_DIM, "first", ["crypto"], 3)
        dna = await DNAStore.upsert("u1", [0.2] * EMBEDDING_DIM, "second", [], 7)

        assert dna.professional_profile == "second"
        assert dna.negative_interests == []
        assert dna.expertise_level == 7
        assert (await DNAStore.get("u1")).dna_vector[0] == pytest.approx(0.2)


class TestBacklogStore:
    async def test_record_and_list(self, db_pool):
        await BacklogStore.record("dark matter", {"correlation_id": "c1"})

        [entry] = await BacklogStore.list_recent()

        assert entry.topic == "dark matter"
        assert entry.metadata["correlation_id"] == "c1"


class TestDraftStore:
    async def test_lifecycle_to_writing(self, db_pool):
        draft = await DraftStore.create("fusion", user_id="u1")
        assert draft.status == DraftStatus.RESEARCHING

        source = ResearchSource(
            title="t", content="c", origin=SourceOrigin.VAULT, relevance=0.9
        )
        saved = await DraftStore.save_research(draft.id, [source])

        assert saved.status == DraftStatus.WRITING
        assert saved.sources[0].origin == SourceOrigin.VAULT

    async def test_mark_failed_records_trace(self, db_pool):
        draft = await DraftStore.create("fusion")

        failed = await DraftStore.mark_failed(draft.id, "No sources", trace_id="t-1")

        assert failed.status == DraftStatus.FAILED
        assert failed.trace_id == "t-1"

    async def test_save_research_on_missing_draft(self, db_pool):
        with pytest.raises(PersistenceError):
            await DraftStore.save_research(uuid4(), [])
