"""Tests for the DNA Synthesizer."""

import pytest

from nkv_common import EmbeddingError
from nkv_pulse import DNASynthesizer


@pytest.fixture
def synthesizer(llm, embedder, dna_store):
    return DNASynthesizer(llm=llm, embedder=embedder, dna_store=dna_store)


class TestUpdateDNA:
    async def test_refines_embeds_and_stores(self, synthesizer, llm, embedder, dna_store):
        result = await synthesizer.update_dna(
            "u1", "I build fusion reactors", expertise_level=8, negative_interests=["crypto"]
        )

        assert result.success is True
        assert result.refined_profile == "Refined: I build fusion reactors"
        assert llm.refine_calls == ["I build fusion reactors"]
        assert embedder.calls == ["Refined: I build fusion reactors"]

        stored = dna_store.rows["u1"]
        assert stored.professional_profile == "I build fusion reactors"
        assert stored.negative_interests == ["crypto"]
        assert stored.expertise_level == 8

    async def test_full_overwrite(self, synthesizer, dna_store):
        await synthesizer.update_dna("u1", "fusion", negative_interests=["nft"])
        await synthesizer.update_dna("u1", "graphene", expertise_level=3)

        stored = dna_store.rows["u1"]
        assert stored.professional_profile == "graphene"
        assert stored.negative_interests == []
        assert stored.expertise_level == 3

    async def test_blank_negative_terms_dropped(self, synthesizer, dna_store):
        await synthesizer.update_dna("u1", "robots", negative_interests=[" ", "drones "])

        assert dna_store.rows["u1"].negative_interests == ["drones"]

    async def test_empty_profile_rejected(self, synthesizer):
        with pytest.raises(ValueError):
            await synthesizer.update_dna("u1", "   ")

    async def test_expertise_out_of_range(self, synthesizer):
        with pytest.raises(ValueError):
            await synthesizer.update_dna("u1", "vaccines", expertise_level=11)

    async def test_embedding_failure_leaves_row_untouched(self, synthesizer, embedder, dna_store):
        await synthesizer.update_dna("u1", "climate models")
        embedder.fail_marker = "POISON"

        with pytest.raises(EmbeddingError):
            await synthesizer.update_dna("u1", "POISON profile")

        assert dna_store.rows["u1"].professional_profile == "climate models"
