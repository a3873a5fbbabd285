"""Tests for prompt formatting."""

from nkv_extraction.prompts import (
    MAX_DISTILL_CHARS,
    format_fact_prompt,
    format_refinement_prompt,
)


def test_fact_prompt_truncates_long_text():
    prompt = format_fact_prompt("x" * (MAX_DISTILL_CHARS + 500))

    assert "x" * MAX_DISTILL_CHARS in prompt
    assert "x" * (MAX_DISTILL_CHARS + 1) not in prompt


def test_fact_prompt_shows_json_schema():
    assert '{"facts": []}' in format_fact_prompt("Some text")


def test_refinement_prompt_embeds_profile():
    assert "quantum error correction" in format_refinement_prompt("  quantum error correction ")
