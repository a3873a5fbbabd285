"""Output formatters for CLI results.

- markdown: human-readable listing with provenance
- json: machine-parseable JSON
"""

import json

from nkv_contracts import (
    KnowledgeSourceSummary,
    MatchResult,
    ResearchResult,
    SweepResult,
    VaultMatch,
)


def format_research_markdown(result: ResearchResult) -> str:
    """Research sources grouped in retrieval order."""
    lines = [f"# Research: {result.topic}", ""]
    if result.used_web_search:
        lines.append("_Internal knowledge was insufficient; web search was used._\n")

    for i, source in enumerate(result.sources, 1):
        lines.append(f"## [{i}] {source.title}")
        lines.append(f"**Origin**: {source.origin.value} | **Relevance**: {source.relevance:.2f}")
        if source.url:
            lines.append(f"**URL**: {source.url}")
        content = source.content[:400]
        if len(source.content) > 400:
            content += "..."
        lines.append(f"\n> {content}\n")

    if result.draft_id:
        lines.append(f"Draft {result.draft_id} -> {result.status.value}")
    return "\n".join(lines)


def format_research_json(result: ResearchResult) -> str:
    return json.dumps(result.model_dump(mode="json"), indent=2)


def format_sources_table(summaries: list[KnowledgeSourceSummary]) -> str:
    lines = []
    for summary in summaries:
        source = summary.source
        badge = f"[{source.source_type.value}]"
        visibility = "public" if source.is_public else "private"
        lines.append(
            f"  {badge:20} {source.title[:50]:50} {summary.chunk_count:4} facts  "
            f"{visibility:7}  {source.id}"
        )
    return "\n".join(lines)


def format_vault_matches(matches: list[VaultMatch]) -> str:
    lines = []
    for i, match in enumerate(matches, 1):
        lines.append(f"[{i}] {match.similarity:.3f}  {match.content}")
        lines.append(f"     from: {match.title}" + (f" ({match.url})" if match.url else ""))
    return "\n".join(lines)


def format_signals(result: MatchResult) -> str:
    header = "Trending (no interest DNA yet)" if result.is_fallback else f"Signals for {result.user_id}"
    lines = [header, "=" * len(header)]
    for signal in result.signals:
        match = f"{signal.match_percentage:3d}%" if signal.match_percentage is not None else "  - "
        star = "*" if signal.is_high_value else " "
        lines.append(f"{star} {match}  {signal.title[:70]}  [{signal.source_name}]")
    return "\n".join(lines)


def format_sweep(result: SweepResult) -> str:
    return (
        f"Swept {result.category}: fetched {result.fetched_count}, "
        f"ingested {result.ingested_count}, skipped {result.skipped_count}, "
        f"failed {result.failed_count}"
    )
