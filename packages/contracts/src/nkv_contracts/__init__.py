"""NKV Contracts - Pure Pydantic schemas.

Version: 1.0.0

This package contains ONLY Pydantic schemas with no business logic.
Dependencies: pydantic only (no OpenTelemetry, no logging, no DB drivers).
"""

from nkv_contracts.models import (
    EMBEDDING_DIM,
    # Vault
    KnowledgeChunk,
    KnowledgeSource,
    KnowledgeSourceSummary,
    SourceMetadata,
    SourceType,
    # Staging / personalization
    PulseStagingItem,
    PulseSignal,
    UserInterestDNA,
    MatchResult,
    DNAUpdateResult,
    # Research
    Draft,
    DraftStatus,
    RequesterContext,
    ResearchBacklogEntry,
    ResearchResult,
    ResearchSource,
    SourceOrigin,
    WebSearchResult,
    # Search hits
    StagingMatch,
    VaultMatch,
    # Pipeline results
    IngestResult,
    SweepResult,
)

__version__ = "1.0.0"

__all__ = [
    "EMBEDDING_DIM",
    "KnowledgeChunk",
    "KnowledgeSource",
    "KnowledgeSourceSummary",
    "SourceMetadata",
    "SourceType",
    "PulseStagingItem",
    "PulseSignal",
    "UserInterestDNA",
    "MatchResult",
    "DNAUpdateResult",
    "Draft",
    "DraftStatus",
    "RequesterContext",
    "ResearchBacklogEntry",
    "ResearchResult",
    "ResearchSource",
    "SourceOrigin",
    "WebSearchResult",
    "StagingMatch",
    "VaultMatch",
    "IngestResult",
    "SweepResult",
]
