"""Pydantic models for the knowledge vault pipeline.

These schemas define the contract between all packages.
They match the PostgreSQL schema defined in packages/storage/schema.sql.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

# Fixed dimensionality shared by every embedding caller and vector column
EMBEDDING_DIM = 768


def _check_dimension(v: Optional[list[float]], field_name: str) -> Optional[list[float]]:
    if v is not None and len(v) != EMBEDDING_DIM:
        raise ValueError(
            f"{field_name} must be {EMBEDDING_DIM} dimensions, got {len(v)}"
        )
    return v


class SourceType(str, Enum):
    """How a knowledge source entered the vault."""

    WEB = "web"
    ADMIN = "admin"
    USER_CONTRIBUTION = "user_contribution"


class SourceOrigin(str, Enum):
    """Retrieval tier a research source came from."""

    VAULT = "vault"
    FRESH_RESEARCH = "fresh_research"
    WEB = "web"


class DraftStatus(str, Enum):
    """Requester record lifecycle."""

    RESEARCHING = "researching"
    WRITING = "writing"
    FAILED = "failed"


# Type alias for JSONB metadata
SourceMetadata = dict[str, Any]


class KnowledgeSource(BaseModel):
    """One ingested document.

    Matches PostgreSQL table: knowledge_sources
    Never updated by the pipeline; content_hash is globally unique.
    """

    id: UUID
    title: str
    url: Optional[str] = None
    content_hash: str = Field(..., description="SHA256 of the raw ingested text")
    source_type: SourceType
    is_public: bool = False

    # Examples: correlation_id, ingested_from, author
    metadata: SourceMetadata = Field(default_factory=dict)

    created_at: datetime

    @field_validator("content_hash")
    @classmethod
    def validate_content_hash(cls, v: str) -> str:
        """Ensure content_hash is non-empty."""
        if not v or not v.strip():
            raise ValueError("content_hash must be non-empty")
        return v.strip()


class KnowledgeSourceSummary(BaseModel):
    """Vault listing row: a source plus how many facts it holds."""

    source: KnowledgeSource
    chunk_count: int = Field(default=0, ge=0)


class KnowledgeChunk(BaseModel):
    """One atomic fact distilled from a source.

    Matches PostgreSQL table: knowledge_chunks
    Immutable after creation; deleted only by cascade from its source.
    """

    id: UUID
    source_id: UUID
    content: str = Field(..., min_length=1)
    embedding: Optional[list[float]] = Field(
        None, description=f"{EMBEDDING_DIM}-dim embedding vector"
    )
    token_count: int = Field(default=0, ge=0, description="Word-count estimate")
    created_at: Optional[datetime] = None

    @field_validator("embedding")
    @classmethod
    def validate_embedding_dimension(
        cls, v: Optional[list[float]]
    ) -> Optional[list[float]]:
        return _check_dimension(v, "embedding")

    @field_validator("content")
    @classmethod
    def validate_content_not_empty(cls, v: str) -> str:
        """Ensure content is non-empty."""
        if not v or not v.strip():
            raise ValueError("content must be non-empty")
        return v


class PulseStagingItem(BaseModel):
    """A harvested candidate (e.g. a paper).

    Matches PostgreSQL table: pulse_staging
    usage_count is the only column mutated after creation, and only by
    an atomic increment in the store. Retention is permanent so
    expires_at stays null.
    """

    id: UUID
    content_hash: str
    title: str = Field(..., min_length=1)
    summary: str = ""
    url: Optional[str] = None
    source_name: str
    content_type: str = "paper"
    authority_score: float = Field(default=5.0, ge=0.0, le=10.0)
    veracity_verified: bool = False
    embedding: Optional[list[float]] = None
    is_high_value: bool = False
    usage_count: int = Field(default=0, ge=0)
    expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @field_validator("embedding")
    @classmethod
    def validate_embedding_dimension(
        cls, v: Optional[list[float]]
    ) -> Optional[list[float]]:
        return _check_dimension(v, "embedding")


class UserInterestDNA(BaseModel):
    """Per-user interest vector.

    Matches PostgreSQL table: user_interest_dna
    Upserted wholesale on every resync, no history kept.
    """

    user_id: str = Field(..., min_length=1)
    dna_vector: list[float]
    professional_profile: str = ""
    negative_interests: list[str] = Field(default_factory=list)
    expertise_level: int = Field(default=5, ge=1, le=10)
    last_updated: datetime

    @field_validator("dna_vector")
    @classmethod
    def validate_dna_dimension(cls, v: list[float]) -> list[float]:
        return _check_dimension(v, "dna_vector")


class ResearchBacklogEntry(BaseModel):
    """Append-only record of a topic internal knowledge could not cover.

    Matches PostgreSQL table: research_backlog
    """

    id: Optional[UUID] = None
    topic: str = Field(..., min_length=1)
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None


class ResearchSource(BaseModel):
    """One consolidated research source handed to downstream generation."""

    title: str
    content: str
    url: Optional[str] = None
    origin: SourceOrigin
    relevance: float = Field(..., ge=0.0, le=1.0)

    # Back-references for the tier the source came from
    source_id: Optional[UUID] = None
    staging_item_id: Optional[UUID] = None


class Draft(BaseModel):
    """Requester record a research run writes its outcome onto.

    Matches PostgreSQL table: drafts
    """

    id: UUID
    user_id: Optional[str] = None
    topic: str
    status: DraftStatus = DraftStatus.RESEARCHING
    sources: list[ResearchSource] = Field(default_factory=list)
    error_message: Optional[str] = None
    trace_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class RequesterContext(BaseModel):
    """Who asked for research and how to trace the request."""

    draft_id: Optional[UUID] = None
    user_id: Optional[str] = None
    correlation_id: Optional[str] = None


class VaultMatch(BaseModel):
    """Tier 1 hit: a distilled fact plus its parent source."""

    chunk_id: UUID
    source_id: UUID
    content: str
    title: str
    url: Optional[str] = None
    similarity: float = Field(..., ge=0.0, le=1.0)


class StagingMatch(BaseModel):
    """Tier 2 (or personalization) hit on a staging item."""

    item: PulseStagingItem
    similarity: float = Field(..., ge=0.0, le=1.0)
    rank_score: Optional[float] = Field(
        None, description="Authority-weighted score used for personalized ordering"
    )


class WebSearchResult(BaseModel):
    """Normalised result from the external web search provider."""

    title: str
    content: str
    url: str
    score: float = Field(default=0.0, ge=0.0)


class IngestResult(BaseModel):
    """Outcome of one ingest call."""

    source_id: UUID
    facts_count: int = Field(..., ge=0)
    duplicate: bool = False


class SweepResult(BaseModel):
    """Outcome of one harvest sweep."""

    category: str
    fetched_count: int = Field(default=0, ge=0)
    ingested_count: int = Field(default=0, ge=0)
    skipped_count: int = Field(default=0, ge=0)
    failed_count: int = Field(default=0, ge=0)


class ResearchResult(BaseModel):
    """Outcome of one research call."""

    topic: str
    sources: list[ResearchSource]
    status: DraftStatus = DraftStatus.WRITING
    used_web_search: bool = False
    draft_id: Optional[UUID] = None
    correlation_id: Optional[str] = None


class PulseSignal(BaseModel):
    """A staging item as presented on a user's personalized radar."""

    id: UUID
    title: str
    summary: str = ""
    url: Optional[str] = None
    source_name: str
    content_type: str
    authority_score: float
    usage_count: int = 0
    match_percentage: Optional[int] = Field(None, ge=0, le=100)
    is_high_value: bool = False


class MatchResult(BaseModel):
    """Outcome of matching signals for one user."""

    user_id: str
    signals: list[PulseSignal]
    is_fallback: bool = False


class DNAUpdateResult(BaseModel):
    """Outcome of a DNA resynchronization."""

    user_id: str
    success: bool = True
    refined_profile: str = ""
