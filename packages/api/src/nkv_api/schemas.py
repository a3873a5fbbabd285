"""Pydantic schemas for API request/response models.

Domain results (IngestResult, ResearchResult, MatchResult, ...) are
returned as-is from nkv_contracts; only request bodies and composite
responses are defined here.
"""

from __future__ import annotations

from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from nkv_contracts import KnowledgeChunk, KnowledgeSource, KnowledgeSourceSummary, SourceType


# === Request Models ===


class IngestRequest(BaseModel):
    """Raw text to refine into the vault."""

    title: str = Field(..., min_length=1, description="Source title")
    text: str = Field(..., description="Raw text to distill")
    url: Optional[str] = Field(None, description="Canonical URL of the text")
    source_type: SourceType = Field(SourceType.ADMIN, description="How the text entered the vault")
    is_public: bool = Field(False, description="Visible to every user")
    metadata: dict[str, Any] = Field(default_factory=dict)


class VaultSearchRequest(BaseModel):
    """Operator search over distilled facts."""

    query: str = Field(..., min_length=1, description="Topic or question")
    threshold: float = Field(0.5, ge=0, le=1, description="Minimum similarity")
    limit: int = Field(10, ge=1, le=100, description="Maximum results")


class DraftCreateRequest(BaseModel):
    """New requester record."""

    topic: str = Field(..., min_length=1)
    user_id: Optional[str] = None


class ResearchRequest(BaseModel):
    """Research a topic, optionally onto an existing draft."""

    topic: str = Field(..., min_length=1, description="Subject to research")
    draft_id: Optional[UUID] = Field(None, description="Draft to write sources onto")
    user_id: Optional[str] = None
    selection_ids: Optional[list[UUID]] = Field(
        None, description="Staging items picked explicitly (skips semantic search)"
    )


class DNAUpdateRequest(BaseModel):
    """Free-text interest statement for one user."""

    profile_text: str = Field(..., min_length=1)
    expertise_level: int = Field(5, ge=1, le=10)
    negative_interests: list[str] = Field(default_factory=list)


# === Response Models ===


class SourceListResponse(BaseModel):
    """Paginated vault sources with chunk counts."""

    sources: list[KnowledgeSourceSummary]
    limit: int
    offset: int


class SourceWithChunks(BaseModel):
    """One vault source and its distilled facts."""

    source: KnowledgeSource
    chunks: list[KnowledgeChunk]
    chunk_count: int


class HealthCheck(BaseModel):
    """Health check response."""

    status: str = Field(..., description="healthy or degraded")
    version: str
    database: str = Field(..., description="connected or disconnected")


class ErrorResponse(BaseModel):
    """Body of every mapped error response."""

    error: str = Field(..., description="Error class name")
    detail: str
    trace_id: Optional[str] = None
