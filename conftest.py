"""Shared test fixtures for the nkv repository.

Provides in-memory stand-ins that honour the store method contracts
(including content_hash uniqueness and atomic usage increments), plus
deterministic capability fakes:
- embedder: keyword subjects map to fixed axes, so similarity is exact
- llm: splits text into sentences as "facts"
- web_search: scripted results or failures
- handoff: records downstream notifications
"""

import asyncio
import hashlib
import math
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID, uuid4

import pytest
import structlog

from nkv_common import (
    DuplicateContentError,
    EmbeddingError,
    NotFoundError,
    PersistenceError,
    WebSearchError,
)
from nkv_contracts import (
    EMBEDDING_DIM,
    Draft,
    DraftStatus,
    KnowledgeChunk,
    KnowledgeSource,
    KnowledgeSourceSummary,
    PulseStagingItem,
    ResearchBacklogEntry,
    ResearchSource,
    SourceType,
    StagingMatch,
    UserInterestDNA,
    VaultMatch,
    WebSearchResult,
)

# Subjects the fake embedder recognises; each owns one axis
SUBJECT_AXES = {
    "fusion": 0,
    "graphene": 1,
    "crispr": 2,
    "quantum": 3,
    "climate": 4,
    "robot": 5,
    "transformer": 6,
    "vaccine": 7,
    "blockchain": 8,
    "exoplanet": 9,
}
_UNKNOWN_AXIS_START = 100


def _now() -> datetime:
    return datetime.now(timezone.utc)


def cosine(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


def subject_vector(text: str) -> list[float]:
    """Unit vector over the subjects named in text (a hashed axis otherwise)."""
    lowered = text.lower()
    vector = [0.0] * EMBEDDING_DIM
    hits = [axis for word, axis in SUBJECT_AXES.items() if word in lowered]
    if not hits:
        digest = int(hashlib.sha256(lowered.encode()).hexdigest(), 16)
        hits = [_UNKNOWN_AXIS_START + digest % (EMBEDDING_DIM - _UNKNOWN_AXIS_START)]
    for axis in hits:
        vector[axis] = 1.0
    norm = math.sqrt(len(hits))
    return [x / norm for x in vector]


class FakeEmbedder:
    """Deterministic embedder; texts containing a marker fail."""

    def __init__(self, fail_marker: Optional[str] = None):
        self.calls: list[str] = []
        self.fail_marker = fail_marker

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.fail_marker and self.fail_marker in text:
            raise EmbeddingError(f"cannot embed: {text[:20]}")
        return subject_vector(text)


class FakeLLM:
    """Sentences become facts; refine_profile echoes with a prefix."""

    extraction_method = "fake:sentences"

    def __init__(self, facts: Optional[list[str]] = None):
        self.facts = facts
        self.extract_calls = 0
        self.refine_calls: list[str] = []

    async def extract_facts(self, text: str) -> list[str]:
        self.extract_calls += 1
        if self.facts is not None:
            return list(self.facts)
        return [s.strip() + "." for s in text.split(".") if len(s.strip()) > 3]

    async def refine_profile(self, text: str) -> str:
        self.refine_calls.append(text)
        return f"Refined: {text.strip()}"

    async def close(self) -> None:
        pass


class InMemoryVault:
    """SourceStore + ChunkStore contract over dicts."""

    def __init__(self):
        self.sources: dict[UUID, KnowledgeSource] = {}
        self.chunks: dict[UUID, tuple[KnowledgeChunk, list[float]]] = {}
        self.fail_writes = False

    async def create(
        self,
        title: str,
        content_hash: str,
        source_type: SourceType,
        url: Optional[str] = None,
        is_public: bool = False,
        metadata: Optional[dict] = None,
        chunks: Optional[list[dict]] = None,
    ):
        if self.fail_writes:
            raise PersistenceError("vault unavailable")
        if any(s.content_hash == content_hash for s in self.sources.values()):
            raise DuplicateContentError(content_hash)
        source = KnowledgeSource(
            id=uuid4(),
            title=title,
            url=url,
            content_hash=content_hash,
            source_type=source_type,
            is_public=is_public,
            metadata=metadata or {},
            created_at=_now(),
        )
        self.sources[source.id] = source
        created = []
        for chunk_dict in chunks or []:
            chunk = KnowledgeChunk(
                id=uuid4(),
                source_id=source.id,
                content=chunk_dict["content"],
                token_count=chunk_dict.get("token_count", 0),
                created_at=_now(),
            )
            self.chunks[chunk.id] = (chunk, chunk_dict["embedding"])
            created.append(chunk)
        return source, created

    async def get_by_id(self, source_id: UUID) -> Optional[KnowledgeSource]:
        return self.sources.get(source_id)

    async def get_by_content_hash(self, content_hash: str) -> Optional[KnowledgeSource]:
        return next(
            (s for s in self.sources.values() if s.content_hash == content_hash), None
        )

    async def list_with_counts(self, limit: int = 100, offset: int = 0):
        ordered = sorted(self.sources.values(), key=lambda s: s.created_at, reverse=True)
        return [
            KnowledgeSourceSummary(source=s, chunk_count=await self.count_by_source(s.id))
            for s in ordered[offset : offset + limit]
        ]

    async def delete(self, source_id: UUID) -> bool:
        if source_id not in self.sources:
            return False
        del self.sources[source_id]
        self.chunks = {
            cid: pair for cid, pair in self.chunks.items() if pair[0].source_id != source_id
        }
        return True

    async def count_by_source(self, source_id: UUID) -> int:
        return sum(1 for chunk, _ in self.chunks.values() if chunk.source_id == source_id)

    async def list_by_source(self, source_id: UUID, limit: int = 500):
        return [c for c, _ in self.chunks.values() if c.source_id == source_id][:limit]

    async def search(self, query) -> list[VaultMatch]:
        scored = []
        for chunk, embedding in self.chunks.values():
            similarity = max(0.0, min(1.0, cosine(query.embedding, embedding)))
            if similarity >= query.threshold:
                source = self.sources[chunk.source_id]
                scored.append(
                    VaultMatch(
                        chunk_id=chunk.id,
                        source_id=source.id,
                        content=chunk.content,
                        title=source.title,
                        url=source.url,
                        similarity=similarity,
                    )
                )
        scored.sort(key=lambda m: m.similarity, reverse=True)
        return scored[: query.limit]


class InMemoryStaging:
    """StagingStore contract over a dict."""

    def __init__(self):
        self.items: dict[UUID, PulseStagingItem] = {}
        self.embeddings: dict[UUID, list[float]] = {}
        self.increment_calls = 0

    async def create_if_absent(
        self,
        content_hash: str,
        title: str,
        source_name: str,
        embedding: list[float],
        summary: str = "",
        url: Optional[str] = None,
        content_type: str = "paper",
        authority_score: float = 5.0,
        veracity_verified: bool = False,
        is_high_value: bool = False,
    ) -> Optional[PulseStagingItem]:
        if await self.exists_by_hash(content_hash):
            return None
        item = PulseStagingItem(
            id=uuid4(),
            content_hash=content_hash,
            title=title,
            summary=summary,
            url=url,
            source_name=source_name,
            content_type=content_type,
            authority_score=authority_score,
            veracity_verified=veracity_verified,
            is_high_value=is_high_value,
            created_at=_now(),
        )
        self.items[item.id] = item
        self.embeddings[item.id] = embedding
        return item

    async def add(self, title: str, summary: str = "", authority_score: float = 10.0, **kwargs):
        """Test helper: insert an item embedded from its title and summary."""
        return await self.create_if_absent(
            content_hash=hashlib.sha256(f"{title}{summary}".encode()).hexdigest(),
            title=title,
            summary=summary,
            source_name=kwargs.pop("source_name", "arXiv"),
            embedding=subject_vector(f"{title} {summary}"),
            authority_score=authority_score,
            **kwargs,
        )

    async def exists_by_hash(self, content_hash: str) -> bool:
        return any(i.content_hash == content_hash for i in self.items.values())

    async def get_by_ids(self, item_ids: list[UUID]) -> list[PulseStagingItem]:
        return [self.items[i].model_copy() for i in item_ids if i in self.items]

    async def increment_usage(self, item_ids: list[UUID]) -> int:
        self.increment_calls += 1
        await asyncio.sleep(0)
        updated = 0
        for item_id in set(item_ids):
            if item_id in self.items:
                item = self.items[item_id]
                self.items[item_id] = item.model_copy(update={"usage_count": item.usage_count + 1})
                updated += 1
        return updated

    async def list_top_authority(self, limit: int = 20) -> list[PulseStagingItem]:
        ordered = sorted(self.items.values(), key=lambda i: i.authority_score, reverse=True)
        return ordered[:limit]

    def _scored(self, query):
        for item_id, item in self.items.items():
            similarity = max(0.0, min(1.0, cosine(query.embedding, self.embeddings[item_id])))
            if similarity >= query.threshold:
                yield item, similarity

    async def search(self, query) -> list[StagingMatch]:
        matches = [StagingMatch(item=i, similarity=s) for i, s in self._scored(query)]
        matches.sort(key=lambda m: m.similarity, reverse=True)
        return matches[: query.limit]

    async def search_weighted(self, query) -> list[StagingMatch]:
        from nkv_storage.search import weighted_rank

        matches = [
            StagingMatch(item=i, similarity=s, rank_score=weighted_rank(s, i.authority_score))
            for i, s in self._scored(query)
        ]
        matches.sort(key=lambda m: m.rank_score, reverse=True)
        return matches[: query.limit]


class InMemoryDNA:
    """DNAStore contract over a dict."""

    def __init__(self):
        self.rows: dict[str, UserInterestDNA] = {}

    async def get(self, user_id: str) -> Optional[UserInterestDNA]:
        return self.rows.get(user_id)

    async def require(self, user_id: str) -> UserInterestDNA:
        if user_id not in self.rows:
            raise NotFoundError(f"No interest DNA for user {user_id}")
        return self.rows[user_id]

    async def upsert(self, user_id, dna_vector, professional_profile, negative_interests, expertise_level):
        dna = UserInterestDNA(
            user_id=user_id,
            dna_vector=dna_vector,
            professional_profile=professional_profile,
            negative_interests=negative_interests,
            expertise_level=expertise_level,
            last_updated=_now(),
        )
        self.rows[user_id] = dna
        return dna


class InMemoryBacklog:
    """BacklogStore contract over a list."""

    def __init__(self):
        self.entries: list[ResearchBacklogEntry] = []

    async def record(self, topic: str, metadata: Optional[dict[str, Any]] = None):
        entry = ResearchBacklogEntry(
            id=uuid4(), topic=topic, metadata=metadata or {}, created_at=_now()
        )
        self.entries.append(entry)
        return entry

    async def list_recent(self, limit: int = 50):
        return list(reversed(self.entries))[:limit]


class InMemoryDrafts:
    """DraftStore contract over a dict."""

    def __init__(self):
        self.rows: dict[UUID, Draft] = {}
        self.fail_writes = False

    async def create(self, topic: str, user_id: Optional[str] = None) -> Draft:
        now = _now()
        draft = Draft(id=uuid4(), user_id=user_id, topic=topic, created_at=now, updated_at=now)
        self.rows[draft.id] = draft
        return draft

    async def get(self, draft_id: UUID) -> Optional[Draft]:
        return self.rows.get(draft_id)

    async def save_research(
        self,
        draft_id: UUID,
        sources: list[ResearchSource],
        status: DraftStatus = DraftStatus.WRITING,
    ) -> Draft:
        if self.fail_writes:
            raise PersistenceError("drafts unavailable")
        if draft_id not in self.rows:
            raise PersistenceError(f"Draft {draft_id} does not exist")
        draft = self.rows[draft_id].model_copy(
            update={"sources": sources, "status": status, "error_message": None, "updated_at": _now()}
        )
        self.rows[draft_id] = draft
        return draft

    async def mark_failed(self, draft_id: UUID, error_message: str, trace_id: Optional[str] = None):
        if draft_id not in self.rows:
            return None
        draft = self.rows[draft_id].model_copy(
            update={
                "status": DraftStatus.FAILED,
                "error_message": error_message,
                "trace_id": trace_id,
                "updated_at": _now(),
            }
        )
        self.rows[draft_id] = draft
        return draft


class FakeWebSearch:
    """Scripted web search; set `error` to make every call fail."""

    def __init__(self, results: Optional[list[WebSearchResult]] = None):
        self.results = results or []
        self.error: Optional[Exception] = None
        self.calls: list[tuple[str, int]] = []

    async def search(self, query: str, max_results: int = 5) -> list[WebSearchResult]:
        self.calls.append((query, max_results))
        if self.error is not None:
            raise self.error
        return self.results[:max_results]


class FakeHandoff:
    """Records downstream notifications; optionally fails."""

    def __init__(self):
        self.notifications: list[dict] = []
        self.fail = False

    async def notify(self, draft_id, topic, sources, correlation_id=None) -> None:
        if self.fail:
            raise RuntimeError("downstream unavailable")
        self.notifications.append(
            {"draft_id": draft_id, "topic": topic, "sources": sources, "correlation_id": correlation_id}
        )


@pytest.fixture(autouse=True)
def _clear_log_context():
    yield
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def embedder():
    return FakeEmbedder()


@pytest.fixture
def llm():
    return FakeLLM()


@pytest.fixture
def vault():
    return InMemoryVault()


@pytest.fixture
def staging():
    return InMemoryStaging()


@pytest.fixture
def dna_store():
    return InMemoryDNA()


@pytest.fixture
def backlog():
    return InMemoryBacklog()


@pytest.fixture
def drafts():
    return InMemoryDrafts()


@pytest.fixture
def web_search():
    return FakeWebSearch()


@pytest.fixture
def failing_web_search():
    search = FakeWebSearch()
    search.error = WebSearchError("provider timed out")
    return search


@pytest.fixture
def handoff():
    return FakeHandoff()


@pytest.fixture
def web_result():
    """Factory for WebSearchResult objects."""

    def make(title: str, content: str, url: Optional[str] = None, score: float = 0.9):
        return WebSearchResult(
            title=title,
            content=content,
            url=url or f"https://example.com/{hashlib.md5(title.encode()).hexdigest()[:8]}",
            score=score,
        )

    return make
