"""Error types for the knowledge vault pipeline.

Whole-operation failures propagate to the caller; batch-internal failures
(one fact, one harvested candidate) are logged and skipped by the caller.
"""


class NKVError(Exception):
    """Base exception for all nkv errors."""

    pass


class IngestionError(NKVError):
    """Error while refining raw text into the vault."""

    pass


class ContentTooShortError(IngestionError):
    """Text is too short to carry enough signal for distillation."""

    def __init__(self, length: int, minimum: int):
        self.length = length
        self.minimum = minimum
        super().__init__(
            f"Content too short: {length} characters, at least {minimum} required"
        )


class DistillationFailedError(IngestionError):
    """Fact distillation produced no usable facts."""

    pass


class EmbeddingError(IngestionError):
    """Error generating an embedding vector."""

    pass


class PersistenceError(NKVError):
    """Error during a database read or write."""

    pass


class DuplicateContentError(PersistenceError):
    """A row with the same content_hash already exists."""

    def __init__(self, content_hash: str, table: str = "knowledge_sources"):
        self.content_hash = content_hash
        self.table = table
        super().__init__(f"{table} row with content_hash '{content_hash}' already exists")


class SearchError(NKVError):
    """Error during vector similarity search."""

    pass


class NotFoundError(NKVError):
    """Requested record does not exist."""

    pass


class ResearchError(NKVError):
    """Error during a research request."""

    pass


class NoSourcesFoundError(ResearchError):
    """No tier produced any source for the topic."""

    def __init__(self, topic: str):
        self.topic = topic
        super().__init__(f"No sources found for topic: {topic}")


class WebSearchError(NKVError):
    """Error from the external web search provider."""

    pass
