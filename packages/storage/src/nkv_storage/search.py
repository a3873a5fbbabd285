"""Vector similarity query shared by the vault and staging stores.

Score semantics:
- pgvector `<=>` returns cosine distance in [0, 2]
- similarity = 1 - distance, clamped to [0, 1] (1 = identical direction)
- a threshold filters on similarity, a limit bounds the result count
"""

from dataclasses import dataclass

from nkv_contracts import EMBEDDING_DIM

# Personalized ordering blends similarity with source authority
SIMILARITY_WEIGHT = 0.85
AUTHORITY_WEIGHT = 0.15


@dataclass
class VectorQuery:
    """Similarity search parameters.

    Attributes:
        embedding: Query vector (768-dim)
        threshold: Minimum similarity a row must reach to be returned
        limit: Maximum number of results
    """

    embedding: list[float]
    threshold: float = 0.5
    limit: int = 10

    def __post_init__(self):
        if len(self.embedding) != EMBEDDING_DIM:
            raise ValueError(
                f"Embedding must be {EMBEDDING_DIM} dimensions, got {len(self.embedding)}"
            )
        if not 0.0 <= self.threshold <= 1.0:
            raise ValueError(f"threshold must be in [0, 1], got {self.threshold}")
        if self.limit < 1:
            raise ValueError(f"limit must be positive, got {self.limit}")


def clamp_similarity(value: float) -> float:
    """Clamp a raw 1 - distance value into [0, 1]."""
    return max(0.0, min(1.0, float(value)))


def weighted_rank(similarity: float, authority_score: float) -> float:
    """Blend similarity with authority (0-10 scale) for personalized ordering."""
    return SIMILARITY_WEIGHT * similarity + AUTHORITY_WEIGHT * (authority_score / 10.0)
