"""Vault-only search for operators.

Shows which distilled facts a topic would retrieve, with an adjustable
threshold, without touching staging, usage counts or web search.
"""

from nkv_contracts import VaultMatch
from nkv_storage import ChunkStore, VectorQuery


async def search_vault(
    embedder,
    query: str,
    threshold: float = 0.5,
    limit: int = 10,
    chunk_store=ChunkStore,
) -> list[VaultMatch]:
    """Embed a query and return matching vault facts, best first."""
    if not query or not query.strip():
        raise ValueError("query must not be empty")
    embedding = await embedder.embed(query)
    return await chunk_store.search(
        VectorQuery(embedding=embedding, threshold=threshold, limit=limit)
    )
