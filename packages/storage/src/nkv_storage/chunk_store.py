"""ChunkStore - operations for the knowledge_chunks table.

Chunks are written once, inside the transaction that creates their
source, and read back by source or by vector similarity (Tier 1).
"""

from datetime import datetime, timezone
from uuid import UUID, uuid4

import asyncpg
from nkv_common import PersistenceError, SearchError, get_logger
from nkv_contracts import EMBEDDING_DIM, KnowledgeChunk, VaultMatch
from pgvector.asyncpg import register_vector

from nkv_storage.connection import get_connection_pool
from nkv_storage.search import VectorQuery, clamp_similarity

logger = get_logger(__name__)


async def insert_chunks(
    conn: asyncpg.Connection, source_id: UUID, chunks_data: list[dict]
) -> list[KnowledgeChunk]:
    """Insert chunk rows on an open connection (caller owns the transaction).

    Args:
        conn: Connection with the vector codec registered
        source_id: Owning source
        chunks_data: Dicts with keys content, embedding, token_count
    """
    now = datetime.now(timezone.utc)
    created = []

    for chunk_dict in chunks_data:
        row = await conn.fetchrow(
            """
            INSERT INTO knowledge_chunks (
                id, source_id, content, embedding, token_count, created_at
            ) VALUES ($1, $2, $3, $4, $5, $6)
            RETURNING id, source_id, content, token_count, created_at
            """,
            uuid4(),
            source_id,
            chunk_dict["content"],
            chunk_dict["embedding"],
            chunk_dict.get("token_count", 0),
            now,
        )
        created.append(_row_to_chunk(row))

    return created


class ChunkStore:
    """Storage operations for KnowledgeChunk entities.

    All operations use the global connection pool.
    """

    @staticmethod
    async def list_by_source(source_id: UUID, limit: int = 500) -> list[KnowledgeChunk]:
        """List chunks of a source in insertion order (embeddings omitted)."""
        pool = await get_connection_pool()

        try:
            async with pool.acquire() as conn:
                rows = await conn.fetch(
                    """
                    SELECT id, source_id, content, token_count, created_at
                    FROM knowledge_chunks
                    WHERE source_id = $1
                    ORDER BY created_at, id
                    LIMIT $2
                    """,
                    source_id,
                    limit,
                )

                return [_row_to_chunk(row) for row in rows]

        except Exception as e:
            logger.error(
                "chunk_list_by_source_failed", source_id=str(source_id), error=str(e)
            )
            raise PersistenceError(f"Failed to list chunks: {e}") from e

    @staticmethod
    async def count_by_source(source_id: UUID) -> int:
        """Count chunks belonging to a source."""
        pool = await get_connection_pool()

        try:
            async with pool.acquire() as conn:
                return await conn.fetchval(
                    "SELECT COUNT(*) FROM knowledge_chunks WHERE source_id = $1",
                    source_id,
                )

        except Exception as e:
            logger.error("chunk_count_failed", source_id=str(source_id), error=str(e))
            raise PersistenceError(f"Failed to count chunks: {e}") from e

    @staticmethod
    async def search(query: VectorQuery) -> list[VaultMatch]:
        """Tier 1 search: facts whose similarity meets the threshold.

        Results are ordered by similarity descending and carry the parent
        source's title and url.

        Raises:
            SearchError: If the query fails
        """
        pool = await get_connection_pool()

        sql = f"""
        SELECT
            c.id AS chunk_id, c.source_id, c.content,
            s.title, s.url,
            1 - (c.embedding <=> $1::vector({EMBEDDING_DIM})) AS similarity
        FROM knowledge_chunks c
        JOIN knowledge_sources s ON s.id = c.source_id
        WHERE 1 - (c.embedding <=> $1::vector({EMBEDDING_DIM})) >= $2
        ORDER BY c.embedding <=> $1::vector({EMBEDDING_DIM}) ASC
        LIMIT $3
        """

        try:
            async with pool.acquire() as conn:
                await register_vector(conn)
                rows = await conn.fetch(sql, query.embedding, query.threshold, query.limit)

                return [
                    VaultMatch(
                        chunk_id=row["chunk_id"],
                        source_id=row["source_id"],
                        content=row["content"],
                        title=row["title"],
                        url=row["url"],
                        similarity=clamp_similarity(row["similarity"]),
                    )
                    for row in rows
                ]

        except Exception as e:
            logger.error("vault_search_failed", error=str(e))
            raise SearchError(f"Vault search failed: {e}") from e


def _row_to_chunk(row: asyncpg.Record) -> KnowledgeChunk:
    """Convert database row to KnowledgeChunk model (embedding not loaded)."""
    return KnowledgeChunk(
        id=row["id"],
        source_id=row["source_id"],
        content=row["content"],
        token_count=row["token_count"],
        created_at=row["created_at"],
    )
