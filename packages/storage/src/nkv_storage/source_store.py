"""SourceStore - operations for the knowledge_sources table.

Provides:
- Atomic creation of a source together with its distilled chunks
- Retrieval by id or content hash (the ingestion dedup fast-path)
- Listing with chunk counts and cascading delete for vault administration
"""

import json
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

import asyncpg
from nkv_common import DuplicateContentError, PersistenceError, get_logger
from nkv_contracts import (
    KnowledgeChunk,
    KnowledgeSource,
    KnowledgeSourceSummary,
    SourceMetadata,
    SourceType,
)
from pgvector.asyncpg import register_vector

from nkv_storage.chunk_store import insert_chunks
from nkv_storage.connection import get_connection_pool

logger = get_logger(__name__)


class SourceStore:
    """Storage operations for KnowledgeSource entities.

    All operations use the global connection pool.
    """

    @staticmethod
    async def create(
        title: str,
        content_hash: str,
        source_type: SourceType,
        url: Optional[str] = None,
        is_public: bool = False,
        metadata: Optional[SourceMetadata] = None,
        chunks: Optional[list[dict]] = None,
    ) -> tuple[KnowledgeSource, list[KnowledgeChunk]]:
        """Create a source and its chunks in one transaction.

        Args:
            title: Source title
            content_hash: SHA256 of the raw text (must be unique)
            source_type: web, admin or user_contribution
            url: Canonical URL if the text came from the web
            is_public: Whether the knowledge may serve other users
            metadata: Extensible JSONB metadata (e.g. correlation_id)
            chunks: Dicts with keys content, embedding, token_count

        Returns:
            Created source and its created chunks

        Raises:
            DuplicateContentError: If content_hash already exists
            PersistenceError: If creation fails
        """
        pool = await get_connection_pool()
        source_id = uuid4()
        now = datetime.now(timezone.utc)

        try:
            async with pool.acquire() as conn:
                await register_vector(conn)
                await conn.set_type_codec(
                    "jsonb", encoder=json.dumps, decoder=json.loads, schema="pg_catalog"
                )

                async with conn.transaction():
                    row = await conn.fetchrow(
                        """
                        INSERT INTO knowledge_sources (
                            id, title, url, content_hash, source_type,
                            is_public, metadata, created_at
                        ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
                        RETURNING *
                        """,
                        source_id,
                        title,
                        url,
                        content_hash,
                        source_type.value,
                        is_public,
                        metadata or {},
                        now,
                    )
                    created_chunks = await insert_chunks(conn, source_id, chunks or [])

                logger.info(
                    "source_created",
                    source_id=str(source_id),
                    source_type=source_type.value,
                    chunks=len(created_chunks),
                )

                return _row_to_source(row), created_chunks

        except asyncpg.UniqueViolationError as e:
            logger.warning("source_creation_duplicate", content_hash=content_hash)
            raise DuplicateContentError(content_hash) from e
        except Exception as e:
            logger.error("source_creation_failed", error=str(e))
            raise PersistenceError(f"Failed to create source: {e}") from e

    @staticmethod
    async def get_by_id(source_id: UUID) -> Optional[KnowledgeSource]:
        """Retrieve source by ID.

        Returns:
            KnowledgeSource if found, None otherwise
        """
        pool = await get_connection_pool()

        try:
            async with pool.acquire() as conn:
                await conn.set_type_codec(
                    "jsonb", encoder=json.dumps, decoder=json.loads, schema="pg_catalog"
                )

                row = await conn.fetchrow(
                    "SELECT * FROM knowledge_sources WHERE id = $1",
                    source_id,
                )

                if row is None:
                    return None

                return _row_to_source(row)

        except Exception as e:
            logger.error("source_get_failed", source_id=str(source_id), error=str(e))
            raise PersistenceError(f"Failed to retrieve source: {e}") from e

    @staticmethod
    async def get_by_content_hash(content_hash: str) -> Optional[KnowledgeSource]:
        """Retrieve source by content hash.

        Used by ingestion to short-circuit already-known text.

        Returns:
            KnowledgeSource if found, None otherwise
        """
        pool = await get_connection_pool()

        try:
            async with pool.acquire() as conn:
                await conn.set_type_codec(
                    "jsonb", encoder=json.dumps, decoder=json.loads, schema="pg_catalog"
                )

                row = await conn.fetchrow(
                    "SELECT * FROM knowledge_sources WHERE content_hash = $1",
                    content_hash,
                )

                if row is None:
                    return None

                return _row_to_source(row)

        except Exception as e:
            logger.error(
                "source_get_by_hash_failed", content_hash=content_hash, error=str(e)
            )
            raise PersistenceError(f"Failed to retrieve source by hash: {e}") from e

    @staticmethod
    async def list_with_counts(
        limit: int = 100, offset: int = 0
    ) -> list[KnowledgeSourceSummary]:
        """List sources newest first, each with its chunk count."""
        pool = await get_connection_pool()

        try:
            async with pool.acquire() as conn:
                await conn.set_type_codec(
                    "jsonb", encoder=json.dumps, decoder=json.loads, schema="pg_catalog"
                )

                rows = await conn.fetch(
                    """
                    SELECT s.*, COUNT(c.id) AS chunk_count
                    FROM knowledge_sources s
                    LEFT JOIN knowledge_chunks c ON c.source_id = s.id
                    GROUP BY s.id
                    ORDER BY s.created_at DESC
                    LIMIT $1 OFFSET $2
                    """,
                    limit,
                    offset,
                )

                return [
                    KnowledgeSourceSummary(
                        source=_row_to_source(row), chunk_count=row["chunk_count"]
                    )
                    for row in rows
                ]

        except Exception as e:
            logger.error("source_list_failed", error=str(e))
            raise PersistenceError(f"Failed to list sources: {e}") from e

    @staticmethod
    async def delete(source_id: UUID) -> bool:
        """Delete a source; its chunks go with it (ON DELETE CASCADE).

        Returns:
            True if a row was deleted, False if it did not exist
        """
        pool = await get_connection_pool()

        try:
            async with pool.acquire() as conn:
                result = await conn.execute(
                    "DELETE FROM knowledge_sources WHERE id = $1",
                    source_id,
                )

                deleted = result == "DELETE 1"
                if deleted:
                    logger.info("source_deleted", source_id=str(source_id))
                return deleted

        except Exception as e:
            logger.error("source_delete_failed", source_id=str(source_id), error=str(e))
            raise PersistenceError(f"Failed to delete source: {e}") from e


def _row_to_source(row: asyncpg.Record) -> KnowledgeSource:
    """Convert database row to KnowledgeSource model."""
    return KnowledgeSource(
        id=row["id"],
        title=row["title"],
        url=row["url"],
        content_hash=row["content_hash"],
        source_type=SourceType(row["source_type"]),
        is_public=row["is_public"],
        metadata=row["metadata"] or {},
        created_at=row["created_at"],
    )
