"""StagingStore - operations for the pulse_staging table.

Provides:
- Idempotent inserts keyed on content_hash (harvesting)
- Tier 2 and personalized vector search
- Atomic usage_count increments (the only post-creation mutation)
- Authority-ordered listing for the cold-start fallback
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

import asyncpg
from nkv_common import PersistenceError, SearchError, get_logger
from nkv_contracts import EMBEDDING_DIM, PulseStagingItem, StagingMatch
from pgvector.asyncpg import register_vector

from nkv_storage.connection import get_connection_pool
from nkv_storage.search import (
    AUTHORITY_WEIGHT,
    SIMILARITY_WEIGHT,
    VectorQuery,
    clamp_similarity,
    weighted_rank,
)

logger = get_logger(__name__)

# Every column except the embedding, which callers never need back
_COLUMNS = """
    id, content_hash, title, summary, url, source_name, content_type,
    authority_score, veracity_verified, is_high_value, usage_count,
    expires_at, created_at
"""


class StagingStore:
    """Storage operations for PulseStagingItem entities.

    All operations use the global connection pool.
    """

    @staticmethod
    async def create_if_absent(
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
        """Insert a staging item unless its content_hash is already present.

        usage_count starts at 0 and expires_at stays null.

        Returns:
            The created item, or None if the hash already existed

        Raises:
            PersistenceError: If the insert fails
        """
        pool = await get_connection_pool()

        try:
            async with pool.acquire() as conn:
                await register_vector(conn)

                row = await conn.fetchrow(
                    f"""
                    INSERT INTO pulse_staging (
                        id, content_hash, title, summary, url, source_name,
                        content_type, authority_score, veracity_verified,
                        embedding, is_high_value, usage_count, expires_at, created_at
                    ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, 0, NULL, $12)
                    ON CONFLICT (content_hash) DO NOTHING
                    RETURNING {_COLUMNS}
                    """,
                    uuid4(),
                    content_hash,
                    title,
                    summary,
                    url,
                    source_name,
                    content_type,
                    authority_score,
                    veracity_verified,
                    embedding,
                    is_high_value,
                    datetime.now(timezone.utc),
                )

                if row is None:
                    logger.debug("staging_item_exists", content_hash=content_hash)
                    return None

                logger.info(
                    "staging_item_created",
                    item_id=str(row["id"]),
                    source_name=source_name,
                )
                return _row_to_item(row)

        except Exception as e:
            logger.error("staging_item_creation_failed", error=str(e))
            raise PersistenceError(f"Failed to create staging item: {e}") from e

    @staticmethod
    async def exists_by_hash(content_hash: str) -> bool:
        """Check whether a staging item with this hash exists."""
        pool = await get_connection_pool()

        try:
            async with pool.acquire() as conn:
                return await conn.fetchval(
                    "SELECT EXISTS(SELECT 1 FROM pulse_staging WHERE content_hash = $1)",
                    content_hash,
                )

        except Exception as e:
            logger.error("staging_exists_check_failed", error=str(e))
            raise PersistenceError(f"Failed to check staging hash: {e}") from e

    @staticmethod
    async def get_by_ids(item_ids: list[UUID]) -> list[PulseStagingItem]:
        """Fetch items by id, returned in the order the ids were given.

        Unknown ids are silently absent from the result.
        """
        if not item_ids:
            return []

        pool = await get_connection_pool()

        try:
            async with pool.acquire() as conn:
                rows = await conn.fetch(
                    f"SELECT {_COLUMNS} FROM pulse_staging WHERE id = ANY($1::uuid[])",
                    item_ids,
                )

                by_id = {row["id"]: _row_to_item(row) for row in rows}
                return [by_id[item_id] for item_id in item_ids if item_id in by_id]

        except Exception as e:
            logger.error("staging_get_by_ids_failed", count=len(item_ids), error=str(e))
            raise PersistenceError(f"Failed to fetch staging items: {e}") from e

    @staticmethod
    async def increment_usage(item_ids: list[UUID]) -> int:
        """Atomically add one to usage_count for each id.

        A single UPDATE statement, so concurrent callers never lose an
        increment. Duplicate ids in the list count once.

        Returns:
            Number of rows updated
        """
        if not item_ids:
            return 0

        pool = await get_connection_pool()

        try:
            async with pool.acquire() as conn:
                result = await conn.execute(
                    """
                    UPDATE pulse_staging
                    SET usage_count = usage_count + 1
                    WHERE id = ANY($1::uuid[])
                    """,
                    list(set(item_ids)),
                )

                updated = int(result.split()[-1])
                logger.debug("staging_usage_incremented", updated=updated)
                return updated

        except Exception as e:
            logger.error("staging_usage_increment_failed", error=str(e))
            raise PersistenceError(f"Failed to increment usage: {e}") from e

    @staticmethod
    async def list_top_authority(limit: int = 20) -> list[PulseStagingItem]:
        """Items ordered by authority_score descending (newest first on ties)."""
        pool = await get_connection_pool()

        try:
            async with pool.acquire() as conn:
                rows = await conn.fetch(
                    f"""
                    SELECT {_COLUMNS} FROM pulse_staging
                    ORDER BY authority_score DESC, created_at DESC
                    LIMIT $1
                    """,
                    limit,
                )

                return [_row_to_item(row) for row in rows]

        except Exception as e:
            logger.error("staging_list_top_failed", error=str(e))
            raise PersistenceError(f"Failed to list staging items: {e}") from e

    @staticmethod
    async def search(query: VectorQuery) -> list[StagingMatch]:
        """Tier 2 search: items whose similarity meets the threshold.

        Raises:
            SearchError: If the query fails
        """
        pool = await get_connection_pool()

        sql = f"""
        SELECT {_COLUMNS},
            1 - (embedding <=> $1::vector({EMBEDDING_DIM})) AS similarity
        FROM pulse_staging
        WHERE embedding IS NOT NULL
          AND 1 - (embedding <=> $1::vector({EMBEDDING_DIM})) >= $2
        ORDER BY embedding <=> $1::vector({EMBEDDING_DIM}) ASC
        LIMIT $3
        """

        try:
            async with pool.acquire() as conn:
                await register_vector(conn)
                rows = await conn.fetch(sql, query.embedding, query.threshold, query.limit)

                return [
                    StagingMatch(
                        item=_row_to_item(row),
                        similarity=clamp_similarity(row["similarity"]),
                    )
                    for row in rows
                ]

        except Exception as e:
            logger.error("staging_search_failed", error=str(e))
            raise SearchError(f"Staging search failed: {e}") from e

    @staticmethod
    async def search_weighted(query: VectorQuery) -> list[StagingMatch]:
        """Personalized search ordered by similarity blended with authority.

        The threshold applies to raw similarity; the blend only reorders.

        Raises:
            SearchError: If the query fails
        """
        pool = await get_connection_pool()

        sql = f"""
        WITH scored AS (
            SELECT {_COLUMNS},
                1 - (embedding <=> $1::vector({EMBEDDING_DIM})) AS similarity
            FROM pulse_staging
            WHERE embedding IS NOT NULL
        )
        SELECT * FROM scored
        WHERE similarity >= $2
        ORDER BY {SIMILARITY_WEIGHT} * similarity
            + {AUTHORITY_WEIGHT} * (authority_score / 10.0) DESC
        LIMIT $3
        """

        try:
            async with pool.acquire() as conn:
                await register_vector(conn)
                rows = await conn.fetch(
                    sql,
                    query.embedding,
                    query.threshold,
                    query.limit,
                )

                matches = []
                for row in rows:
                    similarity = clamp_similarity(row["similarity"])
                    matches.append(
                        StagingMatch(
                            item=_row_to_item(row),
                            similarity=similarity,
                            rank_score=weighted_rank(similarity, row["authority_score"]),
                        )
                    )
                return matches

        except Exception as e:
            logger.error("staging_weighted_search_failed", error=str(e))
            raise SearchError(f"Personalized staging search failed: {e}") from e


def _row_to_item(row: asyncpg.Record) -> PulseStagingItem:
    """Convert database row to PulseStagingItem model (embedding not loaded)."""
    return PulseStagingItem(
        id=row["id"],
        content_hash=row["content_hash"],
        title=row["title"],
        summary=row["summary"],
        url=row["url"],
        source_name=row["source_name"],
        content_type=row["content_type"],
        authority_score=row["authority_score"],
        veracity_verified=row["veracity_verified"],
        is_high_value=row["is_high_value"],
        usage_count=row["usage_count"],
        expires_at=row["expires_at"],
        created_at=row["created_at"],
    )
