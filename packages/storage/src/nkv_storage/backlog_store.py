"""BacklogStore - append-only coverage gaps (research_backlog table)."""

import json
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4

import asyncpg
from nkv_common import PersistenceError, get_logger
from nkv_contracts import ResearchBacklogEntry

from nkv_storage.connection import get_connection_pool

logger = get_logger(__name__)


class BacklogStore:
    """Write-mostly store; rows are consumed by harvest prioritization."""

    @staticmethod
    async def record(
        topic: str, metadata: Optional[dict[str, Any]] = None
    ) -> ResearchBacklogEntry:
        """Append a topic internal knowledge could not cover.

        Raises:
            PersistenceError: If the insert fails
        """
        pool = await get_connection_pool()

        try:
            async with pool.acquire() as conn:
                await conn.set_type_codec(
                    "jsonb", encoder=json.dumps, decoder=json.loads, schema="pg_catalog"
                )

                row = await conn.fetchrow(
                    """
                    INSERT INTO research_backlog (id, topic, metadata, created_at)
                    VALUES ($1, $2, $3, $4)
                    RETURNING *
                    """,
                    uuid4(),
                    topic,
                    metadata or {},
                    datetime.now(timezone.utc),
                )

                logger.info("backlog_recorded", topic=topic)
                return _row_to_entry(row)

        except Exception as e:
            logger.error("backlog_record_failed", topic=topic, error=str(e))
            raise PersistenceError(f"Failed to record backlog entry: {e}") from e

    @staticmethod
    async def list_recent(limit: int = 50) -> list[ResearchBacklogEntry]:
        """Most recent coverage gaps first."""
        pool = await get_connection_pool()

        try:
            async with pool.acquire() as conn:
                await conn.set_type_codec(
                    "jsonb", encoder=json.dumps, decoder=json.loads, schema="pg_catalog"
                )

                rows = await conn.fetch(
                    "SELECT * FROM research_backlog ORDER BY created_at DESC LIMIT $1",
                    limit,
                )
                return [_row_to_entry(row) for row in rows]

        except Exception as e:
            logger.error("backlog_list_failed", error=str(e))
            raise PersistenceError(f"Failed to list backlog: {e}") from e


def _row_to_entry(row: asyncpg.Record) -> ResearchBacklogEntry:
    return ResearchBacklogEntry(
        id=row["id"],
        topic=row["topic"],
        metadata=row["metadata"] or {},
        created_at=row["created_at"],
    )
