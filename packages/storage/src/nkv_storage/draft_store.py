"""DraftStore - requester records research writes back onto (drafts table).

Status transitions: researching -> writing on success, researching ->
failed (with error_message and trace_id) on a fatal error.
"""

import json
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

import asyncpg
from nkv_common import PersistenceError, get_logger
from nkv_contracts import Draft, DraftStatus, ResearchSource

from nkv_storage.connection import get_connection_pool

logger = get_logger(__name__)


class DraftStore:
    """Storage operations for Draft records."""

    @staticmethod
    async def create(topic: str, user_id: Optional[str] = None) -> Draft:
        """Create a draft in the researching state."""
        pool = await get_connection_pool()
        now = datetime.now(timezone.utc)

        try:
            async with pool.acquire() as conn:
                await conn.set_type_codec(
                    "jsonb", encoder=json.dumps, decoder=json.loads, schema="pg_catalog"
                )

                row = await conn.fetchrow(
                    """
                    INSERT INTO drafts (
                        id, user_id, topic, status, sources, created_at, updated_at
                    ) VALUES ($1, $2, $3, $4, $5, $6, $7)
                    RETURNING *
                    """,
                    uuid4(),
                    user_id,
                    topic,
                    DraftStatus.RESEARCHING.value,
                    [],
                    now,
                    now,
                )

                logger.info("draft_created", draft_id=str(row["id"]), topic=topic)
                return _row_to_draft(row)

        except Exception as e:
            logger.error("draft_creation_failed", error=str(e))
            raise PersistenceError(f"Failed to create draft: {e}") from e

    @staticmethod
    async def get(draft_id: UUID) -> Optional[Draft]:
        """Retrieve a draft by id, or None."""
        pool = await get_connection_pool()

        try:
            async with pool.acquire() as conn:
                await conn.set_type_codec(
                    "jsonb", encoder=json.dumps, decoder=json.loads, schema="pg_catalog"
                )

                row = await conn.fetchrow("SELECT * FROM drafts WHERE id = $1", draft_id)
                return _row_to_draft(row) if row else None

        except Exception as e:
            logger.error("draft_get_failed", draft_id=str(draft_id), error=str(e))
            raise PersistenceError(f"Failed to retrieve draft: {e}") from e

    @staticmethod
    async def save_research(
        draft_id: UUID,
        sources: list[ResearchSource],
        status: DraftStatus = DraftStatus.WRITING,
    ) -> Draft:
        """Persist consolidated sources and advance the status.

        Raises:
            PersistenceError: If the draft does not exist or the write fails
        """
        pool = await get_connection_pool()
        payload = [source.model_dump(mode="json") for source in sources]

        try:
            async with pool.acquire() as conn:
                await conn.set_type_codec(
                    "jsonb", encoder=json.dumps, decoder=json.loads, schema="pg_catalog"
                )

                row = await conn.fetchrow(
                    """
                    UPDATE drafts
                    SET sources = $2, status = $3, error_message = NULL,
                        updated_at = $4
                    WHERE id = $1
                    RETURNING *
                    """,
                    draft_id,
                    payload,
                    status.value,
                    datetime.now(timezone.utc),
                )

        except Exception as e:
            logger.error("draft_save_research_failed", draft_id=str(draft_id), error=str(e))
            raise PersistenceError(f"Failed to save research: {e}") from e

        if row is None:
            raise PersistenceError(f"Draft {draft_id} does not exist")

        logger.info(
            "draft_research_saved",
            draft_id=str(draft_id),
            sources=len(sources),
            status=status.value,
        )
        return _row_to_draft(row)

    @staticmethod
    async def mark_failed(
        draft_id: UUID, error_message: str, trace_id: Optional[str] = None
    ) -> Optional[Draft]:
        """Record a fatal failure on the draft for operator visibility."""
        pool = await get_connection_pool()

        try:
            async with pool.acquire() as conn:
                await conn.set_type_codec(
                    "jsonb", encoder=json.dumps, decoder=json.loads, schema="pg_catalog"
                )

                row = await conn.fetchrow(
                    """
                    UPDATE drafts
                    SET status = $2, error_message = $3, trace_id = $4, updated_at = $5
                    WHERE id = $1
                    RETURNING *
                    """,
                    draft_id,
                    DraftStatus.FAILED.value,
                    error_message,
                    trace_id,
                    datetime.now(timezone.utc),
                )

                logger.warning(
                    "draft_marked_failed", draft_id=str(draft_id), trace_id=trace_id
                )
                return _row_to_draft(row) if row else None

        except Exception as e:
            logger.error("draft_mark_failed_failed", draft_id=str(draft_id), error=str(e))
            raise PersistenceError(f"Failed to mark draft failed: {e}") from e


def _row_to_draft(row: asyncpg.Record) -> Draft:
    return Draft(
        id=row["id"],
        user_id=row["user_id"],
        topic=row["topic"],
        status=DraftStatus(row["status"]),
        sources=[ResearchSource(**source) for source in (row["sources"] or [])],
        error_message=row["error_message"],
        trace_id=row["trace_id"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
