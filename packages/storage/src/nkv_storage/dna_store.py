"""DNAStore - per-user interest vectors (user_interest_dna table)."""

from datetime import datetime, timezone
from typing import Optional

import asyncpg
from nkv_common import NotFoundError, PersistenceError, get_logger
from nkv_contracts import UserInterestDNA
from pgvector.asyncpg import register_vector

from nkv_storage.connection import get_connection_pool

logger = get_logger(__name__)


class DNAStore:
    """Storage operations for UserInterestDNA rows."""

    @staticmethod
    async def get(user_id: str) -> Optional[UserInterestDNA]:
        """Load a user's DNA, or None if they never configured interests."""
        pool = await get_connection_pool()

        try:
            async with pool.acquire() as conn:
                await register_vector(conn)

                row = await conn.fetchrow(
                    "SELECT * FROM user_interest_dna WHERE user_id = $1",
                    user_id,
                )

                if row is None:
                    return None

                return _row_to_dna(row)

        except Exception as e:
            logger.error("dna_get_failed", user_id=user_id, error=str(e))
            raise PersistenceError(f"Failed to load interest DNA: {e}") from e

    @staticmethod
    async def require(user_id: str) -> UserInterestDNA:
        """Load a user's DNA or raise NotFoundError."""
        dna = await DNAStore.get(user_id)
        if dna is None:
            raise NotFoundError(f"No interest DNA for user {user_id}")
        return dna

    @staticmethod
    async def upsert(
        user_id: str,
        dna_vector: list[float],
        professional_profile: str,
        negative_interests: list[str],
        expertise_level: int,
    ) -> UserInterestDNA:
        """Write the full row, replacing any previous state for the user.

        Raises:
            PersistenceError: If the write fails
        """
        pool = await get_connection_pool()

        try:
            async with pool.acquire() as conn:
                await register_vector(conn)

                row = await conn.fetchrow(
                    """
                    INSERT INTO user_interest_dna (
                        user_id, dna_vector, professional_profile,
                        negative_interests, expertise_level, last_updated
                    ) VALUES ($1, $2, $3, $4, $5, $6)
                    ON CONFLICT (user_id) DO UPDATE SET
                        dna_vector = EXCLUDED.dna_vector,
                        professional_profile = EXCLUDED.professional_profile,
                        negative_interests = EXCLUDED.negative_interests,
                        expertise_level = EXCLUDED.expertise_level,
                        last_updated = EXCLUDED.last_updated
                    RETURNING *
                    """,
                    user_id,
                    dna_vector,
                    professional_profile,
                    negative_interests,
                    expertise_level,
                    datetime.now(timezone.utc),
                )

                logger.info(
                    "dna_upserted",
                    user_id=user_id,
                    negative_interests=len(negative_interests),
                )
                return _row_to_dna(row)

        except Exception as e:
            logger.error("dna_upsert_failed", user_id=user_id, error=str(e))
            raise PersistenceError(f"Failed to upsert interest DNA: {e}") from e


def _row_to_dna(row: asyncpg.Record) -> UserInterestDNA:
    """Convert database row to UserInterestDNA model."""
    return UserInterestDNA(
        user_id=row["user_id"],
        dna_vector=[float(x) for x in row["dna_vector"]],
        professional_profile=row["professional_profile"],
        negative_interests=list(row["negative_interests"] or []),
        expertise_level=row["expertise_level"],
        last_updated=row["last_updated"],
    )
