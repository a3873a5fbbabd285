"""Personalization Matcher - ranks staging items against a user's DNA.

Users without an interest vector get the globally most authoritative
items instead (cold start); that path never raises for a missing DNA row.
"""

from typing import Optional

from nkv_common import NotFoundError, get_logger, get_settings, instrument_function
from nkv_contracts import MatchResult, PulseSignal, PulseStagingItem
from nkv_storage import DNAStore, StagingStore, VectorQuery

from nkv_pulse.normalize import contains_negative_interest

logger = get_logger(__name__)


def to_signal(
    item: PulseStagingItem,
    similarity: Optional[float],
    high_value_authority: float,
) -> PulseSignal:
    """Present a staging item as a radar signal."""
    return PulseSignal(
        id=item.id,
        title=item.title,
        summary=item.summary,
        url=item.url,
        source_name=item.source_name,
        content_type=item.content_type,
        authority_score=item.authority_score,
        usage_count=item.usage_count,
        match_percentage=round(similarity * 100) if similarity is not None else None,
        is_high_value=item.authority_score > high_value_authority,
    )


class PersonalizationMatcher:
    """Matches staging items to a user's interest vector."""

    def __init__(
        self,
        dna_store=DNAStore,
        staging_store=StagingStore,
        threshold: Optional[float] = None,
        limit: Optional[int] = None,
    ):
        settings = get_settings()
        self.dna_store = dna_store
        self.staging_store = staging_store
        self.threshold = threshold if threshold is not None else settings.personalization_threshold
        self.limit = limit or settings.signals_limit
        self.high_value_authority = settings.high_value_authority

    @instrument_function("match_signals")
    async def match_signals(self, user_id: str) -> MatchResult:
        """Personalized signals for one user.

        Returns:
            MatchResult; is_fallback=True when the user has no DNA yet
        """
        try:
            dna = await self.dna_store.require(user_id)
        except NotFoundError:
            trending = await self.staging_store.list_top_authority(limit=self.limit)
            logger.info("signals_cold_start", user_id=user_id, count=len(trending))
            return MatchResult(
                user_id=user_id,
                signals=[
                    to_signal(item, None, self.high_value_authority) for item in trending
                ],
                is_fallback=True,
            )

        matches = await self.staging_store.search_weighted(
            VectorQuery(embedding=dna.dna_vector, threshold=self.threshold, limit=self.limit)
        )

        signals = []
        suppressed = 0
        for match in matches:
            item = match.item
            if dna.negative_interests and contains_negative_interest(
                f"{item.title}\n{item.summary}", dna.negative_interests
            ):
                suppressed += 1
                continue
            signals.append(to_signal(item, match.similarity, self.high_value_authority))

        logger.info(
            "signals_matched",
            user_id=user_id,
            count=len(signals),
            suppressed=suppressed,
        )
        return MatchResult(user_id=user_id, signals=signals, is_fallback=False)
