"""Harvester - scheduled sweep of the arXiv catalog into staging.

Each sweep:
1. Picks one category uniformly at random from the harvest taxonomy
2. Fetches a bounded, relevance-sorted batch of papers
3. Skips papers whose content hash is already staged
4. Embeds title + summary and inserts a new staging item

A failure on one paper is logged and counted; the sweep carries on.
"""

import random
from typing import Callable, Optional

from arxiv_client import ArxivClient, HarvestCategory, pick_category
from nkv_common import (
    NKVError,
    bind_correlation_id,
    compute_item_hash,
    get_logger,
    get_settings,
    instrument_function,
)
from nkv_contracts import SweepResult
from nkv_storage import StagingStore

from nkv_pulse.normalize import authority_for, clean_content

logger = get_logger(__name__)

SOURCE_NAME = "arXiv"
CONTENT_TYPE = "paper"


class Harvester:
    """Sweeps one random arXiv category into the staging store.

    Example:
        >>> harvester = Harvester(catalog_factory=client_factory(), embedder=get_embedding_client())
        >>> result = await harvester.sweep()
        >>> print(result.category, result.ingested_count)
    """

    def __init__(
        self,
        catalog_factory: Callable[[], ArxivClient],
        embedder,
        staging_store=StagingStore,
        batch_size: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ):
        """Initialize harvester.

        Args:
            catalog_factory: Returns a fresh catalog client (ArxivClient or
                compatible) for each sweep; clients are never shared
            embedder: Object providing async embed(text) -> vector
            staging_store: StagingStore or a compatible fake
            batch_size: Papers fetched per sweep (default: HARVEST_BATCH_SIZE setting)
            rng: Random source for category selection
        """
        self.catalog_factory = catalog_factory
        self.embedder = embedder
        self.staging_store = staging_store
        self.batch_size = batch_size or get_settings().harvest_batch_size
        self.rng = rng

    @instrument_function("sweep")
    async def sweep(
        self,
        category: Optional[HarvestCategory] = None,
        correlation_id: Optional[str] = None,
    ) -> SweepResult:
        """Run one sweep.

        Args:
            category: Force a category instead of a random pick
            correlation_id: Trace id for the run (generated if omitted)

        Returns:
            SweepResult with per-outcome counts
        """
        bind_correlation_id(correlation_id)
        category = category or pick_category(self.rng)
        logger.info("sweep_started", category=category.value, batch_size=self.batch_size)

        async with self.catalog_factory() as catalog:
            entries = await catalog.search_category(
                category, max_results=self.batch_size, sort_by="relevance"
            )

        result = SweepResult(category=category.value, fetched_count=len(entries))
        authority = authority_for(CONTENT_TYPE)

        for entry in entries:
            title = clean_content(entry.title)
            summary = clean_content(entry.summary)
            content_hash = compute_item_hash(title, entry.url)

            try:
                if await self.staging_store.exists_by_hash(content_hash):
                    result.skipped_count += 1
                    continue

                embedding = await self.embedder.embed(f"{title}\n\n{summary}")

                created = await self.staging_store.create_if_absent(
                    content_hash=content_hash,
                    title=title,
                    summary=summary,
                    url=entry.url,
                    source_name=SOURCE_NAME,
                    content_type=CONTENT_TYPE,
                    authority_score=authority,
                    veracity_verified=False,
                    embedding=embedding,
                    is_high_value=True,
                )
            except NKVError as e:
                logger.warning(
                    "sweep_item_failed", arxiv_id=entry.arxiv_id, error=str(e)
                )
                result.failed_count += 1
                continue

            if created is None:
                # Inserted by a concurrent sweep between the check and the insert
                result.skipped_count += 1
            else:
                result.ingested_count += 1

        logger.info(
            "sweep_complete",
            category=result.category,
            fetched=result.fetched_count,
            ingested=result.ingested_count,
            skipped=result.skipped_count,
            failed=result.failed_count,
        )
        return result
