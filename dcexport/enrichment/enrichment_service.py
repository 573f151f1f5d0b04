"""Metadata enrichment of exported rows.

For each row the enricher resolves `location` and `date`:
1. Check the cache by capture id
2. On a hit, merge the cached values; no network call
3. On a miss, fetch the MODS document, extract, store, then merge

Errors are not swallowed: a failed fetch raises MetadataFetchError and
nothing is cached; a failed write raises CacheWriteError.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional

from dcexport.catalog.models import OutputRow
from dcexport.enrichment.cache import MetadataCache
from dcexport.enrichment.models import CachedMetadata, EnrichmentStats
from dcexport.enrichment.mods import Ranker, longest_value, mods_to_metadata
from dcexport.utils.logger import LoggerManager

ModsFetcher = Callable[[str], Awaitable[Optional[Dict[str, Any]]]]


class MetadataEnricher:
    """Cache-or-fetch enrichment of output rows."""

    def __init__(
        self,
        cache: MetadataCache,
        fetch_mods: ModsFetcher,
        rank: Ranker = longest_value,
    ):
        """
        Args:
            cache: Open metadata cache
            fetch_mods: Coroutine returning the MODS document of a capture id
            rank: Picks one value among the candidates of a field
        """
        self.cache = cache
        self.fetch_mods = fetch_mods
        self.rank = rank
        self.stats = EnrichmentStats()
        self._in_flight: Dict[str, "asyncio.Task[CachedMetadata]"] = {}
        self.logger = LoggerManager.get_logger(__name__)

    async def enrich(self, row: OutputRow) -> OutputRow:
        """Set `location` and `date` on the row and return it."""
        metadata = self.cache.get(row.id)

        if metadata is None:
            self.stats.cache_misses += 1
            metadata = await self._shared_fetch(row.id)
        else:
            self.stats.cache_hits += 1
            self.logger.debug("cache.hit", extra={"extra_data": {"capture_id": row.id}})

        row.data.location = metadata.location
        row.data.date = metadata.date
        self.stats.enriched += 1
        return row

    async def _shared_fetch(self, capture_id: str) -> CachedMetadata:
        # Concurrent misses for one capture share a single fetch and write.
        task = self._in_flight.get(capture_id)
        if task is None:
            task = asyncio.ensure_future(self._fetch_and_store(capture_id))
            self._in_flight[capture_id] = task
            task.add_done_callback(lambda _: self._in_flight.pop(capture_id, None))
        else:
            self.logger.debug("fetch.shared", extra={"extra_data": {"capture_id": capture_id}})
        return await task

    async def _fetch_and_store(self, capture_id: str) -> CachedMetadata:
        self.logger.debug("cache.miss", extra={"extra_data": {"capture_id": capture_id}})

        self.stats.fetches += 1
        mods = await self.fetch_mods(capture_id)
        metadata = mods_to_metadata(mods, self.rank)

        self.cache.put(capture_id, metadata)
        self.logger.debug(
            "cache.stored",
            extra={"extra_data": {"capture_id": capture_id, **metadata.model_dump()}},
        )
        return metadata
