"""Export pipeline: collections -> captures -> rows -> enrichment -> JSON Lines.

Rows are written in the order their captures were listed (collection order,
then capture order). Enrichment runs through `ordered_map`, so with the
default concurrency of 1 only one cache lookup or MODS fetch is outstanding
at any time. The first error aborts the run; rows already written stay.
"""

from contextlib import AsyncExitStack, aclosing
from pathlib import Path
from typing import AsyncIterator, Iterable, Optional

from pydantic import BaseModel

from dcexport.api_clients.digital_collections.client import DigitalCollectionsClient
from dcexport.catalog.captures import CaptureSource, iter_collection_captures
from dcexport.catalog.models import CollectionDescriptor, OutputRow
from dcexport.catalog.rows import build_row
from dcexport.config import ExportSettings
from dcexport.enrichment.cache import MetadataCache
from dcexport.enrichment.enrichment_service import MetadataEnricher, ModsFetcher
from dcexport.pipeline.sink import JsonLinesSink, open_sink
from dcexport.pipeline.worker import ordered_map
from dcexport.utils.logger import LoggerManager

logger = LoggerManager.get_logger(__name__)


class ExportSummary(BaseModel):
    """Outcome of a completed export run."""

    rows_written: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    fetches: int = 0
    cache_read_errors: int = 0
    total_cached: int = 0


async def iter_rows(
    source: CaptureSource,
    collections: Iterable[CollectionDescriptor],
    settings: ExportSettings,
) -> AsyncIterator[OutputRow]:
    """Row skeletons for every representative capture of the included collections."""
    async for capture in iter_collection_captures(source, collections):
        yield build_row(capture, settings.item_url_base, settings.image_host)


async def export_rows(
    source: CaptureSource,
    collections: Iterable[CollectionDescriptor],
    enricher: MetadataEnricher,
    sink: JsonLinesSink,
    settings: ExportSettings,
) -> int:
    """Stream enriched rows into the sink.

    Enrichments still in flight are cancelled before this returns, also
    when writing to the sink fails.

    Returns:
        Number of rows written
    """
    rows = iter_rows(source, collections, settings)
    async with aclosing(ordered_map(rows, enricher.enrich, settings.concurrency)) as results:
        async for row in results:
            sink.write(row)
    return sink.rows_written


async def run_export(
    collections: Iterable[CollectionDescriptor],
    token: str,
    settings: ExportSettings,
    output: Optional[Path] = None,
    client: Optional[CaptureSource] = None,
    fetch_mods: Optional[ModsFetcher] = None,
) -> ExportSummary:
    """Run a full export.

    The cache, the API client (when not injected) and the output file are
    opened here and released on every exit path.

    Args:
        collections: Collection descriptors, included or not
        token: Digital Collections API token
        settings: Export settings
        output: Output file; standard output when None
        client: Capture source to use instead of a new API client
        fetch_mods: MODS fetcher to use instead of the client's

    Returns:
        ExportSummary of the run

    Raises:
        ExportError: On the first unrecovered error
    """
    async with AsyncExitStack() as stack:
        if client is None:
            client = await stack.enter_async_context(
                DigitalCollectionsClient(
                    token,
                    base_url=settings.api_base_url,
                    page_size=settings.page_size,
                    timeout=settings.request_timeout,
                )
            )
        if fetch_mods is None:
            fetch_mods = client.fetch_mods

        cache = stack.enter_context(
            MetadataCache(settings.cache_path, strict_reads=settings.strict_cache_reads)
        )
        sink = stack.enter_context(open_sink(output))
        enricher = MetadataEnricher(cache, fetch_mods)

        logger.info(
            "export.start",
            extra={"extra_data": {
                "output": str(output) if output else "stdout",
                "cache": str(settings.cache_path),
                "concurrency": settings.concurrency,
            }},
        )
        try:
            rows_written = await export_rows(client, collections, enricher, sink, settings)
        except Exception:
            logger.error(
                "export.aborted",
                extra={"extra_data": {
                    "rows_written": sink.rows_written,
                    **enricher.stats.as_log_data(),
                }},
            )
            raise

        cache_stats = cache.stats()
        summary = ExportSummary(
            rows_written=rows_written,
            cache_hits=enricher.stats.cache_hits,
            cache_misses=enricher.stats.cache_misses,
            fetches=enricher.stats.fetches,
            cache_read_errors=cache_stats["read_errors"],
            total_cached=cache_stats["total_cached"],
        )
        logger.info("export.done", extra={"extra_data": summary.model_dump()})
        return summary
