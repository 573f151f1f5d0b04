"""Capture selection: one representative capture per item, tagged with its collection."""

import re
from typing import AsyncIterator, Iterable, Protocol

from dcexport.catalog.collections import select_collections
from dcexport.catalog.models import CaptureRecord, CollectionDescriptor
from dcexport.utils.logger import LoggerManager

logger = LoggerManager.get_logger(__name__)

# The first capture of a multi-capture item (usually its cover).
REPRESENTATIVE_PATTERN = re.compile(r"0000000001$")


class CaptureSource(Protocol):
    """Anything that can list the captures of a collection."""

    def iter_captures(self, collection_uuid: str) -> AsyncIterator[CaptureRecord]:
        ...


def is_representative(capture: CaptureRecord) -> bool:
    return bool(REPRESENTATIVE_PATTERN.search(capture.sequence_marker or ""))


async def collection_captures(
    source: CaptureSource,
    collection: CollectionDescriptor,
) -> AsyncIterator[CaptureRecord]:
    """Yield the representative captures of one collection.

    Each yielded capture has `collection_id` set to the collection's uuid.
    Fetch errors from the source propagate unchanged.
    """
    seen = kept = 0
    async for capture in source.iter_captures(collection.uuid):
        seen += 1
        if not is_representative(capture):
            continue
        kept += 1
        yield capture.model_copy(update={"collection_id": collection.uuid})

    logger.info(
        "collection.done",
        extra={"extra_data": {"collection": collection.uuid, "captures": seen, "kept": kept}},
    )


async def iter_collection_captures(
    source: CaptureSource,
    collections: Iterable[CollectionDescriptor],
) -> AsyncIterator[CaptureRecord]:
    """Flatten representative captures of every included collection, in order."""
    for collection in select_collections(collections):
        logger.info("collection.start", extra={"extra_data": {"collection": collection.uuid}})
        async for capture in collection_captures(source, collection):
            yield capture
