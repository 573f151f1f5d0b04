"""Mapping captures to output rows."""

from typing import Dict, List

from dcexport.catalog.models import CaptureRecord, ImageUrl, OutputRow, RowData
from dcexport.config import DEFAULT_IMAGE_HOST, DEFAULT_ITEM_URL_BASE

# Size tag -> width in pixels: narrow, quarto, full.
SIZE_TIERS: Dict[str, int] = {
    "w": 760,
    "q": 1600,
    "v": 2560,
}
DEFAULT_SIZE_TAG = "w"
TAG_MARKER = "&t="


def image_url(image_id: str, tag: str, image_host: str = DEFAULT_IMAGE_HOST) -> str:
    return f"{image_host}?id={image_id}&t={tag}"


def get_image_urls(capture: CaptureRecord, image_host: str = DEFAULT_IMAGE_HOST) -> List[ImageUrl]:
    """List the size variants available for a capture.

    A tier is included when `&t=<tag>` appears in at least one of the
    capture's image links. Tagged links that match no tier yield an empty
    list. Only a capture without any tagged link gets the narrow tier on
    its own.
    """
    if any(TAG_MARKER in link for link in capture.image_links):
        return [
            ImageUrl(size=size, url=image_url(capture.image_id, tag, image_host))
            for tag, size in SIZE_TIERS.items()
            if any(f"{TAG_MARKER}{tag}" in link for link in capture.image_links)
        ]

    return [
        ImageUrl(
            size=SIZE_TIERS[DEFAULT_SIZE_TAG],
            url=image_url(capture.image_id, DEFAULT_SIZE_TAG, image_host),
        )
    ]


def build_row(
    capture: CaptureRecord,
    item_url_base: str = DEFAULT_ITEM_URL_BASE,
    image_host: str = DEFAULT_IMAGE_HOST,
) -> OutputRow:
    """Build the row skeleton for a capture; metadata fields are left unset."""
    return OutputRow(
        id=capture.uuid,
        collection_id=capture.collection_id,
        data=RowData(
            title=capture.title,
            url=f"{item_url_base}/{capture.uuid}",
            image_id=capture.image_id,
            image_urls=get_image_urls(capture, image_host),
        ),
    )
