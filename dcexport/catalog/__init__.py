from dcexport.catalog.collections import load_collections, select_collections
from dcexport.catalog.models import (
    CaptureRecord,
    CollectionDescriptor,
    ImageUrl,
    OutputRow,
    RowData,
)
from dcexport.catalog.rows import build_row, get_image_urls

__all__ = [
    "CaptureRecord",
    "CollectionDescriptor",
    "ImageUrl",
    "OutputRow",
    "RowData",
    "build_row",
    "get_image_urls",
    "load_collections",
    "select_collections",
]
