"""Data models for collections, captures and exported rows."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CollectionDescriptor(BaseModel):
    """A collection entry from the collections configuration file.

    Only `uuid` and `include` drive the export; display fields such as
    `title` are kept as extra attributes.
    """
    model_config = ConfigDict(extra='allow', frozen=True)

    uuid: str = Field(..., min_length=1)
    include: bool = False


class CaptureRecord(BaseModel):
    """One digitized image record as listed by the Digital Collections API."""
    model_config = ConfigDict(extra='ignore')

    uuid: str
    collection_id: Optional[str] = None
    sequence_marker: str = ""  # API field "sortString"
    image_id: Optional[str] = None
    image_links: List[str] = Field(default_factory=list)
    title: Optional[str] = None

    @classmethod
    def from_api(cls, raw: Dict[str, Any]) -> "CaptureRecord":
        """Build a capture from the raw JSON of one `capture` entry.

        `imageLinks.imageLink` is a string when the capture has a single link
        and a list otherwise.
        """
        links: Any = (raw.get("imageLinks") or {}).get("imageLink") or []
        if isinstance(links, str):
            links = [links]

        return cls(
            uuid=raw["uuid"],
            sequence_marker=raw.get("sortString") or "",
            image_id=raw.get("imageID"),
            image_links=[str(link) for link in links],
            title=raw.get("title"),
        )


class ImageUrl(BaseModel):
    """An image URL at one size tier."""

    size: int
    url: str


class RowData(BaseModel):
    """Payload of an exported row; `location` and `date` are set by enrichment."""

    title: Optional[str] = None
    url: str
    image_id: Optional[str] = None
    image_urls: List[ImageUrl] = Field(default_factory=list)
    location: Optional[str] = None
    date: Optional[str] = None


class OutputRow(BaseModel):
    """One line of the export."""

    id: str
    collection_id: Optional[str] = None
    data: RowData
