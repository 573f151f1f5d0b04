"""Shared fixtures: an in-memory stand-in for the Digital Collections API."""

from typing import Any, Dict, Iterable, List, Optional

import httpx
import pytest

from dcexport.catalog.models import CaptureRecord
from dcexport.config import ExportSettings
from dcexport.exceptions import MetadataFetchError


class FakeDigitalCollections:
    """Serves captures and MODS documents from dicts and records every call."""

    def __init__(
        self,
        captures: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        mods: Optional[Dict[str, Optional[Dict[str, Any]]]] = None,
        failing_mods: Iterable[str] = (),
    ):
        self.captures = captures or {}
        self.mods = mods or {}
        self.failing_mods = set(failing_mods)
        self.capture_calls: List[str] = []
        self.mods_calls: List[str] = []

    async def iter_captures(self, collection_uuid: str):
        self.capture_calls.append(collection_uuid)
        for raw in self.captures.get(collection_uuid, []):
            yield CaptureRecord.from_api(raw)

    async def fetch_mods(self, uuid: str) -> Optional[Dict[str, Any]]:
        self.mods_calls.append(uuid)
        if uuid in self.failing_mods:
            raise MetadataFetchError.from_error(uuid, httpx.ConnectError("connection refused"))
        return self.mods.get(uuid)


def make_raw_capture(
    uuid: str,
    sort_string: str = "0000000001",
    image_id: str = "1234567",
    links: Optional[List[str]] = None,
    title: str = "View of the Bronx",
) -> Dict[str, Any]:
    """A capture as it appears in an items/{uuid} listing."""
    if links is None:
        links = [
            f"http://images.nypl.org/index.php?id={image_id}&t=w",
            f"http://images.nypl.org/index.php?id={image_id}&t=q",
        ]
    return {
        "uuid": uuid,
        "imageID": image_id,
        "sortString": sort_string,
        "title": title,
        "imageLinks": {"imageLink": links},
    }


BRONX_MODS = {
    "titleInfo": {"title": {"$": "View of the Bronx"}},
    "subject": [
        {"geographic": {"$": "Bronx"}},
        {"topic": {"$": "Streets"}},
        {"geographic": {"$": "Bronx, New York City, New York, United States"}},
    ],
    "originInfo": [
        {"dateCreated": {"$": "1915", "encoding": "w3cdtf", "keyDate": "yes"}},
        {"dateIssued": {"$": "ca. 1915-1920"}},
    ],
}


@pytest.fixture
def raw_capture():
    return make_raw_capture


@pytest.fixture
def fake_api():
    return FakeDigitalCollections


@pytest.fixture
def bronx_mods():
    return BRONX_MODS


@pytest.fixture
def settings(tmp_path):
    return ExportSettings(
        cache_path=tmp_path / "cache" / "mods_cache.db",
        collections_path=tmp_path / "collections.json",
    )
