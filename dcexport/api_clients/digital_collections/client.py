"""Digital Collections API client.

Two endpoints are used:
- items/{collection_uuid}: paginated capture listing of a collection
- items/mods/{capture_uuid}: MODS descriptive metadata of one item

Every response is wrapped as {"nyplAPI": {"request": {...}, "response": {...}}}.
Single results come back as a bare object instead of a one-element list.

Usage:
------
async with DigitalCollectionsClient(token) as client:
    async for capture in client.iter_captures(collection_uuid):
        ...
    mods = await client.fetch_mods(capture.uuid)
"""

from typing import Any, AsyncIterator, Dict, List, Optional

import httpx

from dcexport.catalog.models import CaptureRecord
from dcexport.config import DEFAULT_API_BASE_URL
from dcexport.exceptions import CaptureFetchError, MetadataFetchError
from dcexport.utils.logger import LoggerManager

logger = LoggerManager.get_logger(__name__)


# =============================================================================
# Constants
# =============================================================================

DEFAULT_PAGE_SIZE = 500
USER_AGENT = "dcexport/1.0 (Digital Collections catalog export)"


# =============================================================================
# Response Parsing
# =============================================================================


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def parse_captures_page(body: Dict[str, Any]) -> List[CaptureRecord]:
    """Extract capture records from one listing page."""
    response = (body.get("nyplAPI") or {}).get("response") or {}
    captures = []
    for raw in _as_list(response.get("capture")):
        if not isinstance(raw, dict):
            raise ValueError(f"unexpected capture entry: {raw!r}")
        captures.append(CaptureRecord.from_api(raw))
    return captures


def parse_total_pages(body: Dict[str, Any]) -> Optional[int]:
    """Read `totalPages` from the request echo; the API sends it as a string."""
    request = (body.get("nyplAPI") or {}).get("request") or {}
    try:
        return int(request.get("totalPages"))
    except (TypeError, ValueError):
        return None


def parse_mods(body: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    response = (body.get("nyplAPI") or {}).get("response") or {}
    mods = response.get("mods")
    return mods if isinstance(mods, dict) else None


# =============================================================================
# HTTP Client
# =============================================================================


class DigitalCollectionsClient:
    """Async client for the Digital Collections API.

    Requests are not retried; the first failure is raised to the caller.
    """

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_API_BASE_URL,
        page_size: int = DEFAULT_PAGE_SIZE,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            token: API access token
            base_url: API root, without trailing slash
            page_size: Captures requested per listing page
            timeout: Request timeout in seconds (None disables timeouts)
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.page_size = page_size
        self._client = httpx.AsyncClient(
            headers={
                "Authorization": f'Token token="{token}"',
                "User-Agent": USER_AGENT,
                "Accept": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "DigitalCollectionsClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        response = await self._client.get(f"{self.base_url}/{path}", params=params)
        response.raise_for_status()
        body = response.json()
        if not isinstance(body, dict):
            raise ValueError(f"unexpected response body from {path}")
        return body

    async def iter_captures(self, collection_uuid: str) -> AsyncIterator[CaptureRecord]:
        """Yield every capture of a collection, page by page.

        Raises:
            CaptureFetchError: If any page cannot be fetched or decoded
        """
        page = 1
        while True:
            try:
                body = await self._get_json(
                    f"items/{collection_uuid}",
                    params={"page": page, "per_page": self.page_size},
                )
                captures = parse_captures_page(body)
            except (httpx.HTTPError, ValueError, KeyError) as e:
                logger.error(
                    "captures.fetch.fail",
                    extra={"extra_data": {
                        "collection": collection_uuid, "page": page, "error": str(e),
                    }},
                )
                raise CaptureFetchError.from_error(collection_uuid, page, e) from e

            total_pages = parse_total_pages(body)
            logger.debug(
                "captures.page",
                extra={"extra_data": {
                    "collection": collection_uuid,
                    "page": page,
                    "total_pages": total_pages,
                    "count": len(captures),
                }},
            )

            for capture in captures:
                yield capture

            if not captures or total_pages is None or page >= total_pages:
                return
            page += 1

    async def fetch_mods(self, uuid: str) -> Optional[Dict[str, Any]]:
        """Fetch the MODS document of an item.

        Returns:
            The MODS dict, or None when the response carries none

        Raises:
            MetadataFetchError: If the request fails or the body is not JSON
        """
        try:
            body = await self._get_json(f"items/mods/{uuid}")
        except (httpx.HTTPError, ValueError) as e:
            logger.error(
                "mods.fetch.fail",
                extra={"extra_data": {"capture_id": uuid, "error": str(e)}},
            )
            raise MetadataFetchError.from_error(uuid, e) from e
        return parse_mods(body)
