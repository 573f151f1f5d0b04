"""Exceptions raised by the export pipeline.

Every error that aborts an export derives from ExportError, so the CLI can
catch one type and exit non-zero.
"""

from pathlib import Path
from typing import Optional


class ExportError(Exception):
    """Base class for fatal export errors.

    Attributes:
        original_error: The lower-level exception that caused this one, if any.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.original_error = original_error


class ConfigurationError(ExportError):
    """Raised when the collection list, settings or access token are unusable."""

    @classmethod
    def from_missing_file(cls, path: Path) -> "ConfigurationError":
        return cls(f"Configuration file not found: {path}")

    @classmethod
    def from_invalid_content(
        cls, path: Path, reason: str, error: Optional[Exception] = None
    ) -> "ConfigurationError":
        return cls(f"Invalid configuration in {path}: {reason}", original_error=error)

    @classmethod
    def from_missing_token(cls) -> "ConfigurationError":
        message = (
            "No Digital Collections API token provided.\n\n"
            "Pass --token/-t or set the DIGITAL_COLLECTIONS_TOKEN environment variable."
        )
        return cls(message)


class CaptureFetchError(ExportError):
    """Raised when a page of captures cannot be fetched for a collection."""

    def __init__(
        self,
        message: str,
        collection_uuid: str,
        page: int,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message, original_error=original_error)
        self.collection_uuid = collection_uuid
        self.page = page

    @classmethod
    def from_error(cls, collection_uuid: str, page: int, error: Exception) -> "CaptureFetchError":
        message = (
            f"Failed to fetch captures page {page} of collection {collection_uuid}: "
            f"{type(error).__name__}: {error}"
        )
        return cls(message, collection_uuid, page, original_error=error)


class MetadataFetchError(ExportError):
    """Raised when the MODS document of a capture cannot be fetched."""

    def __init__(self, message: str, capture_id: str, original_error: Optional[Exception] = None):
        super().__init__(message, original_error=original_error)
        self.capture_id = capture_id

    @classmethod
    def from_error(cls, capture_id: str, error: Exception) -> "MetadataFetchError":
        message = (
            f"Failed to fetch MODS metadata for {capture_id}: "
            f"{type(error).__name__}: {error}"
        )
        return cls(message, capture_id, original_error=error)


class CacheReadError(ExportError):
    """Raised in strict mode when a cache lookup fails for a reason other than a miss."""

    def __init__(self, message: str, capture_id: str, original_error: Optional[Exception] = None):
        super().__init__(message, original_error=original_error)
        self.capture_id = capture_id


class CacheWriteError(ExportError):
    """Raised when freshly extracted metadata cannot be persisted."""

    def __init__(self, message: str, capture_id: str, original_error: Optional[Exception] = None):
        super().__init__(message, original_error=original_error)
        self.capture_id = capture_id
