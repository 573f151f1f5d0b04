"""Pydantic models for the metadata enrichment pipeline."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict


class CachedMetadata(BaseModel):
    """Descriptive metadata extracted from a MODS document, as stored in the cache.

    Both fields are optional: a document without a geographic subject or a
    key date yields an empty entry, which is still cached.
    """
    model_config = ConfigDict(extra='ignore')

    location: Optional[str] = None
    date: Optional[str] = None

    def to_cache_value(self) -> str:
        return self.model_dump_json(exclude_none=True)

    @classmethod
    def from_cache_value(cls, value: str) -> "CachedMetadata":
        return cls.model_validate_json(value)


class EnrichmentStats(BaseModel):
    """Counters collected by the enricher during one run."""

    cache_hits: int = 0
    cache_misses: int = 0
    fetches: int = 0
    enriched: int = 0

    def as_log_data(self) -> Dict[str, Any]:
        return self.model_dump()
