"""Metadata enrichment for exported captures.

Each exported row gets a `location` and a `date` taken from the item's MODS
document:

- cache: SQLite store of extracted metadata, keyed by capture uuid
- mods: extraction of candidate values and ranking (longest wins by default)
- enrichment_service: cache-or-fetch orchestration per row
"""

from dcexport.enrichment.cache import MetadataCache
from dcexport.enrichment.enrichment_service import MetadataEnricher
from dcexport.enrichment.models import CachedMetadata, EnrichmentStats
from dcexport.enrichment.mods import longest_value, mods_to_metadata

__all__ = [
    "CachedMetadata",
    "EnrichmentStats",
    "MetadataCache",
    "MetadataEnricher",
    "longest_value",
    "mods_to_metadata",
]
