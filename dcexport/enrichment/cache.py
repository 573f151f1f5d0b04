"""SQLite cache of extracted MODS metadata.

Entries are keyed by capture uuid and never expire. The cache is a scoped
resource: open it once per run and close it on every exit path, preferably
with a `with` block.

Usage:
------
with MetadataCache(Path("data/cache/mods_cache.db")) as cache:
    cached = cache.get(capture_id)
    if cached is None:
        cache.put(capture_id, metadata)
"""

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError

from dcexport.enrichment.models import CachedMetadata
from dcexport.exceptions import CacheReadError, CacheWriteError
from dcexport.utils.logger import LoggerManager

SCHEMA = """
CREATE TABLE IF NOT EXISTS mods_cache (
    capture_id TEXT PRIMARY KEY,
    metadata TEXT NOT NULL,
    fetched_at TEXT NOT NULL
);
"""


class MetadataCache:
    """Persistent key-value store of CachedMetadata.

    Attributes:
        db_path: Path to SQLite database file
        strict_reads: If True, storage errors on lookup raise CacheReadError;
            otherwise they are logged and reported as a miss
    """

    def __init__(self, db_path: Path, strict_reads: bool = False):
        self.db_path = Path(db_path)
        self.strict_reads = strict_reads
        self.read_errors = 0
        self._conn: Optional[sqlite3.Connection] = None
        self.logger = LoggerManager.get_logger(__name__)

    def __enter__(self) -> "MetadataCache":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("MetadataCache is not open")
        return self._conn

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def open(self) -> None:
        """Open the database, creating it and its schema if needed."""
        if self._conn is not None:
            return
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self.db_path))
        self._conn.executescript(SCHEMA)
        self._conn.commit()
        self.logger.info("cache.opened", extra={"extra_data": {"db_path": str(self.db_path)}})

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None
            self.logger.info("cache.closed", extra={"extra_data": {"db_path": str(self.db_path)}})

    def get(self, capture_id: str) -> Optional[CachedMetadata]:
        """Look up the cached metadata of a capture.

        Returns:
            CachedMetadata, or None on a miss. In lenient mode an unreadable
            entry or a storage error is also reported as None.

        Raises:
            CacheReadError: In strict mode, on anything other than a miss
        """
        try:
            row = self.conn.execute(
                "SELECT metadata FROM mods_cache WHERE capture_id = ?",
                (capture_id,),
            ).fetchone()
            if row is None:
                return None
            return CachedMetadata.from_cache_value(row[0])
        except (sqlite3.Error, ValidationError) as e:
            if self.strict_reads:
                raise CacheReadError(
                    f"Cache lookup failed for {capture_id}: {e}", capture_id, original_error=e
                ) from e
            self.read_errors += 1
            self.logger.warning(
                "cache.read.fail",
                extra={"extra_data": {"capture_id": capture_id, "error": str(e)}},
            )
            return None

    def put(self, capture_id: str, metadata: CachedMetadata) -> None:
        """Store metadata for a capture and commit.

        Raises:
            CacheWriteError: If the write or commit fails
        """
        fetched_at = datetime.now(timezone.utc).isoformat()
        try:
            self.conn.execute(
                "INSERT OR REPLACE INTO mods_cache (capture_id, metadata, fetched_at) "
                "VALUES (?, ?, ?)",
                (capture_id, metadata.to_cache_value(), fetched_at),
            )
            self.conn.commit()
        except sqlite3.Error as e:
            self.logger.error(
                "cache.write.fail",
                extra={"extra_data": {"capture_id": capture_id, "error": str(e)}},
            )
            raise CacheWriteError(
                f"Cache write failed for {capture_id}: {e}", capture_id, original_error=e
            ) from e

    def stats(self) -> Dict[str, Any]:
        """Number of cached entries and the database location."""
        total = self.conn.execute("SELECT COUNT(*) FROM mods_cache").fetchone()[0]
        return {
            "db_path": str(self.db_path),
            "total_cached": total,
            "read_errors": self.read_errors,
        }
