"""JSON Lines output of exported rows."""

import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, TextIO

from dcexport.catalog.models import OutputRow


def serialize_row(row: OutputRow) -> str:
    """Compact JSON for one row; unset fields (e.g. a missing date) are omitted."""
    return row.model_dump_json(exclude_none=True)


class JsonLinesSink:
    """Writes one serialized row per line to a text stream."""

    def __init__(self, stream: TextIO):
        self.stream = stream
        self.rows_written = 0

    def write(self, row: OutputRow) -> None:
        self.stream.write(serialize_row(row) + "\n")
        self.rows_written += 1


@contextmanager
def open_sink(path: Optional[Path] = None) -> Iterator[JsonLinesSink]:
    """Sink writing to `path`, or to standard output when no path is given.

    A file is created (with missing parent directories) and closed on exit;
    standard output is flushed but left open.
    """
    if path is None:
        try:
            yield JsonLinesSink(sys.stdout)
        finally:
            sys.stdout.flush()
        return

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yield JsonLinesSink(f)
