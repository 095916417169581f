"""Incremental CSV sink — header-once appends and row-count rotation."""

import csv
import logging
import os
from typing import Iterable, Sequence

logger = logging.getLogger(__name__)

Row = Sequence[str]


def output_path(output_dir: str, prefix: str, kind: str, index: int | None = None) -> str:
    """Build <output_dir>/<prefix>_<kind>[_<index>].csv."""
    name = f"{prefix}_{kind}"
    if index is not None:
        name = f"{name}_{index}"
    return os.path.join(output_dir, name + ".csv")


def _needs_header(path: str) -> bool:
    try:
        os.stat(path)
    except FileNotFoundError:
        return True
    return False


def append_rows(path: str, header: Row, rows: Iterable[Row]) -> bool:
    """Append rows to path, prepending header only if the file does not exist.

    Never truncates existing content. Returns True if a header was written.
    """
    write_header = _needs_header(path)
    with open(path, "a", newline="", encoding="utf-8") as f:
        writer = csv.writer(f, lineterminator="\n")
        if write_header:
            writer.writerow(header)
        writer.writerows(rows)
    return write_header


def write_rows(path: str, header: Row, rows: Iterable[Row]):
    """Create or truncate path and write header plus rows."""
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f, lineterminator="\n")
        writer.writerow(header)
        writer.writerows(rows)


class RotatingCsvBuffer:
    """Buffers rows in memory and flushes them to numbered files.

    When the buffer reaches ``threshold`` rows it is appended to
    ``<prefix>_<kind>_<index>.csv`` and the index advances. ``close`` flushes
    any remainder once to the current index without advancing it.
    """

    def __init__(self, output_dir: str, prefix: str, kind: str, header: Row, threshold: int):
        if threshold < 1:
            raise ValueError("threshold must be positive")
        self._output_dir = output_dir
        self._prefix = prefix
        self._header = list(header)
        self._threshold = threshold
        self.kind = kind
        self._rows: list[list[str]] = []
        self._index = 0

    @property
    def index(self) -> int:
        """Index of the file the next flush goes to."""
        return self._index

    @property
    def pending_count(self) -> int:
        return len(self._rows)

    def current_path(self) -> str:
        return output_path(self._output_dir, self._prefix, self.kind, self._index)

    def add(self, row: Row) -> str | None:
        """Buffer a row. Returns the flushed path if the threshold was reached."""
        self._rows.append(list(row))
        if len(self._rows) < self._threshold:
            return None
        path = self._flush()
        self._index += 1
        logger.info("Rotated %s after %d rows: %s", self.kind, self._threshold, path)
        return path

    def close(self) -> str | None:
        """Flush remaining rows, if any. Returns the path written to."""
        if not self._rows:
            return None
        return self._flush()

    def _flush(self) -> str:
        path = self.current_path()
        header_written = append_rows(path, self._header, self._rows)
        logger.debug(
            "Flushed %d %s row(s) to %s (header=%s)",
            len(self._rows), self.kind, path, header_written,
        )
        self._rows = []
        return path
