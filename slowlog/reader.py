"""Generator-based line reading and fixed-size chunk windows."""

from itertools import dropwhile
from typing import Generator, Iterable


def read_lines(filepath: str) -> Generator[str, None, None]:
    """Yield lines of a UTF-8 file without their line terminators.

    Leading blank lines are skipped so chunk offsets match a trimmed input.
    Invalid UTF-8 bytes are replaced with U+FFFD.
    """
    with open(filepath, "r", encoding="utf-8", errors="replace") as f:
        for line in dropwhile(lambda l: not l.strip(), f):
            yield line.rstrip("\r\n")


def iter_chunks(
    lines: Iterable[str], chunk_size: int
) -> Generator[tuple[int, list[str]], None, None]:
    """Yield (line_offset, chunk) windows of at most chunk_size lines.

    Trailing blank lines are dropped; blank lines between records are kept so
    they still count toward the window they fall in.
    """
    if chunk_size < 1:
        raise ValueError("chunk_size must be positive")
    offset = 0
    pending_blank: list[str] = []
    window: list[str] = []
    for line in lines:
        if not line.strip():
            pending_blank.append(line)
            continue
        for item in pending_blank + [line]:
            window.append(item)
            if len(window) == chunk_size:
                yield offset, window
                offset += chunk_size
                window = []
        pending_blank = []
    if window:
        yield offset, window
