"""Record parser — one NDJSON line into a loosely-typed dict."""

import json
import logging
import math

logger = logging.getLogger(__name__)


def _reject_constant(name: str):
    raise ValueError(f"non-standard JSON constant: {name}")


def _parse_finite_float(text: str) -> float:
    value = float(text)
    if math.isinf(value):
        raise ValueError(f"number out of range: {text}")
    return value


def parse_line(line: str) -> dict | None:
    """Decode one line as a JSON object. Returns None for anything else.

    NaN, Infinity and out-of-range numbers are not JSON and drop the line.
    """
    if not line:
        return None
    try:
        data = json.loads(
            line,
            parse_constant=_reject_constant,
            parse_float=_parse_finite_float,
        )
    except (ValueError, TypeError):
        return None
    if not isinstance(data, dict):
        return None
    return data


def parse_chunk(lines: list[str]) -> list[dict]:
    """Parse a window of lines, keeping input order and dropping bad lines."""
    records = []
    for line in lines:
        record = parse_line(line)
        if record is not None:
            records.append(record)
    dropped = len(lines) - len(records)
    if dropped:
        logger.debug("Dropped %d unparseable line(s) of %d", dropped, len(lines))
    return records
