"""Report writer — sorted per-key profile tables with derived ratios."""

import logging
import sys

from slowlog.extractor import MILLIS_PER_MINUTE
from slowlog.sink import output_path, write_rows
from slowlog.stats import RunningStat, StatsAccumulator

logger = logging.getLogger(__name__)

MAX_FLOAT = sys.float_info.max

PROFILE_COLUMNS = [
    "Count",
    "Duration (Minutes)",
    "Percentage (Duration)",
    "Average Latency (ms)",
    "Minimum Latency (ms)",
    "Maximum Latency (ms)",
    "Examined",
    "Returned",
    "Ratio (Examined/Returned)",
    "Response (MB)",
    "Throughput (MB/Second)",
]

# Report kind -> (output suffix, key column label)
PROFILE_KINDS = {
    "query": ("query_prof", "Hash"),
    "collection": ("collection_prof", "Collection"),
}


def profile_header(dimension: str) -> list[str]:
    return [PROFILE_KINDS[dimension][1]] + PROFILE_COLUMNS


def examined_ratio(stat: RunningStat) -> float:
    """docsExamined / nreturned, or MAX_FLOAT when nothing was returned."""
    if stat.nreturned == 0:
        return MAX_FLOAT
    return stat.docs_examined / stat.nreturned


def throughput(stat: RunningStat) -> float:
    """Response MB per second of cumulative duration."""
    seconds = stat.duration * 60
    if seconds == 0:
        return MAX_FLOAT if stat.reslen > 0 else 0.0
    return stat.reslen / seconds


def percentage(stat: RunningStat, total: float) -> float:
    if total == 0:
        return 0.0
    return 100 * stat.duration / total


def average_latency(stat: RunningStat) -> float:
    return stat.duration * MILLIS_PER_MINUTE / stat.count


def _fmt(value: float) -> str:
    return f"{value:.2f}"


def _fmt_count(value) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def sorted_stats(accumulator: StatsAccumulator) -> list[tuple[str, RunningStat]]:
    """Entries ordered by cumulative duration, longest first."""
    return sorted(accumulator.items(), key=lambda item: item[1].duration, reverse=True)


def build_profile_rows(accumulator: StatsAccumulator) -> list[list[str]]:
    """Data rows (no header) for one profile table."""
    entries = sorted_stats(accumulator)
    total = sum(stat.duration for _, stat in entries)
    rows = []
    for key, stat in entries:
        rows.append([
            key,
            str(stat.count),
            _fmt(stat.duration),
            _fmt(percentage(stat, total)),
            _fmt(average_latency(stat)),
            _fmt(stat.min),
            _fmt(stat.max),
            _fmt_count(stat.docs_examined),
            _fmt_count(stat.nreturned),
            _fmt(examined_ratio(stat)),
            _fmt(stat.reslen),
            _fmt(throughput(stat)),
        ])
    return rows


def write_profile(accumulator: StatsAccumulator, output_dir: str, prefix: str) -> str | None:
    """Write the accumulator's profile CSV. Returns its path, or None if empty."""
    if len(accumulator) == 0:
        logger.info("No %s statistics collected, skipping report", accumulator.dimension)
        return None
    suffix, _ = PROFILE_KINDS[accumulator.dimension]
    path = output_path(output_dir, prefix, suffix)
    rows = build_profile_rows(accumulator)
    write_rows(path, profile_header(accumulator.dimension), rows)
    logger.info("Wrote %s (%d rows)", path, len(rows))
    return path
