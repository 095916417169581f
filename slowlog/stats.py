"""Running statistics — per-key count, sums, and min/max latency."""

import sys
from dataclasses import dataclass
from typing import Iterable

from slowlog.extractor import SlowQueryEvent

BYTES_PER_MB = 1024 * 1024

# Key dimensions an accumulator can group by, mapped to the event attribute.
DIMENSIONS = {
    "query": "query_hash",
    "collection": "namespace",
}


@dataclass
class RunningStat:
    count: int = 0
    duration: float = 0.0       # minutes
    docs_examined: float = 0
    nreturned: float = 0
    reslen: float = 0.0         # MB
    min: float = sys.float_info.max   # ms
    max: float = 0.0            # ms

    def update(self, event: SlowQueryEvent):
        """Merge one event into this stat."""
        d = event.duration_millis
        if d < self.min:
            self.min = d
        if d > self.max:
            self.max = d
        self.count += 1
        self.duration += event.duration_minutes
        self.docs_examined += event.docs_examined
        self.nreturned += event.nreturned
        self.reslen += event.reslen / BYTES_PER_MB


class StatsAccumulator:
    """Maps one key dimension of SlowQueryEvent to its RunningStat."""

    def __init__(self, dimension: str):
        if dimension not in DIMENSIONS:
            raise ValueError(f"unknown dimension: {dimension!r}")
        self.dimension = dimension
        self._attr = DIMENSIONS[dimension]
        self._stats: dict[str, RunningStat] = {}

    def key_for(self, event: SlowQueryEvent) -> str:
        return getattr(event, self._attr)

    def add(self, event: SlowQueryEvent):
        key = self.key_for(event)
        stat = self._stats.get(key)
        if stat is None:
            stat = self._stats[key] = RunningStat()
        stat.update(event)

    def add_all(self, events: Iterable[SlowQueryEvent]):
        for event in events:
            self.add(event)

    def get(self, key: str) -> RunningStat | None:
        return self._stats.get(key)

    def items(self) -> list[tuple[str, RunningStat]]:
        return list(self._stats.items())

    def __len__(self) -> int:
        return len(self._stats)

    def __contains__(self, key: str) -> bool:
        return key in self._stats
