"""Chunked report pipeline — run state, per-chunk consumers, and finalization."""

import json
import logging
import os
from dataclasses import dataclass, field

from slowlog.config import Config
from slowlog.errors import FieldValidationError
from slowlog.extractor import SlowQueryEvent, command_row, extract_event
from slowlog.parser import parse_chunk
from slowlog.reader import iter_chunks, read_lines
from slowlog.report import write_profile
from slowlog.sink import RotatingCsvBuffer, append_rows, output_path
from slowlog.stats import StatsAccumulator

logger = logging.getLogger(__name__)

TRANSCRIPT_HEADER = ["t", "s", "c", "id", "ctx", "msg", "attr"]

COMMAND_HEADER = [
    "Hash",
    "Duration (Minutes)",
    "Time (IST)",
    "Application",
    "Origin",
    "Database",
    "Collection",
    "Type",
    "Sort",
    "Plan",
    "Command",
]


@dataclass
class RunSummary:
    lines_read: int = 0
    records_parsed: int = 0
    events: int = 0
    chunks: int = 0
    files_written: list[str] = field(default_factory=list)

    @property
    def lines_dropped(self) -> int:
        return self.lines_read - self.records_parsed


class PipelineContext:
    """All mutable state of one run: two accumulators and two rotating sinks."""

    def __init__(self, config: Config):
        self.config = config
        self.prefix = config.output_prefix
        self.query_stats = StatsAccumulator("query")
        self.collection_stats = StatsAccumulator("collection")
        self.commands = self._rotating("commands")
        self.collscans = self._rotating("collscans")
        self.summary = RunSummary()
        self._files: set[str] = set()

    def _rotating(self, kind: str) -> RotatingCsvBuffer:
        return RotatingCsvBuffer(
            self.config.output_dir, self.prefix, kind, COMMAND_HEADER, self.config.chunk_size
        )

    def record_file(self, path: str | None):
        if path:
            self._files.add(path)

    @property
    def files_written(self) -> list[str]:
        return sorted(self._files)


def _cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return str(value)


def transcript_row(record: dict) -> list[str]:
    return [_cell(record.get(key)) for key in TRANSCRIPT_HEADER]


def convert_chunk(ctx: PipelineContext, offset: int, records: list[dict]) -> str | None:
    """Append the chunk's records to its transcript file. Returns the path."""
    if not records:
        return None
    index = offset // ctx.config.chunk_size
    path = output_path(ctx.config.output_dir, ctx.prefix, "logs", index)
    append_rows(path, TRANSCRIPT_HEADER, (transcript_row(r) for r in records))
    return path


def extract_events(records: list[dict], offset: int | None = None) -> list[SlowQueryEvent]:
    """Validated slow-query events of a chunk, in record order.

    The first invalid event aborts the whole chunk.
    """
    events = []
    for record in records:
        try:
            event = extract_event(record)
        except FieldValidationError as exc:
            raise FieldValidationError(exc.error, line_offset=offset) from None
        if event is not None:
            events.append(event)
    return events


def collect_commands(ctx: PipelineContext, events: list[SlowQueryEvent]):
    for event in events:
        row = command_row(event)
        ctx.record_file(ctx.commands.add(row))
        if event.is_collscan:
            ctx.record_file(ctx.collscans.add(row))


def process_chunk(ctx: PipelineContext, offset: int, lines: list[str]):
    """Run every consumer over one window of input lines."""
    records = parse_chunk(lines)
    events = extract_events(records, offset)

    ctx.record_file(convert_chunk(ctx, offset, records))
    collect_commands(ctx, events)
    ctx.query_stats.add_all(events)
    ctx.collection_stats.add_all(events)

    ctx.summary.chunks += 1
    ctx.summary.lines_read += len(lines)
    ctx.summary.records_parsed += len(records)
    ctx.summary.events += len(events)
    logger.debug(
        "Chunk at line %d: %d lines, %d records, %d slow queries",
        offset, len(lines), len(records), len(events),
    )


def finalize(ctx: PipelineContext) -> RunSummary:
    """Flush remaining rotation buffers and write both profile reports."""
    ctx.record_file(ctx.commands.close())
    ctx.record_file(ctx.collscans.close())
    ctx.record_file(write_profile(ctx.query_stats, ctx.config.output_dir, ctx.prefix))
    ctx.record_file(write_profile(ctx.collection_stats, ctx.config.output_dir, ctx.prefix))
    ctx.summary.files_written = ctx.files_written
    return ctx.summary


def run(config: Config) -> RunSummary:
    """Process the whole input file and write every report."""
    os.makedirs(config.output_dir, exist_ok=True)
    ctx = PipelineContext(config)
    for offset, chunk in iter_chunks(read_lines(config.input_path), config.chunk_size):
        process_chunk(ctx, offset, chunk)
    return finalize(ctx)
