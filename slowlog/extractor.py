"""Field extractor — validated SlowQueryEvent projection of a log record."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from slowlog.errors import FieldValidationError

SLOW_QUERY_MSG = "Slow query"
COLLSCAN = "COLLSCAN"
MILLIS_PER_MINUTE = 60_000

# Internal-protocol keys removed from the command before it is serialized.
STRIPPED_COMMAND_KEYS = (
    "$clusterTime",
    "$db",
    "$readPreference",
    "lsid",
    "readConcern",
    "writeConcern",
    "txnNumber",
    "flowControl",
)

_KINDS = {
    "string": (str,),
    "number": (int, float),
    "bool": (bool,),
    "map": (dict,),
}


@dataclass(frozen=True)
class DecodeError:
    """Identifies the field that failed to decode and why."""

    field: str
    reason: str


@dataclass(frozen=True)
class SlowQueryEvent:
    timestamp: datetime
    duration_millis: float
    query_type: str
    namespace: str
    command: dict[str, Any] = field(default_factory=dict)
    query_hash: str = ""
    docs_examined: float = 0
    nreturned: float = 0
    reslen: float = 0
    has_sort_stage: bool = False
    app_name: str = ""
    remote: str = ""
    plan_summary: str = ""

    @property
    def duration_minutes(self) -> float:
        return self.duration_millis / MILLIS_PER_MINUTE

    @property
    def database(self) -> str:
        return split_namespace(self.namespace)[0]

    @property
    def collection(self) -> str:
        return split_namespace(self.namespace)[1]

    @property
    def is_collscan(self) -> bool:
        return self.plan_summary == COLLSCAN


class _FieldError(Exception):
    def __init__(self, field: str, reason: str):
        super().__init__(field, reason)
        self.decode_error = DecodeError(field, reason)


def _is_kind(value: Any, kind: str) -> bool:
    # bool is an int subclass but never a JSON number
    if kind == "number" and isinstance(value, bool):
        return False
    return isinstance(value, _KINDS[kind])


def _require(mapping: dict, key: str, kind: str) -> Any:
    if key not in mapping:
        raise _FieldError(key, "invalid key")
    value = mapping[key]
    if not _is_kind(value, kind):
        raise _FieldError(key, f"invalid {kind}")
    return value


def _optional(mapping: dict, key: str, kind: str, default: Any) -> Any:
    if key not in mapping:
        return default
    value = mapping[key]
    if not _is_kind(value, kind):
        raise _FieldError(key, f"invalid {kind}")
    return value


def split_namespace(namespace: str) -> tuple[str, str]:
    """Split 'database.collection' on the first dot. No dot yields ('', '')."""
    database, sep, collection = namespace.partition(".")
    if not sep:
        return "", ""
    return database, collection


def parse_rfc3339(value: str) -> datetime:
    """Parse an RFC3339 timestamp. Raises ValueError if it has no offset."""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None or parsed.utcoffset() is None:
        raise ValueError(f"timestamp {value!r} has no UTC offset")
    return parsed


def format_rfc3339(value: datetime) -> str:
    """Format to second precision, keeping the timestamp's own offset."""
    base = value.strftime("%Y-%m-%dT%H:%M:%S")
    offset = value.utcoffset()
    if not offset:
        return base + "Z"
    total_minutes = int(offset.total_seconds()) // 60
    sign = "+" if total_minutes >= 0 else "-"
    hours, minutes = divmod(abs(total_minutes), 60)
    return f"{base}{sign}{hours:02d}:{minutes:02d}"


def strip_command(command: dict) -> dict:
    """Return a copy of command without the internal-protocol keys."""
    return {k: v for k, v in command.items() if k not in STRIPPED_COMMAND_KEYS}


def serialize_command(command: dict) -> str:
    return json.dumps(command, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def is_slow_query(record: dict) -> bool:
    """True if the record's msg is "Slow query".

    Raises FieldValidationError if msg is missing or not a string.
    """
    try:
        msg = _require(record, "msg", "string")
    except _FieldError as exc:
        raise FieldValidationError(exc.decode_error) from None
    return msg == SLOW_QUERY_MSG


def decode_event(record: dict) -> SlowQueryEvent | DecodeError:
    """Decode a slow-query record into an event, or the first field error.

    Optional fields fall back to their defaults when absent but are still
    type-checked when present.
    """
    try:
        t = _require(record, "t", "map")
        date = _require(t, "$date", "string")
        try:
            timestamp = parse_rfc3339(date)
        except ValueError as exc:
            raise _FieldError("$date", f"invalid RFC3339 timestamp: {exc}") from None

        attr = _require(record, "attr", "map")
        query_hash = _optional(attr, "queryHash", "string", "")
        duration_millis = _require(attr, "durationMillis", "number")
        if duration_millis < 0:
            raise _FieldError("durationMillis", "negative number")
        command = _require(attr, "command", "map")
        query_type = _require(attr, "type", "string")
        has_sort_stage = _optional(attr, "hasSortStage", "bool", False)
        app_name = _optional(attr, "appName", "string", "")
        remote = _optional(attr, "remote", "string", "")
        plan_summary = _optional(attr, "planSummary", "string", "")
        namespace = _require(attr, "ns", "string")
        docs_examined = _optional(attr, "docsExamined", "number", 0)
        nreturned = _optional(attr, "nreturned", "number", 0)
        reslen = _optional(attr, "reslen", "number", 0)
    except _FieldError as exc:
        return exc.decode_error

    return SlowQueryEvent(
        timestamp=timestamp,
        duration_millis=duration_millis,
        query_type=query_type,
        namespace=namespace,
        command=strip_command(command),
        query_hash=query_hash,
        docs_examined=docs_examined,
        nreturned=nreturned,
        reslen=reslen,
        has_sort_stage=has_sort_stage,
        app_name=app_name,
        remote=remote,
        plan_summary=plan_summary,
    )


def extract_event(record: dict) -> SlowQueryEvent | None:
    """Return the record's SlowQueryEvent, or None if it is not a slow query.

    Raises FieldValidationError on any decode failure; no partial event is
    ever produced.
    """
    if not is_slow_query(record):
        return None
    result = decode_event(record)
    if isinstance(result, DecodeError):
        raise FieldValidationError(result)
    return result


def command_row(event: SlowQueryEvent) -> list[str]:
    """Row for the commands and collscans tables."""
    return [
        event.query_hash,
        f"{event.duration_minutes:.2f}",
        format_rfc3339(event.timestamp),
        event.app_name,
        event.remote,
        event.database,
        event.collection,
        event.query_type,
        "true" if event.has_sort_stage else "false",
        event.plan_summary,
        serialize_command(event.command),
    ]
