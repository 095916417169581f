"""Shared builders for slow-query log records."""

import json

import pytest


def make_slow_query(
    duration_millis=1200,
    ns="db.coll",
    date="2024-03-01T10:15:30.123+05:30",
    **attr_overrides,
) -> dict:
    """Return a valid "Slow query" record, optionally overriding attr fields.

    Pass an attr key with value ``None`` to remove it.
    """
    attr = {
        "type": "command",
        "ns": ns,
        "appName": "orders-api",
        "command": {
            "find": "coll",
            "filter": {"status": "open"},
            "$db": "db",
            "lsid": {"id": "abc"},
            "$clusterTime": {"clusterTime": 1},
        },
        "planSummary": "IXSCAN { status: 1 }",
        "queryHash": "ABCD1234",
        "docsExamined": 10,
        "nreturned": 5,
        "reslen": 2048,
        "remote": "10.0.0.5:51234",
        "durationMillis": duration_millis,
    }
    for key, value in attr_overrides.items():
        if value is None:
            attr.pop(key, None)
        else:
            attr[key] = value
    return {
        "t": {"$date": date},
        "s": "I",
        "c": "COMMAND",
        "id": 51803,
        "ctx": "conn42",
        "msg": "Slow query",
        "attr": attr,
    }


def make_other(msg="Connection accepted") -> dict:
    return {
        "t": {"$date": "2024-03-01T10:15:29.000+05:30"},
        "s": "I",
        "c": "NETWORK",
        "id": 22943,
        "ctx": "listener",
        "msg": msg,
        "attr": {"remote": "10.0.0.5:51234"},
    }


def to_line(record: dict) -> str:
    return json.dumps(record)


@pytest.fixture
def slow_query():
    return make_slow_query()


@pytest.fixture
def write_log(tmp_path):
    """Write records (dicts or raw strings) as an NDJSON file, return its path."""
    def _write(items, name="mongod.log"):
        path = tmp_path / name
        lines = [i if isinstance(i, str) else to_line(i) for i in items]
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return str(path)
    return _write
