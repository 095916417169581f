"""Tests for slowlog/sink.py"""

import csv
import os

import pytest

from slowlog.sink import RotatingCsvBuffer, append_rows, output_path, write_rows

HEADER = ["a", "b"]


def _read(path):
    with open(path, newline="", encoding="utf-8") as f:
        return list(csv.reader(f))


class TestOutputPath:
    def test_with_index(self):
        assert output_path("out", "mongod", "commands", 3) == os.path.join("out", "mongod_commands_3.csv")

    def test_without_index(self):
        assert output_path("out", "mongod", "query_prof") == os.path.join("out", "mongod_query_prof.csv")


class TestAppendRows:
    def test_new_file_gets_one_header(self, tmp_path):
        path = str(tmp_path / "x.csv")
        assert append_rows(path, HEADER, [["1", "2"]]) is True
        assert _read(path) == [HEADER, ["1", "2"]]

    def test_existing_file_no_duplicate_header(self, tmp_path):
        path = str(tmp_path / "x.csv")
        append_rows(path, HEADER, [["1", "2"]])
        assert append_rows(path, HEADER, [["3", "4"]]) is False
        assert _read(path) == [HEADER, ["1", "2"], ["3", "4"]]

    def test_never_truncates_existing(self, tmp_path):
        path = tmp_path / "x.csv"
        path.write_text("prior,content\n", encoding="utf-8")
        append_rows(str(path), HEADER, [["1", "2"]])
        assert _read(str(path)) == [["prior", "content"], ["1", "2"]]

    def test_quoting(self, tmp_path):
        path = str(tmp_path / "x.csv")
        append_rows(path, HEADER, [['{"a":1,"b":"x"}', "line\nbreak"]])
        assert _read(path)[1] == ['{"a":1,"b":"x"}', "line\nbreak"]

    def test_missing_directory_raises(self, tmp_path):
        with pytest.raises(OSError):
            append_rows(str(tmp_path / "nope" / "x.csv"), HEADER, [])


class TestWriteRows:
    def test_truncates(self, tmp_path):
        path = str(tmp_path / "x.csv")
        write_rows(path, HEADER, [["1", "2"]])
        write_rows(path, HEADER, [["3", "4"]])
        assert _read(path) == [HEADER, ["3", "4"]]


class TestRotatingCsvBuffer:
    def _buffer(self, tmp_path, threshold=3):
        return RotatingCsvBuffer(str(tmp_path), "mongod", "commands", HEADER, threshold)

    def test_invalid_threshold(self, tmp_path):
        with pytest.raises(ValueError):
            self._buffer(tmp_path, threshold=0)

    def test_no_flush_below_threshold(self, tmp_path):
        buf = self._buffer(tmp_path)
        assert buf.add(["1", "x"]) is None
        assert buf.add(["2", "x"]) is None
        assert buf.pending_count == 2
        assert os.listdir(tmp_path) == []

    def test_rotation_at_threshold(self, tmp_path):
        buf = self._buffer(tmp_path)
        paths = [buf.add([str(i), "x"]) for i in range(3)]
        assert paths[:2] == [None, None]
        assert paths[2] == str(tmp_path / "mongod_commands_0.csv")
        rows = _read(paths[2])
        assert rows[0] == HEADER
        assert len(rows) == 1 + 3
        assert buf.index == 1
        assert buf.pending_count == 0

    def test_final_partial_flushed_once(self, tmp_path):
        buf = self._buffer(tmp_path)
        for i in range(5):
            buf.add([str(i), "x"])
        path = buf.close()
        assert path == str(tmp_path / "mongod_commands_1.csv")
        assert _read(path) == [HEADER, ["3", "x"], ["4", "x"]]
        assert buf.index == 1
        assert buf.close() is None
        assert sorted(os.listdir(tmp_path)) == ["mongod_commands_0.csv", "mongod_commands_1.csv"]

    def test_close_empty(self, tmp_path):
        buf = self._buffer(tmp_path)
        assert buf.close() is None
        assert os.listdir(tmp_path) == []

    def test_close_after_exact_multiple_writes_nothing(self, tmp_path):
        buf = self._buffer(tmp_path)
        for i in range(6):
            buf.add([str(i), "x"])
        assert buf.close() is None
        assert sorted(os.listdir(tmp_path)) == ["mongod_commands_0.csv", "mongod_commands_1.csv"]
        assert buf.index == 2

    def test_appends_to_preexisting_file_without_header(self, tmp_path):
        existing = tmp_path / "mongod_commands_0.csv"
        existing.write_text("a,b\nold,row\n", encoding="utf-8")
        buf = self._buffer(tmp_path, threshold=1)
        buf.add(["new", "row"])
        assert _read(str(existing)) == [HEADER, ["old", "row"], ["new", "row"]]
