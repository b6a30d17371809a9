from __future__ import annotations

import pytest

from mlpoints.data.datasource import LibSvmSource, read_lines
from mlpoints.utils.errors import UserInputError


def test_read_lines_keeps_blank_lines(tmp_path):
    path = tmp_path / "a.svm"
    path.write_bytes(b"1 1:1\r\n\r\n2 2:1\n")

    assert read_lines(path) == ["1 1:1", "", "2 2:1"]


def test_read_lines_missing_file(tmp_path):
    with pytest.raises(UserInputError):
        read_lines(tmp_path / "missing.svm")


def test_source_lists_matching_files_sorted(tmp_path, write_lines):
    write_lines("d/b.txt", ["2 1:1"])
    write_lines("d/a.svm", ["1 1:1"])
    write_lines("d/c.csv", ["x"])

    src = LibSvmSource(tmp_path / "d")

    assert [f.name for f in src.files()] == ["a.svm", "b.txt"]
    assert list(src.iter_lines()) == ["1 1:1", "2 1:1"]


def test_source_without_suffix_filter(tmp_path, write_lines):
    write_lines("d/c.csv", ["x"])
    src = LibSvmSource(tmp_path / "d", suffixes=())
    assert [f.name for f in src.files()] == ["c.csv"]


def test_source_missing_dir(tmp_path):
    with pytest.raises(UserInputError):
        LibSvmSource(tmp_path / "nope").files()
