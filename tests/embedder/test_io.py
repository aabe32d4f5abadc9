from __future__ import annotations

from pathlib import Path

import pytest

from DocsToVec.Embedder.errors import InputFormatError, InputNotFoundError
from DocsToVec.Embedder.io import (
    atomic_write,
    list_files_with_suffix,
    read_json_object,
    write_json_atomic,
)


def test_atomic_write_replaces_destination(tmp_path: Path) -> None:
    target = tmp_path / "nested" / "out.json"
    write_json_atomic(target, {"a": 1})
    write_json_atomic(target, {"a": 2, "text": "é"})

    assert read_json_object(target) == {"a": 2, "text": "é"}
    assert "é" in target.read_text(encoding="utf-8")
    assert [p.name for p in target.parent.iterdir()] == ["out.json"]


def test_atomic_write_keeps_previous_content_on_failure(tmp_path: Path) -> None:
    target = tmp_path / "out.json"
    target.write_text("previous", encoding="utf-8")

    with pytest.raises(RuntimeError):
        with atomic_write(target) as handle:
            handle.write("partial")
            raise RuntimeError("boom")

    assert target.read_text(encoding="utf-8") == "previous"
    assert [p.name for p in tmp_path.iterdir()] == ["out.json"]


def test_read_json_object_errors(tmp_path: Path) -> None:
    with pytest.raises(InputNotFoundError):
        read_json_object(tmp_path / "missing.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(InputFormatError):
        read_json_object(broken)

    array = tmp_path / "array.json"
    array.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(InputFormatError, match="must be an object"):
        read_json_object(array)


def test_list_files_with_suffix_is_case_insensitive_and_sorted(tmp_path: Path) -> None:
    for name in ("b.json", "A.JSON", "c.txt", "a.json"):
        (tmp_path / name).write_text("{}", encoding="utf-8")
    (tmp_path / "dir.json").mkdir()

    names = [p.name for p in list_files_with_suffix(tmp_path, ".json")]
    assert names == ["A.JSON", "a.json", "b.json"]


def test_list_files_with_suffix_missing_directory(tmp_path: Path) -> None:
    with pytest.raises(InputNotFoundError, match="Directory not found"):
        list_files_with_suffix(tmp_path / "nope", ".json")
