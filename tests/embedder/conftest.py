"""Shared pytest fixtures for the embedder test suite."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Callable

import pytest

from tests.embedder.fakes import FakeProvider


@pytest.fixture(autouse=True)
def _restore_environ() -> None:
    """Snapshot environment variables and restore them after each test."""

    original = os.environ.copy()
    try:
        yield
    finally:
        os.environ.clear()
        os.environ.update(original)


@pytest.fixture(autouse=True)
def _restore_cwd() -> None:
    """Ensure tests leave the current working directory unchanged."""

    original_cwd = Path.cwd()
    try:
        yield
    finally:
        os.chdir(original_cwd)


@pytest.fixture(autouse=True)
def _reset_package_logging() -> None:
    """Drop handlers installed by CLI runs so later tests do not write to closed streams."""

    yield
    root = logging.getLogger("DocsToVec")
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.propagate = True
    root.setLevel(logging.NOTSET)


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def write_json() -> Callable[[Path, object], Path]:
    def _write(path: Path, payload: object) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def read_json() -> Callable[[Path], dict]:
    def _read(path: Path) -> dict:
        return json.loads(path.read_text(encoding="utf-8"))

    return _read


@pytest.fixture
def two_item_input(tmp_path: Path, write_json) -> Path:
    return write_json(
        tmp_path / "input.json",
        {"items": [{"id": "1", "question": "A"}, {"id": "2", "question": "B"}]},
    )
