"""Shared test fixtures."""

import json
from pathlib import Path
from typing import Any, Callable

import pytest

from wpcomposer.manifest import Namespaces


@pytest.fixture
def acme() -> Namespaces:
    """Namespaces used by the worked examples: acme/<plugin>, acme-theme/<theme>."""
    return Namespaces(plugin="acme", theme="acme-theme")


@pytest.fixture
def write_manifest(tmp_path: Path) -> Callable[[Any], Path]:
    """Write a composer.json into tmp_path and return its path."""

    def _write(data: Any, name: str = "composer.json") -> Path:
        path = tmp_path / name
        if isinstance(data, bytes):
            path.write_bytes(data)
        elif isinstance(data, str):
            path.write_text(data, encoding="utf-8")
        else:
            path.write_text(json.dumps(data, indent=4) + "\n", encoding="utf-8")
        return path

    return _write


@pytest.fixture
def read_manifest() -> Callable[[Path], Any]:
    def _read(path: Path) -> Any:
        return json.loads(path.read_text(encoding="utf-8"))

    return _read


@pytest.fixture
def quiet_logs(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run from tmp_path so log/ files land there."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("WPCOMPOSER_RID", "testrun1")
    return tmp_path
