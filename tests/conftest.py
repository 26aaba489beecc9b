"""Shared fixtures.

Workspaces are built against an in-memory environment so tests never touch
the real GOPATH. Tests that go through the shared process-wide instances
(manifest provisioning, the CLI) use `isolated_gopath` instead.
"""

import os
from pathlib import Path

import pytest

from scratchtree import search_path as search_path_module
from scratchtree.search_path import SearchPathVariable

ORIGINAL = os.pathsep.join(["/orig/one", "/orig/two"])


@pytest.fixture
def environ() -> dict[str, str]:
    return {"GOPATH": ORIGINAL}


@pytest.fixture
def search_path(environ: dict[str, str]) -> SearchPathVariable:
    return SearchPathVariable("GOPATH", environ=environ)


@pytest.fixture
def isolated_gopath(monkeypatch: pytest.MonkeyPatch) -> str:
    """Real os.environ GOPATH with fresh shared instances; undone after the test."""
    monkeypatch.setenv("GOPATH", ORIGINAL)
    monkeypatch.setattr(search_path_module, "_variables", {})
    return ORIGINAL


@pytest.fixture
def temp_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Directory that tempfile.mkdtemp allocates into."""
    root = tmp_path / "tmp"
    root.mkdir()
    monkeypatch.setattr("tempfile.tempdir", str(root))
    return root
