"""Shared fixtures for the core resolution tests."""

from __future__ import annotations

import textwrap
import threading
from collections import Counter
from pathlib import Path
from typing import Iterator

import pytest

from afterorder.core.config import ResolverConfig


# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------

def after(*references: str, body: str = "module X\n") -> str:
    """Return file content whose header declares the given references."""
    header = "".join(f"// @after {reference}\n" for reference in references)
    return header + "\n" + body


def create_test_file(directory: Path, name: str, content: str = "") -> Path:
    """Create a test file with the given name and content."""
    file_path = directory / name
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(textwrap.dedent(content), encoding="utf-8")
    return file_path


def assert_dependency_first(order: tuple[str, ...], graph) -> None:
    """Verify that every file appears after the files it depends on."""
    position = {file: i for i, file in enumerate(order)}
    for file in order:
        for dependency in graph.get(file, ()):
            if dependency in position:
                assert position[dependency] < position[file], (
                    f"{dependency} should come before {file}"
                )


class VirtualFileSystem:
    """In-memory file-content collaborator keyed by File Identity."""

    def __init__(self, files: dict[str, str]) -> None:
        self.files = dict(files)
        self.reads: Counter[str] = Counter()
        self._lock = threading.Lock()

    def read_lines(self, identity: str) -> Iterator[str]:
        with self._lock:
            self.reads[identity] += 1
        if identity not in self.files:
            raise FileNotFoundError(identity)
        return iter(self.files[identity].splitlines())

    def exists(self, identity: str) -> bool:
        return identity in self.files


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def vfs_factory():
    """Return a factory building VirtualFileSystem instances."""
    return VirtualFileSystem


@pytest.fixture
def diamond_vfs() -> VirtualFileSystem:
    """Main depends on A and B, both depend on Shared."""
    return VirtualFileSystem({
        "proj/Main.fs": after("A.fs", "B.fs"),
        "proj/A.fs": after("Shared.fs"),
        "proj/B.fs": after("Shared.fs"),
        "proj/Shared.fs": "module Shared\n",
    })


@pytest.fixture
def tmp_project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create an on-disk project and make its parent the working directory.

    Layout::

        proj/App.fsproj
        proj/Main.fs          @after Types.fs, sub/Util.fs
        proj/Types.fs
        proj/sub/Util.fs      @after ../Types.fs
    """
    monkeypatch.chdir(tmp_path)
    root = tmp_path / "proj"
    create_test_file(root, "App.fsproj", "<Project/>\n")
    create_test_file(root, "Main.fs", after("Types.fs", "sub/Util.fs"))
    create_test_file(root, "Types.fs", "module Types\n")
    create_test_file(root, "sub/Util.fs", after("../Types.fs"))
    return root


@pytest.fixture
def quiet_config() -> ResolverConfig:
    """Configuration that never touches project files."""
    return ResolverConfig(touch_project=False, color=False)
