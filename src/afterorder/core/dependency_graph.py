"""Dependency graph module for discovering ``@after`` relationships.

This module provides the shared graph structure and the builder that fills
it. Starting from an entry file, the builder reads each file's annotation
header, canonicalizes the references it finds, and fans out over the newly
discovered files on a thread pool until the whole transitive graph is known.

Example:
    >>> from afterorder.core.dependency_graph import GraphBuilder
    >>>
    >>> builder = GraphBuilder("proj")
    >>> graph = builder.build("Main.fs")
    >>> graph["proj/Main.fs"]
    ('proj/Types.fs', 'proj/Util.fs')
"""

from __future__ import annotations

import threading
import time
from collections.abc import Mapping
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Any, Callable, Iterable, Iterator

from afterorder.core.annotations import FileReader, collect, read_file_lines
from afterorder.core.canonical import Canonicalizer, Remap
from afterorder.utils import path_utils
from afterorder.utils.logger import get_logger

logger = get_logger("afterorder.core.dependency_graph")

# Errors that mean "this file does not exist" rather than "reading failed"
NOT_FOUND_ERRORS = (FileNotFoundError, NotADirectoryError, IsADirectoryError)


# ============================================================================
# Custom Exceptions
# ============================================================================


class GraphFrozenError(RuntimeError):
    """Raised when a frozen graph is mutated.

    Attributes:
        file: Identity whose mutation was attempted
    """

    def __init__(self, file: str):
        self.file = file
        super().__init__(f"Dependency graph is frozen; cannot modify entry for '{file}'")


# ============================================================================
# Data Structures
# ============================================================================


class _Pending:
    """Marker stored for a file that has been claimed but not yet read."""

    def __repr__(self) -> str:
        return "<pending>"


_PENDING = _Pending()


class DependencyGraph(Mapping):
    """Mapping from File Identity to its declared dependencies.

    Every access goes through one lock, which makes the existence check and
    the claim in :meth:`claim` a single atomic step for concurrent builder
    workers. Files proven unreadable are kept in a separate ``missing`` set
    and are never keys of the mapping, so ``file in graph`` means "exists on
    disk and was read".

    After :meth:`freeze` the graph is read-only.

    Example:
        >>> graph = DependencyGraph()
        >>> graph.claim("proj/Main.fs")
        True
        >>> graph.record("proj/Main.fs", ["proj/Types.fs"])
        >>> graph.get("proj/Main.fs")
        ('proj/Types.fs',)
    """

    def __init__(self, entries: Mapping[str, Iterable[str]] | None = None) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, tuple[str, ...] | _Pending] = {}
        self._missing: set[str] = set()
        self._frozen = False
        for file, dependencies in (entries or {}).items():
            self.record(file, dependencies)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def _check_mutable(self, file: str) -> None:
        if self._frozen:
            raise GraphFrozenError(file)

    def claim(self, file: str) -> bool:
        """Atomically reserve ``file`` for reading.

        Returns:
            True if the caller now owns the file and must read it; False if
            it was already claimed, recorded or found missing.
        """
        with self._lock:
            self._check_mutable(file)
            if file in self._entries or file in self._missing:
                return False
            self._entries[file] = _PENDING
            return True

    def record(self, file: str, dependencies: Iterable[str]) -> None:
        """Store the ordered dependency list of ``file``."""
        with self._lock:
            self._check_mutable(file)
            self._missing.discard(file)
            self._entries[file] = tuple(dependencies)

    def mark_missing(self, file: str) -> None:
        """Drop any partial entry for ``file`` and remember it as absent."""
        with self._lock:
            self._check_mutable(file)
            self._entries.pop(file, None)
            self._missing.add(file)

    def freeze(self) -> DependencyGraph:
        """Make the graph read-only.

        Raises:
            RuntimeError: If some claimed file was never recorded.
        """
        with self._lock:
            unfinished = [file for file, value in self._entries.items() if value is _PENDING]
            if unfinished:
                raise RuntimeError(
                    f"Cannot freeze graph with {len(unfinished)} unfinished "
                    f"file(s): {', '.join(sorted(unfinished))}"
                )
            self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def __getitem__(self, file: str) -> tuple[str, ...]:
        with self._lock:
            value = self._entries.get(file, _PENDING)
        if value is _PENDING:
            raise KeyError(file)
        return value

    def __contains__(self, file: object) -> bool:
        with self._lock:
            value = self._entries.get(file, _PENDING)
        return value is not _PENDING

    def __iter__(self) -> Iterator[str]:
        with self._lock:
            files = [file for file, value in self._entries.items() if value is not _PENDING]
        return iter(files)

    def __len__(self) -> int:
        with self._lock:
            return sum(1 for value in self._entries.values() if value is not _PENDING)

    @property
    def missing(self) -> frozenset[str]:
        """Files that were referenced but could not be read."""
        with self._lock:
            return frozenset(self._missing)

    @property
    def edge_count(self) -> int:
        return sum(len(dependencies) for dependencies in self.values())

    def to_dict(self) -> dict[str, Any]:
        """Serialize the graph for debugging/logging.

        Returns:
            Dictionary representation of the graph
        """
        nodes = {file: list(dependencies) for file, dependencies in self.items()}
        return {
            "nodes": nodes,
            "missing": sorted(self.missing),
            "node_count": len(nodes),
            "edge_count": sum(len(deps) for deps in nodes.values()),
        }

    def __repr__(self) -> str:
        return (
            f"DependencyGraph(nodes={len(self)}, missing={len(self.missing)}, "
            f"frozen={self._frozen})"
        )


# ============================================================================
# Graph Builder
# ============================================================================


class GraphBuilder:
    """Discovers the transitive dependency graph of an entry file.

    Each file is read by exactly one worker: the first to :meth:`claim
    <DependencyGraph.claim>` it. Its dependency list is recorded before the
    dependencies are scheduled, so a file that reaches itself again is seen
    as already claimed and construction stays finite even with cycles.

    Scheduling happens on the calling thread. Workers return the files they
    discovered; the caller submits one task per dependency edge and keeps
    waiting until no task is outstanding. The pool is bounded by
    ``max_workers``, so large projects do not spawn a thread per file.

    Attributes:
        canonicalizer: Maps raw references to identities under the root
        read_lines: File-content collaborator
        max_workers: Thread pool size (None lets the executor choose)
        skip_dependency: Optional predicate; matching dependency identities
            are dropped from the graph

    Example:
        >>> builder = GraphBuilder("proj", max_workers=4)
        >>> graph = builder.build("Main.fs")
        >>> print(f"{len(graph)} files, {len(graph.missing)} missing")
    """

    def __init__(
        self,
        root: str,
        remap: Remap | None = None,
        read_lines: FileReader = read_file_lines,
        max_workers: int | None = None,
        skip_dependency: Callable[[str], bool] | None = None,
    ) -> None:
        self.canonicalizer = Canonicalizer(root, remap)
        self.read_lines = read_lines
        self.max_workers = max_workers
        self.skip_dependency = skip_dependency

    @property
    def root(self) -> str:
        return self.canonicalizer.root

    def build(self, entrypoint: str) -> DependencyGraph:
        """Build the graph reachable from ``entrypoint``.

        Blocks until every reachable file has been read or proven missing.

        Args:
            entrypoint: Entry file name relative to the root

        Returns:
            The completed, frozen DependencyGraph

        Raises:
            OSError: If a file exists but cannot be read. Missing files are
                not errors here; they are left out of the graph.
        """
        graph = DependencyGraph()
        entry = self.canonicalizer.entry_identity(entrypoint)
        started = time.perf_counter()

        logger.debug(f"Building dependency graph from {entry}")

        with ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="GraphWorker"
        ) as executor:
            pending: set[Future[list[str]]] = {executor.submit(self._traverse, graph, entry)}
            try:
                while pending:
                    done, pending = wait(pending, return_when=FIRST_COMPLETED)
                    for future in done:
                        for dependency in future.result():
                            pending.add(executor.submit(self._traverse, graph, dependency))
            except BaseException:
                for future in pending:
                    future.cancel()
                raise

        graph.freeze()

        logger.info(
            f"Dependency graph complete for {entry}: {len(graph)} files, "
            f"{graph.edge_count} edges, {len(graph.missing)} missing "
            f"({time.perf_counter() - started:.3f}s)"
        )
        return graph

    def _traverse(self, graph: DependencyGraph, file: str) -> list[str]:
        """Read one file and record its dependencies.

        Returns:
            The dependencies to schedule next; empty if another worker owns
            the file or the file does not exist.
        """
        if not graph.claim(file):
            return []

        try:
            references = list(collect(file, self.read_lines))
        except NOT_FOUND_ERRORS:
            graph.mark_missing(file)
            logger.debug(f"File not found: {file}")
            return []

        base_dir = path_utils.dirname(file)
        dependencies = [self.canonicalizer.identity(reference, base_dir) for reference in references]

        if self.skip_dependency is not None:
            kept = [dependency for dependency in dependencies if not self.skip_dependency(dependency)]
            if len(kept) != len(dependencies):
                logger.debug(f"Dropped {len(dependencies) - len(kept)} excluded dependencies of {file}")
            dependencies = kept

        graph.record(file, dependencies)
        logger.debug(f"Read {file}: {len(dependencies)} dependencies")

        return dependencies


def build_graph(
    root: str,
    entrypoint: str,
    remap: Remap | None = None,
    read_lines: FileReader = read_file_lines,
    max_workers: int | None = None,
) -> DependencyGraph:
    """Convenience wrapper around :class:`GraphBuilder`."""
    builder = GraphBuilder(root, remap=remap, read_lines=read_lines, max_workers=max_workers)
    return builder.build(entrypoint)
