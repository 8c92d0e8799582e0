"""Topological resolver producing a dependency-first compile order.

The resolver walks a finished :class:`~afterorder.core.dependency_graph.DependencyGraph`
depth first with an explicit stack of frames, so graphs with thousands of
files never hit the interpreter's recursion limit. Cycles and references to
missing files do not stop the walk: they are recorded as resolution errors
and the walk continues past them, yielding the best achievable order.

Example:
    >>> graph = {"p/Main.fs": ("p/B.fs",), "p/B.fs": ("p/Main.fs",)}
    >>> order, errors = resolve("p", "Main.fs", graph)
    >>> order
    ('p/B.fs', 'p/Main.fs')
    >>> errors
    (Cycle(file='p/Main.fs', path=('p/Main.fs', 'p/B.fs')),)
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Mapping, NamedTuple, Sequence, Union

from afterorder.utils import path_utils
from afterorder.utils.logger import get_logger

logger = get_logger("afterorder.core.resolver")


# ============================================================================
# Resolution Errors
# ============================================================================


@dataclass(frozen=True)
class EntryPointNotFound:
    """No recognized entry file exists in the project root."""

    def describe(self) -> str:
        return "Entry point not found"


@dataclass(frozen=True)
class NotFound:
    """A referenced file does not exist.

    Attributes:
        file: Identity of the missing file
        importer: Nearest file on the traversal path that referenced it, or
            None when the missing file is the entry itself
    """

    file: str
    importer: str | None = None

    def describe(self) -> str:
        if self.importer is None:
            return f"File not found: {self.file}"
        return f"File not found: {self.file} (imported at {self.importer})"


@dataclass(frozen=True)
class Cycle:
    """A file was reached again while still on the traversal path.

    Attributes:
        file: Identity of the file that closes the cycle
        path: Files from the first occurrence of ``file`` on the traversal
            path up to the file that referenced it again, in traversal
            order. ``path[0] == file``; a self-reference has ``path == (file,)``.
    """

    file: str
    path: tuple[str, ...]

    def describe(self) -> str:
        return f"Cycle: {' -> '.join(self.path + (self.file,))}"


ResolutionError = Union[EntryPointNotFound, NotFound, Cycle]


class Resolution(NamedTuple):
    """Result of a resolution: best-effort order plus every error found."""

    order: tuple[str, ...]
    errors: tuple[ResolutionError, ...]

    @property
    def ok(self) -> bool:
        return not self.errors


# ============================================================================
# Traversal
# ============================================================================


@dataclass
class Frame:
    """One file being expanded on the explicit traversal stack.

    Attributes:
        name: Identity of the file
        remaining: Declared dependencies not processed yet, in order
    """

    name: str
    remaining: deque[str] = field(default_factory=deque)


class TopologicalResolver:
    """Flattens a dependency graph into a dependency-first order.

    The ancestor path of the top frame is exactly the sequence of frame
    names on the stack, so it is kept once: ``self._stack`` preserves
    traversal order for reporting and ``self._on_path`` maps each ancestor
    to its stack position for constant time membership tests and slicing.

    Attributes:
        graph: Read-only mapping from identity to its declared dependencies
    """

    def __init__(self, graph: Mapping[str, Sequence[str]]) -> None:
        self.graph = graph
        self._stack: list[Frame] = []
        self._on_path: dict[str, int] = {}
        self._visited: set[str] = set()
        self._resolved: list[str] = []
        self._errors: list[ResolutionError] = []

    def run(self, entry: str) -> Resolution:
        """Resolve starting at the ``entry`` identity."""
        self._visited.add(entry)

        dependencies = self.graph.get(entry)
        if dependencies is None:
            self._errors.append(NotFound(entry, None))
        else:
            self._push(entry, dependencies)

        while self._stack:
            self._step()

        return Resolution(tuple(self._resolved), tuple(self._errors))

    def _push(self, name: str, dependencies: Sequence[str]) -> None:
        self._on_path[name] = len(self._stack)
        self._stack.append(Frame(name, deque(dependencies)))

    def _step(self) -> None:
        frame = self._stack[-1]

        if not frame.remaining:
            # All dependencies placed; the file itself can follow them
            self._resolved.append(frame.name)
            self._stack.pop()
            del self._on_path[frame.name]
            return

        dependency = frame.remaining.popleft()

        if dependency in self._on_path:
            start = self._on_path[dependency]
            trail = tuple(ancestor.name for ancestor in self._stack[start:])
            self._errors.append(Cycle(dependency, trail))
            logger.debug(f"Cycle at {dependency} via {frame.name}")
            return

        if dependency in self._visited:
            return

        self._visited.add(dependency)

        dependencies = self.graph.get(dependency)
        if dependencies is None:
            self._errors.append(NotFound(dependency, frame.name))
            logger.debug(f"Missing {dependency} referenced by {frame.name}")
            return

        self._push(dependency, dependencies)


def resolve(
    root: str,
    entrypoint: str,
    graph: Mapping[str, Sequence[str]],
) -> Resolution:
    """Compute the compile order of the files reachable from ``entrypoint``.

    Pure function over ``graph``: no I/O, no mutation of the graph.

    Args:
        root: Project root, spelled as it was given to the graph builder
        entrypoint: Entry file name relative to the root
        graph: Mapping from identity to declared dependencies; a missing key
            means the file does not exist

    Returns:
        Resolution whose ``order`` lists each reachable file exactly once,
        after all of its dependencies (except where a cycle makes that
        impossible), and whose ``errors`` lists every cycle and missing file
        in discovery order.
    """
    entry = path_utils.join(root, entrypoint)
    resolution = TopologicalResolver(graph).run(entry)

    logger.debug(
        f"Resolved {entry}: {len(resolution.order)} files, "
        f"{len(resolution.errors)} errors"
    )
    return resolution
