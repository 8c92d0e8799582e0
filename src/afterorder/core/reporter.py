"""Human-readable rendering of resolution errors.

Cycles are drawn as a trail from the file that closes the cycle through
every file on the way back to it::

    Cycle at: 'proj/A.fs'
    ╭─▶ 'proj/A.fs'
    │   'proj/B.fs'
    ╰─┨ 'proj/C.fs'
"""

from __future__ import annotations

import sys
from typing import Iterable, TextIO

from afterorder.core.orchestrator import ProjectResult
from afterorder.core.resolver import Cycle, EntryPointNotFound, NotFound, ResolutionError


# ANSI color codes for terminal output
class Colors:
    RED = '\033[31m'
    BLUE = '\033[34m'
    RESET = '\033[0m'


class Styler:
    """Applies (or skips) ANSI colors to report fragments."""

    def __init__(self, color: bool = True) -> None:
        self.color = color

    def _paint(self, code: str, text: str) -> str:
        if not self.color:
            return text
        return f"{code}{text}{Colors.RESET}"

    def red(self, text: str) -> str:
        return self._paint(Colors.RED, text)

    def em(self, text: str) -> str:
        """Quoted file name in emphasis color."""
        return self._paint(Colors.BLUE, _quote(text))

    def alert(self, text: str) -> str:
        """Quoted file name in alert color."""
        return self._paint(Colors.RED, _quote(text))


def _quote(text: str) -> str:
    return f"'{text}'"


def render_cycle_trail(cycle: Cycle, styler: Styler) -> list[str]:
    """Render the lines of a cycle trail, first file to last."""
    if len(cycle.path) == 1 and cycle.path[0] == cycle.file:
        return [f" ─▶ {styler.alert(cycle.file)} (requires itself)"]

    first, *middle, last = cycle.path
    lines = [f"╭─▶ {styler.alert(first)}"]
    lines.extend(f"│   {styler.em(name)}" for name in middle)
    lines.append(f"╰─┨ {styler.alert(last)}")
    return lines


def render_error(project: str, error: ResolutionError, color: bool = True) -> list[str]:
    """Render one resolution error as report lines.

    Raises:
        TypeError: If ``error`` is not a known resolution error.
    """
    styler = Styler(color)
    not_found = styler.red("not found")

    if isinstance(error, EntryPointNotFound):
        return [f"Entrypoint file {not_found} for: {styler.em(project)}"]

    if isinstance(error, NotFound):
        lines = [f"File {not_found} at: {styler.em(error.file)}"]
        if error.importer is not None:
            lines.append(f"Imported at: {styler.em(error.importer)}")
        return lines

    if isinstance(error, Cycle):
        header = f"{styler.red('Cycle')} at: {styler.em(error.file)}"
        return [header] + render_cycle_trail(error, styler)

    raise TypeError(f"Unknown resolution error: {error!r}")


def render_result(result: ProjectResult, color: bool = True) -> list[str]:
    """Render every problem of a project result."""
    styler = Styler(color)
    lines: list[str] = []

    for error in result.errors:
        lines.extend(render_error(result.project, error, color))

    if result.failure is not None:
        lines.append(f"{styler.red('Failed')} to resolve {styler.em(result.project)}: {result.failure}")

    if result.artifact is not None and not result.artifact.success:
        lines.append(
            f"{styler.red('Could not write')} artifact for {styler.em(result.project)}: "
            f"{result.artifact.error}"
        )

    return lines


def report(
    results: Iterable[ProjectResult],
    color: bool = True,
    stream: TextIO | None = None,
) -> int:
    """Print the problems of every result.

    Returns:
        Total number of problems printed.
    """
    stream = stream or sys.stdout
    total = 0
    for result in results:
        for line in render_result(result, color):
            print(line, file=stream)
        total += result.problem_count
    return total
