"""Project orchestration: entry discovery, resolution and artifact output.

This module provides the ProjectResolver class that runs the whole pipeline
for a project file:

1. Find the entry file in the project directory.
2. Build the dependency graph reachable from it.
3. Flatten the graph into a compile order, collecting errors.
4. Write the ``.targets`` artifact and touch the project file.

Several projects are resolved in parallel, each with its own graph and
resolver state.

Example:
    >>> resolver = ProjectResolver(ResolverConfig())
    >>> results = resolver.resolve_all(["app/App.fsproj", "lib/Lib.fsproj"])
    >>> all(result.ok for result in results)
    True
"""

from __future__ import annotations

import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Sequence

from afterorder.core.annotations import FileReader, read_file_lines
from afterorder.core.canonical import Remap
from afterorder.core.config import ResolverConfig
from afterorder.core.dependency_graph import GraphBuilder
from afterorder.core.output_writer import (
    ArtifactWriter,
    WriteResult,
    render_targets,
    targets_path,
    touch,
)
from afterorder.core.resolver import EntryPointNotFound, ResolutionError, resolve
from afterorder.utils import path_utils
from afterorder.utils.logger import get_logger

logger = get_logger("afterorder.core.orchestrator")


def find_entrypoint(
    root: str,
    entry_names: Sequence[str],
    exists: Callable[[str], bool] = os.path.isfile,
) -> str | None:
    """Return the first recognized entry file present under ``root``.

    Args:
        root: Project directory
        entry_names: Candidate names, tried in order
        exists: Existence check on a path (injectable for tests)

    Returns:
        The entry file relative to ``root``, or None if no candidate exists.
    """
    root_full_path = path_utils.resolve(root)
    for name in entry_names:
        candidate = path_utils.join(root, name)
        if exists(candidate):
            return path_utils.relative(root_full_path, path_utils.resolve(candidate))
    return None


@dataclass
class ProjectResult:
    """Outcome of resolving one project file.

    Attributes:
        project: Project file as given by the caller
        root: Project directory
        entrypoint: Entry file relative to root, None if not found
        order: Compile order (dependency first)
        errors: Resolution errors in discovery order
        artifact: Result of writing the artifact, None if not written
        failure: Message for an unexpected I/O failure that stopped the
            pipeline for this project
        elapsed: Wall-clock seconds spent on the project
    """

    project: str
    root: str
    entrypoint: str | None = None
    order: tuple[str, ...] = ()
    errors: tuple[ResolutionError, ...] = ()
    artifact: WriteResult | None = None
    failure: str | None = None
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        """True when no error was found and nothing failed."""
        if self.errors or self.failure is not None:
            return False
        return self.artifact is None or self.artifact.success

    @property
    def problem_count(self) -> int:
        count = len(self.errors)
        if self.failure is not None:
            count += 1
        if self.artifact is not None and not self.artifact.success:
            count += 1
        return count


class ProjectResolver:
    """Runs the resolution pipeline for project files.

    Attributes:
        config: Active configuration
        remap: Reference remapping strategy handed to the graph builder
        read_lines: File-content collaborator handed to the graph builder
        writer: Artifact writer
        entry_exists: Existence check used for entry file discovery
    """

    def __init__(
        self,
        config: ResolverConfig | None = None,
        remap: Remap | None = None,
        read_lines: FileReader = read_file_lines,
        writer: ArtifactWriter | None = None,
        entry_exists: Callable[[str], bool] = os.path.isfile,
    ) -> None:
        self.config = config or ResolverConfig()
        self.config.validate()
        self.remap = remap
        self.read_lines = read_lines
        self.writer = writer or ArtifactWriter()
        self.entry_exists = entry_exists

    def _skip_dependency(self):
        if self.config.auxiliary_policy == "exclude":
            return self.config.is_auxiliary
        return None

    def resolve_project(self, project_file: str) -> ProjectResult:
        """Resolve a single project file.

        A project without a recognized entry file yields exactly one
        EntryPointNotFound error; no graph is built and nothing is written.
        Otherwise the artifact is written even when errors were found.
        """
        started = time.perf_counter()
        project = path_utils.to_identity_form(project_file)
        root = path_utils.dirname(project)
        result = ProjectResult(project=project, root=root)

        entrypoint = find_entrypoint(root, self.config.entry_names, self.entry_exists)
        if entrypoint is None:
            logger.warning(f"No entry file ({', '.join(self.config.entry_names)}) for {project}")
            result.errors = (EntryPointNotFound(),)
            result.elapsed = time.perf_counter() - started
            return result

        result.entrypoint = entrypoint

        try:
            builder = GraphBuilder(
                root,
                remap=self.remap,
                read_lines=self.read_lines,
                max_workers=self.config.max_workers,
                skip_dependency=self._skip_dependency(),
            )
            graph = builder.build(entrypoint)
            resolution = resolve(root, entrypoint, graph)
            result.order = resolution.order
            result.errors = resolution.errors

            if self.config.write_artifact:
                result.artifact = self._write_artifact(project, root, resolution.order)

        except OSError as exc:
            logger.exception(f"Failed to resolve {project}: {exc}")
            result.failure = str(exc)

        result.elapsed = time.perf_counter() - started
        logger.info(
            f"Resolved {project}: {len(result.order)} files, "
            f"{len(result.errors)} errors in {result.elapsed:.3f}s"
        )
        return result

    def _write_artifact(self, project: str, root: str, order: Iterable[str]) -> WriteResult:
        content = render_targets(root, order, self.config.is_auxiliary)
        output_path = targets_path(project, self.config.artifact_suffix)
        written = self.writer.write(output_path, content)

        if written.success and self.config.touch_project:
            try:
                touch(Path(project))
            except OSError as exc:
                logger.warning(f"Could not touch {project}: {exc}")

        return written

    def resolve_all(self, project_files: Iterable[str]) -> list[ProjectResult]:
        """Resolve several projects in parallel.

        Returns:
            One ProjectResult per project, in input order.
        """
        projects = list(project_files)
        if not projects:
            return []

        with ThreadPoolExecutor(
            max_workers=self.config.project_workers, thread_name_prefix="ProjectWorker"
        ) as executor:
            return list(executor.map(self.resolve_project, projects))
