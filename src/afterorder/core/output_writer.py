"""Artifact writer for resolved compile orders.

The artifact is an MSBuild fragment placed next to the project file. It
lists the compilable files of a resolution in order::

    <Project><ItemGroup><Compile Include="Types.fs;Util.fs;Main.fs"/></ItemGroup></Project>

Files are written through a temporary file in the target directory that is
then moved over the destination, with a direct write as fallback. After a
successful write the project file's modification time is bumped so the build
tool notices that its imported fragment changed.

Example::

    from afterorder.core.output_writer import ArtifactWriter, render_targets

    content = render_targets("proj", resolution.order, config.is_auxiliary)
    writer = ArtifactWriter()
    result = writer.write(targets_path("proj/App.fsproj"), content)
    if result.success:
        touch(Path("proj/App.fsproj"))
"""

from __future__ import annotations

import os
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable
from xml.sax.saxutils import quoteattr

from afterorder.utils import path_utils
from afterorder.utils.logger import get_logger

logger = get_logger("afterorder.core.output_writer")

ITEM_SEPARATOR = ";"


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def compile_items(
    root: str,
    order: Iterable[str],
    is_auxiliary: Callable[[str], bool] | None = None,
) -> list[str]:
    """Return the compilable identities of ``order`` relative to ``root``."""
    root_full_path = path_utils.resolve(root)
    items = []
    for identity in order:
        if is_auxiliary is not None and is_auxiliary(identity):
            continue
        items.append(path_utils.relative(root_full_path, path_utils.resolve(identity)))
    return items


def render_targets(
    root: str,
    order: Iterable[str],
    is_auxiliary: Callable[[str], bool] | None = None,
) -> str:
    """Render the ``.targets`` fragment for a compile order.

    Args:
        root: Project root the identities live under
        order: Identities in compile order
        is_auxiliary: Predicate for identities that must not be compiled

    Returns:
        The fragment as a single line of XML.
    """
    include = ITEM_SEPARATOR.join(compile_items(root, order, is_auxiliary))
    return (
        "<Project><ItemGroup>"
        f"<Compile Include={quoteattr(include)}/>"
        "</ItemGroup></Project>"
    )


def targets_path(project_file: str, suffix: str = ".targets") -> Path:
    """Return the artifact path for a project file: ``<dir>/<stem><suffix>``."""
    return Path(path_utils.dirname(project_file) or ".") / (
        path_utils.name_without_ext(project_file) + suffix
    )


def touch(path: Path) -> None:
    """Set the modification time of ``path`` to now.

    Raises:
        OSError: If the file does not exist or cannot be modified.
    """
    os.utime(path, None)
    logger.debug(f"Touched {path}")


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------

@dataclass
class WriteResult:
    """Result of a single artifact write.

    Attributes:
        success: Whether the write operation succeeded.
        output_path: Path the file was written to, ``None`` on failure.
        error: Human-readable error message if the write failed.
        was_atomic: ``True`` if the temp-file strategy was used.
    """

    success: bool
    output_path: Path | None
    error: str | None = None
    was_atomic: bool = False


class ArtifactWriter:
    """Writes artifacts with a temp-file + rename strategy.

    Attributes:
        use_atomic_writes: If ``True`` (default), write through a temporary
            file and fall back to a direct write when that fails.
    """

    def __init__(self, use_atomic_writes: bool = True) -> None:
        self.use_atomic_writes = use_atomic_writes

    def _write_atomic(self, output_path: Path, content: str) -> None:
        """Write via a temp file in the destination directory.

        Raises:
            OSError: On file-system errors (after removing the temp file).
        """
        temp_path: str | None = None
        try:
            with tempfile.NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                delete=False,
                dir=str(output_path.parent),
                prefix=f".{output_path.name}.",
                suffix=".tmp",
            ) as handle:
                temp_path = handle.name
                handle.write(content)
                handle.flush()
                os.fsync(handle.fileno())

            shutil.move(temp_path, str(output_path))
            logger.debug(f"Atomic write: renamed {temp_path} -> {output_path}")

        except OSError as exc:
            logger.error(f"Atomic write failed for {output_path}: {exc}")
            if temp_path is not None and os.path.exists(temp_path):
                try:
                    os.unlink(temp_path)
                except OSError:
                    logger.error(f"Failed to clean up temp file: {temp_path}")
            raise

    def _write_direct(self, output_path: Path, content: str) -> None:
        output_path.write_text(content, encoding="utf-8")
        logger.debug(f"Direct write succeeded: {output_path}")

    def write(self, output_path: Path, content: str) -> WriteResult:
        """Write ``content`` to ``output_path``.

        Failures are returned in the result rather than raised.
        """
        if not output_path.parent.is_dir():
            message = f"Output directory does not exist: {output_path.parent}"
            logger.warning(message)
            return WriteResult(success=False, output_path=None, error=message)

        was_atomic = False
        try:
            if self.use_atomic_writes:
                try:
                    self._write_atomic(output_path, content)
                    was_atomic = True
                except OSError:
                    logger.warning(
                        f"Atomic write failed for {output_path.name}, "
                        "falling back to direct write"
                    )
                    self._write_direct(output_path, content)
            else:
                self._write_direct(output_path, content)
        except OSError as exc:
            logger.error(f"Failed to write {output_path}: {exc}")
            return WriteResult(success=False, output_path=None, error=str(exc))

        logger.info(f"Wrote {output_path}")
        return WriteResult(success=True, output_path=output_path, was_atomic=was_atomic)
