"""
Path utilities for file identities and file system operations.

This module provides the string-level path arithmetic used to give every
source file a single stable identity relative to a project root, plus a few
helpers for directory creation and permission checks. Path arithmetic never
touches the file system: existence is decided later by whoever reads the file.

Identities always use ``/`` as separator so that keys are byte-identical on
every platform.

Examples:
    >>> from afterorder.utils.path_utils import join, relative
    >>> join("proj", "sub/../Main.fs")
    'proj/Main.fs'
    >>> relative("/work/proj", "/work/proj/src/a.fs")
    'src/a.fs'
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Union

# Type alias for path-like objects
PathLike = Union[str, Path]

# Separator used inside file identities
IDENTITY_SEPARATOR = "/"


def to_identity_form(path: PathLike) -> str:
    """
    Convert a path to the canonical identity form.

    Args:
        path: A file system path as string or Path object.

    Returns:
        The path as a string using ``/`` as separator.

    Examples:
        >>> to_identity_form(Path("src") / "a.fs")
        'src/a.fs'
    """
    text = os.fspath(path)
    if os.sep != IDENTITY_SEPARATOR:
        text = text.replace(os.sep, IDENTITY_SEPARATOR)
    if os.altsep and os.altsep != IDENTITY_SEPARATOR:
        text = text.replace(os.altsep, IDENTITY_SEPARATOR)
    return text


def is_absolute(path: PathLike) -> bool:
    """Return True if path is rooted."""
    return os.path.isabs(os.fspath(path))


def dirname(path: PathLike) -> str:
    """
    Return the directory part of a path.

    Examples:
        >>> dirname("proj/src/a.fs")
        'proj/src'
        >>> dirname("a.fs")
        ''
    """
    return to_identity_form(os.path.dirname(os.fspath(path)))


def file_name(path: PathLike) -> str:
    """Return the final component of a path."""
    return os.path.basename(os.fspath(path))


def name_without_ext(path: PathLike) -> str:
    """
    Return the final component of a path without its extension.

    Examples:
        >>> name_without_ext("proj/App.fsproj")
        'App'
    """
    return os.path.splitext(file_name(path))[0]


def resolve(path: PathLike) -> str:
    """
    Return the absolute form of a path with ``.`` and ``..`` eliminated.

    Relative paths are resolved against the current working directory.
    Symbolic links are not followed.

    Examples:
        >>> resolve("/work/proj/./sub/../a.fs")
        '/work/proj/a.fs'
    """
    return to_identity_form(os.path.abspath(os.fspath(path)))


def relative(base: PathLike, target: PathLike) -> str:
    """
    Express target as a path relative to base.

    Both paths should be absolute; relative inputs are resolved against the
    current working directory first.

    Args:
        base: The directory the result is relative to.
        target: The path to express.

    Returns:
        Relative path from base to target in identity form.

    Raises:
        ValueError: If paths are on different drives (Windows).

    Examples:
        >>> relative("/work/proj", "/work/other/a.fs")
        '../other/a.fs'
    """
    return to_identity_form(os.path.relpath(os.fspath(target), os.fspath(base)))


def combine(directory: PathLike, name: PathLike) -> str:
    """
    Combine a directory and a name.

    An absolute name replaces the directory entirely, an empty directory
    leaves the name unchanged.

    Examples:
        >>> combine("proj", "a.fs")
        'proj/a.fs'
        >>> combine("", "a.fs")
        'a.fs'
    """
    return to_identity_form(os.path.join(os.fspath(directory), os.fspath(name)))


def join(root: PathLike, name: PathLike) -> str:
    """
    Combine root and name, canonicalize, then re-root under root.

    The result keeps the caller's spelling of ``root`` as a prefix while the
    remainder is free of ``.`` and ``..`` segments, so it stays stable
    regardless of the current working directory.

    Args:
        root: Project root as given by the caller.
        name: File name or relative path below (or beside) the root.

    Returns:
        Canonical path in identity form.

    Examples:
        >>> join("proj", "./src/../Main.fs")
        'proj/Main.fs'
    """
    root_full = resolve(root)
    target = resolve(combine(root, name))
    return combine(root, relative(root_full, target))


def normalize_path(path: PathLike) -> Path:
    """
    Convert a string or Path object to a normalized absolute Path.

    Args:
        path: A file system path as string or Path object.

    Returns:
        Normalized absolute Path object.

    Raises:
        ValueError: If path is empty or None.

    Examples:
        >>> normalize_path("~/projects/App.fsproj")
        PosixPath('/home/user/projects/App.fsproj')
    """
    if path is None or (isinstance(path, str) and not path.strip()):
        raise ValueError("Path cannot be None or empty")

    return Path(path).expanduser().resolve()


def ensure_directory(path: Path) -> Path:
    """
    Create directory if it doesn't exist, return Path.

    Args:
        path: Directory path to create.

    Returns:
        The directory Path object.

    Raises:
        OSError: If directory creation fails.
    """
    path.mkdir(parents=True, exist_ok=True)
    return path
