"""Canonical file identities for dependency references.

A reference found in a ``// @after`` annotation can be written relative to
the referencing file, relative through ``..`` segments, or as an absolute
path. ``Canonicalizer`` maps all of these spellings to one identity string
rooted under the project root, so memoization and cycle detection can key on
plain string equality.

Example:
    >>> canon = Canonicalizer("proj")
    >>> canon.identity("../x.fs", base_dir="proj/sub")
    'proj/x.fs'
    >>> canon.identity("./sub/../x.fs", base_dir="proj")
    'proj/x.fs'
"""

from __future__ import annotations

from typing import Callable

from afterorder.utils import path_utils

# Reference remapping strategy applied before canonicalization
Remap = Callable[[str], str]


def identity_remap(reference: str) -> str:
    """Default remapping strategy: leave the reference untouched."""
    return reference


class Canonicalizer:
    """Maps raw references to File Identities below a project root.

    Attributes:
        root: Project root exactly as the caller spelled it; every identity
            starts with this prefix.
        root_full_path: Absolute form of the root used for relative math.
        remap: Strategy applied to every raw reference first.
    """

    def __init__(self, root: str, remap: Remap | None = None) -> None:
        self.root = path_utils.to_identity_form(root)
        self.root_full_path = path_utils.resolve(root)
        self.remap: Remap = remap or identity_remap

    def entry_identity(self, entrypoint: str) -> str:
        """Return the identity of an entry file named relative to the root."""
        return path_utils.join(self.root, entrypoint)

    def identity(self, reference: str, base_dir: str) -> str:
        """Return the identity a reference denotes.

        Args:
            reference: Raw reference text from an annotation.
            base_dir: Directory of the referencing file (itself an identity
                directory, i.e. under the root).

        Returns:
            The canonical identity string.
        """
        reference = self.remap(reference)

        if path_utils.is_absolute(reference):
            below_root = path_utils.relative(self.root_full_path, reference)
        else:
            absolute = path_utils.resolve(
                path_utils.combine(path_utils.resolve(base_dir), reference)
            )
            below_root = path_utils.relative(self.root_full_path, absolute)

        return path_utils.combine(self.root, below_root)

    def __repr__(self) -> str:
        return f"Canonicalizer(root={self.root!r})"
