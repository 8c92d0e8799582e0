"""Reads ``// @after`` dependency annotations from a file's header.

Only the leading comment block of a file is inspected. The block is the run
of lines, from the top, that are blank or start with ``//``; the first other
line ends it. Inside the block, every line of the form::

    // @after relative/path/to/Other.fs

declares that the file must be compiled after ``Other.fs``. The reference is
the text after the prefix exactly as written; only the whole line is
stripped of surrounding whitespace.
"""

from __future__ import annotations

from typing import Callable, Iterable, Iterator

ANNOTATION_PREFIX = "// @after "
COMMENT_PREFIX = "//"

# File-content collaborator: identity -> lines, FileNotFoundError if missing
FileReader = Callable[[str], Iterable[str]]


def read_file_lines(identity: str) -> Iterator[str]:
    """Yield the lines of a file on disk.

    ``utf-8-sig`` drops a leading byte order mark, which editors commonly
    write in front of the first comment line. Bytes that are not valid UTF-8
    are replaced with U+FFFD instead of failing the read.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    with open(identity, encoding="utf-8-sig", errors="replace") as handle:
        yield from handle


def _is_header_line(line: str) -> bool:
    return not line or line.startswith(COMMENT_PREFIX)


def _is_annotation(line: str) -> bool:
    return line.startswith(ANNOTATION_PREFIX) and len(line) > len(ANNOTATION_PREFIX)


def collect(identity: str, read_lines: FileReader = read_file_lines) -> Iterator[str]:
    """Yield the raw dependency references declared by a file.

    The sequence is lazy: the file is opened on first iteration and reading
    stops at the first line past the header block.

    Args:
        identity: File identity handed to ``read_lines``.
        read_lines: File-content collaborator.

    Yields:
        Reference strings in declaration order.

    Raises:
        FileNotFoundError: If ``read_lines`` cannot find the file. Raised on
            first iteration and left for the graph builder to interpret.
    """
    for raw in read_lines(identity):
        line = raw.strip()
        if not _is_header_line(line):
            return
        if _is_annotation(line):
            yield line[len(ANNOTATION_PREFIX):]
