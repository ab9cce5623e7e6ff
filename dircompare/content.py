# Copyright Red Hat
#
# dircompare/content.py - Directory compare snapshot values
#
# This file is part of the dircompare project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Snapshot values for files and directories.

A ``Content`` holds what is found at a path: the bytes of a regular file or
the ordered entries of a directory. It never stores the name of the path it
was read from, so two ``Content`` values compare equal whenever the data and
the names of any descendants match. An ``Entry`` pairs a name with a
``Content`` and compares both.

Both types are immutable, hashable values built by a single walk of the file
system at a point in time::

    from dircompare import Content, Entry

    assert Content.of("fixtures/dir-a") == Content.of("fixtures/dir-b")
    assert Entry.at("fixtures/dir-a") != Entry.at("fixtures/dir-b")
"""
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union
from dataclasses import dataclass
from hashlib import sha256
from pathlib import PurePath
from enum import Enum
import logging
import sys
import os

from ._dircompare import (
    DIRCOMPARE_SUBSYSTEM_SNAPSHOT,
    InvalidPathError,
    EntryIOError,
)

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_snapshot(msg, *args, **kwargs):
    """A wrapper for snapshot subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": DIRCOMPARE_SUBSYSTEM_SNAPSHOT}, **kwargs)


#: Path argument types accepted by ``Content.of()`` and ``Entry.at()``.
PathArg = Union[str, bytes, "os.PathLike[str]", "os.PathLike[bytes]"]

#: The parent directory marker: never a valid entry name.
PARENT_DIR = ".."


class ContentType(Enum):
    """
    Enum for the two kinds of snapshot content.
    """

    FILE = "file"
    DIRECTORY = "directory"


def _entry_name(path: PathArg) -> Optional[str]:
    """
    Return the final component of ``path`` as text.

    Bytes that cannot be decoded using the file system encoding are
    replaced with U+FFFD.

    :param path: The path to examine.
    :type path: ``PathArg``
    :returns: The entry name, or ``None`` if ``path`` has no final name
              component (``..``, ``a/..``, ``.``, the root or empty).
    :rtype: ``Optional[str]``
    """
    name = PurePath(os.fsdecode(path)).name
    if not name or name == PARENT_DIR:
        return None
    return os.fsencode(name).decode(sys.getfilesystemencoding(), errors="replace")


def _read_file(path: PathArg) -> bytes:
    """
    Read the complete content of the regular file at ``path``.
    """
    with open(path, "rb") as f:
        return f.read()


def _list_dir(path: PathArg) -> List[PathArg]:
    """
    Return the paths of the immediate children of ``path`` in the order the
    operating system lists them. ``.`` and ``..`` are never included.
    """
    with os.scandir(path) as it:
        return [dirent.path for dirent in it]


@dataclass(frozen=True, repr=False)
class Content:
    """
    The content of a file or directory, independent of its own name.

    For a file this is its byte content. For a directory it is the tuple of
    its child ``Entry`` values in listing order. The comparison of two
    ``Content`` values ignores the names of the top-level paths they were
    read from but not the names of their children.
    """

    #: Which variant this value is.
    content_type: ContentType
    #: File bytes: ``None`` for directories.
    data: Optional[bytes] = None
    #: Directory entries in listing order: ``None`` for files.
    entries: Optional[Tuple["Entry", ...]] = None

    def __post_init__(self):
        if self.content_type == ContentType.FILE:
            if self.data is None or self.entries is not None:
                raise ValueError("File content requires data and no entries")
            object.__setattr__(self, "data", bytes(self.data))
        elif self.content_type == ContentType.DIRECTORY:
            if self.entries is None or self.data is not None:
                raise ValueError("Directory content requires entries and no data")
            entries = tuple(self.entries)
            for entry in entries:
                if not isinstance(entry, Entry):
                    raise TypeError(f"Directory entries must be Entry, not {entry!r}")
            object.__setattr__(self, "entries", entries)
        else:
            raise ValueError(f"Invalid content type: {self.content_type}")

    @classmethod
    def file(cls, data: bytes) -> "Content":
        """
        Return a new file ``Content`` holding ``data``.
        """
        return cls(ContentType.FILE, data=data)

    @classmethod
    def directory(cls, entries: Iterable["Entry"]) -> "Content":
        """
        Return a new directory ``Content`` holding ``entries`` in the
        given order.
        """
        return cls(ContentType.DIRECTORY, entries=tuple(entries))

    @classmethod
    def of(cls, path: PathArg) -> "Content":
        """
        Read the content of the file or directory at ``path``.

        Regular files (following symbolic links) are read in full. Anything
        else is listed as a directory and each child becomes an ``Entry``,
        in the order the operating system returns them.

        :param path: The path to read.
        :type path: ``PathArg``
        :returns: A snapshot of the content at ``path``.
        :rtype: ``Content``
        :raises OSError: The first I/O error encountered: no partial
                         snapshot is returned.
        """
        _log_debug_snapshot("Reading content of %s", os.fsdecode(path))
        return _snapshot(path)

    @property
    def is_file(self) -> bool:
        """
        ``True`` if this ``Content`` is a file.
        """
        return self.content_type == ContentType.FILE

    @property
    def is_dir(self) -> bool:
        """
        ``True`` if this ``Content`` is a directory.
        """
        return self.content_type == ContentType.DIRECTORY

    @property
    def size(self) -> int:
        """
        The length of a file in bytes or the number of entries in a
        directory.
        """
        if self.is_file:
            return len(self.data)
        return len(self.entries)

    def names(self) -> List[str]:
        """
        Return the names of this directory's entries in order.

        :returns: A list of entry names (empty for files).
        :rtype: ``List[str]``
        """
        if self.is_file:
            return []
        return [entry.name for entry in self.entries]

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert this ``Content`` into a dictionary representation suitable
        for encoding as JSON. File data is represented by its size and
        SHA-256 digest.

        :returns: A dictionary describing this value.
        :rtype: ``Dict[str, Any]``
        """
        if self.is_file:
            return {
                "type": self.content_type.value,
                "size": len(self.data),
                "sha256": sha256(self.data).hexdigest(),
            }
        return {
            "type": self.content_type.value,
            "entries": [entry.to_dict() for entry in self.entries],
        }

    def __str__(self):
        if self.is_file:
            return f"file ({len(self.data)} bytes)"
        return f"directory ({len(self.entries)} entries)"

    def __repr__(self):
        if self.is_file:
            return f"Content.file({self.data!r})"
        return f"Content.directory({list(self.entries)!r})"


@dataclass(frozen=True, repr=False)
class Entry:
    """
    A named file or directory.

    The comparison of two entries is ``False`` whenever their names differ.
    Use ``Content`` instead to compare only what is stored at two paths.
    Names of children always take part in the comparison.
    """

    #: The final component of the path this entry was read from.
    name: str
    #: The content found at that path.
    content: Content

    def __post_init__(self):
        if not self.name or self.name == PARENT_DIR:
            raise ValueError(f"Invalid entry name: {self.name!r}")
        if not isinstance(self.content, Content):
            raise TypeError(f"Entry content must be Content, not {self.content!r}")

    @classmethod
    def at(cls, path: PathArg) -> "Entry":
        """
        Read the entry at ``path``.

        :param path: The path to read.
        :type path: ``PathArg``
        :returns: An ``Entry`` named for the final component of ``path``.
        :rtype: ``Entry``
        :raises InvalidPathError: ``path`` has no final name component, for
                                  example ``..``.
        :raises EntryIOError: Reading ``path`` failed: the original
                              ``OSError`` is available as ``error``.
        """
        name = _entry_name(path)
        if name is None:
            raise InvalidPathError(path)
        try:
            content = Content.of(path)
        except OSError as err:
            raise EntryIOError(err) from err
        return cls(name, content)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert this ``Entry`` into a dictionary representation suitable for
        encoding as JSON.

        :returns: A dictionary describing this value.
        :rtype: ``Dict[str, Any]``
        """
        return {"name": self.name, "content": self.content.to_dict()}

    def __str__(self):
        return f"{self.name}: {self.content}"

    def __repr__(self):
        return f"Entry({self.name!r}, {self.content!r})"


def _snapshot(path: PathArg) -> Content:
    """
    Build the ``Content`` tree for ``path``.

    Directories are descended depth-first using an explicit stack so that
    tree depth is not limited by the interpreter recursion limit. A child
    directory is completed before its next sibling is read, so each entry
    tuple keeps the listing order.
    """
    if os.path.isfile(path):
        return Content.file(_read_file(path))

    root_entries: List[Entry] = []
    # (name, remaining child paths, entries collected so far)
    stack = [(None, iter(_list_dir(path)), root_entries)]

    while stack:
        _, children, entries = stack[-1]
        child = next(children, None)

        if child is None:
            name, _, done = stack.pop()
            if stack:
                stack[-1][2].append(Entry(name, Content.directory(done)))
            continue

        name = _entry_name(child)
        if name is None:
            raise RuntimeError(
                f"Listing {os.fsdecode(path)!r} returned {os.fsdecode(child)!r} "
                "which has no entry name: os.scandir() should skip '..'"
            )

        if os.path.isfile(child):
            _log_debug_snapshot("Reading file %s", os.fsdecode(child))
            entries.append(Entry(name, Content.file(_read_file(child))))
        else:
            _log_debug_snapshot("Listing directory %s", os.fsdecode(child))
            stack.append((name, iter(_list_dir(child)), []))

    return Content.directory(root_entries)


__all__ = [
    "PARENT_DIR",
    "ContentType",
    "Content",
    "Entry",
]
