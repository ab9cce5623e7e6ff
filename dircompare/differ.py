# Copyright Red Hat
#
# dircompare/differ.py - Directory compare difference engine
#
# This file is part of the dircompare project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Explain why two snapshots are not equal.

``Content`` and ``Entry`` equality answers whether two trees match. The
``DiffEngine`` walks both trees and returns a ``CompareResults`` list
naming every path that differs, which is empty exactly when the two values
compare equal.
"""
from typing import Any, ClassVar, Dict, Iterator, List, Optional, Tuple, Union
from enum import Enum
import logging
import json

from ._dircompare import DIRCOMPARE_SUBSYSTEM_COMPARE
from .content import Content, Entry
from .contentdiff import ContentDiff, ContentDifferManager
from .filetypes import FileTypeDetector, FileTypeInfo
from .options import CompareOptions

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_compare(msg, *args, **kwargs):
    """A wrapper for compare subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": DIRCOMPARE_SUBSYSTEM_COMPARE}, **kwargs)


#: Relative path used for the top of the compared trees.
ROOT_PATH = "."


class DiffType(Enum):
    """
    Enum for different difference types.
    """

    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"
    TYPE_CHANGED = "type_changed"
    REORDERED = "reordered"
    RENAMED = "renamed"


def _child_path(path: str, name: str) -> str:
    """
    Return the relative path of ``name`` inside the directory at ``path``.
    """
    return name if path == ROOT_PATH else f"{path}/{name}"


def _leaf_name(path: str) -> str:
    """
    Return the final component of relative path ``path``.
    """
    return path.rsplit("/", 1)[-1]


#: Marker printed after a diff line from a file with no final newline.
NO_NEWLINE_MARKER = "\\ No newline at end of file"


def _render_diff_lines(diff_data: List[str]) -> List[str]:
    """
    Return unified diff lines without their line terminators, adding
    ``NO_NEWLINE_MARKER`` after any line that had none.
    """
    lines = []
    for line in diff_data:
        if line.endswith("\n"):
            lines.append(line[:-1])
        else:
            lines.append(line)
            lines.append(NO_NEWLINE_MARKER)
    return lines


class DiffRecord:
    """
    A single difference between two snapshots.
    """

    def __init__(
        self,
        path: str,
        diff_type: DiffType,
        old: Optional[Content] = None,
        new: Optional[Content] = None,
    ):
        """
        Initialise a new ``DiffRecord`` object.

        :param path: The relative path of the difference, ``"."`` for the
                     top of the compared trees.
        :type path: ``str``
        :param diff_type: The kind of difference.
        :type diff_type: ``DiffType``
        :param old: The original content at ``path``, if present.
        :type old: ``Optional[Content]``
        :param new: The updated content at ``path``, if present.
        :type new: ``Optional[Content]``
        """
        self.path = path
        self.diff_type = diff_type
        self.old = old
        self.new = new
        #: Top-level names for ``DiffType.RENAMED`` records
        self.old_name: Optional[str] = None
        self.new_name: Optional[str] = None
        #: Detected file type for file records
        self.file_type_info: Optional[FileTypeInfo] = None
        #: Content diff for file records, if generated
        self.content_diff: Optional[ContentDiff] = None

    @property
    def has_content_diff(self) -> bool:
        """
        ``True`` if this record carries a content diff with changes.
        """
        return self.content_diff is not None and self.content_diff.has_changes

    @property
    def description(self) -> str:
        """
        A one line description of this difference.
        """
        if self.diff_type == DiffType.RENAMED:
            return f"name changed from {self.old_name!r} to {self.new_name!r}"
        if self.diff_type == DiffType.REORDERED:
            return "directory entries listed in a different order"
        if self.diff_type == DiffType.TYPE_CHANGED:
            return f"{self.old.content_type.value} became {self.new.content_type.value}"
        if self.diff_type == DiffType.ADDED:
            return f"{self.new} added"
        if self.diff_type == DiffType.REMOVED:
            return f"{self.old} removed"
        if self.content_diff is not None:
            return self.content_diff.summary
        return f"{self.old} changed to {self.new}"

    def __str__(self) -> str:
        """
        Return a string representation of this ``DiffRecord`` object.

        :returns: A human readable representation of this ``DiffRecord``.
        :rtype: ``str``
        """
        out = (
            f"Path: {self.path}\n"
            f"  diff_type: {self.diff_type.value}\n"
            f"  description: {self.description}"
        )
        if self.file_type_info is not None:
            out += f"\n  file_type: {self.file_type_info.mime_type}"
        return out

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert this ``DiffRecord`` object into a dictionary representation
        suitable for encoding as JSON.

        :returns: A dictionary mapping this instance's keys to values.
        :rtype: ``Dict[str, Any]``
        """
        out = {
            "path": self.path,
            "diff_type": self.diff_type.value,
            "description": self.description,
            "old": self.old.to_dict() if self.old is not None else None,
            "new": self.new.to_dict() if self.new is not None else None,
        }
        if self.diff_type == DiffType.RENAMED:
            out["old_name"] = self.old_name
            out["new_name"] = self.new_name
        if self.file_type_info is not None:
            out["file_type"] = self.file_type_info.mime_type
            out["file_category"] = self.file_type_info.category.value
        if self.content_diff is not None:
            out["content_diff"] = self.content_diff.to_dict()
        return out


class CompareResults:
    """Container for comparison results with formatting methods."""

    #: Constant for the names of the string output formats
    OUTPUT_FORMATS: ClassVar[List[str]] = [
        "paths",
        "short",
        "json",
        "diff",
        "summary",
    ]

    def __init__(self, records: List[DiffRecord], options: CompareOptions):
        self._records = records
        self.options = options

    def __repr__(self) -> str:
        return f"CompareResults([...], {self.options!r})"

    def __iter__(self) -> Iterator[DiffRecord]:
        return iter(self._records)

    def __len__(self):
        return len(self._records)

    def __getitem__(self, index: int) -> DiffRecord:
        return self._records[index]

    @property
    def equal(self) -> bool:
        """
        ``True`` if the compared values are equal (no differences).
        """
        return not self._records

    def _of_type(self, diff_type: DiffType) -> List[DiffRecord]:
        return [r for r in self._records if r.diff_type == diff_type]

    @property
    def added(self) -> List[DiffRecord]:
        """Records with ``DiffType.ADDED`` type."""
        return self._of_type(DiffType.ADDED)

    @property
    def removed(self) -> List[DiffRecord]:
        """Records with ``DiffType.REMOVED`` type."""
        return self._of_type(DiffType.REMOVED)

    @property
    def modified(self) -> List[DiffRecord]:
        """Records with ``DiffType.MODIFIED`` type."""
        return self._of_type(DiffType.MODIFIED)

    @property
    def type_changed(self) -> List[DiffRecord]:
        """Records with ``DiffType.TYPE_CHANGED`` type."""
        return self._of_type(DiffType.TYPE_CHANGED)

    @property
    def reordered(self) -> List[DiffRecord]:
        """Records with ``DiffType.REORDERED`` type."""
        return self._of_type(DiffType.REORDERED)

    @property
    def renamed(self) -> List[DiffRecord]:
        """Records with ``DiffType.RENAMED`` type."""
        return self._of_type(DiffType.RENAMED)

    @property
    def content_changes(self) -> int:
        """
        Return the number of records carrying a content diff.
        """
        return len([r for r in self._records if r.has_content_diff])

    def paths(self) -> List[str]:
        """
        Return a list of paths that differ.

        :returns: Path list.
        :rtype: ``List[str]``
        """
        return [record.path for record in self._records]

    def short(self) -> str:
        """
        Return a brief description of each difference.

        :returns: Brief string description of the differences.
        :rtype: ``str``
        """
        return "\n".join(str(record) for record in self._records)

    def json(self, pretty: bool = False) -> str:
        """
        Return JSON representation of the differences.

        :param pretty: Indent JSON to be human readable.
        :type pretty: ``bool``
        :returns: JSON string description of the differences.
        :rtype: ``str``
        """
        dicts = [record.to_dict() for record in self._records]
        return json.dumps(dicts, indent=4 if pretty else None)

    def diff(self) -> str:
        """
        Return unified diff representation of content changes.

        :returns: Unified diff text for text files and a one line summary
                  for binary files.
        :rtype: ``str``
        """
        out = []
        for record in self._records:
            if not record.has_content_diff:
                continue
            content_diff = record.content_diff
            if content_diff.diff_data:
                out.extend(_render_diff_lines(content_diff.diff_data))
            else:
                out.append(
                    f"Binary files a/{record.path} and b/{record.path} differ: "
                    f"{content_diff.summary}"
                )
        return "\n".join(out)

    def summary(self) -> str:
        """
        Return a summary of this ``CompareResults`` instance.

        :returns: A string summarizing the differences by type.
        :rtype: ``str``
        """
        return (
            f"Total differences: {len(self)}\n"
            f"  Paths added:      {len(self.added)}\n"
            f"  Paths removed:    {len(self.removed)}\n"
            f"  Paths modified:   {len(self.modified)}\n"
            f"  Paths withdiff:   {self.content_changes}\n"
            f"  Paths retyped:    {len(self.type_changed)}\n"
            f"  Paths reordered:  {len(self.reordered)}\n"
            f"  Paths renamed:    {len(self.renamed)}"
        )


class DiffEngine:
    """
    Core class for explaining differences between snapshots.
    """

    def __init__(self, options: Optional[CompareOptions] = None):
        """
        Initialise a new ``DiffEngine`` instance.

        :param options: Options to control content diff generation.
        :type options: ``Optional[CompareOptions]``
        """
        self.options: CompareOptions = options or CompareOptions()
        self.file_type_detector = FileTypeDetector()
        self.content_differ = ContentDifferManager()

    def _file_record(
        self,
        path: str,
        diff_type: DiffType,
        old: Optional[Content],
        new: Optional[Content],
    ) -> DiffRecord:
        """
        Build a record for a file difference, attaching type information and
        a content diff where enabled and within the size limit.
        """
        record = DiffRecord(path, diff_type, old, new)
        old_data = old.data if old is not None and old.is_file else None
        new_data = new.data if new is not None and new.is_file else None
        sample = new_data if new_data is not None else old_data
        if sample is None:
            return record

        record.file_type_info = self.file_type_detector.detect_content_type(
            _leaf_name(path), sample, use_magic=self.options.use_magic_file_type
        )

        if not self.options.include_content_diffs:
            return record

        limit = self.options.max_content_diff_size
        if any(d is not None and len(d) > limit for d in (old_data, new_data)):
            _log_debug_compare("Skipping content diff for %s: size > %d", path, limit)
            return record

        record.content_diff = self.content_differ.generate_content_diff(
            path, old_data, new_data, record.file_type_info
        )
        return record

    def _compare_dirs(
        self,
        path: str,
        old: Content,
        new: Content,
        records: List[DiffRecord],
        pending: List[Tuple[str, Content, Content]],
    ):
        """
        Record the differences between the entries of two directories at
        ``path`` and queue common children for comparison.
        """
        old_children = {entry.name: entry.content for entry in old.entries}
        new_children = {entry.name: entry.content for entry in new.entries}

        if len(old_children) != len(old.entries) or len(new_children) != len(
            new.entries
        ):
            _log_warn("Duplicate entry names under %s: reporting as modified", path)
            records.append(DiffRecord(path, DiffType.MODIFIED, old, new))
            return

        old_names = old.names()
        new_names = new.names()

        common_old = [name for name in old_names if name in new_children]
        common_new = [name for name in new_names if name in old_children]
        if common_old != common_new:
            records.append(DiffRecord(path, DiffType.REORDERED, old, new))

        for name in old_names:
            if name not in new_children:
                child = _child_path(path, name)
                content = old_children[name]
                if content.is_file:
                    records.append(
                        self._file_record(child, DiffType.REMOVED, content, None)
                    )
                else:
                    records.append(DiffRecord(child, DiffType.REMOVED, content, None))

        for name in new_names:
            if name not in old_children:
                child = _child_path(path, name)
                content = new_children[name]
                if content.is_file:
                    records.append(
                        self._file_record(child, DiffType.ADDED, None, content)
                    )
                else:
                    records.append(DiffRecord(child, DiffType.ADDED, None, content))

        # Reversed so that children are compared in listing order.
        for name in reversed(common_old):
            pending.append(
                (_child_path(path, name), old_children[name], new_children[name])
            )

    def _compare(self, path: str, old: Content, new: Content) -> List[DiffRecord]:
        """
        Walk two ``Content`` trees and return the list of differences.
        """
        records: List[DiffRecord] = []
        pending = [(path, old, new)]

        while pending:
            path, old, new = pending.pop()
            if old == new:
                continue

            if old.content_type != new.content_type:
                _log_debug_compare("Type changed at %s", path)
                records.append(DiffRecord(path, DiffType.TYPE_CHANGED, old, new))
            elif old.is_file:
                _log_debug_compare("Content modified at %s", path)
                records.append(self._file_record(path, DiffType.MODIFIED, old, new))
            else:
                self._compare_dirs(path, old, new, records, pending)

        return records

    def compare_contents(self, old: Content, new: Content) -> CompareResults:
        """
        Compare two ``Content`` snapshots.

        :param old: The original (left hand) snapshot.
        :type old: ``Content``
        :param new: The updated (right hand) snapshot.
        :type new: ``Content``
        :returns: The differences: empty iff ``old == new``.
        :rtype: ``CompareResults``
        """
        records = self._compare(ROOT_PATH, old, new)
        _log_info("Found %d differences", len(records))
        return CompareResults(records, self.options)

    def compare_entries(self, old: Entry, new: Entry) -> CompareResults:
        """
        Compare two ``Entry`` snapshots, including their top-level names.

        :param old: The original (left hand) snapshot.
        :type old: ``Entry``
        :param new: The updated (right hand) snapshot.
        :type new: ``Entry``
        :returns: The differences: empty iff ``old == new``.
        :rtype: ``CompareResults``
        """
        records = []
        if old.name != new.name:
            _log_debug_compare("Name changed: %s -> %s", old.name, new.name)
            renamed = DiffRecord(ROOT_PATH, DiffType.RENAMED, old.content, new.content)
            renamed.old_name = old.name
            renamed.new_name = new.name
            records.append(renamed)
        records.extend(self._compare(ROOT_PATH, old.content, new.content))
        _log_info("Found %d differences", len(records))
        return CompareResults(records, self.options)

    def compare(
        self, old: Union[Content, Entry], new: Union[Content, Entry]
    ) -> CompareResults:
        """
        Compare two snapshots of the same kind.

        :raises TypeError: ``old`` and ``new`` are not both ``Content`` or
                           both ``Entry`` values.
        """
        if isinstance(old, Entry) and isinstance(new, Entry):
            return self.compare_entries(old, new)
        if isinstance(old, Content) and isinstance(new, Content):
            return self.compare_contents(old, new)
        raise TypeError(
            f"Cannot compare {type(old).__name__} with {type(new).__name__}"
        )


def compare_contents(
    old: Content, new: Content, options: Optional[CompareOptions] = None
) -> CompareResults:
    """
    Compare two ``Content`` snapshots and return the differences.
    """
    return DiffEngine(options).compare_contents(old, new)


def compare_entries(
    old: Entry, new: Entry, options: Optional[CompareOptions] = None
) -> CompareResults:
    """
    Compare two ``Entry`` snapshots and return the differences.
    """
    return DiffEngine(options).compare_entries(old, new)


__all__ = [
    "DiffType",
    "DiffRecord",
    "CompareResults",
    "DiffEngine",
    "compare_contents",
    "compare_entries",
]
