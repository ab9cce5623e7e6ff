# Copyright Red Hat
#
# dircompare/contentdiff.py - Directory compare content diffs
#
# This file is part of the dircompare project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Content-aware diff support for modified files.
"""
from typing import Any, Dict, List, Optional
from abc import ABC, abstractmethod
import logging
import difflib
import json

from ._dircompare import DIRCOMPARE_SUBSYSTEM_COMPARE
from .filetypes import FileTypeCategory, FileTypeInfo

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_compare(msg, *args, **kwargs):
    """A wrapper for compare subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": DIRCOMPARE_SUBSYSTEM_COMPARE}, **kwargs)


def _decode(data: Optional[bytes], file_type_info: Optional[FileTypeInfo]) -> str:
    """
    Decode file ``data`` as text using the detected encoding, replacing
    undecodable bytes.

    :param data: The file content, or ``None`` if the file is absent.
    :type data: ``Optional[bytes]``
    :param file_type_info: Detected type information for the file.
    :type file_type_info: ``Optional[FileTypeInfo]``
    :returns: The decoded text (empty for an absent file).
    :rtype: ``str``
    """
    if data is None:
        return ""
    encoding = "utf-8"
    if file_type_info and file_type_info.encoding not in (None, "binary"):
        encoding = file_type_info.encoding
    try:
        return data.decode(encoding, errors="replace")
    except LookupError:
        return data.decode("utf-8", errors="replace")


def _label(path: str, data: Optional[bytes], side: str) -> str:
    """
    Return the unified diff file label for one side of a comparison.
    """
    return f"{side}/{path}" if data is not None else "/dev/null"


class ContentDiff:
    """
    Represents a content-aware diff between two files.
    """

    def __init__(
        self,
        diff_type: str,
        old_content: Optional[str] = None,
        new_content: Optional[str] = None,
        summary: str = "",
    ):
        """
        Initialise a new ``ContentDiff`` object.

        :param diff_type: The kind of diff: 'unified', 'json' or 'binary'.
        :type diff_type: ``str``
        :param old_content: The original content.
        :type old_content: ``str``
        :param new_content: The updated content.
        :type new_content: ``str``
        :param summary: A summary of the difference.
        :type summary: ``str``
        """
        self.diff_type = diff_type
        self.old_content = old_content
        self.new_content = new_content
        self.diff_data: Optional[List[str]] = None
        self.summary = summary
        self.has_changes = False

    def __str__(self):
        """
        Return a string representation of this ``ContentDiff`` object.

        :returns: A human readable string representing this instance.
        :rtype: ``str``
        """
        items = len(self.diff_data) if self.diff_data is not None else 0
        return (
            f"    diff_type: {self.diff_type}\n"
            f"      diff_data: <{items} lines>\n"
            f"      summary: {self.summary}\n"
            f"      has_changes: {self.has_changes}"
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert this ``ContentDiff`` object into a dictionary representation
        suitable for encoding as JSON.

        :returns: A dictionary mapping this instance's keys to values.
        :rtype: ``Dict[str, Any]``
        """
        return {
            "diff_type": self.diff_type,
            "diff_data": self.diff_data,
            "summary": self.summary,
            "has_changes": self.has_changes,
        }


class ContentDifferBase(ABC):
    """
    Base class for content-aware diff implementations.
    """

    @abstractmethod
    def can_handle(self, file_type_info: FileTypeInfo) -> bool:
        """
        Return True if this differ can handle the given file type.

        :param file_type_info: File type information for the file to compare.
        :type file_type_info: ``FileTypeInfo``
        :returns: ``True`` if this content differ can handle this file.
        :rtype: ``bool``
        """

    @abstractmethod
    def generate_diff(
        self,
        path: str,
        old_data: Optional[bytes],
        new_data: Optional[bytes],
        file_type_info: Optional[FileTypeInfo],
    ) -> ContentDiff:
        """
        Generate content diff between two versions of a file.

        :param path: The relative path of the file in the compared trees.
        :type path: ``str``
        :param old_data: The original content or ``None`` if absent.
        :type old_data: ``Optional[bytes]``
        :param new_data: The updated content or ``None`` if absent.
        :type new_data: ``Optional[bytes]``
        :param file_type_info: Detected type information for the file.
        :type file_type_info: ``Optional[FileTypeInfo]``
        :returns: A diff of the two versions.
        :rtype: ``ContentDiff``
        """

    @property
    @abstractmethod
    def priority(self) -> int:
        """
        Priority for selection when multiple differs match (higher = preferred)

        :returns: Integer priority level.
        :rtype: ``int``
        """


class TextContentDiffer(ContentDifferBase):
    """
    Default text-based content differ.
    """

    def can_handle(self, file_type_info: FileTypeInfo) -> bool:
        return file_type_info.is_text_like

    def generate_diff(
        self,
        path: str,
        old_data: Optional[bytes],
        new_data: Optional[bytes],
        file_type_info: Optional[FileTypeInfo],
    ) -> ContentDiff:
        """
        Generate unified diff for text files.
        """
        old_text = _decode(old_data, file_type_info)
        new_text = _decode(new_data, file_type_info)

        diff_lines = list(
            difflib.unified_diff(
                old_text.splitlines(keepends=True),
                new_text.splitlines(keepends=True),
                fromfile=_label(path, old_data, "a"),
                tofile=_label(path, new_data, "b"),
                lineterm="\n",
            )
        )

        content_diff = ContentDiff(
            "unified", old_content=old_text, new_content=new_text
        )
        content_diff.diff_data = diff_lines
        content_diff.has_changes = len(diff_lines) > 0

        def diff_summary(lines, prefix, desc):
            """
            Count the ``prefix`` lines in ``lines``, skipping file headers.
            """
            count = len(
                [
                    ln
                    for ln in lines
                    if ln.startswith(prefix) and not ln.startswith(3 * prefix)
                ]
            )
            return f"{count} {desc}"

        content_diff.summary = ", ".join(
            (
                diff_summary(diff_lines, "-", "deletions"),
                diff_summary(diff_lines, "+", "additions"),
            )
        )
        return content_diff

    @property
    def priority(self) -> int:
        return 10


class JsonContentDiffer(ContentDifferBase):
    """
    JSON-aware content differ: compares key-sorted, indented renderings so
    that formatting and key order changes do not appear in the diff.
    """

    def can_handle(self, file_type_info: FileTypeInfo) -> bool:
        return file_type_info.mime_type.startswith("application/json")

    def generate_diff(
        self,
        path: str,
        old_data: Optional[bytes],
        new_data: Optional[bytes],
        file_type_info: Optional[FileTypeInfo],
    ) -> ContentDiff:
        """
        Generate structured JSON diff, falling back to a text diff if either
        side is absent or is not valid JSON.
        """
        if old_data is None or new_data is None:
            return TextContentDiffer().generate_diff(
                path, old_data, new_data, file_type_info
            )

        try:
            old_obj = json.loads(_decode(old_data, file_type_info))
            new_obj = json.loads(_decode(new_data, file_type_info))
        except ValueError as err:
            _log_debug_compare(
                "JsonContentDiffer could not parse %s as JSON (%s), "
                "falling back to TextContentDiffer",
                path,
                err,
            )
            return TextContentDiffer().generate_diff(
                path, old_data, new_data, file_type_info
            )

        old_pretty = json.dumps(old_obj, indent=2, sort_keys=True) + "\n"
        new_pretty = json.dumps(new_obj, indent=2, sort_keys=True) + "\n"

        diff_lines = list(
            difflib.unified_diff(
                old_pretty.splitlines(keepends=True),
                new_pretty.splitlines(keepends=True),
                fromfile=_label(path, old_data, "a"),
                tofile=_label(path, new_data, "b"),
                lineterm="\n",
            )
        )

        content_diff = ContentDiff(
            "json", old_content=old_pretty, new_content=new_pretty
        )
        content_diff.diff_data = diff_lines
        content_diff.has_changes = len(diff_lines) > 0
        content_diff.summary = (
            "JSON structure changes detected"
            if content_diff.has_changes
            else "JSON formatting changes only"
        )
        return content_diff

    @property
    def priority(self) -> int:
        return 50  # Higher than text differ


class BinaryContentDiffer(ContentDifferBase):
    """
    Binary file content differ.
    """

    binary_types = (
        FileTypeCategory.BINARY,
        FileTypeCategory.IMAGE,
        FileTypeCategory.ARCHIVE,
        FileTypeCategory.EXECUTABLE,
        FileTypeCategory.DATABASE,
        FileTypeCategory.DOCUMENT,
        FileTypeCategory.UNKNOWN,
    )

    def can_handle(self, file_type_info: FileTypeInfo) -> bool:
        return file_type_info.category in self.binary_types

    def generate_diff(
        self,
        path: str,
        old_data: Optional[bytes],
        new_data: Optional[bytes],
        file_type_info: Optional[FileTypeInfo],
    ) -> ContentDiff:
        """
        Generate binary diff summary: size change and the offset of the
        first differing byte.
        """
        content_diff = ContentDiff("binary")
        old_data = old_data if old_data is not None else b""
        new_data = new_data if new_data is not None else b""

        size_diff = len(new_data) - len(old_data)
        content_diff.has_changes = old_data != new_data

        if size_diff != 0:
            content_diff.summary = f"Binary file size changed by {size_diff:+d} bytes"
        elif content_diff.has_changes:
            offset = next(
                i for i, (old, new) in enumerate(zip(old_data, new_data)) if old != new
            )
            content_diff.summary = (
                f"Binary file content changed (same size, first difference "
                f"at byte {offset})"
            )
        else:
            content_diff.summary = "Binary file unchanged"

        return content_diff

    @property
    def priority(self) -> int:
        return 5  # Lower than text differ


class ContentDifferManager:
    """
    Manager for content-aware diff implementations.
    """

    def __init__(self):
        """
        Initialise a new ``ContentDifferManager`` instance.
        """
        self.differs: List[ContentDifferBase] = []
        self._register_default_differs()

    def _register_default_differs(self):
        """
        Register built-in content differs.
        """
        self.register_differ(JsonContentDiffer())
        self.register_differ(TextContentDiffer())
        self.register_differ(BinaryContentDiffer())

    def register_differ(self, differ: ContentDifferBase):
        """
        Register a new content differ.
        """
        self.differs.append(differ)
        self.differs.sort(key=lambda d: d.priority, reverse=True)

    def get_differ_for_file(self, file_type_info: FileTypeInfo) -> ContentDifferBase:
        """
        Get the best content differ for a file type.

        :param file_type_info: The file type to find a differ for.
        :type file_type_info: ``FileTypeInfo``
        :returns: An appropriate differ for ``file_type_info``.
        :rtype: A ``ContentDifferBase`` subclass.
        """
        for differ in self.differs:
            if differ.can_handle(file_type_info):
                return differ
        return BinaryContentDiffer()

    def generate_content_diff(
        self,
        path: str,
        old_data: Optional[bytes],
        new_data: Optional[bytes],
        file_type_info: Optional[FileTypeInfo],
    ) -> ContentDiff:
        """
        Generate content diff using the appropriate differ.

        :param path: The relative path of the file in the compared trees.
        :type path: ``str``
        :param old_data: The original content or ``None`` if absent.
        :type old_data: ``Optional[bytes]``
        :param new_data: The updated content or ``None`` if absent.
        :type new_data: ``Optional[bytes]``
        :param file_type_info: Detected type information for the file.
        :type file_type_info: ``Optional[FileTypeInfo]``
        :returns: A diff of the two versions.
        :rtype: ``ContentDiff``
        """
        differ = (
            self.get_differ_for_file(file_type_info)
            if file_type_info is not None
            else BinaryContentDiffer()
        )
        _log_debug_compare(
            "Generating %s diff for %s", differ.__class__.__name__, path
        )
        return differ.generate_diff(path, old_data, new_data, file_type_info)


__all__ = [
    "ContentDiff",
    "ContentDifferBase",
    "ContentDifferManager",
    "TextContentDiffer",
    "JsonContentDiffer",
    "BinaryContentDiffer",
]
