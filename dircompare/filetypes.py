# Copyright Red Hat
#
# dircompare/filetypes.py - Directory compare file types
#
# This file is part of the dircompare project.
#
# SPDX-License-Identifier: Apache-2.0
"""
File type information support.

Snapshots hold file bytes rather than paths, so detection works on the
entry name and the data read at snapshot time.
"""
from typing import ClassVar, Dict, Optional, Tuple
from pathlib import PurePath
from enum import Enum
import logging
import magic

from ._dircompare import DIRCOMPARE_SUBSYSTEM_COMPARE

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_compare(msg, *args, **kwargs):
    """A wrapper for compare subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": DIRCOMPARE_SUBSYSTEM_COMPARE}, **kwargs)


#: Number of leading bytes examined when sniffing content.
_SNIFF_SIZE = 8192

# Format: ".ext": ("mime/type", "description starting with lowercase")
TEXT_EXTENSION_MAP = {
    ".txt": ("text/plain", "plain text document"),
    ".md": ("text/markdown", "markdown documentation"),
    ".rst": ("text/x-rst", "reStructuredText document"),
    ".json": ("application/json", "json data file"),
    ".jsonl": ("application/x-jsonlines", "json lines data file"),
    ".xml": ("application/xml", "xml document"),
    ".yaml": ("application/yaml", "yaml configuration file"),
    ".yml": ("application/yaml", "yaml configuration file"),
    ".toml": ("application/toml", "toml configuration file"),
    ".ini": ("text/x-ini", "ini configuration file"),
    ".cfg": ("text/x-config", "configuration file"),
    ".conf": ("text/x-config", "configuration file"),
    ".csv": ("text/csv", "comma-separated values"),
    ".log": ("text/x-log", "log file"),
    ".html": ("text/html", "html document"),
    ".css": ("text/css", "cascading style sheet"),
    ".svg": ("image/svg+xml", "scalable vector graphics"),
    ".js": ("text/javascript", "javascript source code"),
    ".ts": ("application/typescript", "typescript source code"),
    ".sh": ("application/x-sh", "shell script"),
    ".py": ("text/x-python", "python source code"),
    ".c": ("text/x-c", "c source code"),
    ".h": ("text/x-c", "c header file"),
    ".cpp": ("text/x-c++", "c++ source code"),
    ".go": ("text/x-go", "go source code"),
    ".rs": ("text/rust", "rust source code"),
    ".java": ("text/x-java-source", "java source code"),
    ".diff": ("text/x-diff", "patch diff file"),
    ".patch": ("text/x-diff", "patch file"),
}

# Format: "filename": ("mime/type", "description starting with lowercase")
TEXT_FILENAME_MAP = {
    "*makefile": ("text/x-makefile", "makefile build script"),
    "*dockerfile": ("text/x-dockerfile", "docker build script"),
    "*license": ("text/plain", "license text"),
    "*readme": ("text/plain", "readme text"),
    "*changelog": ("text/plain", "changelog text"),
}

# Format: ".ext": ("mime/type", "description starting with lowercase")
BINARY_EXTENSION_MAP = {
    ".bin": ("application/octet-stream", "binary data file"),
    ".o": ("application/x-object", "object file"),
    ".so": ("application/x-sharedlib", "shared library"),
    ".pyc": ("application/x-python-code", "compiled python bytecode"),
    ".zip": ("application/zip", "zip archive"),
    ".tar": ("application/x-tar", "tar archive"),
    ".gz": ("application/gzip", "gzip compressed file"),
    ".xz": ("application/x-xz", "xz compressed file"),
    ".zst": ("application/zstd", "zstandard compressed file"),
    ".png": ("image/png", "png image"),
    ".jpg": ("image/jpeg", "jpeg image"),
    ".jpeg": ("image/jpeg", "jpeg image"),
    ".gif": ("image/gif", "gif image"),
    ".pdf": ("application/pdf", "pdf document"),
    ".sqlite": ("application/vnd.sqlite3", "sqlite database"),
    ".db": ("application/vnd.sqlite3", "database file"),
}


def _guess_from_name(name: str) -> Optional[Tuple[str, str, str]]:
    """
    Attempt to guess a file's MIME type and description based on the file
    name and extension.

    :param name: The entry name to check.
    :type name: ``str``
    :returns: A 3-tuple containing (mime_type, description, encoding) if the
              type could be guessed or ``None`` otherwise.
    :rtype: ``Optional[Tuple[str, str, str]]``
    """
    name_path = PurePath(name.lower())
    for file_name_pattern, guess in TEXT_FILENAME_MAP.items():
        if name_path.match(file_name_pattern):
            return (*guess, "utf-8")

    extension = name_path.suffix
    if extension in BINARY_EXTENSION_MAP:
        return (*BINARY_EXTENSION_MAP[extension], "binary")
    if extension in TEXT_EXTENSION_MAP:
        return (*TEXT_EXTENSION_MAP[extension], "utf-8")
    return None


def _sniff_content(data: bytes) -> Tuple[str, str, str]:
    """
    Guess whether ``data`` is text or binary from its leading bytes.

    :param data: The file content.
    :type data: ``bytes``
    :returns: A 3-tuple containing (mime_type, description, encoding).
    :rtype: ``Tuple[str, str, str]``
    """
    if not data:
        return ("inode/x-empty", "empty", "binary")
    head = data[:_SNIFF_SIZE]
    if b"\x00" in head:
        return ("application/octet-stream", "data", "binary")
    try:
        data.decode("utf-8")
    except UnicodeDecodeError:
        return ("application/octet-stream", "data", "binary")
    return ("text/plain", "UTF-8 text", "utf-8")


class FileTypeCategory(Enum):
    """
    Enum for file type categories.
    """

    TEXT = "text"
    BINARY = "binary"
    IMAGE = "image"
    ARCHIVE = "archive"
    EXECUTABLE = "executable"
    CONFIG = "config"
    LOG = "log"
    DATABASE = "database"
    DOCUMENT = "document"
    SOURCE_CODE = "source_code"
    EMPTY = "empty"
    UNKNOWN = "unknown"


class FileTypeInfo:
    """
    Class representing file type information and encoding.
    """

    def __init__(
        self,
        mime_type: str,
        description: str,
        category: FileTypeCategory,
        encoding: Optional[str] = None,
    ):
        """
        Initialise a new ``FileTypeInfo`` object.

        :param mime_type: The detected MIME type.
        :type mime_type: ``str``
        :param description: Type description returned by magic.
        :type description: ``str``
        :param category: File type category.
        :type category: ``FileTypeCategory``
        :param encoding: Optional file encoding.
        :type encoding: ``Optional[str]``
        """
        self.mime_type = mime_type
        self.description = description
        self.category = category
        self.encoding = encoding
        self.is_text_like = category in (
            FileTypeCategory.TEXT,
            FileTypeCategory.CONFIG,
            FileTypeCategory.LOG,
            FileTypeCategory.SOURCE_CODE,
            FileTypeCategory.EMPTY,
        ) or (category == FileTypeCategory.DOCUMENT and mime_type.startswith("text/"))

    def __str__(self):
        """
        Return a string representation of this ``FileTypeInfo`` object.

        :returns: A human readable string describing this instance.
        :rtype: ``str``
        """
        return (
            f"MIME type: {self.mime_type}, "
            f"Category: {self.category.value}, "
            f"Encoding: {self.encoding if self.encoding else 'unknown'}, "
            f"Description: {self.description}"
        )


class FileTypeDetector:
    """
    Detect file types from names and content, optionally using ``magic``
    from file-magic.
    """

    # fmt: off
    category_rules: ClassVar[Dict[str, FileTypeCategory]] = {
        "inode/x-empty": FileTypeCategory.EMPTY,
        # --- Archives & Compression ---
        "application/zip": FileTypeCategory.ARCHIVE,
        "application/x-tar": FileTypeCategory.ARCHIVE,
        "application/gzip": FileTypeCategory.ARCHIVE,
        "application/x-gzip": FileTypeCategory.ARCHIVE,
        "application/x-xz": FileTypeCategory.ARCHIVE,
        "application/zstd": FileTypeCategory.ARCHIVE,
        # --- Executables & Libraries ---
        "application/x-executable": FileTypeCategory.EXECUTABLE,
        "application/x-sharedlib": FileTypeCategory.EXECUTABLE,
        "application/x-pie-executable": FileTypeCategory.EXECUTABLE,
        "application/x-object": FileTypeCategory.EXECUTABLE,
        "application/x-python-code": FileTypeCategory.EXECUTABLE,
        # --- Documents ---
        "application/pdf": FileTypeCategory.DOCUMENT,
        "text/markdown": FileTypeCategory.DOCUMENT,
        "text/x-rst": FileTypeCategory.DOCUMENT,
        # --- Configuration & Data Serialization ---
        "application/json": FileTypeCategory.CONFIG,
        "application/x-jsonlines": FileTypeCategory.CONFIG,
        "application/xml": FileTypeCategory.CONFIG,
        "text/xml": FileTypeCategory.CONFIG,
        "application/yaml": FileTypeCategory.CONFIG,
        "application/toml": FileTypeCategory.CONFIG,
        "text/x-ini": FileTypeCategory.CONFIG,
        "text/x-config": FileTypeCategory.CONFIG,
        # --- Databases ---
        "application/vnd.sqlite3": FileTypeCategory.DATABASE,
        "application/x-sqlite3": FileTypeCategory.DATABASE,
        # --- Source Code ---
        "application/typescript": FileTypeCategory.SOURCE_CODE,
        "application/x-sh": FileTypeCategory.SOURCE_CODE,
        "text/javascript": FileTypeCategory.SOURCE_CODE,
        "text/x-python": FileTypeCategory.SOURCE_CODE,
        "text/x-script.python": FileTypeCategory.SOURCE_CODE,
        "text/x-shellscript": FileTypeCategory.SOURCE_CODE,
        "text/x-c": FileTypeCategory.SOURCE_CODE,
        "text/x-c++": FileTypeCategory.SOURCE_CODE,
        "text/x-go": FileTypeCategory.SOURCE_CODE,
        "text/rust": FileTypeCategory.SOURCE_CODE,
        "text/x-java-source": FileTypeCategory.SOURCE_CODE,
        "text/html": FileTypeCategory.SOURCE_CODE,
        "text/css": FileTypeCategory.SOURCE_CODE,
        "text/x-diff": FileTypeCategory.SOURCE_CODE,
        "text/x-makefile": FileTypeCategory.SOURCE_CODE,
        "text/x-dockerfile": FileTypeCategory.SOURCE_CODE,
        "text/x-log": FileTypeCategory.LOG,
        # --- Generic Prefixes (Fallbacks) ---
        "text/": FileTypeCategory.TEXT,
        "image/svg": FileTypeCategory.TEXT,
        "image/": FileTypeCategory.IMAGE,
    }
    # fmt: on

    def detect_content_type(
        self, name: str, data: bytes, use_magic: bool = False
    ) -> FileTypeInfo:
        """
        Detect file type information for the file ``name`` holding ``data``,
        optionally using libmagic for MIME type detection.

        :param name: The entry name of the file.
        :type name: ``str``
        :param data: The file content.
        :type data: ``bytes``
        :param use_magic: Use libmagic instead of name based guessing.
        :type use_magic: ``bool``
        :returns: File type information for the file.
        :rtype: ``FileTypeInfo``
        """
        if use_magic:
            # Some builds of file-magic do not provide magic.error
            if hasattr(magic, "error"):
                magic_errors = (magic.error, OSError, ValueError)
            else:
                magic_errors = (OSError, ValueError)

            try:
                fm = magic.detect_from_content(data)
                category = self._categorize_file(fm.mime_type, name)
                _log_debug_compare(
                    "Detected %s as %s (%s)", name, fm.mime_type, fm.encoding
                )
                return FileTypeInfo(fm.mime_type, fm.name, category, fm.encoding)
            except magic_errors as err:
                _log_warn("Error detecting file type for %s: %s", name, err)
                return FileTypeInfo(
                    "application/octet-stream", "unknown", FileTypeCategory.UNKNOWN
                )

        guess = _guess_from_name(name) if data else None
        if guess is None:
            guess = _sniff_content(data)
        mime_type, description, encoding = guess
        category = self._categorize_file(mime_type, name)
        return FileTypeInfo(mime_type, description, category, encoding)

    def _categorize_file(self, mime_type: str, name: str) -> FileTypeCategory:
        """
        Categorize file based on MIME type and name.

        :param mime_type: Detected file MIME type.
        :type mime_type: ``str``
        :param name: The entry name of the file.
        :type name: ``str``
        :returns: File type categorization.
        :rtype: ``FileTypeCategory``
        """
        mime_type = mime_type.lower()
        name = name.lower()
        if mime_type.startswith("text/") or mime_type == "inode/x-empty":
            if name.endswith(".log"):
                return FileTypeCategory.LOG
            if name.endswith(".conf"):
                return FileTypeCategory.CONFIG

        for pattern, category in self.category_rules.items():
            if mime_type.startswith(pattern):
                return category

        return FileTypeCategory.BINARY


__all__ = [
    "FileTypeCategory",
    "FileTypeDetector",
    "FileTypeInfo",
]
