# Copyright Red Hat
#
# dircompare/_dircompare.py - Directory compare global definitions
#
# This file is part of the dircompare project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Global definitions for the top-level dircompare package.
"""
from typing import Union
import logging
import json
import os

_log = logging.getLogger("dircompare")

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

# Dircompare debugging subsystem mask
DIRCOMPARE_DEBUG_SNAPSHOT = 1
DIRCOMPARE_DEBUG_COMPARE = 2
DIRCOMPARE_DEBUG_COMMAND = 4
DIRCOMPARE_DEBUG_ALL = (
    DIRCOMPARE_DEBUG_SNAPSHOT | DIRCOMPARE_DEBUG_COMPARE | DIRCOMPARE_DEBUG_COMMAND
)

# Dircompare debugging subsystem names
DIRCOMPARE_SUBSYSTEM_SNAPSHOT = "dircompare.snapshot"
DIRCOMPARE_SUBSYSTEM_COMPARE = "dircompare.compare"
DIRCOMPARE_SUBSYSTEM_COMMAND = "dircompare.command"

_DEBUG_MASK_TO_SUBSYSTEM = {
    DIRCOMPARE_DEBUG_SNAPSHOT: DIRCOMPARE_SUBSYSTEM_SNAPSHOT,
    DIRCOMPARE_DEBUG_COMPARE: DIRCOMPARE_SUBSYSTEM_COMPARE,
    DIRCOMPARE_DEBUG_COMMAND: DIRCOMPARE_SUBSYSTEM_COMMAND,
}

_debug_subsystems = set()


class SubsystemFilter(logging.Filter):
    """
    Filters DEBUG records based on a set of enabled subsystem names.
    Non-DEBUG records or DEBUG records without a 'subsystem' attribute
    are always passed through.
    """

    def __init__(self, name=""):
        super().__init__(name)
        self.enabled_subsystems = set(_debug_subsystems)

    def filter(self, record):
        if record.levelno != logging.DEBUG:
            return True

        if not hasattr(record, "subsystem"):
            return True

        return record.subsystem in self.enabled_subsystems

    def set_debug_subsystems(self, subsystems):
        """Sets the collection of subsystems to allow."""
        self.enabled_subsystems = set(subsystems)


def get_debug_mask():
    """
    Return the current debug mask for the ``dircompare`` package.

    :returns: The current debug mask value
    :rtype: int
    """
    enabled_subsystems = set(_debug_subsystems)
    dircompare_log = logging.getLogger("dircompare")

    for handler in dircompare_log.handlers:
        for f in handler.filters:
            if isinstance(f, SubsystemFilter):
                enabled_subsystems.update(f.enabled_subsystems)

    mask_map = {v: k for k, v in _DEBUG_MASK_TO_SUBSYSTEM.items()}
    mask = 0
    for subsystem_name in enabled_subsystems:
        mask |= mask_map.get(subsystem_name, 0)
    return mask


def set_debug_mask(mask):
    """
    Set the debug mask for the ``dircompare`` package.

    :param mask: the logical OR of the ``DIRCOMPARE_DEBUG_*``
                 values to log.
    :rtype: None
    """
    # pylint: disable=global-statement
    global _debug_subsystems

    if mask < 0 or mask > DIRCOMPARE_DEBUG_ALL:
        raise ValueError(f"Invalid dircompare debug mask: {mask}")

    enabled_subsystems = [
        subsystem_name
        for flag, subsystem_name in _DEBUG_MASK_TO_SUBSYSTEM.items()
        if mask & flag
    ]

    dircompare_log = logging.getLogger("dircompare")
    for handler in dircompare_log.handlers:
        for f in handler.filters:
            if isinstance(f, SubsystemFilter):
                f.set_debug_subsystems(enabled_subsystems)

    _debug_subsystems = set(enabled_subsystems)


#
# Dircompare exception types
#


class DirCompareError(Exception):
    """
    Base class for directory compare errors.
    """


class EntryError(DirCompareError):
    """
    An error constructing an ``Entry`` for a path.
    """


class InvalidPathError(EntryError):
    """
    The path has no final name component: it is, or ends with, the parent
    directory marker ``..``.
    """

    def __init__(self, path: Union[str, bytes, "os.PathLike"]):
        """
        Initialise a new ``InvalidPathError`` exception.

        :param path: The offending path.
        """
        self.path = path
        quoted = json.dumps(os.fsdecode(path), ensure_ascii=False)
        super().__init__(
            f"{quoted} is not a valid path. "
            "Cannot create an entry for the directory, `..`."
        )


class EntryIOError(EntryError):
    """
    Reading from disk failed while constructing an ``Entry``.

    The underlying ``OSError`` is available as ``error`` (and as the
    exception ``__cause__``); ``errno`` and ``filename`` mirror its values.
    """

    def __init__(self, error: OSError):
        """
        Initialise a new ``EntryIOError`` exception.

        :param error: The ``OSError`` raised by the filesystem.
        """
        self.error = error
        self.errno = error.errno
        self.filename = error.filename
        super().__init__(str(error))


__all__ = [
    "DIRCOMPARE_DEBUG_SNAPSHOT",
    "DIRCOMPARE_DEBUG_COMPARE",
    "DIRCOMPARE_DEBUG_COMMAND",
    "DIRCOMPARE_DEBUG_ALL",
    "DIRCOMPARE_SUBSYSTEM_SNAPSHOT",
    "DIRCOMPARE_SUBSYSTEM_COMPARE",
    "DIRCOMPARE_SUBSYSTEM_COMMAND",
    # Debug logging
    "SubsystemFilter",
    "set_debug_mask",
    "get_debug_mask",
    # Exceptions
    "DirCompareError",
    "EntryError",
    "InvalidPathError",
    "EntryIOError",
]
