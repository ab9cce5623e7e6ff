# Copyright Red Hat
#
# dircompare/__init__.py - Directory compare package initialisation
#
# This file is part of the dircompare project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Dircompare top-level package.

Snapshot a file or directory with ``Content.of()`` or ``Entry.at()`` and
compare snapshots with ``==``. Use ``compare_contents()`` or
``compare_entries()`` to find out why two snapshots differ.
"""
from ._dircompare import *  # noqa: F401, F403
from ._dircompare import __all__ as _dircompare_all
from .content import PARENT_DIR, ContentType, Content, Entry
from .options import CompareOptions
from .differ import (
    DiffType,
    DiffRecord,
    CompareResults,
    DiffEngine,
    compare_contents,
    compare_entries,
)

__version__ = "0.1.0"

__all__ = _dircompare_all + [
    "PARENT_DIR",
    "ContentType",
    "Content",
    "Entry",
    "CompareOptions",
    "DiffType",
    "DiffRecord",
    "CompareResults",
    "DiffEngine",
    "compare_contents",
    "compare_entries",
]
