# Copyright Red Hat
#
# dircompare/options.py - Directory compare options
#
# This file is part of the dircompare project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Directory comparison options.
"""
from dataclasses import dataclass, fields
from argparse import Namespace
import logging

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


@dataclass(frozen=True)
class CompareOptions:
    """
    Directory comparison options.
    """

    #: Compare top-level names as well as content (``Entry`` comparison)
    name_sensitive: bool = False
    #: Generate content diffs for modified files
    include_content_diffs: bool = True
    #: Generate file type information using magic
    use_magic_file_type: bool = False
    #: Maximum file size for generating content diffs
    max_content_diff_size: int = 2**20
    #: Do not output status updates
    quiet: bool = False

    def __str__(self):
        """
        Return a human readable string representation of this
        ``CompareOptions`` instance.

        :returns: A human readable string.
        :rtype: ``str``
        """
        return "\n".join(f"{key}={val}" for key, val in self.__dict__.items())

    @classmethod
    def from_cmd_args(cls, cmd_args: Namespace) -> "CompareOptions":
        """
        Initialise CompareOptions from command line arguments.

        Arguments that are absent from ``cmd_args`` take their default
        values.

        :param cmd_args: The command line arguments.
        :type cmd_args: ``Namespace``
        :returns: A new ``CompareOptions`` instance
        :rtype: ``CompareOptions``
        """
        field_names = {f.name for f in fields(cls)}
        kwargs = {
            name: getattr(cmd_args, name)
            for name in field_names
            if getattr(cmd_args, name, None) is not None
        }
        options = cls(**kwargs)
        _log_debug("Initialised CompareOptions from arguments: %s", repr(options))
        return options


__all__ = [
    "CompareOptions",
]
