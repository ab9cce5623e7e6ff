# Copyright Red Hat
#
# dircompare/command.py - Directory compare command interface
#
# This file is part of the dircompare project.
#
# SPDX-License-Identifier: Apache-2.0
"""The ``dircompare.command`` module provides both the dircompare command
line interface, and a simple procedural interface to the ``dircompare``
library modules.

The command compares two files or directories and exits with status 0 if
they are equal, 1 if they differ and 2 if either could not be read.
"""
from argparse import ArgumentParser
from typing import Union
from os.path import basename
import logging
import sys

from dircompare import (
    DIRCOMPARE_DEBUG_SNAPSHOT,
    DIRCOMPARE_DEBUG_COMPARE,
    DIRCOMPARE_DEBUG_COMMAND,
    DIRCOMPARE_DEBUG_ALL,
    DIRCOMPARE_SUBSYSTEM_COMMAND,
    DirCompareError,
    SubsystemFilter,
    set_debug_mask,
    __version__,
)
from .content import Content, Entry, PathArg
from .differ import CompareResults, DiffEngine
from .options import CompareOptions

OUTPUT_FORMATS = CompareResults.OUTPUT_FORMATS

#: Exit status: the operands are equal
EXIT_EQUAL = 0
#: Exit status: the operands differ
EXIT_DIFFERENT = 1
#: Exit status: an operand could not be read or the arguments are invalid
EXIT_ERROR = 2

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_command(msg, *args, **kwargs):
    """A wrapper for command subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": DIRCOMPARE_SUBSYSTEM_COMMAND}, **kwargs)


_DEFAULT_LOG_LEVEL = logging.WARNING
_CONSOLE_HANDLER = None


def snapshot(path: PathArg, name_sensitive: bool = False) -> Union[Content, Entry]:
    """
    Take a snapshot of ``path``.

    :param path: The file or directory to read.
    :param name_sensitive: Return an ``Entry`` (name and content) rather
                           than a ``Content``.
    :returns: The snapshot of ``path``.
    :raises OSError: Reading a ``Content`` snapshot failed.
    :raises EntryError: Reading an ``Entry`` snapshot failed.
    """
    if name_sensitive:
        return Entry.at(path)
    return Content.of(path)


def compare_paths(
    path_a: PathArg, path_b: PathArg, options: CompareOptions
) -> CompareResults:
    """
    Snapshot ``path_a`` and ``path_b`` and compare them.

    :param path_a: The first (left hand) path to compare.
    :param path_b: The second (right hand) path to compare.
    :param options: Options controlling the comparison.
    :type options: ``CompareOptions``
    :returns: The differences between the two paths.
    :rtype: ``CompareResults``
    """
    old = snapshot(path_a, name_sensitive=options.name_sensitive)
    new = snapshot(path_b, name_sensitive=options.name_sensitive)
    return DiffEngine(options).compare(old, new)


def _compare_cmd(cmd_args):
    """
    Compare command handler.

    :param cmd_args: Command line arguments for the command
    :returns: integer status code returned from ``main()``
    """
    options = CompareOptions.from_cmd_args(cmd_args)
    output_formats = cmd_args.output_format or ["summary"]

    if cmd_args.pretty and "json" not in output_formats:
        _log_error("Option --pretty only supported with --output-format=json")
        return EXIT_ERROR

    _log_debug_command("Comparing %s to %s", cmd_args.diff_from, cmd_args.diff_to)

    try:
        results = compare_paths(cmd_args.diff_from, cmd_args.diff_to, options)
    except (DirCompareError, OSError) as err:
        _log_error(
            "Cannot compare %s to %s: %s", cmd_args.diff_from, cmd_args.diff_to, err
        )
        return EXIT_ERROR

    if options.quiet:
        return EXIT_EQUAL if results.equal else EXIT_DIFFERENT

    spacer = ""
    for output_format in output_formats:
        print(spacer, end="")
        if output_format == "paths":
            print("\n".join(results.paths()))
        elif output_format == "short":
            print(results.short())
        elif output_format == "json":
            print(results.json(pretty=cmd_args.pretty))
        elif output_format == "diff":
            print(results.diff())
        elif output_format == "summary":
            print(results.summary())
        spacer = "\n"

    return EXIT_EQUAL if results.equal else EXIT_DIFFERENT


def setup_logging(cmd_args):
    """
    Set up dircompare logging.
    """
    # pylint: disable=global-statement
    global _CONSOLE_HANDLER
    level = _DEFAULT_LOG_LEVEL
    if cmd_args.verbose and cmd_args.verbose > 1:
        level = logging.DEBUG
    elif cmd_args.verbose and cmd_args.verbose > 0:
        level = logging.INFO

    dircompare_log = logging.getLogger("dircompare")
    formatter = logging.Formatter("%(levelname)s - %(message)s")
    dircompare_log.setLevel(level)
    if dircompare_log.hasHandlers():
        dircompare_log.handlers.clear()

    _CONSOLE_HANDLER = logging.StreamHandler(sys.stderr)
    _CONSOLE_HANDLER.setLevel(level)
    _CONSOLE_HANDLER.setFormatter(formatter)
    _CONSOLE_HANDLER.addFilter(SubsystemFilter("dircompare"))

    dircompare_log.addHandler(_CONSOLE_HANDLER)


def shutdown_logging():
    """
    Shut down dircompare logging.
    """
    logging.shutdown()


def set_debug(debug_arg):
    """
    Set debugging mask from command line argument.
    """
    if not debug_arg:
        return

    mask_map = {
        "snapshot": DIRCOMPARE_DEBUG_SNAPSHOT,
        "compare": DIRCOMPARE_DEBUG_COMPARE,
        "command": DIRCOMPARE_DEBUG_COMMAND,
        "all": DIRCOMPARE_DEBUG_ALL,
    }

    mask = 0
    for name in debug_arg.split(","):
        if name not in mask_map:
            raise ValueError(f"Unknown debug option: {name}")
        mask |= mask_map[name]
    set_debug_mask(mask)


def _add_compare_args(parser):
    parser.add_argument(
        "-e",
        "--entry",
        dest="name_sensitive",
        action="store_true",
        help="Compare the names of FROM and TO as well as their content",
    )
    parser.add_argument(
        "-C",
        "--no-content-diff",
        dest="include_content_diffs",
        action="store_false",
        help="Do not generate content diffs for modified files",
    )
    parser.add_argument(
        "-f",
        "--file-types",
        dest="use_magic_file_type",
        action="store_true",
        help="Generate file type information using libmagic",
    )
    parser.add_argument(
        "-z",
        "--max-diff-size",
        type=int,
        dest="max_content_diff_size",
        default=2**20,
        help="Maximum file size for generating content diffs (default: 1MiB)",
    )
    parser.add_argument(
        "-o",
        "--output-format",
        choices=OUTPUT_FORMATS,
        action="append",
        help="Output format (may be repeated; default: summary)",
    )
    parser.add_argument(
        "--pretty",
        action="store_true",
        help="Indent JSON output",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Print nothing: report the result in the exit status only",
    )
    parser.add_argument(
        "diff_from",
        metavar="FROM",
        type=str,
        help="The original file or directory",
    )
    parser.add_argument(
        "diff_to",
        metavar="TO",
        type=str,
        help="The file or directory to compare against FROM",
    )


def main(args):
    """
    Main entry point for dircompare.
    """
    parser = ArgumentParser(
        description="Compare two files or directories",
        prog=basename(args[0]),
    )

    parser.add_argument(
        "-d",
        "--debug",
        metavar="DEBUGOPTS",
        type=str,
        help="A list of debug options to enable",
    )
    parser.add_argument("-v", "--verbose", help="Enable verbose output", action="count")
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        help="Report the version number of dircompare",
        version=__version__,
    )
    _add_compare_args(parser)

    cmd_args = parser.parse_args(args[1:])

    try:
        set_debug(cmd_args.debug)
    except ValueError as err:
        print(err)
        parser.print_help()
        return EXIT_ERROR

    setup_logging(cmd_args)

    _log_debug_command("Parsed %s", " ".join(args[1:]))

    try:
        status = _compare_cmd(cmd_args)
    except KeyboardInterrupt:  # pragma: no cover
        _log_info("Exiting on user cancel")
        status = EXIT_ERROR

    shutdown_logging()
    return status


def run():
    """
    Console script entry point.
    """
    return main(sys.argv)


# vim: set et ts=4 sw=4 :
