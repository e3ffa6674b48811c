# Copyright Red Hat
#
# revdiff/command.py - Revision diff command interface
#
# This file is part of the revdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""The ``revdiff.command`` module provides both the revdiff command line
interface infrastructure, and a simple procedural interface to the
``revdiff`` library modules.

The procedural interface is used by the ``revdiff`` command line tool,
and may be used by application programs, or interactively in the
Python shell by users who do not require all the features present
in the revdiff object API.
"""
from argparse import ArgumentParser, Namespace
from typing import Optional
from os.path import basename
import logging
import sys

from revdiff import (
    HEAD_REVISION,
    REVDIFF_DEBUG_BACKEND,
    REVDIFF_DEBUG_TREEDIFF,
    REVDIFF_DEBUG_COMMAND,
    REVDIFF_DEBUG_ALL,
    REVDIFF_SUBSYSTEM_COMMAND,
    RevdiffError,
    RevdiffArgumentError,
    SubsystemFilter,
    set_debug_mask,
    ProgressAwareHandler,
    __version__,
)
from revdiff.backend import Backend
from revdiff.backend.git import GitBackend
from revdiff.config import RevdiffConfig, default_config_path
from revdiff.progress import COLOR_MODES
from revdiff.treediff import DiffOptions, DiffResults, RevisionDiffer

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

_DEFAULT_LOG_LEVEL = logging.WARNING
_CONSOLE_HANDLER = None

#: Command name for the diff subcommand
DIFF_CMD = "diff"

#: Valid output formats for the diff subcommand
DIFF_FORMATS = DiffResults.DIFF_FORMATS


def _log_debug_command(msg, *args, **kwargs):
    """A wrapper for command subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": REVDIFF_SUBSYSTEM_COMMAND}, **kwargs)


def diff_revision(
    backend: Optional[Backend],
    revision: str = HEAD_REVISION,
    options: Optional[DiffOptions] = None,
    color: str = "auto",
) -> DiffResults:
    """
    Compare ``revision`` with its parents, or the working directory with the
    head commit if ``revision`` is ``HEAD``.

    :param backend: The version control backend to use.
    :type backend: ``Optional[Backend]``
    :param revision: The revision to diff.
    :type revision: ``str``
    :param options: Options controlling the comparison.
    :type options: ``Optional[DiffOptions]``
    :param color: A string to control color rendering: "auto", "always", or
                  "never".
    :type color: ``str``
    :returns: The diff results.
    :rtype: ``DiffResults``
    """
    differ = RevisionDiffer(backend, options=options, color=color)
    return differ.diff(revision)


def _apply_config(cmd_args: Namespace, config: RevdiffConfig):
    """
    Fill in command line arguments that were not given from ``config``.
    """
    if getattr(cmd_args, "color", None) is None:
        cmd_args.color = config.color
    if not getattr(cmd_args, "detect_removed", False):
        cmd_args.detect_removed = config.detect_removed
    if not getattr(cmd_args, "use_magic_file_type", False):
        cmd_args.use_magic_file_type = config.file_types


def _diff_cmd(cmd_args: Namespace, config: RevdiffConfig) -> int:
    """
    Diff command handler.

    Compare a revision with its parents or the working directory with the
    head commit.

    :param cmd_args: Command line arguments for the command
    :param config: The loaded revdiff configuration
    :returns: integer status code returned from ``main()``
    :raises RevdiffArgumentError: If the output options conflict.
    """
    _apply_config(cmd_args, config)
    options = DiffOptions.from_cmd_args(cmd_args)
    revision = cmd_args.revision or HEAD_REVISION
    output_formats = cmd_args.output_format or ["diff"]
    pretty = cmd_args.pretty
    color = cmd_args.color
    diffstat = cmd_args.stat

    if pretty and "json" not in output_formats:
        raise RevdiffArgumentError(
            "Option --pretty only supported with --output-format=json"
        )

    if diffstat:
        if "diff" not in output_formats and "summary" not in output_formats:
            raise RevdiffArgumentError(
                "Option --stat only supported with --output-format=diff or "
                "--output-format=summary"
            )

    if not set(output_formats).issubset(DIFF_FORMATS):
        raise RevdiffArgumentError(
            f"Unknown diff format: {','.join(output_formats)}"
        )

    backend = GitBackend(cmd_args.directory, git_command=config.git_command)
    _log_debug_command("Diffing %s in %s", revision, backend.root)

    results = diff_revision(backend, revision, options, color=color)

    spacer = ""
    for output_format in output_formats:
        print(spacer, end="")
        if output_format == "paths":
            print("\n".join(results.paths()))
        elif output_format == "full":
            print(results.full())
        elif output_format == "short":
            print(results.short())
        elif output_format == "json":
            print(results.json(pretty=pretty))
        elif output_format == "diff":
            print(results.diff(diffstat=diffstat, color=color))
        elif output_format == "summary":
            print(results.summary(diffstat=diffstat, color=color))
        spacer = "\n"
    return 0


def setup_logging(cmd_args):
    """
    Set up revdiff logging.
    """
    # pylint: disable=global-statement
    global _CONSOLE_HANDLER
    level = _DEFAULT_LOG_LEVEL
    if cmd_args.verbose and cmd_args.verbose > 1:
        level = logging.DEBUG
    elif cmd_args.verbose and cmd_args.verbose > 0:
        level = logging.INFO

    revdiff_log = logging.getLogger("revdiff")
    formatter = logging.Formatter("%(levelname)s - %(message)s")
    revdiff_log.setLevel(level)
    if revdiff_log.hasHandlers():
        revdiff_log.handlers.clear()

    # Subsystem log filtering
    _revdiff_subsystem_filter = SubsystemFilter("revdiff")

    # Main console handler
    _CONSOLE_HANDLER = ProgressAwareHandler()

    _CONSOLE_HANDLER.setLevel(level)
    _CONSOLE_HANDLER.setFormatter(formatter)
    _CONSOLE_HANDLER.addFilter(_revdiff_subsystem_filter)

    revdiff_log.addHandler(_CONSOLE_HANDLER)


def shutdown_logging():
    """
    Shut down revdiff logging.
    """
    logging.shutdown()


def set_debug(debug_arg):
    """
    Set debugging mask from command line argument.
    """
    if not debug_arg:
        return

    mask_map = {
        "backend": REVDIFF_DEBUG_BACKEND,
        "treediff": REVDIFF_DEBUG_TREEDIFF,
        "command": REVDIFF_DEBUG_COMMAND,
        "all": REVDIFF_DEBUG_ALL,
    }

    mask = 0
    for name in debug_arg.split(","):
        if name not in mask_map:
            raise ValueError(f"Unknown debug option: {name}")
        mask |= mask_map[name]
    set_debug_mask(mask)


def _add_diff_args(parser):
    """
    Add diff command arguments.
    """
    parser.add_argument(
        "-o",
        "--output-format",
        type=str,
        action="append",
        choices=DIFF_FORMATS,
        help=f"Output format ({', '.join(DIFF_FORMATS)}; may be repeated)",
    )
    parser.add_argument(
        "--pretty",
        action="store_true",
        help="Indent JSON output to be human readable",
    )
    parser.add_argument(
        "--stat",
        action="store_true",
        help="Include a diffstat summary with diff or summary output",
    )
    parser.add_argument(
        "--color",
        type=str,
        choices=COLOR_MODES,
        default=None,
        help=f"Enable colored output ({', '.join(COLOR_MODES)})",
    )
    parser.add_argument(
        "-r",
        "--detect-removed",
        action="store_true",
        help="Report paths that exist only in the parent revision",
    )
    parser.add_argument(
        "-f",
        "--file-types",
        dest="use_magic_file_type",
        action="store_true",
        help="Generate file type information using libmagic",
    )
    parser.add_argument(
        "-H",
        "--no-hunks",
        dest="include_hunks",
        action="store_false",
        help="Do not retrieve and parse content diffs",
    )
    parser.add_argument(
        "-i",
        "--include-pattern",
        type=str,
        action="append",
        metavar="PATTERN",
        dest="file_patterns",
        default=None,
        help="File patterns to include (glob notation)",
    )
    parser.add_argument(
        "-x",
        "--exclude-pattern",
        type=str,
        action="append",
        metavar="PATTERN",
        dest="exclude_patterns",
        default=None,
        help="File patterns to exclude (glob notation)",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Do not output progress or status information",
    )
    parser.add_argument(
        "revision",
        type=str,
        metavar="REVISION",
        nargs="?",
        help="Commit to compare with its parents (default: the working "
        "directory against HEAD)",
    )


def main(args):
    """
    Main entry point for revdiff.
    """
    parser = ArgumentParser(description="Revision Diff", prog=basename(args[0]))

    # Global arguments
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
        help="Report the version number of revdiff",
        version=__version__,
    )
    parser.add_argument(
        "-C",
        "--directory",
        metavar="DIR",
        type=str,
        default=".",
        help="Run as if started in DIR",
    )
    parser.add_argument(
        "--config",
        metavar="FILE",
        type=str,
        default=None,
        help="Read configuration from FILE",
    )
    # Subparser for command
    cmd_subparser = parser.add_subparsers(dest="command", help="Command")

    diff_parser = cmd_subparser.add_parser(
        DIFF_CMD,
        help="Show changes in a revision or in the working directory",
    )
    _add_diff_args(diff_parser)
    diff_parser.set_defaults(func=_diff_cmd)

    cmd_args = parser.parse_args(args[1:])

    status = 1

    try:
        set_debug(cmd_args.debug)
    except ValueError as err:
        print(err)
        parser.print_help()
        return status

    setup_logging(cmd_args)

    _log_debug_command("Parsed %s", " ".join(args[1:]))

    if "func" not in cmd_args:
        parser.print_help()
        return status

    try:
        config = RevdiffConfig.from_file(cmd_args.config or default_config_path())
    except RevdiffError as err:
        _log_error("%s", err)
        shutdown_logging()
        return status

    if cmd_args.debug:
        status = cmd_args.func(cmd_args, config)
    else:
        try:
            status = cmd_args.func(cmd_args, config)
        # pylint: disable=broad-except
        except KeyboardInterrupt:  # pragma: no cover
            _log_info("Exiting on user cancel")
        except Exception as err:
            _log_error("Command failed: %s", err)

    shutdown_logging()
    return status


def _main():
    """
    Console script entry point.
    """
    sys.exit(main(sys.argv))


# vim: set et ts=4 sw=4 :
