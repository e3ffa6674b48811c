# Copyright Red Hat
#
# revdiff/treediff/options.py - Revision diff options
#
# This file is part of the revdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Revision diff options.
"""
from dataclasses import dataclass, field, fields
from typing import Tuple, Union
from argparse import Namespace
from fnmatch import fnmatch
import logging

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


@dataclass(frozen=True)
class DiffOptions:
    """
    Revision comparison options.
    """

    #: Enumerate the old side to report removed paths
    detect_removed: bool = False
    #: Retrieve and parse raw diffs into hunks
    include_hunks: bool = True
    #: Generate file type information using magic
    use_magic_file_type: bool = False
    #: File patterns to include (glob notation)
    file_patterns: Tuple[str, ...] = field(default_factory=tuple)
    #: File patterns to exclude (glob notation)
    exclude_patterns: Tuple[str, ...] = field(default_factory=tuple)
    #: Do not output progress or status updates
    quiet: bool = False

    def __str__(self):
        """
        Return a human readable string representation of this
        ``DiffOptions`` instance.

        :returns: A human readable string.
        :rtype: ``str``
        """
        items = [
            (key, val) if not isinstance(val, tuple) else (key, " ".join(val))
            for key, val in self.__dict__.items()
        ]
        return "\n".join(f"{key}={val}" for key, val in items)

    def matches_path(self, path: str) -> bool:
        """
        Test whether ``path`` passes the include and exclude patterns.

        An empty include list selects every path.

        :param path: The destination path to test.
        :type path: ``str``
        :returns: ``True`` if the path should be reported.
        :rtype: ``bool``
        """
        if self.file_patterns and not any(
            fnmatch(path, pattern) for pattern in self.file_patterns
        ):
            return False
        return not any(fnmatch(path, pattern) for pattern in self.exclude_patterns)

    @classmethod
    def from_cmd_args(cls, cmd_args: Namespace) -> "DiffOptions":
        """
        Initialise DiffOptions from command line arguments.

        Construct a new ``DiffOptions`` object from the command line
        arguments in ``cmd_args``.

        :param cmd_args: The command line selection arguments.
        :type cmd_args: ``Namespace``
        :returns: A new ``DiffOptions`` instance
        :rtype: ``DiffOptions``
        """

        def get_value(name: str) -> Union[bool, Tuple[str, ...]]:
            attr = getattr(cmd_args, name)
            if isinstance(attr, list):
                return tuple(attr)
            if attr is None and name in ("file_patterns", "exclude_patterns"):
                return ()
            return attr

        field_names = {f.name for f in fields(cls)}
        kwargs = {
            name: get_value(name) for name in field_names if hasattr(cmd_args, name)
        }
        options = cls(**kwargs)
        _log_debug("Initialised DiffOptions from arguments: %s", repr(options))
        return options
