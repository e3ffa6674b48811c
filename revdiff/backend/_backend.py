# Copyright Red Hat
#
# revdiff/backend/_backend.py - Revision diff backend interface
#
# This file is part of the revdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Version control backend interface and working directory status types.
"""
from typing import List, NamedTuple, Optional
from enum import Enum
import logging

from revdiff import REVDIFF_SUBSYSTEM_BACKEND, RevdiffParseError

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_backend(msg, *args, **kwargs):
    """A wrapper for backend subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": REVDIFF_SUBSYSTEM_BACKEND}, **kwargs)


class ChangeKind(Enum):
    """
    Enum for working directory status change kinds.
    """

    MODIFIED = "modified"
    ADDED = "added"
    DELETED = "deleted"
    RENAMED = "renamed"
    COPIED = "copied"
    TYPE_CHANGED = "type_changed"
    UNMERGED = "unmerged"
    UNTRACKED = "untracked"
    IGNORED = "ignored"


class StatusEntry(NamedTuple):
    """
    One entry of the working directory status list.
    """

    #: Path relative to the work tree root
    path: str
    #: Kind of change
    change_kind: ChangeKind
    #: Source path for renames and copies
    orig_path: Optional[str] = None


def _change_kind_from_xy(xy: str) -> ChangeKind:
    """
    Map a two character porcelain status code to a ``ChangeKind``.

    :param xy: The index and work tree status characters.
    :type xy: ``str``
    :returns: The corresponding change kind.
    :rtype: ``ChangeKind``
    """
    if xy == "??":
        return ChangeKind.UNTRACKED
    if xy == "!!":
        return ChangeKind.IGNORED
    if "U" in xy or xy in ("DD", "AA"):
        return ChangeKind.UNMERGED
    if "R" in xy:
        return ChangeKind.RENAMED
    if "C" in xy:
        return ChangeKind.COPIED
    if "D" in xy:
        return ChangeKind.DELETED
    if "A" in xy:
        return ChangeKind.ADDED
    if "T" in xy:
        return ChangeKind.TYPE_CHANGED
    return ChangeKind.MODIFIED


def parse_porcelain_status(data: str) -> List[StatusEntry]:
    """
    Parse NUL separated ``--porcelain -z`` status output.

    Each record is ``XY PATH``; renames and copies are followed by one more
    NUL separated field holding the original path.

    :param data: The decoded status output.
    :type data: ``str``
    :returns: The status entries in output order.
    :rtype: ``List[StatusEntry]``
    :raises: ``RevdiffParseError`` if a record is malformed.
    """
    fields = data.split("\0")
    entries = []
    i = 0
    while i < len(fields):
        record = fields[i]
        i += 1
        if not record:
            continue
        if len(record) < 4 or record[2] != " ":
            raise RevdiffParseError(f"Malformed status record: {record!r}")
        xy, path = record[:2], record[3:]
        kind = _change_kind_from_xy(xy)
        orig_path = None
        if kind in (ChangeKind.RENAMED, ChangeKind.COPIED):
            if i >= len(fields) or not fields[i]:
                raise RevdiffParseError(f"Missing source path for status record: {record!r}")
            orig_path = fields[i]
            i += 1
        _log_debug_backend("Status %s %s%s", xy, path, f" <- {orig_path}" if orig_path else "")
        entries.append(StatusEntry(path, kind, orig_path))
    return entries


class Backend:
    """
    Base class for version control backends.

    A backend retrieves raw objects by content id, produces raw unified
    diff text for pairs of objects or an object and a working file, lists
    the working directory status and resolves the head revision.
    """

    name = "backend"
    version = "0.1.0"

    def info(self):
        """
        Return backend name and version.
        """
        return {"name": self.name, "version": self.version}

    def cat_object(self, content_id: str) -> bytes:
        """
        Return the raw content of the object ``content_id``.

        :param content_id: The object to retrieve.
        :type content_id: ``str``
        :returns: The raw object content.
        :rtype: ``bytes``
        :raises: ``RevdiffObjectUnavailableError`` if the object cannot be
                 retrieved.
        """
        raise NotImplementedError

    def raw_diff(self, old_id: str, new_id: str) -> str:
        """
        Return raw unified diff text between two blobs. Either id may be
        the empty string, meaning the empty blob.

        :param old_id: The old blob id.
        :type old_id: ``str``
        :param new_id: The new blob id.
        :type new_id: ``str``
        :returns: Raw diff text.
        :rtype: ``str``
        """
        raise NotImplementedError

    def raw_diff_against_working_file(self, old_id: str, path: str) -> str:
        """
        Return raw unified diff text between a blob and the working file at
        ``path``. An empty ``old_id`` compares against nothing.

        :param old_id: The old blob id.
        :type old_id: ``str``
        :param path: The working file path relative to the work tree root.
        :type path: ``str``
        :returns: Raw diff text.
        :rtype: ``str``
        """
        raise NotImplementedError

    def status(self) -> List[StatusEntry]:
        """
        Return the live working directory status list.

        :returns: A list of status entries.
        :rtype: ``List[StatusEntry]``
        """
        raise NotImplementedError

    def resolve_head(self) -> str:
        """
        Return the commit id of the head revision.

        :returns: The head commit id.
        :rtype: ``str``
        :raises: ``RevdiffNotFoundError`` if the head cannot be resolved.
        """
        raise NotImplementedError

    def resolve_revision(self, revision: str) -> str:
        """
        Resolve a revision name to a commit id. The base implementation
        treats every revision as a literal commit id.

        :param revision: The revision to resolve.
        :type revision: ``str``
        :returns: The commit id.
        :rtype: ``str``
        """
        return revision
