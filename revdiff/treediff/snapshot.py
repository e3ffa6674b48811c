# Copyright Red Hat
#
# revdiff/treediff/snapshot.py - Revision diff tree and commit reader
#
# This file is part of the revdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Read and parse tree and commit objects from a version control backend.
"""
from typing import List, Optional, Tuple, TYPE_CHECKING
import logging

from revdiff import (
    REVDIFF_SUBSYSTEM_TREEDIFF,
    RevdiffMalformedObjectError,
    RevdiffObjectUnavailableError,
    join_with_slash,
)

from .entries import CommitSnapshot, EntryKind, TreeEntry

if TYPE_CHECKING:
    from revdiff.backend import Backend

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_treediff(msg, *args, **kwargs):
    """A wrapper for treediff subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": REVDIFF_SUBSYSTEM_TREEDIFF}, **kwargs)


_C_ESCAPES = {
    "a": b"\a",
    "b": b"\b",
    "f": b"\f",
    "n": b"\n",
    "r": b"\r",
    "t": b"\t",
    "v": b"\v",
    "\\": b"\\",
    '"': b'"',
}


def trim_path(path: str) -> str:
    """
    Remove quoting from a path as printed in a tree listing.

    Paths that contain special characters are printed inside double quotes
    with C-style backslash escapes; octal escapes encode the raw UTF-8
    bytes of the name. Unquoted paths are returned unchanged.

    :param path: The path as printed by the backend.
    :type path: ``str``
    :returns: The unquoted path.
    :rtype: ``str``
    """
    if len(path) < 2 or not (path.startswith('"') and path.endswith('"')):
        return path

    quoted = path[1:-1]
    out = bytearray()
    i = 0
    while i < len(quoted):
        c = quoted[i]
        if c != "\\" or i + 1 == len(quoted):
            out += c.encode("utf8")
            i += 1
            continue
        nxt = quoted[i + 1]
        if nxt in _C_ESCAPES:
            out += _C_ESCAPES[nxt]
            i += 2
        elif nxt in "01234567":
            digits = nxt
            for d in quoted[i + 2 : i + 4]:
                if d not in "01234567":
                    break
                digits += d
            out.append(int(digits, 8) & 0xFF)
            i += 1 + len(digits)
        else:
            out += nxt.encode("utf8")
            i += 2
    return out.decode("utf8", errors="replace")


def parse_tree_listing(text: str, directory: str = "") -> List[TreeEntry]:
    """
    Parse tree listing text into ``TreeEntry`` objects.

    Lines have the form ``<mode> <kind> <content_id>\\t<path>``. Lines
    without a tab after the first character, with fewer than three fields
    before the tab, or naming anything other than a tree or blob are
    skipped.

    :param text: The raw tree listing.
    :type text: ``str``
    :param directory: Directory prefix joined to each entry path.
    :type directory: ``str``
    :returns: The parsed entries in listing order.
    :rtype: ``List[TreeEntry]``
    """
    entries = []
    for line in text.splitlines():
        tab = line.find("\t")
        if tab < 1:
            continue
        fields = line[:tab].split()
        if len(fields) < 3:
            continue
        mode, token, content_id = fields[0], fields[1], fields[2]
        kind = EntryKind.from_token(token)
        if kind == EntryKind.UNKNOWN:
            continue
        path = join_with_slash(directory, trim_path(line[tab + 1 :]))
        entries.append(TreeEntry(kind, path, content_id, mode))
    return entries


def parse_commit_header(text: str) -> Tuple[Optional[str], List[str]]:
    """
    Parse the ``key value`` header block of a commit object.

    The header ends at the first line that has no space after its first
    character; the blank line separating header and message ends it. The
    last ``tree`` line wins and ``parent`` lines are kept in order.

    :param text: The raw commit object text.
    :type text: ``str``
    :returns: A 2-tuple of (tree id or ``None``, parent ids).
    :rtype: ``Tuple[Optional[str], List[str]]``
    """
    tree = None
    parents = []
    for line in text.splitlines():
        sep = line.find(" ")
        if sep < 1:
            break
        key, value = line[:sep], line[sep + 1 :]
        if key == "tree":
            tree = value
        elif key == "parent":
            parents.append(value)
    return (tree, parents)


class SnapshotReader:
    """
    Retrieve tree and commit objects from a backend and parse them.
    """

    def __init__(self, backend: Optional["Backend"]):
        """
        Initialise a new ``SnapshotReader``.

        :param backend: The backend to read objects from, or ``None``.
        :type backend: ``Optional[Backend]``
        """
        self.backend = backend
        if backend is None:
            _log_warn("No backend available: snapshot reads return no entries")

    def _cat_text(self, content_id: str) -> str:
        data = self.backend.cat_object(content_id)
        return data.decode("utf8", errors="replace")

    def read_tree(
        self, content_id: str, directory: str = "", strict: bool = False
    ) -> List[TreeEntry]:
        """
        Read the direct children of the tree ``content_id``.

        :param content_id: The tree to read.
        :type content_id: ``str``
        :param directory: Directory prefix for the returned entry paths.
        :type directory: ``str``
        :param strict: Propagate retrieval failures instead of returning an
                       empty list.
        :type strict: ``bool``
        :returns: The tree's entries.
        :rtype: ``List[TreeEntry]``
        :raises: ``RevdiffObjectUnavailableError`` if ``strict`` is set and
                 the tree cannot be retrieved.
        """
        if self.backend is None or not content_id:
            return []
        try:
            text = self._cat_text(content_id)
        except RevdiffObjectUnavailableError as err:
            if strict:
                raise
            _log_warn("Could not read tree %s (%s): %s", content_id, directory, err)
            return []
        entries = parse_tree_listing(text, directory)
        _log_debug_treediff(
            "Read tree %s at '%s': %d entries", content_id, directory, len(entries)
        )
        return entries

    def read_commit(self, content_id: str, strict: bool = False) -> CommitSnapshot:
        """
        Read the commit ``content_id`` and its root tree.

        :param content_id: The commit to read.
        :type content_id: ``str``
        :param strict: Propagate failures instead of returning an empty
                       snapshot.
        :type strict: ``bool``
        :returns: The parsed commit.
        :rtype: ``CommitSnapshot``
        :raises: ``RevdiffObjectUnavailableError`` or
                 ``RevdiffMalformedObjectError`` if ``strict`` is set.
        """
        if self.backend is None or not content_id:
            return CommitSnapshot()
        try:
            text = self._cat_text(content_id)
        except RevdiffObjectUnavailableError as err:
            if strict:
                raise
            _log_warn("Could not read commit %s: %s", content_id, err)
            return CommitSnapshot()

        (tree, parents) = parse_commit_header(text)
        if tree is None:
            if strict:
                raise RevdiffMalformedObjectError(
                    f"Commit {content_id} has no tree reference"
                )
            _log_warn("Ignoring commit %s with no tree reference", content_id)
            return CommitSnapshot()

        _log_debug_treediff(
            "Read commit %s: tree=%s parents=%s", content_id, tree, ",".join(parents)
        )
        entries = self.read_tree(tree, "", strict=strict)
        return CommitSnapshot(tree, parents, entries)
