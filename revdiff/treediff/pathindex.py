# Copyright Red Hat
#
# revdiff/treediff/pathindex.py - Revision diff path indexes
#
# This file is part of the revdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Path to content id indexes and ordered lookup chains.
"""
from typing import Dict, Iterable, Iterator, List, NamedTuple, Optional
import logging

from .entries import TreeEntry

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


class PathIndex:
    """
    The state of one directory level in one ancestor: a mapping from
    normalized path to content id. Keys are unique and the last ``store()``
    for a path wins.
    """

    def __init__(self, entries: Optional[Iterable[TreeEntry]] = None):
        """
        Initialise a new ``PathIndex``, optionally populated from a list of
        ``TreeEntry`` objects.

        :param entries: Initial tree entries to index.
        :type entries: ``Optional[Iterable[TreeEntry]]``
        """
        self._ids: Dict[str, str] = {}
        self._entries: Dict[str, TreeEntry] = {}
        for entry in entries or ():
            self.store_entry(entry)

    def store(self, path: str, content_id: str):
        """
        Record ``content_id`` for ``path``, replacing any previous value.

        :param path: The normalized path.
        :type path: ``str``
        :param content_id: The content id at ``path``.
        :type content_id: ``str``
        """
        self._ids[path] = content_id
        self._entries.pop(path, None)

    def store_entry(self, entry: TreeEntry):
        """
        Record a ``TreeEntry`` so that its kind and mode can be recovered.

        :param entry: The tree entry to store.
        :type entry: ``TreeEntry``
        """
        self._ids[entry.path] = entry.content_id
        self._entries[entry.path] = entry

    def find(self, path: str) -> Optional[str]:
        """
        Return the content id stored for ``path`` or ``None``.
        """
        return self._ids.get(path)

    def entry(self, path: str) -> Optional[TreeEntry]:
        """
        Return the ``TreeEntry`` stored for ``path`` or ``None`` if the
        path is absent or was stored without one.
        """
        return self._entries.get(path)

    def entries(self) -> List[TreeEntry]:
        """
        Return the stored ``TreeEntry`` objects in insertion order.
        """
        return list(self._entries.values())

    def __contains__(self, path):
        return path in self._ids

    def __len__(self):
        return len(self._ids)

    def __iter__(self):
        return iter(self._ids)

    def __repr__(self):
        return f"PathIndex({self._ids!r})"


class ChainMatch(NamedTuple):
    """
    The result of a successful ``PathIndexChain.find()``.
    """

    #: Position of the matching level in the chain
    level: int
    #: Content id held by that level
    content_id: str


class PathIndexChain:
    """
    An ordered list of ``PathIndex`` levels searched front to back. The first
    level that contains a path wins and later levels are never consulted.
    """

    def __init__(self, levels: Optional[Iterable[PathIndex]] = None):
        self._levels: List[PathIndex] = list(levels or ())

    def append(self, level: PathIndex):
        """
        Add ``level`` at the lowest precedence.

        :param level: The index to append.
        :type level: ``PathIndex``
        """
        self._levels.append(level)

    def find(self, path: str) -> Optional[ChainMatch]:
        """
        Probe each level in order and return the first match.

        :param path: The normalized path to look up.
        :type path: ``str``
        :returns: The matching level and content id, or ``None`` if no level
                  contains ``path``.
        :rtype: ``Optional[ChainMatch]``
        """
        for level, index in enumerate(self._levels):
            content_id = index.find(path)
            if content_id is not None:
                return ChainMatch(level, content_id)
        return None

    def find_entry(self, path: str) -> Optional[TreeEntry]:
        """
        Return the ``TreeEntry`` for ``path`` from the first level that
        contains it, or ``None``.
        """
        match = self.find(path)
        if match is None:
            return None
        return self._levels[match.level].entry(path)

    def __getitem__(self, level: int) -> PathIndex:
        return self._levels[level]

    def __len__(self):
        return len(self._levels)

    def __iter__(self) -> Iterator[PathIndex]:
        return iter(self._levels)
