# Copyright Red Hat
#
# revdiff/treediff/reconcile.py - Revision diff tree reconciliation
#
# This file is part of the revdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Reconcile new tree entries against a chain of ancestor path indexes.
"""
from dataclasses import dataclass
from typing import Iterable, List, Optional, Set
import logging

from revdiff import REVDIFF_SUBSYSTEM_TREEDIFF
from revdiff.backend import ChangeKind, StatusEntry

from .difftypes import DiffType
from .entries import EntryKind, TreeEntry
from .pathindex import PathIndex, PathIndexChain
from .snapshot import SnapshotReader

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_treediff(msg, *args, **kwargs):
    """A wrapper for treediff subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": REVDIFF_SUBSYSTEM_TREEDIFF}, **kwargs)


@dataclass
class ChangeDescriptor:
    """
    A pending file level change: the paths and content ids of one side of
    a diff pair before the raw diff has been retrieved. Absent ids are the
    empty string.
    """

    #: Path on the new side
    dest_path: str
    #: Path on the old side
    source_path: str
    #: File mode, or "" if unknown
    mode: str
    #: Content id on the old side
    old_id: str
    #: Content id on the new side
    new_id: str
    #: Classification of the change
    diff_type: DiffType
    #: Recursion directory that produced this descriptor
    directory: str = ""

    @property
    def diff(self) -> str:
        """The synthetic ``diff --git`` header line."""
        # a/ and b/ prefixes in both revision and working directory mode
        return f"diff --git a/{self.source_path} b/{self.dest_path}"

    @property
    def index(self) -> str:
        """The synthetic ``index`` header line."""
        index = f"index {self.old_id}..{self.new_id}"
        return f"{index} {self.mode}" if self.mode else index

    def __str__(self):
        return f"{self.diff_type.value}: {self.dest_path}"


def _added(entry: TreeEntry, directory: str) -> ChangeDescriptor:
    return ChangeDescriptor(
        entry.path,
        entry.path,
        entry.mode,
        "",
        entry.content_id,
        DiffType.ADDED,
        directory,
    )


def _removed(entry: TreeEntry, directory: str) -> ChangeDescriptor:
    return ChangeDescriptor(
        entry.path,
        entry.path,
        entry.mode,
        entry.content_id,
        "",
        DiffType.REMOVED,
        directory,
    )


class DiffReconciler:
    """
    Walk the entries of a new snapshot against a ``PathIndexChain`` that
    describes one or more old snapshots and classify each entry.

    Only entries of the new side are visited. Paths that exist solely in
    the chain are reported by ``find_removed()``, which runs during subtree
    recursion when ``detect_removed`` is set.
    """

    def __init__(self, reader: SnapshotReader, detect_removed: bool = False):
        """
        Initialise a new ``DiffReconciler``.

        :param reader: The reader used to load subtrees.
        :type reader: ``SnapshotReader``
        :param detect_removed: Also report paths missing from the new side.
        :type detect_removed: ``bool``
        """
        self.reader = reader
        self.detect_removed = detect_removed
        #: Number of ``diff_tree()`` calls made by this reconciler
        self.diff_tree_calls = 0

    def reconcile(
        self, directory: str, new_entries: Iterable[TreeEntry], chain: PathIndexChain
    ) -> List[ChangeDescriptor]:
        """
        Classify each entry of ``new_entries`` against ``chain``.

        The first chain level that contains an entry's path decides its
        fate: equal ids mean unchanged, different ids mean a modified blob
        or a subtree to descend into. Later levels are never consulted. An
        entry absent from every level is added.

        :param directory: The directory that ``new_entries`` belong to.
        :type directory: ``str``
        :param new_entries: Entries of the new side.
        :type new_entries: ``Iterable[TreeEntry]``
        :param chain: The old side path indexes in precedence order.
        :type chain: ``PathIndexChain``
        :returns: Change descriptors for every changed blob.
        :rtype: ``List[ChangeDescriptor]``
        """
        changes = []
        for entry in new_entries:
            match = chain.find(entry.path)
            if match is None:
                _log_debug_treediff("Added %s %s", entry.kind.value, entry.path)
                changes.extend(self._expand(entry, directory, DiffType.ADDED))
                continue

            if match.content_id == entry.content_id:
                continue

            old_entry = chain[match.level].entry(entry.path)
            if old_entry is not None and old_entry.kind != entry.kind:
                _log_debug_treediff(
                    "Type changed %s -> %s: %s",
                    old_entry.kind.value,
                    entry.kind.value,
                    entry.path,
                )
                if self.detect_removed:
                    changes.extend(self._expand(old_entry, directory, DiffType.REMOVED))
                changes.extend(self._expand(entry, directory, DiffType.ADDED))
                continue

            if entry.is_subtree:
                changes.extend(
                    self.diff_tree(entry.path, match.content_id, entry.content_id)
                )
            else:
                _log_debug_treediff(
                    "Modified %s (%s..%s)", entry.path, match.content_id, entry.content_id
                )
                changes.append(
                    ChangeDescriptor(
                        entry.path,
                        entry.path,
                        entry.mode,
                        match.content_id,
                        entry.content_id,
                        DiffType.MODIFIED,
                        directory,
                    )
                )
        return changes

    def diff_tree(
        self, directory: str, old_tree_id: str, new_tree_id: str
    ) -> List[ChangeDescriptor]:
        """
        Compare two versions of the subtree at ``directory``.

        :param directory: The subtree path, used as the entry path prefix.
        :type directory: ``str``
        :param old_tree_id: The old content id of the subtree.
        :type old_tree_id: ``str``
        :param new_tree_id: The new content id of the subtree.
        :type new_tree_id: ``str``
        :returns: Change descriptors for every changed blob below
                  ``directory``.
        :rtype: ``List[ChangeDescriptor]``
        """
        self.diff_tree_calls += 1
        _log_debug_treediff("Descending into %s (%s..%s)", directory, old_tree_id, new_tree_id)
        old_entries = self.reader.read_tree(old_tree_id, directory)
        new_entries = self.reader.read_tree(new_tree_id, directory)
        old_index = PathIndex(old_entries)
        changes = self.reconcile(directory, new_entries, PathIndexChain([old_index]))
        if self.detect_removed:
            changes.extend(self.find_removed(directory, new_entries, old_index))
        return changes

    def find_removed(
        self, directory: str, new_entries: Iterable[TreeEntry], old_index: PathIndex
    ) -> List[ChangeDescriptor]:
        """
        Enumerate the old side and report paths missing from the new side.

        Only entries stored in ``old_index`` as ``TreeEntry`` objects are
        considered. Removed subtrees are expanded to their blobs.

        :param directory: The directory being compared.
        :type directory: ``str``
        :param new_entries: Entries of the new side.
        :type new_entries: ``Iterable[TreeEntry]``
        :param old_index: The old side index for ``directory``.
        :type old_index: ``PathIndex``
        :returns: A ``REMOVED`` descriptor for every blob only present on
                  the old side.
        :rtype: ``List[ChangeDescriptor]``
        """
        new_paths = {entry.path for entry in new_entries}
        changes = []
        for old_entry in old_index.entries():
            if old_entry.path in new_paths:
                continue
            _log_debug_treediff("Removed %s %s", old_entry.kind.value, old_entry.path)
            changes.extend(self._expand(old_entry, directory, DiffType.REMOVED))
        return changes

    def _expand(
        self, entry: TreeEntry, directory: str, diff_type: DiffType
    ) -> List[ChangeDescriptor]:
        """
        Return descriptors for ``entry``, or for every blob below it if it
        is a subtree.
        """
        make = _added if diff_type == DiffType.ADDED else _removed
        if entry.kind == EntryKind.BLOB:
            return [make(entry, directory)]

        changes = []
        for child in self.reader.read_tree(entry.content_id, entry.path):
            changes.extend(self._expand(child, entry.path, diff_type))
        return changes


class WorkingDirectoryMerge:
    """
    Reconcile a working directory status list against the head commit.

    Directories named by status entries are expanded lazily: each one is
    read from the first chain level that knows it and appended to the chain
    as a new level, at most once per ``merge()`` call.
    """

    def __init__(self, reader: SnapshotReader):
        """
        Initialise a new ``WorkingDirectoryMerge``.

        :param reader: The reader used to load directory trees.
        :type reader: ``SnapshotReader``
        """
        self.reader = reader
        #: Directories expanded by the most recent ``expand()`` call
        self.expanded: List[str] = []

    def _expand_path(self, path: str, chain: PathIndexChain, visited: Set[str]):
        parts = path.split("/")[:-1]
        directory = ""
        for part in parts:
            directory = f"{directory}/{part}" if directory else part
            if directory in visited:
                continue
            match = chain.find(directory)
            if match is None:
                # Untracked directory: nothing below it is committed.
                return
            entry = chain[match.level].entry(directory)
            if entry is not None and entry.kind != EntryKind.SUBTREE:
                return
            visited.add(directory)
            self.expanded.append(directory)
            _log_debug_treediff("Expanding directory %s (%s)", directory, match.content_id)
            chain.append(PathIndex(self.reader.read_tree(match.content_id, directory)))

    def expand(self, chain: PathIndexChain, status: Iterable[StatusEntry]) -> Set[str]:
        """
        Append a chain level for every committed directory that contains a
        status entry.

        :param chain: The chain to extend, seeded with the head root entries.
        :type chain: ``PathIndexChain``
        :param status: The working directory status list.
        :type status: ``Iterable[StatusEntry]``
        :returns: The set of expanded directories.
        :rtype: ``Set[str]``
        """
        visited: Set[str] = set()
        self.expanded = []
        for entry in status:
            self._expand_path(entry.path, chain, visited)
            if entry.orig_path:
                self._expand_path(entry.orig_path, chain, visited)
        return visited

    def merge(
        self, chain: PathIndexChain, status: List[StatusEntry]
    ) -> List[ChangeDescriptor]:
        """
        Expand ``chain`` for ``status`` and map each status entry to a
        change descriptor.

        Entries found in the chain are modified (or removed, if the working
        file was deleted) with the committed id as the old id. Entries not
        found are added. Working files have no content id.

        :param chain: The chain seeded with the head root entries.
        :type chain: ``PathIndexChain``
        :param status: The working directory status list.
        :type status: ``List[StatusEntry]``
        :returns: One change descriptor per status entry.
        :rtype: ``List[ChangeDescriptor]``
        """
        self.expand(chain, status)
        changes = []
        for entry in status:
            source_path = entry.orig_path or entry.path
            match = chain.find(entry.path)
            lookup = entry.path
            if match is None and entry.orig_path:
                match = chain.find(entry.orig_path)
                lookup = entry.orig_path

            if match is None:
                changes.append(
                    ChangeDescriptor(
                        entry.path, source_path, "", "", "", DiffType.ADDED
                    )
                )
                continue

            old_entry: Optional[TreeEntry] = chain[match.level].entry(lookup)
            mode = old_entry.mode if old_entry is not None else ""
            diff_type = (
                DiffType.REMOVED
                if entry.change_kind == ChangeKind.DELETED
                else DiffType.MODIFIED
            )
            changes.append(
                ChangeDescriptor(
                    entry.path, source_path, mode, match.content_id, "", diff_type
                )
            )
        return changes
