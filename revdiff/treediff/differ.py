# Copyright Red Hat
#
# revdiff/treediff/differ.py - Revision diff top-level interface
#
# This file is part of the revdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Top-level revision diff interface.
"""
from typing import List, Optional, TYPE_CHECKING
from datetime import datetime
from math import floor
import logging
import sys

from revdiff import (
    HEAD_REVISION,
    REVDIFF_SUBSYSTEM_TREEDIFF,
    RevdiffCalloutError,
    RevdiffObjectUnavailableError,
)
from revdiff.progress import ProgressFactory, TermControl

from .difftypes import DiffType
from .engine import DiffRecord, DiffResults
from .filetypes import FileTypeDetector, FileTypeInfo
from .hunks import HunkParser, Hunk
from .options import DiffOptions
from .pathindex import PathIndex, PathIndexChain
from .reconcile import ChangeDescriptor, DiffReconciler, WorkingDirectoryMerge
from .snapshot import SnapshotReader

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


def sort_by_dest_path(changes: List[ChangeDescriptor]) -> List[ChangeDescriptor]:
    """
    Sort change descriptors by destination path, ignoring case. Paths that
    differ only by case keep their relative order.

    :param changes: The descriptors to sort.
    :type changes: ``List[ChangeDescriptor]``
    :returns: A new, sorted list.
    :rtype: ``List[ChangeDescriptor]``
    """
    return sorted(changes, key=lambda change: change.dest_path.lower())


class RevisionDiffer:
    """
    Top-level interface for generating revision comparisons.
    """

    def __init__(
        self,
        backend: Optional["Backend"],
        options: Optional[DiffOptions] = None,
        color: str = "auto",
        term_control: Optional[TermControl] = None,
    ):
        """
        Initialise a new ``RevisionDiffer``.

        :param backend: The version control backend, or ``None``.
        :type backend: ``Optional[Backend]``
        :param options: Options to control this ``RevisionDiffer`` instance.
        :type options: ``Optional[DiffOptions]``
        :param color: A string to control color progress rendering: "auto",
                      "always", or "never".
        :type color: ``str``
        :param term_control: An optional ``TermControl`` instance to use for
                             formatting. The supplied instance overrides any
                             ``color`` argument if set.
        :type term_control: ``Optional[TermControl]``
        """
        self.backend = backend
        self.options: DiffOptions = options or DiffOptions()
        self.reader = SnapshotReader(backend)
        self.reconciler = DiffReconciler(
            self.reader, detect_removed=self.options.detect_removed
        )
        self.merger = WorkingDirectoryMerge(self.reader)
        self.detector = FileTypeDetector()
        self.hunk_parser = HunkParser()
        self._term_control = term_control or TermControl(sys.stderr, color=color)

    def _working_directory_changes(self) -> List[ChangeDescriptor]:
        head_id = self.backend.resolve_head()
        head = self.reader.read_commit(head_id, strict=True)
        _log_debug_treediff(
            "Diffing working directory against %s (%d root entries)",
            head_id,
            len(head.entries),
        )
        chain = PathIndexChain([PathIndex(head.entries)])
        status = self.backend.status()
        return self.merger.merge(chain, status)

    def _revision_changes(self, revision: str) -> List[ChangeDescriptor]:
        commit_id = self.backend.resolve_revision(revision)
        commit = self.reader.read_commit(commit_id, strict=True)
        chain = PathIndexChain()
        for parent_id in commit.parent_ids:
            parent = self.reader.read_commit(parent_id)
            chain.append(PathIndex(parent.entries))
        _log_debug_treediff(
            "Diffing %s against %d parent(s)", commit_id, len(commit.parent_ids)
        )
        changes = self.reconciler.reconcile("", commit.entries, chain)
        if self.options.detect_removed and len(chain):
            changes.extend(self.reconciler.find_removed("", commit.entries, chain[0]))
        return changes

    def changes(self, revision: str = HEAD_REVISION) -> List[ChangeDescriptor]:
        """
        Return the sorted change descriptors for ``revision`` without
        retrieving raw diffs.

        :param revision: ``HEAD`` to compare the working directory with the
                         head commit, or a commit to compare with its
                         parents.
        :type revision: ``str``
        :returns: Change descriptors sorted by destination path.
        :rtype: ``List[ChangeDescriptor]``
        """
        if self.backend is None:
            _log_warn("No backend available: nothing to diff")
            return []

        if revision == HEAD_REVISION:
            changes = self._working_directory_changes()
        else:
            changes = self._revision_changes(revision)

        changes = [c for c in changes if self.options.matches_path(c.dest_path)]
        return sort_by_dest_path(changes)

    def _raw_diff(self, change: ChangeDescriptor) -> str:
        if change.old_id and change.new_id:
            return self.backend.raw_diff(change.old_id, change.new_id)
        if change.new_id:
            return self.backend.raw_diff("", change.new_id)
        if change.diff_type == DiffType.REMOVED and change.old_id:
            return self.backend.raw_diff(change.old_id, "")
        return self.backend.raw_diff_against_working_file(change.old_id, change.dest_path)

    def _hunks(self, change: ChangeDescriptor) -> List[Hunk]:
        if not self.options.include_hunks:
            return []
        try:
            raw = self._raw_diff(change)
        except (RevdiffCalloutError, RevdiffObjectUnavailableError) as err:
            _log_warn("Could not retrieve diff for %s: %s", change.dest_path, err)
            return []
        return self.hunk_parser.parse(raw)

    def _file_type(self, change: ChangeDescriptor) -> FileTypeInfo:
        content_id = change.new_id or change.old_id
        content = None
        if self.options.use_magic_file_type and content_id:
            try:
                content = self.backend.cat_object(content_id)
            except RevdiffObjectUnavailableError as err:
                _log_warn("Could not read %s for type detection: %s", change.dest_path, err)
        return self.detector.detect_blob_type(
            change.dest_path, content, use_magic=self.options.use_magic_file_type
        )

    def diff(self, revision: str = HEAD_REVISION) -> DiffResults:
        """
        Compare ``revision`` with its parents, or the working directory with
        the head commit, and return the results.

        :param revision: ``HEAD`` to compare the working directory with the
                         head commit, or a commit to compare with its
                         parents.
        :type revision: ``str``
        :returns: The diff results for the comparison.
        :rtype: ``DiffResults``
        :raises: ``RevdiffNotFoundError`` if the revision cannot be resolved,
                 ``RevdiffObjectUnavailableError`` or
                 ``RevdiffMalformedObjectError`` if it cannot be read.
        """
        start_time = datetime.now()
        timestamp = floor(start_time.timestamp())

        changes = self.changes(revision)
        records = []
        if not changes:
            return DiffResults(records, revision, self.options, timestamp)

        progress = ProgressFactory.get_progress(
            "Retrieving diffs",
            quiet=self.options.quiet,
            term_control=self._term_control,
        )
        progress.start(len(changes))
        try:
            for i, change in enumerate(changes):
                progress.progress(i, f"Diffing '{change.dest_path}'")
                records.append(
                    DiffRecord.from_descriptor(
                        change, self._hunks(change), self._file_type(change)
                    )
                )
        except KeyboardInterrupt:
            progress.cancel("Quit!")
            raise
        except SystemExit:
            progress.cancel("Exiting.")
            raise

        end_time = datetime.now()
        progress.end(f"Found {len(records)} changes in {end_time - start_time}")
        return DiffResults(records, revision, self.options, timestamp)
