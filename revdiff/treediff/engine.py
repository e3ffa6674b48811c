# Copyright Red Hat
#
# revdiff/treediff/engine.py - Revision diff records and results
#
# This file is part of the revdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Revision diff records, result containers and rendering.
"""
from typing import Any, ClassVar, Dict, Iterator, List, Optional
import logging
import json

from revdiff.progress import TermControl

from .difftypes import DiffType
from .filetypes import FileTypeInfo
from .hunks import Hunk
from .options import DiffOptions
from .reconcile import ChangeDescriptor

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

#: Placeholder path for the absent side of an add or removal.
DEV_NULL = "/dev/null"


class DiffRecord:
    """
    A single file level change with its parsed hunks.
    """

    def __init__(
        self,
        dest_path: str,
        source_path: str,
        mode: str,
        old_id: str,
        new_id: str,
        diff_type: DiffType,
        hunks: Optional[List[Hunk]] = None,
        diff: str = "",
        index: str = "",
        file_type_info: Optional[FileTypeInfo] = None,
    ):
        """
        Initialise a new ``DiffRecord``.

        :param dest_path: Path on the new side.
        :type dest_path: ``str``
        :param source_path: Path on the old side.
        :type source_path: ``str``
        :param mode: File mode, or the empty string if unknown.
        :type mode: ``str``
        :param old_id: Old content id or the empty string.
        :type old_id: ``str``
        :param new_id: New content id or the empty string.
        :type new_id: ``str``
        :param diff_type: The change classification.
        :type diff_type: ``DiffType``
        :param hunks: Parsed hunks for this change.
        :type hunks: ``Optional[List[Hunk]]``
        :param diff: The ``diff --git`` header line.
        :type diff: ``str``
        :param index: The ``index`` header line.
        :type index: ``str``
        :param file_type_info: Optional blob file type information.
        :type file_type_info: ``Optional[FileTypeInfo]``
        """
        self.dest_path = dest_path
        self.source_path = source_path
        self.mode = mode
        self.old_id = old_id
        self.new_id = new_id
        self.diff_type = diff_type
        self.hunks = hunks if hunks is not None else []
        self.diff = diff
        self.index = index
        self.file_type_info = file_type_info

    @classmethod
    def from_descriptor(
        cls,
        desc: ChangeDescriptor,
        hunks: Optional[List[Hunk]] = None,
        file_type_info: Optional[FileTypeInfo] = None,
    ) -> "DiffRecord":
        """
        Build a ``DiffRecord`` from a ``ChangeDescriptor``.

        :param desc: The change descriptor.
        :type desc: ``ChangeDescriptor``
        :param hunks: Parsed hunks for this change.
        :type hunks: ``Optional[List[Hunk]]``
        :param file_type_info: Optional blob file type information.
        :type file_type_info: ``Optional[FileTypeInfo]``
        :returns: A new ``DiffRecord``.
        :rtype: ``DiffRecord``
        """
        return cls(
            desc.dest_path,
            desc.source_path,
            desc.mode,
            desc.old_id,
            desc.new_id,
            desc.diff_type,
            hunks=hunks,
            diff=desc.diff,
            index=desc.index,
            file_type_info=file_type_info,
        )

    @property
    def additions(self) -> int:
        """Total added lines over all hunks."""
        return sum(hunk.additions for hunk in self.hunks)

    @property
    def deletions(self) -> int:
        """Total removed lines over all hunks."""
        return sum(hunk.deletions for hunk in self.hunks)

    @property
    def has_hunks(self) -> bool:
        """``True`` if this record carries at least one hunk."""
        return bool(self.hunks)

    @property
    def renamed(self) -> bool:
        """``True`` if the old and new paths differ."""
        return self.source_path != self.dest_path

    def __str__(self) -> str:
        """
        Return a human readable string representation of this record.

        :returns: A multi-line description.
        :rtype: ``str``
        """
        file_type = (
            f"\n  file_type: {self.file_type_info.mime_type}"
            f"\n  file_category: {self.file_type_info.category.value}"
            if self.file_type_info
            else ""
        )
        return (
            f"Path: {self.dest_path}\n"
            f"  source_path: {self.source_path}\n"
            f"  diff_type: {self.diff_type.value}\n"
            f"  mode: {self.mode}\n"
            f"  old_id: {self.old_id}\n"
            f"  new_id: {self.new_id}\n"
            f"  hunks: {len(self.hunks)}\n"
            f"  additions: {self.additions}\n"
            f"  deletions: {self.deletions}"
            f"{file_type}"
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert this ``DiffRecord`` object into a dictionary representation
        suitable for encoding as JSON.

        :returns: A dictionary mapping this instance's keys to values.
        :rtype: ``Dict[str, Any]``
        """
        out = {
            "dest_path": self.dest_path,
            "source_path": self.source_path,
            "mode": self.mode,
            "old_id": self.old_id,
            "new_id": self.new_id,
            "diff_type": self.diff_type.value,
            "diff": self.diff,
            "index": self.index,
            "additions": self.additions,
            "deletions": self.deletions,
            "hunks": [hunk.to_dict() for hunk in self.hunks],
        }
        if self.file_type_info:
            out["file_type"] = self.file_type_info.to_dict()
        return out

    def json(self, pretty=False) -> str:
        """
        Return a string representation of this ``DiffRecord`` in JSON
        notation.

        :param pretty: Indent JSON to be human readable.
        :type pretty: ``bool``
        :returns: A JSON representation of this instance.
        :rtype: ``str``
        """
        return json.dumps(self.to_dict(), indent=4 if pretty else None)


def render_unified_diff(record: DiffRecord, tc: Optional[TermControl]) -> str:
    """
    Render a unified diff for a changed file.

    :param record: The diff record to render.
    :type record: ``DiffRecord``
    :param tc: An optional ``TermControl`` instance to use for rendering color
               output.
    :type tc: ``Optional[TermControl]``
    :returns: Rendered unified diff string, or the empty string if the record
              has no hunks.
    :rtype: ``str``
    """

    def _hunk_header(header: str) -> str:
        before, sep, after = header[2:].partition("@@")
        if not sep:
            return header
        return tc.CYAN + "@@" + before + "@@" + tc.NORMAL + after

    if not record.has_hunks:
        return ""

    from_path = DEV_NULL if record.diff_type == DiffType.ADDED else f"a/{record.source_path}"
    to_path = DEV_NULL if record.diff_type == DiffType.REMOVED else f"b/{record.dest_path}"

    lines = [record.diff, record.index, f"--- {from_path}", f"+++ {to_path}"]
    for hunk in record.hunks:
        if not tc:
            lines.append(hunk.header)
            lines.extend(hunk.lines)
            continue
        lines.append(_hunk_header(hunk.header))
        for line in hunk.lines:
            if line.startswith("-"):
                lines.append(tc.RED + line + tc.NORMAL)
            elif line.startswith("+"):
                lines.append(tc.GREEN + line + tc.NORMAL)
            else:
                lines.append(line)
    return "\n".join(lines)


def render_diff_stat(records: List[DiffRecord], term_control: TermControl) -> str:
    """
    Render a diffstat-style summary for the given records.

    :param records: Diff records with hunks.
    :type records: ``List[DiffRecord]``
    :param term_control: A ``TermControl`` instance to use for rendering color
               output.
    :type term_control: ``TermControl``
    :returns: Diffstat-style summary string.
    :rtype: ``str``
    """
    records = [r for r in records if r.has_hunks]

    if not records:
        return ""

    adds = 0
    dels = 0
    path_width = max(len(record.dest_path) for record in records)
    plus = f"{term_control.GREEN}+{term_control.NORMAL}"
    minus = f"{term_control.RED}-{term_control.NORMAL}"

    def _render_one(record: DiffRecord):
        nonlocal adds, dels
        added = record.additions
        removed = record.deletions
        adds += added
        dels += removed
        header = f" {record.dest_path.ljust(path_width)} | "
        return header + f"{added + removed:4} {plus * added}{minus * removed}"

    count = len(records)
    diffstat = "\n".join(_render_one(record) for record in records)
    trailer = (
        f"\n {count} file{'s' if count > 1 else ''} changed, "
        f"{adds} insertions(+), {dels} deletions(-)"
    )
    return diffstat + trailer


class DiffResults:
    """Container for revision diff results with formatting methods."""

    #: Constant for the names of the string diff formats
    DIFF_FORMATS: ClassVar[List[str]] = [
        "paths",
        "full",
        "short",
        "json",
        "diff",
        "summary",
    ]

    def __init__(
        self,
        records: List[DiffRecord],
        revision: str,
        options: DiffOptions,
        timestamp: int,
    ):
        self._records = records
        self.revision = revision
        self.options = options
        self.timestamp = timestamp

    def __repr__(self) -> str:
        """
        Return a machine-readable representation of this instance.

        :returns: ``DiffResults`` constructor style string.
        :rtype: ``str``
        """
        return (
            f"DiffResults([...], {self.revision!r}, {self.options!r}, "
            f"{self.timestamp})"
        )

    # List-like interface
    def __iter__(self) -> Iterator[DiffRecord]:
        return iter(self._records)

    def __len__(self):
        return len(self._records)

    def __getitem__(self, index: int) -> DiffRecord:
        return self._records[index]

    # Summary properties
    @property
    def total_changes(self) -> int:
        """
        Return the total number of changes: equivalent to ``len(self)``.
        """
        return len(self)

    @property
    def added(self) -> List[DiffRecord]:
        """
        Return added changes in this ``DiffResults`` instance.

        :returns: Changes with ``DiffType.ADDED`` type.
        :rtype: ``List[DiffRecord]``
        """
        return [r for r in self._records if r.diff_type == DiffType.ADDED]

    @property
    def removed(self) -> List[DiffRecord]:
        """
        Return removed changes in this ``DiffResults`` instance.

        :returns: Changes with ``DiffType.REMOVED`` type.
        :rtype: ``List[DiffRecord]``
        """
        return [r for r in self._records if r.diff_type == DiffType.REMOVED]

    @property
    def modified(self) -> List[DiffRecord]:
        """
        Return modified changes in this ``DiffResults`` instance.

        :returns: Changes with ``DiffType.MODIFIED`` type.
        :rtype: ``List[DiffRecord]``
        """
        return [r for r in self._records if r.diff_type == DiffType.MODIFIED]

    # Output formats
    def paths(self) -> List[str]:
        """
        Return a list of destination paths that changed.

        :returns: Path list.
        :rtype: ``List[str]``
        """
        return [record.dest_path for record in self._records]

    def full(self) -> str:
        """
        Return a string with full ``DiffRecord`` content for this instance.

        :returns: String description of revision changes.
        :rtype: ``str``
        """
        return "\n\n".join(str(record) for record in self._records)

    def short(self) -> str:
        """
        Return one line per record: change type initial and path.

        :returns: Brief string description of revision changes.
        :rtype: ``str``
        """
        out = []
        for record in self._records:
            line = f"{record.diff_type.value[0].upper()} {record.dest_path}"
            if record.renamed:
                line += f" (from {record.source_path})"
            out.append(line)
        return "\n".join(out)

    def json(self, pretty: bool = False) -> str:
        """
        Return JSON representation of ``DiffRecord`` content for this
        instance.

        :returns: JSON string description of revision changes.
        :rtype: ``str``
        """
        dicts = [record.to_dict() for record in self._records]
        return json.dumps(dicts, indent=4 if pretty else None)

    def diff(
        self,
        diffstat: bool = False,
        color: str = "auto",
        term_control: Optional[TermControl] = None,
    ) -> str:
        """
        Return unified diff representation of the changes in this instance.

        :param diffstat: Include "diffstat"-like change summary.
        :type diffstat: ``bool``
        :param color: A string to control color diff rendering: "auto",
                      "always", or "never".
        :type color: ``str``
        :param term_control: An optional ``TermControl`` instance to use for
                             formatting. The supplied instance overrides any
                             ``color`` argument if set.
        :type term_control: ``Optional[TermControl]``
        :returns: unified diff string.
        :rtype: ``str``
        """
        term_control = term_control or TermControl(color=color)
        diffs = [
            rendered
            for r in self._records
            if (rendered := render_unified_diff(r, term_control))
        ]
        stat_str = ""
        if diffstat and diffs:
            stat_str = render_diff_stat(self._records, term_control) + "\n\n"
        return stat_str + "\n".join(diffs)

    def summary(
        self,
        diffstat: bool = False,
        color: str = "auto",
        term_control: Optional[TermControl] = None,
    ) -> str:
        """
        Return a summary of this ``DiffResults`` instance.

        :param diffstat: Include "diffstat"-like change summary.
        :type diffstat: ``bool``
        :param color: A string to control color rendering: "auto", "always", or
                      "never".
        :type color: ``str``
        :param term_control: An optional ``TermControl`` instance to use for
                             formatting. The supplied instance overrides any
                             ``color`` argument if set.
        :type term_control: ``Optional[TermControl]``
        :returns: A string summarizing this instance.
        :rtype: ``str``
        """
        tc = term_control or TermControl(color=color)
        with_hunks = [r for r in self._records if r.has_hunks]
        summary = (
            f"Revision:          {self.revision}\n"
            f"Total changes:     {len(self)}\n"
            f"  Paths {tc.GREEN + 'added:    ' + tc.NORMAL} {len(self.added)}\n"
            f"  Paths {tc.RED + 'removed:  ' + tc.NORMAL} {len(self.removed)}\n"
            f"  Paths {tc.YELLOW + 'modified: ' + tc.NORMAL} {len(self.modified)}\n"
            f"  Paths {tc.MAGENTA + 'withdiff: ' + tc.NORMAL} {len(with_hunks)}"
        )
        stat_str = ""
        if diffstat and with_hunks:
            stat_str = "\n\n" + render_diff_stat(with_hunks, tc)
        return summary + stat_str
