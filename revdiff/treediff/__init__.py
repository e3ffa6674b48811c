# Copyright Red Hat
#
# revdiff/treediff/__init__.py - Revision diff tree diff engine
#
# This file is part of the revdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Tree diff engine.
"""
from .difftypes import DiffType
from .differ import RevisionDiffer, sort_by_dest_path
from .engine import DiffRecord, DiffResults
from .entries import CommitSnapshot, EntryKind, TreeEntry
from .filetypes import FileTypeCategory, FileTypeDetector, FileTypeInfo
from .hunks import Hunk, HunkParser, parse_hunks
from .options import DiffOptions
from .pathindex import ChainMatch, PathIndex, PathIndexChain
from .reconcile import ChangeDescriptor, DiffReconciler, WorkingDirectoryMerge
from .snapshot import SnapshotReader, parse_commit_header, parse_tree_listing, trim_path

__all__ = [
    "ChainMatch",
    "ChangeDescriptor",
    "CommitSnapshot",
    "DiffOptions",
    "DiffReconciler",
    "DiffRecord",
    "DiffResults",
    "DiffType",
    "EntryKind",
    "FileTypeCategory",
    "FileTypeDetector",
    "FileTypeInfo",
    "Hunk",
    "HunkParser",
    "PathIndex",
    "PathIndexChain",
    "RevisionDiffer",
    "SnapshotReader",
    "TreeEntry",
    "WorkingDirectoryMerge",
    "parse_commit_header",
    "parse_hunks",
    "parse_tree_listing",
    "sort_by_dest_path",
    "trim_path",
]
