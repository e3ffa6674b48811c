# Copyright Red Hat
#
# revdiff/treediff/entries.py - Revision diff tree entry model
#
# This file is part of the revdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Tree entry and commit snapshot types.
"""
from dataclasses import dataclass, field
from typing import List
from enum import Enum


class EntryKind(Enum):
    """
    Enum for the kinds of object a tree listing line may name.
    """

    SUBTREE = "tree"
    BLOB = "blob"
    UNKNOWN = "unknown"

    @classmethod
    def from_token(cls, token: str) -> "EntryKind":
        """
        Map a tree listing kind token to an ``EntryKind``.

        :param token: The kind token (``tree``, ``blob``, ...).
        :type token: ``str``
        :returns: The matching kind, or ``EntryKind.UNKNOWN``.
        :rtype: ``EntryKind``
        """
        for kind in (cls.SUBTREE, cls.BLOB):
            if kind.value == token:
                return kind
        return cls.UNKNOWN


@dataclass(frozen=True)
class TreeEntry:
    """
    One parsed line of a tree listing.
    """

    #: Subtree or blob
    kind: EntryKind
    #: Slash separated path relative to the repository root
    path: str
    #: Content id of the referenced object
    content_id: str
    #: File mode string, for e.g. "100644"
    mode: str = ""

    @property
    def is_subtree(self) -> bool:
        """``True`` if this entry names a subtree."""
        return self.kind == EntryKind.SUBTREE

    def __str__(self):
        return f"{self.mode} {self.kind.value} {self.content_id}\t{self.path}"


@dataclass
class CommitSnapshot:
    """
    A parsed commit: its root tree, ordered parents and the root tree's
    direct children.
    """

    #: Content id of the root tree
    root_tree_id: str = ""
    #: Parent commit ids in header order
    parent_ids: List[str] = field(default_factory=list)
    #: Direct children of the root tree
    entries: List[TreeEntry] = field(default_factory=list)

    @property
    def is_root(self) -> bool:
        """``True`` if this commit has no parents."""
        return not self.parent_ids
