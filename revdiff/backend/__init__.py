# Copyright Red Hat
#
# revdiff/backend/__init__.py - Revision diff backends
#
# This file is part of the revdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Version control backends for revision diffs.
"""
from ._backend import (
    Backend,
    ChangeKind,
    StatusEntry,
    parse_porcelain_status,
)

__all__ = [
    "Backend",
    "ChangeKind",
    "StatusEntry",
    "parse_porcelain_status",
]
