# Copyright Red Hat
#
# revdiff/treediff/difftypes.py - Revision diff change types
#
# This file is part of the revdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Tree diff change types
"""
from enum import Enum


class DiffType(Enum):
    """
    Enum for different difference types.
    """

    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"
