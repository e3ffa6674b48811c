# Copyright Red Hat
#
# revdiff/__init__.py - Revision diff package initialisation
#
# This file is part of the revdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Revdiff top-level package.
"""
from ._revdiff import *  # noqa: F401, F403
from ._revdiff import __all__  # noqa: F401

__version__ = "0.1.0"
