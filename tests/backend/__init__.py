# Copyright Red Hat
#
# tests/backend/__init__.py - Revision diff backend tests
#
# This file is part of the revdiff project.
#
# SPDX-License-Identifier: Apache-2.0
