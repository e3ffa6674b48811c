# Copyright Red Hat
#
# tests/treediff/__init__.py - Revision diff treediff tests
#
# This file is part of the revdiff project.
#
# SPDX-License-Identifier: Apache-2.0
