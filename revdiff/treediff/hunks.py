# Copyright Red Hat
#
# revdiff/treediff/hunks.py - Revision diff hunk parsing
#
# This file is part of the revdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Parse raw unified diff text into structured hunks.
"""
from dataclasses import dataclass, field
from typing import List, Optional
from enum import Enum
import logging
import re

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

#: Prefix that opens a new hunk.
HUNK_HEADER_PREFIX = "@@ "

#: First characters of lines that belong to a hunk body.
HUNK_LINE_MARKERS = (" ", "-", "+")

_RANGE_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")


@dataclass
class Hunk:
    """
    One contiguous block of a unified diff.
    """

    #: The ``@@ ... @@`` line, verbatim
    header: str
    #: Body lines with their leading marker retained
    lines: List[str] = field(default_factory=list)

    @property
    def additions(self) -> int:
        """Number of added lines in this hunk."""
        return sum(1 for line in self.lines if line.startswith("+"))

    @property
    def deletions(self) -> int:
        """Number of removed lines in this hunk."""
        return sum(1 for line in self.lines if line.startswith("-"))

    @property
    def ranges(self) -> Optional[List[int]]:
        """
        The ``[old_start, old_len, new_start, new_len]`` values from the
        header, or ``None`` if the header cannot be parsed. An omitted
        length means one line.
        """
        match = _RANGE_RE.match(self.header)
        if not match:
            return None
        return [int(g) if g is not None else 1 for g in match.groups()]

    def to_dict(self):
        """
        Return a dictionary representation of this ``Hunk``.

        :returns: A dictionary with ``header`` and ``lines`` keys.
        :rtype: ``Dict[str, Union[str, List[str]]]``
        """
        return {"header": self.header, "lines": list(self.lines)}

    def __str__(self):
        return "\n".join([self.header] + self.lines)


class HunkParserState(Enum):
    """
    States of the hunk parser.
    """

    OUTSIDE_HUNK = "outside"
    INSIDE_HUNK = "inside"


class HunkParser:
    """
    Line oriented state machine that splits raw diff text into hunks.

    Lines before the first hunk header are dropped. Inside a hunk, body
    lines are kept verbatim until the first line that is neither a body
    line nor an ``@`` line; that line and everything after it up to the
    next hunk header are dropped. ``@`` lines that do not open a hunk are
    ignored without changing state.
    """

    def __init__(self):
        self.state = HunkParserState.OUTSIDE_HUNK
        self.hunks: List[Hunk] = []

    def feed(self, line: str):
        """
        Process a single line of diff text.

        :param line: One line without its trailing newline.
        :type line: ``str``
        """
        if line.startswith(HUNK_HEADER_PREFIX):
            self.hunks.append(Hunk(line))
            self.state = HunkParserState.INSIDE_HUNK
            return
        if line.startswith("@"):
            return
        if self.state != HunkParserState.INSIDE_HUNK:
            return
        if line[:1] in HUNK_LINE_MARKERS and line:
            self.hunks[-1].lines.append(line)
        else:
            self.state = HunkParserState.OUTSIDE_HUNK

    def parse(self, raw_text: str) -> List[Hunk]:
        """
        Parse ``raw_text`` and return the hunks found.

        The parser is reset before parsing so that one instance may be
        reused.

        :param raw_text: Raw unified diff text for one file pair.
        :type raw_text: ``str``
        :returns: The parsed hunks in input order.
        :rtype: ``List[Hunk]``
        """
        self.state = HunkParserState.OUTSIDE_HUNK
        self.hunks = []
        for line in raw_text.split("\n"):
            self.feed(line)
        return self.hunks


def parse_hunks(raw_text: str) -> List[Hunk]:
    """
    Parse raw unified diff text into a list of ``Hunk`` objects.

    :param raw_text: Raw unified diff text for one file pair.
    :type raw_text: ``str``
    :returns: The parsed hunks.
    :rtype: ``List[Hunk]``
    """
    return HunkParser().parse(raw_text)
