# Copyright Red Hat
#
# revdiff/progress.py - Revision diff terminal control and progress
#
# This file is part of the revdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Terminal control and progress reporting.
"""
from typing import List, Optional, TextIO
from abc import ABC, abstractmethod
import curses
import sys
import os

from revdiff import register_progress, unregister_progress

#: Default number of columns if not detected from terminal.
DEFAULT_COLUMNS = 80

#: Minimum width of a progress bar.
PROGRESS_MIN_WIDTH = 10

#: Default width of a progress bar as a fraction of the terminal size.
DEFAULT_WIDTH_FRAC = 0.5

#: Valid values for color arguments.
COLOR_MODES = ["auto", "never", "always"]


def _isatty(stream: Optional[TextIO]) -> bool:
    isatty = getattr(stream, "isatty", None)
    return isatty is not None and isatty()


class TermControl:
    """
    Terminal control sequences for diff coloring and progress redraws.

    Cursor movement sequences (``BOL``, ``UP``, ``CLEAR_EOL``) are looked
    up only when ``term_stream`` is a terminal. Color sequences follow the
    ``color`` mode: "never" leaves them empty, "auto" enables them for a
    terminal and "always" enables them unconditionally, falling back to
    plain ANSI codes if curses cannot describe the terminal. Unset
    sequences are the empty string so they can always be concatenated:

        >>> term = TermControl(color="auto")
        >>> print(term.GREEN + "+added" + term.NORMAL)
    """

    BOL: str = ""  #: Move the cursor to the beginning of the line
    UP: str = ""  #: Move the cursor up one line
    CLEAR_EOL: str = ""  #: Clear to the end of the line.
    NORMAL: str = ""  #: Turn off all modes

    BLACK: str = ""  #: Black foreground color
    BLUE: str = ""  #: Blue foreground color
    GREEN: str = ""  #: Green foreground color
    CYAN: str = ""  #: Cyan foreground color
    RED: str = ""  #: Red foreground color
    MAGENTA: str = ""  #: Magenta foreground color
    YELLOW: str = ""  #: Yellow foreground color
    WHITE: str = ""  #: White foreground color

    columns: Optional[int] = None  #: Terminal width

    _CURSOR_CAPABILITIES: List[str] = "BOL:cr UP:cuu1 CLEAR_EOL:el".split()
    _ANSI_COLORS: List[str] = "BLACK RED GREEN YELLOW BLUE MAGENTA CYAN WHITE".split()

    def __init__(self, term_stream: Optional[TextIO] = None, color: str = "auto"):
        """
        Initialise terminal control sequences for ``term_stream``.

        :param term_stream: The stream that output will be written to.
                            Defaults to ``sys.stdout``.
        :type term_stream: ``Optional[TextIO]``
        :param color: A string to control color rendering: "auto", "always", or
                      "never".
        :type color: ``str``
        :raises ValueError: If ``color`` is not a valid color mode.
        """
        if color not in COLOR_MODES:
            raise ValueError(f"Invalid color mode: {color}")

        self.term_stream = term_stream if term_stream is not None else sys.stdout
        tty = _isatty(self.term_stream)

        if not tty and color != "always":
            return

        try:
            curses.setupterm()
        # curses.error does not derive from BaseException on all builds and
        # cannot be named in an except clause.
        except BaseException as err:  # pylint: disable=broad-exception-caught
            if isinstance(err, (KeyboardInterrupt, SystemExit)):  # pragma: no cover
                raise
            if color == "always":
                self._force_ansi()
            return

        self.columns = curses.tigetnum("cols")

        if tty:
            for capability in self._CURSOR_CAPABILITIES:
                (attr, cap_name) = capability.split(":")
                setattr(self, attr, self._tigetstr(cap_name))

        if color != "never":
            self._init_colors()

    def _force_ansi(self):
        for index, color in enumerate(self._ANSI_COLORS):
            setattr(self, color, f"\033[0;3{index}m")
        # `less -R` does not like "\033[0m"
        self.NORMAL = self.WHITE

    def _init_colors(self):
        set_fg = self._tigetstr("setaf")
        if not set_fg:
            return
        set_fg = set_fg.encode("utf8")
        for index, color in enumerate(self._ANSI_COLORS):
            setattr(self, color, curses.tparm(set_fg, index).decode("utf8") or "")
        self.NORMAL = self._tigetstr("sgr0")

    def _tigetstr(self, cap_name: str) -> str:
        cap = curses.tigetstr(cap_name)
        cap = cap.decode(encoding="utf8") if cap else ""
        # Drop "$<2>" style padding delays.
        return cap.split("$", maxsplit=1)[0]


def _flush_with_broken_pipe_guard(stream: TextIO) -> None:
    """
    Flush ``stream``, converting a closed reader into a quiet exit.

    If the reading end of a pipe has gone away the stream is pointed at
    ``/dev/null`` so that interpreter shutdown does not fail again, and
    ``SystemExit`` is raised.

    :param stream: The stream to flush.
    :type stream: ``TextIO``
    """
    if stream is None or not hasattr(stream, "flush"):
        return
    try:
        stream.flush()
    except BrokenPipeError as err:
        devnull = os.open(os.devnull, os.O_WRONLY)
        try:
            if hasattr(stream, "fileno"):
                os.dup2(devnull, stream.fileno())
        finally:
            os.close(devnull)
        raise SystemExit() from err


class ProgressBase(ABC):
    """
    Common state and argument checking for progress reporters.

    A run is ``start(total)``, any number of ``progress(done)`` calls and
    then ``end()`` or ``cancel()``. While a run is active the reporter may
    be registered with the log system: log output written to the terminal
    calls ``reset_position()`` so the next update does not draw over it.
    """

    def __init__(self, register: bool = True):
        """
        Initialise progress state.

        :param register: Register for log output notifications while a run
                         is active.
        :type register: ``bool``
        """
        self.total: int = 0
        self.header: Optional[str] = None
        self.stream: Optional[TextIO] = None
        #: ``True`` when nothing of ours is on the line above the cursor
        self.first_update: bool = True
        self.registered: bool = False
        self.register: bool = register

    def reset_position(self):
        """Record that other output was written below the last update."""
        self.first_update = True

    def _check_in_progress(self, done: int, step: str):
        name = f"{self.__class__.__name__}.{step}()"
        if self.total == 0:
            raise ValueError(f"{name} called before start()")
        if done < 0:
            raise ValueError(f"{name} done cannot be negative.")
        if done > self.total:
            raise ValueError(f"{name} done cannot be > total.")

    def _finish(self, message: Optional[str]):
        self._do_end(message)
        self.total = 0
        if self.registered:
            unregister_progress(self)

    def start(self, total: int):
        """
        Begin a run of ``total`` items.

        :param total: The number of items expected.
        :type total: ``int``
        :raises ValueError: If ``total`` is not positive.
        """
        if total <= 0:
            raise ValueError("total must be positive.")
        self.total = total
        self.first_update = True
        if self.register:
            register_progress(self)
        self._do_start()

    def progress(self, done: int, message: Optional[str] = None):
        """
        Report that ``done`` items are complete.

        :param done: Completed item count, from zero to ``total``.
        :type done: ``int``
        :param message: An optional progress message.
        :type message: ``Optional[str]``
        """
        self._check_in_progress(done, "progress")
        self._do_progress(done, message)

    def end(self, message: Optional[str] = None):
        """
        Complete the run, showing the final state and ``message``.

        :param message: An optional completion message.
        :type message: ``Optional[str]``
        """
        self._check_in_progress(self.total, "end")
        self.progress(self.total, "")
        self._finish(message)

    def cancel(self, message: Optional[str] = None):
        """
        Abandon the run, showing ``message``.

        :param message: An optional error message.
        :type message: ``Optional[str]``
        """
        self._check_in_progress(self.total, "cancel")
        self._finish(message)

    @abstractmethod
    def _do_start(self):
        """Prepare output for a new run."""

    @abstractmethod
    def _do_progress(self, done: int, message: Optional[str] = None):
        """Display the current state."""

    @abstractmethod
    def _do_end(self, message: Optional[str] = None):
        """Tidy up the display for both ``end()`` and ``cancel()``."""


class SimpleProgress(ProgressBase):
    """
    A one line progress bar.

    On a terminal that can move the cursor each update replaces the
    previous bar, unless log output was written after it, in which case
    the bar starts again below the log message. Elsewhere every update is
    printed on a new line.
    """

    BAR = "%s: %3d%% [%s%s] (%s)"  #: Progress bar format string
    DID = "="  #: Bar character for completed work.
    TODO = "-"  #: Bar character for uncompleted work.
    FIXED = 12  #: Length of fixed characters in BAR.

    def __init__(
        self,
        header: str,
        register: bool = True,
        term_stream: Optional[TextIO] = None,
        term_control: Optional[TermControl] = None,
        width: Optional[int] = None,
    ):
        """
        Initialise a new ``SimpleProgress`` object.

        :param header: The progress header to display.
        :type header: ``str``
        :param register: Register for log output notifications.
        :type register: ``bool``
        :param term_stream: The stream to write to.
        :type term_stream: ``Optional[TextIO]``
        :param term_control: Terminal control for ``term_stream``, used to
                             size the bar and to redraw it in place.
        :type term_control: ``Optional[TermControl]``
        :param width: An optional bar width in characters.
        :type width: ``Optional[int]``
        """
        super().__init__(register=register)
        self.header = header
        self.stream = term_stream or sys.stdout
        self.term = term_control
        self.redraw = bool(
            term_control and term_control.BOL and term_control.UP and term_control.CLEAR_EOL
        )
        if width is None:
            columns = (term_control.columns if term_control else None) or DEFAULT_COLUMNS
            width = round((columns - self.FIXED - len(header)) * DEFAULT_WIDTH_FRAC)
        self.width: int = max(PROGRESS_MIN_WIDTH, width)

    def _erase_last(self) -> str:
        if self.redraw and not self.first_update:
            return self.term.BOL + self.term.UP + self.term.CLEAR_EOL
        return ""

    def _do_start(self):
        return

    def _do_progress(self, done: int, message: Optional[str] = None):
        percent = float(done) / float(self.total)
        n = int(self.width * percent)
        bar = self.BAR % (
            self.header,
            percent * 100,
            self.DID * n,
            self.TODO * (self.width - n),
            message or "",
        )
        print(self._erase_last() + bar, file=self.stream)
        self.first_update = False
        _flush_with_broken_pipe_guard(self.stream)

    def _do_end(self, message: Optional[str] = None):
        prefix = self._erase_last()
        if prefix or message:
            print(prefix + (message or ""), file=self.stream, end="\n" if message else "")
        _flush_with_broken_pipe_guard(self.stream)


class NullProgress(ProgressBase):
    """
    A progress class that produces no output.
    """

    def _do_start(self):
        return

    # pylint: disable=unused-argument
    def _do_progress(self, done: int, message: Optional[str] = None):
        return

    # pylint: disable=unused-argument
    def _do_end(self, message: Optional[str] = None):
        return


class ProgressFactory:
    """
    A factory for constructing progress objects.
    """

    @staticmethod
    def get_progress(
        header: str,
        quiet: bool = False,
        term_stream: Optional[TextIO] = None,
        term_control: Optional[TermControl] = None,
        width: Optional[int] = None,
        register: bool = True,
    ) -> ProgressBase:
        """
        Return an appropriate ``ProgressBase`` implementation.

        :param header: The progress report header.
        :type header: ``str``
        :param quiet: Suppress all output.
        :type quiet: ``bool``
        :param term_stream: An optional ``TextIO`` output object.
                            Defaults to ``sys.stderr`` if unspecified.
        :type term_stream: ``Optional[TextIO]``
        :param term_control: An optional ``TermControl`` for ``term_stream``.
                             One is created if unspecified.
        :type term_control: ``Optional[TermControl]``
        :param width: An optional bar width in characters.
        :type width: ``Optional[int]``
        :param register: Register the new object with the log system for
                         notification callbacks.
        :type register: ``bool``
        :returns: An appropriate progress implementation.
        :rtype: ``ProgressBase``
        """
        if quiet:
            return NullProgress(register=register)
        term_stream = term_stream or sys.stderr
        return SimpleProgress(
            header,
            register=register,
            term_stream=term_stream,
            term_control=term_control or TermControl(term_stream, color="never"),
            width=width,
        )
