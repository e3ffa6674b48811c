# Copyright Red Hat
#
# tests/test_progress.py - Progress and TermControl tests
#
# This file is part of the revdiff project.
#
# SPDX-License-Identifier: Apache-2.0
import unittest
from unittest.mock import MagicMock, patch
from io import StringIO
import logging
import curses

import revdiff
from revdiff.progress import (
    NullProgress,
    ProgressFactory,
    SimpleProgress,
    TermControl,
    _flush_with_broken_pipe_guard,
)

log = logging.getLogger()

_ERASE = "<B><U><C>"


def _cursor_term_control():
    """Return a ``TermControl`` with visible cursor movement strings."""
    tc = TermControl(term_stream=StringIO(), color="never")
    tc.BOL = "<B>"
    tc.UP = "<U>"
    tc.CLEAR_EOL = "<C>"
    return tc


def _tty_stream():
    stream = MagicMock()
    stream.isatty.return_value = True
    return stream


class TestTermControl(unittest.TestCase):
    def test_term_control_default_stdout(self):
        tc = TermControl()
        self.assertIsNotNone(tc.term_stream)

    def test_term_control_bad_color(self):
        with self.assertRaises(ValueError):
            TermControl(color="sometimes")

    def test_term_control_no_tty(self):
        mock_stream = MagicMock()
        mock_stream.isatty.return_value = False

        with patch("revdiff.progress.curses") as mock_curses:
            tc = TermControl(term_stream=mock_stream)
            mock_curses.setupterm.assert_not_called()

        self.assertEqual(tc.BOL, "")
        self.assertEqual(tc.GREEN, "")
        self.assertIsNone(tc.columns)

    def test_term_control_never_keeps_cursor_movement(self):
        with patch("revdiff.progress.curses") as mock_curses:
            mock_curses.tigetnum.return_value = 132
            mock_curses.tigetstr.side_effect = lambda x: x.encode("utf8")
            tc = TermControl(term_stream=_tty_stream(), color="never")
            mock_curses.tparm.assert_not_called()

        self.assertEqual(tc.columns, 132)
        self.assertEqual((tc.BOL, tc.UP, tc.CLEAR_EOL), ("cr", "cuu1", "el"))
        self.assertEqual(tc.RED, "")
        self.assertEqual(tc.NORMAL, "")

    def test_term_control_always_no_tty_has_no_cursor_movement(self):
        mock_stream = MagicMock()
        mock_stream.isatty.return_value = False

        with patch("revdiff.progress.curses") as mock_curses:
            mock_curses.tigetnum.return_value = 80
            mock_curses.tigetstr.side_effect = lambda x: x.encode("utf8")
            mock_curses.tparm.return_value = b"\x1b[31m"
            tc = TermControl(term_stream=mock_stream, color="always")

        self.assertEqual(tc.BOL, "")
        self.assertEqual(tc.UP, "")
        self.assertEqual(tc.RED, "\x1b[31m")
        self.assertEqual(tc.NORMAL, "sgr0")

    def test_term_control_curses_error(self):
        with patch("revdiff.progress.curses") as mock_curses:
            mock_curses.setupterm.side_effect = curses.error("Curses error")

            tc = TermControl(term_stream=_tty_stream())
            self.assertEqual(tc.BOL, "")
            self.assertEqual(tc.RED, "")

    def test_term_control_curses_error_always(self):
        mock_stream = MagicMock()
        mock_stream.isatty.return_value = False

        with patch("revdiff.progress.curses") as mock_curses:
            mock_curses.setupterm.side_effect = curses.error("Curses error")

            tc = TermControl(term_stream=mock_stream, color="always")
            self.assertEqual(tc.RED, "\033[0;31m")
            self.assertEqual(tc.NORMAL, tc.WHITE)
            self.assertEqual(tc.BOL, "")

    def test_term_control_strips_padding(self):
        with patch("revdiff.progress.curses") as mock_curses:
            mock_curses.tigetnum.return_value = 80
            mock_curses.tigetstr.side_effect = lambda x: (
                b"\x1b[K$<3>" if x == "el" else None
            )
            tc = TermControl(term_stream=_tty_stream())

        self.assertEqual(tc.CLEAR_EOL, "\x1b[K")
        self.assertEqual(tc.GREEN, "")

    def test_term_control_init_keyboard_interrupt(self):
        with patch("revdiff.progress.curses") as mock_curses:
            mock_curses.setupterm.side_effect = KeyboardInterrupt()
            with self.assertRaises(KeyboardInterrupt):
                TermControl(term_stream=_tty_stream())


class TestFlushGuard(unittest.TestCase):
    def test_flush_guard_broken_pipe(self):
        mock_stream = MagicMock()
        mock_stream.flush.side_effect = BrokenPipeError()
        mock_stream.fileno.return_value = 10

        with patch("revdiff.progress.os") as mock_os:
            mock_os.open.return_value = 999
            mock_os.devnull = "/dev/null"
            mock_os.O_WRONLY = 1

            with self.assertRaises(SystemExit):
                _flush_with_broken_pipe_guard(mock_stream)

            mock_os.dup2.assert_called_with(999, 10)
            mock_os.close.assert_called_with(999)

    def test_flush_guard_no_flush_attr(self):
        mock_stream = MagicMock()
        del mock_stream.flush
        _flush_with_broken_pipe_guard(mock_stream)


class TestSimpleProgress(unittest.TestCase):
    def setUp(self):
        log.debug("Preparing %s", self._testMethodName)

    def tearDown(self):
        log.debug("Tearing down (%s)", self._testMethodName)

    def test_line_mode_without_cursor_movement(self):
        stream = StringIO()
        sp = SimpleProgress("Simple", term_stream=stream, width=50)
        self.assertFalse(sp.redraw)

        sp.start(100)
        self.assertTrue(sp.registered)
        sp.progress(50, "working")
        sp.progress(60, "working")
        sp.end("Finished")

        lines = stream.getvalue().splitlines()
        self.assertEqual(
            lines[0],
            "Simple:  50% [=========================-------------------------] (working)",
        )
        self.assertTrue(lines[1].startswith("Simple:  60% ["))
        self.assertTrue(lines[2].startswith("Simple: 100% ["))
        self.assertEqual(lines[3], "Finished")
        self.assertFalse(sp.registered)

    def test_redraws_in_place(self):
        stream = StringIO()
        sp = SimpleProgress(
            "S", term_stream=stream, term_control=_cursor_term_control(), width=10
        )
        self.assertTrue(sp.redraw)

        sp.start(4)
        sp.progress(1, "a")
        sp.progress(2, "b")

        lines = stream.getvalue().splitlines()
        self.assertEqual(lines[0], "S:  25% [==--------] (a)")
        self.assertEqual(lines[1], _ERASE + "S:  50% [=====-----] (b)")
        sp.cancel()

    def test_reset_position_starts_new_bar(self):
        stream = StringIO()
        sp = SimpleProgress(
            "S", term_stream=stream, term_control=_cursor_term_control(), width=10
        )
        sp.start(4)
        sp.progress(1)
        sp.reset_position()
        self.assertTrue(sp.first_update)
        sp.progress(2)
        sp.progress(3)

        lines = stream.getvalue().splitlines()
        self.assertFalse(lines[1].startswith(_ERASE))
        self.assertTrue(lines[2].startswith(_ERASE))
        self.assertFalse(sp.first_update)
        sp.cancel()

    def test_end_erases_bar(self):
        stream = StringIO()
        sp = SimpleProgress(
            "S", term_stream=stream, term_control=_cursor_term_control(), width=10
        )
        sp.start(2)
        sp.progress(1)
        sp.end("Done")
        self.assertTrue(stream.getvalue().endswith(_ERASE + "Done\n"))

    def test_end_erases_bar_no_message(self):
        stream = StringIO()
        sp = SimpleProgress(
            "S", term_stream=stream, term_control=_cursor_term_control(), width=10
        )
        sp.start(2)
        sp.end()
        self.assertTrue(stream.getvalue().endswith("\n" + _ERASE))

    def test_start_resets_first_update(self):
        stream = StringIO()
        sp = SimpleProgress(
            "S", term_stream=stream, term_control=_cursor_term_control(), width=10
        )
        sp.start(2)
        sp.progress(1)
        sp.cancel("stopped")
        sp.start(2)
        sp.progress(1)
        self.assertFalse(stream.getvalue().splitlines()[-1].startswith(_ERASE))
        sp.cancel()

    def test_log_output_is_not_overwritten(self):
        with patch("sys.stderr", new_callable=StringIO) as err:
            handler = revdiff.ProgressAwareHandler(err)
            handler.setFormatter(logging.Formatter("%(message)s"))
            sp = SimpleProgress(
                "S", term_stream=err, term_control=_cursor_term_control(), width=10
            )
            sp.start(4)
            try:
                sp.progress(1, "a")
                handler.emit(
                    logging.LogRecord(
                        "revdiff", logging.WARNING, __file__, 1, "log line", (), None
                    )
                )
                sp.progress(2, "b")
                sp.progress(3, "c")
            finally:
                sp.cancel()

            lines = err.getvalue().splitlines()

        self.assertEqual(lines[0], "S:  25% [==--------] (a)")
        self.assertEqual(lines[1], "log line")
        self.assertEqual(lines[2], "S:  50% [=====-----] (b)")
        self.assertEqual(lines[3], _ERASE + "S:  75% [=======---] (c)")
        self.assertFalse(sp.registered)

    def test_width_from_term_control(self):
        tc = TermControl(term_stream=StringIO(), color="never")
        tc.columns = 100
        sp = SimpleProgress("Header", term_stream=StringIO(), term_control=tc)
        self.assertEqual(sp.width, round((100 - SimpleProgress.FIXED - 6) * 0.5))

    def test_minimum_width(self):
        sp = SimpleProgress("H", term_stream=StringIO(), width=2)
        self.assertEqual(sp.width, 10)

    def test_cancel(self):
        stream = StringIO()
        sp = SimpleProgress("S", term_stream=stream, width=20)
        sp.start(4)
        sp.progress(1)
        sp.cancel("Quit!")
        self.assertTrue(stream.getvalue().endswith("Quit!\n"))
        with self.assertRaisesRegex(ValueError, "called before start"):
            sp.progress(2)

    def test_start_non_positive_raises(self):
        sp = SimpleProgress("S")
        for total in (0, -1):
            with self.assertRaisesRegex(ValueError, "must be positive"):
                sp.start(total)

    def test_progress_negative_raises(self):
        sp = SimpleProgress("S", term_stream=StringIO())
        sp.start(100)
        with self.assertRaisesRegex(ValueError, "cannot be negative"):
            sp.progress(-1, "working")
        sp.cancel()

    def test_end_before_start_raises(self):
        sp = SimpleProgress("S")
        with self.assertRaisesRegex(ValueError, "called before start"):
            sp.end("2BadMice!")

    def test_done_greater_than_total_raises(self):
        sp = SimpleProgress("S", term_stream=StringIO())
        sp.start(10)
        with self.assertRaisesRegex(ValueError, "cannot be > total"):
            sp.progress(11)
        sp.cancel()


class TestNullProgress(unittest.TestCase):
    def test_lifecycle(self):
        np = NullProgress()
        np.start(10)
        np.progress(5)
        np.end()
        self.assertFalse(np.registered)

    def test_progress_before_start_raises(self):
        np = NullProgress()
        with self.assertRaises(ValueError):
            np.progress(1)


class TestProgressFactory(unittest.TestCase):
    def test_get_progress_quiet(self):
        p = ProgressFactory.get_progress("H", quiet=True)
        self.assertIsInstance(p, NullProgress)

    def test_get_progress_simple(self):
        mock_stream = MagicMock()
        mock_stream.isatty.return_value = False

        p = ProgressFactory.get_progress("H", term_stream=mock_stream)
        self.assertIsInstance(p, SimpleProgress)
        self.assertIs(p.stream, mock_stream)
        self.assertIs(p.term.term_stream, mock_stream)
        self.assertFalse(p.redraw)

    def test_get_progress_term_control(self):
        tc = _cursor_term_control()
        p = ProgressFactory.get_progress("H", term_stream=StringIO(), term_control=tc)
        self.assertIs(p.term, tc)
        self.assertTrue(p.redraw)

    def test_get_progress_no_register(self):
        p = ProgressFactory.get_progress("H", term_stream=StringIO(), register=False)
        p.start(1)
        self.assertFalse(p.registered)
        p.end()
