# Copyright Red Hat
#
# tests/test_command.py - CLI layer tests
#
# This file is part of the revdiff project.
#
# SPDX-License-Identifier: Apache-2.0
import unittest
from unittest.mock import patch
from io import StringIO
import logging
import json
import os

import revdiff
import revdiff.command as command
from revdiff.config import RevdiffConfig
from revdiff.backend import ChangeKind, StatusEntry

from tests import MockArgs
from tests.treediff._util import FakeBackend

log = logging.getLogger()

_NO_CONFIG = "/nonexistent/revdiff.conf"


class CommandTestsBase(unittest.TestCase):
    def setUp(self):
        log.debug("Preparing %s", self._testMethodName)
        self.backend = FakeBackend()
        b = self.backend
        self.parent = b.add_commit(b.add_tree({"a.txt": "one\n", "old.txt": "x\n"}))
        self.commit = b.add_commit(
            b.add_tree({"a.txt": "two\n", "b.txt": "new\n"}), [self.parent]
        )
        b.head = self.commit
        patcher = patch("revdiff.command.GitBackend", return_value=self.backend)
        self.mock_git = patcher.start()
        self.addCleanup(patcher.stop)

    def tearDown(self):
        revdiff.set_debug_mask(0)
        log.debug("Tearing down %s", self._testMethodName)

    def get_main_args(self):
        """
        Return an argument array (in the form of sys.argv) reflecting the
        ``revdiff`` command, reading no configuration file.

        :returns: A list of command arguments.
        """
        return [os.path.join(os.getcwd(), "bin/revdiff"), "--config", _NO_CONFIG]

    def get_debug_main_args(self):
        """
        Return an argument array (in the form of sys.argv) reflecting the
        ``revdiff`` command, with verbose logging and debug enabled.

        :returns: A list of command arguments.
        """
        return self.get_main_args() + ["-vv", "--debug=all"]


class CommandTestsSimple(CommandTestsBase):
    """
    Test command interfaces
    """

    def test_diff_revision(self):
        options = command.DiffOptions(quiet=True)
        results = command.diff_revision(self.backend, self.commit, options, color="never")
        self.assertEqual(results.paths(), ["a.txt", "b.txt"])

    def test__diff_cmd_paths(self):
        args = MockArgs()
        args.revision = self.commit
        args.output_format = ["paths"]
        args.color = "never"
        with patch("sys.stdout", new_callable=StringIO) as out:
            self.assertEqual(command._diff_cmd(args, RevdiffConfig()), 0)
        self.assertEqual(out.getvalue(), "a.txt\nb.txt\n")
        self.mock_git.assert_called_once_with(".", git_command="git")

    def test__diff_cmd_config_detect_removed(self):
        args = MockArgs()
        args.revision = self.commit
        args.output_format = ["short"]
        args.color = "never"
        config = RevdiffConfig(git_command="/opt/git", detect_removed=True)
        with patch("sys.stdout", new_callable=StringIO) as out:
            self.assertEqual(command._diff_cmd(args, config), 0)
        self.assertEqual(out.getvalue(), "M a.txt\nA b.txt\nR old.txt\n")
        self.mock_git.assert_called_once_with(".", git_command="/opt/git")

    def test__diff_cmd_multiple_formats(self):
        args = MockArgs()
        args.revision = self.commit
        args.output_format = ["paths", "json"]
        args.pretty = True
        args.color = "never"
        with patch("sys.stdout", new_callable=StringIO) as out:
            self.assertEqual(command._diff_cmd(args, RevdiffConfig()), 0)
        paths, data = out.getvalue().split("\n\n", 1)
        self.assertEqual(paths, "a.txt\nb.txt")
        self.assertEqual(len(json.loads(data)), 2)

    def test__diff_cmd_default_format_is_diff(self):
        args = MockArgs()
        args.revision = self.commit
        args.color = "never"
        with patch("sys.stdout", new_callable=StringIO) as out:
            command._diff_cmd(args, RevdiffConfig())
        self.assertTrue(out.getvalue().startswith("diff --git a/a.txt b/a.txt"))

    def test__diff_cmd_working_directory(self):
        self.backend.status_entries = [StatusEntry("a.txt", ChangeKind.MODIFIED)]
        args = MockArgs()
        args.output_format = ["summary"]
        args.color = "never"
        with patch("sys.stdout", new_callable=StringIO) as out:
            command._diff_cmd(args, RevdiffConfig())
        self.assertIn("Revision:          HEAD", out.getvalue())
        self.assertIn("Total changes:     1", out.getvalue())

    def test__diff_cmd_pretty_without_json(self):
        args = MockArgs()
        args.output_format = ["paths"]
        args.pretty = True
        with self.assertRaisesRegex(revdiff.RevdiffArgumentError, "--pretty"):
            command._diff_cmd(args, RevdiffConfig())

    def test__diff_cmd_stat_without_diff(self):
        args = MockArgs()
        args.output_format = ["json"]
        args.stat = True
        with self.assertRaisesRegex(revdiff.RevdiffArgumentError, "--stat"):
            command._diff_cmd(args, RevdiffConfig())

    def test__diff_cmd_unknown_format(self):
        args = MockArgs()
        args.output_format = ["paths", "yaml"]
        with self.assertRaisesRegex(
            revdiff.RevdiffArgumentError, "Unknown diff format: paths,yaml"
        ):
            command._diff_cmd(args, RevdiffConfig())

    def test_set_debug_none(self):
        args = MockArgs()
        command.set_debug(args.debug)
        self.assertEqual(revdiff.get_debug_mask(), 0)

    def test_set_debug_single(self):
        command.set_debug("treediff")
        self.assertEqual(revdiff.get_debug_mask(), revdiff.REVDIFF_DEBUG_TREEDIFF)

    def test_set_debug_list(self):
        command.set_debug("backend,command")
        self.assertEqual(
            revdiff.get_debug_mask(),
            revdiff.REVDIFF_DEBUG_BACKEND | revdiff.REVDIFF_DEBUG_COMMAND,
        )

    def test_set_debug_bad(self):
        with self.assertRaises(ValueError):
            command.set_debug("nosuch")

    def test_main_diff_paths(self):
        args = self.get_main_args() + ["diff", "-q", "--color=never", "-o", "paths", self.commit]
        with patch("sys.stdout", new_callable=StringIO) as out:
            self.assertEqual(command.main(args), 0)
        self.assertEqual(out.getvalue(), "a.txt\nb.txt\n")

    def test_main_diff_debug(self):
        args = self.get_debug_main_args() + ["diff", "-q", "-o", "paths", "-i", "b*", self.commit]
        with patch("sys.stdout", new_callable=StringIO) as out:
            self.assertEqual(command.main(args), 0)
        self.assertEqual(out.getvalue(), "b.txt\n")

    def test_main_directory(self):
        args = self.get_main_args() + ["-C", "/some/dir", "diff", "-q", "-o", "paths"]
        with patch("sys.stdout", new_callable=StringIO):
            self.assertEqual(command.main(args), 0)
        self.mock_git.assert_called_once_with("/some/dir", git_command="git")

    def test_main_no_command(self):
        with patch("sys.stdout", new_callable=StringIO):
            self.assertEqual(command.main(self.get_main_args()), 1)

    def test_main_bad_debug(self):
        with patch("sys.stdout", new_callable=StringIO):
            self.assertEqual(command.main(self.get_main_args() + ["--debug=nosuch", "diff"]), 1)

    def test_main_command_failure(self):
        self.backend.head = None
        args = self.get_main_args() + ["diff", "-q"]
        with patch("sys.stdout", new_callable=StringIO):
            self.assertEqual(command.main(args), 1)

    def test_main_pretty_without_json(self):
        args = self.get_main_args() + ["diff", "-q", "--pretty", "-o", "paths"]
        with patch("sys.stdout", new_callable=StringIO) as out:
            self.assertEqual(command.main(args), 1)
        self.assertEqual(out.getvalue(), "")

    def test_main_pretty_without_json_debug(self):
        args = self.get_debug_main_args() + ["diff", "-q", "--pretty", "-o", "paths"]
        with self.assertRaises(revdiff.RevdiffArgumentError):
            command.main(args)

    def test_main_bad_config(self):
        with patch(
            "revdiff.command.RevdiffConfig.from_file",
            side_effect=revdiff.RevdiffParseError("bad config"),
        ):
            args = [self.get_main_args()[0], "diff", "-q"]
            self.assertEqual(command.main(args), 1)
