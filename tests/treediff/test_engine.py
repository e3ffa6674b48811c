# Copyright Red Hat
#
# tests/treediff/test_engine.py - Diff record and results tests.
#
# This file is part of the revdiff project.
#
# SPDX-License-Identifier: Apache-2.0
import unittest
import json

from revdiff.progress import TermControl
from revdiff.treediff import (
    ChangeDescriptor,
    DiffOptions,
    DiffRecord,
    DiffResults,
    DiffType,
    FileTypeCategory,
    FileTypeInfo,
    Hunk,
)
from revdiff.treediff.engine import render_diff_stat, render_unified_diff


def _record(path, diff_type, hunks=None, source_path=None, old_id="1111", new_id="2222"):
    desc = ChangeDescriptor(
        path, source_path or path, "100644", old_id, new_id, diff_type
    )
    return DiffRecord.from_descriptor(desc, hunks)


class TestDiffRecord(unittest.TestCase):
    def test_from_descriptor(self):
        hunk = Hunk("@@ -1 +1,2 @@", ["-a", "+b", "+c"])
        rec = _record("f.txt", DiffType.MODIFIED, [hunk])
        self.assertEqual(rec.diff, "diff --git a/f.txt b/f.txt")
        self.assertEqual(rec.index, "index 1111..2222 100644")
        self.assertEqual(rec.additions, 2)
        self.assertEqual(rec.deletions, 1)
        self.assertTrue(rec.has_hunks)
        self.assertFalse(rec.renamed)

    def test_to_dict_and_json(self):
        fti = FileTypeInfo("text/plain", "text", FileTypeCategory.TEXT, "utf-8")
        desc = ChangeDescriptor("f", "f", "", "", "2222", DiffType.ADDED)
        rec = DiffRecord.from_descriptor(desc, [Hunk("@@ -0,0 +1 @@", ["+x"])], fti)
        data = json.loads(rec.json())
        self.assertEqual(data["diff_type"], "added")
        self.assertEqual(data["index"], "index ..2222")
        self.assertEqual(data["hunks"], [{"header": "@@ -0,0 +1 @@", "lines": ["+x"]}])
        self.assertEqual(data["file_type"]["mime_type"], "text/plain")

        no_type = _record("g", DiffType.MODIFIED).to_dict()
        self.assertNotIn("file_type", no_type)

    def test_str(self):
        rec = _record("f.txt", DiffType.MODIFIED)
        s = str(rec)
        self.assertTrue(s.startswith("Path: f.txt"))
        self.assertIn("diff_type: modified", s)
        self.assertIn("hunks: 0", s)


class TestRendering(unittest.TestCase):
    def setUp(self):
        self.tc = TermControl(color="never")

    def test_render_unified_diff_modified(self):
        rec = _record("f.txt", DiffType.MODIFIED, [Hunk("@@ -1 +1 @@", ["-a", "+b"])])
        self.assertEqual(
            render_unified_diff(rec, self.tc),
            "diff --git a/f.txt b/f.txt\n"
            "index 1111..2222 100644\n"
            "--- a/f.txt\n"
            "+++ b/f.txt\n"
            "@@ -1 +1 @@\n"
            "-a\n"
            "+b",
        )

    def test_render_unified_diff_dev_null(self):
        added = _record("n", DiffType.ADDED, [Hunk("@@ -0,0 +1 @@", ["+x"])], old_id="")
        self.assertIn("--- /dev/null\n+++ b/n", render_unified_diff(added, self.tc))
        removed = _record("r", DiffType.REMOVED, [Hunk("@@ -1 +0,0 @@", ["-x"])], new_id="")
        self.assertIn("--- a/r\n+++ /dev/null", render_unified_diff(removed, self.tc))

    def test_render_unified_diff_no_hunks(self):
        self.assertEqual(render_unified_diff(_record("f", DiffType.MODIFIED), self.tc), "")

    def test_render_unified_diff_color(self):
        tc = TermControl(color="never")
        tc.RED, tc.GREEN, tc.CYAN, tc.NORMAL = "<r>", "<g>", "<c>", "<n>"
        rec = _record("f", DiffType.MODIFIED, [Hunk("@@ -1 +1 @@ ctx", ["-a", "+b", " c"])])
        out = render_unified_diff(rec, tc)
        self.assertIn("<c>@@ -1 +1 @@<n> ctx", out)
        self.assertIn("<r>-a<n>", out)
        self.assertIn("<g>+b<n>", out)
        self.assertIn("\n c", out)

    def test_render_diff_stat(self):
        records = [
            _record("a", DiffType.MODIFIED, [Hunk("@@ -1 +1,2 @@", ["-x", "+y", "+z"])]),
            _record("longer", DiffType.ADDED, [Hunk("@@ -0,0 +1 @@", ["+q"])]),
            _record("skipped", DiffType.MODIFIED),
        ]
        out = render_diff_stat(records, self.tc)
        lines = out.splitlines()
        self.assertEqual(lines[0], " a      |    3 ++-")
        self.assertEqual(lines[1], " longer |    1 +")
        self.assertEqual(lines[2], " 2 files changed, 3 insertions(+), 1 deletions(-)")
        self.assertEqual(render_diff_stat([records[2]], self.tc), "")


class TestDiffResults(unittest.TestCase):
    def setUp(self):
        self.records = [
            _record("a", DiffType.MODIFIED, [Hunk("@@ -1 +1 @@", ["-x", "+y"])]),
            _record("b", DiffType.ADDED, old_id=""),
            _record("c", DiffType.REMOVED, new_id="", source_path="c"),
            _record("d2", DiffType.MODIFIED, source_path="d1"),
        ]
        self.results = DiffResults(self.records, "HEAD", DiffOptions(), 1700000000)

    def test_list_like(self):
        self.assertEqual(len(self.results), 4)
        self.assertEqual(self.results.total_changes, 4)
        self.assertIs(self.results[0], self.records[0])
        self.assertEqual(list(self.results), self.records)

    def test_categories(self):
        self.assertEqual([r.dest_path for r in self.results.added], ["b"])
        self.assertEqual([r.dest_path for r in self.results.removed], ["c"])
        self.assertEqual([r.dest_path for r in self.results.modified], ["a", "d2"])

    def test_paths_and_short(self):
        self.assertEqual(self.results.paths(), ["a", "b", "c", "d2"])
        self.assertEqual(
            self.results.short(), "M a\nA b\nR c\nM d2 (from d1)"
        )

    def test_json(self):
        data = json.loads(self.results.json(pretty=True))
        self.assertEqual(len(data), 4)
        self.assertEqual(data[3]["source_path"], "d1")

    def test_diff(self):
        out = self.results.diff(color="never")
        self.assertTrue(out.startswith("diff --git a/a b/a"))
        self.assertNotIn("b/b", out)
        with_stat = self.results.diff(diffstat=True, color="never")
        self.assertTrue(with_stat.startswith(" a |    2 +-"))

    def test_summary(self):
        out = self.results.summary(color="never")
        self.assertIn("Revision:          HEAD", out)
        self.assertIn("Total changes:     4", out)
        self.assertIn("Paths added:     1", out)
        self.assertIn("Paths modified:  2", out)
        self.assertIn("Paths withdiff:  1", out)
        self.assertIn("1 file changed", self.results.summary(diffstat=True, color="never"))

    def test_full(self):
        self.assertEqual(self.results.full().count("Path: "), 4)
