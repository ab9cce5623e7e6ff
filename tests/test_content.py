# Copyright Red Hat
#
# tests/test_content.py - Content and Entry snapshot tests.
#
# This file is part of the dircompare project.
#
# SPDX-License-Identifier: Apache-2.0
import unittest
from unittest.mock import patch
from hashlib import sha256
import tempfile
import errno
import sys
import os

import dircompare.content as content
from dircompare import (
    Content,
    ContentType,
    Entry,
    EntryError,
    EntryIOError,
    InvalidPathError,
)

from ._util import make_tree

_real_read_file = content._read_file
_real_list_dir = content._list_dir


def _sorted_listing(reverse=False):
    """Return a ``_list_dir`` replacement that lists in sorted order."""
    def _list_dir(path):
        return sorted(_real_list_dir(path), reverse=reverse)
    return _list_dir


class ContentTestBase(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp_dir.cleanup)
        self.root = self.tmp_dir.name

    def _tree(self, name, layout):
        return make_tree(os.path.join(self.root, name), layout)


class TestContentOf(ContentTestBase):
    def test_file(self):
        path = os.path.join(self.root, "x.txt")
        with open(path, "wb") as f:
            f.write(b"hello")
        c = Content.of(path)
        self.assertTrue(c.is_file)
        self.assertFalse(c.is_dir)
        self.assertEqual(c.data, b"hello")
        self.assertIsNone(c.entries)
        self.assertEqual(c, Content.file(b"hello"))

    def test_empty_directory(self):
        path = self._tree("empty", {})
        c = Content.of(path)
        self.assertTrue(c.is_dir)
        self.assertEqual(c.entries, ())
        self.assertEqual(c, Content.directory([]))

    def test_nested_directory(self):
        path = self._tree("dir", {"sub": {"y.bin": b"\x00\x01"}})
        expected = Content.directory(
            [Entry("sub", Content.directory([Entry("y.bin", Content.file(b"\x00\x01"))]))]
        )
        self.assertEqual(Content.of(path), expected)

    def test_reflexive(self):
        path = self._tree("dir", {"a.txt": "a", "sub": {"b.txt": "b", "c": {}}})
        self.assertEqual(Content.of(path), Content.of(path))

    def test_same_content_different_names(self):
        dir_a = self._tree("dir-a", {"x.txt": "hello"})
        dir_b = self._tree("dir-b", {"x.txt": "hello"})
        self.assertEqual(Content.of(dir_a), Content.of(dir_b))

    def test_child_names_matter(self):
        dir_a = self._tree("dir-a", {"x.txt": "hello"})
        dir_b = self._tree("dir-b", {"y.txt": "hello"})
        self.assertNotEqual(Content.of(dir_a), Content.of(dir_b))

    def test_single_byte_change(self):
        layout = {"top.txt": "top", "sub": {"deep": {"z.bin": b"\x00" * 64}}}
        dir_a = self._tree("dir-a", layout)
        dir_b = self._tree("dir-b", layout)
        with open(os.path.join(dir_b, "sub", "deep", "z.bin"), "r+b") as f:
            f.seek(31)
            f.write(b"\x01")
        self.assertNotEqual(Content.of(dir_a), Content.of(dir_b))
        self.assertNotEqual(
            Content.of(os.path.join(dir_a, "sub")),
            Content.of(os.path.join(dir_b, "sub")),
        )
        self.assertEqual(
            Content.of(os.path.join(dir_a, "top.txt")),
            Content.of(os.path.join(dir_b, "top.txt")),
        )

    def test_file_and_directory_differ(self):
        file_path = os.path.join(self.root, "f")
        with open(file_path, "wb") as f:
            f.write(b"")
        dir_path = self._tree("d", {})
        self.assertNotEqual(Content.of(file_path), Content.of(dir_path))

    def test_order_sensitive(self):
        path = self._tree("dir", {"a.txt": "a", "b.txt": "b", "c.txt": "c"})
        with patch("dircompare.content._list_dir", _sorted_listing()):
            forward = Content.of(path)
        with patch("dircompare.content._list_dir", _sorted_listing(reverse=True)):
            backward = Content.of(path)
        self.assertEqual(forward.names(), ["a.txt", "b.txt", "c.txt"])
        self.assertEqual(backward.names(), ["c.txt", "b.txt", "a.txt"])
        self.assertNotEqual(forward, backward)

    def test_listing_order_preserved(self):
        path = self._tree("dir", {"b": {"2": "", "1": ""}, "a": "", "c": {}})
        with patch("dircompare.content._list_dir", _sorted_listing(reverse=True)):
            c = Content.of(path)
        self.assertEqual(c.names(), ["c", "b", "a"])
        self.assertEqual(c.entries[1].content.names(), ["2", "1"])

    def test_path_ending_in_parent_marker(self):
        sub = self._tree(os.path.join("dir", "sub"), {"x": "x"})
        parent = os.path.join(self.root, "dir")
        self.assertEqual(Content.of(os.path.join(sub, "..")), Content.of(parent))

    def test_pathlike_and_bytes_paths(self):
        from pathlib import Path

        path = self._tree("dir", {"x.txt": "x"})
        expected = Content.of(path)
        self.assertEqual(Content.of(Path(path)), expected)
        self.assertEqual(Content.of(os.fsencode(path)), expected)

    def test_missing_path(self):
        with self.assertRaises(FileNotFoundError):
            Content.of(os.path.join(self.root, "missing"))

    def test_read_error_aborts_snapshot(self):
        path = self._tree("dir", {"a.txt": "a", "b.txt": "b", "c.txt": "c"})
        failure = PermissionError(errno.EACCES, "Permission denied", "b.txt")

        def _read_file(file_path):
            if os.path.basename(file_path) == "b.txt":
                raise failure
            return _real_read_file(file_path)

        with patch("dircompare.content._read_file", side_effect=_read_file):
            with self.assertRaises(PermissionError) as cm:
                Content.of(path)
        self.assertIs(cm.exception, failure)

    def test_listing_error_in_subdirectory(self):
        path = self._tree("dir", {"a.txt": "a", "sub": {"b.txt": "b"}})
        sub = os.path.join(path, "sub")

        def _list_dir(dir_path):
            if os.fsdecode(dir_path) == sub:
                raise PermissionError(errno.EACCES, "Permission denied", sub)
            return _real_list_dir(dir_path)

        with patch("dircompare.content._list_dir", side_effect=_list_dir):
            with self.assertRaises(PermissionError):
                Content.of(path)

    def test_listing_parent_marker_is_invariant_violation(self):
        path = self._tree("dir", {})
        with patch(
            "dircompare.content._list_dir",
            return_value=[os.path.join(path, "..")],
        ):
            with self.assertRaises(RuntimeError):
                Content.of(path)

    def test_deep_tree_does_not_recurse(self):
        path = os.path.join(self.root, "deep")
        os.mkdir(path)
        leaf = path
        for _ in range(300):
            leaf = os.path.join(leaf, "d")
            os.mkdir(leaf)
        with open(os.path.join(leaf, "leaf.txt"), "wb") as f:
            f.write(b"leaf")

        limit = sys.getrecursionlimit()
        sys.setrecursionlimit(200)
        try:
            c = Content.of(path)
        finally:
            sys.setrecursionlimit(limit)

        depth = 0
        while c.is_dir and c.names() == ["d"]:
            c = c.entries[0].content
            depth += 1
        self.assertEqual(depth, 300)
        self.assertEqual(c.names(), ["leaf.txt"])
        self.assertEqual(c.entries[0].content.data, b"leaf")

    @unittest.skipUnless(sys.platform.startswith("linux"), "needs byte file names")
    def test_undecodable_name_replaced(self):
        path = self._tree("dir", {})
        with open(os.path.join(os.fsencode(path), b"bad\xff.txt"), "wb") as f:
            f.write(b"x")
        self.assertEqual(Content.of(path).names(), ["bad�.txt"])


class TestEntryAt(ContentTestBase):
    def test_name_and_content(self):
        path = self._tree("dir-a", {"x.txt": "hello"})
        entry = Entry.at(path)
        self.assertEqual(entry.name, "dir-a")
        self.assertEqual(entry.content, Content.of(path))

    def test_trailing_separator(self):
        path = self._tree("dir-a", {})
        self.assertEqual(Entry.at(path + os.sep).name, "dir-a")

    def test_reflexive(self):
        path = self._tree("dir", {"a": "a", "sub": {"b": "b"}})
        self.assertEqual(Entry.at(path), Entry.at(path))

    def test_name_sensitive(self):
        dir_a = self._tree("dir-a", {"x.txt": "hello"})
        dir_b = self._tree("dir-b", {"x.txt": "hello"})
        self.assertEqual(Content.of(dir_a), Content.of(dir_b))
        self.assertNotEqual(Entry.at(dir_a), Entry.at(dir_b))

    def test_same_name_different_parents(self):
        dir_a = self._tree(os.path.join("a", "same"), {"x.txt": "hello"})
        dir_b = self._tree(os.path.join("b", "same"), {"x.txt": "hello"})
        self.assertEqual(Entry.at(dir_a), Entry.at(dir_b))

    def test_single_byte_change_same_name(self):
        layout = {"top.txt": "top", "sub": {"deep": {"z.bin": b"\x00" * 64}}}
        dir_a = self._tree(os.path.join("a", "same"), layout)
        dir_b = self._tree(os.path.join("b", "same"), layout)
        self.assertEqual(Entry.at(dir_a), Entry.at(dir_b))
        with open(os.path.join(dir_b, "sub", "deep", "z.bin"), "r+b") as f:
            f.seek(31)
            f.write(b"\x01")
        self.assertNotEqual(Entry.at(dir_a), Entry.at(dir_b))
        self.assertEqual(Entry.at(dir_a).name, Entry.at(dir_b).name)

    def test_invalid_paths(self):
        for path in ("..", os.path.join(self.root, ".."), ".", os.sep, ""):
            with self.subTest(path=path):
                with self.assertRaises(InvalidPathError) as cm:
                    Entry.at(path)
                self.assertEqual(cm.exception.path, path)
                self.assertIsInstance(cm.exception, EntryError)

    def test_missing_path_wraps_error(self):
        missing = os.path.join(self.root, "missing")
        with self.assertRaises(EntryIOError) as cm:
            Entry.at(missing)
        err = cm.exception
        self.assertIsInstance(err.error, FileNotFoundError)
        self.assertIs(err.__cause__, err.error)
        self.assertEqual(err.errno, errno.ENOENT)
        self.assertEqual(err.filename, missing)
        self.assertEqual(str(err), str(err.error))

    def test_read_error_wraps_error(self):
        path = self._tree("dir", {"a.txt": "a", "b.txt": "b", "c.txt": "c"})
        failure = PermissionError(errno.EACCES, "Permission denied", "b.txt")

        def _read_file(file_path):
            if os.path.basename(file_path) == "b.txt":
                raise failure
            return _real_read_file(file_path)

        with patch("dircompare.content._read_file", side_effect=_read_file):
            with self.assertRaises(EntryIOError) as cm:
                Entry.at(path)
        self.assertIs(cm.exception.error, failure)
        self.assertEqual(cm.exception.errno, errno.EACCES)


class TestValues(unittest.TestCase):
    def test_content_type(self):
        self.assertEqual(Content.file(b"").content_type, ContentType.FILE)
        self.assertEqual(Content.directory([]).content_type, ContentType.DIRECTORY)

    def test_file_rejects_entries(self):
        with self.assertRaises(ValueError):
            Content(ContentType.FILE, data=b"x", entries=())
        with self.assertRaises(ValueError):
            Content(ContentType.FILE)

    def test_directory_rejects_data(self):
        with self.assertRaises(ValueError):
            Content(ContentType.DIRECTORY, data=b"x", entries=())
        with self.assertRaises(ValueError):
            Content(ContentType.DIRECTORY)

    def test_directory_rejects_non_entries(self):
        with self.assertRaises(TypeError):
            Content.directory([Content.file(b"x")])

    def test_entry_rejects_invalid_names(self):
        for name in ("", ".."):
            with self.subTest(name=name):
                with self.assertRaises(ValueError):
                    Entry(name, Content.file(b""))
        with self.assertRaises(TypeError):
            Entry("x", b"data")

    def test_file_data_copied_to_bytes(self):
        buf = bytearray(b"abc")
        c = Content.file(buf)
        buf[0] = ord("z")
        self.assertEqual(c.data, b"abc")
        self.assertIsInstance(c.data, bytes)

    def test_immutable(self):
        c = Content.file(b"x")
        with self.assertRaises(AttributeError):
            c.data = b"y"
        e = Entry("x", c)
        with self.assertRaises(AttributeError):
            e.name = "y"

    def test_hashable(self):
        a = Entry("d", Content.directory([Entry("x", Content.file(b"1"))]))
        b = Entry("d", Content.directory([Entry("x", Content.file(b"1"))]))
        self.assertEqual(hash(a), hash(b))
        self.assertEqual(len({a, b}), 1)

    def test_positional_directory_equality(self):
        x = Entry("x", Content.file(b"1"))
        y = Entry("y", Content.file(b"2"))
        self.assertEqual(Content.directory([x, y]), Content.directory([x, y]))
        self.assertNotEqual(Content.directory([x, y]), Content.directory([y, x]))
        self.assertNotEqual(Content.directory([x]), Content.directory([x, x]))

    def test_size_and_names(self):
        self.assertEqual(Content.file(b"abc").size, 3)
        self.assertEqual(Content.file(b"abc").names(), [])
        d = Content.directory([Entry("a", Content.file(b"")), Entry("b", Content.directory([]))])
        self.assertEqual(d.size, 2)
        self.assertEqual(d.names(), ["a", "b"])

    def test_to_dict(self):
        d = Entry("d", Content.directory([Entry("x", Content.file(b"hello"))]))
        self.assertEqual(
            d.to_dict(),
            {
                "name": "d",
                "content": {
                    "type": "directory",
                    "entries": [
                        {
                            "name": "x",
                            "content": {
                                "type": "file",
                                "size": 5,
                                "sha256": sha256(b"hello").hexdigest(),
                            },
                        }
                    ],
                },
            },
        )

    def test_str_and_repr(self):
        e = Entry("x", Content.file(b"hi"))
        self.assertEqual(str(e), "x: file (2 bytes)")
        self.assertEqual(repr(e), "Entry('x', Content.file(b'hi'))")
        d = Content.directory([e])
        self.assertEqual(str(d), "directory (1 entries)")
        self.assertEqual(repr(d), "Content.directory([Entry('x', Content.file(b'hi'))])")
