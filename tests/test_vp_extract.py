import tempfile
import unittest

from pathlib import Path

from vpkit.errors import MalformedStructureError
from vpkit.vp_archive.access import VPArchive
from vpkit.vp_archive.extract import extract_entry, extract_all, safe_relative_path, UnsafeEntryPathError

from tests.builders import make_vp, DIR, UP


class ExtractTestBase(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()


class ExtractEntryTest(ExtractTestBase):
    def setUp(self):
        super().setUp()
        self.archive = VPArchive.from_bytes(make_vp([('d', DIR), ('f.txt', b'content'), (UP, None)]))

    def test_extract(self):
        out = extract_entry(self.archive, self.archive.find('d/f.txt'), self.tmp / 'out.txt')

        self.assertEqual(out.read_bytes(), b'content')

    def test_refuses_to_overwrite(self):
        target = self.tmp / 'out.txt'
        target.write_bytes(b'precious')

        with self.assertRaises(FileExistsError):
            extract_entry(self.archive, self.archive.find('d/f.txt'), target)

        self.assertEqual(target.read_bytes(), b'precious')

    def test_overwrite(self):
        target = self.tmp / 'out.txt'
        target.write_bytes(b'old')

        extract_entry(self.archive, self.archive.find('d/f.txt'), target, overwrite=True)

        self.assertEqual(target.read_bytes(), b'content')

    def test_directory(self):
        with self.assertRaises(ValueError):
            extract_entry(self.archive, self.archive.find('d'), self.tmp / 'd')


class ExtractAllTest(ExtractTestBase):
    def test_recreates_tree(self):
        archive = VPArchive.from_bytes(make_vp([
            ('data', DIR),
            ('empty', DIR),
            (UP, None),
            ('tables', DIR),
            ('ships.tbl', b'ships'),
            (UP, None),
            (UP, None),
            ('top.txt', b'top'),
        ]))

        written = extract_all(archive, self.tmp / 'out')

        self.assertEqual(written, [self.tmp / 'out/data/tables/ships.tbl', self.tmp / 'out/top.txt'])
        self.assertEqual((self.tmp / 'out/data/tables/ships.tbl').read_bytes(), b'ships')
        self.assertEqual((self.tmp / 'out/top.txt').read_bytes(), b'top')
        self.assertTrue((self.tmp / 'out/data/empty').is_dir())

    def test_unsafe_archive_writes_nothing(self):
        archive = VPArchive.from_bytes(make_vp([('ok.txt', b'ok'), ('d', DIR), ('a\\..\\x', b'evil'), (UP, None)]))

        with self.assertRaises(UnsafeEntryPathError):
            extract_all(archive, self.tmp / 'out')

        self.assertFalse((self.tmp / 'out').exists())


class SafeRelativePathTest(unittest.TestCase):
    def _entry(self, name):
        return VPArchive.from_bytes(make_vp([(name, b'x')])).entries[0]

    def test_normal(self):
        self.assertEqual(str(safe_relative_path(self._entry('file.pcx'))), 'file.pcx')

    def test_unsafe_names(self):
        for name in ('.', 'a/b', 'C:evil', 'x\\y'):
            with self.assertRaises(MalformedStructureError, msg=name):
                safe_relative_path(self._entry(name))
