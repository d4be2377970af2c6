import io
import unittest

from contextlib import redirect_stderr
from pathlib import Path

from vpkit.cli_utils.errors import DescriptiveError, descriptive_errors, describe_problem, pretty_unhandled, fail, \
    EXIT_FAILURE, EXIT_BAD_CONFIG, EXIT_INTERRUPTED, EXIT_INTERNAL_ERROR
from vpkit.config import ConfigError
from vpkit.errors import DecodeError, FormatMismatchError, UnsupportedVariantError, TruncatedInputError, \
    MalformedStructureError, OutOfBoundsError
from vpkit.pcx_image import MissingPaletteMarkerError
from vpkit.vp_archive import DirectoryStackUnderflowError


def _run_main(func):
    err = io.StringIO()

    with redirect_stderr(err):
        try:
            pretty_unhandled(func)()
        except SystemExit as e:
            return e.code, err.getvalue()

    return None, err.getvalue()


class DescribeProblemTest(unittest.TestCase):
    def test_each_kind_has_its_own_exit_code(self):
        errors = [
            FormatMismatchError('x'), UnsupportedVariantError('x'), TruncatedInputError('x'),
            MalformedStructureError('x'), OutOfBoundsError('x'), ConfigError(Path('c.json'), 'is bad'),
        ]

        codes = [describe_problem(e)[1] for e in errors]

        self.assertEqual(len(set(codes)), len(codes))
        self.assertNotIn(EXIT_FAILURE, codes)

    def test_subclasses_use_their_category(self):
        self.assertEqual(describe_problem(DirectoryStackUnderflowError(3)), describe_problem(MalformedStructureError()))
        self.assertEqual(
            describe_problem(MissingPaletteMarkerError(100, 0)),
            describe_problem(MalformedStructureError())
        )
        self.assertEqual(describe_problem(ConfigError(Path('c.json'), 'is bad'))[1], EXIT_BAD_CONFIG)

    def test_file_errors(self):
        self.assertEqual(describe_problem(FileNotFoundError(2, 'No such file'))[1], EXIT_FAILURE)


class DescriptiveErrorsTest(unittest.TestCase):
    def test_converts_listed_classes(self):
        with self.assertRaises(DescriptiveError) as cm:
            with descriptive_errors(DecodeError):
                raise TruncatedInputError("Image data ends early")

        self.assertEqual(str(cm.exception), "Truncated data: Image data ends early")
        self.assertEqual(cm.exception.exit_code, describe_problem(TruncatedInputError())[1])
        self.assertIsInstance(cm.exception.__cause__, TruncatedInputError)

    def test_leaves_other_classes_alone(self):
        with self.assertRaises(KeyError):
            with descriptive_errors(DecodeError, OSError):
                raise KeyError('bug')


class PrettyUnhandledTest(unittest.TestCase):
    def test_returns_result(self):
        self.assertEqual(pretty_unhandled(lambda: 5)(), 5)

    def test_descriptive_error(self):
        def main():
            with descriptive_errors(DecodeError):
                raise FormatMismatchError("At position 0, expected VP signature")

        code, err = _run_main(main)

        self.assertEqual(code, describe_problem(FormatMismatchError())[1])
        self.assertIn("Unrecognized format: At position 0, expected VP signature", err)
        self.assertNotIn('Traceback', err)

    def test_fail(self):
        code, err = _run_main(lambda: fail("No entry 'x' in archive a.vp"))

        self.assertEqual(code, EXIT_FAILURE)
        self.assertIn("No entry 'x' in archive a.vp", err)

    def test_bug_shows_traceback_and_cause(self):
        def main():
            try:
                {}['missing']
            except KeyError as e:
                raise RuntimeError("lookup went wrong") from e

        code, err = _run_main(main)

        self.assertEqual(code, EXIT_INTERNAL_ERROR)
        self.assertIn('RuntimeError: lookup went wrong', err)
        self.assertIn('Caused by:', err)
        self.assertIn('KeyError', err)
        self.assertIn('Traceback:', err)

    def test_interrupted(self):
        def main():
            raise KeyboardInterrupt()

        code, err = _run_main(main)

        self.assertEqual(code, EXIT_INTERRUPTED)
        self.assertIn('Stopped by user', err)

    def test_system_exit_passes_through(self):
        def main():
            raise SystemExit(2)

        self.assertEqual(_run_main(main)[0], 2)
