"""
Error reporting for the `vpkit` command-line tool.

Problems with the user's input (a corrupt archive, an unsupported image, a missing file, a bad config) are reported as
a single line, prefixed with the kind of problem found, and make the tool exit with a status specific to that kind:

====  =====================================================
   1  generic failure (missing entry, file system error)
   3  invalid configuration
   4  input is not in the expected format
   5  input uses a format variant that is not supported
   6  input is truncated
   7  input is structurally corrupt
   8  an offset outside the input was requested
 130  interrupted by the user
 255  internal error (a bug; the full traceback is shown)
====  =====================================================
"""

import sys
import traceback

from typing import NoReturn, ContextManager, List, Tuple, Callable
from textwrap import indent
from functools import wraps
from contextlib import contextmanager

from vpkit.cli_utils.console import console
from vpkit.config import ConfigError
from vpkit.errors import FormatMismatchError, UnsupportedVariantError, TruncatedInputError, MalformedStructureError, \
    OutOfBoundsError


EXIT_FAILURE = 1
EXIT_BAD_CONFIG = 3
EXIT_INTERRUPTED = 130
EXIT_INTERNAL_ERROR = -1

# Checked in order, so subclasses must come before their bases
PROBLEM_KINDS: Tuple[Tuple[type, str, int], ...] = (
    (ConfigError, "Bad configuration", EXIT_BAD_CONFIG),
    (FormatMismatchError, "Unrecognized format", 4),
    (UnsupportedVariantError, "Unsupported format variant", 5),
    (TruncatedInputError, "Truncated data", 6),
    (MalformedStructureError, "Corrupt data", 7),
    (OutOfBoundsError, "Out of bounds", 8),
    (OSError, "File error", EXIT_FAILURE),
)


class DescriptiveError(RuntimeError):
    """
    An error whose message tells the user everything they need to know. Only the message is shown, never the trace.
    """

    exit_code: int

    def __init__(self, message: str, exit_code: int = EXIT_FAILURE):
        super().__init__(message)

        self.exit_code = exit_code


def fail(message: str) -> NoReturn:
    raise DescriptiveError(message)


def describe_problem(exception: BaseException) -> Tuple[str, int]:
    """
    Returns the message prefix and exit status for an input problem, based on the first matching `PROBLEM_KINDS` row.
    """
    for cls, prefix, exit_code in PROBLEM_KINDS:
        if isinstance(exception, cls):
            return prefix, exit_code

    return "Error", EXIT_FAILURE


@contextmanager
def descriptive_errors(*classes: type) -> ContextManager[None]:
    """
    Use ``with descriptive_errors(Exc1, Exc2, ...): <code>`` to report exceptions of the given kinds as input problems
    rather than bugs.
    """
    try:
        yield
    except classes as e:
        prefix, exit_code = describe_problem(e)

        raise DescriptiveError(f"{prefix}: {e}", exit_code) from e


def pretty_unhandled(main_method: Callable) -> Callable:
    """
    Decorator for the main function: reports any escaping exception on the console, then exits with the matching status.
    """

    @wraps(main_method)
    def wrapper(*args, **kwargs):
        try:
            return main_method(*args, **kwargs)
        except SystemExit:
            raise
        except KeyboardInterrupt:
            console.print_warning("Stopped by user")
            sys.exit(EXIT_INTERRUPTED)
        except DescriptiveError as e:
            console.print_error(str(e))
            sys.exit(e.exit_code)
        except Exception as e:
            print_internal_error(e)
            sys.exit(EXIT_INTERNAL_ERROR)

    return wrapper


def print_internal_error(exception: BaseException):
    console.print_error("Internal error (this is a bug in vpkit):")

    for index, cause in enumerate(_causal_chain(exception)):
        base_indent = '  ' * index

        if index > 0:
            console.print_error(base_indent + "Caused by:", minor=True)

        console.print_error(indent(''.join(traceback.format_exception_only(type(cause), cause)).rstrip(), base_indent))
        console.print_error(base_indent + "Traceback:", minor=True)
        console.print_error(
            indent(''.join(traceback.format_tb(cause.__traceback__)).rstrip(), base_indent),
            minor=True
        )


def _causal_chain(exception: BaseException) -> List[BaseException]:
    result = [exception]

    while exception.__cause__ is not None:
        exception = exception.__cause__
        result.append(exception)

    return result
