"""
Console abstraction for talking to the user of the `vpkit` tool via the terminal.

Messages are shown in appropriate colors (where available) and on the appropriate stream: the *results* of a command
(listings, previews) go to stdout via `print_output`, while progress, warnings and errors are decorations that go to
stdout or stderr depending on their kind. Commands that write binary data to stdout (e.g. ``vpkit cat``) call
`disable_stdout` so that decorations cannot corrupt the data.

Use the module-level singleton::

    from vpkit.cli_utils.console import console

    console.print_warning("Animation entries cannot be previewed")
"""

import sys

from typing import Optional, Tuple, TextIO

from colorama import just_fix_windows_console
from termcolor import cprint


class Console:
    """
    An abstraction for communicating with the user via the terminal.

    Don't create your own instances of this, except in tests.
    """

    _stdout_enabled = None

    def __init__(self, enable_stdout: bool = True):
        self._stdout_enabled = enable_stdout

    def print_output(self, text: str) -> 'Console':
        """
        Print the actual output of a command. This is never colored and always goes to stdout, even if stdout
        decorations are disabled.
        """
        print(text, file=sys.stdout)
        return self

    def print_info(self, message: str, **kwargs) -> 'Console':
        return self.print_message('info', message, **kwargs)

    def print_progress(self, message: str, **kwargs) -> 'Console':
        """
        Print a progress message, e.g. ``"Extracting 120 files..."``
        """
        return self.print_message('progress', message, **kwargs)

    def print_success(self, message: str, **kwargs) -> 'Console':
        return self.print_message('success', message, **kwargs)

    def print_warning(self, message: str, **kwargs) -> 'Console':
        """
        Print a warning message. It will be highlighted in yellow and sent to stderr.
        """
        return self.print_message('warning', message, **kwargs)

    def print_error(self, message: str, **kwargs) -> 'Console':
        """
        Print an error message. It will be highlighted in red and sent to stderr.
        """
        return self.print_message('error', message, **kwargs)

    def disable_stdout(self) -> 'Console':
        """
        Disables decoration messages that would normally go to stdout (i.e. anything except warnings and errors).
        """
        self._stdout_enabled = False
        return self

    def enable_stdout(self) -> 'Console':
        self._stdout_enabled = True
        return self

    def print_message(self, kind: str, message: str, major: bool = False, minor: bool = False) -> 'Console':
        """
        Prints a message of a programmatically specified type.

        Args:
            kind: Can be 'info', 'progress', 'success', 'warning', 'error' with the meanings as described by the
                respective `print_*` methods.
            message: The message to print. Can be multiline.
            major: Signals that this message is somehow more important than others of its kind (rendered in bold).
            minor: Signals that this message is somehow less important than others of its kind (never bold).

        Returns:
            The console object (to enable a fluent interface)
        """
        props = _PROPS_BY_MSG_TYPE.get(kind, _PROPS_BY_MSG_TYPE['default'])

        channel_name = props.get('channel', 'stdout')
        if channel_name == 'stdout' and not self._stdout_enabled:
            return self

        channel = sys.stderr if channel_name == 'stderr' else sys.stdout

        attrs = props.get('attrs', ())
        if major and ('bold' not in attrs):
            attrs += ('bold',)
        if minor and ('bold' in attrs):
            attrs = tuple(attr for attr in attrs if attr != 'bold')

        _print_maybe_with_color(message, props.get('color'), attrs, channel)

        return self


def _print_maybe_with_color(
    text: str, color: Optional[str], attrs: Optional[Tuple[str, ...]], channel: TextIO
):
    if (color is None) and (len(attrs or []) == 0):
        print(text, file=channel)
    else:
        cprint(text, color or 'white', attrs=list(attrs or ()), file=channel)


_PROPS_BY_MSG_TYPE = {
    'default': dict(),
    'info': dict(),
    'progress': dict(color='cyan'),
    'success': dict(color='green', attrs=('bold',)),
    'warning': dict(color='yellow', attrs=('bold',), channel='stderr'),
    'error': dict(color='red', attrs=('bold',), channel='stderr'),
}


just_fix_windows_console()

# Singleton
console = Console()
"""The currently active console abstraction."""
