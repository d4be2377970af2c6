import logging

from typing import Union


def init_console_friendly_logging(level: Union[int, str] = logging.WARNING):
    """
    Initializes logging for an interactive terminal session. Specifically:

    - Messages go to stderr, so they never mix with command output on stdout
    - A timestamp is attached to each message
    - The level is attached to each message as a string (INFO, ERROR etc)

    Calling this again (e.g. from tests) replaces the previous configuration.
    """
    logging.basicConfig(
        level=parse_level(level),
        style='{',
        format='[{asctime}] {levelname}: {message}',
        datefmt='%Y-%m-%d %H:%M:%S',  # We omit the milliseconds by default
        force=True,
    )


def parse_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level

    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown logging level {level!r}")

    return value
