"""
Utilities for reading VP archive containers.

A VP file consists of a 16-byte header, the entry payloads, and a directory table. The directory table does not store
paths. Instead, it encodes a depth-first walk of the file tree: a zero-size record opens a directory, and a record
named ``..`` closes the most recently opened one. `parse_directory` replays this walk to recover each entry's path.

Layout (all ints little-endian)::

    header:     magic "VPVP" | version i32 | directory offset i32 | directory entry count i32
    record:     offset u32 | size u32 | name char[32], NUL-padded | timestamp u32
"""

import struct

from dataclasses import dataclass
from typing import List, Tuple, Optional

from vpkit.errors import MalformedStructureError


VP_MAGIC = b'VPVP'
VP_HEADER_SIZE = 16
VP_RECORD_FORMAT = '<II32sI'
VP_RECORD_SIZE = struct.calcsize(VP_RECORD_FORMAT)
VP_NAME_FIELD_SIZE = 32
VP_PARENT_MARKER = '..'


def parse_header(container_bytes: bytes) -> 'VPHeader':
    from ._parse import parse_vp_header

    return parse_vp_header(container_bytes)


def parse_directory(container_bytes: bytes) -> List['ArchiveEntry']:
    """
    Parses the header and directory table of a VP container.

    Args:
        container_bytes: The complete contents of the container (any bytes-like object, e.g. an `mmap`).

    Returns:
        The entries in directory-table order, minus the directory-closing markers. Directories are included and always
        precede their contents.

    Raises:
        FormatMismatchError: If the data does not start with the VP magic.
        TruncatedInputError: If the header or directory table do not fit in the data.
        MalformedStructureError: If the directory nesting is inconsistent (e.g. too many closing markers).
    """
    from ._parse import parse_vp_directory

    return parse_vp_directory(container_bytes)


@dataclass(frozen=True)
class VPHeader:
    version: int
    directory_offset: int
    directory_entry_count: int


@dataclass(frozen=True)
class ArchiveEntry:
    index: int
    offset: int
    size: int
    name: str
    timestamp: int
    full_path: Tuple[str, ...]

    @property
    def is_directory(self) -> bool:
        return self.size == 0

    @property
    def path(self) -> str:
        return '/'.join(self.full_path)

    @property
    def parent_path(self) -> Tuple[str, ...]:
        return self.full_path[:-1]

    @property
    def depth(self) -> int:
        return len(self.full_path) - 1

    def description(self) -> str:
        kind = 'directory' if self.is_directory else f"file of {self.size} bytes"

        return f"VP entry #{self.index} '{self.path}' ({kind})"


class DirectoryStackUnderflowError(MalformedStructureError):
    record_index: int

    def __init__(self, record_index: int):
        self.record_index = record_index

        super().__init__(
            f"Directory record #{record_index} closes a directory, but no directory is open"
        )


class EmptyEntryNameError(MalformedStructureError):
    record_index: int

    def __init__(self, record_index: int):
        self.record_index = record_index

        super().__init__(f"Directory record #{record_index} has an empty name")


class InvalidDirectoryCountError(MalformedStructureError):
    count: int

    def __init__(self, count: int):
        self.count = count

        super().__init__(f"Header declares a negative number of directory entries ({count})")


def find_entry(entries: List[ArchiveEntry], path: str) -> Optional[ArchiveEntry]:
    """
    Finds an entry by its ``/``-separated path. Leading and trailing slashes are ignored. Returns None if not found.

    If several entries share the path, the first one in table order is returned.
    """
    wanted = tuple(part for part in path.strip('/').split('/') if part != '')

    for entry in entries:
        if entry.full_path == wanted:
            return entry

    return None
