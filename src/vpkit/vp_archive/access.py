"""
Access to the payloads of VP archive entries.

`parse_directory` only describes where each entry lives; this module retrieves the actual bytes, either from a buffer
already in memory or straight from the backing file.
"""

import logging
import mmap

from os import PathLike, SEEK_END, SEEK_SET
from pathlib import Path
from typing import Union, BinaryIO, List, Optional

from vpkit.binary_utils.BinaryReader import BinaryReader, BytesLike
from vpkit.errors import TruncatedInputError
from vpkit.vp_archive import ArchiveEntry, VPHeader, parse_header, parse_directory, find_entry


LOG = logging.getLogger(__name__)


PathType = Union[PathLike, str]
Source = Union[BytesLike, PathType, BinaryIO]


def read_bytes(source: Source, offset: int, length: int) -> bytes:
    """
    Reads a byte range from an archive's backing store.

    Args:
        source: Either a bytes-like object holding the whole container, the path to the container file, or a seekable
            binary file object opened on it.
        offset: The absolute offset of the range.
        length: The length of the range.

    Returns:
        Exactly `length` bytes.

    Raises:
        TruncatedInputError: If the range extends past the end of the source.
        ValueError: If `offset` or `length` is negative.
    """
    if offset < 0 or length < 0:
        raise ValueError(f"Offset and length must be non-negative (got {offset}, {length})")

    if isinstance(source, (bytes, bytearray, memoryview, mmap.mmap)):
        reader = BinaryReader(source)

        return reader.window(offset, length, meaning='entry payload').read_amount(length)

    if isinstance(source, (str, PathLike)):
        with open(source, 'rb') as f:
            return _read_from_fileobj(f, offset, length)

    if hasattr(source, 'read') and hasattr(source, 'seek'):
        return _read_from_fileobj(source, offset, length)

    raise TypeError(f"Cannot read bytes from a source of type {source.__class__.__name__}")


def _read_from_fileobj(fileobj: BinaryIO, offset: int, length: int) -> bytes:
    total_size = fileobj.seek(0, SEEK_END)

    if offset + length > total_size:
        raise PayloadOutsideSourceError(offset, length, total_size)

    fileobj.seek(offset, SEEK_SET)

    data = fileobj.read(length)
    while len(data) < length:
        more = fileobj.read(length - len(data))
        if len(more) == 0:
            raise PayloadOutsideSourceError(offset, length, offset + len(data))

        data += more

    return data


class PayloadOutsideSourceError(TruncatedInputError):
    offset: int
    length: int
    source_size: int

    def __init__(self, offset: int, length: int, source_size: int):
        self.offset = offset
        self.length = length
        self.source_size = source_size

        super().__init__(
            f"Range at offset {offset} with length {length} extends past the end of the data ({source_size} bytes)"
        )


class VPArchive:
    """
    A loaded VP archive: the container bytes plus the header and entries parsed from them.

    Archives are never modified after loading. To pick up changes to the file, load it again.
    """

    _data: BytesLike
    _header: VPHeader
    _entries: List[ArchiveEntry]
    _name: Optional[str]
    _closed: bool

    def __init__(self, data: BytesLike, name: Optional[str] = None):
        self._data = data
        self._name = name
        self._closed = False
        self._header = parse_header(data)
        self._entries = parse_directory(data)

    @staticmethod
    def from_bytes(data: BytesLike, name: Optional[str] = None) -> 'VPArchive':
        return VPArchive(data, name)

    @staticmethod
    def load(path: PathType) -> 'VPArchive':
        """
        Loads an archive from disk.

        The file is memory-mapped read-only rather than read in full, since VP files can run to hundreds of MB and
        typically only a few entries are ever looked at. Use the archive as a context manager, or call `close`, to
        release the mapping.
        """
        path = Path(path)

        LOG.debug("Loading VP archive %s", path)

        with open(path, 'rb') as f:
            if path.stat().st_size == 0:
                data = b''
            else:
                data = mmap.mmap(f.fileno(), 0, access=mmap.ACCESS_READ)

        return VPArchive(data, str(path))

    def close(self):
        """
        Releases the memory mapping behind an archive opened with `load`. Entries can no longer be read afterwards.

        Raises:
            BufferError: If views into the mapping are still alive.
        """
        if self._closed:
            return

        if isinstance(self._data, mmap.mmap):
            self._data.close()

        self._closed = True

    def __enter__(self) -> 'VPArchive':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            self.close()
        except BufferError:
            if exc_type is None:
                raise

            # The traceback of the pending exception still holds views into the mapping; it is unmapped on collection
            LOG.debug("Deferring unmapping of %s until the pending error is handled", self._name)

    @property
    def name(self) -> Optional[str]:
        return self._name

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def header(self) -> VPHeader:
        return self._header

    @property
    def entries(self) -> List[ArchiveEntry]:
        return list(self._entries)

    def files(self) -> List[ArchiveEntry]:
        return [entry for entry in self._entries if not entry.is_directory]

    def find(self, path: str) -> Optional[ArchiveEntry]:
        return find_entry(self._entries, path)

    def children(self, entry: Optional[ArchiveEntry] = None) -> List[ArchiveEntry]:
        """
        Lists the direct children of a directory entry, or of the archive root if `entry` is None.
        """
        if entry is not None and not entry.is_directory:
            raise ValueError(f"{entry.description()} is not a directory")

        parent_path = () if entry is None else entry.full_path

        return [e for e in self._entries if e.parent_path == parent_path]

    def read_entry(self, entry: ArchiveEntry) -> bytes:
        """
        Retrieves the payload of a file entry.

        Raises:
            ValueError: If the entry is a directory, or the archive has been closed.
            TruncatedInputError: If the entry's payload extends past the end of the container.
        """
        if self._closed:
            raise ValueError(f"Cannot read from closed archive {self._name}")
        if entry.is_directory:
            raise ValueError(f"{entry.description()} is a directory and has no payload")

        return read_bytes(self._data, entry.offset, entry.size)
