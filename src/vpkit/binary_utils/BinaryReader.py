"""
This module contains the `BinaryReader` class, a cursor over an in-memory buffer that offers functions for extracting
binary-encoded data such as ints, fixed-size strings, structures etc.
"""

import struct

from typing import Union, Optional, Tuple

from vpkit.errors import TruncatedInputError, FormatMismatchError, OutOfBoundsError


BytesLike = Union[bytes, bytearray, memoryview]


class BinaryReader:
    """
    This class wraps a bytes-like buffer and offers functions for extracting binary-encoded ints, strings, structures
    etc.

    The reader only ever sees a *window* ``[start, end)`` of the buffer (by default, the whole of it). Positions
    reported by `tell()` and in exceptions are absolute offsets into the underlying buffer, which makes error messages
    directly comparable with a hex dump of the file.
    """

    _data: memoryview
    _big_endian: bool

    _start: int
    _end: int
    _position: int

    def __init__(
        self, data: BytesLike, big_endian: bool = False, start: int = 0, end: Optional[int] = None
    ):
        self._data = _parse_main_input_arg(data)
        self._big_endian = big_endian

        total = len(self._data)
        end = total if end is None else end

        if not (0 <= start <= end <= total):
            raise OutOfBoundsError(
                f"Reader window [{start}, {end}) does not fit in a buffer of {total} bytes"
            )

        self._start = start
        self._end = end
        self._position = start

    @property
    def start(self) -> int:
        return self._start

    @property
    def end(self) -> int:
        return self._end

    def tell(self) -> int:
        return self._position

    def seek(self, position: int) -> 'BinaryReader':
        """
        Moves the cursor to an absolute position, which must lie within the reader's window (the end of the window is
        allowed).

        Raises:
            BinaryReaderSeekOutOfBoundsError: If the position is outside the window.
        """
        if not (self._start <= position <= self._end):
            raise BinaryReaderSeekOutOfBoundsError(position, self._start, self._end)

        self._position = position

        return self

    def bytes_remaining(self) -> int:
        return self._end - self._position

    def eof(self) -> bool:
        return self._position >= self._end

    def window(self, offset: int, length: int, meaning: Optional[str] = None) -> 'BinaryReader':
        """
        Creates a new reader over a sub-range of this reader's window. The current reader is not moved.

        Args:
            offset: The absolute start of the sub-range.
            length: The length of the sub-range.
            meaning: An indication as to the meaning of the region (e.g. "directory table"). It is used in the text of
                any exceptions that may be thrown.

        Raises:
            BinaryReaderRegionOutsideError: If the sub-range does not lie entirely within this reader's window.
        """
        if (offset < self._start) or (length < 0) or (offset + length > self._end):
            raise BinaryReaderRegionOutsideError(offset, length, self._start, self._end, meaning)

        return BinaryReader(self._data, big_endian=self._big_endian, start=offset, end=offset + length)

    def read_amount(self, n_bytes: int, meaning: Optional[str] = None) -> bytes:
        """
        Reads exactly `n_bytes` from the buffer.

        Args:
            n_bytes: The amount of bytes to read.
            meaning: An indication as to the meaning of the data being read (e.g. "entry name"). It is used in the
                text of any exceptions that may be thrown.

        Returns:
            The data, as a `bytes` object `n_bytes` in length.

        Raises:
            BinaryReaderMissingDataError: If we are at the end of the window and no bytes are left at all.
            BinaryReaderReadPastEndError: If some bytes are left, but fewer than `n_bytes`.
        """
        if n_bytes < 0:
            raise ValueError("The number of bytes to read cannot be negative")
        if n_bytes == 0:
            return b''

        available = self.bytes_remaining()

        if available == 0:
            raise BinaryReaderMissingDataError(self._position, n_bytes, meaning)
        if available < n_bytes:
            raise BinaryReaderReadPastEndError(self._position, n_bytes, available, meaning)

        data = bytes(self._data[self._position:self._position + n_bytes])
        self._position += n_bytes

        return data

    def skip_bytes(self, n_bytes: int, meaning: Optional[str] = None):
        """
        Skips over a number of bytes, ignoring the data. The bytes MUST be present.
        """
        if n_bytes < 0:
            raise ValueError("Number of bytes to skip must be non-negative")

        available = self.bytes_remaining()
        if n_bytes > available:
            if available == 0:
                raise BinaryReaderMissingDataError(self._position, n_bytes, meaning)

            raise BinaryReaderReadPastEndError(self._position, n_bytes, available, meaning)

        self._position += n_bytes

    def read_remainder(self) -> bytes:
        data = bytes(self._data[self._position:self._end])
        self._position = self._end

        return data

    def peek_byte(self, meaning: Optional[str] = None) -> int:
        if self.eof():
            raise BinaryReaderMissingDataError(self._position, 1, meaning)

        return self._data[self._position]

    def read_byte(self, meaning: Optional[str] = None) -> int:
        """
        Reads a single byte and returns it as an int. This is the fast path used in inner decoding loops.
        """
        if self._position >= self._end:
            raise BinaryReaderMissingDataError(self._position, 1, meaning)

        value = self._data[self._position]
        self._position += 1

        return value

    def expect_magic(self, magic: bytes, meaning: Optional[str] = None):
        """
        Verifies that a specific bytes sequence ("magic") follows in the buffer.

        Raises:
            BinaryReaderWrongMagicError: If the read sequence does not match the expected one.
            BinaryReaderMissingDataError: If we are at the end of the window and no bytes are left at all.
            BinaryReaderReadPastEndError: If the window ends before the full length of the magic.
        """
        meaning = meaning or "magic"

        data = self.read_amount(len(magic), meaning)

        if data != magic:
            raise BinaryReaderWrongMagicError(self._position - len(magic), magic, data, meaning)

    def read_struct(self, struct_format: str, meaning: Optional[str] = None) -> tuple:
        """
        Reads structured data from the buffer.

        Args:
            struct_format: The format of the structured data, as per the Python `struct` package. There is no need to
                prepend an endianness specifier, as one will be added automatically in accordance to the
                `BinaryReader`'s setting, but if one is present, it will take precedence.
            meaning: An indication as to the meaning of the data being read (e.g. "file header"). It is used in the
                text of any exceptions that may be thrown.

        Returns:
           The data in the structure, as a tuple.
        """
        if struct_format == '':
            return ()
        if struct_format[0] not in '@=<>!':
            struct_format = ('>' if self._big_endian else '<') + struct_format

        meaning = meaning or f"struct ({struct_format})"

        data = self.read_amount(struct.calcsize(struct_format), meaning)

        return struct.unpack(struct_format, data)

    def read_fixed_size_int(
        self, n_bytes: int, meaning: Optional[str] = None, signed: bool = False, big_endian: Optional[bool] = None
    ) -> int:
        """
        Reads an integer stored in a given number of bytes.

        Args:
            n_bytes: The number of bytes the int is stored over (e.g. a 32 bit int has 4 bytes). Must be at least 1.
            meaning: An indication as to the meaning of the data being read (e.g. "entry count").
            signed: Whether to interpret the integer as signed.
            big_endian: Use a non-None value here to override the reader's endianness setting, if necessary.
        """
        if n_bytes < 1:
            raise ValueError("Number of bytes in int must be at least 1")

        big_endian = self._big_endian if big_endian is None else big_endian

        return int.from_bytes(
            self.read_amount(n_bytes, meaning=meaning or 'int'),
            byteorder='big' if big_endian else 'little',
            signed=signed
        )

    def read_uint8(self, meaning: Optional[str] = None) -> int:
        return self.read_fixed_size_int(1, meaning=meaning)

    def read_uint16(self, meaning: Optional[str] = None) -> int:
        return self.read_fixed_size_int(2, meaning=meaning)

    def read_int16(self, meaning: Optional[str] = None) -> int:
        return self.read_fixed_size_int(2, meaning=meaning, signed=True)

    def read_uint32(self, meaning: Optional[str] = None) -> int:
        return self.read_fixed_size_int(4, meaning=meaning)

    def read_int32(self, meaning: Optional[str] = None) -> int:
        return self.read_fixed_size_int(4, meaning=meaning, signed=True)

    def read_padded_bytes(self, field_size: int, meaning: Optional[str] = None) -> bytes:
        """
        Reads a fixed-size field holding a NUL-padded byte string.

        The whole field is always consumed. The result stops at the first NUL byte, so any padding (or garbage after
        the terminator) is discarded. If there is no NUL, the full field is returned.
        """
        data = self.read_amount(field_size, meaning=meaning or 'padded string')

        null_pos = data.find(b'\x00')

        return data if null_pos == -1 else data[:null_pos]

    def read_padded_string(self, field_size: int, meaning: Optional[str] = None, encoding: str = 'latin-1') -> str:
        return self.read_padded_bytes(field_size, meaning=meaning).decode(encoding)


def _parse_main_input_arg(input_: BytesLike) -> memoryview:
    if isinstance(input_, memoryview):
        view = input_
    elif isinstance(input_, (bytes, bytearray)):
        view = memoryview(input_)
    else:
        try:
            view = memoryview(input_)
        except TypeError:
            raise TypeError("Input to BinaryReader must be a bytes-like object") from None

    if view.ndim != 1 or view.format != 'B':
        view = view.cast('B')

    return view


class BinaryReaderReadPastEndError(TruncatedInputError):
    position: int
    expected_length: int
    actual_length: int
    meaning: Optional[str]

    def __init__(self, position: int, expected_length: int, actual_length: int, meaning: Optional[str]):
        self.position = position
        self.expected_length = expected_length
        self.actual_length = actual_length
        self.meaning = meaning

        super().__init__(
            f"At position {position}, expected {expected_length} "
            f"bytes{f' for {meaning}' if meaning is not None else ''}"
            f", but only {actual_length} were found"
        )


class BinaryReaderMissingDataError(TruncatedInputError):
    position: int
    expected_length: int
    meaning: Optional[str]

    def __init__(self, position: int, expected_length: int, meaning: Optional[str]):
        self.position = position
        self.expected_length = expected_length
        self.meaning = meaning

        super().__init__(
            f"At position {position}, expected {expected_length} "
            f"bytes{f' for {meaning}' if meaning is not None else ''}"
            f", but the data ends"
        )


class BinaryReaderRegionOutsideError(TruncatedInputError):
    offset: int
    length: int
    bounds: Tuple[int, int]
    meaning: Optional[str]

    def __init__(self, offset: int, length: int, start: int, end: int, meaning: Optional[str]):
        self.offset = offset
        self.length = length
        self.bounds = (start, end)
        self.meaning = meaning

        super().__init__(
            f"Region{f' for {meaning}' if meaning is not None else ''} at offset {offset} with length {length} "
            f"does not fit within the data (bytes {start} to {end})"
        )


class BinaryReaderWrongMagicError(FormatMismatchError):
    position: int
    expected_magic: bytes
    found_magic: bytes
    meaning: Optional[str]

    def __init__(self, position: int, expected_magic: bytes, found_magic: bytes, meaning: Optional[str]):
        self.position = position
        self.expected_magic = expected_magic
        self.found_magic = found_magic
        self.meaning = meaning

        super().__init__(
            f"At position {position}, expected {meaning or 'magic'} 0x{expected_magic.hex()}, but found "
            f"0x{found_magic.hex()}"
        )


class BinaryReaderSeekOutOfBoundsError(OutOfBoundsError):
    position: int
    bounds: Tuple[int, int]

    def __init__(self, position: int, start: int, end: int):
        self.position = position
        self.bounds = (start, end)

        super().__init__(f"Cannot seek to position {position}, outside of the window [{start}, {end}]")
