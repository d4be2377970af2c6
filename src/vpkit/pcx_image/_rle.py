"""
PCX run-length decompression.

Each encoded byte is either a literal pixel value, or, if its top two bits are set, a run count (low 6 bits) to be
applied to the byte following it. Scanlines are encoded one after the other with no alignment in between.
"""

import logging

from vpkit.binary_utils.BinaryReader import BinaryReader

from . import ScanlineTruncatedError


LOG = logging.getLogger(__name__)


RUN_FLAG = 0xC0
RUN_COUNT_MASK = 0x3F


def decompress_scanline(reader: BinaryReader, bytes_per_line: int, row: int = 0) -> bytearray:
    """
    Decodes a single scanline from the reader's current position.

    Reading stops as soon as `bytes_per_line` bytes have been produced, so the reader is left at the start of the
    next scanline. A run that would extend past the end of the scanline is cut short; its excess is dropped.

    Every iteration consumes at least one input byte, so the work done is bounded by the size of the reader's window
    regardless of what the data claims.

    Raises:
        ScanlineTruncatedError: If the reader's window ends before the scanline is complete.
    """
    scanline = bytearray(bytes_per_line)
    produced = 0

    while produced < bytes_per_line:
        if reader.eof():
            raise ScanlineTruncatedError(row, produced, bytes_per_line)

        code = reader.read_byte()

        if (code & RUN_FLAG) == RUN_FLAG:
            if reader.eof():
                raise ScanlineTruncatedError(row, produced, bytes_per_line)

            value = reader.read_byte()
            count = min(code & RUN_COUNT_MASK, bytes_per_line - produced)

            scanline[produced:produced + count] = bytes((value,)) * count
            produced += count
        else:
            scanline[produced] = code
            produced += 1

    return scanline


def decompress_pixel_indices(reader: BinaryReader, width: int, height: int, bytes_per_line: int) -> bytes:
    """
    Decodes `height` scanlines and keeps the first `width` bytes of each (the rest is line padding).

    Returns:
        The palette indices of the image, row by row, ``width * height`` bytes in total.
    """
    indices = bytearray()

    for row in range(height):
        indices += decompress_scanline(reader, bytes_per_line, row)[:width]

    if not reader.eof():
        LOG.debug("%d bytes of image data left over after the last scanline", reader.bytes_remaining())

    return bytes(indices)
