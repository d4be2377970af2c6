"""
Decoder for 8-bit indexed PCX images, with colour-key transparency.

Only the single-plane, 256-colour, RLE-encoded variant is supported. The file consists of:

- a 128-byte header
- the RLE-encoded scanlines
- a 769-byte trailer: the marker byte 0x0C followed by 256 RGB triples

Any pixel whose palette colour is pure green ``(0, 255, 0)`` is made fully transparent; all others are fully opaque.
"""

from dataclasses import dataclass
from typing import Tuple

from vpkit.errors import UnsupportedVariantError, MalformedStructureError, TruncatedInputError


PCX_HEADER_SIZE = 128
PCX_PALETTE_MARKER = 0x0C
PCX_PALETTE_COLORS = 256
PCX_PALETTE_BLOCK_SIZE = 1 + PCX_PALETTE_COLORS * 3
PCX_MIN_FILE_SIZE = PCX_HEADER_SIZE + PCX_PALETTE_BLOCK_SIZE

PCX_MANUFACTURER = 0x0A
PCX_VERSION = 5
PCX_ENCODING_RLE = 1
PCX_BITS_PER_PIXEL = 8

COLORKEY = (0x00, 0xFF, 0x00)


def parse_pcx_header(image_bytes: bytes) -> 'PCXHeader':
    from ._decode import read_pcx_header

    return read_pcx_header(image_bytes)


def decode_raster(image_bytes: bytes) -> 'RasterImage':
    """
    Decodes an 8-bit indexed PCX image to RGBA.

    Args:
        image_bytes: The complete contents of the PCX file (any bytes-like object).

    Returns:
        A `RasterImage` with one RGBA quadruple per pixel, rows top to bottom.

    Raises:
        TruncatedInputError: If the data is too short to hold the header and palette, or the scanlines end early.
        FormatMismatchError: If the data is not a PCX image.
        UnsupportedVariantError: If the image is not 8-bit RLE-encoded.
        MalformedStructureError: If the header dimensions are inconsistent or the palette marker is missing.
    """
    from ._decode import decode_pcx

    return decode_pcx(image_bytes)


@dataclass(frozen=True)
class PCXHeader:
    manufacturer: int
    version: int
    encoding: int
    bits_per_pixel: int
    xmin: int
    ymin: int
    xmax: int
    ymax: int
    planes: int
    bytes_per_line: int

    @property
    def width(self) -> int:
        return self.xmax - self.xmin + 1

    @property
    def height(self) -> int:
        return self.ymax - self.ymin + 1


@dataclass(frozen=True)
class RasterImage:
    width: int
    height: int
    pixels: bytes

    @property
    def stride(self) -> int:
        return self.width * 4

    def pixel_at(self, x: int, y: int) -> Tuple[int, int, int, int]:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) is outside the {self.width}x{self.height} image")

        pos = y * self.stride + x * 4

        return tuple(self.pixels[pos:pos + 4])

    def row(self, y: int) -> bytes:
        if not (0 <= y < self.height):
            raise IndexError(f"Row {y} is outside the {self.width}x{self.height} image")

        return self.pixels[y * self.stride:(y + 1) * self.stride]

    def transparent_pixel_count(self) -> int:
        return self.pixels[3::4].count(0)


class PCXTooSmallError(TruncatedInputError):
    size: int

    def __init__(self, size: int):
        self.size = size

        super().__init__(
            f"Data of {size} bytes is too small to be an 8-bit PCX image (need at least {PCX_MIN_FILE_SIZE} bytes for "
            f"the header and palette)"
        )


class UnsupportedPCXVariantError(UnsupportedVariantError):
    field: str
    expected: int
    found: int

    def __init__(self, field: str, expected: int, found: int):
        self.field = field
        self.expected = expected
        self.found = found

        super().__init__(f"Unsupported PCX {field} {found} (only {expected} is supported)")


class InvalidPCXDimensionsError(MalformedStructureError):
    width: int
    height: int
    bytes_per_line: int

    def __init__(self, width: int, height: int, bytes_per_line: int, reason: str):
        self.width = width
        self.height = height
        self.bytes_per_line = bytes_per_line

        super().__init__(
            f"Invalid PCX dimensions {width}x{height} with {bytes_per_line} bytes per line: {reason}"
        )


class MissingPaletteMarkerError(MalformedStructureError):
    position: int
    found: int

    def __init__(self, position: int, found: int):
        self.position = position
        self.found = found

        super().__init__(
            f"At position {position}, expected the 256-colour palette marker 0x{PCX_PALETTE_MARKER:02x}, but found "
            f"0x{found:02x}"
        )


class ScanlineTruncatedError(TruncatedInputError):
    row: int
    produced: int
    bytes_per_line: int

    def __init__(self, row: int, produced: int, bytes_per_line: int):
        self.row = row
        self.produced = produced
        self.bytes_per_line = bytes_per_line

        super().__init__(
            f"Image data ends in the middle of scanline {row} ({produced} of {bytes_per_line} bytes decoded)"
        )
