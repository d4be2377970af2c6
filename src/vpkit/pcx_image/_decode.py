import logging

from vpkit.binary_utils.BinaryReader import BinaryReader

from . import PCXHeader, RasterImage, PCXTooSmallError, UnsupportedPCXVariantError, InvalidPCXDimensionsError, \
    MissingPaletteMarkerError, PCX_HEADER_SIZE, PCX_PALETTE_BLOCK_SIZE, PCX_PALETTE_MARKER, PCX_MIN_FILE_SIZE, \
    PCX_MANUFACTURER, PCX_VERSION, PCX_ENCODING_RLE, PCX_BITS_PER_PIXEL, COLORKEY
from ._rle import decompress_pixel_indices


LOG = logging.getLogger(__name__)


def read_pcx_header(image_bytes: bytes) -> PCXHeader:
    reader = BinaryReader(image_bytes, big_endian=False)

    header_reader = reader.window(0, min(PCX_HEADER_SIZE, reader.end), meaning='PCX header')
    header_reader.expect_magic(bytes((PCX_MANUFACTURER,)), 'PCX manufacturer byte')

    version, encoding, bits_per_pixel, xmin, ymin, xmax, ymax, planes, bytes_per_line = \
        header_reader.read_struct('3B4h4x48xxBh', 'PCX header')

    header = PCXHeader(
        manufacturer=PCX_MANUFACTURER,
        version=version,
        encoding=encoding,
        bits_per_pixel=bits_per_pixel,
        xmin=xmin,
        ymin=ymin,
        xmax=xmax,
        ymax=ymax,
        planes=planes,
        bytes_per_line=bytes_per_line,
    )

    _check_variant(header)
    _check_dimensions(header)

    return header


def _check_variant(header: PCXHeader):
    for field, expected, found in (
        ('version', PCX_VERSION, header.version),
        ('encoding', PCX_ENCODING_RLE, header.encoding),
        ('bit depth', PCX_BITS_PER_PIXEL, header.bits_per_pixel),
    ):
        if found != expected:
            raise UnsupportedPCXVariantError(field, expected, found)


def _check_dimensions(header: PCXHeader):
    if header.width < 1 or header.height < 1:
        raise InvalidPCXDimensionsError(
            header.width, header.height, header.bytes_per_line, "bounding box is empty"
        )
    if header.bytes_per_line < header.width:
        raise InvalidPCXDimensionsError(
            header.width, header.height, header.bytes_per_line, "scanlines are narrower than the image"
        )


def decode_pcx(image_bytes: bytes) -> RasterImage:
    reader = BinaryReader(image_bytes, big_endian=False)

    total_size = reader.end
    if total_size < PCX_MIN_FILE_SIZE:
        raise PCXTooSmallError(total_size)

    header = read_pcx_header(image_bytes)

    # Everything past the end of the scanline data belongs to the palette block
    body_end = total_size - PCX_PALETTE_BLOCK_SIZE

    palette_reader = reader.window(body_end, PCX_PALETTE_BLOCK_SIZE, meaning='PCX palette')
    marker = palette_reader.read_uint8('palette marker')
    if marker != PCX_PALETTE_MARKER:
        raise MissingPaletteMarkerError(body_end, marker)

    palette = palette_reader.read_remainder()

    indices = decompress_pixel_indices(
        reader.window(PCX_HEADER_SIZE, body_end - PCX_HEADER_SIZE, meaning='PCX image data'),
        header.width, header.height, header.bytes_per_line
    )

    pixels = _indices_to_rgba(indices, palette)

    LOG.debug("Decoded %dx%d PCX image", header.width, header.height)

    return RasterImage(width=header.width, height=header.height, pixels=pixels)


def _indices_to_rgba(indices: bytes, palette: bytes) -> bytes:
    reds = palette[0::3]
    greens = palette[1::3]
    blues = palette[2::3]
    alphas = bytes(
        0 if (r, g, b) == COLORKEY else 0xFF for r, g, b in zip(reds, greens, blues)
    )

    rgba = bytearray(len(indices) * 4)
    rgba[0::4] = indices.translate(reds)
    rgba[1::4] = indices.translate(greens)
    rgba[2::4] = indices.translate(blues)
    rgba[3::4] = indices.translate(alphas)

    return bytes(rgba)
