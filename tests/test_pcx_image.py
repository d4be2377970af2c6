import unittest

from vpkit.binary_utils.BinaryReader import BinaryReader
from vpkit.errors import TruncatedInputError, FormatMismatchError, UnsupportedVariantError, MalformedStructureError
from vpkit.pcx_image import decode_raster, parse_pcx_header, RasterImage, MissingPaletteMarkerError, \
    ScanlineTruncatedError, PCXTooSmallError, InvalidPCXDimensionsError, UnsupportedPCXVariantError, \
    PCX_MIN_FILE_SIZE
from vpkit.pcx_image._rle import decompress_scanline

from tests.builders import make_pcx, make_pcx_header, make_palette, encode_literals, GREEN


RED = (200, 10, 10)
BLUE = (10, 10, 200)


class DecodeExampleTest(unittest.TestCase):
    def test_two_by_two_with_colorkey(self):
        data = make_pcx(
            2, 2, bytes([0xC2, 0x05, 0x07, 0x08]),
            colors={5: GREEN, 7: (1, 2, 3), 8: (4, 5, 6)}
        )

        image = decode_raster(data)

        self.assertEqual((image.width, image.height), (2, 2))
        self.assertEqual(image.pixel_at(0, 0)[3], 0)
        self.assertEqual(image.pixel_at(1, 0)[3], 0)
        self.assertEqual(image.pixel_at(0, 1), (1, 2, 3, 255))
        self.assertEqual(image.pixel_at(1, 1), (4, 5, 6, 255))
        self.assertEqual(image.transparent_pixel_count(), 2)


class DecodeTest(unittest.TestCase):
    def test_length_and_alpha_domain(self):
        width, height = 7, 5
        values = [(x * 37 + y * 11) % 256 for y in range(height) for x in range(width)]
        body = b''.join(encode_literals(values[y * width:(y + 1) * width]) for y in range(height))
        colors = {index: GREEN for index in range(0, 256, 3)}

        image = decode_raster(make_pcx(width, height, body, colors=colors))

        self.assertEqual(len(image.pixels), width * height * 4)
        self.assertTrue(all(alpha in (0, 255) for alpha in image.pixels[3::4]))

        for i, value in enumerate(values):
            expected_alpha = 0 if value % 3 == 0 else 255
            self.assertEqual(image.pixels[i * 4 + 3], expected_alpha)

    def test_colorkey_is_exact(self):
        near_greens = {1: (0, 254, 0), 2: (1, 255, 0), 3: (0, 255, 1), 4: GREEN}
        image = decode_raster(make_pcx(4, 1, bytes([1, 2, 3, 4]), colors=near_greens))

        self.assertEqual([image.pixel_at(x, 0)[3] for x in range(4)], [255, 255, 255, 0])

    def test_every_green_index_is_transparent(self):
        image = decode_raster(make_pcx(3, 1, bytes([10, 20, 30]), colors={10: GREEN, 30: GREEN, 20: RED}))

        self.assertEqual(image.row(0), bytes([0, 255, 0, 0, *RED, 255, 0, 255, 0, 0]))

    def test_padding_bytes_are_discarded(self):
        body = bytes([1, 2, 0x63, 3, 4, 0x63])
        image = decode_raster(make_pcx(2, 2, body, colors={1: RED, 2: BLUE, 3: BLUE, 4: RED}, bytes_per_line=3))

        self.assertEqual((image.width, image.height), (2, 2))
        self.assertEqual(image.pixel_at(0, 0)[:3], RED)
        self.assertEqual(image.pixel_at(1, 0)[:3], BLUE)
        self.assertEqual(image.pixel_at(0, 1)[:3], BLUE)
        self.assertEqual(image.pixel_at(1, 1)[:3], RED)

    def test_runs_of_high_values(self):
        image = decode_raster(make_pcx(3, 1, bytes([0xC3, 0xFE]), colors={0xFE: BLUE}))

        self.assertEqual(image.pixels, bytes([*BLUE, 255]) * 3)

    def test_dimensions_from_offset_bounding_box(self):
        image = decode_raster(make_pcx(2, 1, bytes([0, 0]), xmin=10, ymin=-5))

        self.assertEqual((image.width, image.height), (2, 1))

    def test_leftover_data_is_ignored(self):
        image = decode_raster(make_pcx(1, 1, bytes([9, 9, 9, 9])))

        self.assertEqual(image.width * image.height, 1)

    def test_run_overshooting_scanline_is_clipped(self):
        image = decode_raster(make_pcx(2, 2, bytes([0xC5, 1, 0xC2, 2]), colors={1: RED, 2: BLUE}))

        self.assertEqual(image.row(0), bytes([*RED, 255]) * 2)
        self.assertEqual(image.row(1), bytes([*BLUE, 255]) * 2)

    def test_result_type(self):
        image = decode_raster(bytearray(make_pcx(1, 1, bytes([0]))))

        self.assertIsInstance(image, RasterImage)
        self.assertIsInstance(image.pixels, bytes)


class DecodeErrorsTest(unittest.TestCase):
    def test_too_small(self):
        for size in (0, 10, 128, PCX_MIN_FILE_SIZE - 1):
            with self.assertRaises(PCXTooSmallError):
                decode_raster(make_pcx(1, 1, b'')[:size])

    def test_too_small_is_truncated_input(self):
        with self.assertRaises(TruncatedInputError):
            decode_raster(b'\x0a\x05\x01\x08')

    def test_not_a_pcx(self):
        data = b'\x89PNG' + make_pcx(1, 1, bytes([0]))[4:]

        with self.assertRaises(FormatMismatchError):
            decode_raster(data)

    def test_unsupported_bit_depths(self):
        for field, value in (('bits_per_pixel', 1), ('bits_per_pixel', 4), ('version', 3), ('encoding', 0)):
            with self.assertRaises(UnsupportedPCXVariantError) as cm:
                decode_raster(make_pcx(1, 1, bytes([0]), **{field: value}))

            self.assertIsInstance(cm.exception, UnsupportedVariantError)

    def test_missing_palette_marker(self):
        with self.assertRaises(MissingPaletteMarkerError) as cm:
            decode_raster(make_pcx(2, 1, bytes([1, 2]), marker=0x00))

        self.assertIsInstance(cm.exception, MalformedStructureError)

    def test_truncated_scanline(self):
        with self.assertRaises(ScanlineTruncatedError) as cm:
            decode_raster(make_pcx(2, 2, bytes([1, 2, 3])))

        self.assertEqual(cm.exception.row, 1)
        self.assertEqual(cm.exception.produced, 1)

    def test_missing_run_value(self):
        with self.assertRaises(TruncatedInputError):
            decode_raster(make_pcx(2, 1, bytes([0xC2])))

    def test_empty_body(self):
        with self.assertRaises(TruncatedInputError):
            decode_raster(make_pcx(1, 1, b''))

    def test_scanlines_narrower_than_image(self):
        with self.assertRaises(InvalidPCXDimensionsError):
            decode_raster(make_pcx(4, 1, bytes([0, 0]), bytes_per_line=2))

    def test_empty_bounding_box(self):
        header = bytearray(make_pcx_header(1, 1))
        header[8:10] = (-3).to_bytes(2, 'little', signed=True)

        with self.assertRaises(MalformedStructureError):
            decode_raster(bytes(header) + bytes([0]) + b'\x0c' + make_palette())

    def test_zero_length_runs_still_terminate(self):
        with self.assertRaises(TruncatedInputError):
            decode_raster(make_pcx(1, 1, bytes([0xC0, 7]) * 50))


class ParseHeaderTest(unittest.TestCase):
    def test_fields(self):
        header = parse_pcx_header(make_pcx(3, 2, bytes([0]) * 8, bytes_per_line=4, xmin=1, ymin=2))

        self.assertEqual((header.xmin, header.ymin, header.xmax, header.ymax), (1, 2, 3, 3))
        self.assertEqual((header.width, header.height), (3, 2))
        self.assertEqual(header.bytes_per_line, 4)
        self.assertEqual(header.bits_per_pixel, 8)
        self.assertEqual(header.planes, 1)

    def test_short_header(self):
        with self.assertRaises(TruncatedInputError):
            parse_pcx_header(make_pcx_header(1, 1)[:50])


class DecompressScanlineTest(unittest.TestCase):
    def test_stops_exactly_at_line_end(self):
        reader = BinaryReader(bytes([0xC2, 0x05, 0x07, 0x08, 0xAA, 0xBB]))

        self.assertEqual(decompress_scanline(reader, 4), bytearray([5, 5, 7, 8]))
        self.assertEqual(reader.tell(), 4)

    def test_literal_only(self):
        reader = BinaryReader(bytes([1, 2, 3]))

        self.assertEqual(decompress_scanline(reader, 3), bytearray([1, 2, 3]))
        self.assertTrue(reader.eof())

    def test_reads_only_within_window(self):
        data = bytes([0xC3, 0x01]) + bytes([0x0C])
        reader = BinaryReader(data, end=1)

        with self.assertRaises(ScanlineTruncatedError):
            decompress_scanline(reader, 3)
