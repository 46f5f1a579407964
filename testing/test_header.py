import pytest

from PngChunks import Chunk
from PngErrors import ErrorKind, PngError
from PngHeader import ColorType, ImageSize, parse_ihdr
from png_samples import RGB, RGBA, ihdr_data


class TestParseIhdr:
    def test_truecolour(self):
        image_size = parse_ihdr(ihdr_data(5, 7, RGB))
        assert image_size == ImageSize(5, 7, 3)
        assert image_size.stride == 15
        assert image_size.scanline_length == 16
        assert image_size.image_data_length == 105
        assert image_size.filtered_length == 112

    def test_truecolour_with_alpha(self):
        image_size = ImageSize.from_ihdr(Chunk.create(b"IHDR", ihdr_data(2, 3, RGBA)))
        assert image_size.bytes_per_pixel == 4
        assert image_size.stride == 8
        assert image_size.color_type == ColorType.TRUECOLOUR_WITH_ALPHA

    @pytest.mark.parametrize("fields, kind", [
        ({"bit_depth": 16}, ErrorKind.UNSUPPORTED_BIT_DEPTH),
        ({"bit_depth": 1}, ErrorKind.UNSUPPORTED_BIT_DEPTH),
        ({"color_type": 0}, ErrorKind.UNSUPPORTED_COLOR_TYPE),
        ({"color_type": 3}, ErrorKind.UNSUPPORTED_COLOR_TYPE),
        ({"color_type": 4}, ErrorKind.UNSUPPORTED_COLOR_TYPE),
        ({"compression": 1}, ErrorKind.UNSUPPORTED_COMPRESSION),
        ({"filter": 1}, ErrorKind.UNSUPPORTED_FILTER),
        ({"interlace": 1}, ErrorKind.UNSUPPORTED_INTERLACE),
    ])
    def test_unsupported(self, fields, kind):
        with pytest.raises(PngError) as e:
            parse_ihdr(ihdr_data(1, 1, **fields))
        assert e.value.kind == kind

    @pytest.mark.parametrize("width, height", [(0, 1), (1, 0), (1 << 31, 1)])
    def test_invalid_dimensions(self, width, height):
        with pytest.raises(PngError) as e:
            parse_ihdr(ihdr_data(width, height))
        assert e.value.kind == ErrorKind.INVALID_DIMENSIONS

    def test_wrong_length(self):
        with pytest.raises(PngError) as e:
            parse_ihdr(ihdr_data(1, 1) + b"\0")
        assert e.value.kind == ErrorKind.INVALID_IHDR
        assert (e.value.expected, e.value.actual) == (13, 14)


class TestImageSize:
    def test_to_ihdr(self):
        assert ImageSize(640, 480, 4).to_ihdr_data() == ihdr_data(640, 480, RGBA)
        assert ImageSize(1, 1, 3).to_ihdr() == Chunk.create(b"IHDR", ihdr_data(1, 1, RGB))
