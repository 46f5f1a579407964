import struct

from dataclasses import dataclass
from enum import IntEnum

from PngChunks import Chunk, Iso
from PngErrors import ErrorKind, PngError


class ColorType(IntEnum):
    TRUECOLOUR = 2
    TRUECOLOUR_WITH_ALPHA = 6


# See https://www.w3.org/TR/png/#11IHDR
IHDR_FORMAT = "!II5B"
IHDR_LENGTH = struct.calcsize(IHDR_FORMAT)  # 13
MAX_DIMENSION = (1 << 31) - 1

BIT_DEPTH = 8
COMPRESSION_METHOD = 0
FILTER_METHOD = 0
INTERLACE_METHOD = 0

BYTES_PER_PIXEL = {
    ColorType.TRUECOLOUR: 3,
    ColorType.TRUECOLOUR_WITH_ALPHA: 4,
}


@dataclass(frozen=True)
class ImageSize:
    """
    width, height: in pixels
    bytes_per_pixel: 3 for RGB, 4 for RGBA
    stride: bytes in one unfiltered row of pixels (width * bytes_per_pixel)
    """
    width: int
    height: int
    bytes_per_pixel: int

    @property
    def stride(self) -> int:
        return self.width * self.bytes_per_pixel

    @property
    def scanline_length(self) -> int:
        # filter-type byte + filtered row
        return self.stride + 1

    @property
    def image_data_length(self) -> int:
        return self.height * self.stride

    @property
    def filtered_length(self) -> int:
        return self.height * self.scanline_length

    @property
    def color_type(self) -> ColorType:
        for color_type, bytes_per_pixel in BYTES_PER_PIXEL.items():
            if bytes_per_pixel == self.bytes_per_pixel:
                return color_type
        raise PngError(
            ErrorKind.UNSUPPORTED_COLOR_TYPE,
            f"no color type has {self.bytes_per_pixel} bytes per pixel",
        )

    @classmethod
    def from_ihdr(cls, ihdr: Chunk) -> "ImageSize":
        return parse_ihdr(ihdr.data)

    def to_ihdr_data(self) -> bytes:
        return struct.pack(
            IHDR_FORMAT, self.width, self.height, BIT_DEPTH, self.color_type,
            COMPRESSION_METHOD, FILTER_METHOD, INTERLACE_METHOD,
        )

    def to_ihdr(self) -> Chunk:
        return Chunk.create(Iso.IMAGE_HEADER, self.to_ihdr_data())


def parse_ihdr(data: bytes) -> ImageSize:
    """
    Interpret the 13-byte IHDR data, rejecting anything outside 8-bit
    non-interlaced RGB/RGBA.
    """
    if len(data) != IHDR_LENGTH:
        raise PngError(
            ErrorKind.INVALID_IHDR, "IHDR data has the wrong length",
            expected=IHDR_LENGTH, actual=len(data),
        )

    (width, height, bit_depth, color_type,
     compression_method, filter_method, interlace_method) = struct.unpack(IHDR_FORMAT, data)

    for name, dimension in (("width", width), ("height", height)):
        if not 0 < dimension <= MAX_DIMENSION:
            raise PngError(ErrorKind.INVALID_DIMENSIONS, f"{name} out of range", actual=dimension)

    if bit_depth != BIT_DEPTH:
        raise PngError(
            ErrorKind.UNSUPPORTED_BIT_DEPTH, "bit depth not supported",
            offset=8, expected=BIT_DEPTH, actual=bit_depth,
        )
    if color_type not in BYTES_PER_PIXEL:
        raise PngError(
            ErrorKind.UNSUPPORTED_COLOR_TYPE, "color type not supported",
            offset=9, expected=tuple(int(ct) for ct in ColorType), actual=color_type,
        )
    if compression_method != COMPRESSION_METHOD:
        raise PngError(
            ErrorKind.UNSUPPORTED_COMPRESSION, "compression method not supported",
            offset=10, expected=COMPRESSION_METHOD, actual=compression_method,
        )
    if filter_method != FILTER_METHOD:
        raise PngError(
            ErrorKind.UNSUPPORTED_FILTER, "filter method not supported",
            offset=11, expected=FILTER_METHOD, actual=filter_method,
        )
    if interlace_method != INTERLACE_METHOD:
        raise PngError(
            ErrorKind.UNSUPPORTED_INTERLACE, "interlace method not supported",
            offset=12, expected=INTERLACE_METHOD, actual=interlace_method,
        )

    return ImageSize(width, height, BYTES_PER_PIXEL[ColorType(color_type)])
