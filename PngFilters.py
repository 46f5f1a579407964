"""
Scanline filtering (https://www.w3.org/TR/png/#9Filters)

Named filter bytes, for the byte x being filtered:
- a: the corresponding byte in the pixel immediately before the pixel containing x
- b: the corresponding byte in the previous scanline
- c: the corresponding byte in the pixel immediately before the pixel containing b

    | c | b |
    | a | x |

The byte to the left is the one offset by the number of bytes per pixel.
Neighbours outside the image are treated as 0. All arithmetic is on
unsigned bytes, modulo 256.
"""
from enum import IntEnum, StrEnum

from PngErrors import ErrorKind, PngError
from PngHeader import ImageSize


class FilterType(IntEnum):
    NONE = 0
    SUB = 1
    UP = 2
    AVERAGE = 3
    PAETH = 4


class FilterStrategy(StrEnum):
    NONE = "none"  # filter type 0 on every row
    ADAPTIVE = "adaptive"  # minimum sum of absolute differences per row


def paeth_predictor(a: int, b: int, c: int) -> int:
    """
    Return whichever of a, b, c is closest to a + b - c, preferring a,
    then b, on ties.
    """
    p = a + b - c
    pa = abs(p - a)
    pb = abs(p - b)
    pc = abs(p - c)
    if pa <= pb and pa <= pc:
        return a
    if pb <= pc:
        return b
    return c


def unfilter(filtered: bytes, image_size: ImageSize) -> bytes:
    """
    Reverse the per-scanline filters of a decompressed IDAT stream.

    Each scanline is a filter-type byte followed by stride filtered
    bytes. Rows are reconstructed in order: a is read from the row being
    rebuilt, b and c from the row above, both in the output buffer.
    """
    height = image_size.height
    stride = image_size.stride
    bpp = image_size.bytes_per_pixel

    if len(filtered) != image_size.filtered_length:
        raise PngError(
            ErrorKind.SIZE_MISMATCH, "decompressed data length does not match image size",
            expected=image_size.filtered_length, actual=len(filtered),
        )

    filtered = memoryview(filtered)
    unfiltered = bytearray(height * stride)

    for r in range(height):
        s = r * stride
        d = r * (stride + 1)
        up = s - stride  # start of the previous row, negative on the first
        filter_type = filtered[d]
        line = filtered[d + 1: d + 1 + stride]

        match filter_type:
            case FilterType.NONE:
                unfiltered[s: s + stride] = line
            case FilterType.SUB:
                for j in range(stride):
                    a = unfiltered[s + j - bpp] if j >= bpp else 0
                    unfiltered[s + j] = (line[j] + a) & 0xff
            case FilterType.UP:
                if r == 0:
                    unfiltered[s: s + stride] = line
                    continue
                for j in range(stride):
                    unfiltered[s + j] = (line[j] + unfiltered[up + j]) & 0xff
            case FilterType.AVERAGE:
                for j in range(stride):
                    a = unfiltered[s + j - bpp] if j >= bpp else 0
                    b = unfiltered[up + j] if r else 0
                    unfiltered[s + j] = (line[j] + ((a + b) >> 1)) & 0xff
            case FilterType.PAETH:
                for j in range(stride):
                    if j >= bpp:
                        a = unfiltered[s + j - bpp]
                        c = unfiltered[up + j - bpp] if r else 0
                    else:
                        a = c = 0
                    b = unfiltered[up + j] if r else 0
                    unfiltered[s + j] = (line[j] + paeth_predictor(a, b, c)) & 0xff
            case _:
                raise PngError(
                    ErrorKind.UNSUPPORTED_FILTER_TYPE,
                    f"unsupported filter type {filter_type} on scanline {r}",
                    offset=d, expected=tuple(int(ft) for ft in FilterType), actual=filter_type,
                )

    return bytes(unfiltered)


def filter_row(filter_type: int, row: bytes, previous: bytes | None, bytes_per_pixel: int) -> bytes:
    """
    Apply one filter to a row of unfiltered bytes. previous is the
    unfiltered row above, or None for the first row.
    """
    stride = len(row)
    if previous is None:
        previous = bytes(stride)

    match filter_type:
        case FilterType.NONE:
            return bytes(row)
        case FilterType.SUB:
            return bytes(
                (row[j] - (row[j - bytes_per_pixel] if j >= bytes_per_pixel else 0)) & 0xff
                for j in range(stride)
            )
        case FilterType.UP:
            return bytes((row[j] - previous[j]) & 0xff for j in range(stride))
        case FilterType.AVERAGE:
            return bytes(
                (row[j] - (((row[j - bytes_per_pixel] if j >= bytes_per_pixel else 0) + previous[j]) >> 1)) & 0xff
                for j in range(stride)
            )
        case FilterType.PAETH:
            filtered = bytearray(stride)
            for j in range(stride):
                if j >= bytes_per_pixel:
                    a = row[j - bytes_per_pixel]
                    c = previous[j - bytes_per_pixel]
                else:
                    a = c = 0
                filtered[j] = (row[j] - paeth_predictor(a, previous[j], c)) & 0xff
            return bytes(filtered)

    raise PngError(ErrorKind.UNSUPPORTED_FILTER_TYPE, f"unsupported filter type {filter_type}", actual=filter_type)


def sum_of_absolute_differences(filtered: bytes) -> int:
    # Bytes are read as signed deltas: 255 is -1, not 255
    return sum(byte if byte < 128 else 256 - byte for byte in filtered)


def choose_filter(row: bytes, previous: bytes | None, bytes_per_pixel: int) -> tuple[FilterType, bytes]:
    """
    Pick the filter with the lowest sum of absolute differences, the
    lower filter type winning ties.
    """
    candidates = (
        (filter_type, filter_row(filter_type, row, previous, bytes_per_pixel))
        for filter_type in FilterType
    )
    return min(candidates, key=lambda candidate: sum_of_absolute_differences(candidate[1]))


def filter_scanlines(
    image_data: bytes,
    image_size: ImageSize,
    strategy: FilterStrategy = FilterStrategy.NONE,
) -> bytes:
    """
    Prefix every row with its filter type and filter it. With the
    default strategy every row uses filter type 0.
    """
    height = image_size.height
    stride = image_size.stride

    if len(image_data) != image_size.image_data_length:
        raise PngError(
            ErrorKind.SIZE_MISMATCH, "image data length does not match image size",
            expected=image_size.image_data_length, actual=len(image_data),
        )

    image_data = memoryview(image_data)
    filtered = bytearray()
    previous = None
    for r in range(height):
        row = image_data[r * stride: (r + 1) * stride]
        match strategy:
            case FilterStrategy.NONE:
                filter_type, line = FilterType.NONE, row
            case FilterStrategy.ADAPTIVE:
                filter_type, line = choose_filter(row, previous, image_size.bytes_per_pixel)
            case _:
                raise ValueError(f"unknown filter strategy: {strategy!r}")
        filtered.append(filter_type)
        filtered.extend(line)
        previous = row

    return bytes(filtered)
