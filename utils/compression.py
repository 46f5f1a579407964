import logging
import zlib

from typing import Iterable

from PngErrors import ErrorKind, PngError

logger = logging.getLogger(__name__)


def deflate(data: bytes, level: int = zlib.Z_DEFAULT_COMPRESSION) -> bytes:
    """
    Compress data into a zlib stream (2-byte header, DEFLATE blocks,
    Adler-32 trailer) as PNG requires for the IDAT payload.
    """
    try:
        compressor = zlib.compressobj(level, zlib.DEFLATED, zlib.MAX_WBITS)
        return compressor.compress(data) + compressor.flush()
    except (zlib.error, ValueError) as e:
        raise PngError(ErrorKind.DEFLATE_FAILURE, str(e)) from e


def inflate(segments: Iterable[bytes], max_length: int | None = None) -> bytes:
    """
    Decompress a zlib stream split across segments. The stream must be
    complete: a missing Adler-32 trailer or end-of-stream is a failure.

    With max_length, decompression stops with a SizeMismatch as soon as
    the output grows past it, so the output never exceeds max_length + 1
    bytes whatever the input expands to.
    """
    decompressor = zlib.decompressobj(zlib.MAX_WBITS)
    decompressed = bytearray()
    trailing = 0

    def check_length() -> None:
        if max_length is not None and len(decompressed) > max_length:
            raise PngError(
                ErrorKind.SIZE_MISMATCH, "decompressed data is longer than the image",
                expected=max_length, actual=len(decompressed),
            )

    try:
        for segment in segments:
            if decompressor.eof:
                trailing += len(segment)
                continue
            data = segment
            while data:
                # 0 means no limit to zlib
                limit = 0 if max_length is None else max_length - len(decompressed) + 1
                decompressed.extend(decompressor.decompress(data, limit))
                check_length()
                if decompressor.eof:
                    trailing += len(decompressor.unused_data)
                    break
                data = decompressor.unconsumed_tail
        decompressed.extend(decompressor.flush())
        check_length()
    except zlib.error as e:
        raise PngError(ErrorKind.INFLATE_FAILURE, str(e)) from e

    if not decompressor.eof:
        raise PngError(ErrorKind.INFLATE_FAILURE, "incomplete or truncated zlib stream")
    if trailing:
        logger.warning("ignoring %d bytes after the end of the zlib stream", trailing)
    return bytes(decompressed)
