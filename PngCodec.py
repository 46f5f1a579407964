import logging
import zlib

from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from PngChunks import Chunk, Iso, StrictBytesReader, encode_chunk, iter_chunks, read_signature
from PngErrors import ErrorKind, PngError
from PngFilters import FilterStrategy, filter_scanlines, unfilter
from PngHeader import ImageSize, parse_ihdr
from utils.compression import deflate, inflate

logger = logging.getLogger(__name__)

IntermediateHook = Callable[[str, bytes], None]


@dataclass(frozen=True)
class Png:
    """
    A decoded 8-bit RGB or RGBA image.

    ihdr and iend are the chunks as read, idat the IDAT chunks in the
    order they were read. image_data holds height * stride unfiltered
    bytes, row-major, channels in R, G, B[, A] order.
    """
    ihdr: Chunk
    idat: tuple[Chunk, ...]
    iend: Chunk
    image_size: ImageSize
    image_data: bytes

    @classmethod
    def from_pixels(cls, image_size: ImageSize, image_data: bytes) -> "Png":
        """Build a Png from raw pixels, without any IDAT chunks yet."""
        return cls(
            ihdr=image_size.to_ihdr(),
            idat=(),
            iend=Chunk.create(Iso.IMAGE_TRAILER, b''),
            image_size=image_size,
            image_data=bytes(image_data),
        )

    @property
    def width(self) -> int:
        return self.image_size.width

    @property
    def height(self) -> int:
        return self.image_size.height

    @property
    def bytes_per_pixel(self) -> int:
        return self.image_size.bytes_per_pixel


class PngDecoder:
    def __init__(self, check_crc: bool = True, on_intermediate: IntermediateHook | None = None) -> None:
        self.check_crc = check_crc
        self.on_intermediate = on_intermediate

    def decode(self, buffer: bytes) -> Png:
        reader = StrictBytesReader(buffer)
        read_signature(reader)

        ihdr = iend = None
        idats = []
        for chunk in iter_chunks(reader, self.check_crc):
            chunk_start = reader.tell() - chunk.length - 3 * Iso.SUB_CHUNK_SIZE
            if chunk.is_ihdr:
                if ihdr is not None:
                    raise PngError(ErrorKind.DUPLICATE_IHDR, "multiple IHDR chunks", offset=chunk_start)
                if idats:
                    raise PngError(ErrorKind.CHUNK_ORDER, "IHDR chunk after IDAT", offset=chunk_start)
                ihdr = chunk
            elif chunk.is_idat:
                idats.append(chunk)
            elif chunk.is_iend:
                iend = chunk
            else:
                # Ignore unrecognized chunks, their CRC has still been checked
                kind = "critical" if Iso.chunk_is_critical(chunk.type) else "ancillary"
                logger.debug("ignoring %s chunk %s", kind, chunk.name)
                continue

            logger.debug("decoded chunk %s", chunk.name)
            if iend is not None:
                # Anything after IEND is not part of the image
                break

        if ihdr is None:
            raise PngError(ErrorKind.MISSING_IHDR, "no IHDR chunk found")
        if not idats:
            raise PngError(ErrorKind.MISSING_IDAT, "no IDAT chunk found")
        if iend is None:
            raise PngError(ErrorKind.MISSING_IEND, "no IEND chunk found")

        image_size = parse_ihdr(ihdr.data)
        image_data = self.decode_image_data(idats, image_size)
        return Png(ihdr, tuple(idats), iend, image_size, image_data)

    def decode_image_data(self, idats: list[Chunk], image_size: ImageSize) -> bytes:
        decompressed = inflate((idat.data for idat in idats), image_size.filtered_length)
        # inflate stops at anything longer, so only a short stream is left to catch
        if len(decompressed) != image_size.filtered_length:
            raise PngError(
                ErrorKind.SIZE_MISMATCH, "decompressed data length does not match image size",
                expected=image_size.filtered_length, actual=len(decompressed),
            )
        self._intermediate("decompressed_data", decompressed)

        unfiltered = unfilter(decompressed, image_size)
        self._intermediate("unfiltered_data", unfiltered)
        return unfiltered

    def _intermediate(self, name: str, data: bytes) -> None:
        if self.on_intermediate is not None:
            self.on_intermediate(name, data)


class PngEncoder:
    def __init__(
        self,
        max_idat_size: int = Iso.MAX_IDAT_SIZE,
        compression_level: int = zlib.Z_DEFAULT_COMPRESSION,
        filter_strategy: FilterStrategy = FilterStrategy.NONE,
        on_intermediate: IntermediateHook | None = None,
    ) -> None:
        if not 0 < max_idat_size <= Iso.MAX_CHUNK_LENGTH:
            raise ValueError(f"max_idat_size must be between 1 and {Iso.MAX_CHUNK_LENGTH}, not {max_idat_size}")
        self.max_idat_size = max_idat_size
        self.compression_level = compression_level
        self.filter_strategy = FilterStrategy(filter_strategy)
        self.on_intermediate = on_intermediate

    def encode(self, png: Png) -> bytes:
        idats = self.encode_image_data(png.image_size, png.image_data)
        return b''.join((
            Iso.SIGNATURE,
            encode_chunk(png.ihdr),
            *(encode_chunk(idat) for idat in idats),
            encode_chunk(png.iend),
        ))

    def encode_image_data(self, image_size: ImageSize, image_data: bytes) -> list[Chunk]:
        filtered = filter_scanlines(image_data, image_size, self.filter_strategy)
        self._intermediate("filtered_data", filtered)

        compressed = deflate(filtered, self.compression_level)
        self._intermediate("compressed_data", compressed)

        # Split the compressed stream into IDAT chunks of at most max_idat_size bytes
        idats = [
            Chunk.create(Iso.IMAGE_DATA, compressed[offset: offset + self.max_idat_size])
            for offset in range(0, len(compressed), self.max_idat_size)
        ]
        logger.debug("encoded %d bytes of image data into %d IDAT chunk(s)", len(compressed), len(idats))
        return idats

    def _intermediate(self, name: str, data: bytes) -> None:
        if self.on_intermediate is not None:
            self.on_intermediate(name, data)


def decode(
    buffer: bytes,
    *,
    check_crc: bool = True,
    on_intermediate: IntermediateHook | None = None,
) -> Png:
    return PngDecoder(check_crc, on_intermediate).decode(buffer)


def encode(
    png: Png,
    *,
    max_idat_size: int = Iso.MAX_IDAT_SIZE,
    compression_level: int = zlib.Z_DEFAULT_COMPRESSION,
    filter_strategy: FilterStrategy = FilterStrategy.NONE,
    on_intermediate: IntermediateHook | None = None,
) -> bytes:
    encoder = PngEncoder(max_idat_size, compression_level, filter_strategy, on_intermediate)
    return encoder.encode(png)


def decode_file(filename: str | Path, **options) -> Png:
    return decode(Path(filename).read_bytes(), **options)


def encode_file(filename: str | Path, png: Png, **options) -> None:
    Path(filename).write_bytes(encode(png, **options))


if __name__ == "__main__":
    from sys import argv
    logging.basicConfig(level=logging.DEBUG, format="%(message)s")
    if len(argv) in (2, 3):
        try:
            png = decode_file(argv[1])
        except PngError as e:
            print(f"{argv[1]}: {e}")
            exit(1)
        logger.info(
            "%dx%d, %d bytes per pixel, %d IDAT chunk(s)",
            png.width, png.height, png.bytes_per_pixel, len(png.idat),
        )
        if len(argv) == 3:
            encode_file(argv[2], png)
            logger.info("wrote %s", argv[2])
    else:
        print(f"usage: python {argv[0]} <filename> [output]")
        exit(1)
