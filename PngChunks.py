import struct

from dataclasses import dataclass
from io import BytesIO
from typing import Iterator

from PngErrors import ErrorKind, PngError
from utils.crc import crc32


class Iso:

    # See http://www.libpng.org/pub/png/spec/iso/index-object.html#5PNG-file-signature
    SIGNATURE = b'\x89PNG\r\n\x1a\n'
    SUB_CHUNK_SIZE = 4
    CHUNK_NAME_ENCODING = 'ASCII'

    # Critical chunks handled by this codec
    IMAGE_HEADER = b'IHDR'
    IMAGE_DATA = b'IDAT'
    IMAGE_TRAILER = b'IEND'

    # Chunk lengths are limited to 2^31 - 1; IDATs written by this codec
    # default to 2^16 - 1
    MAX_CHUNK_LENGTH = (1 << 31) - 1
    MAX_IDAT_SIZE = (1 << 16) - 1

    @classmethod
    def chunk_is_critical(cls, name: bytes) -> bool:
        """
        Test if the chunk is critical: the 5th bit of the first byte of
        the name is not set (i.e. the first character is uppercase)
        """
        return not (name[0] & 0x20)

    @classmethod
    def chunk_name(cls, name: bytes) -> str:
        try:
            decoded = name.decode(cls.CHUNK_NAME_ENCODING)
        except UnicodeDecodeError:
            return repr(name)
        return decoded if decoded.isprintable() else repr(name)


@dataclass(frozen=True)
class Chunk:
    """
    Chunk layout (https://www.w3.org/TR/png/#5Chunk-layout):
    - length: number of bytes in the data field
    - type: 4 ASCII bytes, e.g. IHDR is 73 72 68 82
    - data: the chunk's data bytes, if any
    - crc: CRC-32 over type and data, not including the length field
    """
    length: int
    type: bytes
    data: bytes
    crc: int

    @classmethod
    def create(cls, type: bytes, data: bytes) -> "Chunk":
        """Build a chunk whose length and CRC match its type and data."""
        data = bytes(data)
        return cls(len(data), bytes(type), data, crc32(type, data))

    @property
    def name(self) -> str:
        return Iso.chunk_name(self.type)

    @property
    def is_ihdr(self) -> bool:
        return self.type == Iso.IMAGE_HEADER

    @property
    def is_idat(self) -> bool:
        return self.type == Iso.IMAGE_DATA

    @property
    def is_iend(self) -> bool:
        return self.type == Iso.IMAGE_TRAILER

    def crc_is_valid(self) -> bool:
        return self.crc == crc32(self.type, self.data)

    def __repr__(self) -> str:
        return f"Chunk({self.name}, length={self.length}, crc={self.crc:#010x})"


class StrictBytesReader(BytesIO):
    """
    In-memory cursor whose reads either return exactly the requested
    number of bytes or raise a Truncated error.
    """

    def __init__(self, buffer: bytes) -> None:
        super().__init__(buffer)
        self.size = len(buffer)

    def read(self, size: int) -> bytes:
        offset = self.tell()
        data = super().read(size)
        if (len_read := len(data)) != size:
            raise PngError(
                ErrorKind.TRUNCATED,
                f"tried to read {size} bytes from buffer, received {len_read}",
                offset=offset, expected=size, actual=len_read,
            )
        return data

    def read_uint32(self) -> int:
        value, = struct.unpack("!I", self.read(Iso.SUB_CHUNK_SIZE))
        return value

    def remaining(self) -> int:
        return self.size - self.tell()

    def has_remaining(self) -> bool:
        return self.remaining() > 0


def read_signature(reader: StrictBytesReader) -> None:
    signature = reader.read(min(len(Iso.SIGNATURE), reader.remaining()))
    if signature != Iso.SIGNATURE:
        raise PngError(
            ErrorKind.NOT_PNG, "invalid signature",
            offset=0, expected=Iso.SIGNATURE, actual=signature,
        )


def read_chunk(reader: StrictBytesReader, check_crc: bool = True) -> Chunk:
    chunk_start = reader.tell()
    length = reader.read_uint32()
    type = reader.read(Iso.SUB_CHUNK_SIZE)
    data = reader.read(length)
    crc = reader.read_uint32()

    chunk = Chunk(length, type, data, crc)
    if check_crc and not chunk.crc_is_valid():
        raise PngError(
            ErrorKind.CRC_MISMATCH, f"chunk {chunk.name} failed CRC",
            offset=chunk_start, expected=crc32(type, data), actual=crc,
        )
    return chunk


def iter_chunks(reader: StrictBytesReader, check_crc: bool = True) -> Iterator[Chunk]:
    """Yield chunks until the input is exhausted."""
    while reader.has_remaining():
        yield read_chunk(reader, check_crc)


def encode_chunk(chunk: Chunk) -> bytes:
    """
    Serialize a chunk as length, type, data and crc. The CRC is written
    as stored: a chunk must already satisfy crc == CRC32(type + data).
    """
    return b''.join((
        struct.pack("!I", chunk.length),
        chunk.type,
        chunk.data,
        struct.pack("!I", chunk.crc),
    ))
