from enum import StrEnum


class ErrorKind(StrEnum):
    NOT_PNG = "NotPng"
    TRUNCATED = "Truncated"
    CRC_MISMATCH = "CrcMismatch"
    MISSING_IHDR = "MissingIhdr"
    MISSING_IDAT = "MissingIdat"
    MISSING_IEND = "MissingIend"
    DUPLICATE_IHDR = "DuplicateIhdr"
    CHUNK_ORDER = "ChunkOrder"
    INVALID_IHDR = "InvalidIhdr"
    INVALID_DIMENSIONS = "InvalidDimensions"
    UNSUPPORTED_BIT_DEPTH = "UnsupportedBitDepth"
    UNSUPPORTED_COLOR_TYPE = "UnsupportedColorType"
    UNSUPPORTED_COMPRESSION = "UnsupportedCompression"
    UNSUPPORTED_FILTER = "UnsupportedFilter"
    UNSUPPORTED_INTERLACE = "UnsupportedInterlace"
    UNSUPPORTED_FILTER_TYPE = "UnsupportedFilterType"
    SIZE_MISMATCH = "SizeMismatch"
    INFLATE_FAILURE = "InflateFailure"
    DEFLATE_FAILURE = "DeflateFailure"


class PngError(ValueError):
    """
    Raised for every fatal decode/encode condition. The kind says what
    went wrong; offset, expected and actual carry whatever context the
    raising stage had.
    """

    def __init__(
        self,
        kind: ErrorKind,
        reason: str = "",
        *,
        offset: int | None = None,
        expected=None,
        actual=None,
    ) -> None:
        self.kind = kind
        self.reason = reason
        self.offset = offset
        self.expected = expected
        self.actual = actual
        super().__init__(str(self))

    def __str__(self) -> str:
        message = f"{self.kind}"
        if self.reason:
            message += f": {self.reason}"
        context = []
        if self.offset is not None:
            context.append(f"offset={self.offset}")
        if self.expected is not None:
            context.append(f"expected={self.expected!r}")
        if self.actual is not None:
            context.append(f"actual={self.actual!r}")
        if context:
            message += f" ({', '.join(context)})"
        return message

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.kind!s}, {self.reason!r})"
