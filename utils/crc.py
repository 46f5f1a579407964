class Crc:
    """
    Cyclic Redundancy Check (CRC) algorithm
    Adapted from: http://libpng.org/pub/png/spec/iso/index-object.html#D-CRCAppendix
    """
    POLYNOMIAL = 0xedb88320
    MASK = 0xffffffff

    def __init__(self) -> None:
        # Table of CRCs of all 8-bit messages
        self.crc_table = [0] * 256

        for n in range(256):
            c = n
            for _ in range(8):
                if c & 1:
                    c = self.POLYNOMIAL ^ (c >> 1)
                else:
                    c = c >> 1
            self.crc_table[n] = c

    def update(self, crc: int, buf: bytes) -> int:
        """
        Update a running CRC with the bytes buf[0..len-1]--the CRC
        should be initialized to all 1's, and the transmitted value
        is the 1's complement of the final running CRC.
        """
        for byte in buf:
            crc = self.crc_table[(crc ^ byte) & 0xff] ^ (crc >> 8)
        return crc

    def calculate(self, *bufs: bytes) -> int:
        """
        Return the CRC of the concatenation of bufs, e.g. a chunk's
        type followed by its data.
        """
        crc = self.MASK
        for buf in bufs:
            crc = self.update(crc, buf)
        return crc ^ self.MASK


_CRC = Crc()


def crc32(*bufs: bytes) -> int:
    return _CRC.calculate(*bufs)
