"""
Bounds-checked little-endian byte reader for the transaction wire format.
"""
import struct

from ..errors import DecodeError, TruncatedBuffer

_U32 = struct.Struct("<I")
_U64 = struct.Struct("<Q")

# compact-u16 ("shortvec") uses at most three bytes
_COMPACT_U16_MAX_BYTES = 3


class ByteReader:
    """Sequential reader over an immutable byte buffer.

    Every read checks the remaining length first and raises TruncatedBuffer
    naming the parse stage instead of returning short data.
    """

    def __init__(self, data: bytes, offset: int = 0):
        self.data = bytes(data)
        self.offset = offset

    @property
    def remaining(self) -> int:
        return len(self.data) - self.offset

    def _require(self, size: int, stage: str) -> None:
        if size > self.remaining:
            raise TruncatedBuffer(
                f"need {size} byte(s), {self.remaining} left",
                stage=stage,
                offset=self.offset,
            )

    def peek_u8(self, stage: str) -> int:
        self._require(1, stage)
        return self.data[self.offset]

    def read_u8(self, stage: str) -> int:
        value = self.peek_u8(stage)
        self.offset += 1
        return value

    def read_bytes(self, size: int, stage: str) -> bytes:
        self._require(size, stage)
        chunk = self.data[self.offset:self.offset + size]
        self.offset += size
        return chunk

    def read_compact_u16(self, stage: str) -> int:
        """Read a compact-u16 length prefix (7 bits per byte, high bit = continue)."""
        start = self.offset
        value = 0
        for position in range(_COMPACT_U16_MAX_BYTES):
            byte = self.read_u8(stage)
            value |= (byte & 0x7F) << (7 * position)
            if not byte & 0x80:
                if position > 0 and byte == 0:
                    raise DecodeError("non-canonical compact-u16 encoding", stage=stage, offset=start)
                if value > 0xFFFF:
                    raise DecodeError("compact-u16 value overflows 16 bits", stage=stage, offset=start)
                return value
        raise DecodeError("compact-u16 longer than 3 bytes", stage=stage, offset=start)


def read_u32_le(data: bytes, offset: int) -> int:
    """Read an unsigned 32-bit little-endian integer from a payload."""
    return _U32.unpack_from(data, offset)[0]


def read_u64_le(data: bytes, offset: int) -> int:
    """Read an unsigned 64-bit little-endian integer from a payload."""
    return _U64.unpack_from(data, offset)[0]
