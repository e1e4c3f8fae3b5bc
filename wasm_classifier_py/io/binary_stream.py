"""
Bounded binary stream reader for WebAssembly containers.

This module provides a BinaryStream class that reads little-endian primitives
and LEB128 integers from an in-memory buffer. Every read is checked against
the end of the buffer, so a section payload wrapped in its own stream can
never be read past its declared boundary.
"""

import struct
from io import BytesIO
from typing import Union


class StreamError(ValueError):
    """Raised when the stream content cannot be decoded."""
    pass


class EndOfStreamError(StreamError):
    """Raised when a read would go past the end of the stream."""
    pass


# A u64 needs at most ceil(64 / 7) LEB128 bytes
MAX_LEB128_BYTES = 10


class BinaryStream:
    """
    Binary stream reader over an in-memory buffer.

    Unlike a raw BytesIO, short reads are treated as errors: each reader
    either returns exactly what was asked for or raises EndOfStreamError.

    Attributes:
        base_offset: Offset of this stream's first byte within the
            enclosing buffer, used for diagnostics only
    """

    def __init__(self, data: Union[bytes, bytearray, memoryview, BytesIO], base_offset: int = 0):
        """
        Initialize a BinaryStream.

        Args:
            data: Either raw bytes or a BytesIO stream
            base_offset: Offset of the buffer within its parent buffer
        """
        if isinstance(data, BytesIO):
            self._stream = data
        else:
            self._stream = BytesIO(bytes(data))

        self.base_offset = base_offset

    # ========== Position and Length ==========

    @property
    def position(self) -> int:
        """Get current stream position."""
        return self._stream.tell()

    @position.setter
    def position(self, value: int) -> None:
        """Set stream position."""
        self._stream.seek(value)

    @property
    def length(self) -> int:
        """Get stream length."""
        current = self._stream.tell()
        self._stream.seek(0, 2)
        length = self._stream.tell()
        self._stream.seek(current)
        return length

    @property
    def remaining(self) -> int:
        """Number of unread bytes."""
        return max(self.length - self.position, 0)

    @property
    def at_end(self) -> bool:
        return self.remaining == 0

    # ========== Primitive Readers ==========

    def read_bytes(self, count: int) -> bytes:
        """Read exactly ``count`` raw bytes."""
        if count < 0:
            raise StreamError(f"Negative read length {count}")
        start = self.position
        data = self._stream.read(count)
        if len(data) != count:
            raise EndOfStreamError(
                f"Unexpected end of stream at offset {self.base_offset + start}: "
                f"wanted {count} bytes, {len(data)} available"
            )
        return data

    def peek_bytes(self, count: int) -> bytes:
        """Return up to ``count`` bytes without moving the position."""
        current = self.position
        data = self._stream.read(count)
        self.position = current
        return data

    def skip(self, count: int) -> None:
        """Advance the position by ``count`` bytes."""
        if count > self.remaining:
            raise EndOfStreamError(
                f"Cannot skip {count} bytes at offset {self.base_offset + self.position}"
            )
        self.position += count

    def read_byte(self) -> int:
        """Read an unsigned byte."""
        return struct.unpack('<B', self.read_bytes(1))[0]

    def read_uint32(self) -> int:
        """Read an unsigned 32-bit integer."""
        return struct.unpack('<I', self.read_bytes(4))[0]

    # ========== LEB128 Readers ==========

    def read_uleb128(self) -> int:
        """Read an unsigned LEB128 encoded integer."""
        result = 0
        shift = 0
        for _ in range(MAX_LEB128_BYTES):
            b = self.read_byte()
            result |= (b & 0x7F) << shift
            if (b & 0x80) == 0:
                return result
            shift += 7
        raise StreamError(
            f"LEB128 integer too long at offset {self.base_offset + self.position}"
        )

    def read_sleb128(self) -> int:
        """Read a signed LEB128 encoded integer."""
        result = 0
        shift = 0
        for _ in range(MAX_LEB128_BYTES):
            b = self.read_byte()
            result |= (b & 0x7F) << shift
            shift += 7
            if (b & 0x80) == 0:
                if b & 0x40:
                    result |= (~0 << shift)
                return result
        raise StreamError(
            f"LEB128 integer too long at offset {self.base_offset + self.position}"
        )

    # ========== String Readers ==========

    def read_string(self, length: int) -> str:
        """Read a fixed-length UTF-8 string."""
        return self.read_bytes(length).decode('utf-8', errors='replace')

    def read_name(self) -> str:
        """Read a ULEB128 length-prefixed UTF-8 name."""
        length = self.read_uleb128()
        if length > self.remaining:
            raise EndOfStreamError(
                f"Name of {length} bytes overruns the stream at offset "
                f"{self.base_offset + self.position}"
            )
        return self.read_string(length)

    # ========== Sub-streams ==========

    def sub_stream(self, count: int) -> 'BinaryStream':
        """
        Consume ``count`` bytes and return them as an independent stream.

        The returned stream cannot read beyond those bytes.
        """
        offset = self.base_offset + self.position
        return BinaryStream(self.read_bytes(count), base_offset=offset)

    # ========== Write Methods ==========

    def write_bytes(self, data: bytes) -> None:
        """Write raw bytes."""
        self._stream.write(data)

    def write_byte(self, value: int) -> None:
        """Write an unsigned byte."""
        self.write_bytes(struct.pack('<B', value))

    def write_uint32(self, value: int) -> None:
        """Write an unsigned 32-bit integer."""
        self.write_bytes(struct.pack('<I', value))

    def write_uleb128(self, value: int) -> None:
        """Write an unsigned LEB128 encoded integer."""
        while True:
            b = value & 0x7F
            value >>= 7
            if value:
                self.write_byte(b | 0x80)
            else:
                self.write_byte(b)
                break

    def write_name(self, name: Union[str, bytes]) -> None:
        """Write a ULEB128 length-prefixed name."""
        raw = name.encode('utf-8') if isinstance(name, str) else name
        self.write_uleb128(len(raw))
        self.write_bytes(raw)

    # ========== Misc ==========

    def get_data(self) -> bytes:
        """Get the underlying data."""
        current = self.position
        self.position = 0
        data = self._stream.read()
        self.position = current
        return data
