"""Bounds-checked little-endian reader over an in-memory log buffer."""

from __future__ import annotations

import struct

from .errors import BufferTooShort, MissingTerminator

_U8 = struct.Struct("<B")
_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")
_F32 = struct.Struct("<f")


def parse_version_header(data: bytes) -> tuple[str, int]:
    """Read the leading NUL-terminated version string.

    Returns (version, offset of the first frame).
    """
    end = data.find(b"\x00")
    if end < 0:
        raise MissingTerminator(len(data))
    version = data[:end].decode("ascii", errors="replace")
    return version, end + 1


class ByteCursor:
    """Sequential reader with a position.

    A read that would run past the end raises BufferTooShort and leaves
    the position where it was.
    """

    def __init__(self, data: bytes, offset: int = 0):
        if not 0 <= offset <= len(data):
            raise ValueError(f"offset {offset} outside buffer of {len(data)}")
        self._data = data
        self._pos = offset

    @property
    def offset(self) -> int:
        return self._pos

    @property
    def size(self) -> int:
        return len(self._data)

    def remaining(self) -> int:
        return len(self._data) - self._pos

    def require(self, n: int) -> None:
        """Raise BufferTooShort unless at least *n* bytes remain."""
        available = self.remaining()
        if available < n:
            raise BufferTooShort(self._pos, n, available)

    def _read(self, st: struct.Struct) -> tuple:
        self.require(st.size)
        values = st.unpack_from(self._data, self._pos)
        self._pos += st.size
        return values

    def unpack(self, fmt: str | struct.Struct) -> tuple:
        """Unpack a whole struct layout at the current position."""
        if isinstance(fmt, str):
            fmt = struct.Struct(fmt)
        return self._read(fmt)

    def read_u8(self) -> int:
        return self._read(_U8)[0]

    def read_u16_le(self) -> int:
        return self._read(_U16)[0]

    def read_u32_le(self) -> int:
        return self._read(_U32)[0]

    def read_f32_le(self) -> float:
        return self._read(_F32)[0]
