"""Exceptions raised while decoding flight logs."""

from __future__ import annotations


class CflError(Exception):
    """Base class for flight log decoding errors."""


class BufferTooShort(CflError):
    """A read needed more bytes than remain in the buffer."""

    def __init__(self, offset: int, needed: int, available: int):
        self.offset = offset
        self.needed = needed
        self.available = available
        super().__init__(
            f"need {needed} bytes at offset {offset}, only {available} left")


class MissingTerminator(CflError):
    """The version header has no NUL terminator."""

    def __init__(self, size: int):
        self.size = size
        super().__init__(f"no NUL terminator in {size} byte version header")
