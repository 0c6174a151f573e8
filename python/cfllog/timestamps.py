"""Rebase raw millisecond device timestamps to seconds since the first record."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class TimestampNormalizer:
    """Tracks the zero point and bounds of a raw timestamp stream.

    The first observed timestamp becomes the zero point.  Normalized
    values are whole seconds: (raw - zero) // 1000.  A raw value earlier
    than the zero point is clamped to 0 and counted in non_monotonic.
    """

    def __init__(self) -> None:
        self.zero_timestamp: int | None = None
        self.last_timestamp: int | None = None
        self.min_timestamp: int | None = None
        self.max_timestamp: int | None = None
        self.non_monotonic: int = 0

    @property
    def has_zero(self) -> bool:
        return self.zero_timestamp is not None

    def observe(self, raw: int) -> None:
        if self.zero_timestamp is None:
            self.zero_timestamp = raw
        self.last_timestamp = raw
        if self.min_timestamp is None or raw < self.min_timestamp:
            self.min_timestamp = raw
        if self.max_timestamp is None or raw > self.max_timestamp:
            self.max_timestamp = raw

    def normalize(self, raw: int) -> int:
        if self.zero_timestamp is None:
            raise RuntimeError("normalize() called before any timestamp was observed")
        if raw < self.zero_timestamp:
            self.non_monotonic += 1
            logger.warning("timestamp %d precedes zero point %d, clamping to 0",
                           raw, self.zero_timestamp)
            return 0
        return (raw - self.zero_timestamp) // 1000

    def bounds(self) -> tuple[int, int]:
        """Return (first, last) bounds in seconds, (0, 0) if nothing was seen."""
        if self.min_timestamp is None or self.max_timestamp is None:
            return 0, 0
        return self.min_timestamp // 1000, self.max_timestamp // 1000
