"""Frame loop: parse the version header, then decode frames into a sink."""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from .cursor import ByteCursor, parse_version_header
from .errors import BufferTooShort
from .flightlog import FlightLog, LogAssembler
from .projector import StateProjector
from .records import (
    FRAME_HEADER_FMT, FRAME_HEADER_SIZE, Record, RecordKind,
    classify_tag, decode_record,
)
from .telemetry import TelemetryEvent

logger = logging.getLogger(__name__)

_FRAME_HEADER = struct.Struct(FRAME_HEADER_FMT)


class RecordSink(Protocol):
    """Anything that consumes decoded records in frame order."""

    def accept(self, record: Record) -> object: ...


class DecodeStatus(Enum):
    COMPLETE = "complete"              # fewer than header_margin bytes left
    UNKNOWN_RECORD = "unknown_record"  # unmatched tag selector, early stop
    TRUNCATED = "truncated"            # payload ran past the end of the buffer


@dataclass
class DecodeResult:
    version: str
    status: DecodeStatus
    offset: int
    size: int
    frames: int
    tag: int | None = None
    error: BufferTooShort | None = None

    @property
    def consumed_fraction(self) -> float:
        return self.offset / self.size if self.size else 1.0

    @property
    def percent_consumed(self) -> float:
        return self.consumed_fraction * 100.0

    @property
    def stopped_early(self) -> bool:
        return self.status is not DecodeStatus.COMPLETE


class FrameDecoder:
    """Drives one decode run over an in-memory log.

    The loop runs while at least ``header_margin`` bytes remain.  Real
    logs often end with a few corrupt bytes, so the default margin is one
    frame header.  An unknown tag ends the run early; this is a normal
    outcome and is reported in the DecodeResult, not raised.
    """

    def __init__(self, data: bytes, sink: RecordSink, *,
                 header_margin: int = FRAME_HEADER_SIZE):
        if header_margin < FRAME_HEADER_SIZE:
            raise ValueError(
                f"header_margin must be at least {FRAME_HEADER_SIZE}")
        self.data = data
        self.sink = sink
        self.header_margin = header_margin
        self.version: str | None = None

    def run(self) -> DecodeResult:
        """Decode every frame.  Raises MissingTerminator for a bad header."""
        self.version, start = parse_version_header(self.data)
        logger.info("detected version %r", self.version)

        cur = ByteCursor(self.data, start)
        frames = 0

        while cur.remaining() >= self.header_margin:
            frame_start = cur.offset
            timestamp, tag = cur.unpack(_FRAME_HEADER)
            sensor_id, kind = classify_tag(tag)

            if kind is RecordKind.UNKNOWN:
                result = self._result(DecodeStatus.UNKNOWN_RECORD, frame_start, frames, tag=tag)
                logger.warning(
                    "unknown record selector 0x%x at offset %d, "
                    "continuing with %.1f%% of the data",
                    tag & ~0xF & 0xFFFFFFFF, frame_start, result.percent_consumed)
                return result

            try:
                record = decode_record(cur, kind, timestamp, sensor_id)
            except BufferTooShort as e:
                result = self._result(DecodeStatus.TRUNCATED, frame_start, frames, tag=tag, error=e)
                logger.warning("truncated %s frame at offset %d (%s), "
                               "continuing with %.1f%% of the data",
                               kind.name, frame_start, e, result.percent_consumed)
                return result

            self.sink.accept(record)
            frames += 1

        result = self._result(DecodeStatus.COMPLETE, cur.offset, frames)
        logger.info("decoded %d frames, %d trailing bytes ignored",
                    frames, cur.remaining())
        return result

    def _result(self, status: DecodeStatus, offset: int, frames: int,
                tag: int | None = None,
                error: BufferTooShort | None = None) -> DecodeResult:
        return DecodeResult(
            version=self.version or "",
            status=status,
            offset=offset,
            size=len(self.data),
            frames=frames,
            tag=tag,
            error=error,
        )


def decode_flight_log(data: bytes, **kwargs) -> tuple[FlightLog, DecodeResult]:
    """Decode a whole log into a FlightLog with rebased timestamps."""
    assembler = LogAssembler()
    result = FrameDecoder(data, assembler, **kwargs).run()
    return assembler.finish(result.version), result


def replay_telemetry(data: bytes, **kwargs) -> tuple[list[TelemetryEvent], DecodeResult]:
    """Decode a whole log into the ordered downlink event stream."""
    projector = StateProjector()
    result = FrameDecoder(data, projector, **kwargs).run()
    return projector.events, result
