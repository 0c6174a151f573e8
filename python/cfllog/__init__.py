"""cfllog - Flight computer binary log decoder and telemetry replay."""

from .errors import CflError, BufferTooShort, MissingTerminator
from .cursor import ByteCursor, parse_version_header
from .records import RecordKind, classify_tag, decode_record, PAYLOAD_SIZE
from .timestamps import TimestampNormalizer
from .flightlog import FlightLog, LogAssembler
from .telemetry import FlightMode, FlightState, TelemetryEvent, TelemetryFamily
from .projector import StateProjector
from .decoder import (
    DecodeResult, DecodeStatus, FrameDecoder, decode_flight_log, replay_telemetry,
)
from .frames import build_frame, build_log, encode_payload, load_file

__all__ = [
    "CflError", "BufferTooShort", "MissingTerminator",
    "ByteCursor", "parse_version_header",
    "RecordKind", "classify_tag", "decode_record", "PAYLOAD_SIZE",
    "TimestampNormalizer",
    "FlightLog", "LogAssembler",
    "FlightMode", "FlightState", "TelemetryEvent", "TelemetryFamily",
    "StateProjector",
    "DecodeResult", "DecodeStatus", "FrameDecoder",
    "decode_flight_log", "replay_telemetry",
    "build_frame", "build_log", "encode_payload", "load_file",
]
