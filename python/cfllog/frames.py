"""Build raw flight log bytes (for tests, fixtures and tooling)."""

from __future__ import annotations

import struct
from pathlib import Path
from typing import Any, Iterable

from .records import (
    ACC_DIV, GYRO_DIV, Q_DIV, TEMP_DIV, VOLT_DIV,
    FRAME_HEADER_FMT, PAYLOAD_FMT, RecordKind,
)

# (field name, divisor) in wire order; None means stored unscaled
_PAYLOAD_FIELDS: dict[RecordKind, list[tuple[str, float | None]]] = {
    RecordKind.IMU: [("acc_x", ACC_DIV), ("acc_y", ACC_DIV), ("acc_z", ACC_DIV),
                     ("gyro_x", GYRO_DIV), ("gyro_y", GYRO_DIV), ("gyro_z", GYRO_DIV)],
    RecordKind.BARO: [("pressure", None), ("temp", TEMP_DIV)],
    RecordKind.FLIGHT_INFO: [("height", None), ("velocity", None),
                             ("acceleration", None)],
    RecordKind.ORIENTATION_INFO: [("q0", Q_DIV), ("q1", Q_DIV),
                                  ("q2", Q_DIV), ("q3", Q_DIV)],
    RecordKind.FILTERED_DATA_INFO: [("filtered_altitude_agl", None),
                                    ("filtered_acceleration", None)],
    RecordKind.FLIGHT_STATE: [("state", None)],
    RecordKind.EVENT_INFO: [("event", None), ("action", None), ("argument", None)],
    RecordKind.ERROR_INFO: [("error", None)],
    RecordKind.GNSS_INFO: [("latitude", None), ("longitude", None),
                           ("satellites", None)],
    RecordKind.VOLTAGE_INFO: [("voltage", VOLT_DIV)],
}


def load_file(path: str | Path) -> bytes:
    """Read a whole log file into memory."""
    return Path(path).read_bytes()


def encode_payload(kind: RecordKind, **fields: Any) -> bytes:
    """Pack engineering values into the raw payload for *kind*.

    Scaled fields are multiplied back by their divisor and rounded.
    Missing fields default to 0.
    """
    layout = _PAYLOAD_FIELDS.get(kind)
    if layout is None:
        raise ValueError(f"cannot encode payload for {kind!r}")
    unknown = set(fields) - {name for name, _ in layout}
    if unknown:
        raise TypeError(f"unexpected fields for {kind.name}: {sorted(unknown)}")

    values: list[Any] = []
    for name, div in layout:
        v = fields.get(name, 0)
        values.append(int(round(v * div)) if div is not None else v)
    return struct.pack(PAYLOAD_FMT[kind], *values)


def build_frame(timestamp: int, kind: RecordKind | int, payload: bytes,
                sensor_id: int = 0) -> bytes:
    """Build one frame.  *kind* may be a RecordKind or any raw selector."""
    tag = (int(kind) & ~0xF & 0xFFFFFFFF) | (sensor_id & 0xF)
    return struct.pack(FRAME_HEADER_FMT, timestamp, tag) + payload


def build_log(version: str, frames: Iterable[bytes]) -> bytes:
    """Build a complete log: NUL-terminated version string then frames."""
    return version.encode("ascii") + b"\x00" + b"".join(frames)
