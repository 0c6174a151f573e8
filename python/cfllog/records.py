"""Record kinds, tag classification and per-kind payload decoding.

Every frame in a flight log is:

  [timestamp: uint32 LE, ms][tag: uint32 LE][payload]

The low nibble of the tag is the sensor id, the remaining bits select the
record kind.  Payload width is fixed per kind (PAYLOAD_SIZE).
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, ClassVar, Union

from .cursor import ByteCursor

FRAME_HEADER_FMT = "<II"
FRAME_HEADER_SIZE = struct.calcsize(FRAME_HEADER_FMT)  # 8

SENSOR_ID_MASK = 0x0000000F

# Scaling factors applied to raw integer fields
ACC_DIV = 1024.0 / 9.81
GYRO_DIV = 14.28
Q_DIV = 1000.0
TEMP_DIV = 100.0
VOLT_DIV = 1000.0


class RecordKind(IntEnum):
    UNKNOWN = 0
    IMU = 0x10
    BARO = 0x20
    FLIGHT_INFO = 0x40
    ORIENTATION_INFO = 0x80
    FILTERED_DATA_INFO = 0x100
    FLIGHT_STATE = 0x200
    EVENT_INFO = 0x400
    ERROR_INFO = 0x800
    GNSS_INFO = 0x1000
    VOLTAGE_INFO = 0x2000


# Exact selector match only; combined bits are not a valid kind.
_SELECTORS: dict[int, RecordKind] = {
    k.value: k for k in RecordKind if k is not RecordKind.UNKNOWN
}

# struct layouts (little-endian) indexed by kind
PAYLOAD_FMT: dict[RecordKind, str] = {
    RecordKind.IMU: "<6H",
    RecordKind.BARO: "<2I",
    RecordKind.FLIGHT_INFO: "<3f",
    RecordKind.ORIENTATION_INFO: "<4H",
    RecordKind.FILTERED_DATA_INFO: "<2f",
    RecordKind.FLIGHT_STATE: "<I",
    RecordKind.EVENT_INFO: "<IHH",
    RecordKind.ERROR_INFO: "<I",
    RecordKind.GNSS_INFO: "<2fB",
    RecordKind.VOLTAGE_INFO: "<H",
}

PAYLOAD_SIZE: dict[RecordKind, int] = {
    k: struct.calcsize(fmt) for k, fmt in PAYLOAD_FMT.items()
}


def classify_tag(tag: int) -> tuple[int, RecordKind]:
    """Split a frame tag into (sensor_id, kind)."""
    sensor_id = tag & SENSOR_ID_MASK
    selector = tag & ~SENSOR_ID_MASK & 0xFFFFFFFF
    return sensor_id, _SELECTORS.get(selector, RecordKind.UNKNOWN)


# ---------------------------------------------------------------------------
# Record types
# ---------------------------------------------------------------------------

@dataclass
class ImuRecord:
    KIND: ClassVar[RecordKind] = RecordKind.IMU
    LABEL: ClassVar[str] = "IMU"

    timestamp: int
    sensor_id: int
    acc_x: float
    acc_y: float
    acc_z: float
    gyro_x: float
    gyro_y: float
    gyro_z: float

    @property
    def label(self) -> str:
        return f"{self.LABEL}{self.sensor_id}"


@dataclass
class BaroRecord:
    KIND: ClassVar[RecordKind] = RecordKind.BARO
    LABEL: ClassVar[str] = "BARO"

    timestamp: int
    sensor_id: int
    pressure: int
    temp: float

    @property
    def label(self) -> str:
        return f"{self.LABEL}{self.sensor_id}"


@dataclass
class FlightInfoRecord:
    KIND: ClassVar[RecordKind] = RecordKind.FLIGHT_INFO
    LABEL: ClassVar[str] = "FLIGHT_INFO"

    timestamp: int
    sensor_id: int
    height: float
    velocity: float
    acceleration: float

    @property
    def label(self) -> str:
        return self.LABEL


@dataclass
class OrientationInfoRecord:
    KIND: ClassVar[RecordKind] = RecordKind.ORIENTATION_INFO
    LABEL: ClassVar[str] = "ORIENTATION_INFO"

    timestamp: int
    sensor_id: int
    q0: float
    q1: float
    q2: float
    q3: float

    @property
    def label(self) -> str:
        return self.LABEL


@dataclass
class FilteredDataInfoRecord:
    KIND: ClassVar[RecordKind] = RecordKind.FILTERED_DATA_INFO
    LABEL: ClassVar[str] = "FILTERED_DATA_INFO"

    timestamp: int
    sensor_id: int
    filtered_altitude_agl: float
    filtered_acceleration: float

    @property
    def label(self) -> str:
        return self.LABEL


@dataclass
class FlightStateRecord:
    KIND: ClassVar[RecordKind] = RecordKind.FLIGHT_STATE
    LABEL: ClassVar[str] = "FLIGHT_STATE"

    timestamp: int
    sensor_id: int
    state: int

    @property
    def label(self) -> str:
        return self.LABEL


@dataclass
class EventInfoRecord:
    KIND: ClassVar[RecordKind] = RecordKind.EVENT_INFO
    LABEL: ClassVar[str] = "EVENT_INFO"

    timestamp: int
    sensor_id: int
    event: int
    action: int
    argument: int

    @property
    def label(self) -> str:
        return self.LABEL


@dataclass
class ErrorInfoRecord:
    KIND: ClassVar[RecordKind] = RecordKind.ERROR_INFO
    LABEL: ClassVar[str] = "ERROR_INFO"

    timestamp: int
    sensor_id: int
    error: int

    @property
    def label(self) -> str:
        return self.LABEL


@dataclass
class GnssInfoRecord:
    KIND: ClassVar[RecordKind] = RecordKind.GNSS_INFO
    LABEL: ClassVar[str] = "GNSS_INFO"

    timestamp: int
    sensor_id: int
    latitude: float
    longitude: float
    satellites: int

    @property
    def label(self) -> str:
        return self.LABEL


@dataclass
class VoltageInfoRecord:
    KIND: ClassVar[RecordKind] = RecordKind.VOLTAGE_INFO
    LABEL: ClassVar[str] = "VOLTAGE_INFO"

    timestamp: int
    sensor_id: int
    voltage: float

    @property
    def label(self) -> str:
        return self.LABEL


Record = Union[
    ImuRecord, BaroRecord, FlightInfoRecord, OrientationInfoRecord,
    FilteredDataInfoRecord, FlightStateRecord, EventInfoRecord,
    ErrorInfoRecord, GnssInfoRecord, VoltageInfoRecord,
]

RECORD_TYPES: dict[RecordKind, type] = {
    cls.KIND: cls for cls in (
        ImuRecord, BaroRecord, FlightInfoRecord, OrientationInfoRecord,
        FilteredDataInfoRecord, FlightStateRecord, EventInfoRecord,
        ErrorInfoRecord, GnssInfoRecord, VoltageInfoRecord,
    )
}


# ---------------------------------------------------------------------------
# Payload decoders
# ---------------------------------------------------------------------------

def _decode_imu(cur: ByteCursor, ts: int, sid: int) -> ImuRecord:
    ax = cur.read_u16_le()
    ay = cur.read_u16_le()
    az = cur.read_u16_le()
    gx = cur.read_u16_le()
    gy = cur.read_u16_le()
    gz = cur.read_u16_le()
    return ImuRecord(ts, sid,
                     ax / ACC_DIV, ay / ACC_DIV, az / ACC_DIV,
                     gx / GYRO_DIV, gy / GYRO_DIV, gz / GYRO_DIV)


def _decode_baro(cur: ByteCursor, ts: int, sid: int) -> BaroRecord:
    pressure = cur.read_u32_le()
    temp = cur.read_u32_le()
    return BaroRecord(ts, sid, pressure, temp / TEMP_DIV)


def _decode_flight_info(cur: ByteCursor, ts: int, sid: int) -> FlightInfoRecord:
    height = cur.read_f32_le()
    velocity = cur.read_f32_le()
    acceleration = cur.read_f32_le()
    return FlightInfoRecord(ts, sid, height, velocity, acceleration)


def _decode_orientation(cur: ByteCursor, ts: int, sid: int) -> OrientationInfoRecord:
    q = [cur.read_u16_le() / Q_DIV for _ in range(4)]
    return OrientationInfoRecord(ts, sid, *q)


def _decode_filtered_data(cur: ByteCursor, ts: int, sid: int) -> FilteredDataInfoRecord:
    altitude = cur.read_f32_le()
    acceleration = cur.read_f32_le()
    return FilteredDataInfoRecord(ts, sid, altitude, acceleration)


def _decode_flight_state(cur: ByteCursor, ts: int, sid: int) -> FlightStateRecord:
    return FlightStateRecord(ts, sid, cur.read_u32_le())


def _decode_event(cur: ByteCursor, ts: int, sid: int) -> EventInfoRecord:
    event = cur.read_u32_le()
    action = cur.read_u16_le()
    argument = cur.read_u16_le()
    return EventInfoRecord(ts, sid, event, action, argument)


def _decode_error(cur: ByteCursor, ts: int, sid: int) -> ErrorInfoRecord:
    return ErrorInfoRecord(ts, sid, cur.read_u32_le())


def _decode_gnss(cur: ByteCursor, ts: int, sid: int) -> GnssInfoRecord:
    latitude = cur.read_f32_le()
    longitude = cur.read_f32_le()
    satellites = cur.read_u8()
    return GnssInfoRecord(ts, sid, latitude, longitude, satellites)


def _decode_voltage(cur: ByteCursor, ts: int, sid: int) -> VoltageInfoRecord:
    return VoltageInfoRecord(ts, sid, cur.read_u16_le() / VOLT_DIV)


_DECODERS: dict[RecordKind, Callable[[ByteCursor, int, int], Record]] = {
    RecordKind.IMU: _decode_imu,
    RecordKind.BARO: _decode_baro,
    RecordKind.FLIGHT_INFO: _decode_flight_info,
    RecordKind.ORIENTATION_INFO: _decode_orientation,
    RecordKind.FILTERED_DATA_INFO: _decode_filtered_data,
    RecordKind.FLIGHT_STATE: _decode_flight_state,
    RecordKind.EVENT_INFO: _decode_event,
    RecordKind.ERROR_INFO: _decode_error,
    RecordKind.GNSS_INFO: _decode_gnss,
    RecordKind.VOLTAGE_INFO: _decode_voltage,
}


def decode_record(cursor: ByteCursor, kind: RecordKind, timestamp: int,
                  sensor_id: int = 0) -> Record:
    """Decode one payload of *kind* at the cursor position.

    Consumes exactly PAYLOAD_SIZE[kind] bytes.  If fewer remain,
    BufferTooShort is raised before anything is consumed.
    """
    decoder = _DECODERS.get(kind)
    if decoder is None:
        raise ValueError(f"no payload decoder for {kind!r}")
    cursor.require(PAYLOAD_SIZE[kind])
    return decoder(cursor, timestamp, sensor_id)
