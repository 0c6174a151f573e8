"""Downlink telemetry snapshot types and the flight state -> mode mapping."""

from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Union


class FlightState(IntEnum):
    """Flight computer state codes as stored in FLIGHT_STATE records."""
    INVALID = 0
    CALIBRATING = 1
    READY = 2
    THRUSTING = 3
    COASTING = 4
    DROGUE = 5
    MAIN = 6
    TOUCHDOWN = 7


class FlightMode(Enum):
    """Flight mode as reported on the downlink."""
    IDLE = "idle"
    ARMED = "armed"
    BURN = "burn"
    COAST = "coast"
    RECOVERY_DROGUE = "recovery_drogue"
    RECOVERY_MAIN = "recovery_main"
    LANDED = "landed"


_MODE_BY_STATE: dict[int, FlightMode] = {
    FlightState.CALIBRATING: FlightMode.IDLE,
    FlightState.READY: FlightMode.ARMED,
    FlightState.THRUSTING: FlightMode.BURN,
    FlightState.COASTING: FlightMode.COAST,
    FlightState.DROGUE: FlightMode.RECOVERY_DROGUE,
    FlightState.MAIN: FlightMode.RECOVERY_MAIN,
    FlightState.TOUCHDOWN: FlightMode.LANDED,
}


def flight_mode_from_state(code: int) -> FlightMode:
    """Map a raw state code to a FlightMode; codes outside 1-7 give IDLE."""
    return _MODE_BY_STATE.get(code, FlightMode.IDLE)


@dataclass(frozen=True)
class Vector3:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


@dataclass(frozen=True)
class Quaternion:
    w: float = 1.0
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


@dataclass(frozen=True)
class GpsDatum:
    latitude: float
    longitude: float
    satellites: int


@dataclass(frozen=True)
class MainTelemetry:
    time: int = 0
    altitude: float = 0.0
    vertical_speed: float = 0.0
    vertical_accel: float = 0.0
    vertical_accel_filtered: float = 0.0
    orientation: Quaternion = field(default_factory=Quaternion)
    mode: FlightMode = FlightMode.IDLE


@dataclass(frozen=True)
class RawSensorsTelemetry:
    time: int = 0
    accelerometer: Vector3 = field(default_factory=Vector3)
    gyroscope: Vector3 = field(default_factory=Vector3)
    pressure: int = 0


@dataclass(frozen=True)
class DiagnosticsTelemetry:
    time: int = 0
    temperature: float = 0.0
    battery_voltage: float = 0.0


@dataclass(frozen=True)
class GpsTelemetry:
    time: int = 0
    latitude: float = 0.0
    longitude: float = 0.0
    satellites: int = 0

    @property
    def has_fix(self) -> bool:
        return self.satellites > 0


Snapshot = Union[MainTelemetry, RawSensorsTelemetry, DiagnosticsTelemetry, GpsTelemetry]


class TelemetryFamily(Enum):
    MAIN = "Main"
    RAW_SENSORS = "RawSensors"
    DIAGNOSTICS = "Diagnostics"
    GPS = "GPS"


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if dataclasses.is_dataclass(value):
        return {f.name: _plain(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


@dataclass(frozen=True)
class TelemetryEvent:
    family: TelemetryFamily
    snapshot: Snapshot

    def to_dict(self) -> dict[str, Any]:
        """{"<family>": {field: value, ...}} with enums and nested types flattened."""
        return {self.family.value: _plain(self.snapshot)}
