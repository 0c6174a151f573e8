"""Replay decoded records as a stream of downlink telemetry snapshots.

Four templates (Main, RawSensors, Diagnostics, GPS) hold the current state.
Each record updates only the fields it carries; every update emits the
new template value as an event.  Templates keep stale fields from
earlier records, so events must be consumed in order.
"""

from __future__ import annotations

import dataclasses
import logging

from .records import (
    BaroRecord, FilteredDataInfoRecord, FlightInfoRecord, FlightStateRecord,
    GnssInfoRecord, ImuRecord, OrientationInfoRecord, Record, RecordKind,
    VoltageInfoRecord,
)
from .telemetry import (
    DiagnosticsTelemetry, GpsDatum, GpsTelemetry, MainTelemetry, Quaternion,
    RawSensorsTelemetry, TelemetryEvent, TelemetryFamily, Vector3,
    flight_mode_from_state,
)
from .timestamps import TimestampNormalizer

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Merge functions: (template, record, time) -> new template
# ---------------------------------------------------------------------------

def merge_imu(t: RawSensorsTelemetry, r: ImuRecord, time: int) -> RawSensorsTelemetry:
    return dataclasses.replace(
        t, time=time,
        accelerometer=Vector3(r.acc_x, r.acc_y, r.acc_z),
        gyroscope=Vector3(r.gyro_x, r.gyro_y, r.gyro_z))


def merge_pressure(t: RawSensorsTelemetry, r: BaroRecord, time: int) -> RawSensorsTelemetry:
    return dataclasses.replace(t, time=time, pressure=r.pressure)


def merge_temperature(t: DiagnosticsTelemetry, r: BaroRecord, time: int) -> DiagnosticsTelemetry:
    return dataclasses.replace(t, time=time, temperature=r.temp)


def merge_voltage(t: DiagnosticsTelemetry, r: VoltageInfoRecord, time: int) -> DiagnosticsTelemetry:
    return dataclasses.replace(t, time=time, battery_voltage=r.voltage)


def merge_flight_info(t: MainTelemetry, r: FlightInfoRecord, time: int) -> MainTelemetry:
    return dataclasses.replace(
        t, time=time, altitude=r.height,
        vertical_speed=r.velocity, vertical_accel=r.acceleration)


def merge_orientation(t: MainTelemetry, r: OrientationInfoRecord, time: int) -> MainTelemetry:
    return dataclasses.replace(t, time=time, orientation=Quaternion(r.q0, r.q1, r.q2, r.q3))


def merge_filtered(t: MainTelemetry, r: FilteredDataInfoRecord, time: int) -> MainTelemetry:
    return dataclasses.replace(t, time=time, vertical_accel_filtered=r.filtered_acceleration)


def merge_flight_state(t: MainTelemetry, r: FlightStateRecord, time: int) -> MainTelemetry:
    return dataclasses.replace(t, time=time, mode=flight_mode_from_state(r.state))


def merge_gps(t: GpsTelemetry, d: GpsDatum, time: int) -> GpsTelemetry:
    return dataclasses.replace(
        t, time=time, latitude=d.latitude,
        longitude=d.longitude, satellites=d.satellites)


def merge_gnss(t: GpsTelemetry, r: GnssInfoRecord, time: int) -> GpsTelemetry:
    return merge_gps(t, gps_datum(r), time)


# kind -> list of (family, merge function), applied in order
_MERGES = {
    RecordKind.IMU: [(TelemetryFamily.RAW_SENSORS, merge_imu)],
    RecordKind.BARO: [(TelemetryFamily.RAW_SENSORS, merge_pressure),
                      (TelemetryFamily.DIAGNOSTICS, merge_temperature)],
    RecordKind.FLIGHT_INFO: [(TelemetryFamily.MAIN, merge_flight_info)],
    RecordKind.ORIENTATION_INFO: [(TelemetryFamily.MAIN, merge_orientation)],
    RecordKind.FILTERED_DATA_INFO: [(TelemetryFamily.MAIN, merge_filtered)],
    RecordKind.FLIGHT_STATE: [(TelemetryFamily.MAIN, merge_flight_state)],
    RecordKind.GNSS_INFO: [(TelemetryFamily.GPS, merge_gnss)],
    RecordKind.VOLTAGE_INFO: [(TelemetryFamily.DIAGNOSTICS, merge_voltage)],
}


def gps_datum(r: GnssInfoRecord) -> GpsDatum:
    return GpsDatum(r.latitude, r.longitude, r.satellites)


class StateProjector:
    """Sink that turns records into ordered TelemetryEvents.

    EVENT_INFO and ERROR_INFO records are not projected; they are only
    counted in ``ignored``.
    """

    def __init__(self) -> None:
        self.templates = {
            TelemetryFamily.MAIN: MainTelemetry(),
            TelemetryFamily.RAW_SENSORS: RawSensorsTelemetry(),
            TelemetryFamily.DIAGNOSTICS: DiagnosticsTelemetry(),
            TelemetryFamily.GPS: GpsTelemetry(),
        }
        self.events: list[TelemetryEvent] = []
        self.ignored: int = 0
        self.clock = TimestampNormalizer()

    def accept(self, record: Record) -> list[TelemetryEvent]:
        """Merge one record and return the events it produced."""
        self.clock.observe(record.timestamp)
        merges = _MERGES.get(record.KIND)
        if merges is None:
            self.ignored += 1
            logger.debug("%s at %d ms not projected", record.label, record.timestamp)
            return []

        time = self.clock.normalize(record.timestamp)
        emitted: list[TelemetryEvent] = []
        for family, merge in merges:
            snapshot = merge(self.templates[family], record, time)
            self.templates[family] = snapshot
            emitted.append(TelemetryEvent(family, snapshot))
        self.events.extend(emitted)
        return emitted
