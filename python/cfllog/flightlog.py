"""Batch aggregation of decoded records into a FlightLog."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field

import numpy as np

from .records import RECORD_TYPES, Record, RecordKind
from .timestamps import TimestampNormalizer

logger = logging.getLogger(__name__)

# FlightLog attribute holding each kind's records
_KIND_ATTR: dict[RecordKind, str] = {
    RecordKind.IMU: "imu",
    RecordKind.BARO: "baro",
    RecordKind.FLIGHT_INFO: "flight_info",
    RecordKind.ORIENTATION_INFO: "orientation_info",
    RecordKind.FILTERED_DATA_INFO: "filtered_data_info",
    RecordKind.FLIGHT_STATE: "flight_state",
    RecordKind.EVENT_INFO: "event_info",
    RecordKind.ERROR_INFO: "error_info",
    RecordKind.GNSS_INFO: "gnss_info",
    RecordKind.VOLTAGE_INFO: "voltage_info",
}


@dataclass
class FlightLog:
    version: str = ""
    imu: list = field(default_factory=list)
    baro: list = field(default_factory=list)
    flight_info: list = field(default_factory=list)
    orientation_info: list = field(default_factory=list)
    filtered_data_info: list = field(default_factory=list)
    flight_state: list = field(default_factory=list)
    event_info: list = field(default_factory=list)
    error_info: list = field(default_factory=list)
    gnss_info: list = field(default_factory=list)
    voltage_info: list = field(default_factory=list)
    first_timestamp: int = 0
    last_timestamp: int = 0

    def records(self, kind: RecordKind) -> list[Record]:
        attr = _KIND_ATTR.get(kind)
        if attr is None:
            raise KeyError(f"no records are stored for {kind!r}")
        return getattr(self, attr)

    def counts(self) -> dict[RecordKind, int]:
        return {kind: len(getattr(self, attr)) for kind, attr in _KIND_ATTR.items()}

    def __len__(self) -> int:
        return sum(self.counts().values())

    def series(self, kind: RecordKind, field_name: str) -> tuple[np.ndarray, np.ndarray]:
        """Return (timestamps, values) arrays for one field of one kind.

        Timestamps are int64 seconds; values keep numpy's natural dtype
        for the field (float64 for scaled values, int64 for raw counts).
        """
        recs = self.records(kind)
        names = {f.name for f in dataclasses.fields(RECORD_TYPES[kind])}
        if field_name not in names or field_name == "timestamp":
            raise KeyError(f"{kind.name} has no field {field_name!r}")
        ts = np.fromiter((r.timestamp for r in recs), dtype=np.int64, count=len(recs))
        if not recs:
            return ts, np.empty(0, dtype=np.float64)
        values = np.asarray([getattr(r, field_name) for r in recs])
        return ts, values


class LogAssembler:
    """Sink that groups records by kind, then rebases them in finish()."""

    def __init__(self) -> None:
        self._log = FlightLog()
        self._clock = TimestampNormalizer()
        self._finished = False

    @property
    def normalizer(self) -> TimestampNormalizer:
        return self._clock

    def accept(self, record: Record) -> None:
        self._clock.observe(record.timestamp)
        self._log.records(record.KIND).append(record)

    def finish(self, version: str = "") -> FlightLog:
        """Rebase every stored timestamp and fill in the log bounds."""
        if self._finished:
            raise RuntimeError("finish() already called")
        self._finished = True
        log = self._log
        log.version = version
        if self._clock.has_zero:
            for attr in _KIND_ATTR.values():
                for rec in getattr(log, attr):
                    rec.timestamp = self._clock.normalize(rec.timestamp)
        log.first_timestamp, log.last_timestamp = self._clock.bounds()
        logger.debug("assembled %d records spanning %d-%d s",
                     len(log), log.first_timestamp, log.last_timestamp)
        return log
