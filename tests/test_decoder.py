"""Tests for the frame loop, batch assembly and timestamp rebasing."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "python"))

import struct

import numpy as np

from cfllog.decoder import DecodeStatus, FrameDecoder, decode_flight_log
from cfllog.errors import MissingTerminator
from cfllog.flightlog import LogAssembler
from cfllog.frames import build_frame, build_log, encode_payload
from cfllog.records import RecordKind
from cfllog.timestamps import TimestampNormalizer


def make_frame(ts, kind, sensor_id=0, **fields):
    return build_frame(ts, kind, encode_payload(kind, **fields), sensor_id)


def make_flight():
    """A short flight with one of every kind, starting at 5000 ms."""
    return build_log("1.2.0", [
        make_frame(5000, RecordKind.IMU, 1, acc_z=9.81),
        make_frame(5100, RecordKind.BARO, 0, pressure=101325, temp=20.0),
        make_frame(5200, RecordKind.FLIGHT_STATE, state=2),
        make_frame(6000, RecordKind.FLIGHT_INFO, height=10.0, velocity=5.0,
                   acceleration=30.0),
        make_frame(6500, RecordKind.ORIENTATION_INFO, q0=1.0),
        make_frame(7000, RecordKind.FILTERED_DATA_INFO, filtered_altitude_agl=12.0,
                   filtered_acceleration=29.5),
        make_frame(7100, RecordKind.EVENT_INFO, event=2, action=1, argument=0),
        make_frame(7200, RecordKind.ERROR_INFO, error=4),
        make_frame(8000, RecordKind.GNSS_INFO, latitude=47.5, longitude=8.25,
                   satellites=7),
        make_frame(9999, RecordKind.VOLTAGE_INFO, voltage=7.4),
        make_frame(10000, RecordKind.BARO, 1, pressure=100000, temp=19.0),
    ])


def test_normalizer():
    print("test_normalizer...", end="")

    clock = TimestampNormalizer()
    try:
        clock.normalize(100)
        assert False, "Should have raised RuntimeError"
    except RuntimeError:
        pass
    assert clock.bounds() == (0, 0)

    for raw in (2500, 2999, 3500, 10400):
        clock.observe(raw)
    assert clock.zero_timestamp == 2500
    assert clock.last_timestamp == 10400
    assert [clock.normalize(r) for r in (2500, 2999, 3500, 10400)] == [0, 0, 1, 7]
    assert clock.bounds() == (2, 10)

    # Earlier than zero: clamped, counted
    assert clock.normalize(1000) == 0
    assert clock.non_monotonic == 1

    print(" OK")


def test_decode_flight_log():
    print("test_decode_flight_log...", end="")

    data = make_flight()
    log, result = decode_flight_log(data)

    assert result.status == DecodeStatus.COMPLETE
    assert not result.stopped_early
    assert result.version == "1.2.0"
    assert result.frames == 11
    assert result.offset == len(data)
    assert result.consumed_fraction == 1.0

    assert log.version == "1.2.0"
    assert len(log) == 11
    counts = log.counts()
    assert counts[RecordKind.BARO] == 2
    assert all(counts[k] == 1 for k in counts if k != RecordKind.BARO)

    # Timestamps rebased to whole seconds after the first record
    assert log.imu[0].timestamp == 0
    assert log.flight_info[0].timestamp == 1
    assert log.voltage_info[0].timestamp == 4
    assert [r.timestamp for r in log.baro] == [0, 5]
    assert log.first_timestamp == 5
    assert log.last_timestamp == 10

    # Payloads untouched by assembly
    assert log.imu[0].sensor_id == 1
    assert abs(log.imu[0].acc_z - 9.81) < 1e-9
    assert log.baro[1].pressure == 100000
    assert log.event_info[0].event == 2
    assert log.error_info[0].error == 4
    assert log.gnss_info[0].satellites == 7

    print(" OK")


def test_unknown_record_stops_early():
    """An unknown selector ends decoding at the start of its frame header."""
    print("test_unknown_record_stops_early...", end="")

    good = make_frame(1000, RecordKind.VOLTAGE_INFO, voltage=1.0)
    bad = struct.pack("<II", 2000, 0x30) + b"\x00" * 16
    data = build_log("v", [good, bad, good])
    log, result = decode_flight_log(data)

    assert result.status == DecodeStatus.UNKNOWN_RECORD
    assert result.stopped_early
    assert result.offset == 2 + len(good)
    assert result.tag == 0x30
    assert result.frames == 1
    assert abs(result.percent_consumed - 100.0 * result.offset / len(data)) < 1e-9
    assert len(log.voltage_info) == 1

    print(" OK")


def test_truncated_payload():
    """A header whose payload runs off the end stops without a fatal error."""
    print("test_truncated_payload...", end="")

    good = make_frame(1000, RecordKind.BARO, pressure=1, temp=1.0)
    # GNSS needs 9 payload bytes, only 8 follow the header
    short = struct.pack("<II", 2000, RecordKind.GNSS_INFO) + b"\x00" * 8
    data = build_log("v", [good, short])
    log, result = decode_flight_log(data)

    assert result.status == DecodeStatus.TRUNCATED
    assert result.offset == 2 + len(good)
    assert result.error is not None
    assert result.error.needed == 9
    assert len(log.baro) == 1
    assert len(log.gnss_info) == 0

    print(" OK")


def test_trailing_margin():
    """Fewer than 8 bytes after the last frame are ignored."""
    print("test_trailing_margin...", end="")

    frame = make_frame(1000, RecordKind.FLIGHT_STATE, state=1)
    data = build_log("v", [frame]) + b"\xde\xad\xbe\xef\x00\x01\x02"
    log, result = decode_flight_log(data)

    assert result.status == DecodeStatus.COMPLETE
    assert result.frames == 1
    assert result.offset == 2 + len(frame)
    assert len(log.flight_state) == 1

    print(" OK")


def test_exactly_header_margin_left():
    """Exactly one frame header after the last frame is still read."""
    print("test_exactly_header_margin_left...", end="")

    frame = make_frame(1000, RecordKind.VOLTAGE_INFO, voltage=1.0)

    data = build_log("v", [frame]) + struct.pack("<II", 5000, 0x30)
    _, result = decode_flight_log(data)
    assert result.status == DecodeStatus.UNKNOWN_RECORD
    assert result.offset == 2 + len(frame)
    assert result.tag == 0x30
    assert result.frames == 1

    data = build_log("v", [frame]) + struct.pack("<II", 5000, RecordKind.GNSS_INFO)
    log, result = decode_flight_log(data)
    assert result.status == DecodeStatus.TRUNCATED
    assert result.offset == 2 + len(frame)
    assert result.error.available == 0
    assert len(log.voltage_info) == 1

    print(" OK")


def test_header_only():
    """Less than one frame header after the version string: no records."""
    print("test_header_only...", end="")

    for tail in (b"", b"\x01\x02\x03\x04\x05\x06\x07"):
        log, result = decode_flight_log(b"2.0\x00" + tail)
        assert result.status == DecodeStatus.COMPLETE
        assert result.frames == 0
        assert result.offset == 4
        assert len(log) == 0
        assert log.first_timestamp == 0
        assert log.last_timestamp == 0

    print(" OK")


def test_missing_terminator():
    print("test_missing_terminator...", end="")

    try:
        decode_flight_log(b"1.2.0")
        assert False, "Should have raised MissingTerminator"
    except MissingTerminator:
        pass

    print(" OK")


def test_header_margin():
    print("test_header_margin...", end="")

    frame = make_frame(1000, RecordKind.VOLTAGE_INFO, voltage=3.3)  # 10 bytes
    data = build_log("v", [frame, frame])

    _, result = decode_flight_log(data, header_margin=12)
    assert result.frames == 1
    assert result.status == DecodeStatus.COMPLETE

    try:
        FrameDecoder(data, LogAssembler(), header_margin=4)
        assert False, "Should have raised ValueError"
    except ValueError:
        pass

    print(" OK")


def test_normalized_sequence_properties():
    """Rebased timestamps start at 0 and never decrease."""
    print("test_normalized_sequence_properties...", end="")

    raw = [123456, 123999, 124000, 125001, 125001, 190000, 4000000]
    data = build_log("v", [make_frame(ts, RecordKind.ERROR_INFO, error=0) for ts in raw])
    log, _ = decode_flight_log(data)

    ts = [r.timestamp for r in log.error_info]
    assert ts[0] == 0
    assert all(t >= 0 for t in ts)
    assert all(a <= b for a, b in zip(ts, ts[1:]))
    assert ts == [(r - raw[0]) // 1000 for r in raw]

    print(" OK")


def test_series():
    print("test_series...", end="")

    data = build_log("v", [
        make_frame(0, RecordKind.BARO, pressure=101000, temp=20.0),
        make_frame(1000, RecordKind.BARO, pressure=100500, temp=19.5),
        make_frame(2500, RecordKind.BARO, pressure=100000, temp=19.0),
    ])
    log, _ = decode_flight_log(data)

    ts, pressure = log.series(RecordKind.BARO, "pressure")
    assert ts.dtype == np.int64
    np.testing.assert_array_equal(ts, [0, 1, 2])
    np.testing.assert_array_equal(pressure, [101000, 100500, 100000])

    _, temp = log.series(RecordKind.BARO, "temp")
    np.testing.assert_allclose(temp, [20.0, 19.5, 19.0])

    ts, volts = log.series(RecordKind.VOLTAGE_INFO, "voltage")
    assert len(ts) == 0 and len(volts) == 0

    for kind, name in ((RecordKind.BARO, "voltage"), (RecordKind.BARO, "timestamp"),
                       (RecordKind.UNKNOWN, "pressure")):
        try:
            log.series(kind, name)
            assert False, "Should have raised KeyError"
        except KeyError:
            pass

    print(" OK")


def test_assembler_finish_once():
    print("test_assembler_finish_once...", end="")

    asm = LogAssembler()
    asm.finish("v")
    try:
        asm.finish("v")
        assert False, "Should have raised RuntimeError"
    except RuntimeError:
        pass

    print(" OK")


if __name__ == "__main__":
    print("cfllog decoder tests")
    print("====================\n")

    test_normalizer()
    test_decode_flight_log()
    test_unknown_record_stops_early()
    test_truncated_payload()
    test_trailing_margin()
    test_exactly_header_margin_left()
    test_header_only()
    test_missing_terminator()
    test_header_margin()
    test_normalized_sequence_properties()
    test_series()
    test_assembler_finish_once()

    print("\nAll tests passed.")
