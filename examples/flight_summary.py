#!/usr/bin/env python3
"""Print apogee and flight mode changes from a recorded flight log.

    python examples/flight_summary.py flight.cfl
"""

import sys

import numpy as np

from cfllog import RecordKind, TelemetryFamily, decode_flight_log, load_file, replay_telemetry

data = load_file(sys.argv[1])

log, result = decode_flight_log(data)
ts, height = log.series(RecordKind.FLIGHT_INFO, "height")
if len(height):
    i = int(np.argmax(height))
    print(f"apogee={height[i]:.1f} m at t={ts[i]}s")

events, _ = replay_telemetry(data)
mode = None
for ev in events:
    if ev.family is TelemetryFamily.MAIN and ev.snapshot.mode != mode:
        mode = ev.snapshot.mode
        print(f"t={ev.snapshot.time}s mode={mode.value}")

if result.stopped_early:
    print(f"stopped at offset {result.offset} ({result.percent_consumed:.1f}%)")
