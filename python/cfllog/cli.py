"""cfllog command-line tool."""

from __future__ import annotations

import argparse
import json
import logging
import sys

from .decoder import DecodeResult, decode_flight_log, replay_telemetry
from .errors import CflError
from .frames import load_file
from .records import FRAME_HEADER_SIZE, RecordKind


def _format_record(rec) -> str:
    fields_str = ", ".join(
        f"{k}={v:.4f}" if isinstance(v, float) else f"{k}={v}"
        for k, v in vars(rec).items() if k not in ("timestamp", "sensor_id"))
    return f"[{rec.timestamp:6d} s] {rec.label}: {fields_str}"


def _report(result: DecodeResult) -> None:
    if result.stopped_early:
        print(f"Stopped early ({result.status.value}) at offset {result.offset}, "
              f"decoded {result.percent_consumed:.1f}% of the file",
              file=sys.stderr)


def _kind(name: str) -> RecordKind:
    try:
        kind = RecordKind[name.upper()]
    except KeyError:
        raise argparse.ArgumentTypeError(f"unknown record kind {name!r}") from None
    if kind is RecordKind.UNKNOWN:
        raise argparse.ArgumentTypeError("UNKNOWN records are never stored")
    return kind


def cmd_info(args: argparse.Namespace) -> None:
    """Print summary info about a flight log."""
    data = load_file(args.file)
    log, result = decode_flight_log(data, header_margin=args.margin)

    print(f"File:       {args.file}")
    print(f"Version:    {log.version}")
    print(f"Size:       {len(data):,} bytes")
    print(f"Frames:     {result.frames:,}")
    print(f"Status:     {result.status.value} at offset {result.offset} "
          f"({result.percent_consumed:.1f}%)")
    if len(log):
        print(f"Time range: {log.first_timestamp}s - {log.last_timestamp}s")
        print(f"Duration:   {log.last_timestamp - log.first_timestamp}s")
    else:
        print("Time range: (empty)")

    print("\nRecords:")
    for kind, count in log.counts().items():
        print(f"  {kind.name:<20s} {count:8,}")


def cmd_dump(args: argparse.Namespace) -> None:
    """Dump decoded records, grouped by kind."""
    log, result = decode_flight_log(load_file(args.file), header_margin=args.margin)
    kinds = [args.kind] if args.kind else list(log.counts())
    for kind in kinds:
        for rec in log.records(kind):
            print(_format_record(rec))
    _report(result)


def cmd_replay(args: argparse.Namespace) -> None:
    """Write the downlink event stream as JSON lines."""
    events, result = replay_telemetry(load_file(args.file), header_margin=args.margin)
    out = open(args.output, "w") if args.output else sys.stdout
    try:
        for ev in events:
            out.write(json.dumps(ev.to_dict(), allow_nan=False) + "\n")
    finally:
        if out is not sys.stdout:
            out.close()
    _report(result)


def cmd_series(args: argparse.Namespace) -> None:
    """Print one field of one record kind as CSV."""
    log, result = decode_flight_log(load_file(args.file), header_margin=args.margin)
    try:
        ts, values = log.series(args.kind, args.field)
    except KeyError as e:
        print(f"Error: {e.args[0]}", file=sys.stderr)
        sys.exit(1)
    print(f"time,{args.field}")
    for t, v in zip(ts.tolist(), values.tolist()):
        print(f"{t},{v}")
    _report(result)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="cfllog", description="Flight log decoder")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="Log progress (-vv for debug output)")
    parser.add_argument("--margin", type=int, default=FRAME_HEADER_SIZE,
                        help="Stop when fewer than this many bytes remain")
    sub = parser.add_subparsers(dest="command")

    p_info = sub.add_parser("info", help="Show summary info about a log file")
    p_info.add_argument("file", help="Path to .cfl log file")

    p_dump = sub.add_parser("dump", help="Dump decoded records")
    p_dump.add_argument("file", help="Path to .cfl log file")
    p_dump.add_argument("--kind", type=_kind, help="Only dump this record kind")

    p_replay = sub.add_parser("replay", help="Replay as downlink telemetry (JSON lines)")
    p_replay.add_argument("file", help="Path to .cfl log file")
    p_replay.add_argument("-o", "--output", help="Output file (default stdout)")

    p_series = sub.add_parser("series", help="Print one field as CSV")
    p_series.add_argument("file", help="Path to .cfl log file")
    p_series.add_argument("kind", type=_kind, help="Record kind, e.g. baro")
    p_series.add_argument("field", help="Field name, e.g. pressure")

    args = parser.parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(name)s: %(message)s")

    commands = {
        "info": cmd_info,
        "dump": cmd_dump,
        "replay": cmd_replay,
        "series": cmd_series,
    }
    handler = commands.get(args.command)
    if handler is None:
        parser.print_help()
        return

    try:
        handler(args)
    except (CflError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
