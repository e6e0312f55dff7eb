from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from attitude_engine.clock import ManualClock
from attitude_engine.config import ConfigError, SessionConfig, load_config
from attitude_engine.environment import InputEvent, InputType, Target
from attitude_engine.event_sink import InMemoryEventSink, SessionRecorder
from attitude_engine.reporting import render_timeline
from attitude_engine.session import AttitudeSession
from attitude_engine.stream_io import InputFormatError, load_interaction_stream

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

# Quiet time replayed after the last recorded event when --until is not given.
DEFAULT_TAIL_MS = 1000.0


def _demo_stream() -> list[InputEvent]:
    # Deterministic demo session (kept small): a skim, a stray click, a polite
    # click, the secret combo, a tab switch, then a pause.
    page = {"scroll_height": 4000.0, "client_height": 800.0}
    button = Target("BUTTON")
    events = [
        InputEvent(InputType.SCROLL, 0.0, data={"y": 0.0, **page}),
        InputEvent(InputType.SCROLL, 500.0, data={"y": 1500.0, **page}),
        InputEvent(InputType.CLICK, 1000.0, target=Target("SPAN")),
        InputEvent(InputType.CLICK, 1500.0, target=Target("SPAN", parent=button)),
    ]
    for i, key in enumerate("FLAVOR"):
        events.append(InputEvent(InputType.KEY_DOWN, 3000.0 + 100.0 * i, data={"key": key}))
    events += [
        InputEvent(InputType.VISIBILITY_CHANGE, 4000.0, data={"state": "hidden"}),
        InputEvent(InputType.VISIBILITY_CHANGE, 6000.0, data={"state": "visible"}),
        InputEvent(InputType.POINTER_MOVE, 12000.0),
    ]
    return events


def _cmd_replay(args: argparse.Namespace) -> int:
    chosen = sum(1 for v in [bool(args.demo), bool(args.input)] if v)
    if chosen != 1:
        print("ERROR: choose exactly one of --demo or --input.", file=sys.stderr)
        return 2

    config = SessionConfig()
    if args.config:
        try:
            config = load_config(Path(str(args.config)))
        except ConfigError as e:
            print(f"ERROR: invalid config: {e}", file=sys.stderr)
            return 2

    if args.input:
        try:
            events = load_interaction_stream(Path(str(args.input)))
        except InputFormatError as e:
            print(f"ERROR: invalid input stream: {e}", file=sys.stderr)
            return 2
    else:
        events = _demo_stream()

    if args.until is not None:
        until = float(args.until)
    else:
        until = (events[-1].at if events else 0.0) + DEFAULT_TAIL_MS

    session = AttitudeSession(config, clock=ManualClock())
    sink = InMemoryEventSink()
    recorder = SessionRecorder(sink, session.clock)
    recorder.attach(session.engine, session.eggs)

    session.start()
    session.replay(events, until_ms=until)
    recorder.detach()
    session.stop()

    sys.stdout.write(render_timeline(sink.events, final=session.engine.snapshot()))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="attitude_engine",
        description=(
            "Attitude Engine: session replay harness.\n"
            "\n"
            "Replays a recorded interaction stream on a simulated clock and prints\n"
            "the resulting score, level and easter egg timeline."
        ),
    )
    sub = parser.add_subparsers(dest="command", required=True)

    replay = sub.add_parser("replay", help="Replay an interaction stream and print the timeline.")
    replay.add_argument("--demo", action="store_true", help="Replay the built-in deterministic demo session.")
    replay.add_argument("--input", type=str, help="Replay a recorded interaction stream JSON.")
    replay.add_argument("--config", type=str, help="Optional session config JSON.")
    replay.add_argument(
        "--until",
        type=float,
        default=None,
        help="Advance the clock to this time (ms) after the last event. Default: last event + 1000.",
    )
    replay.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default="WARNING",
        help="Logging threshold for diagnostics on stderr.",
    )
    replay.set_defaults(func=_cmd_replay)

    return parser


def main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, getattr(args, "log_level", "WARNING")),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
