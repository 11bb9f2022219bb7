from __future__ import annotations

import argparse
import sys
from pathlib import Path

import yaml

from .config import load_config
from .json_utils import safe_json_dumps
from .replay import ReplayClock, read_jsonl_events, replay_events
from .session import Session


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Replay a recorded Inertia event stream and print the resulting statistics"
    )
    parser.add_argument("input", type=Path, help="Input event file (.jsonl)")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to YAML config (defaults are used when omitted)",
    )
    parser.add_argument(
        "--summary-json",
        type=Path,
        default=None,
        help="Optional path to write the full snapshot JSON, including histories",
    )
    return parser.parse_args(argv)


def _summary_lines(snapshot: dict, result: dict) -> list[str]:
    timing = snapshot["timing"]
    latency = snapshot["latency"]["stats"]
    noise = snapshot["noise"]["result"]
    integration = snapshot["integration"]
    lines = [
        f"events: motion={result['motion_events']} orientation={result['orientation_events']} "
        f"commands={result['commands']} rejected={result['rejected_events']}",
        f"samples: {timing['sample_count']} dropped: {timing['dropped_samples']}",
    ]
    stats = timing["stats"]
    if stats is not None:
        lines.append(
            f"interval: mean={stats['mean']:.2f} ms std={stats['std_dev']:.2f} ms "
            f"min={stats['min']:.2f} ms max={stats['max']:.2f} ms"
        )
    if latency["count"]:
        lines.append(
            f"latency: last={latency['last']:.1f} ms mean={latency['mean']:.1f} ms "
            f"n={latency['count']}"
        )
    if noise is not None:
        lines.append(
            f"noise: accel_std={noise['accel_noise_std_dev']:.4f} m/s^2 "
            f"gyro_std={noise['gyro_noise_std_dev']:.4f} deg/s n={noise['sample_count']}"
        )
    position = integration["position"]
    lines.append(
        f"integration: state={integration['state']} position=("
        f"{position['x']:.3f}, {position['y']:.3f}, {position['z']:.3f}) m"
    )
    return lines


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    if not args.input.exists():
        print(f"Error: input file not found: {args.input}", file=sys.stderr)
        return 1
    try:
        config = load_config(args.config) if args.config is not None else None
    except (OSError, ValueError, yaml.YAMLError) as exc:
        print(f"Error: could not load config: {exc}", file=sys.stderr)
        return 1

    clock = ReplayClock()
    session = Session(config, clock=clock)
    try:
        result = replay_events(read_jsonl_events(args.input), session, clock)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    snapshot = session.snapshot(include_history=args.summary_json is not None)
    for line in _summary_lines(snapshot, result.to_dict()):
        print(line)

    if args.summary_json is not None:
        args.summary_json.parent.mkdir(parents=True, exist_ok=True)
        payload = {"replay": result.to_dict(), "snapshot": snapshot}
        args.summary_json.write_text(safe_json_dumps(payload, indent=2), encoding="utf-8")
        print(f"wrote summary: {args.summary_json}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
