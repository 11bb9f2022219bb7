"""Replay of recorded raw event streams through a :class:`~inertia.session.Session`.

A replay file is JSONL, one event per line::

    {"t_ms": 0.0, "type": "motion", "event": {"source": "DeviceMotion", ...}}
    {"t_ms": 5.0, "type": "orientation", "event": {"alpha": 10, "beta": 0, "gamma": 0}}
    {"t_ms": 9.0, "type": "command", "name": "tap_latency"}
    {"t_ms": 9.5, "type": "command", "name": "set_integration_enabled", "args": {"enabled": true}}

``t_ms`` is the arrival time on the monotonic clock of the recording.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .domain_models import _as_float_or_none
from .processing import SampleFormatError

if TYPE_CHECKING:
    from .session import Session

LOGGER = logging.getLogger(__name__)

__all__ = [
    "COMMANDS",
    "EVENT_TYPES",
    "ReplayClock",
    "ReplayEvent",
    "ReplayResult",
    "read_jsonl_events",
    "replay_events",
    "write_jsonl_events",
]

EVENT_TYPES: tuple[str, ...] = ("motion", "orientation", "command")

COMMANDS: tuple[str, ...] = (
    "tap_latency",
    "reset_latency",
    "start_noise_capture",
    "reset_orientation",
    "reset_integration",
    "set_integration_enabled",
    "start_recording",
    "stop_recording",
    "reset_session",
)


class ReplayClock:
    """Settable millisecond clock driven by the replayed timestamps."""

    def __init__(self, start_ms: float = 0.0) -> None:
        self.now_ms = float(start_ms)

    def set(self, now_ms: float) -> None:
        if now_ms < self.now_ms:
            LOGGER.debug("Replay time went backwards (%.3f < %.3f)", now_ms, self.now_ms)
        self.now_ms = float(now_ms)

    def __call__(self) -> float:
        return self.now_ms


@dataclass(frozen=True, slots=True)
class ReplayEvent:
    t_ms: float
    type: str
    event: dict[str, Any] = field(default_factory=dict)
    name: str | None = None
    args: dict[str, Any] = field(default_factory=dict)

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {"t_ms": self.t_ms, "type": self.type}
        if self.type == "command":
            record["name"] = self.name
            if self.args:
                record["args"] = dict(self.args)
        else:
            record["event"] = dict(self.event)
        return record

    @classmethod
    def from_record(cls, payload: dict[str, Any], *, where: str = "record") -> ReplayEvent:
        t_ms = _as_float_or_none(payload.get("t_ms"))
        if t_ms is None:
            raise ValueError(f"{where}: missing numeric 't_ms'")
        event_type = payload.get("type")
        if event_type not in EVENT_TYPES:
            raise ValueError(f"{where}: unknown event type {event_type!r}")
        if event_type == "command":
            name = payload.get("name")
            if name not in COMMANDS:
                raise ValueError(f"{where}: unknown command {name!r}")
            args = payload.get("args") or {}
            if not isinstance(args, dict):
                raise ValueError(f"{where}: command args must be an object")
            if not isinstance(args.get("enabled", True), bool):
                raise ValueError(f"{where}: 'enabled' must be true or false")
            return cls(t_ms=t_ms, type="command", name=str(name), args=args)
        event = payload.get("event")
        if not isinstance(event, dict):
            raise ValueError(f"{where}: {event_type} record needs an 'event' object")
        return cls(t_ms=t_ms, type=str(event_type), event=event)


@dataclass(slots=True)
class ReplayResult:
    motion_events: int = 0
    orientation_events: int = 0
    commands: int = 0
    rejected_events: int = 0
    end_ms: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "motion_events": self.motion_events,
            "orientation_events": self.orientation_events,
            "commands": self.commands,
            "rejected_events": self.rejected_events,
            "end_ms": self.end_ms,
        }


def read_jsonl_events(path: Path) -> Iterator[ReplayEvent]:
    """Yield events from a JSONL replay file.

    Corrupt JSON lines are skipped with a warning; well-formed JSON that is
    not a valid event raises :class:`ValueError` naming the line.
    """
    if not path.exists():
        raise FileNotFoundError(path)
    skipped = 0
    with path.open("r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            text = line.strip()
            if not text:
                continue
            try:
                payload = json.loads(text)
            except json.JSONDecodeError as exc:
                LOGGER.warning("Skipping corrupt JSONL line %d in %s: %s", line_no, path, exc)
                skipped += 1
                continue
            if not isinstance(payload, dict):
                raise ValueError(f"{path}:{line_no}: expected a JSON object")
            yield ReplayEvent.from_record(payload, where=f"{path}:{line_no}")
    if skipped:
        LOGGER.warning("Skipped %d corrupt line(s) while reading %s", skipped, path)


def write_jsonl_events(events: Iterable[ReplayEvent], path: Path) -> int:
    count = 0
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        for event in events:
            f.write(json.dumps(event.to_record(), separators=(",", ":")))
            f.write("\n")
            count += 1
    return count


def _run_command(session: Session, event: ReplayEvent) -> None:
    name = event.name
    if name == "set_integration_enabled":
        session.set_integration_enabled(event.args.get("enabled", True))
        return
    getattr(session, str(name))()


def _settle_window_ms(session: Session) -> float:
    cfg = session.config
    return max(
        cfg.noise.window_ms,
        cfg.latency.timeout_ms,
        cfg.integration.calibration_window_ms,
    )


def replay_events(
    events: Iterable[ReplayEvent],
    session: Session,
    clock: ReplayClock,
    *,
    settle: bool = True,
) -> ReplayResult:
    """Feed *events* into *session* in order, driving *clock* from ``t_ms``.

    With *settle*, the clock is advanced past the longest timer window after
    the last event so that pending captures and timeouts complete.
    """
    result = ReplayResult()
    for event in events:
        clock.set(event.t_ms)
        if event.type == "motion":
            try:
                session.ingest_motion(event.event)
            except SampleFormatError as exc:
                result.rejected_events += 1
                LOGGER.debug("Rejected motion event at %.1f ms: %s", event.t_ms, exc)
                continue
            result.motion_events += 1
        elif event.type == "orientation":
            session.ingest_orientation(event.event)
            result.orientation_events += 1
        else:
            _run_command(session, event)
            result.commands += 1
    if settle:
        clock.set(clock() + _settle_window_ms(session))
        session.poll()
    result.end_ms = clock()
    return result
