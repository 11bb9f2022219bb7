"""Shared states, outcomes and result records for the one-shot diagnostics."""

from __future__ import annotations

import enum
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

EventSink = Callable[[str, float, dict[str, Any]], None]
"""``(kind, ts_ms, detail)`` receiver for named state transitions."""


def _discard_event(kind: str, ts_ms: float, detail: dict[str, Any]) -> None:
    return None


class NoiseState(enum.StrEnum):
    idle = "idle"
    capturing = "capturing"


class NoiseOutcome(enum.StrEnum):
    completed = "completed"
    insufficient_data = "insufficient_data"


class LatencyState(enum.StrEnum):
    idle = "idle"
    waiting = "waiting"


class LatencyOutcome(enum.StrEnum):
    detected = "detected"
    discarded = "discarded"
    timed_out = "timed_out"


@dataclass(frozen=True, slots=True)
class NoiseResult:
    accel_noise_std_dev: float
    gyro_noise_std_dev: float
    sample_count: int
    completed_at_ms: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "accel_noise_std_dev": self.accel_noise_std_dev,
            "gyro_noise_std_dev": self.gyro_noise_std_dev,
            "sample_count": self.sample_count,
            "completed_at_ms": self.completed_at_ms,
        }


@dataclass(frozen=True, slots=True)
class NoiseReport:
    outcome: NoiseOutcome
    sample_count: int
    result: NoiseResult | None = None


@dataclass(frozen=True, slots=True)
class LatencyReport:
    outcome: LatencyOutcome
    ts_ms: float
    latency_ms: float | None = None
    delta_ms2: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "outcome": str(self.outcome),
            "ts_ms": self.ts_ms,
            "latency_ms": self.latency_ms,
            "delta_ms2": self.delta_ms2,
        }


@dataclass(frozen=True, slots=True)
class LatencyStats:
    last: float | None
    mean: float | None
    min: float | None
    max: float | None
    count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "last": self.last,
            "mean": self.mean,
            "min": self.min,
            "max": self.max,
            "count": self.count,
        }
