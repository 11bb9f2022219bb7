"""Tap-to-impact latency detection.

A tap on the screen is timestamped, then the detector waits for the first
accelerometer sample whose magnitude departs from the pre-tap baseline by
more than ``threshold_ms2``.  The difference between the two timestamps is
the end-to-end sensor latency.

A spike always ends the waiting state, even when the derived latency falls
outside ``(0, max_latency_ms)`` and the measurement is discarded.
"""

from __future__ import annotations

import logging

from ..constants import (
    DEFAULT_BASELINE_MS2,
    LATENCY_MAX_MS,
    LATENCY_THRESHOLD_MS2,
    LATENCY_TIMEOUT_MS,
)
from ..domain_models import SensorSample, Vector3
from ..stats import calculate_stats
from ..timers import TimerQueue
from ._types import (
    EventSink,
    LatencyOutcome,
    LatencyReport,
    LatencyState,
    LatencyStats,
    _discard_event,
)

LOGGER = logging.getLogger(__name__)


class LatencyDetector:
    def __init__(
        self,
        timers: TimerQueue,
        *,
        threshold_ms2: float = LATENCY_THRESHOLD_MS2,
        timeout_ms: float = LATENCY_TIMEOUT_MS,
        max_latency_ms: float = LATENCY_MAX_MS,
        default_baseline_ms2: float = DEFAULT_BASELINE_MS2,
        emit: EventSink = _discard_event,
    ) -> None:
        self._timers = timers
        self._emit = emit
        self.threshold_ms2 = float(threshold_ms2)
        self.timeout_ms = float(timeout_ms)
        self.max_latency_ms = float(max_latency_ms)
        self.default_baseline_ms2 = float(default_baseline_ms2)
        self.state = LatencyState.idle
        self.tap_time: float | None = None
        self.baseline: float | None = None
        self.measurements: list[float] = []
        self.last_report: LatencyReport | None = None
        # Bumped on every tap and reset so that a stale timeout never ends a
        # newer wait.
        self._tap_generation = 0

    @property
    def waiting(self) -> bool:
        return self.state is LatencyState.waiting

    def tap(self, now: float, last_acceleration: Vector3) -> bool:
        """Start waiting for an impact; ignored (``False``) while already waiting."""
        if self.waiting:
            return False
        self.tap_time = now
        mag = last_acceleration.magnitude()
        # A zero vector means no reading has arrived yet.
        self.baseline = mag if mag > 0 else None
        self.state = LatencyState.waiting
        self._tap_generation += 1
        generation = self._tap_generation
        self._timers.schedule(
            "latency-timeout",
            now + self.timeout_ms,
            lambda deadline: self._on_timeout(generation, deadline),
        )
        self._emit("latency.waiting", now, {"baseline_ms2": self.effective_baseline})
        return True

    @property
    def effective_baseline(self) -> float:
        return self.baseline if self.baseline is not None else self.default_baseline_ms2

    def on_sample(self, sample: SensorSample) -> LatencyReport | None:
        if not self.waiting or self.tap_time is None:
            return None
        delta = abs(sample.acceleration.magnitude() - self.effective_baseline)
        if delta <= self.threshold_ms2:
            return None

        latency = sample.timestamp - self.tap_time
        self.state = LatencyState.idle
        if 0 < latency < self.max_latency_ms:
            self.measurements.append(latency)
            report = LatencyReport(
                outcome=LatencyOutcome.detected,
                ts_ms=sample.timestamp,
                latency_ms=latency,
                delta_ms2=delta,
            )
            LOGGER.info("Latency detected: %.1f ms (spike %.2f m/s^2)", latency, delta)
        else:
            report = LatencyReport(
                outcome=LatencyOutcome.discarded,
                ts_ms=sample.timestamp,
                latency_ms=latency,
                delta_ms2=delta,
            )
            LOGGER.debug("Discarding out-of-range latency %.1f ms", latency)
        self.last_report = report
        self._emit(f"latency.{report.outcome}", sample.timestamp, report.to_dict())
        return report

    def _on_timeout(self, generation: int, deadline: float) -> None:
        if generation != self._tap_generation or not self.waiting:
            return
        self.state = LatencyState.idle
        report = LatencyReport(outcome=LatencyOutcome.timed_out, ts_ms=deadline)
        self.last_report = report
        LOGGER.info("No impact detected within %.0f ms of tap", self.timeout_ms)
        self._emit("latency.timed_out", deadline, report.to_dict())

    def stats(self) -> LatencyStats:
        if not self.measurements:
            return LatencyStats(last=None, mean=None, min=None, max=None, count=0)
        summary = calculate_stats(self.measurements)
        return LatencyStats(
            last=self.measurements[-1],
            mean=summary.mean,
            min=summary.min,
            max=summary.max,
            count=len(self.measurements),
        )

    def reset(self) -> None:
        self.measurements = []
        self.state = LatencyState.idle
        self.tap_time = None
        self.baseline = None
        self.last_report = None
        self._tap_generation += 1
