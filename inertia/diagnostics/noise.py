"""Static noise capture: stddev of accel / gyro magnitude over a fixed window."""

from __future__ import annotations

import logging

from ..constants import NOISE_MIN_SAMPLES, NOISE_WINDOW_MS
from ..domain_models import RotationRate, Vector3
from ..processing.normalizer import LastKnownVectors
from ..stats import population_std
from ..timers import TimerQueue
from ._types import (
    EventSink,
    NoiseOutcome,
    NoiseReport,
    NoiseResult,
    NoiseState,
    _discard_event,
)

LOGGER = logging.getLogger(__name__)


class NoiseProfiler:
    """One-shot, non-reentrant capture of the last-known sensor vectors.

    Capture buffers are unbounded for the duration of a window; they are
    cleared at the start of the next capture.
    """

    def __init__(
        self,
        timers: TimerQueue,
        *,
        window_ms: float = NOISE_WINDOW_MS,
        min_samples: int = NOISE_MIN_SAMPLES,
        emit: EventSink = _discard_event,
    ) -> None:
        self._timers = timers
        self._emit = emit
        self.window_ms = float(window_ms)
        self.min_samples = int(min_samples)
        self.state = NoiseState.idle
        self.accel_samples: list[Vector3] = []
        self.gyro_samples: list[RotationRate] = []
        self.last_result: NoiseResult | None = None
        self.last_report: NoiseReport | None = None
        self._generation = 0

    @property
    def capturing(self) -> bool:
        return self.state is NoiseState.capturing

    def start(self, now: float) -> bool:
        """Begin a capture window; returns ``False`` when one is already running."""
        if self.capturing:
            return False
        self.accel_samples = []
        self.gyro_samples = []
        self.state = NoiseState.capturing
        self._generation += 1
        generation = self._generation
        self._timers.schedule(
            "noise-window",
            now + self.window_ms,
            lambda deadline: self._on_window_elapsed(generation, deadline),
        )
        LOGGER.info("Noise capture started (window=%.0f ms)", self.window_ms)
        self._emit("noise.started", now, {"window_ms": self.window_ms})
        return True

    def on_sample(self, last_known: LastKnownVectors) -> None:
        if not self.capturing:
            return
        self.accel_samples.append(last_known.acceleration)
        self.gyro_samples.append(last_known.gyro)

    def _on_window_elapsed(self, generation: int, deadline: float) -> None:
        if generation != self._generation or not self.capturing:
            return
        self.finish(deadline)

    def finish(self, now: float) -> NoiseReport | None:
        """Close the capture window and compute results.

        Returns ``None`` when no capture was running.
        """
        if not self.capturing:
            return None
        self.state = NoiseState.idle
        count = len(self.accel_samples)
        if count < self.min_samples:
            LOGGER.warning(
                "Noise capture collected %d sample(s), need at least %d; keeping previous result",
                count,
                self.min_samples,
            )
            report = NoiseReport(outcome=NoiseOutcome.insufficient_data, sample_count=count)
            self.last_report = report
            self._emit(
                "noise.insufficient_data",
                now,
                {"sample_count": count, "min_samples": self.min_samples},
            )
            return report

        result = NoiseResult(
            accel_noise_std_dev=population_std(v.magnitude() for v in self.accel_samples),
            gyro_noise_std_dev=population_std(g.magnitude() for g in self.gyro_samples),
            sample_count=count,
            completed_at_ms=now,
        )
        self.last_result = result
        report = NoiseReport(outcome=NoiseOutcome.completed, sample_count=count, result=result)
        self.last_report = report
        LOGGER.info(
            "Noise capture completed: samples=%d accel_std=%.5f gyro_std=%.5f",
            count,
            result.accel_noise_std_dev,
            result.gyro_noise_std_dev,
        )
        self._emit("noise.completed", now, result.to_dict())
        return report

    def reset(self) -> None:
        """Abandon any running capture and forget results."""
        self._generation += 1
        self.state = NoiseState.idle
        self.accel_samples = []
        self.gyro_samples = []
        self.last_result = None
        self.last_report = None
