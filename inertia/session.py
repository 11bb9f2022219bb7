"""Diagnostics session: one context object owning every per-session component.

Boundary note for maintainers:
- Keep this module focused on fan-out and the command surface.
- Per-component math belongs in ``processing/``, ``diagnostics/`` and
  ``motion/``.

All public methods run synchronously to completion.  Due timers are fired
at the start of every operation, so a timer whose deadline is at or before
an event's arrival time takes effect before that event is processed.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from collections.abc import Callable, Mapping
from typing import Any

from .config import AppConfig, build_config
from .constants import MS_PER_SECOND
from .diagnostics import LatencyDetector, NoiseProfiler
from .diagnostics._types import LatencyStats, NoiseResult
from .domain_models import (
    CoreEvent,
    OrientationSample,
    RecordedSample,
    SensorSample,
)
from .motion import (
    HeightPoint,
    OrientationTracker,
    PositionIntegrator,
    RelativeAngles,
    TracePoint,
)
from .processing import (
    IntervalStats,
    LastKnownVectors,
    SampleFormatError,
    SampleNormalizer,
    TimingAnalyzer,
)
from .timers import TimerQueue

LOGGER = logging.getLogger(__name__)

Clock = Callable[[], float]
"""Monotonic clock returning milliseconds."""

EventListener = Callable[[CoreEvent], None]


def monotonic_ms() -> float:
    return time.monotonic() * MS_PER_SECOND


class Session:
    def __init__(self, config: AppConfig | None = None, *, clock: Clock = monotonic_ms) -> None:
        self.config = config or build_config()
        self.clock = clock
        self.timers = TimerQueue()
        self._events: deque[CoreEvent] = deque(maxlen=self.config.runtime.event_history_size)
        self._listeners: list[EventListener] = []

        cfg = self.config
        self.normalizer = SampleNormalizer()
        self.timing = TimingAnalyzer(
            expected_interval_ms=cfg.timing.expected_interval_ms,
            drop_factor=cfg.timing.drop_factor,
            history_size=cfg.timing.history_size,
            min_stats_samples=cfg.timing.min_stats_samples,
        )
        self.noise = NoiseProfiler(
            self.timers,
            window_ms=cfg.noise.window_ms,
            min_samples=cfg.noise.min_samples,
            emit=self._emit,
        )
        self.latency = LatencyDetector(
            self.timers,
            threshold_ms2=cfg.latency.threshold_ms2,
            timeout_ms=cfg.latency.timeout_ms,
            max_latency_ms=cfg.latency.max_latency_ms,
            default_baseline_ms2=cfg.latency.default_baseline_ms2,
            emit=self._emit,
        )
        self.orientation = OrientationTracker(history_size=cfg.orientation.history_size)
        self.integrator = PositionIntegrator(
            self.timers,
            calibration_window_ms=cfg.integration.calibration_window_ms,
            deadzone_ms2=cfg.integration.deadzone_ms2,
            max_dt_s=cfg.integration.max_dt_s,
            height_history_size=cfg.integration.height_history_size,
            trace_history_size=cfg.integration.trace_history_size,
            default_gravity=cfg.integration.default_gravity,
            emit=self._emit,
        )

        self.sample_count = 0
        self.orientation_count = 0
        self.rejected_events = 0
        self.recording = False
        self._recorded: list[RecordedSample] = []
        self.started_at_ms = self.clock()
        self._start(self.started_at_ms)

    def _start(self, now: float) -> None:
        self.recording = self.config.recording.auto_start
        if self.config.integration.enabled_on_start:
            self.integrator.set_enabled(True, now)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def _emit(self, kind: str, ts_ms: float, detail: dict[str, Any]) -> None:
        event = CoreEvent(kind=kind, ts_ms=ts_ms, detail=detail)
        self._events.append(event)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                LOGGER.warning("Event listener failed for %s", kind, exc_info=True)

    def subscribe(self, listener: EventListener) -> Callable[[], None]:
        """Register *listener* for every emitted event; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def events(self) -> list[CoreEvent]:
        return list(self._events)

    # ------------------------------------------------------------------
    # Clock / timers
    # ------------------------------------------------------------------

    def _now(self) -> float:
        now = self.clock()
        self.timers.run_due(now)
        return now

    def poll(self) -> int:
        """Fire timers that are due at the current clock reading."""
        return self.timers.run_due(self.clock())

    # ------------------------------------------------------------------
    # Sample intake
    # ------------------------------------------------------------------

    @property
    def last_known(self) -> LastKnownVectors:
        return self.normalizer.last_known

    def ingest_motion(self, raw: Mapping[str, Any], now: float | None = None) -> SensorSample:
        """Normalize one raw motion event and fan it out to every component.

        *now* is the arrival time in session-clock milliseconds; it defaults
        to the current clock reading.  Timers due by then fire first.

        Raises :class:`~inertia.processing.SampleFormatError` for malformed
        events; nothing is updated in that case.
        """
        if now is None:
            now = self._now()
        else:
            self.timers.run_due(now)
        try:
            sample = self.normalizer.normalize(raw, now)
        except SampleFormatError:
            self.rejected_events += 1
            raise
        self.sample_count += 1
        if self.sample_count > 1:
            self.timing.record_interval(sample.measured_interval)

        last = self.normalizer.last_known
        self.noise.on_sample(last)
        if self.recording:
            self._recorded.append(
                RecordedSample(
                    timestamp=sample.timestamp,
                    reported_interval=sample.reported_interval,
                    measured_interval=sample.measured_interval,
                    acceleration=last.acceleration,
                    acceleration_no_gravity=sample.acceleration_no_gravity,
                    rotation_rate=last.gyro,
                )
            )
        self.latency.on_sample(sample)
        self.integrator.on_sample(sample, last.acceleration)
        return sample

    def ingest_orientation(self, raw: Mapping[str, Any] | OrientationSample) -> RelativeAngles:
        now = self._now()
        reading = raw if isinstance(raw, OrientationSample) else OrientationSample.from_mapping(raw)
        self.orientation_count += 1
        return self.orientation.on_orientation(reading, now)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def tap_latency(self) -> bool:
        now = self._now()
        return self.latency.tap(now, self.normalizer.last_known.acceleration)

    def reset_latency(self) -> None:
        now = self._now()
        self.latency.reset()
        self._emit("latency.reset", now, {})

    def start_noise_capture(self) -> bool:
        return self.noise.start(self._now())

    def reset_orientation(self) -> None:
        now = self._now()
        offset = self.orientation.zero()
        self._emit("orientation.zeroed", now, {"offset": offset.to_dict()})

    def reset_integration(self) -> None:
        self.integrator.reset(self._now())

    def set_integration_enabled(self, enabled: bool) -> None:
        self.integrator.set_enabled(enabled, self._now())

    def start_recording(self) -> None:
        now = self._now()
        self._recorded = []
        self.recording = True
        LOGGER.info("Recording started")
        self._emit("recording.started", now, {})

    def stop_recording(self) -> int:
        now = self._now()
        self.recording = False
        count = len(self._recorded)
        LOGGER.info("Recording stopped with %d sample(s)", count)
        self._emit("recording.stopped", now, {"sample_count": count})
        return count

    def reset_session(self) -> None:
        """Tear down every per-session counter, history and pending operation."""
        now = self._now()
        self.timers.clear()
        self.normalizer.reset()
        self.timing.reset()
        self.noise.reset()
        self.latency.reset()
        self.orientation.reset()
        self.integrator.clear()
        self.integrator.enabled = False
        self.sample_count = 0
        self.orientation_count = 0
        self.rejected_events = 0
        self._recorded = []
        self._events.clear()
        self.started_at_ms = now
        self._start(now)
        LOGGER.info("Session reset")
        self._emit("session.reset", now, {})

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    @property
    def dropped_samples(self) -> int:
        return self.timing.dropped_samples

    def timing_stats(self) -> IntervalStats | None:
        return self.timing.stats()

    def sample_rate(self) -> float | None:
        elapsed_s = (self.clock() - self.started_at_ms) / MS_PER_SECOND
        return self.timing.sample_rate(elapsed_s, self.sample_count)

    @property
    def noise_result(self) -> NoiseResult | None:
        return self.noise.last_result

    def latency_stats(self) -> LatencyStats:
        return self.latency.stats()

    @property
    def relative_angles(self) -> RelativeAngles | None:
        return self.orientation.latest

    def orientation_history(self) -> list[RelativeAngles]:
        return self.orientation.history.snapshot()

    def height_history(self) -> list[HeightPoint]:
        return self.integrator.height_history.snapshot()

    def xy_trace(self) -> list[TracePoint]:
        return self.integrator.trace_history.snapshot()

    def recorded_samples(self) -> tuple[RecordedSample, ...]:
        return tuple(self._recorded)

    def timing_snapshot(self) -> dict[str, Any]:
        stats = self.timing_stats()
        return {
            "sample_count": self.sample_count,
            "dropped_samples": self.dropped_samples,
            "sample_rate_hz": self.sample_rate(),
            "expected_interval_ms": self.timing.expected_interval_ms,
            "interval_count": len(self.timing.intervals),
            "last_interval_ms": self.timing.intervals.latest(),
            "stats": stats.to_dict() if stats is not None else None,
            "rejected_events": self.rejected_events,
        }

    def noise_snapshot(self) -> dict[str, Any]:
        report = self.noise.last_report
        return {
            "state": str(self.noise.state),
            "captured_samples": len(self.noise.accel_samples),
            "last_outcome": str(report.outcome) if report is not None else None,
            "result": self.noise.last_result.to_dict() if self.noise.last_result else None,
        }

    def latency_snapshot(self) -> dict[str, Any]:
        report = self.latency.last_report
        return {
            "state": str(self.latency.state),
            "threshold_ms2": self.latency.threshold_ms2,
            "last_report": report.to_dict() if report is not None else None,
            "stats": self.latency_stats().to_dict(),
            "measurements": list(self.latency.measurements),
        }

    def orientation_snapshot(self, *, include_history: bool = True) -> dict[str, Any]:
        current = self.orientation.current
        latest = self.relative_angles
        out: dict[str, Any] = {
            "current": current.to_dict() if current is not None else None,
            "offset": self.orientation.offset.to_dict(),
            "relative": latest.to_dict() if latest is not None else None,
            "history_size": len(self.orientation.history),
        }
        if include_history:
            out["history"] = [a.to_dict() for a in self.orientation.history]
        return out

    def integration_snapshot(self, *, include_history: bool = True) -> dict[str, Any]:
        out = self.integrator.snapshot()
        if include_history:
            out["height_history"] = [p.to_dict() for p in self.integrator.height_history]
            out["xy_trace"] = [p.to_dict() for p in self.integrator.trace_history]
        return out

    def recording_snapshot(self) -> dict[str, Any]:
        return {"recording": self.recording, "sample_count": len(self._recorded)}

    def snapshot(self, *, include_history: bool = False) -> dict[str, Any]:
        """Return every computed statistic as plain JSON-compatible data."""
        last = self.normalizer.last_known
        return {
            "timing": self.timing_snapshot(),
            "last_known": {
                "acceleration": last.acceleration.to_dict(),
                "acceleration_magnitude": last.acceleration.magnitude(),
                "gyro": last.gyro.to_dict(),
                "gyro_magnitude": last.gyro.magnitude(),
            },
            "noise": self.noise_snapshot(),
            "latency": self.latency_snapshot(),
            "orientation": self.orientation_snapshot(include_history=include_history),
            "integration": self.integration_snapshot(include_history=include_history),
            "recording": self.recording_snapshot(),
            "pending_timers": self.timers.pending(),
        }
