"""Tests for tap-to-impact latency detection."""

from __future__ import annotations

import pytest

from inertia.diagnostics import LatencyDetector, LatencyOutcome, LatencyState
from inertia.domain_models import SampleSource, SensorSample, Vector3
from inertia.timers import TimerQueue

REST = Vector3(0.0, 0.0, 9.81)


def _sample(ts: float, z: float = 9.81) -> SensorSample:
    return SensorSample(
        timestamp=ts,
        acceleration=Vector3(0.0, 0.0, z),
        measured_interval=16.0,
        source=SampleSource.generic_sensor,
    )


class TestLatencyDetector:
    def test_spike_after_tap_records_latency(self) -> None:
        timers = TimerQueue()
        detector = LatencyDetector(timers)
        assert detector.tap(1000.0, REST)
        assert detector.on_sample(_sample(1050.0)) is None
        report = detector.on_sample(_sample(1120.0, z=15.0))

        assert report is not None
        assert report.outcome is LatencyOutcome.detected
        assert report.latency_ms == pytest.approx(120.0)
        assert detector.measurements == [pytest.approx(120.0)]
        assert detector.state is LatencyState.idle
        stats = detector.stats()
        assert stats.last == pytest.approx(120.0)
        assert stats.count == 1

    def test_delta_must_exceed_threshold(self) -> None:
        detector = LatencyDetector(TimerQueue(), threshold_ms2=2.0)
        detector.tap(0.0, REST)
        assert detector.on_sample(_sample(10.0, z=11.5)) is None
        assert detector.waiting

    def test_timeout_without_spike(self) -> None:
        events: list[str] = []
        timers = TimerQueue()
        detector = LatencyDetector(timers, emit=lambda k, _t, _d: events.append(k))
        detector.tap(0.0, REST)
        timers.run_due(500.0)

        assert detector.state is LatencyState.idle
        assert detector.measurements == []
        assert detector.last_report is not None
        assert detector.last_report.outcome is LatencyOutcome.timed_out
        assert events == ["latency.waiting", "latency.timed_out"]

    def test_stale_timeout_does_not_end_new_tap(self) -> None:
        timers = TimerQueue()
        detector = LatencyDetector(timers, timeout_ms=500.0)
        detector.tap(0.0, REST)
        detector.on_sample(_sample(100.0, z=20.0))
        assert detector.tap(300.0, REST)

        timers.run_due(500.0)
        assert detector.waiting

        report = detector.on_sample(_sample(700.0, z=20.0))
        assert report is not None
        assert report.latency_ms == pytest.approx(400.0)
        assert len(detector.measurements) == 2

    def test_out_of_range_latency_is_discarded(self) -> None:
        detector = LatencyDetector(TimerQueue(), max_latency_ms=500.0, timeout_ms=1000.0)
        detector.tap(0.0, REST)
        report = detector.on_sample(_sample(600.0, z=20.0))
        assert report is not None
        assert report.outcome is LatencyOutcome.discarded
        assert detector.measurements == []
        assert detector.state is LatencyState.idle

    def test_zero_latency_is_discarded(self) -> None:
        detector = LatencyDetector(TimerQueue())
        detector.tap(50.0, REST)
        report = detector.on_sample(_sample(50.0, z=20.0))
        assert report is not None
        assert report.outcome is LatencyOutcome.discarded

    def test_no_prior_reading_uses_default_baseline(self) -> None:
        detector = LatencyDetector(TimerQueue(), default_baseline_ms2=9.8)
        detector.tap(0.0, Vector3())
        assert detector.baseline is None
        assert detector.effective_baseline == 9.8
        # 9.8 +/- 2 is quiet; a resting 9.81 reading is not a spike.
        assert detector.on_sample(_sample(10.0)) is None

    def test_tap_while_waiting_is_ignored(self) -> None:
        timers = TimerQueue()
        detector = LatencyDetector(timers)
        detector.tap(0.0, REST)
        assert not detector.tap(10.0, REST)
        assert detector.tap_time == 0.0
        assert len(timers) == 1

    def test_reset_clears_measurements_and_abandons_wait(self) -> None:
        timers = TimerQueue()
        detector = LatencyDetector(timers)
        detector.tap(0.0, REST)
        detector.on_sample(_sample(80.0, z=20.0))
        detector.tap(1000.0, REST)
        detector.reset()
        timers.run_due(2000.0)

        assert detector.measurements == []
        assert detector.last_report is None
        assert detector.stats().count == 0
        assert detector.stats().mean is None

    def test_stats_summary(self) -> None:
        detector = LatencyDetector(TimerQueue())
        for tap_at, hit_at in ((0.0, 100.0), (1000.0, 1200.0), (2000.0, 2150.0)):
            detector.tap(tap_at, REST)
            detector.on_sample(_sample(hit_at, z=20.0))
        stats = detector.stats()
        assert stats.count == 3
        assert stats.mean == pytest.approx(150.0)
        assert stats.min == pytest.approx(100.0)
        assert stats.max == pytest.approx(200.0)
        assert stats.last == pytest.approx(150.0)
