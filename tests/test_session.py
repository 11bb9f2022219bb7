"""End-to-end behaviour of the diagnostics session fan-out and commands."""

from __future__ import annotations

import pytest
from conftest import FakeClock, device_motion_event, motion_event

from inertia.config import build_config
from inertia.diagnostics import LatencyOutcome, LatencyState, NoiseOutcome, NoiseState
from inertia.motion import IntegratorState
from inertia.processing import SampleFormatError
from inertia.session import Session


def _stream(session: Session, clock: FakeClock, count: int, step_ms: float = 16.0, **kw) -> None:
    for _ in range(count):
        clock.advance(step_ms)
        session.ingest_motion(motion_event(**kw))


class TestIntake:
    def test_first_sample_does_not_record_interval(self, session, clock) -> None:
        session.ingest_motion(motion_event())
        assert session.sample_count == 1
        assert len(session.timing.intervals) == 0

    def test_dropped_samples_accumulate(self, session, clock) -> None:
        session.ingest_motion(motion_event())
        clock.advance(40.0)
        session.ingest_motion(motion_event())
        clock.advance(16.0)
        session.ingest_motion(motion_event())
        assert session.dropped_samples == 1
        assert session.timing.intervals.snapshot() == [40.0, 16.0]

    def test_malformed_event_is_rejected_without_side_effects(self, session, clock) -> None:
        session.ingest_motion(motion_event())
        clock.advance(16.0)
        with pytest.raises(SampleFormatError):
            session.ingest_motion({"gyroscope": {"x": 1.0}})
        assert session.sample_count == 1
        assert session.rejected_events == 1
        assert session.normalizer.last_timestamp == 0.0

    def test_timing_stats_after_enough_samples(self, session, clock) -> None:
        session.ingest_motion(motion_event())
        assert session.timing_stats() is None
        _stream(session, clock, 11)
        stats = session.timing_stats()
        assert stats is not None
        assert stats.mean == pytest.approx(16.0)
        assert session.sample_rate() == pytest.approx(12 / 0.176)

    def test_device_motion_and_orientation(self, session, clock) -> None:
        session.ingest_motion(device_motion_event(0.0, 0.0, 9.81, rotation=(1.0, 2.0, 2.0)))
        assert session.last_known.gyro.magnitude() == pytest.approx(3.0)
        angles = session.ingest_orientation({"alpha": 370.0, "beta": 1.0, "gamma": 2.0})
        assert angles.yaw == pytest.approx(10.0)
        assert session.orientation_count == 1
        assert session.relative_angles == angles


class TestCommands:
    def test_tap_then_spike_measures_latency(self, session, clock) -> None:
        session.ingest_motion(motion_event())
        clock.set(1000.0)
        assert session.tap_latency()
        clock.set(1120.0)
        session.ingest_motion(motion_event(z=20.0))
        stats = session.latency_stats()
        assert stats.count == 1
        assert stats.last == pytest.approx(120.0)

    def test_latency_timeout_fires_before_late_sample(self, session, clock) -> None:
        session.ingest_motion(motion_event())
        session.tap_latency()
        clock.set(600.0)
        session.ingest_motion(motion_event(z=20.0))
        assert session.latency.last_report is not None
        assert session.latency.last_report.outcome is LatencyOutcome.timed_out
        assert session.latency_stats().count == 0

    def test_latency_timeout_on_poll(self, session, clock) -> None:
        session.tap_latency()
        clock.set(500.0)
        assert session.poll() == 1
        assert session.latency.state is LatencyState.idle

    def test_noise_capture_window(self, session, clock) -> None:
        assert session.start_noise_capture()
        assert not session.start_noise_capture()
        _stream(session, clock, 150, step_ms=20.0)
        assert session.noise.state is NoiseState.idle
        result = session.noise_result
        assert result is not None
        # The sample arriving exactly at the 3000 ms deadline is processed after the window closes.
        assert result.sample_count == 149
        assert result.accel_noise_std_dev == pytest.approx(0.0, abs=1e-12)

    def test_noise_insufficient_data(self, session, clock) -> None:
        session.start_noise_capture()
        _stream(session, clock, 3)
        clock.set(3000.0)
        session.poll()
        assert session.noise.last_report is not None
        assert session.noise.last_report.outcome is NoiseOutcome.insufficient_data
        assert session.noise_result is None

    def test_orientation_zero(self, session, clock) -> None:
        session.ingest_orientation({"alpha": 10.0, "beta": 0.0, "gamma": 0.0})
        session.reset_orientation()
        angles = session.ingest_orientation({"alpha": 0.0, "beta": 0.0, "gamma": 0.0})
        assert angles.yaw == pytest.approx(-10.0)
        assert session.orientation_history() == [angles]
        assert session.events()[-1].kind == "orientation.zeroed"

    def test_integration_enable_calibrate_and_move(self, session, clock) -> None:
        session.set_integration_enabled(True)
        assert session.integrator.state is IntegratorState.calibrating
        _stream(session, clock, 40)
        assert session.integrator.state is IntegratorState.active
        _stream(session, clock, 10, x=1.0)
        assert session.integrator.position.x > 0
        assert len(session.height_history()) > 0
        assert len(session.xy_trace()) == len(session.height_history())

    def test_integration_steps_at_max_dt_match_iterative_sums(self, session, clock) -> None:
        session.set_integration_enabled(True)
        clock.set(100.0)
        session.ingest_motion(motion_event(0.0, 0.0, 9.81))
        clock.set(1000.0)
        session.ingest_motion(motion_event(0.0, 0.0, 10.0))
        assert session.integrator.gravity_estimate.z == 9.81

        vz = 0.0
        pz = 0.0
        az = 10.0 - 9.81
        for step in range(1, 11):
            clock.set(1000.0 + 100.0 * step)
            session.ingest_motion(motion_event(0.0, 0.0, 10.0))
            vz = vz + az * 0.1
            pz = pz + vz * 0.1

        assert session.integrator.integrated_steps == 10
        assert session.integrator.skipped_steps == 0
        assert session.integrator.velocity.z == vz
        assert session.integrator.position.z == pz

    def test_explicit_arrival_times_drive_timing_and_integration(self, session, clock) -> None:
        session.set_integration_enabled(True)
        session.ingest_motion(motion_event(), now=100.0)
        for index in range(5):
            session.ingest_motion(motion_event(1.0, 0.0, 9.81), now=1000.0 + 16.0 * index)
        assert clock() == 0.0
        assert session.integrator.state is IntegratorState.active
        assert session.integrator.integrated_steps == 4
        assert session.timing.intervals.snapshot()[-4:] == [16.0] * 4

    def test_reset_latency_emits_event(self, session, clock) -> None:
        session.reset_latency()
        assert [e.kind for e in session.events()] == ["latency.reset"]


class TestRecording:
    def test_auto_start_records_every_sample(self, session, clock) -> None:
        _stream(session, clock, 3)
        rows = session.recorded_samples()
        assert len(rows) == 3
        assert rows[-1].timestamp == 48.0
        assert rows[-1].rotation_rate.alpha == 0.0

    def test_start_clears_and_stop_freezes(self, session, clock) -> None:
        _stream(session, clock, 3)
        session.start_recording()
        _stream(session, clock, 2)
        assert session.stop_recording() == 2
        _stream(session, clock, 2)
        assert len(session.recorded_samples()) == 2
        assert session.recording_snapshot() == {"recording": False, "sample_count": 2}

    def test_recording_disabled_by_config(self, clock) -> None:
        config = build_config({"recording": {"auto_start": False}})
        session = Session(config, clock=clock)
        session.ingest_motion(motion_event())
        assert session.recorded_samples() == ()


class TestResetAndSnapshot:
    def test_reset_session_clears_everything(self, session, clock) -> None:
        session.ingest_motion(motion_event())
        clock.advance(40.0)
        session.ingest_motion(motion_event())
        session.tap_latency()
        session.start_noise_capture()
        session.set_integration_enabled(True)
        session.ingest_orientation({"alpha": 5.0})

        session.reset_session()

        assert session.sample_count == 0
        assert session.dropped_samples == 0
        assert session.latency.state is LatencyState.idle
        assert session.noise.state is NoiseState.idle
        assert session.integrator.state is IntegratorState.idle
        assert not session.integrator.enabled
        assert session.relative_angles is None
        assert session.recorded_samples() == ()
        assert len(session.timers) == 0
        assert [e.kind for e in session.events()] == ["session.reset"]

        clock.advance(5000.0)
        assert session.poll() == 0

    def test_snapshot_shape(self, session, clock) -> None:
        session.ingest_motion(motion_event())
        snap = session.snapshot()
        assert set(snap) == {
            "timing",
            "last_known",
            "noise",
            "latency",
            "orientation",
            "integration",
            "recording",
            "pending_timers",
        }
        assert snap["last_known"]["acceleration_magnitude"] == pytest.approx(9.81)
        assert "history" not in snap["orientation"]
        assert "height_history" in session.snapshot(include_history=True)["integration"]

    def test_listener_failure_is_contained(self, session, clock) -> None:
        seen = []

        def broken(_event) -> None:
            raise RuntimeError("boom")

        session.subscribe(broken)
        unsubscribe = session.subscribe(seen.append)
        session.reset_latency()
        unsubscribe()
        session.reset_latency()
        assert [e.kind for e in seen] == ["latency.reset"]
