"""Gravity-compensated dead reckoning.

Acceleration is integrated in the body frame with explicit first-order
Euler steps::

    velocity += accel * dt
    position += velocity * dt

Drift grows without bound; the only mitigation is the per-component
deadzone applied after gravity subtraction and a manual recalibration via
:meth:`PositionIntegrator.reset`.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any

import numpy as np

from ..constants import (
    CALIBRATION_WINDOW_MS,
    DEADZONE_MS2,
    DEFAULT_GRAVITY_MS2,
    HEIGHT_HISTORY_SIZE,
    MAX_INTEGRATION_DT_S,
    MS_PER_SECOND,
    TRACE_HISTORY_SIZE,
)
from ..diagnostics._types import EventSink, _discard_event
from ..domain_models import SensorSample, Vector3
from ..processing.buffers import HistoryRing
from ..timers import TimerQueue

LOGGER = logging.getLogger(__name__)


class IntegratorState(enum.StrEnum):
    idle = "idle"
    calibrating = "calibrating"
    active = "active"


@dataclass(frozen=True, slots=True)
class HeightPoint:
    time: float
    z: float

    def to_dict(self) -> dict[str, Any]:
        return {"time": self.time, "z": self.z}


@dataclass(frozen=True, slots=True)
class TracePoint:
    x: float
    y: float

    def to_dict(self) -> dict[str, Any]:
        return {"x": self.x, "y": self.y}


def apply_deadzone(value: float, deadzone: float) -> float:
    return 0.0 if abs(value) < deadzone else value


class PositionIntegrator:
    def __init__(
        self,
        timers: TimerQueue,
        *,
        calibration_window_ms: float = CALIBRATION_WINDOW_MS,
        deadzone_ms2: float = DEADZONE_MS2,
        max_dt_s: float = MAX_INTEGRATION_DT_S,
        height_history_size: int = HEIGHT_HISTORY_SIZE,
        trace_history_size: int = TRACE_HISTORY_SIZE,
        default_gravity: tuple[float, float, float] = DEFAULT_GRAVITY_MS2,
        enabled: bool = False,
        emit: EventSink = _discard_event,
    ) -> None:
        self._timers = timers
        self._emit = emit
        self.calibration_window_ms = float(calibration_window_ms)
        self.deadzone_ms2 = float(deadzone_ms2)
        self.max_dt_s = float(max_dt_s)
        self.enabled = bool(enabled)
        self.state = IntegratorState.idle
        self._default_gravity = Vector3(*default_gravity)
        self.gravity_estimate = self._default_gravity
        self.velocity = Vector3()
        self.position = Vector3()
        self.last_integration_time: float | None = None
        self.calibration_samples: list[Vector3] = []
        self.height_history: HistoryRing[HeightPoint] = HistoryRing(height_history_size)
        self.trace_history: HistoryRing[TracePoint] = HistoryRing(trace_history_size)
        self.integrated_steps = 0
        self.skipped_steps = 0
        self._calibration_generation = 0

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def reset(self, now: float) -> None:
        """Zero motion state and (re)start the gravity calibration window."""
        self.velocity = Vector3()
        self.position = Vector3()
        self.height_history.clear()
        self.trace_history.clear()
        self.calibration_samples = []
        self.last_integration_time = None
        self.integrated_steps = 0
        self.skipped_steps = 0
        self.state = IntegratorState.calibrating
        self._calibration_generation += 1
        generation = self._calibration_generation
        self._timers.schedule(
            "calibration-window",
            now + self.calibration_window_ms,
            lambda deadline: self._on_calibration_elapsed(generation, deadline),
        )
        LOGGER.info("Integration reset; calibrating for %.0f ms", self.calibration_window_ms)
        self._emit("integration.calibrating", now, {"window_ms": self.calibration_window_ms})

    def set_enabled(self, enabled: bool, now: float) -> None:
        enabled = bool(enabled)
        if enabled == self.enabled:
            return
        self.enabled = enabled
        self._emit("integration.enabled" if enabled else "integration.disabled", now, {})
        if enabled:
            if self.state is IntegratorState.idle:
                self.reset(now)
            return
        # Disabling abandons a pending calibration; readings stay available.
        self._calibration_generation += 1
        self.state = IntegratorState.idle
        self.calibration_samples = []
        self.last_integration_time = None

    # ------------------------------------------------------------------
    # Sample path
    # ------------------------------------------------------------------

    def _on_calibration_elapsed(self, generation: int, deadline: float) -> None:
        if generation != self._calibration_generation:
            return
        if self.state is not IntegratorState.calibrating:
            return
        count = len(self.calibration_samples)
        if count:
            mean = np.mean(
                np.array([v.as_tuple() for v in self.calibration_samples], dtype=np.float64),
                axis=0,
            )
            self.gravity_estimate = Vector3(float(mean[0]), float(mean[1]), float(mean[2]))
        else:
            LOGGER.warning("Calibration window saw no samples; keeping previous gravity estimate")
        self.calibration_samples = []
        self.state = IntegratorState.active
        self.last_integration_time = None
        LOGGER.info(
            "Calibration complete: samples=%d gravity=(%.4f, %.4f, %.4f)",
            count,
            self.gravity_estimate.x,
            self.gravity_estimate.y,
            self.gravity_estimate.z,
        )
        self._emit(
            "integration.calibrated",
            deadline,
            {"sample_count": count, "gravity": self.gravity_estimate.to_dict()},
        )

    def on_sample(self, sample: SensorSample, last_acceleration: Vector3) -> bool:
        """Feed one sample; returns ``True`` when an Euler step was taken."""
        if self.state is IntegratorState.calibrating:
            self.calibration_samples.append(last_acceleration)
            return False
        if self.state is not IntegratorState.active or not self.enabled:
            return False

        if self.last_integration_time is None:
            self.last_integration_time = sample.timestamp
            return False
        dt = (sample.timestamp - self.last_integration_time) / MS_PER_SECOND
        self.last_integration_time = sample.timestamp
        if dt <= 0 or dt > self.max_dt_s:
            self.skipped_steps += 1
            LOGGER.debug("Skipping integration step with dt=%.4f s", dt)
            return False

        accel = last_acceleration - self.gravity_estimate
        ax = apply_deadzone(accel.x, self.deadzone_ms2)
        ay = apply_deadzone(accel.y, self.deadzone_ms2)
        az = apply_deadzone(accel.z, self.deadzone_ms2)

        v = self.velocity
        self.velocity = Vector3(v.x + ax * dt, v.y + ay * dt, v.z + az * dt)
        p = self.position
        v = self.velocity
        self.position = Vector3(p.x + v.x * dt, p.y + v.y * dt, p.z + v.z * dt)
        self.integrated_steps += 1

        self.height_history.append(HeightPoint(time=sample.timestamp, z=self.position.z))
        self.trace_history.append(TracePoint(x=self.position.x, y=self.position.y))
        return True

    def snapshot(self) -> dict[str, Any]:
        return {
            "state": str(self.state),
            "enabled": self.enabled,
            "gravity_estimate": self.gravity_estimate.to_dict(),
            "velocity": self.velocity.to_dict(),
            "position": self.position.to_dict(),
            "integrated_steps": self.integrated_steps,
            "skipped_steps": self.skipped_steps,
        }

    def clear(self) -> None:
        """Return to a fresh-session state: idle, default gravity, empty histories."""
        self._calibration_generation += 1
        self.state = IntegratorState.idle
        self.gravity_estimate = self._default_gravity
        self.velocity = Vector3()
        self.position = Vector3()
        self.last_integration_time = None
        self.calibration_samples = []
        self.height_history.clear()
        self.trace_history.clear()
        self.integrated_steps = 0
        self.skipped_steps = 0
