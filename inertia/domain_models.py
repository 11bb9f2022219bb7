"""Domain model objects for the Inertia core.

Typed, immutable value objects for everything that crosses a component
boundary: sensor vectors, normalized samples, orientation readings and the
rows of the session recording.
"""

from __future__ import annotations

import enum
import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .stats import magnitude

# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _as_float_or_none(value: object) -> float | None:
    if value in (None, "") or isinstance(value, bool):
        return None
    try:
        out = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        return None
    if math.isnan(out) or math.isinf(out):
        return None
    return out


def _component(payload: Mapping[str, Any], key: str) -> float:
    """Read one vector component; absent or non-numeric reads as 0."""
    value = _as_float_or_none(payload.get(key))
    return 0.0 if value is None else value


class SampleSource(enum.StrEnum):
    generic_sensor = "GenericSensor"
    device_motion = "DeviceMotion"


# ---------------------------------------------------------------------------
# Vectors
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Vector3:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> Vector3:
        return cls(
            x=_component(payload, "x"),
            y=_component(payload, "y"),
            z=_component(payload, "z"),
        )

    def magnitude(self) -> float:
        return magnitude(self.x, self.y, self.z)

    def __sub__(self, other: Vector3) -> Vector3:
        return Vector3(self.x - other.x, self.y - other.y, self.z - other.z)

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y, "z": self.z}


ZERO_VECTOR = Vector3()


@dataclass(frozen=True, slots=True)
class RotationRate:
    """Angular rate in deg/s; Generic Sensor x/y/z map to alpha/beta/gamma."""

    alpha: float = 0.0
    beta: float = 0.0
    gamma: float = 0.0

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> RotationRate:
        if "alpha" not in payload and any(k in payload for k in ("x", "y", "z")):
            return cls(
                alpha=_component(payload, "x"),
                beta=_component(payload, "y"),
                gamma=_component(payload, "z"),
            )
        return cls(
            alpha=_component(payload, "alpha"),
            beta=_component(payload, "beta"),
            gamma=_component(payload, "gamma"),
        )

    def magnitude(self) -> float:
        return magnitude(self.alpha, self.beta, self.gamma)

    def to_dict(self) -> dict[str, float]:
        return {"alpha": self.alpha, "beta": self.beta, "gamma": self.gamma}


ZERO_ROTATION = RotationRate()


# ---------------------------------------------------------------------------
# Samples
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SensorSample:
    timestamp: float
    acceleration: Vector3
    measured_interval: float
    source: SampleSource
    acceleration_no_gravity: Vector3 | None = None
    rotation_rate: RotationRate | None = None
    reported_interval: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "acceleration": self.acceleration.to_dict(),
            "acceleration_no_gravity": (
                self.acceleration_no_gravity.to_dict()
                if self.acceleration_no_gravity is not None
                else None
            ),
            "rotation_rate": (
                self.rotation_rate.to_dict() if self.rotation_rate is not None else None
            ),
            "reported_interval": self.reported_interval,
            "measured_interval": self.measured_interval,
            "source": str(self.source),
        }


@dataclass(frozen=True, slots=True)
class OrientationSample:
    """Device orientation: alpha = yaw 0..360, beta = pitch, gamma = roll."""

    alpha: float = 0.0
    beta: float = 0.0
    gamma: float = 0.0

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> OrientationSample:
        return cls(
            alpha=_component(payload, "alpha"),
            beta=_component(payload, "beta"),
            gamma=_component(payload, "gamma"),
        )

    def to_dict(self) -> dict[str, float]:
        return {"alpha": self.alpha, "beta": self.beta, "gamma": self.gamma}


@dataclass(frozen=True, slots=True)
class RecordedSample:
    """One row of the session recording, in the shape external exporters consume."""

    timestamp: float
    reported_interval: float | None
    measured_interval: float
    acceleration: Vector3
    acceleration_no_gravity: Vector3 | None
    rotation_rate: RotationRate

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "reported_interval": self.reported_interval,
            "measured_interval": self.measured_interval,
            "acceleration": self.acceleration.to_dict(),
            "acceleration_no_gravity": (
                self.acceleration_no_gravity.to_dict()
                if self.acceleration_no_gravity is not None
                else None
            ),
            "rotation_rate": self.rotation_rate.to_dict(),
        }


@dataclass(frozen=True, slots=True)
class CoreEvent:
    """Named state transition emitted by the session."""

    kind: str
    ts_ms: float
    detail: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "ts_ms": self.ts_ms, "detail": dict(self.detail)}
