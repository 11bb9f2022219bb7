"""Normalization of raw motion events into canonical :class:`SensorSample` s.

Two acquisition shapes are accepted:

* **GenericSensor**: ``{"acceleration": {x, y, z}, "gyroscope": {x, y, z}}``
  (or an already mapped ``rotationRate``) at a frequency-driven cadence.
* **DeviceMotion**: ``{"accelerationIncludingGravity": ..., "acceleration":
  ..., "rotationRate": {alpha, beta, gamma}, "interval": ms}`` at the
  event-driven cadence of the browser.

The normalizer owns the previous arrival timestamp and publishes the
last-known acceleration / gyro vectors that the noise profiler and the
latency baseline read.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ..domain_models import (
    ZERO_ROTATION,
    ZERO_VECTOR,
    RotationRate,
    SampleSource,
    SensorSample,
    Vector3,
    _as_float_or_none,
)

LOGGER = logging.getLogger(__name__)

__all__ = ["LastKnownVectors", "SampleFormatError", "SampleNormalizer", "detect_source"]


class SampleFormatError(ValueError):
    """Raised when a raw event cannot be turned into a sample."""


@dataclass(frozen=True, slots=True)
class LastKnownVectors:
    """Published read-only state: what the most recent sample reported."""

    acceleration: Vector3 = ZERO_VECTOR
    gyro: RotationRate = ZERO_ROTATION


def _vector_or_none(raw: Mapping[str, Any], key: str) -> Mapping[str, Any] | None:
    value = raw.get(key)
    if isinstance(value, Mapping):
        return value
    return None


def detect_source(raw: Mapping[str, Any]) -> SampleSource:
    tag = raw.get("source")
    if isinstance(tag, str):
        try:
            return SampleSource(tag)
        except ValueError:
            raise SampleFormatError(f"Unknown sample source {tag!r}") from None
    if tag is not None:
        raise SampleFormatError(f"Sample source must be a string, got {tag!r}")
    if _vector_or_none(raw, "accelerationIncludingGravity") is not None:
        return SampleSource.device_motion
    return SampleSource.generic_sensor


class SampleNormalizer:
    def __init__(self) -> None:
        self.last_timestamp: float | None = None
        self.last_known = LastKnownVectors()

    def reset(self) -> None:
        self.last_timestamp = None
        self.last_known = LastKnownVectors()

    @staticmethod
    def _parse_payload(
        raw: Mapping[str, Any], source: SampleSource
    ) -> tuple[Vector3, Vector3 | None, RotationRate | None]:
        if source is SampleSource.device_motion:
            with_gravity = _vector_or_none(raw, "accelerationIncludingGravity")
            no_gravity = _vector_or_none(raw, "acceleration")
            accel_raw = with_gravity if with_gravity is not None else no_gravity
            gyro_raw = _vector_or_none(raw, "rotationRate")
        else:
            accel_raw = _vector_or_none(raw, "acceleration")
            no_gravity = _vector_or_none(raw, "accelerationNoGravity")
            gyro_raw = _vector_or_none(raw, "rotationRate")
            if gyro_raw is None:
                gyro_raw = _vector_or_none(raw, "gyroscope")
        if accel_raw is None:
            raise SampleFormatError(f"{source} event carries no acceleration vector")
        return (
            Vector3.from_mapping(accel_raw),
            Vector3.from_mapping(no_gravity) if no_gravity is not None else None,
            RotationRate.from_mapping(gyro_raw) if gyro_raw is not None else None,
        )

    def normalize(self, raw: Mapping[str, Any], now: float) -> SensorSample:
        """Convert *raw* arriving at monotonic time *now* (ms) into a sample.

        Parsing happens before any state is touched, so a rejected event
        leaves the timestamp cursor and the published vectors unchanged.
        """
        if not isinstance(raw, Mapping):
            raise SampleFormatError(f"Raw event must be a mapping, got {type(raw).__name__}")
        source = detect_source(raw)
        acceleration, no_gravity, rotation = self._parse_payload(raw, source)
        reported = _as_float_or_none(raw.get("interval"))

        measured = 0.0
        if self.last_timestamp is not None:
            measured = now - self.last_timestamp
            if measured < 0:
                LOGGER.debug(
                    "Clock went backwards by %.3f ms; clamping measured interval to 0",
                    -measured,
                )
                measured = 0.0
        self.last_timestamp = now

        sample = SensorSample(
            timestamp=now,
            acceleration=acceleration,
            measured_interval=measured,
            source=source,
            acceleration_no_gravity=no_gravity,
            rotation_rate=rotation,
            reported_interval=reported,
        )
        self.last_known = LastKnownVectors(
            acceleration=acceleration,
            gyro=rotation if rotation is not None else self.last_known.gyro,
        )
        return sample
