"""Shared test helpers for the inertia test suite."""

from __future__ import annotations

import os
from typing import Any

import pytest

os.environ.setdefault("INERTIA_DISABLE_AUTO_APP", "1")


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start_ms: float = 0.0) -> None:
        self.now_ms = float(start_ms)

    def __call__(self) -> float:
        return self.now_ms

    def advance(self, delta_ms: float) -> float:
        self.now_ms += float(delta_ms)
        return self.now_ms

    def set(self, now_ms: float) -> float:
        self.now_ms = float(now_ms)
        return self.now_ms


def xyz(x: float = 0.0, y: float = 0.0, z: float = 0.0) -> dict[str, float]:
    return {"x": x, "y": y, "z": z}


def motion_event(
    x: float = 0.0,
    y: float = 0.0,
    z: float = 9.81,
    *,
    gyro: tuple[float, float, float] | None = None,
) -> dict[str, Any]:
    """GenericSensor-shaped raw event."""
    event: dict[str, Any] = {"source": "GenericSensor", "acceleration": xyz(x, y, z)}
    if gyro is not None:
        event["gyroscope"] = xyz(*gyro)
    return event


def device_motion_event(
    x: float = 0.0,
    y: float = 0.0,
    z: float = 9.81,
    *,
    rotation: tuple[float, float, float] = (0.0, 0.0, 0.0),
    interval: float | None = 16.0,
) -> dict[str, Any]:
    """DeviceMotion-shaped raw event (gravity included)."""
    event: dict[str, Any] = {
        "accelerationIncludingGravity": xyz(x, y, z),
        "acceleration": xyz(x, y, z - 9.81),
        "rotationRate": {"alpha": rotation[0], "beta": rotation[1], "gamma": rotation[2]},
    }
    if interval is not None:
        event["interval"] = interval
    return event


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def session(clock: FakeClock):
    from inertia.session import Session

    return Session(clock=clock)
