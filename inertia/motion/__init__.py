"""Derived motion: reference-relative orientation and dead-reckoning position."""

from __future__ import annotations

from .integration import HeightPoint, IntegratorState, PositionIntegrator, TracePoint
from .orientation import OrientationTracker, RelativeAngles, normalize_angle_deg

__all__ = [
    "HeightPoint",
    "IntegratorState",
    "OrientationTracker",
    "PositionIntegrator",
    "RelativeAngles",
    "TracePoint",
    "normalize_angle_deg",
]
