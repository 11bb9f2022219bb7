"""Reference-relative orientation tracking."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from ..constants import ORIENTATION_HISTORY_SIZE
from ..domain_models import OrientationSample
from ..processing.buffers import HistoryRing

LOGGER = logging.getLogger(__name__)


def normalize_angle_deg(angle: float) -> float:
    """Wrap *angle* into ``(-180, 180]``."""
    while angle > 180.0:
        angle -= 360.0
    while angle <= -180.0:
        angle += 360.0
    return angle


@dataclass(frozen=True, slots=True)
class RelativeAngles:
    time: float
    pitch: float
    roll: float
    yaw: float

    def to_dict(self) -> dict[str, Any]:
        return {"time": self.time, "pitch": self.pitch, "roll": self.roll, "yaw": self.yaw}


class OrientationTracker:
    def __init__(self, *, history_size: int = ORIENTATION_HISTORY_SIZE) -> None:
        self.current: OrientationSample | None = None
        self.offset = OrientationSample()
        self.history: HistoryRing[RelativeAngles] = HistoryRing(history_size)

    def relative(self, raw: OrientationSample, time: float) -> RelativeAngles:
        return RelativeAngles(
            time=time,
            pitch=raw.beta - self.offset.beta,
            roll=raw.gamma - self.offset.gamma,
            yaw=normalize_angle_deg(raw.alpha - self.offset.alpha),
        )

    def on_orientation(self, raw: OrientationSample, now: float) -> RelativeAngles:
        self.current = raw
        angles = self.relative(raw, now)
        self.history.append(angles)
        return angles

    @property
    def latest(self) -> RelativeAngles | None:
        return self.history.latest()

    def zero(self) -> OrientationSample:
        """Measure subsequent angles from the current pose."""
        self.offset = self.current if self.current is not None else OrientationSample()
        self.history.clear()
        LOGGER.info(
            "Orientation zeroed at alpha=%.2f beta=%.2f gamma=%.2f",
            self.offset.alpha,
            self.offset.beta,
            self.offset.gamma,
        )
        return self.offset

    def reset(self) -> None:
        self.current = None
        self.offset = OrientationSample()
        self.history.clear()
