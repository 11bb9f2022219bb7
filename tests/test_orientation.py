from __future__ import annotations

import pytest

from inertia.domain_models import OrientationSample
from inertia.motion import OrientationTracker, normalize_angle_deg


@pytest.mark.parametrize(
    ("angle", "expected"),
    [
        (0.0, 0.0),
        (180.0, 180.0),
        (-180.0, 180.0),
        (190.0, -170.0),
        (350.0, -10.0),
        (-350.0, 10.0),
        (720.0, 0.0),
    ],
)
def test_normalize_angle_deg(angle: float, expected: float) -> None:
    assert normalize_angle_deg(angle) == pytest.approx(expected)


class TestOrientationTracker:
    def test_angles_without_zeroing_are_raw(self) -> None:
        tracker = OrientationTracker()
        angles = tracker.on_orientation(OrientationSample(alpha=30.0, beta=5.0, gamma=-3.0), 10.0)
        assert angles.time == 10.0
        assert angles.yaw == pytest.approx(30.0)
        assert angles.pitch == pytest.approx(5.0)
        assert angles.roll == pytest.approx(-3.0)

    def test_yaw_wraps_across_north(self) -> None:
        tracker = OrientationTracker()
        tracker.on_orientation(OrientationSample(alpha=10.0), 0.0)
        tracker.zero()
        angles = tracker.on_orientation(OrientationSample(alpha=0.0), 16.0)
        assert angles.yaw == pytest.approx(-10.0)
        angles = tracker.on_orientation(OrientationSample(alpha=350.0), 32.0)
        assert angles.yaw == pytest.approx(-20.0)

    def test_offset_relative_to_zero_pose(self) -> None:
        tracker = OrientationTracker()
        tracker.on_orientation(OrientationSample(alpha=0.0, beta=0.0, gamma=0.0), 0.0)
        tracker.zero()
        angles = tracker.on_orientation(OrientationSample(alpha=350.0, beta=5.0, gamma=-2.0), 1.0)
        assert angles.yaw == pytest.approx(-10.0)
        assert angles.pitch == pytest.approx(5.0)
        assert angles.roll == pytest.approx(-2.0)

    def test_pitch_and_roll_are_not_wrapped(self) -> None:
        tracker = OrientationTracker()
        tracker.on_orientation(OrientationSample(beta=-170.0, gamma=-80.0), 0.0)
        tracker.zero()
        angles = tracker.on_orientation(OrientationSample(beta=170.0, gamma=80.0), 1.0)
        assert angles.pitch == pytest.approx(340.0)
        assert angles.roll == pytest.approx(160.0)

    def test_zero_without_reading_uses_neutral_pose(self) -> None:
        tracker = OrientationTracker()
        offset = tracker.zero()
        assert offset == OrientationSample()

    def test_history_bounded(self) -> None:
        tracker = OrientationTracker(history_size=3)
        for i in range(5):
            tracker.on_orientation(OrientationSample(alpha=float(i)), float(i))
        assert [a.time for a in tracker.history] == [2.0, 3.0, 4.0]
        assert tracker.latest is not None
        assert tracker.latest.time == 4.0

    def test_reset(self) -> None:
        tracker = OrientationTracker()
        tracker.on_orientation(OrientationSample(alpha=45.0), 0.0)
        tracker.zero()
        tracker.reset()
        assert tracker.current is None
        assert tracker.offset == OrientationSample()
        assert len(tracker.history) == 0
