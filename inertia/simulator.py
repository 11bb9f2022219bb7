"""Synthetic motion / orientation streams for replay and tests.

Every generator returns a list of :class:`~inertia.replay.ReplayEvent` in
arrival order, drawn from a seeded :class:`numpy.random.Generator` so runs
are reproducible.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .constants import DEFAULT_GRAVITY_MS2, EXPECTED_INTERVAL_MS, MS_PER_SECOND
from .domain_models import SampleSource
from .replay import ReplayEvent


@dataclass(frozen=True, slots=True)
class MotionProfile:
    name: str
    accel_noise_std: float
    gyro_noise_std: float
    # Arrival jitter, uniform in +/- jitter_ms around the nominal interval.
    jitter_ms: float
    source: SampleSource = SampleSource.device_motion


PROFILE_LIBRARY: dict[str, MotionProfile] = {
    "bench": MotionProfile(
        name="bench",
        accel_noise_std=0.01,
        gyro_noise_std=0.05,
        jitter_ms=0.0,
    ),
    "handheld": MotionProfile(
        name="handheld",
        accel_noise_std=0.05,
        gyro_noise_std=0.4,
        jitter_ms=2.0,
    ),
    "generic_sensor": MotionProfile(
        name="generic_sensor",
        accel_noise_std=0.02,
        gyro_noise_std=0.1,
        jitter_ms=1.0,
        source=SampleSource.generic_sensor,
    ),
}

DEFAULT_PROFILE = PROFILE_LIBRARY["bench"]


def _xyz(v: np.ndarray) -> dict[str, float]:
    return {"x": float(v[0]), "y": float(v[1]), "z": float(v[2])}


def motion_payload(
    accel: np.ndarray,
    gyro: np.ndarray,
    *,
    gravity: np.ndarray,
    interval_ms: float,
    source: SampleSource,
) -> dict[str, object]:
    """Build a raw event in the wire shape of *source*."""
    if source is SampleSource.device_motion:
        return {
            "source": str(source),
            "accelerationIncludingGravity": _xyz(accel),
            "acceleration": _xyz(accel - gravity),
            "rotationRate": {
                "alpha": float(gyro[0]),
                "beta": float(gyro[1]),
                "gamma": float(gyro[2]),
            },
            "interval": float(interval_ms),
        }
    return {
        "source": str(source),
        "acceleration": _xyz(accel),
        "accelerationNoGravity": _xyz(accel - gravity),
        "gyroscope": _xyz(gyro),
    }


def _arrival_times(
    rng: np.random.Generator,
    *,
    start_ms: float,
    duration_ms: float,
    interval_ms: float,
    jitter_ms: float,
) -> np.ndarray:
    count = int(duration_ms // interval_ms)
    times = start_ms + np.arange(count, dtype=np.float64) * interval_ms
    if jitter_ms > 0 and count:
        times = times + rng.uniform(-jitter_ms, jitter_ms, size=count)
        # Jitter must not reorder arrivals.
        times = np.maximum.accumulate(times)
    return times


def constant_acceleration_events(
    accel: tuple[float, float, float],
    *,
    duration_ms: float,
    start_ms: float = 0.0,
    interval_ms: float = EXPECTED_INTERVAL_MS,
    gravity: tuple[float, float, float] = DEFAULT_GRAVITY_MS2,
    profile: MotionProfile = DEFAULT_PROFILE,
    seed: int = 0,
) -> list[ReplayEvent]:
    """Motion events whose gravity-including acceleration hovers around *accel*."""
    rng = np.random.default_rng(seed)
    gravity_vec = np.asarray(gravity, dtype=np.float64)
    base = np.asarray(accel, dtype=np.float64)
    times = _arrival_times(
        rng,
        start_ms=start_ms,
        duration_ms=duration_ms,
        interval_ms=interval_ms,
        jitter_ms=profile.jitter_ms,
    )
    events: list[ReplayEvent] = []
    for t_ms in times:
        sample = base + rng.normal(0.0, profile.accel_noise_std, size=3)
        gyro = rng.normal(0.0, profile.gyro_noise_std, size=3)
        payload = motion_payload(
            sample,
            gyro,
            gravity=gravity_vec,
            interval_ms=interval_ms,
            source=profile.source,
        )
        events.append(ReplayEvent(t_ms=float(t_ms), type="motion", event=payload))
    return events


def rest_events(
    *,
    duration_ms: float,
    start_ms: float = 0.0,
    interval_ms: float = EXPECTED_INTERVAL_MS,
    gravity: tuple[float, float, float] = DEFAULT_GRAVITY_MS2,
    profile: MotionProfile = DEFAULT_PROFILE,
    seed: int = 0,
) -> list[ReplayEvent]:
    """A device lying still: gravity plus sensor noise."""
    return constant_acceleration_events(
        gravity,
        duration_ms=duration_ms,
        start_ms=start_ms,
        interval_ms=interval_ms,
        gravity=gravity,
        profile=profile,
        seed=seed,
    )


def tap_impact_events(
    *,
    tap_at_ms: float,
    impact_delay_ms: float,
    impact_ms2: float = 15.0,
    duration_ms: float | None = None,
    interval_ms: float = EXPECTED_INTERVAL_MS,
    gravity: tuple[float, float, float] = DEFAULT_GRAVITY_MS2,
    profile: MotionProfile = DEFAULT_PROFILE,
    seed: int = 0,
) -> list[ReplayEvent]:
    """Rest stream with a latency tap and an impact spike *impact_delay_ms* later.

    The spike is a single motion event carrying *impact_ms2* of extra
    acceleration on z. Rest samples before *tap_at_ms* provide the
    latency baseline.
    """
    impact_at = tap_at_ms + impact_delay_ms
    total = duration_ms if duration_ms is not None else impact_at + 250.0
    events = rest_events(
        duration_ms=total,
        interval_ms=interval_ms,
        gravity=gravity,
        profile=profile,
        seed=seed,
    )
    # The impact replaces whatever rest samples would arrive in its vicinity.
    events = [e for e in events if abs(e.t_ms - impact_at) >= interval_ms / 2]
    spike = np.asarray(gravity, dtype=np.float64) + np.array([0.0, 0.0, impact_ms2])
    impact = ReplayEvent(
        t_ms=float(impact_at),
        type="motion",
        event=motion_payload(
            spike,
            np.zeros(3),
            gravity=np.asarray(gravity, dtype=np.float64),
            interval_ms=interval_ms,
            source=profile.source,
        ),
    )
    tap = ReplayEvent(t_ms=float(tap_at_ms), type="command", name="tap_latency")
    events.extend([tap, impact])
    # Stable sort keeps the tap after a rest sample sharing its timestamp.
    events.sort(key=lambda e: e.t_ms)
    return events


def rotation_events(
    *,
    duration_ms: float,
    start_ms: float = 0.0,
    interval_ms: float = EXPECTED_INTERVAL_MS,
    yaw_rate_deg_s: float = 90.0,
    start_alpha: float = 0.0,
    angle_noise_std: float = 0.0,
    seed: int = 0,
) -> list[ReplayEvent]:
    """Orientation readings sweeping alpha at *yaw_rate_deg_s*, wrapped into [0, 360)."""
    rng = np.random.default_rng(seed)
    count = int(duration_ms // interval_ms)
    times = start_ms + np.arange(count, dtype=np.float64) * interval_ms
    alpha = start_alpha + yaw_rate_deg_s * (times - start_ms) / MS_PER_SECOND
    if angle_noise_std > 0:
        alpha = alpha + rng.normal(0.0, angle_noise_std, size=count)
    alpha = np.mod(alpha, 360.0)
    return [
        ReplayEvent(
            t_ms=float(t_ms),
            type="orientation",
            event={"alpha": float(a), "beta": 0.0, "gamma": 0.0},
        )
        for t_ms, a in zip(times, alpha)
    ]


def merge_streams(*streams: list[ReplayEvent]) -> list[ReplayEvent]:
    """Interleave several event lists by arrival time."""
    merged = [event for stream in streams for event in stream]
    merged.sort(key=lambda e: e.t_ms)
    return merged
