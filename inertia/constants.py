"""Shared numeric defaults for the diagnostics core.

Every value here is also exposed through :mod:`inertia.config`; these are
the fallbacks used when a component is built without an explicit config.
"""

from __future__ import annotations

from typing import Final

# -- timing -------------------------------------------------------------------
EXPECTED_INTERVAL_MS: Final[float] = 16.67
"""Nominal inter-sample interval (~60 Hz DeviceMotion cadence)."""
DROP_FACTOR: Final[float] = 1.5
INTERVAL_HISTORY_SIZE: Final[int] = 100
MIN_STATS_SAMPLES: Final[int] = 10
"""Interval stats and sample rate are only reported above this count."""

# -- noise --------------------------------------------------------------------
NOISE_WINDOW_MS: Final[float] = 3000.0
NOISE_MIN_SAMPLES: Final[int] = 10

# -- latency ------------------------------------------------------------------
LATENCY_THRESHOLD_MS2: Final[float] = 2.0
LATENCY_TIMEOUT_MS: Final[float] = 500.0
LATENCY_MAX_MS: Final[float] = 500.0
DEFAULT_BASELINE_MS2: Final[float] = 9.8

# -- orientation --------------------------------------------------------------
ORIENTATION_HISTORY_SIZE: Final[int] = 600  # ~10 s at 60 Hz

# -- integration --------------------------------------------------------------
CALIBRATION_WINDOW_MS: Final[float] = 500.0
DEADZONE_MS2: Final[float] = 0.1
MAX_INTEGRATION_DT_S: Final[float] = 0.1
HEIGHT_HISTORY_SIZE: Final[int] = 200
TRACE_HISTORY_SIZE: Final[int] = 200
DEFAULT_GRAVITY_MS2: Final[tuple[float, float, float]] = (0.0, 0.0, 9.81)

# -- runtime ------------------------------------------------------------------
EVENT_HISTORY_SIZE: Final[int] = 200
TIMER_TICK_HZ: Final[int] = 50

MS_PER_SECOND: Final[float] = 1000.0
