"""Sampling-timing quality: jitter, min/max interval and dropped-sample estimate."""

from __future__ import annotations

import logging
import math

from ..constants import (
    DROP_FACTOR,
    EXPECTED_INTERVAL_MS,
    INTERVAL_HISTORY_SIZE,
    MIN_STATS_SAMPLES,
)
from ..stats import SeriesStats, calculate_stats
from .buffers import HistoryRing

LOGGER = logging.getLogger(__name__)

IntervalStats = SeriesStats


class TimingAnalyzer:
    def __init__(
        self,
        *,
        expected_interval_ms: float = EXPECTED_INTERVAL_MS,
        drop_factor: float = DROP_FACTOR,
        history_size: int = INTERVAL_HISTORY_SIZE,
        min_stats_samples: int = MIN_STATS_SAMPLES,
    ) -> None:
        self.expected_interval_ms = float(expected_interval_ms)
        self.drop_factor = float(drop_factor)
        self.min_stats_samples = int(min_stats_samples)
        self.intervals: HistoryRing[float] = HistoryRing(history_size)
        self.dropped_samples: int = 0

    def record_interval(self, interval_ms: float) -> int:
        """Push *interval_ms* into the ring and return how many drops it implies."""
        self.intervals.append(float(interval_ms))
        if interval_ms <= self.expected_interval_ms * self.drop_factor:
            return 0
        # half-up rounding: a 2.5 ratio counts as 2 drops, not 1
        dropped = max(0, math.floor(interval_ms / self.expected_interval_ms + 0.5) - 1)
        if dropped:
            self.dropped_samples += dropped
            LOGGER.debug(
                "Interval %.2f ms suggests %d dropped sample(s); total=%d",
                interval_ms,
                dropped,
                self.dropped_samples,
            )
        return dropped

    def stats(self) -> IntervalStats | None:
        """Interval statistics, or ``None`` until enough intervals are held."""
        if len(self.intervals) <= self.min_stats_samples:
            return None
        return calculate_stats(self.intervals)

    @property
    def jitter_ms(self) -> float | None:
        stats = self.stats()
        return stats.std_dev if stats is not None else None

    def sample_rate(self, elapsed_seconds: float, sample_count: int) -> float | None:
        if sample_count <= self.min_stats_samples or elapsed_seconds <= 0:
            return None
        return sample_count / elapsed_seconds

    def reset(self) -> None:
        self.intervals.clear()
        self.dropped_samples = 0
