"""Population statistics shared by the timing, noise and latency components."""

from __future__ import annotations

from collections.abc import Iterable
from math import sqrt
from typing import NamedTuple

import numpy as np

__all__ = ["SeriesStats", "calculate_stats", "magnitude", "population_std"]


class SeriesStats(NamedTuple):
    """Summary of a numeric series (population variance, divide by N)."""

    mean: float
    std_dev: float
    min: float
    max: float

    def to_dict(self) -> dict[str, float]:
        return {
            "mean": self.mean,
            "std_dev": self.std_dev,
            "min": self.min,
            "max": self.max,
        }


def magnitude(x: float, y: float, z: float) -> float:
    return sqrt(x * x + y * y + z * z)


def calculate_stats(values: Iterable[float]) -> SeriesStats:
    """Return mean, population standard deviation, min and max of *values*.

    An empty series yields all zeros rather than NaN so callers never have
    to special-case the result.
    """
    arr = np.fromiter((float(v) for v in values), dtype=np.float64)
    if arr.size == 0:
        return SeriesStats(mean=0.0, std_dev=0.0, min=0.0, max=0.0)
    return SeriesStats(
        mean=float(np.mean(arr)),
        std_dev=float(np.std(arr, ddof=0)),
        min=float(np.min(arr)),
        max=float(np.max(arr)),
    )


def population_std(values: Iterable[float]) -> float:
    return calculate_stats(values).std_dev
