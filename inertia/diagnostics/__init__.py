"""One-shot diagnostics: static noise capture and tap-to-impact latency."""

from __future__ import annotations

from ._types import (
    LatencyOutcome,
    LatencyReport,
    LatencyState,
    LatencyStats,
    NoiseOutcome,
    NoiseReport,
    NoiseResult,
    NoiseState,
)
from .latency import LatencyDetector
from .noise import NoiseProfiler

__all__ = [
    "LatencyDetector",
    "LatencyOutcome",
    "LatencyReport",
    "LatencyState",
    "LatencyStats",
    "NoiseOutcome",
    "NoiseProfiler",
    "NoiseReport",
    "NoiseResult",
    "NoiseState",
]
