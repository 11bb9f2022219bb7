"""Sample intake: normalization, bounded histories and timing analysis."""

from __future__ import annotations

from .buffers import HistoryRing
from .normalizer import LastKnownVectors, SampleFormatError, SampleNormalizer
from .timing import IntervalStats, TimingAnalyzer

__all__ = [
    "HistoryRing",
    "IntervalStats",
    "LastKnownVectors",
    "SampleFormatError",
    "SampleNormalizer",
    "TimingAnalyzer",
]
