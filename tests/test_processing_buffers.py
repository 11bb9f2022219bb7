"""Unit tests for inertia.processing.buffers.HistoryRing."""

from __future__ import annotations

import pytest


class TestHistoryRing:
    def test_evicts_oldest_beyond_capacity(self) -> None:
        from inertia.processing.buffers import HistoryRing

        ring: HistoryRing[int] = HistoryRing(3)
        for value in (1, 2, 3, 4, 5):
            ring.append(value)
        assert ring.snapshot() == [3, 4, 5]
        assert len(ring) == 3
        assert ring.latest() == 5

    def test_empty_ring(self) -> None:
        from inertia.processing.buffers import HistoryRing

        ring: HistoryRing[float] = HistoryRing(2)
        assert not ring
        assert ring.latest() is None
        assert ring.snapshot() == []

    def test_clear_keeps_capacity(self) -> None:
        from inertia.processing.buffers import HistoryRing

        ring: HistoryRing[int] = HistoryRing(2)
        ring.append(1)
        ring.clear()
        for value in (7, 8, 9):
            ring.append(value)
        assert ring.snapshot() == [8, 9]
        assert ring.capacity == 2

    def test_snapshot_is_a_copy(self) -> None:
        from inertia.processing.buffers import HistoryRing

        ring: HistoryRing[int] = HistoryRing(4)
        ring.append(1)
        snap = ring.snapshot()
        snap.append(99)
        assert list(ring) == [1]

    def test_rejects_non_positive_capacity(self) -> None:
        from inertia.processing.buffers import HistoryRing

        with pytest.raises(ValueError, match="capacity"):
            HistoryRing(0)

    def test_slots_defined(self) -> None:
        from inertia.processing.buffers import HistoryRing

        assert hasattr(HistoryRing, "__slots__")
