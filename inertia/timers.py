"""Deadline queue for the fixed-duration one-shot timers.

Timers are never cancelled.  Each callback re-checks its own guard (state
plus run generation) when it fires, so a timer whose operation already
finished or was restarted becomes a silent no-op.

The queue does not read a clock: the owner calls :meth:`TimerQueue.run_due`
with the current monotonic time, which keeps timer behaviour deterministic
under replay and in tests.
"""

from __future__ import annotations

import heapq
import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

LOGGER = logging.getLogger(__name__)

TimerCallback = Callable[[float], None]
"""Called with the timer's own deadline (ms)."""


@dataclass(order=True, slots=True)
class _Timer:
    deadline_ms: float
    seq: int
    name: str = field(compare=False)
    callback: TimerCallback = field(compare=False)


class TimerQueue:
    def __init__(self) -> None:
        self._heap: list[_Timer] = []
        self._seq = itertools.count()

    def schedule(self, name: str, deadline_ms: float, callback: TimerCallback) -> None:
        timer = _Timer(
            deadline_ms=float(deadline_ms),
            seq=next(self._seq),
            name=name,
            callback=callback,
        )
        heapq.heappush(self._heap, timer)

    def run_due(self, now_ms: float) -> int:
        """Fire every timer with ``deadline <= now_ms`` in deadline order.

        Timers scheduled by a firing callback are fired too when already
        due.  Returns the number of callbacks invoked.
        """
        fired = 0
        while self._heap and self._heap[0].deadline_ms <= now_ms:
            timer = heapq.heappop(self._heap)
            LOGGER.debug(
                "Timer %s fired (deadline=%.1f now=%.1f)", timer.name, timer.deadline_ms, now_ms
            )
            timer.callback(timer.deadline_ms)
            fired += 1
        return fired

    def next_deadline(self) -> float | None:
        return self._heap[0].deadline_ms if self._heap else None

    def pending(self) -> list[str]:
        return [timer.name for timer in sorted(self._heap)]

    def clear(self) -> None:
        self._heap.clear()

    def __len__(self) -> int:
        return len(self._heap)
