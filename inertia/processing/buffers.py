"""Bounded FIFO history used by every per-session history.

``HistoryRing`` keeps insertion order and evicts the oldest entry once
``capacity`` is exceeded.  It has no lifecycle of its own: owners create it
empty at session start and call :meth:`clear` on an explicit reset.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator
from typing import Generic, TypeVar

T = TypeVar("T")


class HistoryRing(Generic[T]):
    __slots__ = ("_items", "capacity")

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError(f"HistoryRing capacity must be >= 1, got {capacity!r}")
        self.capacity = int(capacity)
        self._items: deque[T] = deque(maxlen=self.capacity)

    def append(self, item: T) -> None:
        self._items.append(item)

    def clear(self) -> None:
        self._items.clear()

    def snapshot(self) -> list[T]:
        """Return a copy of the contents, oldest first."""
        return list(self._items)

    def latest(self) -> T | None:
        return self._items[-1] if self._items else None

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)
