"""
Bounded rolling window of accepted samples.

HOT PATH: push() is called once per accepted sample; readers take snapshots
every frame.

Performance strategy:
1. deque(maxlen=N) gives O(1) append with front eviction
2. numpy views are built lazily, only when a reader asks for them
3. A generation counter lets readers skip recomputation when nothing changed
"""

from __future__ import annotations

from collections import deque
from itertools import islice
from typing import TYPE_CHECKING, Iterator

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import NDArray

from ..types import Sample


class SampleBuffer:
    """
    Fixed-capacity, oldest-first store of accepted samples.

    Timestamps are assumed non-decreasing: the upstream feed is ordered and
    the buffer never reorders. Pushing an older sample is a caller error.

    Thread-safety: NOT thread-safe. Written only by the ingestion throttle.
    """

    __slots__ = ('capacity', '_samples', 'generation')

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity!r}")
        self.capacity = capacity
        self._samples: deque[Sample] = deque(maxlen=capacity)

        # Bumped on every mutation
        self.generation: int = 0

    def push(self, sample: Sample) -> None:
        """Append a sample, evicting the oldest one when full. O(1)."""
        self._samples.append(sample)
        self.generation += 1

    def clear(self) -> None:
        self._samples.clear()
        self.generation += 1

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self) -> Iterator[Sample]:
        return iter(self._samples)

    def __bool__(self) -> bool:
        return bool(self._samples)

    @property
    def is_full(self) -> bool:
        return len(self._samples) == self.capacity

    @property
    def first(self) -> Sample | None:
        return self._samples[0] if self._samples else None

    @property
    def last(self) -> Sample | None:
        return self._samples[-1] if self._samples else None

    @property
    def previous(self) -> Sample | None:
        """Second-to-last sample, if any."""
        return self._samples[-2] if len(self._samples) >= 2 else None

    def snapshot(self) -> tuple[Sample, ...]:
        """Immutable oldest-first copy for readers."""
        return tuple(self._samples)

    def tail(self, k: int) -> tuple[Sample, ...]:
        """The most recent k samples, oldest-first."""
        if k <= 0:
            return ()
        start = max(0, len(self._samples) - k)
        return tuple(islice(self._samples, start, None))

    def prices(self) -> NDArray[np.float64]:
        return np.fromiter((s.price for s in self._samples), dtype=np.float64,
                           count=len(self._samples))

    def timestamps(self) -> NDArray[np.int64]:
        return np.fromiter((s.timestamp for s in self._samples), dtype=np.int64,
                           count=len(self._samples))
