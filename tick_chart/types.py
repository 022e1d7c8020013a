"""
Data types for Tick Chart.

Performance notes:
- Using NamedTuple for immutable, memory-efficient structures
- These are the UI-facing data structures; internal hot paths use numpy arrays
"""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import NamedTuple, Optional


class Sample(NamedTuple):
    """Single accepted (timestamp, price) observation."""
    timestamp: int  # ms epoch
    price: float


class PriceBounds(NamedTuple):
    """Visible price domain."""
    min: float
    max: float

    @property
    def span(self) -> float:
        return self.max - self.min

    @property
    def mid(self) -> float:
        return (self.min + self.max) / 2.0


class Viewport(NamedTuple):
    """Drawing area in pixels. y grows downward."""
    width: float = 900.0
    height: float = 500.0
    left_padding: float = 0.0
    right_padding: float = 80.0
    top_padding: float = 40.0
    bottom_padding: float = 70.0

    @property
    def x_range(self) -> tuple[float, float]:
        return self.left_padding, self.width - self.right_padding

    @property
    def y_range(self) -> tuple[float, float]:
        # Bottom first: higher prices map to smaller y
        return self.height - self.bottom_padding, self.top_padding

    @property
    def chart_bottom(self) -> float:
        return self.height - self.bottom_padding


class Direction(IntEnum):
    """Sign of the last settled price move."""
    DOWN = -1
    FLAT = 0
    UP = 1

    @classmethod
    def between(cls, previous: float | None, current: float) -> "Direction":
        if previous is None or current == previous:
            return cls.FLAT
        return cls.UP if current > previous else cls.DOWN


class AnimPhase(Enum):
    IDLE = "idle"
    CONVERGING = "converging"


class PriceAnimState(NamedTuple):
    displayed_price: Optional[float]
    target_price: Optional[float]
    is_animating: bool
    phase: AnimPhase


class SegmentAnimState(NamedTuple):
    """New-segment reveal. endpoints is (previous_last, new_last) or None."""
    progress: float
    is_animating: bool
    endpoints: Optional[tuple[Sample, Sample]]


class EchoState(NamedTuple):
    """Delayed trailing path snapshot and its reveal progress."""
    path: tuple[Sample, ...]
    progress: float
    is_animating: bool


class PathDescription(NamedTuple):
    """
    Render-ready geometry for one frame.

    All point lists are (x, y) pixel tuples. Empty tuples mean "do not draw".
    """
    line: tuple[tuple[float, float], ...]
    area: tuple[tuple[float, float], ...]
    segment: tuple[tuple[float, float], ...]
    echo: tuple[tuple[float, float], ...]
    marker: Optional[tuple[float, float]]
    line_length: float


class ChartFrame(NamedTuple):
    """
    Complete chart snapshot for UI rendering.

    Pushed to the UI queue at the configured publish interval.
    """
    symbol: str
    current_price: Optional[float]
    displayed_price: Optional[float]
    direction: Direction
    change_value: float
    change_percent: float
    bounds: Optional[PriceBounds]
    path: Optional[PathDescription]
    segment_progress: float
    echo_progress: float
    sample_count: int
    connected: bool
    last_error: Optional[str]
    samples_per_sec: float
    timestamp_ms: int
