"""
Time and price scales.

Price domain is a two-stage design:

1. Raw domain: midpoint of the observed min/max, expanded by buffer_fraction
   of the observed range, with zoom_precision as the minimum half-width.
2. Inset constraint: animated/instantaneous prices are clamped margin_fraction
   of the domain span away from both edges.

Point placement is decoupled from domain growth so the chart does not
"breathe" on every tick. The static historical path is never constrained and
may touch the domain edge.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Iterable, Optional, Sequence, Union

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import NDArray

from ..types import PriceBounds, Sample, Viewport

Number = Union[float, int]
ArrayOrNumber = Union[float, "NDArray[np.float64]"]


class LinearScale:
    """
    Continuous linear mapping domain -> range.

    Accepts scalars or numpy arrays. A zero-width domain maps every input to
    the middle of the range.
    """

    __slots__ = ('d0', 'd1', 'r0', 'r1', '_k')

    def __init__(self, domain: tuple[Number, Number], range_: tuple[Number, Number]) -> None:
        self.d0, self.d1 = float(domain[0]), float(domain[1])
        self.r0, self.r1 = float(range_[0]), float(range_[1])
        span = self.d1 - self.d0
        self._k = (self.r1 - self.r0) / span if span != 0 else 0.0

    @property
    def domain(self) -> tuple[float, float]:
        return self.d0, self.d1

    @property
    def range(self) -> tuple[float, float]:
        return self.r0, self.r1

    def __call__(self, value: ArrayOrNumber) -> ArrayOrNumber:
        if self._k == 0.0:
            mid = (self.r0 + self.r1) / 2.0
            if isinstance(value, np.ndarray):
                return np.full(value.shape, mid, dtype=np.float64)
            return mid
        return self.r0 + (value - self.d0) * self._k

    def invert(self, pixel: ArrayOrNumber) -> ArrayOrNumber:
        if self._k == 0.0:
            return (self.d0 + self.d1) / 2.0
        return self.d0 + (pixel - self.r0) / self._k

    def ticks(self, count: int = 5) -> list[float]:
        """Evenly spaced 'nice' tick values inside the domain."""
        lo, hi = sorted((self.d0, self.d1))
        if count <= 0 or hi == lo:
            return [lo]
        raw = (hi - lo) / count
        magnitude = 10 ** math.floor(math.log10(raw))
        for factor in (1, 2, 5, 10):
            step = factor * magnitude
            if step >= raw:
                break
        start = math.ceil(lo / step) * step
        return [float(v) for v in np.arange(start, hi + step * 1e-9, step)]


class ScaleState:
    """Time and price scales for one buffer state, plus the inset clamp."""

    __slots__ = ('time_scale', 'price_scale', 'price_bounds', 'margin')

    def __init__(self, time_scale: LinearScale, price_scale: LinearScale,
                 price_bounds: PriceBounds, margin: float) -> None:
        self.time_scale = time_scale
        self.price_scale = price_scale
        self.price_bounds = price_bounds
        self.margin = margin

    @property
    def constrained_bounds(self) -> PriceBounds:
        return PriceBounds(self.price_bounds.min + self.margin,
                           self.price_bounds.max - self.margin)

    def constrain_price(self, price: float) -> float:
        """Clamp into [min + margin, max - margin]. NaN maps to the midpoint."""
        lo, hi = self.constrained_bounds
        if math.isnan(price):
            return (lo + hi) / 2.0
        return min(max(price, lo), hi)

    def x(self, timestamp: ArrayOrNumber) -> ArrayOrNumber:
        return self.time_scale(timestamp)

    def y(self, price: ArrayOrNumber) -> ArrayOrNumber:
        return self.price_scale(price)


def price_domain(
    prices: Iterable[float],
    zoom_precision: float,
    buffer_fraction: float = 0.3,
) -> Optional[PriceBounds]:
    """
    Raw price domain around the observed min/max.

    half-width = max(observed_range * (1 + buffer_fraction) / 2, zoom_precision)
    """
    values = np.fromiter(prices, dtype=np.float64)
    values = values[np.isfinite(values)]
    if values.size == 0:
        return None
    lo = float(values.min())
    hi = float(values.max())
    mid = (lo + hi) / 2.0
    half = max((hi - lo) * (1.0 + buffer_fraction) / 2.0, zoom_precision)
    return PriceBounds(mid - half, mid + half)


def compute_scales(
    samples: Sequence[Sample],
    animated_price: Optional[float],
    viewport: Viewport,
    zoom_precision: float,
    buffer_fraction: float = 0.3,
    margin_fraction: float = 0.05,
) -> Optional[ScaleState]:
    """
    Build scales for the given buffer contents.

    Returns None with fewer than 2 samples; callers render a placeholder.
    """
    if len(samples) < 2:
        return None

    time_scale = LinearScale((samples[0].timestamp, samples[-1].timestamp), viewport.x_range)

    prices = [s.price for s in samples]
    if animated_price is not None:
        prices.append(animated_price)
    bounds = price_domain(prices, zoom_precision, buffer_fraction)
    if bounds is None:
        return None

    price_scale = LinearScale((bounds.min, bounds.max), viewport.y_range)
    margin = bounds.span * margin_fraction
    return ScaleState(time_scale, price_scale, bounds, margin)
