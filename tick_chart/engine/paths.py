"""
Path generation.

Turns buffer contents + scales into render-ready geometry: the static line,
the filled area under it, the animated newest segment, the delayed echo
stroke and the live price marker.

Stroke lengths are computed analytically from the same sample -> pixel
mapping, so dash-offset style reveals need no render-surface measurement.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Optional, Sequence

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import NDArray

from .scales import ScaleState
from ..types import EchoState, PathDescription, Sample, SegmentAnimState

Points = tuple[tuple[float, float], ...]

CURVES = ("linear", "catmull_rom")


def to_svg_path(points: Sequence[tuple[float, float]]) -> str:
    """'M x,y L x,y ...' for a polyline. Empty for fewer than 2 points."""
    if len(points) < 2:
        return ""
    head = points[0]
    parts = [f"M {head[0]:.2f},{head[1]:.2f}"]
    parts.extend(f"L {x:.2f},{y:.2f}" for x, y in points[1:])
    return " ".join(parts)


def arc_length(points: Sequence[tuple[float, float]]) -> float:
    if len(points) < 2:
        return 0.0
    xy = np.asarray(points, dtype=np.float64)
    return float(np.hypot(np.diff(xy[:, 0]), np.diff(xy[:, 1])).sum())


def dash_offset(points: Sequence[tuple[float, float]], progress: float) -> float:
    """Stroke dash offset that reveals `progress` of the polyline."""
    progress = min(max(progress, 0.0), 1.0)
    return arc_length(points) * (1.0 - progress)


def catmull_rom(xy: NDArray[np.float64], samples_per_segment: int = 8,
                alpha: float = 0.5) -> NDArray[np.float64]:
    """
    Centripetal Catmull-Rom resampling of a polyline.

    Passes through every input point. Endpoints are extended by reflection so
    the first and last segments are curved too.
    """
    n = len(xy)
    if n < 3 or samples_per_segment < 1:
        return xy

    padded = np.vstack([2 * xy[0] - xy[1], xy, 2 * xy[-1] - xy[-2]])
    out = [xy[0]]
    ts = np.linspace(0.0, 1.0, samples_per_segment + 1)[1:]

    for i in range(n - 1):
        p0, p1, p2, p3 = padded[i], padded[i + 1], padded[i + 2], padded[i + 3]

        def knot(a: NDArray[np.float64], b: NDArray[np.float64]) -> float:
            return max(float(np.hypot(*(b - a))) ** alpha, 1e-9)

        t1 = knot(p0, p1)
        t2 = t1 + knot(p1, p2)
        t3 = t2 + knot(p2, p3)

        for u in ts:
            t = t1 + (t2 - t1) * u
            a1 = (t1 - t) / t1 * p0 + t / t1 * p1
            a2 = (t2 - t) / (t2 - t1) * p1 + (t - t1) / (t2 - t1) * p2
            a3 = (t3 - t) / (t3 - t2) * p2 + (t - t2) / (t3 - t2) * p3
            b1 = (t2 - t) / t2 * a1 + t / t2 * a2
            b2 = (t3 - t) / (t3 - t1) * a2 + (t - t1) / (t3 - t1) * a3
            out.append((t2 - t) / (t2 - t1) * b1 + (t - t1) / (t2 - t1) * b2)

    return np.vstack(out)


def _as_points(xy: NDArray[np.float64]) -> Points:
    return tuple((float(x), float(y)) for x, y in xy)


class PathGenerator:
    """
    Builds a PathDescription per frame.

    HOT PATH: describe() runs every published frame. Coordinates are mapped
    with vectorized numpy scale calls.
    """

    __slots__ = ('curve', 'samples_per_segment')

    def __init__(self, curve: str = "linear", samples_per_segment: int = 8) -> None:
        if curve not in CURVES:
            raise ValueError(f"curve must be one of {CURVES}, got {curve!r}")
        self.curve = curve
        self.samples_per_segment = samples_per_segment

    def _map(self, samples: Sequence[Sample], scales: ScaleState) -> NDArray[np.float64]:
        if not samples:
            return np.empty((0, 2), dtype=np.float64)
        ts = np.fromiter((s.timestamp for s in samples), dtype=np.float64, count=len(samples))
        ps = np.fromiter((s.price for s in samples), dtype=np.float64, count=len(samples))
        return np.column_stack([scales.x(ts), scales.y(ps)])

    def _shape(self, xy: NDArray[np.float64]) -> NDArray[np.float64]:
        if self.curve == "catmull_rom":
            return catmull_rom(xy, self.samples_per_segment)
        return xy

    def line_points(self, samples: Sequence[Sample], scales: ScaleState) -> Points:
        """Historical line. Not constrained: points may touch the domain edge."""
        if len(samples) < 2:
            return ()
        return _as_points(self._shape(self._map(samples, scales)))

    def segment_points(self, segment: SegmentAnimState, scales: ScaleState) -> Points:
        """Partial newest segment, interpolated linearly in pixel space."""
        if not segment.is_animating or segment.endpoints is None:
            return ()
        prev, current = segment.endpoints
        x0, y0 = scales.x(prev.timestamp), scales.y(prev.price)
        x1, y1 = scales.x(current.timestamp), scales.y(current.price)
        p = segment.progress
        return ((x0, y0), (x0 + (x1 - x0) * p, y0 + (y1 - y0) * p))

    def area_points(self, line: Points, scales: ScaleState,
                    close_x: Optional[float] = None) -> Points:
        """Closed polygon under the line, down to the bottom of the price range."""
        if len(line) < 2:
            return ()
        bottom = scales.price_scale.r0
        first_x = line[0][0]
        end_x = line[-1][0] if close_x is None else close_x
        return ((first_x, bottom),) + line + ((end_x, bottom),)

    def echo_points(self, echo: EchoState, scales: ScaleState) -> Points:
        """Visible prefix of the echo snapshot: max(2, ceil(n * progress)) points."""
        n = len(echo.path)
        if n < 2:
            return ()
        visible = max(2, math.ceil(n * echo.progress))
        return _as_points(self._map(echo.path[:visible], scales))

    def describe(
        self,
        samples: Sequence[Sample],
        scales: Optional[ScaleState],
        segment: SegmentAnimState,
        echo: EchoState,
        displayed_price: Optional[float],
    ) -> Optional[PathDescription]:
        if scales is None or len(samples) < 2:
            return None

        revealing = (segment.is_animating and segment.endpoints is not None
                     and segment.endpoints[1] == samples[-1])
        if revealing:
            # Newest segment is drawn by the reveal, everything else is static
            static = samples[:-1]
            seg = self.segment_points(segment, scales)
        else:
            static = samples
            seg = ()

        line = self.line_points(static, scales)
        if len(static) == 1 and seg:
            line = ((float(scales.x(static[0].timestamp)), float(scales.y(static[0].price))),)

        if seg:
            tip_x = seg[-1][0]
            area = self.area_points(line + (seg[-1],), scales, close_x=tip_x)
        else:
            tip_x = line[-1][0] if line else None
            area = self.area_points(line, scales)

        marker = None
        if displayed_price is not None and tip_x is not None:
            marker = (float(tip_x), float(scales.y(scales.constrain_price(displayed_price))))

        return PathDescription(
            line=line,
            area=area,
            segment=tuple((float(x), float(y)) for x, y in seg),
            echo=self.echo_points(echo, scales),
            marker=marker,
            line_length=arc_length(line) + arc_length(seg),
        )
