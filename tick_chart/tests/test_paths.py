"""Path geometry: static line, reveal segment, area, echo, marker."""

from __future__ import annotations

import numpy as np
import pytest

from tick_chart.engine.paths import (
    PathGenerator,
    arc_length,
    catmull_rom,
    dash_offset,
    to_svg_path,
)
from tick_chart.engine.scales import compute_scales
from tick_chart.types import EchoState, Sample, SegmentAnimState, Viewport

VIEWPORT = Viewport()
SAMPLES = [Sample(1000, 45000.0), Sample(1200, 45100.0), Sample(1400, 44950.0)]
IDLE_SEGMENT = SegmentAnimState(1.0, False, None)
NO_ECHO = EchoState((), 1.0, False)


@pytest.fixture
def scales():
    return compute_scales(SAMPLES, None, VIEWPORT, 100.0)


def test_svg_path_format() -> None:
    assert to_svg_path([(0, 0), (10.5, 3.25)]) == "M 0.00,0.00 L 10.50,3.25"
    assert to_svg_path([(1, 1)]) == ""


def test_arc_length_and_dash_offset() -> None:
    points = [(0.0, 0.0), (3.0, 4.0), (3.0, 10.0)]
    assert arc_length(points) == pytest.approx(11.0)
    assert dash_offset(points, 0.0) == pytest.approx(11.0)
    assert dash_offset(points, 1.0) == pytest.approx(0.0)
    assert dash_offset(points, 2.0) == pytest.approx(0.0)


def test_catmull_rom_passes_through_points() -> None:
    xy = np.array([[0.0, 0.0], [10.0, 5.0], [20.0, -5.0], [30.0, 0.0]])
    curve = catmull_rom(xy, samples_per_segment=4)

    assert len(curve) == 1 + 3 * 4
    np.testing.assert_allclose(curve[::4], xy, atol=1e-9)


def test_rejects_unknown_curve() -> None:
    with pytest.raises(ValueError):
        PathGenerator("bezier")


def test_describe_needs_scales() -> None:
    gen = PathGenerator()
    assert gen.describe(SAMPLES, None, IDLE_SEGMENT, NO_ECHO, 45000.0) is None
    assert gen.describe(SAMPLES[:1], None, IDLE_SEGMENT, NO_ECHO, 45000.0) is None


def test_idle_line_covers_all_samples(scales) -> None:
    path = PathGenerator().describe(SAMPLES, scales, IDLE_SEGMENT, NO_ECHO, 44950.0)

    assert len(path.line) == 3
    assert path.segment == ()
    assert path.line[0][0] == pytest.approx(VIEWPORT.x_range[0])
    assert path.line[-1][0] == pytest.approx(VIEWPORT.x_range[1])
    assert path.line_length == pytest.approx(arc_length(path.line))


def test_revealing_segment_is_drawn_separately(scales) -> None:
    segment = SegmentAnimState(0.5, True, (SAMPLES[1], SAMPLES[2]))
    path = PathGenerator().describe(SAMPLES, scales, segment, NO_ECHO, 45000.0)

    assert len(path.line) == 2
    (x0, y0), (tip_x, tip_y) = path.segment
    assert (x0, y0) == pytest.approx(path.line[-1])
    end_x, end_y = scales.x(SAMPLES[2].timestamp), scales.y(SAMPLES[2].price)
    assert tip_x == pytest.approx((x0 + end_x) / 2)
    assert tip_y == pytest.approx((y0 + end_y) / 2)
    # Marker follows the tip
    assert path.marker[0] == pytest.approx(tip_x)


def test_stale_segment_endpoints_are_not_drawn(scales) -> None:
    segment = SegmentAnimState(0.5, True, (SAMPLES[0], SAMPLES[1]))
    path = PathGenerator().describe(SAMPLES, scales, segment, NO_ECHO, 45000.0)

    assert len(path.line) == 3
    assert path.segment == ()


def test_marker_uses_constrained_price(scales) -> None:
    path = PathGenerator().describe(SAMPLES, scales, IDLE_SEGMENT, NO_ECHO, 1_000_000.0)
    top = scales.y(scales.constrained_bounds.max)

    assert path.marker[1] == pytest.approx(top)
    assert path.marker[1] > VIEWPORT.top_padding


def test_area_closes_at_chart_bottom(scales) -> None:
    path = PathGenerator().describe(SAMPLES, scales, IDLE_SEGMENT, NO_ECHO, None)
    bottom = VIEWPORT.chart_bottom

    assert path.area[0] == pytest.approx((path.line[0][0], bottom))
    assert path.area[-1] == pytest.approx((path.line[-1][0], bottom))
    assert path.area[1:-1] == path.line
    assert path.marker is None


@pytest.mark.parametrize("progress, visible", [(0.0, 2), (0.05, 2), (0.5, 5), (0.91, 10), (1.0, 10)])
def test_echo_visible_prefix(progress: float, visible: int) -> None:
    data = [Sample(1000 + i * 200, 100.0 + i) for i in range(10)]
    scales = compute_scales(data, None, VIEWPORT, 1.0)
    echo = EchoState(tuple(data), progress, progress < 1.0)

    points = PathGenerator().echo_points(echo, scales)
    assert len(points) == visible


def test_catmull_rom_generator_keeps_endpoints(scales) -> None:
    linear = PathGenerator("linear").describe(SAMPLES, scales, IDLE_SEGMENT, NO_ECHO, None)
    smooth = PathGenerator("catmull_rom", 6).describe(SAMPLES, scales, IDLE_SEGMENT, NO_ECHO, None)

    assert len(smooth.line) == 1 + 2 * 6
    assert smooth.line[0] == pytest.approx(linear.line[0])
    assert smooth.line[-1] == pytest.approx(linear.line[-1])
