"""LiveChart facade: end-to-end pipeline on a deterministic clock."""

from __future__ import annotations

import orjson
import pytest

from tick_chart.chart import LiveChart, build_price_animator
from tick_chart.config import ChartConfig
from tick_chart.engine.animation import SpringAnimator, TweenAnimator
from tick_chart.engine.clock import ManualFrameHost
from tick_chart.types import Direction

PERIOD_MS = 200


def feed_spaced(chart: LiveChart, host: ManualFrameHost, ticks: list[tuple[int, float]]) -> None:
    """One tick per acceptance period."""
    for timestamp, price in ticks:
        chart.feed(price, timestamp)
        host.advance(PERIOD_MS)


SCENARIO = [(1000, 45000.0), (1200, 45100.0), (1400, 44950.0)]


def test_three_sample_scenario(chart: LiveChart, host: ManualFrameHost) -> None:
    feed_spaced(chart, host, SCENARIO)

    assert len(chart.get_samples()) == 3
    assert chart.get_current_price() == 44950.0

    scales = chart.get_scales()
    assert scales is not None
    mean_price = sum(p for _, p in SCENARIO) / 3
    assert abs(scales.price_bounds.mid - mean_price) <= scales.margin
    assert scales.price_bounds.min <= 44950.0
    assert scales.price_bounds.max >= 45100.0

    # One reveal per append after the first
    assert chart.line_draw.reveal_count == 2


def test_first_price_is_displayed_immediately(chart: LiveChart) -> None:
    assert chart.get_displayed_price() is None
    chart.feed(45000.0, 1000)

    assert chart.get_displayed_price() == 45000.0
    assert chart.get_scales() is None
    assert chart.get_path() is None


def test_displayed_price_settles_on_latest_sample(chart: LiveChart, host: ManualFrameHost) -> None:
    settled: list[float] = []
    chart.on_price_settled(settled.append)

    feed_spaced(chart, host, SCENARIO)
    host.advance(3000)

    assert chart.get_displayed_price() == 44950.0
    # The superseded 45100 target never settles
    assert settled == [44950.0]
    assert chart.get_direction() is Direction.DOWN


def test_segment_progress_and_echo_exposed(chart: LiveChart, host: ManualFrameHost) -> None:
    feed_spaced(chart, host, SCENARIO)
    # The last reveal started on the final tick
    assert chart.get_segment_anim_progress() == 0.0
    host.advance(100)
    assert 0.0 < chart.get_segment_anim_progress() < 1.0

    host.advance(1000)
    echo = chart.get_delayed_echo_state()
    assert echo.path == tuple(chart.get_samples())


def test_buffer_stays_bounded(host: ManualFrameHost) -> None:
    chart = LiveChart(ChartConfig(capacity=5), host=host)
    chart.throttle.start()
    for i in range(30):
        chart.feed(100.0 + i, i * PERIOD_MS)
        host.advance(PERIOD_MS)

    assert len(chart.get_samples()) == 5
    assert chart.get_samples()[0].price == 125.0


def test_malformed_messages_are_dropped(chart: LiveChart) -> None:
    chart.handle_message(b"{not json")
    chart.handle_message(b'{"p": "abc", "T": 1}')
    chart.handle_message(orjson.dumps({"p": "45000.5", "T": 1000}))

    assert chart.parse_errors == 2
    assert chart.get_current_price() == 45000.5


def test_change_since_first_sample(chart: LiveChart, host: ManualFrameHost) -> None:
    assert chart.change == (0.0, 0.0)
    feed_spaced(chart, host, [(0, 200.0), (200, 210.0)])

    value, percent = chart.change
    assert value == pytest.approx(10.0)
    assert percent == pytest.approx(5.0)


def test_snapshot_fields(chart: LiveChart, host: ManualFrameHost) -> None:
    feed_spaced(chart, host, SCENARIO)
    frame = chart.snapshot()

    assert frame.symbol == "BTCUSDT"
    assert frame.current_price == 44950.0
    assert frame.sample_count == 3
    assert frame.bounds == chart.get_scales().price_bounds
    assert frame.path is not None
    assert frame.path.marker is not None
    assert not frame.connected
    assert frame.last_error is None


def test_published_frames_never_exceed_queue_size(chart: LiveChart, host: ManualFrameHost) -> None:
    feed_spaced(chart, host, SCENARIO)
    host.advance(1000)

    assert chart.snapshot_queue.qsize() == 5
    newest = None
    while not chart.snapshot_queue.empty():
        newest = chart.snapshot_queue.get_nowait()
    assert newest.sample_count == 3


def test_unmount_cancels_every_callback(chart: LiveChart, host: ManualFrameHost) -> None:
    feed_spaced(chart, host, SCENARIO)
    chart.unmount()

    assert host.pending_frames == 0
    assert host.active_timers == 0


def test_reset_clears_state(chart: LiveChart, host: ManualFrameHost) -> None:
    feed_spaced(chart, host, SCENARIO)
    chart.reset()

    assert chart.get_samples() == []
    assert chart.get_displayed_price() is None
    assert chart.get_scales() is None
    assert host.pending_frames == 0

    # Next tick is a fresh baseline
    chart.feed(1.0, 5000)
    assert chart.get_displayed_price() == 1.0


def test_build_price_animator_from_config() -> None:
    assert isinstance(build_price_animator(ChartConfig()), TweenAnimator)
    assert isinstance(build_price_animator(ChartConfig(price_animation="spring")), SpringAnimator)
