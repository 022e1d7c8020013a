"""Segment reveal and delayed echo animations."""

from __future__ import annotations

import pytest

from tick_chart.datafeed.buffer import SampleBuffer
from tick_chart.engine.clock import ManualFrameHost
from tick_chart.engine.line_draw import LineDrawAnimator
from tick_chart.types import Sample


@pytest.fixture
def buffer() -> SampleBuffer:
    return SampleBuffer(40)


@pytest.fixture
def draw(host: ManualFrameHost, buffer: SampleBuffer) -> LineDrawAnimator:
    animator = LineDrawAnimator(host, buffer, segment_duration_ms=1200,
                                echo_size=10, echo_interval_ms=1000, echo_duration_ms=1000)
    animator.mount()
    yield animator
    animator.unmount()


def push(buffer: SampleBuffer, count: int, start: int = 0) -> None:
    for i in range(start, start + count):
        buffer.push(Sample(1000 + i * 200, 100.0 + i))


def test_segment_progress_runs_zero_to_one(host: ManualFrameHost, buffer: SampleBuffer,
                                           draw: LineDrawAnimator) -> None:
    push(buffer, 2)
    draw.notify_append()

    assert draw.segment_progress == 0.0
    assert draw.segment.is_animating
    assert draw.segment.endpoints == (buffer.previous, buffer.last)

    seen = [draw.segment_progress]
    while draw.segment.is_animating:
        host.step_frame()
        seen.append(draw.segment_progress)

    assert all(b >= a for a, b in zip(seen, seen[1:]))
    assert seen[-1] == 1.0
    assert host.pending_frames == 0


def test_first_sample_does_not_reveal(buffer: SampleBuffer, draw: LineDrawAnimator) -> None:
    push(buffer, 1)
    draw.notify_append()

    assert draw.reveal_count == 0
    assert not draw.segment.is_animating


def test_new_sample_supersedes_running_reveal(host: ManualFrameHost, buffer: SampleBuffer,
                                              draw: LineDrawAnimator) -> None:
    push(buffer, 2)
    draw.notify_append()
    host.advance(400)
    assert 0.0 < draw.segment_progress < 1.0

    push(buffer, 1, start=2)
    draw.notify_append()

    assert draw.reveal_count == 2
    assert draw.segment_progress == 0.0
    assert draw.segment.endpoints == (buffer.previous, buffer.last)
    # Never stacked
    assert host.pending_frames == 1


def test_unmount_cancels_frames_and_timer(host: ManualFrameHost, buffer: SampleBuffer,
                                          draw: LineDrawAnimator) -> None:
    push(buffer, 12)
    draw.notify_append()
    host.advance(1000)
    assert host.pending_frames > 0
    assert host.active_timers == 1

    draw.unmount()

    assert host.pending_frames == 0
    assert host.active_timers == 0
    frames = host.frames_run
    host.advance(5000)
    assert host.frames_run == frames


def test_echo_snapshots_most_recent_samples(host: ManualFrameHost, buffer: SampleBuffer,
                                            draw: LineDrawAnimator) -> None:
    push(buffer, 15)
    host.advance(1000)

    echo = draw.echo
    assert draw.echo_count == 1
    assert echo.path == buffer.tail(10)
    assert echo.is_animating
    assert echo.progress == 0.0

    host.advance(500)
    assert 0.0 < draw.echo.progress < 1.0


def test_echo_reseeds_every_interval(host: ManualFrameHost, buffer: SampleBuffer,
                                     draw: LineDrawAnimator) -> None:
    push(buffer, 5)
    host.advance(1000)
    host.advance(1000)
    assert draw.echo_count == 2

    push(buffer, 1, start=5)
    host.advance(1000)
    assert draw.echo_count == 3
    assert draw.echo.path[-1] == buffer.last


def test_echo_waits_for_two_samples(host: ManualFrameHost, buffer: SampleBuffer,
                                    draw: LineDrawAnimator) -> None:
    push(buffer, 1)
    host.advance(3000)

    assert draw.echo_count == 0
    assert draw.echo.path == ()


def test_echo_and_segment_are_independent(host: ManualFrameHost, buffer: SampleBuffer,
                                          draw: LineDrawAnimator) -> None:
    push(buffer, 5)
    host.advance(900)
    draw.notify_append()
    host.advance(100)  # echo tick lands mid-reveal

    assert draw.segment.is_animating
    assert draw.echo.is_animating
    assert draw.reveal_count == 1
    assert draw.echo_count == 1


def test_reset_parks_both_animations(host: ManualFrameHost, buffer: SampleBuffer,
                                     draw: LineDrawAnimator) -> None:
    push(buffer, 5)
    draw.notify_append()
    host.advance(1000)
    draw.reset()

    assert draw.segment == (1.0, False, None)
    assert draw.echo.path == ()
    assert host.pending_frames == 0
