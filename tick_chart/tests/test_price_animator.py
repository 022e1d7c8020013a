"""Displayed-price animator: settle semantics, retargeting, jump absorption."""

from __future__ import annotations

import pytest

from tick_chart.engine.animation import SpringAnimator, TweenAnimator, ease_out_cubic
from tick_chart.engine.clock import ManualFrameHost
from tick_chart.engine.price_animator import PriceAnimator
from tick_chart.types import AnimPhase, Direction


def make_animator(host: ManualFrameHost, zoom: float = 1000.0, spring: bool = False) -> PriceAnimator:
    animator = SpringAnimator() if spring else TweenAnimator(1200, ease_out_cubic)
    return PriceAnimator(host, animator, zoom_precision=zoom)


def test_large_jump_settles_exactly_once(host: ManualFrameHost) -> None:
    anim = make_animator(host, zoom=2.0)
    settled: list[float] = []
    anim.on_settled(settled.append)

    anim.set_baseline(50000.0)
    anim.set_target(50100.0)

    # 100 > 0.8 * 2: snapped to within 0.2 * 1.6 of the target
    assert anim.displayed_price == pytest.approx(50100.0 - 0.32)
    assert anim.is_animating

    host.advance(2000)

    assert anim.displayed_price == 50100.0
    assert settled == [50100.0]
    assert anim.phase is AnimPhase.IDLE
    assert anim.direction is Direction.UP


@pytest.mark.parametrize("spring", [False, True])
def test_converges_to_exact_target(host: ManualFrameHost, spring: bool) -> None:
    anim = make_animator(host, spring=spring)
    settled: list[float] = []
    anim.on_settled(settled.append)

    anim.set_baseline(100.0)
    anim.set_target(140.0)
    host.advance(100)
    assert 100.0 < anim.displayed_price < 140.0

    host.advance(5000)
    assert anim.displayed_price == 140.0
    assert settled == [140.0]
    assert host.pending_frames == 0


def test_displayed_price_moves_monotonically(host: ManualFrameHost) -> None:
    anim = make_animator(host)
    anim.set_baseline(10.0)
    anim.set_target(5.0)

    seen = [anim.displayed_price]
    while anim.is_animating:
        host.step_frame()
        seen.append(anim.displayed_price)

    assert all(b <= a for a, b in zip(seen, seen[1:]))
    assert seen[-1] == 5.0
    assert anim.direction is Direction.DOWN


def test_retarget_mid_flight_settles_only_final_target(host: ManualFrameHost) -> None:
    anim = make_animator(host)
    settled: list[float] = []
    anim.on_settled(settled.append)

    anim.set_baseline(0.0)
    anim.set_target(100.0)
    host.advance(300)
    anim.set_target(200.0)
    host.advance(5000)

    assert settled == [200.0]
    assert anim.displayed_price == 200.0


def test_single_outstanding_frame(host: ManualFrameHost) -> None:
    anim = make_animator(host)
    anim.set_baseline(0.0)
    for target in (10.0, 20.0, 30.0, 40.0):
        anim.set_target(target)
        assert host.pending_frames == 1


def test_baseline_shows_price_without_settling(host: ManualFrameHost) -> None:
    anim = make_animator(host)
    settled: list[float] = []
    anim.on_settled(settled.append)

    anim.set_target(42.0)  # no displayed price yet

    assert anim.displayed_price == 42.0
    assert not anim.is_animating
    assert settled == []
    assert host.pending_frames == 0


def test_target_within_epsilon_is_ignored(host: ManualFrameHost) -> None:
    anim = make_animator(host)
    settled: list[float] = []
    anim.on_settled(settled.append)

    anim.set_baseline(10.0)
    anim.set_target(10.0)

    assert not anim.is_animating
    assert settled == []


def test_failing_callback_does_not_break_others(host: ManualFrameHost) -> None:
    anim = make_animator(host)
    settled: list[float] = []

    def boom(price: float) -> None:
        raise RuntimeError("listener failed")

    anim.on_settled(boom)
    anim.on_settled(settled.append)
    anim.set_baseline(1.0)
    anim.set_target(2.0)
    host.advance(2000)

    assert settled == [2.0]
    assert anim.settle_count == 1


def test_cancel_drops_pending_frame(host: ManualFrameHost) -> None:
    anim = make_animator(host)
    anim.set_baseline(1.0)
    anim.set_target(2.0)
    host.advance(100)
    displayed = anim.displayed_price
    anim.cancel()
    host.advance(2000)

    assert host.pending_frames == 0
    assert anim.displayed_price == displayed
    assert anim.settle_count == 0


def test_state_snapshot(host: ManualFrameHost) -> None:
    anim = make_animator(host)
    anim.set_baseline(1.0)
    anim.set_target(3.0)

    state = anim.state
    assert state.displayed_price == 1.0
    assert state.target_price == 3.0
    assert state.is_animating
    assert state.phase is AnimPhase.CONVERGING
