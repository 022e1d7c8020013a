"""
Displayed-price animator.

Smooths the "current price" shown next to the chart toward the latest
accepted sample. Two phases:

    IDLE        displayed price holds steady
    CONVERGING  displayed price is stepped toward target once per frame

The target is read fresh on every frame, so a new sample arriving mid-flight
simply retargets the running animation. Settle callbacks fire once per
convergence with the exact target value.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from .animation import Animator
from .clock import FrameHost, Handle
from ..types import AnimPhase, Direction, PriceAnimState

logger = logging.getLogger(__name__)

SettleCallback = Callable[[float], None]


class PriceAnimator:
    """
    Frame-driven price smoother with large-jump absorption.

    Jumps larger than jump_fraction * zoom_precision are snapped most of the
    way immediately; only jump_keep of that threshold is left to animate.

    Thread-safety: NOT thread-safe. Designed for single-threaded async use.
    """

    def __init__(
        self,
        host: FrameHost,
        animator: Animator,
        zoom_precision: float,
        jump_fraction: float = 0.8,
        jump_keep: float = 0.2,
        epsilon: float = 1e-9,
    ) -> None:
        self.host = host
        self.animator = animator
        self.zoom_precision = zoom_precision
        self.jump_fraction = jump_fraction
        self.jump_keep = jump_keep
        self.epsilon = epsilon

        self.displayed_price: Optional[float] = None
        self.target_price: Optional[float] = None
        self.phase = AnimPhase.IDLE

        # Direction of the last settle relative to the one before it
        self.previous_settled: Optional[float] = None
        self.direction = Direction.FLAT

        self.settle_count: int = 0
        self._callbacks: list[SettleCallback] = []
        self._frame: Optional[Handle] = None
        self._last_frame_ms: Optional[float] = None

    @property
    def is_animating(self) -> bool:
        return self.phase is AnimPhase.CONVERGING

    @property
    def state(self) -> PriceAnimState:
        return PriceAnimState(self.displayed_price, self.target_price,
                              self.is_animating, self.phase)

    def on_settled(self, callback: SettleCallback) -> None:
        self._callbacks.append(callback)

    def set_baseline(self, price: float) -> None:
        """First sample of a session: show it as-is, no animation, no settle."""
        self.cancel()
        self.displayed_price = price
        self.target_price = price
        self.previous_settled = price
        self.direction = Direction.FLAT
        self.phase = AnimPhase.IDLE

    def set_target(self, price: float) -> None:
        """Converge toward price. Starts, retargets or ignores as needed."""
        if self.displayed_price is None:
            self.set_baseline(price)
            return

        self.target_price = price
        delta = price - self.displayed_price
        if abs(delta) <= self.epsilon:
            if self.is_animating:
                # Already there; close out the running convergence
                self._settle()
            return

        threshold = self.jump_fraction * self.zoom_precision
        if abs(delta) > threshold:
            keep = threshold * self.jump_keep
            self.displayed_price = price - keep if delta > 0 else price + keep
            self.animator.start(self.displayed_price, price)
        elif self.is_animating:
            self.animator.retarget(price)
        else:
            self.animator.start(self.displayed_price, price)

        if not self.is_animating:
            self.phase = AnimPhase.CONVERGING
            self._last_frame_ms = self.host.now()
        self._request_frame()

    def _request_frame(self) -> None:
        # At most one outstanding frame callback
        if self._frame is None:
            self._frame = self.host.request_frame(self._on_frame)

    def _on_frame(self, now_ms: float) -> None:
        self._frame = None
        if not self.is_animating or self.target_price is None:
            return

        last = self._last_frame_ms if self._last_frame_ms is not None else now_ms
        self._last_frame_ms = now_ms

        if self.animator.target != self.target_price:
            self.animator.retarget(self.target_price)

        value, done = self.animator.step(now_ms - last)
        self.displayed_price = value

        if done or abs(self.target_price - value) <= self.epsilon:
            self._settle()
        else:
            self._request_frame()

    def _settle(self) -> None:
        settled = self.target_price
        self.displayed_price = settled
        self.animator.finish()
        self.phase = AnimPhase.IDLE
        self._last_frame_ms = None
        if self._frame is not None:
            self._frame.cancel()
            self._frame = None

        self.direction = Direction.between(self.previous_settled, settled)
        self.previous_settled = settled
        self.settle_count += 1

        for callback in list(self._callbacks):
            try:
                callback(settled)
            except Exception:
                logger.exception("[PRICE] settle callback failed")

    def cancel(self) -> None:
        """Drop any pending frame. Displayed price stays where it is."""
        if self._frame is not None:
            self._frame.cancel()
            self._frame = None
        self.phase = AnimPhase.IDLE
        self._last_frame_ms = None

    def reset(self) -> None:
        self.cancel()
        self.displayed_price = None
        self.target_price = None
        self.previous_settled = None
        self.direction = Direction.FLAT
