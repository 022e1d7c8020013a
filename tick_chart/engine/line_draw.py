"""
Line-draw animations.

Two independent, frame-driven animations:

1. New-segment reveal: every accepted sample after the first reveals the
   segment (previous_last -> new_last) with progress 0 -> 1. Everything
   before it is drawn statically.
2. Delayed echo: every echo interval the most recent K samples are
   snapshotted and revealed on their own clock as a secondary stroke.

Neither blocks the other. A new sample arriving mid-reveal supersedes the
running reveal on the next frame; reveals are never stacked.
"""

from __future__ import annotations

import logging
from typing import Optional

from .animation import Easing, TweenAnimator, ease_standard
from .clock import FrameHost, Handle
from ..datafeed.buffer import SampleBuffer
from ..types import EchoState, Sample, SegmentAnimState

logger = logging.getLogger(__name__)


class _Reveal:
    """One progress 0 -> 1 animation with its own frame chain."""

    __slots__ = ('host', 'tween', 'frame', 'last_ms')

    def __init__(self, host: FrameHost, duration_ms: float, easing: Easing) -> None:
        self.host = host
        self.tween = TweenAnimator(duration_ms, easing)
        self.tween.start(1.0, 1.0)
        self.frame: Optional[Handle] = None
        self.last_ms: Optional[float] = None

    @property
    def progress(self) -> float:
        return self.tween.value

    @property
    def running(self) -> bool:
        return not self.tween.done

    def restart(self) -> None:
        self.tween.start(0.0, 1.0)
        self.last_ms = self.host.now()
        if self.frame is None:
            self.frame = self.host.request_frame(self._on_frame)

    def _on_frame(self, now_ms: float) -> None:
        self.frame = None
        last = self.last_ms if self.last_ms is not None else now_ms
        self.last_ms = now_ms
        _, done = self.tween.step(now_ms - last)
        if not done:
            self.frame = self.host.request_frame(self._on_frame)

    def cancel(self) -> None:
        if self.frame is not None:
            self.frame.cancel()
            self.frame = None
        self.last_ms = None

    def stop(self) -> None:
        """Cancel and park at fully drawn."""
        self.cancel()
        self.tween.start(1.0, 1.0)


class LineDrawAnimator:
    """
    Segment reveal + delayed echo path.

    Reads the buffer fresh whenever it needs endpoints or a snapshot; never
    caches buffer references across frames.

    Thread-safety: NOT thread-safe. Designed for single-threaded async use.
    """

    def __init__(
        self,
        host: FrameHost,
        buffer: SampleBuffer,
        segment_duration_ms: float = 1200.0,
        easing: Easing = ease_standard,
        echo_size: int = 10,
        echo_interval_ms: float = 1000.0,
        echo_duration_ms: float = 1000.0,
    ) -> None:
        self.host = host
        self.buffer = buffer
        self.echo_size = echo_size
        self.echo_interval_ms = echo_interval_ms

        self._segment = _Reveal(host, segment_duration_ms, easing)
        self._endpoints: Optional[tuple[Sample, Sample]] = None
        self.reveal_count: int = 0

        self._echo = _Reveal(host, echo_duration_ms, easing)
        self._echo_path: tuple[Sample, ...] = ()
        self._echo_timer: Optional[Handle] = None
        self.echo_count: int = 0

        self.mounted = False

    # --- lifecycle ---------------------------------------------------------

    def mount(self) -> None:
        """Arm the echo interval. Idempotent."""
        if self.mounted:
            return
        self.mounted = True
        self._echo_timer = self.host.set_interval(self.echo_interval_ms, self._on_echo_tick)

    def unmount(self) -> None:
        """Cancel every pending frame callback and the echo timer."""
        self.mounted = False
        if self._echo_timer is not None:
            self._echo_timer.cancel()
            self._echo_timer = None
        self._segment.stop()
        self._echo.stop()
        logger.debug("[DRAW] Unmounted after %d reveals, %d echoes",
                     self.reveal_count, self.echo_count)

    def reset(self) -> None:
        self._segment.stop()
        self._echo.stop()
        self._endpoints = None
        self._echo_path = ()

    # --- segment reveal ----------------------------------------------------

    def notify_append(self) -> None:
        """A sample was appended: reveal (previous_last -> new_last)."""
        prev, last = self.buffer.previous, self.buffer.last
        if prev is None or last is None:
            return
        self._endpoints = (prev, last)
        self.reveal_count += 1
        self._segment.restart()

    @property
    def segment(self) -> SegmentAnimState:
        return SegmentAnimState(self._segment.progress, self._segment.running, self._endpoints)

    @property
    def segment_progress(self) -> float:
        return self._segment.progress

    # --- delayed echo ------------------------------------------------------

    def _on_echo_tick(self) -> None:
        # Always re-seed from the current tail, even when nothing changed
        snapshot = self.buffer.tail(self.echo_size)
        if len(snapshot) < 2:
            return
        self._echo_path = snapshot
        self.echo_count += 1
        self._echo.restart()

    @property
    def echo(self) -> EchoState:
        return EchoState(self._echo_path, self._echo.progress, self._echo.running)
