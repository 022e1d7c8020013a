"""
Frame and timer hosts.

Every animator advances inside a host-provided "next frame" callback and the
ingestion throttle runs on a fixed-period timer. The two clocks are not
synchronized. A host provides both:

    now()                          -> current time in ms
    request_frame(cb)              -> handle; cb(now_ms) runs on the next frame
    set_interval(period_ms, cb)    -> handle; cb() runs every period
    handle.cancel()

LoopFrameHost drives them from an asyncio loop. ManualFrameHost is a
deterministic host used by tests, replays and the benchmark.
"""

from __future__ import annotations

import asyncio
import math
from typing import Callable, Optional, Protocol


FrameCallback = Callable[[float], None]
TimerCallback = Callable[[], None]


class Handle(Protocol):
    def cancel(self) -> None: ...


class FrameHost(Protocol):
    def now(self) -> float: ...

    def request_frame(self, callback: FrameCallback) -> Handle: ...

    def set_interval(self, period_ms: float, callback: TimerCallback) -> Handle: ...


class _LoopInterval:
    """Fixed-cadence repeating timer on an asyncio loop."""

    __slots__ = ('_loop', '_period', '_callback', '_deadline', '_handle', 'cancelled')

    def __init__(self, loop: asyncio.AbstractEventLoop, period_sec: float,
                 callback: TimerCallback) -> None:
        self._loop = loop
        self._period = period_sec
        self._callback = callback
        self._deadline = loop.time()
        self._handle: Optional[asyncio.TimerHandle] = None
        self.cancelled = False

    def start(self) -> None:
        self._schedule()

    def _schedule(self) -> None:
        self._deadline += self._period
        # Skip missed ticks instead of bursting after a stall
        now = self._loop.time()
        if self._deadline < now:
            self._deadline = now + self._period
        self._handle = self._loop.call_at(self._deadline, self._tick)

    def _tick(self) -> None:
        if self.cancelled:
            return
        self._schedule()
        self._callback()

    def cancel(self) -> None:
        self.cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class LoopFrameHost:
    """
    Frame host backed by an asyncio event loop.

    Frames are emulated with call_later at 1/fps. The loop is resolved lazily
    so the host can be created before the loop starts running.
    """

    def __init__(self, fps: int = 60, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self.frame_interval = 1.0 / fps
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> float:
        return self.loop.time() * 1000.0

    def request_frame(self, callback: FrameCallback) -> Handle:
        return self.loop.call_later(self.frame_interval, self._run_frame, callback)

    def _run_frame(self, callback: FrameCallback) -> None:
        callback(self.now())

    def set_interval(self, period_ms: float, callback: TimerCallback) -> Handle:
        interval = _LoopInterval(self.loop, period_ms / 1000.0, callback)
        interval.start()
        return interval


class _ManualHandle:
    __slots__ = ('callback', 'cancelled')

    def __init__(self, callback: FrameCallback) -> None:
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class _ManualTimer:
    __slots__ = ('callback', 'period_ms', 'deadline', 'cancelled')

    def __init__(self, callback: TimerCallback, period_ms: float, deadline: float) -> None:
        self.callback = callback
        self.period_ms = period_ms
        self.deadline = deadline
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualFrameHost:
    """
    Deterministic host. Time only moves when advance() is called.

    Frames fire on a fixed grid of frame_ms; timers fire at their deadlines.
    When a timer and a frame fall on the same instant the timer runs first.
    """

    def __init__(self, start_ms: float = 0.0, frame_ms: float = 1000.0 / 60.0) -> None:
        self._start = start_ms
        self._now = start_ms
        self.frame_ms = frame_ms
        self._frames: list[_ManualHandle] = []
        self._timers: list[_ManualTimer] = []
        self.frames_run: int = 0

    def now(self) -> float:
        return self._now

    def request_frame(self, callback: FrameCallback) -> Handle:
        handle = _ManualHandle(callback)
        self._frames.append(handle)
        return handle

    def set_interval(self, period_ms: float, callback: TimerCallback) -> Handle:
        timer = _ManualTimer(callback, period_ms, self._now + period_ms)
        self._timers.append(timer)
        return timer

    @property
    def pending_frames(self) -> int:
        return sum(1 for h in self._frames if not h.cancelled)

    @property
    def active_timers(self) -> int:
        self._timers = [t for t in self._timers if not t.cancelled]
        return len(self._timers)

    def _next_frame_time(self) -> float:
        index = math.floor((self._now - self._start) / self.frame_ms + 1e-9) + 1
        return self._start + index * self.frame_ms

    def _next_timer(self) -> _ManualTimer | None:
        live = [t for t in self._timers if not t.cancelled]
        self._timers = live
        if not live:
            return None
        return min(live, key=lambda t: t.deadline)

    def advance(self, ms: float) -> None:
        """Move time forward by ms, firing due timers and frames in order."""
        end = self._now + ms
        while True:
            timer = self._next_timer()
            timer_at = timer.deadline if timer is not None else math.inf
            frame_at = self._next_frame_time() if self.pending_frames else math.inf

            if min(timer_at, frame_at) > end:
                break

            if timer is not None and timer_at <= frame_at:
                self._now = timer_at
                timer.deadline += timer.period_ms
                timer.callback()
            else:
                self._now = frame_at
                self.run_frame()

        self._now = end

    def run_frame(self) -> None:
        """Fire every frame callback requested before this frame."""
        frames, self._frames = self._frames, []
        self.frames_run += 1
        for handle in frames:
            if not handle.cancelled:
                handle.callback(self._now)

    def step_frame(self) -> None:
        """Advance exactly to the next frame boundary."""
        self.advance(self._next_frame_time() - self._now)
