"""
Ingestion throttle.

Decouples arbitrarily fast wire delivery from a fixed acceptance cadence.

HOT PATH: offer() is called for every parsed message (~100s per second for
active symbols). It only overwrites latest_raw; all buffer work happens on
the periodic tick.

Guarantees:
1. At most one accepted sample per period
2. The most recent value within a period wins (no averaging)
3. Nothing is synthesized while the socket is idle
4. The first sample of a session is accepted immediately
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from .buffer import SampleBuffer
from ..engine.clock import FrameHost, Handle
from ..types import Sample

logger = logging.getLogger(__name__)

# accept(sample, first)
AcceptCallback = Callable[[Sample, bool], None]


class IngestionThrottle:
    """
    Coalesces bursts of ticks into a capped-rate stream of samples.

    Sole writer of the SampleBuffer.

    Thread-safety: NOT thread-safe. Designed for single-threaded async use.
    """

    __slots__ = (
        'buffer', 'host', 'period_ms', 'on_accept',
        '_latest_price', '_latest_ts', '_latest_seq', '_accepted_seq',
        '_timer', 'offered', 'stale',
        '_accept_count', '_accept_count_last', '_rate_calc_time', 'samples_per_sec',
    )

    def __init__(
        self,
        buffer: SampleBuffer,
        host: FrameHost,
        period_ms: float = 200,
        on_accept: Optional[AcceptCallback] = None,
    ) -> None:
        self.buffer = buffer
        self.host = host
        self.period_ms = period_ms
        self.on_accept = on_accept

        # latest_raw, overwritten on every message
        self._latest_price: Optional[float] = None
        self._latest_ts: Optional[int] = None
        self._latest_seq: int = 0
        self._accepted_seq: int = 0

        self._timer: Optional[Handle] = None

        self.offered: int = 0
        self.stale: int = 0

        # Rolling acceptance rate, measured on the host clock (ms)
        self._accept_count: int = 0
        self._accept_count_last: int = 0
        self._rate_calc_time: Optional[float] = None
        self.samples_per_sec: float = 0.0

    @property
    def running(self) -> bool:
        return self._timer is not None

    @property
    def latest_raw(self) -> Optional[tuple[float, int]]:
        if self._latest_price is None or self._latest_ts is None:
            return None
        return self._latest_price, self._latest_ts

    def offer(self, price: float, timestamp: int) -> None:
        """
        Record the newest raw tick.

        HOT PATH - called for every message.
        """
        self.offered += 1
        last = self.buffer.last
        if last is not None and timestamp < last.timestamp:
            # Older than what is already on screen
            self.stale += 1
            return

        self._latest_price = price
        self._latest_ts = timestamp
        self._latest_seq += 1

        if last is None and self._accepted_seq == 0:
            # First sample of the session: baseline, no waiting
            self._accept(first=True)

    def tick(self) -> None:
        """Periodic acceptance check. No-op unless a newer tick arrived."""
        if self._latest_seq > self._accepted_seq:
            self._accept(first=False)
        self._update_rate()

    def _accept(self, first: bool) -> None:
        sample = Sample(self._latest_ts, self._latest_price)
        self._accepted_seq = self._latest_seq
        self.buffer.push(sample)
        self._accept_count += 1
        if self.on_accept is not None:
            self.on_accept(sample, first)

    def _update_rate(self) -> None:
        now = self.host.now()
        if self._rate_calc_time is None:
            self._rate_calc_time = now
            return
        elapsed = now - self._rate_calc_time
        if elapsed >= 1000.0:
            self.samples_per_sec = (self._accept_count - self._accept_count_last) * 1000.0 / elapsed
            self._accept_count_last = self._accept_count
            self._rate_calc_time = now

    def start(self) -> None:
        """Arm the fixed-period timer. Idempotent."""
        if self._timer is None:
            self._rate_calc_time = self.host.now()
            self._timer = self.host.set_interval(self.period_ms, self.tick)
            logger.debug("[THROTTLE] Started, period=%sms", self.period_ms)

    def stop(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
            logger.debug("[THROTTLE] Stopped after %d offers", self.offered)

    def reset(self) -> None:
        """Forget raw and accepted state (new session)."""
        self._latest_price = None
        self._latest_ts = None
        self._latest_seq = 0
        self._accepted_seq = 0
        self.offered = 0
        self.stale = 0
        self._accept_count = 0
        self._accept_count_last = 0
        self._rate_calc_time = None
        self.samples_per_sec = 0.0
