"""
Live chart core.

Wires the streaming pipeline together:

    SocketSession -> parse_tick -> IngestionThrottle -> SampleBuffer
                                                      -> scales / paths
    PriceAnimator and LineDrawAnimator advance on the host's frame clock.

Presentation code only reads through the getters below or consumes
ChartFrame snapshots from snapshot_queue.
"""

from __future__ import annotations

import logging
import queue
import time
from typing import Callable, Optional

import aiohttp

from .config import ChartConfig
from .datafeed.buffer import SampleBuffer
from .datafeed.messages import parse_tick
from .datafeed.socket_session import SocketSession
from .datafeed.throttle import IngestionThrottle
from .engine.animation import Animator, SpringAnimator, TweenAnimator, ease_out_cubic
from .engine.clock import FrameHost, Handle, LoopFrameHost
from .engine.line_draw import LineDrawAnimator
from .engine.paths import PathGenerator
from .engine.price_animator import PriceAnimator, SettleCallback
from .engine.scales import ScaleState, compute_scales
from .errors import StreamConnectionError, TickParseError
from .types import ChartFrame, Direction, EchoState, PathDescription, Sample

logger = logging.getLogger(__name__)


def build_price_animator(config: ChartConfig) -> Animator:
    """Tween or spring, per config.price_animation."""
    if config.price_animation == "spring":
        return SpringAnimator(stiffness=config.spring_stiffness)
    return TweenAnimator(config.price_duration_ms, ease_out_cubic)


class LiveChart:
    """
    Streaming price chart model.

    Usage:
        chart = LiveChart(ChartConfig(capacity=40))
        chart.mount()
        await chart.connect("wss://stream.binance.com:9443/ws/btcusdt@trade")
        ...
        chart.unmount()

    Thread-safety: NOT thread-safe. All calls must come from the host's loop.
    """

    def __init__(
        self,
        config: ChartConfig | None = None,
        host: FrameHost | None = None,
        symbol: str = "BTCUSDT",
        curve: str = "linear",
    ) -> None:
        self.config = config if config is not None else ChartConfig()
        self.host = host if host is not None else LoopFrameHost(fps=self.config.fps)
        self.symbol = symbol.upper()
        cfg = self.config

        # Core components
        self.buffer = SampleBuffer(cfg.capacity)
        self.throttle = IngestionThrottle(
            self.buffer, self.host, cfg.accept_period_ms, on_accept=self._on_accept,
        )
        self.price_animator = PriceAnimator(
            self.host,
            build_price_animator(cfg),
            zoom_precision=cfg.zoom_precision,
            jump_fraction=cfg.jump_fraction,
            jump_keep=cfg.jump_keep,
        )
        self.line_draw = LineDrawAnimator(
            self.host,
            self.buffer,
            segment_duration_ms=cfg.segment_duration_ms,
            echo_size=cfg.echo_size,
            echo_interval_ms=cfg.echo_interval_ms,
            echo_duration_ms=cfg.echo_duration_ms,
        )
        self.paths = PathGenerator(curve)

        # Session state
        self.session: Optional[SocketSession] = None
        self.connected = False
        self.last_error: Optional[StreamConnectionError] = None
        self.parse_errors: int = 0
        self.initial_price: Optional[float] = None

        self._error_callbacks: list[Callable[[StreamConnectionError], None]] = []
        self._close_callbacks: list[Callable[[int], None]] = []

        # Scales are a pure function of (buffer generation, displayed price)
        self._scales_key: Optional[tuple[int, Optional[float]]] = None
        self._scales: Optional[ScaleState] = None

        # Output queue for UI - thread-safe for cross-thread consumers
        self.snapshot_queue: queue.Queue[ChartFrame] = queue.Queue(maxsize=5)
        self._publisher: Optional[Handle] = None
        self.mounted = False

    # --- session -----------------------------------------------------------

    async def connect(
        self,
        url: str,
        client: Optional[aiohttp.ClientSession] = None,
    ) -> SocketSession:
        """
        Open a new session. A previous session is closed and all buffer and
        animation state is reset first.
        """
        if self.session is not None:
            self.session.close()
        self.reset()

        self.session = SocketSession(
            on_open=self._on_open,
            on_message=self.handle_message,
            on_error=self._on_error,
            on_close=self._on_close,
        )
        await self.session.connect(url, client)
        return self.session

    async def wait_closed(self) -> None:
        if self.session is not None:
            await self.session.wait_closed()

    def on_error(self, callback: Callable[[StreamConnectionError], None]) -> None:
        self._error_callbacks.append(callback)

    def on_close(self, callback: Callable[[int], None]) -> None:
        self._close_callbacks.append(callback)

    def _on_open(self) -> None:
        self.connected = True
        self.last_error = None
        self.throttle.start()

    def _on_error(self, error: StreamConnectionError) -> None:
        # Buffer and animations keep their last valid state
        self.last_error = error
        for callback in list(self._error_callbacks):
            callback(error)

    def _on_close(self, code: int) -> None:
        self.connected = False
        self.throttle.stop()
        for callback in list(self._close_callbacks):
            callback(code)

    # --- ingestion ---------------------------------------------------------

    def handle_message(self, raw: bytes | str) -> None:
        """
        Parse one wire frame and offer it to the throttle.

        HOT PATH - called for every message. Malformed frames are dropped.
        """
        try:
            price, timestamp = parse_tick(raw)
        except TickParseError as e:
            self.parse_errors += 1
            logger.debug("[CHART] Dropped frame #%d: %s", self.parse_errors, e)
            return
        self.throttle.offer(price, timestamp)

    def feed(self, price: float, timestamp: int) -> None:
        """Offer an already-parsed tick (replays, tests)."""
        self.throttle.offer(price, timestamp)

    def _on_accept(self, sample: Sample, first: bool) -> None:
        if first:
            self.initial_price = sample.price
            self.price_animator.set_baseline(sample.price)
            return
        self.price_animator.set_target(sample.price)
        self.line_draw.notify_append()

    # --- lifecycle ---------------------------------------------------------

    def mount(self) -> None:
        """Start the echo timer and frame publishing. Idempotent."""
        if self.mounted:
            return
        self.mounted = True
        self.line_draw.mount()
        self._publisher = self.host.set_interval(self.config.publish_interval_ms, self._publish)

    def unmount(self) -> None:
        """Cancel every frame callback and timer, close the session once."""
        self.mounted = False
        self.line_draw.unmount()
        self.price_animator.cancel()
        self.throttle.stop()
        if self._publisher is not None:
            self._publisher.cancel()
            self._publisher = None
        if self.session is not None:
            self.session.close()

    def reset(self) -> None:
        """Drop buffer and animation state (new session)."""
        self.throttle.stop()
        self.throttle.reset()
        self.buffer.clear()
        self.price_animator.reset()
        self.line_draw.reset()
        self.initial_price = None
        self.last_error = None
        self._scales_key = None
        self._scales = None

    # --- read-only contract ------------------------------------------------

    def get_samples(self) -> list[Sample]:
        return list(self.buffer)

    def get_current_price(self) -> Optional[float]:
        """Latest accepted raw price (pre-animation)."""
        last = self.buffer.last
        return last.price if last is not None else None

    def get_displayed_price(self) -> Optional[float]:
        return self.price_animator.displayed_price

    def get_scales(self) -> Optional[ScaleState]:
        """None until at least 2 samples exist."""
        key = (self.buffer.generation, self.price_animator.displayed_price)
        if key != self._scales_key:
            cfg = self.config
            self._scales = compute_scales(
                self.buffer.snapshot(),
                self.price_animator.displayed_price,
                cfg.viewport,
                cfg.zoom_precision,
                cfg.buffer_fraction,
                cfg.margin_fraction,
            )
            self._scales_key = key
        return self._scales

    def get_segment_anim_progress(self) -> float:
        return self.line_draw.segment_progress

    def get_delayed_echo_state(self) -> EchoState:
        return self.line_draw.echo

    def get_direction(self) -> Direction:
        return self.price_animator.direction

    def on_price_settled(self, callback: SettleCallback) -> None:
        self.price_animator.on_settled(callback)

    def get_path(self) -> Optional[PathDescription]:
        return self.paths.describe(
            self.buffer.snapshot(),
            self.get_scales(),
            self.line_draw.segment,
            self.line_draw.echo,
            self.price_animator.displayed_price,
        )

    @property
    def change(self) -> tuple[float, float]:
        """(value, percent) change of the current price since the session's first sample."""
        current = self.get_current_price()
        if current is None or self.initial_price is None or self.initial_price == 0:
            return 0.0, 0.0
        value = current - self.initial_price
        return value, value / self.initial_price * 100.0

    def snapshot(self) -> ChartFrame:
        change_value, change_percent = self.change
        scales = self.get_scales()
        return ChartFrame(
            symbol=self.symbol,
            current_price=self.get_current_price(),
            displayed_price=self.get_displayed_price(),
            direction=self.get_direction(),
            change_value=change_value,
            change_percent=change_percent,
            bounds=scales.price_bounds if scales is not None else None,
            path=self.get_path(),
            segment_progress=self.get_segment_anim_progress(),
            echo_progress=self.line_draw.echo.progress,
            sample_count=len(self.buffer),
            connected=self.connected,
            last_error=str(self.last_error) if self.last_error is not None else None,
            samples_per_sec=self.throttle.samples_per_sec,
            timestamp_ms=int(time.time() * 1000),
        )

    def _publish(self) -> None:
        """Push a frame for UI consumers; drop the oldest when the queue is full."""
        frame = self.snapshot()
        try:
            self.snapshot_queue.put_nowait(frame)
        except queue.Full:
            try:
                self.snapshot_queue.get_nowait()
            except queue.Empty:
                pass
            self.snapshot_queue.put_nowait(frame)
