"""
Binance trade stream runner.

Keeps a LiveChart connected to the public trade stream of one symbol:
1. Builds the stream URL
2. Connects through LiveChart.connect (which resets buffer and animations)
3. Waits for the session to close, backs off, reconnects

Reconnection lives here, at the caller level; the chart core never retries.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import aiohttp

from ..chart import LiveChart

logger = logging.getLogger(__name__)

# Binance spot endpoint
WS_BASE = "wss://stream.binance.com:9443"

INITIAL_BACKOFF_SEC = 1.0
MAX_BACKOFF_SEC = 30.0


def trade_stream_url(symbol: str) -> str:
    return f"{WS_BASE}/ws/{symbol.lower()}@trade"


class BinanceTradeClient:
    """
    Async runner for one symbol's trade stream.

    Usage:
        chart = LiveChart(symbol="BTCUSDT")
        client = BinanceTradeClient(chart)
        await client.run()
    """

    def __init__(
        self,
        chart: LiveChart,
        url: Optional[str] = None,
        initial_backoff: float = INITIAL_BACKOFF_SEC,
        max_backoff: float = MAX_BACKOFF_SEC,
    ) -> None:
        self.chart = chart
        self.url = url or trade_stream_url(chart.symbol)
        self.initial_backoff = initial_backoff
        self.max_backoff = max_backoff

        self._stopped = False
        self.connect_attempts: int = 0
        # Delay slept before the most recent attempt
        self.last_delay: float = 0.0

    async def run(self) -> None:
        """
        Main run loop. Returns once stop() is called.
        """
        backoff = self.initial_backoff

        async with aiohttp.ClientSession() as client:
            while not self._stopped:
                self.connect_attempts += 1
                logger.info("[FEED] Connecting to %s (attempt %d)", self.url, self.connect_attempts)
                session = await self.chart.connect(self.url, client)
                if self._stopped:
                    # stop() landed while the handshake was in flight
                    session.close()
                    await session.wait_closed()
                    break

                opened = self.chart.connected
                await session.wait_closed()

                if self._stopped:
                    break

                if opened:
                    backoff = self.initial_backoff
                logger.info("[FEED] Session closed (code=%s), reconnecting in %.2fs",
                            session.close_code, backoff)
                self.last_delay = backoff
                await asyncio.sleep(backoff)
                backoff = min(backoff * 2, self.max_backoff)

    def stop(self) -> None:
        """Signal the runner to stop and close the current session."""
        self._stopped = True
        if self.chart.session is not None:
            self.chart.session.close()
