#!/usr/bin/env python3
"""
Tick Chart GUI - Standalone window version.

Usage:
    python -m tick_chart.gui BTCUSDT --capacity 40 --zoom 100
"""

from __future__ import annotations

import asyncio
import logging
import sys
import threading

from .config import ChartConfig
from .main import build_config, build_parser

logger = logging.getLogger(__name__)


def run_async_feed(chart, client, loop: asyncio.AbstractEventLoop) -> None:
    """Run the chart clock and the data feed in a separate thread."""

    async def run() -> None:
        # Timers must be armed from inside the feed loop
        chart.mount()
        try:
            await client.run()
        finally:
            chart.unmount()

    try:
        logger.info("[FEED] Starting async feed thread...")
        asyncio.set_event_loop(loop)
        loop.run_until_complete(run())
    except Exception:
        logger.exception("[FEED] ERROR in feed thread")


def main(symbol: str, config: ChartConfig) -> None:
    """Main entry point - runs data feed in background, GUI in main thread."""

    from .chart import LiveChart
    from .datafeed.binance_client import BinanceTradeClient
    from .engine.clock import LoopFrameHost
    from .ui.chart_window import run_gui

    # Create event loop for async operations
    loop = asyncio.new_event_loop()

    chart = LiveChart(config, host=LoopFrameHost(config.fps, loop=loop), symbol=symbol)
    client = BinanceTradeClient(chart)
    logger.info("[MAIN] Starting GUI for %s", chart.symbol)

    # Start data feed in background thread
    feed_thread = threading.Thread(
        target=run_async_feed,
        args=(chart, client, loop),
        daemon=True
    )
    feed_thread.start()

    # Run GUI in main thread (required by Qt)
    try:
        run_gui(chart.snapshot_queue, config.viewport)
    finally:
        loop.call_soon_threadsafe(client.stop)
        feed_thread.join(timeout=2.0)


def cli() -> None:
    """CLI entry point."""
    parser = build_parser("Tick Chart GUI - Standalone window for Binance trade streams")
    args = parser.parse_args()

    # The window does not own the terminal, so logs can go to stderr
    logging.basicConfig(
        filename=args.log_file,
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        config = build_config(args)
    except ValueError as e:
        parser.error(str(e))

    try:
        main(args.symbol, config)
    except KeyboardInterrupt:
        print("\nShutdown requested.")
        sys.exit(0)


if __name__ == "__main__":
    cli()
