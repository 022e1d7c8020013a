#!/usr/bin/env python3
"""
Tick Chart - Animated streaming price chart for Binance trade streams.

Usage:
    python -m tick_chart.main --capacity 40 --period-ms 200 --zoom 100 BTCUSDT

    Or via the console script:
    tick-chart ETHUSDT --spring

Controls:
    q - Quit
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from .config import (
    DEFAULT_ACCEPT_PERIOD_MS,
    DEFAULT_CAPACITY,
    DEFAULT_FPS,
    DEFAULT_ZOOM_PRECISION,
    ChartConfig,
)

logger = logging.getLogger(__name__)


def configure_logging(level: str, log_file: str | None) -> None:
    """
    Route logs to a file, or drop them.

    The TUI owns the terminal, so nothing is written to stderr while it runs.
    """
    if log_file:
        logging.basicConfig(
            filename=log_file,
            level=getattr(logging, level.upper()),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    else:
        logging.getLogger().addHandler(logging.NullHandler())


def build_config(args: argparse.Namespace) -> ChartConfig:
    return ChartConfig(
        capacity=args.capacity,
        accept_period_ms=args.period_ms,
        zoom_precision=args.zoom,
        fps=args.fps,
        price_animation="spring" if args.spring else "tween",
    )


async def main(symbol: str, config: ChartConfig) -> None:
    """Main entry point - runs data feed and UI concurrently."""

    # Import here to avoid slow startup for --help
    from .chart import LiveChart
    from .datafeed.binance_client import BinanceTradeClient
    from .ui.chart_view import run_ui

    chart = LiveChart(config, symbol=symbol)
    client = BinanceTradeClient(chart)
    logger.info("[MAIN] Starting %s: capacity=%d period=%dms zoom=%s",
                chart.symbol, config.capacity, config.accept_period_ms, config.zoom_precision)

    chart.mount()

    # Run data feed and UI concurrently
    async def run_feed() -> None:
        try:
            await client.run()
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("[MAIN] Feed error")

    feed_task = asyncio.create_task(run_feed())

    try:
        # Run UI (blocks until quit)
        await run_ui(chart.snapshot_queue, config.viewport)
    finally:
        client.stop()
        chart.unmount()
        feed_task.cancel()
        try:
            await feed_task
        except asyncio.CancelledError:
            pass


def build_parser(description: str) -> argparse.ArgumentParser:
    """Flags shared by the TUI and the GUI."""
    parser = argparse.ArgumentParser(
        description=description,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    tick-chart BTCUSDT
    tick-chart ETHUSDT --capacity 60 --period-ms 250 --zoom 5
    tick-chart SOLUSDT --spring --log-file chart.log
        """
    )

    parser.add_argument(
        "symbol",
        nargs="?",
        default="BTCUSDT",
        help="Trading symbol (default: BTCUSDT)"
    )

    parser.add_argument(
        "--capacity",
        type=int,
        default=DEFAULT_CAPACITY,
        help=f"Samples kept in the rolling window (default: {DEFAULT_CAPACITY})"
    )

    parser.add_argument(
        "--period-ms",
        type=int,
        default=DEFAULT_ACCEPT_PERIOD_MS,
        help=f"Acceptance period in ms (default: {DEFAULT_ACCEPT_PERIOD_MS})"
    )

    parser.add_argument(
        "--zoom",
        type=float,
        default=DEFAULT_ZOOM_PRECISION,
        help=f"Minimum half-width of the price axis (default: {DEFAULT_ZOOM_PRECISION})"
    )

    parser.add_argument(
        "--fps",
        type=int,
        default=DEFAULT_FPS,
        help=f"Animation frame rate (default: {DEFAULT_FPS})"
    )

    parser.add_argument(
        "--spring",
        action="store_true",
        help="Use the spring price animation instead of the tween"
    )

    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO)"
    )

    parser.add_argument(
        "--log-file",
        default=None,
        help="Write logs to this file (default: discard)"
    )

    return parser


def cli() -> None:
    """CLI entry point."""
    parser = build_parser("Tick Chart - Animated streaming price chart for Binance")
    args = parser.parse_args()

    configure_logging(args.log_level, args.log_file)
    try:
        config = build_config(args)
    except ValueError as e:
        parser.error(str(e))

    # Run
    try:
        asyncio.run(main(args.symbol, config))
    except KeyboardInterrupt:
        print("\nShutdown requested.")
        sys.exit(0)


if __name__ == "__main__":
    cli()
