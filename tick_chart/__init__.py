"""
Tick Chart - Animated streaming price chart for Binance trade streams.

Architecture:
- datafeed/: WebSocket session, tick parsing, ingestion throttle, sample buffer
- engine/: Frame clock, animators (price, segment reveal, echo), scales, paths
- ui/: Braille line chart (Textual TUI) and PyQt6 window
"""

__version__ = "0.1.0"
