"""
Live chart TUI using Textual.

Displays:
- Top: status bar with symbol, animated price, session change, feed health
- Middle: braille line chart (area, echo stroke, line, animated segment, marker)
- Right edge: price axis labels from the current price bounds

Performance notes:
- Polls the frame queue at ~30 FPS and keeps only the newest frame
- Geometry is precomputed by the core; this module only rasterizes it
"""

from __future__ import annotations

import queue
from typing import TYPE_CHECKING, Optional, Sequence

from rich.console import RenderableType
from rich.style import Style
from rich.text import Text

from textual.app import App, ComposeResult
from textual.containers import Container
from textual.widgets import Footer, Static

from ..types import Direction, Viewport

if TYPE_CHECKING:
    from ..types import ChartFrame

# Color scheme (dark theme)
UP_COLOR = "#00ff9d"
DOWN_COLOR = "#ff3d71"
NEUTRAL_COLOR = "#7b61ff"
LINE_COLOR = "#d7ed47"
ECHO_COLOR = "#64748b"
AREA_COLOR = "#1e293b"
MARKER_COLOR = "#ffffff"
HEADER_COLOR = "#94a3b8"

POLL_INTERVAL_SEC = 1 / 30

# Braille dot bits, indexed [row][col] inside a 2x4 cell
_BRAILLE_BITS = (
    (0x01, 0x08),
    (0x02, 0x10),
    (0x04, 0x20),
    (0x40, 0x80),
)

# Later layers win the cell color
LAYER_AREA, LAYER_ECHO, LAYER_LINE, LAYER_SEGMENT, LAYER_MARKER = range(5)
LAYER_STYLES = {
    LAYER_AREA: Style(color=AREA_COLOR),
    LAYER_ECHO: Style(color=ECHO_COLOR),
    LAYER_LINE: Style(color=LINE_COLOR),
    LAYER_SEGMENT: Style(color=LINE_COLOR, bold=True),
    LAYER_MARKER: Style(color=MARKER_COLOR, bold=True),
}


def direction_color(direction: Direction) -> str:
    if direction is Direction.UP:
        return UP_COLOR
    if direction is Direction.DOWN:
        return DOWN_COLOR
    return NEUTRAL_COLOR


def format_price(price: Optional[float]) -> str:
    if price is None:
        return "--"
    return f"{price:,.2f}"


class BrailleCanvas:
    """Character grid where every cell holds 2x4 braille dots."""

    def __init__(self, cols: int, rows: int, viewport: Viewport) -> None:
        self.cols = max(cols, 1)
        self.rows = max(rows, 1)
        self.viewport = viewport
        self._bits = [[0] * self.cols for _ in range(self.rows)]
        self._layer = [[-1] * self.cols for _ in range(self.rows)]

    @property
    def dot_width(self) -> int:
        return self.cols * 2

    @property
    def dot_height(self) -> int:
        return self.rows * 4

    def to_dots(self, x: float, y: float) -> tuple[int, int]:
        """Viewport pixels -> dot coordinates."""
        dx = x / self.viewport.width * (self.dot_width - 1)
        dy = y / self.viewport.height * (self.dot_height - 1)
        return round(dx), round(dy)

    def plot(self, dx: int, dy: int, layer: int) -> None:
        if not (0 <= dx < self.dot_width and 0 <= dy < self.dot_height):
            return
        row, col = dy // 4, dx // 2
        self._bits[row][col] |= _BRAILLE_BITS[dy % 4][dx % 2]
        if layer > self._layer[row][col]:
            self._layer[row][col] = layer

    def line(self, a: tuple[int, int], b: tuple[int, int], layer: int) -> None:
        (x0, y0), (x1, y1) = a, b
        steps = max(abs(x1 - x0), abs(y1 - y0), 1)
        for i in range(steps + 1):
            t = i / steps
            self.plot(round(x0 + (x1 - x0) * t), round(y0 + (y1 - y0) * t), layer)

    def polyline(self, points: Sequence[tuple[float, float]], layer: int) -> None:
        dots = [self.to_dots(x, y) for x, y in points]
        for a, b in zip(dots, dots[1:]):
            self.line(a, b, layer)

    def fill_under(self, points: Sequence[tuple[float, float]], bottom: float, layer: int) -> None:
        """Sparse vertical hatching from each line point down to bottom."""
        _, bottom_dy = self.to_dots(0.0, bottom)
        for x, y in points:
            dx, dy = self.to_dots(x, y)
            for yy in range(dy + 2, bottom_dy + 1, 2):
                self.plot(dx, yy, layer)

    def marker(self, x: float, y: float, layer: int) -> None:
        dx, dy = self.to_dots(x, y)
        for ox in (-1, 0, 1):
            for oy in (-1, 0, 1):
                self.plot(dx + ox, dy + oy, layer)

    def render(self) -> list[Text]:
        lines = []
        for row in range(self.rows):
            text = Text()
            for col in range(self.cols):
                bits = self._bits[row][col]
                if bits:
                    text.append(chr(0x2800 + bits), LAYER_STYLES[self._layer[row][col]])
                else:
                    text.append(" ")
            lines.append(text)
        return lines


class ChartPanel(Static):
    """Braille rendering of the latest ChartFrame."""

    DEFAULT_CSS = """
    ChartPanel {
        width: 100%;
        height: 100%;
    }
    """

    AXIS_WIDTH = 12

    def __init__(self, viewport: Viewport) -> None:
        super().__init__()
        self.viewport = viewport
        self._frame: ChartFrame | None = None

    def update_frame(self, frame: ChartFrame) -> None:
        self._frame = frame
        self.refresh()

    def render(self) -> RenderableType:
        frame = self._frame
        if frame is None:
            return Text("Waiting for data...", style="dim")
        if frame.path is None or frame.bounds is None:
            return Text(f"Collecting samples ({frame.sample_count})...", style="dim")

        cols = max(self.size.width - self.AXIS_WIDTH, 10)
        rows = max(self.size.height, 4)
        canvas = BrailleCanvas(cols, rows, self.viewport)
        path = frame.path

        if path.area:
            canvas.fill_under(path.line, self.viewport.chart_bottom, LAYER_AREA)
        canvas.polyline(path.echo, LAYER_ECHO)
        canvas.polyline(path.line, LAYER_LINE)
        canvas.polyline(path.segment, LAYER_SEGMENT)
        if path.marker is not None:
            canvas.marker(*path.marker, LAYER_MARKER)

        # Price labels at top, middle, bottom of the domain
        labels = {
            canvas.to_dots(0.0, self.viewport.top_padding)[1] // 4: frame.bounds.max,
            rows // 2: frame.bounds.mid,
            canvas.to_dots(0.0, self.viewport.chart_bottom)[1] // 4: frame.bounds.min,
        }

        result = Text()
        for row, line in enumerate(canvas.render()):
            result.append(line)
            if row in labels:
                result.append(f" {format_price(labels[row]):>{self.AXIS_WIDTH - 1}}",
                              style=HEADER_COLOR)
            if row < rows - 1:
                result.append("\n")
        return result


class StatusBar(Static):
    """Status bar showing symbol, animated price, change and feed health."""

    DEFAULT_CSS = """
    StatusBar {
        dock: top;
        height: 3;
        padding: 0 2;
        background: #0f172a;
    }
    """

    def __init__(self) -> None:
        super().__init__()
        self._frame: ChartFrame | None = None

    def update_frame(self, frame: ChartFrame) -> None:
        self._frame = frame
        self.refresh()

    def render(self) -> RenderableType:
        if self._frame is None:
            return Text("Connecting...", style="dim")

        frame = self._frame
        color = direction_color(frame.direction)
        sign = "+" if frame.change_value >= 0 else ""

        parts = [
            Text(f" {frame.symbol} ", style="bold white on #1e40af"),
            Text("  "),
            Text(format_price(frame.displayed_price), style=f"bold {color}"),
            Text("  "),
            Text(f"{sign}{frame.change_value:,.2f} ({sign}{frame.change_percent:.3f}%)",
                 style=UP_COLOR if frame.change_value >= 0 else DOWN_COLOR),
            Text("  │  ", style="dim"),
            Text("Samples: ", style="dim"),
            Text(f"{frame.sample_count}", style="cyan"),
            Text("  Samples/s: ", style="dim"),
            Text(f"{frame.samples_per_sec:.1f}", style="cyan"),
            Text("  │  ", style="dim"),
            Text("LIVE" if frame.connected else "OFFLINE",
                 style=UP_COLOR if frame.connected else DOWN_COLOR),
        ]
        if frame.last_error:
            parts.append(Text(f"  {frame.last_error}", style="yellow"))

        result = Text()
        for p in parts:
            result.append(p)
        return result


class ChartApp(App):
    """Main Tick Chart application."""

    CSS = """
    Screen {
        background: #0f172a;
    }

    #main-container {
        width: 100%;
        height: 100%;
        padding: 1 2;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
    ]

    def __init__(self, frame_queue: queue.Queue, viewport: Viewport) -> None:
        super().__init__()
        self.frame_queue = frame_queue
        self.viewport = viewport
        self._status_bar: StatusBar | None = None
        self._chart_panel: ChartPanel | None = None

    def compose(self) -> ComposeResult:
        self._status_bar = StatusBar()
        self._chart_panel = ChartPanel(self.viewport)

        yield self._status_bar
        yield Container(self._chart_panel, id="main-container")
        yield Footer()

    def on_mount(self) -> None:
        self.set_interval(POLL_INTERVAL_SEC, self._poll_frames)

    def _poll_frames(self) -> None:
        """Drain the queue, keep only the latest frame."""
        latest = None
        while True:
            try:
                latest = self.frame_queue.get_nowait()
            except queue.Empty:
                break

        if latest is None:
            return
        if self._status_bar:
            self._status_bar.update_frame(latest)
        if self._chart_panel:
            self._chart_panel.update_frame(latest)


async def run_ui(frame_queue: queue.Queue, viewport: Viewport) -> None:
    """Run the TUI application."""
    app = ChartApp(frame_queue, viewport)
    await app.run_async()
