"""
Live chart GUI using PyQt6 - pops out as a standalone window.

Paints the precomputed ChartFrame geometry with QPainter:
- Filled area under the line
- Echo stroke behind the main line
- Static line plus the segment currently being revealed
- Marker at the animated price, price axis on the right
"""

from __future__ import annotations

import queue
import sys
from typing import TYPE_CHECKING, Sequence

from PyQt6.QtCore import QPointF, QRectF, Qt, QTimer
from PyQt6.QtGui import QBrush, QColor, QFont, QLinearGradient, QPainter, QPainterPath, QPen
from PyQt6.QtWidgets import QApplication, QLabel, QMainWindow, QVBoxLayout, QWidget

from ..types import Direction, Viewport

if TYPE_CHECKING:
    from ..types import ChartFrame

# Colors
UP_COLOR = QColor(34, 197, 94)        # Green
DOWN_COLOR = QColor(239, 68, 68)      # Red
NEUTRAL_COLOR = QColor(123, 97, 255)
LINE_COLOR = QColor(215, 237, 71)
ECHO_COLOR = QColor(100, 116, 139)
BG_COLOR = QColor(15, 23, 42)         # Dark blue-gray
HEADER_BG = QColor(30, 41, 59)
TEXT_COLOR = QColor(248, 250, 252)
GRID_COLOR = QColor(51, 65, 85)

AXIS_TICKS = 5


def direction_color(direction: Direction) -> QColor:
    if direction is Direction.UP:
        return UP_COLOR
    if direction is Direction.DOWN:
        return DOWN_COLOR
    return NEUTRAL_COLOR


def to_path(points: Sequence[tuple[float, float]], close: bool = False) -> QPainterPath:
    path = QPainterPath()
    if not points:
        return path
    path.moveTo(QPointF(*points[0]))
    for x, y in points[1:]:
        path.lineTo(QPointF(x, y))
    if close:
        path.closeSubpath()
    return path


class ChartCanvas(QWidget):
    """Paints one ChartFrame, stretched from viewport pixels to widget size."""

    def __init__(self, viewport: Viewport) -> None:
        super().__init__()
        self.viewport = viewport
        self._frame: ChartFrame | None = None
        self.setMinimumSize(480, 280)

    def set_frame(self, frame: ChartFrame) -> None:
        self._frame = frame
        self.update()

    def paintEvent(self, event) -> None:
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.fillRect(self.rect(), BG_COLOR)

        frame = self._frame
        if frame is None or frame.path is None or frame.bounds is None:
            painter.setPen(TEXT_COLOR)
            count = frame.sample_count if frame is not None else 0
            painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter,
                             f"Collecting samples ({count})...")
            painter.end()
            return

        vp = self.viewport
        sx = self.width() / vp.width
        sy = self.height() / vp.height
        path = frame.path

        painter.save()
        painter.scale(sx, sy)

        self._paint_grid(painter, frame)

        if path.area:
            gradient = QLinearGradient(0, vp.top_padding, 0, vp.chart_bottom)
            top = QColor(LINE_COLOR)
            top.setAlpha(70)
            bottom = QColor(LINE_COLOR)
            bottom.setAlpha(0)
            gradient.setColorAt(0.0, top)
            gradient.setColorAt(1.0, bottom)
            painter.fillPath(to_path(path.area, close=True), QBrush(gradient))

        if path.echo:
            pen = QPen(ECHO_COLOR, 1.5 / sx)
            pen.setStyle(Qt.PenStyle.DashLine)
            painter.strokePath(to_path(path.echo), pen)

        line_pen = QPen(LINE_COLOR, 2.0 / sx)
        line_pen.setCapStyle(Qt.PenCapStyle.RoundCap)
        line_pen.setJoinStyle(Qt.PenJoinStyle.RoundJoin)
        if path.line:
            painter.strokePath(to_path(path.line), line_pen)
        if path.segment:
            painter.strokePath(to_path(path.segment), line_pen)

        if path.marker is not None:
            x, y = path.marker
            painter.setPen(Qt.PenStyle.NoPen)
            painter.setBrush(direction_color(frame.direction))
            painter.drawEllipse(QPointF(x, y), 4.0 / sx, 4.0 / sy)

        painter.restore()
        self._paint_axis(painter, frame, sx, sy)
        painter.end()

    def _price_to_y(self, frame: ChartFrame, price: float) -> float:
        vp = self.viewport
        bottom, top = vp.y_range
        span = frame.bounds.span
        if span == 0:
            return (bottom + top) / 2.0
        return bottom + (price - frame.bounds.min) / span * (top - bottom)

    def _paint_grid(self, painter: QPainter, frame: ChartFrame) -> None:
        x0, x1 = self.viewport.x_range
        pen = QPen(GRID_COLOR, 0)
        pen.setStyle(Qt.PenStyle.DotLine)
        painter.setPen(pen)
        for i in range(AXIS_TICKS):
            price = frame.bounds.min + frame.bounds.span * i / (AXIS_TICKS - 1)
            y = self._price_to_y(frame, price)
            painter.drawLine(QPointF(x0, y), QPointF(x1, y))

    def _paint_axis(self, painter: QPainter, frame: ChartFrame, sx: float, sy: float) -> None:
        """Axis labels in widget pixels so text is not stretched."""
        x = (self.viewport.width - self.viewport.right_padding) * sx + 6
        painter.setFont(QFont("Consolas", 9))
        painter.setPen(TEXT_COLOR)
        for i in range(AXIS_TICKS):
            price = frame.bounds.min + frame.bounds.span * i / (AXIS_TICKS - 1)
            y = self._price_to_y(frame, price) * sy
            painter.drawText(QRectF(x, y - 8, 90, 16),
                             Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignVCenter,
                             f"{price:,.2f}")

        if frame.displayed_price is not None and frame.path.marker is not None:
            y = frame.path.marker[1] * sy
            rect = QRectF(x - 4, y - 9, 90, 18)
            painter.fillRect(rect, direction_color(frame.direction))
            painter.setPen(BG_COLOR)
            painter.drawText(rect, Qt.AlignmentFlag.AlignCenter, f"{frame.displayed_price:,.2f}")


class ChartWindow(QMainWindow):
    """Main Tick Chart window."""

    def __init__(self, frame_queue: queue.Queue, viewport: Viewport) -> None:
        super().__init__()
        self.frame_queue = frame_queue
        self.viewport = viewport
        self._last_frame: ChartFrame | None = None

        self.setWindowTitle("Tick Chart")
        self.resize(int(viewport.width), int(viewport.height) + 60)
        self.setStyleSheet(f"background-color: {BG_COLOR.name()}; color: {TEXT_COLOR.name()};")

        self._setup_ui()
        self._setup_timer()

    def _setup_ui(self) -> None:
        """Build the UI."""
        central = QWidget()
        self.setCentralWidget(central)
        layout = QVBoxLayout(central)
        layout.setContentsMargins(10, 10, 10, 10)

        # Header
        self.header = QLabel("Connecting...")
        self.header.setFont(QFont("Consolas", 14, QFont.Weight.Bold))
        self.header.setStyleSheet(f"background-color: {HEADER_BG.name()}; padding: 10px;")
        layout.addWidget(self.header)

        self.canvas = ChartCanvas(self.viewport)
        layout.addWidget(self.canvas, stretch=1)

    def _setup_timer(self) -> None:
        """Setup timer to poll the frame queue."""
        self.timer = QTimer()
        self.timer.timeout.connect(self._poll_frames)
        self.timer.start(16)  # ~60 FPS

    def _poll_frames(self) -> None:
        """Poll for new frames from the thread-safe queue, keep only the latest."""
        latest = None
        while True:
            try:
                latest = self.frame_queue.get_nowait()
            except queue.Empty:
                break

        if latest is not None:
            self._last_frame = latest
            self._update_display(latest)

    def _update_display(self, frame: ChartFrame) -> None:
        price = f"{frame.displayed_price:,.2f}" if frame.displayed_price is not None else "--"
        sign = "+" if frame.change_value >= 0 else ""
        status = "LIVE" if frame.connected else "OFFLINE"
        self.setWindowTitle(f"Tick Chart - {frame.symbol}")
        self.header.setText(
            f"  {frame.symbol}  │  {price}  │  "
            f"{sign}{frame.change_value:,.2f} ({sign}{frame.change_percent:.3f}%)  │  "
            f"Samples: {frame.sample_count}  │  {frame.samples_per_sec:.1f}/s  │  {status}"
        )
        self.header.setStyleSheet(
            f"background-color: {HEADER_BG.name()}; padding: 10px; "
            f"color: {direction_color(frame.direction).name()};"
        )
        self.canvas.set_frame(frame)


def run_gui(frame_queue: queue.Queue, viewport: Viewport) -> None:
    """Run the GUI application (blocking)."""
    app = QApplication(sys.argv)
    app.setStyle("Fusion")

    window = ChartWindow(frame_queue, viewport)
    window.show()

    app.exec()
