"""
Chart configuration.

All values are plain numeric constants supplied at construction time. The
CLI builds a ChartConfig from argparse flags; library users construct one
directly.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from .types import Viewport

# Rolling window size (samples)
DEFAULT_CAPACITY = 40

# One accepted sample per period
DEFAULT_ACCEPT_PERIOD_MS = 200

# Half-width of the default visible price range
DEFAULT_ZOOM_PRECISION = 100.0

# Price domain expansion: 30% of observed range, then 5% inset for markers
DEFAULT_BUFFER_FRACTION = 0.3
DEFAULT_MARGIN_FRACTION = 0.05

DEFAULT_PRICE_DURATION_MS = 1200
DEFAULT_SPRING_STIFFNESS = 170.0

# Jumps larger than 80% of zoom precision snap, keeping 20% of that to animate
DEFAULT_JUMP_FRACTION = 0.8
DEFAULT_JUMP_KEEP = 0.2

DEFAULT_SEGMENT_DURATION_MS = 1200

# Echo path
DEFAULT_ECHO_SIZE = 10
DEFAULT_ECHO_INTERVAL_MS = 1000
DEFAULT_ECHO_DURATION_MS = 1000

DEFAULT_FPS = 60
DEFAULT_PUBLISH_INTERVAL_MS = 16

PRICE_ANIMATIONS = ("tween", "spring")


@dataclass(frozen=True)
class ChartConfig:
    capacity: int = DEFAULT_CAPACITY
    accept_period_ms: int = DEFAULT_ACCEPT_PERIOD_MS
    zoom_precision: float = DEFAULT_ZOOM_PRECISION
    buffer_fraction: float = DEFAULT_BUFFER_FRACTION
    margin_fraction: float = DEFAULT_MARGIN_FRACTION
    price_animation: str = "tween"
    price_duration_ms: float = DEFAULT_PRICE_DURATION_MS
    spring_stiffness: float = DEFAULT_SPRING_STIFFNESS
    jump_fraction: float = DEFAULT_JUMP_FRACTION
    jump_keep: float = DEFAULT_JUMP_KEEP
    segment_duration_ms: float = DEFAULT_SEGMENT_DURATION_MS
    echo_size: int = DEFAULT_ECHO_SIZE
    echo_interval_ms: int = DEFAULT_ECHO_INTERVAL_MS
    echo_duration_ms: float = DEFAULT_ECHO_DURATION_MS
    fps: int = DEFAULT_FPS
    publish_interval_ms: int = DEFAULT_PUBLISH_INTERVAL_MS
    viewport: Viewport = field(default_factory=Viewport)

    def __post_init__(self) -> None:
        positive = {
            'capacity': self.capacity,
            'accept_period_ms': self.accept_period_ms,
            'zoom_precision': self.zoom_precision,
            'price_duration_ms': self.price_duration_ms,
            'spring_stiffness': self.spring_stiffness,
            'segment_duration_ms': self.segment_duration_ms,
            'echo_interval_ms': self.echo_interval_ms,
            'echo_duration_ms': self.echo_duration_ms,
            'fps': self.fps,
            'publish_interval_ms': self.publish_interval_ms,
        }
        for name, value in positive.items():
            if not math.isfinite(value) or value <= 0:
                raise ValueError(f"{name} must be a positive number, got {value!r}")

        if self.echo_size < 2:
            raise ValueError(f"echo_size must be >= 2, got {self.echo_size!r}")

        if not self.buffer_fraction >= 0.0:
            raise ValueError(f"buffer_fraction must be >= 0, got {self.buffer_fraction!r}")
        # Margin is taken from both ends of the domain
        if not 0.0 <= self.margin_fraction < 0.5:
            raise ValueError(f"margin_fraction must be in [0, 0.5), got {self.margin_fraction!r}")

        if not self.jump_fraction > 0.0:
            raise ValueError(f"jump_fraction must be > 0, got {self.jump_fraction!r}")
        if not 0.0 <= self.jump_keep <= 1.0:
            raise ValueError(f"jump_keep must be in [0, 1], got {self.jump_keep!r}")

        if self.price_animation not in PRICE_ANIMATIONS:
            raise ValueError(
                f"price_animation must be one of {PRICE_ANIMATIONS}, got {self.price_animation!r}"
            )
