"""
Easing curves and value animators.

Both animators share one interface so the price animator can be configured
with either:

    animator.start(value, target)     # begin converging from value
    animator.retarget(target)         # keep current value/velocity, new goal
    value, done = animator.step(dt_ms)

When step() reports done the returned value is exactly the target.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Callable

Easing = Callable[[float], float]


def linear(t: float) -> float:
    return t


def ease_out_cubic(t: float) -> float:
    return 1.0 - (1.0 - t) ** 3


def ease_in_out_cubic(t: float) -> float:
    if t < 0.5:
        return 4.0 * t * t * t
    return 1.0 - (-2.0 * t + 2.0) ** 3 / 2.0


def cubic_bezier(x1: float, y1: float, x2: float, y2: float) -> Easing:
    """
    CSS-style cubic-bezier timing function with endpoints (0,0) and (1,1).

    Solves x(s) = t for the curve parameter s with Newton iterations, falling
    back to bisection where the slope is too flat.
    """
    cx = 3.0 * x1
    bx = 3.0 * (x2 - x1) - cx
    ax = 1.0 - cx - bx
    cy = 3.0 * y1
    by = 3.0 * (y2 - y1) - cy
    ay = 1.0 - cy - by

    def sample_x(s: float) -> float:
        return ((ax * s + bx) * s + cx) * s

    def sample_y(s: float) -> float:
        return ((ay * s + by) * s + cy) * s

    def slope_x(s: float) -> float:
        return (3.0 * ax * s + 2.0 * bx) * s + cx

    def solve(t: float) -> float:
        s = t
        for _ in range(8):
            err = sample_x(s) - t
            if abs(err) < 1e-7:
                return s
            d = slope_x(s)
            if abs(d) < 1e-6:
                break
            s -= err / d

        lo, hi = 0.0, 1.0
        s = t
        for _ in range(40):
            x = sample_x(s)
            if abs(x - t) < 1e-7:
                break
            if x < t:
                lo = s
            else:
                hi = s
            s = (lo + hi) / 2.0
        return s

    def ease(t: float) -> float:
        if t <= 0.0:
            return 0.0
        if t >= 1.0:
            return 1.0
        return sample_y(solve(t))

    return ease


# Material "standard" curve, used for segment reveals
ease_standard = cubic_bezier(0.4, 0.0, 0.2, 1.0)


class Animator(ABC):
    """Advances a scalar toward a target, one frame at a time."""

    def __init__(self) -> None:
        self.value: float = 0.0
        self.target: float = 0.0
        self.done: bool = True

    @abstractmethod
    def start(self, value: float, target: float) -> None:
        ...

    @abstractmethod
    def retarget(self, target: float) -> None:
        ...

    @abstractmethod
    def step(self, dt_ms: float) -> tuple[float, bool]:
        ...

    def finish(self) -> float:
        """Jump to the target and stop."""
        self.value = self.target
        self.done = True
        return self.value


class TweenAnimator(Animator):
    """Fixed-duration eased interpolation."""

    def __init__(self, duration_ms: float, easing: Easing = ease_out_cubic) -> None:
        super().__init__()
        if duration_ms <= 0:
            raise ValueError(f"duration_ms must be positive, got {duration_ms!r}")
        self.duration_ms = duration_ms
        self.easing = easing
        self._origin = 0.0
        self._elapsed = 0.0

    @property
    def progress(self) -> float:
        """Eased progress in [0, 1]."""
        t = min(self._elapsed / self.duration_ms, 1.0)
        return min(max(self.easing(t), 0.0), 1.0)

    def start(self, value: float, target: float) -> None:
        self._origin = value
        self.value = value
        self.target = target
        self._elapsed = 0.0
        self.done = value == target

    def retarget(self, target: float) -> None:
        # Restart the curve from wherever we are now
        self.start(self.value, target)

    def step(self, dt_ms: float) -> tuple[float, bool]:
        if self.done:
            return self.value, True

        self._elapsed += max(dt_ms, 0.0)
        if self._elapsed >= self.duration_ms:
            return self.finish(), True

        self.value = self._origin + (self.target - self._origin) * self.progress
        return self.value, False


class SpringAnimator(Animator):
    """
    Critically damped spring (unit mass).

    Integrated analytically per step, so a start from rest converges
    monotonically with no overshoot regardless of frame timing:

        x(t) = (c1 + c2 t) e^(-w t),  c1 = x0,  c2 = v0 + w x0
    """

    def __init__(self, stiffness: float = 170.0, rest_epsilon: float = 1e-6) -> None:
        super().__init__()
        if stiffness <= 0:
            raise ValueError(f"stiffness must be positive, got {stiffness!r}")
        self.omega = math.sqrt(stiffness)
        self.rest_epsilon = rest_epsilon
        self.velocity = 0.0  # units per second

    def start(self, value: float, target: float) -> None:
        self.value = value
        self.target = target
        self.velocity = 0.0
        self.done = value == target

    def retarget(self, target: float) -> None:
        self.target = target
        self.done = self.value == target and self.velocity == 0.0

    def step(self, dt_ms: float) -> tuple[float, bool]:
        if self.done:
            return self.value, True

        dt = max(dt_ms, 0.0) / 1000.0
        w = self.omega
        x0 = self.value - self.target
        c2 = self.velocity + w * x0
        decay = math.exp(-w * dt)

        offset = (x0 + c2 * dt) * decay
        self.velocity = (c2 - w * (x0 + c2 * dt)) * decay
        self.value = self.target + offset

        # Tolerance scales with the size of the move being settled
        tolerance = self.rest_epsilon * max(1.0, abs(self.target))
        if abs(offset) <= tolerance and abs(self.velocity) <= tolerance * w:
            self.velocity = 0.0
            return self.finish(), True
        return self.value, False
