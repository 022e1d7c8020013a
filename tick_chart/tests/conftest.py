"""Shared fixtures: deterministic frame host and a pre-wired chart."""

from __future__ import annotations

import pytest

from tick_chart.chart import LiveChart
from tick_chart.config import ChartConfig
from tick_chart.engine.clock import ManualFrameHost


@pytest.fixture
def host() -> ManualFrameHost:
    return ManualFrameHost()


@pytest.fixture
def chart(host: ManualFrameHost) -> LiveChart:
    """Mounted chart with the throttle armed, as if a session just opened."""
    chart = LiveChart(ChartConfig(capacity=40, zoom_precision=100.0), host=host)
    chart.mount()
    chart.throttle.start()
    yield chart
    chart.unmount()
