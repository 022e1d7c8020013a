"""ChartConfig validation and CLI wiring."""

from __future__ import annotations

import math

import pytest

from tick_chart.config import ChartConfig
from tick_chart.datafeed.binance_client import BinanceTradeClient, trade_stream_url
from tick_chart.chart import LiveChart
from tick_chart.engine.clock import ManualFrameHost
from tick_chart.main import build_config, build_parser


def test_defaults() -> None:
    cfg = ChartConfig()
    assert cfg.capacity == 40
    assert cfg.accept_period_ms == 200
    assert cfg.zoom_precision == 100.0
    assert cfg.price_animation == "tween"
    assert cfg.echo_size == 10


@pytest.mark.parametrize("kwargs", [
    {"capacity": 0},
    {"accept_period_ms": -1},
    {"zoom_precision": 0.0},
    {"zoom_precision": math.nan},
    {"fps": 0},
    {"echo_size": 1},
    {"buffer_fraction": -0.1},
    {"margin_fraction": 0.5},
    {"jump_fraction": 0.0},
    {"jump_keep": 1.5},
    {"price_animation": "bounce"},
])
def test_invalid_values_rejected(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        ChartConfig(**kwargs)


def test_config_is_frozen() -> None:
    cfg = ChartConfig()
    with pytest.raises(AttributeError):
        cfg.capacity = 10


def test_cli_flags_build_config() -> None:
    args = build_parser("test").parse_args(
        ["ETHUSDT", "--capacity", "60", "--period-ms", "250", "--zoom", "5", "--spring"]
    )
    cfg = build_config(args)

    assert args.symbol == "ETHUSDT"
    assert cfg.capacity == 60
    assert cfg.accept_period_ms == 250
    assert cfg.zoom_precision == 5.0
    assert cfg.price_animation == "spring"


def test_trade_stream_url() -> None:
    assert trade_stream_url("BTCUSDT") == "wss://stream.binance.com:9443/ws/btcusdt@trade"
    chart = LiveChart(host=ManualFrameHost(), symbol="ethusdt")
    assert BinanceTradeClient(chart).url.endswith("/ws/ethusdt@trade")
