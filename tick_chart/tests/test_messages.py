"""Wire frame parsing."""

from __future__ import annotations

import orjson
import pytest

from tick_chart.datafeed.messages import parse_tick
from tick_chart.errors import TickParseError


def test_binance_trade_frame() -> None:
    raw = orjson.dumps({
        "e": "trade", "E": 1700000000123, "s": "BTCUSDT", "t": 12345,
        "p": "50000.10", "q": "0.01", "T": 1700000000100, "m": True,
    })
    assert parse_tick(raw) == (50000.10, 1700000000100)


def test_accepts_text_frames() -> None:
    assert parse_tick('{"p": "42.5", "T": 7}') == (42.5, 7)


def test_combined_stream_envelope() -> None:
    raw = orjson.dumps({"stream": "btcusdt@trade", "data": {"p": "1.5", "T": 99}})
    assert parse_tick(raw) == (1.5, 99)


def test_generic_tick_keys() -> None:
    assert parse_tick(b'{"price": 101.25, "time": 5}') == (101.25, 5)
    assert parse_tick(b'{"price": 3, "timestamp": "6"}') == (3.0, 6)


def test_falls_back_to_event_time() -> None:
    assert parse_tick(b'{"p": "10", "E": 1234}') == (10.0, 1234)


@pytest.mark.parametrize("raw", [
    b"not json",
    b"",
    b"[1, 2, 3]",
    b'"just a string"',
    b'{"data": [1, 2]}',
    b'{"T": 1}',
    b'{"p": "1.0"}',
    b'{"p": "abc", "T": 1}',
    b'{"p": true, "T": 1}',
    b'{"p": "NaN", "T": 1}',
    b'{"p": "inf", "T": 1}',
    b'{"p": "1.0", "T": "soon"}',
    b'{"p": "1.0", "T": 1.5}',
    b'{"p": "1.0", "T": false}',
    b'{"p": null, "T": 1}',
])
def test_malformed_frames_raise(raw: bytes) -> None:
    with pytest.raises(TickParseError):
        parse_tick(raw)


def test_parse_error_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        parse_tick(b"{")
