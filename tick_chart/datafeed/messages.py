"""
Wire message parsing.

Accepted payloads (text or bytes JSON):
- Binance trade:           {"e": "trade", "p": "50000.10", "T": 1700000000000, ...}
- Combined stream envelope: {"stream": "btcusdt@trade", "data": {...trade...}}
- Generic tick:            {"price": 50000.1, "time": 1700000000000}

HOT PATH - called for every websocket message.
"""

from __future__ import annotations

import math
from typing import Any

import orjson

from ..errors import TickParseError

_PRICE_KEYS = ('p', 'price')
_TIME_KEYS = ('T', 'time', 'timestamp', 'E')


def _first(payload: dict, keys: tuple[str, ...]) -> Any:
    for key in keys:
        if key in payload:
            return payload[key]
    return None


def _to_price(value: Any) -> float:
    if isinstance(value, bool):
        raise TickParseError(f"price must be numeric, got {value!r}")
    try:
        price = float(value)
    except (TypeError, ValueError) as e:
        raise TickParseError(f"price must be numeric, got {value!r}") from e
    if not math.isfinite(price):
        raise TickParseError(f"price must be finite, got {value!r}")
    return price


def _to_timestamp(value: Any) -> int:
    if isinstance(value, bool):
        raise TickParseError(f"timestamp must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError as e:
            raise TickParseError(f"timestamp must be an integer, got {value!r}") from e
    raise TickParseError(f"timestamp must be an integer, got {value!r}")


def parse_tick(raw: bytes | str) -> tuple[float, int]:
    """
    Extract (price, timestamp_ms) from one wire frame.

    Raises TickParseError for anything malformed; callers drop the frame.
    """
    try:
        data = orjson.loads(raw)
    except (orjson.JSONDecodeError, TypeError) as e:
        raise TickParseError(f"invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise TickParseError(f"expected a JSON object, got {type(data).__name__}")

    # Combined stream format: {stream: "...", data: {...}}
    payload = data.get('data', data)
    if not isinstance(payload, dict):
        raise TickParseError("stream envelope without an object payload")

    price = _first(payload, _PRICE_KEYS)
    timestamp = _first(payload, _TIME_KEYS)
    if price is None or timestamp is None:
        raise TickParseError("missing price or time field")

    return _to_price(price), _to_timestamp(timestamp)
