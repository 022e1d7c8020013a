#!/usr/bin/env python3
"""
Micro-benchmark for Tick Chart performance.

Tests:
1. Wire message parsing throughput
2. Throttle offer throughput (the per-message hot path)
3. Scale computation speed
4. Path generation speed
5. Full frame snapshot speed (what the UI needs)

Usage:
    python -m tick_chart.benchmark
"""

from __future__ import annotations

import random
import time
from statistics import mean, stdev

import orjson

from .chart import LiveChart
from .config import ChartConfig
from .datafeed.buffer import SampleBuffer
from .datafeed.messages import parse_tick
from .datafeed.throttle import IngestionThrottle
from .engine.clock import ManualFrameHost
from .engine.paths import PathGenerator
from .engine.scales import compute_scales
from .types import EchoState, Sample, SegmentAnimState, Viewport


def generate_mock_trades(count: int, base_price: float = 50000.0,
                         base_ts: int = 1_700_000_000_000) -> list[bytes]:
    """Generate Binance-style trade frames as a random walk."""
    frames = []
    price = base_price
    for i in range(count):
        price += random.uniform(-2.5, 2.5)
        frames.append(orjson.dumps({
            'e': 'trade',
            's': 'BTCUSDT',
            't': i,
            'p': f"{price:.2f}",
            'q': f"{random.uniform(0.001, 1.5):.5f}",
            'T': base_ts + i * 10,  # 10ms apart
            'm': random.random() > 0.5,
        }))
    return frames


def generate_mock_samples(count: int, base_price: float = 50000.0,
                          base_ts: int = 1_700_000_000_000) -> list[Sample]:
    samples = []
    price = base_price
    for i in range(count):
        price += random.uniform(-10, 10)
        samples.append(Sample(base_ts + i * 200, price))
    return samples


def benchmark_parsing(iterations: int = 100000) -> None:
    """Benchmark wire message parsing."""
    print("\n=== Message Parsing Benchmark ===")

    frames = generate_mock_trades(iterations)

    start = time.perf_counter()
    for raw in frames:
        parse_tick(raw)
    elapsed = time.perf_counter() - start

    rate = iterations / elapsed
    print(f"  Messages parsed: {iterations:,}")
    print(f"  Time: {elapsed*1000:.1f}ms")
    print(f"  Rate: {rate:,.0f} msgs/sec")
    print(f"  Per message: {elapsed/iterations*1_000_000:.2f}µs")


def benchmark_throttle(iterations: int = 200000) -> None:
    """Benchmark throttle offers with periodic acceptance."""
    print("\n=== Ingestion Throttle Benchmark ===")

    host = ManualFrameHost()
    buffer = SampleBuffer(40)
    throttle = IngestionThrottle(buffer, host, period_ms=200)
    base_ts = 1_700_000_000_000
    prices = [50000.0 + random.uniform(-50, 50) for _ in range(iterations)]

    start = time.perf_counter()
    for i, price in enumerate(prices):
        throttle.offer(price, base_ts + i)
        if i % 20 == 0:
            throttle.tick()
    elapsed = time.perf_counter() - start

    rate = iterations / elapsed
    print(f"  Offers: {iterations:,}")
    print(f"  Accepted: {len(buffer)} kept of {throttle.offered:,} offered")
    print(f"  Time: {elapsed*1000:.1f}ms")
    print(f"  Rate: {rate:,.0f} offers/sec")
    print(f"  Per offer: {elapsed/iterations*1_000_000:.2f}µs")


def benchmark_scales(iterations: int = 5000, capacity: int = 40) -> None:
    """Benchmark scale computation over a full buffer."""
    print("\n=== Scale Computation Benchmark ===")

    samples = generate_mock_samples(capacity)
    viewport = Viewport()

    # Warm up
    for _ in range(10):
        compute_scales(samples, samples[-1].price, viewport, 100.0)

    times = []
    for _ in range(iterations):
        start = time.perf_counter()
        compute_scales(samples, samples[-1].price + random.uniform(-1, 1), viewport, 100.0)
        times.append(time.perf_counter() - start)

    avg_time = mean(times) * 1000
    std_time = stdev(times) * 1000

    print(f"  Iterations: {iterations}")
    print(f"  Avg time: {avg_time:.3f}ms")
    print(f"  Std dev: {std_time:.3f}ms")
    print(f"  Rate: {1000/avg_time:,.0f} calls/sec")


def benchmark_paths(iterations: int = 2000, capacity: int = 40) -> None:
    """Benchmark path generation for both curve types."""
    print("\n=== Path Generation Benchmark ===")

    samples = generate_mock_samples(capacity)
    scales = compute_scales(samples, samples[-1].price, Viewport(), 100.0)
    segment = SegmentAnimState(0.5, True, (samples[-2], samples[-1]))
    echo = EchoState(tuple(samples[-10:]), 0.7, True)

    for curve in ("linear", "catmull_rom"):
        generator = PathGenerator(curve)
        times = []
        for _ in range(iterations):
            start = time.perf_counter()
            generator.describe(samples, scales, segment, echo, samples[-1].price)
            times.append(time.perf_counter() - start)

        avg_time = mean(times) * 1000
        print(f"  {curve:<12} avg {avg_time:.3f}ms  ({1000/avg_time:,.0f} paths/sec)")


def benchmark_full_snapshot(iterations: int = 1000, capacity: int = 40) -> None:
    """Benchmark full ChartFrame generation while animations are running."""
    print("\n=== Full Snapshot Generation Benchmark ===")

    host = ManualFrameHost()
    chart = LiveChart(ChartConfig(capacity=capacity), host=host)
    chart.mount()
    chart.throttle.start()

    # Fill the buffer with one accepted sample per period
    base_ts = 1_700_000_000_000
    for i, sample in enumerate(generate_mock_samples(capacity)):
        chart.feed(sample.price, base_ts + i * 200)
        host.advance(200)

    times = []
    for i in range(iterations):
        if i % 12 == 0:
            chart.feed(50000.0 + random.uniform(-50, 50), base_ts + (capacity + i) * 200)
        host.step_frame()
        start = time.perf_counter()
        chart.snapshot()
        times.append(time.perf_counter() - start)

    chart.unmount()

    avg_time = mean(times) * 1000
    std_time = stdev(times) * 1000

    print(f"  Iterations: {iterations}")
    print(f"  Avg time: {avg_time:.3f}ms")
    print(f"  Std dev: {std_time:.3f}ms")
    print(f"  Max FPS possible: {1000/avg_time:,.0f}")


def main() -> None:
    """Run all benchmarks."""
    print("=" * 60)
    print("Tick Chart Performance Benchmark")
    print("=" * 60)

    benchmark_parsing()
    benchmark_throttle()
    benchmark_scales()
    benchmark_paths()
    benchmark_full_snapshot()

    print("\n" + "=" * 60)
    print("Benchmark complete.")
    print("=" * 60)


if __name__ == "__main__":
    main()
