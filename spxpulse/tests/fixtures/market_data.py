"""
Reusable market data fixtures for testing.

Provides seeded OHLCV candle series for trending and choppy markets at the
three engine timeframes.
"""

import numpy as np
from typing import List
from spxpulse.shared.models.data import Candle, MultiTimeframeCandles

FAST_MS = 60_000
MEDIUM_MS = 120_000
SLOW_MS = 300_000
BASE_TS = 1_700_000_000_000 - (1_700_000_000_000 % SLOW_MS)


def generate_trend_candles(
    periods: int,
    base_price: float = 5000.0,
    drift: float = 0.001,
    interval_ms: int = FAST_MS,
    seed: int = 7,
    start_ts: int = BASE_TS,
) -> List[Candle]:
    """
    Generate candles drifting up (drift > 0) or down (drift < 0).

    Noise is small relative to the drift, so trend indicators agree on the
    direction. Volume rises on candles that move with the trend.
    """
    rng = np.random.default_rng(seed)
    candles = []
    price = base_price

    for i in range(periods):
        change = drift + rng.normal(0, abs(drift) * 0.3 + 1e-5)
        open_price = price
        close_price = price * (1 + change)
        high = max(open_price, close_price) * (1 + abs(rng.normal(0, 0.0003)))
        low = min(open_price, close_price) * (1 - abs(rng.normal(0, 0.0003)))
        with_trend = (close_price > open_price) == (drift > 0)
        volume = 1000.0 * (1.5 if with_trend else 1.0) + abs(rng.normal(0, 50))

        candles.append(Candle(
            timestamp=start_ts + i * interval_ms,
            open=open_price,
            high=high,
            low=low,
            close=close_price,
            volume=volume,
        ))
        price = close_price

    return candles


def generate_choppy_candles(
    periods: int,
    base_price: float = 5000.0,
    amplitude: float = 2.0,
    interval_ms: int = FAST_MS,
    seed: int = 11,
    start_ts: int = BASE_TS,
) -> List[Candle]:
    """Generate candles oscillating around base_price with flat volume."""
    rng = np.random.default_rng(seed)
    candles = []

    for i in range(periods):
        open_price = base_price + amplitude * np.sin(i / 2.0)
        close_price = base_price + amplitude * np.sin((i + 1) / 2.0)
        high = max(open_price, close_price) + abs(rng.normal(0, 0.3))
        low = min(open_price, close_price) - abs(rng.normal(0, 0.3))
        candles.append(Candle(
            timestamp=start_ts + i * interval_ms,
            open=open_price,
            high=high,
            low=low,
            close=close_price,
            volume=1000.0,
        ))

    return candles


def make_multi_timeframe(
    fast_bars: int = 60,
    medium_bars: int = 40,
    slow_bars: int = 80,
    drift: float = 0.001,
    choppy: bool = False,
) -> MultiTimeframeCandles:
    """Three series ending near the same time, oldest bar first."""
    if choppy:
        return MultiTimeframeCandles(
            fast=generate_choppy_candles(fast_bars, interval_ms=FAST_MS),
            medium=generate_choppy_candles(medium_bars, interval_ms=MEDIUM_MS, seed=12),
            slow=generate_choppy_candles(slow_bars, interval_ms=SLOW_MS, seed=13),
        )
    return MultiTimeframeCandles(
        fast=generate_trend_candles(fast_bars, drift=drift, interval_ms=FAST_MS),
        medium=generate_trend_candles(medium_bars, drift=drift, interval_ms=MEDIUM_MS, seed=8),
        slow=generate_trend_candles(slow_bars, drift=drift, interval_ms=SLOW_MS, seed=9),
    )
