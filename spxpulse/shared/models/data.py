"""
Data models for OHLCV candles and multi-timeframe candle bundles.

Candles arrive from the external data layer strictly time-ordered, one
series per timeframe. The scalp engine converts them to DataFrames before
computing indicators.
"""

from dataclasses import dataclass
from typing import Iterable, List, Sequence
import math

import pandas as pd


OHLCV_COLUMNS = ['timestamp', 'open', 'high', 'low', 'close', 'volume']


class InvalidCandleError(ValueError):
    """Raised when a candle record violates OHLC relationships."""


@dataclass(frozen=True)
class Candle:
    """
    Single OHLCV candlestick.

    Attributes:
        timestamp: Candle open time in epoch milliseconds
        open: Opening price
        high: Highest price during period
        low: Lowest price during period
        close: Closing price
        volume: Traded volume
    """
    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    def __post_init__(self):
        """Validate OHLC relationships."""
        for name in ('open', 'high', 'low', 'close', 'volume'):
            value = getattr(self, name)
            if value is None or not math.isfinite(value):
                raise InvalidCandleError(f"Candle {name} is missing or non-finite: {value!r}")
        if self.high < self.low:
            raise InvalidCandleError(f"High ({self.high}) cannot be less than Low ({self.low})")
        if self.high < max(self.open, self.close):
            raise InvalidCandleError(
                f"High ({self.high}) must be >= Open ({self.open}) and Close ({self.close})"
            )
        if self.low > min(self.open, self.close):
            raise InvalidCandleError(
                f"Low ({self.low}) must be <= Open ({self.open}) and Close ({self.close})"
            )
        if self.volume < 0:
            raise InvalidCandleError(f"Volume cannot be negative, got {self.volume}")


def candles_to_frame(candles: Iterable[Candle]) -> pd.DataFrame:
    """
    Convert candles to a DataFrame with OHLCV columns and a RangeIndex.

    Returns an empty frame with the expected columns when no candles are given.
    """
    rows = [
        (c.timestamp, c.open, c.high, c.low, c.close, c.volume)
        for c in candles
    ]
    df = pd.DataFrame(rows, columns=OHLCV_COLUMNS)
    return df.astype({
        'timestamp': 'int64',
        'open': 'float64',
        'high': 'float64',
        'low': 'float64',
        'close': 'float64',
        'volume': 'float64',
    })


def frame_to_candles(df: pd.DataFrame) -> List[Candle]:
    """Inverse of candles_to_frame; used when replaying CSV files."""
    missing = set(OHLCV_COLUMNS) - set(df.columns)
    if missing:
        raise ValueError(f"DataFrame missing required columns: {sorted(missing)}")
    return [
        Candle(
            timestamp=int(row.timestamp),
            open=float(row.open),
            high=float(row.high),
            low=float(row.low),
            close=float(row.close),
            volume=float(row.volume),
        )
        for row in df.itertuples(index=False)
    ]


@dataclass(frozen=True)
class MultiTimeframeCandles:
    """
    Three parallel candle series for one instrument.

    Attributes:
        fast: Finest granularity (1m), drives triggers and trap detection
        medium: Middle granularity (2m), drives the validator
        slow: Coarsest granularity (5m), drives the director
    """
    fast: Sequence[Candle]
    medium: Sequence[Candle]
    slow: Sequence[Candle]

    @property
    def latest_fast_timestamp(self) -> int:
        return self.fast[-1].timestamp if self.fast else 0
