"""
Volatility Indicators Module

Implements volatility measurement indicators:
- ATR (Average True Range)
- Bollinger Bands
- SuperTrend (ATR trailing bands)

All functions return pandas Series with proper index alignment.
"""

from typing import Tuple
import pandas as pd
import numpy as np
import logging

from spxpulse.indicators.validation_utils import require_columns, require_rows

logger = logging.getLogger(__name__)


def compute_atr(df: pd.DataFrame, period: int = 14) -> pd.Series:
    """
    Compute Average True Range (ATR).

    True Range is the greatest of:
    - Current High - Current Low
    - |Current High - Previous Close|
    - |Current Low - Previous Close|

    Args:
        df: DataFrame with 'high', 'low', 'close' columns
        period: ATR period (default 14)

    Returns:
        pd.Series: ATR values

    Raises:
        ValueError: If df is too short or missing required columns
    """
    require_columns(df, ['high', 'low', 'close'], "ATR")
    require_rows(df, 2, "ATR")

    high_low = df['high'] - df['low']
    high_close = (df['high'] - df['close'].shift()).abs()
    low_close = (df['low'] - df['close'].shift()).abs()
    true_range = pd.concat([high_low, high_close, low_close], axis=1).max(axis=1)
    return true_range.ewm(span=period, adjust=False).mean()


def compute_bollinger_bands(
    df: pd.DataFrame,
    period: int = 20,
    std_dev: float = 2.0
) -> Tuple[pd.Series, pd.Series, pd.Series]:
    """
    Compute Bollinger Bands.

    Args:
        df: DataFrame with 'close' column
        period: Moving average period (default 20)
        std_dev: Standard deviation multiplier (default 2.0)

    Returns:
        Tuple[pd.Series, pd.Series, pd.Series]: (upper_band, middle_band, lower_band)

    Raises:
        ValueError: If df is too short or missing required columns
    """
    require_columns(df, ['close'], "Bollinger Bands")
    require_rows(df, period, "Bollinger Bands")

    middle_band = df['close'].rolling(window=period).mean()
    std = df['close'].rolling(window=period).std(ddof=0)
    upper_band = middle_band + (std * std_dev)
    lower_band = middle_band - (std * std_dev)

    return upper_band, middle_band, lower_band


def compute_bandwidth(df: pd.DataFrame, period: int = 20, std_dev: float = 2.0) -> pd.Series:
    """Bollinger bandwidth (upper - lower) / middle; 0 where middle is 0."""
    upper, middle, lower = compute_bollinger_bands(df, period, std_dev)
    width = (upper - lower) / middle.replace(0, np.nan)
    return width.fillna(0.0)


def compute_supertrend(df: pd.DataFrame, period: int = 7, multiplier: float = 2.5) -> pd.DataFrame:
    """
    Compute SuperTrend.

    Bands trail price at multiplier x ATR around the bar midpoint. The
    trend flips to +1 when close clears the upper band and to -1 when it
    breaks the lower band; otherwise it carries the previous trend.

    Args:
        df: DataFrame with 'high', 'low', 'close' columns
        period: ATR period (default 7)
        multiplier: ATR multiplier (default 2.5)

    Returns:
        pd.DataFrame with columns:
            - trend: +1 / -1
            - signal: "BUY" on a flip up, "SELL" on a flip down, else "HOLD"
            - upper_band, lower_band: final trailing bands
    """
    require_columns(df, ['high', 'low', 'close'], "SuperTrend")
    require_rows(df, 2, "SuperTrend")

    atr = compute_atr(df, period).to_numpy()
    high = df['high'].to_numpy()
    low = df['low'].to_numpy()
    close = df['close'].to_numpy()
    n = len(df)

    trend = np.ones(n, dtype=int)
    signal = np.array(["HOLD"] * n, dtype=object)
    upper = np.zeros(n)
    lower = np.zeros(n)

    prev_trend = 1
    for i in range(n):
        hl2 = (high[i] + low[i]) / 2
        basic_upper = hl2 + multiplier * atr[i]
        basic_lower = hl2 - multiplier * atr[i]

        if i == 0:
            final_upper, final_lower = basic_upper, basic_lower
        else:
            final_upper = (
                basic_upper
                if basic_upper < upper[i - 1] or close[i - 1] > upper[i - 1]
                else upper[i - 1]
            )
            final_lower = (
                basic_lower
                if basic_lower > lower[i - 1] or close[i - 1] < lower[i - 1]
                else lower[i - 1]
            )
        upper[i] = final_upper
        lower[i] = final_lower

        if close[i] > final_upper:
            trend[i] = 1
            if prev_trend == -1:
                signal[i] = "BUY"
        elif close[i] < final_lower:
            trend[i] = -1
            if prev_trend == 1:
                signal[i] = "SELL"
        else:
            trend[i] = prev_trend
        prev_trend = trend[i]

    return pd.DataFrame(
        {'trend': trend, 'signal': signal, 'upper_band': upper, 'lower_band': lower},
        index=df.index,
    )
