"""
Momentum Indicators Module

Implements technical momentum indicators:
- RSI (Relative Strength Index)
- EWO (Elliott Wave Oscillator)
- ADX with +DI / -DI

All functions return pandas Series (or a DataFrame of Series) aligned with
the input index.
"""

import pandas as pd
import numpy as np
import logging

from spxpulse.indicators.validation_utils import require_columns, require_rows

logger = logging.getLogger(__name__)


def compute_rsi(df: pd.DataFrame, period: int = 14) -> pd.Series:
    """
    Compute Relative Strength Index (RSI).

    Args:
        df: DataFrame with 'close' column
        period: RSI period (default 14)

    Returns:
        pd.Series: RSI values (0-100). Flat stretches with neither gains
        nor losses read as the neutral 50.

    Raises:
        ValueError: If df is too short or missing required columns
    """
    require_columns(df, ['close'], "RSI")
    require_rows(df, period + 1, "RSI")

    delta = df['close'].diff()
    gains = delta.where(delta > 0, 0.0)
    losses = -delta.where(delta < 0, 0.0)
    avg_gains = gains.ewm(span=period, adjust=False).mean()
    avg_losses = losses.ewm(span=period, adjust=False).mean()

    rs = avg_gains / avg_losses.replace(0, np.nan)
    rsi = 100 - (100 / (1 + rs))
    rsi = rsi.where(avg_losses > 0, np.where(avg_gains > 0, 100.0, 50.0))

    return rsi.astype(float)


def compute_ewo(df: pd.DataFrame, fast: int = 5, slow: int = 35) -> pd.Series:
    """
    Compute the Elliott Wave Oscillator: EMA(fast) - EMA(slow) of close.

    Args:
        df: DataFrame with 'close' column
        fast: Fast EMA period (default 5)
        slow: Slow EMA period (default 35)

    Returns:
        pd.Series: EWO values; positive means short-term momentum above long-term
    """
    require_columns(df, ['close'], "EWO")
    require_rows(df, 2, "EWO")

    ema_fast = df['close'].ewm(span=fast, adjust=False).mean()
    ema_slow = df['close'].ewm(span=slow, adjust=False).mean()
    return ema_fast - ema_slow


def compute_adx(df: pd.DataFrame, period: int = 14) -> pd.DataFrame:
    """
    Compute ADX (Average Directional Index) with directional indicators.

    ADX measures trend strength (0-100):
    - 0-20: Weak/No trend (range-bound market)
    - 20-40: Developing trend
    - 40+: Strong trend

    Args:
        df: DataFrame with 'high', 'low', 'close' columns
        period: ADX period (default 14)

    Returns:
        pd.DataFrame with columns 'adx', 'plus_di', 'minus_di'. Zero-range
        stretches produce 0 rather than NaN.

    Raises:
        ValueError: If df is too short or missing required columns
    """
    require_columns(df, ['high', 'low', 'close'], "ADX")
    require_rows(df, period + 1, "ADX")

    high = df['high']
    low = df['low']
    close = df['close']

    # True Range
    tr1 = high - low
    tr2 = (high - close.shift(1)).abs()
    tr3 = (low - close.shift(1)).abs()
    tr = pd.concat([tr1, tr2, tr3], axis=1).max(axis=1)

    # Directional Movement
    up_move = high.diff()
    down_move = -low.diff()
    plus_dm = up_move.where((up_move > down_move) & (up_move > 0), 0.0)
    minus_dm = down_move.where((down_move > up_move) & (down_move > 0), 0.0)

    # Wilder-style smoothing
    atr = tr.ewm(span=period, adjust=False).mean()
    plus_dm_smooth = plus_dm.ewm(span=period, adjust=False).mean()
    minus_dm_smooth = minus_dm.ewm(span=period, adjust=False).mean()

    plus_di = (100 * plus_dm_smooth / atr).replace([np.inf, -np.inf], 0).fillna(0)
    minus_di = (100 * minus_dm_smooth / atr).replace([np.inf, -np.inf], 0).fillna(0)

    dx = 100 * (plus_di - minus_di).abs() / (plus_di + minus_di)
    dx = dx.replace([np.inf, -np.inf], 0).fillna(0)
    adx = dx.ewm(span=period, adjust=False).mean()

    return pd.DataFrame({'adx': adx, 'plus_di': plus_di, 'minus_di': minus_di}, index=df.index)
