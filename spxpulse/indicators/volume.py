"""
Volume Indicators Module

Implements volume-based indicators:
- VWAP (cumulative Volume-Weighted Average Price)
- Relative Volume (RVOL)
- VWAP cross counting for chop detection
"""

import pandas as pd
import numpy as np
import logging

from spxpulse.indicators.validation_utils import require_columns, require_rows

logger = logging.getLogger(__name__)


def compute_vwap(df: pd.DataFrame) -> pd.Series:
    """
    Compute cumulative Volume-Weighted Average Price (VWAP).

    Bars before any volume has traded fall back to their own close.

    Args:
        df: DataFrame with 'high', 'low', 'close', 'volume' columns

    Returns:
        pd.Series: VWAP values

    Raises:
        ValueError: If df is empty or missing required columns
    """
    require_columns(df, ['high', 'low', 'close', 'volume'], "VWAP")
    require_rows(df, 1, "VWAP")

    typical_price = (df['high'] + df['low'] + df['close']) / 3
    cum_pv = (typical_price * df['volume']).cumsum()
    cum_volume = df['volume'].cumsum()

    vwap = cum_pv / cum_volume.replace(0, np.nan)
    return vwap.fillna(df['close'])


def compute_relative_volume(df: pd.DataFrame, period: int = 20) -> pd.Series:
    """
    Compute Relative Volume (RVOL).

    Each bar's volume divided by the mean volume of the preceding `period`
    bars. Bars without a full lookback, or with zero average volume, read 1.0.

    Args:
        df: DataFrame with 'volume' column
        period: Lookback window (default 20)

    Returns:
        pd.Series: Relative volume ratio
    """
    require_columns(df, ['volume'], "RVOL")

    avg_volume = df['volume'].rolling(window=period).mean().shift(1)
    rvol = df['volume'] / avg_volume.replace(0, np.nan)
    return rvol.replace([np.inf, -np.inf], np.nan).fillna(1.0)


def count_vwap_crosses(closes: pd.Series, vwap_level: float) -> int:
    """Count how many times consecutive closes switch sides of a VWAP level."""
    above = (closes > vwap_level).to_numpy()
    if len(above) < 2:
        return 0
    return int((above[1:] != above[:-1]).sum())
