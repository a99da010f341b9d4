"""
Technical Indicators Package

Provides:
- Momentum indicators (RSI, EWO, ADX)
- Volatility indicators (ATR, Bollinger Bands, SuperTrend)
- Volume indicators (VWAP, RVOL)
- Price levels (pivot points, Ichimoku cloud)
- Data validation utilities

All indicator functions follow consistent patterns:
- Accept pandas DataFrame with OHLCV columns
- Return pandas Series, a DataFrame of Series, or a small level dataclass
- Raise ValueError for insufficient data or missing columns
"""

from spxpulse.indicators.momentum import (
    compute_rsi,
    compute_ewo,
    compute_adx,
)

from spxpulse.indicators.volatility import (
    compute_atr,
    compute_bollinger_bands,
    compute_bandwidth,
    compute_supertrend,
)

from spxpulse.indicators.volume import (
    compute_vwap,
    compute_relative_volume,
    count_vwap_crosses,
)

from spxpulse.indicators.levels import (
    PivotLevels,
    IchimokuCloud,
    compute_pivot_points,
    pivot_points_for_row,
    compute_ichimoku,
)

from spxpulse.indicators.validation_utils import (
    validate_ohlcv,
    ohlcv_errors,
    require_columns,
    require_rows,
    DataValidationError,
)

__all__ = [
    # Momentum
    'compute_rsi',
    'compute_ewo',
    'compute_adx',
    # Volatility
    'compute_atr',
    'compute_bollinger_bands',
    'compute_bandwidth',
    'compute_supertrend',
    # Volume
    'compute_vwap',
    'compute_relative_volume',
    'count_vwap_crosses',
    # Levels
    'PivotLevels',
    'IchimokuCloud',
    'compute_pivot_points',
    'pivot_points_for_row',
    'compute_ichimoku',
    # Validation
    'validate_ohlcv',
    'ohlcv_errors',
    'require_columns',
    'require_rows',
    'DataValidationError',
]
