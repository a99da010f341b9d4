"""
Candle frame validation.

Guards shared by the indicator functions (column and length checks) and a
full OHLCV integrity check for frames loaded from outside the process,
e.g. CSV replays.
"""

from typing import Iterable, List, Optional
import pandas as pd
import logging

logger = logging.getLogger(__name__)

PRICE_COLUMNS = ['open', 'high', 'low', 'close']


class DataValidationError(ValueError):
    """A candle frame failed integrity checks."""


def require_columns(df: pd.DataFrame, columns: Iterable[str], name: str = "indicator") -> None:
    """Raise ValueError when any of columns is missing from df."""
    missing_cols = [col for col in columns if col not in df.columns]
    if missing_cols:
        raise ValueError(f"DataFrame missing required columns for {name}: {missing_cols}")


def require_rows(df: pd.DataFrame, min_rows: int, name: str = "indicator") -> None:
    """Raise ValueError when df has fewer than min_rows rows."""
    if len(df) < min_rows:
        raise ValueError(
            f"DataFrame too short for {name} calculation (need {min_rows} rows, got {len(df)})"
        )


def ohlcv_errors(df: pd.DataFrame, min_rows: Optional[int] = None) -> List[str]:
    """
    List every integrity problem of a candle frame; empty when clean.

    Checks columns, NaN prices, high/low envelopes around open/close,
    negative volume and strictly increasing timestamps (when present).
    """
    missing = [col for col in PRICE_COLUMNS + ['volume'] if col not in df.columns]
    if missing:
        return [f"Missing required columns: {missing}"]

    errors = []
    if min_rows is not None and len(df) < min_rows:
        errors.append(f"Need {min_rows} candles, got {len(df)}")

    nan_rows = int(df[PRICE_COLUMNS].isna().any(axis=1).sum())
    if nan_rows:
        errors.append(f"{nan_rows} candles with NaN prices")

    body_high = df[['open', 'close']].max(axis=1)
    body_low = df[['open', 'close']].min(axis=1)
    broken = int(((df['high'] < df['low']) | (df['high'] < body_high) | (df['low'] > body_low)).sum())
    if broken:
        errors.append(f"{broken} candles with high/low outside open/close")

    negative = int((df['volume'] < 0).sum())
    if negative:
        errors.append(f"{negative} candles with negative volume")

    if 'timestamp' in df.columns and len(df) > 1 and not df['timestamp'].diff().iloc[1:].gt(0).all():
        errors.append("Timestamps are not strictly increasing")

    return errors


def validate_ohlcv(df: pd.DataFrame, min_rows: Optional[int] = None, raise_on_error: bool = True) -> bool:
    """
    Validate a candle frame.

    Returns:
        True when clean. With raise_on_error=False a dirty frame returns
        False instead of raising.

    Raises:
        DataValidationError: On the first failed frame when raise_on_error
    """
    errors = ohlcv_errors(df, min_rows)
    if not errors:
        return True
    message = "; ".join(errors)
    logger.debug("OHLCV validation failed: %s", message)
    if raise_on_error:
        raise DataValidationError(message)
    return False
