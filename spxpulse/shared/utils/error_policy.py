"""
Error policy - degrade, never raise.

Anomalies in tick data (NaN readings, unknown enum spellings, zero
denominators) are replaced with documented neutral defaults before any
scoring happens. The core surfaces "no signal / unchanged state" instead
of exceptions.
"""

from typing import Any, Optional
import logging
import math

from spxpulse.shared.models.indicators import Crossover, IndicatorSnapshot, SignalVote

logger = logging.getLogger(__name__)

NEUTRAL_RSI = 50.0
NEUTRAL_ADX = 0.0


def sanitize_number(value: Any, default: Optional[float]) -> Optional[float]:
    """
    Coerce value to a finite float.

    None, NaN, infinities and non-numeric values become default.
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Divide, falling back to default for zero or non-finite denominators."""
    if denominator is None or denominator == 0:
        return default
    result = numerator / denominator
    if math.isnan(result) or math.isinf(result):
        return default
    return result


def normalize_snapshot(
    current_price: Any,
    rsi: Any = None,
    adx: Any = None,
    supertrend_signal: Any = None,
    ewo_signal: Any = None,
    macd_crossover: Any = None,
    pivot_r1: Any = None,
    pivot_r2: Any = None,
    pivot_s1: Any = None,
    pivot_s2: Any = None,
) -> IndicatorSnapshot:
    """
    Build an IndicatorSnapshot from raw boundary values.

    Defaults: RSI 50, ADX 0, signals HOLD, crossover NONE. Missing pivot
    levels stay None and never contribute proximity points. A missing
    price becomes 0.0.
    """
    snapshot = IndicatorSnapshot(
        current_price=sanitize_number(current_price, 0.0),
        rsi=sanitize_number(rsi, NEUTRAL_RSI),
        adx=sanitize_number(adx, NEUTRAL_ADX),
        supertrend_signal=SignalVote.normalize(supertrend_signal),
        ewo_signal=SignalVote.normalize(ewo_signal),
        macd_crossover=Crossover.normalize(macd_crossover),
        pivot_r1=sanitize_number(pivot_r1, None),
        pivot_r2=sanitize_number(pivot_r2, None),
        pivot_s1=sanitize_number(pivot_s1, None),
        pivot_s2=sanitize_number(pivot_s2, None),
    )
    if rsi is not None and sanitize_number(rsi, None) is None:
        logger.debug("RSI reading %r replaced with neutral %.1f", rsi, NEUTRAL_RSI)
    return snapshot


def sanitize_snapshot(snapshot: IndicatorSnapshot) -> IndicatorSnapshot:
    """Re-run normalization over an already constructed snapshot."""
    return normalize_snapshot(
        current_price=snapshot.current_price,
        rsi=snapshot.rsi,
        adx=snapshot.adx,
        supertrend_signal=snapshot.supertrend_signal,
        ewo_signal=snapshot.ewo_signal,
        macd_crossover=snapshot.macd_crossover,
        pivot_r1=snapshot.pivot_r1,
        pivot_r2=snapshot.pivot_r2,
        pivot_s1=snapshot.pivot_s1,
        pivot_s2=snapshot.pivot_s2,
    )
