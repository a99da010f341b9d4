"""
Indicator snapshot models.

An IndicatorSnapshot is the per-tick bundle of current price and externally
computed indicator readings the signal scorer consumes. Crossover and vote
fields arrive in several spellings from different callers; they are
normalized once here.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional
import math


class SignalVote(str, Enum):
    """Directional vote of a single indicator (SuperTrend, EWO)."""
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"

    @classmethod
    def normalize(cls, raw: Any) -> "SignalVote":
        if isinstance(raw, SignalVote):
            return raw
        value = str(raw or "").strip().upper()
        if value in ("BUY", "BULLISH", "STRONG_BUY"):
            return cls.BUY
        if value in ("SELL", "BEARISH", "STRONG_SELL"):
            return cls.SELL
        return cls.HOLD


class Crossover(str, Enum):
    """MACD crossover state."""
    BULLISH = "BULLISH"
    BEARISH = "BEARISH"
    NONE = "NONE"

    @classmethod
    def normalize(cls, raw: Any) -> "Crossover":
        """Map BUY/BULLISH and SELL/BEARISH synonyms; anything else is NONE."""
        if isinstance(raw, Crossover):
            return raw
        value = str(raw or "").strip().upper()
        if value in ("BUY", "BULLISH"):
            return cls.BULLISH
        if value in ("SELL", "BEARISH"):
            return cls.BEARISH
        return cls.NONE


@dataclass(frozen=True)
class IndicatorSnapshot:
    """
    Immutable per-tick indicator readings.

    Build instances through error_policy.normalize_snapshot() when the
    inputs come from outside the process; it substitutes neutral defaults
    for NaN or missing readings.
    """
    current_price: float
    rsi: float = 50.0
    adx: float = 0.0
    supertrend_signal: SignalVote = SignalVote.HOLD
    ewo_signal: SignalVote = SignalVote.HOLD
    macd_crossover: Crossover = Crossover.NONE
    pivot_r1: Optional[float] = None
    pivot_r2: Optional[float] = None
    pivot_s1: Optional[float] = None
    pivot_s2: Optional[float] = None

    @property
    def dist_to_s1(self) -> float:
        return _distance(self.current_price, self.pivot_s1)

    @property
    def dist_to_s2(self) -> float:
        return _distance(self.current_price, self.pivot_s2)

    @property
    def dist_to_r1(self) -> float:
        return _distance(self.pivot_r1, self.current_price)

    @property
    def dist_to_r2(self) -> float:
        return _distance(self.pivot_r2, self.current_price)


def _distance(upper: Optional[float], lower: Optional[float]) -> float:
    # Signed distance; an unknown level is infinitely far away.
    if upper is None or lower is None:
        return math.inf
    return upper - lower
