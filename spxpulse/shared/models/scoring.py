"""
Signal scoring models.

A SignalScore is derived fresh on every tick from an IndicatorSnapshot. It
carries both raw side scores (for display) and the decision: a direction
and a strength tier, or Direction.NONE inside the dead zone.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List


class Direction(str, Enum):
    """Trade direction of a recommendation or alert."""
    CALL = "CALL"
    PUT = "PUT"
    NONE = "NONE"

    @property
    def opposite(self) -> "Direction":
        if self is Direction.CALL:
            return Direction.PUT
        if self is Direction.PUT:
            return Direction.CALL
        return Direction.NONE


class Strength(str, Enum):
    """Confidence bucket derived from the winning side's total score."""
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


@dataclass(frozen=True)
class SignalScore:
    """
    Scorer output.

    Attributes:
        bullish_score: Weighted bullish total after the trend multiplier (>= 0)
        bearish_score: Weighted bearish total after the trend multiplier (>= 0)
        direction: CALL, PUT or NONE (dead zone)
        strength: Strength tier; LOW when direction is NONE
        trend_multiplier: ADX multiplier applied to both totals
        reasons: Sub-conditions that fired, in evaluation order
        breakdown: Per-component contributions before the multiplier
    """
    bullish_score: float
    bearish_score: float
    direction: Direction
    strength: Strength = Strength.LOW
    trend_multiplier: float = 1.0
    reasons: List[str] = field(default_factory=list)
    breakdown: Dict[str, float] = field(default_factory=dict)

    @property
    def is_actionable(self) -> bool:
        return self.direction is not Direction.NONE

    @property
    def score_diff(self) -> float:
        return self.bullish_score - self.bearish_score

    @property
    def total_score(self) -> float:
        return max(self.bullish_score, self.bearish_score)

    @property
    def reason(self) -> str:
        """Reasons joined for display, with a generic momentum fallback."""
        if self.reasons:
            return " | ".join(self.reasons)
        if self.direction is Direction.CALL:
            return "Bullish momentum"
        if self.direction is Direction.PUT:
            return "Bearish momentum"
        return ""
