"""
Trade planning models.

A TradeSignal is the option trade the planner derives from an actionable
SignalScore. Its identity is the (type, strike, strength) triple; the
lifecycle tracker only re-fires creation side effects when that identity
changes.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple

from .scoring import Direction, Strength


class LifecycleState(str, Enum):
    """Trade lifecycle states, owned by TradeLifecycleTracker."""
    NONE = "NONE"
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    PROFIT = "PROFIT"
    STOPPED = "STOPPED"


@dataclass(frozen=True)
class TradeIdentity:
    """Value-equality key of a TradeSignal."""
    type: Direction
    strike_price: float
    strength: Strength


@dataclass(frozen=True)
class TradeSignal:
    """
    Complete option trade recommendation.

    Attributes:
        type: CALL or PUT
        strike_price: Strike rounded to the planner granularity
        entry_price: Underlying price when the plan was made
        estimated_premium: Premium estimate per share, clamped
        profit_target1..3: Premium levels at the profit multipliers
        stop_loss: Premium level at the stop multiplier
        target_spx_price: Underlying level that marks the trade a winner
        stop_spx_price: Underlying level that stops the trade out
        reason: Human-readable rationale
        strength: Strength tier inherited from the score
        timestamp: Reference time; reset when tracking starts
    """
    type: Direction
    strike_price: float
    entry_price: float
    estimated_premium: float
    profit_target1: float
    profit_target2: float
    profit_target3: float
    stop_loss: float
    target_spx_price: Optional[float]
    stop_spx_price: Optional[float]
    reason: str
    strength: Strength
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        if self.type not in (Direction.CALL, Direction.PUT):
            raise ValueError(f"TradeSignal type must be CALL or PUT, got {self.type}")

    @property
    def identity(self) -> TradeIdentity:
        return TradeIdentity(self.type, float(self.strike_price), self.strength)

    @property
    def profit_targets(self) -> Tuple[float, float, float]:
        return (self.profit_target1, self.profit_target2, self.profit_target3)

    def restamped(self, when: datetime) -> "TradeSignal":
        return replace(self, timestamp=when)

    def to_dict(self) -> dict:
        return {
            'type': self.type.value,
            'strike_price': self.strike_price,
            'entry_price': self.entry_price,
            'estimated_premium': self.estimated_premium,
            'profit_targets': list(self.profit_targets),
            'stop_loss': self.stop_loss,
            'target_spx_price': self.target_spx_price,
            'stop_spx_price': self.stop_spx_price,
            'reason': self.reason,
            'strength': self.strength.value,
            'timestamp': self.timestamp.isoformat(),
        }
