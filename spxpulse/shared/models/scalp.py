"""
Scalp engine models.

Director, trap and cooldown states are immutable values threaded through
each engine tick: every tick takes the previous value and returns a new
one. Equality is by value, so a no-op tick is observable as "returned
state == previous state".
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Optional

from .scoring import Direction


class DirectorTrend(str, Enum):
    """Persistent directional bias of the slow timeframe."""
    TREND_UP = "TREND_UP"
    TREND_DOWN = "TREND_DOWN"
    CHOP = "CHOP"

    @property
    def direction(self) -> Direction:
        if self is DirectorTrend.TREND_UP:
            return Direction.CALL
        if self is DirectorTrend.TREND_DOWN:
            return Direction.PUT
        return Direction.NONE


class ValidatorState(str, Enum):
    BULL = "BULL"
    BEAR = "BEAR"
    NEUTRAL = "NEUTRAL"


class TrapType(str, Enum):
    """Liquidity wick that rejected a key level."""
    UP_WICK = "UP_WICK"
    DOWN_WICK = "DOWN_WICK"


class AlertKind(str, Enum):
    SQUEEZE_LONG = "SQUEEZE_LONG"
    SQUEEZE_SHORT = "SQUEEZE_SHORT"
    TRAP_FADE_LONG = "TRAP_FADE_LONG"
    TRAP_FADE_SHORT = "TRAP_FADE_SHORT"


@dataclass(frozen=True)
class DirectorState:
    """
    Director output.

    Attributes:
        state: TREND_UP, TREND_DOWN or CHOP
        bias_score: Sum of the six indicator votes (-6..+6)
        inside_cloud: Price inside the slow Ichimoku cloud (forces CHOP)
        breakdown: Individual votes by indicator name
        locked_until_ms: Recomputation is skipped before this time
    """
    state: DirectorTrend = DirectorTrend.CHOP
    bias_score: int = 0
    inside_cloud: bool = False
    breakdown: Dict[str, int] = field(default_factory=dict, compare=False)
    locked_until_ms: int = 0


@dataclass(frozen=True)
class ValidatorResult:
    state: ValidatorState = ValidatorState.NEUTRAL
    long_valid: bool = False
    short_valid: bool = False
    conditions: Dict[str, bool] = field(default_factory=dict)


@dataclass(frozen=True)
class TrapModeResult:
    """
    Trap mode output.

    Attributes:
        active: A trap is currently open
        type: Wick direction, None when inactive
        expires_at_candle: Candle index at which the trap closes
        wick_high: High of the trap candle
        wick_low: Low of the trap candle
    """
    active: bool = False
    type: Optional[TrapType] = None
    expires_at_candle: int = 0
    wick_high: Optional[float] = None
    wick_low: Optional[float] = None


@dataclass(frozen=True)
class TriggerResult:
    valid: bool = False
    direction: Direction = Direction.NONE
    conditions: Dict[str, bool] = field(default_factory=dict)


@dataclass(frozen=True)
class AlertCooldownState:
    """
    Cooldown ledger.

    Attributes:
        last_alert_direction: Direction of the last emitted alert, None before any
        last_alert_timestamp_ms: Emission time of the last alert
        retest_since_last_alert: Price revisited VWAP since the last alert
        same_direction_blocked: A repeat alert in the last direction needs a retest
    """
    last_alert_direction: Optional[Direction] = None
    last_alert_timestamp_ms: int = 0
    retest_since_last_alert: bool = False
    same_direction_blocked: bool = False


@dataclass(frozen=True)
class ScalpAlert:
    """Immutable alert produced by the scalp engine."""
    id: str
    kind: AlertKind
    direction: Direction
    explanation: str
    confidence: int
    should_push: bool
    timestamp: datetime
    director: DirectorTrend
    validator: ValidatorState
    trigger_reason: str
    entry_price: float
    stop_loss: float
    target_price: float
    hold_time: str

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'kind': self.kind.value,
            'direction': self.direction.value,
            'explanation': self.explanation,
            'confidence': self.confidence,
            'should_push': self.should_push,
            'timestamp': self.timestamp.isoformat(),
            'director': self.director.value,
            'validator': self.validator.value,
            'trigger_reason': self.trigger_reason,
            'entry_price': self.entry_price,
            'stop_loss': self.stop_loss,
            'target_price': self.target_price,
            'hold_time': self.hold_time,
        }


@dataclass(frozen=True)
class ScalpTickResult:
    """Everything one engine tick produced."""
    director: DirectorState
    trap: TrapModeResult
    cooldown: AlertCooldownState
    validator: ValidatorResult = field(default_factory=ValidatorResult)
    alert: Optional[ScalpAlert] = None
    processed: bool = True
    reason: str = ""
