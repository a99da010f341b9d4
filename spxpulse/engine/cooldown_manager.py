"""
Cooldown Manager

Alert cooldown ledger for the scalp engine. Prevents flapping by gating
new alerts against the last emitted one:

- Same direction inside the cooldown window: suppressed.
- Opposite direction inside the window: suppressed unless price retested
  VWAP since the last alert.
- Same direction after the window: still needs a retest while the
  direction is blocked.

The ledger is an immutable AlertCooldownState; the functions here return
new states. CooldownManager wraps the current value for a single engine.
"""

from dataclasses import replace
from typing import Optional, Tuple
import logging
import math

from spxpulse.shared.config.defaults import ScalpConfig, DEFAULT_SCALP
from spxpulse.shared.models.scalp import AlertCooldownState
from spxpulse.shared.models.scoring import Direction

logger = logging.getLogger(__name__)


def check_gate(
    direction: Direction,
    state: AlertCooldownState,
    now_ms: int,
    config: ScalpConfig = DEFAULT_SCALP,
) -> Tuple[bool, str]:
    """
    Decide whether an alert in `direction` may be emitted at now_ms.

    Returns:
        (allowed, reason) - reason is empty when allowed
    """
    last = state.last_alert_direction
    if last is None:
        return True, ""

    elapsed = now_ms - state.last_alert_timestamp_ms
    if elapsed < config.cooldown_window_ms:
        remaining = math.ceil((config.cooldown_window_ms - elapsed) / 1000)
        if direction == last:
            return False, f"Same direction cooldown: {remaining}s remaining"
        if not state.retest_since_last_alert:
            return False, f"Opposite direction cooldown: {remaining}s remaining"
        return True, ""

    if direction == last and state.same_direction_blocked and not state.retest_since_last_alert:
        return False, "Same direction blocked until VWAP retest"

    return True, ""


def record_emission(state: AlertCooldownState, direction: Direction, now_ms: int) -> AlertCooldownState:
    """Ledger after an alert was emitted: retest consumed, direction blocked."""
    return AlertCooldownState(
        last_alert_direction=direction,
        last_alert_timestamp_ms=now_ms,
        retest_since_last_alert=False,
        same_direction_blocked=True,
    )


def observe_retest(state: AlertCooldownState, touched: bool) -> AlertCooldownState:
    """Mark a VWAP retest when price touched it after a previous alert."""
    if not touched or state.last_alert_direction is None:
        return state
    if state.retest_since_last_alert and not state.same_direction_blocked:
        return state
    return replace(state, retest_since_last_alert=True, same_direction_blocked=False)


class CooldownManager:
    """
    Holds the cooldown ledger of one engine.

    Single writer: only the owning engine's tick handler replaces the
    state.
    """

    def __init__(self, config: ScalpConfig = DEFAULT_SCALP, state: Optional[AlertCooldownState] = None):
        self.config = config
        self.state = state or AlertCooldownState()

    def is_active(self, now_ms: int) -> bool:
        """True while inside the cooldown window of the last alert."""
        if self.state.last_alert_direction is None:
            return False
        return now_ms - self.state.last_alert_timestamp_ms < self.config.cooldown_window_ms

    def clear_cooldown(self) -> None:
        """Forget the last alert."""
        self.state = AlertCooldownState()
        logger.info("Cleared alert cooldown")
