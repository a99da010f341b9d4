"""
Trade Lifecycle Tracker

Follows one option recommendation per instrument through
PENDING -> ACTIVE -> PROFIT | STOPPED.

- A recommendation with a new identity (type, strike, strength) and HIGH
  or MEDIUM strength replaces whatever is tracked and goes PENDING. HIGH
  also fires the notifier when alerts are enabled.
- A LOW recommendation is only adopted when nothing is tracked, and a
  no-signal offer drops it while still PENDING. HIGH and MEDIUM stay
  PENDING until clear() or a different identity arrives.
- Re-delivery of the same identity is a no-op.
- start_tracking() moves PENDING to ACTIVE; every tick() while ACTIVE
  compares price with the target/stop reference levels.
- clear() returns to NONE from any state.
"""

from datetime import datetime, timezone
from typing import Callable, Optional
import logging

from spxpulse.shared.models.planner import LifecycleState, TradeIdentity, TradeSignal
from spxpulse.shared.models.scoring import Direction, Strength
from spxpulse.shared.utils.error_policy import sanitize_number

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _always() -> bool:
    return True


class TradeLifecycleTracker:
    """Single-recommendation state machine for one instrument."""

    def __init__(
        self,
        notifier: Optional[Callable[[TradeSignal], None]] = None,
        alerts_enabled: Callable[[], bool] = _always,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """
        Args:
            notifier: Side effect for new HIGH-strength recommendations
                (push notification, sound). Failures are logged and ignored.
            alerts_enabled: External gate consulted before notifying
            clock: Time source for the elapsed counter
        """
        self._notifier = notifier
        self._alerts_enabled = alerts_enabled
        self._clock = clock

        self.state = LifecycleState.NONE
        self.signal: Optional[TradeSignal] = None
        self._identity: Optional[TradeIdentity] = None
        self._started_at: Optional[datetime] = None

    @property
    def identity(self) -> Optional[TradeIdentity]:
        return self._identity

    @property
    def is_tracking(self) -> bool:
        return self.state is LifecycleState.ACTIVE

    @property
    def elapsed_seconds(self) -> int:
        if self.signal is None or self._started_at is None:
            return 0
        return max(0, int((self._clock() - self._started_at).total_seconds()))

    def on_signal(self, signal: Optional[TradeSignal]) -> LifecycleState:
        """
        Offer the latest planned recommendation (or None for no signal).

        Returns:
            Lifecycle state after the offer
        """
        identity = signal.identity if signal is not None else None
        if identity == self._identity:
            return self.state

        if signal is not None and signal.strength in (Strength.HIGH, Strength.MEDIUM):
            self._adopt(signal)
            if signal.strength is Strength.HIGH:
                self._notify(signal)
        elif signal is not None and self.signal is None:
            self._adopt(signal)
        elif (
            signal is None
            and self.state is LifecycleState.PENDING
            and self.signal is not None
            and self.signal.strength is Strength.LOW
        ):
            logger.debug("Signal faded before tracking started; clearing %s", self._identity)
            self._reset()

        return self.state

    def start_tracking(self) -> bool:
        """PENDING -> ACTIVE, restarting the reference timestamp. False if not PENDING."""
        if self.state is not LifecycleState.PENDING or self.signal is None:
            logger.debug("start_tracking ignored in state %s", self.state.value)
            return False
        now = self._clock()
        self.signal = self.signal.restamped(now)
        self._started_at = now
        self.state = LifecycleState.ACTIVE
        logger.info(
            "Tracking %s %.0f (%s)",
            self.signal.type.value, self.signal.strike_price, self.signal.strength.value,
        )
        return True

    def tick(self, price: float) -> LifecycleState:
        """Re-evaluate an ACTIVE trade against the target and stop levels."""
        price = sanitize_number(price, None)
        if self.state is not LifecycleState.ACTIVE or self.signal is None or price is None:
            return self.state

        target = self.signal.target_spx_price
        stop = self.signal.stop_spx_price

        if self.signal.type is Direction.CALL:
            hit_target = target is not None and price >= target
            hit_stop = stop is not None and price <= stop
        else:
            hit_target = target is not None and price <= target
            hit_stop = stop is not None and price >= stop

        if hit_target:
            self.state = LifecycleState.PROFIT
        elif hit_stop:
            self.state = LifecycleState.STOPPED

        if self.state is not LifecycleState.ACTIVE:
            logger.info(
                "%s %.0f closed %s at %.2f after %ds",
                self.signal.type.value, self.signal.strike_price,
                self.state.value, price, self.elapsed_seconds,
            )
        return self.state

    def update(self, signal: Optional[TradeSignal], price: float) -> LifecycleState:
        """One snapshot tick: offer the recommendation, then evaluate price."""
        self.on_signal(signal)
        return self.tick(price)

    def clear(self) -> None:
        """Discard the tracked recommendation from any state."""
        if self.signal is not None:
            logger.info("Cleared %s from %s", self._identity, self.state.value)
        self._reset()

    def to_dict(self) -> dict:
        return {
            'state': self.state.value,
            'elapsed_seconds': self.elapsed_seconds,
            'signal': self.signal.to_dict() if self.signal else None,
        }

    def _adopt(self, signal: TradeSignal) -> None:
        self.signal = signal
        self._identity = signal.identity
        self._started_at = self._clock()
        self.state = LifecycleState.PENDING
        logger.info(
            "New %s recommendation: strike %.0f premium %.2f (%s)",
            signal.strength.value, signal.strike_price, signal.estimated_premium, signal.reason,
        )

    def _reset(self) -> None:
        self.signal = None
        self._identity = None
        self._started_at = None
        self.state = LifecycleState.NONE

    def _notify(self, signal: TradeSignal) -> None:
        if self._notifier is None:
            return
        try:
            if not self._alerts_enabled():
                logger.debug("Alerts disabled; skipping notification for %s", signal.identity)
                return
            self._notifier(signal)
        except Exception as e:
            logger.warning("Trade notification failed: %s", e)
