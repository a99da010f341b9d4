"""
Alert emission for the scalp engine and trade tracker.

Keeps a bounded, most-recent-first history of ScalpAlerts and dispatches
side effects (push notifications, sounds) to registered callbacks. A
failing callback is logged and ignored; it never fails the engine tick.
"""

from collections import deque
from typing import Callable, Deque, Dict, List, Optional, Any
import logging

from spxpulse.shared.config.defaults import ALERT_HISTORY_CAPACITY
from spxpulse.shared.models.planner import TradeSignal
from spxpulse.shared.models.scalp import ScalpAlert

logger = logging.getLogger(__name__)

AlertCallback = Callable[[ScalpAlert], None]
TradeCallback = Callable[[TradeSignal], None]


class AlertEmitter:
    """History ring buffer plus side-effect dispatch."""

    def __init__(self, capacity: int = ALERT_HISTORY_CAPACITY):
        self.capacity = capacity
        self._history: Deque[ScalpAlert] = deque(maxlen=capacity)
        self._on_alert: List[AlertCallback] = []
        self._on_push: List[AlertCallback] = []
        self._on_trade: List[TradeCallback] = []

    def on_alert(self, callback: AlertCallback) -> AlertCallback:
        """Register a callback for every emitted alert. Usable as a decorator."""
        self._on_alert.append(callback)
        return callback

    def on_push(self, callback: AlertCallback) -> AlertCallback:
        """Register a callback for alerts flagged should_push."""
        self._on_push.append(callback)
        return callback

    def on_trade_signal(self, callback: TradeCallback) -> TradeCallback:
        """Register a callback for new HIGH-strength trade recommendations."""
        self._on_trade.append(callback)
        return callback

    def emit(self, alert: ScalpAlert) -> None:
        """Record the alert at the front of the history and run callbacks."""
        # deque(maxlen) drops from the right when appending left
        self._history.appendleft(alert)
        self._dispatch(self._on_alert, alert, "alert")
        if alert.should_push:
            self._dispatch(self._on_push, alert, "push")

    def dispatch_trade_signal(self, signal: TradeSignal) -> None:
        self._dispatch(self._on_trade, signal, "trade")

    def _dispatch(self, callbacks: List[Callable[[Any], None]], payload: Any, channel: str) -> None:
        for callback in callbacks:
            try:
                callback(payload)
            except Exception as e:
                logger.warning("%s callback %r failed: %s", channel, callback, e)

    @property
    def history(self) -> List[ScalpAlert]:
        return list(self._history)

    def __len__(self) -> int:
        return len(self._history)

    def get_recent_alerts(self, limit: int = 20) -> List[Dict[str, Any]]:
        """Newest first, at most `limit` entries."""
        limit = max(0, min(limit, self.capacity))
        return [alert.to_dict() for alert in list(self._history)[:limit]]

    def get_alert_by_id(self, alert_id: str) -> Optional[Dict[str, Any]]:
        for alert in self._history:
            if alert.id == alert_id:
                return alert.to_dict()
        return None

    def clear_alerts(self) -> None:
        self._history.clear()
