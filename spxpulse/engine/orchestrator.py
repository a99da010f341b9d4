"""
SPX Pulse Orchestrator

Per-instrument pipeline controller that wires the components together:
1. Indicator snapshot -> signal scorer -> trade planner -> lifecycle tracker
2. Multi-timeframe candles -> scalp engine -> alert emitter

Every instrument gets its own InstrumentSession with fully isolated state.
A session is the single writer for that state: overlapping ticks are
dropped, and results of superseded data requests are discarded by
generation id.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional
import itertools
import logging
import threading

from spxpulse.bot.notifications.notification_manager import AlertEmitter
from spxpulse.engine.lifecycle import TradeLifecycleTracker
from spxpulse.engine.scalp_engine import ScalpAlertEngine
from spxpulse.risk.position_sizer import simulate_payout
from spxpulse.shared.config.defaults import (
    DEFAULT_PLANNER,
    DEFAULT_SCALP,
    DEFAULT_SCORING,
    PlannerConfig,
    ScalpConfig,
    ScoringWeights,
)
from spxpulse.shared.models.data import MultiTimeframeCandles
from spxpulse.shared.models.indicators import IndicatorSnapshot
from spxpulse.shared.models.planner import LifecycleState, TradeSignal
from spxpulse.shared.models.scalp import ScalpTickResult
from spxpulse.shared.models.scoring import SignalScore
from spxpulse.strategy.confluence.scorer import score_snapshot
from spxpulse.strategy.planner.planner_service import plan_trade

logger = logging.getLogger(__name__)


def _always() -> bool:
    return True


@dataclass(frozen=True)
class SnapshotOutcome:
    """Result of one snapshot tick."""
    score: SignalScore
    signal: Optional[TradeSignal]
    state: LifecycleState
    elapsed_seconds: int


class InstrumentSession:
    """
    All signal and alert state of one instrument.

    Usage:
        session = InstrumentSession("SPX")
        gen = session.begin_request()
        ...fetch candles...
        session.apply_candles(candles, generation=gen)
    """

    def __init__(
        self,
        symbol: str,
        budget: float = 200.0,
        alerts_allowed: Callable[[], bool] = _always,
        scoring: ScoringWeights = DEFAULT_SCORING,
        planner: PlannerConfig = DEFAULT_PLANNER,
        scalp: ScalpConfig = DEFAULT_SCALP,
        clock: Optional[Callable[[], datetime]] = None,
        clock_ms: Optional[Callable[[], int]] = None,
    ):
        self.symbol = symbol
        self.budget = budget
        self.scoring = scoring
        self.planner = planner
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        self.emitter = AlertEmitter()
        self.tracker = TradeLifecycleTracker(
            notifier=self.emitter.dispatch_trade_signal,
            alerts_enabled=alerts_allowed,
            clock=self._clock,
        )
        engine_kwargs = {'clock_ms': clock_ms} if clock_ms is not None else {}
        self.engine = ScalpAlertEngine(
            symbol=symbol, config=scalp, alerts_allowed=alerts_allowed, **engine_kwargs,
        )

        self.last_score: Optional[SignalScore] = None
        self.last_snapshot: Optional[IndicatorSnapshot] = None

        self._tick_lock = threading.Lock()
        self._generation_lock = threading.Lock()
        self._generations = itertools.count(1)
        self._current_generation = 0

    # ------------------------------------------------------------------
    # Request generations
    # ------------------------------------------------------------------

    def begin_request(self) -> int:
        """Tag a new upstream fetch; any older generation becomes stale."""
        with self._generation_lock:
            self._current_generation = next(self._generations)
            return self._current_generation

    def is_current(self, generation: Optional[int]) -> bool:
        """None means untagged data, which is always accepted."""
        if generation is None:
            return True
        with self._generation_lock:
            return generation == self._current_generation

    # ------------------------------------------------------------------
    # Ticks
    # ------------------------------------------------------------------

    def apply_snapshot(
        self,
        snapshot: IndicatorSnapshot,
        generation: Optional[int] = None,
    ) -> Optional[SnapshotOutcome]:
        """
        Score, plan and advance the lifecycle for one snapshot.

        Returns:
            SnapshotOutcome, or None when the data was stale or another
            tick was already running.
        """
        if not self.is_current(generation):
            logger.debug("%s: discarding stale snapshot (generation %s)", self.symbol, generation)
            return None
        if not self._tick_lock.acquire(blocking=False):
            logger.debug("%s: snapshot tick dropped, previous tick still running", self.symbol)
            return None
        try:
            score = score_snapshot(snapshot, self.scoring)
            signal = plan_trade(score, snapshot, self.planner, now=self._clock())
            state = self.tracker.update(signal, snapshot.current_price)
            self.last_score = score
            self.last_snapshot = snapshot
            return SnapshotOutcome(
                score=score,
                signal=self.tracker.signal,
                state=state,
                elapsed_seconds=self.tracker.elapsed_seconds,
            )
        finally:
            self._tick_lock.release()

    def apply_candles(
        self,
        candles: MultiTimeframeCandles,
        generation: Optional[int] = None,
    ) -> Optional[ScalpTickResult]:
        """Run the scalp engine and emit any resulting alert."""
        if not self.is_current(generation):
            logger.debug("%s: discarding stale candles (generation %s)", self.symbol, generation)
            return None
        if not self._tick_lock.acquire(blocking=False):
            logger.debug("%s: candle tick dropped, previous tick still running", self.symbol)
            return None
        try:
            result = self.engine.process_candles(candles)
            if result.alert is not None:
                self.emitter.emit(result.alert)
            return result
        finally:
            self._tick_lock.release()

    # ------------------------------------------------------------------
    # User actions
    # ------------------------------------------------------------------

    def start_tracking(self) -> bool:
        with self._tick_lock:
            return self.tracker.start_tracking()

    def clear_signal(self) -> None:
        with self._tick_lock:
            self.tracker.clear()

    def reset(self) -> None:
        """Drop all signal, engine and alert state."""
        with self._tick_lock:
            self.tracker.clear()
            self.engine.reset()
            self.emitter.clear_alerts()
            self.last_score = None
            self.last_snapshot = None

    # ------------------------------------------------------------------
    # Read-only projections
    # ------------------------------------------------------------------

    def signal_view(self) -> dict:
        signal = self.tracker.signal
        score = self.last_score
        return {
            'symbol': self.symbol,
            'state': self.tracker.state.value,
            'elapsed_seconds': self.tracker.elapsed_seconds,
            'signal': signal.to_dict() if signal else None,
            'payout': simulate_payout(signal, self.budget, self.planner).to_dict() if signal else None,
            'score': {
                'bullish': score.bullish_score,
                'bearish': score.bearish_score,
                'direction': score.direction.value,
                'strength': score.strength.value,
                'trend_multiplier': score.trend_multiplier,
                'breakdown': dict(score.breakdown),
            } if score else None,
        }

    def director_view(self) -> dict:
        return self.engine.get_state_summary()

    def alerts(self, limit: int = 50) -> List[dict]:
        return self.emitter.get_recent_alerts(limit)


class SessionRegistry:
    """One independent InstrumentSession per symbol."""

    def __init__(self, session_factory: Optional[Callable[[str], InstrumentSession]] = None):
        self._factory = session_factory or InstrumentSession
        self._sessions: Dict[str, InstrumentSession] = {}
        self._lock = threading.Lock()

    def get(self, symbol: str) -> InstrumentSession:
        key = symbol.upper()
        with self._lock:
            session = self._sessions.get(key)
            if session is None:
                session = self._factory(key)
                self._sessions[key] = session
                logger.info("Created session for %s", key)
            return session

    def remove(self, symbol: str) -> None:
        with self._lock:
            self._sessions.pop(symbol.upper(), None)

    def symbols(self) -> List[str]:
        with self._lock:
            return sorted(self._sessions)
