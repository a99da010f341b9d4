"""
Test suite for the trade lifecycle tracker.
"""

from datetime import timedelta
import pytest

from spxpulse.engine.lifecycle import TradeLifecycleTracker
from spxpulse.shared.models.planner import LifecycleState
from spxpulse.shared.models.scoring import Direction, Strength
from spxpulse.tests.fixtures.signals import T0, make_trade_signal


class FakeClock:
    def __init__(self):
        self.now = T0

    def __call__(self):
        return self.now

    def advance(self, seconds: float):
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def notified():
    return []


@pytest.fixture
def tracker(clock, notified):
    return TradeLifecycleTracker(notifier=notified.append, clock=clock)


def test_high_signal_goes_pending_and_notifies(tracker, notified):
    signal = make_trade_signal(strength=Strength.HIGH)
    assert tracker.on_signal(signal) is LifecycleState.PENDING
    assert tracker.signal is signal
    assert notified == [signal]


def test_same_identity_does_not_renotify(tracker, notified):
    tracker.on_signal(make_trade_signal(strike=5005))
    # Different entry/premium but same (type, strike, strength)
    tracker.on_signal(make_trade_signal(strike=5005.0, entry=5003.0, premium=3.0))
    assert len(notified) == 1
    assert tracker.signal.entry_price == 5001.0


def test_medium_signal_is_silent(tracker, notified):
    assert tracker.on_signal(make_trade_signal(strength=Strength.MEDIUM)) is LifecycleState.PENDING
    assert notified == []


def test_alerts_gate_blocks_notification(clock, notified):
    tracker = TradeLifecycleTracker(notifier=notified.append, alerts_enabled=lambda: False, clock=clock)
    tracker.on_signal(make_trade_signal(strength=Strength.HIGH))
    assert tracker.state is LifecycleState.PENDING
    assert notified == []


def test_notifier_failure_is_swallowed(clock):
    def boom(signal):
        raise RuntimeError("permission denied")

    tracker = TradeLifecycleTracker(notifier=boom, clock=clock)
    assert tracker.on_signal(make_trade_signal()) is LifecycleState.PENDING


def test_low_signal_only_adopted_when_idle(tracker):
    low = make_trade_signal(strength=Strength.LOW, strike=5010)
    assert tracker.on_signal(low) is LifecycleState.PENDING
    assert tracker.signal is low

    medium = make_trade_signal(strength=Strength.MEDIUM)
    tracker.on_signal(medium)
    assert tracker.signal is medium

    tracker.on_signal(make_trade_signal(strength=Strength.LOW, strike=5015))
    assert tracker.signal is medium


def test_changed_identity_replaces_active_trade(tracker):
    tracker.on_signal(make_trade_signal(strike=5005))
    tracker.start_tracking()
    replacement = make_trade_signal(type=Direction.PUT, strike=5000, target=4980, stop=5010)
    assert tracker.on_signal(replacement) is LifecycleState.PENDING
    assert tracker.signal is replacement


def test_start_tracking_requires_pending(tracker, clock):
    assert tracker.start_tracking() is False

    tracker.on_signal(make_trade_signal())
    clock.advance(30)
    assert tracker.start_tracking() is True
    assert tracker.state is LifecycleState.ACTIVE
    assert tracker.signal.timestamp == clock.now
    assert tracker.elapsed_seconds == 0

    assert tracker.start_tracking() is False


def test_elapsed_counts_from_tracking_start(tracker, clock):
    tracker.on_signal(make_trade_signal())
    clock.advance(10)
    assert tracker.elapsed_seconds == 10
    tracker.start_tracking()
    clock.advance(95)
    assert tracker.elapsed_seconds == 95


@pytest.mark.parametrize("price,expected", [
    (5020.0, LifecycleState.PROFIT),
    (5025.0, LifecycleState.PROFIT),
    (4990.0, LifecycleState.STOPPED),
    (4980.0, LifecycleState.STOPPED),
    (5000.0, LifecycleState.ACTIVE),
])
def test_call_outcomes(tracker, price, expected):
    tracker.on_signal(make_trade_signal(type=Direction.CALL, target=5020.0, stop=4990.0))
    tracker.start_tracking()
    assert tracker.tick(price) is expected


@pytest.mark.parametrize("price,expected", [
    (4980.0, LifecycleState.PROFIT),
    (4975.0, LifecycleState.PROFIT),
    (5010.0, LifecycleState.STOPPED),
    (5030.0, LifecycleState.STOPPED),
    (4995.0, LifecycleState.ACTIVE),
])
def test_put_outcomes(tracker, price, expected):
    tracker.on_signal(make_trade_signal(type=Direction.PUT, strike=5000.0, target=4980.0, stop=5010.0))
    tracker.start_tracking()
    assert tracker.tick(price) is expected


def test_pending_trade_ignores_price(tracker):
    tracker.on_signal(make_trade_signal(target=5020.0))
    assert tracker.tick(5050.0) is LifecycleState.PENDING


def test_outcome_is_terminal_until_cleared(tracker):
    tracker.on_signal(make_trade_signal(target=5020.0, stop=4990.0))
    tracker.start_tracking()
    tracker.tick(5021.0)
    assert tracker.tick(4980.0) is LifecycleState.PROFIT


def test_missing_reference_levels_never_close(tracker):
    tracker.on_signal(make_trade_signal(target=None, stop=None))
    tracker.start_tracking()
    assert tracker.tick(1.0) is LifecycleState.ACTIVE
    assert tracker.tick(float('nan')) is LifecycleState.ACTIVE


def test_clear_from_any_state(tracker):
    tracker.on_signal(make_trade_signal())
    tracker.start_tracking()
    tracker.clear()
    assert tracker.state is LifecycleState.NONE
    assert tracker.signal is None
    assert tracker.elapsed_seconds == 0


def test_clear_allows_same_identity_again(tracker, notified):
    tracker.on_signal(make_trade_signal())
    tracker.clear()
    tracker.on_signal(make_trade_signal())
    assert len(notified) == 2


def test_no_signal_clears_pending_low_recommendation(tracker):
    tracker.on_signal(make_trade_signal(strength=Strength.LOW))
    assert tracker.on_signal(None) is LifecycleState.NONE
    assert tracker.signal is None


@pytest.mark.parametrize("strength", [Strength.HIGH, Strength.MEDIUM])
def test_no_signal_keeps_pending_strong_recommendation(tracker, strength):
    signal = make_trade_signal(strength=strength)
    tracker.on_signal(signal)
    assert tracker.on_signal(None) is LifecycleState.PENDING
    assert tracker.signal is signal


def test_flapping_high_signal_notifies_once(tracker, notified):
    tracker.on_signal(make_trade_signal(strength=Strength.HIGH))
    tracker.on_signal(None)
    assert tracker.on_signal(make_trade_signal(strength=Strength.HIGH)) is LifecycleState.PENDING
    assert len(notified) == 1


def test_no_signal_keeps_active_trade(tracker):
    tracker.on_signal(make_trade_signal())
    tracker.start_tracking()
    assert tracker.on_signal(None) is LifecycleState.ACTIVE


def test_update_offers_then_ticks(tracker):
    state = tracker.update(make_trade_signal(), 5030.0)
    assert state is LifecycleState.PENDING
