"""
Tests for the alert emitter: bounded history and side-effect dispatch.
"""

import pytest

from spxpulse.bot.notifications.notification_manager import AlertEmitter
from spxpulse.shared.models.scoring import Direction
from spxpulse.tests.fixtures.signals import make_alert, make_trade_signal


@pytest.fixture
def emitter():
    return AlertEmitter()


def test_history_is_most_recent_first(emitter):
    for n in range(3):
        emitter.emit(make_alert(n))
    assert [a.id for a in emitter.history] == [
        "squeeze-CALL-2", "squeeze-CALL-1", "squeeze-CALL-0",
    ]


def test_history_evicts_oldest_beyond_capacity(emitter):
    for n in range(55):
        emitter.emit(make_alert(n))
    assert len(emitter) == 50
    assert emitter.history[0].id == "squeeze-CALL-54"
    assert emitter.history[-1].id == "squeeze-CALL-5"
    assert emitter.get_alert_by_id("squeeze-CALL-4") is None


def test_get_recent_alerts_limit(emitter):
    for n in range(5):
        emitter.emit(make_alert(n))
    recent = emitter.get_recent_alerts(2)
    assert [a['id'] for a in recent] == ["squeeze-CALL-4", "squeeze-CALL-3"]
    assert recent[0]['direction'] == "CALL"
    assert emitter.get_recent_alerts(0) == []
    assert len(emitter.get_recent_alerts(500)) == 5


def test_push_only_for_flagged_alerts(emitter):
    seen, pushed = [], []
    emitter.on_alert(seen.append)
    emitter.on_push(pushed.append)

    emitter.emit(make_alert(1, should_push=False))
    emitter.emit(make_alert(2, should_push=True, direction=Direction.PUT))

    assert [a.id for a in seen] == ["squeeze-CALL-1", "squeeze-PUT-2"]
    assert [a.id for a in pushed] == ["squeeze-PUT-2"]


def test_failing_callback_does_not_break_emit(emitter):
    delivered = []

    @emitter.on_alert
    def broken(alert):
        raise RuntimeError("speaker unplugged")

    emitter.on_alert(delivered.append)
    emitter.emit(make_alert(1))

    assert len(emitter) == 1
    assert len(delivered) == 1


def test_trade_signal_dispatch(emitter):
    received = []
    emitter.on_trade_signal(received.append)
    signal = make_trade_signal()
    emitter.dispatch_trade_signal(signal)
    assert received == [signal]


def test_clear_alerts(emitter):
    emitter.emit(make_alert(1))
    emitter.clear_alerts()
    assert len(emitter) == 0
    assert emitter.get_recent_alerts() == []
